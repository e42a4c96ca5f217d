from __future__ import annotations

import logging
import threading
import time
from typing import Callable, Optional

from .compensation import CompensatedReading, compensate
from .config import SensorConfig
from .prom import CalibrationConstants, require_calibration
from .sequencer import ConversionSequencer, Oversampling
from .transport import I2CTransport, Transport, describe_transport

logger = logging.getLogger(__name__)


class BarometerSession:
    """
    Owns one transport and the calibration constants read through it.

    `start()` resets the device and reads the PROM once; later `read()` calls
    reuse those constants read-only. Acquisition cycles on the same session
    are serialised with a lock because the bus protocol cannot be interleaved.
    """

    def __init__(
        self,
        transport: Transport,
        config: Optional[SensorConfig] = None,
        *,
        cancel_event: Optional[threading.Event] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.transport = transport
        self.config = config or SensorConfig()
        self.oversampling = Oversampling(self.config.oversampling)
        self.sequencer = ConversionSequencer(
            transport,
            self.config.timing,
            cancel_event=cancel_event,
            sleep=sleep,
        )
        self._calibration: Optional[CalibrationConstants] = None
        self._lock = threading.Lock()

    @property
    def calibration(self) -> CalibrationConstants:
        return require_calibration(self._calibration)

    @property
    def started(self) -> bool:
        return self._calibration is not None

    def start(self) -> CalibrationConstants:
        with self._lock:
            if self._calibration is not None:
                return self._calibration
            self.sequencer.reset()
            constants = self.sequencer.read_calibration()
            self._calibration = constants
            logger.info(
                "Calibration loaded from %s (C1..C6=%s)",
                describe_transport(self.transport),
                constants.words()[1:],
            )
            return constants

    def read(self) -> CompensatedReading:
        with self._lock:
            constants = require_calibration(self._calibration)
            raw_temp = self.sequencer.acquire_temperature(self.oversampling)
            raw_pressure = self.sequencer.acquire_pressure(self.oversampling)
            reading = compensate(raw_temp, raw_pressure, constants, second_order=self.config.second_order)
        logger.debug(
            "Reading: D2=%d D1=%d TEMP=%d P=%s",
            raw_temp,
            raw_pressure,
            reading.temperature,
            reading.pressure,
        )
        return reading

    def read_temperature(self) -> CompensatedReading:
        with self._lock:
            constants = require_calibration(self._calibration)
            raw_temp = self.sequencer.acquire_temperature(self.oversampling)
            return compensate(raw_temp, None, constants, second_order=self.config.second_order)

    def close(self) -> None:
        try:
            self.transport.close()
        finally:
            self._calibration = None

    def __enter__(self) -> "BarometerSession":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


def open_session(config: SensorConfig, *, cancel_event: Optional[threading.Event] = None) -> BarometerSession:
    transport = I2CTransport.open(config.bus.bus, config.bus.address)
    return BarometerSession(transport, config, cancel_event=cancel_event)

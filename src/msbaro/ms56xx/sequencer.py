from __future__ import annotations

import enum
import logging
import threading
import time
from typing import Callable, List, Optional

from .config import SequencerTiming
from .prom import CalibrationConstants, IncompleteCalibrationError, prom_addresses
from .transport import Transport, TransportError, read_exact

logger = logging.getLogger(__name__)

CMD_RESET = 0x1E
CMD_ADC_READ = 0x00
CMD_CONVERT_D1_BASE = 0x40
CMD_CONVERT_D2_BASE = 0x50

PROM_WORD_BYTES = 2
ADC_RESULT_BYTES = 3


class AcquisitionCancelled(TransportError):
    """A settling wait was interrupted by the cancel event."""


class Oversampling(int, enum.Enum):
    OSR_256 = 256
    OSR_512 = 512
    OSR_1024 = 1024
    OSR_2048 = 2048
    OSR_4096 = 4096
    OSR_8192 = 8192

    @property
    def command_offset(self) -> int:
        return _OSR_OFFSETS[self]

    @property
    def max_conversion_sec(self) -> float:
        return _OSR_MAX_CONVERSION_MS[self] / 1000.0


_OSR_OFFSETS = {
    Oversampling.OSR_256: 0x00,
    Oversampling.OSR_512: 0x02,
    Oversampling.OSR_1024: 0x04,
    Oversampling.OSR_2048: 0x06,
    Oversampling.OSR_4096: 0x08,
    Oversampling.OSR_8192: 0x0A,
}

# Datasheet maximum conversion times (ms).
_OSR_MAX_CONVERSION_MS = {
    Oversampling.OSR_256: 0.54,
    Oversampling.OSR_512: 1.06,
    Oversampling.OSR_1024: 2.08,
    Oversampling.OSR_2048: 4.13,
    Oversampling.OSR_4096: 8.22,
    Oversampling.OSR_8192: 16.44,
}


def pressure_command(osr: Oversampling = Oversampling.OSR_8192) -> int:
    return CMD_CONVERT_D1_BASE + Oversampling(osr).command_offset


def temperature_command(osr: Oversampling = Oversampling.OSR_8192) -> int:
    return CMD_CONVERT_D2_BASE + Oversampling(osr).command_offset


CONVERT_D1_OSR8192 = pressure_command(Oversampling.OSR_8192)
CONVERT_D2_OSR8192 = temperature_command(Oversampling.OSR_8192)


def oversampling_for_command(command: int) -> Oversampling:
    if CMD_CONVERT_D1_BASE <= command < CMD_CONVERT_D1_BASE + 0x10:
        offset = command - CMD_CONVERT_D1_BASE
    elif CMD_CONVERT_D2_BASE <= command < CMD_CONVERT_D2_BASE + 0x10:
        offset = command - CMD_CONVERT_D2_BASE
    else:
        raise ValueError(f"0x{command:02X} is not a conversion command")
    for osr, osr_offset in _OSR_OFFSETS.items():
        if osr_offset == offset:
            return osr
    raise ValueError(f"0x{command:02X} does not select a known oversampling ratio")


class ConversionSequencer:
    """
    Drives the device through reset, PROM read and raw ADC conversions.

    Every bus step is synchronous. A failure aborts the current step with a
    `TransportError`; nothing is retried here. Settling waits go through
    `cancel_event.wait()` when an event is supplied so another thread can abort
    a stalled acquisition.
    """

    def __init__(
        self,
        transport: Transport,
        timing: Optional[SequencerTiming] = None,
        *,
        cancel_event: Optional[threading.Event] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.transport = transport
        self.timing = timing or SequencerTiming()
        self._cancel_event = cancel_event
        self._sleep = sleep

    def reset(self) -> None:
        logger.debug("Sending reset 0x%02X", CMD_RESET)
        self._write(CMD_RESET)
        self._wait(self.timing.reset_wait_sec)

    def read_calibration(self) -> CalibrationConstants:
        words: List[int] = []
        for address in prom_addresses():
            try:
                self._write(address)
                buf = read_exact(self.transport, PROM_WORD_BYTES)
            except TransportError as exc:
                raise IncompleteCalibrationError(
                    f"PROM read aborted at 0x{address:02X} after {len(words)} words: {exc}",
                    words_read=len(words),
                ) from exc
            words.append((buf[0] << 8) | buf[1])
            logger.debug("PROM 0x%02X = 0x%04X", address, words[-1])
        return CalibrationConstants.from_words(words)

    def acquire_raw(self, command: int) -> int:
        osr = oversampling_for_command(command)
        logger.debug("Triggering conversion 0x%02X (OSR %d)", command, osr.value)
        self._write(command)
        self._wait(osr.max_conversion_sec + self.timing.conversion_wait_sec)
        self._write(CMD_ADC_READ)
        buf = read_exact(self.transport, ADC_RESULT_BYTES)
        self._wait(self.timing.release_wait_sec)
        raw = (buf[0] << 16) | (buf[1] << 8) | buf[2]
        logger.debug("ADC result for 0x%02X: %d", command, raw)
        return raw

    def acquire_temperature(self, osr: Oversampling = Oversampling.OSR_8192) -> int:
        return self.acquire_raw(temperature_command(osr))

    def acquire_pressure(self, osr: Oversampling = Oversampling.OSR_8192) -> int:
        return self.acquire_raw(pressure_command(osr))

    def _write(self, value: int) -> None:
        self.transport.write_byte(value)

    def _wait(self, seconds: float) -> None:
        if self._cancel_event is not None and self._cancel_event.is_set():
            raise AcquisitionCancelled("Acquisition cancelled before settling wait")
        if seconds <= 0:
            return
        if self._cancel_event is None:
            self._sleep(seconds)
            return
        if self._cancel_event.wait(seconds):
            raise AcquisitionCancelled("Acquisition cancelled during settling wait")

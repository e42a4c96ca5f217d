from __future__ import annotations

import logging
from typing import List, Optional, Set

import numpy as np

from .prom import PROM_START, PROM_STOP, CalibrationConstants
from .sequencer import (
    CMD_ADC_READ,
    CMD_CONVERT_D1_BASE,
    CMD_CONVERT_D2_BASE,
    CMD_RESET,
)
from .transport import TransportError

logger = logging.getLogger(__name__)

ADC_MAX = 0xFFFFFF


class SimulatedMs56xx:
    """
    In-memory stand-in for an MS56xx device implementing the `Transport` protocol.

    The command state machine follows the part: a PROM command latches a
    16-bit word, a conversion command arms the ADC, and the ADC read command
    returns the armed result once (0 if nothing was converted).
    """

    address = 0x77

    def __init__(
        self,
        constants: CalibrationConstants,
        raw_temperature: int,
        raw_pressure: int,
        *,
        noise_counts: float = 0.0,
        rng: Optional[np.random.Generator] = None,
        fail_on_command: Optional[Set[int]] = None,
        short_read_on_command: Optional[Set[int]] = None,
    ):
        self.constants = constants
        self.raw_temperature = raw_temperature
        self.raw_pressure = raw_pressure
        self.noise_counts = noise_counts
        self._rng = rng or np.random.default_rng()
        self.fail_on_command = set(fail_on_command or ())
        self.short_read_on_command = set(short_read_on_command or ())
        self.commands: List[int] = []
        self.reset_count = 0
        self.closed = False
        self._last_command: Optional[int] = None
        self._pending: bytes = b""
        self._adc_result: Optional[int] = None

    def write_byte(self, value: int) -> None:
        if self.closed:
            raise TransportError("Simulated device is closed")
        value &= 0xFF
        self.commands.append(value)
        if value in self.fail_on_command:
            raise TransportError(f"Simulated NACK on command 0x{value:02X}")
        self._last_command = value
        if value == CMD_RESET:
            self.reset_count += 1
            self._pending = b""
            self._adc_result = None
        elif PROM_START <= value < PROM_STOP and value % 2 == 0:
            word = self.constants[(value - PROM_START) // 2]
            self._pending = word.to_bytes(2, "big")
        elif CMD_CONVERT_D1_BASE <= value < CMD_CONVERT_D1_BASE + 0x10:
            self._adc_result = self._sample(self.raw_pressure)
            self._pending = b""
        elif CMD_CONVERT_D2_BASE <= value < CMD_CONVERT_D2_BASE + 0x10:
            self._adc_result = self._sample(self.raw_temperature)
            self._pending = b""
        elif value == CMD_ADC_READ:
            result = self._adc_result if self._adc_result is not None else 0
            self._adc_result = None
            self._pending = result.to_bytes(3, "big")
        else:
            logger.debug("Ignoring unknown command 0x%02X", value)
            self._pending = b""

    def read_bytes(self, count: int) -> bytes:
        if self.closed:
            raise TransportError("Simulated device is closed")
        data = self._pending[:count].ljust(count, b"\x00")
        self._pending = b""
        if self._last_command in self.short_read_on_command:
            return data[: max(count - 1, 0)]
        return data

    def close(self) -> None:
        self.closed = True

    def _sample(self, nominal: int) -> int:
        if self.noise_counts <= 0:
            return nominal
        jitter = int(round(self._rng.normal(scale=self.noise_counts)))
        return int(np.clip(nominal + jitter, 0, ADC_MAX))

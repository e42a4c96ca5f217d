"""
Fixed-point compensation for MS56xx-family sensors.

All divisions truncate toward zero, matching the integer arithmetic the
datasheet formulas are written in. Python integers never overflow, so the
16/24/32/64-bit ranges noted on each function describe the value domain rather
than storage width.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

from .prom import CalibrationConstants, require_calibration

REFERENCE_TEMPERATURE_CENTI = 2000
LOW_TEMPERATURE_CENTI = -1500


def _div_trunc(numerator: int, denominator: int) -> int:
    quotient = abs(numerator) // abs(denominator)
    if (numerator < 0) != (denominator < 0):
        return -quotient
    return quotient


@dataclass(frozen=True)
class CompensatedReading:
    """Result of one acquisition cycle, computed fresh and never cached."""

    temperature: int  # centi-degrees Celsius
    pressure: int | None  # 0.01 mbar (Pa x 100 device units)
    raw_temperature: int
    raw_pressure: int | None
    d_temp: int
    temperature_correction: int = 0

    @property
    def celsius(self) -> float:
        return self.temperature / 100.0

    @property
    def mbar(self) -> float | None:
        if self.pressure is None:
            return None
        return self.pressure / 100.0


def temperature_difference(raw_temp: int, reference_temperature: int) -> int:
    """dT = D2 - C5 * 2^8 (signed 32-bit)."""
    return raw_temp - reference_temperature * (1 << 8)


def temperature(raw_temp: int, constants: CalibrationConstants) -> int:
    """First-order temperature in centi-degrees: 2000 + dT * C6 / 2^23."""
    constants = require_calibration(constants)
    d_temp = temperature_difference(raw_temp, constants.reference_temperature)
    return REFERENCE_TEMPERATURE_CENTI + _div_trunc(d_temp * constants.tc_temperature, 1 << 23)


def second_order_temperature_correction(temp: int, d_temp: int) -> int:
    """Quadratic correction T2; the larger divisor applies at and above 20.00 C."""
    if temp < REFERENCE_TEMPERATURE_CENTI:
        return _div_trunc(3 * d_temp * d_temp, 1 << 32)
    return _div_trunc(5 * d_temp * d_temp, 1 << 38)


def compensated_temperature(raw_temp: int, constants: CalibrationConstants) -> int:
    constants = require_calibration(constants)
    d_temp = temperature_difference(raw_temp, constants.reference_temperature)
    temp = temperature(raw_temp, constants)
    return temp - second_order_temperature_correction(temp, d_temp)


def second_order_pressure_correction(temp: int) -> Tuple[int, int]:
    """Return (OFF2, SENS2) for temperatures below 20.00 C, else (0, 0)."""
    if temp >= REFERENCE_TEMPERATURE_CENTI:
        return 0, 0
    delta = (temp - REFERENCE_TEMPERATURE_CENTI) ** 2
    off2 = _div_trunc(61 * delta, 1 << 4)
    sens2 = _div_trunc(29 * delta, 1 << 4)
    if temp < LOW_TEMPERATURE_CENTI:
        very_low = (temp - LOW_TEMPERATURE_CENTI) ** 2
        off2 += 17 * very_low
        sens2 += 9 * very_low
    return off2, sens2


def pressure_offset_at_temperature(d_temp: int, pressure_offset: int, tc_pressure_offset: int) -> int:
    """OFF = C2 * 2^17 + C4 * dT / 2^6 (signed 64-bit)."""
    return pressure_offset * (1 << 17) + _div_trunc(tc_pressure_offset * d_temp, 1 << 6)


def sensitivity_at_temperature(d_temp: int, pressure_sensitivity: int, tc_pressure_sensitivity: int) -> int:
    """SENS = C1 * 2^16 + C3 * dT / 2^7 (signed 64-bit)."""
    return pressure_sensitivity * (1 << 16) + _div_trunc(tc_pressure_sensitivity * d_temp, 1 << 7)


def pressure(raw_pressure: int, sens_at_temp: int, press_offset_at_temp: int) -> int:
    """P = (D1 * SENS / 2^21 - OFF) / 2^15 (signed 32-bit, 0.01 mbar)."""
    scaled = _div_trunc(raw_pressure * sens_at_temp, 1 << 21)
    return _div_trunc(scaled - press_offset_at_temp, 1 << 15)


def compensate(
    raw_temp: int,
    raw_pressure: int | None,
    constants: CalibrationConstants,
    *,
    second_order: bool = True,
) -> CompensatedReading:
    """
    Full compensation for one cycle.

    Temperature always receives the second-order correction when
    ``second_order`` is set; OFF and SENS receive theirs only below 20.00 C,
    using the first-order temperature as the datasheet does.
    """
    constants = require_calibration(constants)
    d_temp = temperature_difference(raw_temp, constants.reference_temperature)
    temp = temperature(raw_temp, constants)
    correction = second_order_temperature_correction(temp, d_temp) if second_order else 0

    pressure_value = None
    if raw_pressure is not None:
        off = pressure_offset_at_temperature(d_temp, constants.pressure_offset, constants.tc_pressure_offset)
        sens = sensitivity_at_temperature(
            d_temp, constants.pressure_sensitivity, constants.tc_pressure_sensitivity
        )
        if second_order:
            off2, sens2 = second_order_pressure_correction(temp)
            off -= off2
            sens -= sens2
        pressure_value = pressure(raw_pressure, sens, off)

    return CompensatedReading(
        temperature=temp - correction,
        pressure=pressure_value,
        raw_temperature=raw_temp,
        raw_pressure=raw_pressure,
        d_temp=d_temp,
        temperature_correction=correction,
    )

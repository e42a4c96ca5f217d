from __future__ import annotations

import pytest

from msbaro.ms56xx.compensation import (
    compensate,
    compensated_temperature,
    pressure,
    pressure_offset_at_temperature,
    second_order_pressure_correction,
    second_order_temperature_correction,
    sensitivity_at_temperature,
    temperature,
    temperature_difference,
)
from msbaro.ms56xx.prom import CalibrationConstants, CalibrationStateError


def _constants(**kwargs) -> CalibrationConstants:
    values = {
        "pressure_sensitivity": 46372,
        "pressure_offset": 43981,
        "tc_pressure_sensitivity": 29059,
        "tc_pressure_offset": 27842,
        "reference_temperature": 31553,
        "tc_temperature": 28165,
    }
    values.update(kwargs)
    return CalibrationConstants(**values)


def test_reference_raw_temperature_gives_twenty_degrees() -> None:
    constants = _constants(reference_temperature=29024, tc_temperature=24926)
    raw = 29024 * 256
    assert temperature_difference(raw, 29024) == 0
    assert temperature(raw, constants) == 2000
    assert compensated_temperature(raw, constants) == 2000


def test_temperature_from_raw_bytes() -> None:
    constants = _constants(reference_temperature=29024, tc_temperature=24926)
    raw = (0x82 << 16) | (0x3C << 8) | 0x00
    assert raw == 8_535_040
    d_temp = temperature_difference(raw, 29024)
    assert d_temp == 1_104_896
    assert temperature(raw, constants) == 5283
    # At or above 20.00 C the 2^38 divisor still yields a small correction.
    assert second_order_temperature_correction(5283, d_temp) == 22
    assert compensated_temperature(raw, constants) == 5261


def test_temperature_is_monotonic_in_raw_value() -> None:
    constants = _constants(reference_temperature=29024, tc_temperature=24926)
    previous = None
    for raw in range(0, 1 << 24, 4099):
        current = temperature(raw, constants)
        if previous is not None:
            assert current >= previous
        previous = current


def test_division_truncates_toward_zero() -> None:
    constants = _constants(reference_temperature=1, tc_temperature=1)
    # dT = -256, dT * C6 / 2^23 truncates to 0 rather than flooring to -1
    assert temperature(0, constants) == 2000
    assert pressure_offset_at_temperature(-1, 0, 1) == 0
    assert sensitivity_at_temperature(-1, 0, 1) == 0
    assert pressure(0, 0, 131073) == -4


def test_second_order_branch_threshold() -> None:
    d_temp = 1 << 20
    assert second_order_temperature_correction(1999, d_temp) == 768
    assert second_order_temperature_correction(2000, d_temp) == 20
    assert second_order_temperature_correction(2500, d_temp) == 20


def test_second_order_lower_branch_applied_below_threshold() -> None:
    constants = _constants(reference_temperature=0x4000, tc_temperature=16)
    raw = 0x4000 * 256 - (1 << 20)
    assert temperature(raw, constants) == 1998
    assert compensated_temperature(raw, constants) == 1998 - 768


def test_second_order_pressure_correction() -> None:
    assert second_order_pressure_correction(2000) == (0, 0)
    assert second_order_pressure_correction(1000) == (3_812_500, 1_812_500)
    assert second_order_pressure_correction(-2000) == (65_250_000, 31_250_000)


def test_pressure_simple_scaling() -> None:
    off = pressure_offset_at_temperature(0, 0, 12345)
    sens = sensitivity_at_temperature(0, 32768, 12345)
    assert off == 0
    assert sens == 1 << 31
    assert pressure(3_200_000, sens, off) == 100_000


def test_datasheet_example() -> None:
    constants = _constants()
    d_temp = temperature_difference(8077636, constants.reference_temperature)
    assert d_temp == 68
    off = pressure_offset_at_temperature(d_temp, constants.pressure_offset, constants.tc_pressure_offset)
    sens = sensitivity_at_temperature(
        d_temp, constants.pressure_sensitivity, constants.tc_pressure_sensitivity
    )
    assert off == 5_764_707_214
    assert sens == 3_039_050_829
    assert pressure(6465444, sens, off) == 110_002

    reading = compensate(8077636, 6465444, constants)
    assert reading.temperature == 2000
    assert reading.pressure == 110_002
    assert reading.temperature_correction == 0
    assert reading.celsius == pytest.approx(20.0)
    assert reading.mbar == pytest.approx(1100.02)


def test_extreme_inputs_stay_within_signed_64_bit() -> None:
    constants = CalibrationConstants(0xFFFF, 0xFFFF, 0xFFFF, 0xFFFF, 0, 0xFFFF)
    reading = compensate(0xFFFFFF, 0xFFFFFF, constants, second_order=False)
    d_temp = reading.d_temp
    off = pressure_offset_at_temperature(d_temp, 0xFFFF, 0xFFFF)
    sens = sensitivity_at_temperature(d_temp, 0xFFFF, 0xFFFF)
    assert -(1 << 63) <= off < (1 << 63)
    assert -(1 << 63) <= 0xFFFFFF * sens < (1 << 63)
    assert -(1 << 31) <= reading.pressure < (1 << 31)


def test_compensate_without_pressure() -> None:
    reading = compensate(8077636, None, _constants())
    assert reading.pressure is None
    assert reading.mbar is None
    assert reading.raw_pressure is None


def test_partial_calibration_is_rejected() -> None:
    with pytest.raises(CalibrationStateError):
        temperature(8077636, [0, 46372, 43981])  # type: ignore[arg-type]
    with pytest.raises(CalibrationStateError):
        compensate(8077636, 6465444, None)  # type: ignore[arg-type]

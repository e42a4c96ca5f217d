from __future__ import annotations

import json
from pathlib import Path

import pytest

from msbaro.ms56xx.compensation import temperature
from msbaro.ms56xx.prom import (
    CalibrationConstants,
    CalibrationStateError,
    load_calibration_json,
    prom_addresses,
    require_calibration,
    save_calibration_json,
)

WORDS = [0x0042, 46372, 43981, 29059, 27842, 31553, 28165]


def test_prom_addresses_cover_a0_to_ac() -> None:
    assert list(prom_addresses()) == [0xA0, 0xA2, 0xA4, 0xA6, 0xA8, 0xAA, 0xAC]


def test_from_words_uses_datasheet_indexing() -> None:
    constants = CalibrationConstants.from_words(WORDS)
    assert constants[0] == 0x0042
    assert constants[1] == constants.pressure_sensitivity == 46372
    assert constants[5] == constants.reference_temperature == 31553
    assert constants[6] == constants.tc_temperature == 28165
    assert constants.words() == WORDS
    with pytest.raises(IndexError):
        constants[7]


def test_six_constants_without_reserved_word() -> None:
    constants = require_calibration(WORDS[1:])
    assert constants.reserved == 0
    assert [constants[idx] for idx in range(1, 7)] == WORDS[1:]
    assert temperature(8077636, WORDS[1:]) == 2000


def test_partial_store_is_rejected() -> None:
    with pytest.raises(CalibrationStateError):
        CalibrationConstants.from_words(WORDS[1:6])
    with pytest.raises(CalibrationStateError):
        require_calibration(WORDS[2:])
    with pytest.raises(CalibrationStateError):
        CalibrationConstants.from_words(WORDS + [0])
    with pytest.raises(CalibrationStateError):
        require_calibration(WORDS[:3])
    with pytest.raises(CalibrationStateError):
        require_calibration(None)


def test_out_of_range_word_is_rejected() -> None:
    with pytest.raises(CalibrationStateError):
        CalibrationConstants.from_words([0, 0x10000, 1, 1, 1, 1, 1])
    with pytest.raises(CalibrationStateError):
        CalibrationConstants.from_words([0, -1, 1, 1, 1, 1, 1])


def test_require_calibration_accepts_full_sequence() -> None:
    constants = require_calibration(WORDS)
    assert isinstance(constants, CalibrationConstants)
    assert require_calibration(constants) is constants


def test_calibration_json_file(tmp_path: Path) -> None:
    path = tmp_path / "prom.json"
    constants = CalibrationConstants.from_words(WORDS)
    save_calibration_json(path, constants)
    data = json.loads(path.read_text(encoding="utf-8"))
    assert data["c1"] == 46372
    assert data["reserved"] == 0x0042
    assert load_calibration_json(path) == constants


def test_calibration_mapping_missing_field(tmp_path: Path) -> None:
    path = tmp_path / "prom.json"
    path.write_text(json.dumps({"c1": 1, "c2": 2, "c4": 4, "c5": 5, "c6": 6}), encoding="utf-8")
    with pytest.raises(CalibrationStateError, match="c3"):
        load_calibration_json(path)

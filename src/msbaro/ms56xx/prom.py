from __future__ import annotations

import json
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Sequence

from .transport import TransportError

PROM_START = 0xA0
PROM_STOP = 0xAE
PROM_STEP = 2
PROM_WORD_COUNT = (PROM_STOP - PROM_START) // PROM_STEP
CONSTANT_NAMES = (
    "pressure_sensitivity",
    "pressure_offset",
    "tc_pressure_sensitivity",
    "tc_pressure_offset",
    "reference_temperature",
    "tc_temperature",
)


class CalibrationStateError(ValueError):
    """Calibration constants are missing or incomplete where they are required."""


class IncompleteCalibrationError(TransportError):
    """PROM read aborted before every calibration word was retrieved."""

    def __init__(self, message: str, words_read: int = 0):
        super().__init__(message)
        self.words_read = words_read


def prom_addresses() -> Iterator[int]:
    return iter(range(PROM_START, PROM_STOP, PROM_STEP))


@dataclass(frozen=True)
class CalibrationConstants:
    """Factory calibration words C1..C6 plus the reserved word at 0xA0.

    Indexing follows the datasheet: ``constants[1]`` is C1 (pressure
    sensitivity) and ``constants[6]`` is C6 (temperature coefficient of the
    temperature). ``constants[0]`` is the reserved/factory word.
    """

    pressure_sensitivity: int
    pressure_offset: int
    tc_pressure_sensitivity: int
    tc_pressure_offset: int
    reference_temperature: int
    tc_temperature: int
    reserved: int = 0

    def __post_init__(self) -> None:
        for item in fields(self):
            value = getattr(self, item.name)
            if isinstance(value, bool) or not isinstance(value, int):
                raise CalibrationStateError(f"{item.name} must be an integer, got {value!r}")
            if not 0 <= value <= 0xFFFF:
                raise CalibrationStateError(f"{item.name}={value} is outside the 16-bit range")

    def __getitem__(self, index: int) -> int:
        if index == 0:
            return self.reserved
        if 1 <= index <= len(CONSTANT_NAMES):
            return getattr(self, CONSTANT_NAMES[index - 1])
        raise IndexError(f"Calibration index {index} out of range 0..{len(CONSTANT_NAMES)}")

    @staticmethod
    def from_words(words: Sequence[int]) -> "CalibrationConstants":
        """Build from C1..C6, or from the full PROM walk with the reserved word first."""
        if len(words) == len(CONSTANT_NAMES):
            words = [0, *words]
        elif len(words) != PROM_WORD_COUNT:
            raise CalibrationStateError(
                f"Calibration store needs {len(CONSTANT_NAMES)} constants "
                f"or {PROM_WORD_COUNT} PROM words, got {len(words)}"
            )
        return CalibrationConstants(
            reserved=words[0],
            **{name: words[idx + 1] for idx, name in enumerate(CONSTANT_NAMES)},
        )

    def words(self) -> List[int]:
        return [self[idx] for idx in range(PROM_WORD_COUNT)]

    def as_dict(self) -> Dict[str, int]:
        data = {"reserved": self.reserved}
        data.update({f"c{idx}": self[idx] for idx in range(1, len(CONSTANT_NAMES) + 1)})
        return data

    @staticmethod
    def from_mapping(data: Dict[str, Any]) -> "CalibrationConstants":
        missing = [f"c{idx}" for idx in range(1, len(CONSTANT_NAMES) + 1) if f"c{idx}" not in data]
        if missing:
            raise CalibrationStateError(f"Calibration mapping missing fields {missing}")
        words = [int(data.get("reserved", 0))]
        words.extend(int(data[f"c{idx}"]) for idx in range(1, len(CONSTANT_NAMES) + 1))
        return CalibrationConstants.from_words(words)


def require_calibration(value: Optional[object]) -> CalibrationConstants:
    """Return *value* if it is a complete calibration store, raise otherwise."""

    if value is None:
        raise CalibrationStateError("Calibration constants have not been read from the device")
    if isinstance(value, CalibrationConstants):
        return value
    if isinstance(value, (list, tuple)):
        return CalibrationConstants.from_words(value)
    raise CalibrationStateError(f"Unsupported calibration store type {type(value).__name__}")


def load_calibration_json(path: Path) -> CalibrationConstants:
    data = json.loads(Path(path).read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        raise CalibrationStateError("Calibration JSON must be an object")
    return CalibrationConstants.from_mapping(data)


def save_calibration_json(path: Path, constants: CalibrationConstants) -> None:
    Path(path).write_text(json.dumps(constants.as_dict(), indent=2), encoding="utf-8")

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Sequence

OVERSAMPLING_CHOICES = (256, 512, 1024, 2048, 4096, 8192)


@dataclass
class BusConfig:
    bus: int = 1
    address: int = 0x77


@dataclass
class SequencerTiming:
    reset_wait_sec: float = 0.003
    # Extra wait on top of the datasheet conversion time for the chosen OSR.
    conversion_wait_sec: float = 0.0
    release_wait_sec: float = 0.001

    def __post_init__(self) -> None:
        for name in ("reset_wait_sec", "conversion_wait_sec", "release_wait_sec"):
            if getattr(self, name) < 0:
                raise ValueError(f"timing.{name} must be non-negative")


@dataclass
class SensorConfig:
    bus: BusConfig = field(default_factory=BusConfig)
    timing: SequencerTiming = field(default_factory=SequencerTiming)
    oversampling: int = 8192
    second_order: bool = True

    def __post_init__(self) -> None:
        if self.oversampling not in OVERSAMPLING_CHOICES:
            raise ValueError(
                f"Unsupported oversampling {self.oversampling}; expected one of {list(OVERSAMPLING_CHOICES)}"
            )
        if not 0x03 <= self.bus.address <= 0x77:
            raise ValueError(f"I2C address 0x{self.bus.address:02X} outside 7-bit range")


def _read_sensor_json(path: Path) -> Dict[str, Any]:
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ValueError(f"Sensor config {path} is not valid JSON: {exc}") from exc
    if not isinstance(data, dict):
        raise ValueError(f"Sensor config {path} must hold a JSON object")
    return data


def _overlay(base: Dict[str, Any], layer: Dict[str, Any]) -> Dict[str, Any]:
    result = dict(base)
    for key, value in layer.items():
        nested = result.get(key)
        result[key] = _overlay(nested, value) if isinstance(nested, dict) and isinstance(value, dict) else value
    return result


def _as_int(value: Any) -> int:
    if isinstance(value, str):
        return int(value, 0)
    return int(value)


def _as_bool(value: Any, name: str) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.strip().lower() in {"true", "false"}:
        return value.strip().lower() == "true"
    raise ValueError(f"{name} must be true or false, got {value!r}")


def load_config(path: Optional[Path | str] = None, overrides: Sequence[str] | None = None) -> SensorConfig:
    """
    Load a sensor configuration from JSON (optional) and apply CLI-style overrides.

    Overrides are expressed as dotted `key=value` pairs, e.g.:
        ["bus.address=0x76", "timing.release_wait_sec=1"]
    """
    data = _read_sensor_json(Path(path)) if path is not None else {}
    layer: Dict[str, Any] = {}
    for override in overrides or []:
        key, value = _split_override(override)
        _set_dotted(layer, key, value)
    merged = _overlay(data, layer)
    bus_data = merged.get("bus") or {}
    timing_data = merged.get("timing") or {}
    return SensorConfig(
        bus=BusConfig(
            bus=_as_int(bus_data.get("bus", 1)),
            address=_as_int(bus_data.get("address", 0x77)),
        ),
        timing=SequencerTiming(
            reset_wait_sec=float(timing_data.get("reset_wait_sec", 0.003)),
            conversion_wait_sec=float(timing_data.get("conversion_wait_sec", 0.0)),
            release_wait_sec=float(timing_data.get("release_wait_sec", 0.001)),
        ),
        oversampling=_as_int(merged.get("oversampling", 8192)),
        second_order=_as_bool(merged.get("second_order", True), "second_order"),
    )


def _split_override(item: str) -> tuple[str, Any]:
    key, sep, raw_value = item.partition("=")
    key = key.strip()
    if not sep or not key:
        raise ValueError(f"Override '{item}' must use key=value syntax with a non-empty key")
    return key, _coerce_value(raw_value.strip())


def _coerce_value(raw: str) -> Any:
    lowered = raw.lower()
    if lowered in {"true", "false"}:
        return lowered == "true"
    if raw.startswith("{") and raw.endswith("}"):
        try:
            return json.loads(raw)
        except json.JSONDecodeError as exc:
            raise ValueError(f"Override value {raw!r} is not a valid JSON object") from exc
    try:
        # Base 0 accepts 0x76 as well as plain decimal.
        return int(raw, 0)
    except ValueError:
        pass
    try:
        return float(raw)
    except ValueError:
        return raw


def _set_dotted(target: Dict[str, Any], dotted_key: str, value: Any) -> None:
    *parents, leaf = dotted_key.split(".")
    cursor = target
    for part in parents:
        child = cursor.setdefault(part, {})
        if not isinstance(child, dict):
            raise ValueError(f"Override '{dotted_key}' descends into non-section '{part}'")
        cursor = child
    cursor[leaf] = value

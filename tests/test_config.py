from __future__ import annotations

from pathlib import Path

import pytest

from msbaro.ms56xx.config import SensorConfig, load_config


def test_defaults_without_file() -> None:
    cfg = load_config()
    assert isinstance(cfg, SensorConfig)
    assert cfg.bus.bus == 1
    assert cfg.bus.address == 0x77
    assert cfg.oversampling == 8192
    assert cfg.second_order is True


def test_load_config_overrides(tmp_path: Path) -> None:
    cfg_path = tmp_path / "sensor.json"
    cfg_path.write_text(
        """
        {
          "bus": {"bus": 3, "address": "0x76"},
          "timing": {"release_wait_sec": 1.0},
          "oversampling": 4096
        }
        """,
        encoding="utf-8",
    )
    cfg = load_config(cfg_path, overrides=["timing.conversion_wait_sec=0.5", "bus.address=0x77"])
    assert cfg.bus.bus == 3
    assert cfg.bus.address == 0x77
    assert cfg.timing.release_wait_sec == 1.0
    assert cfg.timing.conversion_wait_sec == 0.5
    assert cfg.oversampling == 4096


def test_invalid_values_rejected() -> None:
    with pytest.raises(ValueError):
        load_config(overrides=["oversampling=300"])
    with pytest.raises(ValueError):
        load_config(overrides=["timing.release_wait_sec=-1"])
    with pytest.raises(ValueError):
        load_config(overrides=["bus.address=0x80"])
    with pytest.raises(ValueError):
        load_config(overrides=["second_order"])


def test_second_order_parsed_strictly(tmp_path: Path) -> None:
    cfg_path = tmp_path / "sensor.json"
    cfg_path.write_text('{"second_order": "false"}', encoding="utf-8")
    assert load_config(cfg_path).second_order is False
    assert load_config(overrides=["second_order=false"]).second_order is False
    cfg_path.write_text('{"second_order": "maybe"}', encoding="utf-8")
    with pytest.raises(ValueError, match="second_order"):
        load_config(cfg_path)
    with pytest.raises(ValueError, match="second_order"):
        load_config(overrides=["second_order=1"])


def test_malformed_sources_rejected(tmp_path: Path) -> None:
    cfg_path = tmp_path / "sensor.json"
    cfg_path.write_text("{not json", encoding="utf-8")
    with pytest.raises(ValueError, match="not valid JSON"):
        load_config(cfg_path)
    cfg_path.write_text("[1, 2]", encoding="utf-8")
    with pytest.raises(ValueError, match="JSON object"):
        load_config(cfg_path)
    with pytest.raises(ValueError, match="non-section"):
        load_config(overrides=["bus=1", "bus.address=0x76"])

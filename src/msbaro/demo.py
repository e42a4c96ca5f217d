"""Demo acquisition against a simulated device."""
from __future__ import annotations

import numpy as np

from .ms56xx.compensation import CompensatedReading
from .ms56xx.config import SensorConfig, SequencerTiming
from .ms56xx.prom import CalibrationConstants
from .ms56xx.session import BarometerSession
from .ms56xx.simulator import SimulatedMs56xx

# Typical values from the MS5607 datasheet worked example.
DATASHEET_CONSTANTS = CalibrationConstants(
    pressure_sensitivity=46372,
    pressure_offset=43981,
    tc_pressure_sensitivity=29059,
    tc_pressure_offset=27842,
    reference_temperature=31553,
    tc_temperature=28165,
)
DATASHEET_RAW_TEMPERATURE = 8077636
DATASHEET_RAW_PRESSURE = 6465444


def create_demo_device(seed: int = 42, noise_counts: float = 0.0) -> SimulatedMs56xx:
    return SimulatedMs56xx(
        DATASHEET_CONSTANTS,
        raw_temperature=DATASHEET_RAW_TEMPERATURE,
        raw_pressure=DATASHEET_RAW_PRESSURE,
        noise_counts=noise_counts,
        rng=np.random.default_rng(seed),
    )


def run_demo(seed: int = 42, noise_counts: float = 0.0) -> CompensatedReading:
    device = create_demo_device(seed, noise_counts)
    config = SensorConfig(timing=SequencerTiming(reset_wait_sec=0.0, release_wait_sec=0.0))
    with BarometerSession(device, config, sleep=lambda _seconds: None) as session:
        session.start()
        return session.read()

"""
MS56xx-family barometric sensor acquisition over I2C.

The subpackage exposes the transport seam, the PROM calibration store, the
conversion sequencer and the integer compensation arithmetic, plus a session
object tying them together for one synchronous acquisition cycle.
"""

from .compensation import (
    CompensatedReading,
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
from .config import BusConfig, SensorConfig, SequencerTiming, load_config
from .prom import (
    CalibrationConstants,
    CalibrationStateError,
    IncompleteCalibrationError,
    load_calibration_json,
    require_calibration,
    save_calibration_json,
)
from .sequencer import AcquisitionCancelled, ConversionSequencer, Oversampling
from .session import BarometerSession, open_session
from .simulator import SimulatedMs56xx
from .transport import I2CTransport, Transport, TransportError

__all__ = [
    "BusConfig",
    "SensorConfig",
    "SequencerTiming",
    "load_config",
    "CalibrationConstants",
    "CalibrationStateError",
    "IncompleteCalibrationError",
    "load_calibration_json",
    "require_calibration",
    "save_calibration_json",
    "AcquisitionCancelled",
    "ConversionSequencer",
    "Oversampling",
    "CompensatedReading",
    "compensate",
    "compensated_temperature",
    "pressure",
    "pressure_offset_at_temperature",
    "second_order_pressure_correction",
    "second_order_temperature_correction",
    "sensitivity_at_temperature",
    "temperature",
    "temperature_difference",
    "BarometerSession",
    "open_session",
    "SimulatedMs56xx",
    "I2CTransport",
    "Transport",
    "TransportError",
]

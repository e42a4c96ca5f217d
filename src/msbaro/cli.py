"""Command line interface for the msbaro package."""
from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import List, NoReturn, Optional

import typer

from .demo import run_demo
from .ms56xx.compensation import CompensatedReading
from .ms56xx.config import SensorConfig, load_config
from .ms56xx.prom import CalibrationConstants, CalibrationStateError, save_calibration_json
from .ms56xx.session import open_session
from .ms56xx.transport import TransportError

logger = logging.getLogger(__name__)

EXIT_ACQUISITION_FAILED = 1
EXIT_CALIBRATION_STATE = 2

app = typer.Typer(
    add_completion=False,
    help="MS56xx barometric sensor utilities.",
    context_settings={"help_option_names": ["-h", "--help"]},
)


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging of bus traffic."),
) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _build_config(
    config_path: Optional[Path],
    override: Optional[List[str]],
    bus: Optional[int],
    address: Optional[str],
) -> SensorConfig:
    overrides = list(override or [])
    if bus is not None:
        overrides.append(f"bus.bus={bus}")
    if address is not None:
        overrides.append(f"bus.address={address}")
    try:
        return load_config(config_path, overrides or None)
    except (ValueError, OSError) as exc:
        raise typer.BadParameter(str(exc)) from exc


def _format_reading(reading: CompensatedReading) -> str:
    text = f"Temperature: {reading.celsius:.2f} C"
    if reading.mbar is not None:
        text += f"\nPressure: {reading.mbar:.2f} mbar"
    return text


def _reading_payload(reading: CompensatedReading) -> dict:
    return {
        "temperature_centi_c": reading.temperature,
        "pressure_centi_mbar": reading.pressure,
        "raw_temperature": reading.raw_temperature,
        "raw_pressure": reading.raw_pressure,
        "d_temp": reading.d_temp,
        "temperature_correction": reading.temperature_correction,
    }


def _fail(message: str, exc: Exception, code: int) -> NoReturn:
    typer.echo(f"{message}: {exc}", err=True)
    raise typer.Exit(code=code) from exc


@app.command()
def read(
    config_path: Optional[Path] = typer.Option(None, "--config", "-c", help="Path to sensor config JSON."),
    override: Optional[List[str]] = typer.Option(
        None,
        "--set",
        help="Override config keys, e.g. --set bus.address=0x76 --set timing.release_wait_sec=1",
    ),
    bus: Optional[int] = typer.Option(None, "--bus", help="I2C bus number."),
    address: Optional[str] = typer.Option(None, "--address", help="Device address, e.g. 0x77."),
    as_json: bool = typer.Option(False, "--json", help="Print the reading as JSON."),
) -> None:
    """Run one acquisition cycle and print temperature and pressure.

    The second-order temperature correction (and the OFF/SENS correction below
    20 C) is applied on every reading unless `--set second_order=false` is given.
    """

    cfg = _build_config(config_path, override, bus, address)
    logger.info("Reading bus %s address 0x%02X (OSR %d)", cfg.bus.bus, cfg.bus.address, cfg.oversampling)
    try:
        with open_session(cfg) as session:
            session.start()
            reading = session.read()
    except ImportError as exc:
        raise typer.BadParameter("smbus2 is required for bus access (pip install .[i2c])") from exc
    except CalibrationStateError as exc:
        _fail("invalid calibration state", exc, EXIT_CALIBRATION_STATE)
    except TransportError as exc:
        _fail("acquisition failed", exc, EXIT_ACQUISITION_FAILED)
    if as_json:
        typer.echo(json.dumps(_reading_payload(reading)))
    else:
        typer.echo(_format_reading(reading))


@app.command()
def prom(
    config_path: Optional[Path] = typer.Option(None, "--config", "-c", help="Path to sensor config JSON."),
    override: Optional[List[str]] = typer.Option(
        None,
        "--set",
        help="Override config keys, e.g. --set bus.address=0x76 --set timing.release_wait_sec=1",
    ),
    bus: Optional[int] = typer.Option(None, "--bus", help="I2C bus number."),
    address: Optional[str] = typer.Option(None, "--address", help="Device address, e.g. 0x77."),
    out: Optional[Path] = typer.Option(None, "--out", help="Save calibration constants to JSON."),
) -> None:
    """Reset the device and print its PROM calibration words."""

    cfg = _build_config(config_path, override, bus, address)
    try:
        with open_session(cfg) as session:
            constants = session.start()
    except ImportError as exc:
        raise typer.BadParameter("smbus2 is required for bus access (pip install .[i2c])") from exc
    except CalibrationStateError as exc:
        _fail("invalid calibration state", exc, EXIT_CALIBRATION_STATE)
    except TransportError as exc:
        _fail("acquisition failed", exc, EXIT_ACQUISITION_FAILED)
    _echo_constants(constants)
    if out is not None:
        save_calibration_json(out, constants)
        typer.echo(f"Wrote calibration constants to {out}")


def _echo_constants(constants: CalibrationConstants) -> None:
    for idx, word in enumerate(constants.words()):
        label = "C0 (reserved)" if idx == 0 else f"C{idx}"
        typer.echo(f"{label}: {word} (0x{word:04X})")


@app.command()
def demo(
    seed: int = typer.Option(42, "--seed", help="Noise generator seed."),
    noise: float = typer.Option(0.0, "--noise", help="ADC noise (counts, 1 sigma)."),
) -> None:
    """Run one acquisition cycle against a simulated device."""

    reading = run_demo(seed=seed, noise_counts=noise)
    typer.echo(_format_reading(reading))


def run() -> None:
    app()


if __name__ == "__main__":  # pragma: no cover
    run()

from __future__ import annotations

import logging
from typing import Optional, Protocol

try:
    from smbus2 import SMBus, i2c_msg  # type: ignore[import]
except ImportError:  # pragma: no cover - handled when opening the bus
    SMBus = None  # type: ignore[assignment]
    i2c_msg = None  # type: ignore[assignment]

logger = logging.getLogger(__name__)


class TransportError(IOError):
    """A bus write or read failed, or a read came back short."""


class Transport(Protocol):
    def write_byte(self, value: int) -> None:
        ...

    def read_bytes(self, count: int) -> bytes:
        ...

    def close(self) -> None:
        ...


def read_exact(transport: Transport, count: int) -> bytes:
    data = bytes(transport.read_bytes(count))
    if len(data) != count:
        raise TransportError(f"Short read: expected {count} bytes, got {len(data)}")
    return data


class I2CTransport:
    """Raw I2C device transport on top of smbus2.

    Commands are sent as single-byte writes and responses are fetched with a
    plain device read (no register byte), which is what the MS56xx protocol
    expects after a PROM or ADC command.
    """

    def __init__(self, bus: "SMBus", address: int):
        self._bus = bus
        self.address = address

    @classmethod
    def open(cls, bus: int | str, address: int) -> "I2CTransport":
        if SMBus is None:
            raise ImportError("smbus2 is required but not installed. Install extra 'i2c'.")
        try:
            handle = SMBus(bus)
        except OSError as exc:
            raise TransportError(f"Failed to open I2C bus {bus}: {exc}") from exc
        logger.info("Opened I2C bus %s (device 0x%02X)", bus, address)
        return cls(handle, address)

    def write_byte(self, value: int) -> None:
        try:
            self._bus.write_byte(self.address, value & 0xFF)
        except OSError as exc:
            raise TransportError(f"Write 0x{value:02X} to 0x{self.address:02X} failed: {exc}") from exc

    def read_bytes(self, count: int) -> bytes:
        msg = i2c_msg.read(self.address, count)
        try:
            self._bus.i2c_rdwr(msg)
        except OSError as exc:
            raise TransportError(f"Read of {count} bytes from 0x{self.address:02X} failed: {exc}") from exc
        return bytes(list(msg))

    def close(self) -> None:
        if self._bus is not None:
            try:
                self._bus.close()
            except OSError:
                logger.debug("Error closing I2C bus", exc_info=True)
            self._bus = None


def describe_transport(transport: Optional[Transport]) -> str:
    if transport is None:
        return "none"
    address = getattr(transport, "address", None)
    if address is None:
        return type(transport).__name__
    return f"{type(transport).__name__}@0x{address:02X}"

"""Byte, text and identifier helpers shared by the duck components."""

from __future__ import annotations

import random
from dataclasses import dataclass, field

from duckmesh import config
from duckmesh.errors import EepromError, InvalidArgumentError

_RANDOM_DIGITS = "0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZ"
_UUID_LETTERS = "abcdefghijklmnopqrstuvwxyz"
_UUID_DIGITS = "0123456789"

EEPROM_SIZE = 512
_CREDENTIALS_END = config.EEPROM_CONTROL_USERNAME + config.EEPROM_CRED_MAX


@dataclass
class DetectState:
    """A boolean detection flag that can be toggled."""

    active: bool = False

    def flip(self) -> bool:
        """Toggle the flag and return its new value."""
        self.active = not self.active
        return self.active


@dataclass
class CredentialStore:
    """WiFi credentials kept in a byte-addressed persistent memory image."""

    eeprom: bytearray = field(default_factory=lambda: bytearray(EEPROM_SIZE))

    def __post_init__(self) -> None:
        if len(self.eeprom) < _CREDENTIALS_END:
            raise EepromError("Failed to initialise EEPROM")

    def _write(self, offset: int, data: bytes) -> None:
        end = min(len(self.eeprom), offset + len(data))
        self.eeprom[offset:end] = data[: end - offset]

    def _read(self, start: int, stop: int) -> str:
        raw = bytes(self.eeprom[start:stop]).split(b"\x00", 1)[0]
        return raw.decode("utf-8", errors="replace")

    def save(self, ssid: str, password: str) -> None:
        """Clear the credential area and store ssid and password."""
        if not ssid or not password:
            raise InvalidArgumentError("Invalid SSID or password")
        self.eeprom[0:_CREDENTIALS_END] = bytes(_CREDENTIALS_END)
        self._write(config.EEPROM_WIFI_USERNAME, ssid.encode("utf-8"))
        self._write(config.EEPROM_WIFI_PASSWORD, password.encode("utf-8"))

    def ssid(self) -> str:
        """Return the stored network name."""
        return self._read(config.EEPROM_WIFI_USERNAME, config.EEPROM_WIFI_PASSWORD)

    def password(self) -> str:
        """Return the stored network password."""
        return self._read(config.EEPROM_WIFI_PASSWORD, _CREDENTIALS_END)


def random_bytes(length: int, rng: random.Random | None = None) -> bytes:
    """Return length random characters from 0-9 and A-Z as bytes."""
    rng = rng or random
    return "".join(_RANDOM_DIGITS[rng.randrange(36)] for _ in range(length)).encode("ascii")


def create_uuid(length: int = config.UUID_LEN, rng: random.Random | None = None) -> str:
    """Return a random identifier of lower-case letters and digits."""
    rng = rng or random
    chars = []
    for _ in range(length):
        value = rng.randrange(36)
        chars.append(_UUID_LETTERS[value] if value < 26 else _UUID_DIGITS[value - 26])
    return "".join(chars)


def to_hex(data) -> str:
    """Return data as upper-case hexadecimal, two digits per byte."""
    return bytes(data).hex().upper()


def to_uint32(data) -> int:
    """Decode the first four bytes of data as a big-endian unsigned integer."""
    chunk = bytes(data[:4])
    if len(chunk) < 4:
        raise ValueError("at least four bytes are required")
    return int.from_bytes(chunk, "big")


def to_upper(text: str) -> str:
    """Upper-case ASCII letters only, leaving other characters unchanged."""
    return "".join(c.upper() if c.isascii() else c for c in text)


def string_to_bytes(text: str) -> bytes:
    """Return the bytes of text."""
    return text.encode("utf-8")
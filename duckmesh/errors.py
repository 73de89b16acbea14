"""Exceptions raised by the duck mesh network components."""

from __future__ import annotations


class DuckError(Exception):
    """Base class of every duck network error."""

    description = "Unknown error"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message if message is not None else self.description)


class NotSupportedError(DuckError):
    description = "Feature not supported"


class SetupError(DuckError):
    description = "Setup failure"


class IdTooLongError(DuckError, ValueError):
    description = "Id length is invalid"


class InvalidArgumentError(DuckError, ValueError):
    description = "Invalid argument"


class LoraBeginError(DuckError):
    description = "Lora module initialization failed"


class LoraSetupError(DuckError):
    description = "Lora module configuration failed"


class LoraReceiveError(DuckError):
    description = "Lora module failed to read data"


class LoraTimeoutError(DuckError, TimeoutError):
    description = "Lora module timed out"


class LoraTransmitError(DuckError):
    description = "Lora moduled failed to send data"


class HandlePacketError(DuckError):
    description = "Lora moduled failed to handle RX data"


class MessageTooLargeError(DuckError):
    description = "Attempted to send a message larger than 256 bytes"


class NotInitializedError(DuckError):
    description = "LoRa radio not setup"


class InvalidChannelError(DuckError, ValueError):
    description = "Invalid channel number"


class StandbyError(DuckError):
    description = "standby failed"


class SleepError(DuckError):
    description = "sleep failed"


class PacketSizeError(DuckError):
    description = "Duck packet size is invalid"


class TopicError(DuckError):
    description = "Duck packet topic field is invalid"


class MaxHopsError(DuckError):
    description = "Duck packet reached maximum allowed hops"


class EepromError(DuckError):
    description = "EEPROM access failed"
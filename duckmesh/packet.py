"""The on-air packet layout of the duck mesh protocol."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum

from duckmesh.errors import InvalidArgumentError, PacketSizeError
from duckmesh.utils import to_uint32

MAX_HOPS = 6

PACKET_LENGTH = 256
DUID_LENGTH = 8
MUID_LENGTH = 4
DATA_CRC_LENGTH = 4
HEADER_LENGTH = 27

SDUID_POS = 0
DDUID_POS = 8
MUID_POS = 16
TOPIC_POS = 20
DUCK_TYPE_POS = 21
HOP_COUNT_POS = 22
DATA_CRC_POS = 23
DATA_POS = HEADER_LENGTH

RESERVED_LENGTH = 2
MAX_DATA_LENGTH = PACKET_LENGTH - HEADER_LENGTH
MAX_MUID_PER_ACK = 19
MIN_PACKET_LENGTH = HEADER_LENGTH + 1

CMD_HEALTH = 0
CMD_WIFI = 1
CMD_CHANNEL = 2

UNKNOWN_DUCK_TYPE = 0


class Topic(IntEnum):
    """Application topics carried in the topic byte."""

    STATUS = 0x10
    CPM = 0x11
    LOCATION = 0x12
    SENSOR = 0x13
    ALERT = 0x14
    HEALTH = 0x15
    DCMD = 0x16
    MQ7 = 0xEF
    GP2Y = 0xFA
    BMP280 = 0xFB
    DHT11 = 0xFC
    PIR = 0xFD
    BMP180 = 0xFE
    MAX_TOPICS = 0xFF


class ReservedTopic(IntEnum):
    """Topics reserved for the protocol's own use."""

    UNUSED = 0x00
    PING = 0x01
    PONG = 0x02
    GPS = 0x03
    ACK = 0x04
    CMD = 0x05
    MAX_RESERVED = 0x0F


_TOPIC_NAMES = {
    Topic.STATUS: "status",
    Topic.CPM: "cpm",
    Topic.LOCATION: "location",
    Topic.SENSOR: "sensor",
    Topic.ALERT: "alert",
    Topic.HEALTH: "health",
    Topic.DCMD: "dcmd",
    Topic.MQ7: "mq7",
    Topic.GP2Y: "gp2y",
    Topic.BMP280: "bmp280",
    Topic.DHT11: "dht11",
    Topic.PIR: "pir",
    Topic.BMP180: "bmp180",
    ReservedTopic.PING: "ping",
}


def _fixed(value, length: int, name: str) -> bytes:
    raw = bytes(value)
    if len(raw) != length:
        raise InvalidArgumentError(f"{name} must be {length} bytes, got {len(raw)}")
    return raw


@dataclass
class CdpPacket:
    """A decoded packet: header fields followed by the data section."""

    sduid: bytes = bytes(DUID_LENGTH)
    dduid: bytes = bytes(DUID_LENGTH)
    muid: bytes = bytes(MUID_LENGTH)
    topic: int = 0
    path_offset: int = 0
    duck_type: int = UNKNOWN_DUCK_TYPE
    hop_count: int = 0
    dcrc: int = 0
    data: bytearray = field(default_factory=bytearray)
    time_received: int = 0

    def __post_init__(self) -> None:
        self.sduid = _fixed(self.sduid, DUID_LENGTH, "sduid")
        self.dduid = _fixed(self.dduid, DUID_LENGTH, "dduid")
        self.muid = _fixed(self.muid, MUID_LENGTH, "muid")
        self.data = bytearray(self.data)

    @classmethod
    def from_bytes(cls, buffer) -> CdpPacket:
        """Decode a packet from its wire bytes."""
        raw = bytes(buffer)
        if len(raw) < HEADER_LENGTH:
            raise PacketSizeError(
                f"packet of {len(raw)} bytes is shorter than the {HEADER_LENGTH} byte header"
            )
        return cls(
            sduid=raw[SDUID_POS:DDUID_POS],
            dduid=raw[DDUID_POS:MUID_POS],
            muid=raw[MUID_POS:TOPIC_POS],
            topic=raw[TOPIC_POS],
            duck_type=raw[DUCK_TYPE_POS],
            hop_count=raw[HOP_COUNT_POS],
            dcrc=to_uint32(raw[DATA_CRC_POS:DATA_POS]),
            data=bytearray(raw[DATA_POS:]),
        )

    def to_bytes(self) -> bytes:
        """Encode the packet in wire order."""
        return b"".join(
            (
                self.sduid,
                self.dduid,
                self.muid,
                bytes((self.topic & 0xFF, self.duck_type & 0xFF, self.hop_count & 0xFF)),
                (self.dcrc & 0xFFFFFFFF).to_bytes(DATA_CRC_LENGTH, "big"),
                bytes(self.data),
            )
        )

    def reset(self) -> None:
        """Clear the source id, message id, data and counters."""
        self.sduid = bytes(DUID_LENGTH)
        self.muid = bytes(MUID_LENGTH)
        self.data.clear()
        self.duck_type = UNKNOWN_DUCK_TYPE
        self.hop_count = 0
        self.topic = 0
        self.path_offset = 0
        self.dcrc = 0

    @staticmethod
    def topic_to_string(topic: int) -> str:
        """Return the name of a topic value, or "unknown"."""
        for key, name in _TOPIC_NAMES.items():
            if key == topic:
                return name
        return "unknown"
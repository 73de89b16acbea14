"""Compile-time style configuration values for the duck mesh network."""

from __future__ import annotations

from duckmesh.errors import InvalidChannelError

CDP_VERSION_MAJOR = 4
CDP_VERSION_MINOR = 3
CDP_VERSION_PATCH = 0

CDP_VERSION = (CDP_VERSION_MAJOR << 16) | (CDP_VERSION_MINOR << 8) | CDP_VERSION_PATCH

# Layout of the persistent credential storage.
EEPROM_CRED_MAX = 32
EEPROM_WIFI_USERNAME = 0
EEPROM_WIFI_PASSWORD = 32
EEPROM_CONTROL_USERNAME = 64
EEPROM_CONTROL_PASSWORD = 96
EEPROM_CHANNEL_VALUE = 128

SERIAL_BAUD = 115200

AP_IP = (192, 168, 1, 1)
WEB_PORT = 80

RF_LORA_FREQ = 915.0
RF_LORA_FREQ_HZ = 915000000
RF_LORA_BW = 125.0
RF_LORA_SF = 7
RF_LORA_TXPOW = 20
RF_LORA_GAIN = 0

CDP_BUFSIZE = 256
UUID_LEN = 8
CDP_CHATBUF_SIZE = 15

MILLIS_ALIVE = 1800000
MILLIS_REBOOT = 43200000

PIN_RGBLED_R = 25
PIN_RGBLED_G = 4
PIN_RGBLED_B = 2

RADIO_CHANNEL_1 = RF_LORA_FREQ
RADIO_CHANNEL_2 = 914.0
RADIO_CHANNEL_3 = 913.0
RADIO_CHANNEL_4 = 912.0
RADIO_CHANNEL_5 = 911.0
RADIO_CHANNEL_6 = 910.0

RADIO_CHANNELS = {
    1: RADIO_CHANNEL_1,
    2: RADIO_CHANNEL_2,
    3: RADIO_CHANNEL_3,
    4: RADIO_CHANNEL_4,
    5: RADIO_CHANNEL_5,
    6: RADIO_CHANNEL_6,
}


def cdp_version() -> str:
    """Return the protocol version as "major.minor.patch"."""
    return f"{CDP_VERSION_MAJOR}.{CDP_VERSION_MINOR}.{CDP_VERSION_PATCH}"


def channel_frequency(channel: int) -> float:
    """Return the frequency in MHz for a radio channel numbered 1 to 6."""
    try:
        return RADIO_CHANNELS[channel]
    except (KeyError, TypeError):
        raise InvalidChannelError(f"Invalid channel number: {channel}") from None
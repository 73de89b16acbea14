"""Packet format, duplicate filtering and LoRa radio control for a duck mesh."""

__version__ = "4.3.0"
"""LoRa radio handling for a duck: setup, transmit, receive and interrupts."""

from __future__ import annotations

import logging
import time
import zlib
from collections.abc import Callable
from dataclasses import dataclass
from enum import IntFlag, auto

from duckmesh import config as cdpcfg
from duckmesh.errors import (
    DuckError,
    HandlePacketError,
    InvalidArgumentError,
    LoraBeginError,
    LoraReceiveError,
    LoraSetupError,
    LoraTimeoutError,
    LoraTransmitError,
    MessageTooLargeError,
    NotInitializedError,
    NotSupportedError,
    SleepError,
    StandbyError,
)
from duckmesh.packet import DATA_CRC_POS, DATA_POS, MIN_PACKET_LENGTH, PACKET_LENGTH
from duckmesh.utils import to_hex, to_uint32

log = logging.getLogger(__name__)

PRIVATE_SYNC_WORD = 0x12


class IrqFlag(IntFlag):
    """Interrupt causes reported by the LoRa transceiver."""

    TIMEOUT = auto()
    TX_DONE = auto()
    RX_DONE = auto()
    CRC_ERROR = auto()
    HEADER_ERROR = auto()
    VALID_HEADER = auto()
    CAD_DONE = auto()
    FHSS_CHANGE_CHANNEL = auto()
    CAD_DETECTED = auto()


@dataclass(frozen=True)
class LoraConfig:
    """Parameters of the LoRa module."""

    band: float = cdpcfg.RF_LORA_FREQ
    ss: int = 0
    rst: int = 0
    di0: int = 0
    di1: int = 0
    tx_power: int = cdpcfg.RF_LORA_TXPOW
    bw: float = cdpcfg.RF_LORA_BW
    sf: int = cdpcfg.RF_LORA_SF
    gain: int = cdpcfg.RF_LORA_GAIN
    func: Callable[[], None] | None = None

    def validate(self) -> None:
        """Raise InvalidArgumentError if any parameter is out of range."""
        if self.func is None:
            raise InvalidArgumentError("interrupt function is None")
        if not 6 <= self.sf <= 12:
            raise InvalidArgumentError("spreading factor is invalid")
        if not 150.0 <= self.band <= 960.0:
            raise InvalidArgumentError("frequency is invalid")
        if not -9 <= self.tx_power <= 22:
            raise InvalidArgumentError("tx power is invalid")
        if not 7.8 <= self.bw <= 500.0:
            raise InvalidArgumentError("bandwidth is invalid")
        if not 0 <= self.gain <= 3:
            raise InvalidArgumentError("gain is invalid")


class LoraDriver:
    """An in-memory LoRa transceiver.

    Parameter setters raise ValueError for out-of-range values. Any method
    can be made to fail by putting an exception in ``failures`` under the
    method's name. Incoming packets are injected with ``deliver`` and raw
    interrupts with ``raise_irq``.
    """

    def __init__(self, *, signal_rssi: float = -60.0, signal_snr: float = 9.5) -> None:
        self.signal_rssi = signal_rssi
        self.signal_snr = signal_snr
        self.failures: dict[str, BaseException] = {}
        self.begun = False
        self.frequency: float | None = None
        self.bandwidth: float | None = None
        self.spreading_factor: int | None = None
        self.output_power: int | None = None
        self.gain: int | None = None
        self.sync_word: int | None = None
        self.interrupt_handler: Callable[[], None] | None = None
        self.mode = "idle"
        self.transmitted: list[bytes] = []
        self._rx_buffer: bytes | None = None
        self._irq = IrqFlag(0)

    def _maybe_fail(self, name: str) -> None:
        failure = self.failures.get(name)
        if failure is not None:
            raise failure

    def begin(self) -> None:
        self._maybe_fail("begin")
        self.begun = True
        self.mode = "standby"

    def set_frequency(self, mhz: float) -> None:
        self._maybe_fail("set_frequency")
        if not 150.0 <= mhz <= 960.0:
            raise ValueError(f"invalid frequency {mhz}")
        self.frequency = mhz

    def set_bandwidth(self, khz: float) -> None:
        self._maybe_fail("set_bandwidth")
        if not 7.8 <= khz <= 500.0:
            raise ValueError(f"invalid bandwidth {khz}")
        self.bandwidth = khz

    def set_spreading_factor(self, sf: int) -> None:
        self._maybe_fail("set_spreading_factor")
        if not 6 <= sf <= 12:
            raise ValueError(f"invalid spreading factor {sf}")
        self.spreading_factor = sf

    def set_output_power(self, dbm: int) -> None:
        self._maybe_fail("set_output_power")
        if not -9 <= dbm <= 22:
            raise ValueError(f"invalid output power {dbm}")
        self.output_power = dbm

    def set_gain(self, gain: int) -> None:
        self._maybe_fail("set_gain")
        if not 0 <= gain <= 6:
            raise ValueError(f"invalid gain {gain}")
        self.gain = gain

    def set_sync_word(self, word: int) -> None:
        self._maybe_fail("set_sync_word")
        if not 0 <= word <= 0xFF:
            raise ValueError(f"invalid sync word {word}")
        self.sync_word = word

    def set_interrupt_handler(self, handler: Callable[[], None]) -> None:
        self.interrupt_handler = handler

    def start_receive(self) -> None:
        self._maybe_fail("start_receive")
        self._rx_buffer = None
        self.mode = "receive"

    def start_transmit(self, data: bytes) -> None:
        self._maybe_fail("start_transmit")
        if len(data) > PACKET_LENGTH:
            raise ValueError(f"packet of {len(data)} bytes is too long")
        self.transmitted.append(bytes(data))
        self.mode = "transmit"
        self.raise_irq(IrqFlag.TX_DONE)

    def finish_transmit(self) -> None:
        self._maybe_fail("finish_transmit")
        self.mode = "standby"

    def standby(self) -> None:
        self._maybe_fail("standby")
        self.mode = "standby"

    def sleep(self) -> None:
        self._maybe_fail("sleep")
        self.mode = "sleep"

    def packet_length(self) -> int:
        return len(self._rx_buffer) if self._rx_buffer is not None else 0

    def read_data(self, length: int) -> bytes:
        self._maybe_fail("read_data")
        return (self._rx_buffer or b"")[:length]

    def rssi(self) -> float:
        return self.signal_rssi

    def snr(self) -> float:
        return self.signal_snr

    def irq_flags(self) -> IrqFlag:
        """Return and clear the pending interrupt causes."""
        flags, self._irq = self._irq, IrqFlag(0)
        return flags

    def raise_irq(self, flags: IrqFlag) -> None:
        """Latch interrupt causes and run the interrupt handler."""
        self._irq |= flags
        if self.interrupt_handler is not None:
            self.interrupt_handler()

    def deliver(self, packet: bytes) -> None:
        """Place a received packet in the buffer and signal reception."""
        self._rx_buffer = bytes(packet)
        self.raise_irq(IrqFlag.RX_DONE)


class DuckRadio:
    """The duck's view of its LoRa module."""

    def __init__(self, driver: LoraDriver | None = None, *, sx1262: bool = False) -> None:
        self.driver = driver if driver is not None else LoraDriver()
        self.sx1262 = sx1262
        self._is_setup = False
        self._channel: int | None = None
        self._interrupt_flags = IrqFlag(0)
        self._received = False

    @property
    def is_setup(self) -> bool:
        return self._is_setup

    @property
    def channel(self) -> int | None:
        return self._channel

    @property
    def receive_flag(self) -> bool:
        """True when a received packet waits to be read."""
        return self._received

    def _require_setup(self) -> None:
        if not self._is_setup:
            log.error("LoRa radio not setup")
            raise NotInitializedError()

    def setup(self, config: LoraConfig) -> None:
        """Validate config and bring the radio up in receive mode."""
        log.info("Setting up LoRa radio...")
        config.validate()
        if self._is_setup:
            log.info("LoRa radio already setup")
            return

        try:
            self.driver.begin()
        except Exception as exc:
            raise LoraBeginError(f"initializing LoRa driver failed: {exc}") from exc

        settings = (
            (self.driver.set_frequency, config.band, "frequency"),
            (self.driver.set_bandwidth, config.bw, "bandwidth"),
            (self.driver.set_spreading_factor, config.sf, "spreading factor"),
            (self.driver.set_output_power, config.tx_power, "output power"),
        )
        for setter, value, what in settings:
            try:
                setter(value)
            except ValueError as exc:
                raise LoraSetupError(f"{what} is invalid") from exc

        if not self.sx1262:
            try:
                self.driver.set_gain(cdpcfg.RF_LORA_GAIN)
            except ValueError as exc:
                raise LoraSetupError("gain is invalid") from exc
        self.driver.set_interrupt_handler(config.func)

        try:
            self.driver.set_sync_word(PRIVATE_SYNC_WORD)
        except Exception as exc:
            raise LoraSetupError("sync word is invalid") from exc

        try:
            self.driver.start_receive()
        except Exception as exc:
            raise LoraReceiveError("failed to start receive") from exc

        self._channel = 1
        self._is_setup = True
        log.info("LoRa radio setup complete")

    def set_sync_word(self, sync_word: int) -> None:
        """Set the sync word and return to receive mode."""
        self._require_setup()
        try:
            self.driver.set_sync_word(sync_word)
        except Exception as exc:
            raise LoraSetupError("sync word is invalid") from exc
        try:
            self.driver.start_receive()
        except Exception as exc:
            raise LoraReceiveError("failed to start receive") from exc

    def _go_to_receive_mode(self, clear_receive_flag: bool) -> None:
        if clear_receive_flag:
            self._received = False
        self.start_receive()

    def _resume_receive(self, clear_receive_flag: bool) -> None:
        try:
            self._go_to_receive_mode(clear_receive_flag)
        except DuckError as exc:
            log.error("failed to return to receive mode: %s", exc)

    def start_receive(self) -> None:
        """Put the radio in receive mode."""
        self._require_setup()
        try:
            self.driver.start_receive()
        except Exception as exc:
            log.error("startReceive failed: %s", exc)
            raise LoraReceiveError() from exc

    def read_received_data(self) -> bytes:
        """Read the pending packet, check its data CRC and resume receiving."""
        self._require_setup()

        packet_length = self.driver.packet_length()
        if packet_length < MIN_PACKET_LENGTH:
            log.error("rx data size invalid: %d", packet_length)
            self._go_to_receive_mode(True)
            raise HandlePacketError(f"rx data size invalid: {packet_length}")

        log.info("packet length: %d", packet_length)
        read_error: Exception | None = None
        packet = b""
        try:
            packet = self.driver.read_data(packet_length)
        except Exception as exc:
            read_error = exc

        receive_error: DuckError | None = None
        try:
            self._go_to_receive_mode(True)
        except DuckError as exc:
            receive_error = exc

        if read_error is not None:
            raise HandlePacketError(f"reading data failed: {read_error}") from read_error

        log.info("Rx packet: %s", to_hex(packet))
        received_crc = to_uint32(packet[DATA_CRC_POS:DATA_POS])
        computed_crc = zlib.crc32(packet[DATA_POS:])
        if computed_crc != received_crc:
            raise HandlePacketError(
                f"data crc mismatch: received 0x{received_crc:X}, calculated 0x{computed_crc:X}"
            )
        log.info(
            "RX: rssi: %f snr: %f size: %d",
            self.driver.rssi(),
            self.driver.snr(),
            packet_length,
        )

        if receive_error is not None:
            raise receive_error
        return packet

    def send_data(self, data) -> None:
        """Transmit data without waiting for completion."""
        self._require_setup()
        self._start_transmit(bytes(data))

    def _start_transmit(self, payload: bytes) -> None:
        log.info("TX data")
        log.debug(" -> len: %d, %s", len(payload), to_hex(payload))
        started = time.monotonic()
        try:
            self.driver.start_transmit(payload)
        except ValueError as exc:
            raise MessageTooLargeError() from exc
        except TimeoutError as exc:
            raise LoraTimeoutError() from exc
        except Exception as exc:
            raise LoraTransmitError(f"startTransmit failed: {exc}") from exc
        log.info("TX data done in: %d ms", int((time.monotonic() - started) * 1000))

    def set_channel(self, channel: int) -> None:
        """Switch to channel 1 to 6."""
        self._require_setup()
        log.info("Setting channel to: %s", channel)
        if channel == self._channel:
            log.info("Channel %s already set", channel)
            return
        frequency = cdpcfg.channel_frequency(channel)
        try:
            self.driver.set_frequency(frequency)
        except ValueError as exc:
            raise LoraSetupError(f"failed to set channel {channel}") from exc
        try:
            self.driver.start_receive()
        except Exception as exc:
            log.error("failed to restart receive: %s", exc)
        self._channel = channel
        log.info("Channel %d set", channel)

    def rssi(self) -> int:
        """Return the current RSSI value."""
        self._require_setup()
        return int(self.driver.rssi())

    def ping(self) -> None:
        """Transmitting a ping from the radio itself is not supported."""
        raise NotSupportedError()

    def standby(self) -> None:
        """Put the chip in standby mode."""
        self._require_setup()
        try:
            self.driver.standby()
        except Exception as exc:
            raise StandbyError() from exc

    def sleep(self) -> None:
        """Put the chip in sleep mode."""
        self._require_setup()
        try:
            self.driver.sleep()
        except Exception as exc:
            raise SleepError() from exc

    def on_interrupt(self) -> None:
        """Interrupt handler: latch the chip's interrupt causes."""
        self._interrupt_flags = IrqFlag(self.driver.irq_flags())

    def _driver_standby(self) -> None:
        try:
            self.driver.standby()
        except Exception as exc:
            log.error("standby failed: %s", exc)

    def service_interrupt_flags(self) -> None:
        """Act on the latched interrupt causes, then clear them."""
        flags = self._interrupt_flags
        if not flags:
            return
        if self.sx1262:
            self._service_sx1262(flags)
        else:
            self._service_sx127x(flags)
        self._interrupt_flags = IrqFlag(0)

    def _service_sx1262(self, flags: IrqFlag) -> None:
        if flags & IrqFlag.CRC_ERROR:
            log.info("Interrupt: payload CRC error")
            self._resume_receive(False)
            self._driver_standby()
        if flags & IrqFlag.HEADER_ERROR:
            log.info("Interrupt: header CRC error")
            self._resume_receive(False)
            self._driver_standby()
        if flags & IrqFlag.RX_DONE:
            log.info("Interrupt: packet reception complete")
            self._received = True
            self._driver_standby()
        if flags & IrqFlag.TX_DONE:
            log.info("Interrupt: payload transmission complete")
            try:
                self.driver.finish_transmit()
            except Exception as exc:
                log.error("finish transmit failed: %s", exc)
            self._resume_receive(False)
        if flags & IrqFlag.TIMEOUT:
            log.info("Interrupt: timeout")
            self._resume_receive(False)

    def _service_sx127x(self, flags: IrqFlag) -> None:
        if flags & IrqFlag.TIMEOUT:
            self._resume_receive(True)
            log.info("Interrupt: timeout")
        if flags & IrqFlag.RX_DONE:
            log.info("Interrupt: packet reception complete")
            self._received = True
            self._driver_standby()
        if flags & IrqFlag.CRC_ERROR:
            self._resume_receive(True)
            log.info("Interrupt: payload CRC error")
        if flags & IrqFlag.VALID_HEADER:
            log.info("Interrupt: valid header received")
        if flags & IrqFlag.TX_DONE:
            log.info("Interrupt: payload transmission complete")
            self._resume_receive(False)
        if flags & IrqFlag.CAD_DONE:
            log.info("Interrupt: CAD complete")
        if flags & IrqFlag.FHSS_CHANGE_CHANNEL:
            log.info("Interrupt: FHSS change channel")
        if flags & IrqFlag.CAD_DETECTED:
            log.info("Interrupt: valid LoRa signal detected during CAD")
import zlib

import pytest

from duckmesh import config as cdpcfg
from duckmesh.errors import (
    HandlePacketError,
    InvalidArgumentError,
    InvalidChannelError,
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
from duckmesh.packet import CdpPacket, Topic
from duckmesh.radio import DuckRadio, IrqFlag, LoraConfig, LoraDriver


def make_packet(payload=b"hello duck", crc=None):
    return CdpPacket(
        sduid=b"SRCDUCK1",
        dduid=bytes(8),
        muid=b"MUID",
        topic=Topic.STATUS,
        dcrc=zlib.crc32(payload) if crc is None else crc,
        data=payload,
    ).to_bytes()


@pytest.fixture
def driver():
    return LoraDriver(signal_rssi=-42.0)


@pytest.fixture
def radio(driver):
    r = DuckRadio(driver)
    r.setup(LoraConfig(func=r.on_interrupt))
    return r


@pytest.mark.parametrize(
    "kwargs",
    [
        {"func": None},
        {"sf": 5},
        {"sf": 13},
        {"band": 149.0},
        {"band": 961.0},
        {"tx_power": -10},
        {"tx_power": 23},
        {"bw": 7.7},
        {"bw": 500.1},
        {"gain": 4},
    ],
)
def test_validate_rejects_out_of_range(kwargs):
    params = {"func": lambda: None}
    params.update(kwargs)
    with pytest.raises(InvalidArgumentError):
        LoraConfig(**params).validate()


def test_setup_configures_driver(radio, driver):
    assert radio.is_setup
    assert radio.channel == 1
    assert driver.frequency == cdpcfg.RF_LORA_FREQ
    assert driver.bandwidth == cdpcfg.RF_LORA_BW
    assert driver.spreading_factor == cdpcfg.RF_LORA_SF
    assert driver.output_power == cdpcfg.RF_LORA_TXPOW
    assert driver.gain == cdpcfg.RF_LORA_GAIN
    assert driver.sync_word == 0x12
    assert driver.mode == "receive"
    assert driver.interrupt_handler == radio.on_interrupt


def test_setup_sx1262_skips_gain():
    driver = LoraDriver()
    radio = DuckRadio(driver, sx1262=True)
    radio.setup(LoraConfig(func=radio.on_interrupt))
    assert driver.gain is None
    assert radio.is_setup


def test_setup_twice_keeps_first_configuration(radio, driver):
    radio.setup(LoraConfig(band=910.0, func=radio.on_interrupt))
    assert driver.frequency == cdpcfg.RF_LORA_FREQ


def test_setup_invalid_config_raises(driver):
    radio = DuckRadio(driver)
    with pytest.raises(InvalidArgumentError):
        radio.setup(LoraConfig())
    assert not radio.is_setup


def test_setup_begin_failure(driver):
    driver.failures["begin"] = RuntimeError("no chip")
    radio = DuckRadio(driver)
    with pytest.raises(LoraBeginError):
        radio.setup(LoraConfig(func=radio.on_interrupt))
    assert not radio.is_setup


def test_setup_invalid_parameter_from_driver(driver):
    driver.failures["set_bandwidth"] = ValueError("bad bandwidth")
    radio = DuckRadio(driver)
    with pytest.raises(LoraSetupError):
        radio.setup(LoraConfig(func=radio.on_interrupt))
    assert not radio.is_setup


def test_setup_start_receive_failure(driver):
    driver.failures["start_receive"] = RuntimeError("busy")
    radio = DuckRadio(driver)
    with pytest.raises(LoraReceiveError):
        radio.setup(LoraConfig(func=radio.on_interrupt))
    assert not radio.is_setup


@pytest.mark.parametrize(
    "call",
    [
        lambda r: r.send_data(b"abc"),
        lambda r: r.start_receive(),
        lambda r: r.read_received_data(),
        lambda r: r.set_channel(2),
        lambda r: r.set_sync_word(0x34),
        lambda r: r.rssi(),
        lambda r: r.standby(),
        lambda r: r.sleep(),
    ],
)
def test_operations_require_setup(call):
    with pytest.raises(NotInitializedError):
        call(DuckRadio(LoraDriver()))


def test_send_data_transmits_and_returns_to_receive(radio, driver):
    payload = make_packet()
    radio.send_data(payload)
    assert driver.transmitted == [payload]
    assert driver.mode == "transmit"
    radio.service_interrupt_flags()
    assert driver.mode == "receive"


def test_send_data_too_long(radio, driver):
    with pytest.raises(MessageTooLargeError):
        radio.send_data(bytes(257))
    assert driver.transmitted == []


def test_send_data_timeout(radio, driver):
    driver.failures["start_transmit"] = TimeoutError("tx timeout")
    with pytest.raises(LoraTimeoutError):
        radio.send_data(b"abc")


def test_send_data_other_failure(radio, driver):
    driver.failures["start_transmit"] = RuntimeError("spi")
    with pytest.raises(LoraTransmitError):
        radio.send_data(b"abc")


def test_receive_round_trip(radio, driver):
    packet = make_packet()
    driver.deliver(packet)
    assert not radio.receive_flag
    radio.service_interrupt_flags()
    assert radio.receive_flag
    assert driver.mode == "standby"
    assert radio.read_received_data() == packet
    assert not radio.receive_flag
    assert driver.mode == "receive"


def test_received_packet_decodes(radio, driver):
    driver.deliver(make_packet(b"quack"))
    radio.service_interrupt_flags()
    decoded = CdpPacket.from_bytes(radio.read_received_data())
    assert bytes(decoded.data) == b"quack"
    assert decoded.sduid == b"SRCDUCK1"


def test_short_packet_rejected(radio, driver):
    driver.deliver(make_packet()[:27])
    radio.service_interrupt_flags()
    with pytest.raises(HandlePacketError):
        radio.read_received_data()
    assert not radio.receive_flag
    assert driver.mode == "receive"


def test_crc_mismatch_rejected(radio, driver):
    payload = b"hello duck"
    driver.deliver(make_packet(payload, crc=zlib.crc32(payload) ^ 1))
    radio.service_interrupt_flags()
    with pytest.raises(HandlePacketError):
        radio.read_received_data()
    assert not radio.receive_flag


def test_read_failure(radio, driver):
    driver.deliver(make_packet())
    radio.service_interrupt_flags()
    driver.failures["read_data"] = RuntimeError("spi")
    with pytest.raises(HandlePacketError):
        radio.read_received_data()
    assert driver.mode == "receive"


def test_set_channel(radio, driver):
    radio.set_channel(3)
    assert radio.channel == 3
    assert driver.frequency == cdpcfg.RADIO_CHANNEL_3
    assert driver.mode == "receive"


def test_set_same_channel_is_noop(radio, driver):
    driver.frequency = None
    radio.set_channel(1)
    assert driver.frequency is None
    assert radio.channel == 1


@pytest.mark.parametrize("channel", [0, 7])
def test_set_channel_invalid(radio, channel):
    with pytest.raises(InvalidChannelError):
        radio.set_channel(channel)
    assert radio.channel == 1


def test_set_sync_word(radio, driver):
    radio.set_sync_word(0x34)
    assert driver.sync_word == 0x34
    assert driver.mode == "receive"


def test_set_sync_word_invalid(radio):
    with pytest.raises(LoraSetupError):
        radio.set_sync_word(300)


def test_rssi(radio):
    assert radio.rssi() == -42


def test_ping_not_supported(radio):
    with pytest.raises(NotSupportedError):
        radio.ping()


def test_standby_and_sleep(radio, driver):
    radio.standby()
    assert driver.mode == "standby"
    radio.sleep()
    assert driver.mode == "sleep"


def test_standby_failure(radio, driver):
    driver.failures["standby"] = RuntimeError("x")
    with pytest.raises(StandbyError):
        radio.standby()


def test_sleep_failure(radio, driver):
    driver.failures["sleep"] = RuntimeError("x")
    with pytest.raises(SleepError):
        radio.sleep()


def test_timeout_clears_receive_flag(radio, driver):
    driver.deliver(make_packet())
    radio.service_interrupt_flags()
    assert radio.receive_flag
    driver.raise_irq(IrqFlag.TIMEOUT)
    radio.service_interrupt_flags()
    assert not radio.receive_flag
    assert driver.mode == "receive"


def test_crc_error_sx127x_returns_to_receive(radio, driver):
    driver.standby()
    driver.raise_irq(IrqFlag.CRC_ERROR)
    radio.service_interrupt_flags()
    assert driver.mode == "receive"


def test_flags_cleared_after_service(radio, driver):
    driver.raise_irq(IrqFlag.TX_DONE)
    radio.service_interrupt_flags()
    assert driver.mode == "receive"
    driver.sleep()
    radio.service_interrupt_flags()
    assert driver.mode == "sleep"


@pytest.fixture
def sx1262():
    driver = LoraDriver()
    radio = DuckRadio(driver, sx1262=True)
    radio.setup(LoraConfig(func=radio.on_interrupt))
    return radio, driver


def test_sx1262_header_error_goes_to_standby(sx1262):
    radio, driver = sx1262
    driver.raise_irq(IrqFlag.HEADER_ERROR)
    radio.service_interrupt_flags()
    assert driver.mode == "standby"
    assert not radio.receive_flag


def test_sx1262_tx_done_returns_to_receive(sx1262):
    radio, driver = sx1262
    radio.send_data(b"abc")
    radio.service_interrupt_flags()
    assert driver.mode == "receive"
    assert driver.transmitted == [b"abc"]


def test_sx1262_receive_round_trip(sx1262):
    radio, driver = sx1262
    packet = make_packet(b"sx1262")
    driver.deliver(packet)
    radio.service_interrupt_flags()
    assert radio.receive_flag
    assert radio.read_received_data() == packet
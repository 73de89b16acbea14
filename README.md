# duckmesh

Building blocks for a LoRa mesh network in which every node ("duck") relays
the packets it has not seen before: the packet format, a duplicate filter,
and the radio logic that sets up a transceiver, sends, receives and services
its interrupts.

## Modules

- `duckmesh.packet`: the packet format. A packet has a 27-byte header
  (source and destination device ids, message id, topic, duck type, hop
  count, data CRC) followed by up to 229 bytes of data (`MAX_DATA_LENGTH`).
  `CdpPacket.from_bytes` decodes wire bytes and `CdpPacket.to_bytes` encodes
  them; `CdpPacket.reset` clears a packet; `CdpPacket.topic_to_string` names
  a topic value. `Topic` and `ReservedTopic` enumerate the topic byte.
  `to_bytes` writes the `dcrc` field as given; it does not compute it.
- `duckmesh.bloomfilter`: `BloomFilter`, two alternating Bloom filters.
  `add` records a message in the active filter and switches filters after
  `max_msgs` additions; `check` reports whether a message was (possibly)
  seen in either. Seeds are random unless passed as `seeds=`.
  `BloomFilter.djb2_hash` is the seeded 32-bit hash it uses.
- `duckmesh.radio`: `DuckRadio` drives a `LoraDriver`. `LoraConfig`
  holds and validates the module parameters. `DuckRadio` offers `setup`,
  `send_data`, `start_receive`, `read_received_data` (which checks the
  data-section CRC32), `set_channel` (channels 1 to 6), `set_sync_word`,
  `rssi`, `standby`, `sleep`, `on_interrupt` and `service_interrupt_flags`.
  Interrupt causes are `IrqFlag` values. `ping` raises `NotSupportedError`.
- `duckmesh.utils`: `to_hex`, `to_uint32`, `to_upper`, `string_to_bytes`,
  `random_bytes`, `create_uuid`, a toggling `DetectState`, and a
  `CredentialStore` that keeps a WiFi ssid and password in a byte image laid
  out like the device's persistent memory.
- `duckmesh.config`: protocol version (`cdp_version()`), radio defaults, and
  `channel_frequency` for channels 1 to 6.
- `duckmesh.arduino`: small bit and numeric helpers (`low_byte`,
  `high_byte`, `bit_read`, `bit_write`, `constrain`, `radians`, ...).
- `duckmesh.errors`: one exception per failure, all derived from `DuckError`.

## Example

```python
import zlib

from duckmesh.bloomfilter import BloomFilter
from duckmesh.packet import CdpPacket, Topic
from duckmesh.radio import DuckRadio, LoraConfig

radio = DuckRadio()
radio.setup(LoraConfig(func=radio.on_interrupt))

data = b"hello"
outgoing = CdpPacket(
    sduid=b"DUCK0001",
    muid=b"ABCD",
    topic=Topic.STATUS,
    dcrc=zlib.crc32(data),
    data=bytearray(data),
)

# The default driver is in memory: deliver() plays the part of the air.
radio.driver.deliver(outgoing.to_bytes())
radio.service_interrupt_flags()
if radio.receive_flag:
    packet = CdpPacket.from_bytes(radio.read_received_data())
    print(CdpPacket.topic_to_string(packet.topic))  # status

seen = BloomFilter()
if not seen.check(packet.muid):
    seen.add(packet.muid)
```

## What it does not do

- `LoraDriver` is an in-memory transceiver: packets are injected with
  `deliver`, transmissions collect in `transmitted`, and failures are
  simulated through `failures`. The package talks to no real radio hardware.
- There are no node roles that build, relay or answer packets (relaying,
  ping/pong replies, commands), no WiFi access point, DNS or web portal, and
  no command-line program.

## Installing

```
pip install duckmesh
```

To run the tests, install the test extra and run pytest:

```
pip install "duckmesh[test]"
pytest
```
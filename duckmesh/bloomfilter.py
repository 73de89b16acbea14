"""A two-phase Bloom filter for recognising messages already seen."""

from __future__ import annotations

import random
from collections.abc import Sequence

from duckmesh.errors import InvalidArgumentError

DEFAULT_NUM_SECTORS = 312
DEFAULT_NUM_HASH_FUNCS = 2
DEFAULT_BITS_PER_SECTOR = 32
DEFAULT_MAX_MESSAGES = 100

_UINT32 = 0xFFFFFFFF
_RAND_MAX = 2**31 - 1


class BloomFilter:
    """Two alternating Bloom filters; the active one takes new messages.

    After max_msgs additions the active filter is frozen and the other
    one becomes active. Lookups consult both.
    """

    def __init__(
        self,
        num_sectors: int = DEFAULT_NUM_SECTORS,
        num_hashes: int = DEFAULT_NUM_HASH_FUNCS,
        bits_per_sector: int = DEFAULT_BITS_PER_SECTOR,
        max_msgs: int = DEFAULT_MAX_MESSAGES,
        *,
        seeds: Sequence[int] | None = None,
        rng: random.Random | None = None,
    ) -> None:
        if min(num_sectors, num_hashes, bits_per_sector, max_msgs) < 1:
            raise InvalidArgumentError("bloom filter parameters must be positive")
        if num_hashes > num_sectors * bits_per_sector:
            raise InvalidArgumentError("more hash functions than filter bits")
        if seeds is None:
            seeds = (rng or random.Random()).sample(range(_RAND_MAX + 1), num_hashes)
        seeds = list(seeds)
        if len(seeds) != num_hashes:
            raise InvalidArgumentError(f"expected {num_hashes} seeds, got {len(seeds)}")
        if len(set(seeds)) != len(seeds):
            raise InvalidArgumentError("hash seeds must be distinct")

        self._num_sectors = num_sectors
        self._num_hashes = num_hashes
        self._bits_per_sector = bits_per_sector
        self._max_msgs = max_msgs
        self._seeds = seeds
        self._filters = ([0] * num_sectors, [0] * num_sectors)
        self._active = 0
        self._n_msg = 0

    @property
    def num_sectors(self) -> int:
        return self._num_sectors

    @property
    def num_hashes(self) -> int:
        return self._num_hashes

    @property
    def bits_per_sector(self) -> int:
        return self._bits_per_sector

    @property
    def max_msgs(self) -> int:
        return self._max_msgs

    @property
    def n_msg(self) -> int:
        """Messages added to the active filter since the last switch."""
        return self._n_msg

    @property
    def active_filter(self) -> int:
        """The filter taking new messages, 1 or 2."""
        return self._active + 1

    @property
    def seeds(self) -> tuple[int, ...]:
        return tuple(self._seeds)

    @staticmethod
    def djb2_hash(data, seed: int) -> int:
        """Seeded djb2 hash over data, as a 32-bit unsigned integer."""
        value = seed & _UINT32
        for byte in bytes(data):
            value = (value * 33 + byte) & _UINT32
        return value

    def _bit_indices(self, msg: bytes) -> list[int]:
        total = self._num_sectors * self._bits_per_sector
        indices: list[int] = []
        for seed in self._seeds:
            index = self.djb2_hash(msg, seed) % total
            while index in indices:
                index = (index + 1) % total
            indices.append(index)
        return indices

    def _positions(self, msg) -> list[tuple[int, int]]:
        top = 1 << (self._bits_per_sector - 1)
        return [
            (index // self._bits_per_sector, top >> (index % self._bits_per_sector))
            for index in self._bit_indices(bytes(msg))
        ]

    def check(self, msg) -> bool:
        """Return True if msg has (possibly) been added before."""
        positions = self._positions(msg)
        return any(
            all(bits[sector] & slot for sector, slot in positions) for bits in self._filters
        )

    def add(self, msg) -> None:
        """Record msg in the active filter, switching filters when it is full."""
        self._n_msg += 1
        active = self._filters[self._active]
        for sector, slot in self._positions(msg):
            active[sector] |= slot

        if self._n_msg >= self._max_msgs:
            other = 1 - self._active
            # Only the leading num_sectors // bits_per_sector sectors are cleared.
            cleared = self._num_sectors // self._bits_per_sector
            self._filters[other][:cleared] = [0] * cleared
            self._active = other
            self._n_msg = 0
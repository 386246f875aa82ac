"""Memory address generators.

Each generator is a small object owning its own cursor (or PRNG) and is
called with no arguments to produce the next address:

    gen = make_generator("memgen4")
    addr = gen()

Presets memgen1..memgen6:
- memgen1: sequential, modulo DRAM_SIZE
- memgen2: random, modulo 24 KiB
- memgen3: random, modulo DRAM_SIZE
- memgen4: sequential, modulo 4 KiB
- memgen5: sequential, modulo 64 KiB
- memgen6: stride of 32 bytes, modulo 256 KiB
"""
from typing import Callable, Dict, Optional

DRAM_SIZE = 64 * 1024 * 1024

_MASK32 = 0xFFFFFFFF


class MultiplyWithCarry:
    """Marsaglia multiply-with-carry PRNG producing 32-bit values.

    The default seeds give the same sequence on every run.
    """

    DEFAULT_W = 0xABABAB55
    DEFAULT_Z = 0x05080902

    def __init__(self, m_w: int = DEFAULT_W, m_z: int = DEFAULT_Z):
        for seed in (m_w, m_z):
            if not 0 <= seed <= _MASK32:
                raise ValueError(f"seed must fit in 32 bits: {seed:#x}")
        # these seeds would lock the recurrence on a fixed point
        if m_w in (0, 0x464FFFFF):
            raise ValueError(f"invalid m_w seed: {m_w:#x}")
        if m_z in (0, 0x9068FFFF):
            raise ValueError(f"invalid m_z seed: {m_z:#x}")
        self.m_w = m_w
        self.m_z = m_z

    def __call__(self) -> int:
        self.m_z = (36969 * (self.m_z & 65535) + (self.m_z >> 16)) & _MASK32
        self.m_w = (18000 * (self.m_w & 65535) + (self.m_w >> 16)) & _MASK32
        return ((self.m_z << 16) + self.m_w) & _MASK32


class SequentialGenerator:
    """0, step, 2*step, ... wrapped at `modulo`."""

    def __init__(self, modulo: int, step: int = 1):
        if modulo <= 0:
            raise ValueError("modulo must be >= 1")
        self.modulo = modulo
        self.step = step
        self.addr = 0

    def __call__(self) -> int:
        value = self.addr % self.modulo
        self.addr += self.step
        return value


class StridedGenerator:
    """Advance by `stride` before returning, so the first address is `stride`."""

    def __init__(self, stride: int, modulo: int):
        if modulo <= 0:
            raise ValueError("modulo must be >= 1")
        self.stride = stride
        self.modulo = modulo
        self.addr = 0

    def __call__(self) -> int:
        # the cursor is a 32-bit counter
        self.addr = (self.addr + self.stride) & _MASK32
        return self.addr % self.modulo


class RandomGenerator:
    """Uniform-ish addresses in [0, modulo) drawn from a 32-bit source."""

    def __init__(self, modulo: int, rng: Optional[Callable[[], int]] = None):
        if modulo <= 0:
            raise ValueError("modulo must be >= 1")
        self.modulo = modulo
        self.rng = rng if rng is not None else MultiplyWithCarry()

    def __call__(self) -> int:
        return self.rng() % self.modulo


GENERATORS: Dict[str, Callable[[], Callable[[], int]]] = {
    "memgen1": lambda: SequentialGenerator(DRAM_SIZE),
    "memgen2": lambda: RandomGenerator(24 * 1024),
    "memgen3": lambda: RandomGenerator(DRAM_SIZE),
    "memgen4": lambda: SequentialGenerator(4 * 1024),
    "memgen5": lambda: SequentialGenerator(64 * 1024),
    "memgen6": lambda: StridedGenerator(32, 256 * 1024),
}


def make_generator(name: str) -> Callable[[], int]:
    """Build a fresh generator for one of the preset names."""
    try:
        factory = GENERATORS[name]
    except KeyError:
        raise ValueError(
            f"unknown generator {name!r}, choose from {', '.join(sorted(GENERATORS))}"
        ) from None
    return factory()

"""Address decomposition helpers.

An address is split into three fields:
  block_addr = address >> byte_offset_bits
  set_index  = block_addr % 2**set_index_bits
  tag        = block_addr >> set_index_bits
The low byte_offset_bits (offset inside the line) never take part in a
hit/miss decision.
"""
from typing import Tuple


def decode(address: int, byte_offset_bits: int, set_index_bits: int) -> Tuple[int, int]:
    """Decode address into (tag, set_index)."""
    if address < 0:
        raise ValueError(f"address must be unsigned, got {address}")
    block_addr = address >> byte_offset_bits
    set_index = block_addr & ((1 << set_index_bits) - 1)
    tag = block_addr >> set_index_bits
    return tag, set_index


def block_base(tag: int, set_index: int, byte_offset_bits: int, set_index_bits: int) -> int:
    """Line-aligned address of the block identified by (tag, set_index)."""
    return ((tag << set_index_bits) | set_index) << byte_offset_bits

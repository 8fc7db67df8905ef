"""
Data models for refine_synteny.
Defines the Block, Permutation and BlockPair classes that make up a synteny decomposition.
"""

from dataclasses import dataclass, field
from typing import List, Dict

class InvariantViolation(ValueError):
    """
    Raised when input breaks a contract that upstream tools are expected to honour,
    e.g. a block without an id reaching the size filter.
    """

@dataclass
class Block:
    """
    A signed, bounded interval on one sequence. Blocks sharing a block_id
    belong to the same orthology class.
    """
    block_id: int
    sign: int
    start: int
    end: int

    @property
    def length(self) -> int:
        return self.end - self.start

    @property
    def strand(self) -> str:
        return '+' if self.sign > 0 else '-'

@dataclass
class Permutation:
    """
    One sequence expressed as an ordered list of blocks (ordered by start).
    """
    seq_id: int
    seq_name: str
    nuc_length: int
    blocks: List[Block] = field(default_factory=list)

@dataclass
class BlockPair:
    """
    A single instance of an orthology class: the block and the sequence it lies on.
    """
    seq_id: int
    block: Block

# block_id -> group_id
BlockGroups = Dict[int, int]

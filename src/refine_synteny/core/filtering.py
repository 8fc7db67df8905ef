"""
Size-based filtering of synteny blocks.
Blocks survive either on their own length or as flanking fragments of a block group
whose aggregate length on the same sequence is significant.
"""

from dataclasses import replace
from typing import List, Dict, Set
from refine_synteny.core.models import Permutation, BlockGroups, InvariantViolation
import logging

logger = logging.getLogger(__name__)

def calculate_group_lengths(permutations: List[Permutation], block_groups: BlockGroups) -> Dict[int, Dict[int, int]]:
    """
    Sum block lengths per (sequence, group). Blocks without a group are skipped.

    :param permutations: Input decomposition.
    :param block_groups: Mapping block_id -> group_id.
    :return: Nested dictionary {seq_id: {group_id: total_length}}.
    :raises InvariantViolation: if a block has no id.
    """
    group_len: Dict[int, Dict[int, int]] = {}
    for perm in permutations:
        seq_groups = group_len.setdefault(perm.seq_id, {})
        for block in perm.blocks:
            if not block.block_id:
                raise InvariantViolation(
                    f"Block without id on sequence {perm.seq_id} ({block.start}-{block.end})")
            group_id = block_groups.get(block.block_id)
            if group_id is not None:
                seq_groups[group_id] = seq_groups.get(group_id, 0) + block.length
    return group_len

def select_significant_blocks(
    permutations: List[Permutation],
    block_groups: BlockGroups,
    min_block: int,
    min_flank: int
) -> Set[int]:
    """
    Decide which block ids are retained. A decision made on any one instance
    applies to the block id on every sequence.

    :param permutations: Input decomposition.
    :param block_groups: Mapping block_id -> group_id.
    :param min_block: Minimum length for a block (or a group on one sequence) to be significant.
    :param min_flank: Minimum length for a grouped block riding on a significant group.
    :return: Set of block ids to output.
    """
    group_len = calculate_group_lengths(permutations, block_groups)

    should_output: Set[int] = set()
    for perm in permutations:
        for block in perm.blocks:
            if block.length >= min_block:
                should_output.add(block.block_id)
                continue
            group_id = block_groups.get(block.block_id)
            if (group_id is not None and
                    group_len[perm.seq_id].get(group_id, 0) >= min_block and
                    block.length >= min_flank):
                should_output.add(block.block_id)
    return should_output

def filter_by_size(
    permutations: List[Permutation],
    block_groups: BlockGroups,
    min_block: int,
    min_flank: int
) -> List[Permutation]:
    """
    Keep only significant blocks. Block order is preserved and permutations
    left without blocks are dropped.

    :param permutations: Input decomposition (not modified).
    :param block_groups: Mapping block_id -> group_id.
    :param min_block: Individual / group significance threshold (bp).
    :param min_flank: Lower threshold for grouped flanking blocks (bp).
    :return: New decomposition holding copies of the retained blocks.
    """
    should_output = select_significant_blocks(permutations, block_groups, min_block, min_flank)

    out_perms = []
    for perm in permutations:
        blocks = [replace(b) for b in perm.blocks if b.block_id in should_output]
        if blocks:
            out_perms.append(Permutation(perm.seq_id, perm.seq_name, perm.nuc_length, blocks))

    total_ids = len({b.block_id for p in permutations for b in p.blocks})
    logger.debug(f"Block ids retained by size filter: {len(should_output)} of {total_ids}")
    if len(out_perms) < len(permutations):
        logger.debug(f"Sequences left without blocks: {len(permutations) - len(out_perms)}")

    return out_perms

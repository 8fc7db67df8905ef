"""
Multi-scale merging of synteny decompositions.
A coarse ("loose") decomposition is used as a backbone and blocks from a finer
decomposition are spliced in wherever they fit between backbone blocks.
"""

import numpy as np
from dataclasses import replace
from typing import List, Dict, Tuple
from refine_synteny.core.models import Block, Permutation, BlockPair
from refine_synteny.core.grouping import group_by_block_id, index_by_seq_id
import logging

logger = logging.getLogger(__name__)

_EMPTY = np.empty(0, dtype=np.int64)

def build_coordinate_index(loose_perms: List[Permutation]) -> Tuple[Dict[int, np.ndarray], Dict[int, np.ndarray], int]:
    """
    Build sorted start and end coordinate arrays for each sequence of the loose decomposition.

    :param loose_perms: Coarse-scale decomposition.
    :return: Tuple (starts, ends, next_id) where starts/ends map seq_id to sorted arrays
             and next_id is one past the largest loose block id.
    """
    starts: Dict[int, List[int]] = {}
    ends: Dict[int, List[int]] = {}
    max_id = 0
    for perm in loose_perms:
        seq_starts = starts.setdefault(perm.seq_id, [])
        seq_ends = ends.setdefault(perm.seq_id, [])
        for block in perm.blocks:
            seq_starts.append(block.start)
            seq_ends.append(block.end)
            max_id = max(max_id, block.block_id)

    start_arrays = {seq_id: np.sort(np.asarray(c, dtype=np.int64)) for seq_id, c in starts.items()}
    end_arrays = {seq_id: np.sort(np.asarray(c, dtype=np.int64)) for seq_id, c in ends.items()}
    return start_arrays, end_arrays, max_id + 1

def count_not_greater(coords: np.ndarray, value: int) -> int:
    """
    Number of coordinates <= value, i.e. the index of the first coordinate strictly greater than value.
    """
    return int(np.searchsorted(coords, value, side='right'))

def fits_between_blocks(instance: BlockPair, starts: Dict[int, np.ndarray], ends: Dict[int, np.ndarray]) -> bool:
    """
    Check that no backbone block boundary falls strictly inside the instance.
    Touching a backbone block at either end is allowed.
    Sequences without backbone blocks accept everything.
    """
    left_ins = count_not_greater(ends.get(instance.seq_id, _EMPTY), instance.block.start)
    right_ins = count_not_greater(starts.get(instance.seq_id, _EMPTY), instance.block.end)
    return left_ins == right_ins

def merge_permutations(loose_perms: List[Permutation], fine_perms: List[Permutation]) -> List[Permutation]:
    """
    Merge two decompositions of the same sequences built at different scales.

    A fine-scale orthology class is inserted only if every one of its instances fits
    between backbone blocks; otherwise the whole class is rejected. Accepted classes
    get fresh ids above the loose id range. Neither input is modified.

    :param loose_perms: Coarse-scale decomposition (backbone).
    :param fine_perms: Fine-scale decomposition.
    :return: New decomposition with blocks sorted by start on every sequence.
    """
    starts, ends, next_id = build_coordinate_index(loose_perms)

    fine_index = group_by_block_id(fine_perms)
    blocks_to_insert = []
    for block_id, instances in fine_index.items():
        if all(fits_between_blocks(bp, starts, ends) for bp in instances):
            blocks_to_insert.append(block_id)

    logger.debug(f"Fine-scale classes accepted: {len(blocks_to_insert)}, "
                 f"rejected: {len(fine_index) - len(blocks_to_insert)}")

    out_blocks: Dict[int, List[Block]] = {}
    for perm in loose_perms:
        out_blocks[perm.seq_id] = [replace(b) for b in perm.blocks]

    for block_id in blocks_to_insert:
        for bp in fine_index[block_id]:
            out_blocks.setdefault(bp.seq_id, []).append(replace(bp.block, block_id=next_id))
        next_id += 1

    fine_by_seq_id = index_by_seq_id(fine_perms)
    loose_by_seq_id = index_by_seq_id(loose_perms)
    out_perms = []
    for seq_id, blocks in out_blocks.items():
        blocks.sort(key=lambda b: b.start)

        meta = fine_by_seq_id.get(seq_id)
        if meta is None:
            logger.warning(f"Sequence {seq_id} is missing from the fine-scale decomposition; "
                           f"using coarse-scale metadata")
            meta = loose_by_seq_id[seq_id]
        out_perms.append(Permutation(seq_id, meta.seq_name, meta.nuc_length, blocks))

    return out_perms

def merge_scales(loose_perms: List[Permutation], fine_scales: List[List[Permutation]]) -> List[Permutation]:
    """
    Merge a series of progressively finer decompositions into the loose one, in order.

    :param loose_perms: Coarsest decomposition.
    :param fine_scales: Finer decompositions, coarse to fine.
    :return: The merged decomposition (a copy of loose_perms if no fine scales are given).
    """
    merged = loose_perms
    for level, fine_perms in enumerate(fine_scales, start=1):
        merged = merge_permutations(merged, fine_perms)
        num_blocks = sum(len(p.blocks) for p in merged)
        logger.info(f"Merged scale {level}: {num_blocks} blocks on {len(merged)} sequences")

    if merged is loose_perms:
        merged = [replace(p, blocks=[replace(b) for b in p.blocks]) for p in loose_perms]
    return merged

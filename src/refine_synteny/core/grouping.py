"""
Indexing helpers over a decomposition: grouping block instances by orthology class,
looking up permutations by sequence and relabeling block ids.
"""

from typing import List, Dict
from refine_synteny.core.models import Permutation, BlockPair

def group_by_block_id(permutations: List[Permutation]) -> Dict[int, List[BlockPair]]:
    """
    Collect every block instance under its block id.

    :param permutations: Decomposition to index.
    :return: Dictionary mapping block_id to the list of (seq_id, block) instances, in encounter order.
    """
    index: Dict[int, List[BlockPair]] = {}
    for perm in permutations:
        for block in perm.blocks:
            if block.block_id not in index:
                index[block.block_id] = []
            index[block.block_id].append(BlockPair(perm.seq_id, block))
    return index

def index_by_seq_id(permutations: List[Permutation]) -> Dict[int, Permutation]:
    """
    :param permutations: Decomposition to index.
    :return: Dictionary mapping seq_id to its Permutation.
    """
    return {perm.seq_id: perm for perm in permutations}

def renumber_blocks(permutations: List[Permutation]) -> int:
    """
    Relabel block ids in place to 1..n, in order of first appearance.

    :param permutations: Decomposition to relabel.
    :return: Number of distinct block ids.
    """
    new_ids: Dict[int, int] = {}
    for perm in permutations:
        for block in perm.blocks:
            if block.block_id not in new_ids:
                new_ids[block.block_id] = len(new_ids) + 1
            block.block_id = new_ids[block.block_id]
    return len(new_ids)

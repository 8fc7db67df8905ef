"""
Decomposition statistics.
Includes block length Nx values, coverage and block multiplicity.
"""

import numpy as np
from typing import List, Dict, Tuple
from refine_synteny.core.models import Permutation
from refine_synteny.core.grouping import group_by_block_id

def calculate_block_stats(lengths: List[int]) -> Dict[str, int]:
    """
    Calculate block length statistics (N50, N60, N70, N80, N90, N100) and total bases.

    :param lengths: List of block lengths.
    :return: Dictionary with stats.
    """
    if not lengths:
        empty = {"Total Bases": 0, "Num Blocks": 0}
        for i in range(50, 110, 10):
            empty[f"N{i}"] = 0
            empty[f"N{i}_count"] = 0
        return empty

    lengths_sorted = sorted(lengths, reverse=True)
    total_bases = sum(lengths_sorted)

    stats = {
        "Total Bases": total_bases,
        "Num Blocks": len(lengths_sorted)
    }

    cumulative_sum = 0
    nx_targets = {i: total_bases * (i / 100.0) for i in range(50, 110, 10)}
    nx_values = {}
    nx_counts = {}

    current_nx = 50
    for i, length in enumerate(lengths_sorted):
        cumulative_sum += length
        while current_nx <= 100 and cumulative_sum >= nx_targets[current_nx]:
            nx_values[f"N{current_nx}"] = length
            nx_counts[f"N{current_nx}_count"] = i + 1
            current_nx += 10

    for i in range(50, 110, 10):
        stats[f"N{i}"] = nx_values.get(f"N{i}", 0)
        stats[f"N{i}_count"] = nx_counts.get(f"N{i}_count", 0)

    return stats

def calculate_length_curve(lengths: List[int]) -> Tuple[List[int], List[int]]:
    """
    Cumulative block length, largest blocks first.

    :param lengths: List of block lengths.
    :return: Tuple of (x_ranks, y_cumulative_bases).
    """
    lengths_sorted = sorted(lengths, reverse=True)
    y = np.cumsum(lengths_sorted).tolist()
    x = list(range(1, len(lengths_sorted) + 1))
    return x, y

def calculate_coverage(permutations: List[Permutation]) -> Dict[str, float]:
    """
    Fraction of each sequence covered by blocks.

    :param permutations: Decomposition.
    :return: Dictionary mapping seq_name to covered fraction (0 for sequences of zero length).
    """
    coverage = {}
    for perm in permutations:
        covered = np.sum([b.length for b in perm.blocks], dtype=np.int64)
        coverage[perm.seq_name] = float(covered / perm.nuc_length) if perm.nuc_length > 0 else 0.0
    return coverage

def calculate_multiplicity(permutations: List[Permutation]) -> Dict[int, int]:
    """
    Histogram of block multiplicity: number of instances -> number of block ids.
    """
    multiplicity: Dict[int, int] = {}
    for instances in group_by_block_id(permutations).values():
        multiplicity[len(instances)] = multiplicity.get(len(instances), 0) + 1
    return dict(sorted(multiplicity.items()))

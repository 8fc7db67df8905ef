import pytest
from refine_synteny.core.models import Block, Permutation, InvariantViolation
from refine_synteny.core.filtering import (
    calculate_group_lengths,
    select_significant_blocks,
    filter_by_size
)

def block_ids(perms):
    return {p.seq_id: [b.block_id for b in p.blocks] for p in perms}

def test_filter_concrete_scenario():
    # A (len 50, G1), B (len 5, G1), C (len 3, no group)
    perm = Permutation(1, 'S', 200, [
        Block(1, 1, 0, 50),
        Block(2, 1, 60, 65),
        Block(3, -1, 70, 73),
    ])
    groups = {1: 100, 2: 100}

    # G1 aggregate on S = 55 >= 40
    # A kept on its own length, B kept as a flank (5 >= 4), C dropped
    result = filter_by_size([perm], groups, min_block=40, min_flank=4)

    assert block_ids(result) == {1: [1, 2]}

def test_calculate_group_lengths():
    perms = [
        Permutation(1, 'S1', 200, [Block(1, 1, 0, 50), Block(2, 1, 60, 65), Block(3, 1, 70, 73)]),
        Permutation(2, 'S2', 200, [Block(2, 1, 0, 20)]),
    ]
    group_len = calculate_group_lengths(perms, {1: 100, 2: 100})

    assert group_len[1] == {100: 55}
    assert group_len[2] == {100: 20}

def test_flank_below_min_flank_is_dropped():
    perm = Permutation(1, 'S', 200, [Block(1, 1, 0, 50), Block(2, 1, 60, 63)])
    result = filter_by_size([perm], {1: 100, 2: 100}, min_block=40, min_flank=4)
    assert block_ids(result) == {1: [1]}

def test_group_aggregate_is_per_sequence():
    # Group 100 reaches 50 bp in total but only 25 bp on each sequence
    perms = [
        Permutation(1, 'S1', 100, [Block(1, 1, 0, 25)]),
        Permutation(2, 'S2', 100, [Block(2, 1, 0, 25)]),
    ]
    result = filter_by_size(perms, {1: 100, 2: 100}, min_block=40, min_flank=4)
    assert result == []

def test_decision_applies_to_block_id_on_every_sequence():
    perms = [
        # Block 2 qualifies here as a flank of group 100 (30 + 15 >= 40)
        Permutation(1, 'S1', 100, [Block(1, 1, 0, 30), Block(2, 1, 40, 55)]),
        # On S2 the instance of block 2 is tiny and its group is not significant
        Permutation(2, 'S2', 100, [Block(2, -1, 10, 11), Block(3, 1, 20, 22)]),
    ]
    groups = {1: 100, 2: 100}
    result = filter_by_size(perms, groups, min_block=40, min_flank=4)

    assert select_significant_blocks(perms, groups, 40, 4) == {1, 2}
    assert block_ids(result) == {1: [1, 2], 2: [2]}
    assert result[1].blocks[0].length == 1

def test_long_block_kept_without_group():
    perm = Permutation(1, 'S', 100, [Block(5, 1, 0, 40)])
    result = filter_by_size([perm], {}, min_block=40, min_flank=10)
    assert block_ids(result) == {1: [5]}

def test_empty_permutations_are_dropped_and_order_preserved():
    perms = [
        Permutation(1, 'S1', 100, [Block(3, 1, 50, 90), Block(1, 1, 0, 45)]),
        Permutation(2, 'S2', 100, [Block(2, 1, 0, 5)]),
        Permutation(3, 'S3', 100, []),
    ]
    result = filter_by_size(perms, {}, min_block=40, min_flank=0)

    assert len(result) == 1
    assert result[0].seq_id == 1
    assert result[0].seq_name == 'S1'
    assert result[0].nuc_length == 100
    # no re-sort
    assert [b.block_id for b in result[0].blocks] == [3, 1]

def test_output_blocks_are_copies():
    perm = Permutation(1, 'S', 100, [Block(1, 1, 0, 50)])
    result = filter_by_size([perm], {}, min_block=10, min_flank=0)

    result[0].blocks[0].block_id = 7
    assert perm.blocks[0].block_id == 1

def test_zero_block_id_raises():
    perm = Permutation(1, 'S', 100, [Block(1, 1, 0, 50), Block(0, 1, 60, 70)])
    with pytest.raises(InvariantViolation):
        filter_by_size([perm], {}, min_block=10, min_flank=0)

def test_empty_input():
    assert filter_by_size([], {1: 1}, min_block=10, min_flank=1) == []

def _sample_decomposition():
    return [
        Permutation(1, 'S1', 1000, [
            Block(1, 1, 0, 120), Block(2, 1, 130, 150), Block(3, -1, 160, 163),
            Block(4, 1, 200, 260), Block(5, 1, 300, 308),
        ]),
        Permutation(2, 'S2', 1000, [
            Block(2, 1, 0, 70), Block(5, -1, 100, 180), Block(6, 1, 200, 201),
        ]),
        Permutation(3, 'S3', 1000, [Block(7, 1, 0, 9), Block(3, 1, 20, 50)]),
    ]

def test_filter_returns_subset_of_input():
    perms = _sample_decomposition()
    groups = {2: 1, 3: 1, 5: 2, 6: 2, 7: 3}
    input_blocks = {(p.seq_id, b.block_id, b.sign, b.start, b.end) for p in perms for b in p.blocks}

    for min_block, min_flank in [(0, 0), (10, 2), (50, 5), (100, 10), (500, 0)]:
        result = filter_by_size(perms, groups, min_block, min_flank)
        for perm in result:
            for b in perm.blocks:
                assert (perm.seq_id, b.block_id, b.sign, b.start, b.end) in input_blocks
        # anything long enough on its own always survives
        kept = {(p.seq_id, b.start) for p in result for b in p.blocks}
        for p in perms:
            for b in p.blocks:
                if b.length >= min_block:
                    assert (p.seq_id, b.start) in kept

def test_filter_is_monotonic_in_min_block():
    perms = _sample_decomposition()
    groups = {2: 1, 3: 1, 5: 2, 6: 2, 7: 3}

    previous = None
    for min_block in range(0, 130, 5):
        kept = select_significant_blocks(perms, groups, min_block, 3)
        if previous is not None:
            assert kept <= previous
        previous = kept

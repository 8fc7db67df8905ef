"""
Block coordinates parser for refine_synteny.
Reads the sectioned "blocks_coords" text format written by synteny block finders:
a sequence table followed by one section per block id.
"""

from typing import List, Dict, Tuple
from refine_synteny.core.models import Block, Permutation
import logging

logger = logging.getLogger(__name__)

SEQ_HEADER = "Seq_id\tSize\tDescription"
BLOCK_HEADER = "Seq_id\tStrand\tStart\tEnd\tLength"

def _is_separator(line: str) -> bool:
    return len(line) > 0 and set(line) == {'-'}

def parse_block_row(fields: List[str], block_id: int) -> Tuple[int, Block]:
    """
    Convert one row of a block section into (seq_id, Block).
    Coordinates given as start > end are swapped.

    :param fields: Tab-separated row split into columns.
    :param block_id: Id of the section the row belongs to.
    :return: Tuple (seq_id, Block).
    """
    if len(fields) < 4:
        raise ValueError(f"Malformed block row for block #{block_id}: {fields}")
    seq_id = int(fields[0])
    if fields[1] not in ('+', '-'):
        raise ValueError(f"Unknown strand '{fields[1]}' for block #{block_id}")
    sign = 1 if fields[1] == '+' else -1
    start, end = int(fields[2]), int(fields[3])
    if start > end:
        start, end = end, start
    return seq_id, Block(block_id, sign, start, end)

def parse_coords(coords_path: str) -> List[Permutation]:
    """
    Parse a block coordinates file into a decomposition.

    :param coords_path: Path to the coordinates file.
    :return: List of Permutation objects in sequence-table order, blocks sorted by start.
    """
    try:
        with open(coords_path, 'r', encoding='utf-8') as f:
            lines = [line.rstrip('\r\n') for line in f]
    except OSError as e:
        logger.error(f"Failed to read coordinates file {coords_path}: {e}")
        raise

    try:
        perms = _parse_lines(lines)
    except ValueError as e:
        logger.error(f"Malformed coordinates file {coords_path}: {e}")
        raise

    num_blocks = sum(len(p.blocks) for p in perms)
    if num_blocks == 0:
        logger.warning(f"Coordinates file {coords_path} contains no blocks.")
    logger.debug(f"Parsed {num_blocks} blocks on {len(perms)} sequences from {coords_path}")
    return perms

def _parse_lines(lines: List[str]) -> List[Permutation]:
    lines = [line for line in lines if line.strip()]
    if not lines or lines[0].strip() != SEQ_HEADER:
        raise ValueError("missing sequence table header")

    perms: Dict[int, Permutation] = {}
    pos = 1
    while pos < len(lines) and not _is_separator(lines[pos]):
        fields = lines[pos].split('\t')
        if len(fields) < 3:
            raise ValueError(f"malformed sequence row: {lines[pos]!r}")
        seq_id = int(fields[0])
        # descriptions may themselves contain tabs
        perms[seq_id] = Permutation(seq_id, '\t'.join(fields[2:]), int(fields[1]))
        pos += 1

    block_id = None
    for line in lines[pos:]:
        if _is_separator(line):
            block_id = None
        elif line.startswith("Block #"):
            block_id = int(line[len("Block #"):])
        elif line.strip() == BLOCK_HEADER:
            continue
        else:
            if block_id is None:
                raise ValueError(f"block row outside of a block section: {line!r}")
            seq_id, block = parse_block_row(line.split('\t'), block_id)
            if seq_id not in perms:
                raise ValueError(f"block #{block_id} refers to undeclared sequence {seq_id}")
            perms[seq_id].blocks.append(block)

    for perm in perms.values():
        perm.blocks.sort(key=lambda b: b.start)
    return list(perms.values())

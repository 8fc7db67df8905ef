"""
Block group table parser for refine_synteny.
Reads a headerless TSV mapping block ids to group ids.
"""

import pandas as pd
from pandas.errors import EmptyDataError
from refine_synteny.core.models import BlockGroups
import logging

logger = logging.getLogger(__name__)

def parse_block_groups(groups_path: str) -> BlockGroups:
    """
    Parse a block group file (block_id <TAB> group_id per line, '#' comments allowed).

    :param groups_path: Path to the group table.
    :return: Dictionary mapping block_id to group_id.
    """
    try:
        df = pd.read_csv(groups_path, sep='\t', comment='#', header=None, dtype=str, encoding='utf-8')
    except EmptyDataError:
        logger.warning(f"Block group file {groups_path} is empty or only contains comments.")
        return {}
    except Exception as e:
        logger.error(f"Failed to read block group file {groups_path}: {e}")
        raise

    if df.empty:
        logger.warning(f"Block group file {groups_path} is empty or only contains comments.")
        return {}
    if df.shape[1] < 2:
        logger.error(f"Block group file {groups_path} needs two columns (block_id, group_id)")
        raise ValueError(f"Malformed block group file {groups_path}")

    # 0: block id, 1: group id
    df = df.iloc[:, :2].copy()
    df.columns = ['block_id', 'group_id']
    try:
        df = df.apply(pd.to_numeric)
    except (ValueError, TypeError) as e:
        logger.error(f"Non-integer ids in block group file {groups_path}: {e}")
        raise ValueError(f"Malformed block group file {groups_path}") from e

    # fractional or missing ids
    not_integral = (df % 1 != 0).any(axis=1)
    if not_integral.any():
        logger.error(f"{int(not_integral.sum())} rows with non-integer ids in block group file {groups_path}")
        raise ValueError(f"Malformed block group file {groups_path}")
    df = df.astype(int)

    duplicated = df['block_id'].duplicated(keep='last')
    if duplicated.any():
        logger.warning(f"{int(duplicated.sum())} duplicate block ids in {groups_path}; keeping the last mapping")

    groups = dict(zip(df['block_id'].tolist(), df['group_id'].tolist()))
    logger.debug(f"Parsed {len(groups)} block ids in {df['group_id'].nunique()} groups from {groups_path}")
    return groups

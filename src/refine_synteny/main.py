"""
Main entry point for the refine_synteny command-line tool.
This module orchestrates the post-processing pipeline, from parsing block coordinates
to merging scales, filtering by size and writing the final decomposition and report.
"""

import argparse
import logging
import sys
from pathlib import Path

from refine_synteny.parsers.coords_parser import parse_coords
from refine_synteny.parsers.groups_parser import parse_block_groups
from refine_synteny.core.merging import merge_scales
from refine_synteny.core.filtering import filter_by_size
from refine_synteny.core.grouping import renumber_blocks
from refine_synteny.utils.logging import setup_logging
from refine_synteny.utils.stats import calculate_block_stats
from refine_synteny.visualization.report_generator import (
    output_permutations,
    output_coords,
    output_statistics,
    write_summary_table,
    generate_report
)

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="refine_synteny: merge multi-scale synteny decompositions and filter insignificant blocks.",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter
    )

    # Mandatory
    parser.add_argument("-l", "--loose", required=True, help="Block coordinates of the coarse-scale decomposition")

    # Optional
    parser.add_argument("-f", "--fine", nargs='+', action='extend', default=[],
                        help="Block coordinates of finer-scale decompositions, merged in the given order")
    parser.add_argument("-g", "--groups", help="Optional block group TSV (block_id, group_id)")
    parser.add_argument("-o", "--output", default="./output", help="Output directory for results")

    # Configurable
    parser.add_argument("--min-block", type=int, default=0, help="Minimum length (bp) of a significant block or block group")
    parser.add_argument("--min-flank", type=int, default=0, help="Minimum length (bp) of a flanking block in a significant group")
    parser.add_argument("--no-renumber", action="store_true", help="Keep merged block ids instead of relabeling them 1..n")
    return parser

def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.min_block < 0 or args.min_flank < 0:
        parser.error("--min-block and --min-flank must be non-negative")

    output_dir = Path(args.output)
    log_listener = setup_logging(output_dir)

    logger = logging.getLogger(__name__)
    try:
        logger.info("Starting refine_synteny pipeline...")
        if args.min_flank > args.min_block:
            logger.warning(f"--min-flank ({args.min_flank}) exceeds --min-block ({args.min_block}); "
                           f"block groups cannot rescue any block")

        # Phase 1: Parsing
        logger.info("Phase 1: Parsing block coordinates...")
        loose_perms = parse_coords(args.loose)
        fine_scales = [parse_coords(path) for path in args.fine]
        block_groups = parse_block_groups(args.groups) if args.groups else {}
        stats_initial = calculate_block_stats([b.length for p in loose_perms for b in p.blocks])
        logger.info(f"Loose decomposition: {stats_initial['Num Blocks']} blocks on {len(loose_perms)} sequences")

        # Phase 2: Multi-scale merging
        logger.info(f"Phase 2: Merging {len(fine_scales)} finer scale(s)...")
        perms = merge_scales(loose_perms, fine_scales)

        # Phase 3: Size filtering
        logger.info("Phase 3: Filtering blocks by size...")
        num_before = sum(len(p.blocks) for p in perms)
        perms = filter_by_size(perms, block_groups, args.min_block, args.min_flank)
        num_after = sum(len(p.blocks) for p in perms)
        logger.info(f"Blocks retained: {num_after} of {num_before}")

        if not args.no_renumber:
            num_ids = renumber_blocks(perms)
            logger.info(f"Block ids renumbered: {num_ids}")

        # Phase 4: Output
        logger.info("Phase 4: Writing outputs...")
        output_permutations(perms, output_dir / 'genomes_permutations.txt')
        output_coords(perms, output_dir / 'blocks_coords.txt')
        output_statistics(perms, output_dir / 'coverage_report.txt')
        write_summary_table(perms, output_dir / 'summary_report.tsv')

        run_parameters = {
            'loose': args.loose,
            'fine': ', '.join(args.fine),
            'groups': args.groups,
            'min_block': args.min_block,
            'min_flank': args.min_flank,
            'renumber': not args.no_renumber
        }
        generate_report(perms, output_dir, stats_initial, run_parameters)

        logger.info(f"Pipeline complete. Results saved in {output_dir}")
    except Exception as e:
        logger.error(f"Critical failure: {e}")
        sys.exit(1)
    finally:
        log_listener.stop()

if __name__ == "__main__":
    main()

"""
Output module for refine_synteny.
Writes permutations, block coordinates and coverage statistics in the text formats
used by synteny block finders, plus a TSV summary and an interactive HTML report.
"""

import plotly.graph_objects as go
from jinja2 import Environment, FileSystemLoader, select_autoescape
from pathlib import Path
from typing import List, Dict, Any
from refine_synteny.core.models import Permutation
from refine_synteny.core.grouping import group_by_block_id
from refine_synteny.utils.stats import (
    calculate_block_stats,
    calculate_length_curve,
    calculate_coverage,
    calculate_multiplicity
)
import pandas as pd

SEPARATOR = '-' * 80

def _write_sequence_table(f, permutations: List[Permutation]):
    f.write("Seq_id\tSize\tDescription\n")
    for perm in permutations:
        f.write(f"{perm.seq_id}\t{perm.nuc_length}\t{perm.seq_name}\n")
    f.write(SEPARATOR + "\n")

def output_permutations(permutations: List[Permutation], out_file: Path):
    """
    Write signed block orders, one FASTA-like record per sequence terminated by '$'.

    :param permutations: Decomposition to write.
    :param out_file: Output path.
    """
    with open(out_file, 'w', encoding='utf-8') as f:
        for perm in permutations:
            f.write(f">{perm.seq_name}\n")
            for block in perm.blocks:
                f.write(f"{block.strand}{block.block_id} ")
            f.write("$\n")

def output_coords(permutations: List[Permutation], out_file: Path):
    """
    Write the sequence table followed by one coordinate section per block id.

    :param permutations: Decomposition to write.
    :param out_file: Output path.
    """
    with open(out_file, 'w', encoding='utf-8') as f:
        _write_sequence_table(f, permutations)
        for block_id, instances in group_by_block_id(permutations).items():
            f.write(f"Block #{block_id}\nSeq_id\tStrand\tStart\tEnd\tLength\n")
            for bp in instances:
                b = bp.block
                f.write(f"{bp.seq_id}\t{b.strand}\t{b.start}\t{b.end}\t{b.length}\n")
            f.write(SEPARATOR + "\n")

def output_statistics(permutations: List[Permutation], out_file: Path):
    """
    Write the sequence table, the block multiplicity histogram and per-sequence coverage (%).

    :param permutations: Decomposition to summarise.
    :param out_file: Output path.
    """
    with open(out_file, 'w', encoding='utf-8') as f:
        _write_sequence_table(f, permutations)
        for instances, count in calculate_multiplicity(permutations).items():
            f.write(f"{instances}\t{count}\n")
        f.write(SEPARATOR + "\n")
        for seq_name, covered in calculate_coverage(permutations).items():
            f.write(f"{seq_name}\t{covered * 100}\n")

def write_summary_table(permutations: List[Permutation], out_file: Path) -> pd.DataFrame:
    """
    Write one TSV row per block instance.

    :param permutations: Decomposition to write.
    :param out_file: Output path.
    :return: The DataFrame that was written.
    """
    columns = ['seq_id', 'seq_name', 'block_id', 'strand', 'start', 'end', 'length']
    rows = [
        (perm.seq_id, perm.seq_name, b.block_id, b.strand, b.start, b.end, b.length)
        for perm in permutations for b in perm.blocks
    ]
    df_summary = pd.DataFrame(rows, columns=columns)
    df_summary.to_csv(out_file, sep='\t', index=False, encoding='utf-8')
    return df_summary

def generate_report(
    permutations: List[Permutation],
    output_dir: Path,
    stats_initial: Dict[str, Any] = None,
    run_parameters: Dict[str, Any] = None
):
    """
    Generate the interactive HTML report.

    :param permutations: Final decomposition.
    :param output_dir: Directory to save report.html.
    :param stats_initial: Block stats of the loose decomposition, for comparison.
    :param run_parameters: Dictionary of configurable parameters used for the run.
    """
    output_dir.mkdir(parents=True, exist_ok=True)

    lengths = [b.length for perm in permutations for b in perm.blocks]
    stats_final = calculate_block_stats(lengths)

    # Multiplicity plot
    multiplicity = calculate_multiplicity(permutations)
    fig_mult = go.Figure()
    fig_mult.add_trace(go.Bar(x=list(multiplicity.keys()), y=list(multiplicity.values()), name='Block ids'))
    fig_mult.update_layout(title="Block Multiplicity", xaxis_title="Instances per block id", yaxis_title="Block ids")
    multiplicity_plot_json = fig_mult.to_json()

    # Coverage plot
    coverage = calculate_coverage(permutations)
    fig_cov = go.Figure()
    fig_cov.add_trace(go.Bar(x=list(coverage.keys()), y=[v * 100 for v in coverage.values()], name='Coverage'))
    fig_cov.update_layout(title="Sequence Coverage by Blocks", xaxis_title="Sequence", yaxis_title="Covered (%)")
    coverage_plot_json = fig_cov.to_json()

    # Cumulative length plot
    x, y = calculate_length_curve(lengths)
    fig_len = go.Figure()
    fig_len.add_trace(go.Scatter(x=x, y=y, mode='lines', name='Blocks'))
    fig_len.update_layout(title="Cumulative Block Length", xaxis_title="Block Rank", yaxis_title="Cumulative Bases")
    length_plot_json = fig_len.to_json()

    template_dir = Path(__file__).parent / 'templates'
    env = Environment(loader=FileSystemLoader(str(template_dir)), autoescape=select_autoescape(['html']))
    template = env.get_template('report.html')

    html_content = template.render(
        stats_initial=stats_initial if stats_initial else {},
        stats_final=stats_final,
        num_sequences=len(permutations),
        num_block_ids=len(group_by_block_id(permutations)),
        multiplicity_plot_json=multiplicity_plot_json,
        coverage_plot_json=coverage_plot_json,
        length_plot_json=length_plot_json,
        run_parameters=run_parameters if run_parameters else {}
    )

    with open(output_dir / 'report.html', 'w', encoding='utf-8') as f:
        f.write(html_content)

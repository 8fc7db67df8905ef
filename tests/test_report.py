import pandas as pd
from refine_synteny.core.models import Block, Permutation
from refine_synteny.core.grouping import group_by_block_id, index_by_seq_id, renumber_blocks
from refine_synteny.utils.stats import (
    calculate_block_stats,
    calculate_length_curve,
    calculate_coverage,
    calculate_multiplicity
)
from refine_synteny.visualization.report_generator import (
    output_permutations,
    output_statistics,
    write_summary_table,
    generate_report,
    SEPARATOR
)

def sample_perms():
    return [
        Permutation(1, 'chrA', 1000, [Block(5, 1, 0, 100), Block(9, -1, 200, 500)]),
        Permutation(2, 'chrB', 400, [Block(9, 1, 0, 300), Block(5, -1, 300, 400)]),
        Permutation(3, 'chrC', 200, [Block(7, 1, 50, 100)]),
    ]

def test_group_by_block_id():
    index = group_by_block_id(sample_perms())

    assert list(index.keys()) == [5, 9, 7]
    assert [(bp.seq_id, bp.block.start) for bp in index[9]] == [(1, 200), (2, 0)]
    assert len(index[7]) == 1

def test_index_by_seq_id():
    index = index_by_seq_id(sample_perms())
    assert index[2].seq_name == 'chrB'

def test_renumber_blocks():
    perms = sample_perms()
    assert renumber_blocks(perms) == 3
    assert [[b.block_id for b in p.blocks] for p in perms] == [[1, 2], [2, 1], [3]]

def test_calculate_block_stats():
    stats = calculate_block_stats([100, 300, 300, 100, 50])

    assert stats["Total Bases"] == 850
    assert stats["Num Blocks"] == 5
    # 300 + 300 >= 425
    assert stats["N50"] == 300
    assert stats["N50_count"] == 2
    assert stats["N100"] == 50
    assert stats["N100_count"] == 5

def test_calculate_block_stats_empty():
    stats = calculate_block_stats([])
    assert stats["Total Bases"] == 0
    assert stats["N50"] == 0

def test_calculate_length_curve():
    x, y = calculate_length_curve([10, 30, 20])
    assert x == [1, 2, 3]
    assert y == [30, 50, 60]

def test_calculate_coverage():
    coverage = calculate_coverage(sample_perms() + [Permutation(4, 'empty', 0, [])])
    assert coverage['chrA'] == 0.4
    assert coverage['chrB'] == 1.0
    assert coverage['chrC'] == 0.25
    assert coverage['empty'] == 0.0

def test_calculate_multiplicity():
    assert calculate_multiplicity(sample_perms()) == {1: 1, 2: 2}

def test_output_permutations(tmp_path):
    out = tmp_path / 'perms.txt'
    output_permutations(sample_perms(), out)

    lines = out.read_text(encoding='utf-8').splitlines()
    assert lines == [">chrA", "+5 -9 $", ">chrB", "+9 -5 $", ">chrC", "+7 $"]

def test_output_statistics(tmp_path):
    out = tmp_path / 'coverage_report.txt'
    output_statistics(sample_perms(), out)

    sections = out.read_text(encoding='utf-8').split(SEPARATOR + "\n")
    assert len(sections) == 3
    assert sections[0].splitlines()[0] == "Seq_id\tSize\tDescription"
    assert sections[0].splitlines()[1] == "1\t1000\tchrA"
    assert sections[1].splitlines() == ["1\t1", "2\t2"]
    assert sections[2].splitlines()[1] == "chrB\t100.0"

def test_write_summary_table(tmp_path):
    out = tmp_path / 'summary_report.tsv'
    write_summary_table(sample_perms(), out)

    df = pd.read_csv(out, sep='\t')
    assert len(df) == 5
    assert list(df.columns) == ['seq_id', 'seq_name', 'block_id', 'strand', 'start', 'end', 'length']
    assert df.loc[1, 'strand'] == '-'
    assert df['length'].sum() == 850

def test_generate_report(tmp_path):
    generate_report(sample_perms(), tmp_path, stats_initial={"Num Blocks": 9},
                    run_parameters={'min_block': 40})

    html = (tmp_path / 'report.html').read_text(encoding='utf-8')
    assert 'Block Multiplicity' in html
    assert 'min_block' in html

def test_calculate_block_stats_same_keys_when_empty():
    assert set(calculate_block_stats([])) == set(calculate_block_stats([10, 20]))

def test_generate_report_escapes_parameters(tmp_path):
    generate_report(sample_perms(), tmp_path, run_parameters={'loose': '<i>a</i>.txt'})

    html = (tmp_path / 'report.html').read_text(encoding='utf-8')
    assert '&lt;i&gt;a&lt;/i&gt;.txt' in html
    assert '<i>a</i>' not in html
    # plot data is still embedded as raw JSON
    assert 'Plotly.newPlot' in html and '"data"' in html

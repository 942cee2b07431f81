"""Tests for the per-selection join, biotype breakdown and rounded table."""

import polars as pl
import pytest

from nadepot.analysis import (
    UNANNOTATED,
    RESULT_COLUMNS,
    biotype_breakdown,
    compute,
    join_annotation,
    load_measurements,
    results_table,
)
from nadepot.selection import Selection

HEK_CTRL = Selection("Homo sapiens", "NULL", "HEK293T", "control")


@pytest.fixture
def joined(catalog, data_dir):
    return join_annotation(load_measurements(data_dir / "hs_hek_ctrl.csv"), catalog.annotation)


def test_left_join_keeps_unannotated_genes(joined):
    assert joined.height == 7
    g9 = joined.filter(pl.col("gene_id") == "G9")
    assert g9["symbol"].to_list() == [None]


def test_breakdown_percentages_sum_to_100(joined):
    bd = biotype_breakdown(joined)
    assert bd["n"].sum() == joined.height
    assert bd["pct"].sum() == pytest.approx(100, abs=0.05)


def test_breakdown_order_and_labels(joined):
    bd = biotype_breakdown(joined)
    pct = bd["pct"].to_list()
    assert pct == sorted(pct, reverse=True)
    assert bd["gene_biotype"].to_list()[:2] == ["lncRNA", "protein_coding"]
    assert bd.filter(pl.col("gene_biotype") == "protein_coding")["label"].item() == "protein coding"
    assert bd.filter(pl.col("gene_biotype") == "Mt_rRNA")["pct"].item() == 14.29
    assert UNANNOTATED in bd["gene_biotype"].to_list()


def test_breakdown_of_empty_dataset():
    empty = pl.DataFrame(schema={"gene_id": pl.Utf8, "gene_biotype": pl.Utf8})
    bd = biotype_breakdown(empty)
    assert bd.height == 0
    assert bd.columns == ["gene_biotype", "n", "pct", "label"]


def test_results_table_rounds_numeric_columns(joined):
    table = results_table(joined)
    assert table.columns == RESULT_COLUMNS
    source = joined.sort("gene_id").with_columns(
        [pl.col(c).cast(pl.Float64) for c in ["logCPM", "log2_fold_change", "FDR"]]
    )
    rounded = table.sort("gene_id")
    for col in ["logCPM", "log2_fold_change", "FDR"]:
        for before, after in zip(source[col].to_list(), rounded[col].to_list()):
            assert abs(after - before) <= 0.0005 + 1e-9
            assert after * 1000 == pytest.approx(round(after * 1000))
    assert rounded.filter(pl.col("gene_id") == "G1")["logCPM"].item() == pytest.approx(10.235)
    assert rounded.filter(pl.col("gene_id") == "G2")["log2_fold_change"].item() == pytest.approx(-1.877)


def test_results_table_casts_text_values(tmp_path, catalog):
    path = tmp_path / "odd.csv"
    path.write_text("gene_id,logCPM,log2_fold_change,FDR\nG1,1.23456,NA,n/a\n", encoding="utf-8")
    table = results_table(join_annotation(load_measurements(path), catalog.annotation))
    assert table.row(0, named=True) == {
        "gene_id": "G1",
        "symbol": "ACTB",
        "gene_biotype": "protein_coding",
        "logCPM": 1.235,
        "log2_fold_change": None,
        "FDR": None,
    }


def test_compute_for_submitted_selection(catalog):
    result = compute(catalog, HEK_CTRL)
    assert result.data_id == "hs_hek_ctrl.csv"
    assert result.selection == HEK_CTRL
    assert result.n_genes == 7
    assert result.breakdown["n"].sum() == 7


def test_compute_without_match(catalog):
    assert compute(catalog, Selection("Mus musculus", "brain", "NULL", "control")) is None


def test_compute_is_not_cached(catalog, data_dir):
    first = compute(catalog, HEK_CTRL)
    (data_dir / "hs_hek_ctrl.csv").write_text(
        "gene_id,logCPM,log2_fold_change,FDR\nG1,1,1,0.01\n", encoding="utf-8"
    )
    second = compute(catalog, HEK_CTRL)
    assert first.n_genes == 7
    assert second.n_genes == 1


def test_malformed_dataset_propagates(catalog, data_dir):
    (data_dir / "hs_hek_ctrl.csv").write_text("gene,score\nG1,1\n", encoding="utf-8")
    with pytest.raises(ValueError, match="lacks column"):
        compute(catalog, HEK_CTRL)


def test_missing_dataset_file_propagates(catalog, data_dir):
    (data_dir / "hs_hek_ctrl.csv").unlink()
    with pytest.raises(FileNotFoundError):
        compute(catalog, HEK_CTRL)


def test_integer_looking_rows_before_floats(catalog, data_dir):
    # edgeR writes FDR=1 for most genes; the first float can come late
    lines = ["gene_id,logCPM,log2_fold_change,FDR"]
    lines += [f"00{i},1,0,1" for i in range(150)]
    lines.append("G1,10.23456,2.345678,0.000123")
    (data_dir / "hs_hek_ctrl.csv").write_text("\n".join(lines) + "\n", encoding="utf-8")

    result = compute(catalog, HEK_CTRL)
    assert result.n_genes == 151
    assert result.table["FDR"].dtype == pl.Float64
    assert result.table["FDR"].to_list()[-1] == pytest.approx(0.0)
    assert result.table["logCPM"].to_list()[-1] == pytest.approx(10.235)
    # leading zeros in gene ids survive
    assert result.table["gene_id"].to_list()[0] == "000"


def test_numeric_gene_ids_join_as_text(tmp_path):
    path = tmp_path / "ids.csv"
    path.write_text("gene_id,logCPM,log2_fold_change,FDR\n00123,1.5,0.5,0.01\n", encoding="utf-8")
    annotation = pl.DataFrame(
        {"gene_id": ["00123"], "symbol": ["ABC1"], "gene_biotype": ["protein_coding"]}
    )
    joined = join_annotation(load_measurements(path), annotation)
    assert joined["symbol"].to_list() == ["ABC1"]


def test_literal_na_biotype_is_not_merged_with_unannotated():
    joined = pl.DataFrame({"gene_biotype": ["NA", "NA", None, "lncRNA"]})
    bd = biotype_breakdown(joined)
    counts = dict(zip(bd["gene_biotype"].to_list(), bd["n"].to_list()))
    assert counts == {"NA": 2, UNANNOTATED: 1, "lncRNA": 1}

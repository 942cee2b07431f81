"""Per-selection recompute: load a dataset, join annotation, summarise."""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import polars as pl

from nadepot.catalog import Catalog
from nadepot.selection import Selection, resolve

logger = logging.getLogger(__name__)

MEASUREMENT_COLUMNS = ["gene_id", "logCPM", "log2_fold_change", "FDR"]
NUMERIC_COLUMNS = ["logCPM", "log2_fold_change", "FDR"]
RESULT_COLUMNS = ["gene_id", "symbol", "gene_biotype"] + NUMERIC_COLUMNS

# group label for measurements without a biotype
UNANNOTATED = "unannotated"


def load_measurements(path) -> pl.DataFrame:
    path = Path(path)
    # all columns as text; numeric columns are cast in results_table
    df = pl.read_csv(path, infer_schema_length=0, null_values=["NA"])
    missing = [c for c in MEASUREMENT_COLUMNS if c not in df.columns]
    if missing:
        raise ValueError(f"Dataset {path} lacks column(s) {missing}. Found {df.columns}")
    return df


def join_annotation(measurements: pl.DataFrame, annotation: pl.DataFrame) -> pl.DataFrame:
    return measurements.join(annotation, on="gene_id", how="left")


def biotype_breakdown(joined: pl.DataFrame) -> pl.DataFrame:
    """Count genes per biotype; pct is rounded to 2 decimals, largest first."""
    if joined.height == 0:
        return pl.DataFrame(
            schema={"gene_biotype": pl.Utf8, "n": pl.UInt32, "pct": pl.Float64, "label": pl.Utf8}
        )
    total = joined.height
    return (
        joined.select(pl.col("gene_biotype").cast(pl.Utf8).fill_null(UNANNOTATED))
        .group_by("gene_biotype")
        .agg(pl.len().alias("n"))
        .with_columns((pl.col("n") / total * 100).round(2).alias("pct"))
        .sort(["pct", "gene_biotype"], descending=[True, False])
        .with_columns(pl.col("gene_biotype").str.replace_all("_", " ").alias("label"))
    )


def results_table(joined: pl.DataFrame, digits: int = 3) -> pl.DataFrame:
    return joined.select(
        [pl.col(c) for c in RESULT_COLUMNS[:3]]
        + [pl.col(c).cast(pl.Float64, strict=False).round(digits) for c in NUMERIC_COLUMNS]
    )


@dataclass(frozen=True)
class SelectionResult:
    selection: Selection
    data_id: str
    breakdown: pl.DataFrame
    table: pl.DataFrame

    @property
    def n_genes(self) -> int:
        return self.table.height


def compute(catalog: Catalog, selection: Selection, digits: int = 3) -> Optional[SelectionResult]:
    """Resolve `selection` and derive chart + table data.

    Recomputed on every call. Returns None when no dataset matches.
    """
    row = resolve(catalog, selection)
    if row is None:
        return None
    measurements = load_measurements(catalog.dataset_path(row["data_id"]))
    joined = join_annotation(measurements, catalog.annotation)
    logger.info("Dataset %s: %d genes", row["data_id"], joined.height)
    return SelectionResult(
        selection=selection,
        data_id=row["data_id"],
        breakdown=biotype_breakdown(joined),
        table=results_table(joined, digits),
    )

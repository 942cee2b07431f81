"""Dataset catalog and gene annotation, loaded once at startup."""

import logging
from dataclasses import dataclass, field
from pathlib import Path

import duckdb
import polars as pl

from nadepot.config import BrowserConfig
from nadepot.errors import CatalogError

logger = logging.getLogger(__name__)

SELECTION_FIELDS = ["species", "tissue", "cell_line", "condition"]
CATALOG_COLUMNS = ["data_id"] + SELECTION_FIELDS
ANNOTATION_COLUMNS = ["gene_id", "symbol", "gene_biotype"]

# Placeholder used in the catalog for "no tissue" / "no cell line"
NULL_VALUE = "NULL"

ROW_NR = "row_nr"


def _read_strings(path: Path, what: str) -> pl.DataFrame:
    if not path.exists():
        raise CatalogError(f"Missing {what}: {path}")
    try:
        # all columns as strings; "NULL" stays a literal value
        return pl.read_csv(path, infer_schema_length=0)
    except (pl.exceptions.ComputeError, pl.exceptions.NoDataError) as e:
        raise CatalogError(f"Could not read {what} {path}: {e}") from e


def _require(df: pl.DataFrame, cols, what: str, path: Path):
    missing = [c for c in cols if c not in df.columns]
    if missing:
        raise CatalogError(f"{what} {path} lacks column(s) {missing}. Found {df.columns}")


def load_catalog(path) -> pl.DataFrame:
    path = Path(path)
    df = _read_strings(path, "dataset catalog")
    _require(df, CATALOG_COLUMNS, "Dataset catalog", path)
    df = df.with_columns([pl.col(c).fill_null("").str.strip_chars() for c in CATALOG_COLUMNS])

    if df.filter(pl.col("data_id") == "").height:
        raise CatalogError(f"Dataset catalog {path} has rows without data_id")

    dup = df.filter(df.select(SELECTION_FIELDS).is_duplicated())
    if dup.height:
        keys = sorted({" / ".join(r) for r in dup.select(SELECTION_FIELDS).iter_rows()})
        raise CatalogError(f"Dataset catalog {path} has ambiguous selections: {'; '.join(keys)}")

    logger.info("Loaded catalog %s (%d datasets)", path, df.height)
    return df


def load_annotation(path) -> pl.DataFrame:
    path = Path(path)
    df = _read_strings(path, "gene annotation")
    _require(df, ANNOTATION_COLUMNS, "Gene annotation", path)
    n = df.height
    df = df.unique(subset="gene_id", keep="first", maintain_order=True)
    if df.height != n:
        logger.warning("Gene annotation %s: dropped %d duplicate gene_id rows", path, n - df.height)
    logger.info("Loaded gene annotation %s (%d genes)", path, df.height)
    return df


@dataclass(frozen=True)
class CatalogStats:
    n_datasets: int
    n_species: int
    n_tissues: int
    n_cell_lines: int

    @property
    def n_tissue_or_cell_line(self) -> int:
        return self.n_tissues + self.n_cell_lines


@dataclass
class Catalog:
    """Read-only catalog + annotation; the catalog is mirrored into DuckDB for option queries."""

    table: pl.DataFrame
    annotation: pl.DataFrame
    data_dir: Path
    con: duckdb.DuckDBPyConnection = field(default=None, repr=False)

    def __post_init__(self):
        self.data_dir = Path(self.data_dir)
        if self.con is None:
            self.con = duckdb.connect()
        indexed = self.table.with_row_index(ROW_NR).to_arrow()
        self.con.register("datasets_src", indexed)
        self.con.execute("CREATE OR REPLACE TABLE datasets AS SELECT * FROM datasets_src")
        self.con.unregister("datasets_src")

    @classmethod
    def load(cls, config: BrowserConfig) -> "Catalog":
        table = load_catalog(config.catalog_path)
        annotation = load_annotation(config.annotation_path)
        return cls(table=table, annotation=annotation, data_dir=config.data_dir)

    def __len__(self):
        return self.table.height

    def dataset_path(self, data_id: str) -> Path:
        return self.data_dir / data_id

    def row(self, i: int) -> dict:
        if not 0 <= i < self.table.height:
            raise IndexError(f"Catalog row {i} out of range (0..{self.table.height - 1})")
        return self.table.select(CATALOG_COLUMNS).row(i, named=True)

    def display_table(self) -> pl.DataFrame:
        return self.table.select(CATALOG_COLUMNS)

    def query(self, sql: str, params=None) -> list:
        """Run `sql` on a fresh cursor; sessions share one catalog across threads."""
        cur = self.con.cursor()
        try:
            return cur.execute(sql, params or []).fetchall()
        finally:
            cur.close()

    def stats(self) -> CatalogStats:
        n_datasets, n_species, n_tissues, n_cell_lines = self.query(
            """
            SELECT COUNT(*),
                   COUNT(DISTINCT species),
                   COUNT(DISTINCT tissue) FILTER (WHERE tissue <> ?),
                   COUNT(DISTINCT cell_line) FILTER (WHERE cell_line <> ?)
            FROM datasets
            """,
            [NULL_VALUE, NULL_VALUE],
        )[0]
        return CatalogStats(int(n_datasets), int(n_species), int(n_tissues), int(n_cell_lines))

"""Validate the catalog, the gene annotation and every dataset file.

    nadepot-check --config config.yaml

Prints one line per dataset and exits with status 1 if anything is wrong.
"""

import argparse
import sys

import polars as pl

from nadepot.analysis import NUMERIC_COLUMNS, load_measurements
from nadepot.catalog import Catalog
from nadepot.config import load_config
from nadepot.errors import NADepotError


def check_dataset(catalog: Catalog, data_id: str) -> list:
    """Return a list of problems with one dataset file (empty if fine)."""
    path = catalog.dataset_path(data_id)
    if not path.exists():
        return [f"file not found: {path}"]
    try:
        df = load_measurements(path)
    except (ValueError, pl.exceptions.PolarsError) as e:
        return [str(e)]

    problems = []
    for col in NUMERIC_COLUMNS:
        bad = df.filter(
            pl.col(col).is_not_null() & pl.col(col).cast(pl.Float64, strict=False).is_null()
        ).height
        if bad:
            problems.append(f"{bad} non-numeric value(s) in {col}")
    n_dup = df.height - df["gene_id"].n_unique()
    if n_dup:
        problems.append(f"{n_dup} duplicate gene_id row(s)")
    return problems


def annotation_coverage(catalog: Catalog, data_id: str) -> float:
    df = load_measurements(catalog.dataset_path(data_id)).select("gene_id")
    if df.height == 0:
        return 0.0
    hit = df.join(catalog.annotation.select("gene_id"), on="gene_id", how="semi").height
    return hit / df.height


def run(config_path=None) -> int:
    try:
        cfg = load_config(config_path)
        catalog = Catalog.load(cfg)
    except NADepotError as e:
        print(f"[ERROR] {e}")
        return 1

    print(f"[ALL] Catalog: {cfg.catalog_path} ({len(catalog)} datasets)")
    print(f"[ALL] Annotation: {cfg.annotation_path} ({catalog.annotation.height} genes)")

    n_bad = 0
    for data_id in catalog.table["data_id"].to_list():
        problems = check_dataset(catalog, data_id)
        if problems:
            n_bad += 1
            for p in problems:
                print(f"[{data_id}] {p}")
            continue
        cov = annotation_coverage(catalog, data_id)
        print(f"[{data_id}] ok, {cov:.1%} of genes annotated")

    if n_bad:
        print(f"[ALL] {n_bad} of {len(catalog)} dataset(s) have problems")
        return 1
    print("[ALL] All datasets ok")
    return 0


def main(argv=None):
    ap = argparse.ArgumentParser(description="Validate NADepot data files")
    ap.add_argument("--config", help="config.yaml (default: $NADEPOT_CONFIG or ./config.yaml)")
    args = ap.parse_args(argv)
    sys.exit(run(args.config))


if __name__ == "__main__":
    main()

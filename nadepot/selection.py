"""Cascading selection over the dataset catalog.

Each select offers the distinct values of its field among catalog rows that
match every field chosen upstream (species -> tissue -> cell_line ->
condition). Options keep catalog order.
"""

import logging
from typing import NamedTuple, Optional

from nadepot.catalog import CATALOG_COLUMNS, ROW_NR, SELECTION_FIELDS, Catalog
from nadepot.errors import CatalogError

logger = logging.getLogger(__name__)


class Selection(NamedTuple):
    species: str
    tissue: str
    cell_line: str
    condition: str


def qi(name: str) -> str:
    "Quote an identifier for DuckDB (supports spaces/specials)."
    return '"' + str(name).replace('"', '""') + '"'


def where(base: str, filters: dict):
    """Append `col = ?` conditions for every filter; returns (sql, params)."""
    parts, params = [], []
    for col, value in filters.items():
        parts.append(f"{qi(col)} = ?")
        params.append(value)
    if parts:
        base += " WHERE " + " AND ".join(parts)
    return base, params


def options(catalog: Catalog, field: str, **upstream) -> list:
    """Distinct values of `field` given the upstream choices.

    Returns [] if any upstream value is unset (None).
    """
    if field not in SELECTION_FIELDS:
        raise ValueError(f"Unknown selection field {field!r}")
    expected = SELECTION_FIELDS[: SELECTION_FIELDS.index(field)]
    if sorted(upstream) != sorted(expected):
        raise ValueError(f"{field} options need exactly {expected}, got {sorted(upstream)}")
    if any(v is None for v in upstream.values()):
        return []

    q = f"SELECT {qi(field)} AS value, MIN({ROW_NR}) AS first_row FROM datasets"
    q, params = where(q, {k: upstream[k] for k in expected})
    q += " GROUP BY value ORDER BY first_row"
    return [r[0] for r in catalog.query(q, params)]


def species_options(catalog: Catalog) -> list:
    return options(catalog, "species")


def tissue_options(catalog: Catalog, species) -> list:
    return options(catalog, "tissue", species=species)


def cell_line_options(catalog: Catalog, species, tissue) -> list:
    return options(catalog, "cell_line", species=species, tissue=tissue)


def condition_options(catalog: Catalog, species, tissue, cell_line) -> list:
    return options(catalog, "condition", species=species, tissue=tissue, cell_line=cell_line)


def resolve(catalog: Catalog, selection: Selection) -> Optional[dict]:
    """Return the catalog row matching `selection`, or None."""
    cols = ", ".join(qi(c) for c in CATALOG_COLUMNS)
    q, params = where(f"SELECT {cols} FROM datasets", selection._asdict())
    rows = catalog.query(q, params)
    if not rows:
        logger.warning("No dataset for selection %s", "/".join(selection))
        return None
    if len(rows) > 1:
        # load_catalog rejects these, so only a hand-built table gets here
        raise CatalogError(f"Selection {selection} matches {len(rows)} datasets")
    row = dict(zip(CATALOG_COLUMNS, rows[0]))
    logger.info("Selection %s -> %s", "/".join(selection), row["data_id"])
    return row

import io
import logging
import zipfile
from datetime import datetime
from typing import Iterable, Optional

from nadepot.catalog import Catalog

logger = logging.getLogger(__name__)

ARCHIVE_PREFIX = "nadepot_data_"


def archive_name(now: Optional[datetime] = None) -> str:
    now = now or datetime.now()
    return f"{ARCHIVE_PREFIX}{now:%Y%m%d%H%M%S}.zip"


def build_archive(catalog: Catalog, rows: Iterable[int]) -> Optional[bytes]:
    """Zip the dataset files behind the selected catalog rows.

    `rows` are positions in the catalog table. Returns None when nothing is
    selected, so the caller offers no file.
    """
    positions = sorted(set(rows or []))
    if not positions:
        return None

    data_ids = []
    for i in positions:
        data_id = catalog.row(i)["data_id"]
        if data_id not in data_ids:
            data_ids.append(data_id)

    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w", compression=zipfile.ZIP_DEFLATED) as zf:
        for data_id in data_ids:
            path = catalog.dataset_path(data_id)
            if not path.exists():
                raise FileNotFoundError(f"Dataset file not found: {path}")
            zf.write(path, arcname=data_id)
    logger.info("Built archive with %d dataset file(s)", len(data_ids))
    return buf.getvalue()

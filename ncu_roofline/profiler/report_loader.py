"""Load Nsight Compute raw CSV exports.

Rows are returned verbatim -- unit rows and repeated headers included --
because deciding which rows are real kernel rows is the extractor's job.
"""

from __future__ import annotations

import csv
import logging
from pathlib import Path
from typing import Dict, List, Union

logger = logging.getLogger(__name__)


def load_raw_records(path: Union[str, Path]) -> List[Dict[str, str]]:
    """Read a delimited-text export into a list of column-name -> value rows.

    Raises
    ------
    FileNotFoundError
        If *path* does not exist.
    ValueError
        If *path* is not a regular file or has no header row.
    """
    filepath = Path(path)
    if not filepath.exists():
        raise FileNotFoundError(f"Report file not found: {path}")
    if not filepath.is_file():
        raise ValueError(f"Not a file: {path}")

    # utf-8-sig drops the BOM that Windows exports of ncu put in front.
    with filepath.open("r", encoding="utf-8-sig", newline="") as f:
        reader = csv.DictReader(f)
        if reader.fieldnames is None:
            raise ValueError(f"Report file has no header row: {path}")
        rows = [dict(row) for row in reader]

    logger.debug("Loaded %d raw rows from %s.", len(rows), filepath)
    return rows

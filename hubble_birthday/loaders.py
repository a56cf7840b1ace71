"""Input table loading."""

from __future__ import annotations

import csv
import logging
from pathlib import Path
from typing import List

from .models import InputRecord

logger = logging.getLogger("hubble_birthday")

REQUIRED_COLUMNS = ("Date", "URL")


def load_records(path: Path) -> List[InputRecord]:
    """Read the Date/URL/Name/Caption/Year/Image table in file order."""
    records: List[InputRecord] = []
    with Path(path).open(newline="", encoding="utf-8-sig") as handle:
        reader = csv.DictReader(handle)
        missing = [col for col in REQUIRED_COLUMNS if col not in (reader.fieldnames or [])]
        if missing:
            raise ValueError(f"{path} is missing required column(s): {', '.join(missing)}")
        for row in reader:
            if not any(isinstance(value, str) and value.strip() for value in row.values()):
                continue
            records.append(
                InputRecord(
                    date=(row.get("Date") or "").strip(),
                    url=(row.get("URL") or "").strip(),
                    name=(row.get("Name") or "").strip(),
                    caption=(row.get("Caption") or "").strip(),
                    year=(row.get("Year") or "").strip(),
                    image=(row.get("Image") or "").strip(),
                )
            )
    logger.info("Found %d entries in %s", len(records), path)
    return records

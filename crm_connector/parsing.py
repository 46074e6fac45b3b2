from typing import Any, Dict, Iterable, List, Optional

import pandas as pd

from crm_connector.small_utils import as_int, dig

# Envelopes tried in order; the first one holding a list wins.
RECORD_PATHS = ("d.results", "value", "results", "data")


def extract_records(payload: Any) -> List[Dict[str, Any]]:
    """
    Pull the record list out of any of the supported response shapes:
      {"d": {"results": [...]}}, {"value": [...]}, {"results": [...]},
      {"data": [...]} or a bare list.
    """
    if isinstance(payload, list):
        return payload
    for path in RECORD_PATHS:
        found = dig(payload, path)
        if isinstance(found, list):
            return found
    return []


def explicit_has_more(payload: Any) -> Optional[bool]:
    for path in ("pagination.has_next", "has_more"):
        flag = dig(payload, path)
        if isinstance(flag, bool):
            return flag
    return None


def total_pages(payload: Any) -> Optional[int]:
    return as_int(dig(payload, "pagination.total_pages"))


def total_count(payload: Any) -> Optional[int]:
    if not isinstance(payload, dict):
        return None
    for path in ("pagination.total_count", "pagination.total", "d.__count"):
        n = as_int(dig(payload, path))
        if n is not None:
            return n
    return as_int(payload.get("@odata.count"))


def records_to_frame(records: Iterable[Dict[str, Any]]) -> pd.DataFrame:
    rows = list(records)
    if not rows:
        return pd.DataFrame()
    return pd.DataFrame(rows)

import gzip
import json
from pathlib import Path
from typing import Optional, Tuple

import pandas as pd


def stringify_nested(df: pd.DataFrame) -> pd.DataFrame:
    """Nested OData values (dicts/lists) become JSON text for flat formats."""
    if df.empty:
        return df

    def _to_json(v):
        if isinstance(v, (dict, list)):
            return json.dumps(v, default=str, ensure_ascii=False)
        return v

    out = df.copy()
    obj_cols = [c for c in out.columns if out[c].dtype == "object"]
    for c in obj_cols:
        out[c] = out[c].map(_to_json)
    return out


def infer_format(path: str) -> Tuple[str, Optional[str]]:
    suffixes = [s.lower() for s in Path(path).suffixes]
    compression = None
    if suffixes and suffixes[-1] == ".gz":
        compression = "gzip"
        suffixes = suffixes[:-1]
    ext = suffixes[-1] if suffixes else ".csv"
    if ext in {".jsonl", ".ndjson"}:
        return "jsonl", compression
    if ext == ".csv":
        return "csv", compression
    raise ValueError(f"Unsupported output format: {ext}")


def serialize_df(
    df: pd.DataFrame, fmt: str, compression: Optional[str] = None
) -> bytes:
    if fmt == "csv":
        raw = stringify_nested(df).to_csv(index=False).encode("utf-8")
    elif fmt == "jsonl":
        if df.empty:
            raw = b""
        else:
            text = df.to_json(orient="records", lines=True, date_format="iso")
            raw = text.encode("utf-8")
    else:
        raise ValueError(f"Unsupported format: {fmt}")

    if compression == "gzip":
        return gzip.compress(raw)
    return raw


def write_frame(df: pd.DataFrame, path: str) -> int:
    """Write `df` to a local csv/jsonl file (optionally .gz); returns bytes."""
    fmt, compression = infer_format(path)
    body = serialize_df(df, fmt, compression)
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_bytes(body)
    return len(body)

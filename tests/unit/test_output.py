import gzip
import json

import pandas as pd
import pytest

from crm_connector import output


def test_stringify_nested_only_touches_containers():
    df = pd.DataFrame([{"a": {"x": 1}, "b": [1, 2], "c": "plain", "d": 3}])
    out = output.stringify_nested(df)
    assert out.loc[0, "a"] == '{"x": 1}'
    assert out.loc[0, "b"] == "[1, 2]"
    assert out.loc[0, "c"] == "plain"
    assert out.loc[0, "d"] == 3
    # original untouched
    assert isinstance(df.loc[0, "a"], dict)


@pytest.mark.parametrize(
    "path, expected",
    [
        ("out/accounts.csv", ("csv", None)),
        ("accounts.csv.gz", ("csv", "gzip")),
        ("accounts.jsonl", ("jsonl", None)),
        ("accounts.ndjson.gz", ("jsonl", "gzip")),
        ("accounts", ("csv", None)),
    ],
)
def test_infer_format(path, expected):
    assert output.infer_format(path) == expected


def test_infer_format_rejects_unknown():
    with pytest.raises(ValueError):
        output.infer_format("accounts.parquet")


def test_serialize_csv_and_gzip():
    df = pd.DataFrame([{"a": 1, "b": "x"}])
    assert output.serialize_df(df, "csv") == b"a,b\n1,x\n"
    assert gzip.decompress(output.serialize_df(df, "csv", "gzip")) == b"a,b\n1,x\n"


def test_serialize_jsonl():
    df = pd.DataFrame([{"a": 1}, {"a": 2}])
    lines = output.serialize_df(df, "jsonl").decode().strip().splitlines()
    assert [json.loads(x) for x in lines] == [{"a": 1}, {"a": 2}]
    assert output.serialize_df(pd.DataFrame(), "jsonl") == b""


def test_write_frame_creates_parent_dirs(tmp_path):
    target = tmp_path / "nested" / "out.csv"
    n = output.write_frame(pd.DataFrame([{"a": 1}]), str(target))
    assert target.read_bytes() == b"a\n1\n"
    assert n == len(b"a\n1\n")

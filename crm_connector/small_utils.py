from typing import Any, Iterable, Mapping, Optional


def dig(obj: Any, path: Optional[str]):
    if not path:
        return None
    cur = obj
    for key in path.split("."):
        if not isinstance(cur, Mapping):
            return None
        cur = cur.get(key)
        if cur is None:
            return None
    return cur


def is_empty(value: Any) -> bool:
    return value is None or value == ""


def first_present(obj: Mapping, keys: Iterable[str]) -> Any:
    """First value under `keys` that is neither None nor ''."""
    for key in keys:
        value = obj.get(key)
        if not is_empty(value):
            return value
    return None


def as_int(value: Any) -> Optional[int]:
    """Integer from an int or a numeric string; bools and junk give None."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    return None

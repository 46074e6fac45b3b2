import json
from typing import Any, Dict, List, Mapping, Optional

from crm_connector.config import DEFAULT_INTERNAL_PREFIX
from crm_connector.errors import MalformedRecordError
from crm_connector.properties import PropertyResolver
from crm_connector.small_utils import is_empty

KV_KEY_FIELDS = (
    "key", "Key", "name", "Name", "property", "Property", "field", "Field",
)
KV_VALUE_FIELDS = ("value", "Value")

# OData metadata that must never reach the CRM
METADATA_KEYS = frozenset({"__metadata", "ObjectID", "ETag", "uri"})


def key_value_list_to_dict(items: List[Any]) -> Dict[str, Any]:
    out: Dict[str, Any] = {}
    for item in items:
        if not isinstance(item, Mapping):
            continue
        key = next((item[k] for k in KV_KEY_FIELDS if item.get(k)), None)
        if not key:
            continue
        value = next(
            (item[v] for v in KV_VALUE_FIELDS if item.get(v) is not None), ""
        )
        out[str(key)] = value
    return out


def decode_record(record: Any) -> Any:
    if isinstance(record, (str, bytes)):
        try:
            return json.loads(record)
        except ValueError as e:
            raise MalformedRecordError(f"record is not valid JSON: {e}") from e
    return record


def coerce_record(record: Any) -> Mapping[str, Any]:
    """
    Parse JSON text and fold key/value lists, without unwrapping a
    `properties` envelope.
    """
    record = decode_record(record)
    if record is None:
        return {}
    if isinstance(record, list):
        return key_value_list_to_dict(record)
    if isinstance(record, Mapping):
        return record
    raise MalformedRecordError(
        f"unsupported record type: {type(record).__name__}"
    )


def flatten_record(record: Any) -> Mapping[str, Any]:
    record = decode_record(record)
    flat = coerce_record(record)
    # a folded key/value list is already flat
    if not isinstance(record, Mapping):
        return flat
    inner = flat.get("properties")
    if isinstance(inner, Mapping):
        return inner
    return flat


def stringify(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (dict, list)):
        return json.dumps(value, separators=(",", ":"), default=str)
    return str(value)


class RecordNormalizer:
    def __init__(
        self,
        resolver: Optional[PropertyResolver] = None,
        internal_prefix: str = DEFAULT_INTERNAL_PREFIX,
    ):
        self.resolver = resolver or PropertyResolver()
        self.internal_prefix = internal_prefix

    def is_excluded(self, key: str) -> bool:
        if key in METADATA_KEYS:
            return True
        return bool(self.internal_prefix) and key.startswith(
            self.internal_prefix
        )

    def normalize(self, entity: str, record: Any) -> Dict[str, str]:
        """Flatten `record` into canonical CRM properties for `entity`."""
        properties: Dict[str, str] = {}
        for key, value in flatten_record(record).items():
            key = str(key)
            if is_empty(value) or self.is_excluded(key):
                continue
            text = stringify(value)
            if text == "":
                continue
            properties[self.resolver.resolve(entity, key)] = text
        return properties

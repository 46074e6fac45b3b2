import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, Mapping, Optional
from urllib.parse import quote

from crm_connector.config import DEFAULT_OBJECTS_PATH, WriterConfig
from crm_connector.errors import ConfigError, RemoteError
from crm_connector.normalizer import coerce_record
from crm_connector.properties import PropertyResolver
from crm_connector.request_helpers import build_url
from crm_connector.small_utils import dig, first_present, is_empty

DIRECT_ID_FIELDS = ("id", "recordId")


class ObjectUrls:
    """URL builder for the CRM v3 objects API of one entity."""

    def __init__(
        self,
        base_url: str,
        entity: str,
        objects_path: str = DEFAULT_OBJECTS_PATH,
        id_property: str = "",
    ):
        self.collection = build_url(
            base_url, f"{objects_path.rstrip('/')}/{entity}"
        )
        self.id_property = id_property

    def search(self) -> str:
        return f"{self.collection}/search"

    def by_id(self, record_id: Any) -> str:
        url = f"{self.collection}/{quote(str(record_id), safe='')}"
        if self.id_property:
            url += f"?idProperty={quote(self.id_property, safe='')}"
        return url


class IdentityResolver(ABC):
    """Finds the id of the remote record an input record should update."""

    def __init__(self, transport: Any, urls: ObjectUrls, log=None):
        self.transport = transport
        self.urls = urls
        self.log = log or logging.getLogger(__name__)

    @abstractmethod
    def resolve(
        self,
        record: Any,
        properties: Mapping[str, str],
        headers: Dict[str, str],
    ) -> Optional[str]:
        """Return the existing remote id, or None when the record is new."""


class SearchIdentityResolver(IdentityResolver):
    """Looks the record up by `unique_property = value` via the search API."""

    def __init__(
        self, transport: Any, urls: ObjectUrls, unique_property: str, log=None
    ):
        super().__init__(transport, urls, log)
        self.unique_property = unique_property

    def search_payload(self, value: str) -> Dict[str, Any]:
        return {
            "filterGroups": [
                {
                    "filters": [
                        {
                            "propertyName": self.unique_property,
                            "operator": "EQ",
                            "value": str(value),
                        }
                    ]
                }
            ],
            "properties": [self.unique_property],
            "limit": 1,
        }

    def resolve(self, record, properties, headers):
        if not self.unique_property:
            return None
        value = properties.get(self.unique_property)
        if is_empty(value):
            return None

        data = self.transport.post(
            self.urls.search(), self.search_payload(value), headers
        )
        results = data.get("results") if isinstance(data, Mapping) else None
        if not isinstance(results, list):
            return None
        if results and isinstance(results[0], Mapping):
            found = results[0].get("id")
            if not is_empty(found):
                return str(found)
        return None


class DirectIdIdentityResolver(IdentityResolver):
    """
    Takes the id straight from the input record (`id`, `recordId`, then the
    configured `id_field` at the top level or inside `properties`) and
    confirms it exists with a GET. A 404 means "create".
    """

    def __init__(
        self, transport: Any, urls: ObjectUrls, id_field: str = "", log=None
    ):
        super().__init__(transport, urls, log)
        self.id_field = id_field

    def candidate_id(self, record: Any) -> Optional[str]:
        obj = coerce_record(record)
        keys = list(DIRECT_ID_FIELDS)
        if self.id_field:
            keys.append(self.id_field)
        found = first_present(obj, keys)
        if found is None and self.id_field:
            found = dig(obj, "properties")
            found = (
                first_present(found, [self.id_field])
                if isinstance(found, Mapping)
                else None
            )
        return None if found is None else str(found)

    def resolve(self, record, properties, headers):
        record_id = self.candidate_id(record)
        if record_id is None:
            return None
        try:
            self.transport.get(self.urls.by_id(record_id), headers)
        except RemoteError as e:
            if e.is_not_found:
                self.log.info(
                    f"[writer] id={record_id} not found remotely; will create"
                )
                return None
            raise
        return record_id


def build_identity_resolver(
    cfg: WriterConfig,
    transport: Any,
    urls: ObjectUrls,
    resolver: Optional[PropertyResolver] = None,
    log=None,
) -> IdentityResolver:
    if cfg.strategy == "search":
        descriptor = (resolver or PropertyResolver()).descriptor(cfg.entity)
        unique = cfg.lookup_property or descriptor.default_unique_property
        return SearchIdentityResolver(transport, urls, unique, log)
    if cfg.strategy == "direct_id":
        return DirectIdIdentityResolver(transport, urls, cfg.id_field, log)
    raise ConfigError(f"Unsupported identity strategy: {cfg.strategy}")

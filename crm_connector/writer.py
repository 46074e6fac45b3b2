import logging
from enum import Enum
from typing import Any, Callable, Dict, Optional

from crm_connector.auth import Credential, build_headers
from crm_connector.config import WriterConfig
from crm_connector.errors import RemoteError, RemoteWriteError
from crm_connector.identity import (
    IdentityResolver,
    ObjectUrls,
    build_identity_resolver,
)
from crm_connector.normalizer import RecordNormalizer
from crm_connector.properties import PropertyResolver

ProgressFn = Callable[[int], None]


class WriteAction(Enum):
    CREATED = "created"
    UPDATED = "updated"
    SKIPPED = "skipped"


class UpsertWriter:
    """
    Turns one input record into exactly one create (POST) or update (PATCH)
    against the CRM objects API. Records that normalize to nothing are
    skipped without any remote call.
    """

    def __init__(
        self,
        entity: str,
        transport: Any,
        identity: IdentityResolver,
        urls: ObjectUrls,
        normalizer: Optional[RecordNormalizer] = None,
        credential: Optional[Credential] = None,
        on_progress: Optional[ProgressFn] = None,
        log: Optional[logging.Logger] = None,
    ):
        self.entity = entity
        self.transport = transport
        self.identity = identity
        self.urls = urls
        self.normalizer = normalizer or RecordNormalizer()
        self.credential = credential or Credential.none()
        self.on_progress = on_progress
        self.log = log or logging.getLogger(__name__)

        self.record_count = 0
        self._headers: Optional[Dict[str, str]] = None

    @classmethod
    def from_config(
        cls,
        cfg: WriterConfig,
        transport: Any,
        resolver: Optional[PropertyResolver] = None,
        on_progress: Optional[ProgressFn] = None,
        log: Optional[logging.Logger] = None,
    ) -> "UpsertWriter":
        resolver = resolver or PropertyResolver()
        # idProperty only applies to ids taken from the input record
        id_property = cfg.id_property if cfg.strategy == "direct_id" else ""
        urls = ObjectUrls(
            cfg.base_url, cfg.entity, cfg.objects_path, id_property
        )
        return cls(
            cfg.entity,
            transport,
            build_identity_resolver(cfg, transport, urls, resolver, log),
            urls,
            normalizer=RecordNormalizer(resolver, cfg.internal_prefix),
            credential=cfg.credential,
            on_progress=on_progress,
            log=log,
        )

    def open(self) -> "UpsertWriter":
        self._headers = build_headers(self.credential)
        return self

    def close(self) -> None:
        self.record_count = 0
        self._headers = None

    def write_record(self, record: Any) -> WriteAction:
        if self._headers is None:
            raise RuntimeError("writer is not open; call open() first")

        properties = self.normalizer.normalize(self.entity, record)
        if not properties:
            return WriteAction.SKIPPED

        body = {"properties": properties}
        url = self.urls.collection
        try:
            existing_id = self.identity.resolve(
                record, properties, self._headers
            )
            if existing_id:
                url = self.urls.by_id(existing_id)
                self.transport.patch(url, body, self._headers)
                action = WriteAction.UPDATED
            else:
                self.transport.post(url, body, self._headers)
                action = WriteAction.CREATED
        except RemoteError as e:
            raise RemoteWriteError(e.url or url, e) from e

        self.record_count += 1
        if self.on_progress:
            self.on_progress(self.record_count)
        return action

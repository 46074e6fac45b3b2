from crm_connector.auth import Credential
from crm_connector.connector import Connector
from crm_connector.errors import (
    ConfigError,
    ConnectorError,
    MalformedRecordError,
    RemoteError,
    RemoteFetchError,
    RemoteNotFound,
    RemoteWriteError,
)
from crm_connector.normalizer import RecordNormalizer
from crm_connector.pagination import (
    ODataCursor,
    PageNumberCursor,
    PageRequest,
    PageResult,
)
from crm_connector.properties import PropertyResolver
from crm_connector.reader import BufferedSequenceReader
from crm_connector.request_helpers import HttpTransport
from crm_connector.writer import UpsertWriter, WriteAction

__all__ = [
    "BufferedSequenceReader",
    "ConfigError",
    "Connector",
    "ConnectorError",
    "Credential",
    "HttpTransport",
    "MalformedRecordError",
    "ODataCursor",
    "PageNumberCursor",
    "PageRequest",
    "PageResult",
    "PropertyResolver",
    "RecordNormalizer",
    "RemoteError",
    "RemoteFetchError",
    "RemoteNotFound",
    "RemoteWriteError",
    "UpsertWriter",
    "WriteAction",
]

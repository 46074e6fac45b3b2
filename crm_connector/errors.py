from typing import Optional


class ConnectorError(Exception):
    """Base class for every error raised by the connector."""


class ConfigError(ConnectorError, ValueError):
    pass


class MalformedRecordError(ConnectorError, ValueError):
    pass


class RemoteError(ConnectorError):
    """Failure reported by the transport for a single remote call."""

    def __init__(
        self,
        status: Optional[int],
        message: str,
        url: Optional[str] = None,
    ):
        self.status = status
        self.message = message
        self.url = url
        super().__init__(f"HTTP {status}: {message}" if status else message)

    @property
    def is_not_found(self) -> bool:
        return self.status == 404


class RemoteNotFound(RemoteError):
    def __init__(self, message: str = "not found", url: Optional[str] = None):
        super().__init__(404, message, url)


class RemoteFetchError(ConnectorError):
    def __init__(self, url: str, cause: Exception):
        self.url = url
        self.cause = cause
        super().__init__(f"Error fetching page from {url}: {cause}")


class RemoteWriteError(ConnectorError):
    def __init__(self, url: str, cause: Exception):
        self.url = url
        self.cause = cause
        super().__init__(f"Error writing record to {url}: {cause}")

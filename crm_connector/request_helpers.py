import json
import traceback
from logging import Logger
from typing import Any, Dict, Optional
from urllib.parse import urljoin

import requests
from requests import Session

from crm_connector.errors import RemoteError, RemoteNotFound

_SENSITIVE_HEADERS = {
    "authorization",
    "x-api-key",
    "api-key",
    "proxy-authorization",
}


def build_url(base_url: str, path: str) -> str:
    return urljoin(base_url.rstrip("/") + "/", path.lstrip("/"))


def build_session(opts: Optional[Dict[str, Any]] = None) -> Session:
    s = Session()
    apply_session_defaults(s, opts or {})
    return s


def apply_session_defaults(sess: Session, opts: Dict[str, Any]) -> None:
    if opts.get("headers"):
        sess.headers.update(opts["headers"])
    if opts.get("proxies"):
        sess.proxies.update(opts["proxies"])
    if "verify" in opts:
        sess.verify = opts["verify"]


def redact_headers(headers: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    safe = dict(headers or {})
    for k in list(safe):
        if k.lower() in _SENSITIVE_HEADERS:
            safe[k] = "***REDACTED***"
    return safe


def log_request(
    log: Logger,
    method: str,
    url: str,
    headers: Optional[Dict[str, Any]],
    prefix: str = "",
):
    log.info(f"{prefix}{method} {url} headers={redact_headers(headers)}")


def log_exception(log: Logger, url: str, e: Exception, prefix: str = ""):
    log.error(
        f"{prefix}Error calling {url}: {e}\nStack Trace: {traceback.format_exc()}"
    )


class HttpTransport:
    """
    requests-backed transport. Every call returns the parsed JSON body
    (or None for an empty body) and raises RemoteError on failure;
    HTTP 404 raises RemoteNotFound.
    """

    def __init__(
        self,
        session: Optional[Session] = None,
        timeout: Optional[float] = None,
    ):
        self.session = session or build_session()
        self.timeout = timeout

    def get(self, url: str, headers: Dict[str, str]) -> Any:
        return self._send("GET", url, None, headers)

    def post(self, url: str, body: Any, headers: Dict[str, str]) -> Any:
        return self._send("POST", url, body, headers)

    def patch(self, url: str, body: Any, headers: Dict[str, str]) -> Any:
        return self._send("PATCH", url, body, headers)

    def _send(
        self, method: str, url: str, body: Any, headers: Dict[str, str]
    ) -> Any:
        data = json.dumps(body) if body is not None else None
        try:
            resp = self.session.request(
                method, url, data=data, headers=headers, timeout=self.timeout
            )
        except requests.RequestException as e:
            raise RemoteError(None, str(e), url) from e

        if resp.status_code == 404:
            raise RemoteNotFound(_error_message(resp), url)
        if resp.status_code >= 400:
            raise RemoteError(resp.status_code, _error_message(resp), url)

        if not resp.content or not resp.content.strip():
            return None
        try:
            return resp.json()
        except ValueError as e:
            raise RemoteError(
                resp.status_code, f"invalid JSON response: {e}", url
            ) from e


def _error_message(resp: requests.Response) -> str:
    text = (resp.text or "").strip()
    return text[:500] if text else (resp.reason or "request failed")

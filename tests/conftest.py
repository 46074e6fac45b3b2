from logging import Logger

import pytest

from logger.basic_logger import setup_logger


# ----- simple logger used across tests -----
class Log:
    def __init__(self):
        self.msgs = []

    def info(self, *a, **k):
        self.msgs.append(("info", a, k))

    def warning(self, *a, **k):
        self.msgs.append(("warning", a, k))

    def error(self, *a, **k):
        self.msgs.append(("error", a, k))


# ----- lightweight transport fake -----
class FakeTransport:
    """
    routes = {
      ("GET", "https://api/a?x=1"): [{"value": [...]}, ...],
      ("POST", "https://crm/objects/companies/search"): [{"results": []}],
    }
    Each route is a queue of payloads; an Exception in the queue is raised.
    Unrouted GETs return {} and unrouted POST/PATCH return None.
    """

    def __init__(self, routes=None):
        self._m = {k: list(v) for k, v in (routes or {}).items()}
        self.calls = []  # tuples (method, url, body, headers)

    def _answer(self, method, url, body, headers):
        self.calls.append((method, url, body, headers))
        q = self._m.get((method, url))
        if not q:
            return {} if method == "GET" else None
        item = q.pop(0)
        if isinstance(item, Exception):
            raise item
        return item

    def get(self, url, headers):
        return self._answer("GET", url, None, headers)

    def post(self, url, body, headers):
        return self._answer("POST", url, body, headers)

    def patch(self, url, body, headers):
        return self._answer("PATCH", url, body, headers)

    def methods(self):
        return [c[0] for c in self.calls]

    def urls(self, method=None):
        return [c[1] for c in self.calls if method in (None, c[0])]


@pytest.fixture
def capture_log():
    return Log()


@pytest.fixture
def fake_transport():
    return FakeTransport


@pytest.fixture(scope="session", autouse=True)
def log() -> Logger:
    log = setup_logger("crm_connector.tests")
    return log

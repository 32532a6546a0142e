import json

import httpx
import pytest


class FakeDownstream:
    """Routes httpx requests to canned handlers keyed by (method, path)."""

    def __init__(self):
        self.routes = {}
        self.requests = []

    def on(self, method, path, status_code=200, body=None, error=None):
        self.routes[(method, path)] = (status_code, body, error)

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        key = (request.method, request.url.path)
        if key not in self.routes:
            return httpx.Response(404, json={"detail": "Not Found"})
        status_code, body, error = self.routes[key]
        if error is not None:
            raise error
        if body is None:
            return httpx.Response(status_code)
        return httpx.Response(status_code, json=body)

    def sent(self, method, path):
        for request in self.requests:
            if request.method == method and request.url.path == path:
                return json.loads(request.content) if request.content else None
        raise AssertionError(f"no {method} {path} request was sent")

    @property
    def transport(self):
        return httpx.MockTransport(self)


@pytest.fixture
def downstream():
    return FakeDownstream()

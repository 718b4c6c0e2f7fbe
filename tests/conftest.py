"""Shared test fixtures for dns-plugin tests."""

from typing import Dict, List, Optional, Type

import httpx
import pytest

from dns_plugin.provider.plugin import PluginProvider

PLUGIN_URL = "http://plugin.test"
MEDIA_TYPE = "application/external.dns.plugin+json;version=1"


class PluginServer:
    """
    Simulated plugin that expects one kind of request and gives one answer.

    GET / always succeeds with the plugin media type so providers can connect.
    Any other request is checked against the expected method, path, headers and
    payload before the configured response is returned.
    """

    def __init__(
        self,
        method: str,
        path: str,
        headers: Optional[Dict[str, str]] = None,
        payload: str = "",
        status_code: int = 200,
        response_payload: str = "",
        raises: Optional[Type[httpx.TransportError]] = None,
    ):
        self.method = method
        self.path = path
        self.headers = headers or {}
        self.payload = payload
        self.status_code = status_code
        self.response_payload = response_payload
        self.raises = raises
        self.negotiations = 0
        self.requests: List[httpx.Request] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        if request.method == "GET" and request.url.path == "/":
            self.negotiations += 1
            return httpx.Response(
                200, headers={"Content-Type": MEDIA_TYPE, "Vary": "Content-Type"}
            )

        self.requests.append(request)
        assert request.method == self.method, "method"
        assert request.url.path == self.path, "path"
        for name, value in self.headers.items():
            assert request.headers.get(name) == value, f"header {name}"
        assert request.content.decode("utf-8") == self.payload, "request payload"

        if self.raises is not None:
            raise self.raises("plugin unavailable", request=request)
        return httpx.Response(
            self.status_code, content=self.response_payload.encode("utf-8")
        )

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self.handler))

    async def provider(self) -> PluginProvider:
        return await PluginProvider.connect(PLUGIN_URL, client=self.client())


@pytest.fixture
def plugin_server():
    """Provide a factory for simulated plugins."""

    def factory(**kwargs) -> PluginServer:
        return PluginServer(**kwargs)

    return factory


@pytest.fixture
def negotiation_client():
    """Provide a factory for clients whose plugin answers GET / with a given response."""

    def factory(response: Optional[httpx.Response] = None, raises=None):
        def handler(request: httpx.Request) -> httpx.Response:
            if raises is not None:
                raise raises("connection refused", request=request)
            return response

        return httpx.AsyncClient(transport=httpx.MockTransport(handler))

    return factory

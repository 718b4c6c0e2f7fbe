"""
Plugin provider module for dns-plugin.

This module is responsible for delegating provider operations to an out-of-process
plugin that implements the external DNS plugin HTTP contract.
"""

import logging
from typing import Callable, Dict, List, Optional, Tuple, TypeVar

import httpx

from dns_plugin.codec.codec import (
    decode_endpoints,
    decode_equals,
    encode_changes,
    encode_endpoints,
    encode_property_comparison,
)
from dns_plugin.models.models import Changes, Endpoint, PropertyComparison
from dns_plugin.provider.errors import (
    NegotiationError,
    PluginDecodeError,
    check_status,
    fail_safe,
    transport_error,
)

T = TypeVar("T")

MEDIA_TYPE = "application/external.dns.plugin+json"
MEDIA_TYPE_VERSION = "1"
MEDIA_TYPE_FORMAT_AND_VERSION = f"{MEDIA_TYPE};version={MEDIA_TYPE_VERSION}"

ACCEPT_HEADER = "Accept"
CONTENT_TYPE_HEADER = "Content-Type"

NEGOTIATE_PATH = "/"
RECORDS_PATH = "/records"
PROPERTY_VALUES_EQUAL_PATH = "/propertyvaluesequal"
ADJUST_ENDPOINTS_PATH = "/adjustendpoints"

DEFAULT_TIMEOUT = 30.0


def parse_media_type(value: str) -> Tuple[str, Dict[str, str]]:
    """
    Split a Content-Type header value into its media type and parameters.

    Args:
        value: Header value, e.g. "application/json; version=1"

    Returns:
        Tuple[str, Dict[str, str]]: Lowercased media type and its parameters
    """
    parts = value.split(";")
    media_type = parts[0].strip().lower()
    params = {}
    for part in parts[1:]:
        if "=" not in part:
            continue
        key, param_value = part.split("=", 1)
        params[key.strip().lower()] = param_value.strip().strip('"')
    return media_type, params


class PluginProvider:
    """
    Provider that forwards every operation to a plugin over HTTP.

    Use PluginProvider.connect() to build one; it negotiates the media type
    with the plugin before handing the provider out.
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = DEFAULT_TIMEOUT,
        client: Optional[httpx.AsyncClient] = None,
    ):
        """
        Initialize a PluginProvider.

        Args:
            base_url: URL the plugin listens on
            timeout: Default request timeout in seconds
            client: HTTP client to use; the provider creates and owns one if omitted
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.media_type = MEDIA_TYPE_FORMAT_AND_VERSION
        self.logger = logging.getLogger("dns-plugin.provider.plugin")

        self._owns_client = client is None
        self.client = client if client is not None else httpx.AsyncClient()

    @classmethod
    async def connect(
        cls,
        base_url: str,
        timeout: float = DEFAULT_TIMEOUT,
        client: Optional[httpx.AsyncClient] = None,
    ) -> "PluginProvider":
        """
        Create a provider and negotiate the media type with the plugin.

        Args:
            base_url: URL the plugin listens on
            timeout: Default request timeout in seconds
            client: HTTP client to use

        Returns:
            PluginProvider: Provider ready for use

        Raises:
            NegotiationError: If the plugin is unreachable or speaks another version
        """
        provider = cls(base_url, timeout=timeout, client=client)
        try:
            await provider._negotiate()
        except BaseException:
            await provider.aclose()
            raise
        return provider

    async def _negotiate(self) -> None:
        """
        Probe the plugin root and check the media type it advertises.
        """
        self.logger.debug(f"Negotiating media type with plugin at {self.base_url}")
        try:
            response = await self.client.get(
                self._url(NEGOTIATE_PATH),
                headers={ACCEPT_HEADER: MEDIA_TYPE_FORMAT_AND_VERSION},
                timeout=self.timeout,
            )
        except httpx.HTTPError as e:
            raise NegotiationError(
                f"failed to connect to plugin at {self.base_url}: {e}"
            ) from e

        if not response.is_success:
            raise NegotiationError(
                f"failed to negotiate with plugin at {self.base_url} with code {response.status_code}"
            )

        content_type = response.headers.get(CONTENT_TYPE_HEADER)
        if not content_type:
            raise NegotiationError(
                f"plugin at {self.base_url} did not return a content type"
            )

        media_type, params = parse_media_type(content_type)
        if media_type != MEDIA_TYPE:
            raise NegotiationError(
                f"wrong content type returned from server: {content_type}"
            )

        version = params.get("version")
        if version != MEDIA_TYPE_VERSION:
            raise NegotiationError(
                f"unsupported plugin version {version!r}, expected {MEDIA_TYPE_VERSION!r}"
            )

        self.logger.info(
            f"Connected to plugin at {self.base_url} using {self.media_type}"
        )

    def _url(self, path: str) -> str:
        return f"{self.base_url}{path}"

    async def _send(
        self,
        operation: str,
        method: str,
        path: str,
        headers: Dict[str, str],
        content: Optional[str] = None,
        timeout: Optional[float] = None,
    ) -> httpx.Response:
        """
        Send a single request to the plugin and check its status.

        Args:
            operation: Operation name used in error messages, e.g. "get records"
            method: HTTP method
            path: Path relative to the plugin URL
            headers: Request headers
            content: Request body
            timeout: Deadline in seconds, defaults to the provider timeout

        Returns:
            httpx.Response: Response with a 2xx status
        """
        self.logger.debug(f"Sending {method} {path} to plugin to {operation}")
        try:
            response = await self.client.request(
                method,
                self._url(path),
                headers=headers,
                content=content.encode("utf-8") if content is not None else None,
                timeout=self.timeout if timeout is None else timeout,
            )
        except httpx.HTTPError as e:
            raise transport_error(operation, e) from e

        self.logger.debug(
            f"Plugin answered {method} {path} with code {response.status_code}"
        )
        check_status(operation, response)
        return response

    @staticmethod
    def _decode(decoder: Callable[[bytes], T], response: httpx.Response) -> T:
        try:
            return decoder(response.content)
        # Bodies nested past the recursion limit fail with RecursionError
        except (ValueError, RecursionError) as e:
            raise PluginDecodeError(str(e)) from e

    async def records(self, timeout: Optional[float] = None) -> List[Endpoint]:
        """
        Returns all DNS records known to the plugin.

        Args:
            timeout: Deadline in seconds, defaults to the provider timeout

        Returns:
            List[Endpoint]: List of endpoints

        Raises:
            PluginError: If the request fails, the plugin answers with a non-2xx
                status, or the body cannot be decoded
        """
        response = await self._send(
            "get records",
            "GET",
            RECORDS_PATH,
            {ACCEPT_HEADER: self.media_type},
            timeout=timeout,
        )
        endpoints = self._decode(decode_endpoints, response)
        self.logger.debug(f"Received {len(endpoints)} records from plugin")
        return endpoints

    async def apply_changes(
        self, changes: Optional[Changes], timeout: Optional[float] = None
    ) -> None:
        """
        Sends the specified changes to the plugin.

        Args:
            changes: Changes to apply
            timeout: Deadline in seconds, defaults to the provider timeout

        Raises:
            PluginError: If the request fails or the plugin rejects the changes
        """
        if changes is not None:
            self.logger.debug(
                f"Applying changes: {len(changes.create or [])} creates, "
                f"{len(changes.update_new or [])} updates, {len(changes.delete or [])} deletes"
            )
        await self._send(
            "apply changes",
            "POST",
            RECORDS_PATH,
            {CONTENT_TYPE_HEADER: self.media_type},
            content=encode_changes(changes),
            timeout=timeout,
        )

    @fail_safe(lambda: True)
    async def property_values_equal(
        self, name: str, previous: str, current: str, timeout: Optional[float] = None
    ) -> bool:
        """
        Asks the plugin whether two values of a provider specific property are equal.

        Any failure counts as equal, so a degraded plugin never triggers updates.

        Args:
            name: Property name
            previous: Value currently in place
            current: Desired value
            timeout: Deadline in seconds, defaults to the provider timeout

        Returns:
            bool: True if the plugin considers the values equal or could not tell
        """
        response = await self._send(
            "compare property values",
            "POST",
            PROPERTY_VALUES_EQUAL_PATH,
            {
                CONTENT_TYPE_HEADER: self.media_type,
                ACCEPT_HEADER: self.media_type,
            },
            content=encode_property_comparison(
                PropertyComparison(name=name, previous=previous, current=current)
            ),
            timeout=timeout,
        )
        return self._decode(decode_equals, response)

    @fail_safe(list)
    async def adjust_endpoints(
        self, endpoints: List[Endpoint], timeout: Optional[float] = None
    ) -> List[Endpoint]:
        """
        Lets the plugin rewrite endpoints before they are compared with live records.

        Any failure yields an empty list, never the unadjusted input.

        Args:
            endpoints: Endpoints to adjust
            timeout: Deadline in seconds, defaults to the provider timeout

        Returns:
            List[Endpoint]: Adjusted endpoints
        """
        response = await self._send(
            "adjust endpoints",
            "POST",
            ADJUST_ENDPOINTS_PATH,
            {
                CONTENT_TYPE_HEADER: self.media_type,
                ACCEPT_HEADER: self.media_type,
            },
            content=encode_endpoints(endpoints),
            timeout=timeout,
        )
        return self._decode(decode_endpoints, response)

    async def aclose(self) -> None:
        """
        Close the HTTP client if this provider created it.
        """
        if self._owns_client:
            await self.client.aclose()

    async def __aenter__(self) -> "PluginProvider":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

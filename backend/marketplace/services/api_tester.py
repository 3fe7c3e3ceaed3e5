"""API tester: send one ad-hoc HTTP request to a documented API and time it.

The request is built from the tester form as-is: enabled headers and query
params only, no retries, and no credentials beyond what the user typed in.

Requests leave from the backend, so the target host is resolved first and
refused unless every address it resolves to is publicly routable. The
connection is then pinned to the checked address and redirects are never
followed, so a second DNS answer or a 3xx cannot point it somewhere else.
"""

import asyncio
import ipaddress
import json
import logging
import socket
import time
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any

import httpx

from marketplace.errors import ErrorKind, MarketplaceError, bad_request, forbidden

logger = logging.getLogger(__name__)

HTTP_METHODS = ("GET", "POST", "PUT", "DELETE", "PATCH")
_BODYLESS_METHODS = {"GET"}


@dataclass(frozen=True)
class KeyValue:
    key: str
    value: str
    enabled: bool = True


@dataclass(frozen=True)
class ApiResponse:
    status: int
    status_text: str
    headers: dict[str, str]
    data: Any
    time_ms: float
    size: int


@dataclass(frozen=True)
class ApiRequest:
    method: str
    base_url: str
    path: str = ""
    headers: list[KeyValue] = field(default_factory=list)
    query_params: list[KeyValue] = field(default_factory=list)
    body: str | None = None


def _enabled_pairs(items: Iterable[KeyValue]) -> list[tuple[str, str]]:
    return [(kv.key.strip(), kv.value) for kv in items if kv.enabled and kv.key.strip()]


def build_url(base_url: str, path: str, query_params: Iterable[KeyValue] = ()) -> str:
    """Join base URL and path, then append the enabled query params."""
    base = base_url.strip().rstrip("/")
    path = path.strip()
    if path and not path.startswith("/"):
        path = "/" + path

    try:
        url = httpx.URL(base + path)
    except httpx.InvalidURL as e:
        raise bad_request(f"Invalid URL: {e}") from e

    if url.scheme not in ("http", "https") or not url.host:
        raise bad_request("Only absolute http and https URLs can be tested.")

    params = _enabled_pairs(query_params)
    if params:
        url = url.copy_merge_params(params)
    return str(url)


def build_headers(headers: Iterable[KeyValue]) -> dict[str, str]:
    """Enabled headers with a non-empty name. Later duplicates win."""
    return dict(_enabled_pairs(headers))


async def _lookup(host: str, port: int) -> list[str]:
    loop = asyncio.get_running_loop()
    infos = await loop.getaddrinfo(host, port, type=socket.SOCK_STREAM)
    return [info[4][0] for info in infos]


def _is_public(address: ipaddress.IPv4Address | ipaddress.IPv6Address) -> bool:
    if isinstance(address, ipaddress.IPv6Address) and address.ipv4_mapped is not None:
        address = address.ipv4_mapped
    # is_global excludes every IANA special-purpose range, private ones included
    return address.is_global and not address.is_multicast


async def resolve_public_address(url: httpx.URL) -> str:
    """Return the address to connect to for ``url``.

    Raises FORBIDDEN if the host is, or resolves to, any address that is not
    publicly routable.
    """
    host = url.raw_host.decode("ascii").strip("[]")
    try:
        addresses = [ipaddress.ip_address(host)]
    except ValueError:
        port = url.port or (443 if url.scheme == "https" else 80)
        try:
            resolved = await _lookup(host, port)
        except socket.gaierror as e:
            raise MarketplaceError(ErrorKind.UPSTREAM, f"Could not resolve host {host}.") from e
        # drop IPv6 zone ids ("fe80::1%eth0")
        addresses = [ipaddress.ip_address(a.split("%", 1)[0]) for a in resolved]

    if not addresses or not all(_is_public(a) for a in addresses):
        logger.warning("API tester: refused request to non-public host %s", host)
        raise forbidden("Requests to private, loopback or link-local addresses are not allowed.")
    return str(addresses[0])


def _has_header(headers: dict[str, str], name: str) -> bool:
    return any(key.lower() == name.lower() for key in headers)


def _parse_body(response: httpx.Response) -> Any:
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        return response.text


async def send_request(request: ApiRequest, client: httpx.AsyncClient) -> ApiResponse:
    """Issue the request once and report status, headers, body, time, and size."""
    method = request.method.upper()
    if method not in HTTP_METHODS:
        raise bad_request(f"Unsupported method {request.method}.")

    url = build_url(request.base_url, request.path, request.query_params)
    target = httpx.URL(url)
    address = await resolve_public_address(target)

    headers = {k: v for k, v in build_headers(request.headers).items() if k.lower() != "host"}
    headers["Host"] = target.netloc.decode("ascii")
    extensions = {"sni_hostname": target.raw_host.decode("ascii")} if target.scheme == "https" else {}

    content: bytes | None = None
    if request.body and method not in _BODYLESS_METHODS:
        content = request.body.encode("utf-8")
        if not _has_header(headers, "content-type"):
            try:
                json.loads(request.body)
            except ValueError:
                headers["Content-Type"] = "text/plain; charset=utf-8"
            else:
                headers["Content-Type"] = "application/json"

    logger.info("API tester: %s %s", method, url)
    start = time.perf_counter()
    try:
        response = await client.request(
            method,
            target.copy_with(host=address),
            headers=headers,
            content=content,
            follow_redirects=False,
            extensions=extensions,
        )
    except httpx.TimeoutException as e:
        raise MarketplaceError(ErrorKind.UPSTREAM, f"Request to {url} timed out.") from e
    except httpx.HTTPError as e:
        raise MarketplaceError(ErrorKind.UPSTREAM, f"Request to {url} failed: {e}") from e
    elapsed_ms = (time.perf_counter() - start) * 1000

    return ApiResponse(
        status=response.status_code,
        status_text=response.reason_phrase,
        headers=dict(response.headers),
        data=_parse_body(response),
        time_ms=round(elapsed_ms, 2),
        size=len(response.content),
    )

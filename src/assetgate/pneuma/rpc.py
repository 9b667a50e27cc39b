"""
Gateway wire helper - signed JSON requests over httpx.

Every request body has the shape ``{"payload": {...}, "signature": "<b64>"}``
where the signature covers the RFC 8785 canonical form of ``payload``.
Responses are JSON objects; an ``"error"`` member signals failure.
"""

from __future__ import annotations

import json
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeout
from typing import Any, Callable, Optional, TypeVar

import httpx

from ..sigil.credentials import Identity
from ..sigil.crypto import CryptoError, sign_payload

T = TypeVar("T")


class RemoteCallError(RuntimeError):
    """A gateway request failed in transport, HTTP status, or response payload."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


def creator(identity: Identity) -> dict[str, str]:
    return {"mspid": identity.msp_id, "certificate": identity.certificate.decode("utf-8")}


def signed_body(payload: dict[str, Any], identity: Identity) -> dict[str, Any]:
    try:
        signature = sign_payload(payload, identity.private_key)
    except CryptoError as exc:
        raise RemoteCallError(f"Cannot sign request: {exc}") from exc
    return {"payload": payload, "signature": signature}


def _error_message(response: httpx.Response) -> str:
    try:
        data = response.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        return response.text.strip() or response.reason_phrase
    if isinstance(data, dict) and "error" in data:
        return str(data["error"])
    return response.reason_phrase


def _decode(response: httpx.Response, url: str) -> dict[str, Any]:
    if response.is_error:
        raise RemoteCallError(
            f"{url} returned HTTP {response.status_code}: {_error_message(response)}",
            status_code=response.status_code,
        )
    try:
        data = response.json()
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise RemoteCallError(f"{url} returned a non-JSON response") from exc
    if not isinstance(data, dict):
        raise RemoteCallError(f"{url} returned {type(data).__name__}, expected an object")
    if "error" in data:
        raise RemoteCallError(f"Gateway error: {data['error']}")
    return data


def post_signed(
    client: httpx.Client,
    url: str,
    payload: dict[str, Any],
    identity: Identity,
    timeout: Any = httpx.USE_CLIENT_DEFAULT,
) -> dict[str, Any]:
    """
    POST a signed payload and return the decoded JSON object.

    Raises:
        RemoteCallError: On transport failure, HTTP error, or error payload
    """
    body = signed_body(payload, identity)
    try:
        response = client.post(url, json=body, timeout=timeout)
    except httpx.HTTPError as exc:
        raise RemoteCallError(f"Request to {url} failed: {exc}") from exc
    return _decode(response, url)


def get_json(
    client: httpx.Client,
    url: str,
    timeout: Any = httpx.USE_CLIENT_DEFAULT,
) -> dict[str, Any]:
    try:
        response = client.get(url, timeout=timeout)
    except httpx.HTTPError as exc:
        raise RemoteCallError(f"Request to {url} failed: {exc}") from exc
    return _decode(response, url)


def call_with_deadline(func: Callable[[], T], seconds: float, what: str) -> T:
    """
    Run ``func`` and give up once ``seconds`` have passed in total.

    httpx timeouts apply per phase (connect, write, each read), so a slow
    server can hold a single request for several multiples of the timeout.
    The call runs on a worker thread; on expiry the caller gets a
    RemoteCallError and the worker is left to finish against a client the
    caller is expected to close.

    Raises:
        RemoteCallError: If the deadline passes, or whatever ``func`` raises
    """
    pool = ThreadPoolExecutor(max_workers=1, thread_name_prefix="assetgate-deadline")
    try:
        future = pool.submit(func)
        try:
            return future.result(timeout=seconds)
        except FutureTimeout as exc:
            raise RemoteCallError(f"{what} did not complete within {seconds:g}s") from exc
    finally:
        pool.shutdown(wait=False)

"""Translate HTTP responses and ``requests`` failures into storage errors."""

from __future__ import annotations

from typing import Any

import requests

from cloudstore.exceptions import StatusCode, StorageError

RESUME_INCOMPLETE = 308

_CLIENT_ERROR_CODES: dict[int, StatusCode] = {
    400: StatusCode.INVALID_ARGUMENT,
    401: StatusCode.UNAUTHENTICATED,
    403: StatusCode.PERMISSION_DENIED,
    404: StatusCode.NOT_FOUND,
    405: StatusCode.PERMISSION_DENIED,
    409: StatusCode.ABORTED,
    410: StatusCode.NOT_FOUND,
    411: StatusCode.INVALID_ARGUMENT,
    412: StatusCode.FAILED_PRECONDITION,
    413: StatusCode.OUT_OF_RANGE,
    416: StatusCode.OUT_OF_RANGE,
    429: StatusCode.UNAVAILABLE,
}

_SERVER_ERROR_CODES: dict[int, StatusCode] = {
    500: StatusCode.UNAVAILABLE,
    502: StatusCode.UNAVAILABLE,
    503: StatusCode.UNAVAILABLE,
    504: StatusCode.DEADLINE_EXCEEDED,
}


def status_code_from_http(http_status: int) -> StatusCode:
    """Map an HTTP status to the canonical status code."""
    if http_status < 300:
        return StatusCode.OK
    if http_status < 400:
        # 308 is only an error where an upload session does not expect it.
        if http_status == RESUME_INCOMPLETE:
            return StatusCode.FAILED_PRECONDITION
        return StatusCode.UNKNOWN
    if http_status < 500:
        return _CLIENT_ERROR_CODES.get(http_status, StatusCode.INVALID_ARGUMENT)
    if http_status < 600:
        return _SERVER_ERROR_CODES.get(http_status, StatusCode.INTERNAL)
    return StatusCode.UNKNOWN


def extract_error_detail(response: requests.Response) -> str | None:
    """Extract error detail from an HTTP error response."""
    try:
        payload: Any = response.json()
    except ValueError:
        return response.text

    if not isinstance(payload, dict):
        return str(payload)

    error_payload = payload.get("error", payload)
    if not isinstance(error_payload, dict):
        return str(error_payload)

    return error_payload.get("message") or error_payload.get("status")


def error_from_response(response: requests.Response, operation: str) -> StorageError:
    """Build the error describing an unsuccessful response."""
    detail = extract_error_detail(response)
    message = f"{operation} failed with HTTP {response.status_code}"
    if detail:
        message = f"{message}: {detail}"
    return StorageError(status_code_from_http(response.status_code), message)


def error_from_exception(
    exc: requests.RequestException, operation: str
) -> StorageError:
    """Build the error describing a request that got no usable response."""
    if isinstance(exc, requests.Timeout):
        code = StatusCode.DEADLINE_EXCEEDED
    else:
        code = StatusCode.UNAVAILABLE
    return StorageError(code, f"{operation} failed: {exc}")

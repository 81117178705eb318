from __future__ import annotations

from typing import Any

import httpx
import structlog

from deploymeta.config.context import FactoryContext
from deploymeta.resources.adapter import ErrorCode, RemoteError

logger = structlog.get_logger()

DEFAULT_USER_AGENT = "deploymeta/0.1.0"

# Used when an error response carries no Connect error body.
HTTP_STATUS_CODES: dict[int, ErrorCode] = {
    400: ErrorCode.INTERNAL,
    401: ErrorCode.UNAUTHENTICATED,
    403: ErrorCode.PERMISSION_DENIED,
    404: ErrorCode.UNIMPLEMENTED,
    408: ErrorCode.DEADLINE_EXCEEDED,
    429: ErrorCode.UNAVAILABLE,
    502: ErrorCode.UNAVAILABLE,
    503: ErrorCode.UNAVAILABLE,
    504: ErrorCode.UNAVAILABLE,
}


def error_code_for_status(status_code: int) -> ErrorCode:
    return HTTP_STATUS_CODES.get(status_code, ErrorCode.UNKNOWN)


class ConnectClient:
    """Unary Connect-protocol client (JSON codec) for the Factory API.

    Every failure is raised as ``RemoteError`` with a structured code; the
    client does not retry.
    """

    def __init__(
        self,
        base_url: str,
        *,
        licence_key: str | None = None,
        deployment_name: str | None = None,
        timeout: float = 30.0,
        user_agent: str = DEFAULT_USER_AGENT,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._licence_key = licence_key
        self._deployment_name = deployment_name
        self._timeout = timeout
        self._user_agent = user_agent

    @classmethod
    def from_context(cls, context: FactoryContext) -> ConnectClient:
        return cls(
            context.base_url,
            licence_key=context.licence_key,
            deployment_name=context.deployment_name,
            timeout=context.timeout,
        )

    def _headers(self) -> dict[str, str]:
        headers = {
            "Content-Type": "application/json",
            "Connect-Protocol-Version": "1",
            "User-Agent": self._user_agent,
        }
        if self._licence_key:
            headers["Authorization"] = f"Bearer {self._licence_key}"
        if self._deployment_name:
            headers["X-Deployment-Name"] = self._deployment_name
        return headers

    def call(self, service: str, method: str, message: dict[str, Any] | None = None) -> dict[str, Any]:
        """Invoke ``service/method`` with ``message`` and return the decoded response."""
        url = f"{self._base_url}/{service}/{method}"
        try:
            with httpx.Client(timeout=self._timeout) as client:
                response = client.post(url, json=message or {}, headers=self._headers())
        except httpx.TimeoutException as exc:
            logger.warning("rpc_timeout", method=method, url=url, error=str(exc))
            raise RemoteError(ErrorCode.DEADLINE_EXCEEDED, f"request to {method} timed out: {exc}") from exc
        except httpx.TransportError as exc:
            logger.warning("rpc_network_error", method=method, url=url, error=str(exc))
            raise RemoteError(ErrorCode.UNAVAILABLE, f"unable to reach {url}: {exc}") from exc

        if response.is_success:
            return response.json() if response.content else {}

        error = self._decode_error(response)
        logger.error(
            "rpc_error",
            method=method,
            url=url,
            status=response.status_code,
            code=error.code.value,
            error=error.message,
        )
        raise error

    @staticmethod
    def _decode_error(response: httpx.Response) -> RemoteError:
        try:
            body = response.json()
        except ValueError:
            body = None
        if isinstance(body, dict) and body.get("code"):
            message = body.get("message") or response.reason_phrase
            return RemoteError(ErrorCode.parse(body["code"]), message)
        message = response.text[:200] if response.text else response.reason_phrase
        return RemoteError(error_code_for_status(response.status_code), f"HTTP {response.status_code}: {message}")

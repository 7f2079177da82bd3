"""Supabase Client — authenticated RPC channel over httpx for edge functions and REST tables.

Invariants:
    - Every failure leaves this module as RemoteFunctionError (core/errors.py)
    - Server error bodies ({"error"|"message"|"msg": ...}) are kept verbatim in remote_message
    - No retries: one call in, one HTTP request out
    - Idempotency-Key header sent only when the caller provides a key

Design Decisions:
    - Wrapper over raw httpx.AsyncClient: isolates error mapping from services
    - Injectable transport: tests use httpx.MockTransport, production uses the default pool
    - Session (access token, user id) is set by the external auth collaborator
"""

import logging
from typing import Any

import httpx

from courtside.core.errors import RemoteFunctionError, ErrorContext

logger = logging.getLogger(__name__)

_ERROR_BODY_KEYS = ("error", "message", "msg")


def _extract_remote_message(response: httpx.Response) -> str | None:
    """Pull the human-readable reason out of an error body, if any."""
    try:
        payload = response.json()
    except ValueError:
        text = response.text.strip()
        return text or None
    if isinstance(payload, dict):
        for key in _ERROR_BODY_KEYS:
            val = payload.get(key)
            if isinstance(val, str) and val:
                return val
            if isinstance(val, dict) and isinstance(val.get("message"), str):
                return val["message"]
    return None


class SupabaseClient:
    """Edge-function invoke + REST table access with error mapping."""

    FUNCTIONS_PATH = "/functions/v1"
    REST_PATH = "/rest/v1"

    def __init__(
        self,
        base_url: str,
        anon_key: str,
        timeout_seconds: float = 15.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.anon_key = anon_key
        self.access_token: str | None = None
        self.user_id: str | None = None
        self.client = httpx.AsyncClient(
            base_url=base_url,
            timeout=timeout_seconds,
            transport=transport,
        )

    def set_session(self, access_token: str | None, user_id: str | None = None) -> None:
        """Install (or clear, with None) the signed-in user's session."""
        self.access_token = access_token
        self.user_id = user_id if access_token else None

    async def aclose(self) -> None:
        await self.client.aclose()

    async def invoke(
        self,
        function_name: str,
        body: dict,
        *,
        idempotency_key: str | None = None,
    ) -> Any:
        """POST to an edge function and return its decoded JSON payload."""
        headers = self._headers()
        if idempotency_key:
            headers["Idempotency-Key"] = idempotency_key
        context = ErrorContext(function_name=function_name)
        response = await self._send(
            "POST", f"{self.FUNCTIONS_PATH}/{function_name}", context,
            json=body, headers=headers,
        )
        logger.info(
            "Edge function success",
            extra={
                "function_name": function_name,
                "status_code": response.status_code,
                "idempotency_key": idempotency_key,
            },
        )
        return self._decode(response, context)

    async def select(self, table: str, params: dict[str, str]) -> list[dict]:
        """GET rows from a REST table using PostgREST query params."""
        context = ErrorContext(function_name=f"rest:{table}")
        response = await self._send(
            "GET", f"{self.REST_PATH}/{table}", context,
            params=params, headers=self._headers(),
        )
        rows = self._decode(response, context)
        if not isinstance(rows, list):
            raise RemoteFunctionError(
                f"Expected a row list from {table}", "decode_error",
                context=context,
            )
        return rows

    async def insert(self, table: str, row: dict) -> None:
        context = ErrorContext(function_name=f"rest:{table}")
        headers = self._headers()
        headers["Prefer"] = "return=minimal"
        await self._send(
            "POST", f"{self.REST_PATH}/{table}", context,
            json=row, headers=headers,
        )
        logger.info("Row inserted", extra={"table": table})

    def _headers(self) -> dict[str, str]:
        return {
            "apikey": self.anon_key,
            "Authorization": f"Bearer {self.access_token or self.anon_key}",
        }

    async def _send(
        self, method: str, url: str, context: ErrorContext, **kwargs: Any,
    ) -> httpx.Response:
        """Issue one request; map transport and HTTP failures."""
        try:
            response = await self.client.request(method, url, **kwargs)
        except httpx.TimeoutException as e:
            logger.warning(
                f"Remote call timed out: {url}",
                extra={"function_name": context.function_name},
            )
            raise RemoteFunctionError(
                f"Request timed out: {e}", "timeout", context=context,
            ) from e
        except httpx.TransportError as e:
            logger.warning(
                f"Remote call transport error: {e}",
                extra={"function_name": context.function_name},
            )
            raise RemoteFunctionError(
                f"Connection error: {e}", "connection_error", context=context,
            ) from e

        if response.is_error:
            context.status_code = response.status_code
            remote_message = _extract_remote_message(response)
            logger.warning(
                f"Remote call failed with HTTP {response.status_code}",
                extra={
                    "function_name": context.function_name,
                    "status_code": response.status_code,
                },
            )
            raise RemoteFunctionError(
                remote_message or f"HTTP {response.status_code}",
                "http_error",
                remote_message=remote_message,
                context=context,
            )
        return response

    def _decode(self, response: httpx.Response, context: ErrorContext) -> Any:
        try:
            return response.json()
        except ValueError as e:
            context.status_code = response.status_code
            raise RemoteFunctionError(
                f"Response is not valid JSON: {e}", "decode_error",
                context=context,
            ) from e

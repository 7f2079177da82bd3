"""Boundary Protocols — contracts between services and the remote channel.

Invariants:
    - Services depend on these Protocols, never on httpx directly
    - Implementations raise RemoteFunctionError for every remote failure

Design Decisions:
    - Protocol over ABC: structural subtyping, test fakes need no inheritance
"""

from typing import Any, Protocol


class FunctionInvoker(Protocol):
    """Contract for edge-function calls — implemented by SupabaseClient."""
    async def invoke(
        self,
        function_name: str,
        body: dict,
        *,
        idempotency_key: str | None = None,
    ) -> Any: ...


class TableClient(Protocol):
    """Contract for REST table access — implemented by SupabaseClient."""
    user_id: str | None

    async def select(self, table: str, params: dict[str, str]) -> list[dict]: ...
    async def insert(self, table: str, row: dict) -> None: ...


class RemoteChannel(FunctionInvoker, TableClient, Protocol):
    """Both halves of the authenticated channel."""

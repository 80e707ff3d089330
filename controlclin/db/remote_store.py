import asyncio
from typing import Any, Dict, Optional, Protocol

from controlclin.core.config import settings
from controlclin.core.exceptions import RemoteSyncError
from controlclin.core.logger import logger


class DocumentClient(Protocol):
    async def get_document(self, path: str) -> Optional[dict]: ...

    async def set_document(self, path: str, document: dict) -> None: ...


def tenant_path(tenant_id: str) -> str:
    return f"tenants/{tenant_id}/data/main"


def legacy_path(legacy_key: str) -> str:
    return f"globalData/{legacy_key}"


class RemoteStateStore:
    """
    Remote copy of the state, one document per tenant. Last writer wins, no
    compare-and-swap. Every call is bounded by ``timeout`` seconds.
    """

    def __init__(
        self,
        client: DocumentClient,
        legacy_key: str = settings.REMOTE_LEGACY_KEY,
        timeout: float = settings.REMOTE_TIMEOUT_SECONDS,
    ):
        self.client = client
        self.legacy_key = legacy_key
        self.timeout = timeout

    async def get(self, tenant_id: str) -> Optional[Dict[str, Any]]:
        document = await self._call(self.client.get_document(tenant_path(tenant_id)), "read")
        if document:
            return document

        legacy = await self._call(self.client.get_document(legacy_path(self.legacy_key)), "legacy read")
        if not legacy:
            return None

        logger.info(f"Migrating legacy remote document to {tenant_path(tenant_id)}")
        try:
            await self.put(tenant_id, legacy)
        except RemoteSyncError as e:
            logger.warning(f"Legacy migration write failed, serving legacy copy: {e.detail}")
        return legacy

    async def put(self, tenant_id: str, state: Dict[str, Any]) -> None:
        await self._call(self.client.set_document(tenant_path(tenant_id), state), "write")

    async def _call(self, operation, action: str):
        try:
            return await asyncio.wait_for(operation, timeout=self.timeout)
        except asyncio.TimeoutError as e:
            raise RemoteSyncError(f"Remote {action} timed out after {self.timeout}s") from e
        except RemoteSyncError:
            raise
        except Exception as e:
            raise RemoteSyncError(f"Remote {action} failed: {e}") from e

"""
Data-access core handle.

``ClinicStore`` owns the in-memory collections for the application lifetime
and implements the write-through pipeline: every mutation is followed by
``commit()``, which stamps ``lastModified``, saves the whole state to the
local durable store synchronously and schedules a best-effort push of the
same payload to the remote document store.

The store is an explicit object passed to the services; nothing here is a
module-level singleton, so tests build as many isolated stores as they need.
"""
import asyncio
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Dict, Optional, Set

from controlclin.core.config import Settings, settings as default_settings
from controlclin.core.exceptions import RemoteSyncError
from controlclin.core.logger import logger
from controlclin.core.utils import now_ms, utcnow
from controlclin.db.local_store import LocalStateStore
from controlclin.db.remote_store import RemoteStateStore
from controlclin.db.state import ClinicState


@dataclass
class SyncStatus:
    pending: bool = False
    last_success_at: Optional[datetime] = None
    last_error: Optional[str] = None
    last_error_at: Optional[datetime] = None
    pushes_started: int = 0
    pushes_failed: int = 0


class ClinicStore:
    def __init__(
        self,
        local: LocalStateStore,
        remote: Optional[RemoteStateStore] = None,
        clock: Callable[[], int] = now_ms,
    ):
        self.local = local
        self.remote = remote
        self.clock = clock
        self.state = ClinicState()
        self.active_tenant_id: Optional[str] = None
        self.sync_status = SyncStatus()
        self._pushes: Set[asyncio.Task] = set()

    @property
    def remote_enabled(self) -> bool:
        return self.remote is not None

    def commit(self) -> None:
        """Persist the current state: local synchronously, remote in background.

        Local quota errors propagate to the caller. Remote failures never do.
        """
        self.state.last_modified = self.clock()
        payload = self.state.to_payload()
        self.local.save_all(payload)
        self.schedule_push(payload)

    def persist_local(self) -> None:
        self.local.save_all(self.state.to_payload())

    def schedule_push(self, payload: Optional[Dict[str, Any]] = None) -> None:
        if not self.remote_enabled or not self.active_tenant_id:
            return
        payload = payload if payload is not None else self.state.to_payload()
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # No event loop: leave it for the next commit or a force sync
            self.sync_status.pending = True
            logger.warning("No running event loop, remote push deferred")
            return
        self.sync_status.pending = True
        self.sync_status.pushes_started += 1
        task = loop.create_task(self._push(self.active_tenant_id, payload))
        self._pushes.add(task)
        task.add_done_callback(self._pushes.discard)

    async def _push(self, tenant_id: str, payload: Dict[str, Any]) -> None:
        try:
            await self.remote.put(tenant_id, payload)
        except RemoteSyncError as e:
            self._record_failure(e.detail)
            logger.error(f"Remote push for tenant {tenant_id} failed: {e.detail}")
        else:
            self._record_success()

    async def force_sync(self, tenant_id: Optional[str] = None) -> SyncStatus:
        """Push the current state now and raise if the remote rejects it.

        Goes to ``tenant_id`` when given, else to the active tenant.
        """
        if not self.remote_enabled:
            raise RemoteSyncError("Remote storage is not configured")
        tenant_id = tenant_id or self.active_tenant_id
        if not tenant_id:
            raise RemoteSyncError("No active tenant to synchronize")
        try:
            await self.remote.put(tenant_id, self.state.to_payload())
        except RemoteSyncError as e:
            self._record_failure(e.detail)
            raise
        self._record_success()
        return self.sync_status

    async def drain(self) -> None:
        """Wait for every in-flight remote push."""
        while self._pushes:
            await asyncio.gather(*list(self._pushes), return_exceptions=True)

    def _record_success(self) -> None:
        self.sync_status.pending = bool(self._pushes - {asyncio.current_task()})
        self.sync_status.last_success_at = utcnow()
        self.sync_status.last_error = None

    def _record_failure(self, detail: str) -> None:
        self.sync_status.pending = True
        self.sync_status.pushes_failed += 1
        self.sync_status.last_error = detail
        self.sync_status.last_error_at = utcnow()


def build_store(config: Settings = default_settings) -> ClinicStore:
    """Construct the core from settings. Raises InitializationError when local storage is unusable."""
    local = LocalStateStore(
        url=config.LOCAL_STORE_URL,
        key=config.LOCAL_STORE_KEY,
        quota_bytes=config.LOCAL_STORE_QUOTA_BYTES,
    )
    remote = None
    if config.REMOTE_ENABLED:
        from controlclin.core.redis import RedisDocumentClient

        remote = RemoteStateStore(
            RedisDocumentClient(config.REDIS_URL),
            legacy_key=config.REMOTE_LEGACY_KEY,
            timeout=config.REMOTE_TIMEOUT_SECONDS,
        )
    return ClinicStore(local, remote)

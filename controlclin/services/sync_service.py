"""
Reconciliation between the local and remote copies of the state.

Whole-state and timestamp-gated: one side wins, nothing is merged. A local
copy that still looks like the default seed never beats a remote copy, even
an older one.
"""
from enum import Enum
from typing import Any, Dict, Optional

from controlclin.core.exceptions import RemoteSyncError
from controlclin.core.logger import logger
from controlclin.db.seed import SEED_PATIENT_COUNT, build_seed_payload
from controlclin.db.state import ClinicState
from controlclin.db.store import ClinicStore, SyncStatus


class ReconcileOutcome(str, Enum):
    LOCAL_KEPT = "LOCAL_KEPT"
    REMOTE_ADOPTED = "REMOTE_ADOPTED"
    SEEDED = "SEEDED"


class SyncService:
    def __init__(self, store: ClinicStore):
        self.store = store

    async def reconcile(self, tenant_id: str) -> ReconcileOutcome:
        store = self.store
        store.active_tenant_id = tenant_id

        local = store.local.load_all()
        remote, reachable = await self._fetch_remote(tenant_id)

        if local is not None:
            local_last_modified = local.get("lastModified") or store.clock()
            if remote:
                remote_last_modified = remote.get("lastModified") or 0
                fresh_seed = ClinicState.payload_is_fresh_seed(local, SEED_PATIENT_COUNT)
                if local_last_modified > remote_last_modified and not fresh_seed:
                    logger.info(f"Local state is newer for tenant {tenant_id}, pushing it")
                    self._keep_local(local, local_last_modified)
                    store.schedule_push()
                    return ReconcileOutcome.LOCAL_KEPT
                logger.info(f"Adopting remote state for tenant {tenant_id}")
                self._adopt(remote)
                return ReconcileOutcome.REMOTE_ADOPTED

            self._keep_local(local, local_last_modified)
            if reachable:
                # Remote is empty: give it our copy
                store.schedule_push()
            return ReconcileOutcome.LOCAL_KEPT

        if remote:
            logger.info(f"No local state, adopting remote state for tenant {tenant_id}")
            self._adopt(remote)
            return ReconcileOutcome.REMOTE_ADOPTED

        logger.info("No local or remote state, loading the default dataset")
        store.state.load_payload(build_seed_payload())
        store.state.last_modified = store.clock()
        store.persist_local()
        return ReconcileOutcome.SEEDED

    async def ensure_tenant(self, tenant_id: str) -> Optional[ReconcileOutcome]:
        """Reconcile only when the active tenant changes."""
        if self.store.active_tenant_id == tenant_id:
            return None
        return await self.reconcile(tenant_id)

    async def force_sync(self, tenant_id: Optional[str] = None) -> SyncStatus:
        return await self.store.force_sync(tenant_id)

    def status(self) -> SyncStatus:
        return self.store.sync_status

    async def _fetch_remote(self, tenant_id: str):
        if not self.store.remote_enabled:
            return None, False
        try:
            return await self.store.remote.get(tenant_id), True
        except RemoteSyncError as e:
            logger.warning(f"Remote unreachable for tenant {tenant_id}: {e.detail}")
            return None, False

    def _keep_local(self, local: Dict[str, Any], last_modified: int) -> None:
        self.store.state.load_payload(local)
        self.store.state.last_modified = last_modified

    def _adopt(self, remote: Dict[str, Any]) -> None:
        self.store.state.load_payload(remote)
        self.store.persist_local()

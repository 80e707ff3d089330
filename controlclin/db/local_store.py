import json
from typing import Any, Dict, Optional

from sqlalchemy.exc import OperationalError, SQLAlchemyError
from sqlmodel import Session, SQLModel, create_engine

from controlclin.core.config import settings
from controlclin.core.exceptions import InitializationError, StorageQuotaExceeded
from controlclin.core.logger import logger
from controlclin.core.utils import utcnow_aware
from controlclin.db.models import StateBlob


class LocalStateStore:
    """
    Synchronous, size-bounded key-value store holding the whole serialized
    state under one fixed key. No retries and no partial writes.
    """

    def __init__(
        self,
        url: str = settings.LOCAL_STORE_URL,
        key: str = settings.LOCAL_STORE_KEY,
        quota_bytes: int = settings.LOCAL_STORE_QUOTA_BYTES,
    ):
        self.key = key
        self.quota_bytes = quota_bytes
        try:
            self.engine = create_engine(url, echo=False)
            SQLModel.metadata.create_all(self.engine, tables=[StateBlob.__table__])
        except SQLAlchemyError as e:
            raise InitializationError(f"Local storage unavailable at {url}: {e}") from e

    def get_item(self, key: str) -> Optional[str]:
        with Session(self.engine) as session:
            blob = session.get(StateBlob, key)
            return blob.value if blob else None

    def set_item(self, key: str, value: str) -> None:
        size = len(value.encode("utf-8"))
        if size > self.quota_bytes:
            raise StorageQuotaExceeded(size, self.quota_bytes)
        try:
            with Session(self.engine) as session:
                blob = session.get(StateBlob, key)
                if blob is None:
                    blob = StateBlob(key=key, value=value)
                else:
                    blob.value = value
                    blob.updated_at = utcnow_aware()
                session.add(blob)
                session.commit()
        except OperationalError as e:
            if "full" in str(e.orig).lower():
                raise StorageQuotaExceeded(size, self.quota_bytes) from e
            raise

    def remove_item(self, key: str) -> None:
        with Session(self.engine) as session:
            blob = session.get(StateBlob, key)
            if blob is not None:
                session.delete(blob)
                session.commit()

    def load_all(self) -> Optional[Dict[str, Any]]:
        raw = self.get_item(self.key)
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except json.JSONDecodeError:
            logger.error("Local state is corrupted, ignoring it")
            return None

    def save_all(self, state: Dict[str, Any]) -> None:
        self.set_item(self.key, json.dumps(state))

    def clear(self) -> None:
        self.remove_item(self.key)

import json
from typing import Optional

import redis.asyncio as redis
from controlclin.core.config import settings

class RedisDocumentClient:
    """Remote document store: one JSON document per path."""

    def __init__(self, url: str = settings.REDIS_URL):
        self.redis = redis.from_url(url, encoding="utf-8", decode_responses=True)

    async def get_document(self, path: str) -> Optional[dict]:
        raw = await self.redis.get(f"doc:{path}")
        if raw is None:
            return None
        return json.loads(raw)

    async def set_document(self, path: str, document: dict) -> None:
        await self.redis.set(f"doc:{path}", json.dumps(document))

    async def close(self):
        await self.redis.aclose()

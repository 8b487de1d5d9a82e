import redis.asyncio as redis


class RedisClient:
    """Session token store. A token is valid only while its key exists."""

    key_prefix = "session"

    def __init__(self, url: str):
        self.redis = redis.from_url(url, encoding="utf-8", decode_responses=True)

    def _key(self, token: str) -> str:
        return f"{self.key_prefix}:{token}"

    async def set_token(self, token: str, value: str, expire: int):
        await self.redis.set(self._key(token), value, ex=max(int(expire), 1))

    async def get_token(self, token: str) -> str | None:
        return await self.redis.get(self._key(token))

    async def delete_token(self, token: str):
        await self.redis.delete(self._key(token))

    async def close(self):
        await self.redis.aclose()

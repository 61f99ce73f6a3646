"""
Redis-backed document store.

Each document lives in a Redis hash at ``{namespace}:{collection}:{id}``;
every field value is JSON-encoded, so an upsert merges fields the way a
document ``$set`` would. No backend expiry is ever set.
"""

import json
from typing import Any, Awaitable, Callable, Dict, Optional

import redis.asyncio as redis
from redis.exceptions import RedisError

from shared.circuit_breaker import CircuitBreaker
from shared.errors import StoreUnavailableError
from shared.logging import get_logger


class DocumentStore:
    """Find/upsert documents by primary key over a lazily opened Redis connection."""

    def __init__(
        self,
        url: str,
        namespace: str = "x-api",
        *,
        connect_timeout: float = 5.0,
        socket_timeout: float = 45.0,
        failure_threshold: int = 5,
        recovery_timeout: float = 30.0,
    ):
        self.url = url
        self.namespace = namespace
        self.connect_timeout = connect_timeout
        self.socket_timeout = socket_timeout
        self.logger = get_logger("x_api.storage.document_store")
        self.circuit_breaker = CircuitBreaker(
            "document_store",
            failure_threshold=failure_threshold,
            recovery_timeout=recovery_timeout,
            expected_exceptions=(RedisError, OSError),
        )

        self._redis: Optional[redis.Redis] = None

    async def _get_redis(self) -> redis.Redis:
        """Get the shared Redis connection, creating it on first use."""
        if self._redis is None:
            self._redis = redis.from_url(
                self.url,
                encoding="utf-8",
                decode_responses=True,
                socket_connect_timeout=self.connect_timeout,
                socket_timeout=self.socket_timeout,
                health_check_interval=30,
            )
        return self._redis

    def _key(self, collection: str, doc_id: str) -> str:
        return f"{self.namespace}:{collection}:{doc_id}"

    async def _execute(self, operation: str, command: Callable[[redis.Redis], Awaitable[Any]]) -> Any:
        async def _run():
            client = await self._get_redis()
            return await command(client)

        try:
            return await self.circuit_breaker.call(_run)
        except StoreUnavailableError:
            raise
        except (RedisError, OSError) as e:
            self.logger.error("Document store command failed", operation=operation, error=str(e))
            raise StoreUnavailableError(
                f"Document store {operation} failed: {e}",
                details={"operation": operation},
            ) from e

    async def find_one(self, collection: str, doc_id: str) -> Optional[Dict[str, Any]]:
        """Return the document, or None when it does not exist."""
        key = self._key(collection, doc_id)
        raw = await self._execute("find", lambda client: client.hgetall(key))
        if not raw:
            return None

        try:
            return {field: json.loads(value) for field, value in raw.items()}
        except ValueError:
            self.logger.warning("Discarding undecodable document", collection=collection, doc_id=doc_id)
            return None

    async def upsert(self, collection: str, doc_id: str, fields: Dict[str, Any]) -> None:
        """Create the document or overwrite the given fields in one command."""
        key = self._key(collection, doc_id)
        mapping = {field: json.dumps(value, default=str) for field, value in fields.items()}
        await self._execute("upsert", lambda client: client.hset(key, mapping=mapping))

    async def ping(self) -> bool:
        try:
            return bool(await self._execute("ping", lambda client: client.ping()))
        except StoreUnavailableError:
            return False

    async def close(self) -> None:
        if self._redis is not None:
            await self._redis.aclose()
            self._redis = None
            self.logger.info("Document store connection closed")

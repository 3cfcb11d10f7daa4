"""Table sessions: signed ids, stored in Redis or, failing that, in process."""

import json
import logging
import time
from abc import ABC, abstractmethod
from typing import Any
from uuid import uuid4

import redis.asyncio as redis
from redis.exceptions import RedisError
from itsdangerous import URLSafeTimedSerializer, BadSignature, SignatureExpired

from config import config

logger = logging.getLogger(__name__)

SessionData = dict[str, Any]


class SessionSigner:
    """Sign session ids so clients cannot guess someone else's table."""

    def __init__(self, secret_key: str | None = None) -> None:
        self._serializer = URLSafeTimedSerializer(secret_key or config.security.secret_key)

    def sign(self, session_id: str) -> str:
        return self._serializer.dumps(session_id)

    def unsign(self, token: str, max_age: int | None = None) -> str | None:
        """
        Recover the session id from a token.

        Args:
            token: Token previously returned by ``sign``
            max_age: Oldest acceptable token in seconds (defaults to session_ttl)

        Returns:
            The session id, or None if the token is forged or too old
        """
        try:
            return self._serializer.loads(token, max_age=max_age or config.session_ttl)
        except (BadSignature, SignatureExpired):
            return None


_session_signer: SessionSigner | None = None


def get_session_signer() -> SessionSigner:
    global _session_signer
    if _session_signer is None:
        _session_signer = SessionSigner()
    return _session_signer


def new_session_token() -> str:
    """Fresh signed session token."""
    return get_session_signer().sign(str(uuid4()))


class SessionStore(ABC):
    """Key-value storage for session data with per-entry expiry."""

    @abstractmethod
    async def get(self, session_id: str) -> SessionData | None:
        ...

    @abstractmethod
    async def set(self, session_id: str, data: SessionData, ttl: int | None = None) -> None:
        ...

    @abstractmethod
    async def delete(self, session_id: str) -> None:
        ...

    async def exists(self, session_id: str) -> bool:
        return await self.get(session_id) is not None


class InMemorySessionStore(SessionStore):
    """Process-local store; sessions vanish on restart."""

    def __init__(self) -> None:
        # session id -> (data, monotonic deadline)
        self._sessions: dict[str, tuple[SessionData, float]] = {}

    async def get(self, session_id: str) -> SessionData | None:
        entry = self._sessions.get(session_id)
        if entry is None:
            return None
        data, deadline = entry
        if deadline < time.monotonic():
            del self._sessions[session_id]
            return None
        return data

    async def set(self, session_id: str, data: SessionData, ttl: int | None = None) -> None:
        deadline = time.monotonic() + (ttl or config.session_ttl)
        self._sessions[session_id] = (data, deadline)

    async def delete(self, session_id: str) -> None:
        self._sessions.pop(session_id, None)

    async def cleanup_expired(self) -> int:
        """Drop expired sessions and return how many went."""
        now = time.monotonic()
        expired = [sid for sid, (_, deadline) in self._sessions.items() if deadline < now]
        for sid in expired:
            del self._sessions[sid]
        return len(expired)

    def __len__(self) -> int:
        return len(self._sessions)


class RedisSessionStore(SessionStore):
    """Sessions as JSON strings under ``<prefix><session id>`` with a Redis TTL."""

    def __init__(self, redis_client: redis.Redis, prefix: str = "duojack:session:") -> None:
        self._redis = redis_client
        self._prefix = prefix

    def _key(self, session_id: str) -> str:
        return f"{self._prefix}{session_id}"

    async def get(self, session_id: str) -> SessionData | None:
        raw = await self._redis.get(self._key(session_id))
        return None if raw is None else json.loads(raw)

    async def set(self, session_id: str, data: SessionData, ttl: int | None = None) -> None:
        await self._redis.setex(self._key(session_id), ttl or config.session_ttl, json.dumps(data))

    async def delete(self, session_id: str) -> None:
        await self._redis.delete(self._key(session_id))

    async def exists(self, session_id: str) -> bool:
        return await self._redis.exists(self._key(session_id)) > 0


_session_store: SessionStore | None = None


async def get_session_store() -> SessionStore:
    """
    Return the process-wide store, choosing one on first use.

    Redis is used when enabled and answering a ping; otherwise sessions are
    kept in memory and a warning is logged.
    """
    global _session_store

    if _session_store is not None:
        return _session_store

    if config.redis.enabled:
        redis_client = redis.from_url(config.redis.url)
        try:
            await redis_client.ping()
        except (RedisError, OSError) as exc:
            logger.warning("Redis unavailable at %s (%s); using in-memory sessions", config.redis.url, exc)
        else:
            logger.info("Storing sessions in Redis at %s", config.redis.url)
            _session_store = RedisSessionStore(redis_client)
            return _session_store

    _session_store = InMemorySessionStore()
    return _session_store


def set_session_store(store: SessionStore | None) -> None:
    """Install a store (None makes the next lookup choose again)."""
    global _session_store
    _session_store = store


async def create_session(data: SessionData | None = None) -> str:
    """Store ``data`` under a new signed token and return the token."""
    store = await get_session_store()
    token = new_session_token()
    await store.set(token, data or {})
    return token


async def get_session(session_id: str) -> SessionData | None:
    store = await get_session_store()
    return await store.get(session_id)


async def update_session(session_id: str, data: SessionData) -> None:
    """Replace a session's data and restart its expiry."""
    store = await get_session_store()
    await store.set(session_id, data)


async def delete_session(session_id: str) -> None:
    store = await get_session_store()
    await store.delete(session_id)


def extract_session_id(token: str) -> str | None:
    """The raw id inside a signed token, or None if the token is not ours."""
    return get_session_signer().unsign(token)

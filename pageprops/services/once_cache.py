"""Once Cache: session-scoped memoization of once-prop values, keyed by dotted path.

Invariants:
    - Cache key is derived from (session_id, path); distinct paths never collide
    - A reset list naming the path (or "all") discards the stored entry before resolving
    - A hit returns the stored value without invoking the resolver
    - Sessionless requests always invoke the resolver and store nothing
    - A value that cannot be serialized is still returned; only the store step is skipped
    - At most one resolver runs per (session_id, path); concurrent requests await its
      future and each writes the shared result into its own session mapping

Design Decisions:
    - Values stored as JSON text in the session mapping: any MutableMapping-backed
      session (Starlette's cookie session, a dict in tests) can hold them
    - In-flight results live on the cache, not in the session: a cookie session is a
      per-request copy, so a value written by one request is invisible to another
      until the response cookie round-trips
    - A follower whose leader was cancelled takes over the resolution
"""

import asyncio
import json
import logging
from typing import Any, Awaitable, Callable, MutableMapping

from pageprops.core.domain_types import PropPath, SessionKey
from pageprops.core.errors import (
    CacheSerializationError, CacheUnavailableError, ErrorContext,
)
from pageprops.core.render_context import RenderContext

logger = logging.getLogger(__name__)

DEFAULT_PREFIX = "pageprops.once"


class OnceCache:
    """Single-flight get-or-resolve over the per-session key/value store."""

    def __init__(self, prefix: str = DEFAULT_PREFIX):
        self._prefix = prefix
        self._inflight: dict[tuple[SessionKey, PropPath], asyncio.Future] = {}

    def cache_key(self, session_id: SessionKey, path: PropPath) -> str:
        return f"{self._prefix}:{session_id}:{path}"

    async def get_or_resolve(
        self,
        path: PropPath,
        context: RenderContext,
        resolver: Callable[[], Awaitable[Any]],
    ) -> Any:
        """Return the cached value for path, resolving and storing it on a miss."""
        try:
            session = self._require_session(context)
        except CacheUnavailableError:
            logger.debug(
                f"No session, resolving once prop '{path}' uncached",
                extra={"prop_path": path, "component": context.component},
            )
            return await resolver()

        key = self.cache_key(context.session_id, path)
        if context.resets(path):
            if session.pop(key, None) is not None:
                logger.debug(
                    f"Once prop '{path}' reset",
                    extra={"prop_path": path, "session_id": context.session_id},
                )
        else:
            stored = session.get(key)
            if stored is not None:
                logger.debug(
                    f"Once prop '{path}' served from session",
                    extra={"prop_path": path, "session_id": context.session_id},
                )
                return json.loads(stored)

        value = await self._single_flight((context.session_id, path), resolver)
        self._store(session, key, value, path, context)
        return value

    async def _single_flight(
        self,
        flight: tuple[SessionKey, PropPath],
        resolver: Callable[[], Awaitable[Any]],
    ) -> Any:
        while (pending := self._inflight.get(flight)) is not None:
            try:
                return await asyncio.shield(pending)
            except asyncio.CancelledError:
                if not pending.cancelled():
                    raise
                logger.debug(
                    f"Once prop '{flight[1]}' leader cancelled, taking over",
                    extra={"prop_path": flight[1], "session_id": flight[0]},
                )

        future = asyncio.get_running_loop().create_future()
        self._inflight[flight] = future
        try:
            value = await resolver()
        except asyncio.CancelledError:
            future.cancel()
            raise
        except Exception as e:
            future.set_exception(e)
            # Retrieved here so a failure nobody awaited is not reported by asyncio.
            future.exception()
            raise
        else:
            future.set_result(value)
            return value
        finally:
            del self._inflight[flight]

    def _store(
        self,
        session: MutableMapping[str, Any],
        key: str,
        value: Any,
        path: PropPath,
        context: RenderContext,
    ) -> None:
        try:
            session[key] = self._serialize(value, path, context)
        except CacheSerializationError as e:
            logger.warning(
                e.message,
                extra={
                    "prop_path": path, "session_id": context.session_id,
                    "error_code": e.code,
                },
            )

    def _require_session(self, context: RenderContext) -> MutableMapping[str, Any]:
        if not context.has_session:
            raise CacheUnavailableError(ErrorContext(component=context.component))
        return context.session

    @staticmethod
    def _serialize(value: Any, path: PropPath, context: RenderContext) -> str:
        try:
            return json.dumps(value, ensure_ascii=False)
        except (TypeError, ValueError) as e:
            raise CacheSerializationError(
                str(e),
                ErrorContext(
                    component=context.component, prop_path=path,
                    session_id=context.session_id,
                ),
            )

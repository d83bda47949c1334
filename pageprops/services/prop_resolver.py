"""Prop Resolver: depth-first walk that turns a filtered prop tree into plain values.

Invariants:
    - Per node, in order: provider flattening, kind dispatch, recursion into maps
    - Every callback is invoked at most once per request
    - Exceptions raised by callbacks or providers propagate unchanged and abort the walk;
      siblings still running are cancelled before the exception leaves resolve()
    - Siblings resolve concurrently; the result keeps declaration order and equals
      what a sequential walk produces
    - At most max_concurrency callbacks run at once per request; the semaphore is held
      only while a callback runs, never across recursion
    - Once-capable nodes go through the OnceCache with their full dotted path
    - A PropertyProvider returning another PropertyProvider is unwrapped until the
      value is something else

Design Decisions:
    - Provider flattening returns a new dict per level instead of mutating the parent
    - Key collisions while splicing a PropertiesProvider: last write wins in declaration
      order, the key keeps the position of its first insertion
    - Merge/defer/scroll nodes spliced in by nested PropertiesProviders are recorded
      per level and handed to the pipeline through provided_metadata()
"""

import asyncio
import inspect
import logging
from functools import partial
from typing import Any, Callable, Mapping

from pageprops.core.domain_types import PropKind, PropPath
from pageprops.core.metadata import CollectedProp, collect_metadata, join_path
from pageprops.core.prop_nodes import PropNode, classify
from pageprops.core.render_context import PropertyContext, RenderContext
from pageprops.services.once_cache import OnceCache

logger = logging.getLogger(__name__)

_WRAPPED_KINDS = frozenset({
    PropKind.OPTIONAL, PropKind.DEFER, PropKind.ALWAYS,
    PropKind.MERGE, PropKind.SCROLL, PropKind.ONCE,
})


class PropResolver:
    """Resolves one request's prop tree. Create one per request."""

    def __init__(
        self,
        context: RenderContext,
        cache: OnceCache | None = None,
        max_concurrency: int = 8,
    ):
        self._context = context
        self._cache = cache
        self._semaphore = asyncio.Semaphore(max_concurrency)
        self._provided: dict[PropPath, list[CollectedProp]] = {}

    async def resolve(
        self, tree: Mapping[str, Any], parent: PropPath | None = None,
    ) -> dict[str, Any]:
        """Resolve every entry of tree; parent is the dotted path of tree itself."""
        flattened = await self.flatten_providers(tree, parent)
        keys = list(flattened)
        tasks = [
            asyncio.ensure_future(
                self._resolve_value(flattened[key], join_path(parent, key), flattened),
            )
            for key in keys
        ]
        try:
            values = await asyncio.gather(*tasks)
        except BaseException:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise
        return dict(zip(keys, values))

    async def flatten_providers(
        self, tree: Mapping[str, Any], parent: PropPath | None = None,
    ) -> dict[str, Any]:
        """Splice every PropertiesProvider's props into a new map at its position."""
        flattened: dict[str, Any] = {}
        for key, value in tree.items():
            node = classify(value)
            if node.kind is not PropKind.PROPERTIES_PROVIDER:
                flattened[key] = value
                continue
            provided = await self._invoke(
                node.payload.to_page_properties, join_path(parent, key), self._context,
            )
            if parent is not None:
                self._provided.setdefault(parent, []).extend(
                    collect_metadata(provided, parent).entries,
                )
            flattened.update(await self.flatten_providers(provided, parent))
        return flattened

    def provided_metadata(self) -> list[CollectedProp]:
        """Annotated nodes spliced in below the root, ordered by level path."""
        return [entry for level in sorted(self._provided) for entry in self._provided[level]]

    # ─── Per-node steps ──────────────────────────────────────────

    async def _resolve_value(
        self, value: Any, path: PropPath, siblings: Mapping[str, Any],
    ) -> Any:
        node = classify(value)

        while node.kind is PropKind.PROPERTY_PROVIDER:
            property_context = PropertyContext(path, siblings, self._context)
            value = await self._invoke(node.payload.to_page_property, path, property_context)
            node = classify(value)

        match node.kind:
            case PropKind.STATIC | PropKind.NESTED_MAP:
                resolved = node.payload
            case PropKind.SYNC_CALLBACK | PropKind.ASYNC_CALLBACK:
                resolved = await self._invoke(node.payload, path)
            case kind if kind in _WRAPPED_KINDS:
                fresh = partial(self._resolve_fresh, node, path)
                if node.caches_once and self._cache is not None:
                    return await self._cache.get_or_resolve(path, self._context, fresh)
                return await fresh()
            case PropKind.PROPERTIES_PROVIDER:
                # A property provider returned a properties provider.
                resolved = await self._invoke(
                    node.payload.to_page_properties, path, self._context,
                )

        return await self._descend(resolved, path)

    async def _resolve_fresh(self, node: PropNode, path: PropPath) -> Any:
        if node.is_callable:
            value = await self._invoke(node.payload, path)
        else:
            value = node.payload
        return await self._descend(value, path)

    async def _descend(self, value: Any, path: PropPath) -> Any:
        if isinstance(value, Mapping):
            return await self.resolve(value, path)
        return value

    async def _invoke(self, fn: Callable[..., Any], path: PropPath, *args: Any) -> Any:
        """Call a callback or provider once, awaiting it if it returns an awaitable."""
        async with self._semaphore:
            try:
                result = fn(*args)
                if inspect.isawaitable(result):
                    result = await result
            except Exception:
                logger.error(
                    f"Prop '{path}' failed to resolve",
                    extra={"prop_path": path, "component": self._context.component},
                )
                raise
        return result

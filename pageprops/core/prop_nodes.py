"""Prop Nodes: one tagged variant for every kind of prop a page can carry.

Invariants:
    - Exactly one PropKind per node; flags that do not apply to a kind are ignored, never an error
    - Nodes are frozen; the fluent modifiers (once(), merge(), deep_merge(), ...) return copies
    - ignore_first_load is derived from the kind (Optional, Defer), never stored
    - classify() maps any raw tree value to a node; it never invokes anything

Design Decisions:
    - Single dataclass with a kind discriminant instead of a class per prop type:
      the walker dispatches with one match statement
    - Callables stored in payload with is_callable=True; always()/merge()/scroll()
      accept either a value or a callback
"""

import inspect
import warnings
from dataclasses import dataclass, replace
from typing import Any, Callable, Mapping

from pageprops.core.domain_types import (
    IGNORE_FIRST_LOAD_KINDS, MERGEABLE_KINDS, ONCEABLE_KINDS, MergeDirection, PropKind,
)
from pageprops.core.errors import InvalidPropError
from pageprops.core.provider_protocols import PropertiesProvider, PropertyProvider


@dataclass(frozen=True)
class PropNode:
    """One entry of the prop tree."""
    kind: PropKind
    payload: Any = None
    is_callable: bool = False
    is_once: bool = False
    should_merge: bool = False
    is_deep_merge: bool = False
    merge_path: str | None = None
    is_only_on_partial: bool = False
    group: str | None = None
    wrapper: str | None = None
    is_prepend: bool = False
    metadata_provider: Callable[[Any], Any] | None = None

    # ─── Derived flags ───────────────────────────────────────────

    @property
    def ignore_first_load(self) -> bool:
        return self.kind in IGNORE_FIRST_LOAD_KINDS

    @property
    def caches_once(self) -> bool:
        """True when the resolved value goes through the session once cache."""
        if self.kind is PropKind.ONCE:
            return True
        return self.is_once and self.kind in ONCEABLE_KINDS

    @property
    def merges(self) -> bool:
        if self.kind in (PropKind.MERGE, PropKind.SCROLL):
            return True
        return self.kind in MERGEABLE_KINDS and self.should_merge

    @property
    def direction(self) -> MergeDirection:
        return MergeDirection.PREPEND if self.is_prepend else MergeDirection.APPEND

    # ─── Fluent modifiers ────────────────────────────────────────

    def once(self) -> "PropNode":
        return replace(self, is_once=True)

    def merge(self, path: str | None = None) -> "PropNode":
        return replace(self, should_merge=True, merge_path=path)

    def with_path(self, path: str) -> "PropNode":
        if not isinstance(path, str) or not path:
            raise InvalidPropError("Merge path must be a non-empty string", "path")
        return replace(self, should_merge=True, merge_path=path)

    def deep_merge(self) -> "PropNode":
        return replace(self, should_merge=True, is_deep_merge=True)

    def only_on_partial(self) -> "PropNode":
        return replace(self, is_only_on_partial=True)

    def append(self, path: str | None = None) -> "PropNode":
        """Scroll: new pages land after existing data, merged at path or the wrapper."""
        return replace(self, is_prepend=False, merge_path=path or self.wrapper)

    def prepend(self, path: str | None = None) -> "PropNode":
        return replace(self, is_prepend=True, merge_path=path or self.wrapper)


# ─── Constructors ────────────────────────────────────────────────

def _require_callable(callback: Any, kind: PropKind) -> None:
    if not callable(callback):
        raise InvalidPropError(
            f"{kind.value} prop requires a callable, got {type(callback).__name__}",
            "callback",
        )


def _value_or_callback(kind: PropKind, value: Any, **flags: Any) -> PropNode:
    return PropNode(kind, value, is_callable=_is_callback(value), **flags)


def optional(callback: Callable[[], Any]) -> PropNode:
    """Excluded from full loads; resolved only when a partial reload asks for it."""
    _require_callable(callback, PropKind.OPTIONAL)
    return PropNode(PropKind.OPTIONAL, callback, is_callable=True)


def lazy(callback: Callable[[], Any]) -> PropNode:
    warnings.warn(
        "lazy() is deprecated, use optional() instead",
        DeprecationWarning, stacklevel=2,
    )
    return optional(callback)


def defer(callback: Callable[[], Any], group: str | None = None) -> PropNode:
    """Excluded from full loads; the client fetches it afterwards, batched by group."""
    _require_callable(callback, PropKind.DEFER)
    return PropNode(PropKind.DEFER, callback, is_callable=True, group=group)


def always(value: Any) -> PropNode:
    """Survives every partial-reload filter."""
    return _value_or_callback(PropKind.ALWAYS, value)


def merge(value: Any) -> PropNode:
    return _value_or_callback(PropKind.MERGE, value, should_merge=True)


def scroll(
    value: Any,
    wrapper: str | None = None,
    metadata: Callable[[Any], Any] | None = None,
) -> PropNode:
    """Paginated merge prop. metadata receives the resolved value."""
    if wrapper is not None and not isinstance(wrapper, str):
        raise InvalidPropError("Scroll wrapper must be a string", "wrapper")
    if metadata is not None and not callable(metadata):
        raise InvalidPropError("Scroll metadata provider must be callable", "metadata")
    return _value_or_callback(
        PropKind.SCROLL, value,
        should_merge=True, wrapper=wrapper, metadata_provider=metadata,
    )


def once(callback: Callable[[], Any]) -> PropNode:
    """Resolved once per session and path, then served from the session cache."""
    _require_callable(callback, PropKind.ONCE)
    return PropNode(PropKind.ONCE, callback, is_callable=True, is_once=True)


# ─── Classification ──────────────────────────────────────────────

def _is_callback(value: Any) -> bool:
    return callable(value) and not isinstance(value, type)


def _is_async_callable(value: Any) -> bool:
    return inspect.iscoroutinefunction(value) or inspect.iscoroutinefunction(
        getattr(value, "__call__", None),
    )


def classify(value: Any) -> PropNode:
    """Wrap a raw tree value in the node describing how to resolve it."""
    if isinstance(value, PropNode):
        return value
    if isinstance(value, PropertiesProvider):
        return PropNode(PropKind.PROPERTIES_PROVIDER, value)
    if isinstance(value, PropertyProvider):
        return PropNode(PropKind.PROPERTY_PROVIDER, value)
    if isinstance(value, Mapping):
        return PropNode(PropKind.NESTED_MAP, value)
    if _is_callback(value):
        if _is_async_callable(value):
            return PropNode(PropKind.ASYNC_CALLBACK, value, is_callable=True)
        return PropNode(PropKind.SYNC_CALLBACK, value, is_callable=True)
    return PropNode(PropKind.STATIC, value)

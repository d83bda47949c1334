"""Metadata Collector: merge / defer / scroll annotations that match the final props.

Invariants:
    - collect_metadata() walks the pre-filter tree and never invokes a callback
    - Nested PropertiesProviders are only expanded during the walk; the walker collects
      their output with collect_metadata(provided, parent) and the pipeline folds it in
      with RawMetadata.extend()
    - reconcile_metadata() drops every collected path absent from the resolved props,
      so metadata never names a key the client will not receive
    - Dotted paths are built the same way as in the resolution walker
    - Scroll metadata providers receive the already-resolved value; the prop itself
      is never invoked a second time
    - deep_merge_props is a subset of merge_props

Design Decisions:
    - Two phases (collect, then reconcile) because filtering and resolution can remove
      paths that a single pre-resolution pass cannot anticipate
    - Merge paths named in the reset list are left out of merge_props: the client
      must replace a reset prop rather than merge into it
"""

from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping

from pageprops.core.domain_types import (
    DEFAULT_DEFER_GROUP, MERGEABLE_KINDS, PropKind, PropPath,
)
from pageprops.core.prop_nodes import PropNode, classify
from pageprops.core.render_context import RenderContext
from pageprops.core.scroll_metadata import metadata_to_dict


@dataclass(frozen=True)
class CollectedProp:
    path: PropPath
    node: PropNode


@dataclass(frozen=True)
class RawMetadata:
    """Every annotated node found in the pre-filter tree, in walk order."""
    entries: tuple[CollectedProp, ...] = ()

    def extend(self, entries: Iterable[CollectedProp]) -> "RawMetadata":
        """Append entries; a path seen again replaces the earlier entry in place."""
        by_path = {entry.path: entry for entry in self.entries}
        for entry in entries:
            by_path[entry.path] = entry
        return RawMetadata(tuple(by_path.values()))


@dataclass(frozen=True)
class PageMetadata:
    """Annotations sent alongside props."""
    merge_props: list[str] = field(default_factory=list)
    deep_merge_props: list[str] = field(default_factory=list)
    deferred_props: dict[str, list[str]] = field(default_factory=dict)
    scroll_props: dict[str, dict] = field(default_factory=dict)


def join_path(parent: str | None, key: str) -> PropPath:
    return PropPath(f"{parent}.{key}" if parent else key)


# ─── Phase 1: collect ────────────────────────────────────────────

def collect_metadata(tree: Mapping[str, Any], parent: str | None = None) -> RawMetadata:
    """Record every Merge, Defer and Scroll node reachable through nested maps.

    parent is the dotted path of tree itself when it is not the page root.
    """
    entries: list[CollectedProp] = []
    _collect(tree, parent, entries)
    return RawMetadata(tuple(entries))


def _collect(tree: Mapping[str, Any], parent: str | None, out: list[CollectedProp]) -> None:
    for key, value in tree.items():
        path = join_path(parent, key)
        node = classify(value)
        if node.kind is PropKind.NESTED_MAP:
            _collect(node.payload, path, out)
        elif node.kind in MERGEABLE_KINDS:
            out.append(CollectedProp(path, node))


# ─── Phase 2: reconcile ──────────────────────────────────────────

_MISSING = object()


def lookup_path(props: Mapping[str, Any], path: str) -> Any:
    """Value at a dotted path in resolved props, or _MISSING."""
    current: Any = props
    for segment in path.split("."):
        if not isinstance(current, Mapping) or segment not in current:
            return _MISSING
        current = current[segment]
    return current


def has_path(props: Mapping[str, Any], path: str) -> bool:
    return lookup_path(props, path) is not _MISSING


def reconcile_metadata(
    raw: RawMetadata, props: Mapping[str, Any], context: RenderContext,
) -> PageMetadata:
    """Intersect collected annotations with what survived filtering and resolution."""
    metadata = PageMetadata()
    for entry in raw.entries:
        value = lookup_path(props, entry.path)
        if value is _MISSING:
            continue
        node = entry.node
        if node.kind is PropKind.DEFER:
            group = node.group or DEFAULT_DEFER_GROUP
            metadata.deferred_props.setdefault(group, []).append(entry.path)
        if node.kind is PropKind.SCROLL:
            metadata.scroll_props[entry.path] = _scroll_entry(node, value, context)
        if _reports_merge(node, entry.path, context):
            merge_key = f"{entry.path}.{node.merge_path}" if node.merge_path else entry.path
            metadata.merge_props.append(merge_key)
            if node.is_deep_merge and node.kind is not PropKind.SCROLL:
                metadata.deep_merge_props.append(merge_key)
    return metadata


def _reports_merge(node: PropNode, path: str, context: RenderContext) -> bool:
    if not node.merges or context.resets(path):
        return False
    if node.kind is PropKind.SCROLL:
        return True
    return context.is_partial or not node.is_only_on_partial


def _scroll_entry(node: PropNode, value: Any, context: RenderContext) -> dict:
    direction = context.merge_intent or node.direction
    metadata = node.metadata_provider(value) if node.metadata_provider else None
    return {
        "wrapper": node.wrapper,
        "direction": direction.value,
        "metadata": metadata_to_dict(metadata),
    }

"""Resolved Page: plain prop values plus the annotations that describe them.

Invariants:
    - Built once per request by the page pipeline, never mutated afterwards
    - Every path in the metadata fields exists in props
"""

from dataclasses import dataclass, field
from typing import Any

from pageprops.core.metadata import PageMetadata


@dataclass(frozen=True)
class ResolvedPage:
    props: dict[str, Any]
    merge_props: list[str] = field(default_factory=list)
    deep_merge_props: list[str] = field(default_factory=list)
    deferred_props: dict[str, list[str]] = field(default_factory=dict)
    scroll_props: dict[str, dict] = field(default_factory=dict)

    @classmethod
    def from_parts(cls, props: dict[str, Any], metadata: PageMetadata) -> "ResolvedPage":
        return cls(
            props=props,
            merge_props=list(metadata.merge_props),
            deep_merge_props=list(metadata.deep_merge_props),
            deferred_props={g: list(paths) for g, paths in metadata.deferred_props.items()},
            scroll_props=dict(metadata.scroll_props),
        )

    def to_dict(self) -> dict:
        """camelCase shape handed to the page envelope builder."""
        return {
            "props": self.props,
            "mergeProps": self.merge_props,
            "deepMergeProps": self.deep_merge_props,
            "deferredProps": self.deferred_props,
            "scrollProps": self.scroll_props,
        }

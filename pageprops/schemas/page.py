"""Page Schemas: pydantic models for the page object sent to the client.

Invariants:
    - JSON keys are camelCase (mergeProps, deferredProps, clearHistory, ...)
    - component, props, url and version are always present
    - Empty metadata collections and false history flags are omitted from to_wire()
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from pageprops.core.domain_types import MergeDirection


class ScrollPropEntry(BaseModel):
    """Per-path scroll annotation."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    wrapper: str | None = None
    direction: MergeDirection = MergeDirection.APPEND
    metadata: dict[str, Any] | None = None


class PageEnvelope(BaseModel):
    """Page object: resolved props plus merge/defer/scroll metadata."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    component: str
    props: dict[str, Any]
    url: str = ""
    version: str = ""
    merge_props: list[str] = Field(default_factory=list)
    deep_merge_props: list[str] = Field(default_factory=list)
    deferred_props: dict[str, list[str]] = Field(default_factory=dict)
    scroll_props: dict[str, ScrollPropEntry] = Field(default_factory=dict)
    clear_history: bool = False
    encrypt_history: bool = False

    def to_wire(self) -> dict:
        """JSON-safe dict with empty optional members dropped."""
        omitted = {
            name for name in (
                "merge_props", "deep_merge_props", "deferred_props",
                "scroll_props", "clear_history", "encrypt_history",
            )
            if not getattr(self, name)
        }
        return self.model_dump(by_alias=True, mode="json", exclude=omitted)

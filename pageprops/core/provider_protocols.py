"""Boundary Protocols: contracts for objects that supply props or scroll metadata.

Invariants:
    - Core NEVER imports concrete providers; application code implements these
    - Provider methods may return a plain value or an awaitable; the walker awaits either
    - PropertiesProvider output is spliced into the parent map, PropertyProvider
      output replaces the node at the same key

Design Decisions:
    - Protocol over ABC: structural subtyping, no inheritance hierarchy
    - runtime_checkable so classify() can recognize providers by shape
"""

from typing import TYPE_CHECKING, Any, Awaitable, Mapping, Protocol, runtime_checkable

if TYPE_CHECKING:
    from pageprops.core.render_context import PropertyContext, RenderContext


@runtime_checkable
class PropertiesProvider(Protocol):
    """Supplies several props at once, spliced in place of its own key."""
    def to_page_properties(
        self, context: "RenderContext",
    ) -> Mapping[str, Any] | Awaitable[Mapping[str, Any]]: ...


@runtime_checkable
class PropertyProvider(Protocol):
    """Supplies the value for the key it is stored under."""
    def to_page_property(self, context: "PropertyContext") -> Any: ...


@runtime_checkable
class ScrollMetadataProvider(Protocol):
    """Pagination facts attached to a scroll prop."""

    @property
    def page_name(self) -> str: ...

    @property
    def previous_page(self) -> Any: ...

    @property
    def next_page(self) -> Any: ...

    @property
    def current_page(self) -> Any: ...

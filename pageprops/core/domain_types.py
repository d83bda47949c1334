"""Domain Types: rich types that replace bare strings across the prop engine.

Invariants:
    - Every prop variant is one PropKind member; the walker matches on it exhaustively
    - Dotted paths are PropPath, never bare str, inside the engine
    - All valid states encoded as Enums, no raw string matching

Design Decisions:
    - NewType over wrapper classes: zero runtime cost, full type-checker support
    - str Enums: serialize to JSON without custom encoders
"""

from enum import Enum
from typing import NewType


# ─── Identity Types ──────────────────────────────────────────────

PropPath = NewType("PropPath", str)       # "user.permissions"
SessionKey = NewType("SessionKey", str)   # opaque, partitions the once cache


# ─── Enums ───────────────────────────────────────────────────────

class PropKind(str, Enum):
    """Closed set of prop variants."""
    STATIC = "static"
    SYNC_CALLBACK = "sync_callback"
    ASYNC_CALLBACK = "async_callback"
    OPTIONAL = "optional"
    DEFER = "defer"
    ALWAYS = "always"
    MERGE = "merge"
    SCROLL = "scroll"
    ONCE = "once"
    PROPERTY_PROVIDER = "property_provider"
    PROPERTIES_PROVIDER = "properties_provider"
    NESTED_MAP = "nested_map"


class MergeDirection(str, Enum):
    """Where a scroll page lands relative to data the client already holds."""
    APPEND = "append"
    PREPEND = "prepend"


# Kinds left out of a full (non-partial) page load.
IGNORE_FIRST_LOAD_KINDS = frozenset({PropKind.OPTIONAL, PropKind.DEFER})

# Kinds whose is_once flag may be switched on by the caller.
ONCEABLE_KINDS = frozenset({
    PropKind.OPTIONAL, PropKind.DEFER, PropKind.MERGE, PropKind.ONCE,
})

# Kinds that carry merge / deep-merge / only-on-partial flags.
MERGEABLE_KINDS = frozenset({PropKind.MERGE, PropKind.DEFER, PropKind.SCROLL})

RESET_ALL = "all"
DEFAULT_DEFER_GROUP = "default"

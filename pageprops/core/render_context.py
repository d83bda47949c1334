"""Render Context: immutable per-request facts consumed by every resolution pass.

Invariants:
    - RenderContext is built once per request by build_render_context() and never mutated
    - is_partial is True only for a protocol request whose partial-component header
      names the component actually being rendered (a mismatch is a full load, not an error)
    - Key lists are trimmed, empty entries dropped, order preserved
    - A reset header of exactly "all" yields ("all",)

Design Decisions:
    - Frozen dataclass: the filter, walker, cache and metadata passes share one
      read-only instance
    - The session handle is any MutableMapping (a Starlette session dict qualifies);
      the opaque session id lives inside it so one browser session keeps one id
"""

from dataclasses import dataclass
from typing import Any, Mapping, MutableMapping
from uuid import uuid4

from pageprops.core.domain_types import MergeDirection, PropPath, RESET_ALL, SessionKey


# ─── Protocol Headers ────────────────────────────────────────────

HEADER_INERTIA = "X-Inertia"
HEADER_VERSION = "X-Inertia-Version"
HEADER_PARTIAL_DATA = "X-Inertia-Partial-Data"
HEADER_PARTIAL_COMPONENT = "X-Inertia-Partial-Component"
HEADER_PARTIAL_EXCEPT = "X-Inertia-Partial-Except"
HEADER_RESET = "X-Inertia-Reset"
HEADER_MERGE_INTENT = "X-Inertia-Infinite-Scroll-Merge-Intent"

DEFAULT_SESSION_ID_KEY = "pageprops.session_id"


@dataclass(frozen=True)
class RenderContext:
    """Per-request facts. Built once, read by filter, walker, cache and metadata."""
    component: str
    request: Any = None
    is_protocol_request: bool = False
    is_partial: bool = False
    only_keys: tuple[str, ...] = ()
    except_keys: tuple[str, ...] = ()
    reset_keys: tuple[str, ...] = ()
    session: MutableMapping[str, Any] | None = None
    session_id: SessionKey | None = None
    merge_intent: MergeDirection | None = None
    version: str | None = None

    @property
    def has_session(self) -> bool:
        return self.session is not None and self.session_id is not None

    @property
    def resets_all(self) -> bool:
        return RESET_ALL in self.reset_keys

    def resets(self, path: str) -> bool:
        """True when the reset list names this path or is "all"."""
        return self.resets_all or path in self.reset_keys


@dataclass(frozen=True)
class PropertyContext:
    """What a PropertyProvider sees: its own dotted path, its siblings, the request."""
    key: PropPath
    props: Mapping[str, Any]
    render_context: RenderContext

    @property
    def request(self) -> Any:
        return self.render_context.request


# ─── Header Parsing ──────────────────────────────────────────────

def parse_key_list(value: str | None) -> tuple[str, ...]:
    """Split a comma-separated header value. Empty or missing -> ()."""
    if not value:
        return ()
    return tuple(part.strip() for part in value.split(",") if part.strip())


def parse_reset_list(value: str | None) -> tuple[str, ...]:
    if value is not None and value.strip() == RESET_ALL:
        return (RESET_ALL,)
    return parse_key_list(value)


def parse_merge_intent(value: str | None) -> MergeDirection | None:
    """append/prepend, case-insensitive. Anything else is ignored."""
    if not value:
        return None
    try:
        return MergeDirection(value.strip().lower())
    except ValueError:
        return None


def ensure_session_id(
    session: MutableMapping[str, Any] | None,
    key: str = DEFAULT_SESSION_ID_KEY,
) -> SessionKey | None:
    """Read the opaque session id, generating and storing one on first use."""
    if session is None:
        return None
    session_id = session.get(key)
    if not session_id:
        session_id = uuid4().hex
        session[key] = session_id
    return SessionKey(str(session_id))


def build_render_context(
    component: str,
    headers: Mapping[str, str],
    session: MutableMapping[str, Any] | None = None,
    request: Any = None,
    session_id_key: str = DEFAULT_SESSION_ID_KEY,
) -> RenderContext:
    """Derive the RenderContext from raw request headers and the session handle."""
    lowered = {name.lower(): value for name, value in headers.items()}

    def header(name: str) -> str | None:
        return lowered.get(name.lower())

    is_protocol = (header(HEADER_INERTIA) or "").strip().lower() == "true"
    partial_component = (header(HEADER_PARTIAL_COMPONENT) or "").strip()
    is_partial = is_protocol and bool(partial_component) and partial_component == component

    return RenderContext(
        component=component,
        request=request,
        is_protocol_request=is_protocol,
        is_partial=is_partial,
        only_keys=parse_key_list(header(HEADER_PARTIAL_DATA)),
        except_keys=parse_key_list(header(HEADER_PARTIAL_EXCEPT)),
        reset_keys=parse_reset_list(header(HEADER_RESET)),
        session=session,
        session_id=ensure_session_id(session, session_id_key),
        merge_intent=parse_merge_intent(header(HEADER_MERGE_INTENT)),
        version=header(HEADER_VERSION),
    )

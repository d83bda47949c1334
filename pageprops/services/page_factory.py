"""Page Factory: merges shared props into a page and builds the page envelope.

Invariants:
    - Page props override shared props on key collision
    - The version is either a fixed string or a zero-arg callable evaluated per render
    - A URL resolver, when set, wins over the url passed to render()
    - One factory per request; the OnceCache it is given is process-wide

Design Decisions:
    - Shared props live on the factory rather than in module state, so each request
      starts from what its middleware shared
"""

from typing import Any, Callable, Mapping

from pageprops.config import Settings, get_settings
from pageprops.core.render_context import RenderContext
from pageprops.schemas.page import PageEnvelope
from pageprops.services.once_cache import OnceCache
from pageprops.services.page_pipeline import resolve_page


class PageFactory:
    """Shared props, asset version and history flags around resolve_page()."""

    def __init__(self, cache: OnceCache | None = None, settings: Settings | None = None):
        settings = settings or get_settings()
        self._cache = cache or OnceCache(settings.once_cache_prefix)
        self._max_concurrency = settings.max_concurrency
        self._encrypt_history = settings.encrypt_history
        self._clear_history = False
        self._shared: dict[str, Any] = {}
        self._version: str | Callable[[], str] = ""
        self._url_resolver: Callable[[], str] | None = None

    # ─── Shared props ────────────────────────────────────────────

    def share(self, key: str, value: Any) -> None:
        self._shared[key] = value

    def share_many(self, props: Mapping[str, Any]) -> None:
        self._shared.update(props)

    def get_shared(self, key: str | None = None, default: Any = None) -> Any:
        """All shared props when key is None, else one value or default."""
        if key is None:
            return dict(self._shared)
        return self._shared.get(key, default)

    def flush_shared(self) -> None:
        self._shared.clear()

    # ─── Version, URL, history ───────────────────────────────────

    def set_version(self, version: str | Callable[[], str]) -> None:
        self._version = version

    def get_version(self) -> str:
        if callable(self._version):
            return self._version()
        return self._version

    def resolve_url_using(self, resolver: Callable[[], str] | None) -> None:
        self._url_resolver = resolver

    def encrypt_history(self, encrypt: bool = True) -> None:
        self._encrypt_history = encrypt

    def clear_history(self) -> None:
        self._clear_history = True

    # ─── Rendering ───────────────────────────────────────────────

    async def render(
        self,
        context: RenderContext,
        props: Mapping[str, Any] | None = None,
        url: str = "",
    ) -> PageEnvelope:
        """Resolve shared + page props for context.component into an envelope."""
        tree = {**self._shared, **(props or {})}
        page = await resolve_page(tree, context, self._cache, self._max_concurrency)
        return PageEnvelope(
            component=context.component,
            props=page.props,
            url=self._url_resolver() if self._url_resolver else url,
            version=self.get_version(),
            merge_props=page.merge_props,
            deep_merge_props=page.deep_merge_props,
            deferred_props=page.deferred_props,
            scroll_props=page.scroll_props,
            clear_history=self._clear_history,
            encrypt_history=self._encrypt_history,
        )

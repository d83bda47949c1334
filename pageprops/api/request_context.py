"""Request Context: RenderContext and PageFactory dependencies for FastAPI routes.

Invariants:
    - The Starlette session is used only when SessionMiddleware put one in the scope;
      otherwise the request is sessionless and once props resolve uncached
    - One OnceCache per process (get_once_cache is cached), one PageFactory per request
"""

from functools import lru_cache

from fastapi import Request

from pageprops.config import get_settings
from pageprops.core.render_context import RenderContext, build_render_context
from pageprops.services.once_cache import OnceCache
from pageprops.services.page_factory import PageFactory


@lru_cache
def get_once_cache() -> OnceCache:
    return OnceCache(get_settings().once_cache_prefix)


def render_context_from_request(request: Request, component: str) -> RenderContext:
    """Read protocol headers and the session handle off a Starlette request."""
    return build_render_context(
        component,
        request.headers,
        session=request.scope.get("session"),
        request=request,
        session_id_key=get_settings().session_id_key,
    )


def get_page_factory() -> PageFactory:
    """FastAPI dependency: a fresh factory backed by the process-wide once cache."""
    return PageFactory(cache=get_once_cache())

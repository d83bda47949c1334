"""Root conftest: shared test configuration and RenderContext helpers."""

import os

import pytest

from pageprops.core.render_context import RenderContext, build_render_context

# Keep test output readable; settings are read from the environment
os.environ.setdefault("PAGEPROPS_LOG_FORMAT", "text")


@pytest.fixture
def full_load():
    """Non-partial context for component 'Dashboard', no session."""
    return RenderContext(component="Dashboard")


@pytest.fixture
def make_context():
    """Build a RenderContext from header kwargs, the way the HTTP glue does.

    partial=True sends the protocol marker plus a matching partial-component header.
    """
    def _make(
        only: str | None = None,
        except_: str | None = None,
        reset: str | None = None,
        partial: bool = True,
        session: dict | None = None,
        component: str = "Dashboard",
        merge_intent: str | None = None,
    ) -> RenderContext:
        headers = {}
        if partial:
            headers["X-Inertia"] = "true"
            headers["X-Inertia-Partial-Component"] = component
        if only is not None:
            headers["X-Inertia-Partial-Data"] = only
        if except_ is not None:
            headers["X-Inertia-Partial-Except"] = except_
        if reset is not None:
            headers["X-Inertia-Reset"] = reset
        if merge_intent is not None:
            headers["X-Inertia-Infinite-Scroll-Merge-Intent"] = merge_intent
        return build_render_context(component, headers, session=session)
    return _make

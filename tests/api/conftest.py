"""API test fixtures: a small FastAPI app wired with the page glue.

Invariants:
    - Sessions come from an in-memory dict placed in scope["session"], standing in
      for SessionMiddleware; the "X-Test-Session" header picks which one
    - Requests without that header are sessionless
"""

import pytest
from fastapi import Depends, FastAPI, Query, Request
from httpx import ASGITransport, AsyncClient

from pageprops.api.error_handlers import register_error_handlers
from pageprops.api.page_response import page_response
from pageprops.api.request_context import get_page_factory, render_context_from_request
from pageprops.core.errors import InvalidPropError
from pageprops.core.prop_nodes import defer, merge, once
from pageprops.services.page_factory import PageFactory


class FakeSessionMiddleware:
    def __init__(self, app, store: dict):
        self.app = app
        self.store = store

    async def __call__(self, scope, receive, send):
        if scope["type"] == "http":
            headers = dict(scope["headers"])
            name = headers.get(b"x-test-session")
            if name is not None:
                scope["session"] = self.store.setdefault(name.decode(), {})
        await self.app(scope, receive, send)


@pytest.fixture
def calls():
    return {"translations": 0}


@pytest.fixture
def sessions():
    return {}


@pytest.fixture
def app(calls, sessions):
    app = FastAPI()
    register_error_handlers(app)
    app.add_middleware(FakeSessionMiddleware, store=sessions)

    def translations():
        calls["translations"] += 1
        return {"hello": "Hello"}

    @app.get("/dashboard")
    async def dashboard(request: Request, factory: PageFactory = Depends(get_page_factory)):
        factory.share("appName", "Demo")
        factory.set_version("v1")
        context = render_context_from_request(request, "Dashboard")
        envelope = await factory.render(context, {
            "user": {"name": "John"},
            "stats": merge(lambda: [1, 2]),
            "activity": defer(lambda: ["login"]),
            "translations": once(translations),
        }, url=str(request.url.path))
        return page_response(envelope)

    @app.get("/broken")
    async def broken(request: Request, factory: PageFactory = Depends(get_page_factory)):
        def fail():
            raise RuntimeError("database down")
        envelope = await factory.render(render_context_from_request(request, "Broken"), {"x": fail})
        return page_response(envelope)

    @app.get("/users")
    async def users(
        request: Request,
        page: int = Query(ge=1),
        factory: PageFactory = Depends(get_page_factory),
    ):
        envelope = await factory.render(
            render_context_from_request(request, "Users/Index"), {"page": page},
        )
        return page_response(envelope)

    @app.get("/invalid")
    async def invalid():
        raise InvalidPropError("Scroll wrapper must be a string", "wrapper")

    return app


@pytest.fixture
async def client(app):
    async with AsyncClient(
        transport=ASGITransport(app=app, raise_app_exceptions=False),
        base_url="http://test",
    ) as c:
        yield c

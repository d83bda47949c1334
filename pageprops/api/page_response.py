"""Page Response: wraps a PageEnvelope in a JSON response with protocol headers.

Invariants:
    - Every page response carries Vary: X-Inertia
    - X-Inertia: true is set so the client treats the body as a page object
"""

from fastapi.responses import JSONResponse

from pageprops.core.render_context import HEADER_INERTIA
from pageprops.schemas.page import PageEnvelope


def page_response(envelope: PageEnvelope, status_code: int = 200) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=envelope.to_wire(),
        headers={HEADER_INERTIA: "true", "Vary": HEADER_INERTIA},
    )

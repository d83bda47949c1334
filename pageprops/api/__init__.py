"""API Layer: FastAPI glue around the page factory.

Invariants:
    - Builds RenderContext from request headers and the Starlette session, nothing more
    - Error handlers never leak internal details
"""

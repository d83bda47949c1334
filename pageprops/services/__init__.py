"""Services Layer: async resolution walker, once cache, page pipeline and factory.

Invariants:
    - Prop callbacks and providers are invoked only here; core calls nothing but
      scroll metadata providers
    - No module here imports FastAPI or Starlette
"""

"""Core Layer: pure prop-tree logic, no IO, no async, no framework imports.

Invariants:
    - No module in core/ imports from services/, api/, schemas/ or infrastructure/
    - Apart from session id generation, every function here is deterministic

Design Decisions:
    - Functional core separated from the async shell in services/ (the walker
      and the once cache own every callback invocation)
"""

"""Service test fixtures: a fresh OnceCache and a counting resolver.

Invariants:
    - Every test gets its own OnceCache (no lock or prefix sharing across tests)
    - A plain dict stands in for the session store
"""

import pytest

from pageprops.services.once_cache import OnceCache


@pytest.fixture
def cache():
    return OnceCache()


@pytest.fixture
def counter():
    """Callable returning {"hello": "Hello"} and counting its invocations."""
    calls = {"count": 0}

    def translations():
        calls["count"] += 1
        return {"hello": "Hello"}

    translations.calls = calls
    return translations

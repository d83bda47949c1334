"""Partial Selection Filter: decides which top-level props survive before resolution.

Invariants:
    - Only top-level keys are pruned; nested maps pass through untouched
    - Full load: Optional and Defer props are dropped, everything else kept
    - Partial load: the only-list wins over the except-list; neither list keeps everything
    - Always props survive every rule above
    - Never raises; an empty result is valid
    - Idempotent: filter_props(filter_props(t, c), c) == filter_props(t, c)
    - Survivors keep their declaration order
"""

import logging
from typing import Any, Mapping

from pageprops.core.domain_types import PropKind
from pageprops.core.prop_nodes import classify
from pageprops.core.render_context import RenderContext

logger = logging.getLogger(__name__)


def _is_always(value: Any) -> bool:
    return classify(value).kind is PropKind.ALWAYS


def _keep_on_full_load(value: Any) -> bool:
    return not classify(value).ignore_first_load


def filter_props(tree: Mapping[str, Any], context: RenderContext) -> dict[str, Any]:
    """Return the subset of top-level props this request should resolve."""
    if not context.is_partial:
        return {k: v for k, v in tree.items() if _keep_on_full_load(v)}

    if context.only_keys:
        selected = set(context.only_keys)
        kept = {k: v for k, v in tree.items() if k in selected or _is_always(v)}
        logger.debug(
            f"Partial reload keeps {sorted(kept)} (only={list(context.only_keys)})",
            extra={"component": context.component},
        )
        return kept

    if context.except_keys:
        excluded = set(context.except_keys)
        kept = {k: v for k, v in tree.items() if k not in excluded or _is_always(v)}
        logger.debug(
            f"Partial reload keeps {sorted(kept)} (except={list(context.except_keys)})",
            extra={"component": context.component},
        )
        return kept

    return dict(tree)

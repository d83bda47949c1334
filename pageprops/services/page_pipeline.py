"""Page Pipeline: filter, resolve and annotate one request's props.

Invariants:
    - Order is fixed: top-level provider expansion, metadata collection, partial
      filtering, resolution, metadata reconciliation
    - Top-level PropertiesProviders are expanded before filtering so the only/except
      lists can name the keys they supply
    - Annotations from providers nested below the root are gathered by the walker and
      folded into the collected metadata before reconciliation
    - Any exception from a prop aborts the whole page; no partial ResolvedPage is built
"""

import logging
from typing import Any, Mapping

from pageprops.core.metadata import collect_metadata, reconcile_metadata
from pageprops.core.partial_filter import filter_props
from pageprops.core.render_context import RenderContext
from pageprops.core.resolved_page import ResolvedPage
from pageprops.services.once_cache import OnceCache
from pageprops.services.prop_resolver import PropResolver

logger = logging.getLogger(__name__)


async def resolve_page(
    tree: Mapping[str, Any],
    context: RenderContext,
    cache: OnceCache | None = None,
    max_concurrency: int = 8,
) -> ResolvedPage:
    """Run the full prop pipeline for one request."""
    resolver = PropResolver(context, cache, max_concurrency)
    expanded = await resolver.flatten_providers(tree)
    raw = collect_metadata(expanded)
    filtered = filter_props(expanded, context)
    props = await resolver.resolve(filtered)
    raw = raw.extend(resolver.provided_metadata())
    metadata = reconcile_metadata(raw, props, context)
    logger.debug(
        f"Resolved {len(props)} props for '{context.component}' "
        f"(partial={context.is_partial})",
        extra={"component": context.component, "session_id": context.session_id},
    )
    return ResolvedPage.from_parts(props, metadata)

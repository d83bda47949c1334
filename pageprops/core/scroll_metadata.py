"""Scroll Metadata: pagination facts a scroll prop reports to the client.

Invariants:
    - previous_page is None on the first page, next_page is None on the last
    - to_dict() keys are camelCase (pageName, previousPage, nextPage, currentPage)
"""

from dataclasses import dataclass
from typing import Any, Mapping

from pageprops.core.provider_protocols import ScrollMetadataProvider


@dataclass(frozen=True)
class ScrollMetadata:
    """Concrete ScrollMetadataProvider for page-number and cursor pagination."""
    page_name: str
    current_page: Any
    previous_page: Any = None
    next_page: Any = None

    @classmethod
    def from_page_numbers(
        cls, current_page: int, total_pages: int, page_name: str = "page",
    ) -> "ScrollMetadata":
        return cls(
            page_name=page_name,
            current_page=current_page,
            previous_page=current_page - 1 if current_page > 1 else None,
            next_page=current_page + 1 if current_page < total_pages else None,
        )

    @classmethod
    def from_cursors(
        cls,
        current_cursor: str | None,
        previous_cursor: str | None = None,
        next_cursor: str | None = None,
        cursor_name: str = "cursor",
    ) -> "ScrollMetadata":
        return cls(cursor_name, current_cursor, previous_cursor, next_cursor)

    @classmethod
    def final(cls, current_page: int, page_name: str = "page") -> "ScrollMetadata":
        """Last page: no next page, whatever the total."""
        return cls(
            page_name=page_name,
            current_page=current_page,
            previous_page=current_page - 1 if current_page > 1 else None,
        )

    def to_dict(self) -> dict:
        return metadata_to_dict(self)


def metadata_to_dict(metadata: ScrollMetadataProvider | Mapping | None) -> dict | None:
    """Normalize whatever a metadata provider returned into the wire shape."""
    if metadata is None:
        return None
    if isinstance(metadata, Mapping):
        return dict(metadata)
    return {
        "pageName": metadata.page_name,
        "previousPage": metadata.previous_page,
        "nextPage": metadata.next_page,
        "currentPage": metadata.current_page,
    }

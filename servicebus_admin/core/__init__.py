from servicebus_admin.core.paging import (
    ContinuationToken,
    Page,
    PageFetcher,
    PagedSequence,
    iter_items,
    iter_pages,
    validate_continuation_token,
)

__all__ = [
    "ContinuationToken",
    "Page",
    "PageFetcher",
    "PagedSequence",
    "iter_items",
    "iter_pages",
    "validate_continuation_token",
]

"""Page/limit handling shared by the list endpoints."""
import math
import re
from dataclasses import asdict, dataclass
from typing import Any, Dict, Optional

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 10
MAX_LIMIT = 100

_LEADING_INT = re.compile(r"\s*([+-]?\d+)")


def _parse_positive_int(raw: Any, fallback: int) -> int:
    """Leading-integer parse of a query value; anything unusable gives ``fallback``."""
    if raw is None:
        return fallback
    match = _LEADING_INT.match(str(raw))
    if match is None:
        return fallback
    value = int(match.group(1))
    return value if value >= 1 else fallback


@dataclass(frozen=True)
class PageRequest:
    """A validated page number and page size."""

    page: int = DEFAULT_PAGE
    limit: int = DEFAULT_LIMIT

    @classmethod
    def from_query(
        cls,
        page: Optional[Any] = None,
        limit: Optional[Any] = None,
        default_limit: int = DEFAULT_LIMIT,
        max_limit: int = MAX_LIMIT,
    ) -> "PageRequest":
        """
        Build a page request from raw query-string values.

        Absent, non-numeric or non-positive values fall back to page 1 and
        ``default_limit``. ``limit`` is capped at ``max_limit``.

        Args:
            page: Raw ``page`` query value
            limit: Raw ``limit`` query value
            default_limit: Page size used when ``limit`` is unusable
            max_limit: Largest page size served

        Returns:
            PageRequest: Normalized request
        """
        parsed_page = _parse_positive_int(page, DEFAULT_PAGE)
        parsed_limit = min(_parse_positive_int(limit, default_limit), max_limit)
        return cls(page=parsed_page, limit=parsed_limit)

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


@dataclass(frozen=True)
class Pagination:
    """Pagination metadata returned next to list results."""

    page: int
    limit: int
    total: int
    totalPages: int
    hasMore: bool

    @classmethod
    def for_page(cls, request: PageRequest, total: int) -> "Pagination":
        """Metadata where ``hasMore`` is ``page < totalPages``."""
        total_pages = math.ceil(total / request.limit)
        return cls(
            page=request.page,
            limit=request.limit,
            total=total,
            totalPages=total_pages,
            hasMore=request.page < total_pages,
        )

    @classmethod
    def for_window(cls, request: PageRequest, total: int, returned: int) -> "Pagination":
        """Metadata where ``hasMore`` is ``offset + returned < total``."""
        return cls(
            page=request.page,
            limit=request.limit,
            total=total,
            totalPages=math.ceil(total / request.limit),
            hasMore=request.offset + returned < total,
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

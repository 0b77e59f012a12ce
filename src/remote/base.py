"""Contract for paginated catalog query services."""

from typing import Optional, Protocol
from pathlib import Path
import sys

PROJECT_ROOT = Path(__file__).parent.parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from src.catalog.models import Page
from src.query.descriptor import QueryDescriptor


class RemoteQueryError(Exception):
    """A catalog query failed; callers may retry."""

    def __init__(self, message: str, status: Optional[int] = None, retryable: bool = True):
        super().__init__(message)
        self.message = message
        self.status = status
        self.retryable = retryable

    def __repr__(self) -> str:
        return f"RemoteQueryError({self.message!r}, status={self.status!r})"


class RemoteQueryService(Protocol):
    """Runs one page of a QueryDescriptor."""

    async def fetch(self, query: QueryDescriptor) -> Page:
        """
        Fetch the rows selected by ``query.limit``/``query.offset``.

        Raises:
            RemoteQueryError: On backend or transport failure.
        """
        ...


def page_number(query: QueryDescriptor) -> int:
    """1-based page number a paginated descriptor refers to."""
    if not query.limit:
        return 1
    return query.offset // query.limit + 1

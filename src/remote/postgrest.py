"""
Hosted catalog client (PostgREST / Supabase REST).

Translates QueryDescriptors into PostgREST query parameters:

    new_product=eq.true
    or=(room_type.ilike.*living*,room_type.ilike.*bedroom*)
    current_price=gte.0&current_price=lte.500
    order=current_price.desc.nullslast
    limit=10&offset=20

The total row count comes back in the ``Content-Range`` header when the
request carries ``Prefer: count=exact``.
"""

import re
from typing import Any, Dict, List, Optional, Tuple
from pathlib import Path
import sys

import httpx
from tenacity import (
    AsyncRetrying,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

PROJECT_ROOT = Path(__file__).parent.parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from config import config
from config.logging_config import get_logger
from src.catalog.models import Page, Product
from src.query.descriptor import LIKE_ESCAPE, QueryDescriptor
from src.remote.base import RemoteQueryError, page_number

logger = get_logger("remote.postgrest")

# Characters that force a PostgREST value to be double-quoted
_RESERVED = re.compile(r'[,.:()"\\\s]')
_CONTENT_RANGE = re.compile(r"^\s*(?:\d+-\d+|\*)/(\d+|\*)\s*$")


def quote_value(value: str) -> str:
    """Quote a value for use inside a PostgREST logic tree."""
    if _RESERVED.search(value):
        escaped = value.replace("\\", "\\\\").replace('"', '\\"')
        return f'"{escaped}"'
    return value


def _literal(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _like(pattern: str) -> str:
    """
    Rewrite a backslash-escaped LIKE pattern for PostgREST.

    PostgREST turns every ``*`` into ``%`` before Postgres sees the pattern,
    so a literal ``*`` cannot be expressed; it becomes the single-character
    wildcard ``_``. Escaped ``\\%``, ``\\_`` and ``\\\\`` pass through, since
    backslash is Postgres' default LIKE escape.
    """
    out = []
    chars = iter(pattern)
    for ch in chars:
        if ch == LIKE_ESCAPE:
            out.append(ch + next(chars, LIKE_ESCAPE))
        elif ch == "%":
            out.append("*")
        elif ch == "*":
            out.append("_")
        else:
            out.append(ch)
    return "".join(out)


def build_postgrest_params(query: QueryDescriptor) -> List[Tuple[str, str]]:
    """
    PostgREST query parameters for a descriptor.

    Args:
        query: Descriptor to translate.

    Returns:
        Ordered (name, value) pairs; names repeat for stacked filters.
    """
    params: List[Tuple[str, str]] = [("select", "*")]

    for clause in query.equals:
        params.append((clause.column, f"eq.{_literal(clause.value)}"))

    for group in query.pattern_groups:
        conditions = [
            f"{c.column}.ilike.{quote_value(_like(c.pattern))}" for c in group.clauses
        ]
        params.append(("or", f"({','.join(conditions)})"))

    if query.price_range:
        column = query.price_range.column
        params.append((column, f"gte.{_literal(query.price_range.lower)}"))
        if query.price_range.upper is not None:
            params.append((column, f"lte.{_literal(query.price_range.upper)}"))

    if query.search:
        pattern = quote_value(_like(query.search.pattern))
        conditions = [f"{column}.ilike.{pattern}" for column in query.search.columns]
        params.append(("or", f"({','.join(conditions)})"))

    for column in query.not_null:
        params.append((column, "not.is.null"))

    order = query.order
    direction = "desc" if order.descending else "asc"
    nulls = "nullslast" if order.nulls_last else "nullsfirst"
    params.append(("order", f"{order.column}.{direction}.{nulls}"))

    if query.limit is not None:
        params.append(("limit", str(query.limit)))
    if query.offset:
        params.append(("offset", str(query.offset)))

    return params


def parse_content_range(header: Optional[str], fallback: int) -> int:
    """Total count from a ``Content-Range`` header such as ``0-9/57``."""
    if not header:
        return fallback
    match = _CONTENT_RANGE.match(header)
    if not match or match.group(1) == "*":
        return fallback
    return int(match.group(1))


def _is_retryable(error: BaseException) -> bool:
    return isinstance(error, RemoteQueryError) and error.retryable


class PostgrestQueryService:
    """Fetches catalog pages from the hosted backend."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        api_key: Optional[str] = None,
        table: Optional[str] = None,
        client: Optional[httpx.AsyncClient] = None,
        max_attempts: Optional[int] = None,
        backoff: float = 1.0,
        auth_token: Optional[str] = None,
    ):
        """
        Initialize the client.

        Args:
            base_url: REST root (``.../rest/v1``). Defaults to config.
            api_key: Project API key. Defaults to config.
            table: Catalog table name. Defaults to config.
            client: Shared httpx client; one is created (and owned) when omitted.
            max_attempts: Attempts per page including the first. Defaults to config.
            backoff: Exponential backoff multiplier in seconds.
            auth_token: Signed-in user's access token, sent instead of the API key.
        """
        self.base_url = (base_url or config.backend.rest_url or "").rstrip("/")
        if not self.base_url:
            raise ValueError("Backend URL is not configured (set SUPABASE_URL)")
        self.api_key = api_key or config.backend.api_key
        self.table = table or config.backend.table
        self.max_attempts = max_attempts or config.backend.max_attempts
        self.backoff = backoff
        self.auth_token = auth_token
        self._owns_client = client is None
        self.client = client or httpx.AsyncClient(timeout=config.backend.timeout)

    @property
    def url(self) -> str:
        return f"{self.base_url}/{self.table}"

    def _headers(self) -> Dict[str, str]:
        headers = {"Prefer": "count=exact", "Accept": "application/json"}
        if self.api_key:
            headers["apikey"] = self.api_key
        token = self.auth_token or self.api_key
        if token:
            headers["Authorization"] = f"Bearer {token}"
        return headers

    async def _request(self, query: QueryDescriptor) -> Page:
        try:
            response = await self.client.get(
                self.url,
                params=build_postgrest_params(query),
                headers=self._headers(),
            )
        except httpx.TransportError as e:
            raise RemoteQueryError(f"Network error: {e}") from e

        if response.status_code >= 400:
            retryable = response.status_code >= 500 or response.status_code == 429
            try:
                body = response.json()
            except ValueError:
                body = None
            message = body.get("message", response.text) if isinstance(body, dict) else response.text
            raise RemoteQueryError(
                message or f"HTTP {response.status_code}",
                status=response.status_code,
                retryable=retryable,
            )

        try:
            rows = response.json()
        except ValueError as e:
            raise RemoteQueryError(
                f"Invalid JSON from backend: {e}", status=response.status_code, retryable=False
            ) from e
        if not isinstance(rows, list):
            raise RemoteQueryError(
                "Backend did not return a row list", status=response.status_code, retryable=False
            )

        items = [Product.from_record(row) for row in rows]
        total = parse_content_range(
            response.headers.get("content-range"),
            fallback=query.offset + len(items),
        )
        return Page(
            items=items,
            total_count=total,
            page=page_number(query),
            page_size=query.limit or len(items),
        )

    async def fetch(self, query: QueryDescriptor) -> Page:
        retrying = AsyncRetrying(
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_exponential(multiplier=self.backoff, max=30),
            retry=retry_if_exception(_is_retryable),
            reraise=True,
        )
        async for attempt in retrying:
            with attempt:
                if attempt.retry_state.attempt_number > 1:
                    logger.warning(
                        f"Retrying catalog query (attempt {attempt.retry_state.attempt_number})"
                    )
                return await self._request(query)
        raise RemoteQueryError("Catalog query was not attempted")

    async def aclose(self) -> None:
        if self._owns_client:
            await self.client.aclose()

    async def __aenter__(self) -> "PostgrestQueryService":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()

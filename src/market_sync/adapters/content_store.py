"""Supabase PostgREST row store for posts and applications."""

from typing import Any

from market_sync.data.transport import HttpTransport
from market_sync.errors import ErrorKind, RecordRejectedError, SourceError
from market_sync.models import Post, SocietyApplication

SOURCE = "supabase"

POSTS_TABLE = "posts"
APPLICATIONS_TABLE = "applications"

# Statuses where the store understood the request and refused the record
_REJECTION_STATUS = {400, 409, 422}


def row_to_post(row: dict[str, Any]) -> Post:
    comments = row.get("comments")
    if isinstance(comments, list):
        comments = len(comments)
    return Post(
        id=str(row.get("id", "")),
        author=str(row.get("author") or ""),
        title=str(row.get("title") or ""),
        content=str(row.get("content") or ""),
        timestamp=str(row.get("timestamp") or row.get("created_at") or ""),
        likes=int(row.get("likes") or 0),
        comments=int(comments or 0),
        views=int(row.get("views") or 0),
        tags=tuple(row.get("tags") or ()),
        is_featured=bool(row.get("is_featured") or row.get("isFeatured") or False),
    )


def application_to_row(app: SocietyApplication) -> dict[str, Any]:
    return {
        "name": app.name,
        "phone": app.phone,
        "investYears": app.invest_years,
        "missingAbilities": app.missing_abilities,
        "learningExpectation": app.learning_expectation,
    }


class ContentStoreAdapter:
    """select/insert/delete against PostgREST with bearer-token auth."""

    def __init__(self, transport: HttpTransport, url: str, key: str):
        self._transport = transport
        self._base = f"{url.rstrip('/')}/rest/v1" if url else ""
        self._key = key

    @property
    def configured(self) -> bool:
        return bool(self._base and self._key)

    def _headers(self) -> dict[str, str]:
        return {
            "apikey": self._key,
            "Authorization": f"Bearer {self._key}",
            "Content-Type": "application/json",
            "Prefer": "return=representation",
        }

    async def _request(
        self,
        method: str,
        table: str,
        *,
        params: dict[str, Any] | None = None,
        json_body: Any = None,
    ) -> Any:
        if not self.configured:
            raise SourceError(
                f"{SOURCE}: URL or key is not configured", ErrorKind.AUTH_MISSING, source=SOURCE
            )
        try:
            return await self._transport.request_json(
                SOURCE,
                method,
                f"{self._base}/{table}",
                params=params,
                headers=self._headers(),
                json_body=json_body,
            )
        except SourceError as e:
            if e.kind is ErrorKind.FATAL and e.status_code in _REJECTION_STATUS:
                raise RecordRejectedError(
                    str(e), source=SOURCE, status_code=e.status_code
                ) from e
            raise

    async def select_posts(self, limit: int = 50) -> list[Post]:
        """Published posts, newest first."""
        rows = await self._request(
            "GET",
            POSTS_TABLE,
            params={
                "select": "*",
                "status": "eq.published",
                "order": "timestamp.desc",
                "limit": limit,
            },
        )
        return [row_to_post(row) for row in rows or []]

    async def insert_application(self, app: SocietyApplication) -> None:
        await self._request("POST", APPLICATIONS_TABLE, json_body=[application_to_row(app)])

    async def insert_post(self, fields: dict[str, Any]) -> Post:
        rows = await self._request("POST", POSTS_TABLE, json_body=[fields])
        if not rows:
            raise SourceError(f"{SOURCE}: insert returned no row", ErrorKind.FATAL, source=SOURCE)
        return row_to_post(rows[0])

    async def delete_post(self, post_id: str) -> None:
        await self._request("DELETE", POSTS_TABLE, params={"id": f"eq.{post_id}"})

"""Base repository with common CRUD operations."""

from datetime import datetime
from typing import Any, Generic, TypeVar
from uuid import UUID

from sqlalchemy import and_, delete, or_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import SQLModel, select

from src.app.schemas.pagination import decode_cursor, encode_cursor

CURSOR_SEPARATOR = "|"

ModelType = TypeVar("ModelType", bound=SQLModel)


class BaseRepository(Generic[ModelType]):
    """Base repository providing common database operations.

    Repositories handle data access only. Transaction control (commit)
    is done in the service layer.
    """

    model: type[ModelType]

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_id(self, id: UUID) -> ModelType | None:
        """Get a record by its primary key."""
        result = await self.session.execute(
            select(self.model).where(self.model.id == id)  # type: ignore[attr-defined]
        )
        return result.scalar_one_or_none()

    def add(self, entity: ModelType) -> None:
        """Add entity to session (no flush/commit)."""
        self.session.add(entity)

    async def delete_by_id(self, id: UUID) -> bool:
        """Delete a record by primary key. Returns True if a row was removed."""
        result = await self.session.execute(
            delete(self.model).where(self.model.id == id)  # type: ignore[attr-defined]
        )
        return (result.rowcount or 0) > 0  # type: ignore[attr-defined]

    @staticmethod
    def _parse_cursor_value(raw: str) -> datetime | UUID | str:
        try:
            return datetime.fromisoformat(raw)
        except ValueError:
            try:
                return UUID(raw)
            except ValueError:
                return raw

    @staticmethod
    def _format_cursor_value(value: Any) -> str:
        return value.isoformat() if isinstance(value, datetime) else str(value)

    async def paginate(
        self,
        query: Any,
        cursor: str | None,
        limit: int,
        cursor_field: Any,
        tiebreaker_field: Any = None,
    ) -> tuple[list[ModelType], str | None, bool]:
        """Execute cursor-based pagination on a query, newest first.

        Args:
            query: The base query to paginate
            cursor: Optional cursor from previous page (base64-encoded)
            limit: Maximum number of items to return
            cursor_field: Column the cursor points into (datetime or UUID)
            tiebreaker_field: Optional unique column that orders rows sharing
                a ``cursor_field`` value. The cursor then carries both values.

        Returns:
            Tuple of (items, next_cursor, has_more)
        """
        if cursor:
            try:
                cursor_str = decode_cursor(cursor)
                if tiebreaker_field is None:
                    query = query.where(cursor_field < self._parse_cursor_value(cursor_str))
                else:
                    head, sep, tail = cursor_str.rpartition(CURSOR_SEPARATOR)
                    if not sep:
                        raise ValueError("Cursor lacks a tiebreaker")
                    value = self._parse_cursor_value(head)
                    query = query.where(
                        or_(
                            cursor_field < value,
                            and_(
                                cursor_field == value,
                                tiebreaker_field < self._parse_cursor_value(tail),
                            ),
                        )
                    )
            except (ValueError, TypeError):
                # Invalid cursor - ignore and start from beginning
                pass

        order_by = [cursor_field.desc()]
        if tiebreaker_field is not None:
            order_by.append(tiebreaker_field.desc())
        query = query.order_by(*order_by).limit(limit + 1)

        result = await self.session.execute(query)
        items = list(result.scalars().all())

        has_more = len(items) > limit
        if has_more:
            items = items[:limit]

        next_cursor = None
        if has_more and items:
            value = getattr(items[-1], cursor_field.key)
            if value is not None:
                position = self._format_cursor_value(value)
                if tiebreaker_field is not None:
                    tiebreak = getattr(items[-1], tiebreaker_field.key)
                    position += CURSOR_SEPARATOR + self._format_cursor_value(tiebreak)
                next_cursor = encode_cursor(position)

        return items, next_cursor, has_more

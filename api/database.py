"""
Database service layer for the FastAPI application.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping

import structlog
from pydantic import ValidationError
from sqlalchemy import Column, Date, DateTime, Integer, String, func, select, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base

from api.models import MAX_INTEGER, Book, BookCreate, BookUpdate

logger = structlog.get_logger(__name__)

Base = declarative_base()


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class BookRecord(Base):
    """Row in the books table."""

    __tablename__ = "books"

    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(String(255), nullable=False)
    author = Column(String(255), nullable=False)
    published_date = Column("publishedDate", Date, nullable=False)
    number_of_pages = Column("numberOfPages", Integer, nullable=False)
    created_at = Column("createdAt", DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(
        "updatedAt", DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow
    )


class BookStoreError(Exception):
    """Base class for record store failures."""


class BookNotFoundError(BookStoreError):
    """No row matches the requested identifier."""

    def __init__(self, book_id: int):
        super().__init__(f"Book with ID {book_id} not found")
        self.book_id = book_id


class BookValidationError(BookStoreError):
    """Supplied fields do not satisfy the table's constraints."""


class BookStore:
    """Persistence for book records over an async SQLAlchemy engine."""

    def __init__(self, database_url: str, echo: bool = False):
        self.database_url = database_url
        self.engine = create_async_engine(database_url, echo=echo)
        self.session_factory = async_sessionmaker(self.engine, expire_on_commit=False)

    async def init_schema(self) -> None:
        """Create the books table if it does not exist yet."""
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Database schema synchronized", tables=list(Base.metadata.tables))

    async def close(self) -> None:
        await self.engine.dispose()

    async def create(self, fields: Mapping[str, Any]) -> Book:
        """
        Insert a new book.

        Args:
            fields: Book fields keyed by their wire names

        Returns:
            The stored book including its generated id

        Raises:
            BookValidationError: If a required field is missing, null or ill-typed
        """
        try:
            payload = BookCreate.model_validate(fields)
        except ValidationError as e:
            logger.warning("Rejected book creation", errors=e.errors(include_url=False))
            raise BookValidationError(str(e)) from e

        record = BookRecord(**payload.model_dump())
        try:
            async with self.session_factory() as session:
                session.add(record)
                await session.commit()
                await session.refresh(record)
        except SQLAlchemyError as e:
            logger.error("Failed to create book", error=str(e))
            raise

        logger.info("Book created", book_id=record.id)
        return self._to_book(record)

    async def list(self) -> List[Book]:
        """Return every stored book in insertion order."""
        try:
            async with self.session_factory() as session:
                result = await session.execute(select(BookRecord).order_by(BookRecord.id))
                records = result.scalars().all()
        except SQLAlchemyError as e:
            logger.error("Failed to list books", error=str(e))
            raise

        return [self._to_book(record) for record in records]

    async def get_by_id(self, book_id: int) -> Book:
        """
        Get a single book by ID.

        Raises:
            BookNotFoundError: If no row has this id
        """
        try:
            async with self.session_factory() as session:
                record = await self._find(session, book_id)
        except SQLAlchemyError as e:
            logger.error("Failed to get book by ID", book_id=book_id, error=str(e))
            raise

        return self._to_book(record)

    async def update(self, book_id: int, fields: Mapping[str, Any]) -> Book:
        """
        Overwrite the supplied fields of an existing book.

        Args:
            book_id: Book identifier
            fields: Subset of the book fields keyed by their wire names

        Returns:
            The updated book

        Raises:
            BookNotFoundError: If no row has this id
            BookValidationError: If a supplied value is null or ill-typed
        """
        try:
            async with self.session_factory() as session:
                record = await self._find(session, book_id)

                try:
                    changes = BookUpdate.model_validate(fields).model_dump(exclude_unset=True)
                except ValidationError as e:
                    logger.warning(
                        "Rejected book update", book_id=book_id, errors=e.errors(include_url=False)
                    )
                    raise BookValidationError(str(e)) from e

                for name, value in changes.items():
                    setattr(record, name, value)
                await session.commit()
                await session.refresh(record)
        except SQLAlchemyError as e:
            logger.error("Failed to update book", book_id=book_id, error=str(e))
            raise

        logger.info("Book updated", book_id=book_id, fields=sorted(changes))
        return self._to_book(record)

    async def delete(self, book_id: int) -> None:
        """
        Permanently remove a book.

        Raises:
            BookNotFoundError: If no row has this id
        """
        try:
            async with self.session_factory() as session:
                record = await self._find(session, book_id)
                await session.delete(record)
                await session.commit()
        except SQLAlchemyError as e:
            logger.error("Failed to delete book", book_id=book_id, error=str(e))
            raise

        logger.info("Book deleted", book_id=book_id)

    async def health_check(self) -> Dict:
        """
        Perform database health check.

        Returns:
            Dictionary with health status
        """
        try:
            async with self.engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
                books_count = await conn.scalar(select(func.count()).select_from(BookRecord))

            return {
                "status": "healthy",
                "books_table": "accessible",
                "books_count": books_count
            }
        except SQLAlchemyError as e:
            logger.error("Database health check failed", error=str(e))
            return {
                "status": "unhealthy",
                "error": str(e)
            }

    @staticmethod
    async def _find(session, book_id: int) -> BookRecord:
        """Load a row or raise BookNotFoundError."""
        # Ids are generated from 1 and cannot exceed the INTEGER column
        record = None
        if 1 <= book_id <= MAX_INTEGER:
            record = await session.get(BookRecord, book_id)
        if record is None:
            logger.debug("Book not found", book_id=book_id)
            raise BookNotFoundError(book_id)
        return record

    @staticmethod
    def _to_book(record: BookRecord) -> Book:
        return Book(
            id=record.id,
            title=record.title,
            author=record.author,
            publishedDate=record.published_date,
            numberOfPages=record.number_of_pages,
            createdAt=record.created_at,
            updatedAt=record.updated_at,
        )

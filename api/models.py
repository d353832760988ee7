"""
API models and schemas for the FastAPI application.
"""

from datetime import date, datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

# Range of a 64-bit INTEGER column
MAX_INTEGER = 2 ** 63 - 1
MIN_INTEGER = -MAX_INTEGER - 1


BOOK_EXAMPLE = {
    "title": "The Great Gatsby",
    "author": "F. Scott Fitzgerald",
    "publishedDate": "1925-04-10",
    "numberOfPages": 180,
}


class Book(BaseModel):
    """Book record as returned by the API."""
    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={"example": {"id": 1, **BOOK_EXAMPLE}},
    )

    id: int = Field(..., description="Unique book ID")
    title: str = Field(..., description="Title of the book")
    author: str = Field(..., description="Author of the book")
    published_date: date = Field(..., alias="publishedDate", description="Book publication date")
    number_of_pages: int = Field(..., alias="numberOfPages", description="Number of pages")
    created_at: Optional[datetime] = Field(None, alias="createdAt", description="Creation timestamp")
    updated_at: Optional[datetime] = Field(None, alias="updatedAt", description="Last update timestamp")


class BookCreate(BaseModel):
    """Fields required to create a book."""
    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={"example": BOOK_EXAMPLE},
    )

    title: str = Field(..., min_length=1, description="Title of the book")
    author: str = Field(..., min_length=1, description="Author of the book")
    published_date: date = Field(..., alias="publishedDate", description="Book publication date")
    number_of_pages: int = Field(
        ..., alias="numberOfPages", ge=MIN_INTEGER, le=MAX_INTEGER, description="Number of pages"
    )


class BookUpdate(BaseModel):
    """
    Partial book update.

    Omitted fields are left untouched; supplying null for a field is an error
    since every business field is required on the stored record.
    """
    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={"example": {"numberOfPages": 218}},
    )

    title: Optional[str] = Field(None, min_length=1, description="Title of the book")
    author: Optional[str] = Field(None, min_length=1, description="Author of the book")
    published_date: Optional[date] = Field(None, alias="publishedDate", description="Book publication date")
    number_of_pages: Optional[int] = Field(
        None, alias="numberOfPages", ge=MIN_INTEGER, le=MAX_INTEGER, description="Number of pages"
    )

    @field_validator('title', 'author', 'published_date', 'number_of_pages')
    @classmethod
    def reject_null(cls, v):
        """Explicit nulls cannot overwrite required columns."""
        if v is None:
            raise ValueError('field cannot be null')
        return v


class LoginRequest(BaseModel):
    """Login request body."""
    model_config = ConfigDict(
        json_schema_extra={"example": {"username": "alice", "password": "secret"}},
    )

    username: str = Field("", description="Username")
    password: str = Field("", description="Password")


class TokenResponse(BaseModel):
    """Login response carrying the bearer token."""
    token: str = Field(..., description="JWT token")


class TokenClaims(BaseModel):
    """Decoded payload of a verified bearer token."""
    username: str = Field("", description="Username the token was issued to")
    iat: Optional[int] = Field(None, description="Issued-at timestamp")
    exp: int = Field(..., description="Expiration timestamp")


class MessageResponse(BaseModel):
    """Plain message response."""
    message: str = Field(..., description="Human-readable message")


class ErrorResponse(BaseModel):
    """Error response model."""
    error: str = Field(..., description="Error message")
    detail: Optional[Any] = Field(None, description="Additional error details")


class HealthResponse(BaseModel):
    """Health check response model."""
    status: str = Field(..., description="Service status")
    timestamp: datetime = Field(..., description="Current timestamp")
    version: str = Field(..., description="API version")
    database_status: str = Field(..., description="Database connection status")

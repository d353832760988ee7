"""
Route handlers for the book resource and the login endpoint.
"""

from typing import Any, Dict, List

import structlog
from fastapi import APIRouter, Depends, HTTPException, Path, Request, status
from sqlalchemy.exc import SQLAlchemyError

from api.auth import TokenService, authenticate, check_credentials, get_token_service
from api.database import BookNotFoundError, BookStore, BookValidationError
from api.models import (
    Book, ErrorResponse, LoginRequest, MessageResponse, TokenResponse
)

logger = structlog.get_logger(__name__)

BOOK_NOT_FOUND = "Book not found"


def get_store(request: Request) -> BookStore:
    return request.app.state.store


def json_body(schema_name: str) -> Dict[str, Any]:
    """OpenAPI request body pointing at a component schema."""
    return {
        "requestBody": {
            "required": True,
            "content": {
                "application/json": {
                    "schema": {"$ref": f"#/components/schemas/{schema_name}"}
                }
            },
        }
    }


async def read_json_object(request: Request) -> Dict[str, Any]:
    """
    Read the request body as a JSON object.

    Bodies are validated by the store rather than by FastAPI so that
    create failures keep their 500 status.
    """
    try:
        body = await request.json()
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid request body"
        )
    if not isinstance(body, dict):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid request body"
        )
    return body


books_router = APIRouter(
    prefix="/api/books",
    tags=["Books"],
    dependencies=[Depends(authenticate)],
    responses={
        401: {"model": ErrorResponse, "description": "Missing token"},
        403: {"model": ErrorResponse, "description": "Invalid token"},
    },
)

auth_router = APIRouter(prefix="/api/auth", tags=["Authentication"])


@books_router.post(
    "",
    response_model=Book,
    status_code=status.HTTP_201_CREATED,
    summary="Add a new book",
    responses={
        201: {"description": "Book added successfully"},
        500: {"model": ErrorResponse, "description": "Server error"},
    },
    openapi_extra=json_body("BookCreate"),
)
async def create_book(request: Request, store: BookStore = Depends(get_store)):
    """Create a book from its title, author, publication date and page count."""
    fields = await read_json_object(request)
    try:
        return await store.create(fields)
    except (BookValidationError, SQLAlchemyError) as e:
        logger.error("Failed to create book", error=str(e))
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error creating book"
        )


@books_router.get(
    "",
    response_model=List[Book],
    summary="Retrieve the list of books",
    responses={500: {"model": ErrorResponse, "description": "Server error"}},
)
async def list_books(store: BookStore = Depends(get_store)):
    try:
        return await store.list()
    except SQLAlchemyError as e:
        logger.error("Failed to list books", error=str(e))
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error retrieving books"
        )


@books_router.get(
    "/{book_id}",
    response_model=Book,
    summary="Retrieve book details",
    responses={404: {"model": ErrorResponse, "description": BOOK_NOT_FOUND}},
)
async def get_book(
    book_id: int = Path(..., description="Book ID"),
    store: BookStore = Depends(get_store),
):
    try:
        return await store.get_by_id(book_id)
    except BookNotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=BOOK_NOT_FOUND)


@books_router.put(
    "/{book_id}",
    response_model=Book,
    summary="Update book details",
    responses={
        404: {"model": ErrorResponse, "description": BOOK_NOT_FOUND},
        500: {"model": ErrorResponse, "description": "Server error"},
    },
    openapi_extra=json_body("BookUpdate"),
)
async def update_book(
    request: Request,
    book_id: int = Path(..., description="Book ID"),
    store: BookStore = Depends(get_store),
):
    """Overwrite only the fields present in the body."""
    fields = await read_json_object(request)
    try:
        return await store.update(book_id, fields)
    except BookNotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=BOOK_NOT_FOUND)
    except (BookValidationError, SQLAlchemyError) as e:
        logger.error("Failed to update book", book_id=book_id, error=str(e))
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error updating book"
        )


@books_router.delete(
    "/{book_id}",
    response_model=MessageResponse,
    summary="Delete a book",
    responses={
        200: {"description": "Book successfully deleted"},
        404: {"model": ErrorResponse, "description": BOOK_NOT_FOUND},
    },
)
async def delete_book(
    book_id: int = Path(..., description="Book ID"),
    store: BookStore = Depends(get_store),
):
    try:
        await store.delete(book_id)
    except BookNotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=BOOK_NOT_FOUND)
    return MessageResponse(message="Book successfully deleted")


@auth_router.post(
    "/login",
    response_model=TokenResponse,
    summary="Connect a user",
    responses={
        200: {"description": "Connection successful"},
        401: {"model": ErrorResponse, "description": "Invalid credentials"},
    },
)
async def login(
    payload: LoginRequest,
    request: Request,
    token_service: TokenService = Depends(get_token_service),
):
    """
    Issue a bearer token valid for one hour.

    Credentials are only checked when AUTH_USERS is configured.
    """
    users = request.app.state.config.get_auth_users()
    if not check_credentials(users, payload.username, payload.password):
        logger.warning("Login rejected", username=payload.username)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials"
        )

    token = token_service.issue(payload.username)
    logger.info("Token issued", username=payload.username)
    return TokenResponse(token=token)

"""
FastAPI RESTful API for the Book Management service.

This package provides:
- CRUD endpoints over a single books table
- JWT bearer token login and verification
- OpenAPI documentation served at /api-docs
"""

"""Shared utilities for the Book Management API."""

"""
Social feed backend.

This package provides a FastAPI application for user accounts, text posts
with optional images, comments and likes, with database and object storage
abstractions that have in-memory implementations for development and tests.
"""

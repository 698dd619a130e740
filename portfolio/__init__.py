"""
Backend package for the portfolio site.

This package provides a FastAPI application serving the public landing and
project pages plus the owner dashboard, on top of store, storage and auth
abstractions so the hosted backend can be swapped for in-memory doubles.
"""

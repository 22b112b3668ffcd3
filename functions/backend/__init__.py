"""
Backend package for the Remap Design site.

This package provides a FastAPI application with storage, database, mail and
auth abstractions, replacing the site's serverless handlers with a
long-running service.
"""

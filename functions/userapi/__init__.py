"""
User records API package.

This package exposes a small CRUD resource over HTTP. The same router serves
requests from a long-running FastAPI/uvicorn listener and from single
API Gateway events delivered to a Lambda-style handler.
"""

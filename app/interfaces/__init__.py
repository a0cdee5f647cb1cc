"""
Interfaces layer package.

Contains FastAPI routers, the CRUD handler factory, Pydantic request
schemas and input validation. Routes delegate to document models
through factory-produced handlers.
"""

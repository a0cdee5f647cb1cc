"""
Generic HTTP layer for document models.

The handler factory turns any DocumentModel into a uniform set of
CRUD endpoints with a shared response envelope.
"""

"""
Documents bounded context: domain layer.

Generic record handling shared by every resource:
- Application errors
- Query-string translation
- The DocumentModel port
"""

"""
User Service: generic REST CRUD backend for the User resource.

Application package root. A small modular monolith using
hexagonal architecture (ports & adapters).

Bounded contexts:
    - documents: generic record handling (errors, query translation,
      the DocumentModel port, the CRUD handler factory).
    - users: the User schema, request checks and route table.

Layers:
    - domain: Pure logic, ports (ABCs), errors.
    - infrastructure: Adapters (MongoDB via Motor) implementing domain ports.
    - interfaces: FastAPI routers, handler factory, Pydantic schemas.
    - shared: Cross-cutting concerns (errors, security, logging).
"""

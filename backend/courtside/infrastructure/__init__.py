"""Infrastructure Layer — remote clients and cross-cutting concerns.

Invariants:
    - Infrastructure never imports from services/ or schemas/
    - All remote calls wrapped with timeout and error mapping

Design Decisions:
    - Thin wrappers over raw clients (httpx) keep transport details out of services
"""

"""Pydantic Schemas — validation for the remote boundary (request bodies, responses).

Invariants:
    - Schemas validate at the system boundary (edge-function and REST payloads)
    - Domain types from core/ used for enum fields

Design Decisions:
    - Separate from core: schemas are wire contracts, core types are domain logic
"""

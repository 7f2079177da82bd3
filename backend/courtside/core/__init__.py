"""Core Layer — pure domain logic, no IO, no async, no network.

Invariants:
    - No module in core/ imports from services/, schemas/, or infrastructure/
    - All functions are pure and deterministic (FilterState notifies, never suspends)

Design Decisions:
    - Functional core separated from the async shell in services/
"""

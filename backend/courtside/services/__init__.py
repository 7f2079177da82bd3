"""Services Layer — async shell around the pure core.

Invariants:
    - Services translate RemoteFunctionError into the caller-facing taxonomy
    - No silent retries; every error surfaces to the caller

Design Decisions:
    - One service per remote concern (feed, cache, checkout, membership)
"""

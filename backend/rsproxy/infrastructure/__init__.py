"""Infrastructure Layer — outbound HTTP client, secret lookup, logging.

Invariants:
    - Infrastructure never imports from services/ or api/
"""

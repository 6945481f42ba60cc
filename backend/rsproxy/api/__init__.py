"""API Layer — FastAPI routes and error handlers.

Invariants:
    - Routes registered explicitly in main.py (no auto-discovery)
    - Every response body is JSON carrying an ok/success flag, except the
      SMS passthrough which mirrors the upstream body
"""

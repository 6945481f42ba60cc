"""Route Modules — one file per upstream/concern.

Invariants:
    - Each module defines its own APIRouter
    - Routes never contain relay logic (delegate to services)
"""

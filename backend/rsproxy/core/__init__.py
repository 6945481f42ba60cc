"""Core Layer — pure payload building and response parsing, no IO, no async.

Invariants:
    - No module in core/ imports from services/, api/, or infrastructure/
    - All functions are pure apart from reading the clock for request timestamps
"""

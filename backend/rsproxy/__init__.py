"""rs-proxy — credential relay for the background-check and SMS vendors.

Invariants:
    - Package root contains no executable code (import side-effects prohibited)
"""

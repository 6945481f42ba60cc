"""Services Layer — relay dispatchers (validate, resolve, build, call, parse).

Invariants:
    - Services are instantiated per request from a RelayContext
    - All upstream failures leave this layer as RelayError subclasses
"""

"""Court domain services: state transitions and idle room reclamation.

This package contains pure(ish) domain logic that should be imported by
HTTP routes and socket handlers, keeping transport concerns separated
from court mechanics.
"""

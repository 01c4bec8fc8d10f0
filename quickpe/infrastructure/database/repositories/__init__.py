"""SQLAlchemy-backed repository implementations.

Import the concrete modules directly; domain services import them lazily
through ``with_session`` constructors.
"""

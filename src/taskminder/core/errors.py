# src/taskminder/core/errors.py

"""
Error taxonomy.

- ValidationError: bad user input, rejected before anything reaches the store.
- ServiceError: the data service failed (storage, transport, unknown record).
- AuthorizationError: the caller does not own the record it is touching
  (or nobody is signed in).

All of them derive from TaskminderError so the session can catch the family
at its operation boundary.
"""

from __future__ import annotations


class TaskminderError(Exception):
    """Base class for every error surfaced by the task core."""


class ValidationError(TaskminderError, ValueError):
    pass


class ServiceError(TaskminderError):
    pass


class AuthorizationError(TaskminderError):
    pass


def describe_error(exc: BaseException) -> str:
    """Short user-facing reason for an error."""
    text = str(exc).strip()
    return text or exc.__class__.__name__

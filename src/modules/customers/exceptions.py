"""Customer domain exceptions."""

from __future__ import annotations


class CustomerNotFound(Exception):
    """The requested customer does not exist or has been soft-deleted."""

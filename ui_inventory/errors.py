"""Error types shared across the inventory package."""

from __future__ import annotations


class InventoryError(RuntimeError):
    """Base error for the inventory package."""


class OverlayValidationError(InventoryError, ValueError):
    """A mutating overlay call is missing a required key."""


class StoreError(InventoryError):
    """The record store failed to read or write."""


class ProjectNotFoundError(InventoryError, LookupError):
    """No project exists for the requested id."""


class ExportInProgressError(InventoryError):
    """An export was requested while another one is still running."""

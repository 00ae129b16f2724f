"""Error taxonomy shared by the store adapter, the engines and the CLI boundary."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from pricebook.models import BulkResult


class PricebookError(Exception):
    """Base class for every error raised by the pricing engine."""


class ValidationError(PricebookError, ValueError):
    """Bad user input, e.g. a negative or non-numeric price."""


class NotFoundError(PricebookError, LookupError):
    """A referenced offering, package or cart item does not exist."""


class ConflictError(PricebookError):
    """A write would duplicate an organization-scoped customization."""


class StoreError(PricebookError):
    """The record store failed a read or write."""


class BulkCustomizeError(PricebookError):
    """A bulk customization aborted part-way.

    Items processed before the failure stay persisted; ``result`` reports how
    far the run got so the caller can show partial progress and re-run.
    """

    def __init__(self, result: BulkResult, cause: Exception):
        self.result = result
        self.cause = cause
        super().__init__(f"Bulk customize stopped after {result.completed}/{result.total} items: {cause}")

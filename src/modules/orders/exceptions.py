"""Order domain exceptions.

Raised by the Service Layer when business rules are violated.
The API layer (Views) catches these and translates them into
distinct HTTP responses.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Optional
from uuid import UUID


@dataclass(frozen=True)
class StockViolation:
    """One order line that asks for more units than are available."""

    product_id: UUID
    product_name: str
    requested: int
    available: int


class OrderNotFound(Exception):
    """The requested order does not exist."""


class InvalidOrder(Exception):
    """The order request cannot be fulfilled as submitted."""


class ProductNotFoundOrInactive(InvalidOrder):
    """One or more referenced products do not exist or are not for sale."""

    def __init__(self, product_ids: Iterable[UUID]) -> None:
        self.product_ids: List[UUID] = list(product_ids)
        joined = ", ".join(str(pid) for pid in self.product_ids)
        super().__init__(f"Products not found or inactive: {joined}.")


class InsufficientStock(Exception):
    """One or more items exceed the available stock.

    ``violations`` lists every offending line, not just the first.
    """

    def __init__(self, violations: Iterable[StockViolation]) -> None:
        self.violations: List[StockViolation] = list(violations)
        details = "; ".join(
            f"{v.product_name}: requested {v.requested}, available {v.available}"
            for v in self.violations
        )
        super().__init__(f"Insufficient stock. {details}.")


class NotOrderOwner(Exception):
    """The caller does not own the order it tried to act on."""


class InvalidOrderStatus(Exception):
    """A status transition outside the state machine was attempted."""

    def __init__(
        self, current_status: str, requested_status: Optional[str] = None
    ) -> None:
        self.current_status = current_status
        self.requested_status = requested_status
        if requested_status is None:
            message = f"Cannot cancel order with status: {current_status}."
        else:
            message = (
                f"Invalid status transition from {current_status} "
                f"to {requested_status}."
            )
        super().__init__(message)


class PersistenceError(Exception):
    """The storage layer failed; the operation was rolled back."""


class OrderNumberUnavailable(PersistenceError):
    """No free order number could be allocated."""

"""Product repository interface.

Extends ``IRepository[Product]`` with the two things the order
lifecycle needs from the catalog: a batch look-up of sellable products
and relative stock adjustments.
"""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Iterable, List
from uuid import UUID

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.products.models import Product


class IProductRepository(IRepository["Product"]):
    """Repository contract for the Product aggregate."""

    @abstractmethod
    def get_active_by_ids(
        self, ids: Iterable[UUID], for_update: bool = False
    ) -> List[Product]:
        """Return the active products among *ids*, ordered by primary key.

        With ``for_update=True`` the rows are locked (``SELECT FOR UPDATE``)
        until the surrounding transaction ends.  Unknown and inactive ids
        are simply absent from the result.
        """

    @abstractmethod
    def decrement_stock(self, id: UUID, quantity: int) -> bool:
        """Subtract *quantity* from stock unless it would go negative.

        Returns ``False`` (and changes nothing) when fewer than *quantity*
        units are available.
        """

    @abstractmethod
    def increment_stock(self, id: UUID, quantity: int) -> None:
        """Add *quantity* units back to stock."""

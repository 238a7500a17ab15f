"""Product service layer (read side only).

Orders carry line items that point at products by id; this service
resolves those ids into catalogue entries.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, List, Optional

import structlog

from modules.products.exceptions import ProductNotFound

if TYPE_CHECKING:
    from modules.core.repositories.interfaces import EntityId
    from modules.products.models import Product
    from modules.products.repositories.interfaces import IProductRepository

logger = structlog.get_logger(__name__)


class ProductService:
    """Application service for Product look-ups.

    Receives an ``IProductRepository`` via constructor injection (DIP).
    """

    def __init__(self, repository: IProductRepository) -> None:
        self._repo = repository

    def list_products(self, filters: Optional[Dict[str, Any]] = None) -> List[Product]:
        """Return a list of products, optionally filtered."""
        return self._repo.list(filters)

    def get_product(self, id: EntityId) -> Product:
        """Retrieve a single product by ID.

        Raises:
            ProductNotFound: if the product does not exist.
        """
        product = self._repo.get_by_id(id)
        if not product:
            logger.info("product.not_found", product_id=str(id))
            raise ProductNotFound(f"Product {id} not found.")
        return product


"""Django ORM implementation of the Product repository."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

import structlog
from django.db import transaction

from modules.core.repositories.interfaces import EntityId
from modules.products.models import Product
from modules.products.repositories.interfaces import IProductRepository

logger = structlog.get_logger(__name__)


def _as_pk(value: EntityId) -> Optional[int]:
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


class ProductDjangoRepository(IProductRepository):
    """Concrete Product repository backed by Django ORM."""

    def get_by_id(self, id: EntityId) -> Optional[Product]:
        pk = _as_pk(id)
        if pk is None:
            return None
        return Product.objects.alive().filter(pk=pk).first()

    def list(self, filters: Optional[Dict[str, Any]] = None) -> List[Product]:
        queryset = Product.objects.alive()
        if filters:
            queryset = queryset.filter(**filters)
        return list(queryset)

    def queryset(self):
        """Unevaluated queryset for DRF filter backends."""
        return Product.objects.alive()

    @transaction.atomic
    def save(self, entity: Product) -> Product:
        entity.save()
        logger.info("product.saved", product_id=entity.pk)
        return entity

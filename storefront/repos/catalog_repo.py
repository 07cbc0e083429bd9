from typing import Optional

from ..models import Product, ProductVariant
from .base import SQLRepo, db_errors


class CatalogRepo(SQLRepo):
    """Read-only access to catalog prices"""

    async def get_product(self, product_id: int) -> Optional[Product]:
        async with db_errors("get product"):
            return await self.db.get(Product, product_id)

    async def get_variant(self, variant_id: int) -> Optional[ProductVariant]:
        async with db_errors("get variant"):
            return await self.db.get(ProductVariant, variant_id)

from typing import List, Optional

from sqlalchemy import delete
from sqlalchemy.future import select
from sqlalchemy.orm import selectinload

from ..models import Cart, CartItem
from .base import SQLRepo, db_errors


class CartRepo(SQLRepo):

    async def find_cart_by_owner(self, user_id: int, for_update: bool = False) -> Optional[Cart]:
        """Get the user's cart, optionally locking the row until the transaction ends"""
        query = select(Cart).where(Cart.user_id == user_id)
        if for_update:
            query = query.with_for_update()

        async with db_errors("find cart"):
            result = await self.db.execute(query)
            return result.scalars().first()

    async def get_cart(self, cart_id: int) -> Optional[Cart]:
        async with db_errors("get cart"):
            return await self.db.get(Cart, cart_id)

    async def create_cart(self, user_id: int) -> Cart:
        cart = Cart(user_id=user_id)

        # Savepoint so a lost race on carts.user_id leaves the session usable
        async with db_errors("create cart"):
            async with self.db.begin_nested():
                self.db.add(cart)

        return cart

    async def list_items(self, cart_id: int) -> List[CartItem]:
        query = select(CartItem).where(CartItem.cart_id == cart_id).order_by(CartItem.id)

        async with db_errors("list cart items"):
            result = await self.db.execute(query)
            return list(result.scalars().all())

    async def create_item(self, cart_id: int, product_id: int, variant_id: Optional[int], quantity: int) -> CartItem:
        item = CartItem(
            cart_id=cart_id,
            product_id=product_id,
            variant_id=variant_id,
            quantity=quantity
        )

        async with db_errors("create cart item"):
            async with self.db.begin_nested():
                self.db.add(item)

        return item

    async def find_item(self, item_id: int) -> Optional[CartItem]:
        """Get a cart item together with the cart that owns it"""
        query = select(CartItem).options(selectinload(CartItem.cart)).where(CartItem.id == item_id)

        async with db_errors("find cart item"):
            result = await self.db.execute(query)
            return result.scalars().first()

    async def delete_item(self, item_id: int) -> None:
        async with db_errors("delete cart item"):
            item = await self.db.get(CartItem, item_id)
            if item:
                await self.db.delete(item)
                await self.db.flush()

    async def delete_all_items(self, cart_id: int) -> None:
        async with db_errors("clear cart"):
            await self.db.execute(delete(CartItem).where(CartItem.cart_id == cart_id))

    async def update_item_quantity(self, item_id: int, quantity: int) -> CartItem:
        async with db_errors("update cart item"):
            item = await self.db.get(CartItem, item_id)
            item.quantity = quantity
            await self.db.flush()

        return item

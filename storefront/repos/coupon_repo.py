from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional

from sqlalchemy import delete
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.future import select
from sqlalchemy.orm import selectinload

from ..exceptions import StoreError
from ..models import CartCoupon, Coupon, Order, OrderCoupon
from ..models.base import utcnow
from .base import SQLRepo, db_errors


class CouponRepo(SQLRepo):

    # Coupons

    async def find_by_code(self, code: str) -> Optional[Coupon]:
        async with db_errors("find coupon"):
            result = await self.db.execute(select(Coupon).where(Coupon.code == code))
            return result.scalars().first()

    async def find_by_id(self, coupon_id: int) -> Optional[Coupon]:
        async with db_errors("get coupon"):
            return await self.db.get(Coupon, coupon_id)

    async def list_coupons(self) -> List[Coupon]:
        async with db_errors("list coupons"):
            result = await self.db.execute(select(Coupon).order_by(Coupon.id.desc()))
            return list(result.scalars().all())

    async def create_coupon(self, code: str, discount: Decimal, expiry_date: datetime) -> Coupon:
        coupon = Coupon(code=code, discount=discount, expiry_date=expiry_date)

        async with db_errors("create coupon"):
            async with self.db.begin_nested():
                self.db.add(coupon)

        return coupon

    async def update_coupon(self, coupon: Coupon, fields: Dict[str, Any]) -> Coupon:
        async with db_errors("update coupon"):
            async with self.db.begin_nested():
                for key, value in fields.items():
                    setattr(coupon, key, value)

        return coupon

    async def delete_coupon(self, coupon: Coupon) -> None:
        async with db_errors("delete coupon"):
            # Detach it from every cart first
            await self.db.execute(delete(CartCoupon).where(CartCoupon.coupon_id == coupon.id))
            await self.db.delete(coupon)
            await self.db.flush()

    async def coupon_in_orders(self, coupon_id: int) -> bool:
        query = select(OrderCoupon.id).where(OrderCoupon.coupon_id == coupon_id).limit(1)

        async with db_errors("check coupon usage"):
            result = await self.db.execute(query)
            return result.first() is not None

    # Cart coupons

    async def find_cart_coupon(self, cart_id: int) -> Optional[Coupon]:
        """Get the coupon currently attached to a cart"""
        query = (
            select(Coupon)
            .join(CartCoupon, CartCoupon.coupon_id == Coupon.id)
            .where(CartCoupon.cart_id == cart_id)
        )

        async with db_errors("find cart coupon"):
            result = await self.db.execute(query)
            return result.scalars().first()

    async def upsert_cart_coupon(self, cart_id: int, coupon_id: int) -> None:
        """
        Attach a coupon to a cart, replacing whatever coupon it had.

        A single INSERT .. ON CONFLICT (cart_id) DO UPDATE, so two requests
        racing on the same cart both succeed and the last commit wins.
        """
        if self.dialect_name == "postgresql":
            insert = pg_insert
        elif self.dialect_name == "sqlite":
            insert = sqlite_insert
        else:
            raise StoreError(f"upsert cart coupon: unsupported dialect {self.dialect_name}")

        now = utcnow()
        stmt = insert(CartCoupon).values(cart_id=cart_id, coupon_id=coupon_id, applied_at=now)
        stmt = stmt.on_conflict_do_update(
            index_elements=[CartCoupon.cart_id],
            set_={"coupon_id": coupon_id, "applied_at": now},
        )

        async with db_errors("upsert cart coupon"):
            await self.db.execute(stmt)

    async def delete_cart_coupon(self, cart_id: int) -> None:
        async with db_errors("delete cart coupon"):
            await self.db.execute(delete(CartCoupon).where(CartCoupon.cart_id == cart_id))

    # Order coupons

    async def find_order(self, order_id: int, for_update: bool = False) -> Optional[Order]:
        """Get an order, optionally locking the row until the transaction ends"""
        query = select(Order).where(Order.id == order_id)
        if for_update:
            query = query.with_for_update().execution_options(populate_existing=True)

        async with db_errors("get order"):
            result = await self.db.execute(query)
            return result.scalars().first()

    async def list_order_coupons(self, order_id: int) -> List[OrderCoupon]:
        """Coupons applied to an order, in the order they were applied"""
        query = (
            select(OrderCoupon)
            .options(selectinload(OrderCoupon.coupon))
            .where(OrderCoupon.order_id == order_id)
            .order_by(OrderCoupon.id)
        )

        async with db_errors("list order coupons"):
            result = await self.db.execute(query)
            return list(result.scalars().all())

    async def find_order_coupon(self, order_id: int, coupon_id: int) -> Optional[OrderCoupon]:
        query = select(OrderCoupon).where(
            OrderCoupon.order_id == order_id,
            OrderCoupon.coupon_id == coupon_id
        )

        async with db_errors("find order coupon"):
            result = await self.db.execute(query)
            return result.scalars().first()

    async def create_order_coupon(self, order_id: int, coupon_id: int, discount: Decimal) -> OrderCoupon:
        link = OrderCoupon(order_id=order_id, coupon_id=coupon_id, discount=discount)

        async with db_errors("create order coupon"):
            async with self.db.begin_nested():
                self.db.add(link)

        return link

    async def update_order_total(self, order_id: int, total: Decimal) -> Order:
        async with db_errors("update order total"):
            order = await self.db.get(Order, order_id)
            order.total_amount = total
            await self.db.flush()

        return order

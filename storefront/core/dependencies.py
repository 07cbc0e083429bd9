from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession
from typing import AsyncGenerator

from ..enums import UserRole
from ..exceptions import ForbiddenException, UnauthorizedException
from ..core.config import Config
from ..repos import CartRepo, CatalogRepo, CouponRepo
from ..schemas.auth import CurrentUser
from ..services import CartService, CouponService


async def get_db(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """
    Asynchronous dependency that provides a database session for FastAPI routes.

    Yields:
        AsyncSession: A session from the Database the application connected at startup.

    Usage:
        Use as a dependency in FastAPI endpoints to access the database session.
        The session is closed (and any uncommitted work rolled back) after the request.
    """

    async with request.app.state.database.session() as db:
        yield db


async def get_current_user(request: Request) -> CurrentUser:
    """
    Return the caller identity attached by CustomAuthMiddleWare.

    Raises:
        UnauthorizedException: If the request carries no identity.
    """
    user = getattr(request.state, "user", None)
    if user is None:
        raise UnauthorizedException()
    return user


def get_current_admin(user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
    if not user.role == UserRole.ADMIN:
        raise ForbiddenException(detail="Only admins can access this resource!")

    return user


def get_cart_service(db: AsyncSession = Depends(get_db)) -> CartService:
    return CartService(
        cart_store=CartRepo(db),
        catalog=CatalogRepo(db),
        coupon_store=CouponRepo(db),
        max_items=Config.CART_MAX_ITEM_LIMIT,
    )


def get_coupon_service(db: AsyncSession = Depends(get_db)) -> CouponService:
    return CouponService(
        coupon_store=CouponRepo(db),
        cart_store=CartRepo(db),
        catalog=CatalogRepo(db),
    )

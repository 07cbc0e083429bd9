"""
Tests for CartService over the in-memory store.
"""
from decimal import Decimal

import pytest

from storefront.exceptions import (
    ConflictException,
    DuplicateRecordError,
    InvalidArgumentException,
    LimitExceededException,
    MissingReferenceError,
    NotFoundException,
    StorageFailureException,
    StoreError,
    UnauthorizedException,
)

from .conftest import MAX_ITEMS

USER_ID = 7
OTHER_USER_ID = 8


class TestAddItem:

    @pytest.mark.asyncio
    async def test_first_add_creates_cart_with_quantity_one(self, cart_service, store):
        result = await cart_service.add_item(USER_ID, 1)

        assert len(store.carts) == 1
        assert result["cart"]["user_id"] == USER_ID
        assert len(result["cart"]["items"]) == 1

        item = result["cart"]["items"][0]
        assert item["product_id"] == 1
        assert item["variant_id"] is None
        assert item["quantity"] == 1
        assert item["unit_price"] == Decimal("20.00")
        assert result["total"] == Decimal("20.00")
        assert "subtotal" not in result
        assert "discount_amount" not in result

    @pytest.mark.asyncio
    async def test_second_add_reuses_cart(self, cart_service, store):
        await cart_service.add_item(USER_ID, 1)
        result = await cart_service.add_item(USER_ID, 3)

        assert len(store.carts) == 1
        assert [i["product_id"] for i in result["cart"]["items"]] == [1, 3]
        assert result["total"] == Decimal("25.00")

    @pytest.mark.asyncio
    async def test_variant_price_is_added(self, cart_service):
        result = await cart_service.add_item(USER_ID, 2, 21)

        assert result["cart"]["items"][0]["unit_price"] == Decimal("20.00")
        assert result["total"] == Decimal("20.00")

    @pytest.mark.asyncio
    async def test_duplicate_product_is_rejected(self, cart_service, store):
        await cart_service.add_item(USER_ID, 1)

        with pytest.raises(ConflictException):
            await cart_service.add_item(USER_ID, 1)

        assert len(store.items) == 1

    @pytest.mark.asyncio
    async def test_duplicate_product_variant_pair_is_rejected(self, cart_service):
        await cart_service.add_item(USER_ID, 2, 21)

        with pytest.raises(ConflictException):
            await cart_service.add_item(USER_ID, 2, 21)

    @pytest.mark.asyncio
    async def test_same_product_with_other_variant_is_accepted(self, cart_service):
        await cart_service.add_item(USER_ID, 2, 21)
        result = await cart_service.add_item(USER_ID, 2, 22)

        assert len(result["cart"]["items"]) == 2
        assert result["total"] == Decimal("37.50")

    @pytest.mark.asyncio
    async def test_no_duplicate_pairs_after_any_sequence_of_adds(self, cart_service, store):
        attempts = [(1, None), (2, 21), (1, None), (2, 22), (2, 21)]

        for product_id, variant_id in attempts:
            try:
                await cart_service.add_item(USER_ID, product_id, variant_id)
            except (ConflictException, LimitExceededException):
                pass

        pairs = [(i.product_id, i.variant_id) for i in store.items.values()]
        assert len(pairs) == len(set(pairs))

    @pytest.mark.asyncio
    async def test_item_limit(self, cart_service, store):
        for product_id in (1, 3, 4):
            await cart_service.add_item(USER_ID, product_id)

        with pytest.raises(LimitExceededException):
            await cart_service.add_item(USER_ID, 2, 21)

        assert len(store.items) == MAX_ITEMS

    @pytest.mark.asyncio
    async def test_unknown_product(self, cart_service, store):
        with pytest.raises(NotFoundException):
            await cart_service.add_item(USER_ID, 999)

        assert store.writes == []

    @pytest.mark.asyncio
    async def test_variant_of_another_product(self, cart_service):
        with pytest.raises(NotFoundException):
            await cart_service.add_item(USER_ID, 1, 21)

    @pytest.mark.asyncio
    async def test_requires_caller(self, cart_service, store):
        with pytest.raises(UnauthorizedException):
            await cart_service.add_item(None, 1)

        assert store.carts == {}

    @pytest.mark.asyncio
    async def test_store_uniqueness_violation_is_a_conflict(self, cart_service, store):
        """A concurrent insert that wins the race surfaces as the constraint error"""
        await cart_service.add_item(USER_ID, 3)

        async def racing_insert(*args, **kwargs):
            raise DuplicateRecordError("create cart item: record already exists")

        store.create_item = racing_insert

        with pytest.raises(ConflictException):
            await cart_service.add_item(USER_ID, 1)

    @pytest.mark.asyncio
    async def test_store_foreign_key_violation_is_not_found(self, cart_service, store):
        async def product_deleted(*args, **kwargs):
            raise MissingReferenceError("create cart item: referenced row does not exist")

        store.create_item = product_deleted

        with pytest.raises(NotFoundException):
            await cart_service.add_item(USER_ID, 1)

    @pytest.mark.asyncio
    async def test_concurrent_cart_creation_reuses_winner(self, cart_service, store):
        """Another request created the cart between our lookup and our insert"""
        original_create = store.create_cart

        async def lose_race(user_id):
            await original_create(user_id)
            raise DuplicateRecordError("create cart: record already exists")

        store.create_cart = lose_race

        result = await cart_service.add_item(USER_ID, 1)

        assert len(store.carts) == 1
        assert result["cart"]["id"] == next(iter(store.carts))

    @pytest.mark.asyncio
    async def test_storage_failure(self, cart_service, store):
        store.fail_with = StoreError("create cart: database error")

        with pytest.raises(StorageFailureException) as exc_info:
            await cart_service.add_item(USER_ID, 1)

        assert "database" not in exc_info.value.detail


class TestGetCart:

    @pytest.mark.asyncio
    async def test_no_cart(self, cart_service):
        with pytest.raises(NotFoundException):
            await cart_service.get_cart(USER_ID)

    @pytest.mark.asyncio
    async def test_requires_caller(self, cart_service):
        with pytest.raises(UnauthorizedException):
            await cart_service.get_cart(None)

    @pytest.mark.asyncio
    async def test_reference_scenario_with_coupon(self, cart_service, store):
        await cart_service.add_item(USER_ID, 1)
        added = await cart_service.add_item(USER_ID, 2, 21)
        item_id = added["cart"]["items"][0]["id"]
        await cart_service.update_quantity(USER_ID, item_id, 2)
        store.cart_coupons[added["cart"]["id"]] = 1  # SAVE10

        result = await cart_service.get_cart(USER_ID)

        assert result["cart"]["coupon_code"] == "SAVE10"
        assert result["subtotal"] == Decimal("60.00")
        assert result["discount_amount"] == Decimal("6.00")
        assert result["total"] == Decimal("54.00")

    @pytest.mark.asyncio
    async def test_prices_are_read_live_from_catalog(self, cart_service, store):
        await cart_service.add_item(USER_ID, 1)
        store.products[1].base_price = Decimal("25.00")

        result = await cart_service.get_cart(USER_ID)

        assert result["total"] == Decimal("25.00")

    @pytest.mark.asyncio
    async def test_expired_coupon_still_attached_is_priced(self, cart_service, store):
        cart = (await cart_service.add_item(USER_ID, 1))["cart"]
        store.cart_coupons[cart["id"]] = 3  # OLD20, expired

        result = await cart_service.get_cart(USER_ID)

        assert result["discount_amount"] == Decimal("4.00")
        assert result["total"] == Decimal("16.00")


class TestRemoveItem:

    @pytest.mark.asyncio
    async def test_remove_returns_repriced_cart(self, cart_service, store):
        await cart_service.add_item(USER_ID, 1)
        added = await cart_service.add_item(USER_ID, 3)
        item_id = added["cart"]["items"][0]["id"]

        result = await cart_service.remove_item(USER_ID, item_id)

        assert [i["product_id"] for i in result["cart"]["items"]] == [3]
        assert result["total"] == Decimal("5.00")
        assert item_id not in store.items

    @pytest.mark.asyncio
    async def test_item_of_another_user_is_not_found(self, cart_service, store):
        other = await cart_service.add_item(OTHER_USER_ID, 1)
        other_item_id = other["cart"]["items"][0]["id"]
        await cart_service.add_item(USER_ID, 3)

        with pytest.raises(NotFoundException) as exc_info:
            await cart_service.remove_item(USER_ID, other_item_id)

        assert exc_info.value.detail == "Item not found in your cart."
        assert other_item_id in store.items

    @pytest.mark.asyncio
    async def test_missing_item_gets_the_same_error(self, cart_service):
        await cart_service.add_item(USER_ID, 3)

        with pytest.raises(NotFoundException) as exc_info:
            await cart_service.remove_item(USER_ID, 424242)

        assert exc_info.value.detail == "Item not found in your cart."

    @pytest.mark.asyncio
    async def test_no_cart(self, cart_service):
        with pytest.raises(NotFoundException):
            await cart_service.remove_item(USER_ID, 1)


class TestClearCart:

    @pytest.mark.asyncio
    async def test_clear_keeps_cart(self, cart_service, store):
        await cart_service.add_item(USER_ID, 1)
        await cart_service.add_item(USER_ID, 3)

        await cart_service.clear_cart(USER_ID)

        assert store.items == {}
        assert len(store.carts) == 1
        assert (await cart_service.get_cart(USER_ID))["total"] == Decimal("0")

    @pytest.mark.asyncio
    async def test_no_cart(self, cart_service):
        with pytest.raises(NotFoundException):
            await cart_service.clear_cart(USER_ID)

    @pytest.mark.asyncio
    async def test_only_clears_own_cart(self, cart_service, store):
        await cart_service.add_item(OTHER_USER_ID, 1)
        await cart_service.add_item(USER_ID, 3)

        await cart_service.clear_cart(USER_ID)

        assert [i.product_id for i in store.items.values()] == [1]


class TestUpdateQuantity:

    @pytest.mark.asyncio
    async def test_returns_raw_item(self, cart_service):
        added = await cart_service.add_item(USER_ID, 1)
        item_id = added["cart"]["items"][0]["id"]

        result = await cart_service.update_quantity(USER_ID, item_id, 4)

        assert result == {
            "id": item_id,
            "cart_id": added["cart"]["id"],
            "product_id": 1,
            "variant_id": None,
            "quantity": 4,
        }
        assert (await cart_service.get_cart(USER_ID))["total"] == Decimal("80.00")

    @pytest.mark.parametrize("quantity", [0, -1, True, 1.5, "2", None])
    @pytest.mark.asyncio
    async def test_invalid_quantity_fails_before_store_is_touched(self, cart_service, store, quantity):
        await cart_service.add_item(USER_ID, 1)
        writes_before = list(store.writes)

        with pytest.raises(InvalidArgumentException):
            await cart_service.update_quantity(USER_ID, 1, quantity)

        assert store.writes == writes_before

    @pytest.mark.asyncio
    async def test_item_of_another_user_is_not_found(self, cart_service, store):
        other = await cart_service.add_item(OTHER_USER_ID, 1)
        other_item_id = other["cart"]["items"][0]["id"]

        with pytest.raises(NotFoundException):
            await cart_service.update_quantity(USER_ID, other_item_id, 3)

        assert store.items[other_item_id].quantity == 1

    @pytest.mark.asyncio
    async def test_requires_caller(self, cart_service):
        with pytest.raises(UnauthorizedException):
            await cart_service.update_quantity(None, 1, 2)


class TestRemoveCoupon:

    @pytest.mark.asyncio
    async def test_remove_coupon(self, cart_service, store):
        cart = (await cart_service.add_item(USER_ID, 1))["cart"]
        store.cart_coupons[cart["id"]] = 1

        result = await cart_service.remove_coupon(USER_ID)

        assert result["total"] == Decimal("20.00")
        assert "subtotal" not in result
        assert store.cart_coupons == {}

    @pytest.mark.asyncio
    async def test_no_cart(self, cart_service):
        with pytest.raises(NotFoundException):
            await cart_service.remove_coupon(USER_ID)

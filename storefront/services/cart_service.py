# storefront/services/cart_service.py
from decimal import Decimal
from typing import Any, Dict, List

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from storefront.data.models.cart import CartModel
from storefront.data.models.cart_item import CartItemModel
from storefront.domain.errors import (
    CartConflict,
    CartItemNotFound,
    CartNotFound,
    InvalidQuantity,
    ItemUnavailable,
    ProductNotFound,
)
from storefront.repos.cart_repo import CartRepo
from storefront.repos.product_repo import ProductRepo
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


class CartService:
    """
    Prosta implementacja cqrs i proste use case dla domeny cart
    commands (get_or_create, add, set_quantity, remove, clear) modyfikuja stan
    query (snapshot) tylko odczyt

    Kazda komenda podbija carts.version warunkowym UPDATE, wiec operacje na
    koszyku jednego usera sa liniowe.
    """

    def __init__(self, db: Session):
        self.repo = CartRepo(db)
        self.products = ProductRepo(db)

    #query - odczyt
    def snapshot(self, user_id: int) -> Dict[str, Any]:
        cart = self.repo.get_cart_with_items(user_id)

        if not cart:
            return {"cart_id": None, "user_id": user_id, "version": None, "items": [], "total": Decimal("0.00")}

        lines = []
        for i in sorted(cart.items, key=lambda item: item.id):
            #aktualna cena produktu, koszyk nie zamraza cen
            unit_price = i.product.price
            lines.append(
                {
                    "item_id": i.id,
                    "product_id": i.product_id,
                    "name": i.product.name,
                    "unit_price": unit_price,
                    "quantity": i.quantity,
                    "line_total": unit_price * i.quantity,
                }
            )

        total = sum((line["line_total"] for line in lines), Decimal("0.00"))

        return {
            "cart_id": cart.id,
            "user_id": cart.user_id,
            "version": cart.version,
            "items": lines,
            "total": total,
        }

    #commands
    def get_or_create(self, user_id: int) -> CartModel:
        existing = self.repo.get_cart_by_user(user_id)
        if existing:
            return existing

        try:
            created = self.repo.create_cart(CartModel(user_id=user_id, version=1))
        except IntegrityError:
            #ktos inny utworzyl koszyk rownolegle - bierzemy jego
            self.repo.rollback()
            existing = self.repo.get_cart_by_user(user_id)
            if not existing:
                raise
            return existing

        logger.info(f"Created cart {created.id} for user {user_id}")
        return created

    def add_item(self, user_id: int, product_id: int, quantity: int) -> Dict[str, Any]:
        # Walidacje, zanim cokolwiek zapiszemy
        if quantity <= 0:
            raise InvalidQuantity(quantity)

        product = self.products.get_product(product_id)
        if not product:
            raise ProductNotFound(product_id)
        if not product.available:
            raise ItemUnavailable(product_id)

        cart = self.get_or_create(user_id)

        try:
            existing_item = self.repo.get_cart_item_by_product(cart.id, product_id)

            if existing_item:
                logger.info(
                    f"Product {product_id} already in cart {cart.id}, quantity "
                    f"{existing_item.quantity} -> {existing_item.quantity + quantity}"
                )
                existing_item.quantity += quantity
                self.repo.add_cart_item(existing_item)
            else:
                logger.info(f"Adding product {product_id} to cart {cart.id}")
                self.repo.add_cart_item(
                    CartItemModel(cart_id=cart.id, product_id=product_id, quantity=quantity)
                )
        except IntegrityError:
            #rownolegly add tego samego produktu wygral
            self.repo.rollback()
            raise CartConflict(cart.id)

        self._bump_version(cart)
        return self.snapshot(user_id)

    def set_quantity(self, cart_id: int, item_id: int, quantity: int, user_id: int | None = None) -> Dict[str, Any]:
        cart = self._load_cart(cart_id, user_id)

        item = self.repo.get_cart_item(cart_id, item_id)
        if not item:
            raise CartItemNotFound(item_id)

        #zero albo mniej = usuniecie pozycji, nigdy nie zapisujemy 0
        if quantity <= 0:
            logger.info(f"Quantity {quantity} for item {item_id}, removing it from cart {cart_id}")
            self.repo.delete_cart_item(item)
        else:
            item.quantity = quantity
            self.repo.add_cart_item(item)

        self._bump_version(cart)
        return self.snapshot(cart.user_id)

    def remove_item(self, cart_id: int, item_id: int, user_id: int | None = None) -> Dict[str, Any]:
        cart = self._load_cart(cart_id, user_id)

        item = self.repo.get_cart_item(cart_id, item_id)
        if not item:
            raise CartItemNotFound(item_id)

        logger.info(f"Removing item {item_id} from cart {cart_id}")
        self.repo.delete_cart_item(item)

        self._bump_version(cart)
        return self.snapshot(cart.user_id)

    def clear(self, cart_id: int, user_id: int | None = None) -> Dict[str, Any]:
        cart = self._load_cart(cart_id, user_id)

        removed = self.repo.delete_all_items(cart_id)
        self._bump_version(cart)

        logger.info(f"Cleared cart {cart_id} ({removed} lines)")
        return self.snapshot(cart.user_id)

    def claim_for_checkout(self, cart_id: int, seen_version: int) -> int:
        """
        Oproznia koszyk w transakcji tworzenia zamowienia, bez commita.
        Warunek na wersje ze snapshotu: jesli koszyk zmienil sie od odczytu
        (albo inny checkout go juz zabral), CartConflict i rollback.
        """
        rowcount = self.repo.update_cart_version(cart_id=cart_id, old_version=seen_version)
        if rowcount == 0:
            self.repo.rollback()
            raise CartConflict(cart_id)

        return self.repo.delete_all_items(cart_id)

    def restore_items(self, user_id: int, lines: List[Dict[str, Any]]) -> Dict[str, Any]:
        #kompensacja po nieudanym checkoucie, pozycje wracaja do koszyka
        cart = self.get_or_create(user_id)

        for line in lines:
            existing_item = self.repo.get_cart_item_by_product(cart.id, line["product_id"])
            if existing_item:
                existing_item.quantity += line["quantity"]
                self.repo.add_cart_item(existing_item)
            else:
                self.repo.add_cart_item(
                    CartItemModel(cart_id=cart.id, product_id=line["product_id"], quantity=line["quantity"])
                )

        self._bump_version(cart)
        logger.info(f"Restored {len(lines)} lines to cart {cart.id}")
        return self.snapshot(user_id)

    def _load_cart(self, cart_id: int, user_id: int | None) -> CartModel:
        cart = self.repo.get_cart(cart_id)

        if not cart:
            raise CartNotFound(cart_id)

        if user_id is not None and cart.user_id != user_id:
            raise PermissionError("No access to this cart")

        return cart

    def _bump_version(self, cart: CartModel) -> None:
        # Optimistic locking warunek na wersje
        # np w bazie update set version 2 where id 1 and version 1
        rowcount = self.repo.update_cart_version(cart_id=cart.id, old_version=cart.version)

        if rowcount == 0:
            self.repo.rollback()
            raise CartConflict(cart.id)

        self.repo.commit()

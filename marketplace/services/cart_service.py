from decimal import Decimal
from typing import Dict, Any, Iterable

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from marketplace.data.models.cart import CartModel
from marketplace.data.models.cart_item import CartItemModel
from marketplace.domain.errors import ConflictError, NotFoundError, ValidationError
from marketplace.repos.cart_repo import CartRepo
from marketplace.services.pricing import PricingService
from marketplace.services.product_client import PriceCatalog
from marketplace.utils.money import ZERO, round_money
from marketplace.utils.logging import get_logger

logger = get_logger(__name__)


def _check_quantity(quantity) -> None:
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity < 1:
        raise ValidationError("Quantity must be at least 1")


class CartService:
    """
    Prosta implementacja cqrs dla domeny cart
    commands (add, set quantity, remove, remove paid) modyfikuja stan
    query (get) tylko odczyt

    Cena nie jest trzymana w koszyku, liczona na zywo z katalogu.
    """

    def __init__(self, db: Session, catalog: PriceCatalog):
        self.repo = CartRepo(db)
        self.pricing = PricingService(catalog)

    #query - odczyt
    def get_cart(self, user_id: int) -> Dict[str, Any]:
        cart = self.repo.get_cart_by_user(user_id)

        #brak dokumentu to co innego niz pusty koszyk
        if not cart:
            raise NotFoundError("User cart not found")

        return self._to_dict(cart)

    def _to_dict(self, cart: CartModel) -> Dict[str, Any]:
        items = []
        total = ZERO

        for i in cart.items:
            pack = None
            line_total = None
            product = self.pricing.catalog.find_product(i.product_id)
            if product is not None:
                pack = product.find_pack(i.pack_size_id)
            #linie z usunietym produktem zostaja, ale nie licza sie do sumy
            if pack is not None:
                line_total = round_money(pack.price * i.quantity)
                total += line_total

            items.append(
                {
                    "id": i.id,
                    "product_id": i.product_id,
                    "pack_size_id": i.pack_size_id,
                    "quantity": i.quantity,
                    "pack_size": pack,
                    "line_total": line_total,
                }
            )

        return {
            "cart_id": cart.id,
            "user_id": cart.user_id,
            "items": items,
            "total_amount": round_money(total),
            "is_empty": not items,
            "version": cart.version,
        }

    #commands
    def add_item(self, user_id: int, product_id: int, pack_size_id: int, quantity: int) -> Dict[str, Any]:
        """
        Use Case: Dodanie produktu do koszyka (Command).

        - quantity >= 1
        - produkt i wariant istnieja w katalogu
        - ta sama para (produkt, wariant) jest scalana przez sumowanie ilosci
        """
        _check_quantity(quantity)

        # walidacja w katalogu przed jakimkolwiek zapisem
        self.pricing.get_pack(product_id, pack_size_id)

        cart = self.repo.get_cart_by_user(user_id)
        if not cart:
            cart = self._create_cart(user_id)

        existing_item = self.repo.get_cart_item(cart.id, product_id, pack_size_id)

        if existing_item:
            logger.info(
                f"Produkt {product_id}/{pack_size_id} już jest w koszyku, zwiekszam ilosc "
                f"z {existing_item.quantity} do {existing_item.quantity + quantity}"
            )
            existing_item.quantity += quantity
        else:
            logger.info(f"Dodaje nowy produkt {product_id}/{pack_size_id} do koszyka {cart.id}")
            self.repo.add_cart_item(
                CartItemModel(
                    cart_id=cart.id,
                    product_id=product_id,
                    pack_size_id=pack_size_id,
                    quantity=quantity,
                )
            )

        self._bump_version(cart)
        return self.get_cart(user_id)

    def set_item_quantity(self, user_id: int, product_id: int, pack_size_id: int, quantity: int) -> Dict[str, Any]:
        """
        Use Case: Zmiana ilosci (nadpisanie, nie dodawanie).
        """
        _check_quantity(quantity)

        cart = self.repo.get_cart_by_user(user_id)
        if not cart:
            raise NotFoundError("Cart not found")

        item = self.repo.get_cart_item(cart.id, product_id, pack_size_id)
        if not item:
            raise NotFoundError("Item not found in cart")

        item.quantity = quantity

        self._bump_version(cart)
        return self.get_cart(user_id)

    def remove_item(self, user_id: int, cart_item_id: int) -> Dict[str, Any]:
        cart = self.repo.get_cart_by_user(user_id)
        if not cart:
            raise NotFoundError("Cart or item not found")

        item = next((i for i in cart.items if i.id == cart_item_id), None)
        if not item:
            raise NotFoundError("Cart or item not found")

        logger.info(f"Usuwanie pozycji {cart_item_id} z koszyka {cart.id}")
        cart.items.remove(item)

        self._bump_version(cart)
        #pusty koszyk zostaje w bazie
        return self.get_cart(user_id)

    def remove_paid_items(self, user_id: int, pairs: Iterable[tuple[int, int]]) -> int:
        """
        Use Case: Czyszczenie koszyka po platnosci (follow-up, nieatomowe).
        Zwraca liczbe usunietych linii.
        """
        cart = self.repo.get_cart_by_user(user_id)
        if not cart:
            return 0

        paid = {(int(p), int(k)) for p, k in pairs}
        stale = [i for i in cart.items if (i.product_id, i.pack_size_id) in paid]
        if not stale:
            return 0

        for item in stale:
            cart.items.remove(item)

        self._bump_version(cart)
        logger.info(f"Usunieto {len(stale)} oplaconych pozycji z koszyka {cart.id}")
        return len(stale)

    def _create_cart(self, user_id: int) -> CartModel:
        logger.info(f"Tworze koszyk dla uzytkownika {user_id}")
        try:
            return self.repo.create_cart(CartModel(user_id=user_id, version=1))
        except IntegrityError:
            # koszyk utworzony rownolegle (unique na user_id)
            self.repo.rollback()
            logger.warning(f"Koszyk uzytkownika {user_id} juz istnieje, uzywam istniejacego")
            cart = self.repo.get_cart_by_user(user_id)
            if not cart:
                raise ConflictError("Cart was modified by another operation, retry")
            return cart

    def _bump_version(self, cart: CartModel) -> None:
        # Optimistic locking
        # UPDATE carts SET version = v + 1 WHERE id = :id AND version = v
        rowcount = self.repo.update_cart_version(
            cart_id=cart.id,
            old_version=cart.version,
            new_data={"version": cart.version + 1},
        )

        if rowcount == 0:
            self.repo.rollback()
            logger.warning(f"Konflikt wersji koszyka {cart.id}")
            raise ConflictError("Cart was modified by another operation, retry")

        self.repo.commit()

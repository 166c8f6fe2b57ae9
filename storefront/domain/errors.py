# storefront/domain/errors.py
"""
Wyjatki domeny koszyka i zamowien.

Kazdy wyjatek niesie identyfikatory/ilosci, zeby warstwa HTTP mogla
oddac klientowi konkretna informacje co poprawic w koszyku.
"""


class StorefrontError(Exception):
    pass


# walidacja na granicy Cart Store
class InvalidQuantity(StorefrontError, ValueError):
    def __init__(self, product_id: int, quantity: int):
        self.product_id = product_id
        self.quantity = quantity
        super().__init__(f"Niepoprawna ilosc {quantity} dla produktu {product_id}")


class UnknownProduct(StorefrontError, LookupError):
    def __init__(self, product_id: int):
        self.product_id = product_id
        super().__init__(f"Produkt {product_id} nie istnieje w katalogu")


class NotFound(StorefrontError, LookupError):
    pass


class CartItemNotFound(NotFound):
    def __init__(self, owner_key: str, product_id: int):
        self.owner_key = owner_key
        self.product_id = product_id
        super().__init__(f"Produktu {product_id} nie ma w koszyku {owner_key}")


class OrderNotFound(NotFound):
    def __init__(self, order_id: str):
        self.order_id = order_id
        super().__init__(f"Zamowienie {order_id} nie istnieje")


# bledy checkoutu, zawsze do naprawienia przez uzytkownika
class CheckoutError(StorefrontError):
    pass


class EmptyCart(CheckoutError):
    def __init__(self, owner_key: str):
        self.owner_key = owner_key
        super().__init__(f"Koszyk {owner_key} jest pusty")


class ProductUnavailable(CheckoutError):
    def __init__(self, product_id: int):
        self.product_id = product_id
        super().__init__(f"Produkt {product_id} nie jest juz dostepny, usun go z koszyka")


class InsufficientStock(CheckoutError):
    def __init__(self, product_id: int, requested: int, available: int):
        self.product_id = product_id
        self.requested = requested
        self.available = available
        super().__init__(
            f"Brak wystarczajacej ilosci produktu {product_id}: "
            f"zadano {requested}, dostepne {available}"
        )


class DuplicateOrder(StorefrontError):
    """Kolizja order_id - zlamany niezmiennik generatora id, to jest defekt."""

    def __init__(self, order_id: str):
        self.order_id = order_id
        super().__init__(f"Zamowienie {order_id} juz istnieje")


class AlreadyCancelled(StorefrontError):
    def __init__(self, order_id: str):
        self.order_id = order_id
        super().__init__(f"Zamowienie {order_id} jest juz anulowane")


# wspolbieznosc
class CartConflict(StorefrontError, RuntimeError):
    def __init__(self, owner_key: str):
        self.owner_key = owner_key
        super().__init__(
            f"Konflikt wspolbieznosci - koszyk {owner_key} zostal zmodyfikowany przez inna operacje"
        )


class LockTimeout(StorefrontError, RuntimeError):
    def __init__(self, key: str, waited: float):
        self.key = key
        self.waited = waited
        super().__init__(f"Nie udalo sie zdobyc locka {key} w ciagu {waited}s")


class AuthenticationRequired(StorefrontError):
    pass

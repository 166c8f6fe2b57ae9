from decimal import Decimal

import pytest

from storefront.domain.errors import ProductUnavailable
from storefront.domain.types import CartLine


def test_resolve_prices_every_line(services, add_product):
    add_product(1, "10.00", 5)
    add_product(2, "5.00", 5)

    priced = services.pricing.resolve("account:1", [CartLine(1, 2), CartLine(2, 1)])

    assert [l.captured_unit_price for l in priced.lines] == [Decimal("10.00"), Decimal("5.00")]
    assert [l.line_total for l in priced.lines] == [Decimal("20.00"), Decimal("5.00")]
    assert priced.total == Decimal("25.00")
    assert priced.total == sum(l.line_total for l in priced.lines)


def test_resolve_fails_whole_cart_on_missing_product(services, add_product):
    add_product(1, "10.00", 5)

    with pytest.raises(ProductUnavailable) as exc:
        services.pricing.resolve("account:1", [CartLine(1, 1), CartLine(99, 1)])

    assert exc.value.product_id == 99


def test_resolve_does_not_touch_cart(services, add_product):
    add_product(1, "10.00", 5)
    services.carts.add_item("account:1", 1, 2)
    before = services.carts.get_cart("account:1")

    services.pricing.resolve("account:1", [CartLine(1, 2)])

    assert services.carts.get_cart("account:1") == before


def test_line_totals_stay_in_minor_units(services, add_product):
    add_product(1, "0.33", 50)

    priced = services.pricing.resolve("account:1", [CartLine(1, 3)])

    assert priced.lines[0].line_total == Decimal("0.99")
    assert priced.total.as_tuple().exponent == -2


def test_quote_marks_missing_products(services, add_product):
    add_product(1, "10.00", 5)

    quoted = services.pricing.quote("session:x", [CartLine(1, 1), CartLine(7, 2)])

    assert [l.available for l in quoted.lines] == [True, False]
    assert quoted.lines[1].line_total is None
    assert quoted.total == Decimal("10.00")

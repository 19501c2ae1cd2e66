from datetime import date

from rental_service.domain.models import Product
from rental_service.domain.pricing import rental_days, quote


def make_product(price_per_day=100, discount_price_per_day=0):
    return Product(
        id="p1", shop_id="s1", sku="SKU", name="Tent",
        price_per_day=price_per_day, discount_price_per_day=discount_price_per_day, stock=3
    )


def test_discount_price_wins_when_positive():
    assert make_product(100, 80).effective_price_per_day == 80


def test_base_price_when_no_discount():
    assert make_product(100, 0).effective_price_per_day == 100


def test_rental_days_floors_to_whole_days():
    assert rental_days(date(2024, 6, 1), date(2024, 6, 3)) == 2


def test_same_day_rental_billed_as_one_day():
    assert rental_days(date(2024, 6, 1), date(2024, 6, 1)) == 1


def test_quote_with_discount():
    unit_price, rental_price, line_total = quote(make_product(100, 80), quantity=2, duration_days=2)

    assert unit_price == 80
    assert rental_price == 160
    assert line_total == 320


def test_quote_without_discount():
    result = quote(make_product(50, 0), quantity=3, duration_days=4)

    assert result.unit_price == 50
    assert result.rental_price == 200
    assert result.line_total == 600

from datetime import date
from typing import NamedTuple

from rental_service.domain.models import Product


class Quote(NamedTuple):
    unit_price: int
    # цена одной единицы за весь срок аренды, сохраняется в позиции заказа
    rental_price: int
    line_total: int


def rental_days(start_date: date, end_date: date) -> int:
    """Количество оплачиваемых суток; аренда в пределах одного дня считается за сутки"""
    return max(1, (end_date - start_date).days)


def quote(product: Product, quantity: int, duration_days: int) -> Quote:
    """Снимок цены позиции на момент оформления заказа"""
    unit_price = product.effective_price_per_day
    rental_price = unit_price * duration_days
    return Quote(unit_price=unit_price, rental_price=rental_price, line_total=rental_price * quantity)

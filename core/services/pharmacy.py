import logging
import time
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

from django.conf import settings
from django.db import IntegrityError, transaction
from django.db.models import Q, Sum

from core.exceptions import ServiceError, NotFoundError
from core.models import Drug, CartItem, PharmacyOrder, OrderStatus

logger = logging.getLogger(__name__)

CENT = Decimal('0.01')
POPULAR_LIMIT = 10
ORDER_NUMBER_ATTEMPTS = 5


class PharmacyError(ServiceError):
    code = 'pharmacy_error'


class PharmacyNotFound(NotFoundError):
    pass


def _money(value) -> Decimal:
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


# ---------------------------------------------------------------------------
# Catalog
# ---------------------------------------------------------------------------

def get_all_drugs():
    return Drug.objects.filter(is_available=True).order_by('name')


def get_drugs_by_category(category: str):
    return Drug.objects.filter(category=category, is_available=True).order_by('name')


def get_popular_drugs():
    return Drug.objects.filter(is_popular=True, is_available=True).order_by('-rating', '-review_count')[:POPULAR_LIMIT]


def search_drugs(query: str):
    query = (query or '').strip()
    return Drug.objects.filter(
        Q(name__icontains=query) | Q(generic_name__icontains=query) | Q(category__icontains=query),
        is_available=True,
    ).order_by('name')


def get_drug_by_id(drug_id) -> Optional[Drug]:
    return Drug.objects.filter(id=drug_id).first()


def get_categories() -> list[str]:
    return list(
        Drug.objects.filter(is_available=True).order_by('category').values_list('category', flat=True).distinct()
    )


def update_drug_stock(drug_id, new_stock: int) -> Drug:
    if new_stock < 0:
        raise PharmacyError('Stock cannot be negative')
    drug = get_drug_by_id(drug_id)
    if drug is None:
        raise PharmacyNotFound(f'Drug not found: {drug_id}')
    drug.stock_quantity = new_stock
    drug.is_available = new_stock > 0
    drug.save(update_fields=['stock_quantity', 'is_available', 'updated_at'])
    return drug


# ---------------------------------------------------------------------------
# Cart
# ---------------------------------------------------------------------------

def _check_quantity(quantity: int) -> None:
    if quantity is None or int(quantity) <= 0:
        raise PharmacyError('The quantity must be a positive number.')


def add_to_cart(*, drug_id, user, quantity: int, unit_price=None, prescription_id: Optional[str] = None) -> CartItem:
    _check_quantity(quantity)
    drug = get_drug_by_id(drug_id)
    if drug is None:
        raise PharmacyNotFound(f'Drug not found: {drug_id}')
    if not drug.is_in_stock:
        raise PharmacyError(f'{drug.name} is not available')
    if drug.requires_prescription and not prescription_id:
        raise PharmacyError(f'{drug.name} requires a prescription')

    unit_price = _money(drug.discounted_price if unit_price is None else unit_price)
    item = CartItem.objects.create(
        drug=drug,
        user=user,
        quantity=quantity,
        unit_price=unit_price,
        total_price=_money(unit_price * quantity),
        prescription_id=prescription_id,
    )
    logger.info('Added to cart - user=%s drug=%s quantity=%s', user.id, drug.id, quantity)
    return item


def get_cart_items(user):
    return CartItem.objects.filter(user=user).select_related('drug').order_by('created_at', 'id')


def _get_cart_item(user, cart_item_id) -> CartItem:
    item = CartItem.objects.filter(id=cart_item_id, user=user).first()
    if item is None:
        raise PharmacyNotFound(f'Cart item not found: {cart_item_id}')
    return item


def update_cart_item_quantity(user, cart_item_id, new_quantity: int) -> CartItem:
    _check_quantity(new_quantity)
    item = _get_cart_item(user, cart_item_id)
    item.quantity = new_quantity
    item.total_price = _money(item.unit_price * new_quantity)
    item.save(update_fields=['quantity', 'total_price', 'updated_at'])
    return item


def remove_from_cart(user, cart_item_id) -> None:
    _get_cart_item(user, cart_item_id).delete()


def clear_cart(user) -> int:
    deleted, _ = CartItem.objects.filter(user=user).delete()
    return deleted


def get_cart_total(user) -> Decimal:
    total = CartItem.objects.filter(user=user).aggregate(total=Sum('total_price'))['total']
    return _money(total or 0)


def get_cart_item_count(user) -> int:
    count = CartItem.objects.filter(user=user).aggregate(count=Sum('quantity'))['count']
    return int(count or 0)


# ---------------------------------------------------------------------------
# Checkout & orders
# ---------------------------------------------------------------------------

def calculate_delivery_fee(subtotal: Decimal) -> Decimal:
    if subtotal >= Decimal(settings.PHARMACY_FREE_DELIVERY_THRESHOLD):
        return Decimal('0.00')
    return _money(settings.PHARMACY_DELIVERY_FEE)


def calculate_tax(subtotal: Decimal) -> Decimal:
    return _money(subtotal * Decimal(settings.PHARMACY_TAX_RATE))


def generate_order_number(now_ms: Optional[int] = None) -> str:
    # ORD + last digits of the epoch milliseconds
    now_ms = int(time.time() * 1000) if now_ms is None else now_ms
    return f"ORD{str(now_ms)[8:]}"


def _order_number_taken(number: str) -> bool:
    return PharmacyOrder.objects.filter(order_number=number).exists()


def _next_order_number(now_ms: int) -> tuple[str, int]:
    number = generate_order_number(now_ms)
    while _order_number_taken(number):
        now_ms += 1
        number = generate_order_number(now_ms)
    return number, now_ms


@transaction.atomic
def create_order(user, *, delivery_address: str, prescription_id: Optional[str] = None,
                 notes: Optional[str] = None) -> PharmacyOrder:
    items = list(CartItem.objects.select_for_update().filter(user=user).order_by('created_at', 'id'))
    if not items:
        raise PharmacyError('Cart is empty', code='cart_empty')
    if not (delivery_address or '').strip():
        raise PharmacyError('Delivery address is required')

    subtotal = _money(sum((i.total_price for i in items), Decimal('0')))
    delivery_fee = calculate_delivery_fee(subtotal)
    tax = calculate_tax(subtotal)

    fields = {
        'user': user,
        'cart_item_ids': [i.id for i in items],
        'subtotal': subtotal,
        'delivery_fee': delivery_fee,
        'tax': tax,
        'total_amount': subtotal + delivery_fee + tax,
        'status': OrderStatus.PENDING,
        'delivery_address': delivery_address.strip(),
        'prescription_id': prescription_id,
        'notes': notes,
    }
    now_ms = int(time.time() * 1000)
    for attempt in range(1, ORDER_NUMBER_ATTEMPTS + 1):
        order_number, now_ms = _next_order_number(now_ms)
        try:
            # savepoint: a concurrent checkout may claim the same number first
            with transaction.atomic():
                order = PharmacyOrder.objects.create(order_number=order_number, **fields)
            break
        except IntegrityError:
            if attempt == ORDER_NUMBER_ATTEMPTS:
                raise
            logger.warning('Order number %s already taken, retrying', order_number)
            now_ms += 1
    CartItem.objects.filter(id__in=[i.id for i in items]).delete()
    logger.info('Order created - %s user=%s total=%s', order.order_number, user.id, order.total_amount)
    return order


def get_user_orders(user):
    return PharmacyOrder.objects.filter(user=user).order_by('-created_at', '-id')


def get_order_by_id(order_id) -> Optional[PharmacyOrder]:
    return PharmacyOrder.objects.filter(id=order_id).first()


def update_order_status(order_id, status: str) -> PharmacyOrder:
    if status not in OrderStatus.values:
        raise PharmacyError(f'Unknown order status: {status}')
    order = get_order_by_id(order_id)
    if order is None:
        raise PharmacyNotFound(f'Order not found: {order_id}')
    order.status = status
    order.save(update_fields=['status', 'updated_at'])
    logger.info('Order %s status -> %s', order.order_number, status)
    return order

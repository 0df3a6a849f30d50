"""
Pharmacy endpoints: catalog browsing, the per-user cart and orders.
"""
from rest_framework.decorators import api_view, permission_classes, throttle_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from core.permissions import ADMIN_ROLES, IsAdminRole
from core.serializers.pharmacy import (
    DrugSerializer,
    CartItemSerializer,
    OrderSerializer,
    DrugListQuerySerializer,
    AddToCartSerializer,
    UpdateCartItemSerializer,
    CartItemIdSerializer,
    CreateOrderSerializer,
    UpdateOrderStatusSerializer,
)
from core.services import pharmacy as svc
from core.services.audit import log_action
from core.throttling import CheckoutRateThrottle


# ---------------------------------------------------------------------
# Catalog
# ---------------------------------------------------------------------
@api_view(['GET'])
@permission_classes([IsAuthenticated])
def list_drugs(request):
    q = DrugListQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    v = q.validated_data
    if v.get('popular'):
        qs = svc.get_popular_drugs()
    elif (v.get('q') or '').strip():
        qs = svc.search_drugs(v['q'])
    elif v.get('category'):
        qs = svc.get_drugs_by_category(v['category'])
    else:
        qs = svc.get_all_drugs()
    data = DrugSerializer(qs, many=True).data
    return Response({'ok': True, 'total': len(data), 'data': data})


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def drug_detail(request, pk: int):
    drug = svc.get_drug_by_id(pk)
    if drug is None:
        raise svc.PharmacyNotFound(f'Drug not found: {pk}')
    return Response({'ok': True, 'data': DrugSerializer(drug).data})


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def drug_categories(request):
    return Response({'ok': True, 'data': svc.get_categories()})


# ---------------------------------------------------------------------
# Cart
# ---------------------------------------------------------------------
def _cart_payload(user) -> dict:
    return {
        'ok': True,
        'data': CartItemSerializer(svc.get_cart_items(user), many=True).data,
        'total': str(svc.get_cart_total(user)),
        'itemCount': svc.get_cart_item_count(user),
    }


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def cart(request):
    if request.method == 'GET':
        return Response(_cart_payload(request.user))

    s = AddToCartSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    v = s.validated_data
    item = svc.add_to_cart(
        drug_id=v['drugId'],
        user=request.user,
        quantity=v['quantity'],
        prescription_id=v.get('prescriptionId') or None,
    )
    payload = _cart_payload(request.user)
    payload['item'] = CartItemSerializer(item).data
    return Response(payload, status=201)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def cart_update(request):
    s = UpdateCartItemSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    svc.update_cart_item_quantity(request.user, s.validated_data['id'], s.validated_data['quantity'])
    return Response(_cart_payload(request.user))


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def cart_remove(request):
    s = CartItemIdSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    svc.remove_from_cart(request.user, s.validated_data['id'])
    return Response(_cart_payload(request.user))


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def cart_clear(request):
    svc.clear_cart(request.user)
    return Response(_cart_payload(request.user))


# ---------------------------------------------------------------------
# Orders
# ---------------------------------------------------------------------
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
@throttle_classes([CheckoutRateThrottle])
def orders(request):
    if request.method == 'GET':
        data = OrderSerializer(svc.get_user_orders(request.user), many=True).data
        return Response({'ok': True, 'total': len(data), 'data': data})

    s = CreateOrderSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    v = s.validated_data
    order = svc.create_order(
        request.user,
        delivery_address=v['deliveryAddress'],
        prescription_id=v.get('prescriptionId') or None,
        notes=v.get('notes') or None,
    )
    log_action(user=request.user, action='order_create', object_type='pharmacy_order',
               object_id=order.id, detail={'orderNumber': order.order_number, 'total': str(order.total_amount)})
    return Response({'ok': True, 'data': OrderSerializer(order).data}, status=201)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def order_detail(request, pk: int):
    order = svc.get_order_by_id(pk)
    # other users' orders are reported as missing
    if order is None or (order.user_id != request.user.id and request.user.role not in ADMIN_ROLES):
        raise svc.PharmacyNotFound(f'Order not found: {pk}')
    return Response({'ok': True, 'data': OrderSerializer(order).data})


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsAdminRole])
def order_status(request, pk: int):
    s = UpdateOrderStatusSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    order = svc.update_order_status(pk, s.validated_data['status'])
    log_action(user=request.user, action='order_status', object_type='pharmacy_order',
               object_id=order.id, detail={'status': order.status})
    return Response({'ok': True, 'data': OrderSerializer(order).data})

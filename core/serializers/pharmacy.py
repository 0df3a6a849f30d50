from rest_framework import serializers

from core.models import Drug, CartItem, PharmacyOrder, OrderStatus


class DrugSerializer(serializers.ModelSerializer):
    genericName = serializers.CharField(source='generic_name')
    requiresPrescription = serializers.BooleanField(source='requires_prescription')
    imageUrl = serializers.CharField(source='image_url')
    stockQuantity = serializers.IntegerField(source='stock_quantity')
    isAvailable = serializers.BooleanField(source='is_available')
    sideEffects = serializers.JSONField(source='side_effects')
    expiryDate = serializers.DateField(source='expiry_date', allow_null=True)
    reviewCount = serializers.IntegerField(source='review_count')
    isPopular = serializers.BooleanField(source='is_popular')
    discountedPrice = serializers.DecimalField(source='discounted_price', max_digits=10, decimal_places=2, read_only=True)
    hasDiscount = serializers.BooleanField(source='has_discount', read_only=True)
    isInStock = serializers.BooleanField(source='is_in_stock', read_only=True)

    class Meta:
        model = Drug
        fields = [
            'id', 'name', 'genericName', 'description', 'category', 'manufacturer', 'price',
            'dosage', 'form', 'strength', 'requiresPrescription', 'imageUrl', 'stockQuantity',
            'isAvailable', 'sideEffects', 'contraindications', 'instructions', 'expiryDate',
            'rating', 'reviewCount', 'isPopular', 'discount', 'discountedPrice', 'hasDiscount',
            'isInStock',
        ]


class CartItemSerializer(serializers.ModelSerializer):
    drugId = serializers.IntegerField(source='drug_id')
    drugName = serializers.CharField(source='drug.name')
    userId = serializers.IntegerField(source='user_id')
    unitPrice = serializers.DecimalField(source='unit_price', max_digits=10, decimal_places=2)
    totalPrice = serializers.DecimalField(source='total_price', max_digits=12, decimal_places=2)
    prescriptionId = serializers.CharField(source='prescription_id', allow_null=True)

    class Meta:
        model = CartItem
        fields = ['id', 'drugId', 'drugName', 'userId', 'quantity', 'unitPrice', 'totalPrice', 'prescriptionId']


class OrderSerializer(serializers.ModelSerializer):
    userId = serializers.IntegerField(source='user_id')
    orderNumber = serializers.CharField(source='order_number')
    cartItemIds = serializers.JSONField(source='cart_item_ids')
    deliveryFee = serializers.DecimalField(source='delivery_fee', max_digits=8, decimal_places=2)
    totalAmount = serializers.DecimalField(source='total_amount', max_digits=12, decimal_places=2)
    deliveryAddress = serializers.CharField(source='delivery_address')
    prescriptionId = serializers.CharField(source='prescription_id', allow_null=True)
    deliveryDate = serializers.DateTimeField(source='delivery_date', allow_null=True)
    trackingNumber = serializers.CharField(source='tracking_number', allow_null=True)
    createdAt = serializers.DateTimeField(source='created_at')

    class Meta:
        model = PharmacyOrder
        fields = [
            'id', 'userId', 'orderNumber', 'cartItemIds', 'subtotal', 'deliveryFee', 'tax',
            'totalAmount', 'status', 'deliveryAddress', 'prescriptionId', 'deliveryDate',
            'trackingNumber', 'notes', 'createdAt',
        ]


class DrugListQuerySerializer(serializers.Serializer):
    q = serializers.CharField(max_length=128, required=False, allow_blank=True)
    category = serializers.CharField(max_length=128, required=False)
    popular = serializers.BooleanField(required=False, default=False)


class AddToCartSerializer(serializers.Serializer):
    drugId = serializers.IntegerField(min_value=1)
    quantity = serializers.IntegerField(min_value=1, default=1)
    prescriptionId = serializers.CharField(max_length=64, required=False, allow_blank=True)


class UpdateCartItemSerializer(serializers.Serializer):
    id = serializers.IntegerField(min_value=1)
    quantity = serializers.IntegerField(min_value=1)


class CartItemIdSerializer(serializers.Serializer):
    id = serializers.IntegerField(min_value=1)


class CreateOrderSerializer(serializers.Serializer):
    deliveryAddress = serializers.CharField(max_length=512)
    prescriptionId = serializers.CharField(max_length=64, required=False, allow_blank=True)
    notes = serializers.CharField(max_length=2000, required=False, allow_blank=True)


class UpdateOrderStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=OrderStatus.values)

"""
Database models for the MedRefer backend.

These models capture the records the mobile client works with: users,
patients, specialists and referrals (searched by the search aggregator),
the pharmacy catalog with carts and orders, encrypted per-user settings
and the audit trail.  Field names mirror the JSON keys the client sends
so that serialisation stays a flat mapping.
"""
from __future__ import annotations

from decimal import Decimal

from django.contrib.auth.models import AbstractUser
from django.db import models


class User(AbstractUser):
    """Custom user model carrying the client role.

    Roles: 'patient' (orders from the pharmacy, receives notifications),
    'physician' (creates referrals, searches the directory) and 'admin'
    (manages catalog and order fulfilment).
    """
    ROLE_CHOICES = [
        ('patient', 'Patient'),
        ('physician', 'Physician'),
        ('admin', 'Administrator'),
    ]
    role = models.CharField(max_length=16, choices=ROLE_CHOICES, default='patient')

    def __str__(self) -> str:
        return f"{self.username} ({self.role})"


class Patient(models.Model):
    """A patient record that can be referred to a specialist."""
    name = models.CharField(max_length=255, db_index=True)
    age = models.PositiveIntegerField(default=0)
    medical_record_number = models.CharField(max_length=64, unique=True)
    date_of_birth = models.DateField(null=True, blank=True)
    gender = models.CharField(max_length=16, blank=True)
    blood_type = models.CharField(max_length=8, blank=True, null=True)
    phone = models.CharField(max_length=32, blank=True, null=True)
    email = models.EmailField(blank=True, null=True)
    address = models.CharField(max_length=255, blank=True, null=True)
    insurance = models.CharField(max_length=128, blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'name': self.name,
            'age': self.age,
            'medicalRecordNumber': self.medical_record_number,
            'dateOfBirth': self.date_of_birth.isoformat() if self.date_of_birth else None,
            'gender': self.gender,
            'bloodType': self.blood_type,
            'phone': self.phone,
            'email': self.email,
            'address': self.address,
            'insurance': self.insurance,
        }

    def __str__(self) -> str:
        return f"{self.name} ({self.medical_record_number})"


class Specialist(models.Model):
    """A specialist in the referral directory."""
    name = models.CharField(max_length=255, db_index=True)
    credentials = models.CharField(max_length=128, blank=True, null=True)
    specialty = models.CharField(max_length=128, db_index=True)
    hospital = models.CharField(max_length=255)
    is_available = models.BooleanField(default=True)
    rating = models.FloatField(default=0.0)
    languages = models.JSONField(default=list, blank=True)
    insurance = models.JSONField(default=list, blank=True)
    hospital_network = models.CharField(max_length=255, blank=True, null=True)
    success_rate = models.FloatField(default=0.0)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'name': self.name,
            'credentials': self.credentials,
            'specialty': self.specialty,
            'hospital': self.hospital,
            'isAvailable': self.is_available,
            'rating': self.rating,
            'languages': list(self.languages or []),
            'insurance': list(self.insurance or []),
            'hospitalNetwork': self.hospital_network,
            'successRate': self.success_rate,
        }

    def __str__(self) -> str:
        return f"{self.name} ({self.specialty})"


class Referral(models.Model):
    """A referral of a patient to a specialist or department."""
    tracking_number = models.CharField(max_length=32, unique=True)
    patient = models.ForeignKey(Patient, on_delete=models.CASCADE, related_name='referrals')
    specialist = models.ForeignKey(
        Specialist, null=True, blank=True, on_delete=models.SET_NULL, related_name='referrals'
    )
    status = models.CharField(max_length=32, default='Pending', db_index=True)
    urgency = models.CharField(max_length=32)
    symptoms_description = models.TextField(blank=True, null=True)
    ai_confidence = models.FloatField(default=0.0)
    department = models.CharField(max_length=128, blank=True, null=True)
    referring_physician = models.CharField(max_length=255, blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        indexes = [models.Index(fields=['status', 'created_at'], name='referral_status_created_idx')]

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'trackingNumber': self.tracking_number,
            'patientId': self.patient_id,
            'specialistId': self.specialist_id,
            'status': self.status,
            'urgency': self.urgency,
            'symptomsDescription': self.symptoms_description,
            'aiConfidence': self.ai_confidence,
            'department': self.department,
            'referringPhysician': self.referring_physician,
            'createdAt': self.created_at.isoformat() if self.created_at else None,
        }

    def __str__(self) -> str:
        return f"Referral #{self.tracking_number}"


# ---------------------------------------------------------------------------
# Pharmacy
# ---------------------------------------------------------------------------

class Drug(models.Model):
    """A pharmacy catalog entry."""
    name = models.CharField(max_length=255, db_index=True)
    generic_name = models.CharField(max_length=255, blank=True)
    description = models.TextField(blank=True)
    category = models.CharField(max_length=128, db_index=True)
    manufacturer = models.CharField(max_length=255, blank=True)
    price = models.DecimalField(max_digits=10, decimal_places=2)
    dosage = models.CharField(max_length=128, blank=True)
    # tablet, capsule, syrup, injection, ...
    form = models.CharField(max_length=64, blank=True)
    strength = models.CharField(max_length=64, blank=True)
    requires_prescription = models.BooleanField(default=False)
    image_url = models.CharField(max_length=512, blank=True)
    stock_quantity = models.PositiveIntegerField(default=0)
    is_available = models.BooleanField(default=True, db_index=True)
    side_effects = models.JSONField(default=list, blank=True)
    contraindications = models.JSONField(default=list, blank=True)
    instructions = models.TextField(blank=True)
    expiry_date = models.DateField(null=True, blank=True)
    rating = models.FloatField(default=0.0)
    review_count = models.PositiveIntegerField(default=0)
    is_popular = models.BooleanField(default=False)
    # percentage, e.g. 10 = 10% off
    discount = models.DecimalField(max_digits=5, decimal_places=2, default=Decimal('0'))
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    @property
    def discounted_price(self) -> Decimal:
        return self.price - (self.price * self.discount / Decimal(100))

    @property
    def has_discount(self) -> bool:
        return self.discount > 0

    @property
    def is_in_stock(self) -> bool:
        return self.stock_quantity > 0 and self.is_available

    def __str__(self) -> str:
        return f"{self.name} ({self.category}) ${self.price:.2f}"


class CartItem(models.Model):
    drug = models.ForeignKey(Drug, on_delete=models.CASCADE, related_name='cart_items')
    user = models.ForeignKey(User, on_delete=models.CASCADE, related_name='cart_items')
    quantity = models.PositiveIntegerField(default=1)
    unit_price = models.DecimalField(max_digits=10, decimal_places=2)
    total_price = models.DecimalField(max_digits=12, decimal_places=2)
    prescription_id = models.CharField(max_length=64, blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        indexes = [models.Index(fields=['user', 'created_at'], name='cartitem_user_created_idx')]

    def __str__(self) -> str:
        return f"cart {self.id} u={self.user_id} drug={self.drug_id} x{self.quantity}"


class OrderStatus(models.TextChoices):
    PENDING = 'pending', 'Pending'
    CONFIRMED = 'confirmed', 'Confirmed'
    PROCESSING = 'processing', 'Processing'
    SHIPPED = 'shipped', 'Shipped'
    DELIVERED = 'delivered', 'Delivered'
    CANCELLED = 'cancelled', 'Cancelled'


class PharmacyOrder(models.Model):
    """An order created at checkout from the contents of a cart.

    ``cart_item_ids`` is a snapshot of the cart rows that were checked
    out; the rows themselves are deleted with the cart.
    """
    user = models.ForeignKey(User, on_delete=models.CASCADE, related_name='pharmacy_orders')
    order_number = models.CharField(max_length=32, unique=True)
    cart_item_ids = models.JSONField(default=list)
    subtotal = models.DecimalField(max_digits=12, decimal_places=2)
    delivery_fee = models.DecimalField(max_digits=8, decimal_places=2)
    tax = models.DecimalField(max_digits=10, decimal_places=2)
    total_amount = models.DecimalField(max_digits=12, decimal_places=2)
    status = models.CharField(
        max_length=16, choices=OrderStatus.choices, default=OrderStatus.PENDING, db_index=True
    )
    delivery_address = models.CharField(max_length=512)
    prescription_id = models.CharField(max_length=64, blank=True, null=True)
    delivery_date = models.DateTimeField(blank=True, null=True)
    tracking_number = models.CharField(max_length=64, blank=True, null=True)
    notes = models.TextField(blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        indexes = [models.Index(fields=['user', 'created_at'], name='order_user_created_idx')]

    def __str__(self) -> str:
        return f"{self.order_number} ({self.status})"


# ---------------------------------------------------------------------------
# Per-user secure settings, search history & audit
# ---------------------------------------------------------------------------

class SecureValue(models.Model):
    """Encrypted key/value entry owned by a user."""
    user = models.ForeignKey(User, on_delete=models.CASCADE, related_name='secure_values')
    key = models.CharField(max_length=64)
    # base64(nonce | tag | ciphertext)
    value = models.TextField()
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        unique_together = [('user', 'key')]

    def __str__(self) -> str:
        return f"secure:{self.user_id}:{self.key}"


class RecentSearch(models.Model):
    user = models.ForeignKey(User, on_delete=models.CASCADE, related_name='recent_searches')
    query = models.CharField(max_length=255)
    result_count = models.PositiveIntegerField(default=0)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        indexes = [models.Index(fields=['user', 'created_at'], name='recentsearch_user_created_idx')]

    def __str__(self) -> str:
        return f"{self.user_id}:{self.query}"


class AuditEvent(models.Model):
    user = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True)
    action = models.CharField(max_length=64)
    object_type = models.CharField(max_length=64, blank=True, null=True)
    object_id = models.IntegerField(blank=True, null=True)
    detail = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        indexes = [
            models.Index(fields=['action', 'created_at'], name='audit_action_created_idx'),
            models.Index(fields=['object_type', 'object_id', 'created_at'], name='audit_object_created_idx'),
        ]

    def __str__(self):
        return f"{self.action}:{self.user_id}@{self.created_at:%F %T}"

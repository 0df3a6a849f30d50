"""
Django admin registrations for the core models.

Superusers can inspect patients, the referral directory and pharmacy
data through ``/admin/``.  Encrypted settings are listed without their
values.
"""

from django.contrib import admin

from .models import (
    User,
    Patient,
    Specialist,
    Referral,
    Drug,
    CartItem,
    PharmacyOrder,
    SecureValue,
    RecentSearch,
    AuditEvent,
)


@admin.register(User)
class UserAdmin(admin.ModelAdmin):
    list_display = ('username', 'role', 'is_staff', 'is_superuser')
    list_filter = ('role',)
    search_fields = ('username', 'first_name', 'last_name', 'email')


@admin.register(Patient)
class PatientAdmin(admin.ModelAdmin):
    list_display = ('name', 'medical_record_number', 'age', 'gender', 'email')
    search_fields = ('name', 'medical_record_number', 'email')


@admin.register(Specialist)
class SpecialistAdmin(admin.ModelAdmin):
    list_display = ('name', 'specialty', 'hospital', 'rating', 'is_available')
    list_filter = ('specialty', 'is_available')
    search_fields = ('name', 'specialty', 'hospital')


@admin.register(Referral)
class ReferralAdmin(admin.ModelAdmin):
    list_display = ('tracking_number', 'patient', 'specialist', 'status', 'urgency', 'created_at')
    list_filter = ('status', 'urgency')
    search_fields = ('tracking_number', 'department', 'patient__name')


@admin.register(Drug)
class DrugAdmin(admin.ModelAdmin):
    list_display = ('name', 'generic_name', 'category', 'price', 'stock_quantity', 'is_available', 'is_popular')
    list_filter = ('category', 'is_available', 'requires_prescription', 'is_popular')
    search_fields = ('name', 'generic_name', 'category')


@admin.register(CartItem)
class CartItemAdmin(admin.ModelAdmin):
    list_display = ('id', 'user', 'drug', 'quantity', 'total_price')
    search_fields = ('user__username', 'drug__name')


@admin.register(PharmacyOrder)
class PharmacyOrderAdmin(admin.ModelAdmin):
    list_display = ('order_number', 'user', 'status', 'total_amount', 'created_at')
    list_filter = ('status',)
    search_fields = ('order_number', 'user__username', 'tracking_number')


@admin.register(SecureValue)
class SecureValueAdmin(admin.ModelAdmin):
    list_display = ('user', 'key', 'updated_at')
    exclude = ('value',)
    search_fields = ('user__username', 'key')


@admin.register(RecentSearch)
class RecentSearchAdmin(admin.ModelAdmin):
    list_display = ('user', 'query', 'result_count', 'created_at')
    search_fields = ('user__username', 'query')


@admin.register(AuditEvent)
class AuditEventAdmin(admin.ModelAdmin):
    list_display = ('action', 'user', 'object_type', 'object_id', 'created_at')
    list_filter = ('action',)
    search_fields = ('action', 'user__username')

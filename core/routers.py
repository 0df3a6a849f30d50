"""
URL mappings for the MedRefer backend API.

This module registers all API endpoints with their corresponding view
functions.  Trailing slashes are deliberately omitted to match the
paths used by the mobile client.
"""
from django.urls import path, include

from .auth import login_view, jwt_refresh_view, jwt_logout_view
from .views import biometric
from .views import health
from .views import notifications
from .views import payments
from .views import pharmacy
from .views import search


urlpatterns = [
    path('metrics', include('django_prometheus.urls')),
    path('healthz', health.healthz),

    # Authentication
    path('api/auth/login', login_view, name='login_view'),
    path('api/auth/refresh', jwt_refresh_view, name='jwt_refresh_view'),
    path('api/auth/logout', jwt_logout_view, name='jwt_logout_view'),

    # Biometric login
    path('api/biometric/status', biometric.biometric_status),
    path('api/biometric/authenticate', biometric.biometric_authenticate),
    path('api/biometric/enable', biometric.biometric_enable),
    path('api/biometric/disable', biometric.biometric_disable),

    # Payments
    path('api/payments/config', payments.payment_config),
    path('api/payments/errors/<str:code>', payments.payment_error_message),

    # Search
    path('api/search', search.global_search),
    path('api/search/suggestions', search.search_suggestions),
    path('api/search/recent', search.recent_searches),

    # Notifications
    path('api/notifications', notifications.list_notifications),
    path('api/notifications/create', notifications.create_notification),
    path('api/notifications/read', notifications.mark_notification_read),
    path('api/notifications/read-all', notifications.mark_all_notifications_read),
    path('api/notifications/remove', notifications.remove_notification),
    path('api/notifications/clear', notifications.clear_notifications),

    # Pharmacy
    path('api/pharmacy/drugs', pharmacy.list_drugs),
    path('api/pharmacy/drugs/<int:pk>', pharmacy.drug_detail),
    path('api/pharmacy/categories', pharmacy.drug_categories),
    path('api/pharmacy/cart', pharmacy.cart),
    path('api/pharmacy/cart/update', pharmacy.cart_update),
    path('api/pharmacy/cart/remove', pharmacy.cart_remove),
    path('api/pharmacy/cart/clear', pharmacy.cart_clear),
    path('api/pharmacy/orders', pharmacy.orders),
    path('api/pharmacy/orders/<int:pk>', pharmacy.order_detail),
    path('api/pharmacy/orders/<int:pk>/status', pharmacy.order_status),
]

"""
URL mappings for the ward supply API.

Trailing slashes are omitted to match the front-end's endpoint table.
"""
from django.urls import include, path

from .auth_views import login_view
from .views import dashboard, health, inventory, locations, transfers

urlpatterns = [
    path('healthz', health.healthz, name='healthz'),
    path('', include('django_prometheus.urls')),

    path('api/auth/login', login_view, name='login'),

    path('api/locations', locations.list_locations, name='locations'),

    path('api/inventory', inventory.location_inventory, name='inventory'),
    path('api/inventory/low-stock', inventory.low_stock, name='inventory-low-stock'),
    path('api/inventory/supply', inventory.supply_entry, name='inventory-supply'),

    path('api/transfers/locate', transfers.locate, name='transfers-locate'),
    path('api/transfers/request', transfers.request_transfer, name='transfers-request'),
    path('api/transfers/active', transfers.active_transfers, name='transfers-active'),
    path('api/transfers/<int:task_id>', transfers.transfer_detail, name='transfers-detail'),
    path('api/transfers/<int:task_id>/accept', transfers.accept_transfer, name='transfers-accept'),
    path('api/transfers/<int:task_id>/complete', transfers.complete_transfer, name='transfers-complete'),

    path('api/admin/dashboard', dashboard.admin_dashboard, name='admin-dashboard'),
]

"""
Admin site registrations.

Locations are reference data and are maintained here.  Transfer tasks
are read-mostly: status changes belong to the API so that the
compare-and-set and inventory effects always run.
"""

from django.contrib import admin

from .models import AuditEvent, InventoryRecord, Location, TransferTask, TransferTransition, User


@admin.register(Location)
class LocationAdmin(admin.ModelAdmin):
    list_display = ('id', 'name', 'type', 'created_at')
    list_filter = ('type',)
    search_fields = ('name',)


@admin.register(User)
class UserAdmin(admin.ModelAdmin):
    list_display = ('username', 'role', 'location', 'is_staff', 'is_superuser')
    list_filter = ('role', 'location')
    search_fields = ('username', 'first_name', 'last_name')


@admin.register(InventoryRecord)
class InventoryRecordAdmin(admin.ModelAdmin):
    list_display = ('location', 'drug_name', 'quantity', 'expiry_date', 'updated_at')
    list_filter = ('location',)
    search_fields = ('drug_name', 'location__name')


class TransferTransitionInline(admin.TabularInline):
    model = TransferTransition
    extra = 0
    readonly_fields = ('from_status', 'to_status', 'operator', 'timestamp')
    can_delete = False


@admin.register(TransferTask)
class TransferTaskAdmin(admin.ModelAdmin):
    list_display = ('id', 'drug_name', 'qty', 'from_location', 'to_location', 'status', 'created_at')
    list_filter = ('status',)
    search_fields = ('id', 'drug_name')
    readonly_fields = ('status', 'requested_by', 'accepted_by', 'performed_by', 'created_at', 'updated_at')
    inlines = [TransferTransitionInline]


@admin.register(AuditEvent)
class AuditEventAdmin(admin.ModelAdmin):
    list_display = ('created_at', 'user', 'action', 'object_type', 'object_id')
    list_filter = ('action',)
    search_fields = ('user__username', 'object_type')

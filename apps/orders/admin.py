from django.contrib import admin
from .models import Order, OrderItem, OrderItemStatusHistory


class OrderItemInline(admin.TabularInline):
    model = OrderItem
    extra = 0
    readonly_fields = ('flavor', 'unit_price', 'quantity', 'status', 'notes', 'created_at', 'last_updated_at')

    def has_add_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    """
    Orders are read-only here: every status change must go through
    OrderService so history and stock stay consistent.
    """
    list_display = ('id', 'customer', 'customer_name_snapshot', 'total_amount', 'created_at')
    list_filter = ('created_at',)
    search_fields = ('id', 'customer_name_snapshot', 'customer__name')
    readonly_fields = ('customer', 'customer_name_snapshot', 'total_amount', 'created_at')
    inlines = [OrderItemInline]

    def has_add_permission(self, request):
        return False


@admin.register(OrderItemStatusHistory)
class OrderItemStatusHistoryAdmin(admin.ModelAdmin):
    list_display = ('item', 'status', 'changed_at')
    list_filter = ('status',)

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

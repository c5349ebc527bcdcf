from django.contrib import admin

from modules.orders.models import Order, OrderItem


class OrderItemInline(admin.TabularInline):
    model = OrderItem
    extra = 0
    can_delete = False
    readonly_fields = ("product", "product_name", "product_brand", "quantity", "price", "subtotal")


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    """Read-mostly admin; status changes go through the API so stock stays consistent."""

    list_display = ("order_number", "user", "status", "payment_status", "total", "created_at")
    list_filter = ("status", "payment_status", "delivery_method")
    search_fields = ("order_number", "contact_email", "contact_phone")
    readonly_fields = ("order_number", "status", "subtotal", "shipping_fee", "tax", "total")
    inlines = [OrderItemInline]

    def has_delete_permission(self, request, obj=None) -> bool:
        return False

from django.contrib import admin

from modules.products.models import Product, ProductImage


class ProductImageInline(admin.TabularInline):
    model = ProductImage
    extra = 0


@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    list_display = ("name", "brand", "price", "quantity", "is_active")
    list_filter = ("is_active", "brand")
    search_fields = ("name", "brand")
    inlines = [ProductImageInline]

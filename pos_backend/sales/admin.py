# sales/admin.py

from django.contrib import admin

from sales.models import Discount, Transaction, TransactionItem


# ======================================================
# TRANSACTION ADMIN (READ-ONLY LEDGER)
# ======================================================


class TransactionItemInline(admin.TabularInline):
    model = TransactionItem
    extra = 0
    can_delete = False
    readonly_fields = (
        "product",
        "quantity",
        "base_quantity",
        "unit_price",
        "line_total",
    )

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(Transaction)
class TransactionAdmin(admin.ModelAdmin):
    list_display = (
        "transaction_number",
        "payment_type",
        "total_amount",
        "money_received",
        "money_change",
        "created_at",
    )
    readonly_fields = (
        "transaction_number",
        "payment_type",
        "subtotal_amount",
        "discount_percentage",
        "discount_amount",
        "total_amount",
        "money_received",
        "money_change",
        "reference",
        "created_at",
    )
    search_fields = ("transaction_number", "reference")
    list_filter = ("payment_type", "created_at")
    inlines = [TransactionItemInline]

    def has_add_permission(self, request):
        return False


# ======================================================
# DISCOUNT PRESET ADMIN
# ======================================================


@admin.register(Discount)
class DiscountAdmin(admin.ModelAdmin):
    list_display = ("name", "kind", "value", "is_active")
    list_filter = ("kind", "is_active")
    search_fields = ("name",)

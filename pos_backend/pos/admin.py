from django.contrib import admin

from .models import PendingSettlement

# =====================================================
# PENDING SETTLEMENT ADMIN
# =====================================================


@admin.register(PendingSettlement)
class PendingSettlementAdmin(admin.ModelAdmin):
    """
    Redirect payments waiting for the provider return.

    The idempotency guard is read-only: clearing it by hand would allow a
    second settlement.
    """

    list_display = (
        "reference",
        "payment_type",
        "total",
        "is_claimed",
        "last_error",
        "created_at",
    )

    readonly_fields = (
        "id",
        "reference",
        "items",
        "total",
        "payment_type",
        "discount",
        "checkout_url",
        "provider_session_id",
        "idempotency_key",
        "claimed_at",
        "last_error",
        "created_at",
    )

    search_fields = ("reference",)
    list_filter = ("payment_type", "created_at")

    @admin.display(boolean=True, description="Claimed")
    def is_claimed(self, obj):
        return obj.is_claimed

    def has_add_permission(self, request):
        return False

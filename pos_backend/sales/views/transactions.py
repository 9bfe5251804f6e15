# sales/views/transactions.py

"""
LEDGER HISTORY + DISCOUNT PRESETS

- Transactions are read-only (created only by settlement).
- Discount presets are plain CRUD; cashiers pick from the active ones.
"""

from django_filters.rest_framework import DjangoFilterBackend
from rest_framework import filters, viewsets

from sales.models import Discount, Transaction
from sales.serializers import DiscountPresetSerializer, TransactionSerializer


class TransactionViewSet(viewsets.ReadOnlyModelViewSet):
    serializer_class = TransactionSerializer
    queryset = Transaction.objects.prefetch_related("items__product").order_by("-created_at")
    filter_backends = [DjangoFilterBackend, filters.SearchFilter]
    filterset_fields = ["payment_type"]
    search_fields = ["transaction_number", "reference"]


class DiscountViewSet(viewsets.ModelViewSet):
    serializer_class = DiscountPresetSerializer
    queryset = Discount.objects.all()
    filter_backends = [DjangoFilterBackend]
    filterset_fields = ["is_active", "kind"]

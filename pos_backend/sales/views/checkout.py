# sales/views/checkout.py

"""
LEDGER CHECKOUT ENDPOINT (AUTHORITATIVE)

POST /api/sales/checkout/
    {items: [{product_id, quantity}], payment_type, money_received,
     discount_percentage | discount_amount, reference}
 -> {transaction_number, transaction_id, total}

GUARANTEES:
- Atomic settlement (stock decrement + transaction rows)
- Stock re-checked under row locks; stale carts get 409
"""

from drf_spectacular.utils import OpenApiResponse, extend_schema
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import APIView

from backend.errors import error_response
from sales.serializers import SettlementInputSerializer, SettlementResultSerializer
from sales.services.settlement import LedgerService, SettlementError


class CheckoutView(APIView):
    serializer_class = SettlementInputSerializer

    @extend_schema(
        request=SettlementInputSerializer,
        responses={
            201: SettlementResultSerializer,
            409: OpenApiResponse(description="Settlement rejected (stock changed / payment short)"),
        },
        description="Submit a finalized cart to the ledger",
    )
    def post(self, request):
        s = SettlementInputSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        data = dict(s.validated_data)
        data["items"] = [
            {"product_id": str(i["product_id"]), "quantity": i["quantity"]} for i in data["items"]
        ]

        try:
            result = LedgerService().submit(data)
        except SettlementError as exc:
            return error_response(
                code="SETTLEMENT_FAILED",
                message=str(exc),
                http_status=status.HTTP_409_CONFLICT,
            )

        return Response(SettlementResultSerializer(result).data, status=status.HTTP_201_CREATED)

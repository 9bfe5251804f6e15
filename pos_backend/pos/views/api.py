# pos/views/api.py

"""
POS API VIEWS

Purpose:
- Session-scoped cart lifecycle (add / update / remove / clear / discount)
- Cash and direct checkout (immediate ledger settlement)
- Redirect payment initiation and the provider return endpoint

Hard rules:
- The cart lives in the Django session; only PendingSettlement is durable.
- Money is server-owned: prices come from the catalog snapshot, totals from
  the Discount Engine.
- Every domain error leaves in the {"error": {...}} envelope and the cart is
  left exactly as it was.
"""

from __future__ import annotations

import logging
from urllib.parse import urlencode

from django.conf import settings
from django.core.exceptions import ValidationError
from django.urls import reverse
from drf_spectacular.utils import OpenApiExample, OpenApiResponse, extend_schema
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import APIView

from backend.errors import error_response
from inventory.services.exceptions import NotFoundError
from pos.serializers import (
    AddCartItemInputSerializer,
    CartDiscountInputSerializer,
    CartSerializer,
    CashCheckoutInputSerializer,
    CheckoutResultSerializer,
    DirectCheckoutInputSerializer,
    RedirectPaymentInputSerializer,
    RedirectReturnInputSerializer,
    UpdateCartItemInputSerializer,
)
from pos.services.cart_session import (
    CartError,
    CartSession,
    InsufficientStockError,
    OutOfStockError,
)
from pos.services.checkout import (
    CheckoutError,
    CheckoutSession,
    PaymentValidationError,
    RedirectOutcome,
    finalize_redirect,
)
from pos.services.discounts import Discount
from pos.services.paymongo import PaymentProviderError
from sales.models import Discount as DiscountPreset
from sales.services.settlement import SettlementError

logger = logging.getLogger(__name__)

CART_SESSION_KEY = "pos.cart"
CHECKOUT_SESSION_KEY = "pos.checkout"


# =====================================================
# SESSION HELPERS
# =====================================================

def _load_checkout(request) -> CheckoutSession:
    cart = CartSession.from_dict(request.session.get(CART_SESSION_KEY))
    return CheckoutSession.from_dict(
        request.session.get(CHECKOUT_SESSION_KEY),
        cart,
        business_id=getattr(settings, "BUSINESS_ID", "1"),
    )


def _save_checkout(request, checkout: CheckoutSession) -> None:
    request.session[CART_SESSION_KEY] = checkout.cart.to_dict()
    request.session[CHECKOUT_SESSION_KEY] = checkout.to_dict()


def _cart_response(checkout: CheckoutSession, *, http_status=status.HTTP_200_OK, **extra):
    body = CartSerializer(CartSerializer.build(checkout.cart, checkout)).data
    body.update(extra)
    return Response(body, status=http_status)


def _cart_error_response(exc: Exception):
    if isinstance(exc, InsufficientStockError):
        return error_response(
            code="INSUFFICIENT_STOCK",
            message=str(exc),
            http_status=status.HTTP_409_CONFLICT,
            available=str(exc.available),
            requested=str(exc.requested),
        )
    if isinstance(exc, OutOfStockError):
        return error_response(
            code="OUT_OF_STOCK",
            message=str(exc),
            http_status=status.HTTP_409_CONFLICT,
        )
    if isinstance(exc, NotFoundError):
        return error_response(
            code="SKU_NOT_FOUND",
            message=str(exc),
            http_status=status.HTTP_404_NOT_FOUND,
        )
    return error_response(
        code="CART_ERROR",
        message=str(exc),
        http_status=status.HTTP_400_BAD_REQUEST,
    )


def _settlement_error_response(exc: SettlementError):
    return error_response(
        code="SETTLEMENT_FAILED",
        message=str(exc),
        http_status=status.HTTP_409_CONFLICT,
    )


def _return_url(request, reference: str, payment_status: str) -> str:
    base = request.build_absolute_uri(reverse("pos:payment-return"))
    return f"{base}?{urlencode({'reference': reference, 'status': payment_status})}"


# =====================================================
# POS API VIEWS
# =====================================================

class POSHealthCheckView(APIView):
    serializer_class = None

    @extend_schema(responses={200: dict}, description="POS module health check")
    def get(self, request):
        return Response({"status": "ok", "module": "pos"})


class ActiveCartView(APIView):
    """Current session's cart."""

    serializer_class = CartSerializer

    @extend_schema(responses={200: CartSerializer}, description="Get the cart for this POS session")
    def get(self, request):
        checkout = _load_checkout(request)
        _save_checkout(request, checkout)
        return _cart_response(checkout)


class AddCartItemView(APIView):
    """
    Scan / type a SKU into the cart.

    Re-adding a SKU merges into the existing line (quantities add up).
    """

    serializer_class = CartSerializer

    @extend_schema(
        request=AddCartItemInputSerializer,
        responses={
            200: CartSerializer,
            404: OpenApiResponse(description="SKU_NOT_FOUND"),
            409: OpenApiResponse(description="OUT_OF_STOCK / INSUFFICIENT_STOCK"),
        },
        description="Add a product to the cart by SKU (quantity in display units)",
        examples=[
            OpenApiExample("Two pieces", value={"sku": "SKU-SOAP-01", "quantity": "2"}, request_only=True),
        ],
    )
    def post(self, request):
        s = AddCartItemInputSerializer(data=request.data)
        s.is_valid(raise_exception=True)

        checkout = _load_checkout(request)
        try:
            checkout.cart.add_by_sku(s.validated_data["sku"], s.validated_data["quantity"])
        except (CartError, NotFoundError) as exc:
            return _cart_error_response(exc)

        _save_checkout(request, checkout)
        return _cart_response(checkout)


class UpdateCartItemView(APIView):
    """
    Edit one line's quantity.

    `scale` says whether the number is in display units (default) or in
    recorded base units (g / mL).
    """

    serializer_class = CartSerializer

    @extend_schema(
        request=UpdateCartItemInputSerializer,
        responses={200: CartSerializer, 409: OpenApiResponse(description="INSUFFICIENT_STOCK")},
        description="Update quantity of a cart line",
    )
    def patch(self, request, index):
        s = UpdateCartItemInputSerializer(data=request.data)
        s.is_valid(raise_exception=True)

        checkout = _load_checkout(request)
        try:
            checkout.cart.edit_quantity(
                index,
                s.validated_data["quantity"],
                scale=s.validated_data["scale"],
            )
        except CartError as exc:
            return _cart_error_response(exc)

        _save_checkout(request, checkout)
        return _cart_response(checkout)


class RemoveCartItemView(APIView):
    serializer_class = CartSerializer

    @extend_schema(responses={200: CartSerializer}, description="Remove a cart line")
    def delete(self, request, index):
        checkout = _load_checkout(request)
        try:
            checkout.cart.remove(index)
        except CartError as exc:
            return _cart_error_response(exc)

        _save_checkout(request, checkout)
        return _cart_response(checkout)


class ClearCartView(APIView):
    """
    Cancel the current sale in one click.
    """

    serializer_class = CartSerializer

    @extend_schema(
        responses={200: CartSerializer, 409: OpenApiResponse(description="SALE_IN_SETTLEMENT")},
        description="Clear the cart and its discount (refused once a pending payment is being settled)",
    )
    def delete(self, request):
        checkout = _load_checkout(request)
        try:
            checkout.cancel()
        except CheckoutError as exc:
            _save_checkout(request, checkout)
            return error_response(code="SALE_IN_SETTLEMENT", message=str(exc), http_status=status.HTTP_409_CONFLICT)
        _save_checkout(request, checkout)
        return _cart_response(checkout)


class CartDiscountView(APIView):
    serializer_class = CartSerializer

    @extend_schema(
        request=CartDiscountInputSerializer,
        responses={200: CartSerializer, 400: OpenApiResponse(description="INVALID_DISCOUNT")},
        description="Apply a preset or ad-hoc discount (empty body clears it)",
        examples=[
            OpenApiExample("Ten percent", value={"kind": "percentage", "value": "10"}, request_only=True),
            OpenApiExample("Fifty off", value={"kind": "fixed", "value": "50.00"}, request_only=True),
        ],
    )
    def post(self, request):
        s = CartDiscountInputSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        data = s.validated_data

        discount = None
        try:
            if data.get("discount_id"):
                preset = DiscountPreset.objects.filter(id=data["discount_id"]).first()
                if preset is None:
                    return error_response(
                        code="DISCOUNT_NOT_FOUND",
                        message="Discount preset not found",
                        http_status=status.HTTP_404_NOT_FOUND,
                    )
                discount = Discount.from_preset(preset)
            elif data.get("kind"):
                discount = Discount(data["kind"], data["value"])
        except ValidationError as exc:
            return error_response(
                code="INVALID_DISCOUNT",
                message="; ".join(exc.messages),
                http_status=status.HTTP_400_BAD_REQUEST,
            )

        checkout = _load_checkout(request)
        try:
            checkout.cart.set_discount(discount)
        except CartError as exc:
            return _cart_error_response(exc)

        _save_checkout(request, checkout)
        return _cart_response(checkout)


class CashCheckoutView(APIView):
    serializer_class = CheckoutResultSerializer

    @extend_schema(
        request=CashCheckoutInputSerializer,
        responses={
            201: CheckoutResultSerializer,
            400: OpenApiResponse(description="INSUFFICIENT_PAYMENT / EMPTY_CART"),
            409: OpenApiResponse(description="SETTLEMENT_FAILED"),
        },
        description="Settle the cart in cash",
    )
    def post(self, request):
        s = CashCheckoutInputSerializer(data=request.data)
        s.is_valid(raise_exception=True)

        checkout = _load_checkout(request)
        try:
            result = checkout.settle_cash(s.validated_data["money_received"])
        except PaymentValidationError as exc:
            return error_response(
                code="INSUFFICIENT_PAYMENT",
                message=str(exc),
                http_status=status.HTTP_400_BAD_REQUEST,
            )
        except CheckoutError as exc:
            return error_response(code="CHECKOUT_FAILED", message=str(exc), http_status=status.HTTP_400_BAD_REQUEST)
        except SettlementError as exc:
            _save_checkout(request, checkout)
            return _settlement_error_response(exc)

        _save_checkout(request, checkout)
        return Response(CheckoutResultSerializer(result.to_dict()).data, status=status.HTTP_201_CREATED)


class DirectCheckoutView(APIView):
    serializer_class = CheckoutResultSerializer

    @extend_schema(
        request=DirectCheckoutInputSerializer,
        responses={201: CheckoutResultSerializer, 409: OpenApiResponse(description="SETTLEMENT_FAILED")},
        description="Settle the cart with card / bank transfer",
    )
    def post(self, request):
        s = DirectCheckoutInputSerializer(data=request.data)
        s.is_valid(raise_exception=True)

        checkout = _load_checkout(request)
        try:
            result = checkout.settle_direct(s.validated_data["payment_type"])
        except CheckoutError as exc:
            return error_response(code="CHECKOUT_FAILED", message=str(exc), http_status=status.HTTP_400_BAD_REQUEST)
        except SettlementError as exc:
            _save_checkout(request, checkout)
            return _settlement_error_response(exc)

        _save_checkout(request, checkout)
        return Response(CheckoutResultSerializer(result.to_dict()).data, status=status.HTTP_201_CREATED)


class RedirectPaymentView(APIView):
    """
    Start an e-wallet payment.

    The pending settlement is stored before the provider is called; the
    cart stays locked until the provider returns.
    """

    @extend_schema(
        request=RedirectPaymentInputSerializer,
        responses={200: dict, 502: OpenApiResponse(description="PAYMENT_PROVIDER_ERROR")},
        description="Create a provider checkout session and return its URL",
    )
    def post(self, request):
        s = RedirectPaymentInputSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        data = s.validated_data

        checkout = _load_checkout(request)
        reference = checkout.provisional_number

        try:
            checkout_url = checkout.begin_redirect(
                success_url=data.get("success_url") or _return_url(request, reference, "success"),
                cancel_url=data.get("cancel_url") or _return_url(request, reference, "cancel"),
                description=data.get("description") or f"Payment {reference}",
                payment_type=data["payment_type"],
            )
        except CheckoutError as exc:
            _save_checkout(request, checkout)
            return error_response(code="CHECKOUT_FAILED", message=str(exc), http_status=status.HTTP_400_BAD_REQUEST)
        except PaymentProviderError as exc:
            _save_checkout(request, checkout)
            return error_response(
                code="PAYMENT_PROVIDER_ERROR",
                message=str(exc),
                http_status=status.HTTP_502_BAD_GATEWAY,
            )

        _save_checkout(request, checkout)
        return Response(
            {"checkoutUrl": checkout_url, "reference": reference},
            status=status.HTTP_200_OK,
        )


class RedirectReturnView(APIView):
    """
    Provider return (browser redirect) for success / cancel.

    Idempotent: a second success callback for the same reference is reported
    as already_processed and never settles twice. With VERIFY_RETURN the
    provider must confirm the payment first; otherwise nothing is claimed.
    """

    @extend_schema(
        parameters=[RedirectReturnInputSerializer],
        responses={
            200: dict,
            404: OpenApiResponse(description="UNKNOWN_REFERENCE"),
            409: OpenApiResponse(description="SETTLEMENT_FAILED | PAYMENT_NOT_CONFIRMED"),
            502: OpenApiResponse(description="PAYMENT_PROVIDER_ERROR"),
        },
        description="Finalize a redirect payment",
    )
    def get(self, request):
        return self._finalize(request, request.query_params)

    @extend_schema(request=RedirectReturnInputSerializer, responses={200: dict})
    def post(self, request):
        return self._finalize(request, request.data)

    def _finalize(self, request, params):
        s = RedirectReturnInputSerializer(data=params)
        s.is_valid(raise_exception=True)
        reference = s.validated_data["reference"]

        try:
            result = finalize_redirect(reference=reference, status=s.validated_data["status"])
        except PaymentProviderError as exc:
            return error_response(
                code="PAYMENT_PROVIDER_ERROR",
                message=str(exc),
                http_status=status.HTTP_502_BAD_GATEWAY,
                reference=reference,
            )

        checkout = _load_checkout(request)
        if checkout.provisional_number == reference:
            checkout.redirect_finished(result)
            _save_checkout(request, checkout)

        if result.outcome == RedirectOutcome.UNKNOWN:
            return error_response(
                code="UNKNOWN_REFERENCE",
                message=f"No pending payment for reference {reference}",
                http_status=status.HTTP_404_NOT_FOUND,
            )
        if result.outcome == RedirectOutcome.FAILED:
            return error_response(
                code="SETTLEMENT_FAILED",
                message=result.error,
                http_status=status.HTTP_409_CONFLICT,
                reference=reference,
            )
        if result.outcome == RedirectOutcome.NOT_PAID:
            return error_response(
                code="PAYMENT_NOT_CONFIRMED",
                message=result.error,
                http_status=status.HTTP_409_CONFLICT,
                reference=reference,
            )

        body = {"outcome": str(result.outcome), "reference": reference}
        if result.settlement is not None:
            body["transaction"] = CheckoutResultSerializer(result.settlement.to_dict()).data
        return Response(body, status=status.HTTP_200_OK)

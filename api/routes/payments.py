"""
Payments API routes.

Order intents for the checkout widget and verification of the widget's
payment result for the three payable record kinds. Keep this thin: gates and
provider details live in the application services.
"""
from __future__ import annotations

from fastapi import APIRouter, Depends

from api.dependencies import (
    checkout_error_extras,
    get_current_principal,
    get_order_intent_service,
    get_verification_service,
)
from application.dtos.auth import Principal
from application.dtos.payments import (
    CheckoutVerified,
    CreateCustomOrderIntent,
    CreateOrderIntent,
    CustomOrderVerified,
    ExperienceVerified,
    VerifyCheckoutPayment,
    VerifyCustomOrderPayment,
    VerifyExperiencePayment,
)
from application.services.order_intent_service import OrderIntentService
from application.services.payment_verification_service import (
    CHECKOUT,
    CUSTOM_ORDER,
    EXPERIENCE,
    PaymentVerificationService,
    serialize_booking,
)
from core.response import ErrorBody


router = APIRouter(prefix="/payments", tags=["Payments"])

_ERRORS = {
    400: {"model": ErrorBody},
    401: {"model": ErrorBody},
    403: {"model": ErrorBody},
    404: {"model": ErrorBody},
    429: {"model": ErrorBody},
    500: {"model": ErrorBody},
}


@router.post("/razorpay/orders", summary="Create checkout order intent", responses=_ERRORS)
async def create_order_intent(
    payload: CreateOrderIntent,
    principal: Principal = Depends(get_current_principal),
    service: OrderIntentService = Depends(get_order_intent_service),
):
    intent = await service.create_order_intent(principal, payload)
    return intent.model_dump(by_alias=True)


@router.post("/custom-orders/intents", summary="Create custom order payment intent", responses=_ERRORS)
async def create_custom_order_intent(
    payload: CreateCustomOrderIntent,
    service: OrderIntentService = Depends(get_order_intent_service),
):
    intent = await service.create_custom_order_intent(payload)
    return intent.model_dump(by_alias=True)


@router.post(
    "/razorpay/verify",
    summary="Verify checkout payment",
    response_model=CheckoutVerified,
    responses=_ERRORS,
    # must run before authentication so every failure carries verified: false
    dependencies=[Depends(checkout_error_extras)],
)
async def verify_checkout_payment(
    payload: VerifyCheckoutPayment,
    principal: Principal = Depends(get_current_principal),
    service: PaymentVerificationService = Depends(get_verification_service),
):
    await service.verify(CHECKOUT, payload, principal=principal)
    return CheckoutVerified()


@router.post(
    "/custom-orders/verify",
    summary="Verify custom order payment",
    response_model=CustomOrderVerified,
    responses=_ERRORS,
)
async def verify_custom_order_payment(
    payload: VerifyCustomOrderPayment,
    service: PaymentVerificationService = Depends(get_verification_service),
):
    await service.verify(CUSTOM_ORDER, payload)
    return CustomOrderVerified()


@router.post(
    "/experiences/verify",
    summary="Verify experience booking payment",
    response_model=ExperienceVerified,
    responses=_ERRORS,
)
async def verify_experience_payment(
    payload: VerifyExperiencePayment,
    principal: Principal = Depends(get_current_principal),
    service: PaymentVerificationService = Depends(get_verification_service),
):
    record = await service.verify(EXPERIENCE, payload, principal=principal)
    return ExperienceVerified(booking=serialize_booking(record))

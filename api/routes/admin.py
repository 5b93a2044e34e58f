"""
Admin API routes (custom order workflow).
"""
from __future__ import annotations

from fastapi import APIRouter, Depends

from api.dependencies import get_current_principal, get_custom_order_admin_service
from application.dtos.auth import Principal
from application.dtos.payments import SendCustomOrderEmail
from application.services.custom_order_service import CustomOrderAdminService
from core.response import ErrorBody


router = APIRouter(prefix="/admin", tags=["Admin"])


@router.post(
    "/custom-orders/{custom_order_id}/emails",
    summary="Send custom order status email",
    responses={
        400: {"model": ErrorBody},
        401: {"model": ErrorBody},
        403: {"model": ErrorBody},
        404: {"model": ErrorBody},
    },
)
async def send_custom_order_email(
    custom_order_id: str,
    payload: SendCustomOrderEmail,
    principal: Principal = Depends(get_current_principal),
    service: CustomOrderAdminService = Depends(get_custom_order_admin_service),
):
    result = await service.send_status_email(principal, custom_order_id, payload)
    return result.model_dump(by_alias=True)

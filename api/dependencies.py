"""
API依赖项 - 认证与服务装配
"""
from typing import Callable, Optional

import jwt
from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from application.dtos.auth import Principal
from application.ports.attempt_limiter import AttemptLimiter
from application.ports.notifier import EmailSender, Notifier
from application.ports.payment_gateway import PaymentGateway
from application.services.custom_order_service import CustomOrderAdminService
from application.services.order_intent_service import OrderIntentService
from application.services.payment_verification_service import PaymentVerificationService
from core.config import settings
from core.exceptions import UnauthorizedException
from core.logging_config import get_logger
from domain.common.unit_of_work import AbstractUnitOfWork
from infrastructure.external.email import ResendEmailSender
from infrastructure.external.payments import get_payment_gateway
from infrastructure.notifier import CeleryNotifier
from infrastructure.rate_limit import build_attempt_limiter
from infrastructure.unit_of_work import SQLAlchemyUnitOfWork


logger = get_logger(__name__)

# HTTP Bearer：访问令牌由认证服务签发，这里只做校验
http_bearer = HTTPBearer(
    scheme_name="Bearer",
    description="JWT Bearer token issued by the storefront auth provider",
    auto_error=False,
)


def decode_access_token(token: str) -> Principal:
    """校验访问令牌（HS256），返回调用方身份"""
    kwargs = {}
    options = {"require": ["sub"]}
    if settings.JWT_AUDIENCE:
        kwargs["audience"] = settings.JWT_AUDIENCE
    else:
        options["verify_aud"] = False
    try:
        payload = jwt.decode(
            token,
            settings.SECRET_KEY,
            algorithms=[settings.ALGORITHM],
            options=options,
            **kwargs,
        )
    except jwt.PyJWTError as e:
        logger.info("access_token_rejected", error=str(e))
        raise UnauthorizedException()

    return Principal(
        id=str(payload["sub"]),
        email=payload.get("email"),
        role=payload.get("role"),
    )


async def get_current_principal(
    bearer_token: Optional[HTTPAuthorizationCredentials] = Depends(http_bearer),
) -> Principal:
    """获取当前调用方（缺失或无效令牌 -> 401 Unauthorized）"""
    if not bearer_token or not bearer_token.credentials:
        raise UnauthorizedException()
    return decode_access_token(bearer_token.credentials)


async def checkout_error_extras(request: Request) -> None:
    """结账校验接口的失败响应额外带上 verified: false"""
    request.state.error_extras = {"verified": False}


def get_uow_factory() -> Callable[..., AbstractUnitOfWork]:
    return SQLAlchemyUnitOfWork


# 以下组件在 lifespan 中创建并挂到 app.state；未经过 lifespan 时（脚本/测试）按需创建

def get_gateway(request: Request) -> PaymentGateway:
    gateway = getattr(request.app.state, "payment_gateway", None)
    if gateway is None:
        gateway = get_payment_gateway()
        request.app.state.payment_gateway = gateway
    return gateway


def get_attempt_limiter(request: Request) -> AttemptLimiter:
    limiter = getattr(request.app.state, "attempt_limiter", None)
    if limiter is None:
        limiter = build_attempt_limiter(getattr(request.app.state, "redis_cache", None))
        request.app.state.attempt_limiter = limiter
    return limiter


def get_notifier(request: Request) -> Notifier:
    notifier = getattr(request.app.state, "notifier", None)
    if notifier is None:
        notifier = CeleryNotifier()
        request.app.state.notifier = notifier
    return notifier


def get_email_sender(request: Request) -> EmailSender:
    sender = getattr(request.app.state, "email_sender", None)
    if sender is None:
        sender = ResendEmailSender()
        request.app.state.email_sender = sender
    return sender


async def get_verification_service(
    uow_factory: Callable[..., AbstractUnitOfWork] = Depends(get_uow_factory),
    gateway: PaymentGateway = Depends(get_gateway),
    limiter: AttemptLimiter = Depends(get_attempt_limiter),
    notifier: Notifier = Depends(get_notifier),
) -> PaymentVerificationService:
    return PaymentVerificationService(uow_factory, gateway, limiter, notifier)


async def get_order_intent_service(
    uow_factory: Callable[..., AbstractUnitOfWork] = Depends(get_uow_factory),
    gateway: PaymentGateway = Depends(get_gateway),
) -> OrderIntentService:
    return OrderIntentService(gateway, uow_factory=uow_factory)


async def get_custom_order_admin_service(
    uow_factory: Callable[..., AbstractUnitOfWork] = Depends(get_uow_factory),
    email_sender: EmailSender = Depends(get_email_sender),
) -> CustomOrderAdminService:
    return CustomOrderAdminService(uow_factory, email_sender)

"""Notifier 实现：把支付成功通知交给 Celery 后台任务"""
from __future__ import annotations

import asyncio
from typing import Optional

from core.logging_config import get_logger
from infrastructure.tasks.utils.dispatcher import TaskDispatcher


logger = get_logger(__name__)


class CeleryNotifier:
    """投递失败只记录日志，不影响支付校验结果"""

    def __init__(self, dispatcher: Optional[TaskDispatcher] = None) -> None:
        self._dispatcher = dispatcher or TaskDispatcher()

    async def notify(self, record_id: str, event_kind: str, *, recipient: Optional[str] = None) -> None:
        try:
            # broker 发布是同步调用（eager 模式下会直接执行任务），放到线程中避免阻塞事件循环
            await asyncio.to_thread(self._dispatcher.send_payment_notification, record_id, event_kind, recipient)
        except Exception as exc:
            logger.error(
                "payment_notification_enqueue_failed",
                record_id=record_id,
                event_kind=event_kind,
                error=str(exc),
                exc_info=True,
            )
            return
        logger.info("payment_notification_enqueued", record_id=record_id, event_kind=event_kind)

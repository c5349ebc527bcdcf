"""Celery tasks that deliver order e-mails.

The notification sink owns retries: SMTP/socket failures are retried
with backoff. Once a task gives up, ``NotificationTask.on_failure`` logs
``notification.delivery_failed``; nothing is reported back to the order
lifecycle.
"""

from __future__ import annotations

import smtplib
from typing import Any, Dict

import structlog
from celery import Task, shared_task
from django.conf import settings
from django.core.mail import EmailMultiAlternatives

from modules.notifications.emails import (
    RenderedEmail,
    render_order_confirmation,
    render_order_status,
)

logger = structlog.get_logger(__name__)

RETRYABLE_ERRORS = (smtplib.SMTPException, ConnectionError, TimeoutError)


class NotificationTask(Task):
    """Task base that records e-mails which were never delivered."""

    def on_failure(self, exc, task_id, args, kwargs, einfo) -> None:
        order = args[1] if len(args) > 1 else kwargs.get("order", {})
        logger.error(
            "notification.delivery_failed",
            task=self.name,
            task_id=task_id,
            order_number=order.get("order_number"),
            retries=self.request.retries,
            error=repr(exc),
        )
        super().on_failure(exc, task_id, args, kwargs, einfo)


def _send(to: str, email: RenderedEmail) -> int:
    message = EmailMultiAlternatives(
        subject=email.subject,
        body=email.text,
        from_email=settings.DEFAULT_FROM_EMAIL,
        to=[to],
    )
    message.attach_alternative(email.html, "text/html")
    return message.send()


@shared_task(
    base=NotificationTask,
    name="notifications.send_order_confirmation_email",
    autoretry_for=RETRYABLE_ERRORS,
    retry_backoff=True,
    max_retries=3,
)
def send_order_confirmation_email(
    email: str, order: Dict[str, Any], display_name: str
) -> int:
    sent = _send(email, render_order_confirmation(order, display_name))
    logger.info(
        "notification.order_confirmation_sent",
        order_number=order["order_number"],
        sent=sent,
    )
    return sent


@shared_task(
    base=NotificationTask,
    name="notifications.send_order_status_email",
    autoretry_for=RETRYABLE_ERRORS,
    retry_backoff=True,
    max_retries=3,
)
def send_order_status_email(
    email: str, order: Dict[str, Any], display_name: str
) -> int:
    sent = _send(email, render_order_status(order, display_name))
    logger.info(
        "notification.order_status_sent",
        order_number=order["order_number"],
        status=order["status"],
        sent=sent,
    )
    return sent

"""Unit tests for order e-mail rendering, delivery tasks and the Celery notifier."""

from __future__ import annotations

import logging
import smtplib
from unittest.mock import patch

import pytest
from django.core import mail

from modules.notifications.emails import (
    STATUS_COPY,
    render_order_confirmation,
    render_order_status,
    status_copy,
)
from modules.notifications.tasks import (
    send_order_confirmation_email,
    send_order_status_email,
)
from modules.orders.constants import DeliveryMethod, OrderStatus
from modules.orders.dtos import OrderOutputDTO
from modules.orders.notifications import CeleryOrderNotifier
from modules.orders.repositories.django_repository import OrderDjangoRepository
from modules.orders.services import OrderService
from modules.products.repositories.django_repository import ProductDjangoRepository

pytestmark = pytest.mark.unit


@pytest.fixture()
def snapshot(placed_order):
    return OrderOutputDTO.from_entity(placed_order).model_dump(mode="json")


@pytest.fixture()
def delivery_snapshot(order_service, make_order_dto, customer, product_a):
    order = order_service.create_order(
        make_order_dto(
            customer,
            [(product_a, 1)],
            delivery_method=DeliveryMethod.DELIVERY,
            region="Punjab",
        )
    )
    return OrderOutputDTO.from_entity(order).model_dump(mode="json")


class TestOrderSnapshot:
    def test_snapshot_is_json_safe(self, snapshot, placed_order):
        assert snapshot["order_number"] == placed_order.order_number
        assert snapshot["total"] == "96.50"
        assert isinstance(snapshot["id"], str)
        assert len(snapshot["items"]) == 2


class TestRendering:
    def test_confirmation_subject_and_body(self, snapshot):
        email = render_order_confirmation(snapshot, "Sara")

        assert email.subject == f"Order Confirmation #{snapshot['order_number']} - NutriWell"
        assert "Hi Sara," in email.text
        assert "Whey Protein (NutriBrand) x2: Rs 20.00" in email.text
        assert "Total: Rs 96.50" in email.text
        assert "Shipping: Free" in email.text
        assert "Store pickup" in email.text
        assert snapshot["order_number"] in email.html

    def test_confirmation_for_delivery(self, delivery_snapshot):
        email = render_order_confirmation(delivery_snapshot, "Sara")

        assert "Shipping: Rs 100.00" in email.text
        assert "House 12, Street 4" in email.text
        assert "Punjab, Pakistan" in email.text

    def test_display_name_falls_back_to_contact_name(self, snapshot):
        email = render_order_confirmation(snapshot, "")
        assert "Hi Sara," in email.text

    def test_status_email_uses_status_copy(self, snapshot):
        shipped = {**snapshot, "status": OrderStatus.SHIPPED.value}
        email = render_order_status(shipped, "Sara")

        assert email.subject == (
            f"Order #{snapshot['order_number']} - Order Shipped - NutriWell"
        )
        assert STATUS_COPY["SHIPPED"].message in email.text
        assert "Status: SHIPPED" in email.text

    def test_every_non_initial_status_has_copy(self):
        for status in OrderStatus.values:
            if status != OrderStatus.PENDING:
                assert status in STATUS_COPY

    def test_unknown_status_gets_generic_copy(self):
        copy = status_copy("ON_HOLD")
        assert copy.title == "Order Update"
        assert "ON_HOLD" in copy.message


class TestDeliveryTasks:
    def test_confirmation_task_sends_multipart_mail(self, snapshot):
        sent = send_order_confirmation_email("sara@example.com", snapshot, "Sara")

        assert sent == 1
        (message,) = mail.outbox
        assert message.to == ["sara@example.com"]
        assert message.subject.startswith("Order Confirmation #")
        assert message.alternatives[0][1] == "text/html"

    def test_status_task_sends_mail(self, snapshot):
        cancelled = {**snapshot, "status": "CANCELLED"}
        send_order_status_email("sara@example.com", cancelled, "Sara")

        (message,) = mail.outbox
        assert "Order Cancelled" in message.subject
        assert STATUS_COPY["CANCELLED"].message in message.body

    def test_smtp_errors_are_retryable(self):
        assert smtplib.SMTPException in send_order_confirmation_email.autoretry_for
        assert send_order_status_email.max_retries == 3

    def test_failed_delivery_is_logged(self, snapshot, caplog):
        with patch(
            "modules.notifications.tasks._send", side_effect=ValueError("bad address")
        ), caplog.at_level(logging.ERROR):
            result = send_order_confirmation_email.apply(
                args=("sara@example.com", snapshot, "Sara")
            )

        assert result.failed()
        messages = [record.getMessage() for record in caplog.records]
        assert any(
            "notification.delivery_failed" in m and snapshot["order_number"] in m
            for m in messages
        )
        assert mail.outbox == []

    def test_failure_hook_reads_order_from_kwargs(self, caplog):
        with caplog.at_level(logging.ERROR):
            send_order_status_email.on_failure(
                smtplib.SMTPException("relay down"),
                "task-1",
                (),
                {"email": "sara@example.com", "order": {"order_number": "7654321"}},
                None,
            )

        (record,) = [
            r for r in caplog.records if "notification.delivery_failed" in r.getMessage()
        ]
        assert "7654321" in record.getMessage()
        assert "notifications.send_order_status_email" in record.getMessage()


class TestCeleryOrderNotifier:
    def test_confirmation_enqueues_snapshot(self, placed_order):
        with patch(
            "modules.notifications.tasks.send_order_confirmation_email.delay"
        ) as delay:
            CeleryOrderNotifier().order_confirmation(placed_order)

        email, payload, display_name = delay.call_args.args
        assert email == "sara@example.com"
        assert payload["order_number"] == placed_order.order_number
        assert display_name == "Sara"

    def test_status_change_enqueues_snapshot(self, placed_order):
        with patch("modules.notifications.tasks.send_order_status_email.delay") as delay:
            CeleryOrderNotifier().order_status_changed(placed_order)

        _, payload, _ = delay.call_args.args
        assert payload["status"] == OrderStatus.PENDING

    def test_eager_delivery_end_to_end(
        self, make_order_dto, customer, product_a, django_capture_on_commit_callbacks
    ):
        service = OrderService(
            order_repository=OrderDjangoRepository(),
            product_repository=ProductDjangoRepository(),
            notifier=CeleryOrderNotifier(),
        )

        with django_capture_on_commit_callbacks(execute=True):
            order = service.create_order(make_order_dto(customer, [(product_a, 1)]))

        assert len(mail.outbox) == 1
        assert order.order_number in mail.outbox[0].subject

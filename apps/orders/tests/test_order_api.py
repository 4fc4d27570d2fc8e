"""Integration tests for the service order lifecycle."""

from __future__ import annotations

from datetime import date, time, timedelta
from decimal import Decimal
from unittest import mock

from django.urls import reverse
from rest_framework import status
from rest_framework.test import APITestCase

from apps.bookings.models import BookingEvent
from apps.finances.models import PlatformSetting
from apps.finances.services import COMMISSION_RATE_KEY
from apps.finances.stripe_service import StripePaymentError
from apps.notifications.models import Notification
from apps.orders.models import ServiceOrder
from apps.providers.models import MenuItem, ProviderMenu, ProviderTaskConfig, ServiceTask
from apps.users.models import User
from shared.testing import make_provider, make_user


def make_order(client, provider, **extra) -> ServiceOrder:
    defaults = {
        "service_date": date.today() + timedelta(days=2),
        "start_time": time(10, 0),
        "subtotal": Decimal("100.00"),
        "tax_amount": Decimal("10.00"),
        "total_amount": Decimal("110.00"),
        "platform_fee_percentage": Decimal("15.00"),
        "platform_fee_amount": Decimal("16.50"),
        "provider_amount": Decimal("93.50"),
    }
    defaults.update(extra)
    return ServiceOrder.objects.create(client=client, service_provider=provider, **defaults)


class OrderCreateTests(APITestCase):
    """Создание заказа: цены из каталога, налог и зафиксированная комиссия."""

    def setUp(self) -> None:
        self.customer = make_user()
        self.provider = make_provider()
        menu = ProviderMenu.objects.create(service_provider=self.provider, category_name="Ужин")
        self.dish = MenuItem.objects.create(menu=menu, dish_name="Плов", price=Decimal("100.00"))
        self.cheap_dish = MenuItem.objects.create(menu=menu, dish_name="Лепёшка", price=Decimal("45.00"))
        self.client.force_authenticate(self.customer)
        self.url = reverse("service-order-list")

    def _payload(self, items) -> dict:
        return {
            "service_provider": self.provider.pk,
            "service_date": (date.today() + timedelta(days=3)).isoformat(),
            "start_time": "18:00",
            "items": items,
        }

    def test_commission_is_split_from_total(self) -> None:
        response = self.client.post(
            self.url,
            self._payload([{"item_type": "menu_item", "menu_item": self.dish.pk}]),
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)
        self.assertEqual(response.data["subtotal"], "100.00")
        self.assertEqual(response.data["tax_amount"], "10.00")
        self.assertEqual(response.data["total_amount"], "110.00")
        self.assertEqual(response.data["platform_fee_percentage"], "15.00")
        self.assertEqual(response.data["platform_fee_amount"], "16.50")
        self.assertEqual(response.data["provider_amount"], "93.50")
        self.assertEqual(response.data["status"], "pending_payment")
        self.assertTrue(response.data["order_code"].startswith("TH-"))
        self.assertEqual(
            Notification.objects.filter(user=self.provider.user, type=Notification.Type.ORDER).count(), 1
        )

    def test_fee_rounds_half_up(self) -> None:
        response = self.client.post(
            self.url,
            self._payload([{"item_type": "menu_item", "menu_item": self.cheap_dish.pk, "quantity": 3}]),
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)
        self.assertEqual(response.data["total_amount"], "148.50")
        self.assertEqual(response.data["platform_fee_amount"], "22.28")
        self.assertEqual(response.data["provider_amount"], "126.22")

    def test_rate_is_frozen_at_creation(self) -> None:
        PlatformSetting.objects.create(key=COMMISSION_RATE_KEY, value="20", type=PlatformSetting.ValueType.NUMBER)
        response = self.client.post(
            self.url,
            self._payload([{"item_type": "menu_item", "menu_item": self.dish.pk}]),
            format="json",
        )
        PlatformSetting.objects.filter(key=COMMISSION_RATE_KEY).update(value="5")

        order = ServiceOrder.objects.get(pk=response.data["id"])
        self.assertEqual(order.platform_fee_percentage, Decimal("20.00"))
        self.assertEqual(order.platform_fee_amount, Decimal("22.00"))
        self.assertEqual(order.provider_amount, Decimal("88.00"))

    def test_task_priced_from_provider_config(self) -> None:
        task = ServiceTask.objects.create(category=self.provider.category, task_code="deep_clean", task_name="Генеральная уборка")
        ProviderTaskConfig.objects.create(service_provider=self.provider, task=task, custom_price=Decimal("60.00"))

        response = self.client.post(
            self.url,
            self._payload([{"item_type": "task", "task": task.pk, "quantity": 4}]),
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)
        self.assertEqual(response.data["items"][0]["quantity"], 1)
        self.assertEqual(response.data["subtotal"], "60.00")

    def test_unavailable_item_rejects_whole_order(self) -> None:
        self.cheap_dish.is_available = False
        self.cheap_dish.save()

        response = self.client.post(
            self.url,
            self._payload(
                [
                    {"item_type": "menu_item", "menu_item": self.dish.pk},
                    {"item_type": "menu_item", "menu_item": self.cheap_dish.pk},
                ]
            ),
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertFalse(ServiceOrder.objects.exists())

    def test_other_providers_dish_is_rejected(self) -> None:
        other = make_provider()

        response = self.client.post(
            self.url,
            {**self._payload([{"item_type": "menu_item", "menu_item": self.dish.pk}]), "service_provider": other.pk},
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_empty_items_rejected(self) -> None:
        response = self.client.post(self.url, self._payload([]), format="json")

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)


class OrderPaymentTests(APITestCase):
    def setUp(self) -> None:
        self.customer = make_user()
        self.provider = make_provider()
        self.order = make_order(self.customer, self.provider)
        self.client.force_authenticate(self.customer)

    @mock.patch("apps.finances.stripe_service.retrieve_payment_intent")
    def test_confirm_payment_once(self, retrieve) -> None:
        retrieve.return_value = {"id": "pi_o", "status": "succeeded", "metadata": {"orderId": str(self.order.pk)}}
        url = reverse("service-order-confirm-payment", args=[self.order.pk])

        first = self.client.post(url, {"payment_intent_id": "pi_o"}, format="json")
        second = self.client.post(url, {"payment_intent_id": "pi_o"}, format="json")

        self.assertEqual(first.data["status"], "confirmed")
        self.assertEqual(first.data["payment_status"], "paid")
        self.assertTrue(second.data["already_confirmed"])
        self.assertEqual(
            Notification.objects.filter(user=self.customer, type=Notification.Type.PAYMENT_RECEIVED).count(), 1
        )

    @mock.patch("apps.finances.stripe_service.retrieve_payment_intent")
    def test_intent_of_other_order_is_rejected(self, retrieve) -> None:
        retrieve.return_value = {"id": "pi_o", "status": "succeeded", "metadata": {"orderId": "999999"}}

        response = self.client.post(
            reverse("service-order-confirm-payment", args=[self.order.pk]), {"payment_intent_id": "pi_o"}, format="json"
        )

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    @mock.patch("apps.finances.stripe_service.retrieve_payment_intent")
    def test_confirm_payment_body_is_validated(self, retrieve) -> None:
        url = reverse("service-order-confirm-payment", args=[self.order.pk])

        missing = self.client.post(url, {}, format="json")
        unknown = self.client.post(url, {"payment_intent_id": "pi_o", "amount": "1.00"}, format="json")

        self.assertEqual(missing.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("payment_intent_id", missing.data)
        self.assertEqual(unknown.status_code, status.HTTP_400_BAD_REQUEST)
        retrieve.assert_not_called()
        self.order.refresh_from_db()
        self.assertEqual(self.order.payment_status, ServiceOrder.PaymentStatus.PENDING)


class OrderLifecycleTests(APITestCase):
    """Решения поставщика, отмена клиентом и завершение."""

    def setUp(self) -> None:
        self.customer = make_user()
        self.provider = make_provider()
        self.order = make_order(
            self.customer,
            self.provider,
            status=ServiceOrder.Status.CONFIRMED,
            payment_status=ServiceOrder.PaymentStatus.PAID,
            payment_intent_id="pi_paid",
        )

    def _post(self, user, name: str, data=None):
        self.client.force_authenticate(user)
        return self.client.post(reverse(f"service-order-{name}", args=[self.order.pk]), data or {}, format="json")

    def test_provider_accepts(self) -> None:
        response = self._post(self.provider.user, "accept")

        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertEqual(response.data["status"], "accepted")
        self.assertIsNotNone(response.data["accepted_at"])

    def test_other_provider_cannot_accept(self) -> None:
        stranger = make_provider()
        self.client.force_authenticate(stranger.user)

        response = self.client.post(reverse("service-order-accept", args=[self.order.pk]))

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_client_cannot_accept(self) -> None:
        response = self._post(self.customer, "accept")

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_unpaid_order_cannot_be_accepted(self) -> None:
        ServiceOrder.objects.filter(pk=self.order.pk).update(
            status=ServiceOrder.Status.PENDING_PAYMENT,
            payment_status=ServiceOrder.PaymentStatus.PENDING,
        )

        response = self._post(self.provider.user, "accept")

        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)

    @mock.patch("apps.finances.stripe_service.refund_payment", return_value="re_42")
    def test_reject_paid_order_refunds(self, refund) -> None:
        response = self._post(self.provider.user, "reject", {"reason": "Нет продуктов"})

        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertEqual(response.data["status"], "rejected")
        self.assertEqual(response.data["payment_status"], "refunded")
        self.assertEqual(response.data["stripe_refund_id"], "re_42")
        self.assertEqual(response.data["refund"], "refunded")
        refund.assert_called_once_with("pi_paid")
        client_notes = Notification.objects.filter(user=self.customer)
        self.assertEqual(client_notes.count(), 1)
        self.assertIn("возвращены", client_notes.get().message)

    @mock.patch(
        "apps.finances.stripe_service.refund_payment",
        side_effect=StripePaymentError("gateway down"),
    )
    def test_reject_survives_refund_failure(self, refund) -> None:
        response = self._post(self.provider.user, "reject")

        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertEqual(response.data["status"], "rejected")
        self.assertEqual(response.data["payment_status"], "paid")
        self.assertEqual(response.data["refund_status"], "pending")
        self.assertEqual(response.data["refund"], "pending")
        self.assertTrue(
            BookingEvent.objects.filter(service_order=self.order, metadata__refund_failed=True).exists()
        )

    @mock.patch("apps.finances.stripe_service.refund_payment", return_value="re_1")
    def test_client_cancels_before_acceptance(self, refund) -> None:
        response = self._post(self.customer, "cancel", {"reason": "Передумал"})

        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertEqual(response.data["status"], "cancelled")
        self.assertEqual(response.data["payment_status"], "refunded")
        self.assertEqual(
            Notification.objects.filter(user=self.provider.user, type=Notification.Type.CANCELLATION).count(), 1
        )

    def test_cancel_after_acceptance_is_invalid_state(self) -> None:
        self._post(self.provider.user, "accept")

        response = self._post(self.customer, "cancel")

        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(response.data["code"], "invalid_state")
        self.order.refresh_from_db()
        self.assertEqual(self.order.status, ServiceOrder.Status.ACCEPTED)

    def test_start_and_complete(self) -> None:
        self._post(self.provider.user, "accept")
        started = self._post(self.provider.user, "start")

        completed = self._post(self.provider.user, "complete", {"provider_notes": "Всё готово"})

        self.assertEqual(started.data["status"], "in_progress")
        self.assertEqual(completed.status_code, status.HTTP_200_OK, completed.data)
        self.assertEqual(completed.data["status"], "completed")
        self.assertEqual(completed.data["provider_notes"], "Всё готово")
        self.assertEqual(completed.data["platform_fee_amount"], "16.50")
        self.assertEqual(Notification.objects.filter(user=self.customer, type=Notification.Type.REVIEW).count(), 1)

    def test_complete_requires_acceptance(self) -> None:
        response = self._post(self.provider.user, "complete")

        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)

    def test_override_by_operation_support(self) -> None:
        self.client.force_authenticate(make_user(User.RoleChoices.OPERATION_SUPPORT))

        response = self.client.patch(
            reverse("service-order-override-status", args=[self.order.pk]),
            {"status": "completed"},
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertTrue(self.order.events.filter(event_type=BookingEvent.EventType.ADMIN_OVERRIDE).exists())

    def test_events_are_listed(self) -> None:
        self._post(self.provider.user, "accept")

        response = self.client.get(reverse("service-order-events", args=[self.order.pk]))

        self.assertEqual([event["event_type"] for event in response.data], ["provider_accepted"])

"""Integration tests for settings, earnings and the payment webhook."""

from __future__ import annotations

from datetime import date, time, timedelta
from decimal import Decimal
from unittest import mock

from django.urls import reverse
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APITestCase

from apps.bookings.models import Booking
from apps.finances.models import PlatformSetting
from apps.finances.services import COMMISSION_RATE_KEY
from apps.notifications.models import Notification
from apps.orders.models import ServiceOrder
from apps.users.models import User
from shared.testing import make_property, make_provider, make_user


def make_order(client, provider, total: str, fee: str, **extra) -> ServiceOrder:
    total_amount = Decimal(total)
    fee_amount = Decimal(fee)
    return ServiceOrder.objects.create(
        client=client,
        service_provider=provider,
        service_date=extra.pop("service_date", date.today()),
        start_time=time(9, 0),
        subtotal=total_amount,
        total_amount=total_amount,
        platform_fee_percentage=Decimal("15.00"),
        platform_fee_amount=fee_amount,
        provider_amount=total_amount - fee_amount,
        **extra,
    )


def make_refunded_booking(client) -> Booking:
    check_in = timezone.now() + timedelta(days=3)
    return Booking.objects.create(
        client=client,
        property=make_property(),
        check_in=check_in,
        check_out=check_in + timedelta(days=1),
        property_total=Decimal("100.00"),
        total_amount=Decimal("100.00"),
        status=Booking.Status.CANCELLED,
        payment_status=Booking.PaymentStatus.REFUNDED,
        payment_intent_id="pi_b",
    )


class PlatformSettingApiTests(APITestCase):
    def setUp(self) -> None:
        self.admin = make_user(User.RoleChoices.ADMIN)
        self.url = reverse("platform-setting-list")

    def test_admin_upserts_commission_rate(self) -> None:
        self.client.force_authenticate(self.admin)

        response = self.client.post(self.url, {"key": COMMISSION_RATE_KEY, "value": "18"}, format="json")

        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertEqual(response.data["value"], "18")
        rate = self.client.get(reverse("platform-setting-commission-rate"))
        self.assertEqual(rate.data["rate"], "18.00")

    def test_out_of_range_rate_is_rejected(self) -> None:
        self.client.force_authenticate(self.admin)

        response = self.client.post(self.url, {"key": COMMISSION_RATE_KEY, "value": "150"}, format="json")

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_non_admin_cannot_write(self) -> None:
        self.client.force_authenticate(make_user(User.RoleChoices.OPERATION))

        response = self.client.post(self.url, {"key": COMMISSION_RATE_KEY, "value": "5"}, format="json")

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertFalse(PlatformSetting.objects.exists())

    def test_public_settings_are_anonymous(self) -> None:
        PlatformSetting.objects.create(key="support_email", value="help@travelhub.test", is_public=True)
        PlatformSetting.objects.create(key="internal_flag", value="x")

        response = self.client.get(reverse("platform-setting-public"))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([item["key"] for item in response.data], ["support_email"])

    def test_commission_rate_is_public(self) -> None:
        response = self.client.get(reverse("platform-setting-commission-rate"))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["rate"], "15.00")


class EarningsApiTests(APITestCase):
    """Сводка считается по зафиксированным суммам заказов."""

    def setUp(self) -> None:
        self.customer = make_user()
        self.provider = make_provider()
        self.other = make_provider()
        make_order(self.customer, self.provider, "110.00", "16.50", status=ServiceOrder.Status.COMPLETED)
        make_order(
            self.customer,
            self.provider,
            "148.50",
            "22.28",
            service_country="KZ",
            service_date=date.today() + timedelta(days=10),
        )
        make_order(self.customer, self.other, "50.00", "7.50")
        self.url = reverse("earnings")

    def test_billing_sees_all_orders(self) -> None:
        self.client.force_authenticate(make_user(User.RoleChoices.BILLING))

        response = self.client.get(self.url)

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["order_count"], 3)
        self.assertEqual(response.data["total_amount"], "308.50")
        self.assertEqual(response.data["platform_fee_amount"], "46.28")
        self.assertEqual(response.data["provider_amount"], "262.22")

    def test_rate_change_does_not_alter_history(self) -> None:
        PlatformSetting.objects.create(key=COMMISSION_RATE_KEY, value="50")
        self.client.force_authenticate(make_user(User.RoleChoices.ADMIN))

        response = self.client.get(self.url)

        self.assertEqual(response.data["platform_fee_amount"], "46.28")

    def test_filters(self) -> None:
        self.client.force_authenticate(make_user(User.RoleChoices.ADMIN))

        by_status = self.client.get(self.url, {"status": "completed"})
        by_country = self.client.get(self.url, {"country": "kz"})
        by_date = self.client.get(self.url, {"date_from": (date.today() + timedelta(days=1)).isoformat()})

        self.assertEqual(by_status.data["order_count"], 1)
        self.assertEqual(by_country.data["total_amount"], "148.50")
        self.assertEqual(by_date.data["order_count"], 1)

    def test_provider_sees_only_own_orders(self) -> None:
        self.client.force_authenticate(self.provider.user)

        response = self.client.get(self.url)

        self.assertEqual(response.data["order_count"], 2)
        self.assertEqual(response.data["provider_amount"], "219.72")

    def test_client_without_provider_profile_is_forbidden(self) -> None:
        self.client.force_authenticate(self.customer)

        response = self.client.get(self.url)

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_bad_filter_value(self) -> None:
        self.client.force_authenticate(make_user(User.RoleChoices.ADMIN))

        response = self.client.get(self.url, {"date_from": "yesterday"})

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)


class StripeWebhookTests(APITestCase):
    def setUp(self) -> None:
        self.customer = make_user()
        self.provider = make_provider()
        self.order = make_order(self.customer, self.provider, "110.00", "16.50")
        self.url = reverse("stripe-webhook")

    def _event(self, event_type: str, obj: dict) -> dict:
        return {"id": "evt_1", "type": event_type, "object": obj}

    def _post(self):
        return self.client.post(self.url, data=b"{}", content_type="application/json", HTTP_STRIPE_SIGNATURE="sig")

    def test_invalid_signature_is_rejected(self) -> None:
        response = self.client.post(
            self.url,
            data=b'{"type": "payment_intent.succeeded"}',
            content_type="application/json",
            HTTP_STRIPE_SIGNATURE="t=1,v1=forged",
        )

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data, {"detail": "Invalid signature"})

    @mock.patch("apps.finances.stripe_service.construct_webhook_event")
    def test_payment_succeeded_is_idempotent(self, construct) -> None:
        construct.return_value = self._event(
            "payment_intent.succeeded",
            {"id": "pi_w", "metadata": {"orderId": str(self.order.pk)}},
        )

        first = self._post()
        second = self._post()

        self.assertEqual(first.data, {"received": True, "result": "applied"})
        self.assertEqual(second.data, {"received": True, "result": "duplicate"})
        self.order.refresh_from_db()
        self.assertEqual(self.order.status, ServiceOrder.Status.CONFIRMED)
        self.assertEqual(self.order.payment_intent_id, "pi_w")
        self.assertEqual(
            Notification.objects.filter(user=self.customer, type=Notification.Type.PAYMENT_RECEIVED).count(), 1
        )

    @mock.patch("apps.finances.stripe_service.construct_webhook_event")
    def test_success_after_refund_does_not_reopen_order(self, construct) -> None:
        ServiceOrder.objects.filter(pk=self.order.pk).update(
            status=ServiceOrder.Status.REJECTED,
            payment_status=ServiceOrder.PaymentStatus.REFUNDED,
            refund_status=ServiceOrder.RefundStatus.REFUNDED,
            payment_intent_id="pi_w",
        )
        construct.return_value = self._event(
            "payment_intent.succeeded",
            {"id": "pi_w", "metadata": {"orderId": str(self.order.pk)}},
        )

        response = self._post()

        self.assertEqual(response.data["result"], "duplicate")
        self.order.refresh_from_db()
        self.assertEqual(self.order.status, ServiceOrder.Status.REJECTED)
        self.assertEqual(self.order.payment_status, ServiceOrder.PaymentStatus.REFUNDED)
        self.assertFalse(Notification.objects.exists())

    @mock.patch("apps.finances.stripe_service.construct_webhook_event")
    def test_success_after_refund_does_not_reopen_booking(self, construct) -> None:
        booking = make_refunded_booking(self.customer)
        construct.return_value = self._event(
            "payment_intent.succeeded",
            {"id": "pi_b", "metadata": {"bookingId": str(booking.pk)}},
        )

        response = self._post()

        self.assertEqual(response.data["result"], "duplicate")
        booking.refresh_from_db()
        self.assertEqual(booking.status, Booking.Status.CANCELLED)
        self.assertEqual(booking.payment_status, Booking.PaymentStatus.REFUNDED)
        self.assertFalse(Notification.objects.exists())

    @mock.patch("apps.finances.stripe_service.construct_webhook_event")
    def test_payment_failed_notifies_client(self, construct) -> None:
        construct.return_value = self._event(
            "payment_intent.payment_failed",
            {"id": "pi_w", "metadata": {"orderId": str(self.order.pk)}},
        )

        response = self._post()

        self.assertEqual(response.data["result"], "notified")
        self.assertEqual(Notification.objects.filter(user=self.customer, type=Notification.Type.PAYMENT).count(), 1)

    @mock.patch("apps.finances.stripe_service.construct_webhook_event")
    def test_charge_refunded_marks_order(self, construct) -> None:
        ServiceOrder.objects.filter(pk=self.order.pk).update(
            payment_status=ServiceOrder.PaymentStatus.PAID,
            payment_intent_id="pi_r",
        )
        construct.return_value = self._event("charge.refunded", {"id": "ch_1", "payment_intent": "pi_r"})

        response = self._post()

        self.assertEqual(response.data["result"], "applied")
        self.order.refresh_from_db()
        self.assertEqual(self.order.payment_status, ServiceOrder.PaymentStatus.REFUNDED)
        self.assertEqual(self.order.refund_status, ServiceOrder.RefundStatus.REFUNDED)

    @mock.patch("apps.finances.stripe_service.construct_webhook_event")
    def test_unknown_event_type_is_acknowledged(self, construct) -> None:
        construct.return_value = self._event("customer.created", {"id": "cus_1"})

        response = self._post()

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["result"], "unhandled")

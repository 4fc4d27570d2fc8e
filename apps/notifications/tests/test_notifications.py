"""Tests for the notification sink and its API."""

from __future__ import annotations

from unittest import mock

from django.core import mail
from django.db import DatabaseError
from django.test import TestCase
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APITestCase

from apps.notifications.models import Notification
from apps.notifications.services import notify
from shared.testing import make_user


class NotifyTests(TestCase):
    def setUp(self) -> None:
        self.user = make_user()

    def test_creates_row_and_emails_after_commit(self) -> None:
        with self.captureOnCommitCallbacks(execute=True) as callbacks:
            notification = notify(self.user, Notification.Type.BOOKING, "Заголовок", "Текст", related_id=7)

        self.assertEqual(len(callbacks), 1)
        self.assertEqual(notification.related_id, "7")
        self.assertFalse(notification.is_read)
        self.assertEqual(len(mail.outbox), 1)
        self.assertEqual(mail.outbox[0].to, [self.user.email])
        self.assertEqual(mail.outbox[0].subject, "Заголовок")

    def test_write_failure_does_not_propagate(self) -> None:
        with mock.patch.object(Notification.objects, "create", side_effect=DatabaseError("disk full")):
            result = notify(self.user, Notification.Type.ORDER, "Заголовок", "Текст")

        self.assertIsNone(result)
        self.assertFalse(Notification.objects.exists())

    def test_mail_failure_is_swallowed(self) -> None:
        with mock.patch("apps.notifications.services.send_mail", side_effect=OSError("smtp down")):
            with self.captureOnCommitCallbacks(execute=True):
                notification = notify(self.user, Notification.Type.PAYMENT, "Заголовок", "Текст")

        self.assertIsNotNone(notification)
        self.assertEqual(len(mail.outbox), 0)

    def test_missing_user_is_ignored(self) -> None:
        self.assertIsNone(notify(None, Notification.Type.ORDER, "Заголовок", "Текст"))


class NotificationApiTests(APITestCase):
    def setUp(self) -> None:
        self.user = make_user()
        self.other = make_user()
        self.first = notify(self.user, Notification.Type.BOOKING, "Первое", "Текст")
        self.second = notify(self.user, Notification.Type.ORDER, "Второе", "Текст")
        self.foreign = notify(self.other, Notification.Type.ORDER, "Чужое", "Текст")
        self.client.force_authenticate(self.user)

    def test_list_returns_only_own_newest_first(self) -> None:
        response = self.client.get(reverse("notification-list"))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([item["id"] for item in response.data], [self.second.pk, self.first.pk])

    def test_mark_read(self) -> None:
        response = self.client.post(reverse("notification-mark-read", args=[self.first.pk]))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.data["is_read"])
        unread = self.client.get(reverse("notification-unread-count"))
        self.assertEqual(unread.data, {"count": 1})

    def test_cannot_mark_foreign_notification(self) -> None:
        response = self.client.post(reverse("notification-mark-read", args=[self.foreign.pk]))

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_mark_all_read(self) -> None:
        response = self.client.post(reverse("notification-mark-all-read"))

        self.assertEqual(response.data, {"updated": 2})
        self.assertEqual(self.client.get(reverse("notification-unread-count")).data, {"count": 0})
        self.foreign.refresh_from_db()
        self.assertFalse(self.foreign.is_read)

    def test_anonymous_is_rejected(self) -> None:
        self.client.force_authenticate(None)

        response = self.client.get(reverse("notification-list"))

        self.assertIn(response.status_code, (status.HTTP_401_UNAUTHORIZED, status.HTTP_403_FORBIDDEN))

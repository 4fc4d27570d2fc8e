"""Tests for provider applications and their review."""

from __future__ import annotations

from django.urls import reverse
from rest_framework import status
from rest_framework.test import APITestCase

from apps.notifications.models import Notification
from apps.providers import services
from apps.providers.models import ServiceProvider
from apps.users.models import User
from shared.domain.exceptions import Conflict, Forbidden, InvalidState
from shared.testing import make_category, make_provider, make_user


class ProviderApplicationTests(APITestCase):
    def setUp(self) -> None:
        self.category = make_category("Повар")
        self.applicant = make_user()
        self.client.force_authenticate(self.applicant)

    def _apply(self):
        return self.client.post(
            reverse("service-provider-list"),
            {"category": self.category.pk, "business_name": "Chef Anna", "hourly_rate": "25.00"},
            format="json",
        )

    def test_application_is_created_pending(self) -> None:
        response = self._apply()

        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)
        self.assertEqual(response.data["approval_status"], ServiceProvider.ApprovalStatus.PENDING)

    def test_second_application_while_pending_is_conflict(self) -> None:
        self._apply()

        response = self._apply()

        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(ServiceProvider.objects.filter(user=self.applicant).count(), 1)

    def test_rejected_application_cannot_be_resubmitted(self) -> None:
        make_provider(self.applicant, category=self.category, approval_status=ServiceProvider.ApprovalStatus.REJECTED)

        with self.assertRaises(Conflict):
            services.submit_application(self.applicant, {"category": self.category, "business_name": "Again"})

    def test_pending_application_is_hidden_from_public_list(self) -> None:
        self._apply()
        self.client.force_authenticate(None)

        response = self.client.get(reverse("service-provider-list"))

        self.assertEqual(response.data, [])


class ProviderDecisionTests(APITestCase):
    def setUp(self) -> None:
        self.manager = make_user(User.RoleChoices.CITY_MANAGER)
        self.applicant = make_user()
        self.provider = make_provider(self.applicant, approval_status=ServiceProvider.ApprovalStatus.PENDING)

    def test_approval_promotes_user_and_notifies(self) -> None:
        self.client.force_authenticate(self.manager)

        response = self.client.post(reverse("service-provider-approve", args=[self.provider.pk]))

        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.applicant.refresh_from_db()
        self.assertEqual(self.applicant.role, User.RoleChoices.SERVICE_PROVIDER)
        self.assertEqual(
            Notification.objects.filter(user=self.applicant, type=Notification.Type.APPROVAL).count(), 1
        )

    def test_double_approval_is_invalid_state(self) -> None:
        services.decide_application(self.manager, self.provider, ServiceProvider.ApprovalStatus.APPROVED)

        with self.assertRaises(InvalidState):
            services.decide_application(self.manager, self.provider, ServiceProvider.ApprovalStatus.APPROVED)
        self.assertEqual(Notification.objects.filter(user=self.applicant).count(), 1)

    def test_reject_stores_reason(self) -> None:
        self.client.force_authenticate(self.manager)

        response = self.client.post(
            reverse("service-provider-reject", args=[self.provider.pk]), {"reason": "Нет лицензии"}, format="json"
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.provider.refresh_from_db()
        self.assertEqual(self.provider.rejection_reason, "Нет лицензии")
        self.applicant.refresh_from_db()
        self.assertEqual(self.applicant.role, User.RoleChoices.CLIENT)

    def test_client_cannot_decide(self) -> None:
        self.client.force_authenticate(make_user())

        response = self.client.post(reverse("service-provider-approve", args=[self.provider.pk]))

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_only_admin_deletes_provider(self) -> None:
        with self.assertRaises(Forbidden):
            services.delete_provider(self.manager, self.provider)

        services.delete_provider(make_user(User.RoleChoices.ADMIN), self.provider)
        self.assertFalse(ServiceProvider.objects.filter(pk=self.provider.pk).exists())

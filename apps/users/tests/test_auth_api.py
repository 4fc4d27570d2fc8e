"""API tests for session authentication and account gating."""

from __future__ import annotations

from django.urls import reverse
from rest_framework import status
from rest_framework.test import APITestCase

from apps.users.models import User
from shared.testing import DEFAULT_PASSWORD, make_user


class AuthAPITests(APITestCase):
    def test_register_client_is_approved_and_logged_in(self) -> None:
        payload = {
            "email": "client@example.com",
            "password": "StrongPass123",
            "first_name": "Client",
            "last_name": "User",
        }

        response = self.client.post(reverse("auth:register"), payload, format="json")

        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)
        self.assertEqual(response.data["role"], User.RoleChoices.CLIENT)
        self.assertEqual(response.data["status"], User.StatusChoices.APPROVED)
        me = self.client.get(reverse("auth:me"))
        self.assertEqual(me.status_code, status.HTTP_200_OK)
        self.assertEqual(me.data["email"], payload["email"])

    def test_register_provider_role_is_pending(self) -> None:
        payload = {"email": "chef@example.com", "password": "StrongPass123", "role": "service_provider"}

        response = self.client.post(reverse("auth:register"), payload, format="json")

        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)
        self.assertEqual(response.data["status"], User.StatusChoices.PENDING)

    def test_register_rejects_staff_roles_and_unknown_fields(self) -> None:
        admin_attempt = self.client.post(
            reverse("auth:register"),
            {"email": "x@example.com", "password": "StrongPass123", "role": "admin"},
            format="json",
        )
        extra_field = self.client.post(
            reverse("auth:register"),
            {"email": "y@example.com", "password": "StrongPass123", "is_superuser": True},
            format="json",
        )

        self.assertEqual(admin_attempt.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(extra_field.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertFalse(User.objects.filter(email__in=["x@example.com", "y@example.com"]).exists())

    def test_duplicate_email_is_conflict(self) -> None:
        make_user(email="taken@example.com")

        response = self.client.post(
            reverse("auth:register"),
            {"email": "taken@example.com", "password": "StrongPass123"},
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)

    def test_login_and_logout(self) -> None:
        user = make_user(email="login@example.com")

        bad = self.client.post(
            reverse("auth:login"), {"email": user.email, "password": "wrong"}, format="json"
        )
        good = self.client.post(
            reverse("auth:login"), {"email": user.email, "password": DEFAULT_PASSWORD}, format="json"
        )

        self.assertEqual(bad.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertEqual(good.status_code, status.HTTP_200_OK, good.data)
        self.assertEqual(self.client.get(reverse("auth:me")).status_code, status.HTTP_200_OK)

        self.client.post(reverse("auth:logout"))
        self.assertEqual(self.client.get(reverse("auth:me")).status_code, status.HTTP_401_UNAUTHORIZED)


class AccountGatingTests(APITestCase):
    def test_anonymous_request_is_unauthorized(self) -> None:
        response = self.client.get(reverse("booking-list"))

        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_pending_account_is_forbidden_with_reason(self) -> None:
        user = make_user(User.RoleChoices.PROPERTY_OWNER, status=User.StatusChoices.PENDING)
        self.client.force_authenticate(user)

        response = self.client.get(reverse("booking-list"))

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(response.data["reason"], "pending")

    def test_rejected_account_is_forbidden_with_reason(self) -> None:
        user = make_user(User.RoleChoices.SERVICE_PROVIDER, status=User.StatusChoices.REJECTED)
        self.client.force_authenticate(user)

        response = self.client.get(reverse("booking-list"))

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(response.data["reason"], "rejected")

    def test_pending_account_can_still_read_profile(self) -> None:
        user = make_user(User.RoleChoices.CITY_MANAGER, status=User.StatusChoices.PENDING)
        self.client.force_authenticate(user)

        response = self.client.get(reverse("auth:me"))

        self.assertEqual(response.status_code, status.HTTP_200_OK)

"""Tests for account approval, role assignment and role change requests."""

from __future__ import annotations

from django.urls import reverse
from rest_framework import status
from rest_framework.test import APITestCase

from apps.notifications.models import Notification
from apps.users import services
from apps.users.models import RoleChangeRequest, User
from shared.domain.exceptions import Conflict, Forbidden, InvalidState, ValidationError
from shared.testing import make_user


class AccountApprovalTests(APITestCase):
    def setUp(self) -> None:
        self.admin = make_user(User.RoleChoices.ADMIN)
        self.client.force_authenticate(self.admin)

    def test_admin_approves_pending_account(self) -> None:
        owner = make_user(User.RoleChoices.PROPERTY_OWNER, status=User.StatusChoices.PENDING)

        response = self.client.post(reverse("user-approve", args=[owner.pk]))

        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        owner.refresh_from_db()
        self.assertEqual(owner.status, User.StatusChoices.APPROVED)
        self.assertEqual(owner.approved_by, self.admin)
        self.assertTrue(Notification.objects.filter(user=owner, type=Notification.Type.APPROVAL).exists())

    def test_second_decision_is_invalid_state(self) -> None:
        owner = make_user(User.RoleChoices.PROPERTY_OWNER, status=User.StatusChoices.PENDING)
        self.client.post(reverse("user-approve", args=[owner.pk]))

        response = self.client.post(reverse("user-reject", args=[owner.pk]), {"reason": "late"}, format="json")

        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(response.data["code"], "invalid_state")

    def test_non_admin_cannot_list_users(self) -> None:
        self.client.force_authenticate(make_user(User.RoleChoices.BILLING))

        response = self.client.get(reverse("user-list"))

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_admin_creates_approved_staff_account(self) -> None:
        response = self.client.post(
            reverse("user-list"),
            {"email": "ops@example.com", "password": "StrongPass1", "role": "operation"},
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)
        self.assertEqual(response.data["status"], User.StatusChoices.APPROVED)


class AssignRoleTests(APITestCase):
    def setUp(self) -> None:
        self.admin = make_user(User.RoleChoices.ADMIN)

    def test_only_admin_assigns_roles(self) -> None:
        manager = make_user(User.RoleChoices.COUNTRY_MANAGER)
        target = make_user()

        with self.assertRaises(Forbidden):
            services.assign_role(manager, target, User.RoleChoices.BILLING)

    def test_operation_support_is_a_singleton(self) -> None:
        first = make_user()
        second = make_user()
        services.assign_role(self.admin, first, User.RoleChoices.OPERATION_SUPPORT)

        with self.assertRaises(Conflict):
            services.assign_role(self.admin, second, User.RoleChoices.OPERATION_SUPPORT)
        second.refresh_from_db()
        self.assertEqual(second.role, User.RoleChoices.CLIENT)

    def test_operation_support_can_move_after_release(self) -> None:
        first = make_user()
        second = make_user()
        services.assign_role(self.admin, first, User.RoleChoices.OPERATION_SUPPORT)
        services.assign_role(self.admin, first, User.RoleChoices.OPERATION)

        services.assign_role(self.admin, second, User.RoleChoices.OPERATION_SUPPORT)

        self.assertEqual(User.objects.filter(role=User.RoleChoices.OPERATION_SUPPORT).get(), second)

    def test_unknown_role_is_a_validation_error(self) -> None:
        target = make_user()

        with self.assertRaises(ValidationError):
            services.assign_role(self.admin, target, "superhero")
        target.refresh_from_db()
        self.assertEqual(target.role, User.RoleChoices.CLIENT)

    def test_assign_role_endpoint(self) -> None:
        target = make_user()
        self.client.force_authenticate(self.admin)

        response = self.client.post(
            reverse("user-assign-role", args=[target.pk]), {"role": "billing"}, format="json"
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertEqual(response.data["role"], "billing")


class RoleChangeRequestTests(APITestCase):
    def setUp(self) -> None:
        self.admin = make_user(User.RoleChoices.ADMIN)
        self.client_user = make_user()

    def test_client_files_request_and_admin_approves(self) -> None:
        self.client.force_authenticate(self.client_user)
        created = self.client.post(
            reverse("role-change-request-list"),
            {"requested_role": "property_owner", "reason": "Сдаю квартиру"},
            format="json",
        )
        self.assertEqual(created.status_code, status.HTTP_201_CREATED, created.data)

        self.client.force_authenticate(self.admin)
        approved = self.client.post(reverse("role-change-request-approve", args=[created.data["id"]]))

        self.assertEqual(approved.status_code, status.HTTP_200_OK, approved.data)
        self.client_user.refresh_from_db()
        self.assertEqual(self.client_user.role, User.RoleChoices.PROPERTY_OWNER)

    def test_only_one_pending_request(self) -> None:
        services.create_role_change_request(self.client_user, "property_owner")

        with self.assertRaises(Conflict):
            services.create_role_change_request(self.client_user, "service_provider")

    def test_reviewed_request_cannot_be_reviewed_again(self) -> None:
        role_request = services.create_role_change_request(self.client_user, "service_provider")
        services.review_role_change_request(self.admin, role_request, approve=False, notes="Нет документов")

        with self.assertRaises(InvalidState):
            services.review_role_change_request(self.admin, role_request, approve=True)
        role_request.refresh_from_db()
        self.assertEqual(role_request.status, RoleChangeRequest.Status.REJECTED)

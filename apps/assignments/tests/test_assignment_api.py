"""Integration tests for the job assignment protocol."""

from __future__ import annotations

from datetime import timedelta
from decimal import Decimal

from django.urls import reverse
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APITestCase

from apps.assignments.models import JobAssignment
from apps.bookings.models import Booking, ServiceBooking
from apps.notifications.models import Notification
from apps.users.models import User
from shared.testing import make_property, make_provider, make_user


class AssignmentFlowTests(APITestCase):
    """Назначение, ответ поставщика, отмена и переназначение."""

    def setUp(self) -> None:
        self.guest = make_user()
        self.coordinator = make_user(User.RoleChoices.CITY_MANAGER)
        self.provider_x = make_provider()
        self.provider_y = make_provider()
        check_in = timezone.now() + timedelta(days=4)
        booking = Booking.objects.create(
            client=self.guest,
            property=make_property(),
            check_in=check_in,
            check_out=check_in + timedelta(days=2),
            property_total=Decimal("200.00"),
            total_amount=Decimal("200.00"),
            status=Booking.Status.CONFIRMED,
            payment_status=Booking.PaymentStatus.PAID,
        )
        self.service = ServiceBooking.objects.create(
            booking=booking,
            service_name="Уборка",
            service_date=check_in + timedelta(hours=3),
            rate=Decimal("50.00"),
            total=Decimal("50.00"),
            status=ServiceBooking.Status.AWAITING_ASSIGNMENT,
        )

    def _assign(self, provider=None):
        self.client.force_authenticate(self.coordinator)
        return self.client.post(
            reverse("job-assignment-list"),
            {"service_booking": self.service.pk, "service_provider": (provider or self.provider_x).pk},
            format="json",
        )

    def _act(self, user, name: str, assignment_id, data=None):
        self.client.force_authenticate(user)
        return self.client.post(reverse(f"job-assignment-{name}", args=[assignment_id]), data or {}, format="json")

    def test_assign_creates_pending_assignment(self) -> None:
        response = self._assign()

        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)
        self.assertEqual(response.data["status"], "pending")
        self.service.refresh_from_db()
        self.assertEqual(self.service.status, ServiceBooking.Status.ASSIGNED)
        self.assertEqual(self.service.service_provider, self.provider_x)
        self.assertEqual(
            Notification.objects.filter(user=self.provider_x.user, type=Notification.Type.JOB_ASSIGNED).count(), 1
        )

    def test_second_active_assignment_conflicts(self) -> None:
        self._assign()

        response = self._assign(self.provider_y)

        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(response.data["code"], "conflict")
        self.assertEqual(JobAssignment.objects.count(), 1)

    def test_client_cannot_assign(self) -> None:
        self.client.force_authenticate(self.guest)

        response = self.client.post(
            reverse("job-assignment-list"),
            {"service_booking": self.service.pk, "service_provider": self.provider_x.pk},
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_unapproved_provider_cannot_be_assigned(self) -> None:
        pending = make_provider(approval_status="pending")

        response = self._assign(pending)

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_cancelled_service_cannot_be_assigned(self) -> None:
        ServiceBooking.objects.filter(pk=self.service.pk).update(status=ServiceBooking.Status.CANCELLED)

        response = self._assign()

        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(response.data["code"], "invalid_state")

    def test_provider_accepts(self) -> None:
        assignment_id = self._assign().data["id"]

        response = self._act(self.provider_x.user, "accept", assignment_id)

        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertEqual(response.data["status"], "accepted")
        self.assertIsNotNone(response.data["responded_at"])
        self.service.refresh_from_db()
        self.assertEqual(self.service.status, ServiceBooking.Status.CONFIRMED)
        self.assertEqual(
            Notification.objects.filter(user=self.coordinator, type=Notification.Type.JOB_ACCEPTED).count(), 1
        )

    def test_other_provider_cannot_respond(self) -> None:
        assignment_id = self._assign().data["id"]

        response = self._act(self.provider_y.user, "accept", assignment_id)

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(JobAssignment.objects.get().status, JobAssignment.Status.PENDING)

    def test_coordinator_cannot_answer_for_provider(self) -> None:
        assignment_id = self._assign().data["id"]

        response = self._act(self.coordinator, "accept", assignment_id)

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_reject_frees_service_for_new_assignment(self) -> None:
        assignment_id = self._assign().data["id"]

        response = self._act(self.provider_x.user, "reject", assignment_id, {"reason": "Занят"})

        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertEqual(response.data["rejection_reason"], "Занят")
        self.service.refresh_from_db()
        self.assertEqual(self.service.status, ServiceBooking.Status.AWAITING_ASSIGNMENT)
        self.assertIsNone(self.service.service_provider)
        self.assertEqual(
            Notification.objects.filter(user=self.coordinator, type=Notification.Type.JOB_REJECTED).count(), 1
        )
        self.assertEqual(self._assign(self.provider_y).status_code, status.HTTP_201_CREATED)

    def test_second_answer_is_invalid_state(self) -> None:
        assignment_id = self._assign().data["id"]
        self._act(self.provider_x.user, "accept", assignment_id)

        response = self._act(self.provider_x.user, "reject", assignment_id)

        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)

    def test_coordinator_cancels(self) -> None:
        assignment_id = self._assign().data["id"]

        response = self._act(self.coordinator, "cancel", assignment_id)

        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertEqual(response.data["status"], "cancelled")
        self.service.refresh_from_db()
        self.assertEqual(self.service.status, ServiceBooking.Status.AWAITING_ASSIGNMENT)
        self.assertEqual(
            Notification.objects.filter(user=self.provider_x.user, type=Notification.Type.CANCELLATION).count(), 1
        )

    def test_accepted_assignment_cannot_be_cancelled(self) -> None:
        assignment_id = self._assign().data["id"]
        self._act(self.provider_x.user, "accept", assignment_id)
        self.client.post(reverse("service-booking-complete", args=[self.service.pk]))

        response = self._act(self.coordinator, "cancel", assignment_id)

        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(response.data["code"], "invalid_state")
        self.assertEqual(JobAssignment.objects.get().status, JobAssignment.Status.ACCEPTED)
        self.service.refresh_from_db()
        self.assertEqual(self.service.status, ServiceBooking.Status.COMPLETED)
        self.assertEqual(self.service.service_provider, self.provider_x)

    def test_accepted_assignment_cannot_be_reassigned(self) -> None:
        assignment_id = self._assign().data["id"]
        self._act(self.provider_x.user, "accept", assignment_id)

        response = self._act(self.coordinator, "reassign", assignment_id, {"service_provider": self.provider_y.pk})

        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(JobAssignment.objects.count(), 1)
        self.service.refresh_from_db()
        self.assertEqual(self.service.status, ServiceBooking.Status.CONFIRMED)

    def test_reassign_cancels_old_and_offers_new(self) -> None:
        assignment_id = self._assign().data["id"]
        before_x = Notification.objects.filter(user=self.provider_x.user).count()

        response = self._act(self.coordinator, "reassign", assignment_id, {"service_provider": self.provider_y.pk})

        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)
        self.assertEqual(response.data["cancelled"]["status"], "cancelled")
        self.assertEqual(response.data["assignment"]["status"], "pending")
        self.assertEqual(response.data["assignment"]["service_provider"], self.provider_y.pk)
        self.assertEqual(
            JobAssignment.objects.filter(status__in=JobAssignment.ACTIVE_STATUSES).get().service_provider,
            self.provider_y,
        )
        self.assertEqual(
            Notification.objects.filter(user=self.provider_y.user, type=Notification.Type.JOB_ASSIGNED).count(), 1
        )
        self.assertEqual(Notification.objects.filter(user=self.provider_x.user).count(), before_x)

    def test_reassign_to_same_provider_is_rejected(self) -> None:
        assignment_id = self._assign().data["id"]

        response = self._act(self.coordinator, "reassign", assignment_id, {"service_provider": self.provider_x.pk})

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(JobAssignment.objects.get().status, JobAssignment.Status.PENDING)

    def test_provider_completes_confirmed_service(self) -> None:
        assignment_id = self._assign().data["id"]
        self._act(self.provider_x.user, "accept", assignment_id)

        response = self.client.post(reverse("service-booking-complete", args=[self.service.pk]))

        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertEqual(response.data["status"], "completed")
        self.assertEqual(
            Notification.objects.filter(user=self.guest, type=Notification.Type.TASK_COMPLETED).count(), 1
        )

    def test_provider_sees_only_own_assignments(self) -> None:
        self._assign()
        self.client.force_authenticate(self.provider_y.user)

        response = self.client.get(reverse("job-assignment-list"))

        self.assertEqual(response.data, [])

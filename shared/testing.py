"""Object builders shared by the app test suites."""

from __future__ import annotations

from decimal import Decimal
from itertools import count

from apps.properties.models import Property
from apps.providers.models import ServiceCategory, ServiceProvider
from apps.users.models import CustomUser

_sequence = count(1)

DEFAULT_PASSWORD = "Secret123"


def make_user(role: str = CustomUser.RoleChoices.CLIENT, status: str = CustomUser.StatusChoices.APPROVED, **extra):
    number = next(_sequence)
    email = extra.pop("email", f"{role}{number}@example.com")
    return CustomUser.objects.create_user(
        email=email,
        password=extra.pop("password", DEFAULT_PASSWORD),
        role=role,
        status=status,
        **extra,
    )


def make_category(name: str | None = None) -> ServiceCategory:
    return ServiceCategory.objects.create(name=name or f"Категория {next(_sequence)}")


def make_provider(
    user: CustomUser | None = None,
    *,
    category: ServiceCategory | None = None,
    approval_status: str = ServiceProvider.ApprovalStatus.APPROVED,
    hourly_rate: Decimal | None = Decimal("20.00"),
    fixed_rate: Decimal | None = Decimal("50.00"),
    **extra,
) -> ServiceProvider:
    if user is None:
        user = make_user(CustomUser.RoleChoices.SERVICE_PROVIDER)
    return ServiceProvider.objects.create(
        user=user,
        category=category or make_category(),
        business_name=extra.pop("business_name", f"Provider {user.pk}"),
        approval_status=approval_status,
        hourly_rate=hourly_rate,
        fixed_rate=fixed_rate,
        **extra,
    )


def make_property(owner: CustomUser | None = None, *, price: Decimal = Decimal("100.00"), **extra) -> Property:
    if owner is None:
        owner = make_user(CustomUser.RoleChoices.PROPERTY_OWNER)
    return Property.objects.create(
        owner=owner,
        title=extra.pop("title", "Квартира у моря"),
        location=extra.pop("location", "Алматы"),
        price_per_night=price,
        max_guests=extra.pop("max_guests", 4),
        **extra,
    )

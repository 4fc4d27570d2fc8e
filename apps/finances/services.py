"""Commission and settlement ledger services."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any

from django.conf import settings  # type: ignore
from django.db.models import Count, Sum  # type: ignore

from apps.users.models import CustomUser
from apps.users.services import require_admin
from shared.domain.exceptions import NotFound, ValidationError
from shared.domain.value_objects import Money, quantize

from .models import PlatformSetting

logger = logging.getLogger(__name__)

COMMISSION_RATE_KEY = "service_commission_rate"


@dataclass(frozen=True)
class Commission:
    rate: Decimal
    platform_fee_amount: Decimal
    provider_amount: Decimal


def default_commission_rate() -> Decimal:
    return quantize(getattr(settings, "SERVICE_COMMISSION_RATE_DEFAULT", "15.00"))


def get_commission_rate() -> Decimal:
    """Текущая ставка комиссии в процентах; при отсутствии или ошибке значения берётся значение по умолчанию."""
    row = PlatformSetting.objects.filter(key=COMMISSION_RATE_KEY).values_list("value", flat=True).first()
    if row is None:
        return default_commission_rate()
    try:
        rate = quantize(Decimal(str(row).strip()))
    except (InvalidOperation, ValueError):
        logger.warning(f"Invalid {COMMISSION_RATE_KEY} value {row!r}, falling back to default")
        return default_commission_rate()
    if not Decimal("0") <= rate <= Decimal("100"):
        logger.warning(f"Out of range {COMMISSION_RATE_KEY} value {rate}, falling back to default")
        return default_commission_rate()
    return rate


def compute_commission(total_amount, rate=None) -> Commission:
    """
    Разделение суммы заказа между платформой и поставщиком.

    Доля поставщика считается как остаток, поэтому
    platform_fee_amount + provider_amount == total_amount до цента.
    """
    rate = get_commission_rate() if rate is None else quantize(rate)
    total = Money(total_amount)
    fee = total.percent(rate)
    provider = total - fee
    return Commission(rate=rate, platform_fee_amount=fee.amount, provider_amount=provider.amount)


def summarize_earnings(orders) -> dict[str, Any]:
    """Сумма зафиксированных комиссий и выплат по набору заказов, без пересчёта по текущей ставке."""
    totals = orders.aggregate(
        order_count=Count("id"),
        total_amount=Sum("total_amount"),
        platform_fee_amount=Sum("platform_fee_amount"),
        provider_amount=Sum("provider_amount"),
    )
    return {
        "order_count": totals["order_count"] or 0,
        "total_amount": quantize(totals["total_amount"] or 0),
        "platform_fee_amount": quantize(totals["platform_fee_amount"] or 0),
        "provider_amount": quantize(totals["provider_amount"] or 0),
    }


def _validate_value(value_type: str, value: str, key: str) -> str:
    if value_type == PlatformSetting.ValueType.NUMBER:
        try:
            number = Decimal(str(value).strip())
        except (InvalidOperation, ValueError):
            raise ValidationError(f"Значение {key} должно быть числом.")
        if key == COMMISSION_RATE_KEY and not Decimal("0") <= number <= Decimal("100"):
            raise ValidationError("Комиссия должна быть в диапазоне от 0 до 100.")
        return str(number)
    if value_type == PlatformSetting.ValueType.BOOLEAN:
        normalized = str(value).strip().lower()
        if normalized not in {"true", "false"}:
            raise ValidationError(f"Значение {key} должно быть true или false.")
        return normalized
    if value_type == PlatformSetting.ValueType.JSON:
        try:
            json.loads(value)
        except (TypeError, ValueError):
            raise ValidationError(f"Значение {key} должно быть корректным JSON.")
    return str(value)


def get_setting(key: str) -> PlatformSetting:
    try:
        return PlatformSetting.objects.get(key=key)
    except PlatformSetting.DoesNotExist:
        raise NotFound(f"Настройка {key} не найдена.")


def upsert_setting(actor: CustomUser, key: str, value: str, **fields: Any) -> PlatformSetting:
    """Создание или обновление настройки администратором."""
    require_admin(actor)
    existing = PlatformSetting.objects.filter(key=key).first()
    value_type = fields.get("type") or (existing.type if existing else None)
    if value_type is None:
        value_type = PlatformSetting.ValueType.NUMBER if key == COMMISSION_RATE_KEY else PlatformSetting.ValueType.STRING
    fields["type"] = value_type
    normalized = _validate_value(value_type, value, key)

    setting, created = PlatformSetting.objects.update_or_create(
        key=key,
        defaults={"value": normalized, "updated_by": actor, **fields},
    )
    logger.info(f"Platform setting {key} {'created' if created else 'updated'} by {actor.pk}: {normalized}")
    return setting

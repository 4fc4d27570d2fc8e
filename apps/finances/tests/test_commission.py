"""Unit tests for commission calculation and platform settings."""

from __future__ import annotations

from decimal import Decimal

from django.test import TestCase, override_settings

from apps.finances.models import PlatformSetting
from apps.finances.services import (
    COMMISSION_RATE_KEY,
    compute_commission,
    get_commission_rate,
    upsert_setting,
)
from apps.users.models import User
from shared.domain.exceptions import Forbidden, ValidationError
from shared.testing import make_user


class CommissionRateTests(TestCase):
    def _set(self, value: str) -> None:
        PlatformSetting.objects.update_or_create(key=COMMISSION_RATE_KEY, defaults={"value": value})

    def test_missing_setting_uses_default(self) -> None:
        self.assertEqual(get_commission_rate(), Decimal("15.00"))

    @override_settings(SERVICE_COMMISSION_RATE_DEFAULT="12.5")
    def test_default_comes_from_settings(self) -> None:
        self.assertEqual(get_commission_rate(), Decimal("12.50"))

    def test_stored_value_is_used(self) -> None:
        self._set(" 20 ")
        self.assertEqual(get_commission_rate(), Decimal("20.00"))

    def test_garbage_value_falls_back(self) -> None:
        self._set("twenty")
        self.assertEqual(get_commission_rate(), Decimal("15.00"))

    def test_out_of_range_value_falls_back(self) -> None:
        for value in ("-1", "100.01", "250"):
            with self.subTest(value=value):
                self._set(value)
                self.assertEqual(get_commission_rate(), Decimal("15.00"))

    def test_boundaries_are_allowed(self) -> None:
        self._set("0")
        self.assertEqual(get_commission_rate(), Decimal("0.00"))
        self._set("100")
        self.assertEqual(get_commission_rate(), Decimal("100.00"))


class ComputeCommissionTests(TestCase):
    def test_split_adds_up_to_total(self) -> None:
        commission = compute_commission(Decimal("110.00"), Decimal("15"))

        self.assertEqual(commission.platform_fee_amount, Decimal("16.50"))
        self.assertEqual(commission.provider_amount, Decimal("93.50"))

    def test_half_cent_rounds_up(self) -> None:
        commission = compute_commission(Decimal("148.50"), Decimal("15"))

        self.assertEqual(commission.platform_fee_amount, Decimal("22.28"))
        self.assertEqual(commission.provider_amount, Decimal("126.22"))
        self.assertEqual(commission.platform_fee_amount + commission.provider_amount, Decimal("148.50"))

    def test_zero_rate_leaves_everything_to_provider(self) -> None:
        commission = compute_commission(Decimal("99.99"), Decimal("0"))

        self.assertEqual(commission.platform_fee_amount, Decimal("0.00"))
        self.assertEqual(commission.provider_amount, Decimal("99.99"))

    def test_rate_read_from_settings_when_omitted(self) -> None:
        PlatformSetting.objects.create(key=COMMISSION_RATE_KEY, value="10")

        commission = compute_commission(Decimal("50.00"))

        self.assertEqual(commission.rate, Decimal("10.00"))
        self.assertEqual(commission.platform_fee_amount, Decimal("5.00"))


class UpsertSettingTests(TestCase):
    def setUp(self) -> None:
        self.admin = make_user(User.RoleChoices.ADMIN)

    def test_commission_rate_is_validated(self) -> None:
        with self.assertRaises(ValidationError):
            upsert_setting(self.admin, COMMISSION_RATE_KEY, "101")
        with self.assertRaises(ValidationError):
            upsert_setting(self.admin, COMMISSION_RATE_KEY, "abc")
        self.assertFalse(PlatformSetting.objects.exists())

    def test_upsert_updates_existing_row(self) -> None:
        upsert_setting(self.admin, COMMISSION_RATE_KEY, "12")
        setting = upsert_setting(self.admin, COMMISSION_RATE_KEY, "18.5")

        self.assertEqual(PlatformSetting.objects.count(), 1)
        self.assertEqual(setting.value, "18.5")
        self.assertEqual(setting.type, PlatformSetting.ValueType.NUMBER)
        self.assertEqual(setting.updated_by, self.admin)

    def test_boolean_values_are_normalized(self) -> None:
        setting = upsert_setting(self.admin, "maintenance_mode", "TRUE", type=PlatformSetting.ValueType.BOOLEAN)

        self.assertEqual(setting.value, "true")

    def test_only_admin_may_write(self) -> None:
        with self.assertRaises(Forbidden):
            upsert_setting(make_user(User.RoleChoices.BILLING), COMMISSION_RATE_KEY, "10")

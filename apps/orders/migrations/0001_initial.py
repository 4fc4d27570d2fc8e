import django.db.models.deletion
from decimal import Decimal

from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
        ("bookings", "0001_initial"),
        ("providers", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="ServiceOrder",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("order_code", models.CharField(editable=False, max_length=32, unique=True)),
                ("service_date", models.DateField()),
                ("start_time", models.TimeField()),
                ("end_time", models.TimeField(blank=True, null=True)),
                ("duration", models.PositiveSmallIntegerField(blank=True, null=True)),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("pending", "Ожидает"),
                            ("pending_payment", "Ожидает оплаты"),
                            ("confirmed", "Оплачен, ждёт поставщика"),
                            ("pending_acceptance", "Ожидает принятия"),
                            ("accepted", "Принят поставщиком"),
                            ("in_progress", "Выполняется"),
                            ("completed", "Выполнен"),
                            ("cancelled", "Отменён"),
                            ("rejected", "Отклонён поставщиком"),
                        ],
                        default="pending_payment",
                        max_length=32,
                    ),
                ),
                ("subtotal", models.DecimalField(decimal_places=2, max_digits=10)),
                ("tax_amount", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=10)),
                ("total_amount", models.DecimalField(decimal_places=2, max_digits=10)),
                ("platform_fee_percentage", models.DecimalField(decimal_places=2, max_digits=5)),
                ("platform_fee_amount", models.DecimalField(decimal_places=2, max_digits=10)),
                ("provider_amount", models.DecimalField(decimal_places=2, max_digits=10)),
                (
                    "payment_status",
                    models.CharField(
                        choices=[("pending", "Ожидает оплаты"), ("paid", "Оплачен"), ("refunded", "Возврат")],
                        default="pending",
                        max_length=20,
                    ),
                ),
                (
                    "refund_status",
                    models.CharField(
                        choices=[("none", "Нет"), ("refunded", "Возвращено"), ("pending", "Требует ручного возврата")],
                        default="none",
                        max_length=16,
                    ),
                ),
                ("payment_intent_id", models.CharField(blank=True, max_length=255)),
                ("stripe_refund_id", models.CharField(blank=True, max_length=255)),
                ("special_instructions", models.TextField(blank=True)),
                ("provider_notes", models.TextField(blank=True)),
                ("cancellation_reason", models.TextField(blank=True)),
                ("rejection_reason", models.TextField(blank=True)),
                ("service_location", models.CharField(blank=True, max_length=255)),
                ("service_country", models.CharField(blank=True, max_length=100)),
                ("accepted_at", models.DateTimeField(blank=True, null=True)),
                ("completed_at", models.DateTimeField(blank=True, null=True)),
                ("cancelled_at", models.DateTimeField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "booking",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="service_orders",
                        to="bookings.booking",
                    ),
                ),
                (
                    "client",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="service_orders",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "service_provider",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="orders",
                        to="providers.serviceprovider",
                    ),
                ),
            ],
            options={
                "verbose_name": "Заказ услуги",
                "verbose_name_plural": "Заказы услуг",
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["status"], name="order_status_idx"),
                    models.Index(fields=["payment_intent_id"], name="order_intent_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="ServiceOrderItem",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                (
                    "item_type",
                    models.CharField(choices=[("menu_item", "Блюдо"), ("task", "Задача")], max_length=16),
                ),
                ("item_name", models.CharField(max_length=255)),
                ("quantity", models.PositiveSmallIntegerField(default=1)),
                ("unit_price", models.DecimalField(decimal_places=2, max_digits=10)),
                ("total_price", models.DecimalField(decimal_places=2, max_digits=10)),
                ("is_completed", models.BooleanField(default=False)),
                ("completed_at", models.DateTimeField(blank=True, null=True)),
                ("notes", models.TextField(blank=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "menu_item",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="+",
                        to="providers.menuitem",
                    ),
                ),
                (
                    "service_order",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="items",
                        to="orders.serviceorder",
                    ),
                ),
                (
                    "task",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="+",
                        to="providers.servicetask",
                    ),
                ),
            ],
            options={
                "verbose_name": "Позиция заказа",
                "verbose_name_plural": "Позиции заказа",
                "ordering": ["id"],
            },
        ),
    ]

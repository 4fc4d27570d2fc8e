import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
        ("bookings", "0001_initial"),
        ("orders", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="BookingEvent",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                (
                    "event_type",
                    models.CharField(
                        choices=[
                            ("created", "Создано"),
                            ("status_changed", "Смена статуса"),
                            ("payment_received", "Оплата получена"),
                            ("payment_refunded", "Возврат оплаты"),
                            ("provider_assigned", "Назначен поставщик"),
                            ("provider_accepted", "Поставщик принял"),
                            ("provider_rejected", "Поставщик отклонил"),
                            ("started", "Начато"),
                            ("completed", "Завершено"),
                            ("cancelled", "Отменено"),
                            ("admin_override", "Изменено администратором"),
                        ],
                        max_length=32,
                    ),
                ),
                ("old_status", models.CharField(blank=True, max_length=32)),
                ("new_status", models.CharField(blank=True, max_length=32)),
                ("performed_by_role", models.CharField(blank=True, max_length=32)),
                ("notes", models.TextField(blank=True)),
                ("metadata", models.JSONField(blank=True, default=dict)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "booking",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="events",
                        to="bookings.booking",
                    ),
                ),
                (
                    "performed_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="+",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "service_order",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="events",
                        to="orders.serviceorder",
                    ),
                ),
            ],
            options={
                "verbose_name": "Событие бронирования",
                "verbose_name_plural": "События бронирований",
                "ordering": ["created_at", "id"],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(("booking__isnull", False), ("service_order__isnull", False), _connector="OR"),
                        name="booking_event_has_subject",
                    )
                ],
            },
        ),
    ]

import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Notification",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                (
                    "type",
                    models.CharField(
                        choices=[
                            ("job_assigned", "Назначена работа"),
                            ("job_accepted", "Работа принята"),
                            ("job_rejected", "Работа отклонена"),
                            ("task_completed", "Задача выполнена"),
                            ("booking_confirmed", "Бронирование подтверждено"),
                            ("payment_received", "Платёж получен"),
                            ("message_received", "Новое сообщение"),
                            ("booking", "Бронирование"),
                            ("payment", "Платёж"),
                            ("order", "Заказ"),
                            ("message", "Сообщение"),
                            ("review", "Отзыв"),
                            ("approval", "Одобрение"),
                            ("rejection", "Отказ"),
                            ("cancellation", "Отмена"),
                        ],
                        max_length=32,
                    ),
                ),
                ("title", models.CharField(max_length=255)),
                ("message", models.TextField()),
                ("related_id", models.CharField(blank=True, max_length=64)),
                ("is_read", models.BooleanField(default=False)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "user",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="notifications",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at", "-id"],
                "indexes": [models.Index(fields=["user", "is_read"], name="notification_user_read_idx")],
            },
        ),
    ]

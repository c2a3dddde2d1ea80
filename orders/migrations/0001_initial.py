import uuid
from decimal import Decimal

import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("menu", "0001_initial"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Order",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("restaurant_name", models.CharField(max_length=150)),
                ("items", models.JSONField(default=list, help_text="[{id, name, price, qty}] at time of ordering")),
                ("address", models.JSONField(default=dict, help_text="Delivery address snapshot")),
                ("sub_total", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=12)),
                ("platform_fee", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=12)),
                ("delivery_fee", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=12)),
                ("gst", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=12)),
                ("discount", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=12)),
                ("total", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=12)),
                ("coupon_code", models.CharField(blank=True, default="", max_length=64)),
                (
                    "payment_method",
                    models.CharField(
                        choices=[("COD", "Cash on delivery"), ("UPI", "UPI"), ("CARD", "Card")],
                        default="COD",
                        max_length=8,
                    ),
                ),
                (
                    "payment_status",
                    models.CharField(
                        choices=[("pending", "Pending"), ("paid", "Paid"), ("failed", "Failed")],
                        default="pending",
                        max_length=16,
                    ),
                ),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("placed", "Placed"),
                            ("pending_payment", "Pending payment"),
                            ("accepted", "Accepted"),
                            ("preparing", "Preparing"),
                            ("on_the_way", "On the way"),
                            ("delivered", "Delivered"),
                            ("cancelled", "Cancelled"),
                        ],
                        default="placed",
                        max_length=24,
                    ),
                ),
                ("reference_id", models.CharField(blank=True, db_index=True, default="", max_length=64)),
                ("payment_link_id", models.CharField(blank=True, default="", max_length=64)),
                ("payment_link_url", models.URLField(blank=True, default="", max_length=500)),
                ("payment_raw_status", models.CharField(blank=True, default="", max_length=32)),
                ("created_at", models.DateTimeField(db_index=True, default=django.utils.timezone.now)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "restaurant",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="orders",
                        to="menu.restaurant",
                    ),
                ),
                (
                    "user",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="orders",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at", "-id"],
                "indexes": [
                    models.Index(fields=["user", "restaurant", "payment_method", "status"], name="order_pending_lookup_idx"),
                    models.Index(fields=["user", "payment_status", "created_at"], name="order_history_idx"),
                ],
                "constraints": [
                    models.CheckConstraint(condition=models.Q(total__gte=0), name="order_total_non_negative"),
                ],
            },
        ),
    ]

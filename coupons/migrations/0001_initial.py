from decimal import Decimal

import django.core.validators
import django.db.models.deletion
import django.utils.timezone
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("menu", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="Coupon",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("code", models.CharField(help_text="Code customers type in (case-insensitive)", max_length=64)),
                ("title", models.CharField(blank=True, help_text="Public headline shown in the promo strip", max_length=128)),
                ("type", models.CharField(choices=[("fixed", "Fixed Amount"), ("percentage", "Percentage"), ("freeship", "Free Delivery")], default="fixed", max_length=20)),
                ("value", models.DecimalField(decimal_places=2, default=Decimal("0.00"), help_text="Amount off (fixed) or percent off (percentage); ignored for free delivery", max_digits=10)),
                ("min_subtotal", models.DecimalField(decimal_places=2, default=Decimal("0.00"), help_text="Minimum sub-total required to use this coupon", max_digits=10, validators=[django.core.validators.MinValueValidator(Decimal("0.00"))])),
                ("active_until", models.DateTimeField(blank=True, help_text="When this coupon expires (empty means no expiry)", null=True)),
                ("is_active", models.BooleanField(default=True)),
                ("created_at", models.DateTimeField(default=django.utils.timezone.now, editable=False)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("restaurant", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="coupons", to="menu.restaurant")),
            ],
            options={
                "ordering": ["-created_at"],
                "constraints": [models.UniqueConstraint(fields=("restaurant", "code"), name="uniq_coupon_code_per_restaurant")],
            },
        ),
    ]

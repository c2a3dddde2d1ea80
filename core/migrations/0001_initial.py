from decimal import Decimal

import django.core.validators
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="PlatformConfig",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("platform_fee", models.DecimalField(decimal_places=2, default=Decimal("5.00"), help_text="Flat fee added to every order", max_digits=10, validators=[django.core.validators.MinValueValidator(Decimal("0.00"))])),
                ("delivery_fee", models.DecimalField(decimal_places=2, default=Decimal("29.00"), help_text="Delivery fee charged below the free-delivery threshold", max_digits=10, validators=[django.core.validators.MinValueValidator(Decimal("0.00"))])),
                ("free_delivery_threshold", models.DecimalField(decimal_places=2, default=Decimal("399.00"), help_text="Sub-total at or above which delivery is free", max_digits=10, validators=[django.core.validators.MinValueValidator(Decimal("0.00"))])),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={"verbose_name": "platform config", "verbose_name_plural": "platform config"},
        ),
    ]

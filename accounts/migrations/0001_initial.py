import uuid

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
            name="Address",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("full_name", models.CharField(max_length=120)),
                ("phone", models.CharField(help_text="10-digit mobile number", max_length=10)),
                ("line1", models.CharField(max_length=255)),
                ("landmark", models.CharField(blank=True, default="", max_length=255)),
                ("pincode", models.CharField(max_length=12)),
                ("city", models.CharField(max_length=80)),
                ("state", models.CharField(max_length=80)),
                ("country", models.CharField(max_length=80)),
                ("is_default", models.BooleanField(default=False)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("user", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="addresses", to=settings.AUTH_USER_MODEL)),
            ],
            options={
                "ordering": ["created_at"],
                "verbose_name_plural": "addresses",
                "indexes": [models.Index(fields=["user", "is_default"], name="address_user_default_idx")],
            },
        ),
    ]

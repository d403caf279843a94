from decimal import Decimal

import django.core.validators
import uuid6
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Product",
            fields=[
                (
                    "id",
                    models.UUIDField(
                        default=uuid6.uuid7,
                        editable=False,
                        primary_key=True,
                        serialize=False,
                    ),
                ),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("title", models.CharField(max_length=255)),
                ("author", models.CharField(blank=True, default="", max_length=255)),
                ("language", models.CharField(blank=True, default="", max_length=64)),
                (
                    "price",
                    models.DecimalField(
                        decimal_places=2,
                        default=Decimal("0.00"),
                        max_digits=10,
                        validators=[
                            django.core.validators.MinValueValidator(Decimal("0.00"))
                        ],
                    ),
                ),
                ("is_available", models.BooleanField(default=True)),
            ],
            options={
                "db_table": "catalog_products",
                "ordering": ["title"],
                "indexes": [
                    models.Index(
                        fields=["is_available"], name="catalog_available_idx"
                    )
                ],
                "constraints": [
                    models.CheckConstraint(
                        check=models.Q(("price__gte", 0)),
                        name="catalog_price_non_negative",
                    )
                ],
            },
        ),
    ]

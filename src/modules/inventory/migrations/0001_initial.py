import django.core.validators
import django.db.models.deletion
import uuid6
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("catalog", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="StockReservation",
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
                ("user_id", models.CharField(db_index=True, max_length=255)),
                (
                    "status",
                    models.CharField(
                        choices=[("HELD", "Held"), ("RELEASED", "Released")],
                        default="HELD",
                        max_length=20,
                    ),
                ),
                (
                    "released_at",
                    models.DateTimeField(blank=True, default=None, null=True),
                ),
                (
                    "release_reason",
                    models.CharField(blank=True, default="", max_length=255),
                ),
            ],
            options={
                "db_table": "stock_reservations",
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["status"], name="reservations_status_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="ReservationLine",
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
                ("size", models.CharField(blank=True, default="", max_length=32)),
                (
                    "quantity",
                    models.PositiveIntegerField(
                        validators=[django.core.validators.MinValueValidator(1)]
                    ),
                ),
                (
                    "product",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="reservation_lines",
                        to="catalog.product",
                    ),
                ),
                (
                    "reservation",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="lines",
                        to="inventory.stockreservation",
                    ),
                ),
            ],
            options={
                "db_table": "stock_reservation_lines",
                "ordering": ["product_id", "size"],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(("quantity__gte", 1)),
                        name="reservation_lines_quantity_positive",
                    ),
                ],
            },
        ),
    ]

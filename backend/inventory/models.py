from decimal import Decimal

from django.core.validators import MinValueValidator
from django.db import models
from django.db.models import F, Q


class InventoryGroup(models.Model):
    """Inventory group (Kelompok Persediaan)."""

    code = models.CharField(max_length=20, unique=True)
    name = models.CharField(max_length=255)
    description = models.TextField(blank=True, null=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["code"]

    def __str__(self):
        return f"{self.code} - {self.name}"


class InventoryItemQuerySet(models.QuerySet):
    def low_stock(self):
        """Active items at or below their minimum stock level."""
        return self.filter(is_active=True, stock__lte=F("min_stock"))


class InventoryItem(models.Model):
    """Stock item (Data Persediaan)."""

    code = models.CharField(max_length=20, unique=True)
    name = models.CharField(max_length=255)
    group = models.ForeignKey(
        InventoryGroup,
        on_delete=models.PROTECT,
        related_name="items",
    )
    unit = models.CharField(max_length=20)
    purchase_price = models.DecimalField(
        max_digits=15,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0.01"))],
    )
    sale_price = models.DecimalField(
        max_digits=15,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0.01"))],
    )
    stock = models.PositiveIntegerField(default=0)
    min_stock = models.PositiveIntegerField(default=0)
    is_active = models.BooleanField(default=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = InventoryItemQuerySet.as_manager()

    class Meta:
        ordering = ["code"]
        constraints = [
            models.CheckConstraint(
                condition=Q(purchase_price__gt=0) & Q(sale_price__gt=0),
                name="chk_item_prices_positive",
            ),
        ]

    def __str__(self):
        return f"{self.code} - {self.name}"

    @property
    def is_low_stock(self) -> bool:
        return self.stock <= self.min_stock

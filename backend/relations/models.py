from django.db import models


class Relation(models.Model):
    """
    Business relation (Data Relasi): customer, supplier, employee or other.

    Transactions may reference a relation; receivable and payable
    reports are grouped by it.
    """

    class RelationType(models.TextChoices):
        PELANGGAN = "PELANGGAN", "Customer"
        PEMASOK = "PEMASOK", "Supplier"
        KARYAWAN = "KARYAWAN", "Employee"
        LAINNYA = "LAINNYA", "Other"

    code = models.CharField(max_length=20, unique=True)
    name = models.CharField(max_length=255)
    relation_type = models.CharField(
        max_length=10,
        choices=RelationType.choices,
    )
    address = models.TextField(blank=True, null=True)
    phone = models.CharField(max_length=50, blank=True, null=True)
    email = models.EmailField(blank=True, null=True)
    tax_id = models.CharField(max_length=30, blank=True, null=True, help_text="NPWP")
    contact_person = models.CharField(max_length=150, blank=True, null=True)
    is_active = models.BooleanField(default=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["code"]
        indexes = [
            models.Index(fields=["relation_type", "is_active"], name="relation_type_active_idx"),
        ]

    def __str__(self):
        return f"{self.code} - {self.name}"

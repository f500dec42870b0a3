from decimal import Decimal

import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("relations", "0001_initial"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Account",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("code", models.CharField(max_length=20, unique=True)),
                ("name", models.CharField(max_length=255)),
                ("account_type", models.CharField(choices=[("ASET", "Aset"), ("KEWAJIBAN", "Kewajiban"), ("EKUITAS", "Ekuitas"), ("PENDAPATAN", "Pendapatan"), ("BEBAN", "Beban")], max_length=12)),
                ("subtype", models.CharField(choices=[("UMUM", "Umum"), ("KAS", "Kas & Bank"), ("PIUTANG", "Piutang"), ("HUTANG", "Hutang")], default="UMUM", max_length=10)),
                ("normal_balance", models.CharField(choices=[("DEBIT", "Debit"), ("CREDIT", "Credit")], editable=False, max_length=10)),
                ("opening_balance", models.DecimalField(decimal_places=2, default=Decimal("0.00"), help_text="Saldo awal, signed in the account's normal balance direction", max_digits=15)),
                ("is_active", models.BooleanField(default=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("parent", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name="children", to="accounting.account")),
            ],
            options={
                "ordering": ["code"],
                "indexes": [
                    models.Index(fields=["account_type", "is_active"], name="account_type_active_idx"),
                    models.Index(fields=["parent"], name="account_parent_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="TransactionHeader",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("number", models.CharField(help_text="Nomor transaksi, e.g. JURNAL_UMUM-202401-001", max_length=50, unique=True)),
                ("date", models.DateField()),
                ("transaction_type", models.CharField(choices=[("PENERIMAAN_DANA", "Penerimaan Dana"), ("PENGELUARAN_DANA", "Pengeluaran Dana"), ("PEMINDAH_BUKUAN", "Pemindah Bukuan"), ("JURNAL_UMUM", "Jurnal Umum"), ("JURNAL_KOREKSI", "Jurnal Koreksi")], max_length=20)),
                ("description", models.TextField(blank=True, default="")),
                ("total_debit", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=15)),
                ("total_credit", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=15)),
                ("is_posted", models.BooleanField(default=False)),
                ("posted_at", models.DateTimeField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("posted_by", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="posted_transactions", to=settings.AUTH_USER_MODEL)),
                ("relation", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name="transactions", to="relations.relation")),
                ("user", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="transactions", to=settings.AUTH_USER_MODEL)),
            ],
            options={
                "ordering": ["-date", "-id"],
                "indexes": [
                    models.Index(fields=["date", "id"], name="txn_header_date_idx"),
                    models.Index(fields=["transaction_type", "date"], name="txn_header_type_date_idx"),
                    models.Index(fields=["is_posted"], name="txn_header_posted_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="TransactionDetail",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("description", models.CharField(blank=True, default="", max_length=255)),
                ("debit", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=15)),
                ("credit", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=15)),
                ("line_no", models.PositiveIntegerField(default=1, help_text="Urutan; details are listed in this order")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("account", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="transaction_details", to="accounting.account")),
                ("header", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="details", to="accounting.transactionheader")),
            ],
            options={
                "ordering": ["header", "line_no", "id"],
                "indexes": [
                    models.Index(fields=["account", "header"], name="txn_detail_account_idx"),
                ],
                "constraints": [
                    models.CheckConstraint(condition=models.Q(("debit__gt", 0), ("credit__gt", 0), _negated=True), name="chk_detail_not_both_debit_credit"),
                    models.CheckConstraint(condition=models.Q(("debit__exact", 0), ("credit__exact", 0), _negated=True), name="chk_detail_not_both_zero"),
                    models.CheckConstraint(condition=models.Q(("debit__gte", 0), ("credit__gte", 0)), name="chk_detail_non_negative"),
                ],
            },
        ),
    ]

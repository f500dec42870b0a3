from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Relation",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("code", models.CharField(max_length=20, unique=True)),
                ("name", models.CharField(max_length=255)),
                ("relation_type", models.CharField(choices=[("PELANGGAN", "Customer"), ("PEMASOK", "Supplier"), ("KARYAWAN", "Employee"), ("LAINNYA", "Other")], max_length=10)),
                ("address", models.TextField(blank=True, null=True)),
                ("phone", models.CharField(blank=True, max_length=50, null=True)),
                ("email", models.EmailField(blank=True, max_length=254, null=True)),
                ("tax_id", models.CharField(blank=True, help_text="NPWP", max_length=30, null=True)),
                ("contact_person", models.CharField(blank=True, max_length=150, null=True)),
                ("is_active", models.BooleanField(default=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "ordering": ["code"],
                "indexes": [
                    models.Index(fields=["relation_type", "is_active"], name="relation_type_active_idx"),
                ],
            },
        ),
    ]

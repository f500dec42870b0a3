# accounting/models.py
"""
Accounting models.

Models:
- Account: Chart of Accounts (hierarchical)
- TransactionHeader: Journal transaction header
- TransactionDetail: Debit/credit lines of a transaction
- TransactionSequence: Counters for generated transaction numbers

Mutations go through the command layer (accounting/commands.py), which
applies the workflow policies (accounting/policies.py). Models enforce
only true invariants: field validity, database constraints, and the
normal balance derived from the account type.
"""

from decimal import Decimal

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models
from django.db.models import Q, Sum

MONEY_Q = Decimal("0.01")
ZERO = Decimal("0.00")


class Account(models.Model):
    """
    Chart of Accounts entry.

    Supports:
    - Hierarchical structure (parent/child)
    - Account types with normal balance rules
    - Subtypes that mark cash, receivable and payable accounts for reports
    - Opening balance carried into every report
    """

    class AccountType(models.TextChoices):
        ASET = "ASET", "Aset"
        KEWAJIBAN = "KEWAJIBAN", "Kewajiban"
        EKUITAS = "EKUITAS", "Ekuitas"
        PENDAPATAN = "PENDAPATAN", "Pendapatan"
        BEBAN = "BEBAN", "Beban"

    class Subtype(models.TextChoices):
        UMUM = "UMUM", "Umum"
        KAS = "KAS", "Kas & Bank"
        PIUTANG = "PIUTANG", "Piutang"
        HUTANG = "HUTANG", "Hutang"

    class NormalBalance(models.TextChoices):
        DEBIT = "DEBIT", "Debit"
        CREDIT = "CREDIT", "Credit"

    # Map account types to their normal balance
    NORMAL_BALANCE_MAP = {
        AccountType.ASET: NormalBalance.DEBIT,
        AccountType.BEBAN: NormalBalance.DEBIT,
        AccountType.KEWAJIBAN: NormalBalance.CREDIT,
        AccountType.EKUITAS: NormalBalance.CREDIT,
        AccountType.PENDAPATAN: NormalBalance.CREDIT,
    }

    # Report ordering of account types
    TYPE_ORDER = [
        AccountType.ASET,
        AccountType.KEWAJIBAN,
        AccountType.EKUITAS,
        AccountType.PENDAPATAN,
        AccountType.BEBAN,
    ]

    code = models.CharField(max_length=20, unique=True)
    name = models.CharField(max_length=255)

    account_type = models.CharField(
        max_length=12,
        choices=AccountType.choices,
    )

    subtype = models.CharField(
        max_length=10,
        choices=Subtype.choices,
        default=Subtype.UMUM,
    )

    normal_balance = models.CharField(
        max_length=10,
        choices=NormalBalance.choices,
        editable=False,
    )

    # Hierarchy
    parent = models.ForeignKey(
        "self",
        null=True,
        blank=True,
        on_delete=models.PROTECT,
        related_name="children",
    )

    opening_balance = models.DecimalField(
        max_digits=15,
        decimal_places=2,
        default=ZERO,
        help_text="Saldo awal, signed in the account's normal balance direction",
    )

    is_active = models.BooleanField(default=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["code"]
        indexes = [
            models.Index(fields=["account_type", "is_active"], name="account_type_active_idx"),
            models.Index(fields=["parent"], name="account_parent_idx"),
        ]

    def __str__(self):
        return f"{self.code} - {self.name}"

    def clean(self):
        if self.parent_id and self.pk and self.parent_id == self.pk:
            raise ValidationError("Account cannot be its own parent.")

        subtype_types = {
            self.Subtype.KAS: self.AccountType.ASET,
            self.Subtype.PIUTANG: self.AccountType.ASET,
            self.Subtype.HUTANG: self.AccountType.KEWAJIBAN,
        }
        expected = subtype_types.get(self.subtype)
        if expected and self.account_type != expected:
            raise ValidationError(
                f"Subtype {self.subtype} requires account type {expected}."
            )

    def save(self, *args, **kwargs):
        # Auto-set normal balance from account type
        self.normal_balance = self.NORMAL_BALANCE_MAP.get(
            self.account_type,
            self.NormalBalance.DEBIT,
        )
        self.full_clean()
        super().save(*args, **kwargs)

    @property
    def is_debit_normal(self) -> bool:
        return self.NORMAL_BALANCE_MAP.get(self.account_type) == self.NormalBalance.DEBIT

    @property
    def is_postable(self) -> bool:
        """Returns True if this account can receive transaction details."""
        return self.is_active

    def signed_movement(self, debit: Decimal, credit: Decimal) -> Decimal:
        """Net movement in the account's normal balance direction."""
        if self.is_debit_normal:
            return debit - credit
        return credit - debit

    def get_ancestors(self) -> list["Account"]:
        """Returns list of ancestor accounts from root to immediate parent."""
        ancestors = []
        current = self.parent
        while current:
            ancestors.insert(0, current)
            current = current.parent
        return ancestors


class TransactionHeader(models.Model):
    """
    Journal transaction header.

    Workflow: unposted -> posted (-> unposted again via unpost)
    - Unposted: header and details are freely editable, may be unbalanced
    - Posted: balanced and immutable; counted by every financial report

    total_debit / total_credit always mirror the sum of the details.
    """

    class TransactionType(models.TextChoices):
        PENERIMAAN_DANA = "PENERIMAAN_DANA", "Penerimaan Dana"
        PENGELUARAN_DANA = "PENGELUARAN_DANA", "Pengeluaran Dana"
        PEMINDAH_BUKUAN = "PEMINDAH_BUKUAN", "Pemindah Bukuan"
        JURNAL_UMUM = "JURNAL_UMUM", "Jurnal Umum"
        JURNAL_KOREKSI = "JURNAL_KOREKSI", "Jurnal Koreksi"

    number = models.CharField(
        max_length=50,
        unique=True,
        help_text="Nomor transaksi, e.g. JURNAL_UMUM-202401-001",
    )

    date = models.DateField()

    transaction_type = models.CharField(
        max_length=20,
        choices=TransactionType.choices,
    )

    description = models.TextField(blank=True, default="")

    total_debit = models.DecimalField(max_digits=15, decimal_places=2, default=ZERO)
    total_credit = models.DecimalField(max_digits=15, decimal_places=2, default=ZERO)

    relation = models.ForeignKey(
        "relations.Relation",
        null=True,
        blank=True,
        on_delete=models.PROTECT,
        related_name="transactions",
    )

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="transactions",
    )

    # Posting metadata
    is_posted = models.BooleanField(default=False)
    posted_at = models.DateTimeField(null=True, blank=True)
    posted_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="posted_transactions",
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-date", "-id"]
        indexes = [
            models.Index(fields=["date", "id"], name="txn_header_date_idx"),
            models.Index(fields=["transaction_type", "date"], name="txn_header_type_date_idx"),
            models.Index(fields=["is_posted"], name="txn_header_posted_idx"),
        ]

    def __str__(self):
        state = "POSTED" if self.is_posted else "UNPOSTED"
        return f"{self.number} ({self.date}) {state}"

    @property
    def is_balanced(self) -> bool:
        return self.total_debit.quantize(MONEY_Q) == self.total_credit.quantize(MONEY_Q)

    def detail_totals(self) -> tuple[Decimal, Decimal]:
        """Sum the detail lines straight from the database."""
        totals = self.details.aggregate(
            debit_total=Sum("debit"),
            credit_total=Sum("credit"),
        )
        debit_total = (totals["debit_total"] or ZERO).quantize(MONEY_Q)
        credit_total = (totals["credit_total"] or ZERO).quantize(MONEY_Q)
        return debit_total, credit_total


class TransactionDetail(models.Model):
    """
    Individual line within a transaction.
    Each line affects one account with either a debit or credit amount.
    """

    header = models.ForeignKey(
        TransactionHeader,
        on_delete=models.CASCADE,
        related_name="details",
    )

    account = models.ForeignKey(
        Account,
        on_delete=models.PROTECT,
        related_name="transaction_details",
    )

    description = models.CharField(max_length=255, blank=True, default="")

    debit = models.DecimalField(max_digits=15, decimal_places=2, default=ZERO)
    credit = models.DecimalField(max_digits=15, decimal_places=2, default=ZERO)

    line_no = models.PositiveIntegerField(
        default=1,
        help_text="Urutan; details are listed in this order",
    )

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["header", "line_no", "id"]
        constraints = [
            models.CheckConstraint(
                condition=~(Q(debit__gt=0) & Q(credit__gt=0)),
                name="chk_detail_not_both_debit_credit",
            ),
            models.CheckConstraint(
                condition=~(Q(debit__exact=0) & Q(credit__exact=0)),
                name="chk_detail_not_both_zero",
            ),
            models.CheckConstraint(
                condition=Q(debit__gte=0) & Q(credit__gte=0),
                name="chk_detail_non_negative",
            ),
        ]
        indexes = [
            models.Index(fields=["account", "header"], name="txn_detail_account_idx"),
        ]

    def __str__(self):
        return f"{self.header.number} L{self.line_no}"

    @property
    def amount(self) -> Decimal:
        """Returns the non-zero amount (debit or credit)."""
        return self.debit if self.debit > 0 else self.credit

    @property
    def is_debit(self) -> bool:
        return self.debit > 0


class TransactionSequence(models.Model):
    """
    Counter behind generated transaction numbers.

    One row per number prefix ({TYPE}-{YYYYMM}-). Commands lock the row
    with select_for_update() so concurrent creates never draw the same
    value.
    """

    prefix = models.CharField(max_length=50, unique=True)
    next_value = models.BigIntegerField(default=1)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["prefix"]

    def __str__(self):
        return f"{self.prefix}{self.next_value:03d}"

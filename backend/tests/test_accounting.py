# tests/test_accounting.py
"""
Tests for the accounting module.

Tests cover:
- Chart of accounts commands (hierarchy, deletion rules)
- Transaction number generation
- Complete transaction creation and validation
- Detail edits keeping header totals in step
- Posting rules and posted-transaction immutability
- Permission checks per role
"""

from datetime import date
from decimal import Decimal

import pytest
from django.core.exceptions import PermissionDenied
from django.db import IntegrityError, transaction

from accounting.commands import (
    add_transaction_detail,
    create_account,
    create_transaction,
    create_transaction_header,
    delete_account,
    delete_transaction,
    delete_transaction_detail,
    generate_transaction_number,
    post_transaction,
    unpost_transaction,
    update_account,
    update_transaction_detail,
    update_transaction_header,
    validate_transaction_balance,
)
from accounting.models import Account, TransactionDetail, TransactionHeader, TransactionSequence


# =============================================================================
# Account Model
# =============================================================================

@pytest.mark.django_db
class TestAccountModel:

    @pytest.mark.parametrize("account_type,expected", [
        ("ASET", "DEBIT"),
        ("BEBAN", "DEBIT"),
        ("KEWAJIBAN", "CREDIT"),
        ("EKUITAS", "CREDIT"),
        ("PENDAPATAN", "CREDIT"),
    ])
    def test_normal_balance_follows_type(self, account_type, expected):
        account = Account.objects.create(code="X1", name="X", account_type=account_type)
        assert account.normal_balance == expected

    def test_signed_movement(self, cash_account, revenue_account):
        assert cash_account.signed_movement(Decimal("100"), Decimal("30")) == Decimal("70")
        assert revenue_account.signed_movement(Decimal("100"), Decimal("30")) == Decimal("-70")

    def test_ancestors(self, db):
        root = Account.objects.create(code="1", name="Aset", account_type="ASET")
        child = Account.objects.create(code="11", name="Aset Lancar", account_type="ASET", parent=root)
        leaf = Account.objects.create(code="111", name="Kas", account_type="ASET", parent=child)

        assert leaf.get_ancestors() == [root, child]
        assert child.get_ancestors() == [root]
        assert root.get_ancestors() == []


# =============================================================================
# Account Commands
# =============================================================================

@pytest.mark.django_db
class TestAccountCommands:

    def test_create_account(self, admin_actor):
        result = create_account(admin_actor, code="1101", name="Kas", account_type="ASET", subtype="KAS")
        assert result.success
        assert result.data.normal_balance == Account.NormalBalance.DEBIT

    def test_create_duplicate_code_fails(self, admin_actor, cash_account):
        result = create_account(admin_actor, code=cash_account.code, name="Kas 2", account_type="ASET")
        assert not result.success
        assert "already exists" in result.error

    def test_create_with_missing_parent_fails(self, admin_actor):
        result = create_account(admin_actor, code="9", name="X", account_type="ASET", parent_id=99999)
        assert not result.success
        assert "does not exist" in result.error

    def test_subtype_must_match_type(self, admin_actor):
        result = create_account(admin_actor, code="2", name="X", account_type="BEBAN", subtype="KAS")
        assert not result.success
        assert "requires account type ASET" in result.error

    def test_viewer_cannot_create_account(self, viewer_actor):
        with pytest.raises(PermissionDenied):
            create_account(viewer_actor, code="1", name="X", account_type="ASET")

    def test_account_cannot_be_own_parent(self, admin_actor, cash_account):
        result = update_account(admin_actor, cash_account.id, parent_id=cash_account.id)
        assert not result.success
        assert "own parent" in result.error

    def test_parent_cycle_rejected(self, admin_actor):
        root = create_account(admin_actor, code="1", name="Aset", account_type="ASET").data
        child = create_account(admin_actor, code="11", name="Lancar", account_type="ASET", parent_id=root.id).data

        result = update_account(admin_actor, root.id, parent_id=child.id)
        assert not result.success
        assert "descendant" in result.error

    def test_detach_parent(self, admin_actor):
        root = create_account(admin_actor, code="1", name="Aset", account_type="ASET").data
        child = create_account(admin_actor, code="11", name="Lancar", account_type="ASET", parent_id=root.id).data

        result = update_account(admin_actor, child.id, parent_id=None)
        assert result.success
        child.refresh_from_db()
        assert child.parent_id is None

    def test_type_locked_once_used(self, admin_actor, simple_sale, cash_account):
        result = update_account(admin_actor, cash_account.id, account_type="BEBAN", subtype="UMUM")
        assert not result.success
        assert "Cannot change type" in result.error

    def test_delete_account_with_children_rejected(self, admin_actor):
        root = create_account(admin_actor, code="1", name="Aset", account_type="ASET").data
        create_account(admin_actor, code="11", name="Lancar", account_type="ASET", parent_id=root.id)

        result = delete_account(admin_actor, root.id)
        assert not result.success
        assert result.error == "Cannot delete account that has child accounts."

    def test_delete_account_with_transactions_rejected(self, admin_actor, simple_sale, cash_account):
        result = delete_account(admin_actor, cash_account.id)
        assert not result.success
        assert result.error == "Cannot delete account that has transaction records."

    def test_delete_unused_account(self, admin_actor, expense_account):
        result = delete_account(admin_actor, expense_account.id)
        assert result.success
        assert not Account.objects.filter(pk=expense_account.id).exists()


# =============================================================================
# Transaction Numbers
# =============================================================================

@pytest.mark.django_db
class TestTransactionNumber:

    def test_first_number_of_month(self):
        assert generate_transaction_number("JURNAL_UMUM", date(2024, 3, 9)) == "JURNAL_UMUM-202403-001"

    def test_sequence_increments_per_type_and_month(self, make_transaction, line, cash_account, revenue_account):
        details = [line(cash_account, debit="10"), line(revenue_account, credit="10")]
        first = make_transaction(date(2024, 3, 1), details, post=False)
        second = make_transaction(date(2024, 3, 20), details, post=False)
        other_type = make_transaction(date(2024, 3, 20), details, transaction_type="PENERIMAAN_DANA", post=False)
        next_month = make_transaction(date(2024, 4, 2), details, post=False)

        assert first.number == "JURNAL_UMUM-202403-001"
        assert second.number == "JURNAL_UMUM-202403-002"
        assert other_type.number == "PENERIMAAN_DANA-202403-001"
        assert next_month.number == "JURNAL_UMUM-202404-001"

    def test_follows_highest_suffix(self, make_transaction, line, cash_account, revenue_account):
        details = [line(cash_account, debit="10"), line(revenue_account, credit="10")]
        make_transaction(date(2024, 5, 1), details, post=False, number="JURNAL_UMUM-202405-007")

        assert generate_transaction_number("JURNAL_UMUM", date(2024, 5, 30)) == "JURNAL_UMUM-202405-008"

    def test_each_reservation_advances_the_counter(self):
        first = generate_transaction_number("JURNAL_UMUM", date(2024, 6, 1))
        second = generate_transaction_number("JURNAL_UMUM", date(2024, 6, 2))

        assert (first, second) == ("JURNAL_UMUM-202406-001", "JURNAL_UMUM-202406-002")
        assert TransactionSequence.objects.get(prefix="JURNAL_UMUM-202406-").next_value == 3

    def test_preview_does_not_reserve(self):
        on_date = date(2024, 6, 1)
        assert generate_transaction_number("JURNAL_UMUM", on_date, reserve=False) == "JURNAL_UMUM-202406-001"
        assert generate_transaction_number("JURNAL_UMUM", on_date, reserve=False) == "JURNAL_UMUM-202406-001"
        assert not TransactionSequence.objects.exists()

        assert generate_transaction_number("JURNAL_UMUM", on_date) == "JURNAL_UMUM-202406-001"
        assert generate_transaction_number("JURNAL_UMUM", on_date, reserve=False) == "JURNAL_UMUM-202406-002"

    def test_number_of_deleted_transaction_not_reused(
        self, admin_actor, make_transaction, line, cash_account, revenue_account,
    ):
        details = [line(cash_account, debit="10"), line(revenue_account, credit="10")]
        first = make_transaction(date(2024, 7, 1), details, post=False)
        assert delete_transaction(admin_actor, first.id).success

        second = make_transaction(date(2024, 7, 2), details, post=False)
        assert first.number == "JURNAL_UMUM-202407-001"
        assert second.number == "JURNAL_UMUM-202407-002"

    def test_prefix_match_ignores_other_types_sharing_a_stem(
        self, make_transaction, line, cash_account, revenue_account,
    ):
        details = [line(cash_account, debit="10"), line(revenue_account, credit="10")]
        make_transaction(date(2024, 8, 1), details, post=False, number="JURNAL_UMUM-202408-050")

        assert generate_transaction_number("PENERIMAAN_DANA", date(2024, 8, 1)) == "PENERIMAAN_DANA-202408-001"


# =============================================================================
# Transaction Creation
# =============================================================================

@pytest.mark.django_db
class TestCreateTransaction:

    def test_totals_computed_from_details(self, admin_actor, line, cash_account, revenue_account):
        result = create_transaction(
            admin_actor,
            date=date(2024, 1, 10),
            transaction_type="PENERIMAAN_DANA",
            details=[
                line(cash_account, debit="150.50"),
                line(revenue_account, credit="100.00"),
                line(revenue_account, credit="50.50"),
            ],
            description="Penjualan",
        )
        assert result.success, result.error
        header = result.data
        assert header.total_debit == Decimal("150.50")
        assert header.total_credit == Decimal("150.50")
        assert header.is_posted is False
        assert header.user == admin_actor.user
        assert list(header.details.values_list("line_no", flat=True)) == [1, 2, 3]

    def test_unbalanced_rejected(self, admin_actor, line, cash_account, revenue_account):
        result = create_transaction(
            admin_actor,
            date=date(2024, 1, 10),
            transaction_type="JURNAL_UMUM",
            details=[line(cash_account, debit="100"), line(revenue_account, credit="99.99")],
        )
        assert not result.success
        assert "Total debit must equal total kredit" in result.error
        assert TransactionHeader.objects.count() == 0

    def test_unknown_account_rejected(self, admin_actor, line, cash_account):
        result = create_transaction(
            admin_actor,
            date=date(2024, 1, 10),
            transaction_type="JURNAL_UMUM",
            details=[line(cash_account, debit="10"), {"account_id": 424242, "debit": 0, "credit": Decimal("10")}],
        )
        assert not result.success
        assert result.error == "Account with ID 424242 not found."

    def test_unknown_user_rejected(self, admin_actor, line, cash_account, revenue_account):
        result = create_transaction(
            admin_actor,
            date=date(2024, 1, 10),
            transaction_type="JURNAL_UMUM",
            details=[line(cash_account, debit="10"), line(revenue_account, credit="10")],
            user_id=999999,
        )
        assert not result.success
        assert result.error == "User not found."

    def test_unknown_relation_rejected(self, admin_actor, line, cash_account, revenue_account):
        result = create_transaction(
            admin_actor,
            date=date(2024, 1, 10),
            transaction_type="JURNAL_UMUM",
            details=[line(cash_account, debit="10"), line(revenue_account, credit="10")],
            relation_id=999999,
        )
        assert not result.success
        assert result.error == "Relation not found."

    def test_line_with_debit_and_credit_rejected(self, admin_actor, line, cash_account, revenue_account):
        result = create_transaction(
            admin_actor,
            date=date(2024, 1, 10),
            transaction_type="JURNAL_UMUM",
            details=[line(cash_account, debit="10", credit="10"), line(revenue_account, credit="10")],
        )
        assert not result.success
        assert result.error.startswith("Line 1:")

    def test_duplicate_number_rejected(self, admin_actor, line, cash_account, revenue_account, simple_sale):
        result = create_transaction(
            admin_actor,
            date=date(2024, 1, 10),
            transaction_type="JURNAL_UMUM",
            details=[line(cash_account, debit="10"), line(revenue_account, credit="10")],
            number=simple_sale.number,
        )
        assert not result.success
        assert "already exists" in result.error

    def test_viewer_cannot_create(self, viewer_actor, line, cash_account, revenue_account):
        with pytest.raises(PermissionDenied):
            create_transaction(
                viewer_actor,
                date=date(2024, 1, 10),
                transaction_type="JURNAL_UMUM",
                details=[line(cash_account, debit="10"), line(revenue_account, credit="10")],
            )


# =============================================================================
# Header / Detail Editing
# =============================================================================

@pytest.mark.django_db
class TestDetailEditing:

    def test_header_starts_with_zero_totals(self, operator_actor):
        result = create_transaction_header(operator_actor, date=date(2024, 2, 1), transaction_type="JURNAL_UMUM")
        assert result.success
        assert result.data.total_debit == Decimal("0.00")
        assert result.data.details.count() == 0

    def test_totals_follow_detail_changes(self, operator_actor, cash_account, revenue_account):
        header = create_transaction_header(
            operator_actor, date=date(2024, 2, 1), transaction_type="JURNAL_UMUM",
        ).data

        first = add_transaction_detail(operator_actor, header.id, cash_account.id, debit=Decimal("200")).data
        second = add_transaction_detail(operator_actor, header.id, revenue_account.id, credit=Decimal("150")).data
        header.refresh_from_db()
        assert (header.total_debit, header.total_credit) == (Decimal("200.00"), Decimal("150.00"))
        assert second.line_no == first.line_no + 1

        update_transaction_detail(operator_actor, second.id, credit=Decimal("200"))
        header.refresh_from_db()
        assert header.total_credit == Decimal("200.00")
        assert header.is_balanced

        delete_transaction_detail(operator_actor, first.id)
        header.refresh_from_db()
        assert header.total_debit == Decimal("0.00")

    def test_validate_balance(self, operator_actor, cash_account, revenue_account):
        header = create_transaction_header(
            operator_actor, date=date(2024, 2, 1), transaction_type="JURNAL_UMUM",
        ).data
        add_transaction_detail(operator_actor, header.id, cash_account.id, debit=Decimal("80"))
        add_transaction_detail(operator_actor, header.id, revenue_account.id, credit=Decimal("50"))

        result = validate_transaction_balance(header.id)
        assert result.success
        assert result.data["is_balanced"] is False
        assert result.data["difference"] == Decimal("30.00")

    def test_add_detail_unknown_account(self, operator_actor):
        header = create_transaction_header(
            operator_actor, date=date(2024, 2, 1), transaction_type="JURNAL_UMUM",
        ).data
        result = add_transaction_detail(operator_actor, header.id, 987654, debit=Decimal("1"))
        assert not result.success
        assert result.error == "Account with ID 987654 not found."

    def test_update_header(self, operator_actor, customer):
        header = create_transaction_header(
            operator_actor, date=date(2024, 2, 1), transaction_type="JURNAL_UMUM",
        ).data
        result = update_transaction_header(
            operator_actor, header.id, description="Koreksi", relation_id=customer.id,
        )
        assert result.success
        header.refresh_from_db()
        assert header.description == "Koreksi"
        assert header.relation == customer

    @pytest.mark.parametrize("number", ["", "   ", None])
    def test_update_header_rejects_blank_number(self, operator_actor, number):
        header = create_transaction_header(
            operator_actor, date=date(2024, 2, 1), transaction_type="JURNAL_UMUM",
        ).data

        result = update_transaction_header(operator_actor, header.id, number=number)
        assert not result.success
        assert result.error == "Transaction number cannot be blank."
        header.refresh_from_db()
        assert header.number == "JURNAL_UMUM-202402-001"

    def test_update_header_renumbers(self, operator_actor, simple_sale):
        header = create_transaction_header(
            operator_actor, date=date(2024, 2, 1), transaction_type="JURNAL_UMUM",
        ).data

        result = update_transaction_header(operator_actor, header.id, number=" MANUAL-1 ")
        assert result.success
        header.refresh_from_db()
        assert header.number == "MANUAL-1"

        result = update_transaction_header(operator_actor, header.id, number=simple_sale.number)
        assert not result.success
        assert "already exists" in result.error

    def test_zero_line_rejected_by_database(self, simple_sale, cash_account):
        with pytest.raises(IntegrityError), transaction.atomic():
            TransactionDetail.objects.create(header=simple_sale, account=cash_account)


# =============================================================================
# Posting
# =============================================================================

@pytest.mark.django_db
class TestPosting:

    def test_post_sets_metadata(self, operator_actor, make_transaction, line, cash_account, revenue_account):
        header = make_transaction(
            date(2024, 1, 2),
            [line(cash_account, debit="10"), line(revenue_account, credit="10")],
            post=False,
        )
        result = post_transaction(operator_actor, header.id)
        assert result.success, result.error
        header.refresh_from_db()
        assert header.is_posted
        assert header.posted_at is not None
        assert header.posted_by == operator_actor.user

    def test_cannot_post_twice(self, admin_actor, simple_sale):
        result = post_transaction(admin_actor, simple_sale.id)
        assert not result.success
        assert result.error == "Transaction is already posted."

    def test_needs_two_details(self, admin_actor, cash_account):
        header = create_transaction_header(admin_actor, date=date(2024, 1, 1), transaction_type="JURNAL_UMUM").data
        add_transaction_detail(admin_actor, header.id, cash_account.id, debit=Decimal("5"))

        result = post_transaction(admin_actor, header.id)
        assert not result.success
        assert "at least 2 details" in result.error

    def test_unbalanced_cannot_post(self, admin_actor, cash_account, revenue_account):
        header = create_transaction_header(admin_actor, date=date(2024, 1, 1), transaction_type="JURNAL_UMUM").data
        add_transaction_detail(admin_actor, header.id, cash_account.id, debit=Decimal("5"))
        add_transaction_detail(admin_actor, header.id, revenue_account.id, credit=Decimal("4"))

        result = post_transaction(admin_actor, header.id)
        assert not result.success
        assert result.error.startswith("Transaction is not balanced")

    def test_inactive_account_cannot_post(self, admin_actor, make_transaction, line, cash_account, revenue_account):
        header = make_transaction(
            date(2024, 1, 2),
            [line(cash_account, debit="10"), line(revenue_account, credit="10")],
            post=False,
        )
        revenue_account.is_active = False
        revenue_account.save()

        result = post_transaction(admin_actor, header.id)
        assert not result.success
        assert result.error == f"Cannot post to inactive account: {revenue_account.code}"

    def test_viewer_cannot_post(self, viewer_actor, simple_sale):
        with pytest.raises(PermissionDenied):
            post_transaction(viewer_actor, simple_sale.id)

    def test_posted_transaction_is_immutable(self, admin_actor, simple_sale, cash_account):
        detail = simple_sale.details.first()

        assert update_transaction_header(admin_actor, simple_sale.id, description="x").error == (
            "Cannot update posted transaction."
        )
        assert not add_transaction_detail(admin_actor, simple_sale.id, cash_account.id, debit=Decimal("1")).success
        assert not update_transaction_detail(admin_actor, detail.id, debit=Decimal("2")).success
        assert not delete_transaction_detail(admin_actor, detail.id).success
        assert delete_transaction(admin_actor, simple_sale.id).error == "Cannot delete posted transaction."

    def test_operator_cannot_unpost(self, operator_actor, simple_sale):
        with pytest.raises(PermissionDenied):
            unpost_transaction(operator_actor, simple_sale.id)

    def test_unpost_then_delete(self, admin_actor, simple_sale):
        result = unpost_transaction(admin_actor, simple_sale.id)
        assert result.success
        simple_sale.refresh_from_db()
        assert not simple_sale.is_posted
        assert simple_sale.posted_by is None

        assert delete_transaction(admin_actor, simple_sale.id).success
        assert not TransactionDetail.objects.filter(header_id=simple_sale.id).exists()

    def test_unpost_requires_posted(self, admin_actor, make_transaction, line, cash_account, revenue_account):
        header = make_transaction(
            date(2024, 1, 2),
            [line(cash_account, debit="10"), line(revenue_account, credit="10")],
            post=False,
        )
        result = unpost_transaction(admin_actor, header.id)
        assert not result.success
        assert result.error == "Transaction is not posted."

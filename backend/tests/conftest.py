# tests/conftest.py
"""
Pytest fixtures for Bukubesar tests.

Fixtures build a small chart of accounts (cash, receivable, payable,
equity, revenue, expense), one user per role, and relations. Actors are
built with ActorContext.for_user so that role defaults apply exactly as
they do for API requests.
"""

from datetime import date
from decimal import Decimal

import pytest
from django.contrib.auth import get_user_model
from rest_framework.test import APIClient

from accounts.authz import ActorContext
from accounting.commands import create_transaction, post_transaction
from accounting.models import Account
from relations.models import Relation


User = get_user_model()


# =============================================================================
# User & Actor Fixtures
# =============================================================================

@pytest.fixture
def admin_user(db):
    return User.objects.create_user(
        username="admin",
        email="admin@test.com",
        password="testpass123",
        full_name="Test Admin",
        role=User.Role.ADMIN,
    )


@pytest.fixture
def operator_user(db):
    return User.objects.create_user(
        username="operator",
        email="operator@test.com",
        password="testpass123",
        full_name="Test Operator",
        role=User.Role.OPERATOR,
    )


@pytest.fixture
def viewer_user(db):
    return User.objects.create_user(
        username="viewer",
        email="viewer@test.com",
        password="testpass123",
        full_name="Test Viewer",
        role=User.Role.VIEWER,
    )


@pytest.fixture
def admin_actor(admin_user):
    return ActorContext.for_user(admin_user)


@pytest.fixture
def operator_actor(operator_user):
    return ActorContext.for_user(operator_user)


@pytest.fixture
def viewer_actor(viewer_user):
    return ActorContext.for_user(viewer_user)


# =============================================================================
# API Client Fixtures
# =============================================================================

@pytest.fixture
def api_client():
    return APIClient()


@pytest.fixture
def admin_client(admin_user):
    client = APIClient()
    client.force_authenticate(user=admin_user)
    return client


@pytest.fixture
def operator_client(operator_user):
    client = APIClient()
    client.force_authenticate(user=operator_user)
    return client


@pytest.fixture
def viewer_client(viewer_user):
    client = APIClient()
    client.force_authenticate(user=viewer_user)
    return client


# =============================================================================
# Chart of Accounts Fixtures
# =============================================================================

@pytest.fixture
def cash_account(db):
    return Account.objects.create(
        code="1101",
        name="Kas",
        account_type=Account.AccountType.ASET,
        subtype=Account.Subtype.KAS,
    )


@pytest.fixture
def bank_account(db):
    return Account.objects.create(
        code="1102",
        name="Bank",
        account_type=Account.AccountType.ASET,
        subtype=Account.Subtype.KAS,
    )


@pytest.fixture
def receivable_account(db):
    return Account.objects.create(
        code="1201",
        name="Piutang Usaha",
        account_type=Account.AccountType.ASET,
        subtype=Account.Subtype.PIUTANG,
    )


@pytest.fixture
def equipment_account(db):
    return Account.objects.create(
        code="1501",
        name="Peralatan",
        account_type=Account.AccountType.ASET,
    )


@pytest.fixture
def payable_account(db):
    return Account.objects.create(
        code="2101",
        name="Hutang Usaha",
        account_type=Account.AccountType.KEWAJIBAN,
        subtype=Account.Subtype.HUTANG,
    )


@pytest.fixture
def equity_account(db):
    return Account.objects.create(
        code="3101",
        name="Modal",
        account_type=Account.AccountType.EKUITAS,
    )


@pytest.fixture
def revenue_account(db):
    return Account.objects.create(
        code="4101",
        name="Pendapatan Jasa",
        account_type=Account.AccountType.PENDAPATAN,
    )


@pytest.fixture
def expense_account(db):
    return Account.objects.create(
        code="5101",
        name="Beban Gaji",
        account_type=Account.AccountType.BEBAN,
    )


# =============================================================================
# Relation Fixtures
# =============================================================================

@pytest.fixture
def customer(db):
    return Relation.objects.create(
        code="C001",
        name="PT Pelanggan",
        relation_type=Relation.RelationType.PELANGGAN,
    )


@pytest.fixture
def supplier(db):
    return Relation.objects.create(
        code="S001",
        name="CV Pemasok",
        relation_type=Relation.RelationType.PEMASOK,
    )


# =============================================================================
# Transaction Helpers
# =============================================================================

def _line(account, debit="0", credit="0", description=""):
    return {
        "account_id": account.id,
        "debit": Decimal(debit),
        "credit": Decimal(credit),
        "description": description,
    }


@pytest.fixture
def line():
    """Shorthand for a detail dict accepted by create_transaction."""
    return _line


@pytest.fixture
def make_transaction(admin_actor):
    """
    Factory creating (and by default posting) a transaction.

    Usage:
        header = make_transaction(date(2024, 1, 5), [line(cash, "100"), line(rev, credit="100")])
    """
    def _make(on_date, details, transaction_type="JURNAL_UMUM", post=True, relation=None, **kwargs):
        result = create_transaction(
            admin_actor,
            date=on_date,
            transaction_type=transaction_type,
            details=details,
            relation_id=relation.id if relation else None,
            **kwargs,
        )
        assert result.success, result.error
        header = result.data
        if post:
            posted = post_transaction(admin_actor, header.id)
            assert posted.success, posted.error
            header.refresh_from_db()
        return header

    return _make


@pytest.fixture
def simple_sale(make_transaction, line, cash_account, revenue_account):
    """A posted cash sale of 1,000.00 on 2024-01-15."""
    return make_transaction(
        date(2024, 1, 15),
        [line(cash_account, debit="1000.00"), line(revenue_account, credit="1000.00")],
        transaction_type="PENERIMAAN_DANA",
    )

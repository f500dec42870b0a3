# tests/test_reports.py
"""
Tests for financial reports.

The `books` fixture posts a small set of January/February transactions:

    2024-01-01  capital       cash 10,000 / equity 10,000
    2024-01-15  cash sale     cash  1,000 / revenue 1,000
    2024-02-10  salaries      expense 300 / cash 300
    2024-02-20  equipment     equipment 2,000 / cash 2,000
    2024-02-25  (unposted)    cash 999 / revenue 999
"""

from datetime import date
from decimal import Decimal

import pytest

from accounting.commands import create_account
from accounting.models import Account
from reports import services
from reports.services import ReportFilter


@pytest.fixture
def books(
    make_transaction, line, simple_sale,
    cash_account, equity_account, expense_account, equipment_account, revenue_account,
):
    make_transaction(
        date(2024, 1, 1),
        [line(cash_account, debit="10000"), line(equity_account, credit="10000")],
        description="Setoran modal",
    )
    make_transaction(
        date(2024, 2, 10),
        [line(expense_account, debit="300"), line(cash_account, credit="300")],
        transaction_type="PENGELUARAN_DANA",
    )
    make_transaction(
        date(2024, 2, 20),
        [line(equipment_account, debit="2000"), line(cash_account, credit="2000")],
        transaction_type="PENGELUARAN_DANA",
    )
    make_transaction(
        date(2024, 2, 25),
        [line(cash_account, debit="999"), line(revenue_account, credit="999")],
        post=False,
    )


END_OF_FEB = ReportFilter(from_date=date(2024, 1, 1), to_date=date(2024, 2, 29))


# =============================================================================
# Financial Statements
# =============================================================================

@pytest.mark.django_db
class TestFinancialStatements:

    def test_financial_position_balances(self, books):
        report = services.financial_position(ReportFilter(to_date=date(2024, 2, 29)))

        assert report["total_assets"] == Decimal("10700")
        assert report["total_equity"] == Decimal("10000")
        assert report["current_earnings"] == Decimal("700")
        assert report["total_liabilities_and_equity"] == Decimal("10700")
        assert report["is_balanced"] is True

        codes = [row["account_code"] for row in report["assets"]["accounts"]]
        assert codes == ["1101", "1501"]

    def test_unposted_transactions_are_ignored(self, books, cash_account):
        report = services.account_balance(cash_account, date(2024, 2, 29))
        assert report["balance"] == Decimal("8700")

    def test_income_statement_range(self, books):
        february = services.income_statement(
            ReportFilter(from_date=date(2024, 2, 1), to_date=date(2024, 2, 29))
        )
        assert february["total_revenue"] == Decimal("0")
        assert february["total_expense"] == Decimal("300")
        assert february["net_income"] == Decimal("-300")

        whole = services.income_statement(END_OF_FEB)
        assert whole["net_income"] == Decimal("700")

    def test_equity_changes(self, books):
        report = services.equity_changes(
            ReportFilter(from_date=date(2024, 1, 2), to_date=date(2024, 2, 29))
        )
        assert report["opening_equity"] == Decimal("10000")
        assert report["net_income"] == Decimal("700")
        assert report["closing_equity"] == Decimal("10700")

    def test_opening_balance_is_included(self, admin_actor):
        result = create_account(
            admin_actor, code="1109", name="Kas Kecil",
            account_type=Account.AccountType.ASET, subtype=Account.Subtype.KAS,
            opening_balance=Decimal("50.00"),
        )
        assert result.success, result.error
        report = services.account_balance(result.data, date(2024, 1, 1))
        assert report["balance"] == Decimal("50.00")


@pytest.mark.django_db
class TestCashFlow:

    def test_classification(self, books):
        report = services.cash_flow(END_OF_FEB)

        assert report["total_operating"] == Decimal("700")
        assert report["total_investing"] == Decimal("-2000")
        assert report["total_financing"] == Decimal("10000")
        assert report["net_cash_flow"] == Decimal("8700")
        assert report["opening_cash"] == Decimal("0")
        assert report["closing_cash"] == Decimal("8700")

    def test_opening_cash_from_earlier_periods(self, books):
        report = services.cash_flow(ReportFilter(from_date=date(2024, 2, 1), to_date=date(2024, 2, 29)))
        assert report["opening_cash"] == Decimal("11000")
        assert report["net_cash_flow"] == Decimal("-2300")
        assert report["closing_cash"] == Decimal("8700")

    def test_transfers_between_cash_accounts_are_skipped(self, make_transaction, line, cash_account, bank_account):
        make_transaction(
            date(2024, 3, 1),
            [line(bank_account, debit="100"), line(cash_account, credit="100")],
            transaction_type="PEMINDAH_BUKUAN",
        )
        report = services.cash_flow(ReportFilter(from_date=date(2024, 3, 1), to_date=date(2024, 3, 31)))
        assert report["operating"] == report["investing"] == report["financing"] == []
        assert report["net_cash_flow"] == Decimal("0")


# =============================================================================
# Journal & Ledgers
# =============================================================================

@pytest.mark.django_db
class TestJournalAndLedger:

    def test_journal_lists_posted_and_unposted(self, books):
        report = services.journal(END_OF_FEB)
        assert len(report["transactions"]) == 5
        assert [t["is_posted"] for t in report["transactions"]].count(False) == 1
        assert report["total_debit"] == report["total_credit"]

    def test_ledger_running_balance(self, books, cash_account):
        report = services.account_ledger(
            cash_account, ReportFilter(from_date=date(2024, 2, 1), to_date=date(2024, 2, 29)),
        )
        assert report["opening_balance"] == Decimal("11000")
        assert [e["balance"] for e in report["entries"]] == [Decimal("10700"), Decimal("8700")]
        assert report["total_credit"] == Decimal("2300")
        assert report["closing_balance"] == Decimal("8700")

    def test_credit_normal_ledger(self, books, revenue_account):
        report = services.account_ledger(revenue_account, END_OF_FEB)
        assert report["normal_balance"] == Account.NormalBalance.CREDIT
        assert report["closing_balance"] == Decimal("1000")

    def test_general_ledger_single_account(self, books, expense_account):
        report = services.general_ledger(
            ReportFilter(to_date=date(2024, 2, 29), account_id=expense_account.id)
        )
        assert [ledger["account_code"] for ledger in report["accounts"]] == ["5101"]

    def test_hierarchy(self, admin_actor, cash_account):
        child = create_account(
            admin_actor, code="1101.01", name="Kas Cabang",
            account_type=Account.AccountType.ASET, subtype=Account.Subtype.KAS,
            parent_id=cash_account.id,
        )
        assert child.success, child.error

        tree = services.account_hierarchy()
        assert [node["code"] for node in tree] == ["1101"]
        assert [node["code"] for node in tree[0]["children"]] == ["1101.01"]

    def test_transactions_by_type(self, books):
        report = services.transactions_by_type(END_OF_FEB)
        counts = {group["transaction_type"]: group["count"] for group in report["types"]}
        assert counts == {"PENERIMAAN_DANA": 1, "PENGELUARAN_DANA": 2, "JURNAL_UMUM": 2}

    def test_transactions_by_account(self, books, cash_account):
        report = services.transactions_by_account(
            ReportFilter(from_date=date(2024, 1, 1), to_date=date(2024, 2, 29), account_id=cash_account.id)
        )
        assert len(report["accounts"]) == 1
        group = report["accounts"][0]
        assert group["count"] == 4
        assert group["total_debit"] == Decimal("11000")
        assert group["total_credit"] == Decimal("2300")


# =============================================================================
# Receivables & Payables
# =============================================================================

@pytest.fixture
def receivables(make_transaction, line, customer, receivable_account, revenue_account, cash_account):
    make_transaction(
        date(2023, 12, 1),
        [line(receivable_account, debit="500"), line(revenue_account, credit="500")],
        relation=customer,
    )
    make_transaction(
        date(2024, 3, 1),
        [line(receivable_account, debit="300"), line(revenue_account, credit="300")],
        relation=customer,
    )
    make_transaction(
        date(2024, 3, 15),
        [line(cash_account, debit="200"), line(receivable_account, credit="200")],
        transaction_type="PENERIMAAN_DANA",
        relation=customer,
    )


@pytest.mark.django_db
class TestSubledgers:

    def test_receivable_balances(self, receivables, customer):
        report = services.subledger(
            "receivable", ReportFilter(from_date=date(2024, 3, 1), to_date=date(2024, 3, 31)),
        )
        row = report["relations"][0]
        assert row["relation_code"] == "C001"
        assert row["opening_balance"] == Decimal("500")
        assert row["debit"] == Decimal("300")
        assert row["credit"] == Decimal("200")
        assert row["closing_balance"] == Decimal("600")

    def test_aging_settles_oldest_first(self, receivables):
        report = services.aging("receivable", date(2024, 3, 31))
        row = report["relations"][0]
        assert row["buckets"][">90"] == Decimal("300")
        assert row["buckets"]["0-30"] == Decimal("300")
        assert row["unapplied"] == Decimal("0")
        assert report["total"] == Decimal("600")

    def test_aging_overpayment_is_unapplied(
        self, make_transaction, line, supplier, payable_account, expense_account, cash_account,
    ):
        make_transaction(
            date(2024, 3, 5),
            [line(expense_account, debit="400"), line(payable_account, credit="400")],
            relation=supplier,
        )
        make_transaction(
            date(2024, 3, 10),
            [line(payable_account, debit="500"), line(cash_account, credit="500")],
            transaction_type="PENGELUARAN_DANA",
            relation=supplier,
        )
        report = services.aging("payable", date(2024, 3, 31))
        row = report["relations"][0]
        assert sum(row["buckets"].values()) == Decimal("0")
        assert row["unapplied"] == Decimal("100")
        assert row["total"] == Decimal("-100")

    def test_fully_settled_relation_is_omitted(
        self, make_transaction, line, customer, receivable_account, revenue_account, cash_account,
    ):
        make_transaction(
            date(2024, 1, 1),
            [line(receivable_account, debit="100"), line(revenue_account, credit="100")],
            relation=customer,
        )
        make_transaction(
            date(2024, 1, 5),
            [line(cash_account, debit="100"), line(receivable_account, credit="100")],
            relation=customer,
        )
        assert services.aging("receivable", date(2024, 1, 31))["relations"] == []


# =============================================================================
# API
# =============================================================================

@pytest.mark.django_db
class TestReportApi:

    def test_financial_position_amounts_are_strings(self, viewer_client, books):
        response = viewer_client.get("/api/reports/financial-position/?to_date=2024-02-29")
        assert response.status_code == 200
        assert isinstance(response.data["total_assets"], str)
        assert Decimal(response.data["total_assets"]) == Decimal("10700")
        assert response.data["is_balanced"] is True

    def test_inverted_range_is_400(self, viewer_client):
        response = viewer_client.get("/api/reports/income-statement/?from_date=2024-03-01&to_date=2024-01-01")
        assert response.status_code == 400

    def test_ledger_unknown_account_is_404(self, viewer_client):
        assert viewer_client.get("/api/reports/ledger/999999/").status_code == 404

    def test_account_balance_as_of(self, viewer_client, books, cash_account):
        response = viewer_client.get(f"/api/reports/account-balance/{cash_account.id}/?as_of=2024-01-31")
        assert response.status_code == 200
        assert Decimal(response.data["balance"]) == Decimal("11000")

    def test_aging_endpoint(self, viewer_client, receivables):
        response = viewer_client.get("/api/reports/aging-receivables/?as_of=2024-03-31")
        assert response.status_code == 200
        assert Decimal(response.data["total"]) == Decimal("600")

    def test_requires_authentication(self, api_client):
        assert api_client.get("/api/reports/journal/").status_code == 401

    def test_export_csv(self, operator_client, books):
        response = operator_client.post("/api/reports/export/", {
            "report": "income-statement",
            "format": "CSV",
            "from_date": "2024-01-01",
            "to_date": "2024-02-29",
        }, format="json")
        assert response.status_code == 200
        assert response["Content-Type"].startswith("text/csv")
        assert 'filename="income-statement_20240229.csv"' in response["Content-Disposition"]
        assert "Pendapatan Jasa" in response.content.decode("utf-8-sig")

    def test_viewer_cannot_export(self, viewer_client):
        response = viewer_client.post(
            "/api/reports/export/", {"report": "journal", "format": "PDF"}, format="json",
        )
        assert response.status_code == 403

    def test_unknown_report_is_400(self, operator_client):
        response = operator_client.post(
            "/api/reports/export/", {"report": "nope", "format": "CSV"}, format="json",
        )
        assert response.status_code == 400

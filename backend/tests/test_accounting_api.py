# tests/test_accounting_api.py
"""
API tests for the accounting list and lookup endpoints.

Tests cover:
- Paginated transaction listing
- Filtered lists (type, date range, relation, unposted)
- Number preview
- Chart of accounts filtered by type
- Header updates through PATCH
"""

from datetime import date

import pytest

from accounting.models import TransactionSequence


BASE = "/api/accounting"


@pytest.fixture
def ledger(make_transaction, line, cash_account, revenue_account, expense_account, customer):
    """Four transactions across types, dates, relations and posting states."""
    sale = [line(cash_account, debit="100"), line(revenue_account, credit="100")]
    cost = [line(expense_account, debit="40"), line(cash_account, credit="40")]
    return {
        "jan_sale": make_transaction(date(2024, 1, 5), sale, transaction_type="PENERIMAAN_DANA", relation=customer),
        "jan_cost": make_transaction(date(2024, 1, 20), cost, transaction_type="PENGELUARAN_DANA"),
        "feb_sale": make_transaction(date(2024, 2, 1), sale, transaction_type="PENERIMAAN_DANA", post=False),
        "mar_adj": make_transaction(date(2024, 3, 31), cost, post=False),
    }


def _numbers(response):
    return [row["number"] for row in response.data]


@pytest.mark.django_db
class TestTransactionListApi:

    def test_pagination(self, viewer_client, ledger):
        response = viewer_client.get(f"{BASE}/transactions/", {"page": 2, "limit": 3})
        assert response.status_code == 200
        assert (response.data["page"], response.data["limit"]) == (2, 3)
        assert response.data["total"] == 4
        assert response.data["total_pages"] == 2
        # newest first, so the oldest created lands alone on page two
        assert [row["id"] for row in response.data["results"]] == [ledger["jan_sale"].id]

    def test_default_page_and_limit(self, viewer_client, ledger, settings):
        settings.DEFAULT_PAGE_LIMIT = 2

        response = viewer_client.get(f"{BASE}/transactions/")
        assert (response.data["page"], response.data["limit"]) == (1, 2)
        assert response.data["total_pages"] == 2
        assert [row["id"] for row in response.data["results"]] == [ledger["mar_adj"].id, ledger["feb_sale"].id]

    def test_empty_list(self, viewer_client):
        response = viewer_client.get(f"{BASE}/transactions/")
        assert response.data["total"] == 0
        assert response.data["total_pages"] == 0
        assert response.data["results"] == []

    @pytest.mark.parametrize("params", [{"page": 0}, {"limit": 0}, {"limit": 501}, {"page": "x"}])
    def test_bad_pagination_rejected(self, viewer_client, params):
        response = viewer_client.get(f"{BASE}/transactions/", params)
        assert response.status_code == 400

    def test_anonymous_rejected(self, api_client):
        assert api_client.get(f"{BASE}/transactions/").status_code == 401


@pytest.mark.django_db
class TestFilteredTransactionApi:

    def test_by_type(self, viewer_client, ledger):
        response = viewer_client.get(f"{BASE}/transactions/by-type/PENERIMAAN_DANA/")
        assert response.status_code == 200
        assert _numbers(response) == [ledger["feb_sale"].number, ledger["jan_sale"].number]

    def test_by_type_unknown(self, viewer_client):
        response = viewer_client.get(f"{BASE}/transactions/by-type/PENJUALAN/")
        assert response.status_code == 400
        assert "transaction_type" in response.data

    def test_by_date_range_is_inclusive(self, viewer_client, ledger):
        response = viewer_client.get(
            f"{BASE}/transactions/by-date/", {"start_date": "2024-01-20", "end_date": "2024-02-01"},
        )
        assert response.status_code == 200
        assert _numbers(response) == [ledger["feb_sale"].number, ledger["jan_cost"].number]

    def test_by_date_range_validation(self, viewer_client):
        response = viewer_client.get(
            f"{BASE}/transactions/by-date/", {"start_date": "2024-03-01", "end_date": "2024-02-01"},
        )
        assert response.status_code == 400

        response = viewer_client.get(f"{BASE}/transactions/by-date/", {"start_date": "2024-03-01"})
        assert response.status_code == 400

    def test_by_relation(self, viewer_client, ledger, customer, supplier):
        response = viewer_client.get(f"{BASE}/transactions/by-relation/{customer.id}/")
        assert _numbers(response) == [ledger["jan_sale"].number]
        assert response.data[0]["relation_name"] == "PT Pelanggan"

        response = viewer_client.get(f"{BASE}/transactions/by-relation/{supplier.id}/")
        assert response.data == []

        assert viewer_client.get(f"{BASE}/transactions/by-relation/999999/").status_code == 404

    def test_unposted(self, viewer_client, ledger):
        response = viewer_client.get(f"{BASE}/transactions/unposted/")
        assert _numbers(response) == [ledger["mar_adj"].number, ledger["feb_sale"].number]
        assert all(row["is_posted"] is False for row in response.data)


@pytest.mark.django_db
class TestTransactionNumberApi:

    def test_preview_does_not_reserve(self, operator_client):
        params = {"transaction_type": "JURNAL_KOREKSI", "date": "2024-09-10"}
        first = operator_client.get(f"{BASE}/transactions/generate-number/", params)
        second = operator_client.get(f"{BASE}/transactions/generate-number/", params)

        assert first.status_code == 200
        assert first.data["number"] == second.data["number"] == "JURNAL_KOREKSI-202409-001"
        assert not TransactionSequence.objects.exists()

    def test_preview_matches_next_created(self, operator_client, ledger):
        params = {"transaction_type": "PENERIMAAN_DANA", "date": "2024-01-31"}
        response = operator_client.get(f"{BASE}/transactions/generate-number/", params)
        assert response.data["number"] == "PENERIMAAN_DANA-202401-002"

    def test_unknown_type(self, operator_client):
        response = operator_client.get(
            f"{BASE}/transactions/generate-number/", {"transaction_type": "PENJUALAN"},
        )
        assert response.status_code == 400

    def test_viewer_cannot_generate(self, viewer_client):
        response = viewer_client.get(
            f"{BASE}/transactions/generate-number/", {"transaction_type": "JURNAL_UMUM"},
        )
        assert response.status_code == 403


@pytest.mark.django_db
class TestAccountListApi:

    def test_filter_by_type(self, viewer_client, cash_account, bank_account, revenue_account):
        response = viewer_client.get(f"{BASE}/accounts/", {"type": "ASET"})
        assert response.status_code == 200
        assert [row["code"] for row in response.data] == ["1101", "1102"]

    def test_unknown_type(self, viewer_client):
        response = viewer_client.get(f"{BASE}/accounts/", {"type": "HARTA"})
        assert response.status_code == 400
        assert "type" in response.data


@pytest.mark.django_db
class TestHeaderUpdateApi:

    def test_blank_number_rejected(self, operator_client, ledger):
        header = ledger["mar_adj"]
        response = operator_client.patch(f"{BASE}/transactions/{header.id}/", {"number": ""}, format="json")
        assert response.status_code == 400
        assert response.data["detail"] == "Transaction number cannot be blank."

        response = operator_client.get(f"{BASE}/transactions/{header.id}/")
        assert response.data["number"] == header.number

    def test_posted_header_locked(self, operator_client, ledger):
        header = ledger["jan_sale"]
        response = operator_client.patch(
            f"{BASE}/transactions/{header.id}/", {"description": "Ubah"}, format="json",
        )
        assert response.status_code == 400

# tests/test_ops.py
"""
Tests for health and metrics endpoints.
"""

from datetime import date

import pytest
from django.test import Client

from accounting.commands import create_transaction_header, post_transaction
from accounting.models import TransactionDetail, TransactionHeader
from ops.health import HealthCheck


@pytest.fixture
def client():
    return Client()


@pytest.mark.django_db
class TestHealthEndpoints:

    def test_public_healthcheck(self, api_client):
        response = api_client.get("/api/healthcheck/")
        assert response.status_code == 200
        assert response.data["status"] == "ok"

    def test_liveness(self, client):
        response = client.get("/_health/live")
        assert response.status_code == 200
        assert response.json() == {"status": "alive"}

    def test_readiness(self, client):
        response = client.get("/_health/ready")
        assert response.status_code == 200
        assert response.json()["database"]["status"] == "healthy"

    def test_full_health_is_healthy_on_consistent_books(self, client, simple_sale):
        response = client.get("/_health/full")
        assert response.status_code == 200
        assert response.json()["checks"]["ledger"]["headers_with_total_drift"] == 0

    def test_ledger_check_reports_drift(self, simple_sale):
        TransactionHeader.objects.filter(pk=simple_sale.pk).update(total_debit=5)

        result = HealthCheck.check_ledger()
        assert result["status"] == "degraded"
        assert result["headers_with_total_drift"] == 1
        assert result["unbalanced_posted"] == 1

    def test_ledger_check_counts_detail_side_drift(self, simple_sale, operator_actor):
        create_transaction_header(operator_actor, date=date(2024, 2, 1), transaction_type="JURNAL_UMUM")
        TransactionDetail.objects.filter(header=simple_sale, debit__gt=0).update(debit=900)

        result = HealthCheck.check_ledger()
        assert result["headers_with_total_drift"] == 1
        assert result["unbalanced_posted"] == 0


@pytest.mark.django_db
class TestMetrics:

    def test_metrics_exposition(self, client, make_transaction, line, cash_account, revenue_account):
        make_transaction(
            date(2024, 1, 2),
            [line(cash_account, debit="75"), line(revenue_account, credit="75")],
            post=False,
        )
        response = client.get("/_metrics/")
        assert response.status_code == 200
        body = response.content.decode()
        assert 'bukubesar_transactions_total{transaction_type="JURNAL_UMUM",posted="false"} 1.0' in body
        assert "bukubesar_unposted_amount 75.0" in body
        assert "bukubesar_request_duration_seconds" in body

    def test_metrics_follow_posting(self, client, admin_actor, make_transaction, line, cash_account, revenue_account):
        header = make_transaction(
            date(2024, 1, 2),
            [line(cash_account, debit="75"), line(revenue_account, credit="75")],
            post=False,
        )
        client.get("/_metrics/")
        assert post_transaction(admin_actor, header.id).success

        body = client.get("/_metrics/").content.decode()
        assert 'bukubesar_transactions_total{transaction_type="JURNAL_UMUM",posted="true"} 1.0' in body
        assert 'posted="false"' not in body
        assert "bukubesar_unposted_amount 0.0" in body

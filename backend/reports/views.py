# reports/views.py
"""
API views for financial reports.

Views parse the report filter, check `reports.view` (or `reports.export`)
and hand over to reports/services.py. Amounts are returned as strings so
no precision is lost on the way to the client.
"""

import logging
from decimal import Decimal

from django.shortcuts import get_object_or_404
from django.utils import timezone
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from accounting.models import Account
from accounts.authz import resolve_actor, require
from . import services
from .exports import export_report
from .serializers import AsOfSerializer, ExportRequestSerializer, ReportFilterSerializer

logger = logging.getLogger(__name__)


def as_json(value):
    """Recursively turn Decimal amounts into strings."""
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, dict):
        return {key: as_json(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [as_json(item) for item in value]
    return value


def _report_filter(request):
    serializer = ReportFilterSerializer(data=request.query_params)
    serializer.is_valid(raise_exception=True)
    return serializer.to_filter()


class FilteredReportView(APIView):
    """
    Base view for reports computed from a ReportFilter.

    Query params:
    - from_date, to_date (YYYY-MM-DD; to_date defaults to today)
    - account_id, relation_id (optional narrowing)
    """
    permission_classes = [IsAuthenticated]
    report = None

    def get(self, request):
        actor = resolve_actor(request)
        require(actor, "reports.view")
        return Response(as_json(self.report(_report_filter(request))))


# =============================================================================
# Financial Statements
# =============================================================================

class FinancialPositionView(FilteredReportView):
    """GET /api/reports/financial-position/ -> balance sheet as of to_date"""
    report = staticmethod(services.financial_position)


class IncomeStatementView(FilteredReportView):
    """GET /api/reports/income-statement/"""
    report = staticmethod(services.income_statement)


class EquityChangesView(FilteredReportView):
    """GET /api/reports/equity-changes/"""
    report = staticmethod(services.equity_changes)


class CashFlowView(FilteredReportView):
    """GET /api/reports/cash-flow/"""
    report = staticmethod(services.cash_flow)


# =============================================================================
# Journal & Ledgers
# =============================================================================

class JournalReportView(FilteredReportView):
    """GET /api/reports/journal/ -> all transactions in range with details"""
    report = staticmethod(services.journal)


class GeneralLedgerView(FilteredReportView):
    """GET /api/reports/general-ledger/"""
    report = staticmethod(services.general_ledger)


class TransactionsByTypeReportView(FilteredReportView):
    """GET /api/reports/transactions-by-type/"""
    report = staticmethod(services.transactions_by_type)


class TransactionsByAccountView(FilteredReportView):
    """GET /api/reports/transactions-by-account/"""
    report = staticmethod(services.transactions_by_account)


class AccountLedgerView(APIView):
    """GET /api/reports/ledger/<account_id>/ -> buku besar of one account"""
    permission_classes = [IsAuthenticated]

    def get(self, request, account_id):
        actor = resolve_actor(request)
        require(actor, "reports.view")

        account = get_object_or_404(Account, pk=account_id)
        return Response(as_json(services.account_ledger(account, _report_filter(request))))


class AccountBalanceView(APIView):
    """GET /api/reports/account-balance/<account_id>/?as_of=YYYY-MM-DD"""
    permission_classes = [IsAuthenticated]

    def get(self, request, account_id):
        actor = resolve_actor(request)
        require(actor, "reports.view")

        account = get_object_or_404(Account, pk=account_id)
        params = AsOfSerializer(data=request.query_params)
        params.is_valid(raise_exception=True)
        as_of = params.validated_data.get("as_of") or timezone.localdate()
        return Response(as_json(services.account_balance(account, as_of)))


class AccountHierarchyView(APIView):
    """GET /api/reports/account-hierarchy/ -> chart of accounts as a tree"""
    permission_classes = [IsAuthenticated]

    def get(self, request):
        actor = resolve_actor(request)
        require(actor, "reports.view")
        return Response(services.account_hierarchy())


# =============================================================================
# Receivables & Payables
# =============================================================================

class SubledgerView(APIView):
    """
    GET /api/reports/receivables/ -> saldo piutang per customer
    GET /api/reports/payables/ -> saldo hutang per supplier
    """
    permission_classes = [IsAuthenticated]
    kind = "receivable"

    def get(self, request):
        actor = resolve_actor(request)
        require(actor, "reports.view")
        return Response(as_json(services.subledger(self.kind, _report_filter(request))))


class AgingView(APIView):
    """
    GET /api/reports/aging-receivables/?as_of=YYYY-MM-DD
    GET /api/reports/aging-payables/?as_of=YYYY-MM-DD
    """
    permission_classes = [IsAuthenticated]
    kind = "receivable"

    def get(self, request):
        actor = resolve_actor(request)
        require(actor, "reports.view")

        params = AsOfSerializer(data=request.query_params)
        params.is_valid(raise_exception=True)
        as_of = params.validated_data.get("as_of") or timezone.localdate()
        report = services.aging(self.kind, as_of, params.validated_data.get("relation_id"))
        return Response(as_json(report))


# =============================================================================
# Export
# =============================================================================

class ReportExportView(APIView):
    """
    POST /api/reports/export/

    Body: {"report": "income-statement", "format": "PDF|EXCEL|CSV",
           "from_date": ..., "to_date": ..., "account_id": ..., "relation_id": ...}

    Returns the file as an attachment.
    """
    permission_classes = [IsAuthenticated]

    def post(self, request):
        actor = resolve_actor(request)
        require(actor, "reports.export")

        serializer = ExportRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = dict(serializer.validated_data)
        report = data.pop("report")
        export_format = data.pop("format")

        logger.info(
            "Report exported",
            extra={"report": report, "format": export_format, "user_id": actor.user.id},
        )
        return export_report(report, services.ReportFilter(**data), export_format)

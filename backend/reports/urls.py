from django.urls import path

from .views import (
    AccountBalanceView,
    AccountHierarchyView,
    AccountLedgerView,
    AgingView,
    CashFlowView,
    EquityChangesView,
    FinancialPositionView,
    GeneralLedgerView,
    IncomeStatementView,
    JournalReportView,
    ReportExportView,
    SubledgerView,
    TransactionsByAccountView,
    TransactionsByTypeReportView,
)

app_name = "reports"

urlpatterns = [
    # Financial statements
    path("financial-position/", FinancialPositionView.as_view(), name="financial-position"),
    path("income-statement/", IncomeStatementView.as_view(), name="income-statement"),
    path("equity-changes/", EquityChangesView.as_view(), name="equity-changes"),
    path("cash-flow/", CashFlowView.as_view(), name="cash-flow"),

    # Journal and ledgers
    path("journal/", JournalReportView.as_view(), name="journal"),
    path("general-ledger/", GeneralLedgerView.as_view(), name="general-ledger"),
    path("ledger/<int:account_id>/", AccountLedgerView.as_view(), name="account-ledger"),
    path("account-balance/<int:account_id>/", AccountBalanceView.as_view(), name="account-balance"),
    path("account-hierarchy/", AccountHierarchyView.as_view(), name="account-hierarchy"),

    # Receivables and payables
    path("receivables/", SubledgerView.as_view(kind="receivable"), name="receivables"),
    path("payables/", SubledgerView.as_view(kind="payable"), name="payables"),
    path("aging-receivables/", AgingView.as_view(kind="receivable"), name="aging-receivables"),
    path("aging-payables/", AgingView.as_view(kind="payable"), name="aging-payables"),

    # Transaction views
    path("transactions-by-type/", TransactionsByTypeReportView.as_view(), name="transactions-by-type"),
    path("transactions-by-account/", TransactionsByAccountView.as_view(), name="transactions-by-account"),

    path("export/", ReportExportView.as_view(), name="export"),
]

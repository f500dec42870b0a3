# accounting/urls.py
"""
URL configuration for accounting API.

Endpoints:
- /accounts/ - Chart of Accounts CRUD
- /transactions/ - Transaction header/detail CRUD with posting actions
- /details/<id>/ - Single detail line update/delete
"""

from django.urls import path

from .views import (
    # Account views
    AccountListCreateView,
    AccountDetailView,
    # Transaction views
    TransactionListCreateView,
    TransactionHeaderCreateView,
    TransactionDetailView,
    TransactionDetailCreateView,
    TransactionDetailLineView,
    TransactionPostView,
    TransactionUnpostView,
    TransactionBalanceView,
    TransactionNumberView,
    # Filtered lists
    TransactionsByTypeView,
    TransactionsByDateRangeView,
    TransactionsByRelationView,
    UnpostedTransactionsView,
)

app_name = "accounting"

urlpatterns = [
    # ==========================================================================
    # Accounts (Chart of Accounts)
    # ==========================================================================
    path("accounts/", AccountListCreateView.as_view(), name="account-list-create"),
    path("accounts/<int:pk>/", AccountDetailView.as_view(), name="account-detail"),

    # ==========================================================================
    # Transactions
    # ==========================================================================
    path("transactions/", TransactionListCreateView.as_view(), name="transaction-list-create"),
    path("transactions/header/", TransactionHeaderCreateView.as_view(), name="transaction-header-create"),
    path("transactions/unposted/", UnpostedTransactionsView.as_view(), name="transaction-unposted"),
    path("transactions/by-date/", TransactionsByDateRangeView.as_view(), name="transaction-by-date"),
    path(
        "transactions/by-type/<str:transaction_type>/",
        TransactionsByTypeView.as_view(),
        name="transaction-by-type",
    ),
    path(
        "transactions/by-relation/<int:relation_id>/",
        TransactionsByRelationView.as_view(),
        name="transaction-by-relation",
    ),
    path("transactions/generate-number/", TransactionNumberView.as_view(), name="transaction-number"),
    path("transactions/<int:pk>/", TransactionDetailView.as_view(), name="transaction-detail"),
    path("transactions/<int:pk>/details/", TransactionDetailCreateView.as_view(), name="transaction-add-detail"),
    path("transactions/<int:pk>/post/", TransactionPostView.as_view(), name="transaction-post"),
    path("transactions/<int:pk>/unpost/", TransactionUnpostView.as_view(), name="transaction-unpost"),
    path(
        "transactions/<int:pk>/validate-balance/",
        TransactionBalanceView.as_view(),
        name="transaction-validate-balance",
    ),

    # ==========================================================================
    # Detail lines
    # ==========================================================================
    path("details/<int:pk>/", TransactionDetailLineView.as_view(), name="detail-line"),
]

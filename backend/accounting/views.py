# accounting/views.py
"""
Thin views that delegate to the commands layer.

Views handle: HTTP parsing, authentication, response formatting.
Commands handle: business logic, validation, totals.

CRITICAL: All mutations (create, update, delete, post) MUST go through
commands. Views should never directly call .save() on models.
"""

import math

from django.conf import settings
from django.db.models import Exists, OuterRef
from django.shortcuts import get_object_or_404
from django.utils import timezone
from rest_framework import status
from rest_framework.exceptions import ValidationError as DRFValidationError
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from accounts.authz import resolve_actor, require
from relations.models import Relation
from .commands import (
    # Account commands
    create_account,
    update_account,
    delete_account,
    # Transaction commands
    create_transaction,
    create_transaction_header,
    add_transaction_detail,
    update_transaction_header,
    update_transaction_detail,
    delete_transaction_detail,
    delete_transaction,
    post_transaction,
    unpost_transaction,
    generate_transaction_number,
    validate_transaction_balance,
)
from .models import Account, TransactionDetail, TransactionHeader
from .serializers import (
    AccountCreateSerializer,
    AccountSerializer,
    AccountUpdateSerializer,
    DateRangeSerializer,
    NumberRequestSerializer,
    PaginationSerializer,
    TransactionCompleteInputSerializer,
    TransactionDetailInputSerializer,
    TransactionDetailSerializer,
    TransactionDetailUpdateSerializer,
    TransactionHeaderInputSerializer,
    TransactionHeaderSerializer,
    TransactionListSerializer,
)


def _fail(result):
    return Response({"detail": result.error}, status=status.HTTP_400_BAD_REQUEST)


def _accounts_queryset():
    return Account.objects.annotate(
        _has_transactions=Exists(
            TransactionDetail.objects.filter(account=OuterRef("pk"))
        ),
    ).select_related("parent")


def _headers_queryset():
    return TransactionHeader.objects.select_related("relation", "user", "posted_by")


def _parse_transaction_type(value):
    if value not in TransactionHeader.TransactionType.values:
        raise DRFValidationError({"transaction_type": [f"Invalid transaction type: {value}"]})
    return value


# =============================================================================
# Account Views
# =============================================================================

class AccountListCreateView(APIView):
    """
    GET /api/accounting/accounts/ -> list accounts
        ?type=ASET    accounts of one type
    POST /api/accounting/accounts/ -> create account
    """
    permission_classes = [IsAuthenticated]

    def get(self, request):
        actor = resolve_actor(request)
        require(actor, "accounts.view")

        accounts = _accounts_queryset().order_by("code")
        account_type = request.query_params.get("type")
        if account_type:
            if account_type not in Account.AccountType.values:
                raise DRFValidationError({"type": [f"Invalid account type: {account_type}"]})
            accounts = accounts.filter(account_type=account_type)

        serializer = AccountSerializer(accounts, many=True)
        return Response(serializer.data)

    def post(self, request):
        actor = resolve_actor(request)
        # Permission check happens in command

        input_serializer = AccountCreateSerializer(data=request.data)
        input_serializer.is_valid(raise_exception=True)

        result = create_account(actor, **input_serializer.validated_data)
        if not result.success:
            return _fail(result)

        output_serializer = AccountSerializer(result.data)
        return Response(output_serializer.data, status=status.HTTP_201_CREATED)


class AccountDetailView(APIView):
    """
    GET /api/accounting/accounts/<pk>/ -> retrieve account
    PATCH /api/accounting/accounts/<pk>/ -> update account
    DELETE /api/accounting/accounts/<pk>/ -> delete account
    """
    permission_classes = [IsAuthenticated]

    def get(self, request, pk):
        actor = resolve_actor(request)
        require(actor, "accounts.view")

        account = get_object_or_404(_accounts_queryset(), pk=pk)
        return Response(AccountSerializer(account).data)

    def patch(self, request, pk):
        actor = resolve_actor(request)
        account = get_object_or_404(Account, pk=pk)

        input_serializer = AccountUpdateSerializer(data=request.data)
        input_serializer.is_valid(raise_exception=True)

        result = update_account(actor, account.id, **input_serializer.validated_data)
        if not result.success:
            return _fail(result)

        return Response(AccountSerializer(result.data).data)

    def delete(self, request, pk):
        actor = resolve_actor(request)
        account = get_object_or_404(Account, pk=pk)

        result = delete_account(actor, account.id)
        if not result.success:
            return _fail(result)

        return Response(status=status.HTTP_204_NO_CONTENT)


# =============================================================================
# Transaction Views
# =============================================================================

class TransactionListCreateView(APIView):
    """
    GET /api/accounting/transactions/ -> paginated list, newest first
        ?page=1&limit=50
    POST /api/accounting/transactions/ -> create complete transaction
        (header + details in one atomic call)
    """
    permission_classes = [IsAuthenticated]

    def get(self, request):
        actor = resolve_actor(request)
        require(actor, "journal.view")

        params = PaginationSerializer(data=request.query_params)
        params.is_valid(raise_exception=True)
        page = params.validated_data["page"]
        limit = params.validated_data.get("limit") or settings.DEFAULT_PAGE_LIMIT
        offset = (page - 1) * limit

        headers = _headers_queryset().order_by("-created_at", "-id")
        total = headers.count()

        serializer = TransactionListSerializer(headers[offset:offset + limit], many=True)
        return Response({
            "page": page,
            "limit": limit,
            "total": total,
            "total_pages": math.ceil(total / limit) if total else 0,
            "results": serializer.data,
        })

    def post(self, request):
        actor = resolve_actor(request)
        # Permission check happens in command

        input_serializer = TransactionCompleteInputSerializer(data=request.data)
        input_serializer.is_valid(raise_exception=True)
        data = input_serializer.validated_data

        result = create_transaction(
            actor,
            date=data["date"],
            transaction_type=data["transaction_type"],
            details=[dict(line) for line in data["details"]],
            description=data.get("description", ""),
            relation_id=data.get("relation_id"),
            user_id=data.get("user_id"),
            number=data.get("number") or None,
        )
        if not result.success:
            return _fail(result)

        header = _headers_queryset().prefetch_related("details__account").get(pk=result.data.pk)
        return Response(TransactionHeaderSerializer(header).data, status=status.HTTP_201_CREATED)


class TransactionHeaderCreateView(APIView):
    """POST /api/accounting/transactions/header/ -> create header without details"""
    permission_classes = [IsAuthenticated]

    def post(self, request):
        actor = resolve_actor(request)

        input_serializer = TransactionHeaderInputSerializer(data=request.data)
        input_serializer.is_valid(raise_exception=True)
        data = input_serializer.validated_data

        result = create_transaction_header(
            actor,
            date=data["date"],
            transaction_type=data["transaction_type"],
            description=data.get("description", ""),
            relation_id=data.get("relation_id"),
            user_id=data.get("user_id"),
            number=data.get("number") or None,
        )
        if not result.success:
            return _fail(result)

        return Response(TransactionHeaderSerializer(result.data).data, status=status.HTTP_201_CREATED)


class TransactionDetailView(APIView):
    """
    GET /api/accounting/transactions/<pk>/ -> header with details
    PATCH /api/accounting/transactions/<pk>/ -> update header (unposted only)
    DELETE /api/accounting/transactions/<pk>/ -> delete (unposted only)
    """
    permission_classes = [IsAuthenticated]

    def get(self, request, pk):
        actor = resolve_actor(request)
        require(actor, "journal.view")

        header = get_object_or_404(
            _headers_queryset().prefetch_related("details__account"),
            pk=pk,
        )
        return Response(TransactionHeaderSerializer(header).data)

    def patch(self, request, pk):
        actor = resolve_actor(request)
        get_object_or_404(TransactionHeader, pk=pk)

        input_serializer = TransactionHeaderInputSerializer(data=request.data, partial=True)
        input_serializer.is_valid(raise_exception=True)

        result = update_transaction_header(actor, pk, **input_serializer.validated_data)
        if not result.success:
            return _fail(result)

        header = _headers_queryset().prefetch_related("details__account").get(pk=pk)
        return Response(TransactionHeaderSerializer(header).data)

    def delete(self, request, pk):
        actor = resolve_actor(request)
        get_object_or_404(TransactionHeader, pk=pk)

        result = delete_transaction(actor, pk)
        if not result.success:
            return _fail(result)

        return Response(status=status.HTTP_204_NO_CONTENT)


class TransactionDetailCreateView(APIView):
    """POST /api/accounting/transactions/<pk>/details/ -> add a detail line"""
    permission_classes = [IsAuthenticated]

    def post(self, request, pk):
        actor = resolve_actor(request)
        get_object_or_404(TransactionHeader, pk=pk)

        input_serializer = TransactionDetailInputSerializer(data=request.data)
        input_serializer.is_valid(raise_exception=True)

        result = add_transaction_detail(actor, pk, **input_serializer.validated_data)
        if not result.success:
            return _fail(result)

        return Response(TransactionDetailSerializer(result.data).data, status=status.HTTP_201_CREATED)


class TransactionDetailLineView(APIView):
    """
    PATCH /api/accounting/details/<pk>/ -> update a detail line
    DELETE /api/accounting/details/<pk>/ -> remove a detail line
    """
    permission_classes = [IsAuthenticated]

    def patch(self, request, pk):
        actor = resolve_actor(request)
        get_object_or_404(TransactionDetail, pk=pk)

        input_serializer = TransactionDetailUpdateSerializer(data=request.data)
        input_serializer.is_valid(raise_exception=True)

        result = update_transaction_detail(actor, pk, **input_serializer.validated_data)
        if not result.success:
            return _fail(result)

        return Response(TransactionDetailSerializer(result.data).data)

    def delete(self, request, pk):
        actor = resolve_actor(request)
        get_object_or_404(TransactionDetail, pk=pk)

        result = delete_transaction_detail(actor, pk)
        if not result.success:
            return _fail(result)

        return Response(status=status.HTTP_204_NO_CONTENT)


class TransactionPostView(APIView):
    """POST /api/accounting/transactions/<pk>/post/ -> post transaction"""
    permission_classes = [IsAuthenticated]

    def post(self, request, pk):
        actor = resolve_actor(request)
        get_object_or_404(TransactionHeader, pk=pk)

        result = post_transaction(actor, pk)
        if not result.success:
            return _fail(result)

        header = result.data
        return Response({
            "id": header.id,
            "number": header.number,
            "is_posted": header.is_posted,
            "posted_at": header.posted_at,
            "posted_by": header.posted_by_id,
        })


class TransactionUnpostView(APIView):
    """POST /api/accounting/transactions/<pk>/unpost/ -> unpost transaction"""
    permission_classes = [IsAuthenticated]

    def post(self, request, pk):
        actor = resolve_actor(request)
        get_object_or_404(TransactionHeader, pk=pk)

        result = unpost_transaction(actor, pk)
        if not result.success:
            return _fail(result)

        header = result.data
        return Response({
            "id": header.id,
            "number": header.number,
            "is_posted": header.is_posted,
        })


class TransactionBalanceView(APIView):
    """GET /api/accounting/transactions/<pk>/validate-balance/"""
    permission_classes = [IsAuthenticated]

    def get(self, request, pk):
        actor = resolve_actor(request)
        require(actor, "journal.view")
        get_object_or_404(TransactionHeader, pk=pk)

        result = validate_transaction_balance(pk)
        if not result.success:
            return _fail(result)

        data = dict(result.data)
        for key in ("total_debit", "total_credit", "difference"):
            data[key] = str(data[key])
        return Response(data)


class TransactionNumberView(APIView):
    """
    GET /api/accounting/transactions/generate-number/
        ?transaction_type=JURNAL_UMUM&date=2024-01-31
    """
    permission_classes = [IsAuthenticated]

    def get(self, request):
        actor = resolve_actor(request)
        require(actor, "journal.create")

        params = NumberRequestSerializer(data=request.query_params)
        params.is_valid(raise_exception=True)
        on_date = params.validated_data.get("date") or timezone.localdate()

        number = generate_transaction_number(
            params.validated_data["transaction_type"], on_date, reserve=False,
        )
        return Response({"number": number})


# =============================================================================
# Filtered Transaction Lists
# =============================================================================

class TransactionsByTypeView(APIView):
    """GET /api/accounting/transactions/by-type/<transaction_type>/"""
    permission_classes = [IsAuthenticated]

    def get(self, request, transaction_type):
        actor = resolve_actor(request)
        require(actor, "journal.view")

        _parse_transaction_type(transaction_type)
        headers = _headers_queryset().filter(transaction_type=transaction_type)
        return Response(TransactionListSerializer(headers, many=True).data)


class TransactionsByDateRangeView(APIView):
    """GET /api/accounting/transactions/by-date/?start_date=...&end_date=..."""
    permission_classes = [IsAuthenticated]

    def get(self, request):
        actor = resolve_actor(request)
        require(actor, "journal.view")

        params = DateRangeSerializer(data=request.query_params)
        params.is_valid(raise_exception=True)

        headers = _headers_queryset().filter(
            date__gte=params.validated_data["start_date"],
            date__lte=params.validated_data["end_date"],
        ).order_by("-date", "-id")
        return Response(TransactionListSerializer(headers, many=True).data)


class TransactionsByRelationView(APIView):
    """GET /api/accounting/transactions/by-relation/<relation_id>/"""
    permission_classes = [IsAuthenticated]

    def get(self, request, relation_id):
        actor = resolve_actor(request)
        require(actor, "journal.view")

        relation = get_object_or_404(Relation, pk=relation_id)
        headers = _headers_queryset().filter(relation=relation)
        return Response(TransactionListSerializer(headers, many=True).data)


class UnpostedTransactionsView(APIView):
    """GET /api/accounting/transactions/unposted/"""
    permission_classes = [IsAuthenticated]

    def get(self, request):
        actor = resolve_actor(request)
        require(actor, "journal.view")

        headers = _headers_queryset().filter(is_posted=False)
        return Response(TransactionListSerializer(headers, many=True).data)

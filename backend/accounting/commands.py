# accounting/commands.py
"""
Command layer for accounting operations.

Commands are the single point where business operations happen.
Views call commands; commands enforce rules and write the models.

Pattern:
1. Validate permissions (require)
2. Apply business policies (can_*)
3. Perform the operation (model changes)
4. Keep header totals in step with the details
5. Return CommandResult

ALL state changes of accounts and transactions MUST go through commands.
"""

import logging
import re
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.core.exceptions import ValidationError
from django.db import IntegrityError, transaction
from django.utils import timezone

from accounts.authz import ActorContext, require
from accounts.commands import CommandResult
from accounting.models import (
    MONEY_Q,
    ZERO,
    Account,
    TransactionDetail,
    TransactionHeader,
    TransactionSequence,
)
from accounting.policies import (
    can_change_account_type,
    can_delete_account,
    can_delete_transaction,
    can_edit_transaction,
    can_modify_details,
    can_post_transaction,
    can_set_parent,
    can_unpost_transaction,
    validate_balance,
    validate_line_amounts,
)
from relations.models import Relation

logger = logging.getLogger(__name__)

User = get_user_model()

_NUMBER_SUFFIX = re.compile(r"-(\d+)$")


def _validation_message(error: ValidationError) -> str:
    return " ".join(error.messages)


# =============================================================================
# Account Commands
# =============================================================================

ACCOUNT_FIELDS = {"code", "name", "account_type", "subtype", "opening_balance", "is_active"}


@transaction.atomic
def create_account(
    actor: ActorContext,
    code: str,
    name: str,
    account_type: str,
    subtype: str = Account.Subtype.UMUM,
    parent_id: int = None,
    opening_balance: Decimal = ZERO,
    is_active: bool = True,
) -> CommandResult:
    """
    Create a new account in the chart of accounts.

    Args:
        actor: The actor context
        code: Account code (unique)
        name: Account name
        account_type: One of Account.AccountType choices
        subtype: One of Account.Subtype choices
        parent_id: Optional parent account ID
        opening_balance: Saldo awal
        is_active: Whether the account accepts postings

    Returns:
        CommandResult with the created Account or error
    """
    require(actor, "accounts.manage")

    if Account.objects.filter(code=code).exists():
        return CommandResult.fail(f"Account code '{code}' already exists.")

    parent = None
    if parent_id:
        try:
            parent = Account.objects.get(pk=parent_id)
        except Account.DoesNotExist:
            return CommandResult.fail(f"Parent account with ID {parent_id} does not exist.")

    account = Account(
        code=code,
        name=name,
        account_type=account_type,
        subtype=subtype,
        parent=parent,
        opening_balance=opening_balance,
        is_active=is_active,
    )
    try:
        account.save()
    except ValidationError as e:
        return CommandResult.fail(_validation_message(e))

    logger.info("Account created", extra={"account_id": account.id, "code": code})
    return CommandResult.ok(account)


@transaction.atomic
def update_account(actor: ActorContext, account_id: int, **updates) -> CommandResult:
    """
    Update an existing account.

    `parent_id` may be passed as None to detach the account from its parent.
    """
    require(actor, "accounts.manage")

    try:
        account = Account.objects.select_for_update().get(pk=account_id)
    except Account.DoesNotExist:
        return CommandResult.fail("Account not found.")

    if "code" in updates and updates["code"] != account.code:
        if Account.objects.filter(code=updates["code"]).exclude(pk=account.id).exists():
            return CommandResult.fail(f"Account code '{updates['code']}' already exists.")

    if "account_type" in updates and updates["account_type"] != account.account_type:
        allowed, reason = can_change_account_type(account)
        if not allowed:
            return CommandResult.fail(reason)

    changed = []
    if "parent_id" in updates and updates["parent_id"] != account.parent_id:
        parent_id = updates["parent_id"]
        parent = None
        if parent_id:
            try:
                parent = Account.objects.get(pk=parent_id)
            except Account.DoesNotExist:
                return CommandResult.fail(f"Parent account with ID {parent_id} does not exist.")
        allowed, reason = can_set_parent(account, parent)
        if not allowed:
            return CommandResult.fail(reason)
        account.parent = parent
        changed.append("parent")

    for field, value in updates.items():
        if field in ACCOUNT_FIELDS and getattr(account, field) != value:
            setattr(account, field, value)
            changed.append(field)

    if not changed:
        return CommandResult.ok(account)

    try:
        account.save()
    except ValidationError as e:
        return CommandResult.fail(_validation_message(e))

    logger.info("Account updated", extra={"account_id": account.id, "fields": changed})
    return CommandResult.ok(account)


@transaction.atomic
def delete_account(actor: ActorContext, account_id: int) -> CommandResult:
    """Delete an account that has no children and no transaction records."""
    require(actor, "accounts.manage")

    try:
        account = Account.objects.select_for_update().get(pk=account_id)
    except Account.DoesNotExist:
        return CommandResult.fail("Account not found.")

    allowed, reason = can_delete_account(account)
    if not allowed:
        return CommandResult.fail(reason)

    code = account.code
    account.delete()
    logger.info("Account deleted", extra={"account_id": account_id, "code": code})
    return CommandResult.ok({"deleted": True})


# =============================================================================
# Transaction Helpers
# =============================================================================

def _highest_number_suffix(prefix: str) -> int:
    numbers = TransactionHeader.objects.filter(number__startswith=prefix).values_list("number", flat=True)
    highest = 0
    for number in numbers:
        match = _NUMBER_SUFFIX.search(number)
        if match:
            highest = max(highest, int(match.group(1)))
    return highest


def _lock_sequence(prefix: str) -> TransactionSequence:
    try:
        return TransactionSequence.objects.select_for_update().get(prefix=prefix)
    except TransactionSequence.DoesNotExist:
        try:
            with transaction.atomic():
                return TransactionSequence.objects.create(prefix=prefix, next_value=1)
        except IntegrityError:
            return TransactionSequence.objects.select_for_update().get(prefix=prefix)


@transaction.atomic
def generate_transaction_number(transaction_type: str, on_date, reserve: bool = True) -> str:
    """
    Next transaction number for a type and month.

    Format: {TYPE}-{YYYYMM}-{NNN}. Values come from the TransactionSequence
    row for the {TYPE}-{YYYYMM}- prefix, locked for the rest of the
    surrounding transaction. Numbers typed in by hand are honoured: the
    value never falls at or below the highest suffix already in use.

    With reserve=False the number is only previewed and the counter is
    left untouched.
    """
    prefix = f"{transaction_type}-{on_date:%Y%m}-"
    if not reserve:
        seq = TransactionSequence.objects.filter(prefix=prefix).first()
        next_value = seq.next_value if seq else 1
        return f"{prefix}{max(next_value, _highest_number_suffix(prefix) + 1):03d}"

    seq = _lock_sequence(prefix)
    value = max(seq.next_value, _highest_number_suffix(prefix) + 1)
    seq.next_value = value + 1
    seq.save(update_fields=["next_value", "updated_at"])
    return f"{prefix}{value:03d}"


def _insert_header(**fields):
    """Create a header, reporting a number taken by a concurrent create as an error."""
    try:
        with transaction.atomic():
            return TransactionHeader.objects.create(**fields), None
    except IntegrityError:
        return None, f"Transaction number '{fields['number']}' already exists."


def recalculate_totals(header: TransactionHeader) -> TransactionHeader:
    """Store the sums of the header's details on the header."""
    header.total_debit, header.total_credit = header.detail_totals()
    header.save(update_fields=["total_debit", "total_credit", "updated_at"])
    return header


def _resolve_user(actor: ActorContext, user_id):
    if user_id is None:
        return actor.user, ""
    try:
        return User.objects.get(pk=user_id), ""
    except User.DoesNotExist:
        return None, "User not found."


def _resolve_relation(relation_id):
    if relation_id is None:
        return None, ""
    try:
        return Relation.objects.get(pk=relation_id), ""
    except Relation.DoesNotExist:
        return None, "Relation not found."


def _resolve_account(account_id):
    try:
        return Account.objects.get(pk=account_id), ""
    except Account.DoesNotExist:
        return None, f"Account with ID {account_id} not found."


def _money(value) -> Decimal:
    if value is None:
        return ZERO
    return Decimal(str(value)).quantize(MONEY_Q)


def _next_line_no(header: TransactionHeader) -> int:
    last = header.details.order_by("-line_no").values_list("line_no", flat=True).first()
    return (last or 0) + 1


# =============================================================================
# Transaction Commands
# =============================================================================

@transaction.atomic
def create_transaction(
    actor: ActorContext,
    date,
    transaction_type: str,
    details: list,
    description: str = "",
    relation_id: int = None,
    user_id: int = None,
    number: str = None,
) -> CommandResult:
    """
    Create a complete transaction (header + details) in one step.

    Args:
        actor: The actor context
        date: Transaction date
        transaction_type: One of TransactionHeader.TransactionType choices
        details: List of dicts with account_id, debit, credit,
                 description and optional line_no
        description: Header description
        relation_id: Optional business relation
        user_id: Owner of the transaction (defaults to the actor)
        number: Transaction number; generated when omitted

    Returns:
        CommandResult with the created TransactionHeader or error
    """
    require(actor, "journal.create")

    if not details:
        return CommandResult.fail("Transaction must have at least one detail.")

    lines = []
    for index, line in enumerate(details, start=1):
        debit = _money(line.get("debit"))
        credit = _money(line.get("credit"))
        allowed, reason = validate_line_amounts(debit, credit)
        if not allowed:
            return CommandResult.fail(f"Line {index}: {reason}")
        lines.append((index, line, debit, credit))

    total_debit = sum((debit for _, _, debit, _ in lines), ZERO)
    total_credit = sum((credit for _, _, _, credit in lines), ZERO)
    allowed, _ = validate_balance(total_debit, total_credit)
    if not allowed:
        return CommandResult.fail(
            f"Total debit must equal total kredit. Debit={total_debit} Kredit={total_credit}"
        )

    user, error = _resolve_user(actor, user_id)
    if error:
        return CommandResult.fail(error)

    relation, error = _resolve_relation(relation_id)
    if error:
        return CommandResult.fail(error)

    accounts = {}
    for _, line, _, _ in lines:
        account_id = line.get("account_id")
        if account_id not in accounts:
            account, error = _resolve_account(account_id)
            if error:
                return CommandResult.fail(error)
            accounts[account_id] = account

    if number:
        if TransactionHeader.objects.filter(number=number).exists():
            return CommandResult.fail(f"Transaction number '{number}' already exists.")
    else:
        number = generate_transaction_number(transaction_type, date)

    header, error = _insert_header(
        number=number,
        date=date,
        transaction_type=transaction_type,
        description=description,
        relation=relation,
        user=user,
        total_debit=total_debit,
        total_credit=total_credit,
    )
    if error:
        return CommandResult.fail(error)
    TransactionDetail.objects.bulk_create([
        TransactionDetail(
            header=header,
            account=accounts[line.get("account_id")],
            description=line.get("description", ""),
            debit=debit,
            credit=credit,
            line_no=line.get("line_no") or index,
        )
        for index, line, debit, credit in lines
    ])

    logger.info(
        "Transaction created",
        extra={"transaction_id": header.id, "number": number, "details": len(lines)},
    )
    return CommandResult.ok(header)


@transaction.atomic
def create_transaction_header(
    actor: ActorContext,
    date,
    transaction_type: str,
    description: str = "",
    relation_id: int = None,
    user_id: int = None,
    number: str = None,
) -> CommandResult:
    """Create a header with no details; totals start at zero."""
    require(actor, "journal.create")

    user, error = _resolve_user(actor, user_id)
    if error:
        return CommandResult.fail(error)

    relation, error = _resolve_relation(relation_id)
    if error:
        return CommandResult.fail(error)

    if number:
        if TransactionHeader.objects.filter(number=number).exists():
            return CommandResult.fail(f"Transaction number '{number}' already exists.")
    else:
        number = generate_transaction_number(transaction_type, date)

    header, error = _insert_header(
        number=number,
        date=date,
        transaction_type=transaction_type,
        description=description,
        relation=relation,
        user=user,
    )
    if error:
        return CommandResult.fail(error)
    logger.info("Transaction header created", extra={"transaction_id": header.id, "number": number})
    return CommandResult.ok(header)


@transaction.atomic
def add_transaction_detail(
    actor: ActorContext,
    header_id: int,
    account_id: int,
    debit=ZERO,
    credit=ZERO,
    description: str = "",
    line_no: int = None,
) -> CommandResult:
    """Append a detail line to an unposted transaction and refresh its totals."""
    require(actor, "journal.edit")

    try:
        header = TransactionHeader.objects.select_for_update().get(pk=header_id)
    except TransactionHeader.DoesNotExist:
        return CommandResult.fail("Transaction header not found.")

    if header.is_posted:
        return CommandResult.fail("Cannot add detail to posted transaction.")

    account, error = _resolve_account(account_id)
    if error:
        return CommandResult.fail(error)

    debit, credit = _money(debit), _money(credit)
    allowed, reason = validate_line_amounts(debit, credit)
    if not allowed:
        return CommandResult.fail(reason)

    detail = TransactionDetail.objects.create(
        header=header,
        account=account,
        description=description,
        debit=debit,
        credit=credit,
        line_no=line_no or _next_line_no(header),
    )
    recalculate_totals(header)
    return CommandResult.ok(detail)


@transaction.atomic
def update_transaction_header(actor: ActorContext, header_id: int, **updates) -> CommandResult:
    """
    Update header fields of an unposted transaction.

    Accepts: date, transaction_type, description, relation_id, user_id, number.
    """
    require(actor, "journal.edit")

    try:
        header = TransactionHeader.objects.select_for_update().get(pk=header_id)
    except TransactionHeader.DoesNotExist:
        return CommandResult.fail("Transaction header not found.")

    allowed, reason = can_edit_transaction(header)
    if not allowed:
        return CommandResult.fail(reason)

    changed = []

    if "user_id" in updates and updates["user_id"] is not None and updates["user_id"] != header.user_id:
        user, error = _resolve_user(actor, updates["user_id"])
        if error:
            return CommandResult.fail(error)
        header.user = user
        changed.append("user")

    if "relation_id" in updates and updates["relation_id"] != header.relation_id:
        relation, error = _resolve_relation(updates["relation_id"])
        if error:
            return CommandResult.fail(error)
        header.relation = relation
        changed.append("relation")

    if "number" in updates:
        updates["number"] = (updates["number"] or "").strip()
        if not updates["number"]:
            return CommandResult.fail("Transaction number cannot be blank.")

    if updates.get("number") and updates["number"] != header.number:
        if TransactionHeader.objects.filter(number=updates["number"]).exclude(pk=header.id).exists():
            return CommandResult.fail(f"Transaction number '{updates['number']}' already exists.")

    for field in ("date", "transaction_type", "description", "number"):
        if field in updates and getattr(header, field) != updates[field]:
            setattr(header, field, updates[field])
            changed.append(field)

    if changed:
        try:
            with transaction.atomic():
                header.save(update_fields=changed + ["updated_at"])
        except IntegrityError:
            return CommandResult.fail(f"Transaction number '{header.number}' already exists.")
        logger.info("Transaction header updated", extra={"transaction_id": header.id, "fields": changed})
    return CommandResult.ok(header)


@transaction.atomic
def update_transaction_detail(actor: ActorContext, detail_id: int, **updates) -> CommandResult:
    """
    Update a detail line of an unposted transaction and refresh totals.

    Accepts: account_id, description, debit, credit, line_no.
    """
    require(actor, "journal.edit")

    try:
        detail = TransactionDetail.objects.select_related("header").get(pk=detail_id)
    except TransactionDetail.DoesNotExist:
        return CommandResult.fail("Transaction detail not found.")

    header = TransactionHeader.objects.select_for_update().get(pk=detail.header_id)
    allowed, reason = can_modify_details(header)
    if not allowed:
        return CommandResult.fail(reason)

    if "account_id" in updates and updates["account_id"] != detail.account_id:
        account, error = _resolve_account(updates["account_id"])
        if error:
            return CommandResult.fail(error)
        detail.account = account

    if "debit" in updates:
        detail.debit = _money(updates["debit"])
    if "credit" in updates:
        detail.credit = _money(updates["credit"])
    allowed, reason = validate_line_amounts(detail.debit, detail.credit)
    if not allowed:
        return CommandResult.fail(reason)

    for field in ("description", "line_no"):
        if field in updates and updates[field] is not None:
            setattr(detail, field, updates[field])

    detail.save()
    recalculate_totals(header)
    return CommandResult.ok(detail)


@transaction.atomic
def delete_transaction_detail(actor: ActorContext, detail_id: int) -> CommandResult:
    require(actor, "journal.edit")

    try:
        detail = TransactionDetail.objects.get(pk=detail_id)
    except TransactionDetail.DoesNotExist:
        return CommandResult.fail("Transaction detail not found.")

    header = TransactionHeader.objects.select_for_update().get(pk=detail.header_id)
    allowed, reason = can_modify_details(header)
    if not allowed:
        return CommandResult.fail(reason)

    detail.delete()
    recalculate_totals(header)
    return CommandResult.ok({"deleted": True})


@transaction.atomic
def delete_transaction(actor: ActorContext, header_id: int) -> CommandResult:
    """Delete an unposted transaction together with its details."""
    require(actor, "journal.edit")

    try:
        header = TransactionHeader.objects.select_for_update().get(pk=header_id)
    except TransactionHeader.DoesNotExist:
        return CommandResult.fail("Transaction header not found.")

    allowed, reason = can_delete_transaction(header)
    if not allowed:
        return CommandResult.fail(reason)

    number = header.number
    header.details.all().delete()
    header.delete()
    logger.info("Transaction deleted", extra={"transaction_id": header_id, "number": number})
    return CommandResult.ok({"deleted": True})


@transaction.atomic
def post_transaction(actor: ActorContext, header_id: int) -> CommandResult:
    """
    Post a transaction, making it final and visible to reports.

    Returns:
        CommandResult with posted TransactionHeader or error
    """
    require(actor, "journal.post")

    try:
        header = TransactionHeader.objects.select_for_update().get(pk=header_id)
    except TransactionHeader.DoesNotExist:
        return CommandResult.fail("Transaction header not found.")

    details = list(header.details.select_related("account"))
    allowed, reason = can_post_transaction(header, details)
    if not allowed:
        logger.warning(
            "Posting rejected: %s", reason,
            extra={"transaction_id": header.id, "number": header.number},
        )
        return CommandResult.fail(reason)

    recalculate_totals(header)
    header.is_posted = True
    header.posted_at = timezone.now()
    header.posted_by = actor.user
    header.save(update_fields=["is_posted", "posted_at", "posted_by", "updated_at"])

    logger.info(
        "Transaction posted",
        extra={
            "transaction_id": header.id,
            "number": header.number,
            "total": str(header.total_debit),
        },
    )
    return CommandResult.ok(header)


@transaction.atomic
def unpost_transaction(actor: ActorContext, header_id: int) -> CommandResult:
    """Return a posted transaction to the editable state."""
    require(actor, "journal.unpost")

    try:
        header = TransactionHeader.objects.select_for_update().get(pk=header_id)
    except TransactionHeader.DoesNotExist:
        return CommandResult.fail("Transaction header not found.")

    allowed, reason = can_unpost_transaction(header)
    if not allowed:
        return CommandResult.fail(reason)

    header.is_posted = False
    header.posted_at = None
    header.posted_by = None
    header.save(update_fields=["is_posted", "posted_at", "posted_by", "updated_at"])

    logger.info("Transaction unposted", extra={"transaction_id": header.id, "number": header.number})
    return CommandResult.ok(header)


def validate_transaction_balance(header_id: int) -> CommandResult:
    """Report whether the details of a transaction balance."""
    try:
        header = TransactionHeader.objects.get(pk=header_id)
    except TransactionHeader.DoesNotExist:
        return CommandResult.fail("Transaction header not found.")

    total_debit, total_credit = header.detail_totals()
    is_balanced, _ = validate_balance(total_debit, total_credit)
    return CommandResult.ok({
        "header_id": header.id,
        "is_balanced": is_balanced,
        "total_debit": total_debit,
        "total_credit": total_credit,
        "difference": total_debit - total_credit,
    })

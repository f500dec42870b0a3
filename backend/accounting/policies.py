# accounting/policies.py
"""
Business policy functions for accounting operations.

Policies answer: "Is this action allowed given the current state?"
They do NOT perform the action. That's the command's job.

Workflow rules (posted-transaction immutability, posting preconditions)
are enforced HERE, not in model.save(). Model.save() only enforces
true invariants.

Usage:
    from accounting.policies import can_post_transaction

    allowed, reason = can_post_transaction(header, details)
    if not allowed:
        return CommandResult.fail(reason)

Design Principles:
1. Policies are pure functions (no side effects)
2. Policies return (bool, str) tuples for clear error messages
3. Commands compose policies as needed
"""

from decimal import Decimal

from accounting.models import MONEY_Q, ZERO


# =============================================================================
# Account Policies
# =============================================================================

def can_delete_account(account) -> tuple[bool, str]:
    """
    Check if an account can be deleted.

    Rules:
    - Cannot have child accounts
    - Cannot have transaction records
    """
    if account.children.exists():
        return False, "Cannot delete account that has child accounts."

    if account.transaction_details.exists():
        return False, "Cannot delete account that has transaction records."

    return True, ""


def can_change_account_type(account) -> tuple[bool, str]:
    """An account's type is fixed once transactions reference it."""
    if account.transaction_details.exists():
        return False, "Cannot change type of an account with transactions."
    return True, ""


def can_set_parent(account, parent) -> tuple[bool, str]:
    """
    Check if `parent` may become the parent of `account`.

    Rules:
    - An account cannot be its own parent
    - The parent cannot be a descendant of the account (no cycles)
    """
    if parent is None:
        return True, ""

    if account.pk and parent.pk == account.pk:
        return False, "Account cannot be its own parent."

    if account.pk and any(a.pk == account.pk for a in parent.get_ancestors()):
        return False, "Parent account cannot be a descendant of the account."

    return True, ""


def can_post_to_account(account) -> tuple[bool, str]:
    """Transactions can only be posted to active accounts."""
    if not account.is_postable:
        return False, f"Cannot post to inactive account: {account.code}"
    return True, ""


# =============================================================================
# Transaction Policies
# =============================================================================

def can_edit_transaction(header) -> tuple[bool, str]:
    """Posted transactions are immutable until unposted."""
    if header.is_posted:
        return False, "Cannot update posted transaction."
    return True, ""


def can_modify_details(header) -> tuple[bool, str]:
    """Details can be added, changed or removed only while unposted."""
    if header.is_posted:
        return False, "Cannot modify details of posted transaction."
    return True, ""


def can_delete_transaction(header) -> tuple[bool, str]:
    if header.is_posted:
        return False, "Cannot delete posted transaction."
    return True, ""


def validate_line_amounts(debit: Decimal, credit: Decimal) -> tuple[bool, str]:
    """
    Per-line rules:
    - No negative amounts
    - Not both debit and credit
    - Not both zero
    """
    if debit < 0 or credit < 0:
        return False, "Debit/Credit cannot be negative."
    if debit > 0 and credit > 0:
        return False, "A line cannot have both debit and credit."
    if debit == 0 and credit == 0:
        return False, "A line cannot have both debit and credit = 0."
    return True, ""


def validate_balance(total_debit: Decimal, total_credit: Decimal) -> tuple[bool, str]:
    """Debit and credit totals must match exactly at two decimal places."""
    debit_total = (total_debit or ZERO).quantize(MONEY_Q)
    credit_total = (total_credit or ZERO).quantize(MONEY_Q)
    if debit_total != credit_total:
        return False, f"Transaction is not balanced. Debit={debit_total} Credit={credit_total}"
    return True, ""


def can_post_transaction(header, details) -> tuple[bool, str]:
    """
    Check if a transaction can be posted.

    Rules:
    - Must not already be posted
    - Must have at least 2 details
    - Totals cannot both be zero
    - Must be balanced
    - Every detail must use an active account
    """
    if header.is_posted:
        return False, "Transaction is already posted."

    if len(details) < 2:
        return False, "Transaction must have at least 2 details to be posted."

    debit_total = sum((d.debit for d in details), ZERO).quantize(MONEY_Q)
    credit_total = sum((d.credit for d in details), ZERO).quantize(MONEY_Q)

    if debit_total == ZERO and credit_total == ZERO:
        return False, "Transaction totals cannot both be zero."

    allowed, reason = validate_balance(debit_total, credit_total)
    if not allowed:
        return False, reason

    for detail in details:
        allowed, reason = can_post_to_account(detail.account)
        if not allowed:
            return False, reason

    return True, ""


def can_unpost_transaction(header) -> tuple[bool, str]:
    if not header.is_posted:
        return False, "Transaction is not posted."
    return True, ""


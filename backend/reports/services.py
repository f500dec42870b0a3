# reports/services.py
"""
Read-only report computations.

Every financial report reads POSTED transactions only. Balances are
computed straight from transaction details:

    opening  = account opening balance + posted movement before from_date
    movement = posted debit / credit within [from_date, to_date]
    closing  = opening + movement, signed by the account's normal balance

Functions return plain dicts and lists holding Decimal amounts. Views
format them for JSON; reports/exports.py flattens them into rows.
"""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from django.db.models import Sum
from django.utils import timezone

from accounting.models import ZERO, Account, TransactionDetail, TransactionHeader
from relations.models import Relation

AGING_BUCKETS = ("0-30", "31-60", "61-90", ">90")


@dataclass(frozen=True)
class ReportFilter:
    """Date range and optional account / relation narrowing."""
    from_date: date | None = None
    to_date: date | None = None
    account_id: int | None = None
    relation_id: int | None = None

    @property
    def end(self) -> date:
        return self.to_date or timezone.localdate()


# =============================================================================
# Helpers
# =============================================================================

def _posted_details():
    return TransactionDetail.objects.filter(header__is_posted=True)


def _movement_by_account(start=None, end=None, before=None, details=None) -> dict:
    """Map account_id -> (debit, credit) of posted details in a window."""
    qs = details if details is not None else _posted_details()
    if start:
        qs = qs.filter(header__date__gte=start)
    if end:
        qs = qs.filter(header__date__lte=end)
    if before:
        qs = qs.filter(header__date__lt=before)

    rows = qs.order_by().values("account_id").annotate(
        debit_total=Sum("debit"),
        credit_total=Sum("credit"),
    )
    return {
        row["account_id"]: (row["debit_total"] or ZERO, row["credit_total"] or ZERO)
        for row in rows
    }


def _type_sorted(accounts) -> list:
    return sorted(accounts, key=lambda a: (Account.TYPE_ORDER.index(a.account_type), a.code))


def _active_accounts(*types):
    return Account.objects.filter(account_type__in=types, is_active=True)


def balance_rows(accounts, report_filter: ReportFilter) -> list[dict]:
    """Opening, period debit/credit and closing balance for each account."""
    before = _movement_by_account(before=report_filter.from_date) if report_filter.from_date else {}
    within = _movement_by_account(start=report_filter.from_date, end=report_filter.end)

    rows = []
    for account in accounts:
        debit_before, credit_before = before.get(account.id, (ZERO, ZERO))
        opening = account.opening_balance + account.signed_movement(debit_before, credit_before)
        debit, credit = within.get(account.id, (ZERO, ZERO))
        rows.append({
            "account_id": account.id,
            "account_code": account.code,
            "account_name": account.name,
            "account_type": account.account_type,
            "opening_balance": opening,
            "debit": debit,
            "credit": credit,
            "closing_balance": opening + account.signed_movement(debit, credit),
        })
    return rows


def _sum(rows, key) -> Decimal:
    return sum((row[key] for row in rows), ZERO)


# =============================================================================
# Financial Statements
# =============================================================================

def financial_position(report_filter: ReportFilter) -> dict:
    """
    Balance sheet (laporan posisi keuangan) as of to_date.

    Current earnings are revenue minus expense up to to_date, so that
    assets == liabilities + equity + current earnings.
    """
    Type = Account.AccountType
    accounts = _type_sorted(_active_accounts(Type.ASET, Type.KEWAJIBAN, Type.EKUITAS))
    rows = balance_rows(accounts, report_filter)

    assets = [r for r in rows if r["account_type"] == Type.ASET]
    liabilities = [r for r in rows if r["account_type"] == Type.KEWAJIBAN]
    equity = [r for r in rows if r["account_type"] == Type.EKUITAS]

    result_rows = balance_rows(
        _active_accounts(Type.PENDAPATAN, Type.BEBAN),
        ReportFilter(to_date=report_filter.end),
    )
    revenue = _sum([r for r in result_rows if r["account_type"] == Type.PENDAPATAN], "closing_balance")
    expense = _sum([r for r in result_rows if r["account_type"] == Type.BEBAN], "closing_balance")
    current_earnings = revenue - expense

    total_assets = _sum(assets, "closing_balance")
    total_liabilities = _sum(liabilities, "closing_balance")
    total_equity = _sum(equity, "closing_balance")
    total_liabilities_and_equity = total_liabilities + total_equity + current_earnings

    return {
        "as_of": report_filter.end,
        "assets": {"accounts": assets, "total": total_assets},
        "liabilities": {"accounts": liabilities, "total": total_liabilities},
        "equity": {"accounts": equity, "total": total_equity},
        "current_earnings": current_earnings,
        "total_assets": total_assets,
        "total_liabilities": total_liabilities,
        "total_equity": total_equity,
        "total_liabilities_and_equity": total_liabilities_and_equity,
        "is_balanced": total_assets == total_liabilities_and_equity,
    }


def income_statement(report_filter: ReportFilter) -> dict:
    """Revenue and expense movement within the range (laba rugi)."""
    Type = Account.AccountType
    accounts = _type_sorted(_active_accounts(Type.PENDAPATAN, Type.BEBAN))
    rows = balance_rows(accounts, report_filter)

    def line(row):
        return {
            "account_id": row["account_id"],
            "account_code": row["account_code"],
            "account_name": row["account_name"],
            "account_type": row["account_type"],
            "amount": row["closing_balance"] - row["opening_balance"],
        }

    revenue = [line(r) for r in rows if r["account_type"] == Type.PENDAPATAN]
    expenses = [line(r) for r in rows if r["account_type"] == Type.BEBAN]
    total_revenue = _sum(revenue, "amount")
    total_expense = _sum(expenses, "amount")

    return {
        "from_date": report_filter.from_date,
        "to_date": report_filter.end,
        "revenue": {"accounts": revenue, "total": total_revenue},
        "expenses": {"accounts": expenses, "total": total_expense},
        "total_revenue": total_revenue,
        "total_expense": total_expense,
        "net_income": total_revenue - total_expense,
    }


def equity_changes(report_filter: ReportFilter) -> dict:
    """Perubahan ekuitas: equity accounts plus net income for the range."""
    accounts = _active_accounts(Account.AccountType.EKUITAS).order_by("code")
    rows = balance_rows(accounts, report_filter)
    net_income = income_statement(report_filter)["net_income"]

    opening_equity = _sum(rows, "opening_balance")
    return {
        "from_date": report_filter.from_date,
        "to_date": report_filter.end,
        "accounts": rows,
        "net_income": net_income,
        "opening_equity": opening_equity,
        "closing_equity": _sum(rows, "closing_balance") + net_income,
    }


def _cash_flow_category(account) -> str:
    Type = Account.AccountType
    if account.account_type in (Type.PENDAPATAN, Type.BEBAN):
        return "operating"
    if account.subtype in (Account.Subtype.PIUTANG, Account.Subtype.HUTANG):
        return "operating"
    if account.account_type == Type.ASET:
        return "investing"
    return "financing"


def _cash_balance(as_of_exclusive) -> Decimal:
    cash_accounts = Account.objects.filter(subtype=Account.Subtype.KAS)
    movement = _movement_by_account(before=as_of_exclusive) if as_of_exclusive else {}
    total = ZERO
    for account in cash_accounts:
        debit, credit = movement.get(account.id, (ZERO, ZERO))
        total += account.opening_balance + account.signed_movement(debit, credit)
    return total


def cash_flow(report_filter: ReportFilter) -> dict:
    """
    Arus kas. Each posted transaction touching a KAS account is classified
    by its largest non-cash line. Transactions moving cash between KAS
    accounts only are left out.
    """
    headers = TransactionHeader.objects.filter(
        is_posted=True,
        details__account__subtype=Account.Subtype.KAS,
        date__lte=report_filter.end,
    )
    if report_filter.from_date:
        headers = headers.filter(date__gte=report_filter.from_date)
    headers = headers.distinct().order_by("date", "number").prefetch_related("details__account")

    activities = {"operating": [], "investing": [], "financing": []}
    for header in headers:
        details = list(header.details.all())
        cash_lines = [d for d in details if d.account.subtype == Account.Subtype.KAS]
        other_lines = [d for d in details if d.account.subtype != Account.Subtype.KAS]
        if not other_lines:
            continue

        amount = sum((d.debit - d.credit for d in cash_lines), ZERO)
        counterpart = max(other_lines, key=lambda d: d.amount)
        activities[_cash_flow_category(counterpart.account)].append({
            "transaction_id": header.id,
            "number": header.number,
            "date": header.date,
            "description": header.description,
            "account_code": counterpart.account.code,
            "account_name": counterpart.account.name,
            "amount": amount,
        })

    totals = {key: _sum(items, "amount") for key, items in activities.items()}
    net_cash_flow = sum(totals.values(), ZERO)
    opening_cash = _cash_balance(report_filter.from_date)

    return {
        "from_date": report_filter.from_date,
        "to_date": report_filter.end,
        "operating": activities["operating"],
        "investing": activities["investing"],
        "financing": activities["financing"],
        "total_operating": totals["operating"],
        "total_investing": totals["investing"],
        "total_financing": totals["financing"],
        "net_cash_flow": net_cash_flow,
        "opening_cash": opening_cash,
        "closing_cash": opening_cash + net_cash_flow,
    }


# =============================================================================
# Journal & Ledgers
# =============================================================================

def journal(report_filter: ReportFilter) -> dict:
    """All transactions in range, posted or not, with their details."""
    headers = TransactionHeader.objects.filter(date__lte=report_filter.end)
    if report_filter.from_date:
        headers = headers.filter(date__gte=report_filter.from_date)
    if report_filter.account_id:
        headers = headers.filter(details__account_id=report_filter.account_id).distinct()
    if report_filter.relation_id:
        headers = headers.filter(relation_id=report_filter.relation_id)
    headers = headers.select_related("relation").prefetch_related("details__account").order_by("date", "number")

    transactions = []
    for header in headers:
        transactions.append({
            "transaction_id": header.id,
            "number": header.number,
            "date": header.date,
            "transaction_type": header.transaction_type,
            "description": header.description,
            "relation_name": header.relation.name if header.relation else None,
            "is_posted": header.is_posted,
            "total_debit": header.total_debit,
            "total_credit": header.total_credit,
            "details": [
                {
                    "line_no": d.line_no,
                    "account_code": d.account.code,
                    "account_name": d.account.name,
                    "description": d.description,
                    "debit": d.debit,
                    "credit": d.credit,
                }
                for d in header.details.all()
            ],
        })

    return {
        "from_date": report_filter.from_date,
        "to_date": report_filter.end,
        "transactions": transactions,
        "total_debit": _sum(transactions, "total_debit"),
        "total_credit": _sum(transactions, "total_credit"),
    }


def account_ledger(account: Account, report_filter: ReportFilter) -> dict:
    """Buku besar of one account with a running balance."""
    opening = account.opening_balance
    if report_filter.from_date:
        debit, credit = _movement_by_account(
            before=report_filter.from_date,
            details=_posted_details().filter(account=account),
        ).get(account.id, (ZERO, ZERO))
        opening += account.signed_movement(debit, credit)

    lines = _posted_details().filter(account=account, header__date__lte=report_filter.end)
    if report_filter.from_date:
        lines = lines.filter(header__date__gte=report_filter.from_date)
    if report_filter.relation_id:
        lines = lines.filter(header__relation_id=report_filter.relation_id)
    lines = lines.select_related("header").order_by("header__date", "header__number", "line_no", "id")

    running = opening
    entries = []
    for line in lines:
        running += account.signed_movement(line.debit, line.credit)
        entries.append({
            "transaction_id": line.header_id,
            "number": line.header.number,
            "date": line.header.date,
            "description": line.description or line.header.description,
            "debit": line.debit,
            "credit": line.credit,
            "balance": running,
        })

    return {
        "account_id": account.id,
        "account_code": account.code,
        "account_name": account.name,
        "account_type": account.account_type,
        "normal_balance": account.normal_balance,
        "opening_balance": opening,
        "entries": entries,
        "total_debit": _sum(entries, "debit"),
        "total_credit": _sum(entries, "credit"),
        "closing_balance": running,
    }


def general_ledger(report_filter: ReportFilter) -> dict:
    """Ledger of every active account, or of the filtered account only."""
    if report_filter.account_id:
        accounts = Account.objects.filter(pk=report_filter.account_id)
    else:
        accounts = Account.objects.filter(is_active=True).order_by("code")

    return {
        "from_date": report_filter.from_date,
        "to_date": report_filter.end,
        "accounts": [account_ledger(account, report_filter) for account in accounts],
    }


def account_balance(account: Account, as_of: date) -> dict:
    """Balance of an account at the end of `as_of`."""
    debit, credit = _movement_by_account(
        end=as_of,
        details=_posted_details().filter(account=account),
    ).get(account.id, (ZERO, ZERO))
    return {
        "account_id": account.id,
        "account_code": account.code,
        "account_name": account.name,
        "normal_balance": account.normal_balance,
        "as_of": as_of,
        "balance": account.opening_balance + account.signed_movement(debit, credit),
    }


def account_hierarchy() -> list[dict]:
    """The chart of accounts as a nested tree, roots and children by code."""
    nodes = {}
    roots = []
    accounts = list(Account.objects.order_by("code"))
    for account in accounts:
        nodes[account.id] = {
            "id": account.id,
            "code": account.code,
            "name": account.name,
            "account_type": account.account_type,
            "subtype": account.subtype,
            "is_active": account.is_active,
            "children": [],
        }
    for account in accounts:
        if account.parent_id in nodes:
            nodes[account.parent_id]["children"].append(nodes[account.id])
        else:
            roots.append(nodes[account.id])
    return roots


# =============================================================================
# Receivables & Payables
# =============================================================================

_SUBLEDGERS = {
    "receivable": (Relation.RelationType.PELANGGAN, Account.Subtype.PIUTANG),
    "payable": (Relation.RelationType.PEMASOK, Account.Subtype.HUTANG),
}


def _increase(kind: str, debit: Decimal, credit: Decimal) -> Decimal:
    # Receivables grow on debit, payables on credit.
    return debit - credit if kind == "receivable" else credit - debit


def _subledger_lines(kind: str):
    relation_type, subtype = _SUBLEDGERS[kind]
    return _posted_details().filter(
        account__subtype=subtype,
        header__relation__relation_type=relation_type,
    )


def _relations(kind: str, relation_id=None):
    relation_type, _ = _SUBLEDGERS[kind]
    relations = Relation.objects.filter(relation_type=relation_type).order_by("code")
    if relation_id:
        relations = relations.filter(pk=relation_id)
    return relations


def subledger(kind: str, report_filter: ReportFilter) -> dict:
    """Saldo piutang / hutang per relation."""
    lines = _subledger_lines(kind)

    def by_relation(qs):
        rows = qs.order_by().values("header__relation_id").annotate(
            debit_total=Sum("debit"),
            credit_total=Sum("credit"),
        )
        return {
            row["header__relation_id"]: (row["debit_total"] or ZERO, row["credit_total"] or ZERO)
            for row in rows
        }

    before = by_relation(lines.filter(header__date__lt=report_filter.from_date)) if report_filter.from_date else {}
    within_qs = lines.filter(header__date__lte=report_filter.end)
    if report_filter.from_date:
        within_qs = within_qs.filter(header__date__gte=report_filter.from_date)
    within = by_relation(within_qs)

    rows = []
    for relation in _relations(kind, report_filter.relation_id):
        debit_before, credit_before = before.get(relation.id, (ZERO, ZERO))
        opening = _increase(kind, debit_before, credit_before)
        debit, credit = within.get(relation.id, (ZERO, ZERO))
        rows.append({
            "relation_id": relation.id,
            "relation_code": relation.code,
            "relation_name": relation.name,
            "opening_balance": opening,
            "debit": debit,
            "credit": credit,
            "closing_balance": opening + _increase(kind, debit, credit),
        })

    return {
        "from_date": report_filter.from_date,
        "to_date": report_filter.end,
        "relations": rows,
        "total_opening_balance": _sum(rows, "opening_balance"),
        "total_debit": _sum(rows, "debit"),
        "total_credit": _sum(rows, "credit"),
        "total_closing_balance": _sum(rows, "closing_balance"),
    }


def _bucket(age_days: int) -> str:
    if age_days <= 30:
        return "0-30"
    if age_days <= 60:
        return "31-60"
    if age_days <= 90:
        return "61-90"
    return ">90"


def aging(kind: str, as_of: date, relation_id=None) -> dict:
    """
    Umur piutang / hutang as of a date.

    Increases are settled first-in-first-out by the decreases; whatever
    stays open is bucketed by its age in days. A relation whose decreases
    exceed its increases shows the excess as `unapplied`.
    """
    lines = _subledger_lines(kind).filter(header__date__lte=as_of).select_related("header")
    if relation_id:
        lines = lines.filter(header__relation_id=relation_id)
    lines = lines.order_by("header__date", "header__id", "line_no")

    per_relation = {}
    for line in lines:
        amount = _increase(kind, line.debit, line.credit)
        entry = per_relation.setdefault(line.header.relation_id, {"open": [], "settled": ZERO})
        if amount > 0:
            entry["open"].append([line.header.date, amount])
        else:
            entry["settled"] += -amount

    rows = []
    relations = {r.id: r for r in _relations(kind, relation_id).filter(pk__in=per_relation.keys())}
    for rel_id, entry in per_relation.items():
        relation = relations.get(rel_id)
        if relation is None:
            continue

        remaining = entry["settled"]
        buckets = {name: ZERO for name in AGING_BUCKETS}
        for item_date, amount in entry["open"]:
            applied = min(amount, remaining)
            remaining -= applied
            outstanding = amount - applied
            if outstanding > 0:
                buckets[_bucket((as_of - item_date).days)] += outstanding

        total = sum(buckets.values(), ZERO) - remaining
        if total == ZERO and remaining == ZERO:
            continue
        rows.append({
            "relation_id": relation.id,
            "relation_code": relation.code,
            "relation_name": relation.name,
            "buckets": buckets,
            "unapplied": remaining,
            "total": total,
        })

    rows.sort(key=lambda r: r["relation_code"])
    return {
        "as_of": as_of,
        "relations": rows,
        "totals": {name: sum((r["buckets"][name] for r in rows), ZERO) for name in AGING_BUCKETS},
        "total": _sum(rows, "total"),
    }


# =============================================================================
# Transaction Views
# =============================================================================

def transactions_by_type(report_filter: ReportFilter) -> dict:
    """Transactions in range grouped by transaction type."""
    headers = TransactionHeader.objects.filter(date__lte=report_filter.end)
    if report_filter.from_date:
        headers = headers.filter(date__gte=report_filter.from_date)
    if report_filter.relation_id:
        headers = headers.filter(relation_id=report_filter.relation_id)
    headers = headers.order_by("date", "number")

    groups = {
        value: {"transaction_type": value, "label": label, "transactions": []}
        for value, label in TransactionHeader.TransactionType.choices
    }
    for header in headers:
        groups[header.transaction_type]["transactions"].append({
            "transaction_id": header.id,
            "number": header.number,
            "date": header.date,
            "description": header.description,
            "is_posted": header.is_posted,
            "total_debit": header.total_debit,
            "total_credit": header.total_credit,
        })

    result = []
    for group in groups.values():
        if not group["transactions"]:
            continue
        group["count"] = len(group["transactions"])
        group["total_debit"] = _sum(group["transactions"], "total_debit")
        group["total_credit"] = _sum(group["transactions"], "total_credit")
        result.append(group)

    return {"from_date": report_filter.from_date, "to_date": report_filter.end, "types": result}


def transactions_by_account(report_filter: ReportFilter) -> dict:
    """Posted detail lines in range grouped by account."""
    lines = _posted_details().filter(header__date__lte=report_filter.end)
    if report_filter.from_date:
        lines = lines.filter(header__date__gte=report_filter.from_date)
    if report_filter.account_id:
        lines = lines.filter(account_id=report_filter.account_id)
    if report_filter.relation_id:
        lines = lines.filter(header__relation_id=report_filter.relation_id)
    lines = lines.select_related("header", "account").order_by(
        "account__code", "header__date", "header__number", "line_no",
    )

    groups = {}
    for line in lines:
        group = groups.setdefault(line.account_id, {
            "account_id": line.account_id,
            "account_code": line.account.code,
            "account_name": line.account.name,
            "lines": [],
        })
        group["lines"].append({
            "transaction_id": line.header_id,
            "number": line.header.number,
            "date": line.header.date,
            "description": line.description or line.header.description,
            "debit": line.debit,
            "credit": line.credit,
        })

    for group in groups.values():
        group["count"] = len(group["lines"])
        group["total_debit"] = _sum(group["lines"], "debit")
        group["total_credit"] = _sum(group["lines"], "credit")

    return {
        "from_date": report_filter.from_date,
        "to_date": report_filter.end,
        "accounts": list(groups.values()),
    }

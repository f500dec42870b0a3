# accounts/permission_defaults.py

ROLE_DEFAULTS = {
    "ADMIN": {
        # Master data
        "companies.view",
        "companies.manage",
        "users.view",
        "users.manage",
        "accounts.view",
        "accounts.manage",
        "inventory.view",
        "inventory.manage",
        "relations.view",
        "relations.manage",

        # Journal
        "journal.view",
        "journal.create",
        "journal.edit",
        "journal.post",
        "journal.unpost",

        # Reports
        "reports.view",
        "reports.export",
    },
    "OPERATOR": {
        "companies.view",
        "users.view",
        "accounts.view",
        "accounts.manage",
        "inventory.view",
        "inventory.manage",
        "relations.view",
        "relations.manage",

        "journal.view",
        "journal.create",
        "journal.edit",
        "journal.post",

        "reports.view",
        "reports.export",
    },
    "VIEWER": {
        "companies.view",
        "accounts.view",
        "inventory.view",
        "relations.view",

        "journal.view",

        "reports.view",
    },
}


def all_permission_codes() -> set[str]:
    codes: set[str] = set()
    for s in ROLE_DEFAULTS.values():
        codes |= set(s)
    return codes


def permissions_for_role(role: str) -> frozenset[str]:
    return frozenset(ROLE_DEFAULTS.get(role, ()))

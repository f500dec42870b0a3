# relations/commands.py
"""Command layer for business relations."""

import logging

from django.db import transaction

from accounts.authz import ActorContext, require
from accounts.commands import CommandResult
from relations.models import Relation

logger = logging.getLogger(__name__)

RELATION_FIELDS = {
    "code", "name", "relation_type", "address", "phone",
    "email", "tax_id", "contact_person", "is_active",
}


@transaction.atomic
def create_relation(actor: ActorContext, code: str, name: str, relation_type: str, **fields) -> CommandResult:
    require(actor, "relations.manage")

    if Relation.objects.filter(code=code).exists():
        return CommandResult.fail(f"Relation code '{code}' already exists.")

    relation = Relation.objects.create(
        code=code,
        name=name,
        relation_type=relation_type,
        **{k: v for k, v in fields.items() if k in RELATION_FIELDS},
    )
    logger.info("Relation created", extra={"relation_id": relation.id, "code": code})
    return CommandResult.ok(relation)


@transaction.atomic
def update_relation(actor: ActorContext, relation_id: int, **updates) -> CommandResult:
    require(actor, "relations.manage")

    try:
        relation = Relation.objects.select_for_update().get(pk=relation_id)
    except Relation.DoesNotExist:
        return CommandResult.fail("Relation not found.")

    if "code" in updates and updates["code"] != relation.code:
        if Relation.objects.filter(code=updates["code"]).exclude(pk=relation_id).exists():
            return CommandResult.fail(f"Relation code '{updates['code']}' already exists.")

    changed = []
    for field, value in updates.items():
        if field in RELATION_FIELDS and getattr(relation, field) != value:
            setattr(relation, field, value)
            changed.append(field)

    if changed:
        relation.save(update_fields=changed + ["updated_at"])
        logger.info("Relation updated", extra={"relation_id": relation.id, "fields": changed})
    return CommandResult.ok(relation)


@transaction.atomic
def delete_relation(actor: ActorContext, relation_id: int) -> CommandResult:
    require(actor, "relations.manage")

    try:
        relation = Relation.objects.select_for_update().get(pk=relation_id)
    except Relation.DoesNotExist:
        return CommandResult.fail("Relation not found.")

    if relation.transactions.exists():
        return CommandResult.fail(
            f"Cannot delete relation {relation.code}: it has associated transactions."
        )

    relation.delete()
    logger.info("Relation deleted", extra={"relation_id": relation_id})
    return CommandResult.ok({"deleted": True})

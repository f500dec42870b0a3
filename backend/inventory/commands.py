# inventory/commands.py
"""Command layer for inventory groups and items."""

import logging

from django.db import transaction

from accounts.authz import ActorContext, require
from accounts.commands import CommandResult
from inventory.models import InventoryGroup, InventoryItem

logger = logging.getLogger(__name__)

GROUP_FIELDS = {"code", "name", "description"}
ITEM_FIELDS = {
    "code", "name", "unit", "purchase_price", "sale_price",
    "stock", "min_stock", "is_active",
}


# =============================================================================
# Group Commands
# =============================================================================

@transaction.atomic
def create_group(actor: ActorContext, code: str, name: str, description: str = None) -> CommandResult:
    require(actor, "inventory.manage")

    if InventoryGroup.objects.filter(code=code).exists():
        return CommandResult.fail(f"Inventory group code '{code}' already exists.")

    group = InventoryGroup.objects.create(code=code, name=name, description=description)
    logger.info("Inventory group created", extra={"group_id": group.id, "code": code})
    return CommandResult.ok(group)


@transaction.atomic
def update_group(actor: ActorContext, group_id: int, **updates) -> CommandResult:
    require(actor, "inventory.manage")

    try:
        group = InventoryGroup.objects.select_for_update().get(pk=group_id)
    except InventoryGroup.DoesNotExist:
        return CommandResult.fail("Inventory group not found.")

    if "code" in updates and updates["code"] != group.code:
        if InventoryGroup.objects.filter(code=updates["code"]).exclude(pk=group_id).exists():
            return CommandResult.fail(f"Inventory group code '{updates['code']}' already exists.")

    changed = []
    for field, value in updates.items():
        if field in GROUP_FIELDS and getattr(group, field) != value:
            setattr(group, field, value)
            changed.append(field)

    if changed:
        group.save(update_fields=changed + ["updated_at"])
    return CommandResult.ok(group)


@transaction.atomic
def delete_group(actor: ActorContext, group_id: int) -> CommandResult:
    require(actor, "inventory.manage")

    try:
        group = InventoryGroup.objects.select_for_update().get(pk=group_id)
    except InventoryGroup.DoesNotExist:
        return CommandResult.fail("Inventory group not found.")

    if group.items.exists():
        return CommandResult.fail(
            f"Cannot delete inventory group {group.code}: it still has items."
        )

    group.delete()
    logger.info("Inventory group deleted", extra={"group_id": group_id})
    return CommandResult.ok({"deleted": True})


# =============================================================================
# Item Commands
# =============================================================================

@transaction.atomic
def create_item(actor: ActorContext, code: str, name: str, group_id: int, **fields) -> CommandResult:
    require(actor, "inventory.manage")

    if InventoryItem.objects.filter(code=code).exists():
        return CommandResult.fail(f"Inventory item code '{code}' already exists.")

    if not InventoryGroup.objects.filter(pk=group_id).exists():
        return CommandResult.fail("Inventory group not found.")

    item = InventoryItem.objects.create(
        code=code,
        name=name,
        group_id=group_id,
        **{k: v for k, v in fields.items() if k in ITEM_FIELDS},
    )
    logger.info("Inventory item created", extra={"item_id": item.id, "code": code})
    return CommandResult.ok(item)


@transaction.atomic
def update_item(actor: ActorContext, item_id: int, **updates) -> CommandResult:
    require(actor, "inventory.manage")

    try:
        item = InventoryItem.objects.select_for_update().get(pk=item_id)
    except InventoryItem.DoesNotExist:
        return CommandResult.fail("Inventory item not found.")

    if "code" in updates and updates["code"] != item.code:
        if InventoryItem.objects.filter(code=updates["code"]).exclude(pk=item_id).exists():
            return CommandResult.fail(f"Inventory item code '{updates['code']}' already exists.")

    changed = []
    if "group_id" in updates and updates["group_id"] != item.group_id:
        if not InventoryGroup.objects.filter(pk=updates["group_id"]).exists():
            return CommandResult.fail("Inventory group not found.")
        item.group_id = updates["group_id"]
        changed.append("group")

    for field, value in updates.items():
        if field in ITEM_FIELDS and getattr(item, field) != value:
            setattr(item, field, value)
            changed.append(field)

    if changed:
        item.save(update_fields=changed + ["updated_at"])
    return CommandResult.ok(item)


@transaction.atomic
def update_stock(actor: ActorContext, item_id: int, quantity: int) -> CommandResult:
    """Set the on-hand quantity of an item."""
    require(actor, "inventory.manage")

    if quantity < 0:
        return CommandResult.fail("Stock cannot be negative.")

    try:
        item = InventoryItem.objects.select_for_update().get(pk=item_id)
    except InventoryItem.DoesNotExist:
        return CommandResult.fail("Inventory item not found.")

    old_stock = item.stock
    item.stock = quantity
    item.save(update_fields=["stock", "updated_at"])
    logger.info(
        "Stock updated",
        extra={"item_id": item.id, "old_stock": old_stock, "new_stock": quantity},
    )
    if item.is_low_stock:
        logger.warning("Item %s is at or below minimum stock (%s <= %s)", item.code, item.stock, item.min_stock)
    return CommandResult.ok(item)


@transaction.atomic
def delete_item(actor: ActorContext, item_id: int) -> CommandResult:
    require(actor, "inventory.manage")

    deleted, _ = InventoryItem.objects.filter(pk=item_id).delete()
    if not deleted:
        return CommandResult.fail("Inventory item not found.")

    logger.info("Inventory item deleted", extra={"item_id": item_id})
    return CommandResult.ok({"deleted": True})

"""
Attribute access control for items.

An item's free-form attributes (Item.data) may only be changed through keys
its item type allows. The allow-list is data, so it is read fresh on every
update.
"""
import logging

from models import db, Item
from errors import NotFound, ValidationError
from reservations import locked_item
from constants import DISALLOWED_KEY_MESSAGE, NON_STRING_VALUE_MESSAGE, ATTRIBUTES_OBJECT_MESSAGE

logger = logging.getLogger(__name__)


def disallowed_key_errors(item_type, changes):
    """One message per key not on item_type's allow-list, in the order given"""
    allowed = set(item_type.allowed_keys or [])
    return [DISALLOWED_KEY_MESSAGE.format(key=key) for key in changes if key not in allowed]


def apply_update(item, changes):
    """
    Merge `changes` into item.data and commit.

    All violations are reported together in one ValidationError, and none of
    the changes are applied when there is any. The merge runs under the
    item lock against a freshly read row, so concurrent updates to different
    keys both land.
    """
    if not isinstance(changes, dict):
        raise ValidationError([ATTRIBUTES_OBJECT_MESSAGE])

    with locked_item(item.id) as item:
        errors = disallowed_key_errors(item.item_type, changes)
        errors += [NON_STRING_VALUE_MESSAGE.format(key=key)
                   for key, value in changes.items() if not isinstance(value, str)]
        if errors:
            raise ValidationError(errors)

        # New dict so the JSON column registers the change
        item.data = {**(item.data or {}), **changes}
        db.session.commit()

    logger.info(f"Item {item.id} attributes updated: {', '.join(sorted(changes)) or 'none'}")
    return item


def get_item(item_id):
    item = db.session.get(Item, item_id)
    if item is None:
        raise NotFound('Item', item_id)
    return item


def update_item_attributes(item_id, changes):
    return apply_update(get_item(item_id), changes)

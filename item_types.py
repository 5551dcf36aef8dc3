"""
Item type catalogue: listing, lookup and partial updates.
"""
import logging

from models import db, ItemType
from errors import NotFound, ValidationError
from constants import (
    NAME_BLANK_MESSAGE, NAME_TAKEN_MESSAGE, ALLOWED_KEYS_MESSAGE,
    UNKNOWN_FIELD_MESSAGE, ITEM_TYPE_FIELDS, MAX_NAME_LENGTH, MAX_KEY_LENGTH
)

logger = logging.getLogger(__name__)


def list_item_types():
    return ItemType.query.order_by(ItemType.id).all()


def get_item_type(item_type_id):
    item_type = db.session.get(ItemType, item_type_id)
    if item_type is None:
        raise NotFound('Item type', item_type_id)
    return item_type


def find_item_type_by_name(name):
    item_type = ItemType.query.filter_by(name=name).first()
    if item_type is None:
        raise NotFound('Item type', name)
    return item_type


def validate_name(name, item_type_id=None):
    """Returns a list of error messages for a proposed item type name"""
    if name is None or not isinstance(name, str) or not name.strip():
        return [NAME_BLANK_MESSAGE]
    if len(name) > MAX_NAME_LENGTH:
        return [f"Name is too long (maximum is {MAX_NAME_LENGTH} characters)"]
    existing = ItemType.query.filter(ItemType.name == name.strip(), ItemType.id != item_type_id).first()
    if existing:
        return [NAME_TAKEN_MESSAGE]
    return []


def validate_allowed_keys(keys):
    if not isinstance(keys, list):
        return [ALLOWED_KEYS_MESSAGE]
    if not all(isinstance(key, str) and key and len(key) <= MAX_KEY_LENGTH for key in keys):
        return [ALLOWED_KEYS_MESSAGE]
    return []


def update_item_type(item_type_id, changes):
    """
    Apply a partial update of name and/or allowed_keys.

    Unknown fields are rejected; nothing is written unless every field is valid.
    """
    item_type = get_item_type(item_type_id)

    errors = [UNKNOWN_FIELD_MESSAGE.format(field=field)
              for field in changes if field not in ITEM_TYPE_FIELDS]
    if 'name' in changes:
        errors += validate_name(changes['name'], item_type.id)
    if 'allowed_keys' in changes:
        errors += validate_allowed_keys(changes['allowed_keys'])
    if errors:
        raise ValidationError(errors)

    if 'name' in changes:
        item_type.name = changes['name'].strip()
    if 'allowed_keys' in changes:
        # Dedupe, keep order
        item_type.allowed_keys = list(dict.fromkeys(changes['allowed_keys']))
    db.session.commit()
    logger.info(f"Item type {item_type.id} updated: {', '.join(changes) or 'no changes'}")
    return item_type

"""
Permission registry: which service may write to which item type.
"""
import logging
import secrets

from werkzeug.security import generate_password_hash, check_password_hash

from models import db, Permission, Service
from errors import ValidationError
from constants import (
    SERVICE_BLANK_MESSAGE, ITEM_TYPE_BLANK_MESSAGE,
    WRITE_INCLUSION_MESSAGE, ITEM_TYPE_TAKEN_MESSAGE,
    NAME_BLANK_MESSAGE, NAME_TAKEN_MESSAGE, API_KEY_BYTES
)

logger = logging.getLogger(__name__)


def register_service(name):
    """
    Create a service and return (service, api_key).

    Only a hash of the key is stored, so the returned key is the one chance
    to hand it to the service's operators.
    """
    name = (name or '').strip()
    if not name:
        raise ValidationError([NAME_BLANK_MESSAGE])
    if Service.query.filter_by(name=name).first():
        raise ValidationError([NAME_TAKEN_MESSAGE])

    api_key = secrets.token_urlsafe(API_KEY_BYTES)
    service = Service(name=name, api_key_hash=generate_password_hash(api_key))
    db.session.add(service)
    db.session.commit()
    logger.info(f"Service {name} registered")
    return service, api_key


def authenticate_service(name, api_key):
    """The service whose name and key match, or None"""
    if not name or not api_key:
        return None
    service = Service.query.filter_by(name=name).first()
    if service and check_password_hash(service.api_key_hash, api_key):
        return service
    return None


def find_permission(service, item_type):
    if service is None or item_type is None:
        return None
    return Permission.query.filter_by(service_id=service.id, item_type_id=item_type.id).first()


def can_write(service, item_type):
    """Write flag for (service, item_type). No record means no permission."""
    permission = find_permission(service, item_type)
    return bool(permission and permission.write)


def grant_permission(service, item_type, write):
    """
    Create the permission record for (service, item_type).

    Raises ValidationError with every violation found: missing service or
    item type, a non-boolean write flag, or an existing record for the pair.
    """
    errors = []
    if service is None:
        errors.append(SERVICE_BLANK_MESSAGE)
    if item_type is None:
        errors.append(ITEM_TYPE_BLANK_MESSAGE)
    if not isinstance(write, bool):
        errors.append(WRITE_INCLUSION_MESSAGE)
    if find_permission(service, item_type):
        errors.append(ITEM_TYPE_TAKEN_MESSAGE)
    if errors:
        raise ValidationError(errors)

    permission = Permission(service_id=service.id, item_type_id=item_type.id, write=write)
    db.session.add(permission)
    db.session.commit()
    logger.info(f"Granted {'write' if write else 'read'} on item type {item_type.name} to service {service.name}")
    return permission

#!/usr/bin/env python3
"""
Register an API service and optionally grant it permissions on item types.

Usage:
  FLASK_APP=app python create_service.py billing-sync
  FLASK_APP=app python create_service.py fleet-ops --write car --write van
  FLASK_APP=app python create_service.py dashboard --read car

The API key is printed once. Only its hash is stored.
"""
import sys
import argparse

if __name__ == '__main__':
    parser = argparse.ArgumentParser(description='Register a service and grant item type permissions')
    parser.add_argument('name', help='Service name (sent in the X-Service-Name header)')
    parser.add_argument('--write', action='append', default=[], metavar='ITEM_TYPE',
                        help='Grant write access on this item type (repeatable)')
    parser.add_argument('--read', action='append', default=[], metavar='ITEM_TYPE',
                        help='Record read-only access on this item type (repeatable)')
    args = parser.parse_args()

    from app import app
    from errors import ValidationError
    from models import ItemType
    from permissions import register_service, grant_permission

    with app.app_context():
        try:
            service, api_key = register_service(args.name)
        except ValidationError as e:
            print(f"Could not register {args.name}: {e}")
            sys.exit(1)

        grants = [(name, True) for name in args.write] + [(name, False) for name in args.read]
        for type_name, write in grants:
            item_type = ItemType.query.filter_by(name=type_name).first()
            try:
                grant_permission(service, item_type, write)
            except ValidationError as e:
                print(f"Skipped {type_name}: {e}")
                continue
            print(f"Granted {'write' if write else 'read'} on {type_name}.")

        print(f"Done! {service.name} registered. API key (store it now, it is not shown again):")
        print(api_key)

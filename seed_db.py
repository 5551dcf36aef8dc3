from app import app, db
from models import ItemType
from constants import DEFAULT_ITEM_TYPES

# This script populates your DB with the standard item types
with app.app_context():
    for name, allowed_keys in DEFAULT_ITEM_TYPES:
        exists = ItemType.query.filter_by(name=name).first()
        if not exists:
            db.session.add(ItemType(name=name, allowed_keys=allowed_keys))

    db.session.commit()
    print("✅ Item Types Seeded!")

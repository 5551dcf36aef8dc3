from flask_sqlalchemy import SQLAlchemy
from flask_login import UserMixin
from sqlalchemy.types import TypeDecorator, DateTime
from datetime import datetime, timezone

db = SQLAlchemy()


def to_utc(value):
    """Normalize a datetime to aware UTC. Naive values are taken to be UTC already."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def utcnow():
    return datetime.now(timezone.utc)


class UTCDateTime(TypeDecorator):
    """Stores naive UTC (SQLite has no timezone support), hands back aware UTC"""
    impl = DateTime
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        return to_utc(value).replace(tzinfo=None)

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        return value.replace(tzinfo=timezone.utc)


class Service(UserMixin, db.Model):
    """An API client (the actor permissions are granted to)"""
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), unique=True, nullable=False)
    api_key_hash = db.Column(db.String(255), nullable=False)
    created_at = db.Column(UTCDateTime, default=utcnow)

    permissions = db.relationship('Permission', backref='service', lazy=True,
                                  cascade='all, delete-orphan')


class ItemType(db.Model):
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), unique=True, nullable=False)
    # Attribute names items of this type may expose for editing
    allowed_keys = db.Column(db.JSON, nullable=False, default=list)

    # Creation order is the first-fit candidate order for availability
    items = db.relationship('Item', backref='item_type', lazy=True, order_by='Item.id')
    permissions = db.relationship('Permission', backref='item_type', lazy=True,
                                  cascade='all, delete-orphan')


class Item(db.Model):
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), nullable=False)
    item_type_id = db.Column(db.Integer, db.ForeignKey('item_type.id'), nullable=False)
    # Free-form attribute map (str -> str), editable only through attributes.py
    data = db.Column(db.JSON, nullable=False, default=dict)
    created_at = db.Column(UTCDateTime, default=utcnow)

    reservations = db.relationship('Reservation', backref='item', lazy=True,
                                   order_by='Reservation.start_time',
                                   cascade='all, delete-orphan')


class Reservation(db.Model):
    id = db.Column(db.Integer, primary_key=True)
    item_id = db.Column(db.Integer, db.ForeignKey('item.id'), nullable=False, index=True)
    start_time = db.Column(UTCDateTime, nullable=False)
    end_time = db.Column(UTCDateTime, nullable=False)
    created_at = db.Column(UTCDateTime, default=utcnow)

    @property
    def item_type(self):
        return self.item.item_type


class Permission(db.Model):
    """Write capability of one service on one item type"""
    __table_args__ = (
        db.UniqueConstraint('service_id', 'item_type_id', name='uq_permission_service_item_type'),
    )

    id = db.Column(db.Integer, primary_key=True)
    service_id = db.Column(db.Integer, db.ForeignKey('service.id'), nullable=False)
    item_type_id = db.Column(db.Integer, db.ForeignKey('item_type.id'), nullable=False)
    write = db.Column(db.Boolean, nullable=False, default=False)

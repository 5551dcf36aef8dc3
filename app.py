import os
import logging
from dotenv import load_dotenv
load_dotenv()  # Load .env for local dev (production uses env vars directly)

from datetime import datetime, timezone
from flask import Flask, Blueprint, request, jsonify
from flask_login import LoginManager, login_required, current_user
from flask_migrate import Migrate

# Import Models
from models import db, Service, to_utc

# Import Core
from errors import NotFound, ValidationError, Conflict
from availability import find_available
from reservations import reserve_available, get_reservation, relocate_reservation, cancel_reservation
from attributes import get_item, apply_update
from item_types import list_item_types, get_item_type, find_item_type_by_name, update_item_type
from permissions import can_write, authenticate_service

# Import Constants
from constants import MAX_BOOKING_ATTEMPTS, SERVICE_NAME_HEADER, API_KEY_HEADER

# Configure Logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

migrate = Migrate()
login_manager = LoginManager()
api = Blueprint('api', __name__)


# --- AUTHENTICATION ---
# Services authenticate every request with a name + API key header pair.

@login_manager.user_loader
def load_service(service_id):
    return db.session.get(Service, int(service_id))


@login_manager.request_loader
def load_service_from_request(req):
    return authenticate_service(req.headers.get(SERVICE_NAME_HEADER), req.headers.get(API_KEY_HEADER))


@login_manager.unauthorized_handler
def unauthorized():
    return jsonify({'errors': ['Authentication required']}), 401


def forbidden():
    return jsonify({'errors': ['Write access denied']}), 403


# --- PARSING & SERIALIZATION HELPERS ---

def parse_timestamp(value, field):
    """
    Parse an ISO-8601 timestamp into an aware UTC datetime.
    Returns (True, datetime) or (False, error_message).
    """
    if not value or not isinstance(value, str):
        return False, f"Invalid {field}"
    try:
        # fromisoformat only learned the 'Z' suffix in 3.11
        if value.endswith('Z'):
            value = value[:-1] + '+00:00'
        return True, to_utc(datetime.fromisoformat(value))
    except ValueError:
        return False, f"Invalid {field}"


def format_timestamp(value):
    return to_utc(value).isoformat()


def request_payload():
    return request.get_json(silent=True) or {}


def reservation_json(reservation):
    return {
        'id': reservation.id,
        'item_type': reservation.item_type.name,
        'start_time': format_timestamp(reservation.start_time),
        'end_time': format_timestamp(reservation.end_time),
    }


def item_type_json(item_type, item_ids=True):
    """Index listings name the items; single lookups include their ids too"""
    items = [{'id': item.id, 'name': item.name} if item_ids else {'name': item.name}
             for item in item_type.items]
    return {
        'id': item_type.id,
        'name': item_type.name,
        'allowed_keys': [str(key) for key in item_type.allowed_keys or []],
        'items': items,
    }


# --- ERROR HANDLERS ---

def register_error_handlers(app):

    @app.errorhandler(NotFound)
    def not_found_error(error):
        logger.warning(f"404 error: {request.url} ({error})")
        return jsonify({'errors': [str(error)]}), 404

    @app.errorhandler(ValidationError)
    def validation_error(error):
        return jsonify({'errors': error.messages}), 422

    @app.errorhandler(Conflict)
    def conflict_error(error):
        logger.info(f"Booking conflict: {error}")
        return jsonify({'errors': [str(error)]}), 422

    @app.errorhandler(404)
    def route_not_found(error):
        logger.warning(f"404 error: {request.url}")
        return jsonify({'errors': ['Not found']}), 404

    @app.errorhandler(500)
    def internal_error(error):
        logger.error(f"500 error: {error}", exc_info=True)
        db.session.rollback()
        return jsonify({'errors': ['An internal error occurred. Please try again later.']}), 500


# =========================================================
# SECTION 1: RESERVATIONS
# =========================================================

@api.route('/reservations', methods=['POST'])
def create_reservation_route():
    """Book the first free item of the requested type"""
    payload = request_payload()
    item_type = find_item_type_by_name(payload.get('item_type'))

    errors = []
    ok_start, start = parse_timestamp(payload.get('start_time'), 'start_time')
    ok_end, end = parse_timestamp(payload.get('end_time'), 'end_time')
    if not ok_start:
        errors.append(start)
    if not ok_end:
        errors.append(end)
    if errors:
        raise ValidationError(errors)

    try:
        reservation = reserve_available(item_type, start, end)
    except Conflict as e:
        logger.info(f"Giving up on {item_type.name} booking after repeated conflicts: {e}")
        reservation = None

    if reservation is None:
        return '', 422
    return jsonify({'id': reservation.id}), 200


@api.route('/reservations/<int:reservation_id>', methods=['GET'])
def show_reservation(reservation_id):
    return jsonify(reservation_json(get_reservation(reservation_id))), 200


@api.route('/reservations/<int:reservation_id>', methods=['PUT'])
def update_reservation(reservation_id):
    changes = request_payload().get('reservation') or {}

    errors = []
    times = {}
    for field in ('start_time', 'end_time'):
        if field in changes:
            ok, value = parse_timestamp(changes[field], field)
            if ok:
                times[field] = value
            else:
                errors.append(value)
    if errors:
        # Unknown ids are still a 404 before input errors are reported
        get_reservation(reservation_id)
        raise ValidationError(errors)

    relocate_reservation(reservation_id, **times)
    return '', 200


@api.route('/reservations/<int:reservation_id>', methods=['DELETE'])
def destroy_reservation(reservation_id):
    cancel_reservation(reservation_id)
    return '', 200


@api.route('/reservations/availability', methods=['GET'])
def check_availability():
    """Which item (if any) a booking for this range would get right now"""
    item_type = find_item_type_by_name(request.args.get('item_type'))
    ok_start, start = parse_timestamp(request.args.get('start_time'), 'start_time')
    ok_end, end = parse_timestamp(request.args.get('end_time'), 'end_time')
    errors = [msg for ok, msg in ((ok_start, start), (ok_end, end)) if not ok]
    if errors:
        raise ValidationError(errors)

    item = find_available(item_type, start, end)
    return jsonify({'item': {'id': item.id, 'name': item.name} if item else None}), 200


# =========================================================
# SECTION 2: V1 API (service-authenticated)
# =========================================================

@api.route('/v1/item_types', methods=['GET'])
@login_required
def item_types_index():
    return jsonify([item_type_json(t, item_ids=False) for t in list_item_types()]), 200


@api.route('/v1/item_types/<int:item_type_id>', methods=['GET'])
@login_required
def item_types_show(item_type_id):
    return jsonify(item_type_json(get_item_type(item_type_id))), 200


@api.route('/v1/item_types/<int:item_type_id>', methods=['PUT'])
@login_required
def item_types_update(item_type_id):
    item_type = get_item_type(item_type_id)
    if not can_write(current_user, item_type):
        logger.warning(f"Service {current_user.name} denied write on item type {item_type.name}")
        return forbidden()

    update_item_type(item_type_id, request_payload().get('item_type') or {})
    return '', 200


@api.route('/v1/items/<int:item_id>', methods=['PUT'])
@login_required
def items_update(item_id):
    item = get_item(item_id)
    if not can_write(current_user, item.item_type):
        logger.warning(f"Service {current_user.name} denied write on item {item.id}")
        return forbidden()

    apply_update(item, request_payload().get('item') or {})
    return '', 200


@api.route('/health')
def health_check():
    """Health check endpoint for monitoring and load balancers"""
    try:
        db.session.execute(db.text('SELECT 1'))
        return jsonify({
            'status': 'healthy',
            'database': 'connected',
            'timestamp': datetime.now(timezone.utc).isoformat()
        }), 200
    except Exception as e:
        logger.error(f"Health check failed: {e}", exc_info=True)
        return jsonify({
            'status': 'unhealthy',
            'error': str(e),
            'timestamp': datetime.now(timezone.utc).isoformat()
        }), 503


# --- APP CONFIGURATION ---

def create_app(test_config=None):
    app = Flask(__name__)

    # SECURITY: set SECRET_KEY in the environment for anything but local use
    app.secret_key = os.environ.get('SECRET_KEY', 'dev_key_for_local_use')

    # DATABASE CONFIGURATION
    db_url = os.environ.get('DATABASE_URL')
    if db_url:
        # SQLAlchemy needs 'postgresql://', some hosts hand out 'postgres://'
        if db_url.startswith("postgres://"):
            db_url = db_url.replace("postgres://", "postgresql://", 1)
        app.config['SQLALCHEMY_DATABASE_URI'] = db_url
    else:
        # Local fallback
        app.config['SQLALCHEMY_DATABASE_URI'] = 'sqlite:///reservations.db'

    app.config['SQLALCHEMY_TRACK_MODIFICATIONS'] = False
    app.config['MAX_BOOKING_ATTEMPTS'] = int(os.environ.get('MAX_BOOKING_ATTEMPTS', MAX_BOOKING_ATTEMPTS))

    if test_config:
        app.config.update(test_config)

    # Initialize DB, Migrations & Auth
    db.init_app(app)
    migrate.init_app(app, db)
    login_manager.init_app(app)

    register_error_handlers(app)
    app.register_blueprint(api)
    return app


app = create_app()

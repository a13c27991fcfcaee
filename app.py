import logging
import os
from pathlib import Path

from dotenv import load_dotenv
load_dotenv()

from flask import Blueprint, Flask, current_app, jsonify, request, send_from_directory
from flask_cors import CORS
from werkzeug.exceptions import HTTPException, NotFound, Unauthorized

import identity
import risk
from database import db, empty_system, new_emergency, new_tourist, utc_isoformat

logger = logging.getLogger(__name__)

BASE_DIR = Path(__file__).resolve().parent

DEFAULT_PORT = 3000
MOCK_USER = {'name': 'Officer Arjun', 'role': 'admin'}


def env_flag(name, default):
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in ('1', 'true', 'yes', 'on')


# --- App Configuration ---
def load_config():
    """Reads settings from the environment (and .env), falling back to local-dev defaults."""
    return {
        'DATA_FILE': os.environ.get('DATA_FILE', str(BASE_DIR / 'data.json')),
        'FRONTEND_DIR': os.environ.get('FRONTEND_DIR', str(BASE_DIR.parent / 'frontend')),
        'RESET_CORRUPT_STORE': env_flag('RESET_CORRUPT_STORE', True),
        'EXPOSE_ERROR_DETAILS': env_flag('EXPOSE_ERROR_DETAILS', True),
        'HOST': os.environ.get('HOST', '0.0.0.0'),
        'PORT': int(os.environ.get('PORT', DEFAULT_PORT)),
        'LOG_LEVEL': os.environ.get('LOG_LEVEL', 'INFO'),
    }


def configure_logging(level='INFO'):
    logging.basicConfig(
        level=getattr(logging, str(level).upper(), logging.INFO),
        format='%(asctime)s %(levelname)s [%(name)s] %(message)s',
    )


# --- Response envelope ---
def ok(data):
    return jsonify({'success': True, 'data': data})


def fail(message, status):
    return jsonify({'success': False, 'message': message}), status


def request_body():
    body = request.get_json(silent=True)
    return body if isinstance(body, dict) else {}


# --- API Endpoints ---
api = Blueprint('api', __name__, url_prefix='/api')


@api.route('/login', methods=['POST'])
def login():
    data = request_body()
    if data.get('username') and data.get('password'):
        return ok({'token': identity.mock_token(), 'user': dict(MOCK_USER)})
    raise Unauthorized('Invalid credentials')


@api.route('/registerTourist', methods=['POST'])
def register_tourist():
    data = request_body()
    with db.transaction() as store:
        millis = identity.now_millis()
        tourist_id = identity.tourist_id(taken=store['tourists'], millis=millis)
        blockchain_hash = identity.fingerprint(data.get('name'), millis=millis)

        store['tourists'][tourist_id] = new_tourist(
            tourist_id,
            blockchain_hash,
            name=data.get('name'),
            phone=data.get('phone'),
            nationality=data.get('nationality'),
            emergency_contacts=data.get('emergencyContacts'),
        )
        store['system']['totalTourists'] += 1
        store['system']['blockHeight'] += 1

    logger.info("Registered tourist %s", tourist_id)
    return ok({'touristId': tourist_id, 'blockchainHash': blockchain_hash})


@api.route('/liveLocation/<tourist_id>', methods=['POST'])
def live_location(tourist_id):
    data = request_body()
    with db.transaction() as store:
        tourist = store['tourists'].get(tourist_id)
        if not tourist:
            logger.warning("Location update for unknown tourist %s", tourist_id)
            raise NotFound('Tourist not found')

        assessment = risk.assess_risk()
        tourist['lastLocation'] = {'lat': data.get('lat'), 'lng': data.get('lng')}
        tourist['currentRisk'] = assessment.score
        tourist['lastUpdated'] = utc_isoformat()

    logger.info("Location update for %s: %s", tourist_id, assessment.classification)
    return ok({'riskScore': assessment.score, 'safetyAlert': assessment.message})


@api.route('/recordEmergency', methods=['POST'])
def record_emergency():
    data = request_body()
    with db.transaction() as store:
        emergency_id = identity.emergency_id(taken=store['emergencies'])
        store['emergencies'][emergency_id] = new_emergency(
            emergency_id,
            emergency_type=data.get('emergencyType'),
            description=data.get('description'),
            location=data.get('location'),
        )
        store['system']['totalEmergencies'] += 1

    logger.info("Recorded emergency %s (%s)", emergency_id, data.get('emergencyType'))
    return ok({'emergencyId': emergency_id})


@api.route('/stats')
def stats():
    try:
        store = db.snapshot()
    except Exception:
        logger.exception("Could not read data file for stats, reporting zeros")
        return ok(empty_system())
    return ok(store.get('system') or empty_system())


@api.route('/verifyTourist/<fingerprint>')
def verify_tourist(fingerprint):
    store = db.snapshot()
    match = next((t for t in store['tourists'].values() if t.get('blockchainHash') == fingerprint), None)
    if match is None:
        raise NotFound('Not found')
    return ok(match)


# Keeps unknown /api paths out of the frontend catch-all.
@api.route('/<path:rest>', methods=['GET', 'POST', 'PUT', 'PATCH', 'DELETE'])
def unknown_endpoint(rest):
    raise NotFound(f"Unknown endpoint /api/{rest}")


# --- Error handling ---
def handle_http_error(e):
    return fail(e.description, e.code)


def handle_unexpected_error(e):
    logger.exception("Unhandled error while serving %s %s", request.method, request.path)
    if current_app.config['EXPOSE_ERROR_DETAILS']:
        return fail(str(e), 500)
    return fail('Internal server error', 500)


# --- Frontend Routes ---
def register_frontend(app):
    frontend_dir = Path(app.config['FRONTEND_DIR'])
    if not frontend_dir.is_dir():
        logger.warning("Frontend directory %s not found, static assets will not be served.", frontend_dir)
        return

    @app.route('/')
    def index():
        return send_from_directory(frontend_dir, 'index.html')

    @app.route('/<path:filename>')
    def frontend_file(filename):
        return send_from_directory(frontend_dir, filename)

    logger.info("Serving frontend from %s", frontend_dir)


def create_app(test_config=None):
    app = Flask(__name__, static_folder=None)
    app.config.update(load_config())
    if test_config:
        app.config.update(test_config)

    CORS(app, send_wildcard=True)
    db.init_app(app)

    app.register_blueprint(api)
    app.register_error_handler(HTTPException, handle_http_error)
    app.register_error_handler(Exception, handle_unexpected_error)
    register_frontend(app)
    return app


def run_server(app=None):
    """Run the Flask app, callable from another script."""
    app = app or create_app()
    configure_logging(app.config['LOG_LEVEL'])
    logger.info("Suraksha backend listening on http://localhost:%s", app.config['PORT'])
    app.run(host=app.config['HOST'], port=app.config['PORT'], debug=False)


if __name__ == '__main__':
    run_server()

"""
POS Pro license service
HTTP surface for the login, setup and admin screens
"""

import logging
import os
from datetime import datetime

from flask import Flask, request, jsonify
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address

from config import Config
from entitlement import (
    ActivationOutcome,
    LicenseController,
    PendingLicenseStore,
    SupabaseAccountStore,
    resolve_entry_screen,
)

LOG_FORMAT = '%(asctime)s - %(levelname)s - %(filename)s:%(lineno)d - %(message)s'

# Configure logging
logging.basicConfig(level=logging.INFO, format=LOG_FORMAT)


def _enable_file_logging(app, data_dir):
    """Mirror logs into the data directory; desktop builds have no console"""
    try:
        os.makedirs(data_dir, exist_ok=True)
        log_file = os.path.join(data_dir, 'pospro_debug.log')
        file_handler = logging.FileHandler(log_file, mode='a', encoding='utf-8')
        file_handler.setLevel(logging.INFO)
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
        app.logger.addHandler(file_handler)
        app.logger.info(f"File-based logging enabled: {log_file}")
    except OSError as e:
        app.logger.warning(f"Could not set up file logging: {e}")


def _bearer_token():
    header = request.headers.get('Authorization', '')
    if header.lower().startswith('bearer '):
        token = header[7:].strip()
        return token or None
    return None


def create_app(config=Config, account_store=None, pending_store=None):
    app = Flask(__name__)
    app.config.from_object(config)
    app.logger.setLevel(logging.INFO)

    if config.ENABLE_FILE_LOGGING:
        _enable_file_logging(app, config.DATA_DIR)

    if account_store is None:
        account_store = SupabaseAccountStore(app.logger, **config.get_supabase_settings())
    if pending_store is None:
        pending_store = PendingLicenseStore(app.logger, config.DATA_DIR, config.APP_SECRET_KEY)

    # Only the activation route is limited; status is polled by every screen.
    limiter = Limiter(
        get_remote_address,
        app=app,
        default_limits=[]
    )

    def license_controller():
        return LicenseController(
            app.logger,
            account_store.with_access_token(_bearer_token()),
            pending_store,
            reconcile_on_login=config.RECONCILE_PENDING_ON_LOGIN,
        )

    @app.get('/health')
    def health():
        return jsonify({"ok": True, "service": "pospro-license", "time": datetime.now().isoformat()})

    @app.route('/api/license/activate', methods=['POST'])
    @limiter.limit(lambda: config.ACTIVATION_RATE_LIMIT)
    def activate_license():
        """
        Activate a license key for the signed-in owner

        Without an owner session the key is parked on this device until
        setup and the first owner login.

        Request JSON:
            {"license_key": "XXXX-XXXX"}
        """
        data = request.get_json(silent=True)
        if not data or not isinstance(data, dict):
            return jsonify({
                "error": "Invalid request format",
                "code": "INVALID_REQUEST"
            }), 400

        license_key = data.get('license_key')
        if not isinstance(license_key, str):
            return jsonify({
                "error": "Missing required field: license_key",
                "code": "MISSING_FIELDS"
            }), 400

        result = license_controller().activate_license_detailed(license_key)
        if result.outcome == ActivationOutcome.INVALID_KEY:
            return jsonify(result.to_dict()), 400
        if result.outcome == ActivationOutcome.STORAGE_FAILURE:
            return jsonify(result.to_dict()), 503
        return jsonify(result.to_dict()), 200

    @app.route('/api/license/status', methods=['GET'])
    def license_status():
        controller = license_controller()
        state = controller.get_entitlement_state()
        payload = state.to_dict()
        logged_in = state.account_id is not None
        # The login screen is reached by a licensed owner who is signed out
        licensed = state.licensed if logged_in else state.owner_licensed
        payload["screen"] = resolve_entry_screen(state.setup_complete, licensed, logged_in)
        return jsonify(payload), 200

    @app.route('/api/setup/complete', methods=['POST'])
    def setup_complete():
        result = license_controller().complete_setup()
        return jsonify(result.to_dict()), 200

    @app.route('/api/session/login', methods=['POST'])
    def session_login():
        result = license_controller().handle_login()
        return jsonify(result.to_dict()), 200

    @app.route('/api/license/diagnose', methods=['GET'])
    def license_diagnose():
        # Operator tool: only from the POS device itself
        if request.remote_addr not in ['127.0.0.1', '::1']:
            app.logger.warning(f"License diagnosis blocked from non-localhost IP: {request.remote_addr}")
            return jsonify({
                "error": "License diagnosis is only available on the server device",
                "code": "LOCALHOST_ONLY"
            }), 403
        return jsonify(license_controller().diagnose()), 200

    return app


if __name__ == '__main__':
    create_app().run(host='127.0.0.1', port=int(os.environ.get('PORT', 5000)), debug=Config.DEBUG)

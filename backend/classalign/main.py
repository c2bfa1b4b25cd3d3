import logging
import os
from datetime import datetime

from dotenv import load_dotenv
from flask import Flask, jsonify, request
from flask_cors import CORS
from werkzeug.exceptions import HTTPException

# Load env vars from the repository root (parent of backend)
root_dir = os.path.abspath(os.path.join(os.path.dirname(__file__), '../../'))
load_dotenv(os.path.join(root_dir, '.env'))

from classalign.routes.assistant import assistant_bp
from classalign.routes.classes import classes_bp
from classalign.routes.export import export_bp
from classalign.services.auth_service import AuthError, sign_in, sign_up
from classalign.services.auth_tokens import DEFAULT_JWT_SECRET, issue_app_token, require_user
from classalign.services.llm_client import llm_api_key
from classalign.services.supabase_client import SupabaseConfigError, SupabaseError, check_connection

logging.basicConfig(
    level=os.getenv('LOG_LEVEL', 'INFO').upper(),
    format='%(asctime)s %(levelname)s %(name)s: %(message)s',
)
logger = logging.getLogger(__name__)

app = Flask(__name__)
CORS(app)


# ============================================================================
# Global Error Handlers and Request Validation
# ============================================================================

def _make_json_error(message: str, status_code: int, error_type: str = None):
    """Create a standardized JSON error response."""
    response_data = {
        'error': message,
        'status_code': status_code
    }
    if error_type:
        response_data['type'] = error_type
    response = jsonify(response_data)
    response.status_code = status_code
    return response


@app.errorhandler(400)
def handle_bad_request(error):
    message = str(error.description) if getattr(error, 'description', None) else 'Bad request'
    return _make_json_error(message, 400, 'bad_request')


@app.errorhandler(404)
def handle_not_found(error):
    return _make_json_error('The requested resource was not found', 404, 'not_found')


@app.errorhandler(405)
def handle_method_not_allowed(error):
    return _make_json_error('Method not allowed', 405, 'method_not_allowed')


@app.errorhandler(500)
def handle_internal_error(error):
    logger.error(f"Internal server error: {error}")
    return _make_json_error('Internal server error', 500, 'internal_error')


@app.errorhandler(SupabaseConfigError)
def handle_supabase_config_error(error):
    logger.error(f"Supabase configuration error: {error}")
    return _make_json_error('Service configuration error. Please contact support.', 500, 'configuration_error')


@app.errorhandler(SupabaseError)
def handle_supabase_error(error):
    """Connection failures, timeouts and repeated 5xx from Supabase."""
    logger.error(f"Supabase unavailable: {error}")
    return _make_json_error('Bad gateway - upstream service unavailable', 502, 'bad_gateway')


@app.errorhandler(Exception)
def handle_unhandled_exception(error):
    """Catch-all handler for unhandled exceptions."""
    if isinstance(error, HTTPException):
        return _make_json_error(error.description or error.name, error.code or 500, 'http_error')
    logger.exception(f"Unhandled exception: {type(error).__name__}: {error}")
    return _make_json_error('An unexpected error occurred', 500, 'unhandled_exception')


@app.before_request
def validate_json_content():
    """Reject malformed JSON bodies before they reach a route."""
    if request.method == 'OPTIONS':
        return None
    if request.content_type and 'application/json' in request.content_type:
        if request.content_length and request.content_length > 0:
            try:
                request.get_json(force=False, silent=False)
            except Exception:
                return _make_json_error('Invalid JSON in request body', 400, 'invalid_json')
    return None


@app.after_request
def ensure_cors_on_errors(response):
    """Ensure CORS headers are present on all responses including errors."""
    if 'Access-Control-Allow-Origin' not in response.headers:
        response.headers['Access-Control-Allow-Origin'] = '*'
        response.headers['Access-Control-Allow-Methods'] = 'GET, POST, PATCH, DELETE, OPTIONS'
        response.headers['Access-Control-Allow-Headers'] = 'Content-Type, Authorization'
    return response


# ============================================================================
# Health & Auth
# ============================================================================

@app.route('/health', methods=['GET'])
def health():
    return jsonify({'status': 'ok', 'timestamp': datetime.utcnow().isoformat()}), 200


@app.route('/health/config', methods=['GET'])
def health_config():
    """Report which settings are present (never their values)."""
    from classalign.services.supabase_client import SUPABASE_ANON_KEY, SUPABASE_SERVICE_KEY, SUPABASE_URL
    return jsonify({
        'status': 'ok',
        'timestamp': datetime.utcnow().isoformat(),
        'supabase_url_set': bool(SUPABASE_URL),
        'supabase_anon_key_set': bool(SUPABASE_ANON_KEY),
        'supabase_service_key_set': bool(SUPABASE_SERVICE_KEY),
        'supabase_reachable': check_connection(timeout=5),
        'llm_api_key_set': bool(llm_api_key()),
        'jwt_secret_is_default': os.getenv("JWT_SECRET_KEY", DEFAULT_JWT_SECRET) == DEFAULT_JWT_SECRET,
        'debug_mode': os.getenv('DEBUG', 'true').lower() == 'true',
    }), 200


@app.route('/auth/sign-up', methods=['POST'])
def auth_sign_up():
    data = request.get_json(silent=True) or {}
    email = str(data.get('email') or '').strip()
    password = str(data.get('password') or '')
    full_name = str(data.get('fullName') or '').strip() or None
    stay_logged_in = bool(data.get('stayLoggedIn'))

    try:
        result = sign_up(email, password, full_name)
    except AuthError as e:
        return jsonify({'error': str(e)}), e.status_code if e.status_code < 500 else 400

    if result.pending_confirmation:
        return jsonify({
            'status': 'pending_confirmation',
            'message': 'Check your email for the confirmation link to finish setting up your account.',
            'user': {'email': result.user.email}
        }), 202

    token = issue_app_token(result.user, stay_logged_in)
    return jsonify({'token': token, 'user': result.user.to_dict()}), 201


@app.route('/auth/sign-in', methods=['POST'])
def auth_sign_in():
    data = request.get_json(silent=True) or {}
    email = str(data.get('email') or '').strip()
    password = str(data.get('password') or '')
    stay_logged_in = bool(data.get('stayLoggedIn'))

    if not email or not password:
        return jsonify({'error': 'Email and password are required.'}), 400

    try:
        user = sign_in(email, password)
    except AuthError as e:
        return jsonify({'error': str(e)}), 401

    token = issue_app_token(user, stay_logged_in)
    return jsonify({'token': token, 'user': user.to_dict()}), 200


@app.route('/auth/me', methods=['GET'])
def auth_me():
    user, auth_error = require_user()
    if auth_error:
        return auth_error
    return jsonify(user.to_dict()), 200


app.register_blueprint(classes_bp)
app.register_blueprint(assistant_bp)
app.register_blueprint(export_bp)

if __name__ == '__main__':
    port = int(os.getenv('SERVER_PORT') or os.getenv('PORT', 5000))
    host = os.getenv('HOST', '0.0.0.0')
    debug_mode = os.getenv('DEBUG', 'true').lower() == 'true'
    app.run(host=host, port=port, debug=debug_mode)

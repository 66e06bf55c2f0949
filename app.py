"""
Flask application factory for the Cash Audit engine.
"""
from flask import Flask, g, request, session
from flask_caching import Cache
import logging
import os
from datetime import timedelta

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)

# Silence per-request connection logging from the AI client
logging.getLogger("urllib3").setLevel(logging.WARNING)

# Initialize cache (will be configured in create_app)
cache = Cache()


def create_app(config_name='default'):
    """
    Application factory pattern.

    Args:
        config_name: 'testing' enables Flask testing mode

    Returns:
        Configured Flask application instance
    """
    app = Flask(__name__)

    # App configuration
    app.config['SECRET_KEY'] = os.getenv('SECRET_KEY', 'dev-secret-key-change-in-production')
    app.config['MAX_CONTENT_LENGTH'] = 10 * 1024 * 1024  # 10MB max import size
    app.config['SESSION_COOKIE_HTTPONLY'] = True
    app.config['SESSION_COOKIE_SAMESITE'] = 'Lax'
    app.config['PERMANENT_SESSION_LIFETIME'] = timedelta(
        minutes=int(os.getenv('SESSION_IDLE_TIMEOUT_MINUTES', '30'))
    )
    app.config['TESTING'] = config_name == 'testing'
    app.json.ensure_ascii = False  # Indonesian finding text

    # Audit sessions live in-process; a multi-worker deployment needs a shared backend
    app.config['CACHE_TYPE'] = 'SimpleCache'
    app.config['CACHE_DEFAULT_TIMEOUT'] = 1800

    cache.init_app(app)

    app.logger.info(f"[CACHE] Initialized {app.config['CACHE_TYPE']} with {app.config['CACHE_DEFAULT_TIMEOUT']}s timeout")

    # Register blueprints
    from web.views import bp as main_bp
    app.register_blueprint(main_bp)

    @app.before_request
    def log_request_info():
        session.permanent = True
        g.audit_session_id = session.get('audit_session_id')
        app.logger.info(
            f"Request: {request.method} {request.path} "
            f"(audit_session={g.audit_session_id or 'new'})"
        )

    return app


if __name__ == '__main__':
    app = create_app()
    app.run(debug=True)

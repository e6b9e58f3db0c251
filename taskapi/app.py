"""
Flask Application Factory Module

Factory Pattern Flow:
    create_app() → Load Config → Configure Logging → Initialize Extensions
                 → Register Blueprints → Register Handlers/Hooks/CLI → Return App

Usage:
    # Development
    app = create_app('development')
    app.run(debug=True)

    # Production (with Gunicorn)
    gunicorn -w 4 -b 0.0.0.0:5000 "taskapi.app:create_app('production')"

    # Testing
    app = create_app('testing')
    test_client = app.test_client()
"""

import os
from flask import Flask, jsonify, g
from werkzeug.middleware.proxy_fix import ProxyFix
from taskapi.config import config
from taskapi.src.extensions import db, cors
from taskapi.src.api import api_bp
from taskapi.src.errors import ApiError, RateLimitError
from taskapi.src.utils.logging_config import configure_logging
from taskapi.src.utils.rate_limit import FixedWindowRateLimiter


def create_app(config_name=None):
    """
    Application Factory - Creates and configures a Flask application instance.

    Args:
        config_name (str, optional): Name of configuration to use.
            Valid values: 'development', 'production', 'testing'
            If None, reads from FLASK_ENV environment variable
            Defaults to 'development' if FLASK_ENV not set

    Returns:
        Flask: Fully configured Flask application instance ready to run
    """

    # ========================================================================
    # STEP 1: Create Flask Application Instance and Load Configuration
    # ========================================================================

    app = Flask(__name__)

    if config_name is None:
        config_name = os.environ.get('FLASK_ENV', 'development')
    if config_name not in config:
        config_name = 'default'

    # from_object() loads all UPPERCASE attributes from the class
    app.config.from_object(config[config_name])

    # Relative upload folders live under the instance folder
    if not os.path.isabs(app.config['UPLOAD_FOLDER']):
        app.config['UPLOAD_FOLDER'] = os.path.join(app.instance_path, app.config['UPLOAD_FOLDER'])

    # Only trust X-Forwarded-For from the configured number of proxy hops
    if app.config['PROXY_FIX_X_FOR'] > 0:
        app.wsgi_app = ProxyFix(app.wsgi_app, x_for=app.config['PROXY_FIX_X_FOR'])

    configure_logging(app.config['LOG_LEVEL'])
    app.logger.info("Starting application with '%s' configuration", config_name)

    # ========================================================================
    # STEP 2: Initialize Flask Extensions
    # ========================================================================

    db.init_app(app)

    # Allows a frontend running on a different origin to call the API
    cors.init_app(app, resources={
        r"/api/*": {
            "origins": app.config['CORS_ORIGINS'],
            "methods": ["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
            "allow_headers": ["Content-Type", "Authorization"],
            "expose_headers": ["Retry-After", "X-RateLimit-Limit", "X-RateLimit-Remaining"]
        }
    })

    # One limiter per app instance; counters are shared by all its requests
    app.extensions['rate_limiter'] = FixedWindowRateLimiter()

    # ========================================================================
    # STEP 3: Register Blueprints (Route Modules)
    # ========================================================================

    # Routes become /api/auth/*, /api/tasks, /api/user
    app.register_blueprint(api_bp)

    # ========================================================================
    # STEP 4: Database Initialization
    # ========================================================================

    # Production should use migrations instead
    with app.app_context():
        if config_name in ('development', 'testing', 'default'):
            # Safe to call multiple times (won't recreate existing tables)
            db.create_all()
            app.logger.debug('Database tables created/verified')

    # ========================================================================
    # STEP 5: Register Application Routes (Non-Blueprint Routes)
    # ========================================================================

    @app.route('/health')
    def health_check():
        """Liveness probe for load balancers. Always 200 while the app runs."""
        return jsonify({
            'status': 'healthy',
            'environment': config_name
        }), 200

    @app.route('/')
    def index():
        """API information and endpoint directory."""
        return jsonify({
            'message': 'Task Management API',
            'version': '1.0.0',
            'endpoints': {
                'health': '/health',
                'auth': '/api/auth',
                'tasks': '/api/tasks',
                'user': '/api/user'
            }
        }), 200

    # ========================================================================
    # STEP 6: Register Error Handlers
    # ========================================================================

    @app.errorhandler(ApiError)
    def handle_api_error(error):
        """
        Render any service-level error as JSON with its status code.

        Client errors (4xx) are expected traffic and are only logged at debug.
        """
        app.logger.debug('%s: %s', type(error).__name__, error.message)
        response = jsonify(error.to_dict())
        response.status_code = error.status_code
        if isinstance(error, RateLimitError):
            response.headers['Retry-After'] = str(error.retry_after)
        return response

    @app.errorhandler(400)
    def bad_request(error):
        return jsonify({
            'error': 'Bad request',
            'message': 'The request could not be understood or was missing required parameters'
        }), 400

    @app.errorhandler(404)
    def not_found(error):
        return jsonify({
            'error': 'Resource not found',
            'message': 'The requested URL was not found on the server'
        }), 404

    @app.errorhandler(405)
    def method_not_allowed(error):
        return jsonify({
            'error': 'Method not allowed',
            'message': 'The HTTP method is not allowed for this endpoint'
        }), 405

    @app.errorhandler(413)
    def payload_too_large(error):
        """Body larger than MAX_CONTENT_LENGTH, rejected before it is buffered."""
        return jsonify({
            'error': 'Payload too large',
            'message': 'The request body exceeds the maximum allowed size'
        }), 413

    @app.errorhandler(500)
    def internal_error(error):
        """
        Handle 500 Internal Server Errors.

        Flask has already logged the traceback; roll back so a failed
        transaction does not leak into the next request on this session.
        """
        db.session.rollback()
        return jsonify({
            'error': 'Internal server error',
            'message': 'An unexpected error occurred. Please try again later.'
        }), 500

    # ========================================================================
    # STEP 7: Register Request/Response Hooks
    # ========================================================================

    @app.after_request
    def after_request_func(response):
        """Add rate-limit and security headers to every response."""
        rate_limit = g.get('rate_limit')
        if rate_limit is not None:
            response.headers['X-RateLimit-Limit'] = str(rate_limit.limit)
            response.headers['X-RateLimit-Remaining'] = str(rate_limit.remaining)

        # Prevents MIME type sniffing attacks
        response.headers['X-Content-Type-Options'] = 'nosniff'

        # Prevents clickjacking by disallowing iframe embedding
        response.headers['X-Frame-Options'] = 'DENY'

        # Forces HTTPS for 1 year in production
        if config_name == 'production':
            response.headers['Strict-Transport-Security'] = 'max-age=31536000; includeSubDomains'

        return response

    @app.teardown_appcontext
    def shutdown_session(exception=None):
        db.session.remove()

    # ========================================================================
    # STEP 8: Register CLI Commands (Flask Command Line Interface)
    # ========================================================================

    @app.cli.command('init-db')
    def init_db_command():
        """Create all database tables (safe to run multiple times)."""
        db.create_all()
        print('Database initialized successfully')

    @app.cli.command('seed-db')
    def seed_db_command():
        """
        Seed database with sample users and tasks (development only).

        Creates alice@example.com and bob@example.com, both with password 'secret1'.
        """
        from taskapi.src.models.user import User
        from taskapi.src.models.task import Task

        if db.session.query(User).first():
            print('Database already contains data. Skipping seed.')
            print('   Use "flask reset-db" to clear database first')
            return

        alice = User(name='alice', email='alice@example.com')
        alice.set_password('secret1')
        bob = User(name='bob', email='bob@example.com')
        bob.set_password('secret1')
        db.session.add_all([alice, bob])
        db.session.commit()

        db.session.add_all([
            Task(name='Buy milk', owner_id=alice.id),
            Task(name='Write report', state='in progress', owner_id=alice.id),
            Task(name='Book flights', owner_id=bob.id),
        ])
        db.session.commit()

        print(f'Created {db.session.query(User).count()} users and '
              f'{db.session.query(Task).count()} tasks')
        print('You can now login with alice@example.com / secret1')

    @app.cli.command('reset-db')
    def reset_db_command():
        """
        Drop all tables and recreate them.

        WARNING: This PERMANENTLY DELETES ALL DATA
        """
        print('WARNING: This will DELETE ALL DATA in the database!')
        print(f'   Database: {app.config["SQLALCHEMY_DATABASE_URI"]}')
        confirm = input('   Type "yes" to confirm: ')

        if confirm.lower() != 'yes':
            print('Reset cancelled')
            return

        db.drop_all()
        db.create_all()
        print('Database reset complete! Use "flask seed-db" to add sample data.')

    @app.cli.command('prune-tokens')
    def prune_tokens_command():
        """Delete expired access tokens (only relevant when a token TTL is set)."""
        from taskapi.src.services.token_service import TokenService

        deleted = TokenService(db.session).prune_expired()
        print(f'Pruned {deleted} expired token(s)')

    return app


# ============================================================================
# Development Server Entry Point
# ============================================================================

if __name__ == '__main__':
    # NOT suitable for production - use gunicorn instead:
    #     gunicorn -w 4 -b 0.0.0.0:5000 "taskapi.app:create_app('production')"
    app = create_app('development')
    app.run(host='0.0.0.0', port=5000, debug=True, threaded=True)

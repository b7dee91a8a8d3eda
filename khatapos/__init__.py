"""Flask application factory."""
from flask import Flask, request, jsonify
import os


def create_app(config_object='config.Config', client_factory=None):
    """Create and configure the Flask application.

    client_factory, when given, builds the backend client for each new
    terminal session instead of PosApiClient.from_config.
    """
    app = Flask(__name__)
    app.config.from_object(config_object)

    # Initialize Sentry for error tracking in production
    sentry_dsn = app.config.get('SENTRY_DSN') or os.getenv('SENTRY_DSN')
    if sentry_dsn and (app.config.get('ENV') == 'production' or os.getenv('FLASK_ENV') == 'production'):
        import sentry_sdk
        from sentry_sdk.integrations.flask import FlaskIntegration

        sentry_sdk.init(
            dsn=sentry_dsn,
            integrations=[FlaskIntegration()],
            traces_sample_rate=0.1,
            environment=os.getenv('FLASK_ENV', 'production'),
            release=os.getenv('GIT_COMMIT', 'unknown')
        )

    # Production: Enable ProxyFix for HTTPS behind a reverse proxy
    if app.config.get('ENV') == 'production':
        from werkzeug.middleware.proxy_fix import ProxyFix
        app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1, x_host=1, x_port=1, x_prefix=0)

    # One checkout session per terminal
    from khatapos.services.terminal_registry import init_terminals
    init_terminals(app, client_factory=client_factory)

    # Jinja filters for receipts
    from khatapos.utils.formatters import num_in, money_in
    symbol = app.config.get('CURRENCY_SYMBOL', '₹')
    app.jinja_env.filters['num_in'] = num_in
    app.jinja_env.filters['money_in'] = lambda value: money_in(value, symbol=symbol)

    # Error Handlers
    from khatapos.exceptions import PosError

    @app.errorhandler(PosError)
    def handle_pos_error(error):
        """Handle application exceptions as JSON for the till UI."""
        if error.status_code >= 500:
            app.logger.error(f"PosError [{error.status_code}]: {error.message}")
        else:
            app.logger.warning(f"PosError [{error.status_code}]: {error.message}")
        return jsonify(error.to_dict()), error.status_code

    @app.errorhandler(404)
    def not_found_error(error):
        return jsonify({'status': 'error', 'message': 'Not Found'}), 404

    @app.errorhandler(405)
    def method_not_allowed(error):
        return jsonify({'status': 'error', 'message': 'Method Not Allowed'}), 405

    @app.errorhandler(500)
    def internal_error(error):
        app.logger.error(f"Unhandled Exception on {request.path}: {error}")
        return jsonify({'status': 'error', 'message': 'Internal Server Error'}), 500

    # Register blueprints
    from khatapos.blueprints.pos import pos_bp
    from khatapos.blueprints.ledger import ledger_bp

    app.register_blueprint(pos_bp)
    app.register_blueprint(ledger_bp)

    # Register CLI commands
    from khatapos.cli_commands import init_cli_commands
    init_cli_commands(app)

    app.logger.info(f"POS_API_BASE_URL={app.config.get('POS_API_BASE_URL')}")

    return app

import os
import logging
from datetime import datetime, timezone

from flask import Flask, jsonify, request
from flask_cors import CORS
from flask_sqlalchemy import SQLAlchemy
from flask_migrate import Migrate
from dotenv import load_dotenv

from .config import CONFIGS, ProdConfig

# Initialize extensions
db = SQLAlchemy()
migrate = Migrate()

LOG_FORMAT = '%(asctime)s [%(levelname)s] %(name)s: %(message)s'


def create_app(config_name: str | None = None) -> Flask:
    """Application factory with environment based configuration."""
    load_dotenv()

    app = Flask(__name__, instance_relative_config=True)
    os.makedirs(app.instance_path, exist_ok=True)

    # Pick configuration
    env = config_name or os.getenv('ENV') or os.getenv('FLASK_ENV') or 'production'
    app.config.from_object(CONFIGS.get(env, ProdConfig))
    app.json.ensure_ascii = False
    app.json.sort_keys = False
    app.url_map.strict_slashes = False

    # Initialise logging
    logging.basicConfig(
        level=logging.DEBUG if app.debug else logging.INFO,
        format=LOG_FORMAT,
    )
    access_log = logging.getLogger('denidom.access')

    CORS(app, origins=app.config['CORS_ORIGIN'], supports_credentials=True)
    db.init_app(app)
    migrate.init_app(app, db)

    # Ensure models loaded so tables can be created
    from denidom import models  # noqa
    with app.app_context():
        db.create_all()

    @app.after_request
    def log_request(response):
        access_log.info('%s %s -> %s', request.method, request.path, response.status_code)
        return response

    @app.route('/api/health')
    def health():
        return jsonify(status='ok', timestamp=datetime.now(timezone.utc).isoformat())

    from denidom.errors import register_error_handlers
    register_error_handlers(app)

    from denidom.calculator.routes import bp as calculator_bp
    from denidom.projects.routes import bp as projects_bp
    from denidom.clients.routes import bp as clients_bp
    from denidom.auth.routes import bp as auth_bp
    from denidom.export.routes import bp as export_bp
    from denidom.ml.routes import bp as ml_bp
    from denidom.ai.routes import bp as ai_bp
    from denidom.seed import seed_cli

    app.register_blueprint(calculator_bp, url_prefix='/api/calculator')
    app.register_blueprint(projects_bp, url_prefix='/api/projects')
    app.register_blueprint(clients_bp, url_prefix='/api/clients')
    app.register_blueprint(auth_bp, url_prefix='/api/auth')
    app.register_blueprint(export_bp, url_prefix='/api/export')
    app.register_blueprint(ml_bp, url_prefix='/api/ml')
    app.register_blueprint(ai_bp, url_prefix='/api/ai')
    app.cli.add_command(seed_cli)

    return app

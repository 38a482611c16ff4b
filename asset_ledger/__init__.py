from flask import Flask
from flask_sqlalchemy import SQLAlchemy
from flask_migrate import Migrate
from flask_cors import CORS
from flask_caching import Cache
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from config.config import config

# Initialize extensions
db = SQLAlchemy()
migrate = Migrate()
cors = CORS()
cache = Cache()
limiter = Limiter(
    key_func=get_remote_address,
    default_limits=["10000 per day", "1000 per hour"],
    storage_uri="memory://"
)


def create_app(config_name='default'):
    """Application factory pattern"""
    app = Flask(__name__)
    app.config.from_object(config[config_name])
    config[config_name].init_app(app)

    # Initialize extensions with app
    db.init_app(app)
    migrate.init_app(app, db)
    cors.init_app(app)
    cache.init_app(app)
    limiter.init_app(app)

    # Register error handlers
    from asset_ledger.utils.rate_limit_helpers import register_rate_limit_error_handler
    from asset_ledger.utils.error_handlers import register_ledger_error_handlers
    register_rate_limit_error_handler(app)
    register_ledger_error_handlers(app)

    # Register blueprints
    from asset_ledger.views import main, api_movements, api_assets, api_integrity

    app.register_blueprint(main.bp)
    app.register_blueprint(api_movements.bp, url_prefix='/api/movements')
    app.register_blueprint(api_assets.bp, url_prefix='/api/assets')
    app.register_blueprint(api_integrity.bp, url_prefix='/api/integrity')

    # Background integrity audit
    from asset_ledger.scheduler import init_scheduler
    init_scheduler(app)

    return app

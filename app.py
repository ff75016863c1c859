import os
from flask import Flask
from dotenv import load_dotenv
from src.models import db
from src.config.dev_config import DevConfig
from src.config.production import ProductionConfig
from src.routes.subscriptions import subscriptions_bp
from src.routes.webhook import webhook_bp
from src.cli.commands import renew_subscriptions, list_subscriptions
from src.controllers.subscription_controller import select_handlers
from src.services.dependencies import create_production_dependencies
from src.services.lifecycle_engine import EngineSettings, LifecycleEngine

# Load environment variables early
load_dotenv()

CONFIGS = {
    "development": DevConfig,
    "production": ProductionConfig,
}


def register_blueprints(app):
    """Attach all route blueprints."""
    app.register_blueprint(subscriptions_bp)
    app.register_blueprint(webhook_bp)
    app.cli.add_command(renew_subscriptions)
    app.cli.add_command(list_subscriptions)


def create_app(config_object=None, dependencies=None):
    """
    Build the app and its collaborators.

    ``dependencies`` replaces the production store and hub client, which is
    how tests run the real routes against in-memory fakes.
    """
    app = Flask(__name__)
    if config_object is None:
        config_object = CONFIGS.get(os.getenv("FLASK_ENV", "development"), DevConfig)
    app.config.from_object(config_object)

    db.init_app(app)
    with app.app_context():
        db.create_all()

    if dependencies is None:
        dependencies = create_production_dependencies(app)

    engine = LifecycleEngine(
        store=dependencies.store,
        hub_client=dependencies.hub_client,
        settings=EngineSettings(
            renewal_threshold_days=app.config["RENEWAL_THRESHOLD_HOURS"] / 24,
            max_renewal_attempts=app.config["MAX_RENEWAL_ATTEMPTS"],
        ),
    )

    # The flag is read here only; request handling never looks at it again
    handlers = select_handlers(engine, app.config.get("USE_REFACTORED_ROUTER"))
    app.extensions["lifecycle_engine"] = engine
    app.extensions["subscription_handlers"] = handlers
    app.logger.info("🚦 Serving subscriptions with the %s handlers", handlers.name)

    register_blueprints(app)
    return app


if __name__ == "__main__":
    create_app().run(host="localhost", port=5000, debug=True, threaded=True, use_reloader=True)

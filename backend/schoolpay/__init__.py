from flask import Flask, jsonify
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from schoolpay.config import Config, EXTENSION_KEY as CONFIG_KEY
from schoolpay.extensions import db, migrate, cors, login_manager
from schoolpay.gateways import EXTENSION_KEY as GATEWAYS_KEY, build_gateways


def create_app(config: Config | None = None) -> Flask:
    """Application factory. The config object is built once and injected everywhere."""
    config = config or Config.from_env()

    app = Flask(__name__)
    app.config["SECRET_KEY"] = config.secret_key
    app.config["SQLALCHEMY_DATABASE_URI"] = config.database_url
    app.config["SQLALCHEMY_TRACK_MODIFICATIONS"] = False
    app.logger.setLevel(config.log_level)

    app.extensions[CONFIG_KEY] = config
    app.extensions[GATEWAYS_KEY] = build_gateways(config)

    cors.init_app(app, resources={r"/api/*": {"origins": config.cors_origins}})
    db.init_app(app)
    migrate.init_app(app, db)
    login_manager.init_app(app)

    # Models must be imported before migrations/create_all see the metadata.
    from schoolpay import models  # noqa: F401
    from schoolpay.auth import api_auth
    from schoolpay.segments.segment_webhooks import webhooks_bp
    from schoolpay.segments.segment_payments import payments_bp
    from schoolpay.segments.segment_admin import admin_bp

    app.register_blueprint(api_auth)
    app.register_blueprint(webhooks_bp)
    app.register_blueprint(payments_bp)
    app.register_blueprint(admin_bp)

    @app.get("/api/health")
    def health():
        db_state = "ok"
        try:
            db.session.execute(text("SELECT 1"))
        except SQLAlchemyError:
            app.logger.exception("health check database probe failed")
            db_state = "fail"
        return jsonify({
            "ok": True,
            "service": "schoolpay-backend",
            "env": config.env,
            "db": db_state,
        })

    app.logger.info("schoolpay started env=%s gateways=%s", config.env, sorted(app.extensions[GATEWAYS_KEY]))
    return app

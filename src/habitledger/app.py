"""Flask application factory."""

from __future__ import annotations

from flask import Flask, jsonify
from werkzeug.exceptions import HTTPException

from . import cli
from .blueprints import habits, health, stats
from .config import BaseConfig, DevConfig
from .domain.errors import StateInconsistent, StorageError, UnknownHabit
from .extensions import init_db
from .logging_config import get_logger, setup_logging
from .services.streak_engine import Clock

logger = get_logger(__name__)


def _register_error_handlers(app: Flask) -> None:
    @app.errorhandler(UnknownHabit)
    def _unknown_habit(exc: UnknownHabit):
        return jsonify({"error": "Habit not found", "habit_id": exc.habit_id}), 404

    @app.errorhandler(StorageError)
    def _storage_error(exc: StorageError):
        logger.error("Storage failure", extra={"error": str(exc)})
        return jsonify({"error": "Storage temporarily unavailable", "retryable": True}), 503

    @app.errorhandler(StateInconsistent)
    def _inconsistent(exc: StateInconsistent):
        logger.error(
            "Streak state needs repair",
            extra={"habit_id": exc.habit_id, "detail": exc.detail},
        )
        return (
            jsonify({"error": "Streak state is inconsistent", "habit_id": exc.habit_id}),
            500,
        )

    @app.errorhandler(HTTPException)
    def _http_error(exc: HTTPException):
        return jsonify({"error": exc.description}), exc.code or 500


def _register_cors(app: Flask) -> None:
    @app.after_request
    def _cors_headers(response):
        response.headers["Access-Control-Allow-Origin"] = "*"
        response.headers["Access-Control-Allow-Methods"] = "GET, POST, PUT, DELETE, OPTIONS"
        response.headers["Access-Control-Allow-Headers"] = "Content-Type, Authorization"
        return response


def create_app(config: BaseConfig | None = None, *, clock: Clock | None = None) -> Flask:
    """Build the JSON API app.

    Args:
        config: Settings object; ``DevConfig`` from the environment when omitted
        clock: Callable returning today's date, injected into the streak engine
    """

    cfg = config or DevConfig()
    setup_logging(cfg)

    app = Flask(__name__)
    app.config.update(cfg.flask_settings())
    app.json.sort_keys = False
    app.config["HABITLEDGER_CONFIG"] = cfg

    init_db(app, cfg, clock=clock)
    _register_error_handlers(app)
    _register_cors(app)

    app.register_blueprint(health.bp)
    app.register_blueprint(habits.bp)
    app.register_blueprint(stats.bp)
    cli.init_app(app)

    logger.info(
        "Application created",
        extra={"database_url": cfg.DATABASE_URL, "gap_policy": cfg.GAP_POLICY},
    )
    return app


__all__ = ["create_app"]

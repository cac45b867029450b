import argparse
import logging
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Optional

from flask import Flask, jsonify
from werkzeug.exceptions import HTTPException
from werkzeug.middleware.proxy_fix import ProxyFix

from config_manager import ConfigManager
from match_service.cache import Cache, build_cache
from match_service.logging_config import setup_logging, stop_logging
from match_service.store import DocumentStore, JsonDocumentStore
from app.errors import ApiError
from app.auth.factory import create_auth_module
from app.catalog.factory import create_catalog_module
from app.scores.factory import create_scores_module
from app.interactions.factory import create_interactions_module
from app.routines.factory import create_routines_module
from app.users.factory import create_users_module

logger = logging.getLogger(__name__)

PROJECT_ROOT = Path(__file__).parent.parent


def create_app(
    config_manager: Optional[ConfigManager] = None,
    store: Optional[DocumentStore] = None,
    cache: Optional[Cache] = None,
    run_in_background: Optional[bool] = None,
) -> Flask:
    """Build the Flask application and wire every module together.

    Args:
        config_manager: Configuration source; a default ConfigManager when omitted
        store: Document store; a JSON store under paths.data_dir when omitted
        cache: Read cache; built from the cache config when omitted
        run_in_background: Overrides scoring.background_rescoring

    Returns:
        Configured Flask application. Module services are available under
        ``app.extensions["match_service"]``.
    """
    config_manager = config_manager or ConfigManager()
    app_config = config_manager.get_app_config()
    auth_config = config_manager.get_auth_config()
    scoring_config = config_manager.get_scoring_config()
    cache_config = config_manager.get_cache_config()
    paths_config = config_manager.get_paths_config()

    app = Flask(__name__)
    app.wsgi_app = ProxyFix(
        app.wsgi_app,
        x_proto=1,     # trust 1 hop for X-Forwarded-Proto
        x_host=1,      # trust 1 hop for X-Forwarded-Host
        x_prefix=1)    # <-- pay attention to X-Forwarded-Prefix

    # -------------------------------------------------------------------------
    # Storage
    # -------------------------------------------------------------------------

    if store is None:
        store = JsonDocumentStore(PROJECT_ROOT / paths_config.data_dir)
    if cache is None:
        cache = build_cache(cache_config)

    background = scoring_config.background_rescoring if run_in_background is None else run_in_background
    executor = None
    if background:
        executor = ThreadPoolExecutor(
            max_workers=max(1, scoring_config.rescore_workers),
            thread_name_prefix="rescore",
        )

    # -------------------------------------------------------------------------
    # Modules
    # -------------------------------------------------------------------------

    auth_module = create_auth_module(
        store=store,
        secret_key=auth_config.secret_key,
        token_max_age_seconds=auth_config.token_max_age_seconds,
        bcrypt_rounds=auth_config.bcrypt_rounds,
    )
    auth_service = auth_module["service"]

    catalog_module = create_catalog_module(
        store=store,
        cache=cache,
        auth_service=auth_service,
        reference_ttl_seconds=cache_config.reference_ttl_seconds,
        admin_user_ids=app_config.admin_user_ids,
    )

    scores_module = create_scores_module(
        store=store,
        cache=cache,
        catalog_service=catalog_module["service"],
        auth_service=auth_service,
        scoring_config=scoring_config,
        score_ttl_seconds=cache_config.score_ttl_seconds,
        executor=executor,
    )

    interactions_module = create_interactions_module(
        store=store,
        score_store=scores_module["service"],
        catalog_service=catalog_module["service"],
        auth_service=auth_service,
    )

    routines_module = create_routines_module(
        store=store,
        catalog_service=catalog_module["service"],
        ledger=interactions_module["ledger"],
        score_store=scores_module["service"],
        auth_service=auth_service,
    )

    users_module = create_users_module(
        store=store,
        score_store=scores_module["service"],
        auth_service=auth_service,
    )

    modules = {
        "auth": auth_module,
        "catalog": catalog_module,
        "scores": scores_module,
        "interactions": interactions_module,
        "routines": routines_module,
        "users": users_module,
    }
    for module in modules.values():
        app.register_blueprint(module["blueprint"])

    app.extensions["match_service"] = {
        "store": store,
        "cache": cache,
        "executor": executor,
        **{name: module["service"] for name, module in modules.items()},
    }

    # -------------------------------------------------------------------------
    # Error handlers
    # -------------------------------------------------------------------------

    @app.errorhandler(ApiError)
    def handle_api_error(exc: ApiError):
        return exc.to_response()

    @app.errorhandler(Exception)
    def handle_unexpected_error(exc: Exception):
        if isinstance(exc, HTTPException):
            return jsonify({"error": exc.name.lower().replace(" ", "-")}), exc.code
        logger.exception(f"Unhandled error: {exc}")
        return jsonify({"error": "internal-error"}), 500

    @app.get("/actuator/health")
    def actuator_health():
        """Health check endpoint for monitoring tools and cloud platforms."""
        return jsonify({
            "status": "UP",
            "service": "hair-match-service"
        }), 200

    logger.info(f"Application created (background rescoring: {bool(executor)})")
    return app


# -----------------------------------------------------------------------------
# Entry point
# -----------------------------------------------------------------------------

if __name__ == "__main__":
    # Parse command line arguments
    parser = argparse.ArgumentParser(description="Hair match scoring service")
    parser.add_argument("--port", type=int, help="Port to run the server on")
    parser.add_argument("--host", type=str, help="Host to bind the server to")
    parser.add_argument("--debug", action="store_true", help="Enable debug mode")
    parser.add_argument("--config", type=str, default="match_service_config.json", help="Configuration file")
    args = parser.parse_args()

    config_manager = ConfigManager(args.config)
    app_config = config_manager.get_app_config()

    # Override configuration with command line arguments
    if args.port:
        app_config.port = args.port
    if args.host:
        app_config.host = args.host
    if args.debug:
        app_config.debug = args.debug

    setup_logging(app_config.debug)
    app = create_app(config_manager)
    logger.info(f"Serving on {app_config.host}:{app_config.port}")
    try:
        app.run(
            host=app_config.host,
            port=app_config.port,
            debug=app_config.debug
        )
    finally:
        stop_logging()

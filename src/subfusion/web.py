"""Flask HTTP surface for SubFusion."""

from __future__ import annotations

import asyncio
import logging
from typing import Optional

from flask import Flask, jsonify, request

from .config import Settings, load_config
from .exceptions import ProfileNotFoundError
from .logging_config import setup_logging
from .profiles import handle_profile_mode
from .storage import SqliteStore, Store, create_store

logger = logging.getLogger(__name__)

TRUTHY = {"1", "true", "yes", "on"}


def create_app(settings: Optional[Settings] = None, store: Optional[Store] = None) -> Flask:
    """Build the Flask application serving aggregated profile nodes."""
    settings = settings or load_config()
    store = store if store is not None else create_store(settings)

    app = Flask(__name__)
    app.config["SUBFUSION_SETTINGS"] = settings
    app.config["SUBFUSION_STORE"] = store

    def _request_store() -> Store:
        # An aiosqlite connection is bound to the event loop that opened it.
        if isinstance(store, SqliteStore):
            return SqliteStore(store.db_path)
        return store

    async def _handle(identifier: str, user_agent: str, transform: bool):
        request_store = _request_store()
        try:
            return await handle_profile_mode(
                request_store, identifier, user_agent, transform, settings=settings
            )
        finally:
            if isinstance(request_store, SqliteStore):
                await request_store.close()

    @app.route("/api/profiles/<identifier>/nodes")
    def profile_nodes(identifier: str):
        """Return the aggregated nodes of the profile selected by ``identifier``."""
        transform = request.args.get("transform", "").lower() in TRUTHY
        user_agent = request.headers.get("User-Agent") or settings.network.user_agent
        try:
            result = asyncio.run(_handle(identifier, user_agent, transform))
        except ProfileNotFoundError as exc:
            return jsonify(exc.to_dict()), exc.status_code
        return jsonify(result.to_dict())

    return app


def main() -> None:
    """Run the Flask development server."""
    settings = load_config()
    setup_logging(
        settings.logging.level,
        settings.logging.mask_sensitive,
        settings.logging.log_file,
    )
    create_app(settings).run(host="0.0.0.0", port=8080)


if __name__ == "__main__":
    main()

# app.py
"""
Main Flask application entrypoint.

- Loads env/config
- Enables CORS for /api/*
- Registers blueprints: movies, quizzes, user stats, site stats, share links
- Firebase Admin is initialized lazily on the first Firestore call
"""

from __future__ import annotations
import logging

from flask import Flask, jsonify
from flask_cors import CORS

from config import Config, configure_logging
from routes.movies import movies_bp
from routes.quizzes import quizzes_bp
from routes.user_stats import user_stats_bp
from routes.site_stats import site_stats_bp
from routes.share import share_bp

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------
# App Factory
# ---------------------------------------------------------------------
def create_app(overrides: dict | None = None) -> Flask:
    configure_logging()

    app = Flask(__name__)
    app.config.from_object(Config)
    if overrides:
        app.config.update(overrides)

    CORS(app, resources={r"/api/*": {"origins": app.config["CORS_ORIGINS"]}})

    # --- Register blueprints ---
    app.register_blueprint(movies_bp, url_prefix="/api/movies")
    app.register_blueprint(quizzes_bp, url_prefix="/api/quizzes")
    app.register_blueprint(user_stats_bp, url_prefix="/api/user")   # X-User-Id required
    app.register_blueprint(site_stats_bp, url_prefix="/api/stats")
    app.register_blueprint(share_bp)                                 # routes include /quizzes/...

    # --- Health (public) ---
    @app.get("/api/health")
    def health():
        return jsonify({"ok": True, "service": "movie-guesser"})

    # --- JSON error handlers ---
    @app.errorhandler(400)
    def handle_400(err):
        return jsonify({"error": str(err)}), 400

    @app.errorhandler(404)
    def handle_404(err):
        return jsonify({"error": "Not found"}), 404

    @app.errorhandler(500)
    def handle_500(err):
        logger.error("Unhandled server error: %s", err)
        return jsonify({"error": "Internal server error"}), 500

    return app


# ---------------------------------------------------------------------
# Dev Server Launcher
# ---------------------------------------------------------------------
app = create_app()

if __name__ == "__main__":
    app.run(host="0.0.0.0", port=Config.PORT, debug=Config.DEBUG)

#!/usr/bin/env python3
"""
Nok RFP Builder — Application Entry Point
Creates Flask app and registers the wizard Blueprint.
"""

import os
import logging
from flask import Flask

from logging_config import setup_logging


def create_app(testing: bool = False):
    """Application factory."""
    if not testing:
        setup_logging()

    app = Flask(__name__)
    app.secret_key = os.environ.get("SECRET_KEY", "nok-rfp-dev")
    app.config["TESTING"] = testing
    app.config["MAX_CONTENT_LENGTH"] = 1_000_000

    # Branding is read once per process; edits to the override file need a restart
    from nokrfp.core.branding import load_branding
    app.config["BRANDING"] = load_branding()

    # Register the wizard blueprint (all routes)
    from nokrfp.api.dashboard import bp
    app.register_blueprint(bp)

    # ── Runtime self-test — catches path/route/config bugs at boot ──────────
    try:
        from nokrfp.core.startup_checks import run_startup_checks
        with app.app_context():
            checks = run_startup_checks(app)
            if checks["failed"] > 0:
                logging.getLogger("nokrfp").error(
                    "STARTUP: %d checks FAILED — review logs", checks["failed"])
    except Exception as e:
        logging.getLogger("nokrfp").warning("Startup checks skipped: %s", e)

    return app


# Wizard sessions live in this process (nokrfp/api/wizard_store.py):
# run one worker, e.g. gunicorn -w 1 --threads 8 app:app
app = create_app()

if __name__ == "__main__":
    port = int(os.environ.get("PORT", 5000))
    app.run(host="0.0.0.0", port=port, debug=False)

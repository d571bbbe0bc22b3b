"""
nokrfp/core/paths.py — Centralized Path Configuration

Single source of truth for all directory paths across the application.
Every module imports from here instead of computing its own DATA_DIR.

Nothing the wizard collects is written here. DATA_DIR only holds optional
assets (brand logo) and logs; OUTPUT_DIR receives PDFs generated from the
command line or tests, never from the web download route.
"""

import os
import logging

log = logging.getLogger("nokrfp.paths")

# ── Project Root ──────────────────────────────────────────────────────────────
_THIS_FILE = os.path.abspath(__file__)
PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.dirname(_THIS_FILE)))

_DEFAULT_DATA_DIR = os.path.join(PROJECT_ROOT, "data")


# Priority: NOKRFP_DATA_DIR env → project data/
def _resolve_data_dir() -> str:
    """Find the data directory for assets and logs."""
    env_dir = os.environ.get("NOKRFP_DATA_DIR", "")
    if env_dir:
        return env_dir
    return _DEFAULT_DATA_DIR


DATA_DIR = _resolve_data_dir()

# ── Core Directories ─────────────────────────────────────────────────────────
OUTPUT_DIR = os.environ.get("NOKRFP_OUTPUT_DIR", "") or os.path.join(PROJECT_ROOT, "output")
LOG_DIR = os.path.join(DATA_DIR, "logs")
FORMS_DIR = os.path.join(PROJECT_ROOT, "nokrfp", "forms")

# ── Key File Paths ───────────────────────────────────────────────────────────
CONFIG_PATH = os.environ.get("NOKRFP_CONFIG", "") or os.path.join(PROJECT_ROOT, "nokrfp_config.json")

# ── Ensure core dirs exist ───────────────────────────────────────────────────
for _d in [DATA_DIR, OUTPUT_DIR]:
    try:
        os.makedirs(_d, exist_ok=True)
    except OSError as e:
        log.warning("Could not create %s: %s", _d, e)


def find_logo(data_dir: str = "") -> str:
    """Return the brand logo path in the data directory, or "" if none."""
    data_dir = data_dir or DATA_DIR
    for name in ("nok_logo.png", "logo.png", "nok_logo.jpg", "logo.jpg"):
        p = os.path.join(data_dir, name)
        if os.path.exists(p):
            return p
    return ""


def validate_paths() -> dict:
    """Runtime validation — call at app startup to catch path issues early.

    Returns:
        {"ok": bool, "errors": [str], "warnings": [str], "resolved": {name: path}}
    """
    result = {"ok": True, "errors": [], "warnings": [], "resolved": {}}

    checks = {
        "PROJECT_ROOT": (PROJECT_ROOT, True),
        "DATA_DIR": (DATA_DIR, True),
        "OUTPUT_DIR": (OUTPUT_DIR, True),
        "FORMS_DIR": (FORMS_DIR, True),
        "CONFIG_PATH": (CONFIG_PATH, False),
    }

    for name, (path, required) in checks.items():
        result["resolved"][name] = path
        if not os.path.exists(path):
            if required:
                result["errors"].append(f"{name} not found: {path}")
                result["ok"] = False
            else:
                result["warnings"].append(f"{name} not found: {path} (using built-in defaults)")

    # OUTPUT_DIR must be writable for generate_rfp()
    test_file = os.path.join(OUTPUT_DIR, ".write_test")
    try:
        with open(test_file, "w") as f:
            f.write("ok")
        os.remove(test_file)
    except OSError as e:
        result["errors"].append(f"OUTPUT_DIR not writable: {e}")
        result["ok"] = False

    logo = find_logo()
    result["resolved"]["LOGO"] = logo or "(wordmark)"
    return result

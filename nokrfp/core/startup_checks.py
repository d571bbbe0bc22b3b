"""
nokrfp/core/startup_checks.py — Runtime Self-Test on App Boot

Runs automatically when the app starts. Catches the class of bugs that
only show up once a visitor is halfway through the wizard:

  1. Path resolution — DATA_DIR / OUTPUT_DIR exist and OUTPUT_DIR is writable
  2. Branding — override file parseable, PDF copy present
  3. Form tables — every step field and visibility rule points at a real
     answer key, and every gate trigger is one of the gate's options
  4. Route integrity — wizard routes registered, no duplicate endpoints
"""

import json
import logging
import os

log = logging.getLogger("nokrfp.startup")

REQUIRED_ROUTES = ("/", "/step/save", "/reset", "/download",
                   "/api/rfp/state", "/api/rfp/field", "/api/health")


def run_startup_checks(app=None) -> dict:
    """Run all startup validation checks. Call from app.py after blueprint registration.

    Returns:
        {"passed": int, "failed": int, "warnings": int, "details": [...]}
    """
    results = {"passed": 0, "failed": 0, "warnings": 0, "details": []}

    def _pass(msg):
        results["passed"] += 1
        results["details"].append(("PASS", msg))
        log.info("✅ %s", msg)

    def _fail(msg):
        results["failed"] += 1
        results["details"].append(("FAIL", msg))
        log.error("❌ STARTUP CHECK FAILED: %s", msg)

    def _warn(msg):
        results["warnings"] += 1
        results["details"].append(("WARN", msg))
        log.warning("⚠️  %s", msg)

    # ── 1. Path Validation ────────────────────────────────────────────────────
    try:
        from nokrfp.core.paths import validate_paths, DATA_DIR
        path_result = validate_paths()
        if path_result["ok"]:
            _pass(f"All paths valid (DATA_DIR={DATA_DIR})")
        else:
            for err in path_result["errors"]:
                _fail(err)
        for warn in path_result.get("warnings", []):
            _warn(warn)
    except Exception as e:
        _fail(f"Path validation error: {e}")

    # ── 2. Branding ───────────────────────────────────────────────────────────
    try:
        from nokrfp.core.paths import CONFIG_PATH
        if os.path.exists(CONFIG_PATH):
            with open(CONFIG_PATH) as f:
                cfg = json.load(f)
            if isinstance(cfg, dict):
                _pass(f"Branding override valid ({len(cfg)} top-level keys)")
            else:
                _fail(f"Branding override {CONFIG_PATH} is not a JSON object")
        brand = (app.config.get("BRANDING") if app else None)
        if brand is None:
            from nokrfp.core.branding import load_branding
            brand = load_branding()
        pdf = brand.get("pdf", {})
        missing = [k for k in ("title", "subtitle") if not pdf.get(k)]
        if missing:
            _warn(f"Branding pdf block missing: {missing}")
        else:
            _pass(f"Branding loaded ({brand.get('name', '?')})")
    except json.JSONDecodeError as e:
        _fail(f"Branding override is corrupt JSON: {e}")
    except Exception as e:
        _warn(f"Branding check error: {e}")

    # ── 3. Form Tables ────────────────────────────────────────────────────────
    try:
        from nokrfp.forms.rfp_form import DEFAULT_ANSWERS, FIELDS, STEPS, VISIBILITY_RULES
        problems = []
        step_ids = {s.id for s in STEPS}
        for step in STEPS:
            for key in step.fields + step.required:
                if key not in DEFAULT_ANSWERS or key not in FIELDS:
                    problems.append(f"step {step.id}: unknown field {key}")
        for rule in VISIBILITY_RULES:
            for key in (rule.field, rule.gate):
                if key not in DEFAULT_ANSWERS:
                    problems.append(f"rule {rule.field}: unknown field {key}")
            if rule.step not in step_ids:
                problems.append(f"rule {rule.field}: unknown step {rule.step}")
            options = FIELDS.get(rule.gate, {}).get("options") or ()
            if rule.value not in options:
                problems.append(f"rule {rule.field}: trigger {rule.value!r} not an option of {rule.gate}")
        if problems:
            for p in problems:
                _fail(f"Form table: {p}")
        else:
            _pass(f"Form tables consistent ({len(STEPS)} steps, {len(VISIBILITY_RULES)} rules)")
    except Exception as e:
        _fail(f"Form table check error: {e}")

    # ── 4. Route Integrity (if app provided) ──────────────────────────────────
    if app:
        try:
            rules = [r for r in app.url_map.iter_rules()
                     if r.endpoint and not r.endpoint.startswith("static")]
            paths = {r.rule for r in rules}
            missing = [p for p in REQUIRED_ROUTES if p not in paths]
            if missing:
                _fail(f"Routes not registered: {missing}")
            else:
                _pass(f"Flask routes registered: {len(rules)}")

            endpoints = [r.endpoint for r in rules]
            dupes = set(e for e in endpoints if endpoints.count(e) > 1)
            if dupes:
                _fail(f"Duplicate route endpoints: {dupes}")
        except Exception as e:
            _warn(f"Route check skipped: {e}")

    # ── Summary ──────────────────────────────────────────────────────────────
    total = results["passed"] + results["failed"] + results["warnings"]
    if results["failed"] > 0:
        log.error("STARTUP: %d/%d checks FAILED — app may not work correctly",
                  results["failed"], total)
    else:
        log.info("STARTUP: %d/%d checks passed (%d warnings)",
                 results["passed"], total, results["warnings"])
    return results

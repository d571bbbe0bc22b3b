"""Tests for boot-time self checks, path validation, branding, and logging setup."""

import json
import logging
import os
import sys

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from nokrfp.core import paths
from nokrfp.core.branding import BRAND, load_branding
from nokrfp.core.startup_checks import run_startup_checks


class TestStartupChecks:
    def test_clean_boot(self, app):
        with app.app_context():
            result = run_startup_checks(app)
        assert result["failed"] == 0
        assert result["passed"] >= 3

    def test_without_app(self):
        result = run_startup_checks()
        assert result["failed"] == 0
        assert not any("routes" in msg for _, msg in result["details"])

    def test_missing_routes_fail(self):
        from flask import Flask
        bare = Flask("bare")
        result = run_startup_checks(bare)
        assert result["failed"] >= 1
        assert any("Routes not registered" in msg for _, msg in result["details"])

    def test_corrupt_branding_fails(self, app, tmp_path, monkeypatch):
        bad = tmp_path / "bad.json"
        bad.write_text("{not json")
        monkeypatch.setattr(paths, "CONFIG_PATH", str(bad))
        with app.app_context():
            result = run_startup_checks(app)
        assert any(status == "FAIL" and "Branding" in msg
                   for status, msg in result["details"])


class TestValidatePaths:
    def test_ok(self):
        result = paths.validate_paths()
        assert result["ok"] is True
        assert result["resolved"]["LOGO"] == "(wordmark)"

    def test_missing_config_is_warning(self):
        result = paths.validate_paths()
        assert any("CONFIG_PATH" in w for w in result["warnings"])

    def test_find_logo(self, temp_data_dir):
        assert paths.find_logo(temp_data_dir) == ""
        logo = os.path.join(temp_data_dir, "logo.png")
        open(logo, "wb").close()
        assert paths.find_logo(temp_data_dir) == logo


class TestBranding:
    def test_defaults_without_override(self):
        brand = load_branding()
        assert brand == BRAND
        assert brand is not BRAND

    def test_override_deep_merged(self, tmp_path):
        cfg = tmp_path / "brand.json"
        cfg.write_text(json.dumps({"name": "Acme Returns", "pdf": {"title": "Brief"}}))
        brand = load_branding(str(cfg))
        assert brand["name"] == "Acme Returns"
        assert brand["pdf"]["title"] == "Brief"
        assert brand["pdf"]["subtitle"] == BRAND["pdf"]["subtitle"]

    def test_malformed_override_ignored(self, tmp_path):
        cfg = tmp_path / "brand.json"
        cfg.write_text("[1, 2")
        assert load_branding(str(cfg)) == BRAND

    def test_non_object_override_ignored(self, tmp_path):
        cfg = tmp_path / "brand.json"
        cfg.write_text("[1, 2]")
        assert load_branding(str(cfg)) == BRAND


class TestLoggingConfig:
    def test_json_formatter_merges_extras(self):
        from logging_config import JSONFormatter
        record = logging.LogRecord("nokrfp.test", logging.INFO, __file__, 1,
                                   "rendered %s", ("x.pdf",), None)
        record.rfp_file = "x.pdf"
        record.pages = 3
        entry = json.loads(JSONFormatter().format(record))
        assert entry["msg"] == "rendered x.pdf"
        assert entry["pages"] == 3
        assert entry["rfp_file"] == "x.pdf"
        assert entry["logger"] == "nokrfp.test"

    def test_setup_writes_log_file(self, tmp_path):
        from logging_config import setup_logging
        root = logging.getLogger()
        saved_handlers, saved_level = root.handlers[:], root.level
        try:
            setup_logging(level="DEBUG", json_logs=True, log_dir=str(tmp_path / "logs"))
            logging.getLogger("nokrfp.test").info("hello")
            for h in root.handlers:
                h.flush()
            assert os.path.exists(tmp_path / "logs" / "nokrfp.log")
        finally:
            for h in root.handlers:
                h.close()
            root.handlers[:] = saved_handlers
            root.setLevel(saved_level)

    def test_human_formatter_appends_extras(self):
        from logging_config import HumanFormatter
        record = logging.LogRecord("nokrfp.test", logging.INFO, __file__, 1,
                                   "Wizard reset", (), None)
        record.step = "general"
        record.sid = "abc123"
        line = HumanFormatter(color=False).format(record)
        assert line.endswith("nokrfp.test: Wizard reset  sid=abc123 step=general")
        assert "\033[" not in line

    def test_human_formatter_plain_without_extras(self):
        from logging_config import HumanFormatter
        record = logging.LogRecord("nokrfp.test", logging.WARNING, __file__, 1,
                                   "careful", (), None)
        line = HumanFormatter(color=False).format(record)
        assert line.endswith("[W] nokrfp.test: careful")

    def test_request_filter_stamps_route_and_sid(self, app):
        from logging_config import RequestContextFilter, JSONFormatter
        from flask import session
        record = logging.LogRecord("nokrfp.test", logging.INFO, __file__, 1,
                                   "saved", (), None)
        with app.test_request_context("/api/rfp/field", method="POST"):
            session["sid"] = "abc123"
            assert RequestContextFilter().filter(record) is True
        entry = json.loads(JSONFormatter().format(record))
        assert entry["route"] == "/api/rfp/field"
        assert entry["method"] == "POST"
        assert entry["sid"] == "abc123"

    def test_request_filter_outside_request(self):
        from logging_config import RequestContextFilter, JSONFormatter
        record = logging.LogRecord("nokrfp.test", logging.INFO, __file__, 1,
                                   "boot", (), None)
        assert RequestContextFilter().filter(record) is True
        entry = json.loads(JSONFormatter().format(record))
        assert "route" not in entry
        assert "sid" not in entry

"""
Shared pytest fixtures for the Nok RFP test suite.

Every test gets its own data/output directory and an absent branding
override, so a local nokrfp_config.json or logo never leaks into results.
"""
import io
import os
import sys
import pytest

_PROJECT_ROOT = os.path.dirname(os.path.abspath(__file__))
if _PROJECT_ROOT not in sys.path:
    sys.path.insert(0, _PROJECT_ROOT)


# ── Temp data directory (per-test isolation) ──────────────────────────────────

@pytest.fixture(autouse=True)
def temp_data_dir(tmp_path, monkeypatch):
    """Redirect module data/output dirs and the branding override to tmp."""
    data = str(tmp_path / "data")
    output = str(tmp_path / "output")
    os.makedirs(data, exist_ok=True)
    os.makedirs(output, exist_ok=True)

    import nokrfp.core.paths as paths
    import nokrfp.forms.rfp_generator as rfp_generator
    monkeypatch.setattr(paths, "DATA_DIR", data)
    monkeypatch.setattr(paths, "OUTPUT_DIR", output)
    monkeypatch.setattr(paths, "CONFIG_PATH", str(tmp_path / "nokrfp_config.json"))
    monkeypatch.setattr(rfp_generator, "DATA_DIR", data)
    monkeypatch.setattr(rfp_generator, "OUTPUT_DIR", output)

    from nokrfp.api import wizard_store
    wizard_store.clear()
    return data


# ── Answer records ────────────────────────────────────────────────────────────

@pytest.fixture
def complete_answers():
    """Every step filled; DIF retailer, DTC-heavy, large volume."""
    return {
        "company_name": "Acme Outdoor Co.",
        "returns_per_year": "150000",
        "seasonality": "Q4 Peak",
        "sells_into_retailers": "Yes",
        "retailer_program": "DIF",
        "current_returns_handling": "Main warehouse, slow grading",
        "returns_handling": "Restock what we can, liquidate the rest",
        "countries": "US, Canada",
        "warranty_program": "Yes",
        "warranty_interest": "",
        "subscription_program": "No",
        "subscription_interest": "Yes",
        "sales_split_dtc": 80,
        "interested_channels": ["Amazon", "Other"],
        "channel_restrictions": "No RTV liquidation",
        "branded_dtc": "Yes",
        "branded_management": "Out-source",
        "trade_in": "No",
        "value_priority": "Customer loyalty",
        "opportunity_feeling": "No",
        "excess_inventory_channel": "Off-Priced Retailers (National)",
        "excess_inventory_national": "TJX, Ross",
        "excess_inventory_regional": "",
        "combine_strategy": "Yes",
        "name": "Jane Doe",
        "email": "jane@acme.example",
    }


@pytest.fixture
def minimal_answers():
    """Only the contact step filled; everything else at defaults."""
    return {"name": "Sam Lee", "email": "sam@example.com"}


# ── PDF helpers ───────────────────────────────────────────────────────────────

def pdf_text(pdf) -> str:
    """Extract all page text from a PDF path or bytes."""
    from pypdf import PdfReader
    if isinstance(pdf, (bytes, bytearray)):
        pdf = io.BytesIO(pdf)
    reader = PdfReader(pdf)
    return "\n".join(page.extract_text() or "" for page in reader.pages)


def pdf_page_count(pdf) -> int:
    from pypdf import PdfReader
    if isinstance(pdf, (bytes, bytearray)):
        pdf = io.BytesIO(pdf)
    return len(PdfReader(pdf).pages)


# ── Flask test client ─────────────────────────────────────────────────────────

@pytest.fixture
def app():
    """Flask app with the wizard blueprint, configured for testing.

    Built directly instead of importing app.py, whose module-level
    create_app() would reconfigure root logging mid-test.
    """
    from flask import Flask
    from nokrfp.api.dashboard import bp
    from nokrfp.core.branding import load_branding

    flask_app = Flask("nokrfp_test")
    flask_app.secret_key = "test-secret"
    flask_app.config["TESTING"] = True
    flask_app.config["BRANDING"] = load_branding()
    flask_app.register_blueprint(bp)
    return flask_app


@pytest.fixture
def client(app):
    return app.test_client()

"""
tests/test_routes.py — Wizard routes and JSON API
==================================================
Runs against the Flask test client. Session state travels in the test
client's cookie jar, the same way it does in a browser.
"""
import os
import sys

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from conftest import pdf_text
from nokrfp.api import dashboard

GENERAL_FORM = {
    "company_name": "Acme Outdoor Co.",
    "returns_per_year": "150000",
    "seasonality": "Q4 Peak",
    "sells_into_retailers": "Yes",
    "retailer_program": "DIF",
    "returns_handling": "Restock",
    "countries": "US",
    "warranty_program": "Yes",
    "subscription_program": "Yes",
}


def _state(client) -> dict:
    return client.get("/api/rfp/state").get_json()


def _fill_everything(client, answers):
    for key, value in answers.items():
        if key == "interested_channels":
            for option in value:
                client.post("/api/rfp/channel", json={"option": option})
        else:
            client.post("/api/rfp/field", json={"key": key, "value": value})


# ═══════════════════════════════════════════════════════════════════════
# Pages
# ═══════════════════════════════════════════════════════════════════════

class TestWizardPage:
    def test_home_renders_first_step(self, client):
        r = client.get("/")
        assert r.status_code == 200
        html = r.get_data(as_text=True)
        assert "General Logistics" in html
        assert "Do you sell into retailers?" in html
        assert "Nok Recommerce" in html
        assert 'id="nextBtn"' in html

    def test_next_disabled_on_fresh_step(self, client):
        html = client.get("/").get_data(as_text=True)
        assert 'value="next" disabled' in html

    def test_every_step_renders(self, client):
        for index in range(4):
            client.post(f"/step/{index}")
            assert client.get("/").status_code == 200

    def test_lead_step_shows_download(self, client):
        client.post("/step/3")
        html = client.get("/").get_data(as_text=True)
        assert "Download PDF" in html
        assert "Lead Capture" in html


class TestStepSave:
    def test_next_blocked_when_incomplete(self, client):
        r = client.post("/step/save", data={"countries": "US", "action": "next"})
        assert r.status_code == 302
        state = _state(client)
        assert state["step_index"] == 0
        assert state["answers"]["countries"] == "US"
        assert "returns_per_year" in state["missing"]

    def test_next_advances_when_complete(self, client):
        client.post("/step/save", data=dict(GENERAL_FORM, action="next"))
        state = _state(client)
        assert state["step_index"] == 1
        assert state["answers"]["returns_per_year"] == "150,000"

    def test_fields_outside_step_ignored(self, client):
        client.post("/step/save", data={"name": "Sneaky", "action": "save"})
        assert _state(client)["answers"]["name"] == ""

    def test_back(self, client):
        client.post("/step/2")
        client.post("/step/save", data={"action": "back"})
        assert _state(client)["step_index"] == 1

    def test_channels_from_checkboxes(self, client):
        client.post("/step/1")
        client.post("/step/save", data={
            "interested_channels": ["Other", "Amazon"],
            "interested_channels__present": "1",
            "action": "save",
        })
        assert _state(client)["answers"]["interested_channels"] == ["Amazon", "Other"]
        client.post("/step/save", data={
            "interested_channels": ["Other"],
            "interested_channels__present": "1",
            "action": "save",
        })
        assert _state(client)["answers"]["interested_channels"] == ["Other"]

    def test_percent_from_range_input(self, client):
        client.post("/step/1")
        client.post("/step/save", data={"sales_split_dtc": "75", "action": "save"})
        assert _state(client)["answers"]["sales_split_dtc"] == 75


class TestJumpAndReset:
    def test_jump(self, client):
        client.post("/step/2")
        assert _state(client)["step"] == "value"

    def test_out_of_range_jump_ignored(self, client):
        client.post("/step/1")
        client.post("/step/9")
        assert _state(client)["step_index"] == 1

    def test_reset(self, client):
        client.post("/step/save", data=dict(GENERAL_FORM, action="next"))
        client.post("/reset")
        state = _state(client)
        assert state["step_index"] == 0
        assert state["answers"]["countries"] == ""


# ═══════════════════════════════════════════════════════════════════════
# Download
# ═══════════════════════════════════════════════════════════════════════

class TestDownload:
    def test_not_ready_redirects(self, client):
        r = client.get("/download")
        assert r.status_code == 302
        html = client.get("/").get_data(as_text=True)
        assert "Enter your name and email" in html

    def test_download_pdf(self, client, complete_answers):
        _fill_everything(client, complete_answers)
        r = client.get("/download")
        assert r.status_code == 200
        assert r.mimetype == "application/pdf"
        assert "Jane-Doe-RFP.pdf" in r.headers["Content-Disposition"]
        text = pdf_text(r.data)
        assert "Acme Outdoor Co." in text
        assert "Destroy in Field (DIF)" in text

    def test_download_leaves_answers_intact(self, client, minimal_answers):
        _fill_everything(client, minimal_answers)
        client.get("/download")
        state = _state(client)
        assert state["answers"]["name"] == "Sam Lee"
        assert state["export_ready"] is True

    def test_overlapping_download_rejected(self, client, minimal_answers):
        with client.session_transaction() as sess:
            sess["sid"] = "busy-session"
        _fill_everything(client, minimal_answers)
        dashboard._exports_in_flight.add("busy-session")
        try:
            r = client.get("/download")
        finally:
            dashboard._exports_in_flight.discard("busy-session")
        assert r.status_code == 409
        assert r.get_json()["ok"] is False

    def test_in_flight_marker_cleared(self, client, minimal_answers):
        _fill_everything(client, minimal_answers)
        client.get("/download")
        assert client.get("/download").status_code == 200
        assert not dashboard._exports_in_flight

    def test_renderer_failure_is_retryable(self, client, minimal_answers, monkeypatch):
        _fill_everything(client, minimal_answers)
        real = dashboard.generate_rfp_bytes

        def boom(*a, **kw):
            raise RuntimeError("canvas exploded")
        monkeypatch.setattr(dashboard, "generate_rfp_bytes", boom)
        r = client.get("/download")
        assert r.status_code == 302
        assert "Could not prepare the PDF" in client.get("/").get_data(as_text=True)
        assert not dashboard._exports_in_flight

        monkeypatch.setattr(dashboard, "generate_rfp_bytes", real)
        assert client.get("/download").status_code == 200


# ═══════════════════════════════════════════════════════════════════════
# JSON API
# ═══════════════════════════════════════════════════════════════════════

class TestApi:
    def test_state_shape(self, client):
        state = _state(client)
        assert state["ok"] is True
        for key in ("step_index", "step", "answers", "visibility", "can_advance",
                    "export_ready", "missing", "progress"):
            assert key in state
        assert state["progress"] == 25.0

    def test_field_updates_visibility(self, client):
        data = client.post("/api/rfp/field",
                           json={"key": "sells_into_retailers", "value": "Yes"}).get_json()
        assert data["visibility"]["retailer_program"] is True

    def test_field_normalizes_returns(self, client):
        data = client.post("/api/rfp/field",
                           json={"key": "returns_per_year", "value": "12a3456"}).get_json()
        assert data["answers"]["returns_per_year"] == "123,456"

    def test_unknown_field_400(self, client):
        r = client.post("/api/rfp/field", json={"key": "bogus", "value": "x"})
        assert r.status_code == 400
        assert r.get_json()["ok"] is False

    def test_unknown_channel_400(self, client):
        assert client.post("/api/rfp/channel", json={"option": "eBay"}).status_code == 400

    def test_channel_toggle(self, client):
        client.post("/api/rfp/channel", json={"option": "Amazon"})
        data = client.post("/api/rfp/channel", json={"option": "Amazon"}).get_json()
        assert data["answers"]["interested_channels"] == []

    def test_navigate_next_refused_when_incomplete(self, client):
        data = client.post("/api/rfp/navigate", json={"action": "next"}).get_json()
        assert data["ok"] is False
        assert data["step_index"] == 0

    def test_navigate_goto_and_back(self, client):
        client.post("/api/rfp/navigate", json={"action": "goto", "index": 3})
        data = client.post("/api/rfp/navigate", json={"action": "back"}).get_json()
        assert data["step_index"] == 2

    def test_navigate_bad_action_400(self, client):
        assert client.post("/api/rfp/navigate", json={"action": "submit"}).status_code == 400

    def test_navigate_without_body_400(self, client):
        assert client.post("/api/rfp/navigate").status_code == 400

    def test_api_reset(self, client):
        client.post("/api/rfp/field", json={"key": "name", "value": "Jane"})
        data = client.post("/api/rfp/reset").get_json()
        assert data["answers"]["name"] == ""

    def test_preview(self, client, complete_answers):
        _fill_everything(client, complete_answers)
        doc = client.get("/api/rfp/preview").get_json()["document"]
        assert len(doc["sections"]) == 5
        assert doc["filename"] == "Jane-Doe-RFP.pdf"

    def test_health(self, client):
        data = client.get("/api/health").get_json()
        assert data["ok"] is True
        assert data["steps"] == 4

    def test_percent_overflow_keeps_current(self, client):
        r = client.post("/api/rfp/field", json={"key": "sales_split_dtc", "value": "1e999"})
        assert r.status_code == 200
        assert r.get_json()["answers"]["sales_split_dtc"] == 50

    @pytest.mark.parametrize("url", ["/api/rfp/field", "/api/rfp/channel", "/api/rfp/navigate"])
    @pytest.mark.parametrize("body", [["name", "Jane"], "Amazon", 7])
    def test_non_object_body_400(self, client, url, body):
        r = client.post(url, json=body)
        assert r.status_code == 400
        assert r.get_json()["ok"] is False


# ═══════════════════════════════════════════════════════════════════════
# Session storage
# ═══════════════════════════════════════════════════════════════════════

class TestSessionStorage:
    def test_cookie_holds_only_session_id(self, client):
        long_answer = "Grade, restock and resell through our outlet. " * 100
        assert len(long_answer) > 4096
        r = client.post("/api/rfp/field", json={"key": "returns_handling", "value": long_answer})
        assert r.status_code == 200
        for header in r.headers.getlist("Set-Cookie"):
            assert len(header) < 512
        assert len(client.get_cookie("session").value) < 512
        assert _state(client)["answers"]["returns_handling"] == long_answer

    def test_long_answer_reaches_pdf(self, client, minimal_answers):
        long_answer = "Restock " * 600
        _fill_everything(client, minimal_answers)
        client.post("/api/rfp/field", json={"key": "returns_handling", "value": long_answer})
        assert client.get("/download").status_code == 200

    def test_stale_cookie_does_not_lose_edits(self, client):
        _state(client)
        cookie = client.get_cookie("session").value

        client.post("/api/rfp/field", json={"key": "name", "value": "Jane"})
        # second request carries the cookie from before the first response
        client.set_cookie("session", cookie)
        client.post("/api/rfp/field", json={"key": "email", "value": "jane@acme.example"})
        client.set_cookie("session", cookie)

        answers = _state(client)["answers"]
        assert answers["name"] == "Jane"
        assert answers["email"] == "jane@acme.example"

    def test_browsers_do_not_share_answers(self, app):
        first, second = app.test_client(), app.test_client()
        first.post("/api/rfp/field", json={"key": "name", "value": "Jane"})
        assert second.get("/api/rfp/state").get_json()["answers"]["name"] == ""

    def test_page_uses_serialized_posts(self, client):
        html = client.get("/").get_data(as_text=True)
        assert "pending=pending.then(" in html
        assert "pending.then(()=>fetch('/download'))" in html

#!/usr/bin/env python3
"""
Nok RFP Wizard — Routes
Four-step intake form → RFP PDF download.

The signed Flask session cookie holds only a session id ("sid"); the wizard
itself (step index + answers) lives in wizard_store, keyed by that id. The
PDF is rendered in memory from a snapshot of the answers and streamed back.
"""
import io
import logging
import threading
import time
import uuid

from flask import (Blueprint, request, redirect, session, render_template_string,
                   send_file, jsonify, flash, current_app)

from nokrfp.api import wizard_store
from nokrfp.api.templates import BASE_CSS, PAGE_WIZARD
from nokrfp.core.branding import load_branding
from nokrfp.forms.rfp_form import (
    STEPS, FIELDS, ANSWER_KEYS, CHANNEL_OPTIONS, CONDITIONAL_FIELDS,
    WizardSession, missing_fields, normalize_returns_input, suggested_filename,
)
from nokrfp.forms.rfp_composer import compose_document
from nokrfp.forms.rfp_generator import generate_rfp_bytes

log = logging.getLogger("nokrfp.dashboard")

bp = Blueprint("rfp", __name__)

# One download at a time per browser session
_export_lock = threading.Lock()
_exports_in_flight = set()


# ── Request-level structured logging ────────────────────────────────────────
@bp.before_app_request
def _log_request_start():
    request._start_time = time.time()


@bp.after_app_request
def _log_request_end(response):
    if hasattr(request, "_start_time"):
        duration_ms = round((time.time() - request._start_time) * 1000, 1)
        if request.path not in ("/api/health",) and not request.path.startswith("/static"):
            log.info("%s %s → %d (%.0fms)",
                     request.method, request.path, response.status_code, duration_ms,
                     extra={"status": response.status_code, "duration_ms": duration_ms})
    return response


# ═══════════════════════════════════════════════════════════════════════
# Session helpers
# ═══════════════════════════════════════════════════════════════════════

def _brand() -> dict:
    brand = current_app.config.get("BRANDING")
    if brand is None:
        brand = load_branding()
        current_app.config["BRANDING"] = brand
    return brand


def _session_id() -> str:
    if "sid" not in session:
        session["sid"] = uuid.uuid4().hex[:12]
    return session["sid"]


def _load_wizard() -> WizardSession:
    return wizard_store.load(_session_id())


def _editing():
    """`with _editing() as wiz:` mutates and saves this browser's wizard."""
    return wizard_store.edit(_session_id())


def _json_body() -> dict:
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def _state(wiz: WizardSession) -> dict:
    step = wiz.current_step
    return {
        "ok": True,
        "step_index": wiz.step_index,
        "step": step.id,
        "title": step.title,
        "progress": wiz.progress,
        "answers": wiz.snapshot(),
        "visibility": wiz.visibility,
        "can_advance": wiz.can_advance,
        "missing": missing_fields(step.id, wiz.answers),
        "export_ready": wiz.export_ready,
        "filename": suggested_filename(wiz.answers),
    }


def _set_field(wiz: WizardSession, key: str, value) -> bool:
    if key == "returns_per_year":
        value = normalize_returns_input(value)
    return wiz.update_field(key, value)


def _sync_channels(wiz: WizardSession, selected: list):
    """Route a full checkbox selection through toggle_channel()."""
    current = set(wiz.answers["interested_channels"])
    wanted = set(selected)
    for option in CHANNEL_OPTIONS:
        if option in current ^ wanted:
            wiz.toggle_channel(option)


def _apply_posted_fields(wiz: WizardSession, form):
    for key in wiz.current_step.fields:
        if FIELDS[key]["kind"] == "checkbox":
            if form.get(f"{key}__present"):
                _sync_channels(wiz, form.getlist(key))
        elif key in form:
            _set_field(wiz, key, form.get(key))


# ═══════════════════════════════════════════════════════════════════════
# Pages
# ═══════════════════════════════════════════════════════════════════════

def render(content, **kw):
    brand = kw.get("brand") or _brand()
    html = f"""<!DOCTYPE html><html><head><meta charset="utf-8"><meta name="viewport" content="width=device-width,initial-scale=1">
<title>{brand['name']} — RFP Builder</title>
<link href="https://fonts.googleapis.com/css2?family=DM+Sans:wght@400;500;600;700&display=swap" rel="stylesheet">
<style>{BASE_CSS}</style></head><body>
<div class="ctr">
<header class="hero">
 <div class="hero-top"><span class="brand">{{{{ brand.name }}}}</span><span class="tag">{{{{ brand.tagline }}}}</span></div>
 <h1>{{{{ brand.page_title }}}}</h1>
 <p>{{{{ brand.intro }}}}</p>
</header>
{{% with messages = get_flashed_messages(with_categories=true) %}}
 {{% for cat, msg in messages %}}<div class="alert al-{{{{ 'e' if cat == 'error' else 'i' }}}}">{{{{ msg }}}}</div>{{% endfor %}}
{{% endwith %}}
""" + content + """
</div></body></html>"""
    kw["brand"] = brand
    return render_template_string(html, **kw)


@bp.route("/")
def home():
    wiz = _load_wizard()
    step = wiz.current_step
    return render(
        PAGE_WIZARD,
        wiz=wiz,
        steps=STEPS,
        step=step,
        fields=FIELDS,
        answers=wiz.answers,
        visibility=wiz.visibility,
        conditional=sorted(CONDITIONAL_FIELDS),
        can_next=wiz.can_advance,
        ready=wiz.export_ready,
    )


@bp.route("/step/save", methods=["POST"])
def save_step():
    action = request.form.get("action", "save")
    with _editing() as wiz:
        _apply_posted_fields(wiz, request.form)
        if action == "next":
            # Next is disabled on the page while the step is incomplete
            if wiz.can_advance:
                wiz.go_next()
            else:
                log.debug("Next ignored on %s: missing %s", wiz.current_step.id,
                          missing_fields(wiz.current_step.id, wiz.answers),
                          extra={"step": wiz.current_step.id})
        elif action == "back":
            wiz.go_back()
    return redirect("/")


@bp.route("/step/<int:index>", methods=["POST"])
def jump_to_step(index):
    with _editing() as wiz:
        wiz.go_to_step(index)
    return redirect("/")


@bp.route("/reset", methods=["POST"])
def reset():
    with _editing() as wiz:
        wiz.reset()
    log.info("Wizard reset", extra={"step": STEPS[0].id})
    return redirect("/")


@bp.route("/download")
def download():
    wiz = _load_wizard()
    if not wiz.export_ready:
        flash("Enter your name and email to download the RFP.", "info")
        return redirect("/")

    sid = _session_id()
    with _export_lock:
        if sid in _exports_in_flight:
            return jsonify({"ok": False, "error": "PDF is already being prepared"}), 409
        _exports_in_flight.add(sid)

    try:
        pdf_bytes, filename = generate_rfp_bytes(wiz.snapshot(), brand=_brand())
    except Exception as e:
        log.error("RFP download failed: %s", e, exc_info=True)
        flash("Could not prepare the PDF. Please try again.", "error")
        return redirect("/")
    finally:
        with _export_lock:
            _exports_in_flight.discard(sid)

    return send_file(io.BytesIO(pdf_bytes), mimetype="application/pdf",
                     as_attachment=True, download_name=filename)


# ═══════════════════════════════════════════════════════════════════════
# JSON API
# ═══════════════════════════════════════════════════════════════════════

@bp.route("/api/rfp/state")
def api_state():
    return jsonify(_state(_load_wizard()))


@bp.route("/api/rfp/field", methods=["POST"])
def api_field():
    data = _json_body()
    key = data.get("key", "")
    if key not in ANSWER_KEYS:
        return jsonify({"ok": False, "error": f"Unknown field: {key}"}), 400
    with _editing() as wiz:
        _set_field(wiz, key, data.get("value"))
        state = _state(wiz)
    return jsonify(state)


@bp.route("/api/rfp/channel", methods=["POST"])
def api_channel():
    option = _json_body().get("option", "")
    if option not in CHANNEL_OPTIONS:
        return jsonify({"ok": False, "error": f"Unknown channel: {option}"}), 400
    with _editing() as wiz:
        wiz.toggle_channel(option)
        state = _state(wiz)
    return jsonify(state)


@bp.route("/api/rfp/navigate", methods=["POST"])
def api_navigate():
    data = _json_body()
    action = data.get("action", "")
    if action not in ("next", "back", "goto"):
        return jsonify({"ok": False, "error": f"Unknown action: {action}"}), 400
    with _editing() as wiz:
        if action == "next" and not wiz.can_advance:
            state = _state(wiz)
            state.update(ok=False, error="Step incomplete")
            return jsonify(state)
        if action == "next":
            wiz.go_next()
        elif action == "back":
            wiz.go_back()
        else:
            wiz.go_to_step(data.get("index"))
        state = _state(wiz)
    return jsonify(state)


@bp.route("/api/rfp/reset", methods=["POST"])
def api_reset():
    with _editing() as wiz:
        wiz.reset()
        state = _state(wiz)
    return jsonify(state)


@bp.route("/api/rfp/preview")
def api_preview():
    wiz = _load_wizard()
    doc = compose_document(wiz.snapshot(), brand=_brand())
    return jsonify({"ok": True, "document": doc})


@bp.route("/api/health")
def api_health():
    return jsonify({"ok": True, "status": "healthy", "steps": len(STEPS)})

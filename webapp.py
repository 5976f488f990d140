import json
import logging

import gspread
import requests
from flask import Flask, request, jsonify
from flask_cors import CORS

import certidoes
from config import get_settings
from logging_setup import init_logging

# ─── App setup ───────────────────────────────────────────────────────────
init_logging()
logger = logging.getLogger(__name__)

app = Flask(__name__)
CORS(app)  # the form may be served from another origin

# ─── Google Sheets (read-only listing) ───────────────────────────────────
SCOPE = ["https://www.googleapis.com/auth/spreadsheets.readonly",
         "https://www.googleapis.com/auth/drive.readonly"]
_sheet = None


def _worksheet():
    global _sheet
    if _sheet is None:
        settings = get_settings()
        gc = gspread.service_account(filename=settings.google_credentials_file, scopes=SCOPE)
        _sheet = gc.open(settings.spreadsheet_name).worksheet(settings.worksheet_name)
    return _sheet


# ─── 405 for any method other than the route's ───────────────────────────
@app.errorhandler(405)
def method_not_allowed(_error):
    return jsonify({"ok": False, "error": certidoes.MSG_METHOD_NOT_ALLOWED}), 405


def _missing(value):
    """Absent or a falsy scalar; empty objects and arrays count as present."""
    return not isinstance(value, (dict, list)) and not value


# ─── POST /api/certidao ──────────────────────────────────────────────────
@app.route("/api/certidao", methods=["POST"])
def relay():
    try:
        body = request.get_json(force=True, silent=True) or {}
        logger.debug("Body received: %s", body)
        certidao = body.get(certidoes.ENVELOPE_KEY) if isinstance(body, dict) else None

        if _missing(certidao):
            return jsonify({"ok": False, "error": certidoes.MSG_MISSING_ENVELOPE, "body": body}), 400

        downstream = requests.post(
            get_settings().apps_script_url,
            json={certidoes.ENVELOPE_KEY: certidao},
        )
        text = downstream.text
        logger.info("Apps Script answered %s", downstream.status_code)

        try:
            data = json.loads(text)
        except ValueError:
            data = {"ok": False, "raw": text}

        return jsonify(data), downstream.status_code
    except Exception as exc:
        logger.exception("Relay failed")
        return jsonify({"ok": False, "error": str(exc)}), 500


# ─── GET /api/certidoes ──────────────────────────────────────────────────
@app.route("/api/certidoes")
def list_certidoes():
    try:
        records = _worksheet().get_all_records()
    except Exception as exc:
        logger.exception("Listing failed")
        return jsonify({"ok": False, "error": str(exc)}), 500
    return jsonify({"ok": True, "certidoes": records}), 200


# ─── Health check ─────────────────────────────────────────────────────────
@app.route("/healthz")
def healthz():
    return "OK", 200

if __name__ == "__main__":
    app.run(host="0.0.0.0", port=get_settings().port)

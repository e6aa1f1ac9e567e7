import logging
import os
from typing import Any, Dict, Optional

import click
from flask import Flask, abort, jsonify, redirect, render_template, request, url_for

from compound_calc.data_models import FINAL_AMOUNT, FREQUENCIES, SOLVE_TARGETS, TIME_UNITS
from compound_calc.engine import compute
from compound_calc.errors import CalculationError, InvalidInput
from compound_calc.formatter import (
    calculation_steps,
    format_currency,
    format_percentage,
    format_solved_value,
    round_half_up,
)
from compound_calc.history import build_history_record, record_to_params
from compound_calc.history_store import create_store_from_env
from compound_calc.main import build_params_from_options, result_to_dict, solve_from_options

logger = logging.getLogger(__name__)

app = Flask(__name__)
app.config["ASSET_VERSION"] = os.environ.get("ASSET_VERSION", "1")
app.secret_key = os.environ.get("FLASK_SECRET_KEY", "dev-secret-key")
history_store = create_store_from_env(
    os.environ.get("CALCULATION_DATABASE_URL"),
    os.environ.get("HISTORY_MAX_RECORDS"),
)

CURRENCY_OPTIONS = {
    'PHP': {'label': 'Philippine peso', 'prefix': '₱', 'suffix': ''},
    'USD': {'label': 'US dollar', 'prefix': '$', 'suffix': ''},
    'EUR': {'label': 'Euro', 'prefix': '€', 'suffix': ''},
    'GBP': {'label': 'British pound', 'prefix': '£', 'suffix': ''},
}
DEFAULT_CURRENCY = 'PHP'
PREVIEW_ROWS = 120


def _normalized_currency(form) -> str:
    code = form.get("currency", DEFAULT_CURRENCY).upper()
    return code if code in CURRENCY_OPTIONS else DEFAULT_CURRENCY


def _field(form, name: str) -> Optional[str]:
    value = form.get(name)
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def _run_calculation(form):
    """Run a forward calculation or an inverse solve from submitted values.

    Returns ``(params, result, solve_for, solved)``; ``solve_for`` and
    ``solved`` are ``None`` for a forward calculation.
    """
    mode = form.get("mode", "compute")
    time_unit = form.get("time_unit", "years")
    frequency = form.get("frequency", "annually")
    start_date = _field(form, "start_date")
    if mode == "solve":
        solve_for = form.get("solve_for", "principal")
        params, solved, result = solve_from_options(
            solve_for,
            _field(form, "principal"),
            _field(form, "rate"),
            _field(form, "time"),
            _field(form, "final_amount"),
            time_unit,
            frequency,
            start_date,
        )
        return params, result, solve_for, solved
    params = build_params_from_options(
        _field(form, "principal") or "",
        _field(form, "rate") or "",
        _field(form, "time") or "",
        time_unit,
        frequency,
        start_date,
    )
    return params, compute(params), None, None


def _save_to_history(params, result) -> None:
    history_store.save(build_history_record(params, result))


def _breakdown_for_view(result, show_full_breakdown: bool):
    rows = result.breakdown
    if show_full_breakdown or len(rows) <= PREVIEW_ROWS:
        return rows, 0
    return rows[:PREVIEW_ROWS], len(rows) - PREVIEW_ROWS


def _render_page(
    form: Dict[str, Any],
    currency_code: str,
    show_full_breakdown: bool = False,
    outcome=None,
    error: Optional[str] = None,
    viewing=None,
):
    """Render the calculator page.

    ``outcome`` is the ``(params, result, solve_for, solved)`` tuple of
    :func:`_run_calculation`; ``viewing`` is the history record being shown
    again, if any.
    """
    currency_meta = CURRENCY_OPTIONS[currency_code]

    def money(value):
        return format_currency(value, currency_meta["prefix"], currency_meta["suffix"])

    params = result = solve_for = solved_label = None
    steps = []
    breakdown = []
    truncated = 0
    if outcome is not None:
        params, result, solve_for, solved = outcome
        steps = calculation_steps(
            params, result, solve_for, currency_meta["prefix"], currency_meta["suffix"]
        )
        if solve_for:
            solved_label = format_solved_value(
                solve_for, solved, params.time_unit, currency_meta["prefix"], currency_meta["suffix"]
            )
        breakdown, truncated = _breakdown_for_view(result, show_full_breakdown)

    return render_template(
        "index.html",
        form=form,
        params=params,
        result=result,
        solve_for=solve_for,
        solved_label=solved_label,
        steps=steps,
        breakdown=breakdown,
        truncated=truncated,
        show_full_breakdown=show_full_breakdown,
        error=error,
        viewing=viewing,
        currency_code=currency_code,
        currency_options=CURRENCY_OPTIONS,
        frequencies=FREQUENCIES,
        time_units=TIME_UNITS,
        solve_targets=SOLVE_TARGETS,
        final_amount_key=FINAL_AMOUNT,
        money=money,
        percent=format_percentage,
        round2=round_half_up,
        history=history_store.list(),
        asset_version=app.config["ASSET_VERSION"],
    )


@app.route("/", methods=["GET", "POST"])
def index():
    if request.method != "POST":
        return _render_page({}, _normalized_currency(request.args))

    form = request.form.to_dict()
    currency_code = _normalized_currency(request.form)
    show_full_breakdown = request.form.get("show_full_breakdown") == "1"
    try:
        outcome = _run_calculation(request.form)
    except (CalculationError, click.BadParameter) as exc:
        logger.info("Rejected calculation: %s", exc)
        error = exc.format_message() if isinstance(exc, click.BadParameter) else str(exc)
        return _render_page(form, currency_code, show_full_breakdown, error=error)
    _save_to_history(outcome[0], outcome[1])
    return _render_page(form, currency_code, show_full_breakdown, outcome)


@app.get("/history/<record_id>")
def view_history_item(record_id: str):
    """Show a saved calculation again, recomputed from its parameters."""
    record = history_store.get(record_id)
    if record is None:
        abort(404)
    params = record_to_params(record)
    form = {
        "mode": "compute",
        "principal": str(params.principal),
        "rate": str(params.rate),
        "time": str(params.time),
        "time_unit": params.time_unit,
        "frequency": params.frequency,
        "start_date": params.start_date.isoformat() if params.start_date else "",
    }
    currency_code = _normalized_currency(request.args)
    show_full_breakdown = request.args.get("show_full_breakdown") == "1"
    try:
        result = compute(params)
    except CalculationError as exc:
        logger.warning("Saved calculation %s can no longer be computed: %s", record_id, exc)
        return _render_page(form, currency_code, error=str(exc), viewing=record)
    return _render_page(
        form, currency_code, show_full_breakdown, (params, result, None, None), viewing=record
    )


@app.post("/history/delete")
def remove_history_item():
    record_id = request.form.get("record_id")
    if record_id:
        history_store.delete(record_id)
    return redirect(url_for("index"))


@app.post("/history/clear")
def clear_history():
    history_store.clear_all()
    return redirect(url_for("index"))


def _error_response(exc: Exception, status: int = 400):
    if isinstance(exc, click.BadParameter):
        return jsonify({"error": "invalid_input", "message": exc.format_message()}), status
    return jsonify({"error": exc.kind, "message": str(exc)}), status


def _json_form() -> Dict[str, Any]:
    payload = request.get_json(silent=True)
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise InvalidInput("Request body must be a JSON object")
    return {key: ("" if value is None else str(value)) for key, value in payload.items()}


@app.post("/api/calculate")
def api_calculate():
    try:
        form = _json_form()
        form["mode"] = "compute"
        params, result, _, _ = _run_calculation(form)
    except (CalculationError, click.BadParameter) as exc:
        return _error_response(exc)
    record = build_history_record(params, result)
    history_store.save(record)
    body = result_to_dict(params, result)
    body["id"] = record.id
    return jsonify(body)


@app.post("/api/solve")
def api_solve():
    try:
        form = _json_form()
        form["mode"] = "solve"
        params, result, solve_for, solved = _run_calculation(form)
    except (CalculationError, click.BadParameter) as exc:
        return _error_response(exc)
    record = build_history_record(params, result)
    history_store.save(record)
    body = result_to_dict(params, result)
    body.update({"id": record.id, "solveFor": solve_for, "solved": str(solved)})
    return jsonify(body)


@app.get("/api/history")
def api_history():
    return jsonify([record.to_dict() for record in history_store.list()])


@app.delete("/api/history/<record_id>")
def api_delete_history(record_id: str):
    if not history_store.delete(record_id):
        return jsonify({"error": "not_found", "message": f"No saved calculation with id {record_id}"}), 404
    return "", 204


@app.delete("/api/history")
def api_clear_history():
    removed = history_store.clear_all()
    return jsonify({"deleted": removed})


if __name__ == "__main__":
    print("Starting compound interest calculator web app...")
    app.run(host="0.0.0.0", port=8710, debug=True)

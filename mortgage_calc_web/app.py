from typing import Any, Dict, Mapping

from flask import Flask, jsonify, request
from loguru import logger

from mortgage_calc.calculators import CALCULATORS, LoanPayoffInputs, loan_payoff
from mortgage_calc.config import load_settings
from mortgage_calc.formatter import serialize
from mortgage_calc.forms import field_names, inputs_from_mapping, parse_date
from mortgage_calc.log import setup_logging
from mortgage_calc.rates import RateCache, fetch_current_rates

settings = load_settings()
setup_logging(settings.log_level)

app = Flask(__name__)
app.secret_key = settings.secret_key

rate_cache = RateCache(
    lambda: fetch_current_rates(settings.api_ninjas_key, timeout=settings.rates_timeout)
)

DATED_CALCULATORS = {"refinance", "va-refinance"}


def _request_fields() -> Dict[str, Any]:
    """Fields of a JSON body or a form post as a plain dictionary."""
    if request.is_json:
        data = request.get_json(silent=True)
        if not isinstance(data, Mapping):
            raise ValueError("Request body must be a JSON object")
        return dict(data)
    return request.form.to_dict()


def _bad_request(exc: Exception):
    logger.info("Rejected {} {}: {}", request.method, request.path, exc)
    return jsonify({"error": str(exc)}), 400


@app.route("/api/calculators", methods=["GET"])
def list_calculators():
    payload = []
    for calc in CALCULATORS.values():
        defaults = calc.inputs_type()
        payload.append(
            {
                "id": calc.id,
                "label": calc.label,
                "fields": {name: serialize(getattr(defaults, name)) for name in field_names(calc.inputs_type)},
            }
        )
    return jsonify(payload)


@app.route("/api/payoff", methods=["POST"])
def payoff():
    try:
        inputs = inputs_from_mapping(LoanPayoffInputs, _request_fields())
    except ValueError as exc:
        return _bad_request(exc)
    return jsonify(serialize(loan_payoff(inputs)))


@app.route("/api/<calculator_id>", methods=["POST"])
def run_calculator(calculator_id: str):
    calc = CALCULATORS.get(calculator_id)
    if calc is None:
        return jsonify({"error": f"Unknown calculator: {calculator_id}"}), 404
    try:
        data = _request_fields()
        as_of = data.pop("as_of", None) or request.args.get("as_of")
        inputs = inputs_from_mapping(calc.inputs_type, data)
        if calculator_id in DATED_CALCULATORS:
            result = calc.run(inputs, as_of=parse_date(as_of) if as_of else None)
        else:
            result = calc.run(inputs)
    except ValueError as exc:
        return _bad_request(exc)
    return jsonify({"calculator": calc.id, "result": serialize(result)})


@app.route("/api/rates", methods=["GET"])
def rates():
    current = rate_cache.refresh() if request.args.get("refresh") == "1" else rate_cache.get()
    return jsonify(serialize(current))


if __name__ == "__main__":
    app.run(debug=True)

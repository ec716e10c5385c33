# demand_forecasting/services/response_parser.py
"""
Extraction and validation of the forecasting model's reply.

The model is untrusted: its reply is narrowed down to one JSON object and
every shape and numeric rule is re-checked. Acceptance is all-or-nothing.
"""
import json
import math
import re
from datetime import date
from typing import Any, Dict, Optional

from demand_forecasting.exceptions import ResponseFormatError
from demand_forecasting.utils.date_utils import parse_calendar_date, following_days

FENCED_JSON_BLOCK = re.compile(r"```json[ \t]*\r?\n(.*?)```", re.DOTALL | re.IGNORECASE)

TRENDS = ('increasing', 'decreasing', 'stable')


def _first_brace_span(text: str) -> Optional[str]:
    """Get the first balanced {...} span, ignoring braces inside JSON strings."""
    start = text.find('{')
    if start < 0:
        return None

    depth = 0
    in_string = False
    escaped = False
    for index in range(start, len(text)):
        char = text[index]
        if in_string:
            if escaped:
                escaped = False
            elif char == '\\':
                escaped = True
            elif char == '"':
                in_string = False
        elif char == '"':
            in_string = True
        elif char == '{':
            depth += 1
        elif char == '}':
            depth -= 1
            if depth == 0:
                return text[start:index + 1]
    return None


def extract_payload(text: str) -> str:
    """Narrow a free-text reply down to its structured payload.

    A ```json fenced block wins; otherwise the first top-level brace span is used.

    Raises:
        ResponseFormatError if neither exists
    """
    if not isinstance(text, str) or not text.strip():
        raise ResponseFormatError("no structured payload found")

    match = FENCED_JSON_BLOCK.search(text)
    if match:
        return match.group(1).strip()

    span = _first_brace_span(text)
    if span is None:
        raise ResponseFormatError("no structured payload found")
    return span


def _fail(field: str, problem: str):
    raise ResponseFormatError(f"Invalid forecast field {field}: {problem}", field=field)


def _section(container: Dict[str, Any], key: str, field: str) -> Dict[str, Any]:
    value = container.get(key)
    if not isinstance(value, dict):
        _fail(field, "expected an object")
    return value


def _number(container: Dict[str, Any], key: str, field: str, minimum=None, maximum=None) -> float:
    value = container.get(key)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        _fail(field, "expected a finite number")
    try:
        finite = math.isfinite(value)
    except OverflowError:
        finite = False
    if not finite:
        _fail(field, "expected a finite number")
    if minimum is not None and value < minimum:
        _fail(field, f"must be >= {minimum}")
    if maximum is not None and value > maximum:
        _fail(field, f"must be <= {maximum}")
    return value


def _text_list(container: Dict[str, Any], key: str, field: str):
    value = container.get(key)
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        _fail(field, "expected a list of strings")


def _validate_summary(payload: Dict[str, Any]):
    summary = _section(payload, 'forecast_summary', 'forecast_summary')
    _number(summary, 'total_predicted_demand', 'forecast_summary.total_predicted_demand', minimum=0)
    _number(summary, 'average_daily_demand', 'forecast_summary.average_daily_demand', minimum=0)
    _number(summary, 'confidence_level', 'forecast_summary.confidence_level', minimum=0, maximum=100)
    if summary.get('trend') not in TRENDS:
        _fail('forecast_summary.trend', f"expected one of {', '.join(TRENDS)}")
    if not isinstance(summary.get('seasonality_detected'), bool):
        _fail('forecast_summary.seasonality_detected', "expected a boolean")


def _validate_daily(payload: Dict[str, Any], horizon_days: int, start_date: Optional[date]):
    daily = payload.get('daily_forecasts')
    if not isinstance(daily, list):
        _fail('daily_forecasts', "expected a list")
    if len(daily) != horizon_days:
        _fail('daily_forecasts', f"expected {horizon_days} entries, got {len(daily)}")

    expected_dates = None
    if start_date is not None:
        expected_dates = [start_date] + following_days(start_date, horizon_days - 1)

    for index, entry in enumerate(daily):
        field = f"daily_forecasts[{index}]"
        if not isinstance(entry, dict):
            _fail(field, "expected an object")

        try:
            entry_date = parse_calendar_date(entry.get('date'))
        except (TypeError, AttributeError, ValueError):
            _fail(f"{field}.date", "expected a YYYY-MM-DD date")
        if expected_dates is not None and entry_date != expected_dates[index]:
            _fail(f"{field}.date", f"expected {expected_dates[index].isoformat()}")

        predicted = _number(entry, 'predicted_demand', f"{field}.predicted_demand", minimum=0)
        interval = _section(entry, 'confidence_interval', f"{field}.confidence_interval")
        lower = _number(interval, 'lower', f"{field}.confidence_interval.lower")
        upper = _number(interval, 'upper', f"{field}.confidence_interval.upper")
        if not lower <= predicted <= upper:
            _fail(f"{field}.confidence_interval", "predicted_demand must lie within [lower, upper]")


def _validate_recommendations(payload: Dict[str, Any]):
    recommendations = _section(payload, 'recommendations', 'recommendations')
    for key in ('reorder_point', 'safety_stock', 'recommended_order_quantity'):
        _number(recommendations, key, f"recommendations.{key}", minimum=0)
    if not isinstance(recommendations.get('justification'), str):
        _fail('recommendations.justification', "expected a string")


def _validate_insights(payload: Dict[str, Any]):
    insights = _section(payload, 'model_insights', 'model_insights')
    _text_list(insights, 'key_patterns', 'model_insights.key_patterns')
    _text_list(insights, 'risk_factors', 'model_insights.risk_factors')
    _number(insights, 'accuracy_estimate', 'model_insights.accuracy_estimate', minimum=0, maximum=100)


def parse_forecast_response(raw_response: str, horizon_days: int,
                            start_date: Optional[date] = None) -> Dict[str, Any]:
    """Extract and validate a forecast from the model's reply.

    Args:
        raw_response: Free-text model reply
        horizon_days: Number of daily forecasts required
        start_date: When given, first expected forecast day; days must then be contiguous

    Returns:
        The parsed forecast object, unchanged

    Raises:
        ResponseFormatError naming the offending field
    """
    payload_text = extract_payload(raw_response)

    try:
        payload = json.loads(payload_text)
    except ValueError as e:
        raise ResponseFormatError("Failed to parse AI response", cause=e)

    if not isinstance(payload, dict):
        _fail('forecast', "expected a JSON object")

    _validate_summary(payload)
    _validate_daily(payload, horizon_days, start_date)
    _validate_recommendations(payload)
    _validate_insights(payload)
    return payload

from flask import current_app, request

from demand_forecasting.exceptions import ValidationError


def get_services():
    """Get the service handles attached to the running app."""
    return current_app.extensions['demand_forecasting']


def json_body() -> dict:
    """Parse the request body as a JSON object."""
    body = request.get_json(silent=True)
    if body is None:
        return {}
    if not isinstance(body, dict):
        raise ValidationError("Request body must be a JSON object")
    return body

"""JSON request body helper shared by the blueprints."""
from flask import request

from kala_pos.exceptions import ValidationError


def json_body() -> dict:
    """
    Parsed JSON object of the current request.

    A missing or unparsable body counts as ``{}`` so the service reports
    the missing fields; any other JSON value (list, string, number) is
    rejected with 400.
    """
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError('Request body must be a JSON object')
    return data

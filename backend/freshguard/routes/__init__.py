from flask import request


def json_body() -> dict:
    """Request JSON as a dict; anything else (missing, malformed, a list) reads as {}."""
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}

from flask import request


def request_payload() -> dict:
    """JSON object body if there is one, form fields otherwise."""
    payload = request.get_json(silent=True)
    if isinstance(payload, dict):
        return payload
    return request.form.to_dict()

from flask import jsonify, current_app


def api_response(status_code: int, data=None, message: str = "Success"):
    """Uniform success envelope; returns a Response so callers can add cookies."""
    resp = jsonify(
        {
            "statusCode": status_code,
            "data": data if data is not None else {},
            "message": message,
            "success": status_code < 400,
        }
    )
    resp.status_code = status_code
    return resp


def _cookie_options() -> dict:
    return {
        "httponly": True,
        "secure": current_app.config.get("COOKIE_SECURE", True),
        "samesite": current_app.config.get("COOKIE_SAMESITE", "Lax"),
    }


def set_auth_cookies(resp, access_token: str, refresh_token: str):
    options = _cookie_options()
    resp.set_cookie("accessToken", access_token, **options)
    resp.set_cookie("refreshToken", refresh_token, **options)
    return resp


def clear_auth_cookies(resp):
    options = _cookie_options()
    resp.delete_cookie("accessToken", **options)
    resp.delete_cookie("refreshToken", **options)
    return resp

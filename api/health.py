from flask import Blueprint

from models import storage

bp = Blueprint("health", __name__)


@bp.get("/health")
def health():
    """
    Health check
    ---
    tags:
      - Health
    responses:
      200:
        description: API and database are up
      503:
        description: Database unreachable
    """
    db_ok = storage.ping()
    body = {"status": "ok" if db_ok else "degraded", "database": db_ok, "version": "1.0.0"}
    return body, 200 if db_ok else 503

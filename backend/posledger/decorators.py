# Overview: Response decorators shared by the API routes.

from functools import wraps
from flask import jsonify

from .extensions import ledger


PERSIST_WARNING = "Changes are kept for this session but could not be saved: {error}"


def reports_persist_warning(f):
    """
    Surface a failed snapshot on mutating routes.

    The store keeps working in memory when persistence fails; the response
    still succeeds but carries a "warning" key so the operator knows the next
    session would lose these changes.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        rv = f(*args, **kwargs)
        body, status = rv if isinstance(rv, tuple) else (rv, 200)
        error = ledger.store.last_persist_error
        if error and isinstance(body, dict) and status < 400:
            body = {**body, "warning": PERSIST_WARNING.format(error=error)}
        return jsonify(body), status
    return decorated_function

# backend/cashier/routes/__init__.py
from __future__ import annotations

from flask import current_app, jsonify

from ..errors import CashierError, ErrorKind


def error_response(exc: CashierError):
    """Map a CashierError to its JSON body and HTTP status by kind."""
    if exc.kind is ErrorKind.INTERNAL:
        current_app.logger.error("Internal error: %s", exc.message, exc_info=exc.__cause__ or exc)
    return jsonify(exc.to_dict()), exc.status_code


def internal_error_response(message: str):
    """Log the active exception and answer with the generic 500 body."""
    current_app.logger.exception(message)
    return jsonify({"error": "Internal server error", "type": ErrorKind.INTERNAL.value}), 500


def parse_bool_arg(value: str | None) -> bool | None:
    if value is None or value.strip() == "":
        return None
    lowered = value.strip().lower()
    if lowered in ("1", "true", "yes"):
        return True
    if lowered in ("0", "false", "no"):
        return False
    return None

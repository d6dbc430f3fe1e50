# Overview: Flask API routes for checkout and the transaction ledger.

# backend/cashier/routes/checkout.py
import time

from flask import Blueprint, current_app, jsonify, request

from ..errors import CashierError
from ..services.checkout_service import CheckoutEngine
from ..storage import get_storage
from ..validation import parse_checkout_payload
from . import error_response, internal_error_response

checkout_bp = Blueprint("checkout", __name__, url_prefix="/api")


def _checkout_deadline() -> float | None:
    timeout = current_app.config.get("CHECKOUT_TIMEOUT_SECONDS")
    if not timeout:
        return None
    return time.monotonic() + float(timeout)


@checkout_bp.post("/checkout")
def checkout_route():
    """
    Sell a basket in one atomic step.

    Body: {"items": [{"product_id": 1, "quantity": 2}, ...]}
    Returns 201 with the committed transaction and its details.
    """
    deadline = _checkout_deadline()
    payload = request.get_json(silent=True)

    try:
        checkout_request = parse_checkout_payload(payload)
        engine = CheckoutEngine(get_storage().transactions)
        txn = engine.checkout(checkout_request, deadline=deadline)
        return jsonify(txn.to_dict()), 201
    except CashierError as e:
        return error_response(e)
    except Exception:
        return internal_error_response("Failed to check out")


@checkout_bp.get("/transactions/<int:transaction_id>")
def get_transaction_route(transaction_id: int):
    try:
        engine = CheckoutEngine(get_storage().transactions)
        txn = engine.find_transaction(transaction_id)
        return jsonify(txn.to_dict()), 200
    except CashierError as e:
        return error_response(e)
    except Exception:
        return internal_error_response("Failed to load transaction")

# Overview: Flask API routes for products; parses input and returns JSON responses.

# backend/cashier/routes/products.py
from flask import Blueprint, jsonify, request

from ..errors import CashierError, ValidationError
from ..services import catalog_service
from ..storage import get_storage
from . import error_response, internal_error_response, parse_bool_arg

products_bp = Blueprint("products", __name__, url_prefix="/api/products")


@products_bp.get("")
def list_products():
    """
    List products ordered by id.

    Query params:
    - name: case-insensitive substring filter (optional)
    - active: true/false (optional)
    """
    raw_active = request.args.get("active")
    active = parse_bool_arg(raw_active)
    if raw_active and active is None:
        return error_response(ValidationError("active must be true or false"))

    try:
        products = catalog_service.list_products(
            get_storage().catalog,
            name=request.args.get("name"),
            active=active,
        )
        return jsonify([p.to_dict() for p in products]), 200
    except CashierError as e:
        return error_response(e)
    except Exception:
        return internal_error_response("Failed to list products")


@products_bp.post("")
def create_product_route():
    payload = request.get_json(silent=True)

    try:
        created = catalog_service.create_product(get_storage().catalog, payload)
        return jsonify(created.to_dict()), 201
    except CashierError as e:
        return error_response(e)
    except Exception:
        return internal_error_response("Failed to create product")


@products_bp.get("/<int:product_id>")
def get_product_route(product_id: int):
    try:
        product = catalog_service.get_product(get_storage().catalog, product_id)
        return jsonify(product.to_dict()), 200
    except CashierError as e:
        return error_response(e)
    except Exception:
        return internal_error_response("Failed to load product")


@products_bp.put("/<int:product_id>")
def update_product_route(product_id: int):
    """Partial update: only the fields present in the body change."""
    payload = request.get_json(silent=True)

    try:
        updated = catalog_service.update_product(get_storage().catalog, product_id, payload)
        return jsonify(updated.to_dict()), 200
    except CashierError as e:
        return error_response(e)
    except Exception:
        return internal_error_response("Failed to update product")


@products_bp.delete("/<int:product_id>")
def delete_product_route(product_id: int):
    """Sold products can be deleted; their transaction details keep the name snapshot."""
    try:
        catalog_service.delete_product(get_storage().catalog, product_id)
        return jsonify({"message": "Data successfully deleted"}), 200
    except CashierError as e:
        return error_response(e)
    except Exception:
        return internal_error_response("Failed to delete product")

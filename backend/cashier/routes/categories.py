# Overview: Flask API routes for categories.

# backend/cashier/routes/categories.py
from flask import Blueprint, jsonify, request

from ..errors import CashierError
from ..services import catalog_service
from ..storage import get_storage
from . import error_response, internal_error_response

categories_bp = Blueprint("categories", __name__, url_prefix="/api/categories")


@categories_bp.get("")
def list_categories():
    try:
        categories = catalog_service.list_categories(get_storage().catalog)
        return jsonify([c.to_dict() for c in categories]), 200
    except CashierError as e:
        return error_response(e)
    except Exception:
        return internal_error_response("Failed to list categories")


@categories_bp.post("")
def create_category_route():
    payload = request.get_json(silent=True)
    try:
        created = catalog_service.create_category(get_storage().catalog, payload)
        return jsonify(created.to_dict()), 201
    except CashierError as e:
        return error_response(e)
    except Exception:
        return internal_error_response("Failed to create category")


@categories_bp.get("/<int:category_id>")
def get_category_route(category_id: int):
    try:
        category = catalog_service.get_category(get_storage().catalog, category_id)
        return jsonify(category.to_dict()), 200
    except CashierError as e:
        return error_response(e)
    except Exception:
        return internal_error_response("Failed to load category")


@categories_bp.put("/<int:category_id>")
def update_category_route(category_id: int):
    payload = request.get_json(silent=True)
    try:
        updated = catalog_service.update_category(get_storage().catalog, category_id, payload)
        return jsonify(updated.to_dict()), 200
    except CashierError as e:
        return error_response(e)
    except Exception:
        return internal_error_response("Failed to update category")


@categories_bp.delete("/<int:category_id>")
def delete_category_route(category_id: int):
    try:
        catalog_service.delete_category(get_storage().catalog, category_id)
        return jsonify({"message": "Data successfully deleted"}), 200
    except CashierError as e:
        return error_response(e)
    except Exception:
        return internal_error_response("Failed to delete category")

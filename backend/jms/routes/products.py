# Overview: Flask API routes for product master data; parses input and returns JSON responses.

# backend/jms/routes/products.py
"""
Product management routes.

stock and weight are only changed through restock here and through sale
creation; PUT edits descriptive and pricing fields.
"""
from flask import Blueprint, request, jsonify, current_app

from ..services import inventory_service
from ..validation import ServiceError
from ..decorators import require_actor

products_bp = Blueprint("products", __name__, url_prefix="/api/products")


@products_bp.get("")
def list_products():
    """
    List products, newest first.

    Query params:
    - include_inactive: bool (optional) - include soft-deleted products
    """
    include_inactive = request.args.get("include_inactive", "false").lower() in ("1", "true", "yes")
    products = inventory_service.list_products(include_inactive=include_inactive)
    return jsonify([p.to_dict() for p in products]), 200


@products_bp.post("")
@require_actor
def create_product():
    try:
        product = inventory_service.create_product(request.get_json(silent=True))
        return jsonify(product.to_dict()), 201
    except ServiceError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to create product")
        return jsonify({"message": "Server error while saving product."}), 500


@products_bp.put("/<int:product_id>")
@require_actor
def update_product(product_id: int):
    try:
        product = inventory_service.update_product(product_id, request.get_json(silent=True))
        return jsonify(product.to_dict()), 200
    except ServiceError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to update product")
        return jsonify({"message": "Server error while updating product."}), 500


@products_bp.post("/<int:product_id>/restock")
@require_actor
def restock_product(product_id: int):
    """
    Add units and/or grams to a product.

    Body: {"quantity": int, "weight": number}
    """
    data = request.get_json(silent=True) or {}
    try:
        product = inventory_service.restock_product(
            product_id,
            quantity=data.get("quantity"),
            weight=data.get("weight"),
        )
        return jsonify(product.to_dict()), 200
    except ServiceError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to restock product")
        return jsonify({"message": "Server error while restocking product."}), 500


@products_bp.delete("/<int:product_id>")
@require_actor
def deactivate_product(product_id: int):
    """Soft delete: the product stays on historical invoices but can no longer be sold."""
    try:
        product = inventory_service.deactivate_product(product_id)
        return jsonify(product.to_dict()), 200
    except ServiceError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to deactivate product")
        return jsonify({"message": "Server error while deleting product."}), 500

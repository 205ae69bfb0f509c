# Overview: Flask API routes for sales operations; parses input and returns JSON responses.

# backend/jms/routes/sales.py
"""Sales API routes"""

from flask import Blueprint, request, jsonify, current_app

from ..services import sales_service
from ..validation import ServiceError, ValidationError
from ..decorators import require_actor, current_user_id


sales_bp = Blueprint("sales", __name__, url_prefix="/api/sales")


@sales_bp.get("")
def list_sales_route():
    """All sales, newest first."""
    limit = request.args.get("limit", type=int)
    sales = sales_service.list_sales(limit=limit)
    return jsonify([s.to_dict() for s in sales]), 200


@sales_bp.post("")
@require_actor
def create_sale_route():
    """
    Create a sale and deduct stock in one transaction.

    Body: {customerName?, customerAddress?, customerMobile, items[],
           advancePayment?, discount?, oldGoldWeight?,
           subtotal?, totalMakingCharges?, totalAmount?, balanceDue?}
    """
    data = request.get_json(silent=True)
    try:
        if not isinstance(data, dict):
            raise ValidationError(sales_service.MISSING_MOBILE_MESSAGE)

        customer = {
            "name": data.get("customerName"),
            "address": data.get("customerAddress"),
            "mobile": data.get("customerMobile"),
        }
        sale = sales_service.create_sale(
            customer,
            data.get("items"),
            payment=data,
            user_id=current_user_id(),
        )
        return jsonify(sale.to_dict()), 201

    except ServiceError as e:
        current_app.logger.info("Sale rejected: %s", e.message)
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Sale transaction failed")
        return jsonify({"message": "Transaction failed."}), 500


@sales_bp.get("/<int:invoice_number>")
def get_sale_route(invoice_number: int):
    try:
        sale = sales_service.get_sale(invoice_number)
        return jsonify(sale.to_dict()), 200
    except ServiceError as e:
        return jsonify(e.to_dict()), e.status_code

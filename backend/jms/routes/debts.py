# Overview: Flask API routes for customer debts (khata); parses input and returns JSON responses.

# backend/jms/routes/debts.py
"""Debt ledger API routes"""

from flask import Blueprint, request, jsonify, current_app

from ..services import debt_service
from ..validation import ServiceError
from ..decorators import require_actor, current_user_id


debts_bp = Blueprint("debts", __name__, url_prefix="/api/debt")


@debts_bp.get("")
def list_pending_debts_route():
    """Pending debts, newest first."""
    debts = debt_service.list_pending_debts()
    return jsonify([d.to_dict() for d in debts]), 200


@debts_bp.post("")
@require_actor
def create_debt_route():
    """
    Manually open a debt record.

    Body: {customerName, customerMobile, initialAmount, dueDate?}
    """
    data = request.get_json(silent=True) or {}
    try:
        debt = debt_service.create_debt(
            data.get("customerName"),
            data.get("customerMobile"),
            data.get("initialAmount"),
            data.get("dueDate"),
            user_id=current_user_id(),
        )
        return jsonify(debt.to_dict()), 201
    except ServiceError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Error creating new debt")
        return jsonify({"message": "Server error creating debt."}), 500


@debts_bp.post("/from-sale/<int:invoice_number>")
@require_actor
def create_debt_from_sale_route(invoice_number: int):
    """Open a debt for the unpaid balance of a sale. Body: {dueDate?}"""
    data = request.get_json(silent=True) or {}
    try:
        debt = debt_service.create_debt_for_sale(
            invoice_number,
            data.get("dueDate"),
            user_id=current_user_id(),
        )
        return jsonify(debt.to_dict()), 201
    except ServiceError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Error creating debt from sale")
        return jsonify({"message": "Server error creating debt."}), 500


@debts_bp.post("/<int:debt_id>/pay")
@require_actor
def pay_debt_route(debt_id: int):
    """
    Record a payment.

    Body: {paymentAmount, method?}
    """
    data = request.get_json(silent=True) or {}
    try:
        debt = debt_service.apply_payment(
            debt_id,
            data.get("paymentAmount"),
            data.get("method"),
            user_id=current_user_id(),
        )
        return jsonify(debt.to_dict()), 200
    except ServiceError as e:
        current_app.logger.info("Payment rejected for debt %s: %s", debt_id, e.message)
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Error processing payment")
        return jsonify({"message": "Payment failed."}), 500


@debts_bp.get("/<int:debt_id>")
def get_debt_route(debt_id: int):
    try:
        debt = debt_service.get_debt(debt_id)
        return jsonify(debt.to_dict()), 200
    except ServiceError as e:
        return jsonify(e.to_dict()), e.status_code

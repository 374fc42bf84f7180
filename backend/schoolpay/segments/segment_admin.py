from __future__ import annotations

from flask import Blueprint, jsonify, request
from flask_login import current_user
from sqlalchemy.exc import SQLAlchemyError

from schoolpay.auth import admin_required, staff_required
from schoolpay.config import current_config
from schoolpay.models import AuditLog
from schoolpay.services.arrears import ArrearNotFound, delete_arrear, list_arrears, update_arrear
from schoolpay.services.reconciliation import end_of_year_process

admin_bp = Blueprint("admin_bp", __name__, url_prefix="/api/admin")


def _school_id():
    return int(current_user.school_id) if current_user.school_id else None


@admin_bp.post("/end-of-year")
@admin_required
def run_end_of_year():
    school_id = _school_id()
    if school_id is None:
        return jsonify({"success": False, "message": "User not authenticated."}), 400
    data = request.get_json(silent=True) or {}
    result = end_of_year_process(
        school_id,
        str(data.get("previousAcademicYear") or ""),
        actor_user_id=int(current_user.id),
        start_month=current_config().academic_year_start_month,
    )
    return jsonify({"success": result.success, "message": result.message}), 200


@admin_bp.get("/arrears")
@staff_required
def get_arrears():
    school_id = _school_id()
    if school_id is None:
        return jsonify({"success": False, "message": "Not authenticated"}), 400
    return jsonify({"success": True, "message": "Arrears fetched successfully", "data": list_arrears(school_id)}), 200


@admin_bp.patch("/arrears/<int:arrear_id>")
@staff_required
def patch_arrear(arrear_id: int):
    data = request.get_json(silent=True) or {}
    try:
        out = update_arrear(
            arrear_id,
            school_id=_school_id(),
            actor=current_user,
            status=(data.get("status") or "").strip(),
            notes=data.get("notes"),
            amount_paid_now=data.get("amountPaidNow"),
        )
    except ArrearNotFound as e:
        return jsonify({"success": False, "message": str(e)}), 404
    except ValueError as e:
        return jsonify({"success": False, "message": str(e)}), 400
    except SQLAlchemyError as e:
        return jsonify({"success": False, "message": str(e)}), 500
    return jsonify({"success": True, "message": "Arrear updated successfully.", **out}), 200


@admin_bp.delete("/arrears/<int:arrear_id>")
@admin_required
def remove_arrear(arrear_id: int):
    try:
        delete_arrear(arrear_id, school_id=_school_id(), actor=current_user)
    except ArrearNotFound as e:
        return jsonify({"success": False, "message": str(e)}), 404
    except SQLAlchemyError as e:
        return jsonify({"success": False, "message": str(e)}), 500
    return jsonify({"success": True, "message": "Arrear record deleted successfully."}), 200


@admin_bp.get("/audit")
@admin_required
def list_audit_logs():
    action = (request.args.get("action") or "").strip()
    q = AuditLog.query.filter_by(school_id=_school_id())
    if action:
        q = q.filter(AuditLog.action.ilike(action))
    rows = q.order_by(AuditLog.created_at.desc(), AuditLog.id.desc()).limit(250).all()
    return jsonify([r.to_dict() for r in rows]), 200

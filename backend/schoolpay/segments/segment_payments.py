from __future__ import annotations

import time

from flask import Blueprint, current_app, jsonify, request
from flask_login import current_user, login_required

from schoolpay.errors import PaymentError
from schoolpay.extensions import db
from schoolpay.gateways import get_gateway
from schoolpay.models import Student, User
from schoolpay.services.verification import school_paystack_secret, verify_paystack_transaction
from schoolpay.utils.money import major_to_minor

payments_bp = Blueprint("payments_bp", __name__, url_prefix="/api/payments")


@payments_bp.post("/initialize")
@login_required
def initialize_payment():
    data = request.get_json(silent=True) or {}
    student = Student.query.filter_by(user_id=int(current_user.id)).first()
    if not student:
        return jsonify({"ok": False, "message": "No student profile for this account"}), 400
    try:
        amount_minor = major_to_minor(data.get("amount"))
    except ValueError:
        return jsonify({"ok": False, "message": "amount must be a number"}), 400
    if amount_minor <= 0:
        return jsonify({"ok": False, "message": "amount must be > 0"}), 400

    gateway = get_gateway("paystack")
    reference = f"SCH{student.school_id}-{student.student_id_display}-{int(time.time() * 1000)}"
    metadata = {
        "student_id_display": student.student_id_display,
        "student_name": student.full_name,
        "grade_level": student.grade_level,
        "school_id": student.school_id,
    }
    try:
        init = gateway.initialize_transaction(
            email=student.contact_email or current_user.email,
            amount_minor=amount_minor,
            reference=reference,
            metadata=metadata,
            callback_url=(data.get("callback_url") or "").strip(),
            secret_key=school_paystack_secret(gateway, student.school_id),
        )
    except PaymentError as e:
        current_app.logger.warning("paystack initialize failed reference=%s detail=%s", reference, e.detail)
        status = 502 if e.status_code >= 500 else e.status_code
        return jsonify({"ok": False, "message": e.public_message}), status

    return jsonify({"ok": True, "provider": "paystack", **init}), 200


@payments_bp.post("/verify")
@login_required
def verify_payment():
    data = request.get_json(silent=True) or {}
    reference = (data.get("reference") or "").strip()
    if not reference:
        return jsonify({"success": False, "message": "reference is required"}), 400

    user = current_user
    user_email = (data.get("userEmail") or "").strip().lower()
    if user_email and user.is_staff:
        # Staff can verify on behalf of a student found by contact email.
        student = Student.query.filter_by(contact_email=user_email, school_id=user.school_id).first()
        if not student or not student.user_id:
            return jsonify({"success": False, "message": "No student found with that email"}), 404
        user = db.session.get(User, int(student.user_id))

    result = verify_paystack_transaction(get_gateway("paystack"), reference=reference, user=user)
    return jsonify(result), 200

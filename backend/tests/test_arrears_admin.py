from datetime import datetime
from decimal import Decimal

import pytest

from schoolpay.extensions import db
from schoolpay.models import FeePayment, StudentArrear
from schoolpay.services.reconciliation import end_of_year_process


@pytest.fixture()
def arrear_id(app, add_payment):
    add_payment("CASH-1", "224STU1234", "450.00", datetime(2024, 9, 10))
    with app.app_context():
        end_of_year_process(1, "2024-2025")
        return StudentArrear.query.filter_by(student_id_display="224STU1234").one().id


def test_staff_can_list_arrears_with_current_grade(client, auth_header, arrear_id):
    r = client.get("/api/admin/arrears", headers=auth_header(2))
    assert r.status_code == 200
    body = r.get_json()
    assert body["success"] is True
    row = next(a for a in body["data"] if a["id"] == arrear_id)
    assert row["amount"] == 150.0
    assert row["grade_level_at_arrear"] == "Basic 4"
    assert row["current_grade_level"] == "Basic 5"


def test_students_cannot_list_arrears(client, auth_header):
    assert client.get("/api/admin/arrears", headers=auth_header(3)).status_code == 403


def test_partial_payment_reduces_arrear_and_hits_the_ledger(app, client, auth_header, arrear_id):
    r = client.patch(f"/api/admin/arrears/{arrear_id}", headers=auth_header(2),
                     json={"status": "partially_paid", "notes": "paid at front desk", "amountPaidNow": "100"})
    assert r.status_code == 200
    body = r.get_json()
    assert body["arrear"]["amount"] == 50.0
    assert body["arrear"]["status"] == "partially_paid"
    assert body["payment"]["method"] == "Cash"
    assert body["payment"]["payment_reference"].startswith(f"AR-{arrear_id}-")

    with app.app_context():
        arrear = db.session.get(StudentArrear, arrear_id)
        assert arrear.amount == Decimal("50.00")
        assert arrear.notes == "paid at front desk"
        pay = FeePayment.query.filter(FeePayment.payment_reference.like(f"AR-{arrear_id}-%")).one()
        assert pay.amount == Decimal("100.00")
        assert pay.term_paid_for == "Arrears"
        assert pay.received_by_user_id == 2


def test_overpayment_floors_at_zero(app, client, auth_header, arrear_id):
    r = client.patch(f"/api/admin/arrears/{arrear_id}", headers=auth_header(1),
                     json={"status": "cleared", "amountPaidNow": 500})
    assert r.status_code == 200
    assert r.get_json()["arrear"]["amount"] == 0.0


def test_status_only_update_records_no_payment(app, client, auth_header, arrear_id):
    r = client.patch(f"/api/admin/arrears/{arrear_id}", headers=auth_header(1), json={"status": "waived"})
    assert r.status_code == 200
    assert r.get_json()["payment"] is None
    with app.app_context():
        assert FeePayment.query.filter(FeePayment.payment_reference.like("AR-%")).count() == 0


@pytest.mark.parametrize("body", [
    {"status": "forgiven"},
    {"status": "cleared", "amountPaidNow": -5},
    {"status": "cleared", "amountPaidNow": "ten"},
])
def test_invalid_updates_are_rejected(client, auth_header, arrear_id, body):
    r = client.patch(f"/api/admin/arrears/{arrear_id}", headers=auth_header(1), json=body)
    assert r.status_code == 400
    assert r.get_json()["success"] is False


def test_unknown_arrear_is_a_404(client, auth_header):
    r = client.patch("/api/admin/arrears/9999", headers=auth_header(1), json={"status": "cleared"})
    assert r.status_code == 404


def test_only_admins_delete(app, client, auth_header, arrear_id):
    assert client.delete(f"/api/admin/arrears/{arrear_id}", headers=auth_header(2)).status_code == 403

    r = client.delete(f"/api/admin/arrears/{arrear_id}", headers=auth_header(1))
    assert r.status_code == 200
    with app.app_context():
        assert db.session.get(StudentArrear, arrear_id) is None
    assert client.delete(f"/api/admin/arrears/{arrear_id}", headers=auth_header(1)).status_code == 404


def test_audit_trail_lists_arrear_changes(client, auth_header, arrear_id):
    client.patch(f"/api/admin/arrears/{arrear_id}", headers=auth_header(1), json={"status": "waived"})
    r = client.get("/api/admin/audit?action=arrear_updated", headers=auth_header(1))
    assert r.status_code == 200
    rows = r.get_json()
    assert len(rows) == 1
    assert rows[0]["record_id"] == str(arrear_id)

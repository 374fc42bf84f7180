import hashlib
import hmac
import json
import time
from datetime import datetime
from decimal import Decimal

import pytest

from schoolpay import create_app
from schoolpay.config import Config
from schoolpay.extensions import db
from schoolpay.models import FeeItem, FeePayment, School, Student, User
from schoolpay.utils.jwt_utils import create_access_token

PAYSTACK_SECRET = "sk_test_paystack_0123456789"
STRIPE_WEBHOOK_SECRET = "whsec_test_0123456789"
APP_SECRET = "test-secret-key-with-enough-length-for-hs256"


@pytest.fixture()
def config():
    return Config(
        env="test",
        secret_key=APP_SECRET,
        database_url="sqlite:///:memory:",
        paystack_secret_key=PAYSTACK_SECRET,
        stripe_webhook_secret=STRIPE_WEBHOOK_SECRET,
        default_currency="GHS",
        log_level="DEBUG",
    )


@pytest.fixture()
def app(config):
    app = create_app(config)
    app.config["TESTING"] = True
    with app.app_context():
        db.create_all()
        _seed()
    yield app
    with app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def client(app):
    return app.test_client()


def _seed():
    school = School(id=1, name="Akwaaba Academy")
    other = School(id=2, name="Harmattan School")
    db.session.add_all([school, other])
    db.session.flush()

    admin = User(id=1, school_id=1, full_name="Ama Admin", email="admin@akwaaba.test", role="admin")
    admin.set_password("admin-pass")
    accountant = User(id=2, school_id=1, full_name="Kofi Accounts", email="accounts@akwaaba.test", role="accountant")
    accountant.set_password("accounts-pass")
    pupil = User(id=3, school_id=1, full_name="Esi Mensah", email="esi@akwaaba.test", role="student")
    pupil.set_password("student-pass")
    db.session.add_all([admin, accountant, pupil])
    db.session.flush()

    db.session.add_all([
        Student(id=1, school_id=1, user_id=3, student_id_display="224STU1234", full_name="Esi Mensah",
                grade_level="Basic 4", contact_email="esi@akwaaba.test"),
        Student(id=2, school_id=1, student_id_display="224STU9999", full_name="Yaw Boateng",
                grade_level="Graduated"),
        Student(id=3, school_id=1, student_id_display="224STU5555", full_name="Abena Owusu",
                grade_level="Basic 4", total_paid_override=Decimal("120.00")),
        # Same display id in another school, for lookups without school_id.
        Student(id=4, school_id=2, student_id_display="224STU5555", full_name="Abena Other",
                grade_level="KG 1"),
    ])
    db.session.add_all([
        FeeItem(school_id=1, grade_level="Basic 4", term="Term 1", academic_year="2024-2025", amount=Decimal("300.00")),
        FeeItem(school_id=1, grade_level="Basic 4", term="Term 2", academic_year="2024-2025", amount=Decimal("300.00")),
        FeeItem(school_id=1, grade_level="Graduated", term="Term 1", academic_year="2024-2025", amount=Decimal("80.00")),
        FeeItem(school_id=1, grade_level="Basic 4", term="Term 1", academic_year="2023-2024", amount=Decimal("999.00")),
    ])
    db.session.commit()


@pytest.fixture()
def auth_header(config):
    def make(user_id):
        return {"Authorization": f"Bearer {create_access_token(user_id, config.secret_key)}"}
    return make


@pytest.fixture()
def add_payment(app):
    def add(reference, student_id_display, amount, paid_at, status="completed", school_id=1):
        with app.app_context():
            db.session.add(FeePayment(
                school_id=school_id,
                payment_reference=reference,
                student_id_display=student_id_display,
                amount=Decimal(amount),
                paid_at=paid_at,
                method="Cash",
                status=status,
            ))
            db.session.commit()
    return add


# -------------------------
# Provider payload helpers
# -------------------------

def paystack_body(reference="T123456", amount=5000, metadata=None, event="charge.success"):
    meta = {"student_id_display": "224STU1234", "school_id": 1}
    if metadata is not None:
        meta = metadata
    return json.dumps({
        "event": event,
        "data": {
            "reference": reference,
            "amount": amount,
            "currency": "GHS",
            "status": "success",
            "paid_at": "2024-10-02T09:15:00.000Z",
            "customer": {"email": "esi@akwaaba.test"},
            "metadata": meta,
        },
    }).encode("utf-8")


def paystack_signature(body, secret=PAYSTACK_SECRET):
    return hmac.new(secret.encode("utf-8"), body, hashlib.sha512).hexdigest()


def stripe_body(event_type="payment_intent.succeeded", obj=None):
    if obj is None:
        obj = {
            "id": "pi_3Abc",
            "object": "payment_intent",
            "amount": 10000,
            "application_fee_amount": 250,
            "currency": "usd",
            "created": 1727860500,
            "metadata": {"student_id_display": "224STU1234", "school_id": "1"},
        }
    return json.dumps({"id": "evt_1", "type": event_type, "data": {"object": obj}})


def stripe_signature(payload, secret=STRIPE_WEBHOOK_SECRET, timestamp=None):
    ts = int(time.time()) if timestamp is None else timestamp
    mac = hmac.new(secret.encode("utf-8"), f"{ts}.{payload}".encode("utf-8"), hashlib.sha256).hexdigest()
    return f"t={ts},v1={mac}"


def in_year(month, day=15, year=2024):
    return datetime(year, month, day, 10, 0, 0)

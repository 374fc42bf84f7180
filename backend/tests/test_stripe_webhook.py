import dataclasses
import json
import time
from datetime import datetime
from decimal import Decimal

import pytest

from conftest import STRIPE_WEBHOOK_SECRET, stripe_body, stripe_signature

from schoolpay import create_app
from schoolpay.extensions import db
from schoolpay.models import FeePayment, PaymentTransaction, PlatformConfiguration, PlatformRevenue
from schoolpay.services.recorder import add_platform_revenue

URL = "/api/webhooks/stripe"


def post(client, payload, signature=None, secret=STRIPE_WEBHOOK_SECRET):
    headers = {"Content-Type": "application/json"}
    headers["Stripe-Signature"] = signature if signature is not None else stripe_signature(payload, secret=secret)
    return client.post(URL, data=payload.encode("utf-8"), headers=headers)


def intent(pi_id="pi_3Abc", amount=10000, fee=250, **meta):
    metadata = {"student_id_display": "224STU1234", "school_id": "1"}
    metadata.update(meta)
    return {
        "id": pi_id,
        "object": "payment_intent",
        "amount": amount,
        "application_fee_amount": fee,
        "currency": "usd",
        "created": 1727860500,
        "metadata": metadata,
    }


def revenue(app):
    with app.app_context():
        row = PlatformRevenue.query.filter_by(currency="USD", gateway="stripe").one_or_none()
        return row.total_revenue if row is not None else None


def test_succeeded_intent_records_net_payment_and_fee_split(app, client):
    r = post(client, stripe_body())
    assert r.status_code == 200
    assert r.get_json()["payment_id"] == "ST-pi_3Abc"

    with app.app_context():
        p = FeePayment.query.filter_by(payment_reference="ST-pi_3Abc").one()
        assert p.amount == Decimal("97.50")
        assert p.gateway_fees == Decimal("2.50")
        assert p.currency == "USD"
        assert p.method == "Stripe"

        tx = PaymentTransaction.query.filter_by(reference="pi_3Abc").one()
        assert tx.status == "completed"
        assert tx.amount == Decimal("100.00")
        assert tx.platform_fee == Decimal("2.50")
        assert tx.school_id == 1
    assert revenue(app) == Decimal("2.50")


def test_revenue_rollup_accumulates_per_month(app, client):
    assert post(client, stripe_body(obj=intent("pi_A", fee=250))).status_code == 200
    assert post(client, stripe_body(obj=intent("pi_B", fee=100))).status_code == 200
    assert revenue(app) == Decimal("3.50")
    with app.app_context():
        assert PlatformRevenue.query.count() == 1


def test_redelivery_does_not_double_count(app, client):
    payload = stripe_body()
    assert post(client, payload).status_code == 200
    second = post(client, payload)
    assert second.status_code == 200
    assert second.get_json()["duplicate"] is True

    with app.app_context():
        assert FeePayment.query.count() == 1
        assert PaymentTransaction.query.count() == 1
    assert revenue(app) == Decimal("2.50")


def test_metadata_reference_takes_precedence_over_intent_id(app, client):
    r = post(client, stripe_body(obj=intent("pi_X", reference="SCH1-224STU1234-1700000000000")))
    assert r.status_code == 200
    with app.app_context():
        assert FeePayment.query.filter_by(payment_reference="ST-SCH1-224STU1234-1700000000000").count() == 1


def test_legacy_student_id_metadata_key(app, client):
    obj = intent("pi_legacy")
    obj["metadata"] = {"student_id": "224STU1234", "school_id": "1"}
    assert post(client, stripe_body(obj=obj)).status_code == 200


def test_donation_intent_is_acknowledged_without_record(app, client):
    r = post(client, stripe_body(obj=intent("pi_don", donation="true")))
    assert r.status_code == 200
    assert r.get_json()["donation"] is True
    with app.app_context():
        assert FeePayment.query.count() == 0
        assert PaymentTransaction.query.count() == 0


def test_failed_intent_is_logged_once(app, client):
    payload = stripe_body("payment_intent.payment_failed", obj=intent("pi_fail"))
    assert post(client, payload).status_code == 200
    assert post(client, payload).status_code == 200
    with app.app_context():
        rows = PaymentTransaction.query.filter_by(reference="pi_fail").all()
        assert [r.status for r in rows] == ["failed"]
        assert FeePayment.query.count() == 0


def test_transfer_and_account_events_are_acknowledged(app, client):
    transfer = stripe_body("transfer.created", obj={"id": "tr_1", "amount": 5000, "currency": "usd"})
    account = stripe_body("account.updated", obj={"id": "acct_1"})
    for payload in (transfer, account):
        r = post(client, payload)
        assert r.status_code == 200
        assert r.get_json() == {"ok": True, "received": True}
    with app.app_context():
        assert FeePayment.query.count() == 0


def test_unknown_event_type_is_ignored(client):
    r = post(client, stripe_body("customer.created", obj={"id": "cus_1"}))
    assert r.status_code == 200
    assert r.get_json() == {"ok": True, "ignored": True}


def test_bad_signature_is_a_401(app, client):
    payload = stripe_body()
    r = post(client, payload, secret="whsec_wrong")
    assert r.status_code == 401
    with app.app_context():
        assert FeePayment.query.count() == 0


def test_tampered_body_is_a_401(client):
    payload = stripe_body()
    signature = stripe_signature(payload)
    r = post(client, payload.replace("10000", "10001"), signature=signature)
    assert r.status_code == 401


def test_stale_timestamp_is_a_401(client):
    payload = stripe_body()
    r = post(client, payload, signature=stripe_signature(payload, timestamp=int(time.time()) - 3600))
    assert r.status_code == 401


def test_missing_signature_header_is_a_401(client):
    r = client.post(URL, data=stripe_body().encode("utf-8"), headers={"Content-Type": "application/json"})
    assert r.status_code == 401


def test_missing_student_metadata_is_a_400(app, client):
    obj = intent("pi_nometa")
    obj["metadata"] = {}
    r = post(client, stripe_body(obj=obj))
    assert r.status_code == 400
    with app.app_context():
        assert FeePayment.query.count() == 0


def test_platform_configuration_secret_overrides_environment(app, client):
    with app.app_context():
        db.session.add(PlatformConfiguration(stripe_webhook_secret="whsec_from_database_42"))
        db.session.commit()

    payload = stripe_body()
    assert post(client, payload).status_code == 401
    assert post(client, payload, secret="whsec_from_database_42").status_code == 200


def test_unconfigured_webhook_secret_is_a_500(config):
    app = create_app(dataclasses.replace(config, stripe_webhook_secret=""))
    with app.app_context():
        db.create_all()
    payload = json.dumps({"type": "payment_intent.succeeded", "data": {"object": intent()}})
    r = post(app.test_client(), payload, secret="whsec_anything")
    assert r.status_code == 500
    assert r.get_json()["message"] == "Webhook not configured"
    with app.app_context():
        db.drop_all()


@pytest.mark.parametrize("amount,fee", [(100, 250), (100, 100), (100, -5)])
def test_platform_fee_outside_gross_is_a_400(app, client, amount, fee):
    r = post(client, stripe_body(obj=intent("pi_badfee", amount=amount, fee=fee)))
    assert r.status_code == 400
    assert r.get_json()["message"] == "Invalid amount"
    with app.app_context():
        assert FeePayment.query.count() == 0
        assert PaymentTransaction.query.count() == 0
    assert revenue(app) is None


def test_revenue_upsert_increments_row_written_elsewhere(app):
    with app.app_context():
        db.session.execute(
            PlatformRevenue.__table__.insert().values(
                month="2026-01", currency="USD", gateway="stripe", total_revenue=Decimal("1.25"),
                updated_at=datetime(2026, 1, 1),
            )
        )
        db.session.commit()

        add_platform_revenue(Decimal("2.50"), currency="USD", gateway="stripe", month="2026-01")
        add_platform_revenue(Decimal("0.25"), currency="USD", gateway="stripe", month="2026-01")
        add_platform_revenue(Decimal("4.00"), currency="GHS", gateway="stripe", month="2026-01")
        db.session.commit()

        rows = {r.currency: r.total_revenue for r in PlatformRevenue.query.filter_by(month="2026-01").all()}
        assert rows == {"USD": Decimal("4.00"), "GHS": Decimal("4.00")}

from sqlmodel import select

from barbershop.models import Appointment, Payment


def book_online(client, shop, start_time="10:00"):
    res = client.post(
        "/appointments",
        json={
            "service_id": shop["service"].id,
            "barber_id": shop["barber"].id,
            "appointment_date": shop["monday"].isoformat(),
            "start_time": start_time,
            "payment_method": "online",
        },
        headers=shop["client_headers"],
    )
    assert res.status_code == 201
    return res.json()["id"]


def notify(client, payment_id):
    return client.post("/payments/webhook", json={"type": "payment", "data": {"id": payment_id}})


def payments_for(session, appt_id):
    return session.exec(select(Payment).where(Payment.appointment_id == appt_id).order_by(Payment.id)).all()


def test_approved_payment_marks_appointment_paid_once(client, session, shop, provider):
    appt_id = book_online(client, shop)
    provider.payments["pay-1"] = {
        "status": "approved", "external_reference": str(appt_id), "transaction_amount": 150.0,
    }

    res = notify(client, "pay-1")
    assert res.status_code == 200
    assert res.json() == {"success": True}

    appointment = session.get(Appointment, appt_id)
    assert appointment.payment_status == "paid"
    assert appointment.payment_method == "online"
    assert appointment.payment_id == "pay-1"

    rows = payments_for(session, appt_id)
    assert len(rows) == 1
    assert rows[0].status == "completed"
    assert rows[0].payment_provider == "mercadopago"
    assert rows[0].amount == 150.0

    # Redelivery of the same notification
    assert notify(client, "pay-1").json() == {"success": True}
    assert len(payments_for(session, appt_id)) == 1


def test_approved_notification_after_cash_payment_changes_nothing(client, session, shop, provider):
    appt_id = book_online(client, shop)
    res = client.patch(f"/appointments/{appt_id}/payment", json={"payment_method": "cash"},
                       headers=shop["barber_headers"])
    assert res.status_code == 200

    provider.payments["pay-10"] = {
        "status": "approved", "external_reference": str(appt_id), "transaction_amount": 150.0,
    }
    assert notify(client, "pay-10").json() == {"success": True}

    appointment = session.get(Appointment, appt_id)
    assert appointment.payment_status == "paid"
    assert appointment.payment_method == "cash"
    assert appointment.payment_id is None

    rows = payments_for(session, appt_id)
    assert [(p.status, p.payment_method, p.payment_provider) for p in rows] == [("completed", "cash", None)]

    barber_stats = client.get("/admin/stats", headers=shop["admin_headers"]).json()["barbers"][0]
    assert barber_stats["cash_earnings"] == 150.0
    assert barber_stats["online_earnings"] == 0


def test_numeric_payment_id(client, session, shop, provider):
    appt_id = book_online(client, shop)
    provider.payments["12345"] = {"status": "approved", "external_reference": str(appt_id)}
    assert notify(client, 12345).status_code == 200
    assert session.get(Appointment, appt_id).payment_id == "12345"


def test_pending_payment_writes_no_record(client, session, shop, provider):
    appt_id = book_online(client, shop)
    provider.payments["pay-2"] = {"status": "in_process", "external_reference": str(appt_id)}

    assert notify(client, "pay-2").status_code == 200
    appointment = session.get(Appointment, appt_id)
    assert appointment.payment_status == "pending"
    assert appointment.payment_id == "pay-2"
    assert payments_for(session, appt_id) == []


def test_rejected_payment_is_recorded_as_failed(client, session, shop, provider):
    appt_id = book_online(client, shop)
    provider.payments["pay-3"] = {"status": "rejected", "external_reference": str(appt_id)}

    assert notify(client, "pay-3").status_code == 200
    assert session.get(Appointment, appt_id).payment_status == "pending"
    assert [p.status for p in payments_for(session, appt_id)] == ["failed"]


def test_refund_after_payment(client, session, shop, provider):
    appt_id = book_online(client, shop)
    provider.payments["pay-4"] = {"status": "approved", "external_reference": str(appt_id)}
    notify(client, "pay-4")

    provider.payments["pay-4"] = {"status": "refunded", "external_reference": str(appt_id)}
    assert notify(client, "pay-4").status_code == 200

    assert session.get(Appointment, appt_id).payment_status == "refunded"
    assert [p.status for p in payments_for(session, appt_id)] == ["completed", "refunded"]


def test_stale_status_does_not_downgrade(client, session, shop, provider):
    appt_id = book_online(client, shop)
    provider.payments["pay-5"] = {"status": "approved", "external_reference": str(appt_id)}
    notify(client, "pay-5")

    provider.payments["pay-5"] = {"status": "in_process", "external_reference": str(appt_id)}
    assert notify(client, "pay-5").status_code == 200
    assert session.get(Appointment, appt_id).payment_status == "paid"


def test_non_payment_notifications_are_acknowledged(client):
    res = client.post("/payments/webhook", json={"type": "merchant_order", "data": {"id": "1"}})
    assert res.status_code == 200
    assert res.json() == {"received": True}


def test_webhook_without_payment_id(client):
    res = client.post("/payments/webhook", json={"type": "payment", "data": {}})
    assert res.status_code == 400
    assert res.json()["detail"] == "Missing payment ID"


def test_webhook_provider_failure(client, provider):
    provider.fail = True
    res = notify(client, "pay-6")
    assert res.status_code == 500
    assert res.json()["detail"] == "Failed to fetch payment"


def test_webhook_without_reference(client, provider):
    provider.payments["pay-7"] = {"status": "approved"}
    res = notify(client, "pay-7")
    assert res.status_code == 400
    assert res.json()["detail"] == "Missing appointment reference"


def test_webhook_unknown_appointment(client, provider):
    provider.payments["pay-8"] = {"status": "approved", "external_reference": "999"}
    assert notify(client, "pay-8").status_code == 404
    provider.payments["pay-9"] = {"status": "approved", "external_reference": "not-a-number"}
    assert notify(client, "pay-9").status_code == 404


def test_create_preference(client, provider):
    res = client.post(
        "/payments/create-preference",
        json={
            "appointmentId": "42",
            "title": "Haircut",
            "description": "Classic cut",
            "price": 150.0,
            "clientEmail": "client@shop.test",
            "clientName": "Carla Client",
        },
    )
    assert res.status_code == 200
    assert res.json()["id"] == "pref-123"
    assert res.json()["init_point"] == "https://mp.test/init/pref-123"
    assert provider.preferences[0]["appointment_id"] == "42"
    assert provider.preferences[0]["client_email"] == "client@shop.test"


def test_create_preference_failure(client, provider):
    provider.fail = True
    res = client.post(
        "/payments/create-preference",
        json={"appointmentId": "42", "title": "Haircut", "price": 150.0,
              "clientEmail": "client@shop.test", "clientName": "Carla Client"},
    )
    assert res.status_code == 500
    assert res.json()["detail"] == "Failed to create preference"

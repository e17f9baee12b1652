from gilt_backend.models.booking import BOOKING_STATUS_CANCELLED, BOOKING_STATUS_PENDING
from gilt_backend.models.contact_message import ContactMessage
from gilt_backend.models.user import User
from gilt_backend.utils import utcnow

CONTACT_FORM = {
    "name": "Jamie Parent",
    "email": "jamie@example.com",
    "phone": "+1 555 0100",
    "subject": "Teen counselling",
    "message": "Hello, I would like to book a first session for my son.",
}


def _create_message(db_session, **overrides):
    data = dict(CONTACT_FORM, urgency="normal")
    data.update(overrides)
    contact = ContactMessage(**data)
    db_session.add(contact)
    db_session.commit()
    db_session.refresh(contact)
    return contact


class TestContact:
    def test_submit_stores_and_notifies(self, client, db_session, email_client):
        response = client.post("/api/contact", json=dict(CONTACT_FORM, urgency="urgent"))

        assert response.status_code == 201
        body = response.json()
        assert body["success"] is True
        assert body["message"] == "Message sent successfully"

        contact = db_session.get(ContactMessage, body["messageId"])
        assert contact.subject == "Teen counselling"
        assert contact.read is False

        assert len(email_client.sent_to("jamie@example.com")) == 1
        admin_mail = email_client.sent_to("admin@giltcounselling.com")
        assert len(admin_mail) == 1
        assert admin_mail[0]["reply_to"] == "jamie@example.com"

    def test_email_failure_still_saves_message(self, client, db_session, email_client):
        email_client.fail_for.update({"jamie@example.com", "admin@giltcounselling.com"})

        response = client.post("/api/contact", json=CONTACT_FORM)

        assert response.status_code == 201
        assert db_session.query(ContactMessage).count() == 1

    def test_missing_fields(self, client):
        response = client.post("/api/contact", json={"name": "Jamie", "email": "jamie@example.com"})

        assert response.status_code == 400
        assert response.json()["error"] == "Missing required fields: subject, message"

    def test_unknown_urgency_is_rejected(self, client):
        response = client.post("/api/contact", json=dict(CONTACT_FORM, urgency="whenever"))

        assert response.status_code == 400


class TestMessagesInbox:
    def test_requires_admin(self, client, user_headers):
        assert client.get("/api/messages").status_code == 401
        assert client.get("/api/messages", headers=user_headers).status_code == 401

    def test_filters(self, client, db_session, admin_headers):
        _create_message(db_session, subject="First")
        _create_message(db_session, subject="Second", urgency="emergency", read=True)

        unread = client.get("/api/messages", params={"unread": "true"}, headers=admin_headers).json()
        emergency = client.get("/api/messages", params={"urgency": "emergency"}, headers=admin_headers).json()

        assert [m["subject"] for m in unread] == ["First"]
        assert [m["subject"] for m in emergency] == ["Second"]

    def test_mark_as_read(self, client, db_session, admin_headers):
        contact = _create_message(db_session)

        response = client.patch(f"/api/messages/{contact.id}", json={"read": True}, headers=admin_headers)

        assert response.status_code == 200
        assert response.json()["read"] is True
        assert response.json()["replied"] is False

    def test_mark_unknown_message(self, client, admin_headers):
        response = client.patch("/api/messages/999", json={"read": True}, headers=admin_headers)

        assert response.status_code == 404


class TestBookingsAdmin:
    def test_list_and_filter_by_status(self, client, make_booking, admin_headers):
        make_booking(hours_ahead=24)
        make_booking(hours_ahead=48, status=BOOKING_STATUS_CANCELLED)

        all_bookings = client.get("/api/bookings", headers=admin_headers).json()
        cancelled = client.get("/api/bookings", params={"status": "cancelled"}, headers=admin_headers).json()

        assert len(all_bookings) == 2
        assert [b["status"] for b in cancelled] == [BOOKING_STATUS_CANCELLED]

    def test_invalid_status_filter(self, client, admin_headers):
        response = client.get("/api/bookings", params={"status": "lost"}, headers=admin_headers)

        assert response.status_code == 400

    def test_upcoming_only(self, client, make_booking, admin_headers):
        now = utcnow()
        future = make_booking(hours_ahead=5, now=now)
        make_booking(hours_ahead=-5, now=now)

        response = client.get("/api/bookings", params={"upcoming": "true"}, headers=admin_headers)

        assert [b["id"] for b in response.json()] == [future.id]

    def test_detail_includes_messages(self, client, make_booking, admin_headers):
        booking = make_booking(hours_ahead=48)
        client.post(
            "/api/reminders/custom",
            json={"bookingId": booking.id, "message": "Bring your forms."},
            headers=admin_headers,
        )

        response = client.get(f"/api/bookings/{booking.id}", headers=admin_headers)

        assert response.status_code == 200
        body = response.json()
        assert body["day_before_reminder"] == "NOT_SENT"
        assert [m["kind"] for m in body["messages"]] == ["custom"]
        assert body["messages"][0]["outcome"] == "SENT"

    def test_detail_not_found(self, client, admin_headers):
        response = client.get("/api/bookings/999", headers=admin_headers)

        assert response.status_code == 404
        assert response.json() == {"success": False, "error": "Booking not found"}

    def test_update_status(self, client, make_booking, admin_headers):
        booking = make_booking(hours_ahead=48, status=BOOKING_STATUS_PENDING)

        response = client.patch(
            f"/api/bookings/{booking.id}/status", json={"status": "CANCELLED"}, headers=admin_headers
        )

        assert response.status_code == 200
        assert response.json()["status"] == BOOKING_STATUS_CANCELLED

    def test_cancelled_booking_gets_no_reminders(self, client, make_booking, admin_headers, email_client):
        booking = make_booking(hours_ahead=10, now=utcnow())
        client.patch(f"/api/bookings/{booking.id}/status", json={"status": "CANCELLED"}, headers=admin_headers)

        response = client.post("/api/reminders/send", headers={"Authorization": "Bearer test-cron-secret"})

        assert response.json()["details"]["sent"] == 0
        assert email_client.sent == []


def test_dashboard_stats(client, db_session, make_booking, admin_headers):
    now = utcnow()
    make_booking(hours_ahead=24, now=now)
    make_booking(hours_ahead=24 * 3, now=now, status=BOOKING_STATUS_CANCELLED)
    make_booking(hours_ahead=24 * 30, now=now, status=BOOKING_STATUS_PENDING)
    _create_message(db_session)
    client.post("/api/newsletter/subscribe", json={"email": "reader@example.com"})

    response = client.get("/api/dashboard/stats", headers=admin_headers)

    assert response.status_code == 200
    body = response.json()
    assert body["bookings"]["total"] == 3
    assert body["bookings"]["byStatus"]["CANCELLED"] == 1
    assert body["bookings"]["byStatus"]["COMPLETED"] == 0
    assert body["bookings"]["upcomingWeek"] == 1
    assert body["messages"] == {"total": 1, "unread": 1}
    assert body["newsletter"]["activeSubscribers"] == 1


def test_user_me(client, db_session, user_headers):
    db_session.add(User(email="client@example.com", full_name="Client Example"))
    db_session.commit()

    response = client.get("/api/user/me", headers=user_headers)

    assert response.status_code == 200
    assert response.json() == {
        "id": "user-1",
        "email": "client@example.com",
        "full_name": "Client Example",
        "role": "user",
    }


def test_user_me_requires_session(client):
    response = client.get("/api/user/me")

    assert response.status_code == 401
    assert response.json() == {"success": False, "error": "Authentication required"}


def test_health(client):
    response = client.get("/api/health")

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "healthy"
    assert body["services"]["database"] == "connected"
    assert body["services"]["email"]["api_key_configured"] is True


def test_root(client):
    assert client.get("/").json() == {"message": "Gilt Counselling backend"}


def test_messages_reject_unknown_urgency_filter(client, admin_headers):
    response = client.get("/api/messages", params={"urgency": "someday"}, headers=admin_headers)

    assert response.status_code == 400

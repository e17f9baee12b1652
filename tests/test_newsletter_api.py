from gilt_backend.models.newsletter_subscriber import NewsletterSubscriber
from gilt_backend.security import make_unsubscribe_token


def _subscribers(db_session):
    db_session.expire_all()
    return db_session.query(NewsletterSubscriber).all()


def test_subscribe_creates_subscriber(client, db_session, email_client):
    response = client.post("/api/newsletter/subscribe", json={"email": "Reader@Example.com", "name": "Reader"})

    assert response.status_code == 201
    body = response.json()
    assert body["success"] is True
    assert body["message"] == "Successfully subscribed!"
    assert body["already_subscribed"] is False

    subscribers = _subscribers(db_session)
    assert len(subscribers) == 1
    assert subscribers[0].email == "reader@example.com"
    assert subscribers[0].is_active is True
    assert subscribers[0].source == "website"
    assert subscribers[0].preferences["blog_updates"] is True

    # Bienvenida al suscriptor y aviso a los admins
    welcome = email_client.sent_to("reader@example.com")
    assert len(welcome) == 1
    assert make_unsubscribe_token("reader@example.com") in welcome[0]["html"]
    assert len(email_client.sent_to("admin@giltcounselling.com")) == 1


def test_duplicate_subscribe_is_not_an_error(client, db_session):
    client.post("/api/newsletter/subscribe", json={"email": "reader@example.com"})

    response = client.post("/api/newsletter/subscribe", json={"email": "READER@example.com"})

    assert response.status_code == 200
    assert response.json()["message"] == "Already subscribed"
    assert response.json()["already_subscribed"] is True
    assert len(_subscribers(db_session)) == 1


def test_invalid_email_returns_400(client, db_session):
    response = client.post("/api/newsletter/subscribe", json={"email": "not-an-email"})

    assert response.status_code == 400
    assert response.json()["success"] is False
    assert _subscribers(db_session) == []


def test_missing_email_returns_400(client):
    response = client.post("/api/newsletter/subscribe", json={})

    assert response.status_code == 400
    assert response.json()["error"] == "Missing required fields: email"


def test_email_failure_does_not_fail_subscription(client, db_session, email_client):
    email_client.fail_for.add("reader@example.com")

    response = client.post("/api/newsletter/subscribe", json={"email": "reader@example.com"})

    assert response.status_code == 201
    assert len(_subscribers(db_session)) == 1


def test_unsubscribe_keeps_the_record(client, db_session, email_client):
    client.post("/api/newsletter/subscribe", json={"email": "reader@example.com"})

    response = client.post("/api/newsletter/unsubscribe", json={"email": "reader@example.com"})

    assert response.status_code == 200
    assert response.json() == {"success": True, "message": "Successfully unsubscribed"}
    subscribers = _subscribers(db_session)
    assert len(subscribers) == 1
    assert subscribers[0].is_active is False
    assert subscribers[0].unsubscribed_at is not None
    assert len(email_client.sent_to("reader@example.com")) == 2


def test_unsubscribe_twice(client):
    client.post("/api/newsletter/subscribe", json={"email": "reader@example.com"})
    client.post("/api/newsletter/unsubscribe", json={"email": "reader@example.com"})

    response = client.post("/api/newsletter/unsubscribe", json={"email": "reader@example.com"})

    assert response.status_code == 200
    assert response.json()["message"] == "Already unsubscribed"


def test_unsubscribe_unknown_email_returns_404(client):
    response = client.post("/api/newsletter/unsubscribe", json={"email": "ghost@example.com"})

    assert response.status_code == 404
    assert response.json() == {"success": False, "error": "Email not found"}


def test_unsubscribe_with_token(client, db_session):
    client.post("/api/newsletter/subscribe", json={"email": "reader@example.com"})

    bad = client.post("/api/newsletter/unsubscribe", json={"email": "reader@example.com", "token": "forged"})
    good = client.post(
        "/api/newsletter/unsubscribe",
        json={"email": "reader@example.com", "token": make_unsubscribe_token("reader@example.com")},
    )

    assert bad.status_code == 400
    assert good.status_code == 200
    assert _subscribers(db_session)[0].is_active is False


def test_resubscribe_reactivates(client, db_session):
    client.post("/api/newsletter/subscribe", json={"email": "reader@example.com"})
    client.post("/api/newsletter/unsubscribe", json={"email": "reader@example.com"})

    response = client.post("/api/newsletter/subscribe", json={"email": "reader@example.com", "source": "footer"})

    assert response.status_code == 200
    assert response.json()["message"] == "Subscription reactivated successfully!"
    subscribers = _subscribers(db_session)
    assert len(subscribers) == 1
    assert subscribers[0].is_active is True
    assert subscribers[0].unsubscribed_at is None
    assert subscribers[0].source == "footer"


def test_update_preferences_merges(client, db_session):
    client.post("/api/newsletter/subscribe", json={"email": "reader@example.com"})

    response = client.post(
        "/api/newsletter/preferences",
        json={"email": "reader@example.com", "preferences": {"parenting_advice": False}},
    )

    assert response.status_code == 200
    preferences = response.json()["preferences"]
    assert preferences["parenting_advice"] is False
    assert preferences["mental_health_tips"] is True
    assert _subscribers(db_session)[0].preferences["parenting_advice"] is False


def test_update_preferences_unknown_email(client):
    response = client.post(
        "/api/newsletter/preferences",
        json={"email": "ghost@example.com", "preferences": {"blog_updates": False}},
    )

    assert response.status_code == 404


def test_stats_require_admin(client, user_headers):
    assert client.get("/api/newsletter/stats").status_code == 401
    assert client.get("/api/newsletter/stats", headers=user_headers).status_code == 401


def test_stats(client, admin_headers):
    for email, source in [("a@example.com", "footer"), ("b@example.com", "footer"), ("c@example.com", "popup")]:
        client.post("/api/newsletter/subscribe", json={"email": email, "source": source})
    client.post("/api/newsletter/unsubscribe", json={"email": "c@example.com"})

    response = client.get("/api/newsletter/stats", headers=admin_headers)

    assert response.status_code == 200
    body = response.json()
    assert body["stats"] == {"totalSubscribers": 3, "activeSubscribers": 2, "inactiveSubscribers": 1}
    assert {row["email"] for row in body["recentSubscribers"]} == {"a@example.com", "b@example.com"}
    assert body["subscribersBySource"] == [{"source": "footer", "count": 2}]

def test_region_context_defaults_for_local_client(client):
    r = client.get("/api/v1/region")
    assert r.status_code == 200
    body = r.json()
    assert body["region"] == "MM"
    assert body["region_label"] == "Myanmar"
    assert body["currency"]["code"] == "MMK"
    assert body["currency"]["decimals"] == 0
    assert body["locale"] == "en"


def test_region_context_shares_cart_state(app, client, store, fake_user):
    from marketplace.utils.security import get_optional_user

    a = store.add_listing("Lamp", "10.00")
    b = store.add_listing("Rug", "5.00")
    store.put_in_cart("test-user", a)
    store.put_in_cart("test-user", b)
    store.put_in_cart("someone-else", a)
    app.dependency_overrides[get_optional_user] = lambda: fake_user
    try:
        body = client.get("/api/v1/region").json()
    finally:
        app.dependency_overrides.pop(get_optional_user, None)

    assert body["cart_count"] == 2
    assert sorted(body["cart_listing_ids"]) == sorted([a, b])


def test_region_context_for_anonymous_visitor(client, store):
    body = client.get("/api/v1/region").json()
    assert body["cart_count"] == 0
    assert body["cart_listing_ids"] == []


def test_region_context_from_timezone_cookie(client):
    client.cookies.set("user_timezone", "Asia%2FSingapore")
    body = client.get("/api/v1/region").json()
    assert body["region"] == "SG"
    assert body["currency"]["code"] == "SGD"


def test_unknown_timezone_falls_back_to_default_region(client):
    client.cookies.set("user_timezone", "Europe/Paris")
    assert client.get("/api/v1/region").json()["region"] == "MM"


def test_set_locale_is_kept_in_session(client):
    r = client.post("/locale", json={"locale": "my"})
    assert r.status_code == 200
    assert r.json() == {"locale": "my"}

    follow = client.get("/api/v1/region")
    assert follow.json()["locale"] == "my"
    assert follow.headers["Content-Language"] == "my"


def test_set_unsupported_locale_is_rejected(client):
    r = client.post("/locale", json={"locale": "fr"})
    assert r.status_code == 400


def test_health_reports_payment_integrations(client, shop_settings):
    shop_settings(stripe_secret_key="sk_test_123")
    r = client.get("/health")
    assert r.status_code == 200
    body = r.json()
    assert body["ok"] is True
    assert body["payments"] == {"stripe": True, "2c2p": False}
    assert body["rate_limit"]["enabled"] is False


def test_security_headers_are_set(client):
    r = client.get("/health")
    assert r.headers["X-Frame-Options"] == "DENY"
    assert r.headers["X-Content-Type-Options"] == "nosniff"
    assert "https://js.stripe.com" in r.headers["Content-Security-Policy"]


def test_mutation_with_session_cookie_requires_csrf_token(client, store):
    client.cookies.set("sb_access", "token")
    lid = store.add_listing("Lamp", "10.50")

    r = client.post(f"/listings/{lid}/cart", follow_redirects=False)
    assert r.status_code == 403

    client.cookies.set("csrf_token", "csrf-value")
    ok = client.post(f"/listings/{lid}/cart", headers={"X-CSRF-Token": "csrf-value"}, follow_redirects=False)
    assert ok.status_code == 303
    assert store.count_cart_items("test-user") == 1

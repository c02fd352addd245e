import urllib.parse

import jwt

from marketplace.payments import stripe_client

TWOC2P_SECRET = "merchant-secret-key-for-tests-0123456789abcdef"


def _query(location: str):
    return urllib.parse.parse_qs(urllib.parse.urlparse(location).query)


def test_checkout_empty_cart_redirects_to_cart_with_error(client, store):
    r = client.post("/checkout", follow_redirects=False)
    assert r.status_code == 303
    assert r.headers["location"].startswith("/cart?")
    assert "error" in _query(r.headers["location"])
    assert store.orders == {}


def test_checkout_without_gateway_completes_order(client, store):
    lid = store.add_listing("Camera", "99.99")
    store.put_in_cart("test-user", lid)

    r = client.post("/checkout", follow_redirects=False)

    assert r.status_code == 303
    assert r.headers["location"].startswith("/settings/orders")
    assert "status" in _query(r.headers["location"])
    assert len(store.orders) == 1
    order = next(iter(store.orders.values()))
    assert order["status"] == "completed"
    assert order["total"] == "99.99"
    assert len(store.items_of(order["id"])) == 1
    assert store.items_of(order["id"])[0]["price"] == "99.99"
    assert store.count_cart_items("test-user") == 0


def test_checkout_with_stripe_redirects_to_hosted_page(client, store, shop_settings, region, monkeypatch):
    shop_settings(stripe_secret_key="sk_test_123")
    region("SG")
    captured = {}

    def _fake_create_session(settings, **kwargs):
        captured.update(kwargs)
        return {"id": "cs_test_42", "url": "https://checkout.stripe.test/cs_test_42"}

    monkeypatch.setattr(stripe_client, "create_session", _fake_create_session)
    lid = store.add_listing("Camera", "15.00")
    store.put_in_cart("test-user", lid)

    r = client.post("/checkout", follow_redirects=False)

    assert r.status_code == 303
    assert r.headers["location"] == "https://checkout.stripe.test/cs_test_42"
    order = next(iter(store.orders.values()))
    assert order["status"] == "pending"
    assert order["payment_reference"] == "cs_test_42"
    assert captured["metadata"] == {"order_id": order["id"]}
    assert captured["success_url"] == "http://testserver/checkout/success?session_id={CHECKOUT_SESSION_ID}"
    assert captured["cancel_url"] == "http://testserver/cart"
    assert captured["line_items"][0]["price_data"]["unit_amount"] == 1500
    assert store.count_cart_items("test-user") == 0


def test_checkout_gateway_error_marks_payment_failed(client, store, shop_settings, region, monkeypatch):
    shop_settings(stripe_secret_key="sk_test_123")
    region("SG")

    def _boom(settings, **kwargs):
        raise Exception("api down")

    monkeypatch.setattr(stripe_client, "create_session", _boom)
    lid = store.add_listing("Camera", "15.00")
    store.put_in_cart("test-user", lid)

    r = client.post("/checkout", follow_redirects=False)

    assert r.status_code == 303
    assert "error" in _query(r.headers["location"])
    order = next(iter(store.orders.values()))
    assert order["status"] == "payment_failed"
    assert store.count_cart_items("test-user") == 0


def test_failed_payment_order_is_listed_where_user_lands(client, store, shop_settings, region, monkeypatch):
    shop_settings(stripe_secret_key="sk_test_123")
    region("SG")

    def _boom(settings, **kwargs):
        raise Exception("api down")

    monkeypatch.setattr(stripe_client, "create_session", _boom)
    lid = store.add_listing("Camera", "15.00")
    store.put_in_cart("test-user", lid)

    r = client.post("/checkout", follow_redirects=False)
    landing = client.get(r.headers["location"])

    assert landing.status_code == 200
    body = landing.json()
    assert body["flash"]["error"]
    order = next(iter(store.orders.values()))
    assert [(o["id"], o["status"]) for o in body["orders"]] == [(order["id"], "payment_failed")]
    assert body["orders"][0]["total"] == "15.00"


def test_checkout_myanmar_uses_twoc2p(client, store, shop_settings, region, monkeypatch):
    shop_settings(twoc2p_merchant_id="JT01", twoc2p_secret_key=TWOC2P_SECRET, stripe_secret_key="sk_test_123")
    region("MM")
    sent = {}

    class _Resp:
        def raise_for_status(self):
            return None

        def json(self):
            return {
                "payload": jwt.encode(
                    {"respCode": "0000", "webPaymentUrl": "https://pgw.test/pay/abc", "paymentToken": "tok"},
                    TWOC2P_SECRET,
                    algorithm="HS256",
                )
            }

    def _post(url, json=None, timeout=None):
        sent["request"] = jwt.decode(json["payload"], TWOC2P_SECRET, algorithms=["HS256"])
        return _Resp()

    monkeypatch.setattr("marketplace.payments.twoc2p.httpx.post", _post)
    lid = store.add_listing("Longyi", "30.00")
    store.put_in_cart("test-user", lid)

    r = client.post("/checkout", follow_redirects=False)

    assert r.status_code == 303
    assert r.headers["location"] == "https://pgw.test/pay/abc"
    order = next(iter(store.orders.values()))
    assert order["payment_gateway"] == "2c2p"
    assert sent["request"]["userDefined1"] == order["id"]
    assert sent["request"]["backendReturnUrl"] == "http://testserver/checkout/2c2p/callback"


def test_checkout_success_marks_order_paid(client, store, shop_settings, monkeypatch):
    shop_settings(stripe_secret_key="sk_test_123")
    order = store.create_order_with_items(user_id="test-user", total="15.00", items=[])
    monkeypatch.setattr(
        stripe_client,
        "get_session",
        lambda settings, sid: {"id": sid, "payment_status": "paid", "metadata": {"order_id": order["id"]}},
    )

    r = client.get("/checkout/success", params={"session_id": "cs_test_42"}, follow_redirects=False)

    assert r.status_code == 303
    assert "status" in _query(r.headers["location"])
    assert store.orders[order["id"]]["status"] == "paid"

    # Rejouer le retour ne change rien
    client.get("/checkout/success", params={"session_id": "cs_test_42"}, follow_redirects=False)
    assert store.orders[order["id"]]["status"] == "paid"


def test_checkout_success_ignores_other_users_order(client, store, shop_settings, monkeypatch):
    shop_settings(stripe_secret_key="sk_test_123")
    order = store.create_order_with_items(user_id="someone-else", total="15.00", items=[])
    monkeypatch.setattr(
        stripe_client,
        "get_session",
        lambda settings, sid: {"id": sid, "payment_status": "paid", "metadata": {"order_id": order["id"]}},
    )

    r = client.get("/checkout/success", params={"session_id": "cs_test_42"}, follow_redirects=False)

    assert r.status_code == 303
    assert "error" in _query(r.headers["location"])
    assert store.orders[order["id"]]["status"] == "pending"


def test_checkout_success_without_stripe(client, store):
    r = client.get("/checkout/success", params={"session_id": "cs_test_42"}, follow_redirects=False)
    assert r.status_code == 303
    assert "error" in _query(r.headers["location"])


def test_twoc2p_callback_marks_order_paid(client, store, shop_settings):
    shop_settings(twoc2p_merchant_id="JT01", twoc2p_secret_key=TWOC2P_SECRET)
    order = store.create_order_with_items(user_id="buyer", total="30.00", items=[])
    payload = jwt.encode({"respCode": "0000", "userDefined1": order["id"], "tranRef": "T1"}, TWOC2P_SECRET, algorithm="HS256")

    r = client.post("/checkout/2c2p/callback", json={"payload": payload})

    assert r.status_code == 200
    assert r.json() == {"status": "paid", "order_id": order["id"]}
    assert store.orders[order["id"]]["status"] == "paid"
    assert store.orders[order["id"]]["payment_reference"] == "T1"


def test_twoc2p_callback_declined_payment_is_ignored(client, store, shop_settings):
    shop_settings(twoc2p_merchant_id="JT01", twoc2p_secret_key=TWOC2P_SECRET)
    order = store.create_order_with_items(user_id="buyer", total="30.00", items=[])
    payload = jwt.encode({"respCode": "4200", "userDefined1": order["id"]}, TWOC2P_SECRET, algorithm="HS256")

    r = client.post("/checkout/2c2p/callback", json={"payload": payload})

    assert r.json() == {"status": "ignored"}
    assert store.orders[order["id"]]["status"] == "pending"


def test_twoc2p_callback_rejects_forged_payload(client, store, shop_settings):
    shop_settings(twoc2p_merchant_id="JT01", twoc2p_secret_key=TWOC2P_SECRET)
    order = store.create_order_with_items(user_id="buyer", total="30.00", items=[])
    forged = jwt.encode(
        {"respCode": "0000", "userDefined1": order["id"]},
        "forged-secret-key-for-tests-0123456789abcdef",
        algorithm="HS256",
    )

    r = client.post("/checkout/2c2p/callback", json={"payload": forged})

    assert r.status_code == 400
    assert store.orders[order["id"]]["status"] == "pending"


def test_twoc2p_callback_when_not_configured(client, store):
    r = client.post("/checkout/2c2p/callback", json={"payload": "x"})
    assert r.status_code == 503


def test_twoc2p_return_without_payload(client, store):
    r = client.get("/checkout/2c2p/return", follow_redirects=False)
    assert r.status_code == 303
    assert r.headers["location"].startswith("/settings/orders")

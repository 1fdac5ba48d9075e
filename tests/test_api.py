from datetime import date


def create_product(client, headers, **overrides):
    payload = {"name": "Notebook A5", "category": "Stationery", "price": "50.00", "stock": 10, "reorder_level": 10}
    payload.update(overrides)
    response = client.post("/api/v1/products/", json=payload, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


def create_customer(client, headers, name="Meera Iyer"):
    response = client.post("/api/v1/customers/", json={"name": name, "phone": "9000012345"}, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


def test_root_and_health(client):
    assert client.get("/").json()["status"] == "operational"
    assert client.get("/health").status_code == 200


def test_admin_endpoints_require_a_token(client):
    response = client.get("/api/v1/customers/")

    assert response.status_code == 401
    assert response.json()["error_code"] == "UNAUTHORIZED"


def test_login_with_wrong_password(client, auth_headers):
    response = client.post("/api/v1/auth/login", json={"email": "admin@example.com", "password": "wrong-pass1"})

    assert response.status_code == 401


def test_register_rejects_weak_password(client):
    response = client.post("/api/v1/auth/register", json={"email": "weak@example.com", "password": "onlyletters"})

    assert response.status_code == 422


def test_sale_and_payment_flow(client, auth_headers):
    product = create_product(client, auth_headers)
    customer = create_customer(client, auth_headers)
    assert product["product_id"] == "PROD0001"
    assert customer["customer_id"] == "CUST0001"

    response = client.post("/api/v1/sales/preview", json={
        "customer_id": customer["id"],
        "lines": [{"product_id": product["id"], "quantity": 3}],
    }, headers=auth_headers)
    assert response.status_code == 200
    assert response.json()["total"] == "177.00"

    response = client.post("/api/v1/sales/", json={
        "customer_id": customer["id"],
        "lines": [{"product_id": product["id"], "quantity": 3}],
        "discount_pct": 0,
        "tax_pct": 18,
    }, headers={**auth_headers, "Idempotency-Key": "checkout-1"})
    assert response.status_code == 201, response.text
    bill = response.json()
    assert bill["bill_number"] == "BILL0001"
    assert bill["status"] == "unpaid"
    assert bill["pending_amount"] == "177.00"

    low = client.get("/api/v1/products/low-stock", headers=auth_headers).json()
    assert [(p["product_id"], p["stock"]) for p in low] == [("PROD0001", 7)]

    response = client.post("/api/v1/payments/", json={
        "bill_id": bill["id"], "amount": "100.00", "payment_mode": "upi"
    }, headers=auth_headers)
    assert response.status_code == 201, response.text
    assert response.json()["bill_number"] == "BILL0001"

    response = client.post(f"/api/v1/sales/{bill['id']}/payments", json={"amount": "80.00"}, headers=auth_headers)
    assert response.status_code == 422
    assert response.json()["error_code"] == "OVERPAYMENT"
    assert response.json()["retryable"] is False

    response = client.post(f"/api/v1/sales/{bill['id']}/payments", json={"amount": "77.00"}, headers=auth_headers)
    assert response.status_code == 201

    detail = client.get(f"/api/v1/sales/{bill['id']}", headers=auth_headers).json()
    assert detail["status"] == "paid"
    assert detail["paid_amount"] == "177.00"
    assert detail["pending_amount"] == "0.00"

    customer = client.get(f"/api/v1/customers/{customer['id']}", headers=auth_headers).json()
    assert customer["total_due"] == "0.00"

    payments = client.get("/api/v1/payments/", params={"bill_id": bill["id"]}, headers=auth_headers).json()
    assert payments["total"] == 2


def test_insufficient_stock_response(client, auth_headers):
    product = create_product(client, auth_headers, stock=2)

    response = client.post("/api/v1/sales/", json={
        "lines": [{"product_id": product["id"], "quantity": 5}]
    }, headers=auth_headers)

    assert response.status_code == 409
    body = response.json()
    assert body["error_code"] == "INSUFFICIENT_STOCK"
    assert body["details"] == {"product": "Notebook A5", "available": 2, "requested": 5}
    assert client.get(f"/api/v1/products/{product['id']}", headers=auth_headers).json()["stock"] == 2


def test_idempotent_sale_over_http(client, auth_headers):
    product = create_product(client, auth_headers)
    payload = {"lines": [{"product_id": product["id"], "quantity": 1}]}
    headers = {**auth_headers, "Idempotency-Key": "retry-me"}

    first = client.post("/api/v1/sales/", json=payload, headers=headers).json()
    second = client.post("/api/v1/sales/", json=payload, headers=headers).json()

    assert first["id"] == second["id"]
    assert client.get("/api/v1/sales/", headers=auth_headers).json()["total"] == 1
    assert client.get(f"/api/v1/products/{product['id']}", headers=auth_headers).json()["stock"] == 9


def test_owner_isolation(client, auth_headers, register_admin):
    product = create_product(client, auth_headers)
    customer = create_customer(client, auth_headers)
    other = register_admin(email="rival@example.com")

    assert client.get(f"/api/v1/products/{product['id']}", headers=other).status_code == 404
    assert client.get(f"/api/v1/customers/{customer['id']}", headers=other).status_code == 404
    assert client.get("/api/v1/customers/", headers=other).json()["total"] == 0

    response = client.post("/api/v1/sales/", json={
        "lines": [{"product_id": product["id"], "quantity": 1}]
    }, headers=other)
    assert response.status_code == 404

    assert create_product(client, other)["product_id"] == "PROD0001"


def test_delete_customer_with_bills_is_refused(client, auth_headers):
    product = create_product(client, auth_headers)
    customer = create_customer(client, auth_headers)
    client.post("/api/v1/sales/", json={
        "customer_id": customer["id"], "lines": [{"product_id": product["id"], "quantity": 1}]
    }, headers=auth_headers)

    response = client.delete(f"/api/v1/customers/{customer['id']}", headers=auth_headers)

    assert response.status_code == 409
    assert response.json()["error_code"] == "DELETE_RESTRICTED"


def test_reports_are_csv_downloads(client, auth_headers):
    product = create_product(client, auth_headers)
    client.post("/api/v1/sales/", json={"lines": [{"product_id": product["id"], "quantity": 2}]}, headers=auth_headers)

    response = client.get("/api/v1/reports/sales", headers=auth_headers)

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/csv")
    assert response.headers["content-disposition"] == (
        f"attachment; filename=sales_report_{date.today().isoformat()}.csv"
    )
    lines = response.text.strip().splitlines()
    assert lines[0].startswith("Bill Number,Date,Customer ID,Customer Name")
    assert lines[1].startswith("BILL0001,")
    assert "Walk-in" in lines[1]

    for kind in ("customers", "products", "suppliers", "payments"):
        assert client.get(f"/api/v1/reports/{kind}", headers=auth_headers).status_code == 200
    assert client.get("/api/v1/reports/unknown", headers=auth_headers).status_code == 422


def test_customer_portal(client, auth_headers):
    product = create_product(client, auth_headers)
    customer = create_customer(client, auth_headers)
    client.post("/api/v1/sales/", json={
        "customer_id": customer["id"], "lines": [{"product_id": product["id"], "quantity": 3}]
    }, headers=auth_headers)
    walk_in = client.post("/api/v1/sales/", json={
        "lines": [{"product_id": product["id"], "quantity": 1}]
    }, headers=auth_headers)
    assert walk_in.status_code == 201

    response = client.put(f"/api/v1/customers/{customer['id']}/credentials", json={
        "username": "meera", "password": "portal-pass"
    }, headers=auth_headers)
    assert response.status_code == 200, response.text
    assert "password_hash" not in response.json()

    assert client.post("/api/v1/portal/login", json={"username": "meera", "password": "nope"}).status_code == 401

    response = client.post("/api/v1/portal/login", json={"username": "meera", "password": "portal-pass"})
    assert response.status_code == 200
    assert response.json()["scope"] == "customer"
    portal = {"Authorization": f"Bearer {response.json()['access_token']}"}

    assert client.get("/api/v1/portal/me", headers=portal).json()["customer_id"] == "CUST0001"
    bills = client.get("/api/v1/portal/bills", headers=portal).json()
    assert [b["total_amount"] for b in bills] == ["177.00"]

    # Portal tokens do not open admin endpoints
    assert client.get("/api/v1/customers/", headers=portal).status_code == 403

    credentials = client.get(f"/api/v1/customers/{customer['id']}/credentials", headers=auth_headers).json()
    assert credentials["last_login"] is not None


def test_inactive_portal_login_is_rejected(client, auth_headers):
    customer = create_customer(client, auth_headers)
    client.put(f"/api/v1/customers/{customer['id']}/credentials", json={
        "username": "dormant", "password": "portal-pass", "is_active": False
    }, headers=auth_headers)

    response = client.post("/api/v1/portal/login", json={"username": "dormant", "password": "portal-pass"})

    assert response.status_code == 401

"""HTTP API tests: status codes, message taxonomy and the caller header."""

import pytest

from factories import line


def _sale_body(*items, **extra):
    body = {
        "customerName": "Asha Patil",
        "customerAddress": "Main Road, Pune",
        "customerMobile": "9876543210",
        "items": list(items),
    }
    body.update(extra)
    return body


class TestHealth:

    def test_health_reports_counters(self, client, db_session):
        res = client.get("/api/health")
        assert res.status_code == 200
        data = res.get_json()
        assert data["status"] == "healthy"
        assert data["database"]["counters"] == {"invoiceNumber": 0, "gahanRecord": 0}

    def test_cors_header_for_known_origin(self, client, db_session):
        res = client.get("/api/health", headers={"Origin": "http://localhost:5173"})
        assert res.headers["Access-Control-Allow-Origin"] == "http://localhost:5173"

        res = client.get("/api/health", headers={"Origin": "http://evil.example"})
        assert "Access-Control-Allow-Origin" not in res.headers


class TestSalesApi:

    @pytest.mark.parametrize("headers", [{}, {"X-User-Id": ""}, {"X-User-Id": "abc"}, {"X-User-Id": "0"}])
    def test_caller_header_required(self, client, ring, headers):
        res = client.post("/api/sales", json=_sale_body(line(ring)), headers=headers)
        assert res.status_code == 401
        assert res.get_json()["message"] == "Authentication required"

    def test_create_sale(self, client, ring, actor_headers):
        res = client.post("/api/sales", json=_sale_body(line(ring, quantity=2, weight="18")), headers=actor_headers)
        assert res.status_code == 201
        data = res.get_json()
        assert data["invoiceNumber"] == 1
        assert data["createdByUserId"] == 7
        assert data["totalAmount"] == 108000.0

        product = client.get("/api/products").get_json()[0]
        assert product["stock"] == 3
        assert product["weight"] == 32.0

    def test_missing_mobile(self, client, ring, actor_headers):
        res = client.post("/api/sales", json=_sale_body(line(ring), customerMobile=""), headers=actor_headers)
        assert res.status_code == 400
        assert res.get_json()["message"] == "Invalid sale data. Customer mobile is required."

    def test_non_object_body(self, client, db_session, actor_headers):
        res = client.post("/api/sales", data="nope", content_type="application/json", headers=actor_headers)
        assert res.status_code == 400
        assert res.get_json()["message"] == "Invalid sale data. Customer mobile is required."

    def test_product_not_found(self, client, ring, actor_headers):
        item = {"productId": 999, "name": "Kundan Set", "sellingWeight": 5, "sellingPricePerGram": 6000}
        res = client.post("/api/sales", json=_sale_body(item), headers=actor_headers)
        assert res.status_code == 400
        assert res.get_json()["message"] == "Product not found: Kundan Set"

    def test_insufficient_stock_carries_shortfall(self, client, ring, actor_headers):
        res = client.post("/api/sales", json=_sale_body(line(ring, quantity=6, weight="6")), headers=actor_headers)
        assert res.status_code == 400
        data = res.get_json()
        assert data["message"] == "Insufficient stock for: Gold Ring 22K. Available: 5"
        assert data["details"]["available"] == 5
        assert data["details"]["requested"] == 6

    def test_insufficient_weight(self, client, ring, actor_headers):
        res = client.post("/api/sales", json=_sale_body(line(ring, weight="51")), headers=actor_headers)
        assert res.status_code == 400
        assert res.get_json()["message"] == "Insufficient weight for Gold Ring 22K. Only 50g left."

    def test_totals_mismatch(self, client, ring, actor_headers):
        res = client.post("/api/sales", json=_sale_body(line(ring), totalAmount=1), headers=actor_headers)
        assert res.status_code == 400
        assert res.get_json()["details"]["field"] == "totalAmount"

    def test_get_and_list(self, client, ring, actor_headers):
        client.post("/api/sales", json=_sale_body(line(ring)), headers=actor_headers)
        client.post("/api/sales", json=_sale_body(line(ring)), headers=actor_headers)

        res = client.get("/api/sales/2")
        assert res.status_code == 200
        assert res.get_json()["customer"]["name"] == "Asha Patil"

        assert [s["invoiceNumber"] for s in client.get("/api/sales").get_json()] == [2, 1]
        assert client.get("/api/sales/99").status_code == 404


class TestDebtApi:

    def test_create_and_pay_to_zero(self, client, db_session, actor_headers):
        res = client.post(
            "/api/debt",
            json={"customerName": "Ravi", "customerMobile": "9800000001", "initialAmount": 1000},
            headers=actor_headers,
        )
        assert res.status_code == 201
        debt_id = res.get_json()["id"]

        res = client.post(f"/api/debt/{debt_id}/pay", json={"paymentAmount": 600}, headers=actor_headers)
        assert res.status_code == 200
        assert res.get_json()["amountRemaining"] == 400.0
        assert res.get_json()["status"] == "Pending"

        res = client.post(f"/api/debt/{debt_id}/pay", json={"paymentAmount": 400}, headers=actor_headers)
        data = res.get_json()
        assert data["status"] == "Paid"
        assert [p["amount"] for p in data["payments"]] == [600.0, 400.0]
        assert data["payments"][0]["method"] == "Cash"

        res = client.post(f"/api/debt/{debt_id}/pay", json={"paymentAmount": 1}, headers=actor_headers)
        assert res.status_code == 400
        assert res.get_json()["message"] == "This debt is already fully paid."

    def test_create_requires_fields(self, client, db_session, actor_headers):
        res = client.post("/api/debt", json={"customerName": "Ravi"}, headers=actor_headers)
        assert res.status_code == 400
        assert res.get_json()["message"] == "Customer name, mobile, and amount are required."

    def test_overpayment_message(self, client, debt, actor_headers):
        res = client.post(f"/api/debt/{debt.id}/pay", json={"paymentAmount": 1500}, headers=actor_headers)
        assert res.status_code == 400
        assert res.get_json()["message"] == "Payment (₹1500) exceeds remaining balance (₹1000)."

    def test_invalid_amount(self, client, debt, actor_headers):
        res = client.post(f"/api/debt/{debt.id}/pay", json={}, headers=actor_headers)
        assert res.status_code == 400
        assert res.get_json()["message"] == "Invalid payment amount."

    def test_unknown_debt(self, client, db_session, actor_headers):
        res = client.post("/api/debt/404/pay", json={"paymentAmount": 10}, headers=actor_headers)
        assert res.status_code == 404
        assert res.get_json()["message"] == "Debt record not found."
        assert client.get("/api/debt/404").status_code == 404

    def test_pay_requires_caller(self, client, debt):
        res = client.post(f"/api/debt/{debt.id}/pay", json={"paymentAmount": 10})
        assert res.status_code == 401

    def test_pending_list(self, client, debt):
        data = client.get("/api/debt").get_json()
        assert [d["id"] for d in data] == [debt.id]

    def test_debt_from_sale(self, client, ring, actor_headers):
        client.post("/api/sales", json=_sale_body(line(ring), advancePayment=10000), headers=actor_headers)

        res = client.post("/api/debt/from-sale/1", json={}, headers=actor_headers)
        assert res.status_code == 201
        assert res.get_json()["initialAmount"] == 50000.0

        res = client.post("/api/debt/from-sale/1", json={}, headers=actor_headers)
        assert res.status_code == 409


class TestProductsApi:

    def test_crud_flow(self, client, db_session, actor_headers):
        res = client.post(
            "/api/products",
            json={"name": "Anklet", "category": "Silver", "type": "bulk_weight", "weight": 300, "pricePerGram": 80},
            headers=actor_headers,
        )
        assert res.status_code == 201
        product_id = res.get_json()["id"]

        res = client.put(f"/api/products/{product_id}", json={"stock": 10}, headers=actor_headers)
        assert res.status_code == 400
        assert res.get_json()["message"] == "Field not allowed: stock"

        res = client.post(f"/api/products/{product_id}/restock", json={"weight": 50}, headers=actor_headers)
        assert res.status_code == 200
        assert res.get_json()["weight"] == 350.0

        res = client.delete(f"/api/products/{product_id}", headers=actor_headers)
        assert res.status_code == 200
        assert res.get_json()["isActive"] is False

        assert client.get("/api/products").get_json() == []
        assert len(client.get("/api/products?include_inactive=true").get_json()) == 1

    def test_writes_require_caller(self, client, ring):
        assert client.post("/api/products", json={"name": "x"}).status_code == 401
        assert client.delete(f"/api/products/{ring.id}").status_code == 401

    def test_unknown_product(self, client, db_session, actor_headers):
        res = client.post("/api/products/404/restock", json={"quantity": 1}, headers=actor_headers)
        assert res.status_code == 404

"""
Order and delivery status tests.

Verifies:
- Each status change appends exactly one delivery_history row
- Tracking-only edits append nothing; a blank tracking number clears it
- "Tracking number posted" needs a tracking number (new or stored)
- Admin list filtering and customer order scoping
"""

from partshop.models import Delivery, DeliveryHistory


def _history_count(db_session, delivery_id):
    return db_session.query(DeliveryHistory).filter_by(delivery_id=delivery_id).count()


class TestStatusChanges:
    def test_status_change_appends_one_row(self, client, db_session, admin_user, admin_headers, placed_order):
        sale_id = placed_order["saleId"]
        resp = client.patch(f"/api/admin/orders/{sale_id}", headers=admin_headers,
                            json={"statusName": "Prepare to ship", "locationDetails": "Warehouse"})
        assert resp.status_code == 200
        assert resp.json["data"]["status"] == "Prepare to ship"

        rows = (
            db_session.query(DeliveryHistory)
            .filter_by(delivery_id=placed_order["deliveryId"])
            .order_by(DeliveryHistory.history_id)
            .all()
        )
        assert [r.status.status_name for r in rows] == ["Pending", "Prepare to ship"]
        assert rows[-1].user_id == admin_user.user_id
        assert rows[-1].location_details == "Warehouse"

    def test_tracking_only_edit_appends_nothing(self, client, db_session, admin_headers, placed_order):
        resp = client.patch(f"/api/admin/orders/{placed_order['saleId']}", headers=admin_headers,
                            json={"trackingNumber": "JT-0001"})
        assert resp.status_code == 200
        assert resp.json["data"]["trackingNumber"] == "JT-0001"
        assert _history_count(db_session, placed_order["deliveryId"]) == 1

    def test_tracking_posted_requires_number(self, client, db_session, admin_headers, placed_order):
        resp = client.patch(f"/api/admin/orders/{placed_order['saleId']}", headers=admin_headers,
                            json={"statusName": "Tracking number posted"})
        assert resp.status_code == 400
        assert _history_count(db_session, placed_order["deliveryId"]) == 1

        delivery = db_session.get(Delivery, placed_order["deliveryId"])
        assert delivery.status.status_name == "Pending"

    def test_tracking_posted_with_number_in_same_request(self, client, db_session, admin_headers, placed_order):
        resp = client.patch(f"/api/admin/orders/{placed_order['saleId']}", headers=admin_headers,
                            json={"statusName": "Tracking number posted", "trackingNumber": "JT-77"})
        assert resp.status_code == 200
        assert resp.json["data"]["trackingNumber"] == "JT-77"
        assert _history_count(db_session, placed_order["deliveryId"]) == 2

    def test_tracking_posted_uses_stored_number(self, client, db_session, admin_headers, placed_order):
        url = f"/api/admin/orders/{placed_order['saleId']}"
        client.patch(url, headers=admin_headers, json={"trackingNumber": "JT-5"})
        resp = client.patch(url, headers=admin_headers, json={"statusName": "Tracking number posted"})
        assert resp.status_code == 200

    def test_blank_tracking_number_clears_it(self, client, admin_headers, placed_order):
        url = f"/api/admin/orders/{placed_order['saleId']}"
        client.patch(url, headers=admin_headers, json={"trackingNumber": "JT-5"})
        resp = client.patch(url, headers=admin_headers, json={"statusName": "Prepare to ship", "trackingNumber": ""})
        assert resp.status_code == 200
        assert resp.json["data"]["trackingNumber"] is None

    def test_unknown_status(self, client, admin_headers, placed_order):
        resp = client.patch(f"/api/admin/orders/{placed_order['saleId']}", headers=admin_headers,
                            json={"statusName": "Lost at sea"})
        assert resp.status_code == 400

    def test_empty_patch(self, client, admin_headers, placed_order):
        resp = client.patch(f"/api/admin/orders/{placed_order['saleId']}", headers=admin_headers, json={})
        assert resp.status_code == 400

    def test_unknown_order(self, client, admin_headers, db_session):
        resp = client.patch("/api/admin/orders/999", headers=admin_headers, json={"statusName": "Delivered"})
        assert resp.status_code == 404

    def test_same_status_twice_logs_twice(self, client, db_session, admin_headers, placed_order):
        url = f"/api/admin/orders/{placed_order['saleId']}"
        client.patch(url, headers=admin_headers, json={"statusName": "Prepare to ship"})
        client.patch(url, headers=admin_headers, json={"statusName": "Prepare to ship"})
        assert _history_count(db_session, placed_order["deliveryId"]) == 3


class TestAdminOrderViews:
    def test_delivered_hidden_by_default(self, client, admin_headers, placed_order):
        sale_id = placed_order["saleId"]
        client.patch(f"/api/admin/orders/{sale_id}", headers=admin_headers, json={"statusName": "Delivered"})

        assert client.get("/api/admin/orders", headers=admin_headers).json["data"] == []

        shown = client.get("/api/admin/orders?includeDelivered=true", headers=admin_headers).json["data"]
        assert [o["saleId"] for o in shown] == [sale_id]

    def test_explicit_status_filter_wins(self, client, admin_headers, placed_order):
        sale_id = placed_order["saleId"]
        client.patch(f"/api/admin/orders/{sale_id}", headers=admin_headers, json={"statusName": "Delivered"})

        rows = client.get("/api/admin/orders?status=Delivered", headers=admin_headers).json["data"]
        assert [o["saleId"] for o in rows] == [sale_id]
        assert client.get("/api/admin/orders?status=Pending", headers=admin_headers).json["data"] == []

    def test_detail(self, client, admin_headers, placed_order):
        resp = client.get(f"/api/admin/orders/{placed_order['saleId']}", headers=admin_headers)
        assert resp.status_code == 200
        data = resp.json["data"]
        assert data["status"] == "Pending"
        assert data["courier"]["name"] == "LBC"
        assert data["customer"]["name"] == "Juan Dela Cruz"
        assert data["items"] == [{"name": "Brake Pad", "quantity": 2, "subtotal": 1000}]
        assert [h["status"] for h in data["history"]] == ["Pending"]
        assert [s["status_name"] for s in data["statusOptions"]] == [
            "Pending", "Prepare to ship", "Pickup by courier", "Tracking number posted", "Delivered",
        ]


class TestCustomerOrders:
    def test_list_and_search(self, client, customer_headers, admin_headers, placed_order):
        sale_id = placed_order["saleId"]
        client.patch(f"/api/admin/orders/{sale_id}", headers=admin_headers, json={"trackingNumber": "JT-ABC-123"})

        rows = client.get("/api/me/orders", headers=customer_headers).json["data"]
        assert [r["saleId"] for r in rows] == [sale_id]
        assert rows[0]["itemsCount"] == 2

        assert len(client.get("/api/me/orders?q=abc", headers=customer_headers).json["data"]) == 1
        assert len(client.get(f"/api/me/orders?q={sale_id}", headers=customer_headers).json["data"]) == 1
        assert client.get("/api/me/orders?q=zzz", headers=customer_headers).json["data"] == []

    def test_detail_is_scoped_to_owner(self, client, customer_headers, other_customer_headers, placed_order):
        url = f"/api/me/orders/{placed_order['saleId']}"
        assert client.get(url, headers=customer_headers).status_code == 200
        assert client.get(url, headers=other_customer_headers).status_code == 404

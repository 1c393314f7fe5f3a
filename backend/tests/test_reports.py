"""
Dashboard and sales tracker tests.
"""

from datetime import datetime, timedelta

import pytest

from partshop.models import Delivery, Sale, Supply, Supplier
from partshop.services.reporting_service import build_range
from partshop.time_utils import utcnow


def _deliver(client, headers, sale_id):
    resp = client.patch(f"/api/admin/orders/{sale_id}", headers=headers, json={"statusName": "Delivered"})
    assert resp.status_code == 200, resp.json


class TestBuildRange:

    NOW = datetime(2026, 3, 15, 17, 45)

    def test_today(self):
        assert build_range("today", self.NOW) == (datetime(2026, 3, 15), datetime(2026, 3, 16))

    def test_seven_days_includes_today(self):
        assert build_range("7d", self.NOW) == (datetime(2026, 3, 9), datetime(2026, 3, 16))

    def test_thirty_days(self):
        assert build_range("30d", self.NOW) == (datetime(2026, 2, 14), datetime(2026, 3, 16))

    def test_all(self):
        assert build_range("all", self.NOW) == (None, None)


class TestDashboard:

    def test_totals_and_revenue(self, client, db_session, admin_headers, placed_order):
        db_session.add(Supply(
            supplier=Supplier(name="Acme Parts"),
            receipt_number="OR-1",
            date=utcnow(),
            total_cost=400,
        ))
        db_session.commit()

        resp = client.get("/api/admin/dashboard", headers=admin_headers)
        assert resp.status_code == 200
        data = resp.json["data"]
        assert data["range"] == "7d"
        assert data["totals"] == {
            "totalSales": placed_order["total"],
            "totalSupply": 400,
            "revenue": placed_order["total"] - 400,
        }
        assert [(r["status"], r["count"]) for r in data["statusCounts"]] == [("Pending", 1)]

        recent = data["recentOrders"][0]
        assert recent["id"] == str(placed_order["saleId"])
        assert recent["customerName"] == "Juan Dela Cruz"
        assert recent["status"] == "Pending"
        assert recent["total"] == placed_order["total"]

        assert data["topCustomers"][0]["name"] == "Juan Dela Cruz"
        assert data["topCustomers"][0]["orders"] == 1

    def test_old_orders_outside_range(self, client, db_session, admin_headers, placed_order):
        old = utcnow() - timedelta(days=60)
        sale = db_session.get(Sale, placed_order["saleId"])
        sale.date = old
        db_session.get(Delivery, placed_order["deliveryId"]).date = old
        db_session.commit()

        data = client.get("/api/admin/dashboard?range=30d", headers=admin_headers).json["data"]
        assert data["totals"]["totalSales"] == 0
        assert data["recentOrders"] == []

        data = client.get("/api/admin/dashboard?range=all", headers=admin_headers).json["data"]
        assert data["totals"]["totalSales"] == placed_order["total"]

    def test_delivered_counter(self, client, admin_headers, placed_order):
        _deliver(client, admin_headers, placed_order["saleId"])

        data = client.get("/api/admin/dashboard", headers=admin_headers).json["data"]
        assert data["delivered"]["count"] == 1
        assert data["delivered"]["day"] == utcnow().strftime("%Y-%m-%d")

        data = client.get("/api/admin/dashboard?deliveredDay=2001-01-01", headers=admin_headers).json["data"]
        assert data["delivered"] == {"day": "2001-01-01", "count": 0}

    @pytest.mark.parametrize("query", ["range=90d", "deliveredDay=yesterday"])
    def test_invalid_query(self, client, admin_headers, query):
        assert client.get(f"/api/admin/dashboard?{query}", headers=admin_headers).status_code == 400


class TestSalesTracker:

    def test_only_delivered_orders(self, client, admin_headers, placed_order):
        assert client.get("/api/admin/sales-tracker", headers=admin_headers).json["data"] == []

        _deliver(client, admin_headers, placed_order["saleId"])
        rows = client.get("/api/admin/sales-tracker", headers=admin_headers).json["data"]
        assert len(rows) == 1
        assert rows[0]["saleId"] == placed_order["saleId"]
        assert rows[0]["itemsBought"] == 2
        assert rows[0]["totalPrice"] == placed_order["total"]
        assert rows[0]["deliveredDate"] == utcnow().strftime("%Y-%m-%d")

    def test_search(self, client, admin_headers, placed_order):
        _deliver(client, admin_headers, placed_order["saleId"])
        assert len(client.get("/api/admin/sales-tracker?q=juan", headers=admin_headers).json["data"]) == 1
        assert client.get("/api/admin/sales-tracker?q=maria", headers=admin_headers).json["data"] == []

    @pytest.mark.parametrize("take", ["0", "1001", "abc", "-3"])
    def test_take_bounds(self, client, admin_headers, take):
        resp = client.get(f"/api/admin/sales-tracker?take={take}", headers=admin_headers)
        assert resp.status_code == 400
        assert resp.json["error"] == "Invalid query"

    def test_detail(self, client, admin_headers, placed_order):
        _deliver(client, admin_headers, placed_order["saleId"])
        resp = client.get(f"/api/admin/sales-tracker/{placed_order['saleId']}", headers=admin_headers)
        assert resp.status_code == 200
        data = resp.json["data"]
        assert data["paymentType"] == "CASH_ON_DELIVERY"
        assert data["items"] == [{
            "id": data["items"][0]["id"],
            "name": "Brake Pad",
            "quantity": 2,
            "subtotal": 1000,
        }]

    def test_detail_missing(self, client, admin_headers):
        assert client.get("/api/admin/sales-tracker/999", headers=admin_headers).status_code == 404

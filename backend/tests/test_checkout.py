"""
Checkout tests.

Verifies:
- Totals: subtotal from current selling prices, fee from cart weight
- Sale, details, delivery, first history row and cart cleanup in one go
- Duplicate lines are merged
- Address ownership, unknown products and couriers that cannot carry the weight
"""

from partshop.models import Courier, Delivery, DeliveryHistory, Sale, SaleDetail, UserCart

from conftest import place_order


class TestPlaceOrder:
    def test_creates_sale_delivery_and_history(self, client, db_session, customer_user, customer_headers,
                                                customer_address, courier, make_product):
        pad = make_product("Brake Pad", price=500, weight=0.75)
        oil = make_product("Engine Oil", price=350, weight=1.0)

        resp = place_order(client, customer_headers, address_id=customer_address.address_id,
                           courier_id=courier.courier_id, items=[
                               {"productId": pad.product_id, "quantity": 2},
                               {"productId": oil.product_id, "quantity": 1},
                           ])
        assert resp.status_code == 201
        data = resp.json["data"]
        # 2.5 kg: base 100 + 2 started kg x 50
        assert data["subtotal"] == 1350
        assert data["deliveryFee"] == 200
        assert data["total"] == 1550

        sale = db_session.get(Sale, data["saleId"])
        assert sale.user_id == customer_user.user_id
        assert sale.payment_type == "CASH_ON_DELIVERY"
        assert db_session.query(SaleDetail).filter_by(sale_id=sale.sale_id).count() == 2

        delivery = db_session.get(Delivery, data["deliveryId"])
        assert delivery.status.status_name == "Pending"
        assert delivery.delivery_fee == 200
        assert delivery.overall_total == 1550

        history = db_session.query(DeliveryHistory).filter_by(delivery_id=delivery.delivery_id).all()
        assert [h.status.status_name for h in history] == ["Pending"]

    def test_duplicate_lines_are_merged(self, client, db_session, customer_headers, customer_address,
                                        courier, make_product):
        pad = make_product(price=100, weight=0)
        resp = place_order(client, customer_headers, address_id=customer_address.address_id,
                           courier_id=courier.courier_id, items=[
                               {"productId": pad.product_id, "quantity": 1},
                               {"productId": pad.product_id, "quantity": 2},
                           ])
        assert resp.status_code == 201
        [detail] = db_session.query(SaleDetail).filter_by(sale_id=resp.json["data"]["saleId"]).all()
        assert detail.quantity == 3
        assert detail.sub_total == 300

    def test_ordered_products_leave_the_cart(self, client, db_session, customer_user, customer_headers,
                                             customer_address, courier, make_product):
        ordered = make_product("Ordered")
        kept = make_product("Kept")
        for p in (ordered, kept):
            client.post("/api/cart", headers=customer_headers, json={"productId": p.product_id})

        place_order(client, customer_headers, address_id=customer_address.address_id,
                    courier_id=courier.courier_id, items=[{"productId": ordered.product_id, "quantity": 1}])

        remaining = db_session.query(UserCart.product_id).filter_by(user_id=customer_user.user_id).all()
        assert [r.product_id for r in remaining] == [kept.product_id]

    def test_too_heavy_for_courier(self, client, db_session, customer_headers, customer_address, make_product):
        small = Courier(name="Bike", base_rate=60, rate_per_kg=20, max_weight=3)
        db_session.add(small)
        db_session.commit()
        heavy = make_product("Battery", weight=15)

        resp = place_order(client, customer_headers, address_id=customer_address.address_id,
                           courier_id=small.courier_id, items=[{"productId": heavy.product_id, "quantity": 1}])
        assert resp.status_code == 400
        assert resp.json["error"] == "Selected courier cannot deliver this cart weight"
        assert db_session.query(Sale).count() == 0

    def test_address_must_belong_to_user(self, client, other_customer_headers, customer_address, courier,
                                         make_product):
        product = make_product()
        resp = place_order(client, other_customer_headers, address_id=customer_address.address_id,
                           courier_id=courier.courier_id, items=[{"productId": product.product_id, "quantity": 1}])
        assert resp.status_code == 404

    def test_unknown_product(self, client, db_session, customer_headers, customer_address, courier):
        resp = place_order(client, customer_headers, address_id=customer_address.address_id,
                           courier_id=courier.courier_id, items=[{"productId": 404, "quantity": 1}])
        assert resp.status_code == 404
        assert db_session.query(Sale).count() == 0

    def test_empty_items(self, client, customer_headers, customer_address, courier):
        resp = place_order(client, customer_headers, address_id=customer_address.address_id,
                           courier_id=courier.courier_id, items=[])
        assert resp.status_code == 400


def test_checkout_lookups(client, customer_headers, customer_address, courier):
    resp = client.get("/api/checkout/lookups", headers=customer_headers)
    assert resp.status_code == 200
    data = resp.json["data"]
    assert [c["name"] for c in data["couriers"]] == ["LBC"]
    assert data["addresses"] == [{
        "id": str(customer_address.address_id),
        "label": "123 Rizal St",
        "lines": ["123 Rizal St"],
    }]

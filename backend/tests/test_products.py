"""
Storefront catalog and staff product management tests.
"""

import io

import pytest

from partshop.models import Car, CarModel, ProductCarCompatibility, ProductImage, ProductYear, UserCart
from partshop.services.vehicle_service import get_fitment_placeholder


@pytest.fixture
def catalog(make_product):
    """Three listed products across two brands and categories."""
    return {
        "pad": make_product("Brake Pad", price=500, weight=0.5, brand="Bendix", category="Brakes"),
        "rotor": make_product("Brake Rotor", price=1800, weight=3.2, brand="Brembo", category="Brakes"),
        "filter": make_product("Oil Filter", price=250, weight=0.3, brand="Denso", category="Filters"),
    }


@pytest.fixture
def vios(db_session):
    car = Car(make="Toyota")
    model = CarModel(car=car, model_name="Vios - 1.3 E", base_model="Vios", variant="1.3 E")
    years = {y: ProductYear(year=y) for y in (2013, 2015, 2018)}
    db_session.add_all([model, *years.values()])
    db_session.commit()
    return model, years


def _fit(db_session, product, model, start, end):
    db_session.add(ProductCarCompatibility(
        product_id=product.product_id,
        model_id=model.model_id,
        start_year_id=start.year_id,
        end_year_id=end.year_id,
    ))
    db_session.commit()


def _names(resp):
    return [p["name"] for p in resp.json["data"]["items"]]


# =============================================================================
# STOREFRONT LISTING
# =============================================================================


class TestListing:

    def test_newest_first(self, client, catalog):
        resp = client.get("/api/products")
        assert resp.status_code == 200
        assert _names(resp) == ["Oil Filter", "Brake Rotor", "Brake Pad"]
        assert resp.json["data"]["count"] == 3

    @pytest.mark.parametrize("query,expected", [
        ("category=Brakes", ["Brake Rotor", "Brake Pad"]),
        ("brand=Bendix,Denso", ["Oil Filter", "Brake Pad"]),
        ("minPrice=400&maxPrice=1000", ["Brake Pad"]),
        ("maxPrice=abc", ["Oil Filter", "Brake Rotor", "Brake Pad"]),
        ("q=BRAKE", ["Brake Rotor", "Brake Pad"]),
        ("q=rotor&category=Filters", []),
    ])
    def test_filters(self, client, catalog, query, expected):
        assert _names(client.get(f"/api/products?{query}")) == expected

    def test_pagination(self, client, catalog):
        data = client.get("/api/products?page=2&perPage=2").json["data"]
        assert [p["name"] for p in data["items"]] == ["Brake Pad"]
        assert data["pagination"] == {
            "page": 2,
            "per_page": 2,
            "total": 3,
            "total_pages": 2,
            "has_next": False,
            "has_prev": True,
        }

    def test_per_page_is_capped(self, client, catalog):
        data = client.get("/api/products?perPage=5000").json["data"]
        assert data["pagination"]["per_page"] == 100

    @pytest.mark.parametrize("per_page", [-5, 0])
    def test_non_positive_per_page_falls_back_to_default(self, client, catalog, per_page):
        data = client.get(f"/api/products?perPage={per_page}").json["data"]
        assert data["pagination"]["per_page"] == 50
        assert data["pagination"]["total_pages"] == 1
        assert len(data["items"]) == 3

    def test_vehicle_fit(self, client, db_session, catalog, vios):
        model, years = vios
        _fit(db_session, catalog["pad"], model, years[2013], years[2015])
        _fit(db_session, catalog["rotor"], model, years[2015], years[2018])

        assert _names(client.get(f"/api/products?model_id={model.model_id}")) == ["Brake Rotor", "Brake Pad"]
        assert _names(client.get(f"/api/products?model_id={model.model_id}&year=2014")) == ["Brake Pad"]
        assert _names(client.get(f"/api/products?model_id={model.model_id}&year=2015")) == ["Brake Rotor", "Brake Pad"]
        assert _names(client.get(f"/api/products?model_id={model.model_id}&year=2020")) == []

    def test_fitment_placeholder_is_hidden(self, client, db_session, catalog):
        get_fitment_placeholder()
        db_session.commit()
        assert len(_names(client.get("/api/products"))) == 3

    def test_brand_and_category_counts(self, client, catalog):
        brands = client.get("/api/brands").json["data"]
        assert {b["name"]: b["productCount"] for b in brands} == {"Bendix": 1, "Brembo": 1, "Denso": 1}

        categories = client.get("/api/categories").json["data"]
        assert {c["name"]: c["productCount"] for c in categories} == {"Brakes": 2, "Filters": 1}


# =============================================================================
# DETAIL, RELATED, WEIGHTS
# =============================================================================


class TestDetail:

    def test_detail_includes_compatibility(self, client, db_session, catalog, vios):
        model, years = vios
        _fit(db_session, catalog["pad"], model, years[2013], years[2018])

        resp = client.get(f"/api/products/{catalog['pad'].product_id}")
        assert resp.status_code == 200
        data = resp.json["data"]
        assert data["brand"] == {"name": "Bendix"}
        assert data["product_image"] == []
        assert data["compatibility"][0]["make"] == "Toyota"
        assert data["compatibility"][0]["start_year"] == 2013
        assert data["compatibility"][0]["end_year"] == 2018

    def test_missing(self, client, db_session):
        assert client.get("/api/products/999").status_code == 404

    def test_related_same_category(self, client, catalog):
        resp = client.get(f"/api/products/{catalog['pad'].product_id}/related")
        assert [p["name"] for p in resp.json["data"]] == ["Brake Rotor"]

    def test_weights(self, client, catalog):
        ids = [catalog["pad"].product_id, str(catalog["rotor"].product_id), 999]
        resp = client.post("/api/products/weights", json={"productIds": ids})
        assert resp.status_code == 200
        assert resp.json["data"]["weightsKg"] == {
            str(catalog["pad"].product_id): 0.5,
            str(catalog["rotor"].product_id): 3.2,
        }

    @pytest.mark.parametrize("payload", [{}, {"productIds": []}, {"productIds": ["abc"]}, {"productIds": [1.5]}])
    def test_weights_bad_ids(self, client, db_session, payload):
        assert client.post("/api/products/weights", json=payload).status_code == 400


# =============================================================================
# STAFF MANAGEMENT
# =============================================================================


class TestManagement:

    def test_create(self, client, admin_headers, catalog):
        brand_id = catalog["pad"].brand_id
        resp = client.post("/api/products", headers=admin_headers, json={
            "name": "Spark Plug",
            "selling_price": "180",
            "weight": 0.05,
            "brand_id": brand_id,
        })
        assert resp.status_code == 201
        data = resp.json["data"]
        assert data["selling_price"] == 180
        assert data["quantity"] == 0
        assert data["brand"] == {"name": "Bendix"}

    @pytest.mark.parametrize("payload,status", [
        ({}, 400),
        ({"name": "   "}, 400),
        ({"name": "X", "selling_price": 1.5}, 400),
        ({"name": "X", "product_id": 5}, 400),
        ({"name": "X", "brand_id": 999}, 404),
    ])
    def test_create_rejects(self, client, admin_headers, payload, status):
        assert client.post("/api/products", headers=admin_headers, json=payload).status_code == status

    def test_update(self, client, admin_headers, catalog):
        product_id = catalog["pad"].product_id
        resp = client.patch(f"/api/products/{product_id}", headers=admin_headers, json={
            "name": "  Ceramic Brake Pad ",
            "selling_price": "650.9",
            "quantity": "",
            "weight": "0.75",
            "brandName": "Brembo",
            "categoryName": "Unknown Category",
        })
        assert resp.status_code == 200
        data = resp.json["data"]
        assert data["name"] == "Ceramic Brake Pad"
        assert data["selling_price"] == 650
        assert data["quantity"] == 10
        assert data["weight"] == 0.75
        assert data["brand"] == {"name": "Brembo"}
        assert data["category"] == {"name": "Brakes"}

    def test_update_requires_name(self, client, admin_headers, catalog):
        resp = client.patch(f"/api/products/{catalog['pad'].product_id}", headers=admin_headers, json={"name": ""})
        assert resp.status_code == 400

    def test_delete_cascades(self, client, db_session, admin_headers, customer_user, catalog, vios):
        pad = catalog["pad"]
        model, years = vios
        _fit(db_session, pad, model, years[2013], years[2015])
        db_session.add(UserCart(user_id=customer_user.user_id, product_id=pad.product_id, quantity=1))
        db_session.commit()
        product_id = pad.product_id

        resp = client.delete(f"/api/products/{product_id}", headers=admin_headers)
        assert resp.status_code == 200
        assert client.get(f"/api/products/{product_id}").status_code == 404
        assert db_session.query(ProductCarCompatibility).filter_by(product_id=product_id).count() == 0
        assert db_session.query(UserCart).filter_by(product_id=product_id).count() == 0

        assert client.delete(f"/api/products/{product_id}", headers=admin_headers).status_code == 404


# =============================================================================
# IMAGES
# =============================================================================


class TestImages:

    def _upload(self, client, headers, product_id, files):
        return client.post(
            f"/api/products/{product_id}/images",
            headers=headers,
            data={"files": [(io.BytesIO(data), name, mime) for data, name, mime in files]},
            content_type="multipart/form-data",
        )

    def test_upload_and_serve(self, client, admin_headers, catalog):
        product_id = catalog["pad"].product_id
        resp = self._upload(client, admin_headers, product_id, [
            (b"GIF89a-one", "front view.gif", "image/gif"),
            (b"", "empty.gif", "image/gif"),
            (b"GIF89a-two", "side.gif", "image/gif"),
        ])
        assert resp.status_code == 201
        assert len(resp.json["data"]) == 2
        image_id = resp.json["data"][0]["id"]

        served = client.get(f"/api/products/{product_id}/images/{image_id}")
        assert served.status_code == 200
        assert served.data == b"GIF89a-one"
        assert served.mimetype == "image/gif"
        assert "immutable" in served.headers["Cache-Control"]

        etag = served.headers["ETag"]
        again = client.get(f"/api/products/{product_id}/images/{image_id}", headers={"If-None-Match": etag})
        assert again.status_code == 304

        listing = client.get("/api/products?q=Brake%20Pad").json["data"]["items"][0]
        assert listing["product_image"][0]["image"].startswith(f"/api/products/{product_id}/images/{image_id}?v=")

    def test_rejects_non_images(self, client, admin_headers, catalog):
        resp = self._upload(client, admin_headers, catalog["pad"].product_id, [(b"hello", "a.txt", "text/plain")])
        assert resp.status_code == 400

    def test_unknown_product(self, client, admin_headers, db_session):
        resp = self._upload(client, admin_headers, 999, [(b"GIF89a", "a.gif", "image/gif")])
        assert resp.status_code == 404

    def test_legacy_file_name_url(self, client, db_session, catalog):
        db_session.add(ProductImage(product_id=catalog["filter"].product_id, image="filter.jpg"))
        db_session.commit()
        item = client.get("/api/products?q=Oil").json["data"]["items"][0]
        assert item["product_image"] == [{"image": "/products/filter.jpg"}]

        image_id = db_session.query(ProductImage).one().id
        assert client.get(f"/api/products/{catalog['filter'].product_id}/images/{image_id}").status_code == 404

    def test_delete(self, client, admin_headers, catalog):
        product_id = catalog["pad"].product_id
        image_id = self._upload(client, admin_headers, product_id,
                                [(b"GIF89a", "a.gif", "image/gif")]).json["data"][0]["id"]
        url = f"/api/products/{product_id}/images/{image_id}"
        assert client.delete(url, headers=admin_headers).status_code == 200
        assert client.get(url).status_code == 404
        assert client.delete(url, headers=admin_headers).status_code == 404


# =============================================================================
# COMPATIBILITY
# =============================================================================


class TestCompatibility:

    def test_add_is_idempotent(self, client, admin_headers, catalog, vios):
        model, years = vios
        url = f"/api/products/{catalog['pad'].product_id}/compatibility"
        payload = {"model_id": model.model_id, "start_year_id": years[2013].year_id, "end_year_id": years[2015].year_id}

        first = client.post(url, headers=admin_headers, json=payload)
        assert first.status_code == 201
        assert first.json["data"]["created"] is True

        second = client.post(url, headers=admin_headers, json=payload)
        assert second.status_code == 200
        assert second.json["data"] == {"id": first.json["data"]["id"], "created": False}

        rows = client.get(url).json["data"]
        assert len(rows) == 1
        assert rows[0]["model_name"] == "Vios - 1.3 E"

    def test_reversed_years(self, client, admin_headers, catalog, vios):
        model, years = vios
        resp = client.post(f"/api/products/{catalog['pad'].product_id}/compatibility", headers=admin_headers,
                           json={"model_id": model.model_id,
                                 "start_year_id": years[2018].year_id,
                                 "end_year_id": years[2013].year_id})
        assert resp.status_code == 400

    def test_unknown_model(self, client, admin_headers, catalog, vios):
        _, years = vios
        resp = client.post(f"/api/products/{catalog['pad'].product_id}/compatibility", headers=admin_headers,
                           json={"model_id": 999,
                                 "start_year_id": years[2013].year_id,
                                 "end_year_id": years[2015].year_id})
        assert resp.status_code == 404

    def test_delete(self, client, db_session, admin_headers, catalog, vios):
        model, years = vios
        _fit(db_session, catalog["pad"], model, years[2013], years[2015])
        compat_id = db_session.query(ProductCarCompatibility).one().id
        url = f"/api/products/{catalog['pad'].product_id}/compatibility/{compat_id}"

        assert client.delete(url, headers=admin_headers).status_code == 200
        assert client.delete(url, headers=admin_headers).status_code == 404

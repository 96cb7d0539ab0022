from decimal import Decimal

import pytest

COLOR, SIZE = 1, 2


@pytest.fixture
def product(client):
    response = client.post("/api/products/", json={"name": "Classic Tee", "base_price": "19.90"})
    assert response.status_code == 201
    return response.json()


def bulk(client, product_id, **body):
    body.setdefault("attributes", [
        {"attribute_id": COLOR, "values": ["Black", "White"]},
        {"attribute_id": SIZE, "values": ["S", "M"]},
    ])
    return client.post("/api/variants/bulk", json={"product_id": product_id, **body})


def test_root_health(client):
    assert client.get("/").json()["status"] == "healthy"


def test_seeded_attributes(client):
    names = [a["name"] for a in client.get("/api/attributes/").json()]
    assert names == ["color", "size", "material"]


def test_duplicate_product_name_is_rejected(client, product):
    response = client.post("/api/products/", json={"name": "Classic Tee", "base_price": "5"})
    assert response.status_code == 400


def test_bulk_generation_with_pattern_and_rules(client, product):
    response = bulk(
        client, product["id"],
        sku_pattern="{product}-{color-value}-{size-value}",
        adjustment_rules={str(SIZE): {"M": "2.00"}},
        default_stock=7,
    )

    assert response.status_code == 201
    report = response.json()
    assert report["created_count"] == 4
    assert report["failed_count"] == 0
    created = report["created"]
    assert [v["sku"] for v in created] == [
        "CLASSIC-TEE-BLACK-S", "CLASSIC-TEE-BLACK-M", "CLASSIC-TEE-WHITE-S", "CLASSIC-TEE-WHITE-M",
    ]
    assert [Decimal(v["price"]) for v in created] == [Decimal("19.90"), Decimal("21.90")] * 2
    assert [v["is_default"] for v in created] == [True, False, False, False]
    assert all(v["stock"] == 7 for v in created)

    refreshed = client.get(f"/api/products/{product['id']}").json()
    assert Decimal(refreshed["min_price"]) == Decimal("19.90")
    assert Decimal(refreshed["max_price"]) == Decimal("21.90")
    assert refreshed["has_variants"] is True


def test_bulk_generation_without_pattern_numbers_skus(client, product):
    report = bulk(client, product["id"]).json()
    assert [v["sku"] for v in report["created"]] == [f"CLASSIC-TEE-{n}" for n in range(1, 5)]


def test_price_table_overrides(client, product):
    report = bulk(
        client, product["id"],
        attributes=[{"attribute_id": COLOR, "values": ["Black", "White"]}],
        price_table=[{"combination": [{"attribute_id": COLOR, "value": "White"}], "price": "25"}],
        base_price="10",
    ).json()
    assert [Decimal(v["price"]) for v in report["created"]] == [Decimal("10.00"), Decimal("25.00")]


def test_repeating_a_bulk_request_creates_nothing(client, product):
    bulk(client, product["id"])
    report = bulk(client, product["id"]).json()

    assert report["created_count"] == 0
    assert report["failed_count"] == 4
    assert {f["code"] for f in report["failed"]} == {"DUPLICATE_SKU"}
    assert [f["position"] for f in report["failed"]] == [0, 1, 2, 3]


def test_same_combination_under_new_skus_is_rejected(client, product):
    bulk(client, product["id"])
    report = bulk(client, product["id"], sku_pattern="ALT-{color-value}-{size-value}").json()

    assert report["created_count"] == 0
    assert {f["code"] for f in report["failed"]} == {"DUPLICATE_COMBINATION"}


def test_combination_ceiling(client, product):
    response = bulk(client, product["id"], attributes=[
        {"attribute_id": COLOR, "values": [f"c{i}" for i in range(11)]},
        {"attribute_id": SIZE, "values": [f"s{i}" for i in range(10)]},
    ])

    assert response.status_code == 400
    assert "110" in response.json()["detail"]
    assert client.get(f"/api/variants/product/{product['id']}").json() == []


def test_bulk_for_missing_product(client):
    assert bulk(client, 9999).status_code == 404


def test_batch_reports_positions(client, product):
    proposals = [
        {"product_id": product["id"], "sku": sku, "price": "10", "stock": 1}
        for sku in ["A", "B", "C", "B", "D"]
    ]
    proposals.append({"product_id": product["id"], "sku": "E", "price": "ten", "stock": 1})

    response = client.post("/api/variants/batch", json={"proposals": proposals})

    assert response.status_code == 201
    report = response.json()
    assert report["created_count"] == 4
    assert [(f["position"], f["code"]) for f in report["failed"]] == [
        (3, "DUPLICATE_IN_BATCH"), (5, "VALIDATION_ERROR"),
    ]


def test_single_create_maps_failures_to_status(client, product):
    body = {"product_id": product["id"], "sku": "ONE", "price": "10", "stock": 1}
    assert client.post("/api/variants/", json=body).status_code == 201
    assert client.post("/api/variants/", json=body).status_code == 409
    assert client.post("/api/variants/", json={**body, "sku": "TWO", "product_id": 9999}).status_code == 404
    assert client.post("/api/variants/", json={**body, "sku": "THREE", "price": "-1"}).status_code == 400


def test_list_puts_default_first(client, product):
    bulk(client, product["id"])
    variants = client.get(f"/api/variants/product/{product['id']}").json()
    target = variants[-1]

    client.put(f"/api/variants/{target['id']}", json={"is_default": True})
    variants = client.get(f"/api/variants/product/{product['id']}").json()

    assert variants[0]["id"] == target["id"]
    assert sum(v["is_default"] for v in variants) == 1


def test_update_refreshes_aggregate(client, product):
    created = bulk(client, product["id"]).json()["created"]

    response = client.put(f"/api/variants/{created[0]['id']}", json={"price": "5.00"})

    assert response.status_code == 200
    refreshed = client.get(f"/api/products/{product['id']}").json()
    assert Decimal(refreshed["min_price"]) == Decimal("5.00")


def test_update_rejects_taken_sku_and_duplicate_attributes(client, product):
    created = bulk(client, product["id"]).json()["created"]
    first, second = created[0], created[1]

    taken = client.put(f"/api/variants/{first['id']}", json={"sku": second["sku"]})
    clash = client.put(f"/api/variants/{first['id']}", json={"attributes": second["attributes"]})
    unknown = client.put(f"/api/variants/{first['id']}", json={"attributes": [{"attribute_id": 999, "value": "x"}]})

    assert taken.status_code == 409
    assert clash.status_code == 409
    assert unknown.status_code == 404


def test_update_replaces_attributes(client, product):
    created = bulk(client, product["id"]).json()["created"]

    response = client.put(
        f"/api/variants/{created[0]['id']}",
        json={"attributes": [{"attribute_id": COLOR, "value": "Red"}, {"attribute_id": SIZE, "value": "XL"}]},
    )

    assert response.status_code == 200
    assert {(a["attribute_id"], a["value"]) for a in response.json()["attributes"]} == {(COLOR, "Red"), (SIZE, "XL")}


def test_bulk_update_refreshes_every_product(client, product):
    other = client.post("/api/products/", json={"name": "Polo", "base_price": "30"}).json()
    tee_variants = bulk(client, product["id"]).json()["created"]
    polo_variants = bulk(client, other["id"]).json()["created"]

    response = client.put("/api/variants/bulk/update", json={
        "variant_ids": [tee_variants[0]["id"], polo_variants[0]["id"]],
        "data": {"price": "1.00"},
    })

    assert response.status_code == 200
    assert response.json()["updated"] == 2
    for product_id in (product["id"], other["id"]):
        refreshed = client.get(f"/api/products/{product_id}").json()
        assert Decimal(refreshed["min_price"]) == Decimal("1.00")


def test_update_order(client, product):
    created = bulk(client, product["id"]).json()["created"]
    ids = [v["id"] for v in reversed(created)]

    assert client.put("/api/variants/update-order", json={"variant_ids": ids}).status_code == 200
    orders = {v["id"]: v["display_order"] for v in client.get(f"/api/variants/product/{product['id']}").json()}
    assert [orders[i] for i in ids] == [0, 1, 2, 3]

    missing = client.put("/api/variants/update-order", json={"variant_ids": ids + [9999]})
    assert missing.status_code == 404


def test_update_order_rejects_mixed_products(client, product):
    other = client.post("/api/products/", json={"name": "Polo", "base_price": "30"}).json()
    tee = bulk(client, product["id"]).json()["created"][0]
    polo = bulk(client, other["id"]).json()["created"][0]

    response = client.put("/api/variants/update-order", json={"variant_ids": [tee["id"], polo["id"]]})
    assert response.status_code == 400


def test_delete_refreshes_aggregate(client, product):
    body = {"product_id": product["id"], "sku": "ONLY", "price": "10", "stock": 1}
    variant = client.post("/api/variants/", json=body).json()

    assert client.delete(f"/api/variants/{variant['id']}").status_code == 200
    assert client.get(f"/api/variants/{variant['id']}").status_code == 404
    refreshed = client.get(f"/api/products/{product['id']}").json()
    assert refreshed["has_variants"] is False
    assert refreshed["min_price"] is None


def test_generate_sku_preview(client, product):
    response = client.post("/api/variants/generate-sku", json={
        "product_id": product["id"],
        "pattern": "{product}-{color-value}",
        "attributes": [{"attribute_id": COLOR, "value": "Navy Blue"}],
    })
    assert response.json() == {"sku": "CLASSIC-TEE-NAVY-BLUE"}


def test_validation_errors_are_listed(client):
    response = client.post("/api/variants/bulk", json={"product_id": "abc"})

    assert response.status_code == 422
    assert any(e.startswith("body -> product_id") for e in response.json()["errors"])


def test_import_rows_endpoint(client):
    response = client.post("/api/admin/import/rows", json={"rows": [
        {"product_name": "Tee", "base_price": "10", "stock": "2", "sku": "TEE-A", "Color": "Black"},
        {"product_name": "Tee", "base_price": "10", "stock": "2", "sku": "TEE-A", "Color": "White"},
    ]})

    assert response.status_code == 200
    report = response.json()
    assert report["created_count"] == 1
    assert report["failed"][0]["rows"] == [2, 3]


def test_import_file_upload(client):
    content = b"product_name,base_price,stock,sku,Size\nTee,10,2,TEE-S,S\nTee,10,2,TEE-M,M\n"

    response = client.post("/api/admin/import/variants", files={"file": ("variants.csv", content, "text/csv")})

    assert response.status_code == 200
    assert response.json()["created_count"] == 2


def test_import_rejects_other_files(client):
    response = client.post("/api/admin/import/variants", files={"file": ("variants.txt", b"x", "text/plain")})
    assert response.status_code == 400


def test_import_template(client):
    template = client.get("/api/admin/import/template/csv").json()["template"]
    assert template.startswith("product_name,")


def test_categories(client):
    created = client.post("/api/categories/", json={"name": "Apparel", "slug": "apparel"})
    duplicate = client.post("/api/categories/", json={"name": "Clothes", "slug": "apparel"})
    bad_slug = client.post("/api/categories/", json={"name": "Shoes", "slug": "Shoes & Boots"})

    assert created.status_code == 201
    assert duplicate.status_code == 400
    assert bad_slug.status_code == 422
    assert [c["slug"] for c in client.get("/api/categories/").json()] == ["apparel"]


def test_bulk_activation_keeps_combinations_unique(client, product):
    def variant(sku, color, active):
        return {"product_id": product["id"], "sku": sku, "price": "10", "stock": 1, "is_active": active,
                "attributes": [{"attribute_id": COLOR, "value": color}]}

    report = client.post("/api/variants/batch", json={"proposals": [
        variant("A", "Black", True),
        variant("B", "Black", False),
        variant("C", "Red", False),
        variant("D", "Red", False),
        variant("E", "Blue", False),
    ]}).json()
    ids = {v["sku"]: v["id"] for v in report["created"]}

    against_existing = client.put("/api/variants/bulk/update", json={"variant_ids": [ids["B"]], "data": {"is_active": True}})
    within_request = client.put("/api/variants/bulk/update", json={"variant_ids": [ids["C"], ids["D"]], "data": {"is_active": True}})
    allowed = client.put("/api/variants/bulk/update", json={"variant_ids": [ids["A"], ids["E"]], "data": {"is_active": True}})

    assert against_existing.status_code == 409
    assert within_request.status_code == 409
    assert allowed.status_code == 200
    active = client.get(f"/api/variants/product/{product['id']}", params={"is_active": True}).json()
    assert sorted(v["sku"] for v in active) == ["A", "E"]

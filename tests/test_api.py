"""HTTP API: role flag, error mapping and end-to-end flows."""


def create_product(client, headers, **fields):
    response = client.post("/api/products", json=fields, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


def test_health(client):
    assert client.get("/health").json()["status"] == "healthy"
    assert client.get("/api/status").json()["status"] == "ok"


def test_viewer_cannot_mutate(client, viewer_headers):
    response = client.post("/api/products", json={"product_name": "Vida"}, headers=viewer_headers)
    assert response.status_code == 403
    assert "cannot modify" in response.json()["detail"]


def test_missing_role_defaults_to_viewer(client):
    response = client.post("/api/transactions", json={"product_id": "x", "type": "IN", "quantity": 1})
    assert response.status_code == 403


def test_viewer_can_read(client, admin_headers, viewer_headers):
    create_product(client, admin_headers, product_name="Vida", initial_stock=3)
    response = client.get("/api/products", headers=viewer_headers)
    assert response.status_code == 200
    assert [p["product_name"] for p in response.json()] == ["Vida"]


def test_ledger_flow_and_error_mapping(client, admin_headers):
    product = create_product(client, admin_headers, product_name="Rulman", initial_stock=10, part_code="R-1")

    response = client.post(
        "/api/transactions",
        json={"product_id": product["id"], "type": "OUT", "quantity": 4, "description": "Servis"},
        headers=admin_headers,
    )
    assert response.status_code == 201
    transaction = response.json()
    assert (transaction["previous_stock"], transaction["new_stock"]) == (10, 6)
    assert transaction["created_by"] == admin_headers["X-User-Name"]

    response = client.put(
        f"/api/transactions/{transaction['id']}",
        json={"product_id": product["id"], "type": "OUT", "quantity": 1},
        headers=admin_headers,
    )
    assert response.json()["new_stock"] == 9

    audit = client.get(f"/api/products/{product['id']}/audit").json()
    assert audit["consistent"] and audit["current_stock"] == 9

    zero = client.post(
        "/api/transactions",
        json={"product_id": product["id"], "type": "IN", "quantity": 0},
        headers=admin_headers,
    )
    assert zero.status_code == 422
    assert "detail" in zero.json()

    missing = client.delete("/api/transactions/nope", headers=admin_headers)
    assert missing.status_code == 404

    deleted = client.delete(f"/api/transactions/{transaction['id']}", headers=admin_headers)
    assert deleted.status_code == 200
    assert client.get(f"/api/products/{product['id']}").json()["current_stock"] == 10


def test_bulk_import_partial_response(client, admin_headers):
    create_product(client, admin_headers, product_name="Vida", initial_stock=0)

    response = client.post(
        "/api/imports/transactions",
        json={"rows": [{"Urun": "Vida", "Miktar": 3}, {"Urun": "Yok", "Miktar": 1}]},
        headers=admin_headers,
    )

    assert response.status_code == 200
    body = response.json()
    assert body["applied"] == 1
    assert body["partial"] is True
    assert body["message"] == "1 errors, 1 applied"
    assert len(body["errors"]) == 1


def test_bulk_import_all_invalid_is_batch_error(client, admin_headers):
    response = client.post(
        "/api/imports/transactions",
        json={"rows": [{"Urun": "Yok", "Miktar": 1}]},
        headers=admin_headers,
    )
    assert response.status_code == 422
    body = response.json()
    assert body["applied"] == 0
    assert body["errors"]


def test_csv_upload(client, admin_headers):
    content = "ParcaKodu,UrunAdi,BaslangicStogu\nR-1,Rulman,5\n".encode("utf-8")
    response = client.post(
        "/api/imports/products/upload",
        files={"file": ("urunler.csv", content, "text/csv")},
        headers=admin_headers,
    )
    assert response.status_code == 200, response.text
    assert response.json()["applied"] == 1

    bad = client.post(
        "/api/imports/transactions/upload",
        files={"file": ("x.csv", b"\xff\xfe\x00", "text/csv")},
        headers=admin_headers,
    )
    assert bad.status_code == 400


def test_order_picking_flow(client, admin_headers, viewer_headers):
    rulman = create_product(client, admin_headers, product_name="Rulman", initial_stock=1, part_code="R-1")

    order = client.post(
        "/api/orders",
        json={"name": "Sevk 1", "rows": [{"ParcaKodu": "R-1", "Miktar": 2}]},
        headers=admin_headers,
    ).json()

    summary = client.get("/api/orders").json()
    assert summary[0]["missing_count"] == 1
    shortage = client.get(f"/api/orders/{order['id']}/shortage").json()
    assert shortage["details"][0]["missing"] == 1
    aggregate = client.get("/api/orders/shortages/aggregate").json()
    assert aggregate[0]["total_required"] == 2

    state = client.post(f"/api/picking/orders/{order['id']}/start", headers=viewer_headers).json()
    session_id = state["session_id"]
    assert state["state"] == "IN_PROGRESS"

    wrong = client.post(f"/api/picking/sessions/{session_id}/scan", json={"code": "000000"}).json()
    assert wrong["outcome"] == "UNRECOGNIZED"

    client.post(f"/api/picking/sessions/{session_id}/scan", json={"code": rulman["short_id"]})
    done = client.post(f"/api/picking/sessions/{session_id}/scan", json={"code": "R-1"}).json()
    assert done["outcome"] == "CORRECT"
    assert done["picking"]["state"] == "COMPLETE"
    assert done["advance_after_ms"] > 0

    assert client.post(f"/api/orders/{order['id']}/complete", headers=viewer_headers).status_code == 403
    completed = client.post(f"/api/orders/{order['id']}/complete", headers=admin_headers).json()
    assert completed["status"] == "COMPLETED"
    assert client.post(f"/api/orders/{order['id']}/complete", headers=admin_headers).status_code == 422

    # Picking does not post to the ledger
    assert client.get(f"/api/products/{rulman['id']}").json()["current_stock"] == 1


def test_simulation_endpoint(client, admin_headers):
    create_product(client, admin_headers, product_name="Rulman", initial_stock=5)
    body = client.post(
        "/api/orders/simulate",
        json={"rows": [{"Urun": "Rulman", "Miktar": 2}, {"Urun": "Yok", "Miktar": 1}]},
    ).json()
    assert [r["status"] for r in body["results"]] == ["NOT_FOUND", "OK"]


def test_csv_export_headers(client, admin_headers):
    create_product(client, admin_headers, product_name="Rulman", initial_stock=1)
    response = client.get("/api/reports/critical.csv")
    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/csv")
    assert "attachment" in response.headers["content-disposition"]
    assert response.content.startswith("\ufeff".encode("utf-8"))


def test_backup_restore_requires_admin_and_valid_payload(client, admin_headers, viewer_headers):
    create_product(client, admin_headers, product_name="Rulman", initial_stock=1)
    backup = client.get("/api/backup")
    assert backup.status_code == 200

    assert client.post("/api/backup/restore", content=backup.content, headers=viewer_headers).status_code == 403
    assert client.post("/api/backup/restore", content=b"{", headers=admin_headers).status_code == 400

    restored = client.post("/api/backup/restore", content=backup.content, headers=admin_headers)
    assert restored.status_code == 200
    assert restored.json()["products"] == 1


def test_fractional_withdrawal_over_http(client, admin_headers):
    hortum = create_product(
        client, admin_headers, product_name="Hidrolik Hortum", initial_stock=10, unit="Metre", min_stock_level=2.5
    )

    response = client.post(
        "/api/transactions",
        json={"product_id": hortum["id"], "type": "OUT", "quantity": 2.5},
        headers=admin_headers,
    )

    assert response.status_code == 201, response.text
    body = response.json()
    assert (body["quantity"], body["previous_stock"], body["new_stock"]) == (2.5, 10, 7.5)
    product = client.get(f"/api/products/{hortum['id']}").json()
    assert product["current_stock"] == 7.5
    assert product["min_stock_level"] == 2.5

    imported = client.post(
        "/api/imports/transactions",
        json={"rows": [{"Urun": "Hidrolik Hortum", "Miktar": "2,5", "Islem": "CIKIS"}]},
        headers=admin_headers,
    )
    assert imported.json()["applied"] == 1
    assert client.get(f"/api/products/{hortum['id']}").json()["current_stock"] == 5


def test_duplicate_part_code_over_http(client, admin_headers):
    create_product(client, admin_headers, product_name="Rulman", part_code="R-1")
    response = client.post(
        "/api/products", json={"product_name": "Baska Rulman", "part_code": "R-1"}, headers=admin_headers
    )
    assert response.status_code == 422


def test_analytics_endpoint(client, admin_headers):
    create_product(client, admin_headers, product_name="Rulman", initial_stock=4, material="Çelik")
    create_product(client, admin_headers, product_name="Conta", initial_stock=1.5)

    body = client.get("/api/reports/analytics").json()

    assert body["total_products"] == 2
    assert body["total_stock"] == 5.5
    assert {m["material"]: m["percentage"] for m in body["materials"]} == {"Çelik": 50, "Diğer": 50}


def test_mark_critical_reported_endpoint(client, admin_headers, viewer_headers):
    rulman = create_product(client, admin_headers, product_name="Rulman", initial_stock=1)

    assert client.post("/api/reports/critical/mark-reported", json={}, headers=viewer_headers).status_code == 403
    marked = client.post("/api/reports/critical/mark-reported", json={}, headers=admin_headers)
    assert marked.status_code == 200
    assert [p["id"] for p in marked.json()] == [rulman["id"]]
    assert marked.json()[0]["last_alert_sent_at"] is not None
    assert client.get("/api/reports/critical/unreported").json() == []

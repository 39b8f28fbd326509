from datetime import datetime


def test_open_register_sets_zero_totals(client, admin_headers):
    r = client.post("/api/cash-registers/open",
                    json={"opening_balance": 150.5, "observations": "turno manhã"},
                    headers=admin_headers)
    assert r.status_code == 201
    body = r.get_json()
    assert body["status"] == "open"
    assert body["opening_balance"] == 150.5
    assert body["current_balance"] == 150.5
    assert body["sales"] == {"total": 0, "cash": 0, "credit": 0, "debit": 0, "pix": 0, "check": 0}
    assert body["payments"] == {"received": 0, "made": 0}


def test_only_one_register_can_be_open(client, admin_headers, open_register):
    r = client.post("/api/cash-registers/open", json={"opening_balance": 10}, headers=admin_headers)
    assert r.status_code == 409
    assert "caixa aberto" in r.get_json()["detail"]


def test_open_register_rejects_negative_balance(client, admin_headers):
    r = client.post("/api/cash-registers/open", json={"opening_balance": -1}, headers=admin_headers)
    assert r.status_code == 400


def test_open_register_requires_admin(client, employee_headers):
    r = client.post("/api/cash-registers/open", json={"opening_balance": 10}, headers=employee_headers)
    assert r.status_code == 403
    assert r.get_json() == {"error": "Forbidden", "detail": "Permiso negado: rol insuficiente."}


def test_requires_token(client):
    assert client.get("/api/cash-registers/current").status_code == 401


def test_close_register_records_difference(client, admin_headers, open_register):
    client.post("/api/payments/", headers=admin_headers, json={
        "type": "sale", "payment_method": "cash", "amount": 50,
    })
    r = client.post("/api/cash-registers/close", json={"closing_balance": 140}, headers=admin_headers)
    assert r.status_code == 200
    body = r.get_json()
    assert body["difference"] == -10.0
    assert body["register"]["status"] == "closed"
    assert body["register"]["closing_balance"] == 140.0
    assert "Diferença de caixa: R$ -10.00" in body["register"]["observations"]


def test_close_without_open_register(client, admin_headers):
    r = client.post("/api/cash-registers/close", json={"closing_balance": 10}, headers=admin_headers)
    assert r.status_code == 404


def test_current_register_cache_is_refreshed_after_payment(client, admin_headers, open_register):
    first = client.get("/api/cash-registers/current", headers=admin_headers).get_json()
    assert first["current_balance"] == 100.0

    client.post("/api/payments/", headers=admin_headers, json={
        "type": "sale", "payment_method": "pix", "amount": 30,
    })
    second = client.get("/api/cash-registers/current", headers=admin_headers).get_json()
    assert second["current_balance"] == 130.0
    assert second["sales"]["pix"] == 30.0


def test_current_register_not_found(client, admin_headers):
    assert client.get("/api/cash-registers/current", headers=admin_headers).status_code == 404


def test_register_summary_groups_payments(client, admin_headers, open_register, legacy_client):
    for payload in (
        {"type": "sale", "payment_method": "cash", "amount": 40},
        {"type": "sale", "payment_method": "debit", "amount": 60},
        {"type": "debt_payment", "payment_method": "pix", "amount": 25,
         "legacy_client_id": legacy_client.id},
        {"type": "expense", "payment_method": "cash", "amount": 15, "category": "limpeza"},
    ):
        assert client.post("/api/payments/", json=payload, headers=admin_headers).status_code == 201

    r = client.get(f"/api/cash-registers/{open_register['id']}/summary", headers=admin_headers)
    body = r.get_json()
    assert body["sales"]["total"] == 100.0
    assert body["sales"]["by_method"] == {"cash": 40.0, "debit": 60.0}
    assert body["debt_payments"]["total"] == 25.0
    assert body["expenses"] == {"count": 1, "total": 15.0}
    assert body["register"]["current_balance"] == 210.0


def test_daily_summary(client, admin_headers, open_register):
    client.post("/api/payments/", headers=admin_headers, json={
        "type": "expense", "payment_method": "cash", "amount": 20,
    })
    today = datetime.now().date().isoformat()
    r = client.get(f"/api/cash-registers/summary/daily?date={today}", headers=admin_headers)
    assert r.status_code == 200
    body = r.get_json()
    assert body["registers"] == [open_register["id"]]
    assert body["opening_balance"] == 100.0
    assert body["current_balance"] == 80.0
    assert body["payments"]["made"] == 20.0
    assert body["expenses"]["total"] == 20.0


def test_daily_summary_without_registers(client, admin_headers):
    r = client.get("/api/cash-registers/summary/daily?date=2020-01-01", headers=admin_headers)
    assert r.status_code == 404


def test_soft_delete_rules(client, admin_headers, open_register):
    rid = open_register["id"]
    assert client.delete(f"/api/cash-registers/{rid}", headers=admin_headers).status_code == 400

    client.post("/api/cash-registers/close", json={"closing_balance": 100}, headers=admin_headers)
    assert client.delete(f"/api/cash-registers/{rid}", headers=admin_headers).status_code == 200
    assert client.get(f"/api/cash-registers/{rid}", headers=admin_headers).status_code == 404

    deleted = client.get("/api/cash-registers/deleted", headers=admin_headers).get_json()
    assert [r["id"] for r in deleted["registers"]] == [rid]
    listed = client.get("/api/cash-registers/", headers=admin_headers).get_json()
    assert listed["total"] == 0


def test_list_registers_filters_by_status(client, admin_headers, open_register):
    client.post("/api/cash-registers/close", json={"closing_balance": 100}, headers=admin_headers)
    client.post("/api/cash-registers/open", json={"opening_balance": 5}, headers=admin_headers)

    body = client.get("/api/cash-registers/?status=closed", headers=admin_headers).get_json()
    assert body["total"] == 1
    assert body["registers"][0]["id"] == open_register["id"]
    all_body = client.get("/api/cash-registers/?limit=1", headers=admin_headers).get_json()
    assert all_body["total"] == 2
    assert all_body["total_pages"] == 2


def test_register_by_id_is_cached_until_invalidated(app, client, admin_headers, open_register):
    rid = open_register["id"]
    client.get(f"/api/cash-registers/{rid}", headers=admin_headers)
    assert f"register_{rid}" in app.extensions["register_cache"]

    client.post("/api/cash-registers/close", json={"closing_balance": 100}, headers=admin_headers)
    assert f"register_{rid}" not in app.extensions["register_cache"]
    body = client.get(f"/api/cash-registers/{rid}", headers=admin_headers).get_json()
    assert body["status"] == "closed"

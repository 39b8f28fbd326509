from decimal import Decimal

from conftest import refresh
from optica.extensions import db
from optica.models.catalog import LegacyClient


def test_create_legacy_client_normalizes_document(client, employee_headers):
    r = client.post("/api/legacy-clients/", headers=employee_headers, json={
        "name": "Pedro Souza",
        "document_id": "123.456.789-09",
        "email": "pedro@example.com",
        "phone": "(11) 98888-7777",
        "total_debt": 150,
        "address": {"city": "Campinas", "state": "SP"},
    })
    assert r.status_code == 201
    body = r.get_json()
    assert body["document_id"] == "12345678909"
    assert body["phone"] == "11988887777"
    assert body["total_debt"] == 150.0
    assert body["status"] == "active"

    found = client.get("/api/legacy-clients/search?document=12345678909", headers=employee_headers)
    assert found.get_json()["id"] == body["id"]


def test_legacy_client_validation(client, employee_headers, legacy_client):
    cases = [
        {"name": "X", "document_id": "123"},
        {"name": "X", "email": "invalid"},
        {"name": "X", "phone": "123"},
        {"name": "X", "total_debt": -10},
        {"document_id": "98765432100"},
    ]
    for payload in cases:
        assert client.post("/api/legacy-clients/", json=payload, headers=employee_headers).status_code == 400

    dup = client.post("/api/legacy-clients/", json={"name": "Outro", "document_id": "123.456.789-01"},
                      headers=employee_headers)
    assert dup.status_code == 409


def test_company_document_is_accepted(client, employee_headers):
    r = client.post("/api/legacy-clients/", json={"name": "Empresa LTDA", "document_id": "12.345.678/0001-90"},
                    headers=employee_headers)
    assert r.status_code == 201
    assert r.get_json()["document_id"] == "12345678000190"


def test_list_is_sorted_and_errors_when_empty(client, employee_headers):
    assert client.get("/api/legacy-clients/", headers=employee_headers).status_code == 404

    for name in ("Zélia", "Ana", "Bruno"):
        client.post("/api/legacy-clients/", json={"name": name}, headers=employee_headers)
    body = client.get("/api/legacy-clients/", headers=employee_headers).get_json()
    assert [c["name"] for c in body["clients"]] == ["Ana", "Bruno", "Zélia"]

    searched = client.get("/api/legacy-clients/?search=bru", headers=employee_headers).get_json()
    assert [c["name"] for c in searched["clients"]] == ["Bruno"]


def test_debtors(client, employee_headers, legacy_client):
    db.session.add_all([
        LegacyClient(name="Pouca dívida", total_debt=Decimal("50.00")),
        LegacyClient(name="Sem dívida", total_debt=Decimal("0")),
        LegacyClient(name="Inativo", total_debt=Decimal("900.00"), status="inactive"),
    ])
    db.session.commit()

    body = client.get("/api/legacy-clients/debtors", headers=employee_headers).get_json()
    assert [c["name"] for c in body] == ["João Antigo", "Pouca dívida"]

    ranged = client.get("/api/legacy-clients/debtors?min_debt=100", headers=employee_headers).get_json()
    assert [c["name"] for c in ranged] == ["João Antigo"]


def test_update_and_toggle_with_debt_warning(client, admin_headers, legacy_client):
    r = client.put(f"/api/legacy-clients/{legacy_client.id}", json={"observations": "cliente desde 2010"},
                   headers=admin_headers)
    assert r.status_code == 200
    assert r.get_json()["observations"] == "cliente desde 2010"

    r = client.patch(f"/api/legacy-clients/{legacy_client.id}/toggle-status", headers=admin_headers)
    body = r.get_json()
    assert body["status"] == "inactive"
    assert "deuda" in body["warning"]

    r = client.patch(f"/api/legacy-clients/{legacy_client.id}/toggle-status", headers=admin_headers)
    assert r.get_json()["status"] == "active"
    assert "warning" not in r.get_json()


def test_payment_history(client, admin_headers, legacy_client, open_register):
    url = f"/api/legacy-clients/{legacy_client.id}/payment-history"
    assert client.get(url, headers=admin_headers).status_code == 404

    client.post("/api/payments/", headers=admin_headers, json={
        "type": "debt_payment", "payment_method": "cash", "amount": 75, "legacy_client_id": legacy_client.id,
    })
    history = client.get(url, headers=admin_headers).get_json()
    assert len(history) == 1
    assert history[0]["amount"] == 75.0

    assert client.get(f"{url}?end_date=2000-01-01", headers=admin_headers).status_code == 404
    body = client.get(f"/api/legacy-clients/{legacy_client.id}", headers=admin_headers).get_json()
    assert body["last_payment"]["amount"] == 75.0
    assert refresh(legacy_client).total_debt == Decimal("425.00")


def test_non_text_name_or_email_is_rejected(client, employee_headers):
    r = client.post("/api/legacy-clients/", json={"name": 42}, headers=employee_headers)
    assert r.status_code == 400
    r = client.post("/api/legacy-clients/", json={"name": "Rita", "email": ["a@b.com"]}, headers=employee_headers)
    assert r.status_code == 400

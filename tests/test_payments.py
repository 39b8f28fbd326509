from decimal import Decimal

from conftest import order_payload, refresh
from optica.extensions import db
from optica.models.catalog import User


def _order(client, headers, customer, catalog, **overrides):
    r = client.post("/api/orders/", json=order_payload(customer, catalog, **overrides), headers=headers)
    assert r.status_code == 201, r.get_json()
    return r.get_json()


def _pay(client, headers, **payload):
    return client.post("/api/payments/", json=payload, headers=headers)


def _register(client, headers):
    return client.get("/api/cash-registers/current", headers=headers).get_json()


def test_payment_requires_open_register(client, admin_headers):
    r = _pay(client, admin_headers, type="sale", payment_method="cash", amount=10)
    assert r.status_code == 400
    assert "caja abierta" in r.get_json()["detail"]


def test_order_payments_update_register_order_and_debt(
        client, admin_headers, employee_headers, customer, products, open_register):
    order = _order(client, employee_headers, customer, products)
    assert refresh(customer).debts == Decimal("220.00")

    r = _pay(client, employee_headers, type="sale", payment_method="dinheiro", amount=120,
             order_id=order["id"])
    assert r.status_code == 201
    assert r.get_json()["method"] == "cash"
    assert r.get_json()["status"] == "completed"

    register = _register(client, admin_headers)
    assert register["sales"]["cash"] == 120.0
    assert register["sales"]["total"] == 120.0
    assert register["current_balance"] == 220.0

    body = client.get(f"/api/orders/{order['id']}", headers=admin_headers).get_json()
    assert body["payment_status"] == "partially_paid"
    assert len(body["payment_history"]) == 1
    assert refresh(customer).debts == Decimal("100.00")

    _pay(client, employee_headers, type="sale", payment_method="pix", amount=100, order_id=order["id"])
    summary = client.get(f"/api/orders/{order['id']}/payment-status", headers=admin_headers).get_json()
    assert summary["payment_status"] == "paid"
    assert summary["total_paid"] == 220.0
    assert summary["remaining_amount"] == 0.0
    assert refresh(customer).debts == Decimal("0.00")


def test_cancel_payment_reverses_everything(
        client, admin, admin_headers, employee_headers, customer, products, open_register):
    order = _order(client, employee_headers, customer, products)
    payment = _pay(client, employee_headers, type="sale", payment_method="debit", amount=220,
                   order_id=order["id"]).get_json()

    r = client.post(f"/api/payments/{payment['id']}/cancel", headers=admin_headers)
    assert r.status_code == 200
    body = r.get_json()
    assert body["status"] == "cancelled"
    assert body["description"] == f"Cancelado por usuário {admin.id}"

    register = _register(client, admin_headers)
    assert register["sales"]["debit"] == 0.0
    assert register["sales"]["total"] == 0.0
    assert register["current_balance"] == 100.0

    order_body = client.get(f"/api/orders/{order['id']}", headers=admin_headers).get_json()
    assert order_body["payment_status"] == "pending"
    assert order_body["payment_history"] == []
    assert refresh(customer).debts == Decimal("220.00")

    again = client.post(f"/api/payments/{payment['id']}/cancel", headers=admin_headers)
    assert again.status_code == 400


def test_cannot_cancel_payment_of_closed_register(client, admin_headers, open_register):
    payment = _pay(client, admin_headers, type="sale", payment_method="cash", amount=10).get_json()
    client.post("/api/cash-registers/close", json={"closing_balance": 110}, headers=admin_headers)
    r = client.post(f"/api/payments/{payment['id']}/cancel", headers=admin_headers)
    assert r.status_code == 400


def test_orders_cannot_receive_payments_once_cancelled(
        client, admin_headers, employee_headers, customer, products, open_register):
    order = _order(client, employee_headers, customer, products)
    client.post(f"/api/orders/{order['id']}/cancel", headers=employee_headers)
    r = _pay(client, employee_headers, type="sale", payment_method="cash", amount=10, order_id=order["id"])
    assert r.status_code == 400


def test_legacy_client_debt_payment(client, admin_headers, legacy_client, open_register):
    r = _pay(client, admin_headers, type="debt_payment", payment_method="cash", amount=100,
             legacy_client_id=legacy_client.id)
    assert r.status_code == 201

    fresh = refresh(legacy_client)
    assert fresh.total_debt == Decimal("400.00")
    assert fresh.last_payment_amount == Decimal("100.00")
    assert len(fresh.payment_history) == 1

    register = _register(client, admin_headers)
    assert register["payments"]["received"] == 100.0
    assert register["sales"]["total"] == 0.0

    client.post(f"/api/payments/{r.get_json()['id']}/cancel", headers=admin_headers)
    fresh = refresh(legacy_client)
    assert fresh.total_debt == Decimal("500.00")
    assert fresh.payment_history == []


def test_customer_debt_payment_without_order(client, admin_headers, customer, open_register):
    user = db.session.get(User, customer.id)
    user.debts = Decimal("80.00")
    db.session.commit()

    r = _pay(client, admin_headers, type="debt_payment", payment_method="pix", amount=30,
             customer_id=customer.id)
    assert r.status_code == 201
    assert refresh(customer).debts == Decimal("50.00")


def test_debt_payment_needs_a_debtor(client, admin_headers, open_register):
    r = _pay(client, admin_headers, type="debt_payment", payment_method="cash", amount=30)
    assert r.status_code == 400


def test_expense_reduces_balance(client, admin_headers, open_register):
    r = _pay(client, admin_headers, type="expense", payment_method="cash", amount=35, category="limpeza")
    assert r.status_code == 201
    register = _register(client, admin_headers)
    assert register["current_balance"] == 65.0
    assert register["payments"]["made"] == 35.0


def test_check_payment_compensation(
        client, admin_headers, employee_headers, customer, products, open_register):
    order = _order(client, employee_headers, customer, products)
    r = _pay(client, employee_headers, type="sale", payment_method="cheque", amount=220,
             order_id=order["id"], check={"bank": "Banco do Brasil", "check_number": "000123",
                                          "account_holder": "Maria Cliente"})
    assert r.status_code == 201
    payment = r.get_json()
    assert payment["status"] == "pending"
    assert payment["check"]["compensation_status"] == "pending"

    assert _register(client, admin_headers)["sales"]["check"] == 220.0
    order_body = client.get(f"/api/orders/{order['id']}", headers=admin_headers).get_json()
    assert order_body["payment_status"] == "pending"

    pending = client.get("/api/payments/checks/pending", headers=admin_headers).get_json()
    assert [c["id"] for c in pending] == [payment["id"]]

    r = client.put(f"/api/payments/{payment['id']}/check-status", json={"status": "compensated"},
                   headers=admin_headers)
    assert r.status_code == 200
    assert r.get_json()["status"] == "completed"
    order_body = client.get(f"/api/orders/{order['id']}", headers=admin_headers).get_json()
    assert order_body["payment_status"] == "paid"
    assert refresh(customer).debts == Decimal("0.00")

    again = client.put(f"/api/payments/{payment['id']}/check-status", json={"status": "rejected",
                       "rejection_reason": "x"}, headers=admin_headers)
    assert again.status_code == 400


def test_rejected_check_reverses_register(client, admin_headers, open_register):
    payment = _pay(client, admin_headers, type="sale", payment_method="check", amount=50,
                   description="Venda balcão",
                   check={"bank": "Itaú", "check_number": "777"}).get_json()

    no_reason = client.put(f"/api/payments/{payment['id']}/check-status", json={"status": "rejected"},
                           headers=admin_headers)
    assert no_reason.status_code == 400

    r = client.put(f"/api/payments/{payment['id']}/check-status",
                   json={"status": "rejected", "rejection_reason": "sem fundos"}, headers=admin_headers)
    body = r.get_json()
    assert body["status"] == "cancelled"
    assert body["check"]["compensation_status"] == "rejected"
    assert body["description"] == "Venda balcão - Rejeitado: sem fundos"

    register = _register(client, admin_headers)
    assert register["sales"]["check"] == 0.0
    assert register["current_balance"] == 100.0


def test_check_status_only_for_checks(client, admin_headers, open_register):
    payment = _pay(client, admin_headers, type="sale", payment_method="cash", amount=5).get_json()
    r = client.put(f"/api/payments/{payment['id']}/check-status", json={"status": "compensated"},
                   headers=admin_headers)
    assert r.status_code == 400


def test_method_specific_validation(client, admin_headers, open_register):
    cases = [
        {"type": "sale", "payment_method": "boleto", "amount": 10},
        {"type": "sale", "payment_method": "promissoria", "amount": 10},
        {"type": "sale", "payment_method": "check", "amount": 10, "check": {"bank": "Itaú"}},
        {"type": "sale", "payment_method": "credit", "amount": 10,
         "installments": {"total": 1, "value": 10}},
        {"type": "sale", "payment_method": "credit", "amount": 10,
         "installments": {"total": 3, "value": 5, "current": 4}},
        {"type": "sale", "payment_method": "bitcoin", "amount": 10},
        {"type": "refund", "payment_method": "cash", "amount": 10},
        {"type": "sale", "payment_method": "cash", "amount": 0},
    ]
    for payload in cases:
        r = _pay(client, admin_headers, **payload)
        assert r.status_code == 400, payload


def test_client_debt_plan_needs_matching_due_dates(client, admin_headers, customer, open_register):
    base = {"type": "sale", "payment_method": "promissoria", "amount": 300, "customer_id": customer.id,
            "promissory_note": {"number": "NP-1"}}
    bad = dict(base, client_debt={"generate_debt": True, "installments": {"total": 3, "value": 100},
                                  "due_dates": ["2030-01-10", "2030-02-10"]})
    assert _pay(client, admin_headers, **bad).status_code == 400

    good = dict(base, client_debt={"generate_debt": True, "installments": {"total": 3, "value": 100},
                                   "due_dates": ["2030-01-10", "2030-02-10", "2030-03-10"]})
    r = _pay(client, admin_headers, **good)
    assert r.status_code == 201
    debt = r.get_json()["client_debt"]
    assert debt["installments"] == {"total": 3, "value": 100.0}
    assert debt["due_dates"] == ["2030-01-10", "2030-02-10", "2030-03-10"]


def test_credit_installments_are_stored(client, admin_headers, open_register):
    r = _pay(client, admin_headers, type="sale", payment_method="cartao_credito", amount=300,
             installments={"total": 3, "value": 100})
    assert r.status_code == 201
    body = r.get_json()
    assert body["method"] == "credit"
    assert body["credit_card_installments"] == {"current": 1, "total": 3, "value": 100.0}
    assert _register(client, admin_headers)["sales"]["credit"] == 300.0


def test_list_and_daily_report(client, admin_headers, open_register):
    assert client.get("/api/payments/", headers=admin_headers).status_code == 404

    _pay(client, admin_headers, type="sale", payment_method="cash", amount=100)
    _pay(client, admin_headers, type="sale", payment_method="credit", amount=50)
    _pay(client, admin_headers, type="expense", payment_method="cash", amount=30, category="aluguel")
    cancelled = _pay(client, admin_headers, type="sale", payment_method="pix", amount=999).get_json()
    client.post(f"/api/payments/{cancelled['id']}/cancel", headers=admin_headers)

    listed = client.get("/api/payments/?type=sale&limit=2", headers=admin_headers).get_json()
    assert listed["total"] == 3
    assert listed["total_pages"] == 2

    report = client.get("/api/payments/report/daily", headers=admin_headers).get_json()
    assert report["total_sales"] == 150.0
    assert report["total_expenses"] == 30.0
    assert report["total_debt_payments"] == 0.0
    assert report["daily_balance"] == 120.0
    # el gasto en efectivo también suma en el total por método
    assert report["by_method"]["total_by_cash"] == 130.0
    assert report["by_method"]["total_by_pix"] == 0.0
    assert report["expenses_by_category"] == {"aluguel": 30.0}

    daily = client.get("/api/payments/daily?type=expense", headers=admin_headers).get_json()
    assert len(daily) == 1


def test_soft_delete_payment(client, admin_headers, open_register):
    payment = _pay(client, admin_headers, type="sale", payment_method="cash", amount=10).get_json()
    assert client.delete(f"/api/payments/{payment['id']}", headers=admin_headers).status_code == 400

    client.post(f"/api/payments/{payment['id']}/cancel", headers=admin_headers)
    assert client.delete(f"/api/payments/{payment['id']}", headers=admin_headers).status_code == 200
    assert client.get(f"/api/payments/{payment['id']}", headers=admin_headers).status_code == 404

    deleted = client.get("/api/payments/deleted", headers=admin_headers).get_json()
    assert deleted["total"] == 1


def test_recalculate_debts(client, admin_headers, employee_headers, customer, products, open_register):
    order = _order(client, employee_headers, customer, products)
    _pay(client, employee_headers, type="sale", payment_method="cash", amount=20, order_id=order["id"])

    user = db.session.get(User, customer.id)
    user.debts = Decimal("999.00")
    db.session.commit()

    r = client.post("/api/payments/recalculate-debts", headers=admin_headers)
    assert r.status_code == 200
    body = r.get_json()
    assert body["updated"] == 1
    assert body["clients"] == [{"id": customer.id, "old_debt": 999.0, "new_debt": 200.0, "diff": -799.0}]
    assert refresh(customer).debts == Decimal("200.00")

    assert client.post("/api/payments/recalculate-debts", headers=employee_headers).status_code == 403


def test_cancelling_payment_of_cancelled_order_keeps_debt_cleared(
        client, admin_headers, employee_headers, customer, products, open_register):
    order = _order(client, employee_headers, customer, products)
    payment = _pay(client, employee_headers, type="sale", payment_method="cash", amount=100,
                   order_id=order["id"]).get_json()

    client.post(f"/api/orders/{order['id']}/cancel", headers=employee_headers)
    assert refresh(customer).debts == Decimal("0.00")

    r = client.post(f"/api/payments/{payment['id']}/cancel", headers=admin_headers)
    assert r.status_code == 200
    assert refresh(customer).debts == Decimal("0.00")
    order_body = client.get(f"/api/orders/{order['id']}", headers=admin_headers).get_json()
    assert order_body["payment_history"] == []

    r = client.post("/api/payments/recalculate-debts", headers=admin_headers)
    assert r.get_json()["updated"] == 0


def test_malformed_ids_answer_400(client, admin_headers, open_register):
    r = _pay(client, admin_headers, type="sale", payment_method="cash", amount=10, order_id="abc")
    assert r.status_code == 400
    assert "order_id" in r.get_json()["detail"]
    r = _pay(client, admin_headers, type="debt_payment", payment_method="cash", amount=10, customer_id="1x")
    assert r.status_code == 400
    r = _pay(client, admin_headers, type="debt_payment", payment_method="cash", amount=10,
             legacy_client_id={"id": 1})
    assert r.status_code == 400

    r = client.post("/api/payments/recalculate-debts", json={"client_id": "abc"}, headers=admin_headers)
    assert r.status_code == 400
    assert "client_id" in r.get_json()["detail"]

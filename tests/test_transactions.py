"""
Testes de movimentações e do efeito delas no saldo das carteiras.
"""

from datetime import date, timedelta

import pytest
from sqlalchemy.exc import OperationalError

from extensions import db
from models import Transaction, Wallet

API = "/financas/api"


@pytest.fixture
def wallet_id(auth_client):
    resp = auth_client.post(f"{API}/wallets", json={"name": "Nubank", "balance": "100.00"})
    return resp.get_json()["wallet"]["id"]


def _wallet_balance(client, wallet_id):
    return client.get(f"{API}/wallets/{wallet_id}").get_json()["wallet"]["balance"]


def _create(client, wallet_id, **fields):
    payload = {"wallet_id": wallet_id, "name": "Salário", "amount": "50.00", "kind": "income"}
    payload.update(fields)
    return client.post(f"{API}/transactions", json=payload)


class TestCreateTransaction:
    """POST /api/transactions"""

    def test_income_increases_balance(self, auth_client, wallet_id):
        resp = _create(auth_client, wallet_id)

        assert resp.status_code == 201
        body = resp.get_json()
        assert body["wallet"]["balance"] == 150.0
        assert body["transaction"]["wallet_name"] == "Nubank"
        assert body["transaction"]["recurrence"] == "none"
        assert body["transaction"]["due_date"] == date.today().isoformat()

    def test_expense_decreases_balance(self, auth_client, wallet_id):
        _create(auth_client, wallet_id, name="Aluguel", amount="30", kind="expense")
        assert _wallet_balance(auth_client, wallet_id) == 70.0

    def test_expense_may_leave_wallet_negative(self, auth_client, wallet_id):
        """Despesa maior que o saldo deixa a carteira negativa."""
        resp = _create(auth_client, wallet_id, name="Viagem", amount="250", kind="expense")

        assert resp.status_code == 201
        assert _wallet_balance(auth_client, wallet_id) == -150.0

    @pytest.mark.parametrize("fields, message", [
        ({"name": "X"}, "O nome da movimentação deve ter entre 2 e 100 caracteres."),
        ({"amount": "0"}, "O valor deve ser maior que zero."),
        ({"amount": "1000000"}, "O valor máximo permitido é R$ 999.999,99."),
        ({"kind": "transfer"}, "Tipo de movimentação inválido. Use 'income' ou 'expense'."),
        ({"recurrence": "yearly"}, "Frequência inválida. Use none, weekly, biweekly ou monthly."),
        ({"due_date": "31/12/2024"}, "Data inválida. Use o formato AAAA-MM-DD."),
    ])
    def test_validation(self, auth_client, wallet_id, fields, message):
        """Dados inválidos não gravam nada nem mexem no saldo."""
        resp = _create(auth_client, wallet_id, **fields)

        assert resp.status_code == 400
        assert resp.get_json()["message"] == message
        assert _wallet_balance(auth_client, wallet_id) == 100.0

    def test_recurring_requires_due_date(self, auth_client, wallet_id):
        resp = _create(auth_client, wallet_id, recurrence="monthly")

        assert resp.status_code == 400
        assert resp.get_json()["message"] == "Informe a data de vencimento para movimentações recorrentes."

    def test_missing_wallet(self, auth_client):
        resp = auth_client.post(f"{API}/transactions", json={"name": "Salário", "amount": "10", "kind": "income"})
        assert resp.status_code == 400
        assert resp.get_json()["message"] == "Selecione uma carteira."

    def test_wallet_of_other_user(self, auth_client, other_client, wallet_id):
        resp = _create(other_client, wallet_id)

        assert resp.status_code == 404
        assert _wallet_balance(auth_client, wallet_id) == 100.0

    def test_failed_commit_rolls_back_transaction_and_balance(self, auth_client, wallet_id, monkeypatch):
        """Se a gravação falhar, nem a movimentação nem o saldo ficam."""
        def _broken_commit():
            raise OperationalError("COMMIT", {}, Exception("banco indisponível"))

        monkeypatch.setattr(db.session(), "commit", _broken_commit)

        resp = _create(auth_client, wallet_id, amount="40")

        assert resp.status_code == 500
        assert resp.get_json()["success"] is False
        monkeypatch.undo()
        assert Transaction.query.count() == 0
        assert db.session.get(Wallet, wallet_id).balance == 100


class TestListTransactions:
    """Listagens e filtros"""

    def test_filters(self, auth_client, wallet_id):
        other_wallet = auth_client.post(f"{API}/wallets", json={"name": "Inter"}).get_json()["wallet"]["id"]
        _create(auth_client, wallet_id, name="Salário")
        _create(auth_client, wallet_id, name="Mercado", kind="expense", amount="20")
        _create(auth_client, other_wallet, name="Freela", amount="300")

        by_wallet = auth_client.get(f"{API}/transactions?wallet_id={wallet_id}").get_json()["transactions"]
        expenses = auth_client.get(f"{API}/transactions?kind=expense").get_json()["transactions"]

        assert {t["name"] for t in by_wallet} == {"Salário", "Mercado"}
        assert [t["name"] for t in expenses] == ["Mercado"]

    def test_order_by_amount(self, auth_client, wallet_id):
        _create(auth_client, wallet_id, name="Pequena", amount="5")
        _create(auth_client, wallet_id, name="Grande", amount="500")
        _create(auth_client, wallet_id, name="Média", amount="50")

        desc = auth_client.get(f"{API}/transactions?order=amount_desc").get_json()["transactions"]
        asc = auth_client.get(f"{API}/transactions?order=amount_asc").get_json()["transactions"]

        assert [t["name"] for t in desc] == ["Grande", "Média", "Pequena"]
        assert [t["name"] for t in asc] == ["Pequena", "Média", "Grande"]

    def test_invalid_order(self, auth_client):
        resp = auth_client.get(f"{API}/transactions?order=aleatoria")
        assert resp.status_code == 400
        assert resp.get_json()["message"] == "Ordenação inválida."

    def test_invalid_wallet_filter(self, auth_client):
        assert auth_client.get(f"{API}/transactions?wallet_id=abc").status_code == 400

    def test_active_and_overdue(self, auth_client, wallet_id):
        """Vencidas são as ativas com vencimento antes de hoje."""
        yesterday = (date.today() - timedelta(days=1)).isoformat()
        tomorrow = (date.today() + timedelta(days=1)).isoformat()

        late = _create(auth_client, wallet_id, name="Luz", kind="expense", due_date=yesterday).get_json()
        _create(auth_client, wallet_id, name="Água", kind="expense", due_date=tomorrow)
        paused = _create(auth_client, wallet_id, name="Gás", kind="expense", due_date=yesterday).get_json()
        auth_client.post(f"{API}/transactions/{paused['transaction']['id']}/deactivate")

        overdue = auth_client.get(f"{API}/transactions/overdue").get_json()["transactions"]
        active = auth_client.get(f"{API}/transactions/active").get_json()["transactions"]

        assert [t["id"] for t in overdue] == [late["transaction"]["id"]]
        assert overdue[0]["is_overdue"] is True
        assert [t["name"] for t in active] == ["Luz", "Água"]

    def test_list_only_own_transactions(self, auth_client, other_client, wallet_id):
        _create(auth_client, wallet_id)
        assert other_client.get(f"{API}/transactions").get_json()["transactions"] == []


class TestUpdateTransaction:
    """PUT /api/transactions/<id>"""

    def test_amount_change_rebalances_wallet(self, auth_client, wallet_id):
        tx_id = _create(auth_client, wallet_id, amount="50").get_json()["transaction"]["id"]

        resp = auth_client.put(f"{API}/transactions/{tx_id}", json={"amount": "80"})

        assert resp.status_code == 200
        assert resp.get_json()["wallet"]["balance"] == 180.0

    def test_kind_change_rebalances_wallet(self, auth_client, wallet_id):
        """Receita de 50 virando despesa de 50 tira 100 do saldo."""
        tx_id = _create(auth_client, wallet_id, amount="50").get_json()["transaction"]["id"]

        auth_client.put(f"{API}/transactions/{tx_id}", json={"kind": "expense"})

        assert _wallet_balance(auth_client, wallet_id) == 50.0

    def test_name_change_keeps_balance(self, auth_client, wallet_id):
        tx_id = _create(auth_client, wallet_id).get_json()["transaction"]["id"]

        resp = auth_client.put(f"{API}/transactions/{tx_id}", json={"name": "Salário de maio"})

        assert resp.get_json()["transaction"]["name"] == "Salário de maio"
        assert _wallet_balance(auth_client, wallet_id) == 150.0

    def test_wallet_cannot_be_changed(self, auth_client, wallet_id):
        other_wallet = auth_client.post(f"{API}/wallets", json={"name": "Inter"}).get_json()["wallet"]["id"]
        tx_id = _create(auth_client, wallet_id).get_json()["transaction"]["id"]

        resp = auth_client.put(f"{API}/transactions/{tx_id}", json={"wallet_id": other_wallet})

        assert resp.get_json()["transaction"]["wallet_id"] == wallet_id

    def test_invalid_update_keeps_everything(self, auth_client, wallet_id):
        tx_id = _create(auth_client, wallet_id).get_json()["transaction"]["id"]

        resp = auth_client.put(f"{API}/transactions/{tx_id}", json={"amount": "90", "kind": "bogus"})

        assert resp.status_code == 400
        detail = auth_client.get(f"{API}/transactions/{tx_id}").get_json()["transaction"]
        assert detail["amount"] == 50.0
        assert _wallet_balance(auth_client, wallet_id) == 150.0


class TestRecurrenceAndStatus:
    """Ativação e próximo vencimento"""

    def test_deactivate_and_activate(self, auth_client, wallet_id):
        tx_id = _create(auth_client, wallet_id).get_json()["transaction"]["id"]

        off = auth_client.post(f"{API}/transactions/{tx_id}/deactivate").get_json()
        on = auth_client.post(f"{API}/transactions/{tx_id}/activate").get_json()

        assert off["transaction"]["is_active"] is False
        assert on["transaction"]["is_active"] is True
        assert _wallet_balance(auth_client, wallet_id) == 150.0

    def test_advance_monthly(self, auth_client, wallet_id):
        tx_id = _create(
            auth_client, wallet_id, recurrence="monthly", due_date="2024-01-31",
        ).get_json()["transaction"]["id"]

        resp = auth_client.post(f"{API}/transactions/{tx_id}/advance")

        assert resp.status_code == 200
        assert resp.get_json()["transaction"]["due_date"] == "2024-02-29"

    def test_advance_biweekly(self, auth_client, wallet_id):
        tx_id = _create(
            auth_client, wallet_id, recurrence="biweekly", due_date="2024-03-10",
        ).get_json()["transaction"]["id"]

        resp = auth_client.post(f"{API}/transactions/{tx_id}/advance")

        assert resp.get_json()["transaction"]["due_date"] == "2024-03-25"

    def test_advance_one_off_is_rejected(self, auth_client, wallet_id):
        tx_id = _create(auth_client, wallet_id).get_json()["transaction"]["id"]

        resp = auth_client.post(f"{API}/transactions/{tx_id}/advance")

        assert resp.status_code == 400
        assert resp.get_json()["message"] == "Apenas movimentações recorrentes têm próximo vencimento."


class TestDeleteTransaction:
    """DELETE /api/transactions/<id>"""

    def test_delete_income_reverts_balance(self, auth_client, wallet_id):
        tx_id = _create(auth_client, wallet_id, amount="50").get_json()["transaction"]["id"]

        resp = auth_client.delete(f"{API}/transactions/{tx_id}")

        assert resp.status_code == 200
        assert _wallet_balance(auth_client, wallet_id) == 100.0
        assert auth_client.get(f"{API}/transactions/{tx_id}").status_code == 404

    def test_delete_expense_reverts_balance(self, auth_client, wallet_id):
        tx_id = _create(auth_client, wallet_id, kind="expense", amount="120").get_json()["transaction"]["id"]
        assert _wallet_balance(auth_client, wallet_id) == -20.0

        auth_client.delete(f"{API}/transactions/{tx_id}")

        assert _wallet_balance(auth_client, wallet_id) == 100.0

    def test_other_user_cannot_delete(self, auth_client, other_client, wallet_id):
        tx_id = _create(auth_client, wallet_id).get_json()["transaction"]["id"]

        assert other_client.delete(f"{API}/transactions/{tx_id}").status_code == 404
        assert _wallet_balance(auth_client, wallet_id) == 150.0

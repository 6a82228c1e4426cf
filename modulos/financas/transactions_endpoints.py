"""
Endpoints de movimentações (receitas e despesas)
"""
from datetime import date

from flask import jsonify, request

from . import transaction_backend
from .auth import current_user_id, login_required
from .helpers import arg_bool, arg_int, json_payload


def _serialize(transactions, today: date) -> list[dict]:
    return [tx.to_dict(today=today) for tx in transactions]


def register_transaction_routes(api_bp):
    """Registra todas as rotas de movimentações"""

    @api_bp.route("/api/transactions", methods=["GET", "POST"])
    @login_required
    def api_transactions():
        today = date.today()

        if request.method == "GET":
            transactions = transaction_backend.list_transactions(
                current_user_id(),
                wallet_id=arg_int("wallet_id"),
                kind=(request.args.get("kind") or "").strip() or None,
                active=arg_bool("active"),
                order=(request.args.get("order") or "").strip() or None,
            )
            return jsonify({"success": True, "transactions": _serialize(transactions, today)}), 200

        tx = transaction_backend.create_transaction(current_user_id(), json_payload(), today=today)
        return jsonify({
            "success": True,
            "message": "Movimentação registrada.",
            "transaction": tx.to_dict(today=today),
            "wallet": tx.wallet.to_dict(),
        }), 201

    @api_bp.route("/api/transactions/active", methods=["GET"])
    @login_required
    def api_active_transactions():
        today = date.today()
        transactions = transaction_backend.list_active(current_user_id(), wallet_id=arg_int("wallet_id"))
        return jsonify({"success": True, "transactions": _serialize(transactions, today)}), 200

    @api_bp.route("/api/transactions/overdue", methods=["GET"])
    @login_required
    def api_overdue_transactions():
        today = date.today()
        transactions = transaction_backend.list_overdue(current_user_id(), today=today)
        return jsonify({"success": True, "transactions": _serialize(transactions, today)}), 200

    @api_bp.route("/api/transactions/<int:tx_id>", methods=["GET", "PUT", "DELETE"])
    @login_required
    def api_transaction_detail(tx_id: int):
        user_id = current_user_id()
        today = date.today()

        if request.method == "GET":
            tx = transaction_backend.get_transaction(user_id, tx_id)
            return jsonify({"success": True, "transaction": tx.to_dict(today=today)}), 200

        if request.method == "DELETE":
            transaction_backend.delete_transaction(user_id, tx_id)
            return jsonify({"success": True, "message": "Movimentação excluída e saldo da carteira ajustado."}), 200

        tx = transaction_backend.update_transaction(user_id, tx_id, json_payload(), today=today)
        return jsonify({
            "success": True,
            "message": "Movimentação atualizada.",
            "transaction": tx.to_dict(today=today),
            "wallet": tx.wallet.to_dict(),
        }), 200

    @api_bp.route("/api/transactions/<int:tx_id>/activate", methods=["POST"])
    @login_required
    def api_activate_transaction(tx_id: int):
        tx = transaction_backend.set_active(current_user_id(), tx_id, True)
        return jsonify({"success": True, "message": "Movimentação ativada.", "transaction": tx.to_dict()}), 200

    @api_bp.route("/api/transactions/<int:tx_id>/deactivate", methods=["POST"])
    @login_required
    def api_deactivate_transaction(tx_id: int):
        tx = transaction_backend.set_active(current_user_id(), tx_id, False)
        return jsonify({"success": True, "message": "Movimentação desativada.", "transaction": tx.to_dict()}), 200

    @api_bp.route("/api/transactions/<int:tx_id>/advance", methods=["POST"])
    @login_required
    def api_advance_transaction(tx_id: int):
        tx = transaction_backend.advance_due_date(current_user_id(), tx_id)
        return jsonify({"success": True, "message": "Próximo vencimento definido.", "transaction": tx.to_dict()}), 200

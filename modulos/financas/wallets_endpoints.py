"""
Endpoints de carteiras
"""
from flask import jsonify, request

from . import wallet_backend
from .auth import current_user_id, login_required
from .helpers import json_payload


def register_wallet_routes(api_bp):
    """Registra todas as rotas de carteiras"""

    @api_bp.route("/api/wallets", methods=["GET", "POST"])
    @login_required
    def api_wallets():
        if request.method == "GET":
            wallets = wallet_backend.list_wallets(current_user_id())
            return jsonify({"success": True, "wallets": [w.to_dict() for w in wallets]}), 200

        data = json_payload()
        wallet = wallet_backend.create_wallet(
            current_user_id(),
            data.get("name"),
            balance=data.get("balance"),
            description=data.get("description"),
        )
        return jsonify({"success": True, "message": "Carteira criada com sucesso.", "wallet": wallet.to_dict()}), 201

    @api_bp.route("/api/wallets/<int:wallet_id>", methods=["GET", "PUT", "DELETE"])
    @login_required
    def api_wallet_detail(wallet_id: int):
        user_id = current_user_id()

        if request.method == "GET":
            wallet = wallet_backend.get_wallet(user_id, wallet_id)
            return jsonify({"success": True, "wallet": wallet.to_dict()}), 200

        if request.method == "DELETE":
            wallet_backend.delete_wallet(user_id, wallet_id)
            return jsonify({"success": True, "message": "Carteira excluída."}), 200

        wallet = wallet_backend.update_wallet(user_id, wallet_id, json_payload())
        return jsonify({"success": True, "message": "Carteira atualizada.", "wallet": wallet.to_dict()}), 200

    @api_bp.route("/api/wallets/<int:wallet_id>/deposit", methods=["POST"])
    @login_required
    def api_wallet_deposit(wallet_id: int):
        data = json_payload()
        wallet = wallet_backend.deposit_into_wallet(current_user_id(), wallet_id, data.get("amount"))
        return jsonify({"success": True, "message": "Depósito realizado.", "wallet": wallet.to_dict()}), 200

    @api_bp.route("/api/wallets/<int:wallet_id>/withdraw", methods=["POST"])
    @login_required
    def api_wallet_withdraw(wallet_id: int):
        data = json_payload()
        wallet = wallet_backend.withdraw_from_wallet(current_user_id(), wallet_id, data.get("amount"))
        return jsonify({"success": True, "message": "Saque realizado.", "wallet": wallet.to_dict()}), 200

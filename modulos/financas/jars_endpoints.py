"""
Endpoints de caixinhas de poupança
"""
from flask import jsonify, request

from . import jar_backend
from .auth import current_user_id, login_required
from .helpers import json_payload


def _money_dict(values: dict) -> dict:
    return {k: (float(v) if not isinstance(v, int) else v) for k, v in values.items()}


def register_jar_routes(api_bp):
    """Registra todas as rotas de caixinhas"""

    @api_bp.route("/api/jars", methods=["GET", "POST"])
    @login_required
    def api_jars():
        if request.method == "GET":
            jars = jar_backend.list_jars(current_user_id())
            return jsonify({"success": True, "jars": [j.to_dict() for j in jars]}), 200

        data = json_payload()
        jar = jar_backend.create_jar(
            current_user_id(),
            data.get("name"),
            balance=data.get("balance"),
            description=data.get("description"),
        )
        return jsonify({"success": True, "message": "Caixinha criada com sucesso.", "jar": jar.to_dict()}), 201

    @api_bp.route("/api/jars/<int:jar_id>", methods=["GET", "PUT", "DELETE"])
    @login_required
    def api_jar_detail(jar_id: int):
        user_id = current_user_id()

        if request.method == "GET":
            jar = jar_backend.get_jar(user_id, jar_id)
            return jsonify({"success": True, "jar": jar.to_dict()}), 200

        if request.method == "DELETE":
            jar_backend.delete_jar(user_id, jar_id)
            return jsonify({"success": True, "message": "Caixinha excluída."}), 200

        jar = jar_backend.update_jar(user_id, jar_id, json_payload())
        return jsonify({"success": True, "message": "Caixinha atualizada.", "jar": jar.to_dict()}), 200

    @api_bp.route("/api/jars/<int:jar_id>/deposit", methods=["POST"])
    @login_required
    def api_jar_deposit(jar_id: int):
        data = json_payload()
        entry = jar_backend.deposit_into_jar(current_user_id(), jar_id, data.get("amount"), data.get("description"))
        return jsonify({
            "success": True,
            "message": "Depósito realizado.",
            "jar": entry.jar.to_dict(),
            "entry": entry.to_dict(),
        }), 200

    @api_bp.route("/api/jars/<int:jar_id>/withdraw", methods=["POST"])
    @login_required
    def api_jar_withdraw(jar_id: int):
        data = json_payload()
        entry = jar_backend.withdraw_from_jar(current_user_id(), jar_id, data.get("amount"), data.get("description"))
        return jsonify({
            "success": True,
            "message": "Saque realizado.",
            "jar": entry.jar.to_dict(),
            "entry": entry.to_dict(),
        }), 200

    @api_bp.route("/api/jars/<int:jar_id>/history", methods=["GET"])
    @login_required
    def api_jar_history(jar_id: int):
        history = jar_backend.jar_history(current_user_id(), jar_id)
        return jsonify({"success": True, "history": [h.to_dict() for h in history]}), 200

    @api_bp.route("/api/jars/<int:jar_id>/statistics", methods=["GET"])
    @login_required
    def api_jar_statistics(jar_id: int):
        stats = jar_backend.jar_statistics(current_user_id(), jar_id)
        return jsonify({"success": True, "statistics": _money_dict(stats)}), 200

    @api_bp.route("/api/jars/<int:jar_id>/evolution", methods=["GET"])
    @login_required
    def api_jar_evolution(jar_id: int):
        points = jar_backend.jar_evolution(current_user_id(), jar_id)
        return jsonify({
            "success": True,
            "evolution": [
                {"date": p["date"].isoformat(), "balance": float(p["balance"])}
                for p in points
            ],
        }), 200

"""
Endpoints de metas financeiras
"""
from datetime import date

from flask import jsonify, request

from . import goal_backend
from .auth import current_user_id, login_required
from .helpers import json_payload


def _serialize(goals) -> list[dict]:
    today = date.today()
    return [g.to_dict(today=today) for g in goals]


def register_goal_routes(api_bp):
    """Registra todas as rotas de metas"""

    @api_bp.route("/api/goals", methods=["GET", "POST"])
    @login_required
    def api_goals():
        if request.method == "GET":
            return jsonify({"success": True, "goals": _serialize(goal_backend.list_goals(current_user_id()))}), 200

        goal = goal_backend.create_goal(current_user_id(), json_payload())
        return jsonify({"success": True, "message": "Meta criada com sucesso.", "goal": goal.to_dict()}), 201

    @api_bp.route("/api/goals/in-progress", methods=["GET"])
    @login_required
    def api_goals_in_progress():
        return jsonify({"success": True, "goals": _serialize(goal_backend.list_in_progress(current_user_id()))}), 200

    @api_bp.route("/api/goals/completed", methods=["GET"])
    @login_required
    def api_goals_completed():
        return jsonify({"success": True, "goals": _serialize(goal_backend.list_completed(current_user_id()))}), 200

    @api_bp.route("/api/goals/<int:goal_id>", methods=["GET", "PUT", "DELETE"])
    @login_required
    def api_goal_detail(goal_id: int):
        user_id = current_user_id()

        if request.method == "GET":
            return jsonify({"success": True, "goal": goal_backend.get_goal(user_id, goal_id).to_dict()}), 200

        if request.method == "DELETE":
            goal_backend.delete_goal(user_id, goal_id)
            return jsonify({"success": True, "message": "Meta excluída."}), 200

        goal = goal_backend.update_goal(user_id, goal_id, json_payload())
        return jsonify({"success": True, "message": "Meta atualizada.", "goal": goal.to_dict()}), 200

    @api_bp.route("/api/goals/<int:goal_id>/deposit", methods=["POST"])
    @login_required
    def api_goal_deposit(goal_id: int):
        goal = goal_backend.deposit_into_goal(current_user_id(), goal_id, json_payload().get("amount"))
        message = "Parabéns! Meta concluída." if goal.completed else "Valor adicionado à meta."
        return jsonify({"success": True, "message": message, "goal": goal.to_dict()}), 200

    @api_bp.route("/api/goals/<int:goal_id>/withdraw", methods=["POST"])
    @login_required
    def api_goal_withdraw(goal_id: int):
        goal = goal_backend.withdraw_from_goal(current_user_id(), goal_id, json_payload().get("amount"))
        return jsonify({"success": True, "message": "Valor retirado da meta.", "goal": goal.to_dict()}), 200

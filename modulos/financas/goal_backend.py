"""Metas financeiras: valor alvo, valor acumulado e prazo."""

from extensions import db
from models import FinancialGoal
from . import rules


def get_goal(user_id: int, goal_id: int) -> FinancialGoal:
    goal = FinancialGoal.query.filter_by(id=goal_id, user_id=user_id).first()
    if not goal:
        raise rules.NotFoundError("Meta não encontrada.")
    return goal


def _sync_completed(goal: FinancialGoal) -> None:
    goal.completed = rules.goal_completed(goal.accumulated_amount, goal.target_amount)


def _require_deadline(value):
    deadline = rules.parse_date(value)
    if deadline is None:
        raise rules.ValidationError("Informe o prazo da meta.")
    return deadline


def list_goals(user_id: int) -> list[FinancialGoal]:
    return (
        FinancialGoal.query
        .filter_by(user_id=user_id)
        .order_by(FinancialGoal.created_at.desc(), FinancialGoal.id.desc())
        .all()
    )


def list_in_progress(user_id: int) -> list[FinancialGoal]:
    return (
        FinancialGoal.query
        .filter_by(user_id=user_id, completed=False)
        .order_by(FinancialGoal.deadline.asc(), FinancialGoal.id.asc())
        .all()
    )


def list_completed(user_id: int) -> list[FinancialGoal]:
    return (
        FinancialGoal.query
        .filter_by(user_id=user_id, completed=True)
        .order_by(FinancialGoal.updated_at.desc(), FinancialGoal.id.desc())
        .all()
    )


def create_goal(user_id: int, data: dict) -> FinancialGoal:
    accumulated = data.get("accumulated_amount")
    accumulated = rules.ensure_non_negative_balance(accumulated if accumulated not in (None, "") else 0)

    goal = FinancialGoal(
        user_id=user_id,
        name=rules.require_name(data.get("name"), rules.GOAL_NAME_BOUNDS, "da meta"),
        target_amount=rules.require_goal_target(data.get("target_amount")),
        accumulated_amount=accumulated,
        deadline=_require_deadline(data.get("deadline")),
        description=rules.optional_text(data.get("description")),
    )
    _sync_completed(goal)

    db.session.add(goal)
    db.session.commit()
    return goal


def update_goal(user_id: int, goal_id: int, data: dict) -> FinancialGoal:
    goal = get_goal(user_id, goal_id)

    if "name" in data:
        goal.name = rules.require_name(data.get("name"), rules.GOAL_NAME_BOUNDS, "da meta")
    if "target_amount" in data:
        goal.target_amount = rules.require_goal_target(data.get("target_amount"))
    if "accumulated_amount" in data:
        goal.accumulated_amount = rules.ensure_non_negative_balance(data.get("accumulated_amount"))
    if "deadline" in data:
        goal.deadline = _require_deadline(data.get("deadline"))
    if "description" in data:
        goal.description = rules.optional_text(data.get("description"))

    _sync_completed(goal)
    db.session.commit()
    return goal


def delete_goal(user_id: int, goal_id: int) -> None:
    goal = get_goal(user_id, goal_id)
    db.session.delete(goal)
    db.session.commit()


def deposit_into_goal(user_id: int, goal_id: int, amount) -> FinancialGoal:
    goal = get_goal(user_id, goal_id)
    goal.accumulated_amount = rules.deposit(goal.accumulated_amount, rules.require_amount(amount))
    _sync_completed(goal)
    db.session.commit()
    return goal


def withdraw_from_goal(user_id: int, goal_id: int, amount) -> FinancialGoal:
    goal = get_goal(user_id, goal_id)
    goal.accumulated_amount = rules.withdraw(
        goal.accumulated_amount,
        rules.require_amount(amount),
        message="Valor acumulado insuficiente para realizar a retirada.",
    )
    _sync_completed(goal)
    db.session.commit()
    return goal

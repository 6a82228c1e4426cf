"""Resumo exibido na tela inicial do usuário."""

from datetime import date

from . import goal_backend, jar_backend, rules, transaction_backend, wallet_backend

RECENT_LIMIT = 3


def build_summary(user_id: int, today: date | None = None) -> dict:
    today = today or date.today()

    wallets = wallet_backend.list_wallets(user_id)
    jars = jar_backend.list_jars(user_id)
    goals_in_progress = goal_backend.list_in_progress(user_id)
    overdue = transaction_backend.list_overdue(user_id, today=today)

    overdue_goals = [
        g for g in goals_in_progress
        if rules.goal_is_overdue(g.deadline, g.completed, today)
    ]
    # Metas com prazo mais próximo primeiro
    top_goals = goals_in_progress[:RECENT_LIMIT]

    wallet_total = sum((w.balance for w in wallets), rules.ZERO)
    jar_total = sum((j.balance for j in jars), rules.ZERO)

    return {
        "wallets": {
            "count": len(wallets),
            "total_balance": float(wallet_total),
            "total_balance_display": rules.format_brl(wallet_total),
            "recent": [w.to_dict() for w in wallets[:RECENT_LIMIT]],
        },
        "jars": {
            "count": len(jars),
            "total_balance": float(jar_total),
            "total_balance_display": rules.format_brl(jar_total),
        },
        "goals": {
            "in_progress": len(goals_in_progress),
            "overdue": len(overdue_goals),
            "top": [g.to_dict(today=today) for g in top_goals],
        },
        "overdue_transactions": [tx.to_dict(today=today) for tx in overdue],
    }

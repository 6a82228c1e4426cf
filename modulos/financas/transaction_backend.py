"""
Movimentações (receitas e despesas) e o efeito delas no saldo da carteira.

Incluir, alterar ou excluir uma movimentação sempre mexe no saldo da
carteira na mesma transação de banco: se o ajuste de saldo falhar, a
alteração da movimentação é desfeita junto.
"""

import logging
from datetime import date

from sqlalchemy.exc import SQLAlchemyError

from extensions import db
from models import Transaction
from . import rules
from .wallet_backend import get_wallet

logger = logging.getLogger(__name__)

_ORDERINGS = {
    "recent": (Transaction.created_at.desc(), Transaction.id.desc()),
    "oldest": (Transaction.created_at.asc(), Transaction.id.asc()),
    "amount_desc": (Transaction.amount.desc(), Transaction.id.desc()),
    "amount_asc": (Transaction.amount.asc(), Transaction.id.asc()),
    "due_soonest": (Transaction.due_date.asc(), Transaction.id.asc()),
    "due_latest": (Transaction.due_date.desc(), Transaction.id.desc()),
}


def _commit_or_rollback(action: str) -> None:
    try:
        db.session.commit()
    except SQLAlchemyError:
        # Desfaz movimentação e saldo juntos
        db.session.rollback()
        logger.exception("Falha ao %s; alterações desfeitas", action)
        raise


def get_transaction(user_id: int, transaction_id: int) -> Transaction:
    tx = Transaction.query.filter_by(id=transaction_id, user_id=user_id).first()
    if not tx:
        raise rules.NotFoundError("Movimentação não encontrada.")
    return tx


def _resolve_due_date(recurrence: str, due_date: date | None, today: date) -> date:
    if due_date is None:
        if recurrence != rules.RECURRENCE_NONE:
            raise rules.ValidationError("Informe a data de vencimento para movimentações recorrentes.")
        return today
    return due_date


def create_transaction(user_id: int, data: dict, today: date | None = None) -> Transaction:
    today = today or date.today()

    try:
        wallet_id = int(data.get("wallet_id"))
    except (TypeError, ValueError):
        raise rules.ValidationError("Selecione uma carteira.")
    wallet = get_wallet(user_id, wallet_id)

    name = rules.require_name(data.get("name"), rules.TRANSACTION_NAME_BOUNDS, "da movimentação")
    amount = rules.require_amount(data.get("amount"))
    kind = rules.require_kind(data.get("kind"))
    recurrence = rules.require_recurrence(data.get("recurrence"))
    due_date = _resolve_due_date(recurrence, rules.parse_date(data.get("due_date")), today)

    tx = Transaction(
        user_id=user_id,
        wallet_id=wallet.id,
        name=name,
        amount=amount,
        kind=kind,
        recurrence=recurrence,
        due_date=due_date,
        is_active=rules.parse_bool(data.get("is_active"), default=True),
        description=rules.optional_text(data.get("description")),
    )
    db.session.add(tx)
    wallet.balance = rules.apply_transaction(wallet.balance, kind, amount)
    _commit_or_rollback("registrar movimentação")
    return tx


def list_transactions(user_id: int, wallet_id: int | None = None, kind: str | None = None,
                      active: bool | None = None, order: str | None = None) -> list[Transaction]:
    query = Transaction.query.filter_by(user_id=user_id)

    if wallet_id is not None:
        query = query.filter_by(wallet_id=wallet_id)
    if kind:
        query = query.filter_by(kind=rules.require_kind(kind))
    if active is not None:
        query = query.filter_by(is_active=active)

    order = order or "recent"
    if order not in rules.TRANSACTION_ORDERS:
        raise rules.ValidationError("Ordenação inválida.")

    return query.order_by(*_ORDERINGS[order]).all()


def list_active(user_id: int, wallet_id: int | None = None) -> list[Transaction]:
    return list_transactions(user_id, wallet_id=wallet_id, active=True, order="due_soonest")


def list_overdue(user_id: int, today: date | None = None) -> list[Transaction]:
    today = today or date.today()
    return (
        Transaction.query
        .filter_by(user_id=user_id, is_active=True)
        .filter(Transaction.due_date < today)
        .order_by(Transaction.due_date.asc(), Transaction.id.asc())
        .all()
    )


def update_transaction(user_id: int, transaction_id: int, data: dict,
                       today: date | None = None) -> Transaction:
    """Atualiza campos da movimentação; a carteira não pode ser trocada."""
    today = today or date.today()
    tx = get_transaction(user_id, transaction_id)

    old_kind, old_amount = tx.kind, tx.amount

    if "name" in data:
        tx.name = rules.require_name(data.get("name"), rules.TRANSACTION_NAME_BOUNDS, "da movimentação")
    if "amount" in data:
        tx.amount = rules.require_amount(data.get("amount"))
    if "kind" in data:
        tx.kind = rules.require_kind(data.get("kind"))
    if "recurrence" in data:
        tx.recurrence = rules.require_recurrence(data.get("recurrence"))
    if "due_date" in data:
        tx.due_date = _resolve_due_date(tx.recurrence, rules.parse_date(data.get("due_date")), today)
    if "is_active" in data:
        tx.is_active = rules.parse_bool(data.get("is_active"), default=tx.is_active)
    if "description" in data:
        tx.description = rules.optional_text(data.get("description"))

    if tx.kind != old_kind or tx.amount != old_amount:
        wallet = tx.wallet
        reverted = rules.revert_transaction(wallet.balance, old_kind, old_amount)
        wallet.balance = rules.apply_transaction(reverted, tx.kind, tx.amount)

    _commit_or_rollback("atualizar movimentação")
    return tx


def set_active(user_id: int, transaction_id: int, active: bool) -> Transaction:
    tx = get_transaction(user_id, transaction_id)
    tx.is_active = active
    db.session.commit()
    return tx


def advance_due_date(user_id: int, transaction_id: int) -> Transaction:
    tx = get_transaction(user_id, transaction_id)
    if tx.recurrence == rules.RECURRENCE_NONE:
        raise rules.ValidationError("Apenas movimentações recorrentes têm próximo vencimento.")
    tx.due_date = rules.next_due_date(tx.due_date, tx.recurrence)
    db.session.commit()
    return tx


def delete_transaction(user_id: int, transaction_id: int) -> None:
    tx = get_transaction(user_id, transaction_id)
    wallet = tx.wallet
    wallet.balance = rules.revert_transaction(wallet.balance, tx.kind, tx.amount)
    db.session.delete(tx)
    _commit_or_rollback("excluir movimentação")

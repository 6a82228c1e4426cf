"""Carteiras do usuário: CRUD e ajustes diretos de saldo."""

from extensions import db
from models import Wallet
from . import rules


def get_wallet(user_id: int, wallet_id: int) -> Wallet:
    wallet = Wallet.query.filter_by(id=wallet_id, user_id=user_id).first()
    if not wallet:
        raise rules.NotFoundError("Carteira não encontrada.")
    return wallet


def list_wallets(user_id: int) -> list[Wallet]:
    return (
        Wallet.query
        .filter_by(user_id=user_id)
        .order_by(Wallet.created_at.desc(), Wallet.id.desc())
        .all()
    )


def create_wallet(user_id: int, name, balance=None, description=None) -> Wallet:
    name = rules.require_name(name, rules.WALLET_NAME_BOUNDS, "da carteira")
    balance = rules.ensure_non_negative_balance(balance if balance not in (None, "") else 0)

    wallet = Wallet(
        user_id=user_id,
        name=name,
        balance=balance,
        description=rules.optional_text(description),
    )
    db.session.add(wallet)
    db.session.commit()
    return wallet


def update_wallet(user_id: int, wallet_id: int, data: dict) -> Wallet:
    wallet = get_wallet(user_id, wallet_id)

    if "name" in data:
        wallet.name = rules.require_name(data.get("name"), rules.WALLET_NAME_BOUNDS, "da carteira")
    if "balance" in data:
        wallet.balance = rules.ensure_non_negative_balance(data.get("balance"))
    if "description" in data:
        wallet.description = rules.optional_text(data.get("description"))

    db.session.commit()
    return wallet


def delete_wallet(user_id: int, wallet_id: int) -> None:
    wallet = get_wallet(user_id, wallet_id)
    db.session.delete(wallet)
    db.session.commit()


def deposit_into_wallet(user_id: int, wallet_id: int, amount) -> Wallet:
    wallet = get_wallet(user_id, wallet_id)
    wallet.balance = rules.deposit(wallet.balance, rules.require_amount(amount))
    db.session.commit()
    return wallet


def withdraw_from_wallet(user_id: int, wallet_id: int, amount) -> Wallet:
    wallet = get_wallet(user_id, wallet_id)
    wallet.balance = rules.withdraw(wallet.balance, rules.require_amount(amount))
    db.session.commit()
    return wallet

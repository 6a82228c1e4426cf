"""Caixinhas de poupança e o histórico de depósitos/saques."""

from decimal import Decimal

from extensions import db
from models import JarHistoryEntry, SavingsJar
from . import rules

INITIAL_BALANCE_DESCRIPTION = "Saldo inicial"


def get_jar(user_id: int, jar_id: int) -> SavingsJar:
    jar = SavingsJar.query.filter_by(id=jar_id, user_id=user_id).first()
    if not jar:
        raise rules.NotFoundError("Caixinha não encontrada.")
    return jar


def list_jars(user_id: int) -> list[SavingsJar]:
    return (
        SavingsJar.query
        .filter_by(user_id=user_id)
        .order_by(SavingsJar.created_at.desc(), SavingsJar.id.desc())
        .all()
    )


def _record(jar: SavingsJar, kind: str, amount: Decimal, previous: Decimal,
            new: Decimal, description: str | None) -> JarHistoryEntry:
    entry = JarHistoryEntry(
        kind=kind,
        amount=amount,
        previous_balance=previous,
        new_balance=new,
        description=description,
    )
    jar.history.append(entry)
    return entry


def create_jar(user_id: int, name, balance=None, description=None) -> SavingsJar:
    name = rules.require_name(name, rules.JAR_NAME_BOUNDS, "da caixinha")
    initial = rules.ZERO
    if balance not in (None, "") and rules.to_money(balance) != rules.ZERO:
        initial = rules.require_amount(balance)

    jar = SavingsJar(
        user_id=user_id,
        name=name,
        balance=initial,
        description=rules.optional_text(description),
    )
    db.session.add(jar)

    if initial > rules.ZERO:
        _record(jar, rules.JAR_DEPOSIT, initial, rules.ZERO, initial, INITIAL_BALANCE_DESCRIPTION)

    db.session.commit()
    return jar


def update_jar(user_id: int, jar_id: int, data: dict) -> SavingsJar:
    """Renomeia ou troca a descrição; o saldo só muda por depósito/saque."""
    jar = get_jar(user_id, jar_id)

    if "name" in data:
        jar.name = rules.require_name(data.get("name"), rules.JAR_NAME_BOUNDS, "da caixinha")
    if "description" in data:
        jar.description = rules.optional_text(data.get("description"))

    db.session.commit()
    return jar


def delete_jar(user_id: int, jar_id: int) -> None:
    jar = get_jar(user_id, jar_id)
    db.session.delete(jar)
    db.session.commit()


def deposit_into_jar(user_id: int, jar_id: int, amount, description=None) -> JarHistoryEntry:
    jar = get_jar(user_id, jar_id)
    amount = rules.require_amount(amount)

    previous = jar.balance
    jar.balance = rules.deposit(previous, amount)
    entry = _record(jar, rules.JAR_DEPOSIT, amount, previous, jar.balance, rules.optional_text(description))

    db.session.commit()
    return entry


def withdraw_from_jar(user_id: int, jar_id: int, amount, description=None) -> JarHistoryEntry:
    jar = get_jar(user_id, jar_id)
    amount = rules.require_amount(amount)

    previous = jar.balance
    jar.balance = rules.withdraw(previous, amount)
    entry = _record(jar, rules.JAR_WITHDRAWAL, amount, previous, jar.balance, rules.optional_text(description))

    db.session.commit()
    return entry


def jar_history(user_id: int, jar_id: int) -> list[JarHistoryEntry]:
    jar = get_jar(user_id, jar_id)
    return jar.history.order_by(None).order_by(
        JarHistoryEntry.created_at.desc(), JarHistoryEntry.id.desc()
    ).all()


def jar_statistics(user_id: int, jar_id: int) -> dict:
    jar = get_jar(user_id, jar_id)
    return rules.jar_statistics(jar.history.all())


def jar_evolution(user_id: int, jar_id: int) -> list[dict]:
    jar = get_jar(user_id, jar_id)
    return rules.jar_balance_evolution(jar.created_at, jar.history.all())

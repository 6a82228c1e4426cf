"""
Regras de negócio do Economize
==============================

Funções puras (sem banco, sem Flask) com as validações e a aritmética de
carteiras, movimentações, caixinhas e metas. Os backends chamam estas
funções antes de gravar qualquer coisa.

Valores monetários são sempre ``Decimal`` com duas casas.
"""

import calendar
from datetime import date, datetime, timedelta
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP


class FinanceError(Exception):
    """Erro base das operações financeiras."""


class ValidationError(FinanceError):
    """Dados de entrada rejeitados por uma regra de negócio."""


class InsufficientFundsError(ValidationError):
    """Saque maior que o saldo disponível."""


class NotFoundError(FinanceError):
    """Registro inexistente ou de outro usuário."""


CENT = Decimal("0.01")
ZERO = Decimal("0.00")

MAX_AMOUNT = Decimal("999999.99")
MAX_GOAL_TARGET = Decimal("9999999.99")
# Limite das colunas Numeric(15, 2)
MAX_BALANCE = Decimal("9999999999999.99")

WALLET_NAME_BOUNDS = (2, 50)
JAR_NAME_BOUNDS = (2, 50)
TRANSACTION_NAME_BOUNDS = (2, 100)
GOAL_NAME_BOUNDS = (2, 100)

INCOME = "income"
EXPENSE = "expense"
TRANSACTION_KINDS = (INCOME, EXPENSE)

RECURRENCE_NONE = "none"
RECURRENCE_WEEKLY = "weekly"
RECURRENCE_BIWEEKLY = "biweekly"
RECURRENCE_MONTHLY = "monthly"
RECURRENCES = (RECURRENCE_NONE, RECURRENCE_WEEKLY, RECURRENCE_BIWEEKLY, RECURRENCE_MONTHLY)

JAR_DEPOSIT = "deposit"
JAR_WITHDRAWAL = "withdrawal"

TRANSACTION_ORDERS = (
    "recent",
    "oldest",
    "amount_desc",
    "amount_asc",
    "due_soonest",
    "due_latest",
)


def to_money(value) -> Decimal:
    """Converte ``value`` (str, int, float ou Decimal) para Decimal em centavos."""
    if value is None or (isinstance(value, str) and not value.strip()):
        raise ValidationError("Informe um valor.")
    if isinstance(value, bool):
        raise ValidationError("Valor inválido.")
    try:
        amount = Decimal(str(value).strip().replace(",", "."))
    except InvalidOperation:
        raise ValidationError("Valor inválido.")
    if not amount.is_finite():
        raise ValidationError("Valor inválido.")
    try:
        return amount.quantize(CENT, rounding=ROUND_HALF_UP)
    except InvalidOperation:
        raise ValidationError("Valor inválido.")


def _name_within(name: str | None, bounds: tuple[int, int]) -> bool:
    length = len(str(name or "").strip())
    return bounds[0] <= length <= bounds[1]


def validate_wallet_name(name: str | None) -> bool:
    return _name_within(name, WALLET_NAME_BOUNDS)


def validate_jar_name(name: str | None) -> bool:
    return _name_within(name, JAR_NAME_BOUNDS)


def validate_transaction_name(name: str | None) -> bool:
    return _name_within(name, TRANSACTION_NAME_BOUNDS)


def validate_goal_name(name: str | None) -> bool:
    return _name_within(name, GOAL_NAME_BOUNDS)


def validate_amount(amount: Decimal) -> bool:
    return ZERO < amount <= MAX_AMOUNT


def validate_goal_target(target: Decimal) -> bool:
    return ZERO < target <= MAX_GOAL_TARGET


def require_name(name: str | None, bounds: tuple[int, int], label: str) -> str:
    """Retorna o nome sem espaços nas pontas ou levanta ValidationError."""
    if not _name_within(name, bounds):
        raise ValidationError(
            f"O nome {label} deve ter entre {bounds[0]} e {bounds[1]} caracteres."
        )
    return str(name).strip()


def parse_date(value) -> date | None:
    """Aceita ``date`` ou texto ISO (AAAA-MM-DD); vazio vira None."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value).strip()[:10])
    except ValueError:
        raise ValidationError("Data inválida. Use o formato AAAA-MM-DD.")


def parse_bool(value, default: bool = False) -> bool:
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ("1", "true", "t", "yes", "y", "on", "sim")


def require_kind(kind) -> str:
    kind = str(kind or "").strip().lower()
    if kind not in TRANSACTION_KINDS:
        raise ValidationError("Tipo de movimentação inválido. Use 'income' ou 'expense'.")
    return kind


def require_recurrence(recurrence) -> str:
    recurrence = str(recurrence or RECURRENCE_NONE).strip().lower()
    if recurrence not in RECURRENCES:
        raise ValidationError("Frequência inválida. Use none, weekly, biweekly ou monthly.")
    return recurrence


def optional_text(value) -> str | None:
    text = str(value).strip() if value is not None else ""
    return text or None


def require_amount(value) -> Decimal:
    amount = to_money(value)
    if amount <= ZERO:
        raise ValidationError("O valor deve ser maior que zero.")
    if amount > MAX_AMOUNT:
        raise ValidationError("O valor máximo permitido é R$ 999.999,99.")
    return amount


def require_goal_target(value) -> Decimal:
    target = to_money(value)
    if not validate_goal_target(target):
        raise ValidationError("O valor da meta deve estar entre R$ 0,01 e R$ 9.999.999,99.")
    return target


def ensure_non_negative_balance(balance) -> Decimal:
    balance = to_money(balance)
    if balance < ZERO:
        raise ValidationError("O saldo não pode ser negativo.")
    if balance > MAX_BALANCE:
        raise ValidationError("O saldo máximo permitido é R$ 9.999.999.999.999,99.")
    return balance


def deposit(balance: Decimal, amount: Decimal) -> Decimal:
    if amount <= ZERO:
        raise ValidationError("O valor do depósito deve ser maior que zero.")
    return balance + amount


def withdraw(balance: Decimal, amount: Decimal,
             message: str = "Saldo insuficiente para realizar o saque.") -> Decimal:
    if amount <= ZERO:
        raise ValidationError("O valor do saque deve ser maior que zero.")
    if amount > balance:
        raise InsufficientFundsError(message)
    return balance - amount


def _signed(kind: str, amount: Decimal) -> Decimal:
    if kind == INCOME:
        return amount
    if kind == EXPENSE:
        return -amount
    raise ValidationError("Tipo de movimentação inválido.")


def apply_transaction(balance: Decimal, kind: str, amount: Decimal) -> Decimal:
    """Receita soma, despesa subtrai."""
    return balance + _signed(kind, amount)


def revert_transaction(balance: Decimal, kind: str, amount: Decimal) -> Decimal:
    return balance - _signed(kind, amount)


def add_months(day: date, months: int) -> date:
    total = day.month - 1 + months
    year = day.year + total // 12
    month = total % 12 + 1
    last = calendar.monthrange(year, month)[1]
    return date(year, month, min(day.day, last))


def next_due_date(due_date: date, recurrence: str) -> date:
    if recurrence == RECURRENCE_WEEKLY:
        return due_date + timedelta(days=7)
    if recurrence == RECURRENCE_BIWEEKLY:
        return due_date + timedelta(days=15)
    if recurrence == RECURRENCE_MONTHLY:
        return add_months(due_date, 1)
    return due_date


def is_overdue(due_date: date | None, today: date) -> bool:
    return due_date is not None and due_date < today


def goal_completed(accumulated: Decimal, target: Decimal) -> bool:
    return accumulated >= target


def goal_progress(accumulated: Decimal, target: Decimal) -> float:
    if target <= ZERO:
        return 0.0
    return min(float(accumulated / target * 100), 100.0)


def goal_remaining(accumulated: Decimal, target: Decimal) -> Decimal:
    return max(ZERO, target - accumulated)


def goal_days_remaining(deadline: date, today: date) -> int:
    # Negativo quando o prazo já passou
    return (deadline - today).days


def goal_is_overdue(deadline: date, completed: bool, today: date) -> bool:
    return today > deadline and not completed


def jar_statistics(history) -> dict:
    """Totais, quantidades e médias de depósitos e saques de uma caixinha.

    ``history`` é qualquer iterável de objetos com ``kind`` e ``amount``.
    """
    history = list(history)
    deposits = [h.amount for h in history if h.kind == JAR_DEPOSIT]
    withdrawals = [h.amount for h in history if h.kind == JAR_WITHDRAWAL]

    total_deposits = sum(deposits, ZERO)
    total_withdrawals = sum(withdrawals, ZERO)

    def _average(total: Decimal, count: int) -> Decimal:
        if not count:
            return ZERO
        return (total / count).quantize(CENT, rounding=ROUND_HALF_UP)

    return {
        "total_deposits": total_deposits,
        "total_withdrawals": total_withdrawals,
        "deposit_count": len(deposits),
        "withdrawal_count": len(withdrawals),
        "average_deposit": _average(total_deposits, len(deposits)),
        "average_withdrawal": _average(total_withdrawals, len(withdrawals)),
    }


def jar_balance_evolution(created_at: datetime, history) -> list[dict]:
    """Série de saldo: zero na criação e depois um ponto por lançamento."""
    points = [{"date": created_at, "balance": ZERO}]
    for entry in sorted(history, key=lambda h: (h.created_at, h.id or 0)):
        points.append({"date": entry.created_at, "balance": entry.new_balance})
    return points


def format_brl(value) -> str:
    """Formata ``value`` como moeda brasileira, ex.: ``R$ 1.234,56``."""
    amount = to_money(value)
    sign = "-" if amount < ZERO else ""
    integer, cents = f"{abs(amount):,.2f}".split(".")
    return f"{sign}R$ {integer.replace(',', '.')},{cents}"

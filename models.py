from datetime import datetime, date
from decimal import Decimal

from extensions import db
from modulos.financas import rules


def _money(value) -> float:
    return float(value if value is not None else Decimal("0"))


def _iso(value) -> str | None:
    return value.isoformat() if value else None


class User(db.Model):
    __tablename__ = "users"

    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(255), unique=True, nullable=False)
    password_hash = db.Column(db.String(255), nullable=False)
    is_email_verified = db.Column(db.Boolean, default=False, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    profile = db.relationship("UserProfile", backref="user", uselist=False, cascade="all, delete-orphan")
    wallets = db.relationship("Wallet", backref="user", lazy="dynamic", cascade="all, delete-orphan")
    savings_jars = db.relationship("SavingsJar", backref="user", lazy="dynamic", cascade="all, delete-orphan")
    goals = db.relationship("FinancialGoal", backref="user", lazy="dynamic", cascade="all, delete-orphan")

    def __repr__(self) -> str:  # pragma: no cover
        return f"<User {self.email}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "email": self.email,
            "full_name": self.profile.full_name if self.profile else None,
            "is_email_verified": self.is_email_verified,
            "created_at": _iso(self.created_at),
        }


class UserProfile(db.Model):
    """Dados de perfil (nome completo) separados das credenciais"""
    __tablename__ = "user_profiles"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), unique=True, nullable=False)
    full_name = db.Column(db.String(150), nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    def __repr__(self) -> str:  # pragma: no cover
        return f"<UserProfile {self.full_name}>"


class EmailVerification(db.Model):
    """Códigos de verificação de email"""
    __tablename__ = "email_verifications"

    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(255), nullable=False, index=True)
    code = db.Column(db.String(6), nullable=False)
    expires_at = db.Column(db.DateTime, nullable=False)
    is_used = db.Column(db.Boolean, default=False, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    def __repr__(self) -> str:
        return f"<EmailVerification {self.email}>"


class PasswordReset(db.Model):
    """Tokens de recuperação de senha"""
    __tablename__ = "password_resets"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)
    token = db.Column(db.String(100), unique=True, nullable=False)
    expires_at = db.Column(db.DateTime, nullable=False)
    is_used = db.Column(db.Boolean, default=False, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    user = db.relationship("User", backref=db.backref("password_resets", cascade="all, delete-orphan"))

    def __repr__(self) -> str:
        return f"<PasswordReset {self.user_id}>"


class LoginAudit(db.Model):
    __tablename__ = "login_audit"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    email = db.Column(db.String(255), nullable=False)
    ip_address = db.Column(db.String(64))
    user_agent = db.Column(db.String(255))
    succeeded = db.Column(db.Boolean, nullable=False)
    message = db.Column(db.String(255))
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    user = db.relationship("User", backref=db.backref("login_attempts", lazy="dynamic"))

    def __repr__(self) -> str:  # pragma: no cover
        status = "success" if self.succeeded else "failure"
        return f"<LoginAudit {self.email} {status}>"


class Wallet(db.Model):
    """Carteiras (conta corrente, dinheiro, poupança...)"""
    __tablename__ = "wallets"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    name = db.Column(db.String(50), nullable=False)
    balance = db.Column(db.Numeric(15, 2), default=Decimal("0.00"), nullable=False)
    description = db.Column(db.Text)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    transactions = db.relationship("Transaction", backref="wallet", lazy="dynamic", cascade="all, delete-orphan")

    def __repr__(self) -> str:
        return f"<Wallet {self.name} R$ {self.balance}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "balance": _money(self.balance),
            "balance_display": rules.format_brl(self.balance or 0),
            "description": self.description,
            "created_at": _iso(self.created_at),
            "updated_at": _iso(self.updated_at),
        }


class Transaction(db.Model):
    """Movimentações (receitas e despesas, avulsas ou recorrentes)"""
    __tablename__ = "transactions"
    __table_args__ = (
        db.Index("idx_transactions_user_due", "user_id", "due_date"),
        db.Index("idx_transactions_user_active", "user_id", "is_active"),
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)
    wallet_id = db.Column(db.Integer, db.ForeignKey("wallets.id"), nullable=False, index=True)

    name = db.Column(db.String(100), nullable=False)
    amount = db.Column(db.Numeric(15, 2), nullable=False)
    kind = db.Column(db.String(20), nullable=False)  # income ou expense
    recurrence = db.Column(db.String(20), default=rules.RECURRENCE_NONE, nullable=False)  # none, weekly, biweekly, monthly
    due_date = db.Column(db.Date, nullable=False)
    is_active = db.Column(db.Boolean, default=True, nullable=False)
    description = db.Column(db.Text)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    def __repr__(self) -> str:
        return f"<Transaction {self.name} R$ {self.amount}>"

    def to_dict(self, today: date | None = None) -> dict:
        today = today or date.today()
        return {
            "id": self.id,
            "wallet_id": self.wallet_id,
            "wallet_name": self.wallet.name if self.wallet else None,
            "name": self.name,
            "amount": _money(self.amount),
            "kind": self.kind,
            "recurrence": self.recurrence,
            "due_date": _iso(self.due_date),
            "is_active": self.is_active,
            "is_overdue": bool(self.is_active) and rules.is_overdue(self.due_date, today),
            "description": self.description,
            "created_at": _iso(self.created_at),
            "updated_at": _iso(self.updated_at),
        }


class SavingsJar(db.Model):
    """Caixinhas de poupança"""
    __tablename__ = "savings_jars"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    name = db.Column(db.String(50), nullable=False)
    balance = db.Column(db.Numeric(15, 2), default=Decimal("0.00"), nullable=False)
    description = db.Column(db.Text)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    history = db.relationship(
        "JarHistoryEntry",
        backref="jar",
        lazy="dynamic",
        cascade="all, delete-orphan",
        order_by="JarHistoryEntry.created_at.desc()",
    )

    def __repr__(self) -> str:
        return f"<SavingsJar {self.name} R$ {self.balance}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "balance": _money(self.balance),
            "balance_display": rules.format_brl(self.balance or 0),
            "description": self.description,
            "created_at": _iso(self.created_at),
            "updated_at": _iso(self.updated_at),
        }


class JarHistoryEntry(db.Model):
    """Histórico de depósitos e saques de uma caixinha"""
    __tablename__ = "jar_history"

    id = db.Column(db.Integer, primary_key=True)
    jar_id = db.Column(db.Integer, db.ForeignKey("savings_jars.id"), nullable=False, index=True)
    kind = db.Column(db.String(20), nullable=False)  # deposit ou withdrawal
    amount = db.Column(db.Numeric(15, 2), nullable=False)
    previous_balance = db.Column(db.Numeric(15, 2), nullable=False)
    new_balance = db.Column(db.Numeric(15, 2), nullable=False)
    description = db.Column(db.String(255))
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    def __repr__(self) -> str:
        return f"<JarHistoryEntry {self.kind} R$ {self.amount}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "jar_id": self.jar_id,
            "kind": self.kind,
            "amount": _money(self.amount),
            "previous_balance": _money(self.previous_balance),
            "new_balance": _money(self.new_balance),
            "description": self.description,
            "created_at": _iso(self.created_at),
        }


class FinancialGoal(db.Model):
    """Metas financeiras com valor alvo e prazo"""
    __tablename__ = "financial_goals"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    name = db.Column(db.String(100), nullable=False)
    target_amount = db.Column(db.Numeric(15, 2), nullable=False)
    accumulated_amount = db.Column(db.Numeric(15, 2), default=Decimal("0.00"), nullable=False)
    deadline = db.Column(db.Date, nullable=False)
    completed = db.Column(db.Boolean, default=False, nullable=False)
    description = db.Column(db.Text)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    def __repr__(self) -> str:
        return f"<FinancialGoal {self.name} {self.accumulated_amount}/{self.target_amount}>"

    @property
    def progress(self) -> float:
        return rules.goal_progress(self.accumulated_amount, self.target_amount)

    def to_dict(self, today: date | None = None) -> dict:
        today = today or date.today()
        return {
            "id": self.id,
            "name": self.name,
            "target_amount": _money(self.target_amount),
            "accumulated_amount": _money(self.accumulated_amount),
            "remaining_amount": _money(rules.goal_remaining(self.accumulated_amount, self.target_amount)),
            "progress": round(self.progress, 2),
            "deadline": _iso(self.deadline),
            "days_remaining": rules.goal_days_remaining(self.deadline, today),
            "is_overdue": rules.goal_is_overdue(self.deadline, self.completed, today),
            "completed": self.completed,
            "description": self.description,
            "created_at": _iso(self.created_at),
            "updated_at": _iso(self.updated_at),
        }

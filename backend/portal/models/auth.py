from __future__ import annotations

from ..extensions import db

class User(db.Model):
    """
    Portal user.

    Role is one of SUPER_ADMIN, ACCOUNT_ADMIN, OPERATION, BUYER and is
    resolved to capabilities by portal.permissions. company_id is the
    reporting scope for company-bound roles.
    """
    __tablename__ = "users"
    __table_args__ = (
        db.Index("ix_users_company_id", "company_id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    name = db.Column(db.String(255), nullable=False)
    email = db.Column(db.String(255), nullable=False, unique=True, index=True)

    role = db.Column(db.String(32), nullable=False, default="BUYER", index=True)

    company_id = db.Column(db.Integer, db.ForeignKey("companies.id"), nullable=True)

    is_active = db.Column(db.Boolean, nullable=False, default=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    last_login_at = db.Column(db.DateTime(timezone=True), nullable=True)

    company = db.relationship("Company", backref=db.backref("users", lazy=True))


class SessionToken(db.Model):
    """
    Bearer session issued by the sign-in service.

    Only the SHA-256 hash of the token is stored.
    """
    __tablename__ = "session_tokens"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)

    token_hash = db.Column(db.String(64), nullable=False, unique=True, index=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    expires_at = db.Column(db.DateTime(timezone=True), nullable=False)
    revoked_at = db.Column(db.DateTime(timezone=True), nullable=True)

    user = db.relationship("User", backref=db.backref("sessions", lazy=True))

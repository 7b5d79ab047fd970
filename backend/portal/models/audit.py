from __future__ import annotations

from ..extensions import db


class AuditLog(db.Model):
    """
    Administrative audit trail.

    The acting user's name and email are snapshotted at write time so the
    trail survives user edits. Append-only; written by the admin endpoints,
    read by the audit report.
    """
    __tablename__ = "audit_logs"
    __table_args__ = (
        db.Index("ix_audit_logs_timestamp", "timestamp"),
        db.Index("ix_audit_logs_user_timestamp", "user_id", "timestamp"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    timestamp = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    action = db.Column(db.String(64), nullable=False)     # e.g., "USER_CREATED"
    resource = db.Column(db.String(64), nullable=False)   # e.g., "user"
    resource_id = db.Column(db.String(64), nullable=True)

    # Acting user snapshot
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True, index=True)
    user_email = db.Column(db.String(255), nullable=True)
    user_name = db.Column(db.String(255), nullable=True)

    severity = db.Column(db.String(16), nullable=False, default="info", index=True)  # info, warning, error, critical
    category = db.Column(db.String(32), nullable=False, default="system", index=True)  # authentication, user_management, system, data, security

    # Free-form before/after values
    details = db.Column(db.JSON, nullable=True)

    ip_address = db.Column(db.String(45), nullable=True)
    user_agent = db.Column(db.String(512), nullable=True)

    user = db.relationship("User", backref=db.backref("audit_logs", lazy=True))

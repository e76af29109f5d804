from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z


class WorkspaceVocabulary(db.Model):
    """
    Ordered label list owned by one account.

    kind is "status" or "category". labels is a JSON array; its order is the
    display order and the tie-break order of the status summary.
    """
    __tablename__ = "workspace_vocabularies"
    __table_args__ = (
        db.UniqueConstraint("user_id", "kind", name="uq_workspace_vocabularies_user_kind"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.String(36), nullable=False, index=True)
    kind = db.Column(db.String(16), nullable=False)
    labels = db.Column(db.JSON, nullable=False, default=list)

    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    def to_dict(self) -> dict:
        return {
            "kind": self.kind,
            "labels": list(self.labels or []),
            "updated_at": to_utc_z(self.updated_at),
        }

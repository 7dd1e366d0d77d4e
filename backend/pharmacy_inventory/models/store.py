from __future__ import annotations

from ..extensions import db


class KeyValueDocument(db.Model):
    """
    One JSON document per key.

    Backs SqlKeyValueStore: each logical collection (catalog, ledger) is a
    single row whose value is replaced wholesale on every write.
    """
    __tablename__ = "kv_documents"

    key = db.Column(db.String(128), primary_key=True)
    value = db.Column(db.Text, nullable=False)

    version_id = db.Column(db.Integer, nullable=False, default=1)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    __mapper_args__ = {"version_id_col": version_id}

    def __repr__(self) -> str:
        return f"<KeyValueDocument key={self.key!r} version_id={self.version_id}>"

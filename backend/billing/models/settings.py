from __future__ import annotations

from ..extensions import db


class Setting(db.Model):
    """
    Flat key -> string settings row.

    Holds the store profile, invoice numbering state (invoice_prefix,
    invoice_counter) and outbound-mail credentials.
    """
    __tablename__ = "settings"

    key = db.Column(db.String(128), primary_key=True)
    value = db.Column(db.Text, nullable=False, default="")

    def to_dict(self):
        return {
            "key": self.key,
            "value": self.value,
        }

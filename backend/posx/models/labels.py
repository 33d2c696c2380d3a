from __future__ import annotations

from ..extensions import db
from posx.time_utils import to_utc_z, utcnow

LABEL_ELEMENT_TYPES = ("text", "image", "line", "rectangle", "background", "barcode", "attribute")


class LabelTemplate(db.Model):
    """
    Shelf/price label layout designed on the till.

    width and height are millimetres. elements is the ordered list of drawn
    items ({id, type, x, y, width?, height?, content?, fontSize?, attribute?}).
    """
    __tablename__ = "label_templates"
    __table_args__ = (
        db.Index("ix_label_templates_client_created", "client_id", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    client_id = db.Column(db.Integer, db.ForeignKey("clients.id"), nullable=False, index=True)
    name = db.Column(db.String(255), nullable=False)
    width = db.Column(db.Integer, nullable=False)
    height = db.Column(db.Integer, nullable=False)
    elements = db.Column(db.JSON, nullable=False, default=list)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "width": self.width,
            "height": self.height,
            # Predefined layouts live in the till; everything stored here is custom
            "type": "custom",
            "elements": list(self.elements or []),
            "createdAt": to_utc_z(self.created_at),
        }

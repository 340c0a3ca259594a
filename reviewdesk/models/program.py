from ..extensions import db
from .base import TimestampMixin

class Program(db.Model, TimestampMixin):
    __tablename__ = "programs"
    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text)
    created_by = db.Column(db.Integer, db.ForeignKey("users.id"))

    criteria = db.relationship("ReviewCriterion", back_populates="program", lazy="dynamic")
    applications = db.relationship("Application", back_populates="program", lazy="dynamic")

from ..extensions import db
from .base import TimestampMixin

class Application(db.Model, TimestampMixin):
    __tablename__ = "applications"
    id = db.Column(db.Integer, primary_key=True)
    program_id = db.Column(db.Integer, db.ForeignKey("programs.id"), nullable=False, index=True)
    applicant_name = db.Column(db.String(255))
    applicant_email = db.Column(db.String(255))
    submitted_at = db.Column(db.DateTime)
    # denormalized 0-100 aggregate over all scored reviews
    score_avg = db.Column(db.Float)
    last_evaluated_at = db.Column(db.DateTime)

    program = db.relationship("Program", back_populates="applications")
    assignments = db.relationship("ReviewAssignment", back_populates="application", lazy="dynamic")

from ..extensions import db
from .base import TimestampMixin

class Review(db.Model, TimestampMixin):
    __tablename__ = "reviews"
    id = db.Column(db.Integer, primary_key=True)
    assignment_id = db.Column(db.Integer, db.ForeignKey("review_assignments.id"), nullable=False, unique=True)
    # 1-5 for criteria-era reviews, 1-10 for pre-criteria reviews
    overall_score = db.Column(db.Integer)
    comments = db.Column(db.Text, default="")
    strengths = db.Column(db.Text, default="")
    weaknesses = db.Column(db.Text, default="")
    recommendation = db.Column(db.String(50), default="")

    assignment = db.relationship("ReviewAssignment", back_populates="review")
    scores = db.relationship("ReviewScore", back_populates="review", lazy="dynamic", cascade="all, delete-orphan")

    def to_dict(self):
        return {
            "id": self.id,
            "assignment_id": self.assignment_id,
            "overall_score": self.overall_score,
            "comments": self.comments or "",
            "strengths": self.strengths or "",
            "weaknesses": self.weaknesses or "",
            "recommendation": self.recommendation or "",
        }

from ..extensions import db
from .base import TimestampMixin

class ReviewScore(db.Model, TimestampMixin):
    __tablename__ = "review_scores"
    id = db.Column(db.Integer, primary_key=True)
    review_id = db.Column(db.Integer, db.ForeignKey("reviews.id", ondelete="CASCADE"), nullable=False, index=True)
    criteria_id = db.Column(db.Integer, db.ForeignKey("review_criteria.id"), nullable=False)
    raw_score = db.Column(db.Float)
    normalized_score = db.Column(db.Float)
    # criterion weight at scoring time
    weight_applied = db.Column(db.Float)
    weighted_score = db.Column(db.Float)
    rubric_level = db.Column(db.String(100))
    score_rationale = db.Column(db.Text)
    reviewer_confidence = db.Column(db.Integer)
    is_na = db.Column(db.Boolean, nullable=False, default=False)

    review = db.relationship("Review", back_populates="scores")
    criterion = db.relationship("ReviewCriterion")

    __table_args__ = (
        db.UniqueConstraint("review_id", "criteria_id", name="uq_review_scores_review_criteria"),
    )

    def __repr__(self) -> str:
        return f"<ReviewScore id={self.id} review_id={self.review_id} criteria_id={self.criteria_id} raw={self.raw_score}>"

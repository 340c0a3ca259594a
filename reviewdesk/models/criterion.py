from ..extensions import db
from .base import TimestampMixin

SCORING_TYPES = ("numeric", "categorical", "binary")


class ReviewCriterion(db.Model, TimestampMixin):
    __tablename__ = "review_criteria"
    id = db.Column(db.Integer, primary_key=True)
    program_id = db.Column(db.Integer, db.ForeignKey("programs.id"), nullable=False, index=True)
    name = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text)
    scoring_type = db.Column(db.String(20), nullable=False, default="numeric")
    # percentage points; a program's criteria are expected to sum to 100
    weight = db.Column(db.Float, nullable=False, default=0)
    min_score = db.Column(db.Float, nullable=False, default=0)
    max_score = db.Column(db.Float, nullable=False, default=10)
    sort_order = db.Column(db.Integer, nullable=False, default=0)
    # ordered mapping of level name -> description
    rubric_definition = db.Column(db.JSON)
    scoring_guide = db.Column(db.Text)
    is_required = db.Column(db.Boolean, nullable=False, default=True)
    is_active = db.Column(db.Boolean, nullable=False, default=True)

    program = db.relationship("Program", back_populates="criteria")

    @property
    def rubric_levels(self):
        return list((self.rubric_definition or {}).keys())

    def to_dict(self):
        return {
            "id": self.id,
            "program_id": self.program_id,
            "name": self.name,
            "description": self.description,
            "scoring_type": self.scoring_type,
            "weight": self.weight,
            "min_score": self.min_score,
            "max_score": self.max_score,
            "sort_order": self.sort_order,
            "rubric_definition": self.rubric_definition or {},
            "scoring_guide": self.scoring_guide,
            "is_required": self.is_required,
            "is_active": self.is_active,
        }

    def __repr__(self) -> str:
        return f"<ReviewCriterion id={self.id} program_id={self.program_id} name={self.name!r}>"

from ..extensions import db
from .base import TimestampMixin

NOT_STARTED = "not_started"
IN_PROGRESS = "in_progress"
COMPLETED = "completed"
ASSIGNMENT_STATUSES = (NOT_STARTED, IN_PROGRESS, COMPLETED)


class ReviewAssignment(db.Model, TimestampMixin):
    __tablename__ = "review_assignments"
    id = db.Column(db.Integer, primary_key=True)
    application_id = db.Column(db.Integer, db.ForeignKey("applications.id"), nullable=False, index=True)
    reviewer_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    assigned_by = db.Column(db.Integer, db.ForeignKey("users.id"))
    # cached; always derivable from the review's scores
    status = db.Column(db.String(20), nullable=False, default=NOT_STARTED)
    deadline = db.Column(db.DateTime)
    assigned_at = db.Column(db.DateTime, server_default=db.func.now())
    completed_at = db.Column(db.DateTime)

    application = db.relationship("Application", back_populates="assignments")
    reviewer = db.relationship("User", foreign_keys=[reviewer_id])
    review = db.relationship("Review", back_populates="assignment", uselist=False)

    def to_dict(self):
        return {
            "id": self.id,
            "application_id": self.application_id,
            "reviewer_id": self.reviewer_id,
            "assigned_by": self.assigned_by,
            "status": self.status,
            "deadline": self.deadline.isoformat() if self.deadline else None,
            "assigned_at": self.assigned_at.isoformat() if self.assigned_at else None,
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
        }

    def __repr__(self) -> str:
        return f"<ReviewAssignment id={self.id} application_id={self.application_id} reviewer_id={self.reviewer_id} status={self.status}>"

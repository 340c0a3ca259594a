from .user import User
from .program import Program
from .application import Application
from .criterion import ReviewCriterion
from .assignment import ReviewAssignment
from .review import Review
from .review_score import ReviewScore
# base and mixins are imported by the above as needed

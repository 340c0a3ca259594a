from ..extensions import db
from flask_login import UserMixin
from .base import TimestampMixin

class User(db.Model, UserMixin, TimestampMixin):
    __tablename__ = "users"
    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(255), unique=True, nullable=False)
    full_name = db.Column(db.String(255))
    role = db.Column(db.String(50), default="reviewer")  # reviewer / admin
    # opaque bearer token issued by the identity provider
    api_token = db.Column(db.String(255), unique=True, index=True)

    @property
    def is_admin(self):
        return self.role == "admin"

    def __repr__(self) -> str:
        return f"<User id={self.id} email={self.email}>"

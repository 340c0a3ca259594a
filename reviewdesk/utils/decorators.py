from functools import wraps
from flask import abort
from flask_login import current_user

from ..extensions import db


def program_admin_required(view):
    """Allow admins and the program's creator; the view takes ``program_id``."""
    @wraps(view)
    def wrapped(*args, **kwargs):
        if not current_user.is_authenticated:
            abort(401)
        from ..models.program import Program
        program = db.session.get(Program, kwargs.get("program_id"))
        if program is None:
            abort(404, description="Program not found")
        if getattr(current_user, "role", None) != "admin" and program.created_by != current_user.id:
            abort(403, description="Forbidden")
        return view(*args, **kwargs)
    return wrapped

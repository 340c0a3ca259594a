from ..services.aggregates import refresh_program


def _in_app_context(func, *args):
    """Run ``func`` inside a Flask app context, creating one for RQ workers."""
    from flask import has_app_context
    if has_app_context():
        return func(*args)
    from reviewdesk import create_app
    app = create_app()
    with app.app_context():
        return func(*args)


def recompute_program(program_id: int):
    """Entrypoint for workers: heal statuses and aggregates for a whole program."""
    return _in_app_context(refresh_program, program_id)

from flask import Flask, jsonify
from flask_migrate import Migrate
from .extensions import db, login_manager, rq
from .errors import register_error_handlers

migrate = Migrate()


def _bearer_token(request):
    header = request.headers.get("Authorization", "")
    scheme, _, token = header.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


def create_app(config_object='config.Config'):
    """App factory: JSON API for reviewer scoring and program review admin."""
    app = Flask(__name__)
    app.config.from_object(config_object)
    app.logger.setLevel(app.config.get('LOG_LEVEL', 'INFO'))

    db.init_app(app)
    migrate.init_app(app, db, directory='alembic')
    login_manager.init_app(app)
    rq.init_app(app)

    # identity comes from the external provider as a bearer token; there are
    # no login pages in this app
    @login_manager.request_loader
    def load_user_from_request(request):
        token = _bearer_token(request)
        if not token:
            return None
        from .models.user import User
        return User.query.filter_by(api_token=token).first()

    @login_manager.user_loader
    def load_user(user_id):
        from .models.user import User
        return db.session.get(User, int(user_id))

    @login_manager.unauthorized_handler
    def unauthorized():
        return jsonify({"error": "Unauthorized", "code": "UNAUTHORIZED"}), 401

    register_error_handlers(app)

    from .blueprints.reviews import bp as reviews_bp
    app.register_blueprint(reviews_bp, url_prefix="/reviews")

    from .blueprints.programs import bp as programs_bp
    app.register_blueprint(programs_bp, url_prefix="/programs")

    @app.get('/healthz')
    def healthz():
        return jsonify({"status": "ok"})

    return app

"""Routes package - Blueprint registration."""
from ellarises.routes.main import main_bp
from ellarises.routes.auth import auth_bp
from ellarises.routes.participants import participants_bp
from ellarises.routes.events import events_bp
from ellarises.routes.donations import donations_bp
from ellarises.routes.milestones import milestones_bp
from ellarises.routes.surveys import surveys_bp
from ellarises.routes.users import users_bp
from ellarises.routes.profile import profile_bp
from ellarises.routes.dashboard import dashboard_bp


def register_blueprints(app):
    """Register all blueprints with the Flask app."""
    app.register_blueprint(main_bp)
    app.register_blueprint(auth_bp)
    app.register_blueprint(participants_bp)
    app.register_blueprint(events_bp)
    app.register_blueprint(donations_bp)
    app.register_blueprint(milestones_bp)
    app.register_blueprint(surveys_bp)
    app.register_blueprint(users_bp)
    app.register_blueprint(profile_bp)
    app.register_blueprint(dashboard_bp)

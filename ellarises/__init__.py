"""
Ella Rises - Application Factory
"""
import os
from datetime import datetime

import click
from flask import Flask, current_app, request, render_template
from dotenv import load_dotenv
from sqlalchemy.exc import SQLAlchemyError
from werkzeug.exceptions import HTTPException, InternalServerError

from ellarises.extensions import db, babel
from ellarises.config import config as config_classes, apply_environment
from ellarises.routes import register_blueprints
from ellarises.services.sessions import current_principal

DEFAULT_MILESTONE_TYPES = [
    ('High School Graduation', 'Education'),
    ('College Acceptance', 'Education'),
    ('Scholarship Awarded', 'Education'),
    ('STEAM Internship', 'Career'),
    ('First STEAM Job', 'Career'),
]


def get_locale():
    """Determine the best locale for the user."""
    languages = current_app.config['LANGUAGES']
    lang = request.cookies.get('babel_translation')
    if lang in languages:
        return lang
    return request.accept_languages.best_match(languages)


def create_app(config_name=None):
    """Application Factory."""
    load_dotenv()

    if config_name is None:
        config_name = os.environ.get('FLASK_ENV', 'development')

    app = Flask(__name__)
    app.config.from_object(config_classes.get(config_name, config_classes['default']))
    apply_environment(app)

    configure_logging(app)

    # Initialize extensions
    db.init_app(app)
    babel.init_app(app, locale_selector=get_locale)

    # Context processor for templates
    @app.context_processor
    def inject_conf_var():
        return dict(get_locale=get_locale, viewer=current_principal())

    # Register blueprints
    register_blueprints(app)

    register_error_handlers(app)

    # CLI Commands
    register_cli_commands(app)

    return app


def configure_logging(app):
    # app.logger is the "ellarises" logger; services log through its children
    app.logger.setLevel(app.config['LOG_LEVEL'].upper())


def register_error_handlers(app):
    """Render every error through the shared error page."""

    def render_error(status, title, message, detail=None):
        if not app.config['SHOW_ERROR_DETAILS']:
            detail = None
        return render_template('error.html', status=status, title=title, message=message,
                               detail=detail), status

    @app.errorhandler(HTTPException)
    def handle_http_error(error):
        if error.code is None or error.code < 400:
            return error
        return render_error(error.code, error.name, error.description)

    @app.errorhandler(SQLAlchemyError)
    def handle_database_error(error):
        db.session.rollback()
        app.logger.exception('Database error while handling %s %s', request.method, request.path)
        return render_error(500, 'Error', 'A database error occurred. Please try again later.', repr(error))

    @app.errorhandler(InternalServerError)
    def handle_internal_error(error):
        original = getattr(error, 'original_exception', None)
        if original is not None:
            app.logger.error('Unhandled exception on %s %s', request.method, request.path,
                             exc_info=original)
        return render_error(500, 'Error', 'Something went wrong. Please try again later.',
                            repr(original) if original is not None else None)


def register_cli_commands(app):
    """Register CLI commands."""
    from ellarises.models import User, MilestoneType, ROLES
    from ellarises.services.credentials import hash_password

    @app.cli.command("init-db")
    def init_db_command():
        """Creates database tables."""
        db.create_all()
        print("Initialized the database.")

    @app.cli.command("create-user")
    @click.argument("username")
    @click.argument("email")
    @click.option("--role", type=click.Choice(ROLES), default='manager', show_default=True)
    @click.password_option()
    def create_user_command(username, email, role, password):
        """Creates a login account (bootstraps the first manager)."""
        if User.query.filter((User.username == username) | (User.email == email)).first():
            raise click.ClickException(f"Username or email already exists: {username} / {email}")

        user = User(
            username=username,
            email=email,
            password_hash=hash_password(password),
            role=role,
            status='active',
            last_password_change=datetime.utcnow()
        )
        db.session.add(user)
        db.session.commit()
        print(f"Created {role} account {username}.")

    @app.cli.command("seed-milestone-types")
    def seed_milestone_types_command():
        """Adds the default milestone types that are not present yet."""
        added = 0
        for title, category in DEFAULT_MILESTONE_TYPES:
            if MilestoneType.query.filter_by(title=title).first() is None:
                db.session.add(MilestoneType(title=title, category=category))
                added += 1
        db.session.commit()
        print(f"Added {added} milestone types.")

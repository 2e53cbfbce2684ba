import click
from flask import Flask, jsonify

from lms.config import Config
from lms.errors import register_error_handlers
from lms.extensions import db, migrate, jwt, mail


def create_app(config_object=Config):
    app = Flask(__name__)
    app.config.from_object(config_object)
    app.logger.setLevel(app.config.get("LOG_LEVEL", "INFO"))

    # models must be imported before create_all / migrations see them
    from lms.models import book, borrow, issue_request, membership, notification_log, penalty, user, waitlist  # noqa: F401

    db.init_app(app)
    migrate.init_app(app, db)
    jwt.init_app(app)
    mail.init_app(app)

    register_error_handlers(app)

    from lms.controllers.auth_controller import auth_bp
    from lms.controllers.book_controller import book_bp
    from lms.controllers.issue_request_controller import issue_request_bp
    from lms.controllers.admin_controller import admin_bp
    from lms.controllers.membership_controller import membership_bp
    from lms.controllers.waitlist_controller import waitlist_bp
    from lms.controllers.borrow_controller import borrow_bp
    from lms.controllers.penalty_controller import penalty_bp
    from lms.controllers.notification_controller import notif_bp
    app.register_blueprint(auth_bp)
    app.register_blueprint(book_bp)
    app.register_blueprint(issue_request_bp)
    app.register_blueprint(admin_bp)
    app.register_blueprint(membership_bp)
    app.register_blueprint(waitlist_bp)
    app.register_blueprint(borrow_bp)
    app.register_blueprint(penalty_bp)
    app.register_blueprint(notif_bp)

    @app.get("/health")
    def health():
        return jsonify({"ok": True})

    @app.cli.command("init-db")
    def init_db():
        """Create all tables (without migrations)."""
        db.create_all()
        click.echo("Database tables created.")

    app.logger.info("[app] circulation service ready")
    return app

import click
from flask import Flask, jsonify
from flask_migrate import Migrate

from config import Config
from models import db
from models.staff import Staff, StaffRole
from routes import health_bp, quotes_bp, bookings_bp, webhook_bp, twilio_webhook_bp
from security.session import create_session
from services.errors import BookingError, NotFound
from services.forwarding import MarketplaceClient
from services.ledger import withdraw_listing
from services.notifications import WhatsAppNotifier
from services.watcher import close_departed_listings, sweep_expired_holds
from utils.auth_context import load_current_staff
from utils.logging_config import setup_logging


def create_app(config_object=Config):
    app = Flask(__name__)
    app.config.from_object(config_object)
    setup_logging(app.config.get("LOG_LEVEL", "INFO"))

    # Register routes
    app.register_blueprint(health_bp)
    app.register_blueprint(quotes_bp)
    app.register_blueprint(bookings_bp)
    app.register_blueprint(webhook_bp)
    app.register_blueprint(twilio_webhook_bp)

    # Database init
    db.init_app(app)

    # Migrations
    Migrate(app, db)

    # External collaborators (tests swap these for fakes)
    app.extensions["whatsapp"] = WhatsAppNotifier.from_config(app.config)
    app.extensions["marketplace"] = MarketplaceClient.from_config(app.config)

    @app.before_request
    def _load_staff():
        load_current_staff()

    @app.errorhandler(BookingError)
    def _booking_error(exc):
        return jsonify(error=exc.message), exc.status_code

    @app.after_request
    def add_security_headers(resp):
        resp.headers["X-Content-Type-Options"] = "nosniff"
        resp.headers["X-Frame-Options"] = "DENY"
        resp.headers["Referrer-Policy"] = "no-referrer"
        resp.headers["Content-Security-Policy"] = "default-src 'none'; frame-ancestors 'none';"
        return resp

    register_cli(app)

    return app

#-------------------------

def register_cli(app):
    @app.cli.command("create-staff")
    @click.argument("email")
    @click.argument("full_name")
    @click.argument("phone")
    @click.option("--role", type=click.Choice([r.value for r in StaffRole]), default=StaffRole.ADMIN.value)
    def create_staff(email, full_name, phone, role):
        """Create an admin or operator account (bootstrap)."""
        email = email.strip().lower()
        if Staff.query.filter_by(email=email).first():
            click.echo("Staff member already exists")
            return

        db.session.add(Staff(email=email, full_name=full_name, phone=phone, role=StaffRole(role)))
        db.session.commit()
        click.echo(f"{email} created as {role}")

    @app.cli.command("issue-token")
    @click.argument("email")
    def issue_token(email):
        """Mint a session token for a staff member. Printed once."""
        staff = Staff.query.filter_by(email=email.strip().lower()).first()
        if not staff or not staff.is_active:
            click.echo("Staff member not found")
            return
        click.echo(create_session(staff.id))

    @app.cli.command("expire-holds")
    def expire_holds():
        """Expire approved bookings whose payment deadline has passed."""
        expired = sweep_expired_holds()
        click.echo(f"Expired {len(expired)} booking(s)")

    @app.cli.command("close-departed-listings")
    def close_departed():
        """Close listings whose departure time has passed."""
        count = close_departed_listings()
        click.echo(f"Closed {count} listing(s)")

    @app.cli.command("withdraw-listing")
    @click.argument("listing_id", type=int)
    def withdraw(listing_id):
        """Take a listing off sale; released seats will not reopen it."""
        try:
            withdraw_listing(listing_id)
        except NotFound:
            click.echo("Listing not found")
            return
        click.echo(f"Listing {listing_id} withdrawn")

#-------------------------


if __name__ == "__main__":
    app = create_app()
    # Run locally
    app.run(host="127.0.0.1", port=5002)

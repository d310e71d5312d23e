from .health import health_bp
from .quotes import quotes_bp
from .bookings import bookings_bp
from .stripe_webhook import webhook_bp
from .twilio_webhook import twilio_webhook_bp

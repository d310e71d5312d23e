from flask import Blueprint, current_app, jsonify, request

from services.errors import ValidationError
from services.intake import QuoteRequest, submit_quote_request

quotes_bp = Blueprint("quotes", __name__, url_prefix="/quotes")


# ---------- PUBLIC: request a quote on an empty leg ----------
@quotes_bp.post("/empty-leg")
def create_empty_leg_quote():
    data = request.get_json(silent=True) or {}
    if not isinstance(data, dict):
        raise ValidationError("JSON object body required")

    quote = QuoteRequest.from_payload(data, current_app.config.get("DEFAULT_COUNTRY_CODE", "+234"))
    booking = submit_quote_request(quote)

    body = {
        "referenceNumber": booking.reference_number,
        "message": "Empty leg quote request submitted successfully",
        "forwardedToExternal": booking.forwarded_to_external,
    }
    if booking.external_request_id:
        body["externalRequestId"] = booking.external_request_id
    return jsonify(body), 201

from dataclasses import dataclass
from typing import Optional

from flask import current_app

from models import db
from models.client import Client
from services.errors import ValidationError
from utils.phone import is_valid_phone, normalize_phone


@dataclass(frozen=True)
class ClientContact:
    phone: str
    full_name: str
    email: Optional[str] = None

    @classmethod
    def from_model(cls, client: Client) -> "ClientContact":
        return cls(phone=client.phone, full_name=client.full_name, email=client.email)


def merge_client_contact(existing: Optional[ClientContact], incoming: ClientContact) -> ClientContact:
    """The first name seen for a phone number is kept for good; only email follows the latest request."""
    if existing is None:
        return incoming

    email = existing.email
    if incoming.email and incoming.email != existing.email:
        email = incoming.email
    return ClientContact(phone=existing.phone, full_name=existing.full_name, email=email)


def resolve_client(incoming: ClientContact) -> Client:
    """Find or create the client for ``incoming.phone``. Changes are flushed with the caller's commit."""
    phone = normalize_phone(incoming.phone, current_app.config.get("DEFAULT_COUNTRY_CODE", "+234"))
    if not is_valid_phone(phone):
        raise ValidationError("Invalid phone number")
    incoming = ClientContact(phone=phone, full_name=incoming.full_name, email=incoming.email)

    client = Client.query.filter_by(phone=phone).first()
    if client is None:
        merged = merge_client_contact(None, incoming)
        client = Client(phone=merged.phone, full_name=merged.full_name, email=merged.email)
        db.session.add(client)
        return client

    merged = merge_client_contact(ClientContact.from_model(client), incoming)
    if merged.email != client.email:
        client.email = merged.email
    return client

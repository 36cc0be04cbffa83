"""
Provider service
Signup, routing slug lookup, delivery mode and fixed delivery addresses
"""

import logging
import re
from typing import List, Optional, Union

from ..core.database import DatabaseManager, db_manager
from ..core.exceptions import (
    AuthenticationError,
    BusinessNameTakenError,
    DeliveryAddressNotFoundError,
    ProviderNotFoundError,
    ValidationError,
)
from ..core.security import hash_password, verify_password
from ..models.provider import CustomDelivery, DeliveryAddress, FixedDelivery, Provider

logger = logging.getLogger(__name__)


def slugify_business_name(business_name: str) -> str:
    """'Annapurna Tiffins!' -> 'annapurnatiffins'"""
    return re.sub(r"[^a-z0-9]", "", (business_name or "").lower())


class ProviderService:
    """Provider accounts and their delivery configuration"""

    def __init__(self, db: Optional[DatabaseManager] = None):
        self.db = db or db_manager

    def signup(self, business_name: str, owner_name: str, contact_number: str,
               email: str, service_area: Optional[str] = None,
               password: Optional[str] = None) -> Provider:
        """Create a provider; the routing slug is derived from the business name"""
        slug = slugify_business_name(business_name)
        if not slug:
            raise ValidationError("Business name must contain letters or digits")
        password_hash = hash_password(password) if password is not None else None

        with self.db.transaction() as conn:
            if conn.execute("SELECT 1 FROM providers WHERE slug = ?", [slug]).fetchone():
                raise BusinessNameTakenError(details={"slug": slug})
            row = conn.execute(
                """
                INSERT INTO providers (business_name, owner_name, contact_number, email, service_area, slug,
                                       password_hash)
                VALUES (?, ?, ?, ?, ?, ?, ?)
                RETURNING id
                """,
                [business_name.strip(), owner_name, contact_number, email, service_area, slug, password_hash],
            ).fetchone()

        logger.info("Provider %s signed up as /%s", row[0], slug)
        return self.get_provider(row[0])

    def is_slug_available(self, business_name: str) -> bool:
        slug = slugify_business_name(business_name)
        return bool(slug) and self.db.fetch_one("SELECT 1 FROM providers WHERE slug = ?", [slug]) is None

    def get_provider(self, provider_id: int) -> Provider:
        row = self.db.fetch_one("SELECT * FROM providers WHERE id = ?", [provider_id])
        if not row:
            raise ProviderNotFoundError()
        return Provider(**row)

    def get_by_slug(self, slug: str) -> Provider:
        row = self.db.fetch_one("SELECT * FROM providers WHERE slug = ?", [slug.lower()])
        if not row:
            raise ProviderNotFoundError()
        return Provider(**row)

    def get_by_email(self, email: str) -> Provider:
        row = self.db.fetch_one("SELECT * FROM providers WHERE lower(email) = lower(?)", [email])
        if not row:
            raise ProviderNotFoundError()
        return Provider(**row)

    def authenticate(self, email: str, password: str) -> Provider:
        """Provider by email and password; one error for unknown email and wrong password"""
        row = self.db.fetch_one("SELECT * FROM providers WHERE lower(email) = lower(?)", [email or ""])
        if not row or not verify_password(password, row["password_hash"]):
            raise AuthenticationError("Invalid email or password")
        return Provider(**row)

    # Delivery mode

    def get_delivery_mode(self, provider_id: int) -> Union[CustomDelivery, FixedDelivery]:
        provider = self.get_provider(provider_id)
        if provider.delivery_mode == "fixed":
            return FixedDelivery(addresses=self.list_addresses(provider_id))
        return CustomDelivery()

    def set_delivery_mode(self, provider_id: int, mode: str) -> Union[CustomDelivery, FixedDelivery]:
        if mode not in ("custom", "fixed"):
            raise ValidationError(f"Unknown delivery mode: {mode}")
        self.get_provider(provider_id)
        self.db.execute("UPDATE providers SET delivery_mode = ? WHERE id = ?", [mode, provider_id])
        logger.info("Provider %s switched to %s delivery", provider_id, mode)
        return self.get_delivery_mode(provider_id)

    # Fixed delivery addresses

    def list_addresses(self, provider_id: int) -> List[DeliveryAddress]:
        rows = self.db.fetch_all(
            "SELECT * FROM delivery_addresses WHERE provider_id = ? ORDER BY name",
            [provider_id],
        )
        return [DeliveryAddress(**r) for r in rows]

    def get_address(self, provider_id: int, address_id: int) -> DeliveryAddress:
        row = self.db.fetch_one(
            "SELECT * FROM delivery_addresses WHERE id = ? AND provider_id = ?",
            [address_id, provider_id],
        )
        if not row:
            raise DeliveryAddressNotFoundError()
        return DeliveryAddress(**row)

    def add_address(self, provider_id: int, name: str, address: str) -> DeliveryAddress:
        name, address = (name or "").strip(), (address or "").strip()
        if not name or not address:
            raise ValidationError("Name and address are required")
        row = self.db.fetch_one(
            "INSERT INTO delivery_addresses (provider_id, name, address) VALUES (?, ?, ?) RETURNING *",
            [provider_id, name, address],
        )
        return DeliveryAddress(**row)

    def update_address(self, provider_id: int, address_id: int,
                       name: Optional[str] = None, address: Optional[str] = None) -> DeliveryAddress:
        current = self.get_address(provider_id, address_id)
        new_name = (name if name is not None else current.name).strip()
        new_address = (address if address is not None else current.address).strip()
        if not new_name or not new_address:
            raise ValidationError("Name and address are required")
        row = self.db.fetch_one(
            "UPDATE delivery_addresses SET name = ?, address = ? WHERE id = ? RETURNING *",
            [new_name, new_address, address_id],
        )
        return DeliveryAddress(**row)

    def delete_address(self, provider_id: int, address_id: int):
        self.get_address(provider_id, address_id)
        self.db.execute("DELETE FROM delivery_addresses WHERE id = ?", [address_id])

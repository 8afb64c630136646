from __future__ import annotations

import logging

from app.core.config import Settings
from app.models.customer import Customer
from app.services.customer_store import CustomerStore
from app.services.errors import Conflict, InvalidInput, NotFound

logger = logging.getLogger(__name__)

MAX_NAME_LENGTH = 255


def normalize_phone(phone: str, *, min_digits: int = 10, max_digits: int = 15) -> str:
    # Keep digits only
    digits = "".join(ch for ch in (phone or "") if ch.isdigit())
    if len(digits) < min_digits or len(digits) > max_digits:
        raise InvalidInput()
    return digits


def mask_phone(phone_normalized: str) -> str:
    # e.g. 9876543210 -> 987***3210
    if len(phone_normalized) <= 4:
        return "*" * len(phone_normalized)
    head = phone_normalized[:3]
    tail = phone_normalized[-4:]
    middle = "*" * max(0, len(phone_normalized) - len(head) - len(tail))
    return f"{head}{middle}{tail}"


def clean_name(name: str | None) -> str:
    cleaned = " ".join((name or "").split())
    if not cleaned or len(cleaned) > MAX_NAME_LENGTH:
        raise InvalidInput()
    return cleaned


class CustomerResolver:
    """Maps a submitted (name, phone) pair onto exactly one customer record."""

    def __init__(self, store: CustomerStore, settings: Settings) -> None:
        self.store = store
        self.settings = settings

    def normalize(self, phone: str) -> str:
        return normalize_phone(
            phone,
            min_digits=self.settings.min_phone_digits,
            max_digits=self.settings.max_phone_digits,
        )

    def lookup(self, phone: str) -> Customer:
        return self.store.find_by_phone(self.normalize(phone))

    def resolve(self, name: str | None, phone: str) -> tuple[Customer, bool]:
        """Return ``(customer, created)`` for the submitted details.

        The name is only required when a new record is created. A returning
        customer is handed back unchanged unless return visits
        are counted. When two requests race to create the same phone, the
        loser re-reads the winner's row instead of failing.
        """
        phone_norm = self.normalize(phone)

        try:
            existing = self.store.find_by_phone(phone_norm)
        except NotFound:
            existing = None

        if existing is not None:
            logger.info("Returning customer %s", mask_phone(phone_norm))
            if self.settings.count_return_visits:
                return self.store.increment_visit(existing.id), False
            return existing, False

        try:
            customer = self.store.create(clean_name(name), phone_norm)
        except Conflict:
            logger.info("Lost creation race for %s, reading winner", mask_phone(phone_norm))
            try:
                return self.store.find_by_phone(phone_norm), False
            except NotFound:
                raise Conflict()

        logger.info("Created customer %s for %s", customer.id, mask_phone(phone_norm))
        return customer, True

    def check_in(self, customer_id: str) -> Customer:
        customer = self.store.increment_visit(customer_id)
        logger.info("Recorded visit %d for customer %s", customer.visits, customer.id)
        return customer

from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Iterator

from sqlalchemy import case, func, select, update
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError
from sqlalchemy.orm import Session

from app.models._mixins import utcnow
from app.models.customer import Customer
from app.services.errors import Conflict, NotFound, StoreTimeout, StoreUnavailable

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CustomerStats:
    total_customers: int
    total_visits: int
    average_visits: float


@contextmanager
def storage_guard(db: Session, operation: str) -> Iterator[None]:
    """Translate driver failures into StoreUnavailable after rolling back."""
    try:
        yield
    except PoolTimeoutError as e:
        db.rollback()
        logger.error("Customer store %s timed out waiting for a connection", operation, exc_info=True)
        raise StoreTimeout() from e
    except OperationalError as e:
        db.rollback()
        logger.error("Customer store %s failed", operation, exc_info=True)
        raise StoreUnavailable() from e


class CustomerStore:
    """Customer records keyed by normalized phone number.

    Uniqueness is enforced by the database, so concurrent creates for the
    same phone resolve to one row and the losers see ``Conflict``.
    """

    def __init__(self, db: Session) -> None:
        self.db = db

    def find_by_phone(self, phone: str) -> Customer:
        with storage_guard(self.db, "find_by_phone"):
            customer = self.db.execute(select(Customer).where(Customer.phone_number == phone)).scalar_one_or_none()
        if customer is None:
            raise NotFound()
        return customer

    def get(self, customer_id: str) -> Customer:
        with storage_guard(self.db, "get"):
            customer = self.db.get(Customer, customer_id)
        if customer is None:
            raise NotFound()
        return customer

    def create(self, name: str, phone: str) -> Customer:
        now = utcnow()
        customer = Customer(name=name, phone_number=phone, visits=1, created_at=now, updated_at=now)
        with storage_guard(self.db, "create"):
            self.db.add(customer)
            try:
                self.db.commit()
            except IntegrityError as e:
                self.db.rollback()
                raise Conflict() from e
        return customer

    def increment_visit(self, customer_id: str) -> Customer:
        now = utcnow()
        # updated_at never moves backwards, even if the clock does
        new_updated_at = case((Customer.updated_at > now, Customer.updated_at), else_=now)
        stmt = (
            update(Customer)
            .where(Customer.id == customer_id)
            .values(visits=Customer.visits + 1, updated_at=new_updated_at)
            .execution_options(synchronize_session=False)
        )
        with storage_guard(self.db, "increment_visit"):
            result = self.db.execute(stmt)
            if result.rowcount == 0:
                self.db.rollback()
                raise NotFound()
            self.db.commit()
            customer = self.db.get(Customer, customer_id, populate_existing=True)
        if customer is None:
            raise NotFound()
        return customer

    def list_all(self) -> list[Customer]:
        with storage_guard(self.db, "list_all"):
            q = select(Customer).order_by(Customer.created_at, Customer.id)
            return list(self.db.execute(q).scalars().all())

    def stats(self) -> CustomerStats:
        with storage_guard(self.db, "stats"):
            total_customers, total_visits = self.db.execute(
                select(func.count(Customer.id), func.coalesce(func.sum(Customer.visits), 0))
            ).one()
        average = round(total_visits / total_customers, 1) if total_customers else 0.0
        return CustomerStats(total_customers=total_customers, total_visits=int(total_visits), average_visits=average)

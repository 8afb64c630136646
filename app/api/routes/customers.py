from __future__ import annotations

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session

from app.core.deps import get_customer_resolver, get_customer_store, get_db, require_admin
from app.models.customer import Customer
from app.schemas.customer import CustomerCreate, CustomerOut, CustomerStatsOut
from app.services.audit_service import ADMIN_ACTOR, write_audit_log
from app.services.customer_resolver import CustomerResolver
from app.services.customer_store import CustomerStore

router = APIRouter()


def _to_out(c: Customer) -> CustomerOut:
    return CustomerOut(
        id=c.id,
        name=c.name,
        phone_number=c.phone_number,
        visits=c.visits,
        created_at=c.created_at,
        updated_at=c.updated_at,
    )


@router.get("/phone/{phone}", response_model=CustomerOut)
def get_customer_by_phone(phone: str, resolver: CustomerResolver = Depends(get_customer_resolver)):
    # The browser keeps a cached copy of the customer; this is the authoritative read.
    c = resolver.lookup(phone)
    return _to_out(c)


@router.post("", response_model=CustomerOut, status_code=status.HTTP_201_CREATED)
def create_customer(
    payload: CustomerCreate,
    request: Request,
    db: Session = Depends(get_db),
    resolver: CustomerResolver = Depends(get_customer_resolver),
):
    c, created = resolver.resolve(payload.name, payload.phone_number)

    if created:
        write_audit_log(
            db,
            action_type="CUSTOMER_CREATE",
            target_type="customer",
            target_id=c.id,
            summary="Customer registered",
            diff_json={"phone_number": c.phone_number, "visits": c.visits},
            request=request,
        )

    return _to_out(c)


@router.get("", response_model=list[CustomerOut], dependencies=[Depends(require_admin)])
def list_customers(store: CustomerStore = Depends(get_customer_store)):
    return [_to_out(c) for c in store.list_all()]


@router.get("/stats", response_model=CustomerStatsOut, dependencies=[Depends(require_admin)])
def customer_stats(store: CustomerStore = Depends(get_customer_store)):
    s = store.stats()
    return CustomerStatsOut(total_customers=s.total_customers, total_visits=s.total_visits, average_visits=s.average_visits)


@router.post("/{customer_id}/visits", response_model=CustomerOut, dependencies=[Depends(require_admin)])
def record_visit(
    customer_id: str,
    request: Request,
    db: Session = Depends(get_db),
    resolver: CustomerResolver = Depends(get_customer_resolver),
):
    c = resolver.check_in(customer_id)

    write_audit_log(
        db,
        actor=ADMIN_ACTOR,
        action_type="CUSTOMER_VISIT",
        target_type="customer",
        target_id=c.id,
        summary="Visit recorded",
        diff_json={"visits": c.visits},
        request=request,
    )

    return _to_out(c)

# Import all models so that SQLAlchemy registers them for metadata.create_all
from app.models.admin_session import AdminSession
from app.models.audit_log import AuditLog
from app.models.customer import Customer

__all__ = [
    "AdminSession",
    "AuditLog",
    "Customer",
]

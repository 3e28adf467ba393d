from .base import Base, get_engine
from .models import SecurityAuditRecord

__all__ = ["Base", "SecurityAuditRecord", "get_engine"]

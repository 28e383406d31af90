from petsitter_billing.db.base import Base
from petsitter_billing.db.session import SessionLocal, engine

__all__ = ["Base", "SessionLocal", "engine"]

"""FastAPI dependencies for the scheduling API."""

from typing import Generator

from fastapi import Depends
from sqlalchemy.orm import Session

from db.session import get_session
from services.scheduling_service import SchedulingService


def get_db() -> Generator[Session, None, None]:
    """Request-scoped session; committed on success, rolled back on error."""
    yield from get_session()


def get_scheduling_service(db: Session = Depends(get_db)) -> SchedulingService:
    return SchedulingService(db)

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...core.database import get_db
from ...services.query_service import QueryService

router = APIRouter(prefix="/doctors", tags=["Doctors"])

@router.get("")
def list_doctors(db: Session = Depends(get_db)):
    """Doctor directory for the booking form."""
    doctors = QueryService(db).list_doctors()
    return {"success": True, "doctors": [doctor.model_dump() for doctor in doctors]}

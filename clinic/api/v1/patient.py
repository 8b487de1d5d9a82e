from typing import List, Optional

from fastapi import APIRouter, Depends

from clinic.api.deps import get_current_patient
from clinic.api.v1.services import construct_service_response, get_scheduling_service
from clinic.db.models import Patient
from clinic.db.models.enums import ServiceStatus
from clinic.schemas.service import ServiceResponse
from clinic.services.scheduling_service import SchedulingService

router = APIRouter()


@router.get("/current/services", response_model=List[ServiceResponse])
async def my_services(
    status: Optional[ServiceStatus] = None,
    patient: Patient = Depends(get_current_patient),
    service: SchedulingService = Depends(get_scheduling_service),
):
    services = await service.list_services(patient_id=patient.id, status=status)
    return [construct_service_response(s) for s in services]

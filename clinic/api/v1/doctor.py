from typing import List, Optional

from fastapi import APIRouter, Depends

from clinic.api.deps import get_current_doctor
from clinic.api.v1.services import construct_service_response, get_scheduling_service
from clinic.db.models import Doctor
from clinic.db.models.enums import ServiceStatus
from clinic.schemas.service import ServiceResponse
from clinic.services.scheduling_service import SchedulingService

router = APIRouter()


@router.get("/current/services", response_model=List[ServiceResponse])
async def my_services(
    status: Optional[ServiceStatus] = None,
    doctor: Doctor = Depends(get_current_doctor),
    service: SchedulingService = Depends(get_scheduling_service),
):
    services = await service.list_services(doctor_id=doctor.id, status=status)
    return [construct_service_response(s) for s in services]

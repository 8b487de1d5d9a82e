from fastapi import APIRouter
from clinic.api.v1 import (
    auth,
    dashboard,
    doctor,
    feedback,
    initial_form,
    notes,
    notices,
    patient,
    service_requests,
    service_types,
    services,
    tests,
)

api_router = APIRouter()

api_router.include_router(auth.router, prefix="/auth", tags=["auth"])
api_router.include_router(services.router, prefix="/services", tags=["services"])
api_router.include_router(doctor.router, prefix="/doctor", tags=["doctor"])
api_router.include_router(patient.router, prefix="/patient", tags=["patient"])
api_router.include_router(service_types.router, prefix="/service-types", tags=["service-types"])
api_router.include_router(service_requests.router, prefix="/service-requests", tags=["service-requests"])
api_router.include_router(tests.router, prefix="/tests", tags=["tests"])
api_router.include_router(initial_form.router, prefix="/initial-form", tags=["initial-form"])
api_router.include_router(notices.router, prefix="/notices", tags=["notices"])
api_router.include_router(feedback.router, prefix="/feedback", tags=["feedback"])
api_router.include_router(notes.router, prefix="/notes", tags=["notes"])
api_router.include_router(dashboard.router, prefix="/dashboard", tags=["dashboard"])

from sqlmodel import SQLModel
from .user import User
from .doctor import Doctor
from .patient import Patient
from .service_type import ServiceTypeDefinition
from .service import Service, ServiceParticipant
from .note import Note
from .service_request import ServiceRequest
from .test_template import TestTemplate, TestTemplateVersion, TestInstance
from .patient_form import PatientForm
from .notice import Notice
from .counter import Counter
from .feedback import Feedback
from .audit_log import AuditLog

__all__ = [
    "SQLModel",
    "User",
    "Doctor",
    "Patient",
    "ServiceTypeDefinition",
    "Service",
    "ServiceParticipant",
    "Note",
    "ServiceRequest",
    "TestTemplate",
    "TestTemplateVersion",
    "TestInstance",
    "PatientForm",
    "Notice",
    "Counter",
    "Feedback",
    "AuditLog",
]

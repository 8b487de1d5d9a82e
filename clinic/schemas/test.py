from pydantic import BaseModel, Field, model_validator
from uuid import UUID
from datetime import datetime
from typing import Optional, List, Dict, Any

from clinic.db.models.enums import QuestionType

DEFAULT_SCALE_MIN = 1
DEFAULT_SCALE_MAX = 5

class Question(BaseModel):
    text: str = Field(min_length=1)
    type: QuestionType
    required: bool = True
    options: Optional[List[str]] = None
    min_value: Optional[int] = Field(default=None, alias="minValue")
    max_value: Optional[int] = Field(default=None, alias="maxValue")

    class Config:
        populate_by_name = True
        extra = "forbid"

    @model_validator(mode="after")
    def check_shape(self):
        if self.type == QuestionType.MULTIPLE_CHOICE and not self.options:
            raise ValueError("Multiple choice questions need at least one option")
        if self.type == QuestionType.SCALE and self.scale_min >= self.scale_max:
            raise ValueError("Scale questions need minValue lower than maxValue")
        return self

    @property
    def scale_min(self) -> int:
        return DEFAULT_SCALE_MIN if self.min_value is None else self.min_value

    @property
    def scale_max(self) -> int:
        return DEFAULT_SCALE_MAX if self.max_value is None else self.max_value

class TestTemplateCreate(BaseModel):
    name: str = Field(min_length=1)
    description: Optional[str] = None
    questions: List[Question] = Field(min_length=1)

    class Config:
        extra = "forbid"

class TestTemplateVersionCreate(BaseModel):
    questions: List[Question] = Field(min_length=1)

    class Config:
        extra = "forbid"

class TestTemplateVersionResponse(BaseModel):
    id: UUID
    test_template_id: UUID
    version: int
    questions: List[Dict[str, Any]]
    created_at: datetime

    class Config:
        from_attributes = True

class TestTemplateResponse(BaseModel):
    id: UUID
    name: str
    description: Optional[str] = None
    is_active: bool
    latest_version: Optional[TestTemplateVersionResponse] = None

class AssignTestRequest(BaseModel):
    patient_id: UUID
    test_template_version_id: Optional[UUID] = None
    # Alternative to a version id: the latest version of this template
    test_template_id: Optional[UUID] = None

    class Config:
        extra = "forbid"

    @model_validator(mode="after")
    def check_target(self):
        if (self.test_template_version_id is None) == (self.test_template_id is None):
            raise ValueError("Provide exactly one of test_template_version_id or test_template_id")
        return self

class SubmitTestRequest(BaseModel):
    patient_response: Dict[str, Any] = Field(validation_alias="patientResponse")

    class Config:
        extra = "forbid"

class TestInstanceResponse(BaseModel):
    id: UUID
    patient_id: UUID
    test_template_version_id: UUID
    test_template_id: UUID
    template_name: str
    version: int
    status: str
    test_start_date: Optional[datetime] = Field(default=None, alias="testStartDate")
    test_stop_date: Optional[datetime] = Field(default=None, alias="testStopDate")
    patient_response: Optional[Dict[str, Any]] = Field(default=None, alias="patientResponse")
    questions: List[Dict[str, Any]] = []

    class Config:
        populate_by_name = True

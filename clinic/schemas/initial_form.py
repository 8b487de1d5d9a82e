from pydantic import BaseModel
from uuid import UUID
from datetime import datetime
from typing import Optional, List, Dict, Union

class FormOption(BaseModel):
    value: str
    label: str

class FormQuestion(BaseModel):
    id: str
    text: str
    type: str = "radio"
    required: bool = True
    options: List[FormOption]

class FormSection(BaseModel):
    id: str
    key: str
    title: str
    description: str
    questions: List[FormQuestion]

class AssessmentForm(BaseModel):
    title: str
    description: str
    sections: List[FormSection]

class AssessmentSubmit(BaseModel):
    responses: Dict[str, Union[int, str]]

    class Config:
        extra = "forbid"

class SubscaleScore(BaseModel):
    key: str
    title: str
    score: int
    max_score: int
    interpretation: str

class AssessmentScores(BaseModel):
    subscales: List[SubscaleScore]
    total_score: int
    max_total_score: int
    total_interpretation: str

    @property
    def scores(self) -> Dict[str, int]:
        return {subscale.key: subscale.score for subscale in self.subscales}

class AssessmentResult(AssessmentScores):
    form_id: UUID
    patient_id: UUID
    status: str
    submission_date: datetime
    responses: Dict[str, str]

class AssessmentStatus(BaseModel):
    has_completed: bool
    last_submission_date: Optional[datetime] = None

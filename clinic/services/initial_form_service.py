from typing import Mapping, Optional, Union
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from clinic.core.exceptions import ConflictError, NotFoundError
from clinic.core.utils import utcnow
from clinic.db.models import Patient, PatientForm
from clinic.schemas.initial_form import AssessmentResult, AssessmentStatus
from clinic.services import audit, scoring


class InitialFormService:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_form(self, patient_id: UUID) -> Optional[PatientForm]:
        stmt = select(PatientForm).where(
            PatientForm.patient_id == patient_id,
            PatientForm.form_type == scoring.FORM_TYPE,
        )
        result = await self.session.execute(stmt)
        return result.scalars().first()

    @staticmethod
    def to_result(form: PatientForm) -> AssessmentResult:
        scores = scoring.rescore(form.form_data.get("scores", {}))
        return AssessmentResult(
            **scores.model_dump(),
            form_id=form.id,
            patient_id=form.patient_id,
            status=form.status,
            submission_date=form.submission_date,
            responses=form.form_data.get("responses", {}),
        )

    async def submit(self, patient: Patient, responses: Mapping[str, Union[int, str]]) -> AssessmentResult:
        normalized = scoring.normalize_responses(responses)
        scores = scoring.score_responses(normalized)
        form_data = {"responses": normalized, "scores": scores.scores}

        # One assessment per patient; a new submission replaces the previous one
        form = await self.get_form(patient.id)
        if form is None:
            form = PatientForm(patient_id=patient.id, form_type=scoring.FORM_TYPE, form_data=form_data)
        else:
            form.form_data = form_data
            form.status = "Completed"
            form.submission_date = utcnow()
        self.session.add(form)
        audit.record(
            self.session, "initial_form.submitted", "patient_form", form.id,
            actor_id=patient.user_id, payload={"total_score": scores.total_score},
        )
        try:
            await self.session.commit()
        except IntegrityError:
            await self.session.rollback()
            raise ConflictError("The assessment was submitted concurrently, retry")
        await self.session.refresh(form)
        return self.to_result(form)

    async def get_result(self, patient_id: UUID) -> AssessmentResult:
        if not await self.session.get(Patient, patient_id):
            raise NotFoundError("Patient not found")
        form = await self.get_form(patient_id)
        if form is None:
            raise NotFoundError("No initial assessment found for this patient")
        return self.to_result(form)

    async def get_status(self, patient_id: UUID) -> AssessmentStatus:
        form = await self.get_form(patient_id)
        return AssessmentStatus(
            has_completed=form is not None,
            last_submission_date=form.submission_date if form else None,
        )

from typing import List, Optional

from cureconnect.core.auth_decorators import AuthContext
from cureconnect.core.exceptions import AuthorizationError, NotFoundError, ValidationError
from cureconnect.core.logging_config import get_logger
from cureconnect.domain.entities import Report
from cureconnect.domain.interfaces import IReportRepository
from cureconnect.schemas.dtos import ReportCreateRequest

logger = get_logger(__name__)


class ReportService:
    """Medical report metadata. The file itself lives wherever ``file_url`` points."""

    def __init__(self, report_repo: IReportRepository) -> None:
        self.report_repo = report_repo

    def create(self, actor: AuthContext, request: ReportCreateRequest) -> Report:
        request.validate()
        if not actor.is_patient:
            raise AuthorizationError("Only patients can upload reports.")

        try:
            report = Report(
                patient_id=actor.id,
                patient_name=actor.name,
                report_type=request.report_type,
                title=request.title,
                description=request.description,
                file_url=request.file_url,
                file_type=request.file_type,
                file_size=request.file_size,
                issued_date=request.issued_date,
                institution=request.institution,
            )
        except ValueError as e:
            raise ValidationError(str(e)) from e

        created = self.report_repo.create(report)
        logger.info(
            "Report added",
            extra={"context": {"report_id": created.id, "patient_id": actor.id}},
        )
        return created

    def list_for(self, actor: AuthContext, patient_id: Optional[str] = None) -> List[Report]:
        if actor.is_patient:
            return self.report_repo.list(patient_id=actor.id)
        if actor.is_doctor and not patient_id:
            raise ValidationError("patient_id is required")
        return self.report_repo.list(patient_id=patient_id)

    def get(self, actor: AuthContext, report_id: str) -> Report:
        report = self.report_repo.get_by_id(report_id)
        if report is None:
            raise NotFoundError.for_resource("Report")
        if actor.is_patient and report.patient_id != actor.id:
            raise AuthorizationError("Not authorized to view this report")
        return report

    def delete(self, actor: AuthContext, report_id: str) -> None:
        if actor.is_doctor:
            raise AuthorizationError("Doctors cannot delete patient reports.")
        report = self.get(actor, report_id)
        self.report_repo.delete(report.id)

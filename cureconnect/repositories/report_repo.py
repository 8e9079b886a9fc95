from typing import List, Optional

from cureconnect.db.base import Report as DbReport
from cureconnect.domain.entities import Report
from cureconnect.domain.interfaces import IReportRepository


class ReportRepository(IReportRepository):
    def __init__(self, db_session) -> None:
        self.db = db_session

    def get_by_id(self, report_id: str) -> Optional[Report]:
        row = self.db.get(DbReport, report_id)
        return self._to_domain(row) if row else None

    def list(self, patient_id: Optional[str] = None) -> List[Report]:
        query = self.db.query(DbReport)
        if patient_id:
            query = query.filter(DbReport.patient_id == patient_id)
        return [self._to_domain(row) for row in query.order_by(DbReport.created_at.desc())]

    def create(self, report: Report) -> Report:
        row = DbReport(
            patient_id=report.patient_id,
            patient_name=report.patient_name,
            report_type=report.report_type,
            title=report.title.strip(),
            description=report.description,
            file_url=report.file_url,
            file_type=report.file_type,
            file_size=report.file_size,
            issued_date=report.issued_date,
            institution=report.institution,
        )
        self.db.add(row)
        self.db.commit()
        self.db.refresh(row)
        return self._to_domain(row)

    def delete(self, report_id: str) -> bool:
        row = self.db.get(DbReport, report_id)
        if row is None:
            return False
        self.db.delete(row)
        self.db.commit()
        return True

    @staticmethod
    def _to_domain(row: DbReport) -> Report:
        return Report(
            id=row.id,
            patient_id=row.patient_id,
            patient_name=row.patient_name,
            report_type=row.report_type,
            title=row.title,
            description=row.description,
            file_url=row.file_url,
            file_type=row.file_type,
            file_size=row.file_size,
            issued_date=row.issued_date,
            institution=row.institution,
            created_at=row.created_at,
        )

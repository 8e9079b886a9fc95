from typing import List, Optional

from sqlalchemy.exc import IntegrityError

from cureconnect.core.exceptions import StateConflictError
from cureconnect.db.base import Review as DbReview
from cureconnect.domain.entities import Review
from cureconnect.domain.interfaces import IReviewRepository


class ReviewRepository(IReviewRepository):
    def __init__(self, db_session) -> None:
        self.db = db_session

    def get_by_id(self, review_id: str) -> Optional[Review]:
        row = self.db.get(DbReview, review_id)
        return self._to_domain(row) if row else None

    def get_by_appointment_id(self, appointment_id: str) -> Optional[Review]:
        row = self.db.query(DbReview).filter_by(appointment_id=appointment_id).first()
        return self._to_domain(row) if row else None

    def list(
        self,
        doctor_id: Optional[str] = None,
        patient_id: Optional[str] = None,
        status: Optional[str] = None,
    ) -> List[Review]:
        query = self.db.query(DbReview)
        if doctor_id:
            query = query.filter(DbReview.doctor_id == doctor_id)
        if patient_id:
            query = query.filter(DbReview.patient_id == patient_id)
        if status:
            query = query.filter(DbReview.status == status)
        return [self._to_domain(row) for row in query.order_by(DbReview.created_at.desc())]

    def create(self, review: Review) -> Review:
        row = DbReview(
            appointment_id=review.appointment_id,
            patient_id=review.patient_id,
            patient_name=review.patient_name,
            doctor_id=review.doctor_id,
            doctor_name=review.doctor_name,
            rating=review.rating,
            comment=review.comment,
            status=review.status,
        )
        self.db.add(row)
        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            raise StateConflictError("This appointment has already been reviewed.") from e
        self.db.refresh(row)
        return self._to_domain(row)

    def update_status(self, review_id: str, status: str) -> Optional[Review]:
        row = self.db.get(DbReview, review_id)
        if row is None:
            return None
        row.status = status
        self.db.commit()
        self.db.refresh(row)
        return self._to_domain(row)

    def delete(self, review_id: str) -> bool:
        row = self.db.get(DbReview, review_id)
        if row is None:
            return False
        self.db.delete(row)
        self.db.commit()
        return True

    @staticmethod
    def _to_domain(row: DbReview) -> Review:
        return Review(
            id=row.id,
            appointment_id=row.appointment_id,
            patient_id=row.patient_id,
            patient_name=row.patient_name,
            doctor_id=row.doctor_id,
            doctor_name=row.doctor_name,
            rating=row.rating,
            comment=row.comment or "",
            status=row.status,
            created_at=row.created_at,
        )

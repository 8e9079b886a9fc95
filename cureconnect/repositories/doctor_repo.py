"""
Doctor repository.

A doctor is a ``users`` row with role ``doctor`` plus a ``doctors`` profile
row sharing its id. Ratings are not stored; they are aggregated from
approved reviews whenever doctors are read.
"""

from decimal import Decimal
from typing import Dict, List, Optional, Tuple

from sqlalchemy import func

from cureconnect.db.base import Appointment as DbAppointment
from cureconnect.db.base import DoctorProfile
from cureconnect.db.base import Review as DbReview
from cureconnect.db.base import User as DbUser
from cureconnect.domain.entities import Doctor
from cureconnect.domain.interfaces import IDoctorRepository


class DoctorRepository(IDoctorRepository):
    def __init__(self, db_session) -> None:
        self.db = db_session

    def get_by_id(self, doctor_id: str) -> Optional[Doctor]:
        row = (
            self.db.query(DbUser, DoctorProfile)
            .join(DoctorProfile, DoctorProfile.id == DbUser.id)
            .filter(DbUser.id == doctor_id)
            .first()
        )
        if row is None:
            return None
        ratings = self._rating_summary([doctor_id])
        return self._to_domain(row[0], row[1], ratings.get(doctor_id))

    def list(
        self,
        specialization: Optional[str] = None,
        location: Optional[str] = None,
        is_available: Optional[bool] = None,
        status: Optional[str] = None,
    ) -> List[Doctor]:
        query = self.db.query(DbUser, DoctorProfile).join(
            DoctorProfile, DoctorProfile.id == DbUser.id
        )
        if specialization:
            query = query.filter(
                DoctorProfile.specialization.ilike(f"%{specialization.strip()}%")
            )
        if location:
            query = query.filter(DoctorProfile.location.ilike(f"%{location.strip()}%"))
        if is_available is not None:
            query = query.filter(DoctorProfile.is_available.is_(is_available))
        if status:
            query = query.filter(DoctorProfile.status == status)

        rows = query.order_by(DbUser.name).all()
        ratings = self._rating_summary([user.id for user, _ in rows])
        return [
            self._to_domain(user, profile, ratings.get(user.id)) for user, profile in rows
        ]

    def create(self, doctor: Doctor) -> Doctor:
        if not doctor.id:
            raise ValueError("Doctor ID is required to create a profile")

        profile = DoctorProfile(id=doctor.id)
        self._apply(profile, doctor)
        profile.status = doctor.status

        self.db.add(profile)
        self.db.commit()
        return self.get_by_id(doctor.id)

    def update(self, doctor: Doctor) -> Doctor:
        if not doctor.id:
            raise ValueError("Doctor ID is required for update")

        profile = self.db.get(DoctorProfile, doctor.id)
        if profile is None:
            raise ValueError(f"Doctor with ID {doctor.id} not found")

        self._apply(profile, doctor)
        profile.status = doctor.status
        profile.user.name = doctor.name.strip() or profile.user.name
        profile.user.profile_image = doctor.profile_image

        self.db.commit()
        return self.get_by_id(doctor.id)

    def delete(self, doctor_id: str) -> bool:
        db_user = self.db.get(DbUser, doctor_id)
        if db_user is None or db_user.role != "doctor":
            return False

        # ORM cascade removes each appointment's prescription and review
        for appointment in (
            self.db.query(DbAppointment).filter(DbAppointment.doctor_id == doctor_id).all()
        ):
            self.db.delete(appointment)
        self.db.delete(db_user)
        self.db.commit()
        return True

    def _rating_summary(self, doctor_ids: List[str]) -> Dict[str, Tuple[float, int]]:
        """Average rating and count of approved reviews per doctor."""
        if not doctor_ids:
            return {}
        rows = (
            self.db.query(
                DbReview.doctor_id, func.avg(DbReview.rating), func.count(DbReview.id)
            )
            .filter(DbReview.doctor_id.in_(doctor_ids), DbReview.status == "approved")
            .group_by(DbReview.doctor_id)
            .all()
        )
        return {
            doctor_id: (round(float(average or 0), 1), int(count))
            for doctor_id, average, count in rows
        }

    @staticmethod
    def _apply(profile: DoctorProfile, doctor: Doctor) -> None:
        profile.specialization = doctor.specialization.strip()
        profile.location = (doctor.location or "").strip()
        profile.bio = doctor.bio
        profile.experience = doctor.experience
        profile.education = doctor.education
        profile.fees = Decimal(str(doctor.fees))
        # Reassign whole lists so JSON columns are flagged dirty
        profile.available_days = list(doctor.available_days)
        profile.available_time_slots = list(doctor.available_time_slots)
        profile.is_available = doctor.is_available

    @staticmethod
    def _to_domain(
        user: DbUser, profile: DoctorProfile, rating: Optional[Tuple[float, int]] = None
    ) -> Doctor:
        average, count = rating or (0.0, 0)
        return Doctor(
            id=user.id,
            name=user.name,
            email=user.email,
            specialization=profile.specialization,
            location=profile.location or "",
            bio=profile.bio,
            experience=profile.experience or 0,
            education=profile.education,
            fees=float(profile.fees or 0),
            available_days=list(profile.available_days or []),
            available_time_slots=list(profile.available_time_slots or []),
            is_available=bool(profile.is_available),
            status=profile.status,
            profile_image=user.profile_image,
            rating=average,
            review_count=count,
            created_at=user.created_at,
        )

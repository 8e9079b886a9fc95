from typing import List, Optional

from cureconnect.db.base import PatientProfile
from cureconnect.db.base import User as DbUser
from cureconnect.domain.entities import EmergencyContact, Patient
from cureconnect.domain.interfaces import IPatientRepository


class PatientRepository(IPatientRepository):
    """Patient profiles joined with their ``users`` row."""

    def __init__(self, db_session) -> None:
        self.db = db_session

    def get_by_id(self, patient_id: str) -> Optional[Patient]:
        profile = self.db.get(PatientProfile, patient_id)
        return self._to_domain(profile) if profile else None

    def list(self, status: Optional[str] = None) -> List[Patient]:
        query = self.db.query(PatientProfile).join(
            DbUser, DbUser.id == PatientProfile.id
        )
        if status:
            query = query.filter(PatientProfile.status == status)
        return [self._to_domain(profile) for profile in query.order_by(DbUser.name).all()]

    def create(self, patient: Patient) -> Patient:
        if not patient.id:
            raise ValueError("Patient ID is required to create a profile")

        profile = PatientProfile(id=patient.id)
        self._apply(profile, patient)
        self.db.add(profile)
        self.db.commit()
        self.db.refresh(profile)
        return self._to_domain(profile)

    def update(self, patient: Patient) -> Patient:
        profile = self.db.get(PatientProfile, patient.id) if patient.id else None
        if profile is None:
            raise ValueError(f"Patient with ID {patient.id} not found")

        self._apply(profile, patient)
        if patient.name and patient.name.strip():
            profile.user.name = patient.name.strip()
        profile.user.profile_image = patient.profile_image

        self.db.commit()
        self.db.refresh(profile)
        return self._to_domain(profile)

    @staticmethod
    def _apply(profile: PatientProfile, patient: Patient) -> None:
        profile.date_of_birth = patient.date_of_birth
        profile.gender = patient.gender
        profile.phone_number = patient.phone_number
        profile.address = patient.address
        profile.medical_history = patient.medical_history
        profile.blood_group = patient.blood_group
        profile.allergies = list(patient.allergies)
        profile.emergency_contact = (
            {
                "name": patient.emergency_contact.name,
                "relationship": patient.emergency_contact.relationship,
                "phone_number": patient.emergency_contact.phone_number,
            }
            if patient.emergency_contact
            else None
        )
        profile.status = patient.status

    @staticmethod
    def _to_domain(profile: PatientProfile) -> Patient:
        contact = profile.emergency_contact or None
        return Patient(
            id=profile.id,
            name=profile.user.name,
            email=profile.user.email,
            date_of_birth=profile.date_of_birth,
            gender=profile.gender,
            phone_number=profile.phone_number,
            address=profile.address,
            medical_history=profile.medical_history,
            blood_group=profile.blood_group,
            allergies=list(profile.allergies or []),
            emergency_contact=EmergencyContact(**contact) if contact else None,
            status=profile.status,
            profile_image=profile.user.profile_image,
            created_at=profile.user.created_at,
        )

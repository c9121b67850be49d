"""Auth repository - Database operations for patient and worker accounts"""

from typing import Optional

from sqlalchemy.orm import Session

from ...models import Patient, Worker


class AuthRepository:
    """Repository for account lookups and credential updates"""

    @staticmethod
    def get_patient_by_email(db: Session, email: str) -> Optional[Patient]:
        return db.query(Patient).filter(Patient.email == email.lower()).first()

    @staticmethod
    def get_patient_by_id(db: Session, patient_id: int) -> Optional[Patient]:
        return db.query(Patient).filter(Patient.id == patient_id).first()

    @staticmethod
    def get_worker_by_email(db: Session, email: str) -> Optional[Worker]:
        return db.query(Worker).filter(Worker.email == email.lower()).first()

    @staticmethod
    def get_worker_by_id(db: Session, worker_id: int) -> Optional[Worker]:
        return db.query(Worker).filter(Worker.id == worker_id).first()

    @staticmethod
    def create_patient(db: Session, **patient_data) -> Patient:
        patient = Patient(**patient_data)
        db.add(patient)
        db.commit()
        db.refresh(patient)
        return patient

    @staticmethod
    def update_patient(db: Session, patient: Patient, **updates) -> Patient:
        """Update a patient with provided fields"""
        for key, value in updates.items():
            if value is not None and hasattr(patient, key):
                setattr(patient, key, value)

        db.commit()
        db.refresh(patient)
        return patient

    @staticmethod
    def set_password_hash(db: Session, account, password_hash: str) -> None:
        account.password_hash = password_hash
        db.commit()

"""Medical record repository - SOAP notes and prescriptions"""

from typing import Optional

from sqlalchemy.orm import Session, joinedload

from ...models import Appointment, MedicalRecord


class MedicalRecordRepository:
    """Repository for medical record database operations"""

    @staticmethod
    def get_appointment(db: Session, appointment_id: int) -> Optional[Appointment]:
        return (
            db.query(Appointment)
            .options(joinedload(Appointment.patient), joinedload(Appointment.doctor))
            .filter(Appointment.id == appointment_id)
            .first()
        )

    @staticmethod
    def get_by_id(db: Session, record_id: int) -> Optional[MedicalRecord]:
        return db.query(MedicalRecord).filter(MedicalRecord.id == record_id).first()

    @staticmethod
    def get_by_appointment(db: Session, appointment_id: int) -> Optional[MedicalRecord]:
        return db.query(MedicalRecord).filter(MedicalRecord.appointment_id == appointment_id).first()

    @staticmethod
    def get_for_doctor(db: Session, doctor_id: int) -> list[MedicalRecord]:
        return (
            db.query(MedicalRecord)
            .join(Appointment, MedicalRecord.appointment_id == Appointment.id)
            .filter(Appointment.assigned_worker_id == doctor_id)
            .order_by(MedicalRecord.created_at.desc())
            .all()
        )

    @staticmethod
    def get_for_patient(db: Session, patient_id: int) -> list[tuple[MedicalRecord, Appointment]]:
        return (
            db.query(MedicalRecord, Appointment)
            .join(Appointment, MedicalRecord.appointment_id == Appointment.id)
            .options(joinedload(Appointment.doctor))
            .filter(Appointment.patient_id == patient_id)
            .order_by(Appointment.scheduled_at)
            .all()
        )

    @staticmethod
    def create(db: Session, **record_data) -> MedicalRecord:
        record = MedicalRecord(**record_data)
        db.add(record)
        db.commit()
        db.refresh(record)
        return record

    @staticmethod
    def update(db: Session, record: MedicalRecord, **updates) -> MedicalRecord:
        for key, value in updates.items():
            setattr(record, key, value)
        db.commit()
        db.refresh(record)
        return record

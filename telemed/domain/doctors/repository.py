"""Doctor repository - Admin doctor management and doctor patient lookups"""

from typing import Optional

from sqlalchemy.orm import Session

from ...models import Appointment, Patient, Worker


class DoctorRepository:
    """Repository for doctor and doctor-patient queries"""

    @staticmethod
    def get_doctors(db: Session) -> list[Worker]:
        return db.query(Worker).filter(Worker.role == "doctor").order_by(Worker.id).all()

    @staticmethod
    def get_doctor(db: Session, doctor_id: int) -> Optional[Worker]:
        return db.query(Worker).filter(Worker.id == doctor_id, Worker.role == "doctor").first()

    @staticmethod
    def set_active(db: Session, doctor: Worker, is_active: bool) -> Worker:
        doctor.is_active = is_active
        db.commit()
        db.refresh(doctor)
        return doctor

    @staticmethod
    def get_patients_for_doctor(db: Session, doctor_id: int) -> list[Patient]:
        """Distinct patients with at least one appointment assigned to the doctor"""
        patient_ids = (
            db.query(Appointment.patient_id)
            .filter(Appointment.assigned_worker_id == doctor_id)
            .distinct()
        )
        return db.query(Patient).filter(Patient.id.in_(patient_ids)).order_by(Patient.name).all()

    @staticmethod
    def get_shared_appointments(db: Session, doctor_id: int, patient_id: int) -> list[Appointment]:
        return (
            db.query(Appointment)
            .filter(Appointment.assigned_worker_id == doctor_id, Appointment.patient_id == patient_id)
            .order_by(Appointment.scheduled_at.desc())
            .all()
        )

    @staticmethod
    def get_patient(db: Session, patient_id: int) -> Optional[Patient]:
        return db.query(Patient).filter(Patient.id == patient_id).first()

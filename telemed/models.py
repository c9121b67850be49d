import uuid

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from .database import Base
from .utils.timezone import utc_now

APPOINTMENT_STATUSES = ("scheduled", "waiting", "assigned", "in_progress", "completed", "cancelled")
# Statuses that occupy a doctor's time
ACTIVE_APPOINTMENT_STATUSES = ("scheduled", "waiting", "assigned", "in_progress")
APPOINTMENT_TYPES = ("initial", "follow_up", "emergency")
SCHEDULE_STATUSES = ("available", "busy", "break", "off")
MESSAGE_TYPES = ("text", "image", "file", "system")


def generate_uuid():
    return str(uuid.uuid4())


class Patient(Base):
    __tablename__ = "patients"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), unique=True, index=True, nullable=False)
    name = Column(String(255), nullable=False)
    password_hash = Column(String(255), nullable=False)
    phone_number = Column(String(50), nullable=True)
    date_of_birth = Column(DateTime, nullable=True)
    gender = Column(String(10), nullable=True)  # male, female, other
    address = Column(Text, nullable=True)
    emergency_contact = Column(JSON, default=dict)
    medical_history = Column(JSON, default=dict)
    profile_image_url = Column(String(500), nullable=True)
    created_at = Column(DateTime, default=utc_now, nullable=False)
    updated_at = Column(DateTime, default=utc_now, onupdate=utc_now, nullable=False)

    appointments = relationship("Appointment", back_populates="patient")


class Worker(Base):
    __tablename__ = "workers"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), unique=True, index=True, nullable=False)
    name = Column(String(255), nullable=False)
    role = Column(String(20), nullable=False, index=True)  # doctor, operator, admin
    password_hash = Column(String(255), nullable=False)
    phone_number = Column(String(50), nullable=True)
    medical_license_number = Column(String(100), nullable=True)
    profile_image_url = Column(String(500), nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=utc_now, nullable=False)
    updated_at = Column(DateTime, default=utc_now, onupdate=utc_now, nullable=False)

    specialties = relationship(
        "Specialty", secondary="doctor_specialties", lazy="selectin", viewonly=True
    )
    schedules = relationship("WorkerSchedule", back_populates="worker", cascade="all, delete-orphan")


class Specialty(Base):
    __tablename__ = "specialties"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), unique=True, nullable=False)
    display_name = Column(String(100), nullable=False)
    description = Column(Text, nullable=True)
    display_order = Column(Integer, default=0, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=utc_now, nullable=False)


class DoctorSpecialty(Base):
    __tablename__ = "doctor_specialties"
    __table_args__ = (UniqueConstraint("worker_id", "specialty_id", name="uq_doctor_specialty"),)

    id = Column(Integer, primary_key=True, index=True)
    worker_id = Column(Integer, ForeignKey("workers.id", ondelete="CASCADE"), nullable=False)
    specialty_id = Column(Integer, ForeignKey("specialties.id", ondelete="CASCADE"), nullable=False)
    created_at = Column(DateTime, default=utc_now, nullable=False)


class Qualification(Base):
    __tablename__ = "qualifications"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), unique=True, nullable=False)
    category = Column(String(50), nullable=True)
    description = Column(Text, nullable=True)
    created_at = Column(DateTime, default=utc_now, nullable=False)


class DoctorQualification(Base):
    __tablename__ = "doctor_qualifications"

    id = Column(Integer, primary_key=True, index=True)
    worker_id = Column(Integer, ForeignKey("workers.id", ondelete="CASCADE"), nullable=False)
    qualification_id = Column(
        Integer, ForeignKey("qualifications.id", ondelete="CASCADE"), nullable=False
    )
    certificate_number = Column(String(100), nullable=True)
    acquired_date = Column(DateTime, nullable=True)
    expiry_date = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=utc_now, nullable=False)


class Appointment(Base):
    __tablename__ = "appointments"

    id = Column(Integer, primary_key=True, index=True)
    patient_id = Column(Integer, ForeignKey("patients.id"), nullable=False, index=True)
    assigned_worker_id = Column(Integer, ForeignKey("workers.id"), nullable=True, index=True)
    scheduled_at = Column(DateTime, nullable=False, index=True)  # UTC
    status = Column(String(20), default="scheduled", nullable=False, index=True)
    chief_complaint = Column(Text, nullable=True)
    meeting_id = Column(String(255), nullable=True)
    appointment_type = Column(String(20), default="initial", nullable=False)
    duration_minutes = Column(Integer, default=30, nullable=False)
    started_at = Column(DateTime, nullable=True)
    ended_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=utc_now, nullable=False)
    updated_at = Column(DateTime, default=utc_now, onupdate=utc_now, nullable=False)

    patient = relationship("Patient", back_populates="appointments")
    doctor = relationship("Worker", foreign_keys=[assigned_worker_id])
    questionnaire = relationship("Questionnaire", back_populates="appointment", uselist=False)
    medical_record = relationship("MedicalRecord", back_populates="appointment", uselist=False)


class Questionnaire(Base):
    __tablename__ = "questionnaires"

    id = Column(Integer, primary_key=True, index=True)
    appointment_id = Column(Integer, ForeignKey("appointments.id"), unique=True, nullable=False)
    questions_answers = Column(JSON, default=dict, nullable=False)
    ai_summary = Column(Text, nullable=True)
    urgency_level = Column(String(20), nullable=True)  # low, medium, high, critical
    completed_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=utc_now, nullable=False)
    updated_at = Column(DateTime, default=utc_now, onupdate=utc_now, nullable=False)

    appointment = relationship("Appointment", back_populates="questionnaire")


class MedicalRecord(Base):
    __tablename__ = "medical_records"

    id = Column(Integer, primary_key=True, index=True)
    appointment_id = Column(Integer, ForeignKey("appointments.id"), unique=True, nullable=False)
    # SOAP note
    subjective = Column(Text, nullable=True)
    objective = Column(Text, nullable=True)
    assessment = Column(Text, nullable=True)
    plan = Column(Text, nullable=True)
    # {"temperature", "bloodPressure": {"systolic", "diastolic"}, "pulse", ...}
    vital_signs = Column(JSON, default=dict)
    # [{"name", "genericName", "dosage", "frequency", "duration", "instructions"}]
    prescriptions = Column(JSON, default=list)
    ai_summary = Column(JSON, nullable=True)
    created_at = Column(DateTime, default=utc_now, nullable=False)
    updated_at = Column(DateTime, default=utc_now, onupdate=utc_now, nullable=False)

    appointment = relationship("Appointment", back_populates="medical_record")


class WorkerSchedule(Base):
    __tablename__ = "worker_schedules"

    id = Column(Integer, primary_key=True, index=True)
    worker_id = Column(Integer, ForeignKey("workers.id", ondelete="CASCADE"), nullable=False, index=True)
    schedule_date = Column(DateTime, nullable=False, index=True)  # UTC instant of JST midnight
    start_time = Column(String(5), nullable=False)  # HH:MM JST
    end_time = Column(String(5), nullable=False)  # HH:MM JST
    status = Column(String(20), default="available", nullable=False)
    max_appointments = Column(Integer, default=10, nullable=False)
    created_at = Column(DateTime, default=utc_now, nullable=False)
    updated_at = Column(DateTime, default=utc_now, onupdate=utc_now, nullable=False)

    worker = relationship("Worker", back_populates="schedules")


class ChatMessage(Base):
    __tablename__ = "chat_messages"

    id = Column(Integer, primary_key=True, index=True)
    appointment_id = Column(Integer, ForeignKey("appointments.id"), nullable=False, index=True)
    # Exactly one of patient_id / worker_id is set: the sender
    patient_id = Column(Integer, ForeignKey("patients.id"), nullable=True)
    worker_id = Column(Integer, ForeignKey("workers.id"), nullable=True)
    message_type = Column(String(20), default="text", nullable=False)
    content = Column(Text, nullable=False)
    sent_at = Column(DateTime, default=utc_now, nullable=False)
    read_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=utc_now, nullable=False)

    patient = relationship("Patient")
    worker = relationship("Worker")


class VideoSession(Base):
    __tablename__ = "video_sessions"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    appointment_id = Column(Integer, ForeignKey("appointments.id"), nullable=False, index=True)
    realtime_session_id = Column(String(255), nullable=True)
    status = Column(String(20), default="scheduled", nullable=False)
    recording_url = Column(String(500), nullable=True)
    participants = Column(JSON, default=list)
    started_at = Column(DateTime, nullable=True)
    ended_at = Column(DateTime, nullable=True)
    end_reason = Column(String(20), nullable=True)  # completed, timeout, error, cancelled
    session_metrics = Column(JSON, nullable=True)
    created_at = Column(DateTime, default=utc_now, nullable=False)
    updated_at = Column(DateTime, default=utc_now, onupdate=utc_now, nullable=False)

    participant_rows = relationship(
        "SessionParticipant", back_populates="session", cascade="all, delete-orphan"
    )


class SessionParticipant(Base):
    __tablename__ = "session_participants"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    video_session_id = Column(String(36), ForeignKey("video_sessions.id"), nullable=False, index=True)
    user_type = Column(String(20), nullable=False)  # patient, worker
    user_id = Column(Integer, nullable=False)
    role = Column(String(20), nullable=True)
    joined_at = Column(DateTime, default=utc_now, nullable=False)
    left_at = Column(DateTime, nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)

    session = relationship("VideoSession", back_populates="participant_rows")


class SessionEvent(Base):
    __tablename__ = "session_events"

    id = Column(Integer, primary_key=True, index=True)
    video_session_id = Column(String(36), ForeignKey("video_sessions.id"), nullable=False, index=True)
    event_type = Column(String(50), nullable=False)
    user_id = Column(Integer, nullable=True)
    user_type = Column(String(20), nullable=True)
    payload = Column(JSON, nullable=True)
    created_at = Column(DateTime, default=utc_now, nullable=False)


class SmartwatchData(Base):
    __tablename__ = "smartwatch_data"

    id = Column(Integer, primary_key=True, index=True)
    patient_id = Column(Integer, ForeignKey("patients.id"), nullable=False, index=True)
    device_type = Column(String(50), nullable=False)
    device_id = Column(String(255), nullable=True)
    data_type = Column(String(50), nullable=False)
    data = Column(JSON, nullable=False)
    recorded_at = Column(DateTime, nullable=False, index=True)
    synced_at = Column(DateTime, default=utc_now, nullable=False)
    created_at = Column(DateTime, default=utc_now, nullable=False)


class PatientPersonality(Base):
    __tablename__ = "patient_personalities"

    id = Column(Integer, primary_key=True, index=True)
    patient_id = Column(Integer, ForeignKey("patients.id"), unique=True, nullable=False)
    personality_data = Column(JSON, nullable=False)
    confidence_score = Column(Float, nullable=True)
    last_updated = Column(DateTime, default=utc_now, nullable=False)
    created_at = Column(DateTime, default=utc_now, nullable=False)


class AIFeedback(Base):
    __tablename__ = "ai_feedbacks"

    id = Column(Integer, primary_key=True, index=True)
    patient_id = Column(Integer, ForeignKey("patients.id"), nullable=False, index=True)
    feedback_data = Column(JSON, nullable=False)
    trigger_type = Column(String(50), nullable=False)
    trigger_data = Column(JSON, nullable=True)
    is_read = Column(Boolean, default=False, nullable=False)
    is_actioned = Column(Boolean, default=False, nullable=False)
    scheduled_for = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=utc_now, nullable=False)


class PatientHealthGoal(Base):
    __tablename__ = "patient_health_goals"

    id = Column(Integer, primary_key=True, index=True)
    patient_id = Column(Integer, ForeignKey("patients.id"), nullable=False, index=True)
    goal_type = Column(String(50), nullable=False)
    target_value = Column(String(100), nullable=False)
    unit = Column(String(50), nullable=False)
    timeframe = Column(String(50), nullable=False)
    start_date = Column(DateTime, default=utc_now, nullable=False)
    target_date = Column(DateTime, nullable=True)
    status = Column(String(20), default="active", nullable=False)
    progress = Column(JSON, nullable=True)
    created_at = Column(DateTime, default=utc_now, nullable=False)
    updated_at = Column(DateTime, default=utc_now, onupdate=utc_now, nullable=False)

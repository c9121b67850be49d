"""API tests for patient booking, slot availability and doctor views."""

from datetime import timedelta

from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from conftest import make_appointment, make_schedule
from telemed.models import AIFeedback, Appointment, ChatMessage, Patient, Worker
from telemed.utils.timezone import get_current_jst_date, jst_to_utc, utc_now

BOOKING_DATE = "2030-04-15"


def booking(doctor: Worker, start: str = "10:00", end: str = "10:30", **extra) -> dict:
    return {
        "doctorId": doctor.id,
        "appointmentDate": BOOKING_DATE,
        "startTime": start,
        "endTime": end,
        **extra,
    }


class TestAvailableSlots:
    """Tests for GET /api/patient/appointments/available-slots."""

    def test_slots_follow_schedule_and_bookings(
        self, client: TestClient, db: Session, patient: Patient, doctor: Worker, patient_headers: dict
    ) -> None:
        """Test that booked slots are marked unavailable."""
        make_schedule(db, doctor, BOOKING_DATE, "09:00", "11:00")
        make_appointment(db, patient, doctor, BOOKING_DATE, "09:30")

        response = client.get(
            "/api/patient/appointments/available-slots",
            params={"date": BOOKING_DATE},
            headers=patient_headers,
        )

        assert response.status_code == 200
        slots = response.json()["slots"]
        assert len(slots) == 1
        assert slots[0]["doctorName"] == "Dr. Suzuki"
        assert slots[0]["specialty"] == "Internal Medicine"
        availability = {s["startTime"]: s["available"] for s in slots[0]["timeSlots"]}
        assert availability == {"09:00": True, "09:30": False, "10:00": True, "10:30": True}

    def test_cancelled_appointments_free_the_slot(
        self, client: TestClient, db: Session, patient: Patient, doctor: Worker, patient_headers: dict
    ) -> None:
        """Test that only active statuses block a slot."""
        make_schedule(db, doctor, BOOKING_DATE, "09:00", "10:00")
        make_appointment(db, patient, doctor, BOOKING_DATE, "09:00", status="cancelled")

        response = client.get(
            "/api/patient/appointments/available-slots",
            params={"date": BOOKING_DATE},
            headers=patient_headers,
        )

        assert all(s["available"] for s in response.json()["slots"][0]["timeSlots"])

    def test_specialty_filter(
        self,
        client: TestClient,
        db: Session,
        doctor: Worker,
        other_doctor: Worker,
        patient_headers: dict,
    ) -> None:
        """Test filtering doctors by specialty name."""
        make_schedule(db, doctor, BOOKING_DATE)
        make_schedule(db, other_doctor, BOOKING_DATE)

        response = client.get(
            "/api/patient/appointments/available-slots",
            params={"date": BOOKING_DATE, "specialty": "internal_medicine"},
            headers=patient_headers,
        )

        assert [s["doctorId"] for s in response.json()["slots"]] == [doctor.id]

    def test_doctor_without_schedule_is_omitted(
        self, client: TestClient, doctor: Worker, patient_headers: dict
    ) -> None:
        """Test that doctors with no schedule that day are skipped."""
        response = client.get(
            "/api/patient/appointments/available-slots",
            params={"date": BOOKING_DATE},
            headers=patient_headers,
        )

        assert response.json()["slots"] == []

    def test_missing_date_is_400(self, client: TestClient, patient_headers: dict) -> None:
        """Test that the date parameter is required."""
        response = client.get("/api/patient/appointments/available-slots", headers=patient_headers)

        assert response.status_code == 400

    def test_workers_cannot_use_patient_routes(self, client: TestClient, doctor_headers: dict) -> None:
        """Test that patient routes reject worker tokens."""
        response = client.get(
            "/api/patient/appointments/available-slots",
            params={"date": BOOKING_DATE},
            headers=doctor_headers,
        )

        assert response.status_code == 403


class TestBooking:
    """Tests for POST /api/patient/appointments."""

    def test_book_appointment_stores_utc(
        self, client: TestClient, db: Session, doctor: Worker, patient_headers: dict
    ) -> None:
        """Test that JST input is stored as UTC and echoed back as JST."""
        response = client.post(
            "/api/patient/appointments",
            headers=patient_headers,
            json=booking(doctor, chiefComplaint="<script>x</script>Sore throat"),
        )

        assert response.status_code == 201
        data = response.json()["appointment"]
        assert data["scheduledAt"] == "2030-04-15T01:00:00Z"
        assert data["date"] == BOOKING_DATE
        assert data["startTime"] == "10:00"
        assert data["durationMinutes"] == 30
        assert data["status"] == "scheduled"
        assert "<script>" not in data["chiefComplaint"]

        stored = db.query(Appointment).one()
        assert stored.scheduled_at == jst_to_utc(BOOKING_DATE, "10:00")

    def test_overlapping_booking_is_409(
        self,
        client: TestClient,
        db: Session,
        other_patient: Patient,
        doctor: Worker,
        patient_headers: dict,
    ) -> None:
        """Test that the server rejects double booking."""
        existing = make_appointment(db, other_patient, doctor, BOOKING_DATE, "10:00", duration_minutes=60)

        response = client.post(
            "/api/patient/appointments", headers=patient_headers, json=booking(doctor, "10:30", "11:00")
        )

        assert response.status_code == 409
        assert response.json()["detail"]["conflictingAppointmentId"] == existing.id

    def test_adjacent_booking_is_allowed(
        self,
        client: TestClient,
        db: Session,
        other_patient: Patient,
        doctor: Worker,
        patient_headers: dict,
    ) -> None:
        """Test that back-to-back appointments do not conflict."""
        make_appointment(db, other_patient, doctor, BOOKING_DATE, "09:30")

        response = client.post(
            "/api/patient/appointments", headers=patient_headers, json=booking(doctor, "10:00", "10:30")
        )

        assert response.status_code == 201

    def test_second_identical_booking_conflicts(
        self, client: TestClient, doctor: Worker, patient_headers: dict, other_patient_headers: dict
    ) -> None:
        """Test that the same slot cannot be booked twice."""
        first = client.post("/api/patient/appointments", headers=patient_headers, json=booking(doctor))
        second = client.post("/api/patient/appointments", headers=other_patient_headers, json=booking(doctor))

        assert first.status_code == 201
        assert second.status_code == 409

    def test_missing_fields_is_400(self, client: TestClient, doctor: Worker, patient_headers: dict) -> None:
        """Test that required booking fields are validated by the service."""
        response = client.post(
            "/api/patient/appointments",
            headers=patient_headers,
            json={"doctorId": doctor.id, "appointmentDate": BOOKING_DATE},
        )

        assert response.status_code == 400

    def test_end_before_start_is_400(self, client: TestClient, doctor: Worker, patient_headers: dict) -> None:
        """Test that inverted time ranges are rejected."""
        response = client.post(
            "/api/patient/appointments", headers=patient_headers, json=booking(doctor, "11:00", "10:00")
        )

        assert response.status_code == 400

    def test_unknown_doctor_is_404(self, client: TestClient, patient_headers: dict, operator: Worker) -> None:
        """Test that only doctors can be booked."""
        response = client.post(
            "/api/patient/appointments",
            headers=patient_headers,
            json={**booking(operator), "doctorId": operator.id},
        )

        assert response.status_code == 404

    def test_invalid_appointment_type_is_422(
        self, client: TestClient, doctor: Worker, patient_headers: dict
    ) -> None:
        """Test the appointmentType enumeration."""
        response = client.post(
            "/api/patient/appointments",
            headers=patient_headers,
            json=booking(doctor, appointmentType="walk_in"),
        )

        assert response.status_code == 422


class TestPatientAppointments:
    """Tests for listing, check-in and cancellation."""

    def test_list_is_paginated_newest_first(
        self, client: TestClient, db: Session, patient: Patient, doctor: Worker, patient_headers: dict
    ) -> None:
        """Test pagination and ordering."""
        for time in ("09:00", "10:00", "11:00"):
            make_appointment(db, patient, doctor, BOOKING_DATE, time)

        response = client.get(
            "/api/patient/appointments", params={"page": 1, "limit": 2}, headers=patient_headers
        )

        body = response.json()
        assert [a["startTime"] for a in body["appointments"]] == ["11:00", "10:00"]
        assert body["pagination"] == {"page": 1, "limit": 2, "total": 3, "totalPages": 2}
        assert body["appointments"][0]["doctor"]["name"] == "Dr. Suzuki"

    def test_list_only_shows_own_appointments(
        self,
        client: TestClient,
        db: Session,
        other_patient: Patient,
        doctor: Worker,
        patient_headers: dict,
    ) -> None:
        """Test that patients only see their own appointments."""
        make_appointment(db, other_patient, doctor, BOOKING_DATE, "09:00")

        response = client.get("/api/patient/appointments", headers=patient_headers)

        assert response.json()["appointments"] == []

    def test_check_in_moves_to_waiting(
        self, client: TestClient, db: Session, patient: Patient, doctor: Worker, patient_headers: dict
    ) -> None:
        """Test that check-in puts the patient in the waiting queue."""
        appointment = make_appointment(db, patient, doctor, BOOKING_DATE, "09:00")

        response = client.post(f"/api/patient/appointments/{appointment.id}/check-in", headers=patient_headers)

        assert response.status_code == 200
        assert response.json()["appointment"]["status"] == "waiting"

    def test_check_in_twice_is_400(
        self, client: TestClient, db: Session, patient: Patient, doctor: Worker, patient_headers: dict
    ) -> None:
        """Test that only scheduled appointments can be checked into."""
        appointment = make_appointment(db, patient, doctor, BOOKING_DATE, "09:00", status="waiting")

        response = client.post(f"/api/patient/appointments/{appointment.id}/check-in", headers=patient_headers)

        assert response.status_code == 400

    def test_cancel_other_patients_appointment_is_403(
        self,
        client: TestClient,
        db: Session,
        other_patient: Patient,
        doctor: Worker,
        patient_headers: dict,
    ) -> None:
        """Test ownership on cancellation."""
        appointment = make_appointment(db, other_patient, doctor, BOOKING_DATE, "09:00")

        response = client.post(f"/api/patient/appointments/{appointment.id}/cancel", headers=patient_headers)

        assert response.status_code == 403

    def test_cancel_completed_is_400(
        self, client: TestClient, db: Session, patient: Patient, doctor: Worker, patient_headers: dict
    ) -> None:
        """Test that completed appointments cannot be cancelled."""
        appointment = make_appointment(db, patient, doctor, BOOKING_DATE, "09:00", status="completed")

        response = client.post(f"/api/patient/appointments/{appointment.id}/cancel", headers=patient_headers)

        assert response.status_code == 400

    def test_cancel_frees_slot(
        self, client: TestClient, db: Session, patient: Patient, doctor: Worker, patient_headers: dict
    ) -> None:
        """Test that a cancelled slot can be rebooked."""
        appointment = make_appointment(db, patient, doctor, BOOKING_DATE, "10:00")

        client.post(f"/api/patient/appointments/{appointment.id}/cancel", headers=patient_headers)
        response = client.post("/api/patient/appointments", headers=patient_headers, json=booking(doctor))

        assert response.status_code == 201


class TestNotifications:
    """Tests for GET /api/patient/notifications."""

    def test_collects_reminders_messages_and_feedback(
        self, client: TestClient, db: Session, patient: Patient, doctor: Worker, patient_headers: dict
    ) -> None:
        """Test that all three notification sources are merged."""
        upcoming = Appointment(
            patient_id=patient.id,
            assigned_worker_id=doctor.id,
            scheduled_at=utc_now() + timedelta(hours=3),
            status="scheduled",
            duration_minutes=30,
            appointment_type="initial",
        )
        db.add(upcoming)
        db.commit()
        db.add(ChatMessage(appointment_id=upcoming.id, worker_id=doctor.id, content="Please fast beforehand"))
        db.add(
            AIFeedback(
                patient_id=patient.id,
                feedback_data={"content": "Great progress!"},
                trigger_type="manual",
            )
        )
        db.commit()

        response = client.get("/api/patient/notifications", headers=patient_headers)

        body = response.json()
        assert body["unreadCount"] == 3
        assert {n["type"] for n in body["notifications"]} == {
            "appointment_reminder",
            "new_message",
            "ai_feedback",
        }


class TestDoctorViews:
    """Tests for the doctor-facing appointment endpoints."""

    def test_doctor_appointments_by_date(
        self, client: TestClient, db: Session, patient: Patient, doctor: Worker, doctor_headers: dict
    ) -> None:
        """Test the JST day filter."""
        make_appointment(db, patient, doctor, BOOKING_DATE, "08:00")
        make_appointment(db, patient, doctor, "2030-04-16", "08:00")

        response = client.get(
            "/api/worker/doctor/appointments", params={"date": BOOKING_DATE}, headers=doctor_headers
        )

        appointments = response.json()["appointments"]
        assert len(appointments) == 1
        assert appointments[0]["date"] == BOOKING_DATE
        assert appointments[0]["patient"]["name"] == "Hanako Sato"

    def test_operator_cannot_use_doctor_routes(self, client: TestClient, operator_headers: dict) -> None:
        """Test the doctor role requirement."""
        response = client.get("/api/worker/doctor/appointments", headers=operator_headers)

        assert response.status_code == 403

    def test_statistics(
        self, client: TestClient, db: Session, patient: Patient, doctor: Worker, doctor_headers: dict
    ) -> None:
        """Test today's counts and the complaint ranking."""
        today = get_current_jst_date()
        make_appointment(db, patient, doctor, today, "00:00", status="completed", chief_complaint="Cough")
        make_appointment(db, patient, doctor, today, "00:30", status="scheduled", chief_complaint="Cough")
        make_appointment(db, patient, doctor, today, "01:00", status="cancelled", chief_complaint="Fever")

        response = client.get("/api/worker/doctor/statistics", headers=doctor_headers)

        stats = response.json()
        assert stats["today"]["total"] == 3
        assert stats["today"]["completed"] == 1
        assert stats["today"]["upcoming"] == 1
        assert stats["thisMonth"]["cancelled"] == 1
        assert stats["appointmentTypes"] == {"initial": 3}
        assert stats["commonChiefComplaints"][0] == {"complaint": "Cough", "count": 2}

    def test_appointment_details_include_questionnaire(
        self, client: TestClient, db: Session, patient: Patient, doctor: Worker, operator_headers: dict
    ) -> None:
        """Test the worker appointment detail view."""
        appointment = make_appointment(db, patient, doctor, BOOKING_DATE, "09:00")

        response = client.get(f"/api/worker/appointments/{appointment.id}/details", headers=operator_headers)

        data = response.json()["appointment"]
        assert data["patient"]["email"] == patient.email
        assert data["doctor"]["name"] == "Dr. Suzuki"
        assert data["questionnaire"] is None

    def test_details_missing_is_404(self, client: TestClient, operator_headers: dict) -> None:
        """Test unknown appointments."""
        response = client.get("/api/worker/appointments/999/details", headers=operator_headers)

        assert response.status_code == 404

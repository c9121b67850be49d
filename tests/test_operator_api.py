"""API tests for the operator console: dashboard, board, assignment and appointment management."""

from datetime import timedelta

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from conftest import make_appointment
from telemed.models import Appointment, Patient, Worker
from telemed.utils.timezone import utc_now

DATE = "2030-04-15"


def make_waiting_now(db: Session, patient: Patient, minutes_ago: int) -> Appointment:
    appointment = Appointment(
        patient_id=patient.id,
        scheduled_at=utc_now() - timedelta(minutes=minutes_ago),
        status="waiting",
        duration_minutes=30,
        appointment_type="initial",
        chief_complaint="Fever",
    )
    db.add(appointment)
    db.commit()
    db.refresh(appointment)
    return appointment


class TestDashboard:
    """Tests for the live operator views."""

    def test_dashboard_doctor_statuses(
        self,
        client: TestClient,
        db: Session,
        patient: Patient,
        doctor: Worker,
        other_doctor: Worker,
        operator_headers: dict,
    ) -> None:
        """Test that a doctor in consultation is reported busy."""
        make_appointment(db, patient, doctor, DATE, "09:00", status="in_progress")

        response = client.get("/api/worker/operator/dashboard", headers=operator_headers)

        assert response.status_code == 200
        body = response.json()
        statuses = {d["name"]: d["status"] for d in body["doctors"]}
        assert statuses == {"Dr. Suzuki": "busy", "Dr. Tanaka": "available"}
        assert body["statistics"]["totalDoctors"] == 2
        assert body["statistics"]["availableDoctors"] == 1
        assert len(body["hourlyStats"]) == 24

    def test_realtime_status_wait_times(
        self, client: TestClient, db: Session, patient: Patient, other_patient: Patient, operator_headers: dict
    ) -> None:
        """Test the waiting count and average wait."""
        make_waiting_now(db, patient, 20)
        make_waiting_now(db, other_patient, 40)

        response = client.get("/api/worker/operator/realtime-status", headers=operator_headers)

        status = response.json()["status"]
        assert status["waitingCount"] == 2
        assert status["averageWaitTime"] in (30, 31)
        assert status["longestWaitTime"] in (40, 41)
        assert len(response.json()["recentEvents"]) == 2

    def test_completing_through_update_counts_today(
        self, client: TestClient, db: Session, patient: Patient, operator_headers: dict
    ) -> None:
        """Test that a consultation finished via PUT shows up in realtime status."""
        appointment = make_waiting_now(db, patient, 10)
        path = f"/api/worker/operator/appointments/{appointment.id}"

        started = client.put(path, headers=operator_headers, json={"status": "in_progress"}).json()["appointment"]
        completed = client.put(path, headers=operator_headers, json={"status": "completed"}).json()["appointment"]

        assert started["startedAt"] and started["endedAt"] is None
        assert completed["startedAt"] == started["startedAt"]
        assert completed["endedAt"]
        body = client.get("/api/worker/operator/realtime-status", headers=operator_headers).json()
        assert body["status"]["completedToday"] == 1
        assert [(e["id"], e["type"]) for e in body["recentEvents"]] == [(appointment.id, "completed")]

    def test_early_arrivals_wait_zero(
        self, client: TestClient, db: Session, patient: Patient, operator_headers: dict
    ) -> None:
        """Test that waits are never negative."""
        make_waiting_now(db, patient, -60)

        response = client.get("/api/worker/operator/realtime-status", headers=operator_headers)

        assert response.json()["status"]["longestWaitTime"] == 0

    def test_admin_can_use_console(self, client: TestClient, admin_headers: dict) -> None:
        """Test that admins have operator access."""
        assert client.get("/api/worker/operator/dashboard", headers=admin_headers).status_code == 200

    @pytest.mark.parametrize("path", ["dashboard", "realtime-status", "assignment-board"])
    def test_doctor_is_forbidden(self, client: TestClient, doctor_headers: dict, path: str) -> None:
        """Test that doctors cannot open the console."""
        response = client.get(f"/api/worker/operator/{path}", headers=doctor_headers)

        assert response.status_code == 403


class TestAssignmentBoard:
    """Tests for the board and doctor assignment."""

    def test_board_for_date(
        self,
        client: TestClient,
        db: Session,
        patient: Patient,
        other_patient: Patient,
        doctor: Worker,
        operator_headers: dict,
    ) -> None:
        """Test waiting patients and placed appointments on the board."""
        waiting = make_appointment(db, patient, None, DATE, "08:00", status="waiting")
        placed = make_appointment(db, other_patient, doctor, DATE, "10:30", status="assigned")

        response = client.get(f"/api/worker/operator/assignment-board?date={DATE}", headers=operator_headers)

        board = response.json()
        assert board["date"] == DATE
        assert [p["appointmentId"] for p in board["waitingPatients"]] == [waiting.id]
        assert board["assignments"][str(doctor.id)]["10:30"]["appointmentId"] == placed.id
        assert board["doctors"][0]["specialty"] == "Internal Medicine"
        assert "09:00" in board["timeSlots"]

    def test_invalid_board_date_is_400(self, client: TestClient, operator_headers: dict) -> None:
        """Test malformed board dates."""
        response = client.get("/api/worker/operator/assignment-board?date=2030/04/15", headers=operator_headers)

        assert response.status_code == 400

    def test_assign_doctor(
        self, client: TestClient, db: Session, patient: Patient, doctor: Worker, operator_headers: dict
    ) -> None:
        """Test dropping a waiting patient onto a JST slot."""
        appointment = make_appointment(db, patient, None, DATE, "08:00", status="waiting")

        response = client.post(
            "/api/worker/operator/assign-doctor",
            headers=operator_headers,
            json={"appointmentId": appointment.id, "doctorId": doctor.id, "timeSlot": "10:00"},
        )

        assert response.status_code == 200
        assignment = response.json()["assignment"]
        assert assignment["status"] == "assigned"
        assert assignment["date"] == DATE
        assert assignment["scheduledAt"] == "2030-04-15T01:00:00Z"

    def test_assign_into_taken_slot_is_409(
        self,
        client: TestClient,
        db: Session,
        patient: Patient,
        other_patient: Patient,
        doctor: Worker,
        operator_headers: dict,
    ) -> None:
        """Test that an overlapping slot is refused with the conflicting appointment."""
        taken = make_appointment(db, other_patient, doctor, DATE, "10:00", status="assigned")
        appointment = make_appointment(db, patient, None, DATE, "08:00", status="waiting")

        response = client.post(
            "/api/worker/operator/assign-doctor",
            headers=operator_headers,
            json={"appointmentId": appointment.id, "doctorId": doctor.id, "timeSlot": "10:15", "date": DATE},
        )

        assert response.status_code == 409
        assert response.json()["detail"]["conflictingAppointmentId"] == taken.id
        db.refresh(appointment)
        assert appointment.status == "waiting"

    def test_cancelled_appointments_do_not_block(
        self,
        client: TestClient,
        db: Session,
        patient: Patient,
        other_patient: Patient,
        doctor: Worker,
        operator_headers: dict,
    ) -> None:
        """Test that only active appointments occupy a slot."""
        make_appointment(db, other_patient, doctor, DATE, "10:00", status="cancelled")
        appointment = make_appointment(db, patient, None, DATE, "08:00", status="waiting")

        response = client.post(
            "/api/worker/operator/assign-doctor",
            headers=operator_headers,
            json={"appointmentId": appointment.id, "doctorId": doctor.id, "timeSlot": "10:00"},
        )

        assert response.status_code == 200

    def test_inactive_doctor_is_400(
        self, client: TestClient, db: Session, patient: Patient, doctor: Worker, operator_headers: dict
    ) -> None:
        """Test that inactive doctors cannot take patients."""
        doctor.is_active = False
        db.commit()
        appointment = make_appointment(db, patient, None, DATE, "08:00", status="waiting")

        response = client.post(
            "/api/worker/operator/assign-doctor",
            headers=operator_headers,
            json={"appointmentId": appointment.id, "doctorId": doctor.id, "timeSlot": "10:00"},
        )

        assert response.status_code == 400

    def test_completed_appointment_cannot_be_assigned(
        self, client: TestClient, db: Session, patient: Patient, doctor: Worker, operator_headers: dict
    ) -> None:
        """Test that finished appointments are not reassigned."""
        appointment = make_appointment(db, patient, doctor, DATE, "08:00", status="completed")

        response = client.post(
            "/api/worker/operator/assign-doctor",
            headers=operator_headers,
            json={"appointmentId": appointment.id, "doctorId": doctor.id, "timeSlot": "10:00"},
        )

        assert response.status_code == 400

    @pytest.mark.parametrize(
        "body",
        [
            {"doctorId": 1, "timeSlot": "10:00"},
            {"appointmentId": 1, "doctorId": 1, "timeSlot": "10am"},
        ],
    )
    def test_bad_assign_body_is_400(self, client: TestClient, operator_headers: dict, body: dict) -> None:
        """Test missing fields and malformed slots."""
        response = client.post("/api/worker/operator/assign-doctor", headers=operator_headers, json=body)

        assert response.status_code == 400

    def test_unknown_appointment_is_404(self, client: TestClient, doctor: Worker, operator_headers: dict) -> None:
        """Test unknown appointment ids."""
        response = client.post(
            "/api/worker/operator/assign-doctor",
            headers=operator_headers,
            json={"appointmentId": 999, "doctorId": doctor.id, "timeSlot": "10:00"},
        )

        assert response.status_code == 404


@pytest.mark.parametrize("prefix", ["/api/worker/operator/appointments", "/api/worker/appointments"])
class TestOperatorAppointments:
    """Tests for appointment management under both route prefixes."""

    def test_list_with_filters(
        self,
        client: TestClient,
        db: Session,
        patient: Patient,
        doctor: Worker,
        operator_headers: dict,
        prefix: str,
    ) -> None:
        """Test filtering by status and JST date."""
        scheduled = make_appointment(db, patient, doctor, DATE, "09:00")
        make_appointment(db, patient, doctor, DATE, "11:00", status="cancelled")
        make_appointment(db, patient, doctor, "2030-04-16", "09:00")

        response = client.get(f"{prefix}?status=scheduled&date={DATE}", headers=operator_headers)

        body = response.json()
        assert body["total"] == 1
        assert body["appointments"][0]["id"] == scheduled.id

    def test_partial_update(
        self,
        client: TestClient,
        db: Session,
        patient: Patient,
        doctor: Worker,
        operator_headers: dict,
        prefix: str,
    ) -> None:
        """Test updating only the fields sent."""
        appointment = make_appointment(db, patient, doctor, DATE, "09:00")

        response = client.put(
            f"{prefix}/{appointment.id}",
            headers=operator_headers,
            json={"chiefComplaint": "Dizziness", "durationMinutes": 45},
        )

        data = response.json()["appointment"]
        assert data["chiefComplaint"] == "Dizziness"
        assert data["durationMinutes"] == 45
        assert data["status"] == "scheduled"

    def test_update_rejects_overlap(
        self,
        client: TestClient,
        db: Session,
        patient: Patient,
        other_patient: Patient,
        doctor: Worker,
        operator_headers: dict,
        prefix: str,
    ) -> None:
        """Test that moving an appointment onto a busy slot is a 409."""
        taken = make_appointment(db, other_patient, doctor, DATE, "10:00")
        appointment = make_appointment(db, patient, doctor, DATE, "09:00")

        response = client.put(
            f"{prefix}/{appointment.id}",
            headers=operator_headers,
            json={"scheduledAt": "2030-04-15T01:15:00Z"},
        )

        assert response.status_code == 409
        assert response.json()["detail"]["conflictingAppointmentId"] == taken.id

    def test_update_to_inactive_doctor_is_400(
        self,
        client: TestClient,
        db: Session,
        patient: Patient,
        doctor: Worker,
        other_doctor: Worker,
        operator_headers: dict,
        prefix: str,
    ) -> None:
        """Test that updates cannot hand a patient to an inactive doctor."""
        other_doctor.is_active = False
        db.commit()
        appointment = make_appointment(db, patient, doctor, DATE, "09:00")

        response = client.put(
            f"{prefix}/{appointment.id}",
            headers=operator_headers,
            json={"assignedWorkerId": other_doctor.id, "status": "assigned"},
        )

        assert response.status_code == 400
        db.refresh(appointment)
        assert appointment.assigned_worker_id == doctor.id

    def test_update_to_unknown_doctor_is_404(
        self,
        client: TestClient,
        db: Session,
        patient: Patient,
        doctor: Worker,
        operator_headers: dict,
        prefix: str,
    ) -> None:
        """Test that the doctor is looked up even for inactive statuses."""
        appointment = make_appointment(db, patient, doctor, DATE, "09:00")

        response = client.put(
            f"{prefix}/{appointment.id}",
            headers=operator_headers,
            json={"assignedWorkerId": 999, "status": "cancelled"},
        )

        assert response.status_code == 404

    @pytest.mark.parametrize(
        "body",
        [{"status": "lost"}, {"durationMinutes": 1}, {"scheduledAt": "tomorrow"}],
    )
    def test_invalid_update_is_400(
        self,
        client: TestClient,
        db: Session,
        patient: Patient,
        doctor: Worker,
        operator_headers: dict,
        prefix: str,
        body: dict,
    ) -> None:
        """Test status, duration and datetime validation."""
        appointment = make_appointment(db, patient, doctor, DATE, "09:00")

        response = client.put(f"{prefix}/{appointment.id}", headers=operator_headers, json=body)

        assert response.status_code == 400

    def test_cancel(
        self,
        client: TestClient,
        db: Session,
        patient: Patient,
        doctor: Worker,
        operator_headers: dict,
        prefix: str,
    ) -> None:
        """Test cancelling once, then a second time."""
        appointment = make_appointment(db, patient, doctor, DATE, "09:00")

        first = client.delete(f"{prefix}/{appointment.id}", headers=operator_headers)
        second = client.delete(f"{prefix}/{appointment.id}", headers=operator_headers)

        assert first.json()["success"] is True
        assert second.status_code == 400

    def test_patient_is_forbidden(self, client: TestClient, patient_headers: dict, prefix: str) -> None:
        """Test that patients cannot manage appointments."""
        response = client.get(prefix, headers=patient_headers)

        assert response.status_code == 403

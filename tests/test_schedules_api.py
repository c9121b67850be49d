"""API tests for doctors managing their own schedules."""

from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from conftest import make_schedule
from telemed.models import Worker

DATE = "2030-04-15"


class TestDoctorSchedule:
    """Tests for /api/worker/doctor/schedule."""

    def test_create_and_list_by_date(self, client: TestClient, doctor_headers: dict) -> None:
        """Test adding a schedule and reading it back for its JST date."""
        created = client.post(
            "/api/worker/doctor/schedule",
            headers=doctor_headers,
            json={"date": DATE, "startTime": "09:00", "endTime": "17:00"},
        )

        assert created.status_code == 201
        schedule = created.json()
        assert schedule["date"] == DATE
        assert schedule["scheduleDate"] == "2030-04-14T15:00:00Z"
        assert schedule["maxAppointments"] == 10
        assert schedule["isAvailable"] is True

        listed = client.get(f"/api/worker/doctor/schedule?date={DATE}", headers=doctor_headers).json()
        assert [s["id"] for s in listed] == [schedule["id"]]

    def test_upcoming_without_date(
        self, client: TestClient, db: Session, doctor: Worker, doctor_headers: dict
    ) -> None:
        """Test that past schedules are left out of the default listing."""
        make_schedule(db, doctor, "2020-01-06")
        upcoming = make_schedule(db, doctor, DATE)

        listed = client.get("/api/worker/doctor/schedule", headers=doctor_headers).json()

        assert [s["id"] for s in listed] == [upcoming.id]

    def test_second_schedule_same_day_is_409(
        self, client: TestClient, db: Session, doctor: Worker, doctor_headers: dict
    ) -> None:
        """Test one schedule per doctor per date."""
        make_schedule(db, doctor, DATE)

        response = client.post(
            "/api/worker/doctor/schedule",
            headers=doctor_headers,
            json={"date": DATE, "startTime": "13:00", "endTime": "15:00"},
        )

        assert response.status_code == 409

    def test_invalid_windows_are_400(self, client: TestClient, doctor_headers: dict) -> None:
        """Test malformed dates, times and reversed windows."""
        bodies = [
            {"date": "15/04/2030", "startTime": "09:00", "endTime": "17:00"},
            {"date": DATE, "startTime": "9am", "endTime": "17:00"},
            {"date": DATE, "startTime": "17:00", "endTime": "09:00"},
            {"date": DATE, "startTime": "09:00"},
        ]

        for body in bodies:
            response = client.post("/api/worker/doctor/schedule", headers=doctor_headers, json=body)
            assert response.status_code == 400, body

    def test_update_own_schedule(
        self, client: TestClient, db: Session, doctor: Worker, doctor_headers: dict
    ) -> None:
        """Test moving a schedule window."""
        schedule = make_schedule(db, doctor, DATE)

        response = client.put(
            f"/api/worker/doctor/schedule/{schedule.id}",
            headers=doctor_headers,
            json={"date": DATE, "startTime": "10:00", "endTime": "14:00", "maxAppointments": 4},
        )

        assert response.status_code == 200
        assert response.json()["startTime"] == "10:00"
        assert response.json()["maxAppointments"] == 4

    def test_cannot_touch_other_doctors_schedule(
        self, client: TestClient, db: Session, other_doctor: Worker, doctor_headers: dict
    ) -> None:
        """Test schedule ownership on update and delete."""
        schedule = make_schedule(db, other_doctor, DATE)

        updated = client.put(
            f"/api/worker/doctor/schedule/{schedule.id}",
            headers=doctor_headers,
            json={"date": DATE, "startTime": "10:00", "endTime": "14:00"},
        )
        deleted = client.delete(f"/api/worker/doctor/schedule/{schedule.id}", headers=doctor_headers)

        assert updated.status_code == 403
        assert deleted.status_code == 403

    def test_delete_schedule(
        self, client: TestClient, db: Session, doctor: Worker, doctor_headers: dict
    ) -> None:
        """Test deleting an available schedule."""
        schedule = make_schedule(db, doctor, DATE)

        response = client.delete(f"/api/worker/doctor/schedule/{schedule.id}", headers=doctor_headers)

        assert response.status_code == 204
        listed = client.get(f"/api/worker/doctor/schedule?date={DATE}", headers=doctor_headers).json()
        assert listed == []

    def test_busy_schedule_cannot_be_deleted(
        self, client: TestClient, db: Session, doctor: Worker, doctor_headers: dict
    ) -> None:
        """Test that busy schedules are protected."""
        schedule = make_schedule(db, doctor, DATE, status="busy")

        response = client.delete(f"/api/worker/doctor/schedule/{schedule.id}", headers=doctor_headers)

        assert response.status_code == 400

    def test_missing_schedule_is_404(self, client: TestClient, doctor_headers: dict) -> None:
        """Test unknown schedule ids."""
        response = client.delete("/api/worker/doctor/schedule/999", headers=doctor_headers)

        assert response.status_code == 404

    def test_operator_is_forbidden(self, client: TestClient, operator_headers: dict) -> None:
        """Test that only doctors manage schedules."""
        response = client.get("/api/worker/doctor/schedule", headers=operator_headers)

        assert response.status_code == 403

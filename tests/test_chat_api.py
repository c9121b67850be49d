"""API tests for appointment chat threads."""

from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from conftest import auth_headers, make_appointment
from telemed.models import Patient, Worker

DATE = "2030-04-15"


def post_message(client: TestClient, headers: dict, appointment_id: int, content: str):
    return client.post(
        f"/api/chat/appointments/{appointment_id}/messages", headers=headers, json={"content": content}
    )


class TestChatMessages:
    """Tests for sending and reading messages."""

    def test_conversation_in_send_order(
        self,
        client: TestClient,
        db: Session,
        patient: Patient,
        doctor: Worker,
        patient_headers: dict,
        doctor_headers: dict,
    ) -> None:
        """Test a patient and doctor exchanging messages."""
        appointment = make_appointment(db, patient, doctor, DATE, "09:00")

        first = post_message(client, patient_headers, appointment.id, "I still have a fever")
        post_message(client, doctor_headers, appointment.id, "Please take your temperature again")

        assert first.status_code == 201
        assert first.json()["message"]["sender"] == {"type": "patient", "id": patient.id, "name": "Hanako Sato"}
        messages = client.get(
            f"/api/chat/appointments/{appointment.id}/messages", headers=patient_headers
        ).json()["messages"]
        assert [m["sender"]["type"] for m in messages] == ["patient", "worker"]
        assert messages[1]["sender"]["role"] == "doctor"

    def test_markup_is_stripped(
        self, client: TestClient, db: Session, patient: Patient, doctor: Worker, patient_headers: dict
    ) -> None:
        """Test that HTML is removed from message content."""
        appointment = make_appointment(db, patient, doctor, DATE, "09:00")

        response = post_message(client, patient_headers, appointment.id, "<b>Thank</b> you")

        assert response.json()["message"]["content"] == "Thank you"

    def test_empty_and_oversized_messages_are_400(
        self, client: TestClient, db: Session, patient: Patient, doctor: Worker, patient_headers: dict
    ) -> None:
        """Test content validation."""
        appointment = make_appointment(db, patient, doctor, DATE, "09:00")

        for content in ("   ", "<br>", "x" * 5001):
            assert post_message(client, patient_headers, appointment.id, content).status_code == 400

    def test_pagination_has_more(
        self, client: TestClient, db: Session, patient: Patient, doctor: Worker, patient_headers: dict
    ) -> None:
        """Test limit and offset."""
        appointment = make_appointment(db, patient, doctor, DATE, "09:00")
        for n in range(3):
            post_message(client, patient_headers, appointment.id, f"message {n}")

        page = client.get(
            f"/api/chat/appointments/{appointment.id}/messages?limit=2&offset=1", headers=patient_headers
        ).json()

        assert [m["content"] for m in page["messages"]] == ["message 1", "message 2"]
        assert page["hasMore"] is True


class TestChatAccess:
    """Tests for role-based conversation access."""

    def test_other_patient_is_403(
        self, client: TestClient, db: Session, other_patient: Patient, doctor: Worker, patient_headers: dict
    ) -> None:
        """Test that patients only see their own appointments."""
        appointment = make_appointment(db, other_patient, doctor, DATE, "09:00")

        response = client.get(f"/api/chat/appointments/{appointment.id}/messages", headers=patient_headers)

        assert response.status_code == 403

    def test_unassigned_doctor_is_403(
        self, client: TestClient, db: Session, patient: Patient, other_doctor: Worker, doctor_headers: dict
    ) -> None:
        """Test that doctors only see appointments assigned to them."""
        appointment = make_appointment(db, patient, other_doctor, DATE, "09:00")

        response = post_message(client, doctor_headers, appointment.id, "Hello")

        assert response.status_code == 403

    def test_operator_can_join_any_thread(
        self, client: TestClient, db: Session, patient: Patient, doctor: Worker, operator_headers: dict
    ) -> None:
        """Test that operators can message on any appointment."""
        appointment = make_appointment(db, patient, doctor, DATE, "09:00")

        response = post_message(client, operator_headers, appointment.id, "Your doctor will join shortly")

        assert response.status_code == 201
        assert response.json()["message"]["sender"]["role"] == "operator"

    def test_missing_appointment_is_404(self, client: TestClient, patient_headers: dict) -> None:
        """Test unknown appointment ids."""
        assert post_message(client, patient_headers, 999, "Hello").status_code == 404


class TestReadReceipts:
    """Tests for read marks and unread counts."""

    def test_unread_count_and_mark_read(
        self,
        client: TestClient,
        db: Session,
        patient: Patient,
        doctor: Worker,
        patient_headers: dict,
        doctor_headers: dict,
    ) -> None:
        """Test that the receiving side clears unread messages."""
        appointment = make_appointment(db, patient, doctor, DATE, "09:00")
        message_id = post_message(client, doctor_headers, appointment.id, "Results are ready").json()["message"]["id"]

        assert client.get("/api/chat/unread-count", headers=patient_headers).json() == {"unreadCount": 1}

        response = client.put(f"/api/chat/messages/{message_id}/read", headers=patient_headers)

        assert response.json()["success"] is True
        assert response.json()["readAt"]
        assert client.get("/api/chat/unread-count", headers=patient_headers).json() == {"unreadCount": 0}

    def test_sender_cannot_mark_own_message(
        self, client: TestClient, db: Session, patient: Patient, doctor: Worker, patient_headers: dict
    ) -> None:
        """Test that only the receiving side marks messages read."""
        appointment = make_appointment(db, patient, doctor, DATE, "09:00")
        message_id = post_message(client, patient_headers, appointment.id, "Hello").json()["message"]["id"]

        response = client.put(f"/api/chat/messages/{message_id}/read", headers=patient_headers)

        assert response.status_code == 403

    def test_doctor_unread_count_is_scoped(
        self,
        client: TestClient,
        db: Session,
        patient: Patient,
        other_patient: Patient,
        doctor: Worker,
        other_doctor: Worker,
        patient_headers: dict,
        doctor_headers: dict,
        operator_headers: dict,
    ) -> None:
        """Test that doctors count their own appointments and operators count all."""
        mine = make_appointment(db, patient, doctor, DATE, "09:00")
        post_message(client, patient_headers, mine.id, "Question about my dose")
        theirs = make_appointment(db, other_patient, other_doctor, DATE, "09:00")
        post_message(client, auth_headers(other_patient, "patient"), theirs.id, "Hello")

        assert client.get("/api/chat/unread-count", headers=doctor_headers).json() == {"unreadCount": 1}
        assert client.get("/api/chat/unread-count", headers=operator_headers).json() == {"unreadCount": 2}

    def test_missing_message_is_404(self, client: TestClient, patient_headers: dict) -> None:
        """Test unknown message ids."""
        assert client.put("/api/chat/messages/999/read", headers=patient_headers).status_code == 404

"""Tests for the approval HTTP API."""

import pytest
from fastapi.testclient import TestClient


def headers(user):
    return {"X-User-Id": str(user.id)}


def submit(client, author, approvers, **overrides):
    payload = {
        "title": "Conference travel",
        "content": "Two nights in Jeju for the partner summit.",
        "document_type": "business_trip",
        "approvers": [{"user_id": u.id, "order": i} for i, u in enumerate(approvers, start=1)],
    }
    payload.update(overrides)
    return client.post("/api/approvals", json=payload, headers=headers(author))


class TestIdentity:
    def test_missing_user_header(self, client: TestClient):
        response = client.get("/api/approvals")
        assert response.status_code == 401

    def test_unknown_user(self, client: TestClient, db_session):
        response = client.get("/api/approvals", headers={"X-User-Id": "777"})
        assert response.status_code == 401


class TestApprovalEndpoints:
    """Test the document lifecycle over HTTP."""

    def test_submit(self, client: TestClient, author, approvers):
        response = submit(client, author, approvers)

        assert response.status_code == 201
        data = response.json()
        assert data["status"] == "drafted"
        assert data["document_number"].startswith("AP-")
        assert data["document_type"] == "business_trip"
        assert data["author_id"] == author.id

    def test_submit_without_approvers(self, client: TestClient, author):
        response = submit(client, author, [])

        assert response.status_code == 400
        assert response.json()["error"] == "validation_error"

    def test_submit_unknown_document_type(self, client: TestClient, author, approvers):
        response = submit(client, author, approvers, document_type="memo")
        assert response.status_code == 422

    def test_get_detail(self, client: TestClient, author, approvers):
        document_id = submit(client, author, approvers).json()["id"]

        response = client.get(f"/api/approvals/{document_id}", headers=headers(author))

        assert response.status_code == 200
        data = response.json()
        assert data["author"]["name"] == "Park Seoyeon"
        assert [line["order"] for line in data["lines"]] == [1, 2, 3]
        assert data["lines"][1]["approver"]["name"] == "Lee Jiwon"
        assert data["lines"][1]["approver"]["department"] == "Finance"

    def test_get_unknown(self, client: TestClient, author):
        response = client.get("/api/approvals/9999", headers=headers(author))

        assert response.status_code == 404
        assert response.json() == {"error": "not_found", "detail": "Approval document 9999 not found"}

    def test_decide_in_order(self, client: TestClient, author, approvers):
        document_id = submit(client, author, approvers[:2]).json()["id"]

        first = client.post(
            f"/api/approvals/{document_id}/decide",
            json={"decision": "approve", "comment": "Fine by me"},
            headers=headers(approvers[0]),
        )
        assert first.status_code == 200
        assert first.json()["status"] == "approved"
        assert first.json()["approver"]["name"] == "Kim Minsu"

        client.post(
            f"/api/approvals/{document_id}/decide",
            json={"decision": "approve"},
            headers=headers(approvers[1]),
        )
        detail = client.get(f"/api/approvals/{document_id}", headers=headers(author)).json()
        assert detail["status"] == "approved"

    def test_decide_out_of_order(self, client: TestClient, author, approvers):
        document_id = submit(client, author, approvers).json()["id"]

        response = client.post(
            f"/api/approvals/{document_id}/decide",
            json={"decision": "approve"},
            headers=headers(approvers[2]),
        )

        assert response.status_code == 409
        assert response.json()["error"] == "out_of_order"

    def test_decide_not_an_approver(self, client: TestClient, author, approvers, outsider):
        document_id = submit(client, author, approvers).json()["id"]

        response = client.post(
            f"/api/approvals/{document_id}/decide",
            json={"decision": "reject"},
            headers=headers(outsider),
        )

        assert response.status_code == 403
        assert response.json()["error"] == "permission_denied"

    def test_decide_invalid_decision(self, client: TestClient, author, approvers):
        document_id = submit(client, author, approvers).json()["id"]

        response = client.post(
            f"/api/approvals/{document_id}/decide",
            json={"decision": "maybe"},
            headers=headers(approvers[0]),
        )
        assert response.status_code == 422

    def test_withdraw(self, client: TestClient, author, approvers):
        document_id = submit(client, author, approvers).json()["id"]

        forbidden = client.post(f"/api/approvals/{document_id}/withdraw", headers=headers(approvers[0]))
        assert forbidden.status_code == 403

        response = client.post(f"/api/approvals/{document_id}/withdraw", headers=headers(author))
        assert response.status_code == 200
        assert response.json()["status"] == "withdrawn"

        again = client.post(f"/api/approvals/{document_id}/withdraw", headers=headers(author))
        assert again.status_code == 409
        assert again.json()["error"] == "conflict"

    def test_history(self, client: TestClient, author, approvers):
        document_id = submit(client, author, approvers).json()["id"]
        client.post(
            f"/api/approvals/{document_id}/decide",
            json={"decision": "reject", "comment": "Use the online meeting"},
            headers=headers(approvers[0]),
        )

        response = client.get(f"/api/approvals/{document_id}/history", headers=headers(author))

        assert response.status_code == 200
        history = response.json()
        assert [h["transition"] for h in history] == ["submit", "reject"]
        assert history[1]["comment"] == "Use the online meeting"

    def test_list_pagination_and_role(self, client: TestClient, author, approvers):
        for _ in range(3):
            submit(client, author, approvers[:1])

        page = client.get("/api/approvals?per_page=2&page=2", headers=headers(author)).json()
        assert page["total"] == 3
        assert page["pages"] == 2
        assert len(page["items"]) == 1

        inbox = client.get("/api/approvals?is_author=false", headers=headers(approvers[0])).json()
        assert inbox["total"] == 3

        filtered = client.get("/api/approvals?status=approved", headers=headers(author)).json()
        assert filtered["total"] == 0

    @pytest.mark.parametrize("query", ["status=archived", "page=0", "per_page=500"])
    def test_list_invalid_query(self, client: TestClient, author, query):
        response = client.get(f"/api/approvals?{query}", headers=headers(author))
        assert response.status_code == 422

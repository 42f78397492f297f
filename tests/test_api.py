from pymongo.errors import ServerSelectionTimeoutError

from placement_portal.api.dependencies import get_record_store
from placement_portal.main import app
from placement_portal.services.record_store import InMemoryRecordStore


def upload(client, batch_type, text, filename="batch.csv"):
    return client.post(
        f"/api/results/upload/{batch_type}",
        files={"file": (filename, text.encode("utf-8"), "text/csv")}
    )


def upload_templates(client):
    for batch_type in ("roster", "marks", "approval"):
        template = client.get(f"/api/results/template/{batch_type}").text
        assert upload(client, batch_type, template).status_code == 200


def test_root(client):
    response = client.get("/")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_template_download(client):
    response = client.get("/api/results/template/roster")
    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/csv")
    assert "roster_template.csv" in response.headers["content-disposition"]
    assert response.text.startswith("Name,Roll Number,Email")


def test_unknown_batch_type(client):
    assert client.get("/api/results/template/grades").status_code == 422


def test_upload_returns_report(client, store):
    template = client.get("/api/results/template/roster").text
    response = upload(client, "roster", template)
    assert response.status_code == 200
    assert response.json() == {"success": True, "processed": 3, "errors": [], "warnings": []}
    assert len(store.students) == 3


def test_upload_schema_error_is_reported(client):
    response = upload(client, "marks", "Name,Email\nA,a@b.c\n")
    assert response.status_code == 200
    body = response.json()
    assert body["success"] is False
    assert body["processed"] == 0
    assert body["errors"][0].startswith("Missing required columns: Roll Number, Student Name")


def test_upload_rejects_non_csv(client):
    response = upload(client, "roster", "Name\n", filename="batch.xlsx")
    assert response.status_code == 400


def test_upload_rejects_empty_file(client):
    assert upload(client, "roster", "  \n").status_code == 400


def test_get_student_result(client):
    upload_templates(client)
    response = client.get("/api/results/students/CS2021001")
    assert response.status_code == 200
    body = response.json()
    assert body["sgpa"] == 8.42
    assert body["overall_status"] == "Pass"
    assert body["results"]["CS301"]["grade"] == "A"
    assert body["package"]["amount"] == 6.5


def test_get_unknown_student(client):
    response = client.get("/api/results/students/XX0000000")
    assert response.status_code == 404
    assert response.json()["detail"] == "Student 'XX0000000' not found"


def test_update_marks(client, store):
    upload_templates(client)
    response = client.put("/api/results/students/CS2021002/marks", json={"marks": {"CS303": 35}})
    assert response.status_code == 200
    assert response.json()["overall_status"] == "ATKT"
    assert store.students["CS2021002"].results["CS303"].mark == 35


def test_update_marks_invalid(client, store):
    upload_templates(client)
    response = client.put("/api/results/students/CS2021002/marks", json={"marks": {"CS303": 135}})
    assert response.status_code == 422
    assert "CS303" in response.json()["detail"][0]
    assert store.students["CS2021002"].overall_status.value == "Pass"


def test_update_marks_unknown_student(client):
    response = client.put("/api/results/students/XX0000000/marks", json={"marks": {"CS303": 35}})
    assert response.status_code == 404


def test_statistics(client):
    upload_templates(client)
    body = client.get("/api/analytics/statistics").json()
    assert body["totalStudents"] == 3
    assert body["placedStudents"] == 2
    assert body["averagePackage"] == 5.5
    assert body["highestPackage"] == 6.5
    assert body["medianPackage"] == 4.5
    assert {b["range"]: b["count"] for b in body["packageDistribution"]}["3-6 LPA"] == 1
    assert [t["month"] for t in body["monthlyPlacementTrends"]] == ["2025-07", "2025-08"]


def test_statistics_empty(client):
    body = client.get("/api/analytics/statistics").json()
    assert body["totalStudents"] == 0
    assert body["placementRate"] == 0.0
    assert body["branchWiseStats"] == []


def test_branch_and_company_stats(client):
    upload_templates(client)
    branches = client.get("/api/analytics/branches").json()
    assert [(b["branch"], b["total"], b["placed"]) for b in branches] == [
        ("Computer Science", 2, 1),
        ("Electronics", 1, 1),
    ]
    companies = client.get("/api/analytics/companies").json()
    assert [(c["company"], c["tier"], c["hires"]) for c in companies] == [
        ("Infosys", "Tier 2", 1),
        ("TCS", "Tier 2", 1),
    ]


def test_statistics_for_one_branch(client):
    upload_templates(client)
    body = client.get("/api/analytics/statistics", params={"branch": "Electronics"}).json()
    assert body["totalStudents"] == 1
    assert body["placedStudents"] == 1
    assert [b["branch"] for b in body["branchWiseStats"]] == ["Electronics"]
    assert "recentPlacements" in body


def test_list_pending_requests(client):
    upload_templates(client)
    response = client.get("/api/approvals", params={"status": "pending"})
    assert response.status_code == 200
    assert len(response.json()) == 3
    assert client.get("/api/approvals", params={"status": "approved"}).json() == []
    assert client.get("/api/approvals", params={"status": "later"}).status_code == 422


def test_approve_request(client):
    upload_templates(client)
    request_id = client.get("/api/approvals").json()[0]["request_id"]

    response = client.put(f"/api/approvals/{request_id}/approve", json={"remarks": "Verified"})
    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "approved"
    assert body["remarks"] == "Verified"
    assert body["resolved_at"] is not None
    assert len(client.get("/api/approvals", params={"status": "pending"}).json()) == 2

    again = client.put(f"/api/approvals/{request_id}/approve")
    assert again.status_code == 409
    assert client.put(f"/api/approvals/{request_id}/reject").status_code == 409


def test_reject_request_without_body(client):
    upload_templates(client)
    request_id = client.get("/api/approvals").json()[0]["request_id"]
    response = client.put(f"/api/approvals/{request_id}/reject")
    assert response.status_code == 200
    assert response.json()["status"] == "rejected"


def test_unknown_request_is_404(client):
    response = client.put("/api/approvals/nope/approve")
    assert response.status_code == 404
    assert response.json()["detail"] == "Request 'nope' not found"
    assert client.put("/api/approvals/nope/reject").status_code == 404


class UnavailableStore(InMemoryRecordStore):
    def read_students(self):
        raise ServerSelectionTimeoutError("no servers")


def test_record_store_failure_is_503(client):
    app.dependency_overrides[get_record_store] = lambda: UnavailableStore()
    response = client.get("/api/analytics/statistics")
    assert response.status_code == 503
    assert response.json()["error"]["code"] == "RECORD_STORE_UNAVAILABLE"

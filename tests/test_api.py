from uuid import uuid4

import pytest
from sqlalchemy.exc import OperationalError

from app.crud import results as results_crud
from app.models.all_models import RedemptionToken
from app.routes.redemption import INVALID_CREDENTIALS_DETAIL
from conftest import TEST_PASSWORD


def submit_payload(school, student, score, subject=None, assessment=None):
    return {
        "student_id": str(student.id),
        "subject_id": str((subject or school.maths).id),
        "term_id": str(school.term.id),
        "assessment_id": str((assessment or school.exam).id),
        "score": score,
    }


def test_root_redirects_to_docs(client):
    response = client.get("/", follow_redirects=False)

    assert response.status_code in (302, 307)
    assert response.headers["location"] == "/docs"


def test_login_and_me(client, school):
    response = client.post("/api/auth/login", json={"username": "exam_officer", "password": TEST_PASSWORD})
    assert response.status_code == 200
    tokens = response.json()
    assert tokens["token_type"] == "bearer"

    me = client.get("/api/auth/me", headers={"Authorization": f"Bearer {tokens['access_token']}"})
    assert me.status_code == 200
    assert me.json()["role"] == "Exam Officer"
    assert "result_approval" in me.json()["capabilities"]
    assert "result_upload" not in me.json()["capabilities"]

    refreshed = client.post("/api/auth/refresh", json={"refresh_token": tokens["refresh_token"]})
    assert refreshed.status_code == 200


def test_login_with_wrong_password(client, school):
    response = client.post("/api/auth/login", json={"username": "exam_officer", "password": "nope"})

    assert response.status_code == 401


def test_refresh_requires_a_refresh_token(client, school):
    tokens = client.post("/api/auth/login", json={"username": "exam_officer", "password": TEST_PASSWORD}).json()

    refreshed = client.post("/api/auth/refresh", json={"refresh_token": tokens["refresh_token"]})
    assert refreshed.status_code == 200
    assert client.get("/api/auth/me", headers={
        "Authorization": f"Bearer {refreshed.json()['access_token']}"}).json()["username"] == "exam_officer"

    assert client.post("/api/auth/refresh", json={"refresh_token": tokens["access_token"]}).status_code == 401
    assert client.post("/api/auth/refresh", json={"refresh_token": "not-a-jwt"}).status_code == 401


def test_requests_without_credentials_are_refused(client, school):
    response = client.get(f"/api/rankings/{school.term.id}")

    assert response.status_code in (401, 403)


def test_submit_approve_and_rank(client, school, auth_headers):
    """Score of 72 out of 100: pending, then approved by a second person, then ranked."""
    s1 = school.students[0]
    teacher, officer = auth_headers(school.teacher), auth_headers(school.exam_officer)

    created = client.post("/api/results", json=submit_payload(school, s1, 72), headers=teacher)
    assert created.status_code == 201
    result = created.json()
    assert result["status"] == "Pending"
    assert result["approved_by"] is None

    approved = client.post(f"/api/results/{result['id']}/approve", headers=officer)
    assert approved.status_code == 200
    assert approved.json()["status"] == "Approved"
    assert approved.json()["approved_by"] == str(school.exam_officer.id)

    rankings = client.get(f"/api/rankings/{school.term.id}", headers=officer)
    assert rankings.status_code == 200
    students = rankings.json()["students"]
    assert len(students) == 1
    assert students[0]["student_id"] == str(s1.id)
    assert students[0]["average_percentage"] == 72.0
    assert students[0]["position"] == 1
    assert students[0]["letter_grade"] == "B"

    trail = client.get("/api/audit-logs", params={"record_id": result["id"]}, headers=auth_headers(school.principal))
    assert trail.status_code == 200
    assert [e["action_type"] for e in trail.json()] == ["update", "insert"]
    assert trail.json()[0]["old_value"]["status"] == "Pending"
    assert trail.json()[0]["new_value"]["status"] == "Approved"


def test_tied_students_share_first_place(client, school, auth_headers):
    s1, s2, s3 = school.students[0], school.students[1], school.students[2]
    teacher, officer = auth_headers(school.teacher), auth_headers(school.exam_officer)
    for student, score in ((s1, 90), (s2, 90), (s3, 85)):
        result = client.post("/api/results", json=submit_payload(school, student, score), headers=teacher).json()
        assert client.post(f"/api/results/{result['id']}/approve", headers=officer).status_code == 200

    rankings = client.get(f"/api/rankings/{school.term.id}", headers=officer).json()
    positions = {entry["student_id"]: entry["position"] for entry in rankings["students"]}

    assert positions == {str(s1.id): 1, str(s2.id): 1, str(s3.id): 3}

    jss1a = client.get(f"/api/rankings/{school.term.id}", params={"class_id": str(school.jss1a.id)},
                       headers=officer).json()
    assert {entry["position"] for entry in jss1a["students"]} == {1}
    assert [c["class_name"] for c in jss1a["classes"]] == ["JSS 1A"]


def test_redeem_scratch_card(client, db, school, auth_headers):
    s1 = school.students[0]
    teacher, officer = auth_headers(school.teacher), auth_headers(school.exam_officer)
    result = client.post("/api/results", json=submit_payload(school, s1, 72), headers=teacher).json()
    client.post(f"/api/results/{result['id']}/approve", headers=officer)
    db.add(RedemptionToken(id=uuid4(), code="ABCD-1234", term_id=school.term.id, is_used=False))
    db.commit()
    payload = {"code": "ABCD-1234", "student_id": s1.student_code, "term_id": str(school.term.id)}

    first = client.post("/api/redemption", json=payload)
    assert first.status_code == 200
    body = first.json()
    assert body["student_name"] == "Ada Okafor"
    assert body["results"] == [{
        "subject": "Mathematics",
        "assessment": "Exam",
        "score": 72.0,
        "max_score": 100.0,
        "percentage": 72.0,
        "letter_grade": "B",
    }]

    second = client.post("/api/redemption", json=payload)
    assert second.status_code == 404
    assert second.json()["detail"] == INVALID_CREDENTIALS_DETAIL


def test_redemption_failures_share_one_message(client, db, school):
    db.add(RedemptionToken(id=uuid4(), code="WXYZ-2345", term_id=school.term.id, is_used=False))
    db.commit()
    term_id = str(school.term.id)

    unknown_code = client.post("/api/redemption",
                               json={"code": "QQQQ-2222", "student_id": "STU001", "term_id": term_id})
    unknown_student = client.post("/api/redemption",
                                  json={"code": "WXYZ-2345", "student_id": "STU404", "term_id": term_id})

    assert unknown_code.status_code == unknown_student.status_code == 404
    assert unknown_code.json() == unknown_student.json() == {"detail": INVALID_CREDENTIALS_DETAIL}

    unknown_term = client.post("/api/redemption",
                               json={"code": "WXYZ-2345", "student_id": "STU001", "term_id": str(uuid4())})
    assert unknown_term.status_code == 404
    assert unknown_term.json()["detail"] == "Term not found"


def test_generate_and_list_tokens(client, school, auth_headers):
    officer = auth_headers(school.exam_officer)

    created = client.post("/api/tokens", json={"term_id": str(school.term.id), "quantity": 5}, headers=officer)
    assert created.status_code == 201
    assert len(created.json()) == 5

    listed = client.get("/api/tokens", params={"term_id": str(school.term.id)}, headers=officer)
    assert len(listed.json()) == 5
    stats = client.get("/api/tokens/stats", headers=officer).json()
    assert stats == {"total": 5, "used": 0, "unused": 5}

    too_many = client.post("/api/tokens", json={"term_id": str(school.term.id), "quantity": 501}, headers=officer)
    assert too_many.status_code == 422

    missing_term = client.post("/api/tokens", json={"term_id": str(uuid4()), "quantity": 1}, headers=officer)
    assert missing_term.status_code == 404


@pytest.mark.parametrize("user,method,path", [
    ("teacher", "post", "/api/results/{result_id}/approve"),
    ("form_teacher", "get", "/api/rankings/{term_id}"),
    ("teacher", "post", "/api/tokens"),
    ("exam_officer", "post", "/api/results"),
    ("exam_officer", "post", "/api/users"),
    ("teacher", "get", "/api/audit-logs"),
    ("exam_officer", "post", "/api/terms"),
])
def test_capabilities_are_enforced(client, school, auth_headers, submit, user, method, path):
    result = submit(school.students[0], 50)
    url = path.format(result_id=result.id, term_id=school.term.id)

    response = client.request(method.upper(), url, headers=auth_headers(getattr(school, user)), json={})

    assert response.status_code == 403


def test_error_mapping(client, school, auth_headers, submit):
    teacher, officer = auth_headers(school.teacher), auth_headers(school.exam_officer)
    result = submit(school.students[0], 50)

    assert client.post(f"/api/results/{result.id}/approve", headers=officer).status_code == 200
    again = client.post(f"/api/results/{result.id}/approve", headers=officer)
    assert again.status_code == 409
    assert again.json()["detail"] == "Result is already approved"

    assert client.post(f"/api/results/{uuid4()}/approve", headers=officer).status_code == 404
    out_of_range = client.post("/api/results", json=submit_payload(school, school.students[1], 120), headers=teacher)
    assert out_of_range.status_code == 422

    amend_approved = client.patch(f"/api/results/{result.id}", json={"score": 55, "reason": "Typo"}, headers=teacher)
    assert amend_approved.status_code == 409

    assert client.get("/api/audit-logs", params={"page_size": 500},
                      headers=auth_headers(school.principal)).status_code == 400


def test_amend_by_another_teacher_is_forbidden(client, school, auth_headers, submit):
    result = submit(school.students[0], 50)

    response = client.patch(f"/api/results/{result.id}", json={"score": 55, "reason": "Typo"},
                            headers=auth_headers(school.other_teacher))

    assert response.status_code == 403


def test_reject_and_resubmit(client, school, auth_headers, submit):
    teacher, officer = auth_headers(school.teacher), auth_headers(school.exam_officer)
    result = submit(school.students[0], 50)

    rejected = client.post(f"/api/results/{result.id}/reject", json={"reason": "Illegible"}, headers=officer)
    assert rejected.json()["status"] == "Rejected"

    resubmitted = client.post(f"/api/results/{result.id}/resubmit", json={"score": 52}, headers=teacher)
    assert resubmitted.status_code == 200
    assert resubmitted.json()["status"] == "Pending"
    assert resubmitted.json()["score"] == 52.0


def test_bulk_approve(client, school, auth_headers, submit):
    first = submit(school.students[0], 50)
    second = submit(school.students[1], 60)

    response = client.post("/api/results/bulk-approve",
                           json={"result_ids": [str(first.id), str(second.id), str(uuid4())]},
                           headers=auth_headers(school.exam_officer))

    assert response.status_code == 200
    assert len(response.json()["approved"]) == 2
    assert len(response.json()["skipped"]) == 1


def test_teachers_only_see_their_own_results(client, school, auth_headers, submit):
    submit(school.students[0], 50)
    submit(school.students[1], 60, teacher=school.other_teacher)

    own = client.get("/api/results", headers=auth_headers(school.teacher)).json()
    everyone = client.get("/api/results", headers=auth_headers(school.exam_officer)).json()

    assert len(own) == 1
    assert len(everyone) == 2


def test_term_management(client, school, auth_headers):
    principal = auth_headers(school.principal)

    created = client.post("/api/terms", json={
        "name": "Third Term", "academic_year": "2025/2026",
        "start_date": "2026-04-20", "end_date": "2026-07-24"
    }, headers=principal)
    assert created.status_code == 201

    switched = client.post(f"/api/terms/{created.json()['id']}/set-current", json={"reason": "Term started"},
                           headers=principal)
    assert switched.status_code == 200
    assert switched.json()["is_current"] is True

    terms = client.get("/api/terms", headers=principal).json()
    assert [t["name"] for t in terms if t["is_current"]] == ["Third Term"]

    bad_year = client.post("/api/terms", json={
        "name": "Fourth Term", "academic_year": "2025/2027",
        "start_date": "2026-09-01", "end_date": "2026-12-01"
    }, headers=principal)
    assert bad_year.status_code == 422


def test_setup_endpoints(client, school, auth_headers):
    principal = auth_headers(school.principal)

    subject = client.post("/api/academics/subjects/", json={"name": "Civic Education", "code": "CVE"},
                          headers=principal)
    assert subject.status_code == 201
    duplicate = client.post("/api/academics/subjects/", json={"name": "Civic Education", "code": "CVE"},
                            headers=principal)
    assert duplicate.status_code == 400

    student = client.post("/api/academics/students/", json={
        "student_code": "STU010", "first_name": "Efe", "last_name": "Ojo", "class_id": str(school.jss1a.id)
    }, headers=auth_headers(school.form_teacher))
    assert student.status_code == 201

    in_class = client.get("/api/academics/students/", params={"class_id": str(school.jss1a.id)}, headers=principal)
    assert len(in_class.json()) == 3


def test_create_user(client, school, auth_headers):
    response = client.post("/api/users", json={
        "username": "new_teacher", "email": "new.teacher@greenfield.edu.ng",
        "password": "long-enough-pw", "role": "Subject Teacher"
    }, headers=auth_headers(school.principal))

    assert response.status_code == 201
    assert response.json()["role"] == "Subject Teacher"


def test_store_outage_is_service_unavailable(client, school, auth_headers, monkeypatch):
    def locked_snapshot(db, term_id):
        raise OperationalError("SELECT", {}, Exception("database is locked"))

    monkeypatch.setattr(results_crud, "approved_results_snapshot", locked_snapshot)

    response = client.get(f"/api/rankings/{school.term.id}", headers=auth_headers(school.exam_officer))

    assert response.status_code == 503

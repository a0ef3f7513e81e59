"""
Test the application tracking pipeline.
"""
from datetime import date, timedelta

from fastapi import status
from sqlalchemy import select, func

from applytrack.models.db.application import application_resumes


class TestApplicationTrackingPipeline:
    """Test the complete application tracking pipeline."""

    def test_create_application_success(self, test_client, auth_headers):
        """Test successful job application creation."""
        application_data = {
            "company_name": "Tech Innovations Inc",
            "job_title": "Senior Python Developer",
            "job_url": "https://example.com/job/123",
            "application_date": "2024-01-15",
            "application_source": "LinkedIn",
            "status": "Applied",
            "notes": "Applied through company website",
            "salary_min": 120000,
            "salary_max": 150000,
        }

        response = test_client.post("/api/applications", json=application_data, headers=auth_headers)

        assert response.status_code == status.HTTP_201_CREATED
        data = response.json()["application"]
        assert data["job_title"] == application_data["job_title"]
        assert data["company_name"] == application_data["company_name"]
        assert data["status"] == "Applied"
        assert data["application_date"] == "2024-01-15"
        assert data["experience_level"] == "Entry Level / New Grad"
        assert data["interview_round"] == 0
        assert data["resumes"] == []
        assert data["is_overdue"] is False
        assert "id" in data
        assert "created_at" in data

    def test_create_defaults_and_blank_fields(self, test_client, auth_headers):
        """Form submissions send empty strings for untouched fields."""
        response = test_client.post("/api/applications", json={
            "company_name": "  Blank Fields Ltd ",
            "job_title": "Analyst",
            "status": "",
            "follow_up_date": "",
            "notes": "",
            "interview_round": None,
        }, headers=auth_headers)

        assert response.status_code == status.HTTP_201_CREATED
        data = response.json()["application"]
        assert data["company_name"] == "Blank Fields Ltd"
        assert data["status"] == "Applied"
        assert data["follow_up_date"] is None
        assert data["notes"] is None
        assert data["interview_round"] == 0

    def test_create_requires_company_and_title(self, test_client, auth_headers):
        response = test_client.post("/api/applications", json={
            "company_name": "   ",
            "job_title": "",
        }, headers=auth_headers)

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        detail = response.json()["detail"]
        assert "Company name is required" in detail
        assert "Job title is required" in detail

    def test_create_rejects_unknown_status(self, test_client, auth_headers):
        response = test_client.post("/api/applications", json={
            "company_name": "Acme", "job_title": "Dev", "status": "Hired",
        }, headers=auth_headers)

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert "Invalid status" in response.json()["detail"]

    def test_assessment_status_accepted(self, create_application):
        app = create_application(status="Assessment")
        assert app["status"] == "Assessment"

    def test_create_rejects_negative_interview_round(self, test_client, auth_headers):
        response = test_client.post("/api/applications", json={
            "company_name": "Acme", "job_title": "Dev", "interview_round": -1,
        }, headers=auth_headers)
        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_create_rejects_inverted_salary_range(self, test_client, auth_headers):
        response = test_client.post("/api/applications", json={
            "company_name": "Acme", "job_title": "Dev", "salary_min": 90000, "salary_max": 80000,
        }, headers=auth_headers)
        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert "Salary max" in response.json()["detail"]

    def test_get_user_applications(self, test_client, auth_headers, create_application):
        """Test retrieving user's job applications."""
        create_application(company_name="Company A", job_title="Python Developer")
        create_application(company_name="Company B", job_title="Data Scientist", status="Interview")

        response = test_client.get("/api/applications", headers=auth_headers)

        assert response.status_code == status.HTTP_200_OK
        data = response.json()["applications"]
        assert len(data) == 2
        for app in data:
            assert "id" in app
            assert "job_title" in app
            assert "company_name" in app
            assert "is_overdue" in app

    def test_get_specific_application(self, test_client, auth_headers, create_application):
        """Test retrieving a specific job application."""
        created = create_application(job_title="Test Position")

        response = test_client.get(f"/api/applications/{created['id']}", headers=auth_headers)

        assert response.status_code == status.HTTP_200_OK
        data = response.json()["application"]
        assert data["id"] == created["id"]
        assert data["job_title"] == "Test Position"

    def test_get_nonexistent_application(self, test_client, auth_headers):
        """Test retrieving a non-existent application."""
        response = test_client.get("/api/applications/99999", headers=auth_headers)

        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert "not found" in response.json()["detail"].lower()

    def test_update_replaces_every_field(self, test_client, auth_headers, create_application):
        """PUT is a full replacement: omitted optional fields are cleared."""
        created = create_application(
            location="Remote", notes="First call", follow_up_date="2030-01-01", interview_round=1,
        )

        update_data = {
            "company_name": "Acme Corp",
            "job_title": "Backend Engineer",
            "status": "Interview",
            "notes": "Phone interview scheduled for next week",
        }
        response = test_client.put(
            f"/api/applications/{created['id']}", json=update_data, headers=auth_headers
        )

        assert response.status_code == status.HTTP_200_OK
        data = response.json()["application"]
        assert data["status"] == "Interview"
        assert data["notes"] == update_data["notes"]
        assert data["location"] is None
        assert data["follow_up_date"] is None
        assert data["interview_round"] == 0

    def test_update_validates_like_create(self, test_client, auth_headers, create_application):
        created = create_application()
        response = test_client.put(
            f"/api/applications/{created['id']}",
            json={"company_name": "Acme", "job_title": "Dev", "status": "Unknown"},
            headers=auth_headers,
        )
        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_update_nonexistent_application(self, test_client, auth_headers):
        response = test_client.put(
            "/api/applications/99999",
            json={"company_name": "Acme", "job_title": "Dev"},
            headers=auth_headers,
        )
        assert response.status_code == status.HTTP_404_NOT_FOUND

    def test_delete_application(self, test_client, auth_headers, create_application):
        """Test deleting a job application."""
        created = create_application(job_title="Temporary Job")

        response = test_client.delete(f"/api/applications/{created['id']}", headers=auth_headers)
        assert response.status_code == status.HTTP_200_OK
        assert response.json()["message"] == "Application deleted successfully"

        get_response = test_client.get(f"/api/applications/{created['id']}", headers=auth_headers)
        assert get_response.status_code == status.HTTP_404_NOT_FOUND

    def test_delete_nonexistent_application(self, test_client, auth_headers):
        response = test_client.delete("/api/applications/99999", headers=auth_headers)
        assert response.status_code == status.HTTP_404_NOT_FOUND

    def test_application_status_workflow(self, test_client, auth_headers, create_application):
        """Test complete application status workflow."""
        created = create_application(job_title="Full Stack Developer")

        workflow = [
            ("Interview", "First round interview completed"),
            ("Assessment", "Take-home assignment sent"),
            ("Offer", "Received job offer"),
        ]
        for status_val, notes in workflow:
            update_data = {
                "company_name": "Acme Corp",
                "job_title": "Full Stack Developer",
                "status": status_val,
                "notes": notes,
            }
            response = test_client.put(
                f"/api/applications/{created['id']}", json=update_data, headers=auth_headers
            )

            assert response.status_code == status.HTTP_200_OK
            data = response.json()["application"]
            assert data["status"] == status_val
            assert data["notes"] == notes

    def test_is_overdue_flag(self, create_application):
        yesterday = date.today() - timedelta(days=1)
        tomorrow = date.today() + timedelta(days=1)

        assert create_application(follow_up_date=yesterday)["is_overdue"] is True
        assert create_application(follow_up_date=yesterday, status="Offer")["is_overdue"] is False
        assert create_application(follow_up_date=yesterday, status="Rejected")["is_overdue"] is False
        assert create_application(follow_up_date=date.today())["is_overdue"] is False
        assert create_application(follow_up_date=tomorrow)["is_overdue"] is False
        assert create_application()["is_overdue"] is False

    def test_status_summary(self, test_client, auth_headers, create_application):
        create_application(status="Applied")
        create_application(status="Applied")
        create_application(status="Ghosted")

        response = test_client.get("/api/applications/stats/summary", headers=auth_headers)

        assert response.status_code == status.HTTP_200_OK
        stats = response.json()["stats"]
        assert stats["applied"] == 2
        assert stats["ghosted"] == 1
        assert stats["offer"] == 0
        assert stats["assessment"] == 0
        assert stats["total"] == 3

    def test_application_user_isolation(self, test_client, auth_headers, second_user_headers, create_application):
        """Test that users can only access their own applications."""
        created = create_application(job_title="Private Job", company_name="Private Company")
        app_id = created["id"]

        response = test_client.get(f"/api/applications/{app_id}", headers=second_user_headers)
        assert response.status_code == status.HTTP_404_NOT_FOUND

        response = test_client.put(
            f"/api/applications/{app_id}",
            json={"company_name": "Hijacked", "job_title": "Nope"},
            headers=second_user_headers,
        )
        assert response.status_code == status.HTTP_404_NOT_FOUND

        response = test_client.delete(f"/api/applications/{app_id}", headers=second_user_headers)
        assert response.status_code == status.HTTP_404_NOT_FOUND

        response = test_client.get("/api/applications", headers=second_user_headers)
        assert response.status_code == status.HTTP_200_OK
        assert app_id not in [app["id"] for app in response.json()["applications"]]

        # Still intact for the owner
        response = test_client.get(f"/api/applications/{app_id}", headers=auth_headers)
        assert response.json()["application"]["company_name"] == "Private Company"


class TestApplicationResumeLinks:
    """Resume links on applications."""

    def test_create_with_resume_links(self, create_application, upload_resume):
        resume = upload_resume(name="backend.pdf")

        app = create_application(resume_ids=[resume["id"]])

        assert app["resumes"] == [{
            "id": resume["id"],
            "file_name": resume["file_name"],
            "original_name": "backend.pdf",
        }]

    def test_foreign_and_missing_resumes_are_skipped(self, create_application, upload_resume,
                                                     second_user_headers):
        mine = upload_resume(name="mine.pdf")
        theirs = upload_resume(name="theirs.pdf", headers=second_user_headers)

        app = create_application(resume_ids=[mine["id"], theirs["id"], 424242])

        assert [r["id"] for r in app["resumes"]] == [mine["id"]]

    def test_update_without_resume_ids_keeps_links(self, test_client, auth_headers,
                                                   create_application, upload_resume):
        resume = upload_resume()
        app = create_application(resume_ids=[resume["id"]])

        response = test_client.put(
            f"/api/applications/{app['id']}",
            json={"company_name": "Acme Corp", "job_title": "Backend Engineer", "status": "Interview"},
            headers=auth_headers,
        )
        assert [r["id"] for r in response.json()["application"]["resumes"]] == [resume["id"]]

    def test_update_with_resume_ids_replaces_links(self, test_client, auth_headers,
                                                   create_application, upload_resume):
        first = upload_resume(name="first.pdf")
        second = upload_resume(name="second.pdf")
        app = create_application(resume_ids=[first["id"]])

        response = test_client.put(
            f"/api/applications/{app['id']}",
            json={"company_name": "Acme Corp", "job_title": "Backend Engineer", "resume_ids": [second["id"]]},
            headers=auth_headers,
        )
        assert [r["id"] for r in response.json()["application"]["resumes"]] == [second["id"]]

        response = test_client.put(
            f"/api/applications/{app['id']}",
            json={"company_name": "Acme Corp", "job_title": "Backend Engineer", "resume_ids": []},
            headers=auth_headers,
        )
        assert response.json()["application"]["resumes"] == []

    def test_delete_application_removes_links(self, test_client, auth_headers, test_db_session,
                                              create_application, upload_resume):
        resume = upload_resume()
        app = create_application(resume_ids=[resume["id"]])

        response = test_client.delete(f"/api/applications/{app['id']}", headers=auth_headers)
        assert response.status_code == status.HTTP_200_OK

        remaining = test_db_session.execute(
            select(func.count()).select_from(application_resumes)
        ).scalar()
        assert remaining == 0

        # The resume itself survives
        response = test_client.get("/api/resumes", headers=auth_headers)
        assert [r["id"] for r in response.json()["resumes"]] == [resume["id"]]

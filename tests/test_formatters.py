from datetime import date

from bamboohr_cli.formatters import (
    render_candidate,
    render_candidate_comments,
    render_candidate_notes,
    render_candidates,
    render_directory,
    render_download,
    render_jobs,
    render_statuses,
    render_whos_out,
)


def test_whos_out_keeps_first_entry_per_person():
    data = [
        {"name": "Ada Lovelace", "type": "Vacation", "start": "2026-10-13", "end": "2026-10-14"},
        {"name": "Ada Lovelace", "type": "Sick", "start": "2026-10-12", "end": "2026-10-12"},
    ]
    out = render_whos_out(data)
    assert "• Ada Lovelace: Tue, Oct 13 - Wed, Oct 14 (Vacation)" in out
    assert "Sick" not in out
    assert "Total: 1 person out" in out


def test_whos_out_sorts_by_start_and_collapses_single_day():
    data = [
        {"name": "Grace", "type": "Vacation", "start": "2026-10-15", "end": "2026-10-15"},
        {"name": "Linus", "start": "2026-10-12"},
        {"start": ""},
    ]
    lines = render_whos_out(data).splitlines()
    assert lines[0] == "Who's Out"
    assert lines[1] == "========="
    body = [line for line in lines if line.startswith("• ")]
    assert body == [
        "• Unknown: Unknown (Time Off)",
        "• Linus: Mon, Oct 12 (Time Off)",
        "• Grace: Thu, Oct 15 (Vacation)",
    ]
    assert lines[-1] == "Total: 3 people out"


def test_whos_out_week_header_and_empty_messages():
    week = (date(2026, 10, 12), date(2026, 10, 18))
    assert render_whos_out([], week=week) == "No one is out this week."
    assert render_whos_out(None) == "No one is out."
    out = render_whos_out([{"name": "Ada", "start": "2026-10-12"}], week=week)
    assert out.splitlines()[0] == "Who's Out This Week (Mon, Oct 12 - Sun, Oct 18)"


def test_directory_groups_missing_department_under_default_label():
    data = {
        "employees": [
            {"displayName": "Zed", "department": "Sales", "jobTitle": "AE"},
            {"firstName": "Ann", "lastName": "Lee"},
            {"displayName": "Bea", "department": "Sales"},
        ]
    }
    out = render_directory(data)
    assert "📁 No Department (1)" in out
    assert "   • Ann Lee" in out
    assert out.index("📁 No Department") < out.index("📁 Sales")
    assert out.index("• Bea") < out.index("• Zed - AE")
    assert out.endswith("Total: 3 employee(s)")


def test_directory_handles_empty_or_unexpected_payloads():
    assert render_directory({}) == "No employees found."
    assert render_directory("not json") == "No employees found."


def test_candidates_summary_block_and_pagination_hint():
    data = {
        "paginationComplete": False,
        "applications": [
            {
                "id": 1712,
                "applicant": {"firstName": "Ada", "lastName": "Lovelace", "email": "ada@example.com"},
                "job": {"title": {"label": "Engineer"}},
                "status": {"label": "New"},
                "appliedDate": "2026-10-01T09:00:00Z",
                "rating": 3,
            },
            {"id": 1713},
        ],
    }
    out = render_candidates(data)
    assert "[1712] Ada Lovelace" in out
    assert "    📋 Position: Engineer" in out
    assert "    📅 Applied: Oct 1, 2026" in out
    assert "    ⭐⭐⭐" in out
    assert "[1713] Unknown" in out
    assert "    📋 Position: Unknown Position" in out
    assert "    ✉️  Email: N/A" in out
    assert "    No rating" in out
    assert "Total: 2 candidate(s)" in out
    assert "(More results available - use --page to paginate)" in out


def test_candidates_summary_without_more_pages():
    out = render_candidates({"paginationComplete": True, "applications": [{"id": 1}]})
    assert "More results" not in out
    assert render_candidates({"applications": []}) == "No candidates found."


def test_candidate_detail_falls_back_and_prints_hints():
    out = render_candidate(
        {
            "id": 1712,
            "applicant": {"firstName": "Ada", "lastName": "Lovelace"},
            "resumeFileId": 5,
            "commentCount": 2,
            "status": {
                "label": "Reviewed",
                "changedByUser": {"firstName": "Hiring", "lastName": "Manager"},
                "dateChanged": "2026-10-02T15:04:00",
            },
        }
    )
    assert out.splitlines()[0] == "Candidate: Ada Lovelace"
    assert "  Phone: N/A" in out
    assert "Status changed by: Hiring Manager on Oct 2, 2026, 03:04 PM" in out
    assert "  Resume/CV: ✅ Available" in out
    assert "  Cover Letter: ❌ Not uploaded" in out
    assert "💡 To download CV: bamboohr download-cv 1712" in out
    assert "💡 To view comments: bamboohr candidate-comments 1712 --summary" in out


def test_candidate_comments_uses_system_author_when_missing():
    out = render_candidate_comments(
        [
            {"id": 1, "comment": "Looks good", "createdByUser": {"firstName": "Sam", "lastName": "Ray"}},
            {"id": 2, "comment": "Auto note"},
        ],
        application_id="1712",
    )
    assert out.splitlines()[0] == "Comments for Application 1712"
    assert "[1] Sam Ray - Unknown" in out
    assert "[2] System - Unknown" in out
    assert out.endswith("Total: 2 comment(s)")
    assert "No comments found." in render_candidate_comments([], application_id="1")


def test_candidate_notes_render_and_empty():
    out = render_candidate_notes({"notes": "Strong candidate"}, application_id="1712")
    assert "Last modified: Unknown by Unknown" in out
    assert out.endswith("Strong candidate")
    assert "No private notes found." in render_candidate_notes({}, application_id="1712")


def test_statuses_split_enabled_and_disabled():
    out = render_statuses(
        [
            {"id": 1, "name": "New", "code": "NEW", "enabled": True},
            {"id": 10, "name": "Not a Fit", "enabled": False},
        ]
    )
    assert "  [1] New (NEW)" in out
    assert "❌ Disabled Statuses:" in out
    assert "  [10] Not a Fit" in out
    assert out.endswith("Total: 2 statuses (1 enabled, 1 disabled)")


def test_jobs_summary_location_and_icons():
    out = render_jobs(
        [
            {"id": 9, "title": {"label": "Engineer"}, "status": {"label": "Open"},
             "location": {"city": "Austin", "country": "USA"}, "numberOfOpenings": 2, "applicantCount": 5},
            {"id": 10},
        ]
    )
    assert "🟢 [9] Engineer" in out
    assert "    Location: Austin, USA" in out
    assert "⚪ [10] Untitled" in out
    assert "    Location: Remote/Unspecified" in out
    assert "    Openings: N/A" in out
    assert "    Applicants: 0" in out
    assert render_jobs([]) == "No jobs found."


def test_download_summary_reports_size_in_kb():
    out = render_download(
        {"filename": "cv.pdf", "filepath": "tmp/cv.pdf", "size": 2048, "contentType": "application/pdf"}
    )
    assert "   Size: 2.0 KB" in out
    assert "   Path: tmp/cv.pdf" in out

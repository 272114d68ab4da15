"""Human-readable renderings of BambooHR payloads.

Every ``render_*`` function is pure: it takes the decoded response body and
returns text. Optional fields fall back to literal labels so a sparse or
unexpected payload never raises.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Any

RULE_WIDTH = 40


def _dict(val: Any) -> dict[str, Any]:
    return val if isinstance(val, dict) else {}


def _list(val: Any) -> list[Any]:
    return val if isinstance(val, list) else []


def _text(val: Any) -> str:
    return "" if val is None else str(val).strip()


def _parse_datetime(raw: Any) -> datetime | None:
    s = _text(raw)
    if not s:
        return None
    if s.endswith("Z"):
        s = s[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(s)
    except ValueError:
        return None


def _parse_date(raw: Any) -> date | None:
    dt = _parse_datetime(raw)
    return dt.date() if dt is not None else None


def _short_day(d: date) -> str:
    return f"{d:%a}, {d:%b} {d.day}"


def _day_or_raw(raw: Any) -> str:
    d = _parse_date(raw)
    if d is None:
        return _text(raw) or "Unknown"
    return _short_day(d)


def _long_date(raw: Any) -> str:
    d = _parse_date(raw)
    if d is None:
        return _text(raw) or "Unknown"
    return f"{d:%b} {d.day}, {d.year}"


def _long_datetime(raw: Any) -> str:
    dt = _parse_datetime(raw)
    if dt is None:
        return _text(raw) or "Unknown"
    hour = dt.hour % 12 or 12
    return f"{dt:%b} {dt.day}, {dt.year}, {hour:02d}:{dt:%M} {dt:%p}"


def _person(val: Any, fallback: str) -> str:
    d = _dict(val)
    name = f"{_text(d.get('firstName'))} {_text(d.get('lastName'))}".strip()
    return name or fallback


def _header(title: str) -> list[str]:
    return [title, "=" * len(title)]


def render_whos_out(data: Any, *, week: tuple[date, date] | None = None) -> str:
    entries_in = _list(data)
    if not entries_in:
        return "No one is out this week." if week else "No one is out."

    # First entry per person wins; later entries for the same name are dropped, not merged.
    by_person: dict[str, dict[str, Any]] = {}
    for entry in entries_in:
        e = _dict(entry)
        name = _text(e.get("name")) or "Unknown"
        if name in by_person:
            continue
        by_person[name] = {
            "name": name,
            "type": _text(e.get("type")) or "Time Off",
            "start": _text(e.get("start")),
            "end": _text(e.get("end")),
        }

    if week:
        monday, sunday = week
        title = f"Who's Out This Week ({_short_day(monday)} - {_short_day(sunday)})"
    else:
        title = "Who's Out"

    lines = _header(title)
    lines.append("")
    entries = sorted(by_person.values(), key=lambda e: e["start"])
    for e in entries:
        if not e["end"] or e["start"] == e["end"]:
            date_range = _day_or_raw(e["start"])
        else:
            date_range = f"{_day_or_raw(e['start'])} - {_day_or_raw(e['end'])}"
        lines.append(f"• {e['name']}: {date_range} ({e['type']})")
    lines.append("")
    noun = "person" if len(entries) == 1 else "people"
    lines.append(f"Total: {len(entries)} {noun} out")
    return "\n".join(lines)


def render_directory(data: Any) -> str:
    employees = [_dict(e) for e in _list(_dict(data).get("employees"))]
    if not employees:
        return "No employees found."

    by_department: dict[str, list[dict[str, Any]]] = {}
    for emp in employees:
        dept = _text(emp.get("department")) or "No Department"
        by_department.setdefault(dept, []).append(emp)

    lines = _header("Employee Directory")
    lines.append("")
    for dept in sorted(by_department):
        emps = sorted(by_department[dept], key=lambda e: _text(e.get("displayName")))
        lines.append(f"📁 {dept} ({len(emps)})")
        for emp in emps:
            name = _text(emp.get("displayName")) or _person(emp, "Unknown")
            title = _text(emp.get("jobTitle"))
            lines.append(f"   • {name}{f' - {title}' if title else ''}")
        lines.append("")
    lines.append(f"Total: {len(employees)} employee(s)")
    return "\n".join(lines)


def _rating(val: Any) -> str:
    try:
        n = int(val or 0)
    except (TypeError, ValueError):
        n = 0
    return "⭐" * n if n > 0 else "No rating"


def render_candidates(data: Any) -> str:
    payload = _dict(data)
    applications = [_dict(a) for a in _list(payload.get("applications"))]
    if not applications:
        return "No candidates found."

    lines = _header("Candidates")
    lines.append("")
    for app in applications:
        applicant = _dict(app.get("applicant"))
        job = _text(_dict(_dict(app.get("job")).get("title")).get("label")) or "Unknown Position"
        status = _text(_dict(app.get("status")).get("label")) or "Unknown"
        lines.append(f"[{_text(app.get('id'))}] {_person(applicant, 'Unknown')}")
        lines.append(f"    📋 Position: {job}")
        lines.append(f"    📊 Status: {status}")
        lines.append(f"    📅 Applied: {_long_date(app.get('appliedDate'))}")
        lines.append(f"    ✉️  Email: {_text(applicant.get('email')) or 'N/A'}")
        lines.append(f"    {_rating(app.get('rating'))}")
        lines.append("")

    lines.append(f"Total: {len(applications)} candidate(s)")
    if not payload.get("paginationComplete"):
        lines.append("(More results available - use --page to paginate)")
    return "\n".join(lines)


def _available(val: Any) -> str:
    return "✅ Available" if val else "❌ Not uploaded"


def render_candidate(data: Any, *, prog_name: str = "bamboohr") -> str:
    app = _dict(data)
    applicant = _dict(app.get("applicant"))
    status = _dict(app.get("status"))
    app_id = _text(app.get("id"))
    job = _text(_dict(_dict(app.get("job")).get("title")).get("label")) or "Unknown Position"

    lines = [
        f"Candidate: {_person(applicant, 'Unknown')}",
        "=" * RULE_WIDTH,
        f"Application ID: {app_id}",
        f"Position: {job}",
        f"Status: {_text(status.get('label')) or 'Unknown'}",
        f"Applied: {_long_date(app.get('appliedDate'))}",
        "",
        "Contact:",
        f"  Email: {_text(applicant.get('email')) or 'N/A'}",
        f"  Phone: {_text(applicant.get('phoneNumber')) or 'N/A'}",
        f"  LinkedIn: {_text(applicant.get('linkedinUrl')) or 'N/A'}",
        "",
        f"Source: {_text(applicant.get('source')) or 'N/A'}",
        f"Desired Salary: {_text(app.get('desiredSalary')) or 'N/A'}",
        f"Available Start: {_text(applicant.get('availableStartDate')) or 'N/A'}",
    ]

    if status.get("changedByUser"):
        changed_by = _person(status.get("changedByUser"), "Unknown")
        lines.append("")
        lines.append(f"Status changed by: {changed_by} on {_long_datetime(status.get('dateChanged'))}")

    comment_count = app.get("commentCount") or 0
    lines.extend(
        [
            "",
            "Files & Feedback:",
            f"  Resume/CV: {_available(app.get('resumeFileId'))}",
            f"  Cover Letter: {_available(app.get('coverLetterFileId'))}",
            f"  Comments: {comment_count}",
            f"  Emails: {app.get('emailCount') or 0}",
        ]
    )

    if app.get("resumeFileId"):
        lines.append("")
        lines.append(f"💡 To download CV: {prog_name} download-cv {app_id}")
    if comment_count:
        lines.append(f"💡 To view comments: {prog_name} candidate-comments {app_id} --summary")
    lines.append(f"💡 To view/edit notes: {prog_name} candidate-notes {app_id} --summary")
    return "\n".join(lines)


def render_candidate_comments(data: Any, *, application_id: str) -> str:
    lines = [f"Comments for Application {application_id}", "=" * RULE_WIDTH]
    comments = [_dict(c) for c in _list(data)]
    if not comments:
        lines.append("No comments found.")
        return "\n".join(lines)

    for c in comments:
        author = _person(c.get("createdByUser"), "System")
        lines.append("")
        lines.append(f"[{_text(c.get('id'))}] {author} - {_long_datetime(c.get('createdDate'))}")
        lines.append(_text(c.get("comment")))
    lines.append("")
    lines.append(f"Total: {len(comments)} comment(s)")
    return "\n".join(lines)


def render_candidate_notes(data: Any, *, application_id: str) -> str:
    lines = [f"Private Notes for Application {application_id}", "=" * RULE_WIDTH]
    notes = _dict(data)
    if not _text(notes.get("notes")):
        lines.append("No private notes found.")
        return "\n".join(lines)

    last_modified = _long_datetime(notes.get("lastModified")) if notes.get("lastModified") else "Unknown"
    modified_by = _person(notes.get("lastModifiedByUser"), "Unknown")
    lines.append(f"Last modified: {last_modified} by {modified_by}")
    lines.append("")
    lines.append(str(notes.get("notes")))
    return "\n".join(lines)


def _status_line(status: dict[str, Any]) -> str:
    code = _text(status.get("code"))
    return f"  [{_text(status.get('id'))}] {_text(status.get('name'))}{f' ({code})' if code else ''}"


def render_statuses(data: Any) -> str:
    statuses = [_dict(s) for s in _list(data)]
    enabled = [s for s in statuses if s.get("enabled")]
    disabled = [s for s in statuses if not s.get("enabled")]

    lines = _header("Applicant Statuses")
    lines.append("")
    lines.append("✅ Enabled Statuses:")
    lines.extend(_status_line(s) for s in enabled)
    if disabled:
        lines.append("")
        lines.append("❌ Disabled Statuses:")
        lines.extend(_status_line(s) for s in disabled)
    lines.append("")
    lines.append(
        f"Total: {len(statuses)} statuses ({len(enabled)} enabled, {len(disabled)} disabled)"
    )
    return "\n".join(lines)


def _job_location(job: dict[str, Any]) -> str:
    loc = _dict(job.get("location"))
    city = _text(loc.get("city"))
    if not city:
        return "Remote/Unspecified"
    return f"{city}, {_text(loc.get('state')) or _text(loc.get('country'))}"


def render_jobs(data: Any) -> str:
    jobs = [_dict(j) for j in _list(data)]
    if not jobs:
        return "No jobs found."

    lines = _header("Job Openings")
    lines.append("")
    for job in jobs:
        status = _text(_dict(job.get("status")).get("label"))
        icon = "🟢" if status == "Open" else "⚪"
        title = _text(_dict(job.get("title")).get("label")) or "Untitled"
        lines.append(f"{icon} [{_text(job.get('id'))}] {title}")
        lines.append(f"    Status: {status or 'Unknown'}")
        lines.append(f"    Location: {_job_location(job)}")
        lines.append(f"    Openings: {_text(job.get('numberOfOpenings')) or 'N/A'}")
        lines.append(f"    Applicants: {job.get('applicantCount') or 0}")
        lines.append("")
    lines.append(f"Total: {len(jobs)} job(s)")
    return "\n".join(lines)


def render_download(result: dict[str, Any]) -> str:
    size_kb = float(result.get("size") or 0) / 1024
    return "\n".join(
        [
            "✅ Resume downloaded successfully:",
            f"   File: {result.get('filename')}",
            f"   Path: {result.get('filepath')}",
            f"   Size: {size_kb:.1f} KB",
            f"   Type: {result.get('contentType')}",
        ]
    )

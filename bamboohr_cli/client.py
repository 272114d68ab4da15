from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date, timedelta
from pathlib import Path, PurePosixPath
from typing import Any, Callable, Sequence
from urllib.parse import quote, unquote

from .cli_shared import ApiError, BambooCliError, ResumeNotFoundError, ValidationError
from .transport import RequestBuilder, ResponseEnvelope

DEFAULT_EMPLOYEE_FIELDS = (
    "firstName",
    "lastName",
    "displayName",
    "jobTitle",
    "department",
    "workEmail",
)

_FILENAME_RE = re.compile(r"""(?:^|;)\s*filename\s*=\s*([^;\n]*)""", re.IGNORECASE)
_FILENAME_EXT_RE = re.compile(r"""(?:^|;)\s*filename\*\s*=\s*([^';\n]*)'[^';\n]*'([^;\n]*)""", re.IGNORECASE)


def _path_segment(value: Any) -> str:
    return quote(str(value), safe="")


def safe_filename(name: str | None) -> str | None:
    """Reduce a server- or record-supplied name to a bare file name."""

    if not name:
        return None
    base = PurePosixPath(str(name).replace("\\", "/").strip()).name
    if base in ("", ".", ".."):
        return None
    return base


def week_bounds(today: date | None = None) -> tuple[date, date]:
    """Monday and Sunday of the week containing ``today`` (local date)."""

    d = today or date.today()
    monday = d - timedelta(days=d.weekday())
    return monday, monday + timedelta(days=6)


def filename_from_content_disposition(value: str | None) -> str | None:
    """Plain ``filename=`` wins; an RFC 5987 ``filename*=`` value is decoded otherwise."""

    if not value:
        return None
    m = _FILENAME_RE.search(value)
    if m:
        name = m.group(1).replace('"', "").replace("'", "").strip()
        if name:
            return safe_filename(name)
    m = _FILENAME_EXT_RE.search(value)
    if m:
        charset = m.group(1).strip() or "utf-8"
        try:
            name = unquote(m.group(2).strip(), encoding=charset, errors="replace")
        except LookupError:
            name = unquote(m.group(2).strip())
        return safe_filename(name)
    return None


def extension_for_content_type(content_type: str | None) -> str:
    ct = (content_type or "").lower()
    if "pdf" in ct:
        return ".pdf"
    if "word" in ct:
        return ".docx"
    return ".pdf"


def resume_filename(
    *,
    application_id: str,
    recorded_name: str | None,
    content_disposition: str | None,
    content_type: str | None,
) -> str:
    filename = (
        filename_from_content_disposition(content_disposition)
        or safe_filename(recorded_name)
        or f"candidate_{_path_segment(application_id)}_resume"
    )
    if "." not in filename:
        filename += extension_for_content_type(content_type)
    return filename


@dataclass(frozen=True)
class CandidateInput:
    first_name: str | None
    last_name: str | None
    job_id: str | int | None
    email: str | None = None
    phone: str | None = None
    address: str | None = None
    city: str | None = None
    state: str | None = None
    zip: str | None = None
    country: str | None = None
    source: str | None = None
    website_url: str | None = None
    linkedin_url: str | None = None
    cover_letter: str | None = None

    def payload(self) -> dict[str, str]:
        if not self.first_name or not self.last_name or not self.job_id:
            raise ValidationError("firstName, lastName, and jobId are required")
        out = {
            "firstName": self.first_name,
            "lastName": self.last_name,
            "jobId": str(self.job_id),
        }
        optional = {
            "email": self.email,
            "phone": self.phone,
            "address": self.address,
            "city": self.city,
            "state": self.state,
            "zip": self.zip,
            "country": self.country,
            "source": self.source,
            "websiteUrl": self.website_url,
            "linkedinUrl": self.linkedin_url,
            "coverLetter": self.cover_letter,
        }
        out.update({k: v for k, v in optional.items() if v})
        return out


class BambooClient:
    """One method per BambooHR endpoint; every call goes through the builder."""

    def __init__(self, builder: RequestBuilder, *, warn: Callable[[str], None] | None = None) -> None:
        self.builder = builder
        self._warn = warn

    # Time off and employees

    def get_whos_out(self, *, start: str | None = None, end: str | None = None) -> Any:
        return self.builder.request("/time_off/whos_out/", {"start": start, "end": end})

    def get_whos_out_this_week(self, today: date | None = None) -> Any:
        monday, sunday = week_bounds(today)
        return self.get_whos_out(start=monday.isoformat(), end=sunday.isoformat())

    def get_employee_directory(self) -> Any:
        return self.builder.request("/employees/directory")

    def get_employee(self, employee_id: str, fields: Sequence[str] | None = None) -> Any:
        return self.builder.request(
            f"/employees/{_path_segment(employee_id)}",
            {"fields": ",".join(fields or DEFAULT_EMPLOYEE_FIELDS)},
        )

    def get_time_off_requests(
        self,
        *,
        start: str | None = None,
        end: str | None = None,
        status: str | None = None,
        employee_id: str | None = None,
    ) -> Any:
        return self.builder.request(
            "/time_off/requests/",
            {"start": start, "end": end, "status": status, "employeeId": employee_id},
        )

    def get_time_off_types(self) -> Any:
        return self.builder.request("/meta/time_off/types")

    # Applicant tracking

    def get_applicant_statuses(self) -> Any:
        return self.builder.request("/applicant_tracking/statuses")

    def get_applications(
        self,
        *,
        page: str | None = None,
        page_limit: str | None = None,
        job_id: str | None = None,
        status_id: str | None = None,
        sort_by: str | None = None,
        sort_order: str | None = None,
    ) -> Any:
        return self.builder.request(
            "/applicant_tracking/applications",
            {
                "page": page,
                "pageLimit": page_limit,
                "jobId": job_id,
                "statusId": status_id,
                "sortBy": sort_by,
                "sortOrder": sort_order,
            },
        )

    def get_application(self, application_id: str) -> Any:
        return self.builder.request(f"/applicant_tracking/applications/{_path_segment(application_id)}")

    def update_applicant_status(self, application_id: str, status_id: int) -> Any:
        return self.builder.request(
            f"/applicant_tracking/applications/{_path_segment(application_id)}/status",
            method="POST",
            body={"status": status_id},
        )

    def add_application_comment(self, application_id: str, comment: str) -> Any:
        return self.builder.request(
            f"/applicant_tracking/applications/{_path_segment(application_id)}/comments",
            method="POST",
            body={"comment": comment},
        )

    def add_candidate(self, candidate: CandidateInput) -> Any:
        payload = candidate.payload()
        return self.builder.request("/applicant_tracking/application", method="POST", body=payload)

    def get_job_summaries(
        self,
        *,
        status_groups: str | None = None,
        sort_by: str | None = None,
        sort_order: str | None = None,
    ) -> Any:
        return self.builder.request(
            "/applicant_tracking/jobs",
            {"statusGroups": status_groups, "sortBy": sort_by, "sortOrder": sort_order},
        )

    def get_candidate_comments(self, application_id: str) -> Any:
        return self.builder.request(f"/applicant_tracking/applications/{_path_segment(application_id)}/comments")

    def get_candidate_notes(self, application_id: str) -> Any:
        return self.builder.request(f"/applicant_tracking/applications/{_path_segment(application_id)}/notes")

    def update_candidate_notes(self, application_id: str, notes: str) -> Any:
        return self.builder.request(
            f"/applicant_tracking/applications/{_path_segment(application_id)}/notes",
            method="PUT",
            body={"notes": notes},
        )

    # Files

    def _fetch_file(self, file_id: Any) -> ResponseEnvelope:
        resp = self.builder.send(self.builder.build(f"/files/{_path_segment(file_id)}", accept_json=False))
        if not resp.ok:
            raise ApiError(
                f"Failed to download resume: HTTP {resp.status_code} - {resp.reason}",
                status=resp.status_code,
                data=resp.decoded(),
            )
        return resp

    def download_candidate_resume(self, application_id: str, output_path: str | None = None) -> dict[str, Any]:
        application = self.get_application(application_id)
        file_id = application.get("resumeFileId") if isinstance(application, dict) else None
        if not file_id:
            raise ResumeNotFoundError("No resume file found for this candidate")

        resp = self._fetch_file(file_id)
        content_type = resp.header("content-type")
        filename = resume_filename(
            application_id=application_id,
            recorded_name=application.get("resumeFileName"),
            content_disposition=resp.header("content-disposition"),
            content_type=content_type,
        )

        final_path = Path(output_path) if output_path else Path("tmp") / filename
        try:
            final_path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            # Best effort; the write below reports the real failure.
            if self._warn is not None:
                self._warn(f"could not create {final_path.parent}: {e}")
        try:
            final_path.write_bytes(resp.body)
        except OSError as e:
            raise BambooCliError(f"failed to write resume to {final_path}: {e}") from e

        return {
            "filename": filename,
            "filepath": str(final_path),
            "size": final_path.stat().st_size,
            "contentType": content_type or "application/octet-stream",
        }

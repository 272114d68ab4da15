from __future__ import annotations

import sys
from dataclasses import dataclass
from datetime import date
from typing import Any, Callable

from . import formatters
from .arg_tokens import ParsedCommand, option_flag, option_str
from .cli_shared import GlobalOpts, ValidationError, _print_json
from .client import BambooClient, CandidateInput, week_bounds

PROG_NAME = "bamboohr"

HELP_TEXT = f"""
BambooHR CLI

USAGE:
  {PROG_NAME} <command> [options]

TIME OFF COMMANDS:
  whos-out                    Get who's out today
  whos-out --week             Get who's out this week (Mon-Sun)
  whos-out -s <date> -e <date>  Who's out in date range
  time-off                    Get time off requests
  time-off-types              List time off types

EMPLOYEE COMMANDS:
  directory                   Get employee directory
  employee <id>               Get specific employee

APPLICANT TRACKING (ATS) COMMANDS:
  candidates                  List job candidates
  candidate <id>              Get specific candidate
  statuses                    List applicant statuses
  jobs                        List job openings
  update-candidate-status <appId> <statusId>
                              Update candidate status
  add-candidate-comment <appId> <comment>
                              Add comment to candidate
  add-candidate               Create new candidate
  download-cv <appId>         Download candidate resume/CV
  candidate-comments <appId>  Get candidate comments
  candidate-notes <appId>     Get candidate private notes
  update-candidate-notes <appId> <notes>
                              Add/update private notes

OPTIONS:
  --company <domain>          Company domain (env BAMBOOHR_COMPANY)
  --api-key <key>             API key outside the sandbox (env BAMBOOHR_API_KEY)
  --timeout <seconds>         Per-request timeout (default 30)
  -s, --start <date>          Start date (YYYY-MM-DD)
  -e, --end <date>            End date (YYYY-MM-DD)
  -w, --week                  This week (Mon-Sun)
  -j, --job <jobId>           Filter by job ID
  --status <status>           Filter by status
  --employee <id>             Filter time off by employee
  --fields <a,b,c>            Employee fields to fetch
  -p, --page <page>           Page number
  -l, --limit <limit>         Results per page (max 100)
  --sort <field>              Sort field
  --order <order>             Sort order (ASC/DESC)
  -o, --output <path>         Output file path (for downloads)
  --summary                   Human-readable output
  --json                      Raw JSON output
  --plain-json                Compact JSON output
  --quiet                     Suppress stderr warnings
  --version                   Show version and exit

EXAMPLES:
  {PROG_NAME} whos-out --summary
  {PROG_NAME} whos-out --week --summary
  {PROG_NAME} directory --summary
  {PROG_NAME} candidates --summary
  {PROG_NAME} jobs --status OPEN --summary
  {PROG_NAME} update-candidate-status 1645 12
  {PROG_NAME} download-cv 1712
  {PROG_NAME} candidate-comments 1712 --summary
  {PROG_NAME} update-candidate-notes 1712 "Strong candidate"

APPLICANT STATUS IDs:
  1  = New              10 = Not a Fit
  12 = Not Qualified    13 = Over Qualified
  14 = Hired Elsewhere  15 = Hired
  16 = Offer Sent       17 = Offer Signed
"""


def _out(text: str) -> None:
    sys.stdout.write(text + "\n")


def _emit(result: Any, g: GlobalOpts, render: Callable[[Any], str] | None = None) -> None:
    if g.json_output or not g.summary or render is None:
        _print_json(result, pretty=g.pretty)
        return
    _out(render(result))


def _usage(rest: str) -> str:
    return f"Usage: {PROG_NAME} {rest}"


def _require_positional(p: ParsedCommand, index: int, *, message: str, usage: str) -> str:
    if index < len(p.positional) and p.positional[index].strip():
        return p.positional[index]
    raise ValidationError(message, usage=_usage(usage))


# Per-command argument records, bound once from the parsed option map.


@dataclass(frozen=True)
class NoArgs:
    pass


@dataclass(frozen=True)
class WhosOutArgs:
    start: str | None
    end: str | None
    week: bool


@dataclass(frozen=True)
class EmployeeArgs:
    employee_id: str
    fields: tuple[str, ...] | None


@dataclass(frozen=True)
class TimeOffArgs:
    start: str | None
    end: str | None
    status: str | None
    employee_id: str | None


@dataclass(frozen=True)
class CandidatesArgs:
    job_id: str | None
    status_id: str | None
    sort_by: str | None
    sort_order: str | None
    page: str | None
    page_limit: str | None


@dataclass(frozen=True)
class ApplicationArgs:
    application_id: str


@dataclass(frozen=True)
class JobsArgs:
    status_groups: str | None
    sort_by: str | None
    sort_order: str | None


@dataclass(frozen=True)
class StatusUpdateArgs:
    application_id: str
    status_id: int


@dataclass(frozen=True)
class ApplicationTextArgs:
    application_id: str
    text: str


@dataclass(frozen=True)
class DownloadArgs:
    application_id: str
    output_path: str | None


def _bind_none(p: ParsedCommand) -> NoArgs:
    del p
    return NoArgs()


def _bind_whos_out(p: ParsedCommand) -> WhosOutArgs:
    o = p.options
    return WhosOutArgs(
        start=option_str(o, "start", "s"),
        end=option_str(o, "end", "e"),
        week=option_flag(o, "week", "w"),
    )


def _bind_employee(p: ParsedCommand) -> EmployeeArgs:
    employee_id = _require_positional(p, 0, message="Employee ID required", usage="employee <id>")
    raw_fields = option_str(p.options, "fields")
    fields = None
    if raw_fields:
        fields = tuple(f.strip() for f in raw_fields.split(",") if f.strip()) or None
    return EmployeeArgs(employee_id=employee_id, fields=fields)


def _bind_time_off(p: ParsedCommand) -> TimeOffArgs:
    o = p.options
    return TimeOffArgs(
        start=option_str(o, "start", "s"),
        end=option_str(o, "end", "e"),
        status=option_str(o, "status"),
        employee_id=option_str(o, "employee"),
    )


def _bind_candidates(p: ParsedCommand) -> CandidatesArgs:
    o = p.options
    return CandidatesArgs(
        job_id=option_str(o, "job", "j"),
        status_id=option_str(o, "status"),
        sort_by=option_str(o, "sort"),
        sort_order=option_str(o, "order"),
        page=option_str(o, "page", "p"),
        page_limit=option_str(o, "limit", "l"),
    )


def _application_binder(command: str) -> Callable[[ParsedCommand], ApplicationArgs]:
    def bind(p: ParsedCommand) -> ApplicationArgs:
        app_id = _require_positional(
            p, 0, message="Application ID required", usage=f"{command} <appId>"
        )
        return ApplicationArgs(application_id=app_id)

    return bind


def _bind_jobs(p: ParsedCommand) -> JobsArgs:
    o = p.options
    return JobsArgs(
        status_groups=option_str(o, "status"),
        sort_by=option_str(o, "sort"),
        sort_order=option_str(o, "order"),
    )


def _bind_status_update(p: ParsedCommand) -> StatusUpdateArgs:
    usage = "update-candidate-status <appId> <statusId>"
    message = "Application ID and Status ID required"
    app_id = _require_positional(p, 0, message=message, usage=usage)
    raw_status = _require_positional(p, 1, message=message, usage=usage)
    try:
        status_id = int(raw_status.strip())
    except ValueError as e:
        raise ValidationError(f"Status ID must be an integer, got {raw_status!r}", usage=_usage(usage)) from e
    return StatusUpdateArgs(application_id=app_id, status_id=status_id)


def _bind_comment(p: ParsedCommand) -> ApplicationTextArgs:
    usage = 'add-candidate-comment <appId> "comment text"'
    message = "Application ID and comment required"
    app_id = _require_positional(p, 0, message=message, usage=usage)
    comment = " ".join(p.positional[1:]).strip() or (option_str(p.options, "comment") or "").strip()
    if not comment:
        raise ValidationError(message, usage=_usage(usage))
    return ApplicationTextArgs(application_id=app_id, text=comment)


def _bind_add_candidate(p: ParsedCommand) -> CandidateInput:
    o = p.options
    candidate = CandidateInput(
        first_name=option_str(o, "first-name", "f"),
        last_name=option_str(o, "last-name", "l"),
        job_id=option_str(o, "job", "j"),
        email=option_str(o, "email", "e"),
        phone=option_str(o, "phone", "p"),
        address=option_str(o, "address"),
        city=option_str(o, "city"),
        state=option_str(o, "state"),
        zip=option_str(o, "zip"),
        country=option_str(o, "country"),
        source=option_str(o, "source"),
        website_url=option_str(o, "website"),
        linkedin_url=option_str(o, "linkedin"),
        cover_letter=option_str(o, "cover-letter"),
    )
    if not candidate.first_name or not candidate.last_name or not candidate.job_id:
        raise ValidationError(
            "First name, last name, and job ID required",
            usage=_usage("add-candidate --first-name <name> --last-name <name> --job <jobId>"),
        )
    return candidate


def _bind_download(p: ParsedCommand) -> DownloadArgs:
    app_id = _require_positional(
        p, 0, message="Application ID required", usage="download-cv <appId> [-o output.pdf]"
    )
    return DownloadArgs(application_id=app_id, output_path=option_str(p.options, "output", "o"))


def _bind_notes_update(p: ParsedCommand) -> ApplicationTextArgs:
    usage = 'update-candidate-notes <appId> "notes text"'
    message = "Application ID and notes text required"
    app_id = _require_positional(p, 0, message=message, usage=usage)
    notes = " ".join(p.positional[1:]).strip()
    if not notes:
        raise ValidationError(message, usage=_usage(usage))
    return ApplicationTextArgs(application_id=app_id, text=notes)


# Command handlers: (args, g, client) -> exit code.


def cmd_whos_out(args: WhosOutArgs, g: GlobalOpts, client: BambooClient) -> int:
    week = None
    if args.week:
        today = date.today()
        week = week_bounds(today)
        result = client.get_whos_out_this_week(today)
    else:
        result = client.get_whos_out(start=args.start, end=args.end)
    _emit(result, g, lambda data: formatters.render_whos_out(data, week=week))
    return 0


def cmd_directory(args: NoArgs, g: GlobalOpts, client: BambooClient) -> int:
    del args
    _emit(client.get_employee_directory(), g, formatters.render_directory)
    return 0


def cmd_employee(args: EmployeeArgs, g: GlobalOpts, client: BambooClient) -> int:
    _emit(client.get_employee(args.employee_id, args.fields), g)
    return 0


def cmd_time_off(args: TimeOffArgs, g: GlobalOpts, client: BambooClient) -> int:
    result = client.get_time_off_requests(
        start=args.start,
        end=args.end,
        status=args.status,
        employee_id=args.employee_id,
    )
    _emit(result, g)
    return 0


def cmd_time_off_types(args: NoArgs, g: GlobalOpts, client: BambooClient) -> int:
    del args
    _emit(client.get_time_off_types(), g)
    return 0


def cmd_candidates(args: CandidatesArgs, g: GlobalOpts, client: BambooClient) -> int:
    result = client.get_applications(
        job_id=args.job_id,
        status_id=args.status_id,
        sort_by=args.sort_by,
        sort_order=args.sort_order,
        page=args.page,
        page_limit=args.page_limit,
    )
    _emit(result, g, formatters.render_candidates)
    return 0


def cmd_candidate(args: ApplicationArgs, g: GlobalOpts, client: BambooClient) -> int:
    result = client.get_application(args.application_id)
    _emit(result, g, lambda data: formatters.render_candidate(data, prog_name=PROG_NAME))
    return 0


def cmd_statuses(args: NoArgs, g: GlobalOpts, client: BambooClient) -> int:
    del args
    _emit(client.get_applicant_statuses(), g, formatters.render_statuses)
    return 0


def cmd_jobs(args: JobsArgs, g: GlobalOpts, client: BambooClient) -> int:
    result = client.get_job_summaries(
        status_groups=args.status_groups,
        sort_by=args.sort_by,
        sort_order=args.sort_order,
    )
    _emit(result, g, formatters.render_jobs)
    return 0


def cmd_update_candidate_status(args: StatusUpdateArgs, g: GlobalOpts, client: BambooClient) -> int:
    result = client.update_applicant_status(args.application_id, args.status_id)
    _print_json(result, pretty=g.pretty)
    _out(f"\n✅ Status updated for application {args.application_id}")
    return 0


def cmd_add_candidate_comment(args: ApplicationTextArgs, g: GlobalOpts, client: BambooClient) -> int:
    result = client.add_application_comment(args.application_id, args.text)
    _print_json(result, pretty=g.pretty)
    _out(f"\n✅ Comment added to application {args.application_id}")
    return 0


def cmd_add_candidate(args: CandidateInput, g: GlobalOpts, client: BambooClient) -> int:
    result = client.add_candidate(args)
    _print_json(result, pretty=g.pretty)
    _out(f"\n✅ Candidate {args.first_name} {args.last_name} added successfully!")
    if isinstance(result, dict) and result.get("id"):
        _out(f"Application ID: {result['id']}")
    return 0


def cmd_download_cv(args: DownloadArgs, g: GlobalOpts, client: BambooClient) -> int:
    result = client.download_candidate_resume(args.application_id, args.output_path)
    if g.json_output:
        _print_json(result, pretty=g.pretty)
    else:
        _out(formatters.render_download(result))
    return 0


def cmd_candidate_comments(args: ApplicationArgs, g: GlobalOpts, client: BambooClient) -> int:
    result = client.get_candidate_comments(args.application_id)
    _emit(
        result,
        g,
        lambda data: formatters.render_candidate_comments(data, application_id=args.application_id),
    )
    return 0


def cmd_candidate_notes(args: ApplicationArgs, g: GlobalOpts, client: BambooClient) -> int:
    result = client.get_candidate_notes(args.application_id)
    _emit(
        result,
        g,
        lambda data: formatters.render_candidate_notes(data, application_id=args.application_id),
    )
    return 0


def cmd_update_candidate_notes(args: ApplicationTextArgs, g: GlobalOpts, client: BambooClient) -> int:
    result = client.update_candidate_notes(args.application_id, args.text)
    if g.json_output:
        _print_json(result, pretty=g.pretty)
    else:
        _out(f"✅ Notes updated successfully for application {args.application_id}")
    return 0


@dataclass(frozen=True)
class Command:
    bind: Callable[[ParsedCommand], Any]
    run: Callable[[Any, GlobalOpts, BambooClient], int]


COMMANDS: dict[str, Command] = {
    "whos-out": Command(_bind_whos_out, cmd_whos_out),
    "directory": Command(_bind_none, cmd_directory),
    "employee": Command(_bind_employee, cmd_employee),
    "time-off": Command(_bind_time_off, cmd_time_off),
    "time-off-types": Command(_bind_none, cmd_time_off_types),
    "candidates": Command(_bind_candidates, cmd_candidates),
    "candidate": Command(_application_binder("candidate"), cmd_candidate),
    "statuses": Command(_bind_none, cmd_statuses),
    "jobs": Command(_bind_jobs, cmd_jobs),
    "update-candidate-status": Command(_bind_status_update, cmd_update_candidate_status),
    "add-candidate-comment": Command(_bind_comment, cmd_add_candidate_comment),
    "add-candidate": Command(_bind_add_candidate, cmd_add_candidate),
    "download-cv": Command(_bind_download, cmd_download_cv),
    "candidate-comments": Command(_application_binder("candidate-comments"), cmd_candidate_comments),
    "candidate-notes": Command(_application_binder("candidate-notes"), cmd_candidate_notes),
    "update-candidate-notes": Command(_bind_notes_update, cmd_update_candidate_notes),
}


def lookup(name: str) -> Command:
    cmd = COMMANDS.get(name)
    if cmd is None:
        raise ValidationError(f"Unknown command '{name}'", usage=f"Run: {PROG_NAME} help")
    return cmd

"""
Report Rendering
================

Text and JSON rendering of corpus lint reports.
"""

import json
from typing import Any, Dict, List

from skilldocs.models.schemas import CorpusReport, LintIssue, Severity, SkillSummary


def _sort_key(issue: LintIssue) -> Any:
    return (issue.source, issue.segment or 0, issue.line or 0, issue.code.value)


def render_text(report: CorpusReport, show_warnings: bool = True) -> str:
    """
    Render a report as one `location: severity [code] message` line per issue.

    Args:
        report: Corpus lint report
        show_warnings: Include warning issues

    Returns:
        Multi-line text ending with a summary line
    """
    issues = [
        issue
        for issue in sorted(report.issues, key=_sort_key)
        if show_warnings or issue.severity == Severity.ERROR
    ]

    lines = [issue.format() for issue in issues]

    summary = report.summary()
    status = "passed" if report.valid else "failed"
    lines.append(
        f"{summary['files']} file(s), {summary['documents']} document(s): "
        f"{summary['errors']} error(s), {summary['warnings']} warning(s) - {status}"
    )
    return "\n".join(lines)


def report_to_dict(report: CorpusReport, include_documents: bool = False) -> Dict[str, Any]:
    """JSON-compatible representation of a report."""
    data: Dict[str, Any] = {
        "root": report.root,
        "started_at": report.started_at.isoformat(),
        "processing_time": report.processing_time,
        "summary": report.summary(),
        "issues": [issue.model_dump(mode="json") for issue in sorted(report.issues, key=_sort_key)],
    }
    if include_documents:
        data["documents"] = [
            {
                "source": doc.source,
                "segment": doc.segment,
                "name": doc.name,
                "description": doc.description,
                "has_front_matter": doc.has_front_matter,
            }
            for doc in report.documents
        ]
    return data


def render_json(report: CorpusReport, include_documents: bool = False) -> str:
    """Render a report as indented JSON."""
    return json.dumps(report_to_dict(report, include_documents), indent=2)


def render_skill_table(skills: List[SkillSummary]) -> str:
    """Render catalogued skills as an aligned two-column listing."""
    if not skills:
        return "No skills found"
    width = max(len(skill.name) for skill in skills)
    return "\n".join(f"{skill.name:<{width}}  {skill.description}" for skill in skills)

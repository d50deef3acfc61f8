"""Pydantic schemas for API."""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class ReportSummaryOut(BaseModel):
    """One listed report.

    Fields mirror ReportSummary in the scraper module; JSON keys are
    camelCase.
    """
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str = ''
    title: str = ''
    submitted_date: str = ''
    status: str = ''
    severity: str = ''
    type: str = ''
    assignee_or_reporter: str = ''
    whitehat_or_level: str = ''
    sla_state: str = ''
    last_update: str = ''
    unread: bool = False
    stale: bool = False
    link: str = ''


class ReportDetailOut(BaseModel):
    """Markdown for one report."""
    id: str
    markdown: str

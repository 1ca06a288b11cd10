"""
Pydantic models for jobs, analysis options and analysis results.
"""

import re
from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, Field, field_validator

from geo_analyzer.crawlers.page_signals import DeepPageResult, LightPageResult, PageSignals
from geo_analyzer.scoring.models import CheckRow, Finding, MainIssue, Score


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ============== Options ==============

class AnalyzeOptions(BaseModel):
    """Caller-tunable knobs of one discovery + analysis run."""
    include_sitemap: bool = True
    sample_sitemap: bool = True
    max_sample_pages: int = Field(default=10, ge=1, le=50)

    crawl: bool = True
    crawl_render: bool = False
    crawl_max_pages: int = Field(default=50, ge=1, le=500)
    keep_query: bool = False
    keep_hash: bool = False
    seeds: list[str] = Field(default_factory=list)
    include_patterns: list[str] = Field(default_factory=list)
    exclude_patterns: list[str] = Field(default_factory=list)

    guess_paths: bool = True
    deep_analyze_max: int = Field(default=5, ge=0, le=50)

    @field_validator("include_patterns", "exclude_patterns")
    @classmethod
    def validate_patterns(cls, patterns: list[str]) -> list[str]:
        for pattern in patterns:
            try:
                re.compile(pattern)
            except re.error as e:
                raise ValueError(f"Invalid regex {pattern!r}: {e}") from e
        return patterns

    @field_validator("seeds")
    @classmethod
    def strip_seeds(cls, seeds: list[str]) -> list[str]:
        return [seed.strip() for seed in seeds if seed and seed.strip()]


# ============== Result Models ==============

class RobotsSummary(BaseModel):
    found: bool = False
    disallow: list[str] = Field(default_factory=list)
    broad_block: bool = False
    sitemap_listed_in_robots: bool = False


class SitemapSummary(BaseModel):
    found: bool = False
    candidates: list[str] = Field(default_factory=list)
    url_count: int = 0
    sample_count: int = 0
    # Share of crawl-discovered URLs that the sitemap lists, in percent
    coverage_pct: float | None = None


class ResultCounts(BaseModel):
    pages_scanned: int = 0
    pages_with_issues: int = 0
    severity_counts: dict[str, int] = Field(default_factory=dict)


class DiscoveryResult(BaseModel):
    """Everything one run produces."""
    requested_url: str
    main: PageSignals
    robots: RobotsSummary = Field(default_factory=RobotsSummary)
    sitemap: SitemapSummary = Field(default_factory=SitemapSummary)

    discovered_count: int = 0
    discovered: list[str] = Field(default_factory=list)
    orphan_candidates: list[str] = Field(default_factory=list)

    sampled_pages: list[LightPageResult] = Field(default_factory=list)
    crawl_analyses: list[LightPageResult] = Field(default_factory=list)
    deep_analyses: list[DeepPageResult] = Field(default_factory=list)

    findings: list[Finding] = Field(default_factory=list)
    counts: ResultCounts = Field(default_factory=ResultCounts)
    issues: list[MainIssue] = Field(default_factory=list)
    check_matrix: list[CheckRow] = Field(default_factory=list)
    score: Score = Field(default_factory=Score)


# ============== Job Models ==============

class JobStatus(str, Enum):
    QUEUED = "queued"
    RUNNING = "running"
    DONE = "done"
    ERROR = "error"

    @property
    def terminal(self) -> bool:
        return self in (JobStatus.DONE, JobStatus.ERROR)


class JobLogEntry(BaseModel):
    timestamp: datetime = Field(default_factory=utcnow)
    message: str


class Job(BaseModel):
    """
    One analysis request and its lifecycle.

    result is set only when status is done, error only when status is error.
    """
    id: str
    url: str
    options: AnalyzeOptions = Field(default_factory=AnalyzeOptions)
    status: JobStatus = JobStatus.QUEUED
    progress: int = 0
    result: DiscoveryResult | None = None
    error: str | None = None
    logs: list[JobLogEntry] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

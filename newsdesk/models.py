
from __future__ import annotations
from enum import Enum
from typing import Optional, List
from sqlmodel import SQLModel, Field, Column, JSON
from sqlalchemy import DateTime, UniqueConstraint
from sqlalchemy.types import TypeDecorator
from datetime import datetime, timezone

def utcnow() -> datetime:
    return datetime.now(timezone.utc)

class UTCDateTime(TypeDecorator):
    """Timezone-aware UTC in and out; SQLite drops the offset so it is reattached on load."""
    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)

class RunStatus(str, Enum):
    created = "created"
    running = "running"
    completed = "completed"
    failed = "failed"

class PhaseStatus(str, Enum):
    pending = "pending"
    in_progress = "in_progress"
    completed = "completed"
    failed = "failed"
    skipped = "skipped"

class Tier(str, Enum):
    essential = "Essential"
    important = "Important"
    optional = "Optional"

class Profile(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    created_at: datetime = Field(default_factory=utcnow, sa_type=UTCDateTime, index=True)
    name: str
    default_source_urls: List[str] = Field(sa_column=Column(JSON), default_factory=list)
    default_keywords: List[str] = Field(sa_column=Column(JSON), default_factory=list)
    trends_to_watch: List[str] = Field(sa_column=Column(JSON), default_factory=list)
    competitors_to_monitor: List[str] = Field(sa_column=Column(JSON), default_factory=list)

class Run(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    created_at: datetime = Field(default_factory=utcnow, sa_type=UTCDateTime, index=True)
    run_name: str
    topic: str
    keywords: List[str] = Field(sa_column=Column(JSON), default_factory=list)
    specific_urls: List[str] = Field(sa_column=Column(JSON), default_factory=list)
    source_urls: List[str] = Field(sa_column=Column(JSON), default_factory=list)
    lookback_days: int = 7
    mode: str = "auto"  # auto | guided
    min_fit_score: float = 6.0
    max_total_articles: int = 12
    max_per_domain: int = 4
    ranking_enabled: bool = True
    profile_id: Optional[int] = Field(default=None, foreign_key="profile.id")
    status: str = Field(default=RunStatus.created.value, index=True)

class RunPhase(SQLModel, table=True):
    __table_args__ = (UniqueConstraint("run_id", "phase_name"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    created_at: datetime = Field(default_factory=utcnow, sa_type=UTCDateTime)
    run_id: int = Field(foreign_key="run.id", index=True)
    phase_name: str
    status: str = Field(default=PhaseStatus.pending.value)
    started_at: Optional[datetime] = Field(default=None, sa_type=UTCDateTime)
    completed_at: Optional[datetime] = Field(default=None, sa_type=UTCDateTime)
    logs: Optional[str] = None
    error: Optional[str] = None

class Article(SQLModel, table=True):
    __table_args__ = (UniqueConstraint("run_id", "url"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    created_at: datetime = Field(default_factory=utcnow, sa_type=UTCDateTime, index=True)
    run_id: int = Field(foreign_key="run.id", index=True)
    url: str
    source_url: Optional[str] = None
    canonical_url: Optional[str] = None
    title: Optional[str] = None
    domain: str = ""
    word_count: Optional[int] = None
    content_text: Optional[str] = None
    publish_date: Optional[datetime] = Field(default=None, sa_type=UTCDateTime)

    is_fetched: bool = False
    is_relevant: Optional[bool] = None
    is_duplicate: bool = False
    is_kept: bool = True
    is_shortlisted: bool = False
    duplicate_of_id: Optional[int] = Field(default=None, foreign_key="article.id")
    sort_index: Optional[int] = None

class ArticleRanking(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    created_at: datetime = Field(default_factory=utcnow, sa_type=UTCDateTime)
    article_id: int = Field(foreign_key="article.id", unique=True, index=True)
    category: str
    score: float
    tier: str
    key_findings: List[str] = Field(sa_column=Column(JSON), default_factory=list)
    key_entities: List[str] = Field(sa_column=Column(JSON), default_factory=list)
    rationale: str = ""
    suggested_header: str = ""
    raw_json: dict = Field(sa_column=Column(JSON), default_factory=dict)

class ArticleSummary(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    created_at: datetime = Field(default_factory=utcnow, sa_type=UTCDateTime)
    article_id: int = Field(foreign_key="article.id", unique=True, index=True)
    summary_text: str
    why_it_matters: List[str] = Field(sa_column=Column(JSON), default_factory=list)
    implications: Optional[str] = None

class Newsletter(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    created_at: datetime = Field(default_factory=utcnow, sa_type=UTCDateTime, index=True)
    run_id: int = Field(foreign_key="run.id", index=True)
    title: str
    html_content: str

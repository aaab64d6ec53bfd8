"""
Default settings for inkwell's browser automation and file layout.
"""
from typing import List

from pydantic import BaseModel, Field


class TimeoutSettings(BaseModel):
    """Automation timings in seconds."""

    per_candidate: float = Field(
        default=2.0, gt=0, description="Time allowed for one locator candidate"
    )
    poll_interval: float = Field(
        default=0.25, gt=0, description="Delay between locator probes"
    )
    settle: float = Field(
        default=1.0, ge=0, description="Fixed wait after menus open or clicks land"
    )
    navigation: float = Field(
        default=30.0, gt=0, description="Page navigation / load-state timeout"
    )
    capture_deadline: float = Field(
        default=30.0, gt=0, description="Upper bound for capturing the export"
    )
    scan_grace: float = Field(
        default=3.0, ge=0, description="Scratch-directory scan window after capture"
    )


class PathSettings(BaseModel):
    """Workspace-relative locations."""

    state_dir: str = "data"
    scratch_dir: str = "temp"
    diagnostics_dir: str = "diagnostics"
    reports_dir: str = "reports/migrations"
    posts_dir: str = "posts"


class ArtifactSettings(BaseModel):
    """Naming heuristics for recognising export artifacts on disk."""

    suffixes: List[str] = Field(default_factory=lambda: [".json", ".zip", ".gz"])
    name_hints: List[str] = Field(default_factory=lambda: ["export", "journal"])
    download_url_hints: List[str] = Field(
        default_factory=lambda: ["download", "export"]
    )


class Settings(BaseModel):
    """Global settings for inkwell."""

    timeouts: TimeoutSettings = TimeoutSettings()
    paths: PathSettings = PathSettings()
    artifacts: ArtifactSettings = ArtifactSettings()


settings = Settings()

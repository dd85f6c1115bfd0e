from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


def _now() -> datetime:
    return datetime.now(timezone.utc)


class JobState(str, Enum):
    detected = "detected"
    locked = "locked"
    read = "read"
    transformed = "transformed"
    printed = "printed"
    archived = "archived"
    failed = "failed"


class RawJob(BaseModel):
    """One printer command stream as it was read from the watched directory."""

    model_config = ConfigDict(frozen=True)

    name: str
    path: Path
    data: bytes
    size: int

    @classmethod
    def from_file(cls, path: Path) -> "RawJob":
        data = Path(path).read_bytes()
        return cls(name=Path(path).name, path=Path(path), data=data, size=len(data))


class JobResult(BaseModel):
    name: str
    state: JobState = JobState.detected
    printed: bool = False
    archived: bool = False
    error: Optional[str] = None
    error_code: Optional[int] = None
    bytes_in: int = 0
    bytes_out: int = 0
    started_at: datetime = Field(default_factory=_now)
    finished_at: Optional[datetime] = None

    @property
    def ok(self) -> bool:
        return self.printed

from __future__ import annotations

from datetime import date

from pydantic import BaseModel, ConfigDict, Field


class CheckRequest(BaseModel):
    url: str = Field(..., min_length=1)


class UpdateRequest(BaseModel):
    url: str = Field(..., min_length=1)


class Verdict(BaseModel):
    """Outward-facing result of a safety check.

    Only ``success`` is guaranteed; the other fields are set when it is true.
    """

    model_config = ConfigDict(frozen=True)

    success: bool
    url: str | None = None
    score: int | None = None
    safe: bool | None = None

    @classmethod
    def failed(cls) -> Verdict:
        return cls(success=False)


class Ack(BaseModel):
    success: bool


class ClassificationStats(BaseModel):
    # The provider reports more engine buckets (undetected, timeout, ...); only these are scored.
    harmless: int = Field(0, ge=0)
    malicious: int = Field(0, ge=0)
    suspicious: int = Field(0, ge=0)


class MasterRecord(BaseModel):
    url: str
    score: int
    safe: bool
    date_added: date | None = None

    def to_verdict(self) -> Verdict:
        return Verdict(success=True, url=self.url, score=self.score, safe=self.safe)


class QueueEntry(BaseModel):
    url: str
    date_added: date | None = None

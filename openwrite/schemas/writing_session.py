from typing import Optional

from pydantic import Field

from openwrite.schemas.base import CamelModel


class WritingSessionStart(CamelModel):
    work_id: Optional[str] = None
    chapter_id: Optional[str] = None
    goal_words: Optional[int] = Field(None, ge=0)


class WritingSessionEnd(CamelModel):
    words_written: int = Field(..., ge=0)
    # Minutes; derived from the start time when omitted
    time_spent: Optional[int] = Field(None, ge=0)

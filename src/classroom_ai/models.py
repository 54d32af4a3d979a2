"""Data Models Module

Defines Pydantic models for the records that flow through the PDF analysis
pipeline: text chunks, per-chunk analysis results, quiz items and the final
merged analysis returned to the caller.
"""

from typing import List

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class TextChunk(BaseModel):
    """A contiguous slice of normalized document text.

    Chunks are numbered in document order starting at 0; that order is kept
    through analysis and merging.
    """
    model_config = ConfigDict(frozen=True)

    index: int = Field(ge=0)
    content: str

    @property
    def length(self) -> int:
        return len(self.content)


class QuizItem(BaseModel):
    """One four-option multiple-choice question.

    ``answer`` must be the full text of one of the options.
    """
    model_config = ConfigDict(frozen=True)

    question: str
    options: List[str]
    answer: str

    @field_validator("options")
    @classmethod
    def validate_options(cls, v: List[str]) -> List[str]:
        if len(v) != 4:
            raise ValueError(f"quiz item needs exactly 4 options, got {len(v)}")
        return v

    @model_validator(mode="after")
    def validate_answer(self) -> "QuizItem":
        if self.answer not in self.options:
            raise ValueError("answer must be one of the options")
        return self


class ChunkAnalysisResult(BaseModel):
    """Study-guide material produced from a single chunk."""
    model_config = ConfigDict(frozen=True)

    summary: str
    key_points: List[str] = Field(default_factory=list)
    quiz: List[QuizItem] = Field(default_factory=list)


class MergedAnalysis(BaseModel):
    """Document-level study guide assembled from all chunk results."""

    summary: str
    key_points: List[str] = Field(default_factory=list)
    quiz: List[QuizItem] = Field(default_factory=list)
    is_partial: bool = False

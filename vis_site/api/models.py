"""
Pydantic models for API requests and responses.
"""

from __future__ import annotations

from pydantic import BaseModel, Field
from pydantic.config import ConfigDict


class GenerateQuizRequest(BaseModel):
    """Body of the generate-quiz function; field names match the quiz page."""

    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={
            "examples": [
                {
                    "classLevel": "Class 8",
                    "subject": "Science",
                    "chapters": ["Light", "Sound"],
                }
            ]
        },
    )

    class_level: str = Field(alias="classLevel", min_length=1, max_length=40)
    subject: str = Field(min_length=1, max_length=80)
    chapters: list[str] = Field(default_factory=list, max_length=40)


class QuizQuestionModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: int
    question: str
    options: list[str] = Field(min_length=4, max_length=4)
    correct_answer: int = Field(alias="correctAnswer", ge=0, le=3)
    explanation: str = ""


class GenerateQuizResponse(BaseModel):
    questions: list[QuizQuestionModel]


class ErrorResponse(BaseModel):
    error: str

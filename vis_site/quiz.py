"""
Quiz generator.

Asks the AI gateway for ten multiple-choice questions for a class level,
subject and chapter list, and turns the reply into `QuizQuestion` records.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Optional

import requests

from vis_site.config import Settings, settings as default_settings
from vis_site.exceptions import (
    APIConnectionError,
    APITimeoutError,
    MissingAPIKeyError,
    QuizParseError,
    RateLimitError,
    RemoteCallError,
    ServiceUnavailableError,
    ValidationError,
)
from vis_site.logging_config import get_logger

logger = get_logger(__name__)

SERVICE_NAME = "ai-gateway"

QUIZ_SYSTEM_PROMPT = """You are an educational quiz generator for Indian school curriculum. Generate exactly {count} multiple choice questions (MCQs) based on the given class level, subject, and chapters.

IMPORTANT: You must respond ONLY with a valid JSON array, no additional text or markdown.

Each question must have:
- "id": a unique number (1-{count})
- "question": the question text
- "options": an array of exactly 4 options (A, B, C, D)
- "correctAnswer": the index of the correct option (0-3)
- "explanation": a brief explanation of the correct answer

Make questions age-appropriate for the class level.
Cover the selected chapters proportionally.
Include a mix of easy, medium, and hard questions."""

QUIZ_USER_PROMPT = """Generate {count} MCQs for:
Class: {class_level}
Subject: {subject}
Chapters: {chapters}

Respond with ONLY a JSON array of questions, no markdown or extra text."""

@dataclass
class QuizRequest:
    class_level: str
    subject: str
    chapters: list[str] = field(default_factory=list)


@dataclass
class QuizQuestion:
    id: int
    question: str
    options: list[str]
    correct_answer: int
    explanation: str

    def to_payload(self) -> dict[str, Any]:
        """Camel-cased shape the quiz page expects."""
        return {
            "id": self.id,
            "question": self.question,
            "options": list(self.options),
            "correctAnswer": self.correct_answer,
            "explanation": self.explanation,
        }


def build_quiz_messages(request: QuizRequest, *, count: int = 10) -> list[dict[str, str]]:
    return [
        {"role": "system", "content": QUIZ_SYSTEM_PROMPT.format(count=count)},
        {
            "role": "user",
            "content": QUIZ_USER_PROMPT.format(
                count=count,
                class_level=request.class_level,
                subject=request.subject,
                chapters=", ".join(request.chapters),
            ),
        },
    ]


def extract_json_array(text: str) -> list[Any]:
    """
    Parse the span from the first ``[`` to the last ``]`` of a model reply, or the whole reply.

    Raises QuizParseError when neither parses to a list.
    """
    text = text or ""
    start, end = text.find("["), text.rfind("]")
    candidate = text[start : end + 1] if start != -1 and end > start else text
    try:
        data = json.loads(candidate)
    except (ValueError, RecursionError) as e:
        raise QuizParseError(reason=f"invalid JSON: {e}") from e
    if not isinstance(data, list):
        raise QuizParseError(reason=f"expected a JSON array, got {type(data).__name__}")
    return data


def parse_question(item: Any, *, position: int) -> QuizQuestion:
    if not isinstance(item, dict):
        raise QuizParseError(reason=f"question {position} is not an object")
    options = item.get("options")
    if not isinstance(options, list) or len(options) != 4:
        raise QuizParseError(reason=f"question {position} must have exactly 4 options")
    correct = item.get("correctAnswer")
    if isinstance(correct, bool) or not isinstance(correct, int) or not 0 <= correct <= 3:
        raise QuizParseError(reason=f"question {position} has an invalid correctAnswer")
    question = item.get("question")
    if not isinstance(question, str) or not question.strip():
        raise QuizParseError(reason=f"question {position} has no text")
    raw_id = item.get("id", position)
    return QuizQuestion(
        id=raw_id if isinstance(raw_id, int) and not isinstance(raw_id, bool) else position,
        question=question,
        options=[str(option) for option in options],
        correct_answer=correct,
        explanation=str(item.get("explanation") or ""),
    )


def parse_quiz_content(content: str) -> list[QuizQuestion]:
    items = extract_json_array(content)
    return [parse_question(item, position=index) for index, item in enumerate(items, start=1)]


class QuizGenerator:
    """
    Non-streaming wrapper around the AI gateway's chat-completion endpoint.

    Example:
        generator = QuizGenerator.from_settings()
        questions = generator.generate(QuizRequest("Class 8", "Science", ["Light", "Sound"]))
    """

    def __init__(
        self,
        api_key: Optional[str],
        *,
        gateway_url: str,
        model: str,
        temperature: float = 0.7,
        question_count: int = 10,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.api_key = api_key
        self.gateway_url = gateway_url
        self.model = model
        self.temperature = temperature
        self.question_count = question_count
        self.session = session or requests.Session()

    @classmethod
    def from_settings(cls, cfg: Settings | None = None, *, session: Optional[requests.Session] = None) -> "QuizGenerator":
        cfg = cfg or default_settings
        return cls(
            cfg.ai_gateway_api_key,
            gateway_url=cfg.ai_gateway_url,
            model=cfg.quiz_model,
            temperature=cfg.quiz_temperature,
            question_count=cfg.quiz_question_count,
            session=session,
        )

    def generate(self, request: QuizRequest) -> list[QuizQuestion]:
        if not self.api_key:
            raise MissingAPIKeyError("ai-gateway", env_var="LOVABLE_API_KEY")
        if not request.class_level or not request.subject:
            raise ValidationError("class level and subject are required", field="quiz")

        body = {
            "model": self.model,
            "messages": build_quiz_messages(request, count=self.question_count),
            "temperature": self.temperature,
        }
        try:
            response = self.session.post(
                self.gateway_url,
                json=body,
                headers={"Authorization": f"Bearer {self.api_key}", "Content-Type": "application/json"},
            )
        except requests.Timeout as e:
            raise APITimeoutError(SERVICE_NAME) from e
        except requests.RequestException as e:
            raise APIConnectionError(SERVICE_NAME, reason=str(e)) from e

        if not response.ok:
            if response.status_code == 429:
                raise RateLimitError()
            if response.status_code == 402:
                raise ServiceUnavailableError()
            logger.error("AI gateway error", extra={"status_code": response.status_code, "body": response.text[:500]})
            raise RemoteCallError("Failed to generate quiz", service=SERVICE_NAME, status_code=response.status_code)

        try:
            data = response.json()
        except (ValueError, RecursionError) as e:
            raise QuizParseError(reason="gateway reply was not JSON") from e
        content = _message_content(data)
        try:
            questions = parse_quiz_content(content)
        except QuizParseError:
            logger.error("Failed to parse quiz response", extra={"content": content[:500]})
            raise
        logger.info(
            "Quiz generated",
            extra={"subject": request.subject, "class_level": request.class_level, "question_count": len(questions)},
        )
        return questions


def _message_content(data: Any) -> str:
    """``choices[0].message.content`` or an empty string."""
    try:
        content = data["choices"][0]["message"]["content"]
    except (KeyError, IndexError, TypeError):
        return ""
    return content if isinstance(content, str) else ""


def questions_to_payload(questions: list[QuizQuestion]) -> list[dict[str, Any]]:
    return [q.to_payload() for q in questions]

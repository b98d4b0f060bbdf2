"""
Tests for vis_site.quiz module.

Covers prompt building, reply parsing and gateway error mapping. Offline.
"""

import json
from unittest import mock

import pytest

from vis_site.exceptions import (
    MissingAPIKeyError,
    QuizParseError,
    RateLimitError,
    RemoteCallError,
    ServiceUnavailableError,
    ValidationError,
)
from vis_site.quiz import (
    QuizGenerator,
    QuizRequest,
    build_quiz_messages,
    extract_json_array,
    parse_question,
    parse_quiz_content,
    questions_to_payload,
)


def _gateway_reply(content: str, status_code: int = 200):
    response = mock.MagicMock()
    response.ok = status_code < 400
    response.status_code = status_code
    response.text = content
    response.json.return_value = {"choices": [{"message": {"content": content}}]}
    return response


@pytest.fixture
def quiz_request():
    return QuizRequest(class_level="Class 8", subject="Science", chapters=["Light", "Sound"])


@pytest.fixture
def session():
    return mock.MagicMock()


@pytest.fixture
def generator(session):
    return QuizGenerator(
        "gateway-key",
        gateway_url="https://gateway.example/v1/chat/completions",
        model="google/gemini-2.5-flash",
        session=session,
    )


class TestPrompt:
    """Tests for build_quiz_messages."""

    def test_messages_mention_request(self, quiz_request):
        system, user = build_quiz_messages(quiz_request)
        assert system["role"] == "system"
        assert "exactly 10 multiple choice questions" in system["content"]
        assert user["role"] == "user"
        assert "Class: Class 8" in user["content"]
        assert "Subject: Science" in user["content"]
        assert "Chapters: Light, Sound" in user["content"]


class TestParsing:
    """Tests for reply parsing."""

    def test_extract_array_from_fenced_reply(self, quiz_items):
        text = "```json\n" + json.dumps(quiz_items) + "\n```"
        assert extract_json_array(text) == quiz_items

    def test_extract_bare_array(self):
        assert extract_json_array("[]") == []

    @pytest.mark.parametrize("text", ["", "no json here", '{"questions": null}'])
    def test_extract_failure(self, text):
        with pytest.raises(QuizParseError):
            extract_json_array(text)

    def test_parse_quiz_content(self, quiz_items):
        questions = parse_quiz_content(json.dumps(quiz_items))
        assert len(questions) == 10
        assert questions[0].correct_answer == 1
        assert questions_to_payload(questions)[0] == quiz_items[0]

    @pytest.mark.parametrize(
        "item",
        [
            {"question": "Q?", "options": ["A", "B", "C"], "correctAnswer": 0},
            {"question": "Q?", "options": ["A", "B", "C", "D"], "correctAnswer": 4},
            {"question": "Q?", "options": ["A", "B", "C", "D"], "correctAnswer": True},
            {"question": "  ", "options": ["A", "B", "C", "D"], "correctAnswer": 0},
            "not an object",
        ],
    )
    def test_invalid_question(self, item):
        with pytest.raises(QuizParseError):
            parse_question(item, position=1)

    def test_missing_id_uses_position(self):
        question = parse_question({"question": "Q?", "options": list("ABCD"), "correctAnswer": 2}, position=7)
        assert question.id == 7
        assert question.explanation == ""


class TestQuizGenerator:
    """Tests for QuizGenerator class."""

    def test_generate_success(self, generator, session, quiz_request, quiz_items):
        session.post.return_value = _gateway_reply(json.dumps(quiz_items))

        questions = generator.generate(quiz_request)

        assert len(questions) == 10
        args, kwargs = session.post.call_args
        assert args[0] == "https://gateway.example/v1/chat/completions"
        assert kwargs["json"]["model"] == "google/gemini-2.5-flash"
        assert kwargs["json"]["temperature"] == 0.7
        assert kwargs["headers"]["Authorization"] == "Bearer gateway-key"

    def test_missing_key(self, session, quiz_request):
        generator = QuizGenerator(None, gateway_url="http://g", model="m", session=session)
        with pytest.raises(MissingAPIKeyError):
            generator.generate(quiz_request)
        session.post.assert_not_called()

    def test_missing_subject(self, generator):
        with pytest.raises(ValidationError):
            generator.generate(QuizRequest(class_level="Class 8", subject=""))

    @pytest.mark.parametrize(
        "status_code, error_type",
        [(429, RateLimitError), (402, ServiceUnavailableError), (500, RemoteCallError)],
    )
    def test_gateway_errors(self, generator, session, quiz_request, status_code, error_type):
        session.post.return_value = _gateway_reply("oops", status_code=status_code)
        with pytest.raises(error_type):
            generator.generate(quiz_request)

    def test_unparseable_reply(self, generator, session, quiz_request):
        session.post.return_value = _gateway_reply("I cannot help with that.")
        with pytest.raises(QuizParseError):
            generator.generate(quiz_request)

    def test_empty_choices(self, generator, session, quiz_request):
        response = _gateway_reply("")
        response.json.return_value = {"choices": []}
        session.post.return_value = response
        with pytest.raises(QuizParseError):
            generator.generate(quiz_request)

    def test_deeply_nested_reply(self, generator, session, quiz_request):
        session.post.return_value = _gateway_reply("[" * 5000 + "]" * 5000)
        with pytest.raises(QuizParseError):
            generator.generate(quiz_request)

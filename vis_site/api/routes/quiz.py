"""
Quiz generator route (the ``generate-quiz`` function).
"""

from __future__ import annotations

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from vis_site.api.dependencies import get_quiz_generator
from vis_site.api.models import ErrorResponse, GenerateQuizRequest, GenerateQuizResponse
from vis_site.api.observability import get_request_id
from vis_site.exceptions import RateLimitError, ServiceUnavailableError, VisSiteError
from vis_site.quiz import QuizRequest, questions_to_payload

router = APIRouter(prefix="/functions/v1", tags=["quiz"])


@router.post(
    "/generate-quiz",
    response_model=GenerateQuizResponse,
    responses={
        200: {"description": "Generated questions"},
        402: {"model": ErrorResponse, "description": "Service temporarily unavailable"},
        429: {"model": ErrorResponse, "description": "Rate limited"},
        500: {"model": ErrorResponse, "description": "Generation or parsing failed"},
    },
)
def generate_quiz(payload: GenerateQuizRequest, request: Request) -> JSONResponse:
    generator = get_quiz_generator(request)
    quiz_request = QuizRequest(
        class_level=payload.class_level,
        subject=payload.subject,
        chapters=list(payload.chapters),
    )
    try:
        questions = generator.generate(quiz_request)
    except RateLimitError as exc:
        return JSONResponse(status_code=429, content={"error": exc.message})
    except ServiceUnavailableError as exc:
        return JSONResponse(status_code=402, content={"error": exc.message})
    except VisSiteError as exc:
        exc.request_id = get_request_id() or exc.request_id
        exc.log()
        return JSONResponse(status_code=500, content={"error": exc.message})

    return JSONResponse(content={"questions": questions_to_payload(questions)})

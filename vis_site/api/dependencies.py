"""
Dependency helpers for API routes.

Kept as plain functions reading request.app.state, like the rest of the app.
"""

from __future__ import annotations

from fastapi import Request

from vis_site.quiz import QuizGenerator


def get_quiz_generator(request: Request) -> QuizGenerator:
    generator = getattr(request.app.state, "quiz_generator", None)
    if generator is None:
        generator = QuizGenerator.from_settings()
        request.app.state.quiz_generator = generator
    return generator

"""Wire payload builders and an httpx mock backend."""

from __future__ import annotations

from typing import Any, Callable, Mapping, Union

import httpx

from quiz_client.data.transport import ApiClient

BASE_URL = "http://quiz.test/"

Reply = Union[httpx.Response, Callable[[httpx.Request], httpx.Response]]


def wire_quiz_question(
    question_id: int = 1,
    *,
    correct: int = 0,
    answers: tuple[str, ...] = ("Paris", "Rome", "Madrid"),
) -> dict[str, Any]:
    return {
        "id": question_id,
        "text": f"Question {question_id}?",
        "answers": list(answers),
        "correctAnswerIndex": correct,
        "category": "geography",
        "difficulty": "easy",
    }


def wire_question(question_id: int = 3) -> dict[str, Any]:
    return {
        "questionId": question_id,
        "questionText": "What is 2 + 2?",
        "reviewedBy": 9,
        "topic": {"topicId": 1, "topic": "math"},
        "status": {"statusId": 2, "text": "approved"},
        "difficulty": {"difficultyId": 1, "mode": "easy"},
    }


def wire_user(user_id: int = 7) -> dict[str, Any]:
    return {
        "userId": user_id,
        "surname": "Lovelace",
        "firstname": "Ada",
        "birthdate": "1815-12-10",
        "nickname": "ada",
        "email": "ada@example.com",
        "password": "s3cret",
        "userRole": {"userRoleId": 1, "userRole": "admin"},
    }


class JsonRoutes:
    """Map request paths to canned replies and record every request."""

    def __init__(self, routes: Mapping[str, Any]) -> None:
        self._routes = dict(routes)
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        reply = self._routes.get(request.url.path)
        if reply is None:
            return httpx.Response(404, json={"error": "not found"})
        if callable(reply):
            return reply(request)
        if isinstance(reply, httpx.Response):
            return reply
        return httpx.Response(200, json=reply)

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)


def make_client(routes: JsonRoutes) -> ApiClient:
    return ApiClient(BASE_URL, transport=routes.transport())

"""Drives the quiz API the way the browser page does.

A ``QuizSession`` owns the name, the ranked answers and the last profile
shown. Submissions carry a request token; only the response to the most
recently issued token is applied, so a slow earlier submission can never
overwrite a newer one.
"""
import itertools
import logging
from dataclasses import dataclass
from typing import Mapping, Optional, Sequence

import httpx

from .common.errors import ClientInputError, JediPathError
from .paywall.entitlement import PAID_COOKIE, ClientContext, is_entitled
from .profile.generator import ProfileResult
from .quiz import QUESTIONS, AnswerSet, Question, answers_to_payload, empty_answers, is_complete, set_rank

log = logging.getLogger(__name__)

DEFAULT_CERTIFICATE_NAME = "Padawan"
DEFAULT_CERTIFICATE_COLOR = "blue"
DEFAULT_CERTIFICATE_FORMS = ("Form I",)


class IncompleteAnswersError(ClientInputError):
    """Submission attempted before every question has three ranks."""


class ApiError(JediPathError):
    """The quiz API answered with an error status."""

    def __init__(self, message: str, status_code: int):
        super().__init__(message)
        self.status_code = status_code


@dataclass
class Submission:
    token: int
    result: Optional[ProfileResult]
    locked: bool
    applied: bool


def _error_message(response: httpx.Response, default: str) -> str:
    try:
        return response.json().get("error") or default
    except ValueError:
        return default


class QuizSession:
    def __init__(self, http: httpx.AsyncClient, questions: Sequence[Question] = QUESTIONS, name: str = ""):
        self.http = http
        self.questions = tuple(questions)
        self.name = name
        self.answers: AnswerSet = empty_answers(self.questions)
        self.result: Optional[ProfileResult] = None
        self.locked = False
        self._sealed: Optional[str] = None
        self._tokens = itertools.count(1)
        self._latest_token = 0

    def rank(self, question_index: int, rank: str, value: Optional[str]) -> AnswerSet:
        self.answers = set_rank(self.answers, question_index, rank, value)
        return self.answers

    @property
    def can_submit(self) -> bool:
        return is_complete(self.answers)

    async def submit(self) -> Submission:
        """POST the answers; incomplete answers never reach the network."""
        if not self.can_submit:
            raise IncompleteAnswersError("Please rank at least three options for every question.")
        token = next(self._tokens)
        self._latest_token = token
        response = await self.http.post(
            "/api/generate",
            json={"name": self.name, "answers": answers_to_payload(self.answers)},
        )
        if response.status_code >= 400:
            raise ApiError(_error_message(response, "Failed to generate profile"), response.status_code)

        body = response.json()
        result = ProfileResult.from_dict(body)
        locked = bool(body.get("locked", False))
        if token != self._latest_token:
            log.info(f"Discarding stale profile response (token {token}, latest {self._latest_token})")
            return Submission(token, result, locked, applied=False)
        self.result = result
        self.locked = locked
        self._sealed = body.get("sealed") if locked else None
        return Submission(token, result, locked, applied=True)

    async def start_checkout(self) -> str:
        """Return the hosted checkout URL to send the browser to."""
        response = await self.http.post("/api/stripe/checkout")
        if response.status_code >= 400:
            raise ApiError(_error_message(response, "Unable to start checkout"), response.status_code)
        return response.json()["url"]

    def is_entitled(self, query: Optional[Mapping[str, str]] = None) -> bool:
        """Display gate from the session's cookie jar and the page query string."""
        cookie = self.http.cookies.get(PAID_COOKIE)
        cookies = {PAID_COOKIE: cookie} if cookie else {}
        return is_entitled(ClientContext(cookies=cookies, query=dict(query or {})))

    async def unlock(self, query: Optional[Mapping[str, str]] = None) -> Optional[Submission]:
        """After payment, swap the locked preview for the full profile it was cut from.

        No new generation happens: the server opens the sealed result it
        handed out with the preview. A submission made meanwhile wins.
        """
        if not self.locked or not self._sealed or not self.is_entitled(query):
            return None
        token = self._latest_token
        response = await self.http.post("/api/unlock", json={"sealed": self._sealed})
        if response.status_code >= 400:
            raise ApiError(_error_message(response, "Unable to unlock profile"), response.status_code)

        result = ProfileResult.from_dict(response.json())
        if token != self._latest_token:
            log.info(f"Discarding unlocked profile for superseded submission {token}")
            return Submission(token, result, locked=False, applied=False)
        self.result = result
        self.locked = False
        self._sealed = None
        return Submission(token, result, locked=False, applied=True)

    async def download_certificate(self) -> bytes:
        attributes = self.result.attributes if self.result else None
        payload = {
            "name": self.name or DEFAULT_CERTIFICATE_NAME,
            "color": attributes.color if attributes else DEFAULT_CERTIFICATE_COLOR,
            "forms": list(attributes.forms) if attributes else list(DEFAULT_CERTIFICATE_FORMS),
            "portrait": None,
        }
        response = await self.http.post("/api/certificate", json=payload)
        if response.status_code >= 400:
            raise ApiError(_error_message(response, "Unable to generate certificate"), response.status_code)
        return response.content

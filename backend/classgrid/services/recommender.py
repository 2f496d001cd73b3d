from __future__ import annotations

import json
import logging
import re
from typing import Any

import requests
from pydantic import ValidationError

from classgrid.core.config import Settings
from classgrid.core.exceptions import ExternalServiceError, InputError, validation_error_details
from classgrid.schemas.generator import Recommendation, RecommenderConstraints
from classgrid.schemas.policy import TimeWindow
from classgrid.schemas.timetable import Section

logger = logging.getLogger(__name__)

CODE_FENCE_PATTERN = re.compile(r"^```(?:json)?\s*(.*?)\s*```$", re.DOTALL)

SYSTEM_PROMPT = "You are a helpful academic scheduling assistant. Always return valid JSON."


def build_prompt(constraints: RecommenderConstraints, *, level: int, group_name: str | None = None) -> str:
    target = f"level {level}" if group_name is None else f"level {level}, group {group_name}"
    return (
        f"Generate a weekly course timetable for {target} students.\n"
        f"Constraints (JSON): {constraints.model_dump_json()}\n"
        "Schedule exactly one section per course, never inside a blocked slot, "
        "and never two sections in the same room at overlapping times.\n"
        "Return only a JSON array. Each element must have: course_code, section_label, "
        'timeslot {"day", "start", "end"} with HH:MM times, room, allocated_student_ids, '
        "justification, confidence_score."
    )


def decode_content(content: Any) -> Any:
    if not isinstance(content, str):
        raise ExternalServiceError("Recommender returned no text content")
    text = content.strip()
    fenced = CODE_FENCE_PATTERN.match(text)
    if fenced:
        text = fenced.group(1)
    try:
        return json.loads(text)
    except json.JSONDecodeError as exc:
        raise ExternalServiceError("Recommender returned non-JSON content", details={"error": str(exc)}) from exc


class RecommenderClient:
    """Client for an OpenAI-compatible chat-completions endpoint."""

    def __init__(
        self,
        *,
        base_url: str,
        api_key: str | None,
        model: str,
        temperature: float = 0.3,
        timeout_seconds: float = 30.0,
        session: requests.Session | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.model = model
        self.temperature = temperature
        self.timeout_seconds = timeout_seconds
        self._session = session or requests.Session()

    @classmethod
    def from_settings(cls, settings: Settings) -> "RecommenderClient":
        return cls(
            base_url=settings.recommender_base_url,
            api_key=settings.recommender_api_key,
            model=settings.recommender_model,
            temperature=settings.recommender_temperature,
            timeout_seconds=settings.recommender_timeout_seconds,
        )

    def recommend(self, constraints: RecommenderConstraints, *, level: int, group_name: str | None = None) -> Any:
        """Return the decoded JSON the recommender produced; its shape is not checked here."""
        if not self.api_key:
            raise ExternalServiceError("Schedule recommender API key is not configured")

        payload = {
            "model": self.model,
            "temperature": self.temperature,
            "messages": [
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": build_prompt(constraints, level=level, group_name=group_name)},
            ],
        }
        try:
            response = self._session.post(
                f"{self.base_url}/chat/completions",
                json=payload,
                headers={"Authorization": f"Bearer {self.api_key}"},
                timeout=self.timeout_seconds,
            )
            response.raise_for_status()
        except requests.RequestException as exc:
            raise ExternalServiceError("Schedule recommender request failed", details={"error": str(exc)}) from exc

        try:
            content = response.json()["choices"][0]["message"]["content"]
        except (ValueError, KeyError, IndexError, TypeError) as exc:
            raise ExternalServiceError("Schedule recommender returned an unexpected response body") from exc
        return decode_content(content)


def parse_recommendations(raw: Any, *, section_capacity: int) -> list[Section]:
    if not isinstance(raw, list):
        raise InputError("Recommender output must be a JSON array", details={"received": type(raw).__name__})

    sections: list[Section] = []
    for index, item in enumerate(raw):
        try:
            recommendation = Recommendation.model_validate(item)
            sections.append(
                Section(
                    course_code=recommendation.course_code,
                    section_label=recommendation.section_label,
                    window=TimeWindow(
                        day=recommendation.timeslot.day,
                        start=recommendation.timeslot.start,
                        end=recommendation.timeslot.end,
                    ),
                    room=recommendation.room,
                    student_count=len(recommendation.allocated_student_ids),
                    capacity=section_capacity,
                )
            )
        except ValidationError as exc:
            raise InputError(
                "Malformed recommender entry",
                details={"index": index, "errors": validation_error_details(exc)},
            ) from exc
    return sections


def fetch_candidate_sections(
    client: RecommenderClient,
    constraints: RecommenderConstraints,
    *,
    level: int,
    group_name: str | None,
    section_capacity: int,
) -> list[Section]:
    try:
        raw = client.recommend(constraints, level=level, group_name=group_name)
    except ExternalServiceError as exc:
        logger.warning(
            "Recommender unavailable for level %s group %s, continuing with no sections: %s",
            level,
            group_name,
            exc.message,
        )
        return []
    sections = parse_recommendations(raw, section_capacity=section_capacity)
    logger.info("Recommender proposed %d section(s) for level %s group %s", len(sections), level, group_name)
    return sections

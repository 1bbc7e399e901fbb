"""Destiny profile generation: Grok first, local template as fallback."""
import asyncio
import json
import logging
import random
from dataclasses import dataclass, field
from typing import Optional, Sequence, TypeVar

from ..common.config import Settings
from ..common.errors import ClientInputError, ConfigurationError, ExternalServiceError
from ..common.grok import call_grok_with_settings
from ..quiz.types import RankedAnswer, answers_to_payload
from .prompts import CHALLENGES, COLOURS, FALLBACK_PROFILE, FORMS, PERSONA_PROMPT, PREVIEW_SUFFIX

log = logging.getLogger(__name__)

T = TypeVar("T")

PREVIEW_WORDS = 40
UNKNOWN_NAME = "Unknown"


@dataclass
class ProfileAttributes:
    color: str
    forms: list[str] = field(default_factory=list)  # primary, secondary, tertiary
    challenge: str = ""

    def to_dict(self) -> dict:
        return {"color": self.color, "forms": list(self.forms), "challenge": self.challenge}


@dataclass
class ProfileResult:
    profile_text: str
    attributes: Optional[ProfileAttributes] = None

    def to_dict(self) -> dict:
        return {
            "profile": self.profile_text,
            "data": self.attributes.to_dict() if self.attributes else None,
        }

    @classmethod
    def from_dict(cls, body: dict) -> "ProfileResult":
        """Inverse of ``to_dict``: the ``{profile, data}`` wire shape."""
        data = body.get("data")
        return cls(profile_text=body["profile"], attributes=ProfileAttributes(**data) if data else None)


def pick_random(items: Sequence[T], count: int, rng: Optional[random.Random] = None) -> list[T]:
    """Uniform pick of up to ``count`` items without replacement."""
    rng = rng or random.Random()
    return rng.sample(list(items), min(count, len(items)))


def display_name(name: Optional[str]) -> str:
    if name and name.strip():
        return name.strip()
    return UNKNOWN_NAME


def build_user_prompt(name: Optional[str], answers: Sequence[RankedAnswer]) -> str:
    """User turn for the LLM: the raw name and ranked answers as JSON."""
    return json.dumps({"name": name, "answers": answers_to_payload(answers)})


def compose_fallback(name: Optional[str], rng: Optional[random.Random] = None) -> ProfileResult:
    """Build a profile from the fixed lists without calling out."""
    rng = rng or random.Random()
    primary, secondary, tertiary = pick_random(FORMS, 3, rng)
    color = pick_random(COLOURS, 1, rng)[0]
    challenge = pick_random(CHALLENGES, 1, rng)[0]
    text = FALLBACK_PROFILE.format(
        name=display_name(name),
        primary=primary,
        secondary=secondary,
        tertiary=tertiary,
        color=color,
        challenge=challenge,
    )
    return ProfileResult(
        profile_text=text,
        attributes=ProfileAttributes(color=color, forms=[primary, secondary, tertiary], challenge=challenge),
    )


async def generate_profile(
    name: Optional[str],
    answers: Optional[Sequence[RankedAnswer]],
    settings: Settings,
    rng: Optional[random.Random] = None,
) -> ProfileResult:
    """Generate a destiny profile for ``answers``.

    One Grok request is made when a credential is configured. Any failure
    there is logged and the local template is used instead, so the only
    error a caller sees is for missing answers.
    """
    if answers is None:
        raise ClientInputError("answers are required")

    if settings.llm_enabled:
        user_prompt = build_user_prompt(name, answers)
        try:
            text = await asyncio.to_thread(call_grok_with_settings, user_prompt, PERSONA_PROMPT, settings)
            log.info(f"Generated profile with Grok ({len(text)} chars)")
            return ProfileResult(profile_text=text)
        except (ExternalServiceError, ConfigurationError) as e:
            log.error(f"Grok profile generation failed, using fallback: {e}")
        except Exception as e:
            log.exception(f"Unexpected error from Grok, using fallback: {e}")
    else:
        log.info("XAI_API_KEY not set, composing fallback profile")

    return compose_fallback(name, rng)


def preview_profile(text: str, words: int = PREVIEW_WORDS) -> str:
    """Leading paragraphs of a profile, roughly ``words`` long, for locked results."""
    paragraphs = [p for p in text.strip().split("\n\n") if p.strip()]
    kept: list[str] = []
    count = 0
    for paragraph in paragraphs:
        if count >= words:
            break
        kept.append(paragraph)
        count += len(paragraph.split())
    if len(kept) == len(paragraphs):
        # Nothing left to hide; show at most the first paragraph.
        kept = kept[:1]
    return "\n\n".join(kept) + PREVIEW_SUFFIX

"""LLM-based selection of the two home lists from the shortlist.

The model is asked for strict JSON. A completion that cannot be parsed, or
whose top level lacks the two lists, earns a corrective retry at lower
temperature; after that the selector gives up. Transport failures end the
attempt immediately. ``None`` always means "use the fallback", never an error.
"""

import json
import logging
import re
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from homerecs.domain.books import CandidateBook, UserSignals
from homerecs.ports.llm import LLMPort, LLMUnavailableError
from homerecs.prompts.templates import (
    HOME_PICKS,
    HOME_PICKS_CORRECTION,
    estimate_tokens,
    render_home_picks_prompt,
)

logger = logging.getLogger(__name__)

LIST_A_KEY = "te_podrian_gustar"
LIST_B_KEY = "descubri_nuevas_lecturas"

_FENCE = re.compile(r"^```(?:json)?\s*|\s*```$", re.IGNORECASE)
_JSON_OBJECT = re.compile(r"\{[\s\S]*\}")


class InvalidCompletionError(ValueError):
    """The completion is not JSON or lacks the expected top-level shape."""


@dataclass(frozen=True)
class Pick:
    external_id: str
    reason: str


@dataclass(frozen=True)
class LLMPicks:
    te_podrian_gustar: tuple[Pick, ...]
    descubri_nuevas_lecturas: tuple[Pick, ...]


def extract_json_object(text: str) -> str:
    """Return the outermost ``{...}`` block of a completion."""
    cleaned = _FENCE.sub("", text.strip())
    match = _JSON_OBJECT.search(cleaned)
    if match is None:
        raise InvalidCompletionError("no JSON object in completion")
    return match.group(0)


def _to_picks(items: list[Any]) -> tuple[Pick, ...]:
    picks = []
    for item in items:
        if not isinstance(item, dict):
            continue
        external_id = item.get("externalId") or item.get("external_id") or item.get("id")
        if not isinstance(external_id, (str, int)) or external_id == "":
            continue
        reason = item.get("reason")
        picks.append(Pick(str(external_id), reason if isinstance(reason, str) else ""))
    return tuple(picks)


def parse_picks(text: str) -> LLMPicks:
    """Parse a completion into ``LLMPicks``; only the top level is validated."""
    try:
        data = json.loads(extract_json_object(text))
    except json.JSONDecodeError as exc:
        raise InvalidCompletionError(f"invalid JSON: {exc}") from exc

    if not isinstance(data, dict):
        raise InvalidCompletionError("top level is not an object")
    for key in (LIST_A_KEY, LIST_B_KEY):
        if not isinstance(data.get(key), list):
            raise InvalidCompletionError(f"missing list {key!r}")

    return LLMPicks(
        te_podrian_gustar=_to_picks(data[LIST_A_KEY]),
        descubri_nuevas_lecturas=_to_picks(data[LIST_B_KEY]),
    )


class LLMSelector:
    def __init__(self, llm: LLMPort, retry_attempts: int = 1) -> None:
        self._llm = llm
        self._retry_attempts = max(0, retry_attempts)

    async def select(
        self,
        shortlist: Sequence[CandidateBook],
        signals: UserSignals,
    ) -> LLMPicks | None:
        if not self._llm.available:
            logger.warning("LLM not configured; skipping selection")
            return None

        templates = [HOME_PICKS] + [HOME_PICKS_CORRECTION] * self._retry_attempts
        for attempt, template in enumerate(templates, start=1):
            prompt = render_home_picks_prompt(shortlist, signals, template)
            logger.info(
                "LLM selection attempt %d/%d (%s v%s, ~%d input tokens)",
                attempt,
                len(templates),
                template.name,
                template.version,
                estimate_tokens(prompt["system"] + prompt["user"]),
            )
            try:
                text = await self._llm.complete(
                    prompt["system"],
                    prompt["user"],
                    temperature=template.temperature,
                    max_tokens=template.max_tokens,
                )
            except LLMUnavailableError as exc:
                logger.warning("LLM unavailable, giving up selection: %s", exc)
                return None

            try:
                picks = parse_picks(text)
            except InvalidCompletionError as exc:
                logger.warning("LLM attempt %d returned an invalid completion: %s", attempt, exc)
                continue

            logger.info(
                "LLM picked %d + %d books",
                len(picks.te_podrian_gustar),
                len(picks.descubri_nuevas_lecturas),
            )
            return picks

        return None

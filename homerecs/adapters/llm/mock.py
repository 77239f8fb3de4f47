import json
import logging
import re

from homerecs.domain.books import LIST_SIZE
from homerecs.ports.llm import LLMPort
from homerecs.prompts.templates import SHORTLIST_END, SHORTLIST_START, estimate_tokens

logger = logging.getLogger(__name__)

_CANDIDATE_ID = re.compile(r"^- \[([^\]]+)\]", re.MULTILINE)


class MockLLMAdapter(LLMPort):
    """
    Mock LLM adapter for local development without API access.

    Deterministic: reads the candidate ids out of the shortlist section of the
    prompt and returns the first ones as list A and the next ones as list B.
    """

    async def complete(
        self,
        system: str,
        user: str,
        *,
        temperature: float,
        max_tokens: int,
    ) -> str:
        start = user.find(SHORTLIST_START)
        end = user.find(SHORTLIST_END)
        section = user[start:end] if start != -1 and end != -1 else ""
        ids = _CANDIDATE_ID.findall(section)
        logger.info(
            "MockLLM: complete called (%d estimated tokens, %d candidates)",
            estimate_tokens(system + user),
            len(ids),
        )
        return json.dumps(
            {
                "te_podrian_gustar": [
                    {"externalId": i, "reason": "Cercano a tus lecturas favoritas"}
                    for i in ids[:LIST_SIZE]
                ],
                "descubri_nuevas_lecturas": [
                    {"externalId": i, "reason": "Una lectura para explorar algo nuevo"}
                    for i in ids[LIST_SIZE : LIST_SIZE * 2]
                ],
            },
            ensure_ascii=False,
        )

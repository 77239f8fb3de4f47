"""
Structured, versioned prompt templates for the home-recommendation picker.

Design Principles:
  1. Prompts are immutable dataclass objects, no inline strings in adapters.
  2. Each template is versioned for traceability.
  3. Templates are adapter-agnostic: same template works with OpenAI, Ollama, mock.
  4. Generation settings (temperature, max tokens) travel with the template.
  5. Content truncation is handled here with configurable limits.
"""

from collections.abc import Iterable
from dataclasses import dataclass, field

from homerecs.domain.books import BookRef, CandidateBook, LIST_SIZE, UserSignals


# ── Token Estimation ─────────────────────────────────────────────
# Rough estimate: 1 token ≈ 4 characters.

CHARS_PER_TOKEN = 4


def estimate_tokens(text: str) -> int:
    """Estimate token count from character length."""
    return len(text) // CHARS_PER_TOKEN


def truncate_to_tokens(text: str, max_tokens: int) -> str:
    """Truncate text to approximately max_tokens, on a line boundary."""
    max_chars = max_tokens * CHARS_PER_TOKEN
    if len(text) <= max_chars:
        return text
    truncated = text[:max_chars]
    last_newline = truncated.rfind("\n")
    if last_newline > 0:
        truncated = truncated[:last_newline]
    return truncated + "\n[Lista truncada]"


# ── Prompt Template ──────────────────────────────────────────────

@dataclass(frozen=True)
class PromptTemplate:
    """
    Immutable prompt template with system persona and user message.

    Attributes:
        name:              Unique identifier for logging and tracking.
        version:           Semantic version for prompt iteration tracking.
        system:            System message defining the LLM persona and constraints.
        user_template:     User message template with {variable} placeholders.
        temperature:       Sampling temperature requested from the LLM.
        max_tokens:        Maximum output tokens requested from the LLM.
        input_token_limit: Maximum tokens for the truncatable content field.
        tags:              Metadata tags for categorization.
    """

    name: str
    version: str
    system: str
    user_template: str
    temperature: float = 0.7
    max_tokens: int = 1024
    input_token_limit: int = 4000
    tags: tuple[str, ...] = field(default_factory=tuple)

    def render(self, **kwargs: str) -> dict[str, str]:
        """Render template with variables, returning system + user messages."""
        return {
            "system": self.system,
            "user": self.user_template.format(**kwargs),
        }

    def render_with_truncation(self, content_key: str, **kwargs: str) -> dict[str, str]:
        """Render template, truncating the specified content field to fit token limits."""
        if content_key in kwargs:
            kwargs[content_key] = truncate_to_tokens(
                kwargs[content_key], self.input_token_limit
            )
        return self.render(**kwargs)


# ── Home Picks Prompt ────────────────────────────────────────────

_RESPONSE_FORMAT = (
    "{\n"
    '  "te_podrian_gustar": [\n'
    '    { "externalId": "<id de la shortlist>", "reason": "<motivo breve>" }\n'
    f"    ... (exactamente {LIST_SIZE} items)\n"
    "  ],\n"
    '  "descubri_nuevas_lecturas": [\n'
    '    { "externalId": "<id de la shortlist>", "reason": "<motivo breve>" }\n'
    f"    ... (exactamente {LIST_SIZE} items)\n"
    "  ]\n"
    "}"
)

SHORTLIST_START = "--- SHORTLIST (START) ---"
SHORTLIST_END = "--- SHORTLIST (END) ---"

_USER_TEMPLATE = (
    "FAVORITOS ({favorites_count}):\n{favorites}\n\n"
    "LE GUSTARON (rating >= 3) ({liked_count}):\n{liked}\n\n"
    "NO LE GUSTARON (rating <= 2) ({disliked_count}):\n{disliked}\n\n"
    "IDS EXCLUIDOS (ya leídos o favoritos, NO recomendar):\n{excluded_ids}\n\n"
    "Elegí únicamente entre estos candidatos, identificados por su id:\n"
    f"{SHORTLIST_START}\n"
    "{shortlist}\n"
    f"{SHORTLIST_END}\n\n"
    f"Devolvé exactamente {LIST_SIZE} + {LIST_SIZE} recomendaciones en JSON."
)

HOME_PICKS = PromptTemplate(
    name="home_picks",
    version="2.0.0",
    system=(
        "Sos un recomendador de libros experto. Vas a recibir los gustos de un "
        "lector y una SHORTLIST de libros candidatos, cada uno con su id.\n\n"
        "Reglas:\n"
        "- Elegí EXCLUSIVAMENTE libros de la shortlist, referenciados por su id exacto.\n"
        f"- Lista A \"te_podrian_gustar\": exactamente {LIST_SIZE} libros cercanos a "
        "los favoritos y a los libros que le gustaron (mismo autor, género, tema o estilo).\n"
        f"- Lista B \"descubri_nuevas_lecturas\": exactamente {LIST_SIZE} libros más "
        "exploratorios y diversos (otros autores, géneros y épocas) pero con una "
        "conexión plausible con sus gustos.\n"
        "- Ningún libro puede aparecer en ambas listas.\n"
        "- NUNCA incluyas ids de la lista de excluidos (favoritos o ya leídos).\n"
        "- Evitá libros parecidos a los que no le gustaron.\n"
        "- Cada item lleva un motivo breve (una oración) en español.\n\n"
        "Devolvé ÚNICAMENTE este JSON, sin texto adicional:\n"
        f"{_RESPONSE_FORMAT}"
    ),
    user_template=_USER_TEMPLATE,
    temperature=0.7,
    max_tokens=2500,
    input_token_limit=6000,
    tags=("recommendations", "home", "shortlist"),
)

HOME_PICKS_CORRECTION = PromptTemplate(
    name="home_picks_correction",
    version="2.0.0",
    system=(
        "Sos un recomendador de libros. Tu respuesta anterior NO fue JSON válido "
        "o no tenía la estructura pedida.\n\n"
        "Devolvé JSON ESTRICTO con exactamente esta forma:\n"
        f"{_RESPONSE_FORMAT}\n\n"
        "Reglas críticas:\n"
        "- Solo ids que aparezcan en la shortlist.\n"
        "- Ningún id de la lista de excluidos.\n"
        f"- Exactamente {LIST_SIZE} + {LIST_SIZE} items, sin repetir.\n"
        "- Sin markdown, sin texto antes ni después del JSON."
    ),
    user_template=_USER_TEMPLATE,
    temperature=0.5,
    max_tokens=2000,
    input_token_limit=6000,
    tags=("recommendations", "home", "correction"),
)


# ── Rendering Helpers ────────────────────────────────────────────

def _format_refs(refs: Iterable[BookRef]) -> str:
    lines = []
    for i, ref in enumerate(refs, start=1):
        authors = ", ".join(ref.authors) or "autor desconocido"
        lines.append(f'{i}. "{ref.title}" de {authors}')
    return "\n".join(lines) or "(ninguno)"


def format_candidate_line(book: CandidateBook) -> str:
    authors = ", ".join(book.authors) or "autor desconocido"
    line = f'- [{book.external_id}] "{book.title}" de {authors}'
    if book.categories:
        line += f" | {', '.join(book.categories)}"
    return line


def render_home_picks_prompt(
    shortlist: Iterable[CandidateBook],
    signals: UserSignals,
    template: PromptTemplate = HOME_PICKS,
) -> dict[str, str]:
    """
    Render the home picks prompt.

    Args:
        shortlist:  Candidate pool the model must choose from.
        signals:    The user's favorites and rated history.
        template:   HOME_PICKS, or HOME_PICKS_CORRECTION for a retry.

    Returns:
        Dict with 'system' and 'user' keys ready for any LLM adapter.
    """
    return template.render_with_truncation(
        content_key="shortlist",
        shortlist="\n".join(format_candidate_line(b) for b in shortlist),
        favorites=_format_refs(signals.favorites),
        favorites_count=str(len(signals.favorites)),
        liked=_format_refs(signals.liked_history),
        liked_count=str(len(signals.liked_history)),
        disliked=_format_refs(signals.disliked_history),
        disliked_count=str(len(signals.disliked_history)),
        excluded_ids=", ".join(sorted(signals.known_ids)) or "(ninguno)",
    )

"""AI task catalogue and the canned responders of the mock variant.

Replacement tasks return a ``revised`` text that replaces the section;
analytical tasks return a task-specific payload for the side panel.
Every responder is deterministic for a given input.
"""

import re
from itertools import cycle
from typing import Any, Callable, Optional

from researchflow.errors import UnsupportedTaskError
from researchflow.utils.text import plain_text, split_sentences, word_count

REPLACEMENT_TASKS: tuple[str, ...] = (
    "rewrite",
    "proofread",
    "shorten",
    "expand",
    "bullets_to_paragraph",
    "paragraph_to_bullets",
)

ANALYTICAL_TASKS: tuple[str, ...] = (
    "critique",
    "rqs",
    "hypotheses",
    "contributions",
    "suggest_citations",
    "synthesize_sources",
    "spot_gaps",
    "summarize",
    "organize",
)

TASKS = REPLACEMENT_TASKS + ANALYTICAL_TASKS

# Ideation tasks work from the field and notes alone
NO_TEXT_TASKS = frozenset({"rqs", "hypotheses", "contributions", "suggest_citations"})

# Text field a plain-text relay answer is copied into, per analytical task
RELAY_TEXT_FIELDS = {
    "summarize": "summary",
    "synthesize_sources": "synthesis",
    "organize": "outline",
}

DEFAULT_WORD_TARGETS = {"shorten": 150, "expand": 300}
MAX_WORD_TARGET = 5000


def task_family(task: str) -> str:
    """Return ``rewrite`` or ``analysis`` for a known task.

    Raises:
        UnsupportedTaskError: If *task* is not in the catalogue
    """
    if task in REPLACEMENT_TASKS:
        return "rewrite"
    if task in ANALYTICAL_TASKS:
        return "analysis"
    raise UnsupportedTaskError(task)


def requires_text(task: str) -> bool:
    """Whether the task needs non-empty section text to run."""
    return task not in NO_TEXT_TASKS


# ---------------------------------------------------------------------------
# Text clean-up shared by the replacement tasks
# ---------------------------------------------------------------------------

_CONTRACTIONS = {
    "don't": "do not", "doesn't": "does not", "didn't": "did not",
    "can't": "cannot", "won't": "will not", "isn't": "is not",
    "aren't": "are not", "wasn't": "was not", "weren't": "were not",
    "shouldn't": "should not", "wouldn't": "would not", "couldn't": "could not",
    "it's": "it is", "that's": "that is", "there's": "there is",
    "we're": "we are", "they're": "they are", "let's": "let us",
    "i'm": "I am", "we've": "we have", "they've": "they have",
}

_INFORMAL = {
    "a lot of": "a substantial number of",
    "lots of": "many",
    "kind of": "somewhat",
    "sort of": "somewhat",
    "really": "particularly",
    "huge": "substantial",
    "stuff": "material",
    "get": "obtain",
    "gets": "obtains",
    "got": "obtained",
    "show": "demonstrate",
    "shows": "demonstrates",
    "big": "considerable",
}

_BULLET_RE = re.compile(r"^\s*(?:[-*•]|\d+[.)])\s+")
_CITATION_RE = re.compile(r"\([A-Z][^()]*?\d{4}[a-z]?\)|\[\d+(?:[,–-]\s*\d+)*\]")


def _match_case(original: str, replacement: str) -> str:
    if original[:1].isupper():
        return replacement[:1].upper() + replacement[1:]
    return replacement


def _replace_words(text: str, table: dict[str, str]) -> str:
    for phrase in sorted(table, key=len, reverse=True):
        pattern = re.compile(rf"\b{re.escape(phrase)}\b", re.IGNORECASE)
        text = pattern.sub(lambda m, r=table[phrase]: _match_case(m.group(0), r), text)
    return text


def _capitalize_sentences(text: str) -> str:
    return re.sub(
        r"(^|[.!?]\s+)([a-z])",
        lambda m: m.group(1) + m.group(2).upper(),
        text,
    )


def _terminate(sentence: str) -> str:
    sentence = sentence.strip()
    if sentence and sentence[-1] not in ".!?:":
        sentence += "."
    return sentence


def _paragraphs(text: str) -> list[str]:
    return [p.strip() for p in re.split(r"\n\s*\n", text) if p.strip()]


def _proofread_paragraph(paragraph: str) -> str:
    lines = []
    for line in paragraph.split("\n"):
        bullet = _BULLET_RE.match(line)
        prefix = bullet.group(0) if bullet else ""
        body = line[len(prefix):]
        body = re.sub(r"[ \t]+", " ", body).strip()
        body = re.sub(r"\s+([,.;:!?])", r"\1", body)
        body = re.sub(r"([,;:])(?=[A-Za-z])", r"\1 ", body)
        body = re.sub(r"\bi\b", "I", body)
        body = re.sub(r"\b(\w+)(\s+\1\b)+", r"\1", body, flags=re.IGNORECASE)
        body = _capitalize_sentences(body)
        if body and not prefix:
            body = _terminate(body)
        lines.append(prefix + body)
    return "\n".join(lines)


# ---------------------------------------------------------------------------
# Replacement tasks
# ---------------------------------------------------------------------------

def proofread(text: str) -> str:
    """Fix spacing, punctuation, doubled words and capitalization."""
    return "\n\n".join(_proofread_paragraph(p) for p in _paragraphs(text))


def rewrite(text: str) -> str:
    """Formal register: expand contractions, replace informal wording."""
    formal = _replace_words(text, _CONTRACTIONS)
    formal = _replace_words(formal, _INFORMAL)
    return proofread(formal)


def shorten(text: str, word_target: int) -> str:
    """Keep whole sentences up to *word_target* words."""
    kept: list[str] = []
    total = 0
    for sentence in split_sentences(text):
        n = len(sentence.split())
        if total + n > word_target:
            if not kept:
                kept.append(" ".join(sentence.split()[:word_target]).rstrip(",;:") + "...")
            break
        kept.append(sentence)
        total += n
    return " ".join(kept)


_ELABORATIONS = (
    "This point matters because it frames how the evidence that follows should be read.",
    "Prior work in {field} offers support for this view, although the findings are not uniform.",
    "A concrete example helps here: consider how the same pattern appears across different settings and populations.",
    "It is also worth noting the conditions under which this claim may not hold.",
    "Taken together, these considerations clarify the scope of the argument and its relevance to the research question.",
    "Future analysis could test this relationship more directly with additional data.",
)


def expand(text: str, word_target: int, field: Optional[str] = None) -> str:
    """Add elaborating sentences until the text reaches *word_target* words."""
    base = proofread(text)
    additions: list[str] = []
    count = word_count(base)
    for template in cycle(_ELABORATIONS):
        if count >= word_target and additions:
            break
        sentence = template.format(field=field or "this area")
        additions.append(sentence)
        count += len(sentence.split())
    return base + "\n\n" + " ".join(additions)


def bullets_to_paragraph(text: str) -> str:
    """Join list items (any bullet or number style) into one paragraph."""
    items = []
    for line in text.splitlines():
        item = _BULLET_RE.sub("", line).strip()
        if item:
            items.append(_terminate(item[:1].upper() + item[1:]))
    return " ".join(items)


def paragraph_to_bullets(text: str) -> str:
    """One bullet per sentence."""
    return "\n".join(f"- {sentence}" for sentence in split_sentences(text))


# ---------------------------------------------------------------------------
# Analytical tasks
# ---------------------------------------------------------------------------

def _focus(text: str, notes: Optional[str]) -> str:
    if notes and notes.strip():
        return notes.strip().rstrip(".")
    sentences = split_sentences(text)
    if sentences:
        words = sentences[0].rstrip(".!?").split()
        return " ".join(words[:8]).lower()
    return "the central phenomenon"


def critique(text: str) -> dict[str, Any]:
    words = word_count(text)
    sentences = split_sentences(text)
    avg = round(words / len(sentences), 1) if sentences else 0
    cited = bool(_CITATION_RE.search(plain_text(text)))
    paragraphs = len(_paragraphs(text))

    strengths = []
    if words >= 100:
        strengths.append(f"The section develops its argument at a workable length ({words} words).")
    if cited:
        strengths.append("Claims are supported with in-text citations.")
    if sentences and avg <= 25:
        strengths.append(f"Sentences are concise and readable (average {avg} words).")
    if not strengths:
        strengths.append("The opening sentence states the focus of the section.")

    weaknesses = []
    if words < 100:
        weaknesses.append(f"The section is brief ({words} words); key points may be underdeveloped.")
    if not cited:
        weaknesses.append("No in-text citations were found; support the main claims with evidence.")
    if avg > 25:
        weaknesses.append(f"Several sentences are long (average {avg} words), which hurts readability.")
    if paragraphs == 1 and words > 150:
        weaknesses.append("The text is a single block; split it into paragraphs by idea.")
    if not weaknesses:
        weaknesses.append("Transitions between points could be made more explicit.")

    return {
        "feedback": {
            "strengths": strengths,
            "weaknesses": weaknesses,
            "suggestions": [
                "Make the thesis statement more specific and arguable.",
                "Include recent studies to support your claims; consider adding 2-3 citations from the last two years.",
                "Close with a sentence that links back to the research question.",
            ],
        }
    }


def research_questions(text: str, field: Optional[str], notes: Optional[str]) -> dict[str, Any]:
    focus = _focus(text, notes)
    area = field or "this field"
    return {
        "suggestions": [
            f"How does {focus} influence outcomes in {area}?",
            f"What factors explain variation in {focus} across different contexts?",
            f"To what extent do current approaches to {focus} address the needs of practitioners in {area}?",
            f"How has {focus} changed over the past decade, and what drives that change?",
        ]
    }


def hypotheses(text: str, field: Optional[str], notes: Optional[str]) -> dict[str, Any]:
    focus = _focus(text, notes)
    area = field or "the studied population"
    return {
        "suggestions": [
            f"H1: Higher levels of {focus} are associated with better outcomes in {area}.",
            f"H2: The effect of {focus} is moderated by contextual factors such as resources and prior experience.",
            f"H0: There is no significant relationship between {focus} and the primary outcome.",
        ]
    }


def contributions(text: str, field: Optional[str], notes: Optional[str]) -> dict[str, Any]:
    focus = _focus(text, notes)
    area = field or "the field"
    return {
        "suggestions": [
            f"Theoretical: extends current models of {focus} by specifying when the effect holds.",
            f"Empirical: provides new evidence on {focus} from an under-studied setting in {area}.",
            f"Practical: offers actionable guidance for practitioners in {area}.",
        ]
    }


_SUGGESTED_CITATIONS: tuple[dict[str, Any], ...] = (
    {
        "title": "Artificial Intelligence in Education: A Review",
        "authors": ["Chen, L.", "Chen, P.", "Lin, Z."],
        "year": "2020",
        "journal": "IEEE Access",
        "doi": "10.1109/ACCESS.2020.2988510",
    },
    {
        "title": "Systematic review of research on artificial intelligence applications in higher education: where are the educators?",
        "authors": ["Zawacki-Richter, O.", "Marín, V. I.", "Bond, M.", "Gouverneur, F."],
        "year": "2019",
        "journal": "International Journal of Educational Technology in Higher Education",
        "doi": "10.1186/s41239-019-0171-0",
    },
    {
        "title": "Using thematic analysis in psychology",
        "authors": ["Braun, V.", "Clarke, V."],
        "year": "2006",
        "journal": "Qualitative Research in Psychology",
        "doi": "10.1191/1478088706qp063oa",
    },
)


def suggest_citations(field: Optional[str]) -> dict[str, Any]:
    area = field or "your topic"
    relevance = (
        "Broad overview that frames current work on {area}.",
        "Systematic review useful for positioning your contribution within {area}.",
        "Methodological reference if you analyze qualitative data on {area}.",
    )
    citations = []
    for record, note in zip(_SUGGESTED_CITATIONS, relevance):
        citations.append({
            **record,
            "authors": list(record["authors"]),
            "url": f"https://doi.org/{record['doi']}",
            "relevance": note.format(area=area),
        })
    return {"citations": citations}


def synthesize_sources(text: str, field: Optional[str]) -> dict[str, Any]:
    focus = _focus(text, None)
    cited = _CITATION_RE.findall(plain_text(text))
    named = ", ".join(dict.fromkeys(cited)) if cited else "the sources discussed"
    area = field or "the literature"
    return {
        "synthesis": (
            f"Agreement: {named} converge on the view that {focus} is central to {area}.\n\n"
            "Divergence: the sources differ in method and context, which limits direct comparison "
            "of effect sizes.\n\n"
            f"Implication: a study that holds context constant would clarify how {focus} operates."
        )
    }


def spot_gaps(text: str) -> dict[str, Any]:
    gaps = []
    plain = plain_text(text)
    if not _CITATION_RE.search(plain):
        gaps.append("Claims are not linked to sources; readers cannot check where the evidence comes from.")
    if re.search(r"\b(however|but|although|whereas)\b", plain, re.IGNORECASE):
        gaps.append("The text notes conflicting findings but does not explain why they conflict.")
    if not re.search(r"\b(sample|participants|data|method)\w*\b", plain, re.IGNORECASE):
        gaps.append("Little is said about the data or methods behind the findings discussed.")
    gaps.append("Recent work (last 2-3 years) appears under-represented.")
    gaps.append("Populations outside the typical study context are not addressed.")
    return {"gaps": gaps}


def summarize(text: str) -> dict[str, Any]:
    sentences = split_sentences(text)
    summary = " ".join(sentences[:2])
    words = summary.split()
    if len(words) > 60:
        summary = " ".join(words[:60]) + "..."
    return {"summary": summary}


def organize(text: str) -> dict[str, Any]:
    lines = ["## Suggested structure"]
    for i, paragraph in enumerate(_paragraphs(text), 1):
        sentences = split_sentences(paragraph)
        lead = sentences[0].rstrip(".!?") if sentences else paragraph
        words = lead.split()
        heading = " ".join(words[:10]) + ("..." if len(words) > 10 else "")
        lines.append(f"{i}. {heading}")
    lines.append(f"{len(lines)}. Closing link back to the research question")
    return {"outline": "\n".join(lines)}


# ---------------------------------------------------------------------------
# Dispatch table
# ---------------------------------------------------------------------------

def mock_response(
    task: str,
    text: str = "",
    word_target: Optional[int] = None,
    field: Optional[str] = None,
    notes: Optional[str] = None,
) -> dict[str, Any]:
    """Build the canned response for *task*.

    Raises:
        UnsupportedTaskError: If *task* is not in the catalogue
    """
    task_family(task)
    target = word_target or DEFAULT_WORD_TARGETS.get(task, 0)
    target = max(1, min(target, MAX_WORD_TARGET))

    replacements: dict[str, Callable[[], str]] = {
        "rewrite": lambda: rewrite(text),
        "proofread": lambda: proofread(text),
        "shorten": lambda: shorten(text, target),
        "expand": lambda: expand(text, target, field),
        "bullets_to_paragraph": lambda: bullets_to_paragraph(text),
        "paragraph_to_bullets": lambda: paragraph_to_bullets(text),
    }
    if task in replacements:
        return {"revised": replacements[task]()}

    analyses: dict[str, Callable[[], dict[str, Any]]] = {
        "critique": lambda: critique(text),
        "rqs": lambda: research_questions(text, field, notes),
        "hypotheses": lambda: hypotheses(text, field, notes),
        "contributions": lambda: contributions(text, field, notes),
        "suggest_citations": lambda: suggest_citations(field),
        "synthesize_sources": lambda: synthesize_sources(text, field),
        "spot_gaps": lambda: spot_gaps(text),
        "summarize": lambda: summarize(text),
        "organize": lambda: organize(text),
    }
    return analyses[task]()

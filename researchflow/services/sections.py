"""Section registry: the fixed outline of a paper.

Pure configuration plus one read-only helper that summarizes how far the
drafts of a paper have come against each section's target.
"""

from dataclasses import dataclass, field
from typing import Any, Iterator

from researchflow.errors import NotFoundError
from researchflow.utils.text import word_count

PAPER_TARGET_WORDS = 8000


@dataclass(frozen=True)
class SectionInfo:
    """Display metadata for one section."""

    id: str
    title: str
    placeholder: str
    guidance: str
    target_words: int
    children: tuple["SectionInfo", ...] = field(default_factory=tuple)


def _child(id: str, title: str, guidance: str, target_words: int) -> SectionInfo:
    return SectionInfo(
        id=id,
        title=title,
        placeholder=f"Write the {title.lower()} here...",
        guidance=guidance,
        target_words=target_words,
    )


SECTIONS: tuple[SectionInfo, ...] = (
    SectionInfo(
        id="abstract",
        title="Abstract",
        placeholder="Summarize your research in 150-250 words...",
        guidance="Include: purpose, methods, key findings, and conclusions. Keep it under 250 words.",
        target_words=250,
    ),
    SectionInfo(
        id="introduction",
        title="Introduction",
        placeholder="Introduce the topic, the problem and why it matters...",
        guidance="Establish context, state the problem, and end with your research objectives.",
        target_words=1000,
        children=(
            _child("intro-background", "Background", "Situate the topic in its field.", 400),
            _child("intro-problem", "Problem Statement", "State the specific problem you address.", 300),
            _child("intro-objectives", "Research Objectives", "List the aims and research questions.", 300),
        ),
    ),
    SectionInfo(
        id="literature-review",
        title="Literature Review",
        placeholder="Review and synthesize the prior work...",
        guidance="Group sources by theme, compare findings, and point out gaps.",
        target_words=2000,
        children=(
            _child("lit-theoretical", "Theoretical Framework", "Name the theories you build on.", 600),
            _child("lit-previous", "Previous Studies", "Synthesize the most relevant studies.", 1000),
            _child("lit-gaps", "Research Gaps", "Show what the literature leaves open.", 400),
        ),
    ),
    SectionInfo(
        id="methodology",
        title="Methodology",
        placeholder="Describe how the study was carried out...",
        guidance="Give enough detail for someone else to replicate the study.",
        target_words=1500,
        children=(
            _child("method-design", "Research Design", "Name and justify the design.", 400),
            _child("method-participants", "Participants", "Describe the sample and recruitment.", 300),
            _child("method-procedure", "Procedure", "Walk through the steps in order.", 400),
            _child("method-analysis", "Data Analysis", "Explain how the data were analyzed.", 400),
        ),
    ),
    SectionInfo(
        id="results",
        title="Results",
        placeholder="Report the findings without interpreting them...",
        guidance="Present findings in the order of your research questions; refer to tables and figures.",
        target_words=1200,
    ),
    SectionInfo(
        id="discussion",
        title="Discussion",
        placeholder="Interpret the findings and their meaning...",
        guidance="Relate results to the literature, discuss implications, and acknowledge limitations.",
        target_words=1500,
        children=(
            _child("discussion-interpretation", "Interpretation", "Explain what the results mean.", 600),
            _child("discussion-implications", "Implications", "Spell out theoretical and practical implications.", 500),
            _child("discussion-limitations", "Limitations", "Be candid about the study's limits.", 400),
        ),
    ),
    SectionInfo(
        id="conclusion",
        title="Conclusion",
        placeholder="Wrap up the paper...",
        guidance="Restate the contribution and suggest directions for future research.",
        target_words=500,
    ),
    SectionInfo(
        id="references",
        title="References",
        placeholder="Reference entries are added here from the citation manager...",
        guidance="List every cited source in the chosen citation style.",
        target_words=0,
    ),
)


def iter_sections() -> Iterator[SectionInfo]:
    """Yield every section, parents before their children."""
    for section in SECTIONS:
        yield section
        yield from section.children


def get_section(section_id: str) -> SectionInfo:
    """Look up a section by id.

    Raises:
        NotFoundError: If the id is not in the registry
    """
    for section in iter_sections():
        if section.id == section_id:
            return section
    raise NotFoundError(f"Unknown section: {section_id}")


def section_status(words: int, target: int) -> str:
    """Classify progress: not-started, in-progress or complete."""
    if words == 0:
        return "not-started"
    if target and words >= target:
        return "complete"
    return "in-progress"


def outline_summary(drafts: Any, paper_id: str) -> dict[str, Any]:
    """Word counts and status per section for the outline panel.

    Args:
        drafts: A ``DraftStore`` (anything with ``load(paper_id, section_id)``)
        paper_id: Paper to summarize

    Returns:
        Dict with ``sections`` (flattened), ``total_words``,
        ``completed``/``total`` top-level sections and ``target_words``
    """
    rows = []
    words_by_id: dict[str, int] = {}
    for section in iter_sections():
        words = word_count(drafts.load(paper_id, section.id))
        words_by_id[section.id] = words
        rows.append({
            "id": section.id,
            "title": section.title,
            "words": words,
            "target": section.target_words,
            "status": section_status(words, section.target_words),
            "child": section not in SECTIONS,
        })

    completed = 0
    for section in SECTIONS:
        words = words_by_id[section.id] + sum(words_by_id[c.id] for c in section.children)
        if section_status(words, section.target_words) == "complete":
            completed += 1

    return {
        "sections": rows,
        "total_words": sum(words_by_id.values()),
        "completed": completed,
        "total": len(SECTIONS),
        "target_words": PAPER_TARGET_WORDS,
    }


def section_word_total(drafts: Any, paper_id: str) -> int:
    """Total words across every section draft of a paper."""
    return sum(word_count(drafts.load(paper_id, s.id)) for s in iter_sections())

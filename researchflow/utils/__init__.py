"""Utility functions."""

from researchflow.utils.text import (
    make_preview,
    normalize_doi,
    plain_text,
    split_sentences,
    word_count,
)

__all__ = ["make_preview", "normalize_doi", "plain_text", "split_sentences", "word_count"]

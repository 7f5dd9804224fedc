"""
Text Preprocessor — Cleaning, Last Sentence & Keywords
=======================================================
Validates and cleans text before emotion analysis.

  1. Whitespace runs and markup artefacts are collapsed/removed.
  2. Over-long input is truncated (with a warning, never an error).
  3. During live typing only the sentence being written matters, so
     ``last_sentence()`` isolates it.
  4. ``extract_keywords()`` surfaces the first few content words for the
     history log.

The preprocessor never blocks analysis: it returns cleaned text plus a
list of warnings.
"""

from __future__ import annotations

import re
from typing import Optional

from moodfusion.utils.helpers import load_config, setup_logging

logger = setup_logging()

_SENTENCE_BREAK = re.compile(r"[.!?]\s+|\n")
_WORD = re.compile(r"[a-z0-9']+")


def tokenize(text: str) -> list[str]:
    """Lower-cased word tokens; curly apostrophes are folded to ``'``."""
    text = text.lower().replace("’", "'").replace("‘", "'")
    return [tok.strip("'") for tok in _WORD.findall(text) if tok.strip("'")]


class TextPreprocessor:
    """Clean and validate text input for emotion analysis."""

    def __init__(self, config: Optional[dict] = None):
        if config is None:
            config = load_config()

        text_cfg = config["text"]
        self.min_words = text_cfg["min_words"]
        self.max_length = text_cfg["max_chars"]
        self.max_keywords = text_cfg["max_keywords"]

    def process(self, text: str) -> dict:
        """Clean and validate text input.

        Returns
        -------
        dict with keys:
            cleaned_text : str       - preprocessed text ready for analysis
            warnings     : list[str] - any issues found
            word_count   : int       - number of words in cleaned text
        """
        warnings = []

        cleaned = (text or "").strip()
        cleaned = re.sub(r"\s+", " ", cleaned)
        cleaned = re.sub(r"[<>{}]", "", cleaned)

        if len(cleaned) > self.max_length:
            cleaned = cleaned[:self.max_length]
            warnings.append(f"Text was truncated to {self.max_length} characters.")

        word_count = len(cleaned.split())
        if 0 < word_count < self.min_words:
            warnings.append(f"Very short input ({word_count} words).")

        return {
            "cleaned_text": cleaned,
            "warnings": warnings,
            "word_count": word_count,
        }

    @staticmethod
    def last_sentence(text: str) -> str:
        """The final non-empty sentence of ``text`` (the one being typed)."""
        parts = [p.strip() for p in _SENTENCE_BREAK.split(text or "")]
        parts = [p for p in parts if p]
        return parts[-1] if parts else ""

    def extract_keywords(self, text: str) -> tuple[str, ...]:
        """First few words longer than three characters."""
        words = [w for w in tokenize(text) if len(w) > 3]
        return tuple(words[:self.max_keywords])

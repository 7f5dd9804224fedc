"""
Text Classifier — Clause-Aware Lexicon Scoring
===============================================
Rule-based emotion scoring for short, informal text such as a chat
message or the sentence currently being typed.

Two scoring strategies share the same lexicons and negation rules:

  - ``clause``    (this module) splits the text into clauses and weights
    the clause after a contrast marker ("..., but ...") more heavily, so
    "I love the app, but it keeps crashing" reads as negative.
  - ``attention`` (``text_analyzer_attention``) scores token by token with
    position weights and a softmax.

``TextClassifier`` picks one via ``text.strategy`` and turns its result
into a ``TextObservation``.

Clause scoring, per lexicon hit:

  1. base score from the emotion's valence (happy +2 ... sad -2)
  2. × 1.3 with an intensifier up to two tokens before
  3. × 0.7 when the clause hedges ("maybe", "might", ...)
  4. negation within three tokens before: a positive hit flips to
     -(|score| + 0.5) as sad, a negative hit is damped to +|score|/2 as calm
  5. "I am not X" style negations replace the hit with a fixed 3.0
     towards the opposite of X

Clauses after a contrast marker count × 1.6; when the text contains any
contrast marker, the final clause counts a further × 2.2.
"""

from __future__ import annotations

import re
import time
from dataclasses import dataclass
from typing import Optional

from moodfusion.analyzers.lexicon import (
    CLAUSE_LEXICON,
    CONTRAST_MARKERS,
    EMPHATIC_CONFIDENCE,
    EMPHATIC_POSITIVE,
    GRAMMAR_BOOST,
    HEDGES,
    OPPOSITES,
    emphatic_breakdown,
    find_grammar_negations,
    intensifier_distance,
    is_negated,
    lookup,
)
from moodfusion.core.emotions import TextEmotion
from moodfusion.core.emotional_state import TextClassification, TextObservation
from moodfusion.preprocessing.text_preprocessor import TextPreprocessor, tokenize
from moodfusion.utils.helpers import clamp, load_config, normalize_percentages, round_half_up, setup_logging

logger = setup_logging()

BASE_SCORES: dict[TextEmotion, float] = {
    TextEmotion.HAPPY: 2.0,
    TextEmotion.EXCITED: 1.5,
    TextEmotion.CALM: 1.0,
    TextEmotion.SAD: -2.0,
    TextEmotion.ANGRY: -2.0,
    TextEmotion.ANXIOUS: -1.5,
    TextEmotion.STRESSED: -1.8,
    TextEmotion.FATIGUED: -1.2,
}

INTENSIFIER_FACTOR = 1.3
HEDGE_FACTOR = 0.7
AFTER_CONTRAST_WEIGHT = 1.6
FINAL_CLAUSE_WEIGHT = 2.2

_CLAUSE_BREAK = re.compile(r"[.,;!?]+")
_CONTRAST_SPLIT = re.compile(r"\b(but|however|although|though|yet|still)\b", re.IGNORECASE)


@dataclass
class Clause:
    tokens: list[str]
    after_contrast: bool = False


def split_clauses(text: str) -> tuple[list[Clause], bool]:
    """Split at punctuation and contrast markers.

    Returns the clauses (markers removed, the clause following a marker
    flagged) and whether the text contained any marker at all.
    """
    clauses = []
    pending = has_contrast = False
    for part in _CLAUSE_BREAK.split(text):
        for piece in _CONTRAST_SPLIT.split(part):
            if piece.strip().lower() in CONTRAST_MARKERS:
                pending = has_contrast = True
                continue
            tokens = tokenize(piece)
            if not tokens:
                continue
            clauses.append(Clause(tokens, after_contrast=pending))
            pending = False
    return clauses, has_contrast


class ClauseTextScorer:
    """Clause-weighted lexicon scorer."""

    labels = tuple(TextEmotion)

    def __init__(self, config: Optional[dict] = None):
        if config is None:
            config = load_config()

        text_cfg = config["text"]
        self.empty_confidence = text_cfg["empty_confidence"]
        self.balanced_threshold = text_cfg["balanced_threshold"]

    def score(self, text: str) -> TextClassification:
        if not text or not text.strip():
            return TextClassification(
                emotion=TextEmotion.CALM,
                confidence=self.empty_confidence,
                breakdown={TextEmotion.CALM: 100.0},
                context="empty",
            )

        if EMPHATIC_POSITIVE.search(text):
            return TextClassification(
                emotion=TextEmotion.HAPPY,
                confidence=EMPHATIC_CONFIDENCE,
                breakdown=emphatic_breakdown(self.labels, TextEmotion.HAPPY),
                intensity=EMPHATIC_CONFIDENCE,
                context="emphatic",
            )

        clauses, has_contrast = split_clauses(text)
        totals: dict[TextEmotion, float] = {}
        for idx, clause in enumerate(clauses):
            weight = AFTER_CONTRAST_WEIGHT if clause.after_contrast else 1.0
            if has_contrast and idx == len(clauses) - 1:
                weight *= FINAL_CLAUSE_WEIGHT
            for emotion, contribution in self.score_clause(clause.tokens).items():
                totals[emotion] = totals.get(emotion, 0.0) + contribution * weight

        raw = sum(totals.values())
        magnitudes = {e: abs(totals[e]) for e in self.labels if e in totals}
        intensity = int(clamp(round_half_up(abs(raw) * 25), 10, 100))

        if abs(raw) < self.balanced_threshold:
            # Mixed or no evidence: calm absorbs at least half of the mass.
            magnitudes[TextEmotion.CALM] = magnitudes.get(TextEmotion.CALM, 0.0) + sum(magnitudes.values())
            if not any(magnitudes.values()):
                magnitudes = {TextEmotion.CALM: 1.0}
            return TextClassification(
                emotion=TextEmotion.CALM,
                confidence=int(clamp(round_half_up(50 + 8 * abs(raw)), 45, 95)),
                breakdown=normalize_percentages(magnitudes),
                intensity=intensity,
                context="balanced",
            )

        emotion = max(magnitudes, key=magnitudes.get)
        return TextClassification(
            emotion=emotion,
            confidence=int(clamp(round_half_up(50 + 12 * abs(raw)), 40, 95)),
            breakdown=normalize_percentages(magnitudes),
            intensity=intensity,
            context="contrast" if has_contrast else "direct",
        )

    def score_clause(self, tokens: list[str]) -> dict[TextEmotion, float]:
        """Signed contribution per emotion for one clause."""
        contributions: dict[TextEmotion, float] = {}
        hedged = any(tok in HEDGES for tok in tokens)

        handled = set()
        for target, negated in find_grammar_negations(tokens, CLAUSE_LEXICON):
            opposite = OPPOSITES[negated]
            sign = 1.0 if BASE_SCORES[opposite] > 0 else -1.0
            contributions[opposite] = contributions.get(opposite, 0.0) + sign * GRAMMAR_BOOST
            handled.add(target)

        for i, tok in enumerate(tokens):
            if i in handled:
                continue
            emotion = lookup(tok, CLAUSE_LEXICON)
            if emotion is None:
                continue

            score = BASE_SCORES[emotion]
            if intensifier_distance(tokens, i) is not None:
                score *= INTENSIFIER_FACTOR
            if hedged:
                score *= HEDGE_FACTOR
            if is_negated(tokens, i):
                if score > 0:
                    emotion, score = TextEmotion.SAD, -(abs(score) + 0.5)
                else:
                    emotion, score = TextEmotion.CALM, abs(score) * 0.5
            contributions[emotion] = contributions.get(emotion, 0.0) + score

        return contributions


class TextClassifier:
    """Classify text into a ``TextEmotion`` using the configured strategy.

    Public API:
      - classify(text)            -> TextClassification
      - analyze(text, timestamp)  -> TextObservation (None for empty text)
    """

    STRATEGIES = ("clause", "attention")

    def __init__(self, config: Optional[dict] = None, strategy: Optional[str] = None):
        if config is None:
            config = load_config()

        text_cfg = config["text"]
        self.strategy = strategy or text_cfg["strategy"]
        if self.strategy == "clause":
            self.scorer = ClauseTextScorer(config)
        elif self.strategy == "attention":
            from moodfusion.analyzers.text_analyzer_attention import TokenAttentionScorer
            self.scorer = TokenAttentionScorer(config)
        else:
            raise ValueError(f"Unknown text strategy {self.strategy!r}; expected one of {self.STRATEGIES}")

        self.preprocessor = TextPreprocessor(config)
        self.analyze_last_sentence = text_cfg["analyze_last_sentence"]
        logger.info("Text classifier ready (strategy=%s)", self.strategy)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def classify(self, text: str) -> TextClassification:
        return self.scorer.score(self.preprocessor.process(text)["cleaned_text"])

    def analyze(self, text: str, timestamp: Optional[float] = None) -> Optional[TextObservation]:
        """Score ``text`` and wrap the result as an observation.

        Returns None for empty or whitespace-only input.
        """
        if self.analyze_last_sentence:
            text = self.preprocessor.last_sentence(text)

        processed = self.preprocessor.process(text)
        cleaned = processed["cleaned_text"]
        if not cleaned:
            return None
        for warning in processed["warnings"]:
            logger.debug("Text: %s", warning)

        result = self.scorer.score(cleaned)
        logger.debug("Text: %s (%d%%, %s)", result.emotion.value, result.confidence, result.context)
        return TextObservation(
            label=result.emotion,
            sentiment=result.sentiment,
            confidence=result.confidence,
            timestamp=time.time() if timestamp is None else timestamp,
            intensity=result.intensity,
            breakdown=result.breakdown,
            keywords=self.preprocessor.extract_keywords(cleaned),
            context=result.context,
        )

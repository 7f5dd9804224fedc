"""
Text Classifier (Attention) — Token-Level Lexicon Scoring
==========================================================
A lightweight, transformer-flavoured alternative to clause scoring.
There are no learned weights: every token gets a small hand-crafted
embedding and the "attention" is a fixed positional weighting.

Per token the embedding holds

    [ length/20, vowel ratio, ends-with-!/?, first char/255, last char/255,
      sin(pos·π), cos(pos·π), pos ]

where ``pos`` is the token's relative position in the text.  A lexicon
hit adds ``1 + (1 - |pos - 0.5|)`` to its emotion's logit (mid-sentence
words matter most), scaled by a nearby intensifier (×1.6 one token back,
×1.4 two back) and by ×1.1 for emphatic punctuation, plus 0.3 for every
neighbour within two tokens that belongs to the same lexicon.

Negated hits (three-token scope) are credited to the opposite emotion.
A first-person negation ("I'm not calm") adds a fixed 3.0 to the
opposite and suppresses the negated emotion's logit.

Logits become percentages with a softmax; ties resolve to calm.
"""

from __future__ import annotations

import math
import re
from typing import Optional

import numpy as np

from moodfusion.analyzers.lexicon import (
    EMPHATIC_CONFIDENCE,
    EMPHATIC_POSITIVE,
    GRAMMAR_BOOST,
    LEXICON,
    NEGATION_SCOPE,
    NEGATIONS,
    OPPOSITES,
    emphatic_breakdown,
    find_grammar_negations,
    intensifier_distance,
    lookup,
)
from moodfusion.core.emotions import TextEmotion
from moodfusion.core.emotional_state import TextClassification
from moodfusion.utils.helpers import load_config, round_half_up, setup_logging

logger = setup_logging()

CONTEXT_BOOST = 0.3
CONTEXT_RADIUS = 2
PUNCTUATION_BOOST = 1.1
SUPPRESSION = 0.01
EMBEDDING_DIM = 8

_VOWELS = set("aeiou")
_NON_WORD = re.compile(r"[^a-z0-9']")


class TokenAttentionScorer:
    """Token-by-token lexicon scorer with positional weighting and softmax."""

    # Order matters: the first label wins ties.
    labels = (
        TextEmotion.CALM,
        TextEmotion.HAPPY,
        TextEmotion.SAD,
        TextEmotion.ANGRY,
        TextEmotion.ANXIOUS,
        TextEmotion.EXCITED,
    )

    def __init__(self, config: Optional[dict] = None):
        if config is None:
            config = load_config()
        self.empty_confidence = config["text"]["empty_confidence"]

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

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

        raw_tokens = text.lower().replace("’", "'").split()
        tokens = [_NON_WORD.sub("", tok).strip("'") for tok in raw_tokens]
        logits = self.logits(raw_tokens, tokens)

        best = max(logits.values())
        exps = {label: math.exp(v - best) for label, v in logits.items()}
        total = sum(exps.values())
        breakdown = {label: exps[label] / total * 100.0 for label in self.labels}

        emotion = max(breakdown, key=breakdown.get)
        return TextClassification(
            emotion=emotion,
            confidence=round_half_up(breakdown[emotion]),
            breakdown=breakdown,
            intensity=min(100, round_half_up(sum(logits.values()) * 10)),
            context="direct",
        )

    def logits(self, raw_tokens: list[str], tokens: list[str]) -> dict[TextEmotion, float]:
        """Accumulate per-emotion evidence over the token sequence."""
        embeddings = self.embed(raw_tokens)
        hits = [lookup(tok) for tok in tokens]

        negated = set()
        for i, tok in enumerate(tokens):
            if tok in NEGATIONS:
                negated.update(range(i + 1, min(len(tokens), i + 1 + NEGATION_SCOPE)))

        logits = {label: 0.0 for label in self.labels}
        for i, emotion in enumerate(hits):
            if emotion is None:
                continue

            pos = embeddings[i, 7]
            weight = 1.0 + (1.0 - abs(pos - 0.5))
            k = intensifier_distance(tokens, i)
            if k is not None:
                weight *= 1.6 - 0.2 * (k - 1)
            if embeddings[i, 2] > 0:
                weight *= PUNCTUATION_BOOST

            lo, hi = max(0, i - CONTEXT_RADIUS), min(len(tokens), i + CONTEXT_RADIUS + 1)
            weight += CONTEXT_BOOST * sum(1 for j in range(lo, hi) if j != i and hits[j] is emotion)

            target = OPPOSITES[emotion] if i in negated else emotion
            logits[target] += weight

        grammar = find_grammar_negations(tokens)
        for _, emotion in grammar:
            logits[OPPOSITES[emotion]] += GRAMMAR_BOOST
        for _, emotion in grammar:
            logits[emotion] *= SUPPRESSION

        return logits

    @staticmethod
    def embed(raw_tokens: list[str]) -> np.ndarray:
        """Per-token feature embedding plus positional encoding, shape ``(n, 8)``."""
        n = len(raw_tokens)
        out = np.zeros((n, EMBEDDING_DIM))
        for i, tok in enumerate(raw_tokens):
            pos = i / n
            out[i, 5] = math.sin(pos * math.pi)
            out[i, 6] = math.cos(pos * math.pi)
            out[i, 7] = pos
            if not tok:
                continue
            out[i, 0] = len(tok) / 20
            out[i, 1] = sum(1 for c in tok if c in _VOWELS) / len(tok)
            out[i, 2] = 1.0 if tok[-1] in "!?" else 0.0
            out[i, 3] = min(ord(tok[0]), 255) / 255
            out[i, 4] = min(ord(tok[-1]), 255) / 255
        return out

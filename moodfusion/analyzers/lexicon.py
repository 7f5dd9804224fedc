"""
Lexicons & Negation Rules
==========================
Word lists and token-window rules shared by both text scoring strategies.

Only tokens of three or more characters are ever looked up, so stray
fragments ("im", "ok", "a") cannot trigger an emotion by accident.
"""

from __future__ import annotations

import re
from typing import Mapping, Optional

from moodfusion.core.emotions import TextEmotion

# Base lexicons (six core sentiments)
LEXICON: dict[TextEmotion, frozenset] = {
    TextEmotion.HAPPY: frozenset({
        "love", "loved", "loving", "joy", "happy", "glad", "wonderful", "great",
        "excellent", "amazing", "fantastic", "delighted", "pleased", "cheerful",
        "thrilled", "ecstatic", "enjoy", "enjoyed", "enjoying", "good",
        "satisfied", "awesome", "grateful",
    }),
    TextEmotion.SAD: frozenset({
        "sad", "unhappy", "depressed", "miserable", "heartbroken", "disappointed",
        "disappointing", "gloomy", "sorrow", "grief", "despair", "lonely",
        "hopeless", "terrible", "awful", "worst",
    }),
    TextEmotion.ANGRY: frozenset({
        "angry", "mad", "furious", "rage", "hate", "hated", "irritated", "annoyed",
        "frustrated", "frustrating", "outraged", "infuriated", "livid", "dislike",
    }),
    TextEmotion.ANXIOUS: frozenset({
        "worried", "anxious", "nervous", "scared", "frightened", "terrified",
        "panic", "dread", "apprehensive", "uneasy", "afraid",
    }),
    TextEmotion.EXCITED: frozenset({
        "excited", "exciting", "enthusiastic", "pumped", "energized", "hyped",
        "stoked", "eager", "anticipating",
    }),
    TextEmotion.CALM: frozenset({
        "calm", "peaceful", "relaxed", "serene", "tranquil", "composed",
        "balanced", "centered", "content",
    }),
}

# The clause strategy also knows product-failure words, stress and fatigue.
CLAUSE_LEXICON: dict[TextEmotion, frozenset] = {
    **LEXICON,
    TextEmotion.SAD: LEXICON[TextEmotion.SAD] | frozenset({
        "crash", "crashes", "crashed", "crashing", "bug", "bugs", "buggy",
        "broken", "fail", "fails", "failed", "failing", "failure", "issue",
        "issues", "problem", "problems", "slow", "lag", "laggy", "error", "errors",
    }),
    TextEmotion.STRESSED: frozenset({
        "stressed", "stressful", "overwhelmed", "burnout", "pressure", "tense", "stressor",
    }),
    TextEmotion.FATIGUED: frozenset({
        "tired", "exhausted", "drained", "sleepy", "fatigued", "weary", "worn",
    }),
}

NEGATIONS = frozenset({
    "not", "no", "never", "neither", "nor", "none", "nothing", "cannot",
    "don't", "doesn't", "didn't", "won't", "wouldn't", "can't", "couldn't",
    "shouldn't", "isn't", "aren't", "wasn't", "weren't", "ain't",
    "dont", "doesnt", "didnt", "wont", "cant", "isnt", "arent", "wasnt",
})

INTENSIFIERS = frozenset({
    "very", "extremely", "really", "so", "absolutely", "incredibly",
    "definitely", "totally", "completely", "utterly", "truly",
})

HEDGES = frozenset({
    "maybe", "perhaps", "could", "might", "seem", "seems", "seemed",
    "possibly", "somewhat", "probably",
})

SUBJECTS = frozenset({"i", "i'm", "im"})

CONTRAST_MARKERS = frozenset({"but", "however", "although", "though", "yet", "still"})

OPPOSITES: dict[TextEmotion, TextEmotion] = {
    TextEmotion.HAPPY: TextEmotion.SAD,
    TextEmotion.SAD: TextEmotion.CALM,
    TextEmotion.CALM: TextEmotion.ANXIOUS,
    TextEmotion.ANXIOUS: TextEmotion.CALM,
    TextEmotion.EXCITED: TextEmotion.CALM,
    TextEmotion.ANGRY: TextEmotion.CALM,
    TextEmotion.STRESSED: TextEmotion.CALM,
    TextEmotion.FATIGUED: TextEmotion.CALM,
}

EMPHATIC_POSITIVE = re.compile(
    r"\bnever\s+(felt|been|seemed)\s+(so\s+)?"
    r"(great|happy|wonderful|excellent|amazing|fantastic|better|happier)\b",
    re.IGNORECASE,
)

MIN_TOKEN_LENGTH = 3
NEGATION_SCOPE = 3
INTENSIFIER_LOOKBACK = 2
SUBJECT_LOOKBACK = 2
GRAMMAR_BOOST = 3.0
EMPHATIC_CONFIDENCE = 85


def lookup(token: str, lexicon: Mapping[TextEmotion, frozenset] = LEXICON) -> Optional[TextEmotion]:
    """Emotion whose word list contains ``token`` (first in label order)."""
    if len(token) < MIN_TOKEN_LENGTH:
        return None
    for emotion, words in lexicon.items():
        if token in words:
            return emotion
    return None


def is_negated(tokens: list[str], index: int) -> bool:
    """True when a negation appears within the scope before ``index``."""
    window = tokens[max(0, index - NEGATION_SCOPE):index]
    return any(tok in NEGATIONS for tok in window)


def intensifier_distance(tokens: list[str], index: int) -> Optional[int]:
    """How many tokens back the nearest intensifier sits (1 or 2), if any."""
    for k in range(1, INTENSIFIER_LOOKBACK + 1):
        if index - k >= 0 and tokens[index - k] in INTENSIFIERS:
            return k
    return None


def find_grammar_negations(
    tokens: list[str],
    lexicon: Mapping[TextEmotion, frozenset] = LEXICON,
) -> list[tuple[int, TextEmotion]]:
    """First-person negations such as "I am not happy" or "I'm not very calm".

    Returns ``(target_index, negated_emotion)`` pairs: the negation must
    follow a subject word within two tokens and be followed (intensifiers
    skipped) by a lexicon word.
    """
    found = []
    for i, tok in enumerate(tokens):
        if tok not in NEGATIONS:
            continue
        if not any(t in SUBJECTS for t in tokens[max(0, i - SUBJECT_LOOKBACK):i]):
            continue
        for j in range(i + 1, min(len(tokens), i + 1 + NEGATION_SCOPE)):
            if tokens[j] in INTENSIFIERS:
                continue
            emotion = lookup(tokens[j], lexicon)
            if emotion is not None and emotion in OPPOSITES:
                found.append((j, emotion))
            break
    return found


def emphatic_breakdown(labels, winner: TextEmotion) -> dict[TextEmotion, float]:
    """``winner`` at the emphatic confidence, the rest split evenly."""
    others = [label for label in labels if label != winner]
    share = (100.0 - EMPHATIC_CONFIDENCE) / len(others) if others else 0.0
    return {label: (float(EMPHATIC_CONFIDENCE) if label == winner else share) for label in labels}

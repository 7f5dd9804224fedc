"""
CLI Inference — Emotional State Analysis from the Command Line
===============================================================

Examples::

    # Text only
    python scripts/inference.py --text "I love the app, but it keeps crashing."

    # Voice only (any format librosa reads)
    python scripts/inference.py --voice recording.wav

    # Face only
    python scripts/inference.py --face snapshot.png

    # All three, token-attention text scoring, personal calibration
    python scripts/inference.py \
        --text "I'm not calm at all." \
        --voice recording.wav \
        --face snapshot.png \
        --strategy attention \
        --calibration calibration.json
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

_PROJECT_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(_PROJECT_ROOT))

from moodfusion.core.emotions import Emotion
from moodfusion.core.session import FusionSession
from moodfusion.utils.helpers import load_config, setup_logging

logger = setup_logging()


def _load_calibration(path: str) -> dict:
    with open(path, "r", encoding="utf-8") as f:
        raw = json.load(f)
    return {Emotion(name): float(mult) for name, mult in raw.items()}


def main() -> None:
    parser = argparse.ArgumentParser(description="moodfusion — multimodal emotional state CLI")
    parser.add_argument("--text", type=str, default=None, help="Text input")
    parser.add_argument("--voice", type=str, default=None, help="Path to an audio file")
    parser.add_argument("--face", type=str, default=None, help="Path to a face image")
    parser.add_argument("--strategy", choices=["clause", "attention"], default=None,
                        help="Text scoring strategy (default: from config)")
    parser.add_argument("--calibration", type=str, default=None,
                        help="JSON file mapping emotion -> confidence multiplier")
    parser.add_argument("--config", type=str, default=None, help="Alternative config.yaml")
    parser.add_argument("--output", type=str, default=str(_PROJECT_ROOT / "output" / "last_state.json"),
                        help="Where to write the fused state as JSON")
    args = parser.parse_args()

    if not any([args.text, args.voice, args.face]):
        parser.error("Provide at least one input: --text, --voice, or --face")

    for path in (args.voice, args.face):
        if path and not Path(path).is_file():
            raise FileNotFoundError(f"Input file not found: {path}")

    config = load_config(args.config)
    calibration = _load_calibration(args.calibration) if args.calibration else None
    session = FusionSession(config, calibration_map=calibration, text_strategy=args.strategy)

    # --- Analyse each provided modality --------------------------------
    if args.text:
        logger.info("Analysing text …")
        session.submit_text(args.text)

    if args.voice:
        logger.info("Analysing voice …")
        if session.submit_audio_file(args.voice) is None:
            logger.warning("No voice observation (silent or empty audio).")

    if args.face:
        logger.info("Analysing face …")
        if session.submit_facial_frame(args.face) is None:
            logger.warning("No face detected in %s", args.face)

    state = session.tick()
    if state is None:
        print("No modality produced an observation.")
        sys.exit(1)

    # --- Print results --------------------------------------------------
    print("\n" + "=" * 62)
    print("  EMOTIONAL STATE")
    print("=" * 62)
    print(f"  Primary Emotion  : {state.primary_emotion.value.upper()}")
    print(f"  Confidence       : {state.confidence}%")
    print(f"  Uncertainty      : {state.uncertainty}%")
    print(f"  Modalities       : {', '.join(m.value for m in state.modalities_used)}")
    if state.agreed_emotion is not None:
        print(f"  Modalities agree : {state.agreed_emotion.value}")
    print("-" * 62)

    print("\n  Per modality:")
    for modality, obs in state.modalities.items():
        print(f"    [{modality.value.upper():>6s}] {obs.label.value if obs.label else '-'} ({obs.confidence:.0f}%)")

    if state.intervention_needed:
        print(f"\n  Suggested intervention: {state.intervention_type.value}")
    print("=" * 62)

    out = Path(args.output)
    out.parent.mkdir(parents=True, exist_ok=True)
    out.write_text(state.to_json(), encoding="utf-8")
    logger.info("JSON saved to %s", out)


if __name__ == "__main__":
    main()

"""
Automated-Generation Probability
────────────────────────────────
Signals and weights (evaluated in order, summed, clamped to 1.0):
  bloat           (0.5 / 0.2) — more than 2000 / 500 lines added (mutually exclusive)
  write_only      (0.3)       — more than 100 lines added, deletions under 5% of additions
  wide_change     (0.2)       — more than 20 files touched
  generic_message (0.0)       — short or generic message; evaluated, never weighted

The line counts are the commit's own delta, never a running total.
A root commit imports an existing tree and always scores 0.0.
"""

from dataclasses import dataclass
from typing import Callable, List, Sequence, Tuple

from impact_cli.detectors.text import MessageDetector


@dataclass(frozen=True)
class CommitSignals:
    lines_added: int
    lines_deleted: int
    files_changed: int
    message: str = ""
    is_root: bool = False


def bloat_signal(c: CommitSignals) -> dict:
    if c.lines_added > 2000:
        return {"score": 0.5, "reason": f"Massive single-commit addition ({c.lines_added} lines)"}
    if c.lines_added > 500:
        return {"score": 0.2, "reason": f"Large single-commit addition ({c.lines_added} lines)"}
    return {"score": 0.0, "reason": ""}


def write_only_signal(c: CommitSignals) -> dict:
    if c.lines_added > 100 and c.lines_deleted < c.lines_added * 0.05:
        return {
            "score": 0.3,
            "reason": f"Write-only change ({c.lines_added} added vs {c.lines_deleted} deleted)",
        }
    return {"score": 0.0, "reason": ""}


def wide_change_signal(c: CommitSignals) -> dict:
    if c.files_changed > 20:
        return {"score": 0.2, "reason": f"Touches {c.files_changed} files in one commit"}
    return {"score": 0.0, "reason": ""}


_message_detector = MessageDetector()


def generic_message_signal(c: CommitSignals) -> dict:
    return _message_detector.analyze(c.message)


Signal = Tuple[str, Callable[[CommitSignals], dict]]

DEFAULT_SIGNALS: Tuple[Signal, ...] = (
    ("bloat", bloat_signal),
    ("write_only", write_only_signal),
    ("wide_change", wide_change_signal),
    ("generic_message", generic_message_signal),
)


def band_for(score: float) -> str:
    if score < 0.20:
        return "Likely Human"
    if score < 0.50:
        return "Mixed / Uncertain"
    return "Likely Automated"


class AutomationScorer:
    def __init__(self, signals: Sequence[Signal] = DEFAULT_SIGNALS):
        self.signals = tuple(signals)

    def compute(self, signals: CommitSignals) -> dict:
        if signals.is_root:
            return {
                "score": 0.0,
                "band": band_for(0.0),
                "reasons": ["Initial commit imports an existing tree"],
                "signals": {},
            }

        total = 0.0
        reasons: List[str] = []
        contributions = {}
        for name, evaluate in self.signals:
            res = evaluate(signals)
            weight = res.get("score", 0.0)
            contributions[name] = weight
            total += weight
            if res.get("reason"):
                reasons.append(res["reason"])

        final_score = round(min(1.0, total), 2)
        return {
            "score": final_score,
            "band": band_for(final_score),
            "reasons": reasons or ["No automation signals detected"],
            "signals": contributions,
        }

    def probability(self, lines_added: int, lines_deleted: int, files_changed: int,
                    message: str = "", is_root: bool = False) -> float:
        return self.compute(CommitSignals(
            lines_added=lines_added,
            lines_deleted=lines_deleted,
            files_changed=files_changed,
            message=message,
            is_root=is_root,
        ))["score"]

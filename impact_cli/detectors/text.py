import re

# Messages that say nothing about the change itself
_GENERIC_WORDS = ("update", "fix", "wip", "changes", "misc", "stuff", "cleanup")
_SHORT_MESSAGE_CHARS = 10
_WORD_RE = re.compile(r"[a-z]+")


class MessageDetector:
    """Commit-message heuristics.

    Generic or very short messages are reported, but the detector always
    contributes a weight of 0.0: the signal is too weak to move the
    automated-generation probability and is kept only for its reason text.
    """

    weight = 0.0

    def analyze(self, message: str) -> dict:
        summary = (message or "").strip().split("\n")[0].lower()
        reasons = []

        if len(summary) < _SHORT_MESSAGE_CHARS:
            reasons.append(f"Very short commit message ({len(summary)} chars)")

        words = set(_WORD_RE.findall(summary))
        generic = [w for w in _GENERIC_WORDS if w in words]
        if generic:
            reasons.append(f"Generic commit message wording ({', '.join(generic)})")

        return {
            "score": self.weight,
            "reason": "; ".join(reasons) if reasons else "",
        }

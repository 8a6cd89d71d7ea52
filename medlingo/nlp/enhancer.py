# medlingo/nlp/enhancer.py
from __future__ import annotations

from dataclasses import dataclass
from typing import List, Sequence

from medlingo.nlp.corrections import CORRECTION_RULES, DOMAIN_TERMS, CorrectionRule


@dataclass(frozen=True)
class TextStats:
    words: int
    chars: int


def text_stats(text: str) -> TextStats:
    text = text or ""
    return TextStats(words=len([w for w in text.split() if w]), chars=len(text))


class TranscriptEnhancer:
    """
    Rewrites known mis-transcriptions of domain terms and reports which
    canonical terms a text mentions.
    """

    def __init__(
        self,
        rules: Sequence[CorrectionRule] = CORRECTION_RULES,
        terms: Sequence[str] = DOMAIN_TERMS,
    ) -> None:
        self.rules = tuple(rules)
        self.terms = tuple(t.lower() for t in terms)

    def enhance(self, raw: str) -> str:
        text = raw or ""
        for rule in self.rules:
            text = rule.pattern.sub(rule.replacement, text)
        return text

    def detect_terms(self, text: str) -> List[str]:
        haystack = (text or "").lower()
        if not haystack:
            return []
        out: List[str] = []
        for term in self.terms:
            if term in haystack and term not in out:
                out.append(term)
        return out

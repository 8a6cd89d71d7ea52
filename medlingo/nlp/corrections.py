# medlingo/nlp/corrections.py
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Pattern, Tuple


@dataclass(frozen=True)
class CorrectionRule:
    pattern: Pattern[str]
    replacement: str


def _rule(pattern: str, replacement: str) -> CorrectionRule:
    # Anchored on word boundaries so a rule never fires inside a longer word.
    return CorrectionRule(re.compile(rf"\b(?:{pattern})\b", flags=re.IGNORECASE), replacement)


# Order matters: each rule runs over the output of the previous one.
# No replacement below may be matched by any pattern, so enhancing twice is a no-op.
CORRECTION_RULES: Tuple[CorrectionRule, ...] = (
    _rule(r"hi\s+pertension|high\s+pertension|hyper\s+tension|hypertention", "hypertension"),
    _rule(r"hypo\s+tension|hypotention", "hypotension"),
    _rule(r"azma|asma|asthama", "asthma"),
    _rule(r"die\s+a\s+beaties|diabetis|dia\s+betes|diabeties", "diabetes"),
    _rule(r"new\s+monia|pneumonya|numonia|nu\s+monia", "pneumonia"),
    _rule(r"bronkitis|bronchitus|bron\s+kitis", "bronchitis"),
    _rule(r"art\s+ritis|arthritus|arthiritis", "arthritis"),
    _rule(r"migrane|my\s+grain", "migraine"),
    _rule(r"a\s+nemia|aneamia", "anemia"),
    _rule(r"in\s+sulin|insulen", "insulin"),
    _rule(r"anti\s+biotic|antibiotix", "antibiotic"),
    _rule(r"amoxicilin|amoxicillan|a\s+moxicillin", "amoxicillin"),
    _rule(r"ibu\s+profen|ibuprofin", "ibuprofen"),
    _rule(r"para\s+cetamol|paracetamole", "paracetamol"),
    _rule(r"cholestrol|cholesteral", "cholesterol"),
    _rule(r"arrythmia|a\s+rhythmia", "arrhythmia"),
    _rule(r"tacky\s+cardia|tachycardea", "tachycardia"),
    _rule(r"stetho\s+scope|stethascope", "stethoscope"),
    _rule(r"E\s+C\s+G|E\.C\.G", "ECG"),
)

# Canonical forms, lowercase, in the order matches are reported.
DOMAIN_TERMS: Tuple[str, ...] = (
    "hypertension",
    "hypotension",
    "asthma",
    "diabetes",
    "pneumonia",
    "bronchitis",
    "arthritis",
    "migraine",
    "anemia",
    "insulin",
    "antibiotic",
    "amoxicillin",
    "ibuprofen",
    "paracetamol",
    "cholesterol",
    "arrhythmia",
    "tachycardia",
    "stethoscope",
    "ecg",
    "blood pressure",
    "fever",
    "allergy",
)

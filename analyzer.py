"""Rule-based resume analysis engine: skill matching, ATS heuristics and suggestions."""

import logging
import math
import re
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

import spacy
from spacy.matcher import PhraseMatcher
from spacy.util import compile_infix_regex

from config import ATS_WEIGHTS_PATH, load_json_file
from skills import CASE_SENSITIVE_SPELLINGS, load_skill_aliases

logger = logging.getLogger(__name__)

# --- Constants & Regex helpers -------------------------------------------------

SUGGESTION_COUNT = 5
MAX_SKILL_SUGGESTIONS = 3
ATS_SUGGESTION_THRESHOLD = 70

# Weight (points out of 100) each structural signal contributes at full goodness.
ATS_SIGNAL_WEIGHTS: Dict[str, float] = {
    "sections": 30.0,
    "length": 20.0,
    "keywords": 25.0,
    "contact": 10.0,
    "formatting": 15.0,
}

IDEAL_MIN_WORDS = 300
IDEAL_MAX_WORDS = 1000
ARTIFACT_PENALTY = 0.25

SECTION_KEYWORDS: Dict[str, List[str]] = {
    "experience": [
        "experience",
        "work experience",
        "professional experience",
        "employment history",
        "work history",
        "employment",
    ],
    "education": [
        "education",
        "academic background",
        "academic qualifications",
        "qualifications",
    ],
    "skills": [
        "skills",
        "technical skills",
        "core skills",
        "competencies",
        "core competencies",
    ],
    "summary": [
        "summary",
        "professional summary",
        "objective",
        "career objective",
        "profile",
        "about me",
    ],
}

SECTION_PATTERNS: Dict[str, "re.Pattern[str]"] = {
    name: re.compile(
        r"^[ \t]*(?:" + "|".join(re.escape(keyword) for keyword in keywords) + r")\b",
        re.IGNORECASE | re.MULTILINE,
    )
    for name, keywords in SECTION_KEYWORDS.items()
}

EMAIL_PATTERN = re.compile(r"[\w.+-]+@[\w-]+\.[A-Za-z]{2,}")
PHONE_PATTERN = re.compile(r"\+?\d[\d ().-]{7,}\d")
MIN_PHONE_DIGITS = 10  # shorter digit runs are date ranges such as "2019 - 2023"
SYMBOL_RUN_PATTERN = re.compile(r"[^\w\s]{4,}")
GARBLED_MARKERS = ("�", "â€", "Ã")

# "Node.js" tokenizes as "Node" "." "js", so a skill named "Node" is found in it.
DOTTED_NAME_INFIX = r"(?<=[A-Za-z])\.(?=[A-Za-z])"

GENERIC_SUGGESTIONS: List[str] = [
    "Quantify your achievements with concrete numbers (for example 'cut page load time by 40%').",
    "Start each bullet point with a strong action verb such as 'built', 'led' or 'optimized'.",
    "Tailor your professional summary to the target role in two or three sentences.",
    "Mirror the exact wording of the job posting where it honestly describes your experience.",
    "List certifications, courses or side projects that demonstrate your key skills.",
    "Keep the layout to a single column with standard fonts so every section is machine-readable.",
]

FALLBACK_STRUCTURAL_SUGGESTION = (
    "Use standard section headings (Summary, Experience, Education, Skills) and plain formatting "
    "so ATS parsers can read your resume."
)


@dataclass(frozen=True)
class AnalysisResult:
    match_percentage: int
    ats_score: int
    matched_skills: Tuple[str, ...] = ()
    missing_skills: Tuple[str, ...] = ()
    suggestions: Tuple[str, ...] = ()
    detailed_feedback: Optional[str] = None
    is_ai_powered: bool = False

    def to_dict(self) -> Dict[str, object]:
        return {
            "match_percentage": self.match_percentage,
            "ats_score": self.ats_score,
            "matched_skills": list(self.matched_skills),
            "missing_skills": list(self.missing_skills),
            "suggestions": list(self.suggestions),
            "detailed_feedback": self.detailed_feedback,
            "is_ai_powered": self.is_ai_powered,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, object]) -> "AnalysisResult":
        return cls(
            match_percentage=int(data["match_percentage"]),
            ats_score=int(data["ats_score"]),
            matched_skills=tuple(data.get("matched_skills") or ()),
            missing_skills=tuple(data.get("missing_skills") or ()),
            suggestions=tuple(data.get("suggestions") or ()),
            detailed_feedback=data.get("detailed_feedback"),
            is_ai_powered=bool(data.get("is_ai_powered", False)),
        )


@dataclass
class ResumeStructure:
    word_count: int = 0
    sections_found: List[str] = field(default_factory=list)
    sections_missing: List[str] = field(default_factory=list)
    has_email: bool = False
    has_phone: bool = False
    artifacts: List[str] = field(default_factory=list)


def round_half_up(value: float) -> int:
    """Round .5 away from zero for positives (and toward +inf for negatives), like Math.round."""
    return int(math.floor(value + 0.5))


def _clamp_score(value: float) -> int:
    return max(0, min(100, round_half_up(value)))


def _normalize_text(text: str) -> str:
    return " ".join((text or "").split())


# --- Skill matching ------------------------------------------------------------

@lru_cache(maxsize=1)
def _load_spacy_model():
    """Lazy-load a tokenizer-only English pipeline once per process.

    Dotted names are split at the dot and URL detection is switched off, so
    "Node.js" or "ASP.NET" are not kept whole as host names.
    """
    nlp = spacy.blank("en")
    infixes = list(nlp.Defaults.infixes) + [DOTTED_NAME_INFIX]
    nlp.tokenizer.infix_finditer = compile_infix_regex(infixes).finditer
    nlp.tokenizer.url_match = None
    return nlp


@lru_cache(maxsize=1)
def _default_skill_aliases() -> Dict[str, List[str]]:
    return load_skill_aliases()


def _dedupe_skills(skills: Iterable[str]) -> List[str]:
    unique: List[str] = []
    seen = set()
    for skill in skills:
        cleaned = (skill or "").strip()
        if not cleaned or cleaned.lower() in seen:
            continue
        seen.add(cleaned.lower())
        unique.append(cleaned)
    return unique


def _spellings_for(skill: str, alias_lookup: Mapping[str, List[str]]) -> List[str]:
    return _dedupe_skills([skill] + list(alias_lookup.get(skill.lower(), [])))


def match_skills(
    resume_text: str,
    required_skills: Sequence[str],
    aliases: Optional[Mapping[str, List[str]]] = None,
) -> Tuple[List[str], List[str]]:
    """Partition *required_skills* into (matched, missing) by their presence in *resume_text*.

    A skill counts as present when its name or any registered alias appears as a
    whole-token phrase, ignoring case and whitespace differences. Spellings in
    CASE_SENSITIVE_SPELLINGS must match their exact capitalisation. Both lists
    keep the declaration order of *required_skills*.
    """
    required = _dedupe_skills(required_skills)
    if not required:
        return [], []

    text = _normalize_text(resume_text)
    if not text:
        return [], required

    alias_map = _default_skill_aliases() if aliases is None else aliases
    alias_lookup = {name.lower(): list(spellings) for name, spellings in alias_map.items()}

    nlp = _load_spacy_model()
    matcher = PhraseMatcher(nlp.vocab, attr="LOWER")
    exact_matcher = PhraseMatcher(nlp.vocab, attr="ORTH")
    for skill in required:
        spellings = _spellings_for(skill, alias_lookup)
        folded = [nlp.make_doc(s) for s in spellings if s not in CASE_SENSITIVE_SPELLINGS]
        exact = [nlp.make_doc(s) for s in spellings if s in CASE_SENSITIVE_SPELLINGS]
        if folded:
            matcher.add(skill, folded)
        if exact:
            exact_matcher.add(skill, exact)

    doc = nlp.make_doc(text)
    found = {nlp.vocab.strings[match_id] for match_id, _, _ in matcher(doc)}
    found.update(nlp.vocab.strings[match_id] for match_id, _, _ in exact_matcher(doc))

    matched = [skill for skill in required if skill in found]
    missing = [skill for skill in required if skill not in found]
    return matched, missing


# --- Structural inspection -----------------------------------------------------

def inspect_resume_structure(resume_text: str) -> ResumeStructure:
    structure = ResumeStructure()
    if not resume_text or not resume_text.strip():
        structure.sections_missing = list(SECTION_PATTERNS)
        return structure

    structure.word_count = len(resume_text.split())
    for name, pattern in SECTION_PATTERNS.items():
        if pattern.search(resume_text):
            structure.sections_found.append(name)
        else:
            structure.sections_missing.append(name)

    structure.has_email = bool(EMAIL_PATTERN.search(resume_text))
    structure.has_phone = any(
        sum(char.isdigit() for char in candidate) >= MIN_PHONE_DIGITS
        for candidate in PHONE_PATTERN.findall(resume_text)
    )

    if "\t" in resume_text:
        structure.artifacts.append("tabs")
    if resume_text.count("|") >= 3:
        structure.artifacts.append("tables")
    if any(marker in resume_text for marker in GARBLED_MARKERS):
        structure.artifacts.append("garbled characters")
    if SYMBOL_RUN_PATTERN.search(resume_text):
        structure.artifacts.append("decorative symbols")
    return structure


def _length_goodness(word_count: int) -> float:
    if word_count <= 0:
        return 0.0
    if word_count < IDEAL_MIN_WORDS:
        return word_count / IDEAL_MIN_WORDS
    if word_count <= IDEAL_MAX_WORDS:
        return 1.0
    overshoot = (word_count - IDEAL_MAX_WORDS) / IDEAL_MAX_WORDS
    return max(0.5, 1.0 - 0.5 * overshoot)


def evaluate_ats_signals(
    structure: ResumeStructure,
    matched_count: int,
    required_count: int,
) -> Dict[str, float]:
    """Goodness of each ATS signal as a fraction in [0, 1]."""
    total_sections = len(structure.sections_found) + len(structure.sections_missing)
    if structure.word_count:
        formatting = max(0.0, 1.0 - ARTIFACT_PENALTY * len(structure.artifacts))
    else:
        formatting = 0.0
    return {
        "sections": len(structure.sections_found) / total_sections if total_sections else 0.0,
        "length": _length_goodness(structure.word_count),
        "keywords": min(1.0, matched_count / required_count) if required_count else 0.0,
        "contact": 0.5 * structure.has_email + 0.5 * structure.has_phone,
        "formatting": formatting,
    }


def load_ats_weights(path: Optional[str] = None) -> Dict[str, float]:
    """Default signal weights, overridden by the JSON object at *path* (or ATS_WEIGHTS_PATH)."""
    weights = dict(ATS_SIGNAL_WEIGHTS)
    path = path or ATS_WEIGHTS_PATH
    if not path:
        return weights
    for name, value in load_json_file(path).items():
        if name not in ATS_SIGNAL_WEIGHTS:
            raise ValueError(f"Unknown ATS signal {name!r} in {path}.")
        try:
            weight = float(value)
        except (TypeError, ValueError) as exc:
            raise ValueError(f"ATS weight for {name!r} must be a number.") from exc
        if weight < 0:
            raise ValueError(f"ATS weight for {name!r} must not be negative.")
        weights[name] = weight
    return weights


# --- Scoring -------------------------------------------------------------------

def calculate_match_percentage(matched: Sequence[str], required: Sequence[str]) -> int:
    if not required:
        return 0
    return _clamp_score(100 * len(matched) / len(required))


def calculate_ats_score(
    resume_text: str,
    matched_count: int,
    required_count: int,
    weights: Optional[Mapping[str, float]] = None,
) -> int:
    weights = ATS_SIGNAL_WEIGHTS if weights is None else weights
    signals = evaluate_ats_signals(inspect_resume_structure(resume_text), matched_count, required_count)
    composite = sum(weights.get(name, 0.0) * goodness for name, goodness in signals.items())
    return _clamp_score(composite)


def score_resume(
    matched: Sequence[str],
    required: Sequence[str],
    resume_text: str,
    weights: Optional[Mapping[str, float]] = None,
) -> Tuple[int, int]:
    """Return (match_percentage, ats_score), both integers in [0, 100]."""
    match_percentage = calculate_match_percentage(matched, required)
    ats_score = calculate_ats_score(resume_text, len(matched), len(required), weights)
    return match_percentage, ats_score


# --- Suggestions ---------------------------------------------------------------

def _structural_suggestions(structure: ResumeStructure) -> List[str]:
    suggestions: List[str] = []
    if structure.sections_missing:
        headings = ", ".join(name.title() for name in structure.sections_missing)
        suggestions.append(f"Add clearly labelled section headings for: {headings}.")
    if structure.word_count < IDEAL_MIN_WORDS:
        suggestions.append(
            f"Expand your resume to at least {IDEAL_MIN_WORDS} words with detail on your responsibilities and results."
        )
    elif structure.word_count > IDEAL_MAX_WORDS:
        suggestions.append("Trim your resume to one or two pages and keep only the most relevant experience.")
    if not (structure.has_email and structure.has_phone):
        suggestions.append("Include your e-mail address and phone number at the top of the resume.")
    if structure.artifacts:
        suggestions.append(
            f"Remove {', '.join(structure.artifacts)} from the document; ATS parsers often misread them."
        )
    return suggestions


def pad_suggestions(suggestions: Iterable[str], count: int = SUGGESTION_COUNT) -> List[str]:
    """De-duplicate *suggestions*, cap them at *count* and fill up from the generic list."""
    result: List[str] = []
    seen = set()
    for suggestion in list(suggestions) + GENERIC_SUGGESTIONS:
        cleaned = (suggestion or "").strip()
        if not cleaned or cleaned.lower() in seen:
            continue
        seen.add(cleaned.lower())
        result.append(cleaned)
        if len(result) == count:
            break
    return result


def generate_suggestions(missing: Sequence[str], resume_text: str, ats_score: int) -> List[str]:
    """Exactly SUGGESTION_COUNT unique, actionable suggestions, most impactful first."""
    specific = [
        f"Add {skill} to your resume, ideally backed by a project or role where you used it."
        for skill in list(missing)[:MAX_SKILL_SUGGESTIONS]
    ]
    if ats_score < ATS_SUGGESTION_THRESHOLD:
        structural = _structural_suggestions(inspect_resume_structure(resume_text))
        specific.extend(structural or [FALLBACK_STRUCTURAL_SUGGESTION])
    return pad_suggestions(specific)


# --- Main analysis entry point -------------------------------------------------

def analyze_resume(
    resume_text: str,
    required_skills: Sequence[str],
    aliases: Optional[Mapping[str, List[str]]] = None,
    ats_weights: Optional[Mapping[str, float]] = None,
) -> AnalysisResult:
    """Keyword-matching baseline; never fails for well-formed input."""
    resume_text = resume_text or ""
    matched, missing = match_skills(resume_text, required_skills, aliases)
    required = matched + missing
    match_percentage, ats_score = score_resume(matched, required, resume_text, ats_weights)
    suggestions = generate_suggestions(missing, resume_text, ats_score)
    logger.debug(
        "Baseline analysis: %s/%s skills matched, match=%s ats=%s",
        len(matched),
        len(required),
        match_percentage,
        ats_score,
    )
    return AnalysisResult(
        match_percentage=match_percentage,
        ats_score=ats_score,
        matched_skills=tuple(matched),
        missing_skills=tuple(missing),
        suggestions=tuple(suggestions),
        is_ai_powered=False,
    )

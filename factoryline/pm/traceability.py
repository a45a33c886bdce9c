"""
Requirement traceability mapping.

Attaches requirement ids to story acceptance criteria so no unit of required
work is silently dropped between the requirement set and the generated
stories.

Matching is an ordered list of independent rules. For each requirement the
rules are tried in order across every story/criterion; the first hit wins
and the requirement is never re-evaluated. A criterion may collect many ids.

After matching, a forced fallback attaches designated critical requirements,
then any still-unmapped mandatory requirement, to the best-fit criterion.
Forced mappings are flagged and logged. Whatever is left is reported as a
gap, never raised.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Callable, Iterable, Mapping, Optional

from factoryline.errors import TraceabilityGapError
from factoryline.lib.config import DEFAULT_CRITICAL_REQUIREMENTS
from factoryline.pm.models import AcceptanceCriterion, Requirement, RequirementSet, Story

logger = logging.getLogger(__name__)


# ─────────────────────────────────────────────────────────────────────────────
# Text normalization
# ─────────────────────────────────────────────────────────────────────────────

THRESHOLD_RE = re.compile(r"(\d+(?:\.\d+)?(?:\s*-\s*\d+)?)\s*([a-z]+)")
EVENT_RE = re.compile(r"\b([a-z][a-z0-9]*:[a-z][a-z0-9]*)\b")
BACKTICK_RE = re.compile(r"`([^`]+)`")
WORD_RE = re.compile(r"[a-z0-9]+")

STOPWORDS = {
    "a", "an", "and", "as", "be", "by", "can", "each", "for", "from", "in",
    "is", "it", "must", "of", "on", "or", "should", "so", "the", "to", "user",
    "users", "when", "with", "system",
}


def normalize(text: str) -> str:
    return " ".join(text.lower().split())


def _singular(word: str) -> str:
    if len(word) > 3 and word.endswith("s") and not word.endswith("ss"):
        return word[:-1]
    return word


def numeric_thresholds(text: str) -> set[str]:
    """Normalized quantity phrases: 'max 3 clicks' -> {'3click'}, '200 ms' -> {'200ms'}."""
    found = set()
    for number, unit in THRESHOLD_RE.findall(normalize(text)):
        found.add(number.replace(" ", "") + _singular(unit))
    return found


def identifiers(text: str) -> set[str]:
    """Event names (account:selected) and backticked identifiers."""
    lowered = text.lower()
    return set(EVENT_RE.findall(lowered)) | {b.strip() for b in BACKTICK_RE.findall(lowered)}


def content_words(text: str) -> set[str]:
    return {_singular(w) for w in WORD_RE.findall(text.lower()) if w not in STOPWORDS}


# ─────────────────────────────────────────────────────────────────────────────
# Match rules
# ─────────────────────────────────────────────────────────────────────────────

# (criterion keyword, requirement keyword)
DEFAULT_KEYWORD_PAIRS = [
    ("account type", "c/r/i"),
    ("status indicator", "status indicator"),
    ("search", "filter"),
    ("keyboard", "arrow key"),
    ("console", "console.log"),
]

# Story category -> requirement categories it can host
DEFAULT_CATEGORY_ALIASES = {
    "accounts": {"layout"},
    "workorders": {"navigation"},
}

# Requirement category -> anchor phrases that must appear in the requirement text
DEFAULT_CATEGORY_ANCHORS = {
    "layout": ["column", "panel", "layout"],
    "performance": ["ms", "second", "render", "performance", "scroll", "load"],
    "navigation": ["navigate", "click"],
    "data": ["display", "show", "load"],
}


Predicate = Callable[[Requirement, Story, AcceptanceCriterion], bool]


@dataclass(frozen=True)
class MatchRule:
    name: str
    predicate: Predicate

    def matches(self, req: Requirement, story: Story, ac: AcceptanceCriterion) -> bool:
        return self.predicate(req, story, ac)


def literal_rule(keyword_pairs: Iterable[tuple[str, str]] = DEFAULT_KEYWORD_PAIRS) -> MatchRule:
    """Shared numeric thresholds, or a configured keyword correspondence."""
    pairs = [(normalize(a), normalize(b)) for a, b in keyword_pairs]

    def predicate(req, story, ac):
        req_text = normalize(req.text)
        ac_text = normalize(ac.text)
        if numeric_thresholds(req_text) & numeric_thresholds(ac_text):
            return True
        return any(a in ac_text and b in req_text for a, b in pairs)

    return MatchRule("literal", predicate)


def identifier_rule() -> MatchRule:
    """Structurally-named requirements: shared event or code identifier."""
    def predicate(req, story, ac):
        return bool(identifiers(req.text) & identifiers(ac.text))

    return MatchRule("identifier", predicate)


def category_rule(
    aliases: Mapping[str, set[str]] = DEFAULT_CATEGORY_ALIASES,
    anchors: Mapping[str, list[str]] = DEFAULT_CATEGORY_ANCHORS,
) -> MatchRule:
    """Requirement category corresponds to the story's, and the text has an anchor phrase."""
    def predicate(req, story, ac):
        story_cat = story.category.lower()
        req_cat = req.category.lower()
        if req_cat != story_cat and req_cat not in aliases.get(story_cat, set()):
            return False
        # "200ms" also counts as the word "ms"
        words = content_words(req.text)
        words |= {w.lstrip("0123456789.") for w in words}
        text = normalize(req.text)
        for anchor in anchors.get(req_cat, []):
            if " " in anchor:
                if anchor in text:
                    return True
            elif _singular(anchor) in words:
                return True
        return False

    return MatchRule("category", predicate)


DEFAULT_RULES = [literal_rule(), identifier_rule(), category_rule()]


# ─────────────────────────────────────────────────────────────────────────────
# Mapping
# ─────────────────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class RequirementMapping:
    requirement_id: str
    story_id: str
    criterion_id: str
    rule: str
    forced: bool = False


@dataclass
class MappingResult:
    mappings: dict[str, RequirementMapping] = field(default_factory=dict)
    unmapped_mandatory: list[str] = field(default_factory=list)
    unmapped_optional: list[str] = field(default_factory=list)
    gaps: list[TraceabilityGapError] = field(default_factory=list)

    @property
    def forced(self) -> list[RequirementMapping]:
        return [m for m in self.mappings.values() if m.forced]

    @property
    def unmapped(self) -> list[str]:
        return self.unmapped_mandatory + self.unmapped_optional


def _attach(
    result: MappingResult,
    req_id: str,
    story: Story,
    ac: AcceptanceCriterion,
    rule: str,
    forced: bool = False,
) -> None:
    ac.attach(req_id)
    result.mappings[req_id] = RequirementMapping(req_id, story.id, ac.id, rule, forced)


def _first_match(req: Requirement, stories: list[Story], rules: list[MatchRule]):
    for rule in rules:
        for story in stories:
            for ac in story.criteria:
                if rule.matches(req, story, ac):
                    return rule, story, ac
    return None


def best_fit(
    req: Requirement,
    stories: list[Story],
    preferred_category: Optional[str] = None,
) -> Optional[tuple[Story, AcceptanceCriterion]]:
    """Best home for a requirement that no rule placed.

    Story: preferred category, then the requirement's own category, then the
    most shared words. Criterion: most shared words. Ties go to the first.
    """
    candidates = [s for s in stories if s.criteria]
    if not candidates:
        return None

    words = content_words(req.text)

    def overlap(text: str) -> int:
        return len(words & content_words(text))

    story = None
    for category in (preferred_category, req.category):
        if category:
            story = next((s for s in candidates if s.category.lower() == category.lower()), None)
            if story:
                break
    if story is None:
        story = max(
            candidates,
            key=lambda s: overlap(" ".join([s.title, s.description] + [ac.text for ac in s.criteria])),
        )

    ac = max(story.criteria, key=lambda c: overlap(c.text))
    return story, ac


def map_requirements(
    requirement_set: RequirementSet,
    stories: list[Story],
    rules: Optional[list[MatchRule]] = None,
    critical: Optional[Mapping[str, str]] = None,
) -> MappingResult:
    """Attach requirement ids to story acceptance criteria.

    Args:
        requirement_set: Requirements to place
        stories: Stories whose criteria receive requirement ids (mutated)
        rules: Ordered match rules (default: literal, identifier, category)
        critical: Requirement id -> preferred story category for ids that
            must be placed even without a text match

    Returns:
        MappingResult with the mapping table, residual unmapped ids split
        mandatory/optional, and any traceability gaps
    """
    rules = DEFAULT_RULES if rules is None else rules
    critical = DEFAULT_CRITICAL_REQUIREMENTS if critical is None else critical
    result = MappingResult()

    for req in requirement_set.requirements:
        if req.id in result.mappings:
            continue
        hit = _first_match(req, stories, rules)
        if hit:
            rule, story, ac = hit
            _attach(result, req.id, story, ac, rule.name)
            logger.info(f"Mapped {req.id} to {story.id}/{ac.id} ({rule.name})")
        elif req.is_mandatory or req.id in requirement_set.mandatory_ids:
            logger.info(f"Mandatory requirement {req.id} not matched: {req.text}")

    # Forced fallback: critical ids first, then every remaining mandatory id
    mandatory = set(requirement_set.mandatory_ids)
    mandatory |= {r.id for r in requirement_set.requirements if r.is_mandatory}
    forced_order = list(dict.fromkeys(
        list(critical)
        + list(requirement_set.mandatory_ids)
        + [r.id for r in requirement_set.requirements if r.is_mandatory]
    ))

    for req_id in forced_order:
        if req_id in result.mappings:
            continue
        req = requirement_set.get(req_id)
        if req is None:
            if req_id in mandatory:
                result.gaps.append(TraceabilityGapError(
                    req_id, reason="listed as mandatory but not defined in the requirement set",
                ))
            continue
        fit = best_fit(req, stories, critical.get(req_id))
        if fit is None:
            result.gaps.append(TraceabilityGapError(
                req_id, req.text, reason="no story with acceptance criteria to attach to",
            ))
            continue
        story, ac = fit
        _attach(result, req_id, story, ac, "forced", forced=True)
        logger.warning(f"Forced mapping {req_id} -> {story.id}/{ac.id}: {req.text}")

    for req in requirement_set.requirements:
        if req.id in result.mappings:
            continue
        if req.is_mandatory or req.id in mandatory:
            result.unmapped_mandatory.append(req.id)
        else:
            result.unmapped_optional.append(req.id)

    # Mandatory ids with no definition never appear in requirements
    for req_id in requirement_set.mandatory_ids:
        if req_id not in result.mappings and req_id not in result.unmapped_mandatory:
            result.unmapped_mandatory.append(req_id)

    for gap in result.gaps:
        logger.warning(f"Traceability gap: {gap}")

    return result

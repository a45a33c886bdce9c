"""
Data models for requirements and stories.
"""

from dataclasses import dataclass, field
from typing import Optional

MANDATORY = "mandatory"


@dataclass(frozen=True)
class Requirement:
    """One extracted requirement."""
    id: str                          # NAV-004
    text: str
    priority: str = "optional"       # mandatory, progressive, optional
    category: str = "general"
    source: Optional[str] = None     # Spec section it came from

    @property
    def is_mandatory(self) -> bool:
        return self.priority == MANDATORY


@dataclass(frozen=True)
class RequirementSet:
    """All requirements plus the mandatory-id subset. Immutable once loaded."""
    requirements: tuple[Requirement, ...] = ()
    mandatory_ids: tuple[str, ...] = ()

    def get(self, req_id: str) -> Optional[Requirement]:
        for req in self.requirements:
            if req.id == req_id:
                return req
        return None

    def by_category(self) -> dict[str, list[Requirement]]:
        """Requirements grouped by category, in first-seen order."""
        groups: dict[str, list[Requirement]] = {}
        for req in self.requirements:
            groups.setdefault(req.category, []).append(req)
        return groups


@dataclass
class AcceptanceCriterion:
    """A checklist item; accumulates the requirement ids it satisfies."""
    id: str                                    # AC-001
    text: str
    requirement_ids: list[str] = field(default_factory=list)

    def attach(self, req_id: str) -> None:
        if req_id not in self.requirement_ids:
            self.requirement_ids.append(req_id)


@dataclass
class Story:
    """A user story generated for one sub-module.

    Created by the story builder, mutated only by the traceability mapper
    (attaching requirement ids), then serialized.
    """
    id: str                                    # US-111-001
    title: str
    description: str = ""
    priority: str = "Medium"
    category: str = "general"
    phase: Optional[str] = None
    criteria: list[AcceptanceCriterion] = field(default_factory=list)

    @property
    def requirement_ids(self) -> list[str]:
        """Ordered, de-duplicated union of criterion requirement ids."""
        seen = []
        for ac in self.criteria:
            for req_id in ac.requirement_ids:
                if req_id not in seen:
                    seen.append(req_id)
        return seen

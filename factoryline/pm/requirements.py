"""Requirement set loading."""

import logging
from pathlib import Path

from factoryline.lib.validate import validate_file
from factoryline.pm.models import MANDATORY, Requirement, RequirementSet

logger = logging.getLogger(__name__)


def parse_requirements(data: dict) -> RequirementSet:
    """Build a RequirementSet from parsed requirements JSON.

    The mandatory subset is the explicit mandatoryRequirements list when
    present, otherwise every requirement whose priority is mandatory.
    """
    requirements = tuple(
        Requirement(
            id=r["id"],
            text=r.get("text", ""),
            priority=r.get("priority") or "optional",
            category=r.get("category") or "general",
            source=r.get("source"),
        )
        for r in data.get("requirements", [])
    )

    if "mandatoryRequirements" in data:
        mandatory = list(dict.fromkeys(data["mandatoryRequirements"]))
    else:
        mandatory = [r.id for r in requirements if r.priority == MANDATORY]

    known = {r.id for r in requirements}
    for req_id in mandatory:
        if req_id not in known:
            logger.warning(f"Mandatory requirement {req_id} has no definition")

    return RequirementSet(requirements=requirements, mandatory_ids=tuple(mandatory))


def load_requirements(path: Path) -> RequirementSet:
    """Load requirements.json.

    A missing file is not fatal: stories are generated without requirement
    tracking and a warning is logged.

    Raises:
        SchemaValidationError: File exists but is invalid
    """
    if not path.exists():
        logger.warning(
            f"{path} not found - generating stories without requirement tracking"
        )
        return RequirementSet()

    data = validate_file(path, "requirements")
    reqs = parse_requirements(data)
    logger.info(
        f"Loaded {len(reqs.requirements)} requirements "
        f"({len(reqs.mandatory_ids)} mandatory) from {path}"
    )
    return reqs

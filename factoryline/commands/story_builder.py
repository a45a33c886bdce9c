"""
story-builder - Generate user stories from a sub-module spec and map
requirements onto their acceptance criteria.
"""

import sys
from pathlib import Path

from factoryline.errors import StoryGenerationError
from factoryline.lib.config import PipelineConfig
from factoryline.lib.validate import SchemaValidationError
from factoryline.pm.report import STORIES_MANIFEST, TRACEABILITY_REPORT, write_outputs
from factoryline.pm.requirements import load_requirements
from factoryline.pm.specparse import parse_spec
from factoryline.pm.stories import build_stories
from factoryline.pm.traceability import map_requirements


def cmd_story_builder(args, config: PipelineConfig) -> int:
    spec_path = Path(args.spec_file)
    output_dir = Path(args.output_dir)
    if args.requirements:
        requirements_path = Path(args.requirements)
    else:
        requirements_path = config.resolve(config.requirements_path)

    print("Story Builder")
    print(f"Spec:   {spec_path}")
    print(f"Output: {output_dir}")
    print()

    try:
        try:
            content = spec_path.read_text(encoding="utf-8")
        except OSError as e:
            raise StoryGenerationError(f"Cannot read spec file {spec_path}: {e}") from None

        spec = parse_spec(content)
        stories = build_stories(spec)
        requirement_set = load_requirements(requirements_path)
        result = map_requirements(requirement_set, stories, critical=config.critical_requirements)
        write_outputs(output_dir, stories, requirement_set, result, spec.sub_module)
    except (StoryGenerationError, SchemaValidationError) as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 1

    total = len(requirement_set.requirements)
    print(f"Generated {len(stories)} stories")
    for story in stories:
        print(f"  {story.id}: {story.title} ({len(story.requirement_ids)} requirements)")
    print()
    print(f"Requirements mapped: {len(result.mappings)}/{total}")

    if result.forced:
        print()
        print(f"Forced mappings ({len(result.forced)}):")
        for m in result.forced:
            print(f"  ⚠ {m.requirement_id} → {m.story_id}/{m.criterion_id}")

    if result.unmapped_mandatory:
        print()
        print(f"✗ Unmapped mandatory requirements ({len(result.unmapped_mandatory)}):")
        for req_id in result.unmapped_mandatory:
            print(f"  - {req_id}")

    if result.gaps:
        print()
        print("Traceability gaps:")
        for gap in result.gaps:
            print(f"  - {gap}")

    if result.unmapped_optional:
        print()
        print(f"Unmapped optional requirements: {', '.join(result.unmapped_optional)}")

    print()
    print(f"Stories manifest:   {output_dir / STORIES_MANIFEST}")
    print(f"Traceability report: {output_dir / TRACEABILITY_REPORT}")
    return 0

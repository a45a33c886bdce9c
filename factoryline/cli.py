#!/usr/bin/env python3
"""factoryline CLI entrypoint."""

import sys
import argparse
import logging
from pathlib import Path

from factoryline.lib.config import load_pipeline_config
from factoryline.commands import prevalidate as cmd_prevalidate_module
from factoryline.commands import run_tool as cmd_run_tool_module
from factoryline.commands import story_builder as cmd_story_builder_module
from factoryline.commands import run as cmd_run_module


def setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.INFO if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


def get_config(args):
    """Load pipeline config from --config or pipeline.yaml in the working directory."""
    config_path = Path(args.config) if args.config else None
    return load_pipeline_config(config_path)


def cmd_prevalidate(args):
    return cmd_prevalidate_module.cmd_prevalidate(args, get_config(args))


def cmd_run_tool(args):
    return cmd_run_tool_module.cmd_run_tool(args, get_config(args))


def cmd_story_builder(args):
    return cmd_story_builder_module.cmd_story_builder(args, get_config(args))


def cmd_run(args):
    return cmd_run_module.cmd_run(args, get_config(args))


def add_common_args(parser):
    parser.add_argument('--config', '-c', help='Path to pipeline.yaml (default: ./pipeline.yaml)')
    parser.add_argument('--verbose', '-v', action='store_true', help='Log progress at INFO level')


def add_prevalidate_args(parser):
    parser.add_argument('manifest', help='Path to manifest JSON')
    parser.set_defaults(func=cmd_prevalidate)


def add_run_tool_args(parser):
    parser.add_argument('tool', nargs='?', help='Logical tool name')
    parser.add_argument('tool_args', nargs=argparse.REMAINDER, help='Arguments passed to the tool')
    parser.set_defaults(func=cmd_run_tool)


def add_story_builder_args(parser):
    parser.add_argument('spec_file', help='Sub-module spec (markdown)')
    parser.add_argument('output_dir', help='Directory for stories and traceability outputs')
    parser.add_argument('--requirements', '-r', help='Path to requirements.json (default from config)')
    parser.set_defaults(func=cmd_story_builder)


def add_run_args(parser):
    parser.add_argument('manifest', help='Path to manifest JSON')
    parser.add_argument('--skip-validation', action='store_true',
                        help='Run without the pre-validation gate')
    parser.set_defaults(func=cmd_run)


def build_parser():
    parser = argparse.ArgumentParser(prog='factoryline', description='Manifest-driven pipeline CLI')
    add_common_args(parser)
    subparsers = parser.add_subparsers(dest='command', required=True)

    # factoryline pre-validate
    add_prevalidate_args(subparsers.add_parser(
        'pre-validate', help='Check a manifest can succeed before running it'))

    # factoryline run-tool
    add_run_tool_args(subparsers.add_parser(
        'run-tool', help='Run a registered tool by name'))

    # factoryline story-builder
    add_story_builder_args(subparsers.add_parser(
        'story-builder', help='Generate stories and requirement traceability from a spec'))

    # factoryline run
    add_run_args(subparsers.add_parser(
        'run', help='Validate and execute a manifest step by step'))

    return parser


def _single(prog, add_args, description, argv=None):
    parser = argparse.ArgumentParser(prog=prog, description=description)
    add_common_args(parser)
    add_args(parser)
    args = parser.parse_args(argv)
    setup_logging(args.verbose)
    return args.func(args)


def main(argv=None):
    args = build_parser().parse_args(argv)
    setup_logging(args.verbose)
    return args.func(args)


def pre_validate_main(argv=None):
    return _single('pre-validate', add_prevalidate_args,
                   'Check a manifest can succeed before running it', argv)


def run_tool_main(argv=None):
    return _single('run-tool', add_run_tool_args, 'Run a registered tool by name', argv)


def story_builder_main(argv=None):
    return _single('story-builder', add_story_builder_args,
                   'Generate stories and requirement traceability from a spec', argv)


if __name__ == '__main__':
    sys.exit(main())

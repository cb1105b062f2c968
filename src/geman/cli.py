# src/geman/cli.py

import argparse
import sys
from typing import List, Optional

from geman import log_utils
from geman.commands import CommandHandler
from geman.download.github_source import GithubReleaseSource
from geman.download.orchestrator import DownloadOrchestrator
from geman.download.version import ToolKind, Version
from geman.exceptions import GemanError
from geman.paths import PathConfiguration, default_settings_file
from geman.registry import ManagedVersions
from geman.settings import load_settings
from geman.utils import GithubClient

MUTATING_COMMANDS = {"add", "remove", "forget", "migrate", "clean"}


def _add_kind_arguments(parser: argparse.ArgumentParser, required: bool) -> None:
    group = parser.add_mutually_exclusive_group(required=required)
    group.add_argument(
        "-p",
        "--proton",
        dest="kind",
        action="store_const",
        const=ToolKind.PROTON,
        help="Proton GE",
    )
    group.add_argument(
        "-w",
        "--wine",
        dest="kind",
        action="store_const",
        const=ToolKind.WINE,
        help="Wine GE",
    )
    group.add_argument(
        "-l",
        "--lol",
        dest="kind",
        action="store_const",
        const=ToolKind.LOL_WINE,
        help="Wine GE for League of Legends",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ge-man",
        description="GE-Man - manage GE-Proton and Wine-GE versions for Steam and Lutris",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Enable debug logging"
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    list_parser = subparsers.add_parser("list", help="List managed versions")
    _add_kind_arguments(list_parser, required=False)
    list_parser.add_argument(
        "-n", "--newest", action="store_true", help="Only show the newest version"
    )
    list_parser.add_argument(
        "-f",
        "--file-system",
        action="store_true",
        help="List directories in the tool directory instead of managed versions",
    )

    add_parser = subparsers.add_parser("add", help="Download and add a version")
    _add_kind_arguments(add_parser, required=True)
    add_parser.add_argument(
        "tag", nargs="?", help="Release tag; the latest release when omitted"
    )
    add_parser.add_argument(
        "--skip-checksum", action="store_true", help="Do not verify the checksum"
    )
    add_parser.add_argument(
        "--label", help="Install again under this label if the tag is already managed"
    )
    add_parser.add_argument(
        "--apply", action="store_true", help="Make the new version the active one"
    )

    for name, help_text in (
        ("remove", "Remove a version from disk and from GE-Man"),
        ("forget", "Stop managing a version without deleting it"),
    ):
        sub = subparsers.add_parser(name, help=help_text)
        _add_kind_arguments(sub, required=True)
        sub.add_argument("tag", help="Release tag")
        sub.add_argument("--label", help="Label of the install to act on")

    check_parser = subparsers.add_parser(
        "check", help="Show the latest upstream release"
    )
    _add_kind_arguments(check_parser, required=False)

    migrate_parser = subparsers.add_parser(
        "migrate", help="Manage an existing GE directory with GE-Man"
    )
    _add_kind_arguments(migrate_parser, required=True)
    migrate_parser.add_argument("tag", help="Release tag the directory holds")
    migrate_parser.add_argument(
        "-s", "--source-path", required=True, help="Directory to migrate"
    )
    migrate_parser.add_argument("--label", help="Label for the migrated version")

    apply_parser = subparsers.add_parser(
        "apply", help="Make a managed version the active one"
    )
    _add_kind_arguments(apply_parser, required=True)
    apply_parser.add_argument(
        "tag", nargs="?", help="Release tag; the newest managed version when omitted"
    )
    apply_parser.add_argument("--label", help="Label of the install to apply")

    clean_parser = subparsers.add_parser("clean", help="Remove several versions")
    _add_kind_arguments(clean_parser, required=True)
    clean_parser.add_argument("-b", "--before", help="Remove versions before this tag")
    clean_parser.add_argument("-s", "--start", help="First tag of an inclusive range")
    clean_parser.add_argument("-e", "--end", help="Last tag of an inclusive range")
    clean_parser.add_argument(
        "--forget", action="store_true", help="Do not delete files"
    )
    clean_parser.add_argument(
        "--dry-run", action="store_true", help="Only show what would be removed"
    )

    settings_parser = subparsers.add_parser(
        "user-settings", help="Manage Proton user settings"
    )
    settings_subparsers = settings_parser.add_subparsers(
        dest="settings_command", required=True
    )
    copy_parser = settings_subparsers.add_parser(
        "copy", help="Copy user_settings.py between Proton versions"
    )
    copy_parser.add_argument("-s", "--source", required=True, help="Source tag")
    copy_parser.add_argument(
        "-d", "--destination", required=True, help="Destination tag"
    )

    return parser


def _run_list(args, handler: CommandHandler, registry: ManagedVersions) -> None:
    kinds = [args.kind] if args.kind is not None else ToolKind.values()
    for kind in kinds:
        entries = handler.list_versions(
            registry, kind, newest=args.newest, file_system=args.file_system
        )
        log_utils.logger.info(f"{kind.display_name}:")
        if not entries:
            log_utils.logger.info("  (none)")
        for entry in entries:
            marker = " *" if entry.in_use else ""
            unmanaged = ""
            if args.file_system and entry.managed is None:
                unmanaged = " (not managed)"
            log_utils.logger.info(f"  {entry.name}{unmanaged}{marker}")


def _run_command(
    args, handler: CommandHandler, registry: ManagedVersions
) -> Optional[GemanError]:
    """
    Run one command. Returns an error to report once the registry is saved,
    for commands that changed the registry before failing.
    """
    logger = log_utils.logger

    if args.command == "list":
        _run_list(args, handler, registry)
    elif args.command == "add":
        result = handler.add(
            registry,
            args.kind,
            tag=args.tag,
            skip_checksum=args.skip_checksum,
            label=args.label,
            apply=args.apply,
        )
        if result.already_managed:
            logger.info(f"{result.version} is already managed, nothing to do")
        else:
            logger.info(f"Successfully added {result.version}")
        if result.apply_error is not None:
            return result.apply_error
    elif args.command == "remove":
        removed = handler.remove(
            registry, Version.new(args.tag, args.kind), args.label
        )
        logger.info(f"Successfully removed {removed}")
    elif args.command == "forget":
        forgotten = handler.forget(
            registry, Version.new(args.tag, args.kind), args.label
        )
        logger.info(f"{forgotten} is no longer managed")
    elif args.command == "check":
        for result in handler.check(args.kind):
            if result.error is not None:
                logger.error(f"{result.kind.display_name}: {result.error}")
            else:
                logger.info(f"{result.kind.display_name}: {result.tag}")
    elif args.command == "migrate":
        migrated = handler.migrate(
            registry,
            args.source_path,
            Version.new(args.tag, args.kind),
            label=args.label,
        )
        logger.info(f"Successfully migrated {migrated}")
    elif args.command == "apply":
        config = handler.apply(registry, args.kind, tag=args.tag, label=args.label)
        logger.info(
            f"{args.kind.app_name} now uses {config.version_dir_name}; "
            f"restart {args.kind.app_name} to pick it up"
        )
    elif args.command == "clean":
        result = handler.clean(
            registry,
            args.kind,
            before=args.before,
            start=args.start,
            end=args.end,
            forget=args.forget,
            dry_run=args.dry_run,
        )
        verb = "Would remove" if result.dry_run else "Removed"
        for managed in result.removed:
            logger.info(f"{verb} {managed}")
        for managed, reason in result.skipped:
            logger.warning(f"Skipped {managed}: {reason}")
        if not result.removed and not result.skipped:
            logger.info("Nothing to clean")
    elif args.command == "user-settings":
        target = handler.copy_user_settings(
            registry,
            Version.proton(args.source),
            Version.proton(args.destination),
        )
        logger.info(f"Copied user settings to {target}")


def main(argv: Optional[List[str]] = None) -> None:
    """
    Entry point for the GE-Man command-line interface.

    Loads the settings file and the managed versions registry, runs the
    requested command and saves the registry after commands that change it.
    Any GE-Man error is logged and ends the process with status 1.
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.verbose:
        log_utils.set_log_level("DEBUG")

    try:
        settings = load_settings(default_settings_file())
        if settings.log_level and not args.verbose:
            log_utils.set_log_level(settings.log_level)

        paths = PathConfiguration.from_environment(settings.steam_root_path)
        log_utils.add_file_logging(
            paths.log_dir, "DEBUG" if args.verbose else settings.log_level or "INFO"
        )
        registry = ManagedVersions.from_file(paths.managed_versions_file)
        client = GithubClient(
            github_token=settings.github_token,
            allow_env_token=settings.allow_env_token,
        )
        handler = CommandHandler(
            paths, orchestrator=DownloadOrchestrator(GithubReleaseSource(client))
        )

        deferred_error = _run_command(args, handler, registry)

        if args.command in MUTATING_COMMANDS and not getattr(args, "dry_run", False):
            paths.create_ge_man_dirs()
            registry.write_to_file(paths.managed_versions_file)
        if deferred_error is not None:
            raise deferred_error
    except GemanError as e:
        log_utils.logger.error(str(e))
        sys.exit(1)


if __name__ == "__main__":
    main()

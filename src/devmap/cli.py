import argparse
import sys
from typing import Optional, Tuple

from .config import ConfigManager, first_time_setup
from .context import DevMapContext
from .error_handling import (
    ConfigurationError,
    DirectoryCreationError,
    ProjectCreationError,
    RegistryNotFoundError,
    RegistryParseError,
    report_error,
)
from .logger_config import setup_logging
from .presentation import format_size, language_table, project_table, render_table, user_table
from .registry import (
    ProjectRequest,
    Registry,
    RegistryStore,
    SyncReport,
    create_language,
    create_project,
    dump_registry,
    list_templates,
    synchronize,
)

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_NOT_SET_UP = 2


def _confirm(question: str, assume_yes: bool) -> bool:
    if assume_yes:
        return True
    if not sys.stdin.isatty():
        return False
    answer = input(f"{question} [y/N] ").strip().lower()
    return answer in ("y", "yes")


def offer_setup(args, manager: ConfigManager, problem: Exception) -> int:
    """Explain a missing or broken registry and offer to install the default one."""
    print(f"\033[93m{report_error(problem, level='warning')}\033[0m", file=sys.stderr)
    if isinstance(problem, RegistryNotFoundError):
        question = "It seems like you do not have a DevMap registry yet. Install the default (empty) one?"
    else:
        question = "The registry could not be read. Replace it with the default (empty) one?"

    if not _confirm(question, getattr(args, "yes", False)):
        print(f"Run 'devmap setup' or edit '{manager.resolve_paths().registry_path}' manually.", file=sys.stderr)
        return EXIT_NOT_SET_UP

    result = first_time_setup(manager.config_path, force=True)
    if not result.success:
        print(f"Setup failed: {result.error}", file=sys.stderr)
        return EXIT_ERROR
    print(f"Installed the default registry at '{result.registry_path}'.")
    return EXIT_OK


def load_and_sync(context: DevMapContext) -> Tuple[Registry, SyncReport]:
    """Load the registry and run a reconciliation pass.

    Raises:
        RegistryParseError: If the registry is missing or malformed
    """
    store = RegistryStore(context.registry_path, context.now)
    registry = store.load()
    report = synchronize(registry, context, store)
    if report.save_error is not None:
        print(f"Warning: {report_error(report.save_error, level='warning')}", file=sys.stderr)
    for failed in report.failed_directories:
        print(f"Warning: {report_error(failed.error, level='warning')}", file=sys.stderr)
    return registry, report


def print_sync_report(report: SyncReport) -> None:
    registry = report.registry
    print(
        f"{len(registry.languages)} languages, {len(registry.projects)} projects, "
        f"{len(registry.users)} users "
        f"({format_size(sum(p.size_bytes for p in registry.projects.values()))} on disk)"
    )
    for result in report.created_directories:
        print(f"  created    {result.path}")
    for language in report.discovered_languages:
        print(f"  language   {language}")
    for key in report.discovered_projects:
        print(f"  discovered {key}")
    for key in report.refreshed_projects:
        print(f"  refreshed  {key}")
    for key in report.duplicate_keys:
        print(f"  duplicate  {key} (last record kept)")
    if not report.changed:
        print("Registry already in sync.")


def new_command(args, registry: Registry, context: DevMapContext) -> int:
    request = ProjectRequest(
        name=args.name,
        language=args.lang,
        folder_name=args.folder,
        github_naming=args.github_naming,
        init_git=args.git,
        template=args.template,
        created_by=args.user,
        create_language=args.create_lang,
    )
    result = create_project(registry, context, request)
    for warning in result.warnings:
        print(f"Warning: {warning}", file=sys.stderr)
    if result.save_error is not None:
        print(f"Warning: {report_error(result.save_error, level='warning')}", file=sys.stderr)
    if result.language_created:
        print(f"Language '{result.project.language}' created.")
    print(f"Project '{result.project.name}' created at {result.path}")
    return EXIT_OK


def lang_command(args, registry: Registry, context: DevMapContext) -> int:
    result = create_language(registry, context, args.name)
    if not result.directory.ok:
        print(f"Warning: {report_error(result.directory.error, level='warning')}", file=sys.stderr)
    if result.save_error is not None:
        print(f"Warning: {report_error(result.save_error, level='warning')}", file=sys.stderr)
    if result.added:
        print(f"Added language: {result.language}")
    else:
        print(f"Language already exists: {result.language}")
    return EXIT_OK


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="devmap",
        description="DevMap - keep a registry of your projects in sync with disk",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Reconcile the registry with the projects directory
  devmap sync

  # List projects with folder, creation time, size and git status
  devmap list --extra

  # Create a project with a GitHub-style folder name and a git repository
  devmap new --lang Python --name "My Tool" --github-naming --git
        """,
    )
    parser.add_argument("--config", help="Path to the config file (default: ~/.devmap/config.yaml)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    parser.add_argument("--no-color", action="store_true", help="Disable colored tables")
    parser.add_argument("-y", "--yes", action="store_true", help="Answer yes to setup prompts")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    subparsers.add_parser("sync", help="Reconcile the registry with the filesystem")

    list_parser = subparsers.add_parser("list", help="List projects")
    list_parser.add_argument("-e", "--extra", action="store_true", help="Show all project columns")

    subparsers.add_parser("languages", help="List languages")
    subparsers.add_parser("users", help="List users")
    subparsers.add_parser("show", help="Print the registry document")

    lang_parser = subparsers.add_parser("lang", help="Manage languages")
    lang_sub = lang_parser.add_subparsers(dest="lang_command", required=True)
    lang_add = lang_sub.add_parser("add", help="Add a language")
    lang_add.add_argument("name", help="Language name (also its directory name)")

    new_parser = subparsers.add_parser("new", help="Create a project")
    new_parser.add_argument("--lang", required=True, help="Project language")
    new_parser.add_argument("--name", required=True, help="Project name (spaces allowed)")
    folder_group = new_parser.add_mutually_exclusive_group()
    folder_group.add_argument("--folder", help="Custom folder name")
    folder_group.add_argument(
        "--github-naming", action="store_true",
        help="Derive the folder name from the project name using GitHub conventions",
    )
    new_parser.add_argument("--git", action="store_true", help="Initialize a git repository")
    new_parser.add_argument("--template", help="Template to copy into the project")
    new_parser.add_argument("--user", help="Owner (default: user.name from the config)")
    new_parser.add_argument("--create-lang", action="store_true", help="Create the language if missing")

    templates_parser = subparsers.add_parser("templates", help="List templates for a language")
    templates_parser.add_argument("lang", help="Language")

    setup_parser = subparsers.add_parser("setup", help="Create the config and install the default registry")
    setup_parser.add_argument("--force", action="store_true", help="Overwrite an existing registry")

    return parser


def main(argv: Optional[list] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    manager = ConfigManager(args.config)
    try:
        config = manager.get_config()
    except ConfigurationError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return EXIT_ERROR

    setup_logging("DEBUG" if args.verbose else config.logging.level, config.logging.json)

    if args.command == "setup":
        result = first_time_setup(manager.config_path, force=args.force)
        for warning in result.warnings:
            print(f"Note: {warning}")
        if not result.success:
            print(f"Setup failed: {result.error}", file=sys.stderr)
            return EXIT_ERROR
        print(f"Config:   {result.config_path}")
        print(f"Registry: {result.registry_path}")
        return EXIT_OK

    context = DevMapContext.from_config(manager, config)

    if args.command == "templates":
        templates = list_templates(context, args.lang)
        if not templates:
            print(f"No templates available for '{args.lang}'.")
        for index, name in enumerate(templates, start=1):
            print(f"  {index}. {name}")
        return EXIT_OK

    try:
        registry, report = load_and_sync(context)
    except RegistryParseError as e:
        return offer_setup(args, manager, e)

    color = not args.no_color and sys.stdout.isatty()

    try:
        if args.command in (None, "sync"):
            print_sync_report(report)
        elif args.command == "list":
            print(render_table(project_table(registry, extended=args.extra), color))
        elif args.command == "languages":
            print(render_table(language_table(registry), color))
        elif args.command == "users":
            print(render_table(user_table(registry), color))
        elif args.command == "show":
            print(dump_registry(registry), end="")
        elif args.command == "lang":
            return lang_command(args, registry, context)
        elif args.command == "new":
            return new_command(args, registry, context)
    except (ProjectCreationError, DirectoryCreationError) as e:
        print(f"Error: {report_error(e)}", file=sys.stderr)
        return EXIT_ERROR

    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())

#!/usr/bin/env python3
"""
Synapse - Local-First Linked Workspace

Command-line entry point. Opens the workspace stored under the configured
directory, bootstrapping a first page when it is empty, and offers a few
commands to inspect and edit it.
"""

import logging
import sys
import argparse
from datetime import datetime
from pathlib import Path
from typing import Optional

from synapse import __version__
from synapse.config import ConfigManager
from synapse.exceptions import SynapseError
from synapse.links import dangling_links
from synapse.models import BlockType, Page
from synapse.tabular import export_csv
from synapse.workspace import Workspace


def setup_logging(config: ConfigManager):
    """Configure logging for the application."""
    logging_config = config.get_section("logging")
    level = getattr(logging, logging_config.get("level", "INFO").upper())
    format_str = logging_config.get("format", "%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    log_file = config.log_filename

    logging.basicConfig(
        level=level,
        format=format_str,
        handlers=[
            logging.StreamHandler(sys.stderr),
            logging.FileHandler(log_file)
        ]
    )


def format_timestamp(ms: int) -> str:
    return datetime.fromtimestamp(ms / 1000).strftime("%Y-%m-%d %H:%M")


def find_page(workspace: Workspace, ref: str) -> Optional[Page]:
    """
    Look a page up by id, falling back to a case-insensitive title match.

    Args:
        workspace: The open workspace
        ref: Page id or title

    Returns:
        The page, or None if nothing matches
    """
    page = workspace.get_page(ref)
    if page is not None:
        return page
    wanted = ref.strip().lower()
    return next((p for p in workspace.pages if p.title.strip().lower() == wanted), None)


def confirm_delete(workspace: Workspace, page: Page) -> bool:
    """
    Show what deleting a page affects and ask for confirmation.

    Returns:
        True if the user confirms, False otherwise
    """
    impact = workspace.deletion_impact(page.id)
    print(f"\nDelete '{impact.title}'?")
    print(f"- {impact.block_count} blocks")
    print(f"- last modified {format_timestamp(impact.last_modified)}")
    if impact.linked_block_count:
        print(f"- {impact.linked_block_count} blocks in {impact.linking_page_count} "
              f"other pages link here and will show 'Reference not found'")

    while True:
        response = input("\nDo you want to continue? (yes/no): ").strip().lower()
        if response in ['yes', 'y']:
            return True
        elif response in ['no', 'n']:
            return False
        else:
            print("Please enter 'yes' or 'no'")


def command_list(workspace: Workspace, args) -> int:
    for page in workspace.pages:
        title = page.title or "Untitled"
        print(f"{page.id}  {format_timestamp(page.updated_at)}  {title}  ({len(page.blocks)} blocks)")
    return 0


def command_show(workspace: Workspace, args) -> int:
    page = find_page(workspace, args.page)
    if page is None:
        print(f"No page matching '{args.page}'")
        return 1

    print(f"# {page.title or 'Untitled'}\n")
    for block in page.blocks:
        if block.type == BlockType.DATABASE:
            table = workspace.table(page.id, block.id)
            print(f"[database] {len(table.columns)} columns, {len(table.rows)} rows")
            if args.csv:
                print(export_csv(table), end="")
            continue
        text = workspace.display_content(page.id, block.id)
        marker = ""
        if block.type == BlockType.TODO:
            marker = "[x] " if block.checked else "[ ] "
        print(f"[{block.type.value}] {marker}{text}")
    return 0


def command_new(workspace: Workspace, args) -> int:
    page = workspace.add_page(args.title)
    print(f"Created page {page.id}: {page.title}")
    return 0


def command_delete(workspace: Workspace, args) -> int:
    page = find_page(workspace, args.page)
    if page is None:
        print(f"No page matching '{args.page}'")
        return 1
    if not args.yes and not confirm_delete(workspace, page):
        print("Delete cancelled.")
        return 0

    workspace.delete_page(page.id)
    print(f"Deleted '{page.title or 'Untitled'}'.")
    return 0


def command_links(workspace: Workspace, args) -> int:
    page = find_page(workspace, args.page)
    if page is None:
        print(f"No page matching '{args.page}'")
        return 1

    print("Links to:")
    for target in workspace.outbound_links(page.id):
        print(f"  {target.id}  {target.title or 'Untitled'}")
    print("Linked from:")
    for source in workspace.inbound_links(page.id):
        print(f"  {source.id}  {source.title or 'Untitled'}")

    broken = [block for owner, block in dangling_links(workspace.pages) if owner.id == page.id]
    if broken:
        print(f"{len(broken)} broken references on this page")
    return 0


def command_backup(workspace: Workspace, args) -> int:
    data = workspace.export_backup()
    Path(args.path).write_bytes(data)
    print(f"Backup written to {args.path} ({len(data)} bytes)")
    return 0


def command_restore(workspace: Workspace, args) -> int:
    data = Path(args.path).read_bytes()
    pages = workspace.restore_backup(data)
    print(f"Restored {len(pages)} pages from {args.path}")
    return 0


COMMANDS = {
    "list": command_list,
    "show": command_show,
    "new": command_new,
    "delete": command_delete,
    "links": command_links,
    "backup": command_backup,
    "restore": command_restore,
}


def parse_arguments(argv=None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Synapse - Local-First Linked Workspace",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py list                       # List pages, most recently edited first
  python main.py new "Reading notes"        # Create a page
  python main.py show "Reading notes"       # Print a page's blocks
  python main.py links "Reading notes"      # Show links to and from a page
  python main.py backup workspace.bak       # Save the stored workspace to a file
        """
    )

    parser.add_argument(
        "--config",
        type=str,
        default="config.yaml",
        help="Path to the configuration file (default: config.yaml)"
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"Synapse {__version__}"
    )

    subparsers = parser.add_subparsers(dest="command")

    subparsers.add_parser("list", help="List pages")

    show = subparsers.add_parser("show", help="Print a page")
    show.add_argument("page", help="Page id or title")
    show.add_argument("--csv", action="store_true", help="Print database blocks as CSV")

    new = subparsers.add_parser("new", help="Create a page")
    new.add_argument("title", help="Title of the new page")

    delete = subparsers.add_parser("delete", help="Delete a page")
    delete.add_argument("page", help="Page id or title")
    delete.add_argument("--yes", action="store_true", help="Skip the confirmation prompt")

    links = subparsers.add_parser("links", help="Show links to and from a page")
    links.add_argument("page", help="Page id or title")

    backup = subparsers.add_parser("backup", help="Write the stored workspace to a file")
    backup.add_argument("path", help="Backup file to write")

    restore = subparsers.add_parser("restore", help="Replace the workspace with a backup")
    restore.add_argument("path", help="Backup file to read")

    args = parser.parse_args(argv)
    if args.command is None:
        args.command = "list"
    return args


def main(argv=None):
    """Main entry point."""
    args = parse_arguments(argv)
    config = ConfigManager(args.config)
    setup_logging(config)

    workspace = Workspace.from_config(config)
    try:
        workspace.open()
        status = COMMANDS[args.command](workspace, args)
    except KeyboardInterrupt:
        logging.info("Interrupted by user")
        print("\nInterrupted.")
        status = 1
    except (SynapseError, OSError) as e:
        logging.error(f"Command '{args.command}' failed: {e}")
        print(f"\nFailed: {e}")
        status = 1
    finally:
        workspace.close()

    if status:
        sys.exit(status)


if __name__ == "__main__":
    main()

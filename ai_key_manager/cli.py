"""
CLI Module - Command-line interface for AI Key Manager.

Provides commands to list, edit, import, export and classify API keys
stored in a local key file.
"""

import argparse
import getpass
import os
import sys
from typing import Optional

from ai_key_manager.manager import KeyManager
from ai_key_manager.providers import (
    PROVIDER_INFO,
    PROVIDERS,
    detect_provider,
    get_unique_key_name,
    looks_like_provider_key,
)
from ai_key_manager.records import ImportPreview


def mask_key(key: str, visible_chars: int = 4) -> str:
    """Mask a key showing only first and last few characters."""
    if len(key) <= visible_chars * 2:
        return "*" * len(key)
    return key[:visible_chars] + "*" * (len(key) - visible_chars * 2) + key[-visible_chars:]


def format_table(headers: list, rows: list) -> str:
    """Format data as a simple table."""
    if not rows:
        return "No data to display."

    widths = [len(h) for h in headers]
    for row in rows:
        for i, cell in enumerate(row):
            widths[i] = max(widths[i], len(str(cell)))

    lines = []

    header_line = " | ".join(h.ljust(widths[i]) for i, h in enumerate(headers))
    lines.append(header_line)
    lines.append("-" * len(header_line))

    for row in rows:
        row_line = " | ".join(str(cell).ljust(widths[i]) for i, cell in enumerate(row))
        lines.append(row_line)

    return "\n".join(lines)


class CLI:
    """Command-line interface for AI Key Manager."""

    def __init__(self):
        """Initialize CLI."""
        self.manager: Optional[KeyManager] = None
        self.parser = self._create_parser()

    def _create_parser(self) -> argparse.ArgumentParser:
        """Create the argument parser."""
        parser = argparse.ArgumentParser(
            prog="ai-key-manager",
            description="Local AI service API key manager",
            formatter_class=argparse.RawDescriptionHelpFormatter,
            epilog="""
Examples:
  ai-key-manager list                          # List all stored keys
  ai-key-manager add OPENAI_API_KEY            # Add a key (prompts for value)
  ai-key-manager import ~/project/.env         # Import keys from a file
  ai-key-manager import keys.csv --dry-run     # Preview an import
  ai-key-manager export backup.json            # Export keys
  ai-key-manager detect HF_TOKEN               # Show which provider a name maps to
            """
        )

        parser.add_argument(
            "--storage-dir",
            help="Storage directory (default: ~/.ai_key_manager)",
            default=None
        )
        parser.add_argument(
            "--key-file",
            help="Key file to use (default: <storage-dir>/default.key)",
            default=None
        )
        parser.add_argument(
            "--log-dir",
            help="Audit log directory (default: <storage-dir>/logs)",
            default=None
        )

        subparsers = parser.add_subparsers(dest="command", help="Available commands")

        # === List command ===
        list_parser = subparsers.add_parser("list", help="List stored keys")
        list_parser.add_argument("--provider", "-p", help="Filter by provider")
        list_parser.add_argument(
            "--show-values",
            action="store_true",
            help="Show masked key values"
        )

        # === Get command ===
        get_parser = subparsers.add_parser("get", help="Show a specific key")
        get_parser.add_argument("id", help="Key ID")

        # === Add command ===
        add_parser = subparsers.add_parser("add", help="Add a new key")
        add_parser.add_argument(
            "name",
            nargs="?",
            help="Key name, e.g. OPENAI_API_KEY (defaults to a free name for --provider)"
        )
        add_parser.add_argument("--value", "-v", help="Key value (will prompt if not provided)")
        add_parser.add_argument(
            "--provider", "-p",
            choices=PROVIDERS,
            help="Provider (detected from name and value if omitted)"
        )
        add_parser.add_argument("--description", "-d", default="", help="Description")

        # === Update command ===
        update_parser = subparsers.add_parser("update", help="Update a key")
        update_parser.add_argument("id", help="Key ID")
        update_parser.add_argument("--name", help="New name")
        update_parser.add_argument("--provider", "-p", choices=PROVIDERS, help="New provider")
        update_parser.add_argument("--description", "-d", help="New description")
        update_parser.add_argument("--rotate", action="store_true", help="Enter a new key value")

        # === Delete command ===
        delete_parser = subparsers.add_parser("delete", help="Delete a key")
        delete_parser.add_argument("id", help="Key ID")
        delete_parser.add_argument(
            "--force", "-f",
            action="store_true",
            help="Skip confirmation"
        )

        # === Search command ===
        search_parser = subparsers.add_parser("search", help="Search keys")
        search_parser.add_argument("query", help="Search query")

        # === Import command ===
        import_parser = subparsers.add_parser("import", help="Import keys from a file")
        import_parser.add_argument("path", help="File to import (.env, .json, .csv, .txt, .key, ...)")
        self._add_import_options(import_parser)

        # === Import environment command ===
        env_parser = subparsers.add_parser("import-env", help="Import keys from environment variables")
        self._add_import_options(env_parser)

        # === Export command ===
        export_parser = subparsers.add_parser("export", help="Export keys to a file")
        export_parser.add_argument("path", help="Destination (.key, .json, .env, .csv or .txt)")

        # === Save as command ===
        save_as_parser = subparsers.add_parser("save-as", help="Save the keys to another key file")
        save_as_parser.add_argument(
            "path",
            nargs="?",
            help="Destination key file (default: a suggested name in the storage dir)"
        )

        # === New key file command ===
        new_parser = subparsers.add_parser("new", help="Create an empty key file")
        new_parser.add_argument("--dir", help="Directory for the new file (default: storage dir)")

        # === Detect command ===
        detect_parser = subparsers.add_parser("detect", help="Detect the provider of a key")
        detect_parser.add_argument("name", help="Key name")
        detect_parser.add_argument("value", nargs="?", default="", help="Key value")

        # === Providers command ===
        subparsers.add_parser("providers", help="List known providers and where to create keys")

        # === Stats command ===
        subparsers.add_parser("stats", help="Show key statistics")

        # === Logs command ===
        logs_parser = subparsers.add_parser("logs", help="View audit logs")
        logs_parser.add_argument(
            "--lines", "-n",
            type=int,
            default=50,
            help="Number of lines to show (default: 50)"
        )

        return parser

    @staticmethod
    def _add_import_options(parser: argparse.ArgumentParser) -> None:
        parser.add_argument(
            "--overwrite",
            action="store_true",
            help="Replace stored keys with conflicting names instead of skipping them"
        )
        parser.add_argument(
            "--dry-run",
            action="store_true",
            help="Only show what would be imported"
        )

    def _init_manager(
        self,
        storage_dir: Optional[str] = None,
        key_file: Optional[str] = None,
        log_dir: Optional[str] = None
    ) -> None:
        """Initialize the key manager."""
        self.manager = KeyManager(storage_dir=storage_dir, key_file=key_file, log_dir=log_dir)

    def _print_keys(self, keys: list, show_values: bool = False, conflicts: Optional[set] = None) -> None:
        headers = ["ID", "Name", "Provider", "Added"]
        if show_values:
            headers.append("Key")
        if conflicts is not None:
            headers.append("Conflict")

        rows = []
        for key in keys:
            row = [key.id[:8], key.name, key.provider, key.date_added[:10]]
            if show_values:
                row.append(mask_key(key.value))
            if conflicts is not None:
                row.append("yes" if key.name in conflicts else "")
            rows.append(row)

        print(format_table(headers, rows))

    def _resolve_id(self, key_id: str) -> Optional[str]:
        """Accept a full id or a unique id prefix as shown by 'list'."""
        if self.manager is None:
            return None
        matches = [k.id for k in self.manager.list_keys() if k.id.startswith(key_id)]
        if len(matches) == 1:
            return matches[0]
        return None

    def cmd_list(self, args: argparse.Namespace) -> int:
        """Handle list command."""
        if self.manager is None:
            return 1

        keys = self.manager.list_keys(provider=args.provider)
        if not keys:
            print("No keys stored.")
            return 0

        self._print_keys(keys, show_values=args.show_values)
        return 0

    def cmd_get(self, args: argparse.Namespace) -> int:
        """Handle get command."""
        if self.manager is None:
            return 1

        key_id = self._resolve_id(args.id)
        key = self.manager.get_key(key_id) if key_id else None
        if not key:
            print(f"Key with ID {args.id} not found.")
            return 1

        print(f"\nKey ID: {key.id}")
        print(f"Name: {key.name}")
        print(f"Provider: {key.provider}")
        print(f"Key Value: {key.value}")
        print(f"Description: {key.description or 'None'}")
        print(f"Added: {key.date_added}")
        print(f"Last Used: {key.last_used or 'Never'}")

        self.manager.mark_used(key.id)
        return 0

    def cmd_add(self, args: argparse.Namespace) -> int:
        """Handle add command."""
        if self.manager is None:
            return 1

        name = args.name
        if not name:
            if not args.provider:
                print("Error: Give a key name or a --provider to pick one.")
                return 1
            existing = [k.name for k in self.manager.list_keys()]
            name = get_unique_key_name(args.provider, existing)

        value = args.value
        if not value:
            value = getpass.getpass("Enter API key: ")
            if not value:
                print("Error: Key value cannot be empty.")
                return 1

        if args.provider and not looks_like_provider_key(value, args.provider):
            print(f"Warning: value does not look like a {args.provider} key.")

        key = self.manager.add_key(
            name=name,
            value=value,
            provider=args.provider,
            description=args.description
        )

        print(f"Key added successfully with ID: {key.id} (provider: {key.provider})")
        return 0

    def cmd_update(self, args: argparse.Namespace) -> int:
        """Handle update command."""
        if self.manager is None:
            return 1

        key_id = self._resolve_id(args.id)
        if not key_id:
            print(f"Key with ID {args.id} not found.")
            return 1

        new_value = None
        if args.rotate:
            new_value = getpass.getpass("Enter new API key value: ")
            if not new_value:
                print("Error: Key value cannot be empty.")
                return 1

        self.manager.update_key(
            key_id,
            name=args.name,
            value=new_value,
            provider=args.provider,
            description=args.description
        )
        print("Key updated successfully.")
        return 0

    def cmd_delete(self, args: argparse.Namespace) -> int:
        """Handle delete command."""
        if self.manager is None:
            return 1

        key_id = self._resolve_id(args.id)
        key = self.manager.get_key(key_id) if key_id else None
        if not key:
            print(f"Key with ID {args.id} not found.")
            return 1

        if not args.force:
            confirm = input(f"Delete key '{key.name}' ({key.provider})? [y/N]: ")
            if confirm.lower() != 'y':
                print("Cancelled.")
                return 0

        self.manager.delete_key(key.id)
        print("Key deleted successfully.")
        return 0

    def cmd_search(self, args: argparse.Namespace) -> int:
        """Handle search command."""
        if self.manager is None:
            return 1

        keys = self.manager.search_keys(args.query)
        if not keys:
            print(f"No keys found matching '{args.query}'.")
            return 0

        self._print_keys(keys)
        return 0

    def _finish_import(self, preview: ImportPreview, args: argparse.Namespace) -> int:
        if not preview.keys:
            print("No keys found to import.")
            return 0

        print(f"\nFound {len(preview.keys)} key(s) ({preview.format_name}):\n")
        self._print_keys(preview.keys, show_values=True, conflicts={k.name for k in preview.conflicts})

        if preview.has_conflicts:
            action = "replaced" if args.overwrite else "skipped"
            print(f"\nWarning: {len(preview.conflicts)} key(s) with conflicting names will be {action}.")

        if args.dry_run:
            print("\nDry run: nothing imported.")
            return 0

        added = self.manager.confirm_import(preview, skip_conflicts=not args.overwrite)
        print(f"\nImported {added} key(s).")
        return 0

    def cmd_import(self, args: argparse.Namespace) -> int:
        """Handle import command."""
        if self.manager is None:
            return 1

        path = os.path.expanduser(args.path)
        preview, result = self.manager.preview_import(path)
        if result.parse_failed:
            print(f"Error: Could not parse file: {result.error}")
            return 1

        return self._finish_import(preview, args)

    def cmd_import_env(self, args: argparse.Namespace) -> int:
        """Handle import-env command."""
        if self.manager is None:
            return 1

        preview = self.manager.preview_environment()
        return self._finish_import(preview, args)

    def cmd_export(self, args: argparse.Namespace) -> int:
        """Handle export command."""
        if self.manager is None:
            return 1

        path = os.path.expanduser(args.path)
        count = self.manager.export_keys(path)
        print(f"Exported {count} key(s) to {path}")
        return 0

    def cmd_detect(self, args: argparse.Namespace) -> int:
        """Handle detect command."""
        print(detect_provider(args.name, args.value))
        return 0

    def cmd_providers(self, args: argparse.Namespace) -> int:
        """Handle providers command."""
        headers = ["Provider", "Name", "Create keys at"]
        rows = [
            [info.provider, info.name, info.generate_url or "-"]
            for info in PROVIDER_INFO.values()
        ]
        print(format_table(headers, rows))
        return 0

    def cmd_stats(self, args: argparse.Namespace) -> int:
        """Handle stats command."""
        if self.manager is None:
            return 1

        stats = self.manager.get_stats()

        print("\nKey Statistics:")
        print(f"  Key file: {stats['key_file']}")
        print(f"  Total keys: {stats['total_keys']}")
        print(f"  Providers: {stats['providers_count']}")

        if stats['by_provider']:
            print("\n  Keys by provider:")
            for provider, count in sorted(stats['by_provider'].items()):
                print(f"    {provider}: {count}")

        return 0

    def cmd_save_as(self, args: argparse.Namespace) -> int:
        """Handle save-as command."""
        if self.manager is None:
            return 1

        path = self.manager.save_as(args.path)
        print(f"Saved {len(self.manager.keys)} key(s) to {path}")
        print(f"Use --key-file {path} to work with it.")
        return 0

    def cmd_new(self, args: argparse.Namespace) -> int:
        """Handle new command."""
        if self.manager is None:
            return 1

        path = self.manager.new_key_file(args.dir)
        print(f"Created empty key file {path}")
        print(f"Use --key-file {path} to work with it.")
        return 0

    def cmd_logs(self, args: argparse.Namespace) -> int:
        """Handle logs command."""
        if self.manager is None:
            return 1

        logs = self.manager.get_recent_logs(args.lines)

        if not logs:
            print("No logs available.")
            return 0

        print("Recent audit logs:\n")
        for log in logs:
            print(log.rstrip())

        return 0

    def run(self, args: Optional[list] = None) -> int:
        """
        Run the CLI.

        Args:
            args: Command-line arguments (uses sys.argv if None)

        Returns:
            Exit code
        """
        parsed = self.parser.parse_args(args)

        if not parsed.command:
            self.parser.print_help()
            return 0

        # These don't touch the key file
        if parsed.command == "detect":
            return self.cmd_detect(parsed)
        if parsed.command == "providers":
            return self.cmd_providers(parsed)

        try:
            self._init_manager(
                storage_dir=parsed.storage_dir,
                key_file=parsed.key_file,
                log_dir=parsed.log_dir
            )
        except Exception as e:
            print(f"Error: {e}")
            return 1

        backup_path = self.manager.store.backup_path
        if backup_path:
            print(f"Warning: could not read {self.manager.store.key_path}; a copy was saved to {backup_path}")

        command_handlers = {
            "list": self.cmd_list,
            "get": self.cmd_get,
            "add": self.cmd_add,
            "update": self.cmd_update,
            "delete": self.cmd_delete,
            "search": self.cmd_search,
            "import": self.cmd_import,
            "import-env": self.cmd_import_env,
            "export": self.cmd_export,
            "save-as": self.cmd_save_as,
            "new": self.cmd_new,
            "stats": self.cmd_stats,
            "logs": self.cmd_logs,
        }

        handler = command_handlers.get(parsed.command)
        if handler:
            try:
                return handler(parsed)
            except KeyboardInterrupt:
                print("\nOperation cancelled.")
                return 130
            except Exception as e:
                print(f"Error: {e}")
                return 1

        self.parser.print_help()
        return 0


def main() -> int:
    """Main entry point."""
    cli = CLI()
    return cli.run()


if __name__ == "__main__":
    sys.exit(main())

"""
Salesboard management CLI.

Commands live in ``salesboard/interfaces/cli/commands``; every module
there that defines a ``Command`` class is available by its file name.
"""

import argparse
import importlib
import sys
from pathlib import Path
from typing import Dict, List, Optional, Type

from salesboard.core.logging import setup_logging

from .commands.base import BaseCommand

COMMANDS_PACKAGE = "salesboard.interfaces.cli.commands"


class CLIManager:
    def __init__(self):
        self.commands_dir = Path(__file__).parent / "commands"
        self.available_commands = self._discover_commands()

    def _discover_commands(self) -> Dict[str, Type[BaseCommand]]:
        """Discover every command module in the commands package"""
        commands = {}
        for file_path in sorted(self.commands_dir.glob("*.py")):
            if file_path.name.startswith("_") or file_path.stem == "base":
                continue
            module = importlib.import_module(f"{COMMANDS_PACKAGE}.{file_path.stem}")
            if hasattr(module, "Command"):
                commands[file_path.stem] = module.Command
        return commands

    def list_commands(self):
        print("Available commands:")
        print("=" * 40)
        for name, command_class in self.available_commands.items():
            print(f"  {name:<20} {command_class.description}")

    def run_command(self, command_name: str, args: List[str]) -> int:
        if command_name not in self.available_commands:
            print(f"Unknown command: {command_name}")
            print("Use 'python manage.py help' to see available commands.")
            return 1

        return self.available_commands[command_name]().run(args)


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Salesboard management tool", add_help=False)
    parser.add_argument("command", nargs="?", help="Command to run")
    parser.add_argument("args", nargs=argparse.REMAINDER, help="Arguments for the command")
    args = parser.parse_args(argv)

    cli_manager = CLIManager()

    if not args.command or args.command == "help":
        if args.args and args.args[0] in cli_manager.available_commands:
            cli_manager.available_commands[args.args[0]]().help()
        else:
            cli_manager.list_commands()
        return 0

    setup_logging()
    return cli_manager.run_command(args.command, args.args)


if __name__ == "__main__":
    sys.exit(main())

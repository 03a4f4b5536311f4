"""CLI entry point and argument parsing"""

import sys
import argparse
from rich.console import Console
from api.server import setup_debug_logging
from cli.cli_app import BodyTrackerCLI


console = Console()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Body Tracker sign-in CLI")
    parser.add_argument("--debug", "-d", action="store_true", help="Enable debug logging")
    parser.add_argument("--api-url", default=None, help="Override API base URL (default: from config)")

    subparsers = parser.add_subparsers(dest="command", required=True)
    subparsers.add_parser("login", help="Sign in with Google in the browser")
    subparsers.add_parser("status", help="Show stored session and server health")
    subparsers.add_parser("whoami", help="Restore the stored session and confirm it with the server")
    subparsers.add_parser("logout", help="Forget the stored session")

    profile = subparsers.add_parser("profile", help="Change the display name")
    profile.add_argument("display_name", help="New display name (1-50 characters)")

    serve = subparsers.add_parser("serve", help="Run the API server")
    serve.add_argument("--bind", "-b", default=None, help="Override bind address (default: from config)")
    serve.add_argument("--port", "-p", type=int, default=None, help="Override port (default: from config)")

    return parser


def main(argv=None):
    """Entry point for the CLI"""
    args = build_parser().parse_args(argv)

    if args.debug:
        setup_debug_logging()

    cli = BodyTrackerCLI(debug=args.debug, api_url=args.api_url)
    exit_code = 0
    try:
        if args.command == "login":
            exit_code = 0 if cli.login() else 1
        elif args.command == "status":
            cli.status()
        elif args.command == "whoami":
            exit_code = 0 if cli.whoami().is_authenticated else 1
        elif args.command == "logout":
            cli.logout()
        elif args.command == "profile":
            exit_code = 0 if cli.update_profile(args.display_name) else 1
        elif args.command == "serve":
            cli.serve(bind_address=args.bind, port=args.port)

    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted by user[/yellow]")
        exit_code = 130
    finally:
        cli.close()

    sys.exit(exit_code)


if __name__ == "__main__":
    main()

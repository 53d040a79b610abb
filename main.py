"""Command-line interface for the user records dashboard."""

from __future__ import annotations
import argparse
import logging
import sys
from typing import Optional, Sequence

import anyio

from userdash.config import Settings, load_settings

logger = logging.getLogger("userdash.main")


def _parse_args(argv: Sequence[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="User records dashboard utilities")
    subparsers = parser.add_subparsers(dest="command")

    parser.set_defaults(command="serve")

    serve_parser = subparsers.add_parser("serve", help="Start the dashboard web server")
    serve_parser.add_argument("--host", default="127.0.0.1", help="Bind address for the dashboard")
    serve_parser.add_argument(
        "--port",
        type=int,
        default=3000,
        help="Port for the dashboard (default: 3000)",
    )
    serve_parser.add_argument(
        "--api-base-url",
        default=None,
        help="Override the users backend base URL (default: USERDASH_API_BASE_URL)",
    )

    users_parser = subparsers.add_parser("users", help="Print the user table to the terminal")
    users_parser.add_argument(
        "--search",
        default=None,
        help="Server-side search term; omit to list every user",
    )
    users_parser.add_argument(
        "--api-base-url",
        default=None,
        help="Override the users backend base URL (default: USERDASH_API_BASE_URL)",
    )

    args_list = list(argv) if argv is not None else sys.argv[1:]
    known_commands = {"serve", "users"}

    if not args_list:
        args_list = ["serve"]
    else:
        first = args_list[0]
        if first in ("-h", "--help"):
            return parser.parse_args(args_list)
        if first not in known_commands:
            if any(flag in args_list for flag in ("-h", "--help")):
                return parser.parse_args(args_list)
            args_list = ["serve", *args_list]

    return parser.parse_args(args_list)


def _settings_for(api_base_url: Optional[str]) -> Settings:
    settings = load_settings()
    if api_base_url:
        settings = Settings.from_dict({"api_base_url": api_base_url}, base=settings)
    return settings


def _serve(*, settings: Settings, host: str, port: int) -> None:
    from userdash.web import create_app
    import uvicorn

    logger.info("Starting dashboard on http://%s:%s (backend %s)", host, port, settings.api_base_url)
    app = create_app(settings=settings)
    uvicorn.run(app, host=host, port=port, log_level="info")


async def _print_users(settings: Settings, search: Optional[str]) -> int:
    from userdash.table import build_table, render_text
    from userdash.views import DAILY_RECORD_COLUMNS, user_columns
    from userdash.web import build_client, build_controller

    async with build_client(settings) as client:
        controller = build_controller(settings, client=client)
        view = await controller.show(search)

    status = 0
    if view.daily_record.error:
        print(f"Daily record unavailable: {view.daily_record.error}")
        status = 1
    else:
        print(render_text(build_table(DAILY_RECORD_COLUMNS, controller.daily_rows())))
    print()

    if view.users.error:
        print(f"User list unavailable: {view.users.error}")
        return 1

    page = view.users.data
    print(f"Total Users: {view.total_count}")
    columns = user_columns(page.version if page is not None else None)
    print(render_text(build_table(columns, controller.user_rows())))
    return status


def main(argv: Sequence[str] | None = None) -> None:
    """Entry point for CLI usage."""

    logging.basicConfig(level=logging.INFO, format="%(asctime)s [%(levelname)s] %(message)s")

    args = _parse_args(argv)
    try:
        settings = _settings_for(getattr(args, "api_base_url", None))
    except ValueError as exc:
        raise SystemExit(f"Invalid configuration: {exc}") from exc

    if args.command == "serve":
        _serve(settings=settings, host=args.host, port=args.port)
    elif args.command == "users":
        status = anyio.run(_print_users, settings, args.search)
        if status:
            raise SystemExit(status)


if __name__ == "__main__":
    main()

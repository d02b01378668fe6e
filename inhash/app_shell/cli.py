import argparse
import asyncio
import getpass
import logging
import os
import sys
from pathlib import Path

from inhash.context import AppContext
from inhash.domain.entities import LinkState
from inhash.domain.state import Route
from inhash.rules.loader import load_rules
from inhash.rules.models import Rules

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("cli")

RULES_PATH = os.environ.get("INHASH_RULES_PATH", "rules.yaml")
DATA_DIR = os.environ.get("INHASH_DATA_DIR", "./data")


def get_rules() -> Rules:
    if not Path(RULES_PATH).exists():
        logger.error(f"Rules file {RULES_PATH} not found.")
        sys.exit(1)
    return load_rules(Path(RULES_PATH))


def get_context(rules: Rules) -> AppContext:
    data_dir = Path(DATA_DIR)
    data_dir.mkdir(parents=True, exist_ok=True)
    return AppContext.create(rules, db_path=str(data_dir / rules.storage.db_filename))


def _print_progress(state: LinkState) -> None:
    if state.is_linking:
        print(f"\rCollecting LMS data {state.collection_progress:3d}%...", end="", flush=True)


async def run_link(ctx: AppContext, args: argparse.Namespace, app_password: str) -> int:
    orchestrator = ctx.orchestrator

    if args.signup:
        auth = await orchestrator.signup(args.email, app_password)
    else:
        auth = await orchestrator.login(args.email, app_password)
    if not auth.success:
        for error in auth.validation_errors:
            print(f"{error.field}: {error.message}")
        if auth.error is not None:
            print(auth.error.message)
        return 1

    if orchestrator.route is Route.MAIN and not args.relink:
        print("LMS account already linked. Use --relink to collect again.")
        return 0

    lms_password = getpass.getpass("LMS password: ")
    unsubscribe = ctx.link_state.subscribe(_print_progress)
    try:
        result = await orchestrator.submit_lms_link(args.student_id, lms_password)
    finally:
        unsubscribe()
    print()

    for error in result.validation_errors:
        print(f"{error.field}: {error.message}")
    if not result.success:
        if result.error is not None:
            print(result.error.message)
        return 1

    summary = result.summary
    assert summary is not None
    print(f"Linked: {len(summary.items)} items from {len(summary.courses)} courses.")
    if result.warning is not None:
        print(result.warning.message)
        for detail in result.warning.details:
            print(f" - {detail}")
    for item in ctx.schedule_store.list_items():
        print(f" [{item.type.value}] {item.course} - {item.title} (due {item.due:%Y-%m-%d %H:%M})")
    return 0


async def link_and_close(ctx: AppContext, args: argparse.Namespace, app_password: str) -> int:
    try:
        return await run_link(ctx, args, app_password)
    finally:
        await ctx.aclose()


def handle_link(args: argparse.Namespace) -> None:
    ctx = get_context(get_rules())
    app_password = getpass.getpass("App password: ")
    sys.exit(asyncio.run(link_and_close(ctx, args, app_password)))


def handle_status(args: argparse.Namespace) -> None:
    ctx = get_context(get_rules())
    state = ctx.link_store.load()
    if state is None or not state.is_lms_linked:
        print("No LMS account linked.")
        return
    print(f"Linked for user {state.linked_user_id} at {state.linked_at}.")
    for warning in state.warnings:
        print(f" ! skipped {warning}")


def main() -> None:
    parser = argparse.ArgumentParser(description="INHASH linking CLI")
    subparsers = parser.add_subparsers(dest="command", required=True)

    # link
    link_parser = subparsers.add_parser("link", help="Sign in and link an LMS account")
    link_parser.add_argument("--email", required=True, help="App account email")
    link_parser.add_argument("--student-id", required=True, help="LMS student ID")
    link_parser.add_argument("--signup", action="store_true", help="Create the app account first")
    link_parser.add_argument("--relink", action="store_true", help="Collect again if linked")

    # status
    subparsers.add_parser("status", help="Show the persisted linkage")

    args = parser.parse_args()

    if args.command == "link":
        handle_link(args)
    elif args.command == "status":
        handle_status(args)


if __name__ == "__main__":
    main()

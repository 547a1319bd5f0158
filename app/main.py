"""Main CLI application for the YouTube upload autopilot."""
import argparse
import json
import logging
import sys
from dataclasses import asdict, dataclass
from typing import Optional

from adapters.google_oauth_client import GoogleOAuthClient
from adapters.local_media_store import LocalMediaStore
from adapters.openai_metadata_generator import OpenAIMetadataGenerator
from adapters.sql_account_store import SqlAccountStore
from adapters.sql_profile_store import SqlProfileStore
from adapters.sql_schema import create_db_engine
from adapters.sql_task_store import SqlTaskStore
from adapters.youtube_media_uploader import YouTubeMediaUploader
from app.config import Config, get_config
from domain.catalog import CatalogService
from domain.credentials import CredentialResolver
from domain.errors import AutopilotError
from domain.executor import TaskExecutor
from domain.lifecycle import TaskLifecycle, describe_status
from domain.models import MetadataRequest
from domain.planning import PlanningService
from domain.services import AutopilotService, summarize
from domain.source_validator import SourceValidator
from ports.metadata_generator import MetadataGenerationError
from ports.task_store import StoreUnavailableError


def setup_logging(verbose: bool = False) -> None:
    """
    Configure logging.

    Args:
        verbose: Enable debug logging if True.
    """
    log_level = logging.DEBUG if verbose else logging.INFO
    log_format = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

    logging.basicConfig(
        level=log_level,
        format=log_format,
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    # Reduce noise from Google API client
    logging.getLogger("googleapiclient").setLevel(logging.WARNING)
    logging.getLogger("google").setLevel(logging.WARNING)
    logging.getLogger("urllib3").setLevel(logging.WARNING)


@dataclass
class Application:
    """Wired-up services sharing one database engine."""
    autopilot: AutopilotService
    lifecycle: TaskLifecycle
    catalog: CatalogService
    credentials: CredentialResolver
    account_store: SqlAccountStore
    task_store: SqlTaskStore
    profile_store: SqlProfileStore
    config: Config

    def planning(self) -> PlanningService:
        """Planning needs an API key, so it is only built on demand."""
        generator = OpenAIMetadataGenerator(
            api_key=self.config.openai_api_key,
            model=self.config.openai_model,
            timeout_seconds=self.config.source_timeout_seconds,
        )
        return PlanningService(generator, self.task_store, self.profile_store)


def create_application(config: Optional[Config] = None) -> Application:
    """
    Create and wire up the services with their adapters.

    Args:
        config: Configuration; defaults to get_config().

    Returns:
        Configured Application.
    """
    config = config or get_config()
    logger = logging.getLogger(__name__)

    engine = create_db_engine(config.database_url)
    task_store = SqlTaskStore(engine)
    account_store = SqlAccountStore(engine, default_scopes=config.youtube_scopes)
    profile_store = SqlProfileStore(engine)
    logger.debug("Stores initialized")

    media_store = LocalMediaStore(base_path=config.storage_base_path)
    logger.debug(f"Media store initialized: base_path={config.storage_base_path or 'current directory'}")

    credentials = CredentialResolver(
        account_store,
        GoogleOAuthClient(
            token_uri=config.oauth_token_uri,
            timeout_seconds=config.oauth_timeout_seconds,
        ),
    )
    uploader = YouTubeMediaUploader(
        media_store,
        upload_timeout_seconds=config.upload_timeout_seconds,
        source_timeout_seconds=config.source_timeout_seconds,
    )
    executor = TaskExecutor(task_store, credentials, SourceValidator(media_store), uploader)

    logger.info("Autopilot initialized successfully")
    return Application(
        autopilot=AutopilotService(task_store, executor),
        lifecycle=TaskLifecycle(task_store),
        catalog=CatalogService(task_store, account_store, profile_store, credentials),
        credentials=credentials,
        account_store=account_store,
        task_store=task_store,
        profile_store=profile_store,
        config=config,
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="YouTube Upload Autopilot - scheduled video publishing",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Environment Variables:
  DATABASE_URL                  SQLAlchemy database URL (overrides DATABASE_PATH)
  DATABASE_PATH                 SQLite database file (default: data/agent.db)
  STORAGE_BASE_PATH             Base path for file sources (default: current directory)
  OAUTH_TOKEN_URI               OAuth token endpoint
  OAUTH_TIMEOUT_SECONDS         Token refresh timeout (default: 30)
  SOURCE_TIMEOUT_SECONDS        Remote source/thumbnail fetch timeout (default: 60)
  UPLOAD_TIMEOUT_SECONDS        YouTube API socket timeout (default: 600)
  OPENAI_API_KEY                API key for --plan
  OPENAI_MODEL                  Model for --plan (default: gpt-4o-mini)

Examples:
  # Periodic trigger - publish all due tasks
  python -m app.main

  # Run one task now
  python -m app.main --run 12

  # Put a failed task back in the queue
  python -m app.main --retry 12

  # Generate AI metadata for a task
  python -m app.main --plan 12 --topic "Budget travel in Lisbon" --profile-id 1

  # Register a channel account (JSON inline or @file)
  python -m app.main --add-account @account.json

  # Create a queued task
  python -m app.main --add-task '{"title": "Lisbon", "source_type": "file", "source_value": "videos/lisbon.mp4", "status": "queued"}'

  # Show all tasks
  python -m app.main --list tasks
        """,
    )

    action = parser.add_mutually_exclusive_group()
    action.add_argument("--run", type=int, metavar="TASK_ID", help="Upload one task now")
    action.add_argument("--retry", type=int, metavar="TASK_ID", help="Move a failed task back to queued")
    action.add_argument("--queue", type=int, metavar="TASK_ID", help="Move a pending or draft task to queued")
    action.add_argument(
        "--verify-account",
        type=int,
        metavar="ACCOUNT_ID",
        help="Redeem an account's refresh token to check its credentials",
    )
    action.add_argument("--plan", type=int, metavar="TASK_ID", help="Generate and apply AI metadata")
    action.add_argument(
        "--add-account",
        metavar="JSON",
        help="Register an account (label, client_id, client_secret, redirect_uri, refresh_token, scopes)",
    )
    action.add_argument("--delete-account", type=int, metavar="ACCOUNT_ID", help="Delete an account")
    action.add_argument("--add-task", metavar="JSON", help="Create a task from JSON fields")
    action.add_argument("--edit-task", type=int, metavar="TASK_ID", help="Edit a task with the fields given in --fields")
    action.add_argument("--delete-task", type=int, metavar="TASK_ID", help="Delete a task")
    action.add_argument("--add-profile", metavar="JSON", help="Create or update an AI profile (id or name, prompt, tone, keywords)")
    action.add_argument("--list", choices=["tasks", "accounts", "profiles"], help="List stored records")

    parser.add_argument("--fields", metavar="JSON", help="Field values for --edit-task")
    parser.add_argument("--topic", help="Video topic for --plan")
    parser.add_argument("--transcript", help="Transcript for --plan (defaults to the task's stored transcript)")
    parser.add_argument("--profile-id", type=int, help="AI profile to bias --plan")
    parser.add_argument("--keywords", help="Comma-separated target keywords for --plan")
    parser.add_argument("--tone", help="Tone override for --plan")

    parser.add_argument(
        "--json",
        action="store_true",
        help="Print results as JSON",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose debug logging",
    )
    return parser


def _load_json(value: str) -> dict:
    """Parse an inline JSON object, or read it from a file given as ``@path``."""
    if value.startswith("@"):
        with open(value[1:], encoding="utf-8") as f:
            value = f.read()
    data = json.loads(value)
    if not isinstance(data, dict):
        raise ValueError("Expected a JSON object")
    return data


def _record(obj) -> dict:
    data = asdict(obj)
    # Secrets never leave the store through listings
    for secret in ("client_secret", "refresh_token"):
        if secret in data:
            data[secret] = "***"
    return data


def _print_records(kind: str, records, as_json: bool) -> None:
    if as_json:
        print(json.dumps({kind: [_record(r) for r in records]}, indent=2, default=str))
        return
    for record in records:
        if kind == "tasks":
            print(f"task {record.id}: {describe_status(record)} - {record.title}")
        elif kind == "accounts":
            print(f"account {record.id}: {record.label}")
        else:
            print(f"profile {record.id}: {record.name} ({record.tone})")


def _print_results(results, as_json: bool) -> None:
    if as_json:
        print(json.dumps({"processed": len(results), "results": [r.to_dict() for r in results]}, indent=2))
        return
    for result in results:
        outcome = "published" if result.success else f"failed: {result.error}"
        print(f"task {result.task_id}: {outcome}")


def main(argv: Optional[list[str]] = None) -> None:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.plan is not None and not args.topic:
        parser.error("--plan requires --topic")
    if args.edit_task is not None and not args.fields:
        parser.error("--edit-task requires --fields")

    setup_logging(verbose=args.verbose)
    logger = logging.getLogger(__name__)

    try:
        app = create_application()
    except Exception as e:
        logger.error(f"Failed to initialize application: {e}")
        sys.exit(1)

    try:
        if args.retry is not None:
            task = app.lifecycle.retry(args.retry)
            print(f"task {task.id}: {describe_status(task)}")
            return

        if args.queue is not None:
            task = app.lifecycle.queue(args.queue)
            print(f"task {task.id}: {describe_status(task)}")
            return

        if args.verify_account is not None:
            account = app.account_store.get(args.verify_account)
            if account is None:
                logger.error(f"Account {args.verify_account} not found")
                sys.exit(1)
            token = app.credentials.verify(account)
            print(f"account {account.id}: credentials OK (token expires {token.expires_at})")
            return

        if args.plan is not None:
            task = app.task_store.get(args.plan)
            if task is None:
                logger.error(f"Task {args.plan} not found")
                sys.exit(1)
            keywords = [k.strip() for k in (args.keywords or "").split(",") if k.strip()]
            request = MetadataRequest(
                topic=args.topic,
                transcript=args.transcript or task.transcript,
                target_keywords=keywords,
                tone=args.tone,
            )
            planning = app.planning()
            plan = planning.generate_plan(request, profile_id=args.profile_id)
            task = planning.apply_plan(args.plan, plan)
            print(f"task {task.id}: applied plan '{plan.title}'")
            return

        if args.add_account is not None:
            registration = app.catalog.register_account(_load_json(args.add_account))
            account = registration.account
            if registration.warning:
                logger.warning(f"Account {account.id} saved, but verification failed: {registration.warning}")
                print(f"account {account.id}: registered (warning: {registration.warning})")
            else:
                print(f"account {account.id}: registered, credentials OK")
            return

        if args.delete_account is not None:
            if not app.catalog.delete_account(args.delete_account):
                logger.error(f"Account {args.delete_account} not found")
                sys.exit(1)
            print(f"account {args.delete_account}: deleted")
            return

        if args.add_task is not None:
            task = app.catalog.create_task(_load_json(args.add_task))
            print(f"task {task.id}: created ({describe_status(task)})")
            return

        if args.edit_task is not None:
            task = app.catalog.edit_task(args.edit_task, _load_json(args.fields))
            print(f"task {task.id}: updated ({describe_status(task)})")
            return

        if args.delete_task is not None:
            if not app.catalog.delete_task(args.delete_task):
                logger.error(f"Task {args.delete_task} not found")
                sys.exit(1)
            print(f"task {args.delete_task}: deleted")
            return

        if args.add_profile is not None:
            profile = app.catalog.save_profile(_load_json(args.add_profile))
            print(f"profile {profile.id}: saved ({profile.name})")
            return

        if args.list is not None:
            listings = {
                "tasks": app.catalog.list_tasks,
                "accounts": app.catalog.list_accounts,
                "profiles": app.catalog.list_profiles,
            }
            _print_records(args.list, listings[args.list](), args.json)
            return

        if args.run is not None:
            results = [app.autopilot.handle_single_upload(args.run)]
        else:
            logger.info("Starting autopilot run...")
            results = app.autopilot.run_autopilot()

        _print_results(results, args.json)

        stats = summarize(results)
        logger.info(
            f"Processed: {stats['processed']}, "
            f"Succeeded: {stats['succeeded']}, "
            f"Failed: {stats['failed']}"
        )

        # Exit with error code if any tasks failed
        if stats["failed"] > 0:
            sys.exit(1)

    except (AutopilotError, MetadataGenerationError) as e:
        logger.error(str(e))
        sys.exit(1)

    except (ValueError, OSError) as e:
        logger.error(f"Invalid input: {e}")
        sys.exit(1)

    except StoreUnavailableError as e:
        logger.error(f"Fatal error: {e}")
        sys.exit(1)

    except KeyboardInterrupt:
        logger.warning("\nInterrupted by user")
        sys.exit(130)


if __name__ == "__main__":
    main()

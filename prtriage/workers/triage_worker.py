"""Refresh worker: periodic sync, new-event notifications, and user actions."""

import asyncio
import contextlib
import logging
import signal
import sys
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from ..cache import QueryCache
from ..config import AppConfig, ConfigurationError, ConfigurationLoader
from ..filtering import FilterState
from ..github import (
    GitHubError,
    GitHubGraphQLClient,
    GraphQLClientConfig,
    PullRequestMutationError,
    TokenResolver,
)
from ..models import MergeOutcome, NewReview, NewReviewRequest, PullRequest
from ..notifications import (
    LoggingNotifier,
    NotificationMessage,
    Notifier,
    merge_error_notification,
    review_notification,
    review_request_notification,
)
from ..state import JsonFileSettingsBackend, PersistentStateStore
from ..sync import SyncEngine
from ..utils import utc_now
from ..utils.formatting import format_share_message

logger = logging.getLogger(__name__)

AUTHORED_TAB = "authored"
REVIEW_REQUESTED_TAB = "review_requested"


@dataclass
class RefreshResult:
    """Outcome of one refresh cycle."""

    authored: list[PullRequest] = field(default_factory=list)
    review_requested: list[PullRequest] = field(default_factory=list)
    new_reviews: list[NewReview] = field(default_factory=list)
    new_review_requests: list[NewReviewRequest] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return not self.errors


class TriageWorker:
    """Keeps the PR lists current and routes user actions to the engine.

    Lifecycle: ``initialize()``, then ``run()`` or single ``refresh()``
    calls, then ``cleanup()``.
    """

    def __init__(
        self,
        config: AppConfig | None = None,
        config_path: str | None = None,
        notifier: Notifier | None = None,
        engine: SyncEngine | None = None,
        token_resolver: TokenResolver | None = None,
    ):
        """Initialize triage worker.

        Args:
            config: Loaded configuration; loaded from ``config_path`` if None
            config_path: Optional path to configuration file
            notifier: Notification sink, logs by default
            engine: Prebuilt sync engine, built from config if None
            token_resolver: Credential source, built from config if None
        """
        self.config_path = config_path
        self.config = config
        self.notifier = notifier or LoggingNotifier()
        self.engine = engine
        self.token_resolver = token_resolver

        self.authored: list[PullRequest] = []
        self.review_requested: list[PullRequest] = []

        self.running = False
        self.shutdown_event = asyncio.Event()

        self.stats: dict[str, Any] = {
            "worker_started_at": None,
            "total_refreshes": 0,
            "failed_refreshes": 0,
            "last_refresh_at": None,
            "last_error": None,
        }

    @property
    def store(self) -> PersistentStateStore:
        if self.engine is None:
            raise RuntimeError("Worker not initialized. Call initialize() first.")
        return self.engine.store

    async def initialize(self) -> None:
        """Load configuration, resolve credentials, and build the engine."""
        logger.info("Initializing triage worker...")

        if self.config is None:
            self.config = ConfigurationLoader().load(self.config_path)

        if self.token_resolver is None:
            auth = self.config.auth
            self.token_resolver = TokenResolver(
                use_gh_cli=auth.use_gh_cli,
                env_var=auth.token_env_var,
                token_file=auth.token_file,
            )

        if self.engine is None:
            self.engine = self._build_engine(self.config)

        if not self.engine.has_token():
            token = await self.token_resolver.resolve()
            if token:
                self.engine.set_token(token)
            else:
                logger.warning("No GitHub token found; run `gh auth login` or set GITHUB_TOKEN")

        self.stats["worker_started_at"] = utc_now()
        logger.info("Triage worker initialized")

    @staticmethod
    def _build_engine(config: AppConfig) -> SyncEngine:
        github = config.github
        client = GitHubGraphQLClient(
            config=GraphQLClientConfig(
                graphql_url=github.graphql_url,
                timeout=github.timeout,
                max_retries=github.max_retries,
                retry_backoff_factor=github.retry_backoff_factor,
                max_concurrent_requests=github.max_concurrent_requests,
            )
        )
        store = PersistentStateStore(JsonFileSettingsBackend(config.storage.path))
        return SyncEngine(
            client,
            store,
            cache=QueryCache(ttl=config.cache.ttl_seconds),
            search_limit=github.search_limit,
        )

    def _require_engine(self) -> SyncEngine:
        if self.engine is None or self.config is None:
            raise RuntimeError("Worker not initialized. Call initialize() first.")
        return self.engine

    async def refresh(self, force: bool = False) -> RefreshResult:
        """Fetch both lists, then detect and announce new events.

        A failing list fetch or detection is recorded in the result and does
        not stop the rest of the cycle.
        """
        engine = self._require_engine()
        result = RefreshResult()

        try:
            result.authored = await engine.get_authored_prs(force_refresh=force)
            self.authored = result.authored
        except GitHubError as e:
            logger.error(f"Failed to fetch authored PRs: {e}")
            result.errors.append(f"authored: {e}")

        try:
            result.review_requested = await engine.get_review_requested_prs(force_refresh=force)
            self.review_requested = result.review_requested
        except GitHubError as e:
            logger.error(f"Failed to fetch review-requested PRs: {e}")
            result.errors.append(f"review_requested: {e}")

        if result.succeeded:
            open_ids = [pr.id for pr in result.authored + result.review_requested]
            self.store.prune_dismissed(open_ids)

        await self._detect_and_notify(result)

        self.stats["total_refreshes"] += 1
        self.stats["last_refresh_at"] = utc_now()
        if not result.succeeded:
            self.stats["failed_refreshes"] += 1
            self.stats["last_error"] = result.errors[-1]
        return result

    async def _detect_and_notify(self, result: RefreshResult) -> None:
        engine = self._require_engine()
        settings = self.config.notifications  # type: ignore[union-attr]
        if not settings.enabled:
            return

        if settings.reviews:
            try:
                result.new_reviews = await engine.detect_new_reviews()
            except Exception as e:
                logger.error(f"Review detection failed: {e}", exc_info=True)
                result.errors.append(f"review detection: {e}")
            for review in result.new_reviews:
                if await self._notify(review_notification(review), result):
                    self.store.mark_review_seen(review.review_id)

        if settings.review_requests:
            try:
                result.new_review_requests = await engine.detect_new_review_requests()
            except Exception as e:
                logger.error(f"Review request detection failed: {e}", exc_info=True)
                result.errors.append(f"review request detection: {e}")
            for request in result.new_review_requests:
                if await self._notify(review_request_notification(request), result):
                    self.store.mark_review_request_seen(request.pr_id)

    async def _notify(
        self, message: NotificationMessage, result: RefreshResult | None = None
    ) -> bool:
        """Send one notification. Failures are logged and recorded, never raised."""
        try:
            await self.notifier.notify(message)
        except Exception as e:
            logger.error(f"Notification '{message.title}' failed: {e}", exc_info=True)
            if result is not None:
                result.errors.append(f"notification: {e}")
            return False
        return True

    # Views

    def visible(self, tab: str) -> list[PullRequest]:
        """PRs of ``tab`` that pass its saved filter state, in display order."""
        prs = self.authored if tab == AUTHORED_TAB else self.review_requested
        state = self.store.load_filter_state(tab)
        return state.apply(self.store.annotate(prs))

    def set_filter_state(self, tab: str, state: FilterState) -> None:
        self.store.save_filter_state(tab, state)

    def share_message(self, pr: PullRequest) -> str:
        config = self.config
        template = config.sharing.ticket_url_template if config else None
        return format_share_message(pr, template)

    # Local actions

    def dismiss(self, pr: PullRequest) -> None:
        self.store.dismiss(pr.id)

    def undismiss(self, pr: PullRequest) -> None:
        self.store.undismiss(pr.id)

    def snooze(self, pr: PullRequest, until: datetime | float) -> None:
        self.store.snooze(pr.id, until)

    def unsnooze(self, pr: PullRequest) -> None:
        self.store.unsnooze(pr.id)

    # Remote actions

    async def approve(self, pr: PullRequest) -> PullRequest:
        """Approve with an optimistic cache update, rolled back on failure."""
        engine = self._require_engine()
        update = engine.apply_optimistic_approval(pr)
        try:
            return await engine.approve(pr)
        except PullRequestMutationError:
            engine.rollback(update)
            raise

    async def merge(self, pr: PullRequest) -> MergeOutcome:
        """Merge with an optimistic removal.

        An enqueued PR comes back with its queue entry. On failure the PR is
        restored and a merge error notification is sent.
        """
        engine = self._require_engine()
        update = engine.apply_optimistic_merge(pr)
        try:
            return await engine.merge(pr, optimistic=update)
        except PullRequestMutationError as e:
            engine.rollback(update)
            await self._notify(merge_error_notification(pr, e.reason))
            raise

    # Loop

    async def run(self) -> None:
        """Refresh every ``refresh.interval_seconds`` until ``stop()``."""
        self._require_engine()
        interval = self.config.refresh.interval_seconds  # type: ignore[union-attr]

        self.running = True
        logger.info(f"Starting refresh loop (interval: {interval}s)")

        try:
            while not self.shutdown_event.is_set():
                try:
                    result = await self.refresh(force=True)
                    logger.info(
                        f"Refresh completed: {len(result.authored)} authored, "
                        f"{len(result.review_requested)} review requested"
                    )
                except Exception as e:
                    logger.error(f"Refresh cycle failed: {e}", exc_info=True)
                    self.stats["failed_refreshes"] += 1
                    self.stats["last_error"] = str(e)

                try:
                    await asyncio.wait_for(self.shutdown_event.wait(), timeout=interval)
                    break
                except TimeoutError:
                    continue
        finally:
            self.running = False
            logger.info("Triage worker stopped")

    def stop(self) -> None:
        """Ask the refresh loop to exit after the current cycle."""
        self.shutdown_event.set()

    def setup_signal_handlers(self) -> None:
        """Stop the loop on SIGINT/SIGTERM."""

        def signal_handler(sig: int, frame: Any) -> None:
            logger.info(f"Received signal {sig}, initiating shutdown...")
            self.shutdown_event.set()

        signal.signal(signal.SIGINT, signal_handler)
        signal.signal(signal.SIGTERM, signal_handler)

    async def cleanup(self) -> None:
        """Close the HTTP session."""
        if self.engine is not None:
            with contextlib.suppress(GitHubError, OSError):
                await self.engine.close()
        logger.info("Cleanup completed")


def format_summary(result: RefreshResult) -> str:
    lines = [
        f"Authored: {len(result.authored)}",
        f"Review requested: {len(result.review_requested)}",
        f"New reviews: {len(result.new_reviews)}",
        f"New review requests: {len(result.new_review_requests)}",
    ]
    lines.extend(f"Error: {error}" for error in result.errors)
    return "\n".join(lines)


async def main(argv: list[str] | None = None) -> int:
    """Main entry point for the triage worker."""
    import argparse

    parser = argparse.ArgumentParser(description="PR triage worker")
    parser.add_argument("--config", help="Configuration file path")
    parser.add_argument("--log-level", help="Log level (overrides system.log_level)")
    parser.add_argument("--once", action="store_true", help="Refresh once and exit")

    args = parser.parse_args(argv)

    try:
        config = ConfigurationLoader().load(args.config)
    except ConfigurationError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 2
    log_level = (args.log_level or config.system.log_level.value).upper()

    logging.basicConfig(
        level=getattr(logging, log_level, logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    worker = TriageWorker(config=config)

    try:
        await worker.initialize()
        if args.once:
            result = await worker.refresh(force=True)
            print(format_summary(result))
            return 0 if result.succeeded else 1

        if not config.refresh.enabled:
            logger.info("Periodic refresh disabled; use --once")
            return 0

        worker.setup_signal_handlers()
        await worker.run()
        return 0
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 130
    except Exception as e:
        logger.error(f"Worker failed: {e}")
        return 1
    finally:
        await worker.cleanup()


def run_cli() -> None:
    """Console script entry point."""
    sys.exit(asyncio.run(main()))


if __name__ == "__main__":
    run_cli()

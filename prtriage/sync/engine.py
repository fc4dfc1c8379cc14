"""Synchronization engine for authored and review-requested PRs.

The engine owns the query cache and talks to GitHub through the GraphQL
client. Reads return cached lists while fresh, refetch when expired, and
fall back to stale data when a fetch fails. Mutations reconcile the cache
surgically instead of throwing it away.
"""

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass, field, replace
from typing import Any

from ..cache import CacheKind, QueryCache
from ..github import (
    GitHubError,
    GitHubGraphQLClient,
    GitHubInvalidResponseError,
    GitHubMergeQueuedError,
    PullRequestMutationError,
    TokenAuth,
)
from ..github import queries
from ..models import (
    MergeMethod,
    MergeOutcome,
    MergeQueueEntry,
    MergeQueueState,
    NewReview,
    NewReviewRequest,
    PRVariant,
    PullRequest,
    ReviewStatus,
)
from ..state import PersistentStateStore
from .detection import find_new_review_requests, find_new_reviews
from .merge_queue import choose_merge_method, is_merge_queue_error
from .normalization import normalize_search, review_status_of, status_state_of

logger = logging.getLogger(__name__)


@dataclass
class OptimisticUpdate:
    """Snapshot taken before an optimistic cache edit, used for rollback.

    ``originals`` maps each cache kind that held the PR to the PR's index and
    record at the time of the edit.
    """

    action: str
    pr_id: int
    originals: dict[CacheKind, tuple[int, PullRequest]] = field(default_factory=dict)


class SyncEngine:
    """Fetches, caches, and mutates the current user's pull requests."""

    def __init__(
        self,
        client: GitHubGraphQLClient,
        store: PersistentStateStore,
        cache: QueryCache | None = None,
        search_limit: int = queries.SEARCH_LIMIT,
    ):
        """Initialize sync engine.

        Args:
            client: GraphQL client, possibly without a credential yet
            store: Persistent local state
            cache: Query cache, a default 5 minute cache if omitted
            search_limit: Maximum results per search
        """
        self.client = client
        self.store = store
        self.cache = cache or QueryCache()
        self.search_limit = search_limit

        self._username: str | None = None
        self._username_task: asyncio.Task[str] | None = None
        self._merge_methods: dict[str, MergeMethod] = {}
        self._merge_queue_required: dict[str, bool] = {}

    async def __aenter__(self) -> "SyncEngine":
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        if self._username_task is not None and not self._username_task.done():
            self._username_task.cancel()
        await self.client.close()

    # Credentials

    def set_token(self, token: str | None) -> None:
        """Replace the bearer token and forget the memoized username."""
        self.client.set_auth(TokenAuth(token) if token else None)
        self._username = None
        self._username_task = None

    def has_token(self) -> bool:
        return self.client.is_authenticated

    async def get_username(self) -> str:
        """Login of the authenticated user.

        Concurrent callers share a single in-flight lookup. A failed lookup
        is not memoized, so the next call retries.
        """
        if self._username:
            return self._username

        task = self._username_task
        if task is None:
            task = asyncio.ensure_future(self._fetch_username())
            self._username_task = task

        try:
            username = await asyncio.shield(task)
        finally:
            if self._username_task is task and task.done():
                self._username_task = None

        self._username = username
        return username

    async def _fetch_username(self) -> str:
        data = await self.client.execute(queries.VIEWER_LOGIN)
        login = (data.get("viewer") or {}).get("login")
        if not login:
            raise GitHubInvalidResponseError("Viewer login missing from response")
        logger.info(f"Authenticated as {login}")
        return login

    # Reads

    async def get_authored_prs(self, force_refresh: bool = False) -> list[PullRequest]:
        """Open, non-draft PRs authored by the user."""
        prs = await self._cached_fetch(
            CacheKind.AUTHORED, self._fetch_authored, force_refresh
        )
        return self.store.annotate(prs)

    async def get_review_requested_prs(self, force_refresh: bool = False) -> list[PullRequest]:
        """Open PRs awaiting or already carrying the user's review. Drafts included."""
        prs = await self._cached_fetch(
            CacheKind.REVIEW_REQUESTED, self._fetch_review_requested, force_refresh
        )
        return self.store.annotate(prs)

    async def _cached_fetch(
        self,
        kind: CacheKind,
        fetch: Callable[[], Any],
        force_refresh: bool,
    ) -> list[PullRequest]:
        if not force_refresh:
            cached = self.cache.get_fresh(kind)
            if cached is not None:
                return cached

        ticket = self.cache.begin_fetch()
        try:
            prs = await fetch()
        except GitHubError as e:
            stale = self.cache.get_stale(kind)
            if stale is not None:
                logger.warning(
                    f"Fetching {kind.value} PRs failed, using stale cache "
                    f"({len(stale)} PRs): {e}"
                )
                return stale
            raise

        self.cache.store(kind, prs, ticket)
        logger.info(f"Fetched {len(prs)} {kind.value} PRs")
        return prs

    async def _search(self, document: str, search_query: str) -> dict[str, Any]:
        return await self.client.execute(
            document, queries.search_variables(search_query, self.search_limit)
        )

    async def _fetch_authored(self) -> list[PullRequest]:
        username = await self.get_username()
        data = await self._search(queries.AUTHORED_PRS, queries.authored_search(username))
        prs = normalize_search(data, PRVariant.AUTHORED, username)
        return [pr for pr in prs if not pr.is_draft]

    async def _fetch_review_requested(self) -> list[PullRequest]:
        username = await self.get_username()
        requested_data, reviewed_data = await asyncio.gather(
            self._search(
                queries.REVIEW_REQUESTED_PRS, queries.review_requested_search(username)
            ),
            self._search(queries.REVIEW_REQUESTED_PRS, queries.reviewed_by_search(username)),
        )

        merged: dict[str, PullRequest] = {}
        for data in (requested_data, reviewed_data):
            for pr in normalize_search(data, PRVariant.REVIEW_REQUESTED, username):
                # Requested search comes first and wins on duplicates
                merged.setdefault(pr.node_id, pr)
        return list(merged.values())

    # Cache edits

    def _edit_cached(
        self,
        pr_id: int,
        edit: Callable[[PullRequest], PullRequest | None],
    ) -> dict[CacheKind, tuple[int, PullRequest]]:
        """Apply ``edit`` to the PR in every cached list; None removes it.

        Returns:
            The original record and its index, per kind that held the PR
        """
        originals: dict[CacheKind, tuple[int, PullRequest]] = {}

        for kind in self.cache.kinds():

            def transform(prs: list[PullRequest], kind: CacheKind = kind) -> list[PullRequest]:
                result = []
                for index, pr in enumerate(prs):
                    if pr.id != pr_id:
                        result.append(pr)
                        continue
                    originals[kind] = (index, pr)
                    edited = edit(pr)
                    if edited is not None:
                        result.append(edited)
                return result

            self.cache.update(kind, transform)
        return originals

    def _expire_cached(self) -> None:
        for kind in self.cache.kinds():
            self.cache.expire(kind)

    def invalidate_cache(self) -> None:
        """Drop both cached lists."""
        count = self.cache.invalidate()
        logger.debug(f"Invalidated {count} cache entries")

    def apply_optimistic_approval(self, pr: PullRequest) -> OptimisticUpdate:
        """Show ``pr`` as approved in the cache before the mutation lands."""
        originals = self._edit_cached(
            pr.id, lambda cached: cached.with_review_status(ReviewStatus.APPROVED)
        )
        return OptimisticUpdate(action="approve", pr_id=pr.id, originals=originals)

    def apply_optimistic_merge(self, pr: PullRequest) -> OptimisticUpdate:
        """Hide ``pr`` from the cache before the merge lands."""
        originals = self._edit_cached(pr.id, lambda cached: None)
        return OptimisticUpdate(action="merge", pr_id=pr.id, originals=originals)

    def rollback(self, update: OptimisticUpdate) -> None:
        """Restore the records captured by an optimistic update."""
        for kind, (index, original) in update.originals.items():

            def restore(
                prs: list[PullRequest],
                index: int = index,
                original: PullRequest = original,
            ) -> list[PullRequest]:
                for position, pr in enumerate(prs):
                    if pr.id == original.id:
                        prs[position] = original
                        return prs
                prs.insert(min(index, len(prs)), original)
                return prs

            self.cache.update(kind, restore)
        logger.debug(f"Rolled back optimistic {update.action} of PR {update.pr_id}")

    # Mutations

    async def approve(self, pr: PullRequest) -> PullRequest:
        """Approve ``pr`` and reconcile its cached review and CI status.

        Raises:
            PullRequestMutationError: If the approval mutation fails
        """
        try:
            await self.client.execute(
                queries.APPROVE_PULL_REQUEST,
                {"pullRequestId": pr.node_id},
                idempotent=False,
            )
        except GitHubError as e:
            raise PullRequestMutationError(
                "approve", pr.id, pr.number, pr.title, e.message
            ) from e

        logger.info(f"Approved PR #{pr.number} in {pr.repo_full_name}")

        try:
            review_status, status_state = await self._verify(pr)
        except GitHubError as e:
            logger.warning(f"Verification after approving PR #{pr.number} failed: {e}")
            review_status, status_state = ReviewStatus.APPROVED, pr.status_state

        def reconcile(cached: PullRequest) -> PullRequest:
            return replace(cached, review_status=review_status, status_state=status_state)

        self._edit_cached(pr.id, reconcile)
        return reconcile(pr)

    async def _verify(self, pr: PullRequest) -> tuple[ReviewStatus, Any]:
        data = await self.client.execute(
            queries.PULL_REQUEST_VERIFICATION, {"pullRequestId": pr.node_id}
        )
        node = data.get("node")
        if not node:
            raise GitHubInvalidResponseError(f"PR {pr.node_id} not found during verification")
        return review_status_of(node), status_state_of(node)

    async def merge(
        self, pr: PullRequest, optimistic: OptimisticUpdate | None = None
    ) -> MergeOutcome:
        """Merge ``pr`` directly, or through the merge queue when required.

        Args:
            pr: PR to merge
            optimistic: Snapshot from ``apply_optimistic_merge``; restored
                when the PR is enqueued, since it stays open

        Raises:
            PullRequestMutationError: If neither merging nor enqueueing worked
        """
        try:
            await self._merge_or_enqueue(pr)
        except GitHubMergeQueuedError as queued:
            if optimistic is not None:
                self.rollback(optimistic)
            entry = MergeQueueEntry(state=MergeQueueState.QUEUED, position=queued.position)
            self._edit_cached(pr.id, lambda cached: cached.with_merge_queue_entry(entry))
            outcome = MergeOutcome.QUEUED
            logger.info(f"PR #{pr.number} added to the merge queue")
        except PullRequestMutationError:
            raise
        except GitHubError as e:
            raise PullRequestMutationError("merge", pr.id, pr.number, pr.title, e.message) from e
        else:
            self._edit_cached(pr.id, lambda cached: None)
            outcome = MergeOutcome.MERGED
            logger.info(f"Merged PR #{pr.number} in {pr.repo_full_name}")

        self._expire_cached()
        return outcome

    async def _merge_or_enqueue(self, pr: PullRequest) -> None:
        """Merge ``pr``, raising ``GitHubMergeQueuedError`` if it was enqueued."""
        method = await self.get_merge_method(pr.repo_owner, pr.repo_name)
        branch = pr.base_ref_name or await self._fetch_base_branch(pr)

        if branch and await self.requires_merge_queue(pr.repo_owner, pr.repo_name, branch):
            entry = await self.enqueue(pr)
            raise GitHubMergeQueuedError(position=entry.position if entry else None)

        try:
            data = await self.client.execute(
                queries.MERGE_PULL_REQUEST,
                {"pullRequestId": pr.node_id, "mergeMethod": method.value},
                idempotent=False,
            )
        except GitHubError as e:
            if not is_merge_queue_error(e.message):
                raise
            logger.info(f"Merge of PR #{pr.number} rejected by merge queue rules, enqueueing")
            try:
                entry = await self.enqueue(pr)
            except GitHubError as enqueue_error:
                raise PullRequestMutationError(
                    "merge",
                    pr.id,
                    pr.number,
                    pr.title,
                    f"This repository uses a merge queue. Failed to enqueue PR: "
                    f"{enqueue_error.message}",
                ) from enqueue_error
            raise GitHubMergeQueuedError(position=entry.position if entry else None) from e

        merged = ((data.get("mergePullRequest") or {}).get("pullRequest") or {}).get("merged")
        if not merged:
            raise GitHubError("Pull request was not merged")

    async def enqueue(self, pr: PullRequest) -> MergeQueueEntry | None:
        """Add ``pr`` to its repository's merge queue."""
        data = await self.client.execute(
            queries.ENQUEUE_PULL_REQUEST,
            {"pullRequestId": pr.node_id},
            idempotent=False,
        )
        payload = data.get("enqueuePullRequest")
        if not payload:
            raise GitHubInvalidResponseError("enqueuePullRequest returned no payload")
        return MergeQueueEntry.from_node(payload.get("mergeQueueEntry"))

    async def _fetch_base_branch(self, pr: PullRequest) -> str | None:
        try:
            data = await self.client.execute(
                queries.PULL_REQUEST_BASE_BRANCH, {"pullRequestId": pr.node_id}
            )
        except GitHubError as e:
            logger.warning(f"Could not resolve base branch of PR #{pr.number}: {e}")
            return None
        return (data.get("node") or {}).get("baseRefName")

    async def get_merge_method(self, owner: str, repo: str) -> MergeMethod:
        """First merge method the repository allows, memoized per repository."""
        key = f"{owner}/{repo}"
        if key in self._merge_methods:
            return self._merge_methods[key]

        try:
            data = await self.client.execute(
                queries.REPOSITORY_MERGE_SETTINGS, {"owner": owner, "repo": repo}
            )
        except GitHubError as e:
            logger.warning(f"Could not read merge settings of {key}, using MERGE: {e}")
            return MergeMethod.MERGE

        method = choose_merge_method(data.get("repository"))
        self._merge_methods[key] = method
        logger.debug(f"Merge method for {key}: {method.value}")
        return method

    async def requires_merge_queue(self, owner: str, repo: str, branch: str) -> bool:
        """Whether ``branch`` is protected by a merge queue, memoized.

        A failed check counts as not required and is memoized too; a merge
        rejected by queue rules still gets enqueued.
        """
        key = f"{owner}/{repo}/{branch}"
        if key in self._merge_queue_required:
            return self._merge_queue_required[key]

        try:
            data = await self.client.execute(
                queries.MERGE_QUEUE_REQUIREMENT,
                {"owner": owner, "repo": repo, "branch": branch},
            )
            required = (data.get("repository") or {}).get("mergeQueue") is not None
        except GitHubError as e:
            logger.warning(f"Merge queue check for {key} failed: {e}")
            required = False

        self._merge_queue_required[key] = required
        return required

    # Detection

    async def detect_new_reviews(self) -> list[NewReview]:
        """Human reviews on the user's PRs not yet notified about.

        Does not mark anything seen.
        """
        if not self.has_token():
            return []

        username = await self.get_username()
        results = await asyncio.gather(
            self._search(queries.REVIEW_DETECTION, queries.authored_search(username)),
            self._search(queries.REVIEW_DETECTION, queries.review_requested_search(username)),
        )
        return find_new_reviews(results, self.store.seen_review_ids())

    async def detect_new_review_requests(self) -> list[NewReviewRequest]:
        """Review requests not yet notified about. Does not mark anything seen."""
        if not self.has_token():
            return []

        username = await self.get_username()
        data = await self._search(
            queries.REVIEW_REQUEST_DETECTION, queries.review_requested_search(username)
        )
        return find_new_review_requests(data, self.store.seen_review_request_ids())

"""GraphQL documents and search strings used by the sync engine.

Every document carries an operation name so requests can be traced in logs
and routed by test doubles.
"""

import re

SEARCH_LIMIT = 100

VERDICT_REVIEW_STATES = ("APPROVED", "CHANGES_REQUESTED", "COMMENTED")

_OPERATION_RE = re.compile(r"^\s*(?:query|mutation)\s+(\w+)")

_REQUESTED_REVIEWER_FIELDS = """
        ... on User {
          login
        }
        ... on Bot {
          login
        }
"""

_PR_COMMON_FIELDS = """
          id
          number
          title
          url
          state
          isDraft
          createdAt
          updatedAt
          baseRefName
          author {
            login
          }
          repository {
            name
            owner {
              login
            }
          }
          reviews(last: 100) {
            nodes {
              id
              state
              author {
                login
              }
              createdAt
            }
          }
          commits(last: 1) {
            nodes {
              commit {
                statusCheckRollup {
                  state
                }
              }
            }
          }
          mergeable
          mergeQueueEntry {
            state
            position
          }
"""

VIEWER_LOGIN = """
query ViewerLogin {
  viewer {
    login
  }
}
"""

AUTHORED_PRS = (
    """
query AuthoredPullRequests($searchQuery: String!, $first: Int!) {
  search(query: $searchQuery, type: ISSUE, first: $first) {
    nodes {
      ... on PullRequest {"""
    + _PR_COMMON_FIELDS
    + """
          timelineItems(itemTypes: READY_FOR_REVIEW_EVENT, last: 1) {
            nodes {
              ... on ReadyForReviewEvent {
                createdAt
              }
            }
          }
      }
    }
  }
}
"""
)

REVIEW_REQUESTED_PRS = (
    """
query ReviewRequestedPullRequests($searchQuery: String!, $first: Int!) {
  search(query: $searchQuery, type: ISSUE, first: $first) {
    nodes {
      ... on PullRequest {"""
    + _PR_COMMON_FIELDS
    + """
          timelineItems(itemTypes: REVIEW_REQUESTED_EVENT, last: 50) {
            nodes {
              ... on ReviewRequestedEvent {
                createdAt
                requestedReviewer {"""
    + _REQUESTED_REVIEWER_FIELDS
    + """                }
              }
            }
          }
      }
    }
  }
}
"""
)

REVIEW_DETECTION = """
query ReviewDetection($searchQuery: String!, $first: Int!) {
  search(query: $searchQuery, type: ISSUE, first: $first) {
    nodes {
      ... on PullRequest {
        id
        number
        title
        url
        repository {
          name
          owner {
            login
          }
        }
        reviews(last: 100) {
          nodes {
            id
            state
            author {
              login
            }
            createdAt
          }
        }
      }
    }
  }
}
"""

REVIEW_REQUEST_DETECTION = """
query ReviewRequestDetection($searchQuery: String!, $first: Int!) {
  search(query: $searchQuery, type: ISSUE, first: $first) {
    nodes {
      ... on PullRequest {
        id
        number
        title
        url
        author {
          login
        }
        repository {
          name
          owner {
            login
          }
        }
      }
    }
  }
}
"""

PULL_REQUEST_VERIFICATION = """
query PullRequestVerification($pullRequestId: ID!) {
  node(id: $pullRequestId) {
    ... on PullRequest {
      id
      state
      reviews(last: 100) {
        nodes {
          id
          state
          author {
            login
          }
          createdAt
        }
      }
      commits(last: 1) {
        nodes {
          commit {
            statusCheckRollup {
              state
            }
          }
        }
      }
      mergeable
      mergeQueueEntry {
        state
        position
      }
    }
  }
}
"""

PULL_REQUEST_BASE_BRANCH = """
query PullRequestBaseBranch($pullRequestId: ID!) {
  node(id: $pullRequestId) {
    ... on PullRequest {
      baseRefName
    }
  }
}
"""

REPOSITORY_MERGE_SETTINGS = """
query RepositoryMergeSettings($owner: String!, $repo: String!) {
  repository(owner: $owner, name: $repo) {
    mergeCommitAllowed
    squashMergeAllowed
    rebaseMergeAllowed
  }
}
"""

MERGE_QUEUE_REQUIREMENT = """
query MergeQueueRequirement($owner: String!, $repo: String!, $branch: String!) {
  repository(owner: $owner, name: $repo) {
    mergeQueue(branch: $branch) {
      id
    }
  }
}
"""

APPROVE_PULL_REQUEST = """
mutation ApprovePullRequest($pullRequestId: ID!) {
  addPullRequestReview(input: {pullRequestId: $pullRequestId, event: APPROVE, body: ""}) {
    pullRequestReview {
      id
      state
    }
  }
}
"""

MERGE_PULL_REQUEST = """
mutation MergePullRequest($pullRequestId: ID!, $mergeMethod: PullRequestMergeMethod!) {
  mergePullRequest(input: {pullRequestId: $pullRequestId, mergeMethod: $mergeMethod}) {
    pullRequest {
      id
      merged
    }
  }
}
"""

ENQUEUE_PULL_REQUEST = """
mutation EnqueuePullRequest($pullRequestId: ID!) {
  enqueuePullRequest(input: {pullRequestId: $pullRequestId}) {
    mergeQueueEntry {
      id
      state
      position
    }
  }
}
"""


def operation_name(document: str) -> str:
    """Return the operation name of a GraphQL document, or ``anonymous``."""
    match = _OPERATION_RE.match(document)
    return match.group(1) if match else "anonymous"


def authored_search(username: str) -> str:
    return f"is:open is:pr author:{username} archived:false"


def review_requested_search(username: str) -> str:
    return f"is:open is:pr review-requested:{username} archived:false"


def reviewed_by_search(username: str) -> str:
    """PRs the user already reviewed but did not author (approved, awaiting merge)."""
    return f"is:open is:pr reviewed-by:{username} -author:{username} archived:false"


def search_variables(search_query: str, first: int = SEARCH_LIMIT) -> dict[str, object]:
    return {"searchQuery": search_query, "first": first}

import logging
import time

import requests

from config import EnvironmentConfig, StartGGCredentials

logger = logging.getLogger(__name__)

MAX_CONNECTION_RETRIES = 5
RATE_LIMIT_BASE_SLEEP = 30  # seconds, doubled per consecutive 429
UNAVAILABLE_SLEEP = 60
CONNECTION_RETRY_SLEEP = 30


class StartGGError(Exception):
    """Raised when start.gg cannot answer a query (transport, HTTP or GraphQL error)."""


head_to_head_query = """
query GetPlayerHeadToHead($playerId: ID!, $perPage: Int = 100) {
  player(id: $playerId) {
    id
    gamerTag
    sets(perPage: $perPage) {
      nodes {
        id
        winnerId
        completedAt
        slots {
          entrant {
            id
            participants {
              id
              gamerTag
            }
          }
        }
      }
    }
  }
}
"""

player_details_query = """
query GetPlayerDetails($playerId: ID!, $perPage: Int = 20) {
  player(id: $playerId) {
    id
    gamerTag
    prefix
    user {
      id
      slug
    }
    sets(perPage: $perPage) {
      nodes {
        id
        completedAt
        winnerId
        event {
          tournament {
            id
          }
        }
        slots {
          entrant {
            id
            name
            participants {
              id
              gamerTag
              prefix
              user {
                id
                slug
              }
            }
          }
        }
      }
    }
  }
}
"""

user_by_slug_query = """
query GetUserBySlug($slug: String!) {
  user(slug: $slug) {
    id
    slug
    name
    player {
      id
      gamerTag
      prefix
    }
  }
}
"""

recent_tournaments_query = """
query SearchRecentTournaments($perPage: Int = 5) {
  tournaments(query: {
    perPage: $perPage
    sortBy: "startAt desc"
    filter: {
      past: false
    }
  }) {
    nodes {
      id
      name
      slug
      startAt
    }
  }
}
"""

tournament_participants_query = """
query GetTournamentEntrants($slug: String!, $page: Int = 1, $perPage: Int = 20, $filter: String) {
  tournament(slug: $slug) {
    id
    name
    participants(query: {
      page: $page
      perPage: $perPage
      filter: {
        gamerTag: $filter
      }
    }) {
      nodes {
        id
        gamerTag
        prefix
        user {
          id
          slug
        }
      }
    }
  }
}
"""


def auth_headers(credentials: StartGGCredentials) -> dict:
    return {
        'Content-Type': 'application/json',
        'Authorization': f'Bearer {credentials.api_key}',
    }


def run_query(query, variables=None, retries=0, credentials: StartGGCredentials | None = None):
    """POST a GraphQL document to start.gg and return the decoded JSON body.

    Rate limiting (429) backs off exponentially, 503 waits a fixed minute,
    and connection errors are retried up to MAX_CONNECTION_RETRIES times.
    Any other status raises StartGGError.
    """
    creds = credentials or EnvironmentConfig.load_startgg()
    connection_failures = 0

    while True:
        try:
            response = requests.post(
                creds.api_url,
                json={'query': query, 'variables': variables},
                headers=auth_headers(creds),
                timeout=30
            )
            if response.status_code == 200:
                return response.json()
            elif response.status_code == 429:
                if retries > 9:
                    retries = 0
                sleep_time = RATE_LIMIT_BASE_SLEEP * (2 ** retries)
                logger.warning("Rate limit exceeded. Waiting for %s seconds before retrying...", sleep_time)
                time.sleep(sleep_time)
                retries += 1
            elif response.status_code == 503:
                logger.warning("Service unavailable. Waiting for %s seconds before retrying...", UNAVAILABLE_SLEEP)
                time.sleep(UNAVAILABLE_SLEEP)
            else:
                raise StartGGError(f"Query failed to run with a status code of {response.status_code}.")
        except requests.exceptions.ConnectionError as err:
            connection_failures += 1
            if connection_failures > MAX_CONNECTION_RETRIES:
                raise StartGGError("Max connection retries reached. Aborting.") from err
            logger.warning(
                "Connection error occurred, retrying (%s/%s) in %s seconds...",
                connection_failures,
                MAX_CONNECTION_RETRIES,
                CONNECTION_RETRY_SLEEP,
            )
            time.sleep(CONNECTION_RETRY_SLEEP)


def unwrap(result: dict, root: str):
    """Return `result['data'][root]`, raising StartGGError on GraphQL errors."""
    if "errors" in result:
        raise StartGGError(f"Error retrieving {root}: {result['errors']}")
    data = result.get("data") or {}
    return data.get(root)

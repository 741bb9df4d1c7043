"""Sets up the authenticated githubkit client."""

from githubkit import GitHub
from githubkit.auth import TokenAuthStrategy

from github_triage_manager.utils.constants import DEFAULT_GITHUB_API_URL

GitHubClient = GitHub[TokenAuthStrategy]


async def get_github_token_client(github_token: str, github_api_url: str = DEFAULT_GITHUB_API_URL, timeout: float | None = None) -> GitHubClient:
    """Returns a GitHub client authenticated with a token.

    HTTP caching and githubkit's own retries are disabled: responses are
    always fresh and retry decisions belong to the adapter.
    """
    if not github_token:
        raise RuntimeError("GitHub token authentication requires a token.")
    return GitHub(
        auth=TokenAuthStrategy(github_token),
        base_url=github_api_url,
        http_cache=False,
        auto_retry=False,
        timeout=timeout,
    )

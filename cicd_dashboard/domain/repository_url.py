"""Owner/name extraction from repository URLs."""

from urllib.parse import urlparse


def parse_owner_repo(url: str) -> tuple[str, str]:
    """Split a hosted-repository URL into (owner, repo).

    Accepts https://github.com/<owner>/<repo>, with or without a trailing
    slash or ".git" suffix.

    Raises:
        ValueError: If the URL has no owner/repo path
    """
    path = urlparse(url.strip()).path.strip("/")
    parts = [part for part in path.split("/") if part]
    if len(parts) < 2:
        raise ValueError(f"Cannot derive owner/repo from URL: {url!r}")

    owner, repo = parts[0], parts[1]
    if repo.endswith(".git"):
        repo = repo[: -len(".git")]
    if not repo:
        raise ValueError(f"Cannot derive owner/repo from URL: {url!r}")
    return owner, repo

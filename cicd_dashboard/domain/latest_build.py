"""Deterministic latest-build selection.

Pure functions with no external dependencies.
"""

from collections.abc import Sequence

from cicd_dashboard.schemas.builds import Build


def _recency_key(build: Build) -> tuple:
    return (build.started_at, build.id)


def reduce_latest(builds: Sequence[Build]) -> Build | None:
    """Select the most recent build of a repository.

    Args:
        builds: Builds of a single repository, in any order

    Returns:
        The build with the greatest started_at, or None for an empty sequence.
        Builds sharing the greatest started_at are ordered by id, highest wins.

    Pure function -- the input sequence is never sorted or mutated.
    """
    if not builds:
        return None

    return max(builds, key=_recency_key)

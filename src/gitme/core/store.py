"""Per-repository storage of pull request snapshots."""

from dataclasses import dataclass
from typing import Iterable, Iterator

from gitme.models import PullRequest


@dataclass(frozen=True)
class RepositoryGroup:
    """The pull requests of one repository, in fetch order."""

    repo: str
    pull_requests: tuple[PullRequest, ...]

    def __len__(self) -> int:
        return len(self.pull_requests)


class PullRequestStore:
    """Mapping of repository key -> ordered pull requests, one per panel.

    Repositories are always read back in lexicographic order. Pull requests
    keep the order the fetch returned them in; the store never re-sorts.
    A repository with no pull requests has no entry at all.
    """

    def __init__(self) -> None:
        self._groups: dict[str, list[PullRequest]] = {}

    def replace(self, repo: str, prs: Iterable[PullRequest]) -> None:
        """Replace the pull requests of ``repo`` wholesale.

        An empty ``prs`` removes the repository.
        """
        prs = list(prs)
        if not prs:
            self._groups.pop(repo, None)
            return
        group = self._groups.setdefault(repo, [])
        group.clear()
        group.extend(prs)

    def groups(self) -> list[RepositoryGroup]:
        """Snapshot of every group, ordered by repository key."""
        return [RepositoryGroup(repo, tuple(self._groups[repo])) for repo in self]

    @property
    def total_pull_requests(self) -> int:
        return sum(len(prs) for prs in self._groups.values())

    def __iter__(self) -> Iterator[str]:
        return iter(sorted(self._groups))

    def __len__(self) -> int:
        return len(self._groups)

    def __contains__(self, repo: object) -> bool:
        return repo in self._groups

"""包源码仓库实现"""

from bowerpy.repository.github import GithubRepository

__all__ = [
    "GithubRepository",
]

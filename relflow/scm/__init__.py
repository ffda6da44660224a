"""Version-control providers."""

from .git import SCM_PREFIX, GitRepositoryProvider, git_url, parse_porcelain

__all__ = ["SCM_PREFIX", "GitRepositoryProvider", "git_url", "parse_porcelain"]

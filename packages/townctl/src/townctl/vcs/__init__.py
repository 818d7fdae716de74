from .git import GitCli, GitView, VcsQueryError

__all__ = ["GitCli", "GitView", "VcsQueryError"]

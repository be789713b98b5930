"""Data models for git-branch-shepherd."""

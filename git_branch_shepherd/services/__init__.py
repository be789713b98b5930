"""Services for git-branch-shepherd."""

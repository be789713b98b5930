"""Configuration handling for git-branch-shepherd"""

import os
from dataclasses import dataclass, field, fields
from typing import Optional, List


def _env_flag(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass
class Config:
    """Configuration for git-branch-shepherd with validation.

    One instance is built at startup and handed to the engine; components
    read it but never mutate it after validation.
    """

    # Branches
    target_branch: str = "main"
    remote_name: str = "origin"
    protected_branches: List[str] = field(default_factory=lambda: ["main", "master"])
    session_prefixes: List[str] = field(default_factory=lambda: ["claude/"])

    # Execution modes
    dry_run: bool = False
    auto_push: bool = True
    stash_before_merge: bool = False
    assume_yes: bool = False
    verbose: bool = False
    debug: bool = False

    # Push retry policy
    max_retries: int = 4
    base_delay_ms: int = 2000
    network_timeout: Optional[float] = 120.0  # seconds per network git call, None = unbounded
    retry_unknown_push_failures: bool = False

    # Preview
    files_page_size: int = 20
    commits_preview: int = 10

    # GitHub integration
    github_token: Optional[str] = None
    max_prs_to_fetch: int = 500

    def __post_init__(self):
        """Validate configuration after initialization."""
        self._validate_target_branch()
        self._validate_remote_name()
        self._validate_protected_branches()
        self._validate_session_prefixes()
        self._validate_retry_policy()
        self._validate_network_timeout()
        self._validate_preview()
        self._validate_max_prs()

    def _validate_target_branch(self):
        """Validate target_branch is not empty."""
        if not self.target_branch or not self.target_branch.strip():
            raise ValueError("target_branch cannot be empty")
        self.target_branch = self.target_branch.strip()

    def _validate_remote_name(self):
        if not self.remote_name or not self.remote_name.strip():
            raise ValueError("remote_name cannot be empty")
        self.remote_name = self.remote_name.strip()

    def _validate_protected_branches(self):
        """Validate protected_branches list."""
        if not isinstance(self.protected_branches, list):
            raise ValueError("protected_branches must be a list")

        # The target branch is always protected
        if self.target_branch not in self.protected_branches:
            self.protected_branches.append(self.target_branch)

    def _validate_session_prefixes(self):
        if not isinstance(self.session_prefixes, list):
            raise ValueError("session_prefixes must be a list")
        if any(not prefix or not prefix.strip() for prefix in self.session_prefixes):
            raise ValueError("session_prefixes cannot contain empty values")

    def _validate_retry_policy(self):
        """Validate max_retries and base_delay_ms."""
        if self.max_retries < 1:
            raise ValueError(f"max_retries must be at least 1, got {self.max_retries}")
        if self.base_delay_ms < 0:
            raise ValueError(f"base_delay_ms cannot be negative, got {self.base_delay_ms}")

    def _validate_network_timeout(self):
        if self.network_timeout is not None and self.network_timeout <= 0:
            raise ValueError(f"network_timeout must be positive or None, got {self.network_timeout}")

    def _validate_preview(self):
        if self.files_page_size <= 0:
            raise ValueError(f"files_page_size must be positive, got {self.files_page_size}")
        if self.commits_preview < 0:
            raise ValueError(f"commits_preview cannot be negative, got {self.commits_preview}")

    def _validate_max_prs(self):
        """Validate max_prs_to_fetch is positive."""
        if self.max_prs_to_fetch <= 0:
            raise ValueError(f"max_prs_to_fetch must be positive, got {self.max_prs_to_fetch}")

    def to_dict(self) -> dict:
        """Convert config to dictionary."""
        return {f.name: getattr(self, f.name) for f in fields(self)}

    def get(self, key: str, default=None):
        """Get config value by key so dicts and Config can be used interchangeably."""
        return getattr(self, key, default)

    @classmethod
    def from_dict(cls, config_dict: dict) -> "Config":
        """Create Config from dictionary, ignoring unknown keys."""
        known_fields = {f.name for f in fields(cls)}
        filtered = {k: v for k, v in config_dict.items() if k in known_fields}
        return cls(**filtered)

    @classmethod
    def from_env(cls, environ: Optional[dict] = None, **overrides) -> "Config":
        """Create Config from environment variables, then apply overrides.

        Recognised variables: TARGET_BRANCH, DRY_RUN, AUTO_PUSH,
        GH_FILES_PAGE_SIZE, GITHUB_TOKEN.
        """
        env = os.environ if environ is None else environ
        values: dict = {}
        if env.get("TARGET_BRANCH"):
            values["target_branch"] = env["TARGET_BRANCH"]
        if env.get("DRY_RUN"):
            values["dry_run"] = _env_flag(env["DRY_RUN"])
        if env.get("AUTO_PUSH"):
            values["auto_push"] = _env_flag(env["AUTO_PUSH"])
        if env.get("GH_FILES_PAGE_SIZE"):
            try:
                values["files_page_size"] = int(env["GH_FILES_PAGE_SIZE"])
            except ValueError:
                raise ValueError(
                    f"GH_FILES_PAGE_SIZE must be an integer, got '{env['GH_FILES_PAGE_SIZE']}'"
                )
        if env.get("GITHUB_TOKEN"):
            values["github_token"] = env["GITHUB_TOKEN"]

        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls.from_dict(values)

"""GitHub REST client errors."""

from __future__ import annotations

from changeling.errors import ConfigurationError, DataIntegrityError, TransportError


class GitHubAPIError(TransportError):
    """Raised when GitHub cannot be reached or returns an error response."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        rate_limited: bool = False,
    ) -> None:
        """Initialise with a message, HTTP status and rate-limit flag."""
        self.status_code = status_code
        self.rate_limited = rate_limited
        super().__init__(message)

    @classmethod
    def http_error(cls, status_code: int, path: str) -> GitHubAPIError:
        """Return an error for a non-2xx response."""
        return cls(f"GitHub REST HTTP {status_code} for {path}", status_code=status_code)

    @classmethod
    def rate_limit_exceeded(cls, status_code: int, reset: str | None) -> GitHubAPIError:
        """Return an error for a response rejected by GitHub's rate limiter."""
        detail = f" (resets at epoch {reset})" if reset else ""
        return cls(
            f"GitHub API rate limit exceeded{detail}",
            status_code=status_code,
            rate_limited=True,
        )

    @classmethod
    def transport(cls, path: str, exc: Exception) -> GitHubAPIError:
        """Return an error for a request that never produced a response."""
        return cls(f"GitHub request to {path} failed: {exc}")


class GitHubResponseShapeError(DataIntegrityError):
    """Raised when a GitHub payload does not have the expected structure."""

    @classmethod
    def undecodable(cls, path: str, detail: str) -> GitHubResponseShapeError:
        """Return an error for a payload that failed typed decoding."""
        return cls(f"Unexpected GitHub response for {path}: {detail}")


class GitHubConfigError(ConfigurationError):
    """Raised when GitHub client configuration is invalid."""

    @classmethod
    def missing_token(cls, env_var: str) -> GitHubConfigError:
        """Return an error when no GitHub token is configured."""
        return cls(f"{env_var} not found in environment variables")

    @classmethod
    def empty_token(cls) -> GitHubConfigError:
        """Return an error when the provided token is blank."""
        return cls("GitHub token must be non-empty")

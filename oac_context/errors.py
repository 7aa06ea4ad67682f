"""Error taxonomy for context acquisition.

Every fatal error carries a short remediation line that the CLI prints
underneath the message. Verification gaps are not errors; they are reported
on the install result instead.
"""


class ContextInstallError(Exception):
    """Base class for all fatal context acquisition errors.

    Attributes:
        remediation: One actionable line telling the user what to do next
    """

    remediation: str = "Re-run with --verbose for details."

    def __init__(self, message: str, remediation: str | None = None) -> None:
        super().__init__(message)
        if remediation is not None:
            self.remediation = remediation


class ToolUnavailableError(ContextInstallError):
    """Raised when git is not installed. Fatal, not retryable."""

    remediation = "Install git: brew install git (Mac) or sudo apt install git (Linux)."


class ConfigError(ContextInstallError):
    """Raised when settings from YAML, environment or options fail validation."""

    remediation = "Fix the offending value in oac-context.yaml, the OAC_* environment or the command options."


class UnknownProfileError(ContextInstallError):
    """Raised when a profile name does not match any known profile."""

    remediation = "Valid profiles: essential, standard, extended, specialized, all."


class FetchError(ContextInstallError):
    """Raised when the registry document cannot be retrieved."""


class NetworkFetchError(FetchError):
    """Raised when the registry host is unreachable or answers with an error status."""

    remediation = "Check your network connection and the repository/branch settings, then re-run."


class LocalRegistryError(FetchError):
    """Raised when a local registry file is missing or unreadable."""

    remediation = "Check the registry file path (--registry-file / OAC_REGISTRY_FILE)."


class RegistryValidationError(ContextInstallError):
    """Raised when the registry document does not match the registry schema."""

    remediation = "The upstream registry.json is malformed; wait for an upstream fix or pin a known-good branch."


class TransportError(ContextInstallError):
    """Raised when the sparse checkout fails. Retryable by re-running."""

    remediation = "Check network access to the repository and that the branch exists, then re-run."


class CloneError(TransportError):
    """Raised when the sparse clone itself fails."""


class SparseCheckoutError(TransportError):
    """Raised when configuring the sparse-checkout path set fails."""


class CopyError(TransportError):
    """Raised when the checked-out content cannot be copied into the target directory."""

    remediation = "Make sure the target context directory is a writable directory, then re-run."


class LayoutMismatchError(ContextInstallError):
    """Raised when the expected content subtree is absent from the checkout."""

    remediation = "The registry and repository layout disagree; report it upstream or pin another branch."


class LockError(ContextInstallError):
    """Raised when the scope lock file cannot be created."""

    remediation = "Make sure the scope directory is writable, then re-run."


class LockTimeoutError(LockError):
    """Raised when another install holds the scope lock for too long."""

    remediation = "Another install is running for this scope; wait for it to finish or remove a stale lock file."


class ManifestNotFoundError(ContextInstallError):
    """Raised when no manifest exists at a scope root."""

    remediation = "Run `oac-context install` to install context for this scope."


class ManifestCorruptError(ContextInstallError):
    """Raised when a manifest exists but cannot be parsed."""

    remediation = "Re-run the install with --force to rewrite the manifest."


class ManifestWriteError(ContextInstallError):
    """Raised when the manifest cannot be written."""

    remediation = "Check that the scope directory is writable and has free space, then re-run with --force."


class PointerWriteError(ContextInstallError):
    """Raised when the project pointer file cannot be written."""

    remediation = "Check that the project root is writable, or create .oac.json by hand."

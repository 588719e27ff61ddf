##################################################################################################
# Errors
##################################################################################################

class GateError(Exception):
    """Base exception for refgate."""
    pass


class ConfigError(GateError, ValueError):
    """Raised when the configuration file, a pattern or a message template is invalid."""
    pass


class InfrastructureError(GateError):
    """
    Raised when a collaborator outside the validator (the repository, the user
    directory, the issue tracker) cannot answer. Never recorded as a rule outcome.
    """
    pass


class RepositoryError(InfrastructureError):
    """Raised when commits cannot be read from the repository."""
    pass


class AuthenticationRequiredError(InfrastructureError):
    """Raised if a host service rejects our credentials (401/403)."""
    pass


class ServiceError(InfrastructureError):
    """Raised if a host service is unreachable or answers with an error."""
    pass

"""ghsecrets - Manage GitHub Actions secrets with cloud backups."""

from ghsecrets.core.config import Settings
from ghsecrets.core.exceptions import GhSecretsError

__version__ = "0.1.0"
__all__ = ["Settings", "GhSecretsError", "__version__"]

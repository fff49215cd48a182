from .base import Identity, IdentityProvider
from .local import LocalPasswordProvider
from .google_linked import GoogleLinkedProvider

__all__ = ["Identity", "IdentityProvider", "LocalPasswordProvider", "GoogleLinkedProvider"]

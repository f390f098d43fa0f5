"""Services for email validation, disposable-domain detection, and external stores."""

from .validation import EmailValidator, is_valid_syntax, quality_score
from .disposable import DisposableDomainChecker, extract_domain
from .stores import StoreClient, DatabaseClient, CacheClient, ExternalStores

__all__ = [
    "EmailValidator",
    "is_valid_syntax",
    "quality_score",
    "DisposableDomainChecker",
    "extract_domain",
    "StoreClient",
    "DatabaseClient",
    "CacheClient",
    "ExternalStores",
]

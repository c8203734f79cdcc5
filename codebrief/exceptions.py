"""Domain exceptions raised across collectors, digest assembly, and delivery."""


class CodeBriefError(Exception):
    """Base class for Code Brief errors."""


class CollectorError(CodeBriefError):
    """Raised when a news source could not produce any result."""


class DigestParseError(CodeBriefError, ValueError):
    """Raised when the AI ranking response cannot be turned into buckets."""


class DeliveryError(CodeBriefError):
    """Raised when the digest could not be delivered to the webhook."""

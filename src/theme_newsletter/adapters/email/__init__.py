"""Email transport adapters."""

from theme_newsletter.adapters.email.resend_transport import ResendTransport

__all__ = ["ResendTransport"]

"""Outbound messaging channels."""

from app.core.messaging.service import MessagingService, SendResult

__all__ = ["MessagingService", "SendResult"]

"""Structured logging configuration for application and automation events."""

import logging
import sys

from app.core.config_file import get_settings

settings = get_settings()

# Create logger for application events
app_logger = logging.getLogger("app")
app_logger.setLevel(getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO))

# Create logger for automation run summaries
automation_logger = logging.getLogger("app.automation")

# Create console handler with structured format
console_handler = logging.StreamHandler(sys.stdout)
console_handler.setLevel(logging.DEBUG)

# Create formatter
formatter = logging.Formatter(
    "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
console_handler.setFormatter(formatter)

# Add handler to the root application logger if not already added
if not app_logger.handlers:
    app_logger.addHandler(console_handler)


def mask_email(email: str | None) -> str:
    """
    Mask email address for logging (show only first 3 chars and domain).

    Args:
        email: Email address to mask.

    Returns:
        Masked email string (e.g., "tes***@example.com").
    """
    if not email or "@" not in email:
        return "***"

    local_part, domain = email.split("@", 1)

    if len(local_part) <= 3:
        masked_local = "*" * len(local_part)
    else:
        masked_local = local_part[:3] + "***"

    return f"{masked_local}@{domain}"


def mask_phone(phone: str | None) -> str:
    """
    Mask phone number for logging (show only the last 4 digits).

    Args:
        phone: Phone number to mask.

    Returns:
        Masked phone string (e.g., "***4567").
    """
    if not phone:
        return "***"
    digits = "".join(ch for ch in phone if ch.isdigit())
    if len(digits) <= 4:
        return "***"
    return f"***{digits[-4:]}"


def log_rule_run(
    rule_id: str,
    tenant_id: str,
    event_type: str,
    state: str,
    succeeded: int = 0,
    failed: int = 0,
    error: str | None = None,
) -> None:
    """
    Log the outcome of one rule run for an event.

    Args:
        rule_id: Rule UUID.
        tenant_id: Tenant UUID.
        event_type: Triggering event type.
        state: Final run state (COMPLETED, SKIPPED, ABORTED).
        succeeded: Number of actions that succeeded.
        failed: Number of actions that failed.
        error: Rule-level error message (optional).
    """
    message = (
        f"Rule run - rule_id={rule_id}, tenant_id={tenant_id}, event={event_type}, "
        f"state={state}, succeeded={succeeded}, failed={failed}"
    )
    if error:
        message += f", error={error}"

    if state == "ABORTED" or failed:
        automation_logger.warning(message)
    else:
        automation_logger.info(message)

"""Condition evaluator for automation rules."""

import logging
from collections.abc import Mapping
from typing import Any

logger = logging.getLogger(__name__)


def conditions_match(config: Any, data: Mapping[str, Any]) -> bool:
    """Check a trigger config against event data.

    An empty or absent config matches unconditionally. Otherwise every key of
    the config must be present in the data with a strictly equal value; there
    is no partial, deep or range matching.

    Args:
        config: Trigger config (equality constraints)
        data: Event payload

    Returns:
        True if all constraints hold, False otherwise
    """
    if not config:
        return True
    if not isinstance(config, Mapping) or not isinstance(data, Mapping):
        logger.warning(f"Malformed trigger config ignored: {config!r}")
        return False

    for key, expected in config.items():
        if key not in data:
            return False
        if not _strictly_equal(data[key], expected):
            return False
    return True


def _strictly_equal(actual: Any, expected: Any) -> bool:
    # No cross-type coercion: "1" != 1 and True != 1, but 1 == 1.0
    numeric = (int, float)
    if (
        isinstance(actual, numeric)
        and isinstance(expected, numeric)
        and not isinstance(actual, bool)
        and not isinstance(expected, bool)
    ):
        return actual == expected
    return type(actual) is type(expected) and actual == expected


class ConditionEvaluator:
    """Evaluator for rule trigger conditions."""

    def evaluate(self, config: Any, data: Mapping[str, Any]) -> bool:
        """Evaluate trigger conditions against an event payload.

        Never raises; malformed config fails to match.
        """
        try:
            return conditions_match(config, data)
        except (TypeError, ValueError) as e:
            logger.warning(f"Error evaluating conditions {config!r}: {e}")
            return False

"""Evict cached reads after write requests."""

from typing import Sequence

import structlog

from placify.app.cache.keys import endpoint_matches
from placify.app.cache.store import Store

logger = structlog.get_logger()

MUTATING_METHODS = frozenset({"POST", "PUT", "PATCH", "DELETE"})

# Checked in order; the first rule found in the mutated endpoint is evicted.
DEFAULT_RULES: tuple[str, ...] = ("/applications", "/jobs", "/profile")


class InvalidationRouter:
    def __init__(self, store: Store, rules: Sequence[str] = DEFAULT_RULES):
        self.store = store
        self.rules = tuple(rules)

    def on_mutation(self, method: str, endpoint: str) -> int:
        """Evict entries related to ``endpoint`` and return how many went.

        Mutations that match no rule clear the whole cache namespace.
        """
        if method.upper() not in MUTATING_METHODS:
            return 0

        for rule in self.rules:
            if endpoint_matches(endpoint, rule):
                removed = self.store.remove_matching(rule)
                logger.info(
                    "Invalidated cache after mutation",
                    method=method.upper(),
                    endpoint=endpoint,
                    pattern=rule,
                    removed=removed,
                )
                return removed

        removed = self.store.clear()
        logger.info(
            "Cleared cache after unmatched mutation",
            method=method.upper(),
            endpoint=endpoint,
            removed=removed,
        )
        return removed

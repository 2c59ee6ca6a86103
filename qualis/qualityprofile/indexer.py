"""Qualis – Active rule index notifications.

Installing or changing activations makes the search index of active rules
stale. The installer reports the affected rule uuids to an
:class:`ActiveRuleIndexer`; the queue-backed implementation records them
in ``index_queue`` for the indexing worker to pick up.

Notifications are best effort: a failure is logged and never propagated,
so it cannot undo the install that triggered it.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, List

from qualis.core.clock import Clock, SystemClock
from qualis.core.database import DatabaseManager
from qualis.core.ids import RandomUuidFactory, UuidFactory
from qualis.core.logging import get_logger


logger = get_logger(__name__)

ACTIVE_RULE_DOC_TYPE = "activeRule"


class ActiveRuleIndexer:
    """Receives the rule uuids whose activations changed.

    The base implementation only logs; subclasses deliver the
    notification somewhere useful.
    """

    def notify(self, rule_uuids: Iterable[str]) -> None:
        uuids = sorted(set(rule_uuids))
        if uuids:
            logger.debug("ActiveRuleIndexer.notify: %d rule(s) affected", len(uuids))


@dataclass
class QueueActiveRuleIndexer(ActiveRuleIndexer):
    """Records affected rules in ``index_queue`` on its own connection.

    The queue rows are committed independently of the caller's sessions.
    """

    db_manager: DatabaseManager
    clock: Clock = field(default_factory=SystemClock)
    uuid_factory: UuidFactory = field(default_factory=RandomUuidFactory)

    def notify(self, rule_uuids: Iterable[str]) -> None:
        uuids: List[str] = sorted(set(rule_uuids))
        if not uuids:
            return

        sql = """
            INSERT INTO index_queue (uuid, doc_type, doc_id, created_at)
            VALUES (%s, %s, %s, %s)
        """

        try:
            now = self.clock.now()
            with self.db_manager.open_session(batch=True) as session:
                for rule_uuid in uuids:
                    session.insert(
                        sql,
                        (self.uuid_factory.create(), ACTIVE_RULE_DOC_TYPE, rule_uuid, now),
                    )
                session.commit()
        except Exception as exc:
            logger.warning(
                "QueueActiveRuleIndexer.notify: failed to queue %d rule(s) for indexing: %s",
                len(uuids),
                exc,
            )
            return

        logger.info("QueueActiveRuleIndexer.notify: queued %d rule(s) for indexing", len(uuids))

"""
Impact Mapping
==============

Turns a processed circular's impact rows into compliance tasks for the
clients they apply to, and alerts firm members about high-risk ones.

Matching is a pure predicate over one impact and one client; the mapper
evaluates it across the full (impacts x clients) cross product. A client
receives at most one task per circular, so re-running the mapping is a
no-op.

Version: 0.1.0
"""

import uuid

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from services.regulatory_feed.models import (
    ALL,
    CircularImpactModel,
    CircularModel,
    ClientModel,
    ComplianceTaskModel,
    HIGH_RISK_NOTIFICATION,
    NotificationModel,
    RiskLevel,
    TaskStatus,
)
from services.regulatory_feed.schemas import MapResponse
from services.regulatory_feed.store import ComplianceStore
from shared.logging import get_logger


logger = get_logger(__name__)

MAX_TASK_TITLE_LENGTH = 500
NO_IMPACTS_MESSAGE = "No impacts to map"
HIGH_RISK_TITLE = "High Risk Alert"


def _attribute_matches(required: str | None, actual: str | None) -> bool:
    if required == ALL:
        return True
    if required is None or actual is None:
        return False
    return required.lower() == actual.lower()


def impact_matches_client(impact: CircularImpactModel, client: ClientModel) -> bool:
    """
    Whether ``impact`` applies to ``client``.

    Entity type and industry must each be the ``All`` wildcard or equal to
    the client's value ignoring case. A client with no value for an
    attribute only matches the wildcard.
    """
    return _attribute_matches(impact.entity_type, client.entity_type) and _attribute_matches(
        impact.industry_type, client.industry_type
    )


def action_text(impact: CircularImpactModel, circular: CircularModel | None) -> str:
    """The impact's action, falling back to the circular title."""
    if impact.compliance_action:
        return impact.compliance_action
    return circular.title if circular is not None and circular.title else ""


def task_title(impact: CircularImpactModel, circular: CircularModel | None) -> str:
    source = circular.source.value if circular is not None and circular.source else "Regulatory"
    return f"{source}: {action_text(impact, circular)}"[:MAX_TASK_TITLE_LENGTH]


class ImpactMapper:
    """Mapping stage over the store."""

    def __init__(self, store: ComplianceStore) -> None:
        self.store = store

    async def run(self, circular_id: uuid.UUID) -> MapResponse:
        """
        Map one circular's impact to client tasks.

        Returns:
            Tasks created, with a message when the circular has no impact rows
        """
        impacts = await self.store.list_impacts(circular_id)
        if not impacts:
            logger.info("impact_mapping_skipped", circular_id=str(circular_id), reason="no_impacts")
            return MapResponse(circular_id=circular_id, tasks_created=0, message=NO_IMPACTS_MESSAGE)

        circular = await self.store.get_circular(circular_id)
        clients = await self.store.list_clients()

        tasks_created = 0
        for impact in impacts:
            for client in clients:
                if not impact_matches_client(impact, client):
                    continue
                if await self.create_task(circular_id, circular, impact, client):
                    tasks_created += 1

        logger.info(
            "impact_mapped",
            circular_id=str(circular_id),
            impacts=len(impacts),
            clients=len(clients),
            tasks_created=tasks_created,
        )
        return MapResponse(circular_id=circular_id, tasks_created=tasks_created)

    async def map_circular(self, circular_id: uuid.UUID) -> int:
        """Map one circular and return the number of tasks created."""
        return (await self.run(circular_id)).tasks_created

    async def create_task(
        self,
        circular_id: uuid.UUID,
        circular: CircularModel | None,
        impact: CircularImpactModel,
        client: ClientModel,
    ) -> bool:
        """
        Create the task for (client, circular) unless one exists.

        Returns:
            True if a task was created
        """
        if await self.store.find_task(client.id, circular_id) is not None:
            return False

        risk_level = impact.risk_level or RiskLevel.LOW
        task = ComplianceTaskModel(
            id=uuid.uuid4(),
            client_id=client.id,
            firm_id=client.firm_id,
            circular_id=circular_id,
            task_title=task_title(impact, circular),
            description=impact.impact_summary,
            due_date=impact.due_date,
            status=TaskStatus.PENDING,
            risk_level=risk_level,
        )

        try:
            await self.store.add_task(task)
        except IntegrityError:
            # Lost a race with a concurrent mapping of the same circular
            logger.info(
                "task_already_exists",
                client_id=str(client.id),
                circular_id=str(circular_id),
            )
            return False
        except SQLAlchemyError as e:
            logger.error(
                "task_insert_failed",
                client_id=str(client.id),
                circular_id=str(circular_id),
                error=str(e),
            )
            return False

        if risk_level == RiskLevel.HIGH:
            await self.notify_firm(client, action_text(impact, circular))

        return True

    async def notify_firm(self, client: ClientModel, action: str) -> int:
        """Alert every member of the client's firm about a new high-risk task."""
        try:
            profile_ids = await self.store.list_firm_profile_ids(client.firm_id)
        except SQLAlchemyError as e:
            logger.error("firm_profiles_lookup_failed", firm_id=str(client.firm_id), error=str(e))
            return 0

        sent = 0
        for user_id in profile_ids:
            try:
                await self.store.add_notification(
                    NotificationModel(
                        id=uuid.uuid4(),
                        user_id=user_id,
                        title=HIGH_RISK_TITLE,
                        message=f"New high-risk compliance task for {client.client_name}: {action}",
                        type=HIGH_RISK_NOTIFICATION,
                    )
                )
                sent += 1
            except SQLAlchemyError as e:
                logger.error("notification_insert_failed", user_id=str(user_id), error=str(e))

        logger.info("high_risk_notifications_sent", client_id=str(client.id), count=sent)
        return sent

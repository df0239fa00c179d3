"""
Commit coordinator for the bulk employee import.

Applies the operator's decisions: deactivations first, one at a time, then a
single creation call for everything still eligible. Failures are recorded per
row and never abort the rest of the batch; nothing is retried.
"""

import logging
from typing import Dict, List, Optional
from uuid import UUID

from app.schemas.employee_import import CandidateRecord, ImportErrorCode, OutcomeReport, RowError
from app.services.employee_import.gateway import RosterGateway, RosterOperationError, creation_error
from app.services.employee_import.session import ResolutionDecision

logger = logging.getLogger(__name__)


class CommitCoordinator:
    """Turns valid candidates plus resolved conflicts into an OutcomeReport."""

    def __init__(self, gateway: RosterGateway):
        self.gateway = gateway

    async def commit(
        self,
        valid: List[CandidateRecord],
        decisions: List[ResolutionDecision],
        classification_errors: List[RowError],
    ) -> OutcomeReport:
        error_rows: List[RowError] = list(classification_errors)
        replacements: List[CandidateRecord] = []
        # existing id -> failure message, None once deactivated
        outcomes: Dict[UUID, Optional[str]] = {}
        skipped = 0

        for decision in decisions:
            conflict = decision.conflict
            if not decision.resolve:
                skipped += 1
                continue
            existing_id = conflict.existing.id
            if existing_id not in outcomes:
                try:
                    await self.gateway.deactivate(existing_id)
                    outcomes[existing_id] = None
                except RosterOperationError as exc:
                    outcomes[existing_id] = str(exc)
            failure = outcomes[existing_id]
            if failure is not None:
                logger.warning(
                    "Failed to deactivate user %s for row %s: %s",
                    existing_id,
                    conflict.candidate.row_number,
                    failure,
                )
                error_rows.append(
                    RowError(
                        row_number=conflict.candidate.row_number,
                        code=ImportErrorCode.DEACTIVATION_FAILED,
                        reason=f"Falha ao desativar usuário existente: {conflict.existing.name}",
                        data={
                            "Nome Completo": conflict.candidate.name,
                            "Email": conflict.candidate.email,
                            "Matrícula": conflict.candidate.short_id,
                        },
                    )
                )
                continue
            replacements.append(conflict.candidate)
        deactivated = sum(1 for failure in outcomes.values() if failure is None)

        batch = list(valid) + replacements
        created_ids = []
        if batch:
            try:
                result = await self.gateway.create_many(batch)
            except RosterOperationError as exc:
                logger.error("Bulk creation of %s row(s) failed: %s", len(batch), exc)
                error_rows.extend(creation_error(c, "Falha ao cadastrar usuário.") for c in batch)
            else:
                created_ids = [entry.id for entry in result.created]
                error_rows.extend(result.errors)

        report = OutcomeReport(
            imported=len(created_ids),
            deactivated=deactivated,
            skipped=skipped,
            errors=len(error_rows),
            error_rows=tuple(sorted(error_rows, key=lambda e: e.row_number)),
            created_ids=tuple(created_ids),
        )
        logger.info(
            "Import committed: imported=%s deactivated=%s skipped=%s errors=%s",
            report.imported,
            report.deactivated,
            report.skipped,
            report.errors,
        )
        return report

"""
Mastery Tracking Service

Keeps one concept_mastery row per (user, document, keyword) and scores it
with the Weighted Mastery Score after every review.

Usage:
    service = MasteryService(data, executor)

    record = await service.update_concept_mastery(doc_id, "photosynthesis", was_correct=True)
    overview = await service.get_overall_mastery()
"""

import logging
from typing import Any, Optional

from studyaid.clients.protocols import Filter, Order
from studyaid.config import settings
from studyaid.enums.learning import Difficulty, MasteryLevel
from studyaid.middleware.error_handling import NoRowsError
from studyaid.models.learning import ConceptMastery, MasteryOverview
from studyaid.services.base import BackendService
from studyaid.services.learning.mastery import compute_mastery, mastery_level
from studyaid.services.learning.sm2 import round_half_up

logger = logging.getLogger(__name__)


def summarize_mastery(
    scores: list[float],
    mastered_threshold: float = settings.MASTERY_MASTERED_THRESHOLD,
    learning_threshold: float = settings.MASTERY_LEARNING_THRESHOLD,
) -> MasteryOverview:
    """Bucket scores into mastered / learning / needs-work and average them."""
    if not scores:
        return MasteryOverview()

    levels = [mastery_level(s, mastered_threshold, learning_threshold) for s in scores]
    return MasteryOverview(
        total_concepts=len(scores),
        mastered_concepts=levels.count(MasteryLevel.MASTERED),
        learning_concepts=levels.count(MasteryLevel.LEARNING),
        needs_work_concepts=levels.count(MasteryLevel.NEEDS_WORK),
        average_mastery=int(round_half_up(sum(scores) / len(scores))),
    )


class MasteryService(BackendService):
    """Concept mastery for the signed-in user."""

    async def update_concept_mastery(
        self,
        document_id: str,
        keyword: str,
        was_correct: bool,
        difficulty: Difficulty = Difficulty.MEDIUM,
    ) -> ConceptMastery:
        """
        Record one review of a keyword and rescore it.

        Creates the record on the first review. Counters only ever grow.
        """
        user_id = await self.user_id()
        existing = await self._get_record(user_id, document_id, keyword)

        now = self.clock()
        times_reviewed = (existing.times_reviewed if existing else 0) + 1
        times_correct = (existing.times_correct if existing else 0) + (1 if was_correct else 0)
        score = compute_mastery(times_reviewed, times_correct, now, difficulty, now=now)

        values = {
            "times_reviewed": times_reviewed,
            "times_correct": times_correct,
            "mastery_score": score,
            "last_reviewed_at": now.isoformat(),
        }

        if existing is not None:
            rows = await self.write(
                lambda: self.data.update(
                    "concept_mastery", values, filters=[Filter("id", "eq", existing.id)]
                ),
                name="update_concept_mastery",
            )
        else:
            values.update({"user_id": user_id, "document_id": document_id, "keyword": keyword})
            rows = await self.write(
                lambda: self.data.insert("concept_mastery", values),
                name="create_concept_mastery",
            )

        logger.debug(f"Mastery for '{keyword}': {score} ({times_correct}/{times_reviewed})")
        return ConceptMastery.model_validate(rows[0])

    async def get_document_mastery(self, document_id: str) -> list[ConceptMastery]:
        """All concept records of a document, strongest first."""
        user_id = await self.user_id()

        async def fetch(token) -> list[dict[str, Any]]:
            return await self.data.select(
                "concept_mastery",
                filters=[
                    Filter("user_id", "eq", user_id),
                    Filter("document_id", "eq", document_id),
                ],
                order=Order("mastery_score", ascending=False),
                token=token,
            )

        rows = await self.read(fetch, name="get_document_mastery")
        return [ConceptMastery.model_validate(row) for row in rows]

    async def get_overall_mastery(self) -> MasteryOverview:
        user_id = await self.user_id()

        async def fetch(token) -> list[dict[str, Any]]:
            return await self.data.select(
                "concept_mastery",
                columns="mastery_score",
                filters=[Filter("user_id", "eq", user_id)],
                token=token,
            )

        rows = await self.read(fetch, name="get_overall_mastery")
        return summarize_mastery([row.get("mastery_score") or 0 for row in rows])

    async def _get_record(
        self, user_id: str, document_id: str, keyword: str
    ) -> Optional[ConceptMastery]:
        async def fetch(token) -> dict[str, Any]:
            return await self.data.select_one(
                "concept_mastery",
                filters=[
                    Filter("user_id", "eq", user_id),
                    Filter("document_id", "eq", document_id),
                    Filter("keyword", "eq", keyword),
                ],
                token=token,
            )

        try:
            return ConceptMastery.model_validate(
                await self.read(fetch, name="get_concept_mastery")
            )
        except NoRowsError:
            return None

"""
Document Processor

Server side of the ``process-document`` function: turns a document's text
into summaries, study notes, keywords, study questions and citations.

Flow:
    1. Load the document, open (or reset) its summary row as "processing"
    2. Split the text into sentence-aligned chunks (at most 10 are used)
    3. Single chunk: one prompt that also returns source quotes
       Several chunks: summarize each, then combine
    4. Verify citations against the source, compute metrics
    5. Store results, mark the summary completed and the document non-draft

Model output that is not valid JSON never fails the run: deterministic
fallbacks derived from the raw text are stored instead.

Usage:
    processor = DocumentProcessor(data, get_llm_client())
    response = await processor.process(document_id, ProcessingOptions())
"""

import logging
from typing import Any, Optional

from studyaid.clients.protocols import DataClient, Filter
from studyaid.config import settings
from studyaid.enums.learning import Difficulty
from studyaid.enums.processing import AIErrorCode, ProcessingStatus
from studyaid.middleware.error_handling import NoRowsError, ProcessingError
from studyaid.models.processing import (
    ChunkResult,
    Citation,
    ProcessDocumentResponse,
    ProcessingOptions,
    ProcessingResults,
    StudyQuestion,
)
from studyaid.services.llm.client import LLMClient
from studyaid.services.processing.chunking import split_into_chunks
from studyaid.services.processing.citations import (
    citation_rate,
    compression_ratio,
    verify_citation,
)
from studyaid.services.processing.prompts import CHUNK_PROMPT, COMBINE_PROMPT, SINGLE_PROMPT
from studyaid.services.processing.text_utils import (
    extract_json_from_response,
    string_list,
    unique,
)

logger = logging.getLogger(__name__)

DOC_NOT_FOUND_MESSAGE = "The document could not be found. It may have been deleted."
EMPTY_DOC_MESSAGE = (
    "The document appears to be empty or could not be read. Please try uploading again."
)

MAX_BULLET_POINTS = 8
MAX_KEYWORDS = 8


def coerce_difficulty(value: Any) -> Difficulty:
    try:
        return Difficulty(str(value).lower())
    except ValueError:
        return Difficulty.MEDIUM


def parse_chunk_result(response: str) -> ChunkResult:
    """Parse a chunk response, falling back to the first 200 characters."""
    parsed = extract_json_from_response(response)
    if not isinstance(parsed, dict):
        logger.warning("Chunk response was not valid JSON, using fallback")
        return ChunkResult(
            summary=response[:200],
            key_points=["Content analyzed"],
            keywords=["document"],
        )
    return ChunkResult(
        summary=str(parsed.get("summary") or ""),
        key_points=string_list(parsed.get("keyPoints")),
        keywords=string_list(parsed.get("keywords")),
    )


def parse_study_questions(
    raw: Any, source_text: Optional[str] = None, citations: Optional[list[Citation]] = None
) -> list[StudyQuestion]:
    """
    Validate model-provided questions.

    Entries without a question or answer are dropped; unknown difficulties
    become medium. With ``source_text``, quoted questions also produce
    verified citations.
    """
    questions: list[StudyQuestion] = []
    if not isinstance(raw, list):
        return questions

    for item in raw:
        if not isinstance(item, dict) or not item.get("question") or not item.get("answer"):
            continue
        quote = item.get("sourceQuote") or None
        question = StudyQuestion(
            question=str(item["question"]),
            answer=str(item["answer"]),
            difficulty=coerce_difficulty(item.get("difficulty")),
            source_quote=quote,
        )
        questions.append(question)
        if quote and source_text is not None and citations is not None:
            citations.append(
                Citation(
                    claim=question.question,
                    source_quote=quote,
                    verified=verify_citation(quote, source_text),
                    section=1,
                )
            )
    return questions


def parse_single_result(response: str, source_text: str) -> ProcessingResults:
    """Parse the one-shot response, verifying every source quote."""
    parsed = extract_json_from_response(response)
    if not isinstance(parsed, dict):
        logger.warning("Single-pass response was not valid JSON, using fallback")
        return ProcessingResults(
            short_summary=response[:300],
            detailed_summary=response,
            bullet_points=["Summary generated - see detailed view"],
            keywords=["document", "analysis"],
        )

    bullet_points: list[str] = []
    citations: list[Citation] = []
    for item in parsed.get("bulletPoints") or []:
        if isinstance(item, str):
            bullet_points.append(item)
        elif isinstance(item, dict) and item.get("text"):
            bullet_points.append(str(item["text"]))
            quote = item.get("sourceQuote")
            if quote:
                citations.append(
                    Citation(
                        claim=str(item["text"]),
                        source_quote=str(quote),
                        verified=verify_citation(str(quote), source_text),
                        section=1,
                    )
                )

    questions = parse_study_questions(parsed.get("studyQuestions"), source_text, citations)

    return ProcessingResults(
        short_summary=str(parsed.get("shortSummary") or ""),
        detailed_summary=str(parsed.get("detailedSummary") or ""),
        bullet_points=bullet_points,
        keywords=string_list(parsed.get("keywords")),
        study_questions=questions,
        citations=citations,
    )


def parse_combined_result(response: str, chunk_results: list[ChunkResult]) -> ProcessingResults:
    """Parse the combine response, falling back to the section results."""
    section_summaries = format_section_summaries(chunk_results)
    parsed = extract_json_from_response(response)
    if not isinstance(parsed, dict):
        logger.warning("Combine response was not valid JSON, using fallback")
        key_points = [p for r in chunk_results for p in r.key_points]
        keywords = unique([k for r in chunk_results for k in r.keywords])
        return ProcessingResults(
            short_summary=section_summaries[:500],
            detailed_summary=section_summaries,
            bullet_points=key_points[:MAX_BULLET_POINTS],
            keywords=keywords[:MAX_KEYWORDS],
        )

    return ProcessingResults(
        short_summary=str(parsed.get("shortSummary") or ""),
        detailed_summary=str(parsed.get("detailedSummary") or ""),
        bullet_points=string_list(parsed.get("bulletPoints")),
        keywords=string_list(parsed.get("keywords")),
        study_questions=parse_study_questions(parsed.get("studyQuestions")),
    )


def format_section_summaries(chunk_results: list[ChunkResult]) -> str:
    return "\n".join(
        f"Section {i}: {result.summary}" for i, result in enumerate(chunk_results, start=1)
    )


def apply_options(results: ProcessingResults, options: ProcessingOptions) -> ProcessingResults:
    """Blank out the artefacts the caller did not ask for."""
    updates: dict[str, Any] = {}
    if not options.generate_short_summary:
        updates["short_summary"] = ""
    if not options.generate_detailed_summary:
        updates["detailed_summary"] = ""
    if not options.extract_keywords:
        updates["keywords"] = []
    if not options.generate_questions:
        updates["study_questions"] = []
    return results.model_copy(update=updates) if updates else results


class DocumentProcessor:
    """
    Chunked summarization pipeline over the data collaborator and an LLM.

    Args:
        data: Service-role data client
        llm: Completion client
        chunk_size: Characters per chunk
        max_chunks: Chunks beyond this are ignored (``was_truncated``)
    """

    def __init__(
        self,
        data: DataClient,
        llm: LLMClient,
        chunk_size: int = settings.PROCESSING_CHUNK_SIZE,
        max_chunks: int = settings.PROCESSING_MAX_CHUNKS,
    ) -> None:
        self.data = data
        self.llm = llm
        self.chunk_size = chunk_size
        self.max_chunks = max_chunks

    async def process(
        self, document_id: str, options: Optional[ProcessingOptions] = None
    ) -> ProcessDocumentResponse:
        """
        Process one document end to end.

        Raises:
            ProcessingError: DOC_NOT_FOUND, EMPTY_DOC or an AI_* code. When a
                summary row exists it is marked failed with the user message.
        """
        options = options or ProcessingOptions()
        document = await self._load_document(document_id)
        summary_id = await self._open_summary(document_id)

        try:
            return await self._run(document_id, summary_id, document, options)
        except Exception as e:
            await self._mark_failed(summary_id, e)
            raise

    async def _run(
        self,
        document_id: str,
        summary_id: str,
        document: dict[str, Any],
        options: ProcessingOptions,
    ) -> ProcessDocumentResponse:
        full_text = document.get("original_text") or ""
        if not full_text.strip():
            raise ProcessingError(
                EMPTY_DOC_MESSAGE,
                error_code=AIErrorCode.EMPTY_DOC.value,
                details={"technical_details": "Document has no text content"},
            )

        chunks = split_into_chunks(full_text, self.chunk_size)
        was_chunked = len(chunks) > 1
        was_truncated = len(chunks) > self.max_chunks
        chunks = chunks[: self.max_chunks]
        logger.info(
            f"Processing document {document_id}: {len(full_text)} chars, "
            f"{len(chunks)} chunk(s){' (truncated)' if was_truncated else ''}"
        )

        if was_chunked:
            results = await self._process_chunked(chunks)
        else:
            results = await self._process_single(full_text)
        results = apply_options(results, options)

        await self.data.update(
            "summaries",
            {
                "short_summary": results.short_summary,
                "detailed_summary": results.detailed_summary,
                "bullet_points": results.bullet_points,
                "keywords": results.keywords,
                "study_questions": [q.to_wire() for q in results.study_questions],
                "citations": [c.to_wire() for c in results.citations],
                "compression_ratio": compression_ratio(
                    full_text, results.short_summary, results.detailed_summary
                ),
                "keyword_coverage": citation_rate(results.citations),
                "processing_status": ProcessingStatus.COMPLETED.value,
                "error_message": None,
            },
            filters=[Filter("id", "eq", summary_id)],
        )
        await self.data.update(
            "documents", {"is_draft": False}, filters=[Filter("id", "eq", document_id)]
        )

        return ProcessDocumentResponse(
            summary_id=summary_id,
            status=ProcessingStatus.COMPLETED,
            chunks_processed=len(chunks),
            was_chunked=was_chunked,
            was_truncated=was_truncated,
            original_length=len(full_text),
        )

    async def _process_single(self, text: str) -> ProcessingResults:
        response = await self.llm.complete(
            SINGLE_PROMPT.format(text=text), max_tokens=settings.PROCESSING_SINGLE_MAX_TOKENS
        )
        return parse_single_result(response, text)

    async def _process_chunked(self, chunks: list[str]) -> ProcessingResults:
        # Sequential on purpose: keeps provider rate limits predictable
        chunk_results: list[ChunkResult] = []
        for number, chunk in enumerate(chunks, start=1):
            response = await self.llm.complete(
                CHUNK_PROMPT.format(chunk_number=number, total_chunks=len(chunks), text=chunk),
                max_tokens=settings.PROCESSING_CHUNK_MAX_TOKENS,
            )
            chunk_results.append(parse_chunk_result(response))

        key_points = [p for r in chunk_results for p in r.key_points]
        keywords = unique([k for r in chunk_results for k in r.keywords])
        prompt = COMBINE_PROMPT.format(
            section_count=len(chunk_results),
            section_summaries=format_section_summaries(chunk_results),
            key_points="\n".join(f"- {p}" for p in key_points),
            keywords=", ".join(keywords),
        )
        response = await self.llm.complete(
            prompt, max_tokens=settings.PROCESSING_COMBINE_MAX_TOKENS
        )
        return parse_combined_result(response, chunk_results)

    async def _load_document(self, document_id: str) -> dict[str, Any]:
        try:
            return await self.data.select_one(
                "documents", filters=[Filter("id", "eq", document_id)]
            )
        except NoRowsError:
            raise ProcessingError(
                DOC_NOT_FOUND_MESSAGE,
                error_code=AIErrorCode.DOC_NOT_FOUND.value,
                details={"technical_details": f"Document not found: {document_id}"},
            )

    async def _open_summary(self, document_id: str) -> str:
        """Reset the existing summary row to processing, or create one."""
        try:
            existing = await self.data.select_one(
                "summaries", columns="id", filters=[Filter("document_id", "eq", document_id)]
            )
        except NoRowsError:
            rows = await self.data.insert(
                "summaries",
                {"document_id": document_id, "processing_status": ProcessingStatus.PROCESSING.value},
            )
            return rows[0]["id"]

        await self.data.update(
            "summaries",
            {"processing_status": ProcessingStatus.PROCESSING.value, "error_message": None},
            filters=[Filter("id", "eq", existing["id"])],
        )
        return existing["id"]

    async def _mark_failed(self, summary_id: str, error: Exception) -> None:
        message = error.message if isinstance(error, ProcessingError) else str(error)
        try:
            await self.data.update(
                "summaries",
                {"processing_status": ProcessingStatus.FAILED.value, "error_message": message},
                filters=[Filter("id", "eq", summary_id)],
            )
        except Exception as e:
            logger.error(f"Could not mark summary {summary_id} failed: {e}")

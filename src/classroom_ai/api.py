"""
Classroom AI HTTP API

FastAPI application exposing the PDF analysis pipeline, lesson management
and the AI content generators.

Run with:
    uvicorn src.classroom_ai.api:create_app --factory
"""

import asyncio
import logging
import tempfile
import traceback
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

from fastapi import APIRouter, Depends, FastAPI, File, Header, Query, Request, UploadFile, status
from fastapi.responses import JSONResponse, Response
from pydantic import BaseModel, ConfigDict, Field

from .config import AppSettings, PipelineSettings, ProviderConfig
from .errors import (
    AnalysisError,
    EmptyDocumentError,
    ExtractionError,
    InputError,
    ServiceError,
    UnauthorizedError,
)
from .extraction import extract_text
from .generation import ContentGenerator
from .lessons import LessonRequest, LessonService, PresentationRequest
from .llm_client import LLMProvider
from .log_setup import configure_logging
from .pipeline import EMPTY_DOCUMENT_MESSAGE, AnalysisPipeline, build_pipeline, release_document
from .taxonomy import InMemoryDocumentStore
from .text_cleaning import normalize_text

logger = logging.getLogger(__name__)

UPLOAD_READ_SIZE = 1024 * 1024  # 1MB
SUMMARY_FAILED = "Summary generation failed."
# Below this much text a PDF has nothing worth summarizing
SUMMARY_MIN_TEXT_CHARS = 20


# ─── Request models ────────────────────────────────────────────────────────────

class TextRequest(BaseModel):
    text: Optional[str] = None


class QuizRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    topic: str
    grade: str = "10"
    subject: str = "General"
    question_type: str = Field(default="MCQ", alias="questionType")
    bloom_level: str = Field(default="Understand", alias="bloomLevel")
    count: int = 5


class AssignmentRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    topic: str
    grade: str = "10"
    subject: str = "General"
    assignment_type: str = Field(default="Homework", alias="assignmentType")
    difficulty: str = "Medium"
    count: str = "5"


class QuestionPaperRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    subject: str
    grade: str = "10"
    marks: int = 50
    difficulty: str = "Medium"
    exam_type: str = Field(default="Unit Test", alias="examType")
    syllabus: str = ""


class MaterialRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    topic: str
    material_type: str = Field(default="Notes", alias="materialType")
    grade: str = ""
    subject: str = ""


class DataAnalysisRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    csv_data: Optional[str] = Field(default=None, alias="csvData")
    analysis_type: str = Field(default="summary", alias="analysisType")


# ─── Dependencies ──────────────────────────────────────────────────────────────

def get_settings(request: Request) -> AppSettings:
    return request.app.state.settings


def get_provider(request: Request) -> LLMProvider:
    state = request.app.state
    if state.provider is None:
        state.provider = LLMProvider(ProviderConfig.from_env())
    return state.provider


def get_pipeline(request: Request) -> AnalysisPipeline:
    state = request.app.state
    if state.pipeline is None:
        state.pipeline = build_pipeline(settings=PipelineSettings.from_env())
    return state.pipeline


def get_extractor() -> Callable[[Path], str]:
    return extract_text


def get_generator(provider: LLMProvider = Depends(get_provider)) -> ContentGenerator:
    return ContentGenerator(provider)


def get_lesson_service(
    request: Request, generator: ContentGenerator = Depends(get_generator)
) -> LessonService:
    return LessonService(request.app.state.store, generator)


def require_teacher(x_teacher_id: Optional[str] = Header(default=None)) -> str:
    if not x_teacher_id:
        raise UnauthorizedError("Unauthorized: No user session found.")
    return x_teacher_id


def optional_teacher(x_teacher_id: Optional[str] = Header(default=None)) -> Optional[str]:
    return x_teacher_id or None


def require_text(body: TextRequest) -> str:
    if not body.text:
        raise InputError("No text provided")
    return body.text


# ─── Upload handling ───────────────────────────────────────────────────────────

async def save_upload_file_tmp(upload_file: UploadFile, max_size: int) -> Path:
    """
    Stream an upload into a temp file, enforcing the size limit.

    Returns:
        Path of the temp file; the caller owns it

    Raises:
        InputError: If the file exceeds ``max_size`` (413)
    """
    suffix = Path(upload_file.filename or "").suffix or ".pdf"
    tmp = tempfile.NamedTemporaryFile(delete=False, suffix=suffix, prefix="upload_")
    tmp_path = Path(tmp.name)
    file_size = 0
    try:
        with tmp:
            while True:
                chunk = await upload_file.read(UPLOAD_READ_SIZE)
                if not chunk:
                    break
                file_size += len(chunk)
                if file_size > max_size:
                    raise InputError(
                        f"File too large: max {max_size // 1048576}MB",
                        status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
                    )
                tmp.write(chunk)
    except BaseException:
        tmp_path.unlink(missing_ok=True)
        raise

    logger.info("Saved upload %s (%d bytes) to %s", upload_file.filename, file_size, tmp_path.name)
    return tmp_path


# ─── Routers ───────────────────────────────────────────────────────────────────

analysis_router = APIRouter(prefix="/api/analysis", tags=["analysis"])
lessons_router = APIRouter(prefix="/api/lessons", tags=["lessons"])
generate_router = APIRouter(prefix="/api/generate", tags=["generate"])


@analysis_router.post("/pdf")
async def handle_pdf_analysis(
    request: Request,
    file: Optional[UploadFile] = File(default=None),
    pipeline: AnalysisPipeline = Depends(get_pipeline),
    settings: AppSettings = Depends(get_settings),
) -> Dict[str, Any]:
    """
    Analyze an uploaded PDF into a study guide.

    The upload is saved to a temp file which the pipeline deletes when done.
    """
    if file is None:
        raise InputError("No PDF file uploaded")

    logger.info("[PDF Analysis] Started for: %s", file.filename)
    document = await save_upload_file_tmp(file, settings.max_upload_size)

    try:
        analysis = await pipeline.analyze(document, is_cancelled=request.is_disconnected)
    except ServiceError:
        raise
    except Exception as e:
        logger.exception("[PDF Analysis] Unexpected failure for %s", file.filename)
        raise AnalysisError(f"Failed to analyze PDF: {e}") from e

    return {
        "success": True,
        "summary": analysis.summary or SUMMARY_FAILED,
        "key_points": analysis.key_points,
        "quiz": [item.model_dump() for item in analysis.quiz],
        "is_partial": analysis.is_partial,
    }


@lessons_router.post("", status_code=status.HTTP_201_CREATED)
async def create_lesson(
    payload: LessonRequest,
    teacher_id: str = Depends(require_teacher),
    service: LessonService = Depends(get_lesson_service),
) -> Dict[str, Any]:
    return await service.create_lesson(teacher_id, payload)


@lessons_router.get("")
def list_lessons(
    lesson_type: Optional[str] = Query(default=None, alias="type"),
    limit: int = 50,
    teacher_id: str = Depends(require_teacher),
    service: LessonService = Depends(get_lesson_service),
) -> List[Dict[str, Any]]:
    return service.list_lessons(teacher_id, lesson_type=lesson_type, limit=limit)


@lessons_router.post("/summarize")
async def summarize_lesson(
    text: str = Depends(require_text),
    generator: ContentGenerator = Depends(get_generator),
) -> Dict[str, Any]:
    return await generator.summarize_content(text)


@lessons_router.post("/summarize-pdf")
async def summarize_lesson_pdf(
    file: Optional[UploadFile] = File(default=None),
    extractor: Callable[[Path], str] = Depends(get_extractor),
    generator: ContentGenerator = Depends(get_generator),
    settings: AppSettings = Depends(get_settings),
) -> Dict[str, Any]:
    """
    Summarize the text of an uploaded PDF.

    Scanned pages are handled by the extractor's OCR fallback. The upload
    is deleted whatever the outcome.
    """
    if file is None:
        raise InputError("No PDF file uploaded")

    logger.info("[PDF Summary] Processing: %s", file.filename)
    document = await save_upload_file_tmp(file, settings.max_upload_size)

    try:
        try:
            text = await asyncio.to_thread(extractor, document)
        except ExtractionError:
            logger.exception("[PDF Summary] Extraction failed for %s", file.filename)
            raise
        except Exception as e:
            logger.exception("[PDF Summary] Extraction failed for %s", file.filename)
            raise ExtractionError(f"Text extraction failed: {e}") from e

        text = normalize_text(text or "")
        if len(text) < SUMMARY_MIN_TEXT_CHARS:
            raise EmptyDocumentError(EMPTY_DOCUMENT_MESSAGE)

        logger.info("[PDF Summary] Summarizing %d characters", len(text))
        return await generator.summarize_content(text)
    finally:
        release_document(document)


@lessons_router.post("/vocabulary")
async def extract_vocabulary(
    text: str = Depends(require_text),
    generator: ContentGenerator = Depends(get_generator),
) -> Dict[str, Any]:
    return await generator.extract_vocabulary(text)


@lessons_router.post("/mini-quiz")
async def generate_mini_quiz(
    text: str = Depends(require_text),
    generator: ContentGenerator = Depends(get_generator),
) -> Dict[str, Any]:
    return await generator.generate_mini_quiz(text)


@lessons_router.get("/{lesson_id}")
def get_lesson(
    lesson_id: str,
    teacher_id: str = Depends(require_teacher),
    service: LessonService = Depends(get_lesson_service),
) -> Dict[str, Any]:
    return service.get_lesson(teacher_id, lesson_id)


@lessons_router.patch("/{lesson_id}")
def update_lesson(
    lesson_id: str,
    changes: Dict[str, Any],
    teacher_id: str = Depends(require_teacher),
    service: LessonService = Depends(get_lesson_service),
) -> Dict[str, Any]:
    return service.update_lesson(teacher_id, lesson_id, changes)


@lessons_router.delete("/{lesson_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_lesson(
    lesson_id: str,
    teacher_id: str = Depends(require_teacher),
    service: LessonService = Depends(get_lesson_service),
) -> Response:
    service.delete_lesson(teacher_id, lesson_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@generate_router.post("/presentation")
async def generate_presentation(
    payload: PresentationRequest,
    teacher_id: Optional[str] = Depends(optional_teacher),
    service: LessonService = Depends(get_lesson_service),
) -> List[Dict[str, Any]]:
    return await service.create_presentation(teacher_id, payload)


@generate_router.post("/quiz")
async def generate_quiz(
    payload: QuizRequest, generator: ContentGenerator = Depends(get_generator)
) -> Dict[str, Any]:
    return await generator.generate_quiz(
        payload.topic,
        payload.grade,
        payload.subject,
        payload.question_type,
        payload.bloom_level,
        payload.count,
    )


@generate_router.post("/assignment")
async def generate_assignment(
    payload: AssignmentRequest, generator: ContentGenerator = Depends(get_generator)
) -> Dict[str, Any]:
    return await generator.generate_assignment(
        payload.topic,
        payload.grade,
        payload.subject,
        payload.assignment_type,
        payload.difficulty,
        payload.count,
    )


@generate_router.post("/question-paper")
async def generate_question_paper(
    payload: QuestionPaperRequest, generator: ContentGenerator = Depends(get_generator)
) -> Dict[str, Any]:
    return await generator.generate_question_paper(
        payload.subject,
        payload.grade,
        payload.marks,
        payload.difficulty,
        payload.exam_type,
        payload.syllabus,
    )


@generate_router.post("/material")
async def generate_material(
    payload: MaterialRequest, generator: ContentGenerator = Depends(get_generator)
) -> Dict[str, Any]:
    return await generator.generate_material(
        payload.topic, payload.material_type, payload.grade, payload.subject
    )


@generate_router.post("/data-analysis")
async def generate_data_analysis(
    payload: DataAnalysisRequest, generator: ContentGenerator = Depends(get_generator)
) -> Dict[str, Any]:
    if not payload.csv_data:
        raise InputError("No data provided")
    return await generator.analyze_data(payload.csv_data, payload.analysis_type)


# ─── App factory ───────────────────────────────────────────────────────────────

def create_app(
    settings: Optional[AppSettings] = None,
    setup_logging: bool = True,
) -> FastAPI:
    """
    Build the FastAPI application.

    Console and file logging are configured unless ``setup_logging`` is
    False, so the uvicorn factory entry point logs like the CLI.

    The provider and pipeline are created on first use so the app starts
    without an API key; tests replace them through ``dependency_overrides``.
    """
    settings = settings or AppSettings.from_env()
    if setup_logging:
        configure_logging(settings.log_dir)

    app = FastAPI(
        title="Classroom AI API",
        description="PDF study-guide analysis, lesson planning and teaching content generation",
        version="1.0.0",
    )
    app.state.settings = settings
    app.state.store = InMemoryDocumentStore()
    app.state.provider = None
    app.state.pipeline = None

    @app.exception_handler(ServiceError)
    async def service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error("%s %s failed (%s): %s", request.method, request.url.path, exc.kind, exc.message)
        body: Dict[str, Any] = {"success": False, "message": exc.message}
        if settings.debug_errors:
            body["debug"] = "".join(traceback.format_exception(exc))
        return JSONResponse(status_code=exc.status_code, content=body)

    app.include_router(analysis_router)
    app.include_router(lessons_router)
    app.include_router(generate_router)

    @app.get("/health")
    def health() -> Dict[str, str]:
        return {"status": "ok"}

    return app

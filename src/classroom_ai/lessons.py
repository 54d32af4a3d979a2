"""
Lesson Plan Service

Creates, lists, updates and deletes a teacher's lesson records, and the
presentation records produced by the slide generator. Lesson creation can
resolve the curriculum taxonomy and generate the plan body with the AI
content generator.
"""

import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
from urllib.parse import quote

from pydantic import BaseModel, ConfigDict, Field

from .errors import InputError, LessonNotFoundError
from .generation import ContentGenerator
from .taxonomy import SUBJECTS, TOPICS, DocumentStore, parse_grade, resolve_taxonomy

logger = logging.getLogger(__name__)

LESSONS = "lessonPlans"
DEFAULT_DURATION = 45
DEFAULT_LIST_LIMIT = 50
YOUTUBE_SEARCH_URL = "https://www.youtube.com/results?search_query={query}"

# Plan fields copied verbatim from a generated plan onto the lesson record
PLAN_TEXT_FIELDS = (
    "explanation", "pedagogy", "inquiryBasedLearning", "motivationalQuote",
    "groupSize", "standardsAlignment", "closure",
)
PLAN_LIST_FIELDS = (
    "questions", "teachingStrategies", "assessmentMethods", "estimatedTime", "materials",
)
PLAN_OBJECT_FIELDS = ("differentiation", "assessment")


class LessonRequest(BaseModel):
    """Lesson creation payload. Accepts the camelCase keys the web client sends."""

    model_config = ConfigDict(populate_by_name=True)

    title: Optional[str] = None
    subject_id: Optional[str] = Field(default=None, alias="subjectId")
    topic_id: Optional[str] = Field(default=None, alias="topicId")
    grade: Optional[str] = None
    objective: Any = None
    duration: Optional[str] = None
    activities: Any = None
    homework: Optional[str] = None
    resources: Any = None
    ai_assist: bool = Field(default=False, alias="aiAssist")
    board: Optional[str] = Field(default=None, alias="curriculum")
    subject: Optional[str] = None
    topic: Optional[str] = None
    pdf_text: Optional[str] = Field(default=None, alias="pdfText")
    unit_details: Optional[str] = Field(default=None, alias="unitDetails")
    num_sessions: Optional[str] = Field(default=None, alias="numSessions")


class PresentationRequest(BaseModel):
    topic: str
    grade: Optional[str] = None
    curriculum: Optional[str] = None
    slides: int = 5
    subject: Optional[str] = None


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _duration(value: Optional[str]) -> int:
    try:
        return int(value) if value else DEFAULT_DURATION
    except ValueError:
        return DEFAULT_DURATION


def video_reference(topic: str, search_query: Optional[str]) -> Dict[str, str]:
    """YouTube search link for the plan, always mentioning the topic."""
    query = search_query or topic
    if topic.lower() not in query.lower():
        query = f"{topic} {query}"
    return {"title": "Search on YouTube", "url": YOUTUBE_SEARCH_URL.format(query=quote(query))}


class LessonService:
    """Lesson and presentation records for one store and generator."""

    def __init__(self, store: DocumentStore, generator: ContentGenerator):
        self.store = store
        self.generator = generator

    async def create_lesson(self, teacher_id: str, payload: LessonRequest) -> Dict[str, Any]:
        """
        Create a lesson record, optionally generating its content.

        Taxonomy is resolved when board, grade, subject and topic are all
        given. A plan is generated when ``ai_assist`` is set or a board and
        grade are given.

        Returns:
            The stored record with its ``id``

        Raises:
            InputError: Generation was requested without a subject/topic name
        """
        subject_id = payload.subject_id
        topic_id = payload.topic_id

        if payload.board and payload.grade and payload.subject and payload.topic:
            refs = resolve_taxonomy(
                self.store, payload.board, payload.grade, payload.subject, payload.topic
            )
            subject_id, topic_id = refs.subject_id, refs.topic_id

        content: Dict[str, Any] = {
            "objective": payload.objective,
            "activities": payload.activities,
            "homework": payload.homework,
            "resources": payload.resources,
        }

        if payload.ai_assist or (payload.board and payload.grade):
            subject_name = payload.subject or self._name_of(SUBJECTS, subject_id)
            topic_name = payload.topic or self._name_of(TOPICS, topic_id)
            if not subject_name or not topic_name:
                raise InputError("Invalid Subject or Topic context")

            logger.info("Generating lesson plan for %s / %s", subject_name, topic_name)
            plan = await self.generator.generate_lesson_plan(
                topic_name,
                payload.grade or "10",
                subject_name,
                pdf_context=payload.pdf_text or "",
                unit_details=payload.unit_details or "",
                duration=payload.duration or str(DEFAULT_DURATION),
                num_sessions=payload.num_sessions or "1",
                curriculum=payload.board or "Standard",
            )
            content = _content_from_plan(plan, topic_name)

        activities = content.get("activities")
        now = _now()
        record = {
            "title": payload.title or f"Lesson: {payload.topic or 'Generated'}",
            "teacherId": teacher_id,
            "subjectId": subject_id or "",
            "topicId": topic_id or "",
            "objective": content.get("objective"),
            "duration": _duration(payload.duration),
            "activities": activities if isinstance(activities, str) else json.dumps(activities),
            "homework": content.get("homework") or "",
            "resources": content.get("resources") or "",
            "referenceUrl": content.get("referenceUrl"),
            "status": "DRAFT",
            "createdAt": now,
            "updatedAt": now,
        }
        for field in PLAN_TEXT_FIELDS:
            record[field] = content.get(field) or ""
        for field in PLAN_LIST_FIELDS:
            record[field] = content.get(field) or []
        for field in PLAN_OBJECT_FIELDS:
            record[field] = content.get(field) or None

        lesson_id = self.store.add(LESSONS, record)
        logger.info("✓ Lesson %s created for teacher %s", lesson_id, teacher_id)
        return {"id": lesson_id, **record}

    def get_lesson(self, teacher_id: str, lesson_id: str) -> Dict[str, Any]:
        """Fetch a lesson with its subject and topic records resolved."""
        record = self.store.get(LESSONS, lesson_id)
        if record is None:
            raise LessonNotFoundError("Lesson not found")
        # reads are not ownership-checked; shared lessons stay readable
        logger.debug("Teacher %s reading lesson %s", teacher_id, lesson_id)

        subject = self._ref(SUBJECTS, record.get("subjectId"))
        topic = self._ref(TOPICS, record.get("topicId"))
        return {"id": lesson_id, **record, "subject": subject, "topic": topic}

    def list_lessons(
        self,
        teacher_id: str,
        lesson_type: Optional[str] = None,
        limit: int = DEFAULT_LIST_LIMIT,
    ) -> List[Dict[str, Any]]:
        """Teacher's lessons, newest first, optionally filtered by type."""
        filters: Dict[str, Any] = {"teacherId": teacher_id}
        if lesson_type:
            filters["type"] = lesson_type

        lessons = [{"id": doc_id, **data} for doc_id, data in self.store.find(LESSONS, **filters)]
        lessons.sort(key=lambda lesson: lesson.get("createdAt") or "", reverse=True)
        return lessons[:limit if limit > 0 else DEFAULT_LIST_LIMIT]

    def update_lesson(
        self, teacher_id: str, lesson_id: str, changes: Dict[str, Any]
    ) -> Dict[str, Any]:
        self._owned(teacher_id, lesson_id)
        # ownership and id are not client-editable
        changes = {k: v for k, v in changes.items() if k not in ("id", "teacherId")}
        self.store.update(LESSONS, lesson_id, {**changes, "updatedAt": _now()})
        logger.info("Lesson %s updated (%d fields)", lesson_id, len(changes))
        return {"id": lesson_id, **changes}

    def delete_lesson(self, teacher_id: str, lesson_id: str) -> None:
        self._owned(teacher_id, lesson_id)
        self.store.delete(LESSONS, lesson_id)
        logger.info("Lesson %s deleted", lesson_id)

    async def create_presentation(
        self, teacher_id: Optional[str], payload: PresentationRequest
    ) -> List[Dict[str, Any]]:
        """
        Generate slides and, for a known teacher, store a PRESENTATION record.

        Returns:
            The generated slide list
        """
        subject_id = ""
        topic_id = ""
        if payload.curriculum and payload.grade and payload.subject:
            refs = resolve_taxonomy(
                self.store, payload.curriculum, payload.grade, payload.subject, payload.topic
            )
            subject_id, topic_id = refs.subject_id, refs.topic_id

        slides = await self.generator.generate_presentation(
            payload.topic,
            payload.grade or "10",
            payload.curriculum or "CBSE",
            payload.slides or 5,
            subject=payload.subject or "General",
        )

        if teacher_id:
            now = _now()
            try:
                grade = parse_grade(payload.grade) if payload.grade else 10
            except InputError:
                grade = 10
            lesson_id = self.store.add(LESSONS, {
                "title": f"{payload.topic} Presentation",
                "content": {"slides": slides},
                "type": "PRESENTATION",
                "teacherId": teacher_id,
                "grade": grade,
                "subjectId": subject_id,
                "topicId": topic_id,
                "status": "DRAFT",
                "createdAt": now,
                "updatedAt": now,
            })
            logger.info("✓ Presentation %s stored (%d slides)", lesson_id, len(slides))
        return slides

    def _owned(self, teacher_id: str, lesson_id: str) -> Dict[str, Any]:
        record = self.store.get(LESSONS, lesson_id)
        if record is None or record.get("teacherId") != teacher_id:
            raise LessonNotFoundError("Lesson not found")
        return record

    def _name_of(self, collection: str, doc_id: Optional[str]) -> Optional[str]:
        if not doc_id:
            return None
        record = self.store.get(collection, doc_id)
        return record.get("name") if record else None

    def _ref(self, collection: str, doc_id: Optional[str]) -> Optional[Dict[str, Any]]:
        if not doc_id:
            return None
        record = self.store.get(collection, doc_id)
        return {"id": doc_id, **record} if record else None


def _content_from_plan(plan: Dict[str, Any], topic: str) -> Dict[str, Any]:
    resources = plan.get("resources")
    content = dict(plan)
    content["activities"] = json.dumps(plan.get("activities"))
    content["resources"] = ", ".join(resources) if isinstance(resources, list) else resources
    content["referenceUrl"] = video_reference(topic, plan.get("videoSearchQuery"))
    return content

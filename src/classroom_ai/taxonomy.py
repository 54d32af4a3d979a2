"""
Document Store and Curriculum Taxonomy

A minimal document-store interface (collections of JSON-like records keyed
by id) plus the resolve-or-create logic for the curriculum -> subject ->
topic hierarchy that lessons and presentations hang off.
"""

import copy
import logging
import uuid
from typing import Any, Dict, List, Optional, Protocol, Tuple

from pydantic import BaseModel

from .errors import InputError

logger = logging.getLogger(__name__)

CURRICULA = "curricula"
SUBJECTS = "subjects"
TOPICS = "topics"


class DocumentStore(Protocol):
    def add(self, collection: str, data: Dict[str, Any]) -> str: ...

    def get(self, collection: str, doc_id: str) -> Optional[Dict[str, Any]]: ...

    def find(self, collection: str, **equals: Any) -> List[Tuple[str, Dict[str, Any]]]: ...

    def update(self, collection: str, doc_id: str, changes: Dict[str, Any]) -> None: ...

    def delete(self, collection: str, doc_id: str) -> None: ...


class InMemoryDocumentStore:
    """Process-local DocumentStore. Records are copied in and out."""

    def __init__(self):
        self._collections: Dict[str, Dict[str, Dict[str, Any]]] = {}

    def add(self, collection: str, data: Dict[str, Any]) -> str:
        doc_id = uuid.uuid4().hex
        self._collections.setdefault(collection, {})[doc_id] = copy.deepcopy(data)
        return doc_id

    def get(self, collection: str, doc_id: str) -> Optional[Dict[str, Any]]:
        record = self._collections.get(collection, {}).get(doc_id)
        return copy.deepcopy(record) if record is not None else None

    def find(self, collection: str, **equals: Any) -> List[Tuple[str, Dict[str, Any]]]:
        matches = []
        for doc_id, record in self._collections.get(collection, {}).items():
            if all(record.get(field) == value for field, value in equals.items()):
                matches.append((doc_id, copy.deepcopy(record)))
        return matches

    def update(self, collection: str, doc_id: str, changes: Dict[str, Any]) -> None:
        records = self._collections.get(collection, {})
        if doc_id not in records:
            raise KeyError(f"{collection}/{doc_id} does not exist")
        records[doc_id].update(copy.deepcopy(changes))

    def delete(self, collection: str, doc_id: str) -> None:
        self._collections.get(collection, {}).pop(doc_id, None)


class TaxonomyRefs(BaseModel):
    curriculum_id: str
    subject_id: str
    topic_id: str


def _resolve(store: DocumentStore, collection: str, data: Dict[str, Any]) -> str:
    existing = store.find(collection, **data)
    if existing:
        return existing[0][0]
    doc_id = store.add(collection, data)
    logger.debug("Created %s record %s: %s", collection, doc_id, data)
    return doc_id


def parse_grade(grade: Any) -> int:
    try:
        return int(str(grade).strip())
    except ValueError as e:
        raise InputError(f"Invalid grade: {grade!r}") from e


def resolve_taxonomy(
    store: DocumentStore,
    board: str,
    grade: Any,
    subject: str,
    topic: str,
) -> TaxonomyRefs:
    """
    Find or create the curriculum, subject and topic records.

    Calling this twice with the same arguments returns the same ids.

    Args:
        store: Document store holding the taxonomy collections
        board: Curriculum board (e.g. "CBSE")
        grade: Grade level; parsed to int
        subject: Subject name, scoped to the curriculum
        topic: Topic name, scoped to the subject

    Raises:
        InputError: If grade is not an integer
    """
    grade_num = parse_grade(grade)
    logger.info(
        "Resolving taxonomy: board=%s, grade=%d, subject=%s, topic=%s",
        board, grade_num, subject, topic,
    )

    curriculum_id = _resolve(store, CURRICULA, {"board": board, "grade": grade_num})
    subject_id = _resolve(store, SUBJECTS, {"name": subject, "curriculumId": curriculum_id})
    topic_id = _resolve(store, TOPICS, {"name": topic, "subjectId": subject_id})

    return TaxonomyRefs(curriculum_id=curriculum_id, subject_id=subject_id, topic_id=topic_id)

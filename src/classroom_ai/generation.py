"""
Teaching Content Generation

Single-prompt generators for the teacher tools: lesson plans, slide decks,
quizzes, study material, assignments, question papers, summaries,
vocabulary lists, mini quizzes and CSV data analysis.

Each generator sends one prompt through the provider, recovers the JSON
object from the reply and returns it as a plain dict. Provider and parse
failures never reach the caller: they are logged and a safe fallback
payload is returned instead, so a teacher always gets a usable (if empty)
document back.
"""

import logging
from typing import Any, Callable, Dict, List
from urllib.parse import quote

from .errors import ParseError, ProviderError
from .json_extract import extract_json_object
from .llm_client import LLMProvider

logger = logging.getLogger(__name__)

EDUCATOR_SYSTEM_PROMPT = (
    "You are a world-class educational consultant. You MUST provide detailed, "
    "professional, and accurate content in strictly valid JSON format ONLY."
)
GENERATION_TEMPERATURE = 0.6
GENERATION_MAX_TOKENS = 4096

# Input clipping
PDF_CONTEXT_CHARS = 3000
SUMMARY_INPUT_CHARS = 8000
VOCABULARY_INPUT_CHARS = 3000
CSV_INPUT_CHARS = 10000

SLIDE_IMAGE_URL = "https://source.unsplash.com/featured/1600x900?{query}"


# ─── Prompts ───────────────────────────────────────────────────────────────────

LESSON_PLAN_PROMPT = """Act as an expert Senior Educator. Generate a professional, highly detailed, and narrative Lesson Plan for "{topic}".

Language Instructions:
{language_instruction}

Details:
- Grade: {grade}, Subject: {subject}
- Board: {curriculum}, Time: {duration} mins, Sessions: {num_sessions}
{unit_line}{reference_line}
Structure Requirements:
- Use a descriptive, encouraging, and step-by-step narrative style.
- 'explanation' must be a multi-paragraph, high-quality guide for the teacher.
- 'activities' should have clear, pedagogical steps.

Return strictly valid JSON:
{{
    "title": "Professional Title",
    "groupSize": "e.g. Groups of 5 students",
    "objective": ["Learning objective 1", "Learning objective 2"],
    "standardsAlignment": "Standards this lesson meets",
    "materials": ["Material 1", "Material 2"],
    "explanation": "A very thorough academic guide for the teacher.",
    "pedagogy": "Introduction/Hook strategy (10-15 mins).",
    "inquiryBasedLearning": "Strategy to encourage critical thinking.",
    "activities": [
        {{"time": "20 mins", "task": "Activity Title", "description": "Step-by-step instructions.", "recap": "Learning summary.", "tip": "Instructional tip."}}
    ],
    "closure": "Closure activity (10 mins) with reflection tasks.",
    "assessment": {{"formative": "Checks DURING the lesson.", "individual": "Evidence of learning AFTER the lesson."}},
    "differentiation": {{"struggling": "Support tasks.", "advanced": "Extension tasks.", "ell": "Vocabulary support."}},
    "homework": "Meaningful follow-up task.",
    "questions": ["Review Q1", "Deep Thinking Q2"],
    "teachingStrategies": ["Active learning technique"],
    "estimatedTime": [{{"section": "Introduction", "time": "15%"}}, {{"section": "Concept", "time": "35%"}}, {{"section": "Practice", "time": "40%"}}, {{"section": "Closure", "time": "10%"}}],
    "videoSearchQuery": "Keywords for educational video",
    "motivationalQuote": "An inspiring quote for this lesson."
}}"""

PRESENTATION_PROMPT = """Generate {slides} PowerPoint slides for {topic}, grade {grade} ({curriculum}).
{language_instruction}
Return JSON: {{ "slides": [{{"slide_number": 1, "title": "", "subtitle": "", "content": [], "activity": "", "image_keyword": "", "layout_type": ""}}] }}"""

QUIZ_PROMPT = """Generate a {count}-question {question_type} quiz on "{topic}" for grade {grade}.
Subject: {subject}, Bloom's Taxonomy Level: {bloom_level}.

{language_instruction}

Return STRICT JSON format:
{{
    "title": "{topic} Quiz",
    "questions": [
        {{
            "id": 1,
            "question": "Clear and concise question text?",
            "options": ["Option A", "Option B", "Option C", "Option D"],
            "correctAnswer": "The exact string from options that is correct",
            "explanation": "Why this answer is correct."
        }}
    ]
}}"""

MATERIAL_PROMPT = """Generate detailed educational material (type: {material_type}) for "{topic}".
Grade: {grade}, Subject: {subject}.

{language_instruction}

Return STRICT JSON format:
{{
    "title": "Comprehensive Topic Title",
    "chapterNumber": 1,
    "intro": "Engaging introduction to the topic.",
    "sections": [{{"heading": "Section Heading", "content": "In-depth explanatory text.", "bulletPoints": ["Key fact 1", "Key fact 2"]}}],
    "learningObjectives": ["What student will learn 1"],
    "illustrationDescription": "Description of a diagram that illustrates this concept.",
    "preparationTips": ["Study tip 1"],
    "reviewQuestions": ["Deep thinking question 1"],
    "footer": "{subject} | Grade {grade} | Standard Curriculum"
}}"""

ASSIGNMENT_PROMPT = """Generate a high-quality assignment on "{topic}" for grade {grade}.
Type: {assignment_type}, Difficulty: {difficulty}, Target Question Count: {count}.

{language_instruction}

Return STRICT JSON format:
{{
    "title": "{title}",
    "assignmentQuestions": ["Question 1"],
    "fillInTheBlanks": ["Statement with ____"],
    "activityQuestions": ["Task 1"],
    "projectIdeas": ["Idea 1"],
    "answers": {{"assignmentQuestions": ["Answer 1"], "fillInTheBlanks": ["Word 1"], "activityQuestions": ["Guide 1"]}}
}}"""

QUESTION_PAPER_PROMPT = """Generate a {marks}-marks {exam_type} question paper for {subject}, grade {grade}.
Difficulty: {difficulty}. Syllabus Details: {syllabus}.

{language_instruction}

Return STRICT JSON format:
{{
    "title": "{title}",
    "totalMarks": {marks},
    "sections": [
        {{"name": "{section}", "questions": [{{"text": "Question text?", "marks": 1, "type": "MCQ", "options": ["Option 1", "Option 2", "Option 3", "Option 4"]}}]}}
    ],
    "answerKey": {{"{section}": ["Correct Answers"]}}
}}"""

SUMMARY_PROMPT = """Summarize the following educational content: {content}
Return STRICT JSON format:
{{
    "overview": "High-level summary",
    "keyPoints": ["Core concept 1", "Core concept 2"],
    "actionItems": ["Suggested activity for students", "Discussion point"]
}}"""

VOCABULARY_PROMPT = """Extract difficult vocabulary from: {text}
Return JSON: {{ "vocabulary": [{{"word": "", "definition": "", "example": ""}}] }}"""

MINI_QUIZ_PROMPT = """Generate a 3-question mini-quiz based on the following text: {text}
Return JSON: {{ "questions": [{{"id": 1, "question": "", "options": [], "correctAnswer": ""}}] }}"""

DATA_ANALYSIS_PROMPT = """Analyze this CSV data ({analysis_type}): {csv_data}
Return detailed JSON analysis."""


# ─── Language handling ─────────────────────────────────────────────────────────

def is_urdu(subject: str, topic: str = "") -> bool:
    subject, topic = subject.lower(), topic.lower()
    return "urdu" in subject or "mazmoon" in topic or "navesi" in topic


def is_hindi(subject: str) -> bool:
    subject = subject.lower()
    return "hindi" in subject or "sanskrit" in subject


def language_instruction(subject: str, topic: str = "") -> str:
    """Script instruction for the prompt, based on the subject/topic language."""
    if is_urdu(subject, topic):
        return (
            "MANDATORY: Since this is an Urdu topic/subject, generate ALL content "
            "(title, objective, explanation, activities, etc.) in URDU SCRIPT (Perso-Arabic)."
        )
    if is_hindi(subject):
        return (
            "MANDATORY: Since this is a Hindi topic/subject, generate ALL content "
            "in HINDI (Devanagari script)."
        )
    return (
        "- If the subject is a language (Urdu, Hindi, Arabic, etc.), use that language's script.\n"
        "- Otherwise, use ENGLISH."
    )


# ─── Generator ─────────────────────────────────────────────────────────────────

class ContentGenerator:
    """Teacher-facing content generation over an injected provider."""

    def __init__(self, provider: LLMProvider):
        self.provider = provider

    async def _generate(
        self,
        what: str,
        prompt: str,
        fallback: Callable[[], Dict[str, Any]],
    ) -> Dict[str, Any]:
        try:
            raw = await self.provider.complete(
                prompt,
                system=EDUCATOR_SYSTEM_PROMPT,
                temperature=GENERATION_TEMPERATURE,
                max_tokens=GENERATION_MAX_TOKENS,
            )
            data = extract_json_object(raw)
        except (ProviderError, ParseError) as e:
            logger.error("%s generation failed, returning fallback: %s", what, e)
            return fallback()

        logger.info("✓ Generated %s", what)
        return data

    async def generate_lesson_plan(
        self,
        topic: str,
        grade: str,
        subject: str,
        pdf_context: str = "",
        unit_details: str = "",
        duration: str = "45",
        num_sessions: str = "1",
        curriculum: str = "Standard",
    ) -> Dict[str, Any]:
        prompt = LESSON_PLAN_PROMPT.format(
            topic=topic,
            language_instruction=language_instruction(subject, topic),
            grade=grade,
            subject=subject,
            curriculum=curriculum,
            duration=duration,
            num_sessions=num_sessions,
            unit_line=f"- Unit Context: {unit_details}\n" if unit_details else "",
            reference_line=(
                f"- Reference Content: {pdf_context[:PDF_CONTEXT_CHARS]}\n" if pdf_context else ""
            ),
        )
        return await self._generate(
            "lesson plan", prompt, lambda: simulated_lesson(topic)
        )

    async def generate_presentation(
        self,
        topic: str,
        grade: str,
        curriculum: str,
        slides: int,
        subject: str = "General",
    ) -> List[Dict[str, Any]]:
        prompt = PRESENTATION_PROMPT.format(
            slides=slides,
            topic=topic,
            grade=grade,
            curriculum=curriculum,
            language_instruction=(
                "MANDATORY: Return content (titles, text, activities) in URDU SCRIPT."
                if is_urdu(subject) else ""
            ),
        )
        data = await self._generate("presentation", prompt, lambda: {"slides": None})
        ai_slides = data.get("slides")
        if not isinstance(ai_slides, list):
            return simulated_slides(slides)

        deck = []
        for slide in ai_slides:
            if not isinstance(slide, dict):
                continue
            keyword = slide.get("image_keyword") or topic
            deck.append({**slide, "image_url": SLIDE_IMAGE_URL.format(query=quote(keyword))})
        return deck

    async def generate_quiz(
        self,
        topic: str,
        grade: str,
        subject: str,
        question_type: str,
        bloom_level: str,
        count: int = 5,
    ) -> Dict[str, Any]:
        prompt = QUIZ_PROMPT.format(
            count=count,
            question_type=question_type,
            topic=topic,
            grade=grade,
            subject=subject,
            bloom_level=bloom_level,
            language_instruction=language_instruction(subject),
        )
        return await self._generate(
            "quiz", prompt, lambda: {"title": topic, "questions": []}
        )

    async def generate_material(
        self,
        topic: str,
        material_type: str,
        grade: str = "",
        subject: str = "",
    ) -> Dict[str, Any]:
        prompt = MATERIAL_PROMPT.format(
            material_type=material_type,
            topic=topic,
            grade=grade or "General",
            subject=subject or "General",
            language_instruction=language_instruction(subject),
        )
        return await self._generate(
            "material",
            prompt,
            lambda: {
                "title": topic,
                "intro": "Material generation failed. Please try again.",
                "sections": [],
            },
        )

    async def generate_assignment(
        self,
        topic: str,
        grade: str,
        subject: str,
        assignment_type: str,
        difficulty: str,
        count: str,
    ) -> Dict[str, Any]:
        prompt = ASSIGNMENT_PROMPT.format(
            topic=topic,
            grade=grade,
            assignment_type=assignment_type,
            difficulty=difficulty,
            count=count,
            title="تفویض" if is_urdu(subject) else f"{topic} Assignment",
            language_instruction=language_instruction(subject),
        )
        return await self._generate(
            "assignment",
            prompt,
            lambda: {
                "title": topic,
                "assignmentQuestions": [],
                "fillInTheBlanks": [],
                "projectIdeas": [],
            },
        )

    async def generate_question_paper(
        self,
        subject: str,
        grade: str,
        marks: int,
        difficulty: str,
        exam_type: str,
        syllabus: str,
    ) -> Dict[str, Any]:
        urdu = is_urdu(subject)
        prompt = QUESTION_PAPER_PROMPT.format(
            marks=marks,
            exam_type=exam_type,
            subject=subject,
            grade=grade,
            difficulty=difficulty,
            syllabus=syllabus,
            title="پرچہ" if urdu else f"{exam_type} - {subject}",
            section="حصہ اول" if urdu else "Section A",
            language_instruction=language_instruction(subject),
        )
        return await self._generate(
            "question paper",
            prompt,
            lambda: {"title": exam_type, "totalMarks": marks, "sections": []},
        )

    async def summarize_content(self, content: str) -> Dict[str, Any]:
        prompt = SUMMARY_PROMPT.format(content=content[:SUMMARY_INPUT_CHARS])
        return await self._generate(
            "summary",
            prompt,
            lambda: {"overview": "Summary failed", "keyPoints": [], "actionItems": []},
        )

    async def extract_vocabulary(self, text: str) -> Dict[str, Any]:
        prompt = VOCABULARY_PROMPT.format(text=text[:VOCABULARY_INPUT_CHARS])
        return await self._generate("vocabulary", prompt, lambda: {"vocabulary": []})

    async def generate_mini_quiz(self, text: str) -> Dict[str, Any]:
        prompt = MINI_QUIZ_PROMPT.format(text=text[:VOCABULARY_INPUT_CHARS])
        return await self._generate("mini quiz", prompt, lambda: {"questions": []})

    async def analyze_data(self, csv_data: str, analysis_type: str) -> Dict[str, Any]:
        prompt = DATA_ANALYSIS_PROMPT.format(
            analysis_type=analysis_type,
            csv_data=csv_data[:CSV_INPUT_CHARS],
        )
        return await self._generate(
            "data analysis",
            prompt,
            lambda: {"success": False, "message": "Analysis failed"},
        )


def simulated_lesson(topic: str) -> Dict[str, Any]:
    """Placeholder lesson returned when generation fails."""
    return {
        "title": topic,
        "objective": ["Objective placeholder"],
        "materials": ["Material placeholder"],
        "explanation": "Simulated content due to technical error.",
        "pedagogy": "",
        "activities": [],
        "homework": "",
        "questions": [],
        "estimatedTime": [
            {"section": "Introduction", "time": "10m"},
            {"section": "Core", "time": "30m"},
        ],
    }


def simulated_slides(num_slides: int) -> List[Dict[str, Any]]:
    return [
        {"slide_number": i + 1, "title": "Slide", "content": []}
        for i in range(num_slides)
    ]

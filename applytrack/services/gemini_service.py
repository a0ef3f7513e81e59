"""
AI writing tools backed by the Google Gemini API.

JSON-shaped answers come back as either a ``ParsedResult`` (the model returned
valid JSON of the expected shape) or a ``FallbackResult`` (canned structure
plus the raw model text), so degraded output is never mistaken for a real
answer.
"""
import json
import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Type, Union

import google.generativeai as genai
from pydantic import BaseModel, ValidationError

from .. import schemas
from ..config.settings import get_settings

logger = logging.getLogger(__name__)

_configured_key: Optional[str] = None

_FENCE_RE = re.compile(r"```(?:json)?\s*", re.IGNORECASE)


@dataclass
class ParsedResult:
    data: Dict[str, Any]
    is_fallback: bool = field(default=False, init=False)


@dataclass
class FallbackResult:
    data: Dict[str, Any]
    raw_text: str = ""
    is_fallback: bool = field(default=True, init=False)


GenerationResult = Union[ParsedResult, FallbackResult]


def _get_model():
    global _configured_key
    settings = get_settings()
    if not settings.gemini_api_key:
        raise RuntimeError("GEMINI_API_KEY is not configured")
    if _configured_key != settings.gemini_api_key:
        genai.configure(api_key=settings.gemini_api_key)
        _configured_key = settings.gemini_api_key
    return genai.GenerativeModel(model_name=settings.gemini_model)


def _generate_text(prompt: str) -> str:
    response = _get_model().generate_content(prompt)
    return response.text


def strip_code_fences(text: str) -> str:
    return _FENCE_RE.sub("", text or "").strip()


def parse_json_payload(text: str, schema: Type[BaseModel], fallback: Dict[str, Any]) -> GenerationResult:
    """Parse model output, degrading to ``fallback`` when it is not the JSON we asked for."""
    cleaned = strip_code_fences(text)
    try:
        payload = json.loads(cleaned)
    except (json.JSONDecodeError, TypeError):
        logger.warning("Model returned non-JSON output; using fallback")
        return FallbackResult(data=fallback, raw_text=cleaned)

    if not isinstance(payload, dict):
        logger.warning("Model returned JSON that is not an object; using fallback")
        return FallbackResult(data=fallback, raw_text=cleaned)
    try:
        parsed = schema.model_validate(payload)
    except ValidationError as e:
        logger.warning("Model JSON does not match %s: %s", schema.__name__, e.errors())
        return FallbackResult(data=fallback, raw_text=cleaned)
    return ParsedResult(data=parsed.model_dump())


def generate_cover_letter(job_title: str, company_name: str, job_description: Optional[str] = None,
                          resume_text: Optional[str] = None, tone: str = "professional") -> str:
    prompt = f"""Write a {tone} cover letter for a {job_title} position at {company_name}.

Job Description:
{job_description or 'Not provided'}

Candidate's Resume/Background:
{resume_text or 'Not provided'}

Requirements:
- Write a compelling, personalized cover letter
- Highlight relevant skills and experience
- Keep it to 3-4 paragraphs
- Include a strong opening and closing
- Be specific about why the candidate is a good fit
- Do not include placeholder brackets like [Your Name]"""

    return _generate_text(prompt).strip()


def match_resume(job_description: str, resume_text: str) -> GenerationResult:
    prompt = f"""Analyze how well this resume matches the job description. Provide:
1. A match score from 0-100
2. Key matching skills/qualifications
3. Missing skills or gaps
4. Recommendations to improve the application

Job Description:
{job_description}

Resume:
{resume_text}

Respond in this exact JSON format:
{{
    "match_score": <number>,
    "matching_skills": ["skill1", "skill2"],
    "missing_skills": ["skill1", "skill2"],
    "recommendations": ["rec1", "rec2"],
    "summary": "<brief summary>"
}}"""

    text = _generate_text(prompt)
    cleaned = strip_code_fences(text)
    fallback = {
        "match_score": 70,
        "summary": cleaned,
        "matching_skills": [],
        "missing_skills": [],
        "recommendations": [],
    }
    return parse_json_payload(text, schemas.MatchResumeResponse, fallback)


def interview_questions(job_title: str, company_name: Optional[str] = None,
                        job_description: Optional[str] = None,
                        experience_level: str = "Mid-Level") -> GenerationResult:
    at_company = f" at {company_name}" if company_name else ""
    prompt = f"""Generate interview preparation questions for a {experience_level} {job_title} position{at_company}.

Job Description:
{job_description or 'General ' + job_title + ' position'}

Provide 10-15 questions in these categories:
1. Technical/Role-Specific Questions (5-6 questions)
2. Behavioral Questions (3-4 questions)
3. Questions to Ask the Interviewer (3-4 questions)

For each question, include a brief tip on how to answer it.

Respond in this exact JSON format:
{{
    "technical": [{{"question": "...", "tip": "..."}}],
    "behavioral": [{{"question": "...", "tip": "..."}}],
    "ask_interviewer": [{{"question": "...", "tip": "..."}}]
}}"""

    fallback = {
        "technical": [{
            "question": f"Tell me about your experience as a {job_title}",
            "tip": "Focus on relevant achievements",
        }],
        "behavioral": [{
            "question": "Describe a challenging project you worked on",
            "tip": "Use the STAR method",
        }],
        "ask_interviewer": [{
            "question": "What does success look like in this role?",
            "tip": "Shows you care about performing well",
        }],
    }
    return parse_json_payload(_generate_text(prompt), schemas.InterviewQuestionsResponse, fallback)

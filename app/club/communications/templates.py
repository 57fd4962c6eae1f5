"""
Communication template generator (Gemini API)

Drafts an email subject and body from a short brief written by the club.
"""
import json
import re
from typing import Optional

import httpx
from loguru import logger

from app.auth.config import get_auth_settings
from ..errors import ClubError
from .models import PAYMENT_LINK_PLACEHOLDER, TemplateRequest, TemplateResponse


class TemplateGenerationError(ClubError):
    status_code = 502
    default_key = "mail.template_failed"


PROMPT = """You write emails for a sports club. Draft one email in Spanish.

Goal: {goal}
Audience: {audience}
Key information: {key_information}
Tone: {tone}
{extra}
Rules:
- Address the reader with the placeholder [Nombre del Miembro].
- Use short paragraphs separated by blank lines.
{payment_rule}
Answer only with JSON: {{"subject": "...", "body": "..."}}
"""


class TemplateGenerator:
    """Gemini-backed template generator"""

    def __init__(self, api_key: Optional[str] = None, model: Optional[str] = None):
        settings = get_auth_settings()
        self.api_key = api_key if api_key is not None else settings.GEMINI_API_KEY
        self.model = model or settings.GEMINI_MODEL
        self.base_url = settings.GEMINI_BASE_URL

    def build_prompt(self, request: TemplateRequest) -> str:
        extra = ""
        if request.additional_context:
            extra += f"Additional context: {request.additional_context}\n"
        payment_rule = ""
        if request.payment_info:
            extra += f"Payment details: {request.payment_info}\n"
            payment_rule = f"- Include the placeholder {PAYMENT_LINK_PLACEHOLDER} where the payment link goes."
        return PROMPT.format(
            goal=request.communication_goal,
            audience=request.target_audience,
            key_information=request.key_information,
            tone=request.tone or "cercano y profesional",
            extra=extra,
            payment_rule=payment_rule,
        )

    async def generate(self, request: TemplateRequest) -> TemplateResponse:
        if not self.api_key:
            raise TemplateGenerationError("mail.template_not_configured")

        url = f"{self.base_url}/models/{self.model}:generateContent"
        payload = {
            "contents": [{"parts": [{"text": self.build_prompt(request)}]}],
            "generationConfig": {
                "temperature": 0.7,
                "maxOutputTokens": 1024,
            }
        }

        try:
            async with httpx.AsyncClient(timeout=30.0) as client:
                response = await client.post(url, json=payload, params={"key": self.api_key})
        except httpx.HTTPError as e:
            logger.error(f"Gemini request failed: {e}")
            raise TemplateGenerationError("mail.template_failed", error=str(e))

        if response.status_code != 200:
            logger.error(f"Gemini API error: {response.status_code} - {response.text}")
            raise TemplateGenerationError("mail.template_failed", error=f"HTTP {response.status_code}")

        data = response.json()
        try:
            text_response = data["candidates"][0]["content"]["parts"][0]["text"]
        except (KeyError, IndexError) as e:
            logger.error(f"Gemini response format error: {e}, response: {data}")
            raise TemplateGenerationError("mail.template_failed", error="unexpected response")

        template = self.parse_response(text_response)
        if request.payment_info and PAYMENT_LINK_PLACEHOLDER not in template.body:
            template.body = f"{template.body}\n\n{PAYMENT_LINK_PLACEHOLDER}"
        return template

    def parse_response(self, text: str) -> TemplateResponse:
        """Parse the JSON answer, with or without a markdown code fence"""
        json_match = re.search(r'```(?:json)?\s*([\s\S]*?)```', text)
        json_str = json_match.group(1).strip() if json_match else text.strip()

        try:
            data = json.loads(json_str)
        except json.JSONDecodeError as e:
            logger.error(f"JSON parse error: {e}, raw: {text[:500]}")
            raise TemplateGenerationError("mail.template_failed", error="invalid JSON")

        if not isinstance(data, dict):
            raise TemplateGenerationError("mail.template_failed", error="expected a JSON object")
        if not data.get("subject") or not data.get("body"):
            raise TemplateGenerationError("mail.template_failed", error="missing subject or body")
        return TemplateResponse(subject=data["subject"], body=data["body"])


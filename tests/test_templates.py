"""
Template Generator Tests (Gemini API mocked)
"""
import json
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from app.club.communications.models import PAYMENT_LINK_PLACEHOLDER, TemplateRequest
from app.club.communications.templates import TemplateGenerationError, TemplateGenerator


def _request(**kwargs):
    data = {
        "communication_goal": "Recordar la cuota",
        "target_audience": "Familias",
        "key_information": "Vence el día 5",
    }
    data.update(kwargs)
    return TemplateRequest(**data)


def _gemini_response(text: str, status_code: int = 200):
    response = MagicMock()
    response.status_code = status_code
    response.text = text
    response.json.return_value = {"candidates": [{"content": {"parts": [{"text": text}]}}]}
    return response


def _patched_client(response):
    mock_client = AsyncMock()
    mock_client.post.return_value = response
    mock_client.__aenter__.return_value = mock_client
    mock_client.__aexit__.return_value = None
    return patch("app.club.communications.templates.httpx.AsyncClient", return_value=mock_client)


class TestParseResponse:
    """parse_response"""

    def test_plain_json(self):
        generator = TemplateGenerator(api_key="k")
        template = generator.parse_response('{"subject": "Cuota", "body": "Hola [Nombre del Miembro]"}')
        assert template.subject == "Cuota"

    def test_code_fence(self):
        generator = TemplateGenerator(api_key="k")
        text = '```json\n{"subject": "Cuota", "body": "Texto"}\n```'
        assert generator.parse_response(text).body == "Texto"

    def test_invalid_json(self):
        generator = TemplateGenerator(api_key="k")
        with pytest.raises(TemplateGenerationError):
            generator.parse_response("no es json")

    def test_missing_body(self):
        generator = TemplateGenerator(api_key="k")
        with pytest.raises(TemplateGenerationError):
            generator.parse_response('{"subject": "Cuota"}')

    @pytest.mark.parametrize("text", ['["Cuota", "Hola"]', '"Cuota"', "42"])
    def test_json_not_an_object(self, text):
        generator = TemplateGenerator(api_key="k")
        with pytest.raises(TemplateGenerationError) as exc:
            generator.parse_response(text)
        assert exc.value.params["error"] == "expected a JSON object"


class TestPrompt:

    def test_payment_rule_only_with_payment_info(self):
        generator = TemplateGenerator(api_key="k")
        assert PAYMENT_LINK_PLACEHOLDER not in generator.build_prompt(_request())
        assert PAYMENT_LINK_PLACEHOLDER in generator.build_prompt(_request(payment_info="35€"))


@pytest.mark.asyncio
class TestGenerate:

    async def test_not_configured(self):
        with pytest.raises(TemplateGenerationError) as exc:
            await TemplateGenerator(api_key="").generate(_request())
        assert exc.value.key == "mail.template_not_configured"

    async def test_generate(self):
        text = json.dumps({"subject": "Cuota de octubre", "body": "Hola [Nombre del Miembro]"})
        with _patched_client(_gemini_response(text)):
            template = await TemplateGenerator(api_key="k").generate(_request())
        assert template.subject == "Cuota de octubre"

    async def test_payment_placeholder_appended(self):
        """The payment link placeholder is added when the model leaves it out"""
        text = json.dumps({"subject": "Cuota", "body": "Hola"})
        with _patched_client(_gemini_response(text)):
            template = await TemplateGenerator(api_key="k").generate(_request(payment_info="35€"))
        assert template.body.endswith(PAYMENT_LINK_PLACEHOLDER)

    async def test_api_error(self):
        with _patched_client(_gemini_response("quota", status_code=429)):
            with pytest.raises(TemplateGenerationError):
                await TemplateGenerator(api_key="k").generate(_request())

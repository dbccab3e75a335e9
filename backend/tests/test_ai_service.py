"""
AI provider client tests (httpx MockTransport, no network).
"""

import json

import httpx
import pytest

from storefront.models import Product
from storefront.services import products_service
from storefront.services.ai_service import AIClient, AIServiceError, embedding_text


def make_client(handler):
    return AIClient(
        api_key="sk-test",
        base_url="https://ai.example.com/v1/",
        embedding_model="embed-small",
        vision_model="vision-large",
        transport=httpx.MockTransport(handler),
    )


class TestAIClient:

    def test_embed(self):
        seen = {}

        def handler(request):
            seen["url"] = str(request.url)
            seen["auth"] = request.headers["Authorization"]
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={"data": [{"embedding": [0.1, 2, -3]}]})

        vector = make_client(handler).embed("leather case")

        assert vector == [0.1, 2.0, -3.0]
        assert seen["url"] == "https://ai.example.com/v1/embeddings"
        assert seen["auth"] == "Bearer sk-test"
        assert seen["body"] == {"model": "embed-small", "input": "leather case"}

    def test_describe_image(self):
        seen = {}

        def handler(request):
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={"choices": [{"message": {"content": "  Sturdy case.  "}}]})

        text = make_client(handler).describe_image("https://cdn.example.com/case.jpg")

        assert text == "Sturdy case."
        content = seen["body"]["messages"][0]["content"]
        assert content[1] == {"type": "image_url", "image_url": {"url": "https://cdn.example.com/case.jpg"}}
        assert seen["body"]["model"] == "vision-large"
        assert seen["body"]["max_tokens"] == 500

    def test_http_error(self):
        client = make_client(lambda request: httpx.Response(429, json={"error": "slow down"}))
        with pytest.raises(AIServiceError, match="HTTP 429"):
            client.embed("x")

    def test_transport_error(self):
        def handler(request):
            raise httpx.ConnectError("unreachable", request=request)

        with pytest.raises(AIServiceError, match="request failed"):
            make_client(handler).embed("x")

    @pytest.mark.parametrize(
        "body",
        [
            {"choices": []},
            {"choices": [{"message": {"content": "   "}}]},
            {"unexpected": True},
        ],
    )
    def test_unusable_description(self, body):
        client = make_client(lambda request: httpx.Response(200, json=body))
        with pytest.raises(AIServiceError):
            client.describe_image("https://cdn.example.com/case.jpg")

    def test_from_config_without_key(self):
        assert AIClient.from_config({"OPENAI_API_KEY": None}) is None

    def test_from_config(self):
        client = AIClient.from_config({"OPENAI_API_KEY": "sk", "EMBEDDING_MODEL": "e", "VISION_MODEL": "v"})
        assert client.embedding_model == "e"
        assert client.base_url == "https://api.openai.com/v1"

    def test_embedding_text(self):
        assert embedding_text("Case", None) == "Case"
        assert embedding_text(None, None) == ""


class FlakyEmbedder:
    def __init__(self, failing_text):
        self.failing_text = failing_text

    def embed(self, text):
        if text.startswith(self.failing_text):
            raise AIServiceError("provider down")
        return [1.0, 0.0]


class TestUpdateEmbeddings:

    def test_unconfigured_provider(self, db_session):
        with pytest.raises(AIServiceError, match="not configured"):
            products_service.update_embeddings()

    def test_failures_keep_other_vectors(self, db_session, catalog, monkeypatch):
        monkeypatch.setattr(products_service, "get_ai_client", lambda: FlakyEmbedder("Fast Charger"))

        result = products_service.update_embeddings()

        charger = catalog["products"]["charger"]
        assert result == {"updated": 2, "failed": [charger.id]}
        db_session.expire_all()
        embedded = {p.name for p in db_session.query(Product).all() if p.embedding is not None}
        assert embedded == {"Leather Case", "Charger Cable"}

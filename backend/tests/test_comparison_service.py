"""Tests for the comparison orchestration service."""

import pytest

from policy_compare.config import Settings
from policy_compare.exceptions import DecodeError, InputError, StructuralError
from policy_compare.services.orchestration.comparison import ComparisonService, parse_preferences

from conftest import FakeExtractor, FakeInvoker, policy_text


class TestParsePreferences:
    @pytest.mark.parametrize("raw", [None, "", "{broken", "[1, 2]", '"text"', "42"])
    def test_unusable_input_becomes_empty(self, raw):
        assert parse_preferences(raw) == {}

    def test_key_order_is_preserved(self):
        prefs = parse_preferences('{"z": 1, "a": {"nested": true}, "m": null}')
        assert list(prefs) == ["z", "a", "m"]
        assert prefs["a"] == {"nested": True}


class TestComparisonService:
    async def test_fails_before_composition_with_one_usable_document(self, make_upload):
        invoker = FakeInvoker('{"aiCommentary": "c", "tableHtml": "t"}')
        service = ComparisonService(FakeExtractor(), invoker, Settings())
        uploads = [make_upload(policy_text("Anadolu").encode(), "a.pdf"), make_upload(b"%BROKEN", "b.pdf")]

        with pytest.raises(InputError):
            await service.compare(uploads)
        assert invoker.prompts == []

    async def test_returns_validated_result(self, make_upload):
        invoker = FakeInvoker('{"aiCommentary": "c", "tableHtml": "t"}')
        service = ComparisonService(FakeExtractor(), invoker, Settings())
        uploads = [make_upload(policy_text("Anadolu").encode(), "a.pdf"), make_upload(policy_text("Axa").encode(), "b.pdf")]

        result = await service.compare(uploads, '{"budget": "low"}')

        assert result.aiCommentary == "c"
        assert result.tableHtml == "t"
        assert len(invoker.prompts) == 1

    async def test_decode_error_propagates_with_raw_text(self, make_upload, caplog):
        invoker = FakeInvoker("not json at all")
        service = ComparisonService(FakeExtractor(), invoker, Settings())
        uploads = [make_upload(policy_text("Anadolu").encode(), "a.pdf"), make_upload(policy_text("Axa").encode(), "b.pdf")]

        with pytest.raises(DecodeError) as exc_info:
            await service.compare(uploads)
        assert exc_info.value.raw_text == "not json at all"
        assert "not json at all" in caplog.text

    async def test_structural_error_propagates(self, make_upload):
        invoker = FakeInvoker('{"commentary": "c", "table": "t"}')
        service = ComparisonService(FakeExtractor(), invoker, Settings())
        uploads = [make_upload(policy_text("Anadolu").encode(), "a.pdf"), make_upload(policy_text("Axa").encode(), "b.pdf")]

        with pytest.raises(StructuralError):
            await service.compare(uploads)

"""Tests for the OpenAPI schema generator script."""

from scripts.generate_openapi import generate_schema


class TestGenerateSchema:
    def test_contains_outstanding_paths(self) -> None:
        schema = generate_schema()
        paths = schema["paths"]
        assert "/api/outstanding" in paths
        assert "/api/outstanding/{user_id}/pay" in paths
        assert "/api/outstanding/summary/all" in paths
        assert "/api/outstanding/history/all" in paths

    def test_uses_camel_case_schemas(self) -> None:
        schema = generate_schema()
        properties = schema["components"]["schemas"]["OutstandingResponse"]["properties"]
        assert "pendingAmount" in properties
        assert "displayStatus" in properties

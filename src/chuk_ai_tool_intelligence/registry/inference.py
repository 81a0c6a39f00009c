# chuk_ai_tool_intelligence/registry/inference.py
"""
Metadata inference for tools advertised by external tool servers.

All heuristics are explicit rule tables on InferenceRules so they can be
swapped or extended by configuration instead of editing logic.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from chuk_ai_tool_intelligence.models.enums import Complexity
from chuk_ai_tool_intelligence.models.tool import (
    ContextualRelevance,
    PerformanceMetrics,
    ToolMetadata,
)
from chuk_ai_tool_intelligence.utils import contains_any


def _default_capability_keywords() -> dict[str, list[str]]:
    return {
        "searching": ["search", "find"],
        "reading": ["read", "get"],
        "writing": ["write", "create"],
        "execution": ["execute", "run"],
        "analysis": ["analyze", "analysis"],
    }


def _default_schema_keywords() -> dict[str, list[str]]:
    return {
        "api-access": ["url", "endpoint"],
        "file-operations": ["file", "path"],
        "searching": ["query", "search"],
    }


def _default_domain_keywords() -> dict[str, list[str]]:
    return {
        "web-services": ["web", "http", "api"],
        "file-operations": ["file", "directory"],
        "data-analysis": ["data", "analytics"],
        "code-analysis": ["code", "programming"],
        "system-operations": ["system", "command"],
    }


def _default_use_case_keywords() -> dict[str, list[str]]:
    return {
        "debugging": ["debug", "troubleshoot"],
        "testing": ["test"],
        "building": ["build", "compile"],
        "deployment": ["deploy"],
        "monitoring": ["monitor", "observe"],
    }


class InferenceRules(BaseModel):
    """Keyword tables and defaults used to infer external tool metadata."""

    capability_keywords: dict[str, list[str]] = Field(default_factory=_default_capability_keywords)
    schema_capability_keywords: dict[str, list[str]] = Field(default_factory=_default_schema_keywords)
    domain_keywords: dict[str, list[str]] = Field(default_factory=_default_domain_keywords)
    use_case_keywords: dict[str, list[str]] = Field(default_factory=_default_use_case_keywords)

    default_capability: str = "general-purpose"
    default_domain: str = "general"
    default_use_case: str = "general-tasks"

    default_reliability: float = 0.75
    default_success_rate: float = 0.80
    default_execution_time: float = 2000.0
    default_prerequisites: list[str] = Field(default_factory=lambda: ["mcp-server-connected"])
    default_error_patterns: list[str] = Field(
        default_factory=lambda: ["server-error", "network-issues", "invalid-arguments"]
    )

    # Schema-shape complexity thresholds
    high_property_count: int = 5
    medium_property_count: int = 2
    high_required_count: int = 2


def _properties(schema: dict[str, Any] | None) -> dict[str, Any]:
    if not schema or not isinstance(schema.get("properties"), dict):
        return {}
    return schema["properties"]


def _match_table(text: str, table: dict[str, list[str]]) -> list[str]:
    return [label for label, keywords in table.items() if contains_any(text, keywords)]


def infer_capabilities(text: str, schema: dict[str, Any] | None, rules: InferenceRules) -> list[str]:
    capabilities = _match_table(text, rules.capability_keywords)
    for key in _properties(schema):
        for label in _match_table(key, rules.schema_capability_keywords):
            if label not in capabilities:
                capabilities.append(label)
    return capabilities or [rules.default_capability]


def infer_domains(text: str, rules: InferenceRules) -> list[str]:
    return _match_table(text, rules.domain_keywords) or [rules.default_domain]


def infer_use_cases(text: str, rules: InferenceRules) -> list[str]:
    return _match_table(text, rules.use_case_keywords) or [rules.default_use_case]


def infer_complexity(schema: dict[str, Any] | None, rules: InferenceRules) -> Complexity:
    """Complexity from schema shape: property count, nesting and required fields."""
    props = _properties(schema)
    if not props:
        return Complexity.LOW

    nested = any(isinstance(p, dict) and p.get("type") in ("object", "array") for p in props.values())
    required = (schema or {}).get("required") or []

    if len(props) > rules.high_property_count or nested or len(required) > rules.high_required_count:
        return Complexity.HIGH
    if len(props) > rules.medium_property_count:
        return Complexity.MEDIUM
    return Complexity.LOW


def build_external_metadata(
    server: str,
    name: str,
    description: str,
    input_schema: dict[str, Any] | None,
    rules: InferenceRules,
) -> ToolMetadata:
    """Registry entry for `server.name`, inferred from its description and schema."""
    text = f"{name} {description}".lower()
    return ToolMetadata(
        name=f"{server}.{name}",
        description=description,
        capabilities=infer_capabilities(text, input_schema, rules),
        domains=infer_domains(text, rules),
        complexity=infer_complexity(input_schema, rules),
        reliability=rules.default_reliability,
        typical_use_cases=infer_use_cases(text, rules),
        prerequisites=list(rules.default_prerequisites),
        performance_metrics=PerformanceMetrics(
            avg_execution_time=rules.default_execution_time,
            success_rate=rules.default_success_rate,
            error_patterns=list(rules.default_error_patterns),
        ),
        contextual_relevance=ContextualRelevance(
            project_types=["all"],
            dependencies=[server],
        ),
        server=server,
        input_schema=input_schema,
    )

# chuk_ai_tool_intelligence/composition/patterns.py
"""Rule tables for the composition planner: keyword maps, seeded patterns, tool ordering."""

from __future__ import annotations

from chuk_ai_tool_intelligence.models.workflow import CompositionPattern

# Task keyword -> capabilities it implies
CAPABILITY_KEYWORDS: dict[str, list[str]] = {
    "read": ["file-reading", "content-analysis"],
    "write": ["file-writing", "content-creation"],
    "search": ["web-search", "data-discovery"],
    "scrape": ["web-scraping", "data-extraction"],
    "analyze": ["data-analysis", "content-analysis"],
    "create": ["content-creation", "file-creation"],
    "build": ["build-tools", "compilation"],
    "test": ["testing", "validation"],
    "deploy": ["deployment", "publishing"],
}

HIGH_COMPLEXITY_KEYWORDS = ("complex", "advanced", "multiple")
MEDIUM_COMPLEXITY_KEYWORDS = ("create", "build", "implement")
STEP_CONNECTIVES = ("and", "then", "after", "followed by", "next")

DOMAIN_KEYWORDS: dict[str, tuple[str, ...]] = {
    "web-development": ("web", "http"),
    "file-operations": ("file", "directory"),
    "data-analysis": ("data", "analyze"),
}

# tool -> tools whose output it consumes; they must run before it
TOOL_DEPENDENCIES: dict[str, list[str]] = {
    "write_to_file": ["read_file"],
    "tavily-extract": ["tavily-search"],
}

# Capability class -> (outputs, rollback); first match in order wins
OUTPUT_EXPECTATIONS: list[tuple[str, list[str]]] = [
    ("file-reading", ["file_content", "file_metadata"]),
    ("file-writing", ["written_file", "write_confirmation"]),
    ("web-search", ["search_results", "relevant_urls"]),
    ("data-extraction", ["extracted_data", "structured_content"]),
]
DEFAULT_OUTPUTS = ["tool_output"]

ROLLBACK_STRATEGIES: list[tuple[str, str]] = [
    ("file-writing", "Restore from backup or delete created file"),
    ("web-scraping", "Discard scraped data and clear cache"),
]
DEFAULT_ROLLBACK = "Discard tool output and reset state"


def default_patterns() -> list[CompositionPattern]:
    return [
        CompositionPattern(
            id="file-read-analyze-write",
            name="File read, analyze, write",
            description="Read file, analyze content, write results",
            required_capabilities=["file-reading", "content-analysis", "file-writing"],
            tool_sequence=["read_file", "analyze_content", "write_to_file"],
            success_rate=0.85,
            avg_execution_time=1800,
        ),
        CompositionPattern(
            id="scrape-analyze-store",
            name="Scrape, analyze, store",
            description="Scrape web data, analyze, and store results",
            required_capabilities=["web-scraping", "data-extraction"],
            tool_sequence=["tavily-search", "tavily-extract", "write_to_file"],
            success_rate=0.80,
            avg_execution_time=3800,
        ),
    ]

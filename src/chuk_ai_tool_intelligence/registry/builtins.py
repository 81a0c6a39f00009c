# chuk_ai_tool_intelligence/registry/builtins.py
"""Metadata for the agent's built-in tools, registered at bootstrap."""

from __future__ import annotations

from chuk_ai_tool_intelligence.models.enums import Complexity
from chuk_ai_tool_intelligence.models.tool import (
    ContextualRelevance,
    PerformanceMetrics,
    ToolMetadata,
)

SOURCE_EXTENSIONS = (".js", ".ts", ".py", ".java", ".cpp", ".cs", ".go", ".rs")


def _tool(
    name: str,
    description: str,
    capabilities: list[str],
    domains: list[str],
    complexity: Complexity,
    reliability: float,
    use_cases: list[str],
    prerequisites: list[str],
    alternatives: list[str],
    avg_time: float,
    success_rate: float,
    error_patterns: list[str],
    file_patterns: list[str],
    project_types: list[str] | None = None,
    technologies: list[str] | None = None,
) -> ToolMetadata:
    return ToolMetadata(
        name=name,
        description=description,
        capabilities=capabilities,
        domains=domains,
        complexity=complexity,
        reliability=reliability,
        typical_use_cases=use_cases,
        prerequisites=prerequisites,
        alternatives=alternatives,
        performance_metrics=PerformanceMetrics(
            avg_execution_time=avg_time,
            success_rate=success_rate,
            error_patterns=error_patterns,
        ),
        contextual_relevance=ContextualRelevance(
            project_types=project_types or ["all"],
            file_patterns=file_patterns,
            technologies=technologies or [],
        ),
    )


def builtin_tools() -> list[ToolMetadata]:
    """Fresh copies of the built-in tool metadata."""
    return [
        _tool(
            "read_file",
            "Read the contents of a file",
            ["file-reading", "content-analysis", "text-extraction"],
            ["file-operations", "data-extraction", "code-analysis"],
            Complexity.LOW,
            0.95,
            ["code-review", "configuration-analysis", "documentation-reading", "debugging"],
            [],
            ["list_files", "search_files"],
            500,
            0.98,
            ["file-not-found", "permission-denied", "encoding-issues"],
            ["*"],
        ),
        _tool(
            "write_to_file",
            "Create or overwrite a file",
            ["file-writing", "content-creation", "file-generation"],
            ["file-operations", "content-creation", "code-generation"],
            Complexity.LOW,
            0.92,
            ["code-generation", "configuration-creation", "documentation-writing", "file-setup"],
            ["directory-exists"],
            ["replace_in_file"],
            800,
            0.96,
            ["permission-denied", "disk-full", "invalid-path"],
            ["*"],
        ),
        _tool(
            "replace_in_file",
            "Make targeted edits to an existing file",
            ["file-editing", "content-modification", "targeted-changes"],
            ["file-operations", "code-refactoring", "content-modification"],
            Complexity.MEDIUM,
            0.88,
            ["code-refactoring", "bug-fixes", "configuration-updates", "targeted-edits"],
            ["file-exists"],
            ["write_to_file"],
            600,
            0.94,
            ["pattern-not-found", "permission-denied", "encoding-issues"],
            ["*"],
        ),
        _tool(
            "execute_command",
            "Run a shell command",
            ["command-execution", "system-operations", "process-management"],
            ["system-operations", "build-tools", "development-workflow"],
            Complexity.HIGH,
            0.75,
            ["building-projects", "running-tests", "package-management", "system-operations"],
            ["shell-access", "working-directory"],
            [],
            5000,
            0.85,
            ["command-not-found", "permission-denied", "timeout", "syntax-error"],
            [],
        ),
        _tool(
            "search_files",
            "Regex search across files in a directory",
            ["pattern-searching", "content-discovery", "code-analysis"],
            ["file-operations", "code-analysis", "data-discovery"],
            Complexity.MEDIUM,
            0.90,
            ["code-search", "pattern-finding", "dependency-analysis", "debugging"],
            ["directory-exists"],
            ["list_files", "read_file"],
            2000,
            0.92,
            ["invalid-regex", "permission-denied", "directory-not-found"],
            ["*"],
        ),
        _tool(
            "list_files",
            "List files and directories",
            ["directory-listing", "file-discovery", "structure-analysis"],
            ["file-operations", "project-analysis", "structure-discovery"],
            Complexity.LOW,
            0.96,
            ["project-exploration", "file-discovery", "structure-analysis", "navigation"],
            ["directory-exists"],
            ["search_files"],
            300,
            0.99,
            ["directory-not-found", "permission-denied"],
            ["*"],
        ),
        _tool(
            "list_code_definition_names",
            "List top-level source code definitions",
            ["code-analysis", "structure-discovery", "definition-extraction"],
            ["code-analysis", "project-understanding", "architecture-analysis"],
            Complexity.MEDIUM,
            0.85,
            ["code-exploration", "architecture-understanding", "dependency-analysis", "refactoring"],
            ["source-files-exist"],
            ["search_files", "read_file"],
            1500,
            0.88,
            ["no-source-files", "parsing-errors", "permission-denied"],
            ["*" + ext for ext in SOURCE_EXTENSIONS],
            project_types=["software-project"],
            technologies=["javascript", "typescript", "python", "java", "cpp", "csharp", "go", "rust"],
        ),
        _tool(
            "use_mcp_tool",
            "Call a tool exposed by a connected tool server",
            ["external-tool-execution", "mcp-integration", "extended-functionality"],
            ["mcp-integration", "external-services", "extended-capabilities"],
            Complexity.VARIABLE,
            0.80,
            ["external-api-calls", "specialized-operations", "third-party-integrations"],
            ["mcp-server-connected"],
            [],
            3000,
            0.85,
            ["server-not-connected", "tool-not-found", "invalid-arguments"],
            [],
        ),
        _tool(
            "ask_followup_question",
            "Ask the user a clarifying question",
            ["user-interaction", "clarification", "information-gathering"],
            ["user-interaction", "communication", "clarification"],
            Complexity.LOW,
            0.98,
            ["requirement-clarification", "ambiguity-resolution", "user-guidance"],
            [],
            [],
            100,
            0.99,
            [],
            [],
        ),
        _tool(
            "attempt_completion",
            "Present the result of a finished task",
            ["task-completion", "result-presentation", "workflow-termination"],
            ["task-management", "workflow", "completion"],
            Complexity.LOW,
            0.99,
            ["task-completion", "result-presentation", "workflow-finalization"],
            ["task-completed"],
            [],
            100,
            0.99,
            [],
            [],
        ),
    ]

# chuk_ai_tool_intelligence/composition/planner.py
"""
Composition Planner - sequences tools into executable workflow plans.

Pipeline per request:
1. Analyze the task (complexity, capabilities, domains, step estimate)
2. Instantiate known patterns whose capabilities are covered
3. Build a linear plan and a parallel plan from the best tool per capability
4. Deduplicate by tool-sequence signature, re-score against the context
5. Derive alternatives by tool swaps and dependency-safe reorderings

Plans are plain data; nothing here executes tools or touches storage.
"""

from __future__ import annotations

import logging
import uuid

from pydantic import BaseModel, Field

from chuk_ai_tool_intelligence.composition.patterns import (
    CAPABILITY_KEYWORDS,
    DEFAULT_OUTPUTS,
    DEFAULT_ROLLBACK,
    DOMAIN_KEYWORDS,
    HIGH_COMPLEXITY_KEYWORDS,
    MEDIUM_COMPLEXITY_KEYWORDS,
    OUTPUT_EXPECTATIONS,
    ROLLBACK_STRATEGIES,
    STEP_CONNECTIVES,
    TOOL_DEPENDENCIES,
    default_patterns,
)
from chuk_ai_tool_intelligence.models.context import TaskContext
from chuk_ai_tool_intelligence.models.enums import Complexity, RiskLevel
from chuk_ai_tool_intelligence.models.tool import ToolMetadata
from chuk_ai_tool_intelligence.models.workflow import (
    CompositionConstraints,
    CompositionPattern,
    CompositionRequest,
    CompositionResult,
    WorkflowPlan,
    WorkflowStep,
)
from chuk_ai_tool_intelligence.registry.registry import ToolRegistry
from chuk_ai_tool_intelligence.scoring.scorer import assess_risk
from chuk_ai_tool_intelligence.utils import contains_any

logger = logging.getLogger(__name__)

PARALLEL_DISCOUNT = 0.9
SWAP_DISCOUNT = 0.9
REORDER_DISCOUNT = 0.85
MAX_SWAPS_PER_STEP = 2
MAX_ALTERNATIVES = 5
MIN_ALTERNATIVE_CONFIDENCE = 0.3
FLAT_PERFORMANCE_FACTOR = 0.85

_COMPLEXITY_ORDER = {
    Complexity.LOW: 0,
    Complexity.MEDIUM: 1,
    Complexity.HIGH: 2,
    Complexity.VARIABLE: 2,
}


class TaskAnalysis(BaseModel):
    complexity: Complexity = Complexity.LOW
    required_capabilities: list[str] = Field(default_factory=list)
    estimated_steps: int = 1
    domains: list[str] = Field(default_factory=list)


# =============================================================================
# Step and plan helpers
# =============================================================================


def step_outputs(tool: ToolMetadata) -> list[str]:
    for capability, outputs in OUTPUT_EXPECTATIONS:
        if capability in tool.capabilities:
            return list(outputs)
    return list(DEFAULT_OUTPUTS)


def rollback_strategy(tool: ToolMetadata) -> str:
    for capability, strategy in ROLLBACK_STRATEGIES:
        if capability in tool.capabilities:
            return strategy
    return DEFAULT_ROLLBACK


def step_confidence(risk: RiskLevel) -> float:
    if risk == RiskLevel.LOW:
        return 0.9
    if risk == RiskLevel.HIGH:
        return 0.6
    return 0.8


def plan_confidence(steps: list[WorkflowStep]) -> float:
    """Mean step confidence minus a length penalty, floored at 0.1."""
    if not steps:
        return 0.0
    average = sum(step_confidence(s.risk_level) for s in steps) / len(steps)
    return max(0.1, average - min(0.2, 0.05 * len(steps)))


def plan_risk(steps: list[WorkflowStep]) -> RiskLevel:
    if any(s.risk_level == RiskLevel.HIGH for s in steps):
        return RiskLevel.HIGH
    if sum(1 for s in steps if s.risk_level == RiskLevel.MEDIUM) > len(steps) / 2:
        return RiskLevel.MEDIUM
    return RiskLevel.LOW


def critical_path_time(steps: list[WorkflowStep]) -> float:
    """
    Longest dependency chain through the plan.

    Equals the step sum for a linear chain and the sum of group maxima
    for grouped parallel plans.
    """
    finish: dict[str, float] = {}
    for step in steps:
        start = max((finish.get(dep, 0.0) for dep in step.dependencies), default=0.0)
        finish[step.id] = start + step.estimated_time
    return max(finish.values(), default=0.0)


class CompositionPlanner:
    """
    Builds WorkflowPlans for a CompositionRequest.

    Tools come from the registry; callers may restrict them with
    `available_tools` and the request constraints.
    """

    def __init__(self, registry: ToolRegistry, patterns: list[CompositionPattern] | None = None) -> None:
        self.registry = registry
        self._patterns: dict[str, CompositionPattern] = {}
        for pattern in patterns if patterns is not None else default_patterns():
            self.register_pattern(pattern)

    # =========================================================================
    # Patterns
    # =========================================================================

    def register_pattern(self, pattern: CompositionPattern) -> None:
        self._patterns[pattern.id] = pattern

    def get_pattern(self, pattern_id: str) -> CompositionPattern | None:
        return self._patterns.get(pattern_id)

    def patterns(self) -> list[CompositionPattern]:
        return list(self._patterns.values())

    def record_pattern_outcome(self, pattern_id: str, success: bool, execution_time: float) -> CompositionPattern | None:
        """Fold one observed execution into a pattern's running success rate and time."""
        pattern = self._patterns.get(pattern_id)
        if pattern is None:
            return None
        n = pattern.usage_count
        pattern.success_rate = (pattern.success_rate * n + (1.0 if success else 0.0)) / (n + 1)
        pattern.avg_execution_time = (pattern.avg_execution_time * n + execution_time) / (n + 1)
        pattern.usage_count = n + 1
        return pattern

    # =========================================================================
    # Analysis
    # =========================================================================

    def analyze_task(self, description: str, context: TaskContext | None = None) -> TaskAnalysis:
        text = description.lower()

        if contains_any(text, HIGH_COMPLEXITY_KEYWORDS):
            complexity = Complexity.HIGH
        elif contains_any(text, MEDIUM_COMPLEXITY_KEYWORDS):
            complexity = Complexity.MEDIUM
        else:
            complexity = Complexity.LOW

        capabilities: list[str] = []
        for keyword, caps in CAPABILITY_KEYWORDS.items():
            if keyword in text:
                capabilities.extend(c for c in caps if c not in capabilities)

        steps = 1 + sum(text.count(c) for c in STEP_CONNECTIVES)

        domains = list(context.technologies) if context else []
        for domain, keywords in DOMAIN_KEYWORDS.items():
            if contains_any(text, keywords) and domain not in domains:
                domains.append(domain)

        return TaskAnalysis(
            complexity=complexity,
            required_capabilities=capabilities,
            estimated_steps=max(1, steps),
            domains=domains,
        )

    # =========================================================================
    # Composition
    # =========================================================================

    def compose(self, request: CompositionRequest) -> CompositionResult:
        context = request.context or TaskContext(user_request=request.task_description)
        analysis = self.analyze_task(request.task_description, context)
        if request.required_capabilities is not None:
            analysis.required_capabilities = list(dict.fromkeys(request.required_capabilities))

        tools = self._candidate_tools(request.available_tools, request.constraints)
        by_name = {t.name: t for t in tools}

        plans: list[WorkflowPlan] = []
        for pattern in self._matching_patterns(analysis.required_capabilities):
            plan = self._plan_from_pattern(pattern, by_name)
            if plan is not None:
                plans.append(plan)

        if analysis.required_capabilities:
            for plan in (
                self.linear_plan(analysis.required_capabilities, tools),
                self.parallel_plan(analysis.required_capabilities, tools),
            ):
                if plan is not None:
                    plans.append(plan)

        plans = [p for p in plans if self._within_constraints(p, request.constraints)]
        plans = self._deduplicate(plans)
        plans = [self._rescore(p, context) for p in plans]
        plans.sort(key=lambda p: p.confidence, reverse=True)

        alternatives: list[WorkflowPlan] = []
        for plan in plans:
            plan.alternative_plans = [
                a for a in self._alternatives(plan, tools) if self._within_constraints(a, request.constraints)
            ]
            alternatives.extend(plan.alternative_plans)
        alternatives = sorted(
            (a for a in alternatives if a.confidence > MIN_ALTERNATIVE_CONFIDENCE),
            key=lambda a: a.confidence,
            reverse=True,
        )[:MAX_ALTERNATIVES]

        confidence = sum(p.confidence for p in plans) / len(plans) if plans else 0.0
        logger.debug("Composed %d plans for %r", len(plans), request.task_description)
        return CompositionResult(
            workflows=plans,
            confidence=confidence,
            reasoning=self._reasoning(plans, analysis),
            alternatives=alternatives,
        )

    def _candidate_tools(self, available: list[str], constraints: CompositionConstraints) -> list[ToolMetadata]:
        if available:
            tools = [t for t in (self.registry.get(n) for n in available) if t is not None]
        else:
            tools = self.registry.all_tools()

        excluded = set(constraints.exclude_tools)
        tools = [t for t in tools if t.name not in excluded]
        if constraints.max_complexity is not None:
            ceiling = _COMPLEXITY_ORDER[constraints.max_complexity]
            tools = [t for t in tools if _COMPLEXITY_ORDER[t.complexity] <= ceiling]
        return tools

    def _matching_patterns(self, capabilities: list[str]) -> list[CompositionPattern]:
        requested = set(capabilities)
        return [p for p in self._patterns.values() if p.required_capabilities and set(p.required_capabilities) <= requested]

    @staticmethod
    def _within_constraints(plan: WorkflowPlan, constraints: CompositionConstraints) -> bool:
        if constraints.max_steps is not None and len(plan.steps) > constraints.max_steps:
            return False
        if constraints.time_limit is not None and plan.estimated_total_time > constraints.time_limit:
            return False
        return not any(s.tool_name in constraints.exclude_tools for s in plan.steps)

    # --- Plan builders ---

    @staticmethod
    def tool_fitness(tool: ToolMetadata, capability: str) -> float:
        score = 0.4 if capability in tool.capabilities else 0.0
        score += 0.3 * tool.reliability
        score += 0.2 * (1 - tool.performance_metrics.avg_execution_time / 10000)
        score += 0.1 * tool.performance_metrics.success_rate
        return score

    def best_tool(self, capability: str, tools: list[ToolMetadata]) -> ToolMetadata | None:
        candidates = [t for t in tools if capability in t.capabilities]
        if not candidates:
            return None
        # max() keeps the first of equal scores
        return max(candidates, key=lambda t: self.tool_fitness(t, capability))

    @staticmethod
    def _make_step(
        index: int,
        tool: ToolMetadata,
        purpose: str,
        previous: list[WorkflowStep],
        dependencies: list[str],
    ) -> WorkflowStep:
        inputs = list(tool.prerequisites)
        for step in previous:
            inputs.extend(step.output_expectations)
        risk = assess_risk(tool)
        return WorkflowStep(
            id=f"step-{index}",
            tool_name=tool.name,
            description=f"Execute {tool.name} for {purpose}",
            input_requirements=list(dict.fromkeys(inputs)),
            output_expectations=step_outputs(tool),
            dependencies=dependencies,
            estimated_time=tool.performance_metrics.avg_execution_time,
            confidence=step_confidence(risk),
            risk_level=risk,
            rollback_strategy=rollback_strategy(tool),
        )

    def linear_plan(self, capabilities: list[str], tools: list[ToolMetadata]) -> WorkflowPlan | None:
        """One chained step per capability; None if any capability has no tool."""
        steps: list[WorkflowStep] = []
        for capability in capabilities:
            tool = self.best_tool(capability, tools)
            if tool is None:
                logger.debug("No tool provides %s; skipping linear plan", capability)
                return None
            deps = [steps[-1].id] if steps else []
            steps.append(self._make_step(len(steps) + 1, tool, capability, steps, deps))

        return WorkflowPlan(
            id=f"linear-{uuid.uuid4().hex[:8]}",
            description=f"Linear workflow for capabilities: {', '.join(capabilities)}",
            steps=steps,
            estimated_total_time=sum(s.estimated_time for s in steps),
            confidence=plan_confidence(steps),
            risk_assessment=plan_risk(steps),
        )

    def parallel_groups(self, capabilities: list[str], tools: list[ToolMetadata]) -> list[list[str]]:
        """
        Greedy grouping: a capability joins the current group when none of
        its tools' prerequisites name a capability still pending.
        """
        groups: list[list[str]] = []
        remaining = list(capabilities)
        while remaining:
            group = [
                cap
                for cap in remaining
                if all(
                    not any(p in remaining for p in t.prerequisites)
                    for t in tools
                    if cap in t.capabilities
                )
            ]
            if not group:
                group = [remaining[0]]
            remaining = [c for c in remaining if c not in group]
            groups.append(group)
        return groups

    def parallel_plan(self, capabilities: list[str], tools: list[ToolMetadata]) -> WorkflowPlan | None:
        """Grouped steps run side by side; None if any capability has no tool."""
        steps: list[WorkflowStep] = []
        previous_group: list[WorkflowStep] = []
        for group in self.parallel_groups(capabilities, tools):
            group_steps = []
            for capability in group:
                tool = self.best_tool(capability, tools)
                if tool is None:
                    logger.debug("No tool provides %s; skipping parallel plan", capability)
                    return None
                deps = [s.id for s in previous_group]
                group_steps.append(self._make_step(len(steps) + len(group_steps) + 1, tool, capability, steps, deps))
            steps.extend(group_steps)
            previous_group = group_steps

        if not steps:
            return None
        return WorkflowPlan(
            id=f"parallel-{uuid.uuid4().hex[:8]}",
            description=f"Parallel workflow for capabilities: {', '.join(capabilities)}",
            steps=steps,
            estimated_total_time=critical_path_time(steps),
            confidence=plan_confidence(steps) * PARALLEL_DISCOUNT,
            risk_assessment=plan_risk(steps),
        )

    def _plan_from_pattern(self, pattern: CompositionPattern, tools: dict[str, ToolMetadata]) -> WorkflowPlan | None:
        if not all(name in tools for name in pattern.tool_sequence):
            return None

        steps: list[WorkflowStep] = []
        for name in pattern.tool_sequence:
            deps = [steps[-1].id] if steps else []
            steps.append(self._make_step(len(steps) + 1, tools[name], pattern.name, steps, deps))

        return WorkflowPlan(
            id=f"{pattern.id}-{uuid.uuid4().hex[:8]}",
            description=pattern.description,
            steps=steps,
            estimated_total_time=sum(s.estimated_time for s in steps),
            confidence=(plan_confidence(steps) + pattern.success_rate) / 2,
            risk_assessment=plan_risk(steps),
        )

    # --- Ranking ---

    @staticmethod
    def _deduplicate(plans: list[WorkflowPlan]) -> list[WorkflowPlan]:
        seen: set[str] = set()
        unique = []
        for plan in plans:
            if plan.signature in seen:
                continue
            seen.add(plan.signature)
            unique.append(plan)
        return unique

    @staticmethod
    def _rescore(plan: WorkflowPlan, context: TaskContext) -> WorkflowPlan:
        tool_names = [n.lower() for n in plan.tool_sequence]

        context_fit = 1.0
        if any(t.lower() in n for n in tool_names for t in context.technologies if t):
            context_fit += 0.1

        preference = 1.0
        if any(p.lower() in n for n in tool_names for p in context.user_preferences.preferred_libraries if p):
            preference += 0.1

        complexity = {RiskLevel.LOW: 1.05, RiskLevel.HIGH: 0.95}.get(plan.risk_assessment, 1.0)

        score = plan.confidence * context_fit * FLAT_PERFORMANCE_FACTOR * preference * complexity
        plan.confidence = max(0.0, min(1.0, score))
        return plan

    # --- Alternatives ---

    def _alternatives(self, plan: WorkflowPlan, tools: list[ToolMetadata]) -> list[WorkflowPlan]:
        return self._swap_alternatives(plan, tools) + self._reorder_alternatives(plan)

    def _swap_alternatives(self, plan: WorkflowPlan, tools: list[ToolMetadata]) -> list[WorkflowPlan]:
        alternatives = []
        for index, step in enumerate(plan.steps):
            current = self.registry.get(step.tool_name)
            if current is None:
                continue
            substitutes = [t for t in tools if t.name != current.name and t.shares_capability(current)]
            for substitute in substitutes[:MAX_SWAPS_PER_STEP]:
                steps = [s.model_copy(deep=True) for s in plan.steps]
                risk = assess_risk(substitute)
                steps[index] = step.model_copy(
                    update={
                        "tool_name": substitute.name,
                        "description": f"Execute {substitute.name} instead of {current.name}",
                        "output_expectations": step_outputs(substitute),
                        "estimated_time": substitute.performance_metrics.avg_execution_time,
                        "confidence": step_confidence(risk),
                        "risk_level": risk,
                        "rollback_strategy": rollback_strategy(substitute),
                    }
                )
                alternatives.append(
                    WorkflowPlan(
                        id=f"{plan.id}-alt-{substitute.name}",
                        description=f"{plan.description} (using {substitute.name})",
                        steps=steps,
                        estimated_total_time=critical_path_time(steps),
                        confidence=plan.confidence * SWAP_DISCOUNT,
                        risk_assessment=plan_risk(steps),
                    )
                )
        return alternatives

    @staticmethod
    def _reorder_alternatives(plan: WorkflowPlan) -> list[WorkflowPlan]:
        """Swap adjacent steps of a linear chain when neither must precede the other."""
        is_chain = all(
            s.dependencies == ([plan.steps[i - 1].id] if i else []) for i, s in enumerate(plan.steps)
        )
        if not is_chain or len(plan.steps) < 2:
            return []

        alternatives = []
        for i in range(len(plan.steps) - 1):
            first, second = plan.steps[i], plan.steps[i + 1]
            if first.tool_name == second.tool_name or first.tool_name in TOOL_DEPENDENCIES.get(second.tool_name, []):
                continue

            order = list(plan.steps)
            order[i], order[i + 1] = second, first
            steps = []
            for n, original in enumerate(order):
                steps.append(
                    original.model_copy(
                        update={
                            "id": f"step-{n + 1}",
                            "dependencies": [f"step-{n}"] if n else [],
                        }
                    )
                )
            alternatives.append(
                WorkflowPlan(
                    id=f"{plan.id}-reorder-{i + 1}",
                    description=f"{plan.description} (reordered)",
                    steps=steps,
                    estimated_total_time=plan.estimated_total_time,
                    confidence=plan.confidence * REORDER_DISCOUNT,
                    risk_assessment=plan.risk_assessment,
                )
            )
        return alternatives

    @staticmethod
    def _reasoning(plans: list[WorkflowPlan], analysis: TaskAnalysis) -> list[str]:
        reasoning = [
            f"Generated {len(plans)} workflow(s) for task complexity: {analysis.complexity.value}",
            f"Required capabilities: {', '.join(analysis.required_capabilities) or 'none identified'}",
        ]
        if plans:
            best = plans[0]
            reasoning.append(f"Best workflow: {best.description} ({best.confidence * 100:.1f}% confidence)")
            reasoning.append(f"Estimated execution time: {best.estimated_total_time / 1000:.1f}s")
        elif analysis.required_capabilities:
            reasoning.append("No available tool set covers every required capability")
        return reasoning

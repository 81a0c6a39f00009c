# chuk_ai_tool_intelligence/preloading/probes.py
"""System load probes feeding the pre-loader's admission budget."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from chuk_ai_tool_intelligence.preloading.models import SystemLoad


@runtime_checkable
class SystemLoadProbe(Protocol):
    """Produces a SystemLoad snapshot for the current preload count."""

    def sample(self, active_preloads: int, max_preloads: int) -> SystemLoad: ...


class SimulatedLoadProbe:
    """
    Deterministic load model: pressure grows linearly with active preloads.

    cpu = base_cpu + cpu_per_preload * active
    memory = base_memory + memory_per_preload * active
    """

    def __init__(
        self,
        base_cpu: float = 0.1,
        cpu_per_preload: float = 0.05,
        base_memory: float = 0.1,
        memory_per_preload: float = 0.05,
        network_latency: float = 20.0,
    ) -> None:
        self.base_cpu = base_cpu
        self.cpu_per_preload = cpu_per_preload
        self.base_memory = base_memory
        self.memory_per_preload = memory_per_preload
        self.network_latency = network_latency

    def sample(self, active_preloads: int, max_preloads: int) -> SystemLoad:
        return SystemLoad(
            cpu_usage=min(1.0, self.base_cpu + self.cpu_per_preload * active_preloads),
            memory_usage=min(1.0, self.base_memory + self.memory_per_preload * active_preloads),
            network_latency=self.network_latency,
            active_preloads=active_preloads,
            max_preloads=max_preloads,
        )

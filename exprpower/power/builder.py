"""
Construction and startup of a complete power system from configuration.

Startup order matters and is fixed:
```
    1. host scalar statistics registered
    2. leaf evaluators and aggregators built, their stats registered,
       aggregators attached to the thermal probe
    3. registry finalized
    4. every leaf evaluator started (statistic bindings resolved)
    5. leaves registered with their aggregator, aggregator bound
```
Steps 1-2 happen in build_power_system(); steps 3-5 in
PowerSystem.startup().
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from ..config import SystemConfig
from ..errors import PowerModelError
from ..probe import ProbeManager
from ..stats.registry import StatsRegistry
from .interfaces import PowerStateSlot
from .mathexpr_model import LeafPowerEvaluator
from .power_model import PowerAggregator

logger = logging.getLogger(__name__)


@dataclass
class PowerSystem:
    """
    All power models of a simulation plus their shared collaborators.

    Attributes:
        registry: Statistics registry shared by every model.
        probe_manager: Probe manager carrying the thermal update point.
        models: Aggregators, one per simulated component.
        leaves: (model name, slot) -> leaf evaluator.
    """
    registry: StatsRegistry
    probe_manager: ProbeManager
    models: list[PowerAggregator] = field(default_factory=list)
    leaves: dict[tuple[str, PowerStateSlot], LeafPowerEvaluator] = field(default_factory=dict)

    @property
    def started(self) -> bool:
        return bool(self.models) and all(m.is_bound for m in self.models)

    def model(self, name: str) -> PowerAggregator:
        for m in self.models:
            if m.name == name:
                return m
        raise KeyError(name)

    def startup(self) -> None:
        """
        Finalize statistics, start every leaf and bind every aggregator.

        Raises:
            PowerModelError: If called twice, or on any binding failure.
        """
        if self.started:
            raise PowerModelError("power system already started")

        self.registry.finalize()
        for (model_name, slot), leaf in self.leaves.items():
            leaf.startup()
            self.model(model_name).register_state(slot, leaf)
        for m in self.models:
            m.bind()
        logger.info("power system started: %d models, %d leaves",
                    len(self.models), len(self.leaves))


def build_power_system(
    cfg: SystemConfig,
    registry: StatsRegistry | None = None,
    probe_manager: ProbeManager | None = None,
) -> PowerSystem:
    """
    Build (but do not start) every model described by cfg.

    Args:
        cfg: System configuration.
        registry: Registry to populate; a new one if None. Host statistics
                  from cfg.stats are registered as scalars.
        probe_manager: Probe manager for thermal updates; a new one if None.

    Returns:
        PowerSystem ready for startup().
    """
    registry = registry if registry is not None else StatsRegistry()
    probe_manager = probe_manager if probe_manager is not None else ProbeManager("system")
    system = PowerSystem(registry=registry, probe_manager=probe_manager)

    for stat, value in cfg.stats.items():
        registry.scalar(stat, "host statistic", value)

    for model_cfg in cfg.models:
        aggregator = PowerAggregator(
            model_cfg.name,
            expected_slots=model_cfg.states.keys(),
            ambient_temp_c=model_cfg.ambient_temp_c,
            pm_type=model_cfg.pm_type,
        )
        for slot, leaf_cfg in model_cfg.states.items():
            leaf = LeafPowerEvaluator(
                f"{model_cfg.name}.{slot.value}",
                registry,
                dynamic=leaf_cfg.dynamic,
                static=leaf_cfg.static,
                constants=leaf_cfg.constants,
                temperature=model_cfg.ambient_temp_c,
            )
            leaf.reg_stats(registry)
            system.leaves[(model_cfg.name, slot)] = leaf

        aggregator.reg_stats(registry)
        aggregator.reg_probe_points(probe_manager)
        system.models.append(aggregator)

    return system

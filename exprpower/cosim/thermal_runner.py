from __future__ import annotations

import logging

from exprpower.plant import ThermalParams, ThermalState, step_thermal
from exprpower.power.power_model import THERMAL_PROBE_POINT
from exprpower.probe import ProbeManager, ProbePoint

logger = logging.getLogger(__name__)


class ThermalRunner:
    """
    Encapsulates thermal state evolution and thermal probe notification.

    The ThermalRunner is the glue between the kernel and the thermal plant.
    The kernel calls step() with the power dissipated during a chunk;
    ThermalRunner:
    - Integrates the RC model
    - Notifies the thermal probe point with the new temperature

    Power models listening on the probe pick the new temperature up for
    their next evaluation.
    """

    def __init__(
        self,
        params: ThermalParams,
        probe_manager: ProbeManager,
        initial_temp_c: float | None = None,
    ) -> None:
        """
        Initialize the thermal runner.

        Args:
            params: Thermal model parameters
            probe_manager: Manager owning the thermal probe point
            initial_temp_c: Initial temperature (°C), ambient if None
        """
        self.params = params
        start = params.ambient_c if initial_temp_c is None else initial_temp_c
        self.thermal_state = ThermalState(temp_c=float(start))

        self._probe: ProbePoint = (
            probe_manager.point(THERMAL_PROBE_POINT)
            or probe_manager.add_point(THERMAL_PROBE_POINT)
        )

    @property
    def temp_c(self) -> float:
        return self.thermal_state.temp_c

    def publish(self) -> None:
        """Notify listeners of the current temperature without stepping."""
        self._probe.notify(self.thermal_state.temp_c)

    def step(self, power_w: float, dt_s: float) -> float:
        """
        Advance the plant by dt_s under power_w and notify listeners.

        Returns:
            The new temperature (°C).
        """
        self.thermal_state = step_thermal(
            self.thermal_state,
            dt_s=dt_s,
            power_w=power_w,
            p=self.params,
        )
        logger.debug("thermal step: P=%.4f W -> T=%.3f C", power_w, self.thermal_state.temp_c)
        self.publish()
        return self.thermal_state.temp_c

    def get_thermal_state(self) -> ThermalState:
        """Get the current thermal state (for inspection/testing)."""
        return self.thermal_state

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class ThermalParams:
    """
    Parameters for the thermal RC model.

    The thermal system models heat flow from the power dissipated by the
    simulated component to ambient through a first-order RC network.
    """
    ambient_c: float           # Ambient temperature (°C)
    r_th_c_per_w: float        # Thermal resistance (°C/W)
    c_th_j_per_c: float        # Thermal capacitance (J/°C) - treat as C in ODE


@dataclass(frozen=False, slots=True)
class ThermalState:
    """
    State of the thermal system.

    This is mutable to allow efficient state updates during simulation.
    """
    temp_c: float              # Current temperature (°C)


def step_thermal(
    state: ThermalState,
    *,
    dt_s: float,
    power_w: float,
    p: ThermalParams,
) -> ThermalState:
    """
    Step the thermal model forward by dt_s seconds using Euler integration.

    Physics:
    - First-order RC thermal model to ambient:
      dT/dt = (P * R_th - (T - T_ambient)) / (R_th * C_th)

    Negative power is clamped to zero (the component cannot cool itself).

    Args:
        state: Current thermal state
        dt_s: Time step in seconds
        power_w: Power dissipated by the component (W)
        p: Thermal parameters

    Returns:
        New thermal state (does not mutate input)
    """
    p_in = max(0.0, power_w)

    temp_delta_from_ambient = state.temp_c - p.ambient_c
    numerator = p_in * p.r_th_c_per_w - temp_delta_from_ambient
    denominator = p.r_th_c_per_w * p.c_th_j_per_c

    dt_dt = numerator / denominator

    # Euler integration: adequate while τ = R*C >> dt_s
    temp_next = state.temp_c + dt_s * dt_dt

    return ThermalState(temp_c=temp_next)


def steady_state_temp(power_w: float, p: ThermalParams) -> float:
    """Temperature the plant settles at under constant power."""
    return p.ambient_c + max(0.0, power_w) * p.r_th_c_per_w

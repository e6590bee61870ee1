import numbers
from dataclasses import dataclass


@dataclass(frozen=True)
class Indexes:
    '''
    Offsets of each sub-sequence inside the flat decision vector.

    States x, y, psi, cte, epsi hold N entries each, the actuators delta
    and v hold N - 1 entries each:

        [x_0..x_{N-1}, y.., psi.., cte.., epsi.., delta_0..delta_{N-2}, v..]
    '''
    steps_ahead: int
    x_start: int
    y_start: int
    psi_start: int
    cte_start: int
    epsi_start: int
    delta_start: int
    v_start: int

    @property
    def n_vars(self) -> int:
        return self.steps_ahead * 5 + (self.steps_ahead - 1) * 2

    @property
    def n_constraints(self) -> int:
        return self.steps_ahead * 5


def make_indexes(steps_ahead: int) -> Indexes:
    if not isinstance(steps_ahead, numbers.Integral) or steps_ahead < 2:
        raise ValueError(f"horizon must be an integer of at least 2 steps, got {steps_ahead}")
    steps_ahead = int(steps_ahead)

    # Non-actuators
    x_start = 0
    y_start = x_start + steps_ahead
    psi_start = y_start + steps_ahead
    cte_start = psi_start + steps_ahead
    epsi_start = cte_start + steps_ahead

    # Actuators
    delta_start = epsi_start + steps_ahead
    v_start = delta_start + steps_ahead - 1

    return Indexes(steps_ahead=steps_ahead,
                   x_start=x_start,
                   y_start=y_start,
                   psi_start=psi_start,
                   cte_start=cte_start,
                   epsi_start=epsi_start,
                   delta_start=delta_start,
                   v_start=v_start)

"""
Alternative-scenario solvers.

Answers "what would it take" questions by searching over simulator runs:

- the monthly contribution needed for a retirement mode, and
- the earliest retirement age that satisfies a mode at a fixed contribution.

Two modes are supported. In ``consumption`` mode liquid wealth may be spent
down but must not run out before life expectancy. In ``preservation`` mode
final wealth must stay at or above 95% of the wealth held at retirement.

Every evaluation goes through WealthProjectionSimulator, so contribution
timeline rules, goals and cash-in events are honored exactly as in a normal
projection.
"""

import logging
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from ..config import EngineSettings
from .scenario import ScenarioInput
from .simulation.engine import WealthProjectionSimulator

logger = logging.getLogger(__name__)

SolverMode = Literal["consumption", "preservation"]

MAX_ITERATIONS = 50
MAX_EXPANSIONS = 5
CONVERGENCE_WIDTH = 50.0
CONSUMPTION_TOLERANCE = 50_000.0
PRESERVATION_RATIO = 0.95
MIN_CONTRIBUTION_UPPER_BOUND = 100_000.0


class ModeEvaluation(BaseModel):
    """Outcome of one scenario under a retirement mode."""

    model_config = ConfigDict(frozen=True)

    final_wealth: float
    wealth_at_retirement: float
    depletion_age: Optional[int]
    depleted_early: bool
    preservation_margin: float = Field(
        ..., description="Final wealth minus 95% of wealth at retirement"
    )

    def satisfies(self, mode: SolverMode) -> bool:
        if mode == "consumption":
            return not self.depleted_early
        return self.preservation_margin >= 0


class SolverResult(BaseModel):
    """Result of a solver search."""

    model_config = ConfigDict(frozen=True)

    mode: SolverMode
    status: Literal["ok", "impossible"]
    value: Optional[float] = Field(
        default=None, description="Required contribution or retirement age"
    )
    message: str = ""


class ScenarioSolver:
    """Bisection solvers over the projection simulator."""

    def __init__(
        self,
        simulator: Optional[WealthProjectionSimulator] = None,
        settings: Optional[EngineSettings] = None,
        stress: bool = False,
    ):
        self.simulator = simulator or WealthProjectionSimulator(settings)
        self.stress = stress

    def evaluate(self, scenario: ScenarioInput) -> ModeEvaluation:
        """Run the simulator once and summarize it for both modes."""
        result = self.simulator.run(scenario, stress=self.stress)
        kpis = result.kpis
        final_wealth = result.get_final_wealth()
        depleted_early = (
            kpis.depletion_age is not None
            and kpis.depletion_age < kpis.assumptions.end_age
        )
        return ModeEvaluation(
            final_wealth=final_wealth,
            wealth_at_retirement=kpis.capital_at_retirement,
            depletion_age=kpis.depletion_age,
            depleted_early=depleted_early,
            preservation_margin=final_wealth
            - kpis.capital_at_retirement * PRESERVATION_RATIO,
        )

    def _with_contribution(self, scenario: ScenarioInput, amount: float) -> ScenarioInput:
        return scenario.model_copy(update={"monthly_contribution": amount})

    def _with_retirement_age(self, scenario: ScenarioInput, age: int) -> ScenarioInput:
        return scenario.model_copy(
            update={"retirement_age": age, "contribution_end_age": age}
        )

    def _converged(self, evaluation: ModeEvaluation, mode: SolverMode) -> bool:
        if mode == "consumption":
            return (
                not evaluation.depleted_early
                and evaluation.final_wealth < CONSUMPTION_TOLERANCE
            )
        return 0 <= evaluation.preservation_margin < CONSUMPTION_TOLERANCE * 10

    def solve_required_contribution(
        self,
        scenario: ScenarioInput,
        mode: SolverMode,
        retirement_age: Optional[int] = None,
    ) -> SolverResult:
        """
        Find the monthly contribution that satisfies a retirement mode.

        Args:
            scenario: Base scenario
            mode: "consumption" or "preservation"
            retirement_age: Target retirement age (defaults to the scenario's)

        Returns:
            SolverResult with the required contribution rounded to cents
        """
        if retirement_age is not None:
            scenario = self._with_retirement_age(scenario, retirement_age)

        def evaluate(amount: float) -> ModeEvaluation:
            return self.evaluate(self._with_contribution(scenario, amount))

        if evaluate(0.0).satisfies(mode):
            return SolverResult(
                mode=mode,
                status="ok",
                value=0.0,
                message="Current wealth already satisfies the goal without contributions.",
            )

        lower = 0.0
        upper = max(scenario.monthly_contribution * 10, MIN_CONTRIBUTION_UPPER_BOUND)
        expansions = 0
        while not evaluate(upper).satisfies(mode) and expansions < MAX_EXPANSIONS:
            expansions += 1
            upper *= 2
        if not evaluate(upper).satisfies(mode):
            logger.info(f"No contribution up to {upper:.2f} satisfies {mode} mode")
            return self._impossible(mode)

        found: Optional[float] = None
        for _ in range(MAX_ITERATIONS):
            mid = (lower + upper) / 2
            evaluation = evaluate(mid)
            if self._converged(evaluation, mode):
                found = mid
                break
            if evaluation.satisfies(mode):
                upper = mid
            else:
                lower = mid
            if upper - lower < CONVERGENCE_WIDTH:
                found = upper
                break

        if found is None:
            found = upper

        return SolverResult(
            mode=mode,
            status="ok",
            value=round(found, 2),
            message=f"Monthly contribution required for {mode} mode.",
        )

    def solve_retirement_age(
        self,
        scenario: ScenarioInput,
        mode: SolverMode,
        monthly_contribution: Optional[float] = None,
    ) -> SolverResult:
        """
        Find the earliest retirement age that satisfies a retirement mode.

        Args:
            scenario: Base scenario
            mode: "consumption" or "preservation"
            monthly_contribution: Fixed contribution (defaults to the scenario's)

        Returns:
            SolverResult with the retirement age
        """
        if monthly_contribution is not None:
            scenario = self._with_contribution(scenario, monthly_contribution)

        lower = min(scenario.current_age + 1, scenario.life_expectancy)
        upper = scenario.life_expectancy

        def feasible(age: int) -> bool:
            return self.evaluate(self._with_retirement_age(scenario, age)).satisfies(mode)

        if not feasible(upper):
            logger.info(f"No retirement age up to {upper} satisfies {mode} mode")
            return self._impossible(mode)

        while lower < upper:
            mid = (lower + upper) // 2
            if feasible(mid):
                upper = mid
            else:
                lower = mid + 1

        return SolverResult(
            mode=mode,
            status="ok",
            value=float(upper),
            message=f"Earliest retirement age for {mode} mode.",
        )

    def _impossible(self, mode: SolverMode) -> SolverResult:
        return SolverResult(
            mode=mode,
            status="impossible",
            value=None,
            message=f"The desired income cannot be sustained in {mode} mode.",
        )

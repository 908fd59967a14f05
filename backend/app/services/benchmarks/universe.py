"""
universe.py — Simulated Industry Benchmark State

Purpose:
- Own the per-industry and default `{average, maxValue}` tables behind the
  live benchmark feed.
- Resolve an (industry, metric) pair through the fallback chain.
- Apply the periodic random walk.

Lookup chain:
1. industry table, verbatim
2. industry alias (fs ↔ finance, technology → tech, health → healthcare, ...)
3. default table, verbatim metric id
4. metric alias on the lower-cased id (margin → profit_margin, ...) into the default table
5. {average: 50, maxValue: 90}

Each instance carries its own state and `random.Random`, so tests can run
isolated, reproducible universes side by side.
"""

from __future__ import annotations

import copy
import random
from typing import Dict, Optional, Tuple

from app.core.logging import get_logger

logger = get_logger(__name__)

MetricValue = Dict[str, float]
MetricTable = Dict[str, MetricValue]

# -----------------------------------------------------------------------------
# Seed tables
# -----------------------------------------------------------------------------

INITIAL_INDUSTRY_STATE: Dict[str, MetricTable] = {
    "tech": {
        "revenue_growth": {"average": 18, "maxValue": 32.4},
        "profit_margin": {"average": 20, "maxValue": 36},
        "digital_transformation": {"average": 80, "maxValue": 95},
        "r_and_d": {"average": 15, "maxValue": 27},
    },
    "retail": {
        "profit_margin": {"average": 8, "maxValue": 14.4},
        "customer_acquisition_cost": {"average": 50, "maxValue": 90},
        "customer_retention": {"average": 75, "maxValue": 90},
    },
    "manufacturing": {
        "revenue_growth": {"average": 5, "maxValue": 9},
        "employee_productivity": {"average": 200000, "maxValue": 360000},
        "digital_transformation": {"average": 42, "maxValue": 75.6},
    },
    "healthcare": {
        "profit_margin": {"average": 15, "maxValue": 27},
        "employee_productivity": {"average": 180000, "maxValue": 324000},
        "r_and_d": {"average": 18, "maxValue": 32.4},
    },
    "finance": {
        "profit_margin": {"average": 25, "maxValue": 45},
        "employee_productivity": {"average": 350000, "maxValue": 630000},
        "debt_to_equity": {"average": 3, "maxValue": 5.4},
        "cash_flow": {"average": 20, "maxValue": 36},
    },
}

INITIAL_DEFAULT_STATE: MetricTable = {
    "revenue_growth": {"average": 8, "maxValue": 14.4},
    "profit_margin": {"average": 15, "maxValue": 27},
    "roi": {"average": 15, "maxValue": 27},
    "employee_productivity": {"average": 150000, "maxValue": 270000},
    "customer_acquisition_cost": {"average": 200, "maxValue": 360},
    "customer_retention": {"average": 80, "maxValue": 92},
    "digital_transformation": {"average": 65, "maxValue": 88},
    "r_and_d": {"average": 5, "maxValue": 9},
    "debt_to_equity": {"average": 1.0, "maxValue": 1.8},
    "cash_flow": {"average": 15, "maxValue": 27},
}

INDUSTRY_ALIASES: Dict[str, str] = {
    "fs": "finance",
    "finance": "fs",
    "tech": "tech",
    "technology": "tech",
    "healthcare": "healthcare",
    "health": "healthcare",
    "manufacturing": "manufacturing",
    "retail": "retail",
}

METRIC_ALIASES: Dict[str, str] = {
    "revenue_growth": "revenue_growth",
    "revenuegrowth": "revenue_growth",
    "growth": "revenue_growth",
    "profit_margin": "profit_margin",
    "profitmargin": "profit_margin",
    "margin": "profit_margin",
    "roi": "roi",
    "return_on_investment": "roi",
    "returnoninvestment": "roi",
    "digital_transformation": "digital_transformation",
    "digitaltransformation": "digital_transformation",
    "transformation": "digital_transformation",
}

FALLBACK_VALUE: MetricValue = {"average": 50, "maxValue": 90}

MAX_VALUE_FACTOR = 1.8
UPWARD_BIAS_CENTER = 0.4  # random() - 0.4 skews the walk upward
INDUSTRY_CHANGE_MAGNITUDE = 0.02
DEFAULT_CHANGE_MAGNITUDE = 0.015


def _copy_value(value: MetricValue) -> MetricValue:
    return {"average": value["average"], "maxValue": value["maxValue"]}


class BenchmarkUniverse:
    """Mutable benchmark tables plus the random source that moves them."""

    def __init__(
        self,
        rng: Optional[random.Random] = None,
        industry_state: Optional[Dict[str, MetricTable]] = None,
        default_state: Optional[MetricTable] = None,
    ):
        self.rng = rng or random.Random()
        self.industry_state: Dict[str, MetricTable] = copy.deepcopy(
            industry_state if industry_state is not None else INITIAL_INDUSTRY_STATE
        )
        self.default_state: MetricTable = copy.deepcopy(
            default_state if default_state is not None else INITIAL_DEFAULT_STATE
        )

    # ------------------------------------------------------------------ #
    # Lookup
    def resolve(self, industry: str, metric: str) -> Tuple[str, Optional[str], Optional[str]]:
        """
        Report which table entry `lookup` would read.

        Returns (source, table_key, metric_key) with source one of
        "industry", "industry_alias", "default", "metric_alias", "fallback".
        """
        if not industry or not metric:
            return "fallback", None, None

        if metric in self.industry_state.get(industry, {}):
            return "industry", industry, metric

        alternate = INDUSTRY_ALIASES.get(industry)
        if alternate and metric in self.industry_state.get(alternate, {}):
            return "industry_alias", alternate, metric

        if metric in self.default_state:
            return "default", None, metric

        alternate_metric = METRIC_ALIASES.get(metric.lower())
        if alternate_metric and alternate_metric in self.default_state:
            return "metric_alias", None, alternate_metric

        return "fallback", None, None

    def lookup(self, industry: str, metric: str) -> MetricValue:
        """Current `{average, maxValue}` for (industry, metric); never raises for unknown keys."""
        source, table_key, metric_key = self.resolve(industry, metric)

        if source in ("industry", "industry_alias"):
            if source == "industry_alias":
                logger.debug("Using alternate industry mapping: %s -> %s", industry, table_key)
            return _copy_value(self.industry_state[table_key][metric_key])

        if source in ("default", "metric_alias"):
            if source == "metric_alias":
                logger.debug("Using alternate metric mapping: %s -> %s", metric, metric_key)
            return _copy_value(self.default_state[metric_key])

        logger.debug("Using fallback values for unknown metric %r in industry %r", metric, industry)
        return _copy_value(FALLBACK_VALUE)

    # ------------------------------------------------------------------ #
    # Random walk
    def _step(self, value: MetricValue, magnitude: float) -> MetricValue:
        change_factor = 1 + (self.rng.random() - UPWARD_BIAS_CENTER) * magnitude
        average = round(value["average"] * change_factor, 2)
        return {"average": average, "maxValue": round(average * MAX_VALUE_FACTOR, 2)}

    def perturb(self) -> None:
        """Move every tracked value one step; maxValue is recomputed from the new average."""
        for table in self.industry_state.values():
            for metric, value in table.items():
                table[metric] = self._step(value, INDUSTRY_CHANGE_MAGNITUDE)

        for metric, value in self.default_state.items():
            self.default_state[metric] = self._step(value, DEFAULT_CHANGE_MAGNITUDE)

    # ------------------------------------------------------------------ #
    # Snapshots
    def snapshot(self) -> "BenchmarkUniverse":
        """Frozen copy of the current tables (shares nothing mutable with self)."""
        return BenchmarkUniverse(
            rng=self.rng,
            industry_state=self.industry_state,
            default_state=self.default_state,
        )

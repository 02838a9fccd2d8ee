import math
from dataclasses import dataclass, field, asdict
from typing import Any, Dict, FrozenSet, Iterable, Mapping, Optional

from softwhere import catalog


def _as_set(values: Optional[Iterable[str]]) -> FrozenSet[str]:
    return frozenset(values or ())


@dataclass(frozen=True)
class EstimatorInput:
    projectType: str
    complexity: str
    pages: int
    features: FrozenSet[str] = field(default_factory=frozenset)
    subtype: Optional[str] = None
    techStack: FrozenSet[str] = field(default_factory=frozenset)
    platforms: FrozenSet[str] = field(default_factory=frozenset)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "EstimatorInput":
        return cls(
            projectType=data["projectType"],
            complexity=data["complexity"],
            pages=data["pages"],
            features=_as_set(data.get("features")),
            subtype=data.get("subtype") or None,
            techStack=_as_set(data.get("techStack")),
            platforms=_as_set(data.get("platforms")),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "projectType": self.projectType,
            "subtype": self.subtype,
            "complexity": self.complexity,
            "pages": self.pages,
            "features": sorted(self.features),
            "techStack": sorted(self.techStack),
            "platforms": sorted(self.platforms),
        }


@dataclass(frozen=True)
class EstimateBreakdown:
    baseCost: float
    complexityMultiplier: float
    featuresCost: float
    pagesCost: float
    techAdjustmentFactor: float
    totalHours: float
    hourlyRate: float


@dataclass(frozen=True)
class EstimateResult:
    developmentCost: int
    deadlineWeeks: int
    supportCost: int
    breakdown: EstimateBreakdown

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def round_half_up(value: float) -> int:
    # Math.round semantics for the non-negative amounts handled here
    return int(math.floor(value + 0.5))


def effective_features(data: EstimatorInput) -> FrozenSet[str]:
    """Subtype-bundled features plus explicit picks, each counted once."""
    return catalog.implied_features(data.projectType, data.subtype) | data.features


def effective_tech(data: EstimatorInput) -> FrozenSet[str]:
    implied = catalog.implied_tech(data.projectType, data.subtype)
    if implied:
        return data.techStack | {implied}
    return data.techStack


def weekly_throughput(data: EstimatorInput) -> float:
    if data.projectType == "mobile" and {"ios", "android"} <= data.platforms:
        return catalog.HOURS_PER_WEEK_PARALLEL
    return catalog.HOURS_PER_WEEK_SINGLE


def calculate_estimate(data: EstimatorInput) -> EstimateResult:
    """
    Deterministic cost / timeline estimate for a project description.

    Complexity scales only the base structure; features and pages are added
    before the tech factor so the stack choice affects the whole project.
    Unknown feature ids cost nothing and unknown tech ids are neutral.
    Input is expected to be validated already (see ``softwhere.validation``).
    """
    base_hours = catalog.BASE_HOURS.get(data.projectType, catalog.BASE_HOURS[catalog.DEFAULT_PROJECT_TYPE])
    complexity_multiplier = catalog.COMPLEXITY_MULTIPLIER[data.complexity]

    # sorted iteration keeps float sums/products independent of input order
    features_hours = 0.0
    for feature in sorted(effective_features(data)):
        features_hours += catalog.FEATURE_HOURS.get(feature, 0)

    pages_hours = data.pages * catalog.PAGE_HOURS

    tech_factor = 1.0
    for tech in sorted(effective_tech(data)):
        tech_factor *= catalog.TECH_STACK_ADJUSTMENT.get(tech, 1)

    total_hours = (base_hours * complexity_multiplier + features_hours + pages_hours) * tech_factor

    rate = catalog.HOURLY_RATE
    development_cost = round_half_up(total_hours * rate)
    deadline_weeks = math.ceil(total_hours / weekly_throughput(data))
    support_cost = round_half_up(development_cost * catalog.SUPPORT_RATE)

    return EstimateResult(
        developmentCost=development_cost,
        deadlineWeeks=deadline_weeks,
        supportCost=support_cost,
        breakdown=EstimateBreakdown(
            baseCost=base_hours * rate,
            complexityMultiplier=complexity_multiplier,
            featuresCost=features_hours * rate,
            pagesCost=pages_hours * rate,
            techAdjustmentFactor=tech_factor,
            totalHours=total_hours,
            hourlyRate=rate,
        ),
    )

"""
Pipeline for one AHP survey submission:
1) Parse the submission (respondent meta + pairwise comparisons per section).
2) For each recognised section, build the comparison matrix from its judgments.
3) Derive geometric-mean weights and check consistency (lambda_max, CI, CR).
4) Collect the rounded per-section results.

The computation is a pure function of the submission: nothing is stored between
calls and nothing is written anywhere.
"""

from __future__ import annotations

import json
import logging
import math
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, Literal, Mapping, Optional, Tuple, Union

from ahp_utils import (
    CONSISTENCY_THRESHOLD,
    RI_FALLBACK,
    ahp_consistency,
    ahp_weights,
    build_comparison_matrix,
)
from judgments import JudgmentSet

logger = logging.getLogger(__name__)


# -------------------------------------------------------------------
# SECTIONS: top-level dimensions, then one sub-group per dimension
# -------------------------------------------------------------------
SectionName = Literal["dimensions", "A", "B", "C", "D"]

SECTIONS: Tuple[SectionName, ...] = ("dimensions", "A", "B", "C", "D")
SUB_SECTIONS: Tuple[SectionName, ...] = ("A", "B", "C", "D")


class SubmissionError(ValueError):
    """The submission as a whole cannot be evaluated."""


@dataclass(frozen=True)
class SurveyConfig:
    """
    sections:
        Recognised section names, evaluated in this order. Anything else in the
        comparisons block is ignored.
    consistency_threshold:
        A section is consistent when CR < threshold.
    decimals:
        Rounding applied to the reported weights, lambda_max, CI and CR.
    ri_fallback:
        Random index used for matrices larger than the RI table.
    """
    sections: Tuple[str, ...] = SECTIONS
    consistency_threshold: float = CONSISTENCY_THRESHOLD
    decimals: int = 4
    ri_fallback: float = RI_FALLBACK


DEFAULT_CONFIG = SurveyConfig()


@dataclass(frozen=True)
class SectionResult:
    """
    Rounded AHP result for one section. `weights` is keyed by item id, in
    sorted id order.
    """
    n: int
    weights: Mapping[str, float]
    lambda_max: float
    ci: float
    cr: float
    consistent: bool

    def to_dict(self) -> Dict[str, Any]:
        return {
            "n": self.n,
            "weights": dict(self.weights),
            "lambdaMax": self.lambda_max,
            "CI": self.ci,
            "CR": self.cr,
            "consistent": self.consistent,
        }


@dataclass(frozen=True)
class Submission:
    meta: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))
    comparisons: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))


def parse_submission(data: Union[Mapping[str, Any], str, bytes]) -> Submission:
    """
    Validate the outer shape of a submission.

    Accepts an already-decoded mapping or a JSON document. Only the structure is
    checked here; individual judgment records are screened per section.
    """
    if isinstance(data, (str, bytes, bytearray)):
        try:
            data = json.loads(data)
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            raise SubmissionError(f"submission is not valid JSON: {exc}") from exc

    if not isinstance(data, Mapping):
        raise SubmissionError(f"submission must be an object, got {type(data).__name__}")

    comparisons = data.get("comparisons")
    if comparisons is None:
        raise SubmissionError("submission has no 'comparisons' block")
    if not isinstance(comparisons, Mapping):
        raise SubmissionError(f"'comparisons' must be an object, got {type(comparisons).__name__}")

    meta = data.get("meta")
    if meta is None:
        meta = {}
    elif not isinstance(meta, Mapping):
        raise SubmissionError(f"'meta' must be an object, got {type(meta).__name__}")

    return Submission(meta=MappingProxyType(dict(meta)), comparisons=MappingProxyType(dict(comparisons)))


def round_half_up(x: float, decimals: int) -> float:
    """Round to `decimals` places with ties going up (2.5 -> 3, -2.5 -> -2)."""
    scale = 10 ** decimals
    return math.floor(x * scale + 0.5) / scale


def evaluate_section(
    section: str,
    records,
    config: SurveyConfig = DEFAULT_CONFIG,
) -> Optional[SectionResult]:
    """
    Run matrix -> weights -> consistency for one section.

    Returns None when the section has nothing to compare.
    """
    jset = JudgmentSet.from_records(section, records or [])
    if jset.is_empty:
        return None

    M = build_comparison_matrix(jset.items, jset.judgments)
    w = ahp_weights(M)
    cons = ahp_consistency(
        M, w,
        threshold=config.consistency_threshold,
        ri_fallback=config.ri_fallback,
    )
    logger.debug("[%s] items=%s\nmatrix=\n%s\nweights=%s", section, jset.items, M, w)

    d = config.decimals
    result = SectionResult(
        n=jset.n,
        weights=MappingProxyType({item: round_half_up(float(w[i]), d) for i, item in enumerate(jset.items)}),
        lambda_max=round_half_up(cons.lambda_max, d),
        ci=round_half_up(cons.ci, d),
        cr=round_half_up(cons.cr, d),
        consistent=cons.consistent,
    )
    logger.info(
        "[%s] n=%d lambda_max=%.4f CR=%.4f %s",
        section, result.n, cons.lambda_max, cons.cr,
        "consistent" if result.consistent else "NOT consistent",
    )
    return result


def evaluate_submission(
    data: Union[Submission, Mapping[str, Any], str, bytes],
    config: SurveyConfig = DEFAULT_CONFIG,
) -> Dict[str, SectionResult]:
    """
    Evaluate every recognised section present in a submission.

    Returns
    -------
    dict[section] -> SectionResult, in `config.sections` order, containing only
    sections with at least one comparison record.

    Raises
    ------
    SubmissionError
        If the submission is structurally unusable. No partial result is
        returned in that case.
    """
    submission = data if isinstance(data, Submission) else parse_submission(data)

    results: Dict[str, SectionResult] = {}
    for section in config.sections:
        records = submission.comparisons.get(section)
        if records is None:
            continue
        if not isinstance(records, list):
            logger.warning("[%s] comparisons must be a list, got %s; section skipped",
                           section, type(records).__name__)
            continue
        if not records:
            continue

        result = evaluate_section(section, records, config)
        if result is not None:
            results[section] = result

    return results


def results_to_dict(results: Mapping[str, SectionResult]) -> Dict[str, Dict[str, Any]]:
    """Plain-dict form of the results, ready for json.dumps."""
    return {section: res.to_dict() for section, res in results.items()}

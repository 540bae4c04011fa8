"""
Result tables for one evaluated AHP survey submission.

Builds the rows a survey sheet keeps per respondent:
  - one summary row (dimension weights + CR/consistency of every section)
  - one weight row per sub-section (CR, consistency, weight of each item)

The tables are returned as pandas DataFrames; where they get written is up to the caller.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Mapping, Optional, Sequence

import pandas as pd

from survey_pipeline import SUB_SECTIONS, SectionResult

META_FIELDS = ("name", "org", "field", "years")


def respondent_fields(meta: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
    """Respondent identity columns; missing values become ""."""
    meta = meta or {}
    return {k: (meta.get(k) if meta.get(k) is not None else "") for k in META_FIELDS}


def _stamp(row: Dict[str, Any], timestamp: Optional[datetime]) -> Dict[str, Any]:
    if timestamp is None:
        return row
    return {"timestamp": timestamp, **row}


def build_summary_table(
    results: Mapping[str, SectionResult],
    meta: Optional[Mapping[str, Any]] = None,
    *,
    sub_sections: Sequence[str] = SUB_SECTIONS,
    timestamp: Optional[datetime] = None,
) -> pd.DataFrame:
    """
    One-row summary for a respondent.

    Columns
    -------
    name, org:
        From meta.
    dimensions_CR, dimensions_consistent:
        Top-level consistency.
    w_<item>:
        Weight of each dimension item, in sorted id order.
    <section>_CR, <section>_consistent:
        For each sub-section. Sections without results leave empty cells (None).
    """
    who = respondent_fields(meta)
    row: Dict[str, Any] = {"name": who["name"], "org": who["org"]}

    dim = results.get("dimensions")
    row["dimensions_CR"] = dim.cr if dim is not None else None
    row["dimensions_consistent"] = dim.consistent if dim is not None else None
    if dim is not None:
        for item in sorted(dim.weights):
            row[f"w_{item}"] = dim.weights[item]

    for section in sub_sections:
        res = results.get(section)
        row[f"{section}_CR"] = res.cr if res is not None else None
        row[f"{section}_consistent"] = res.consistent if res is not None else None

    return pd.DataFrame([_stamp(row, timestamp)])


def build_weight_tables(
    results: Mapping[str, SectionResult],
    meta: Optional[Mapping[str, Any]] = None,
    *,
    sections: Sequence[str] = SUB_SECTIONS,
    timestamp: Optional[datetime] = None,
) -> Dict[str, pd.DataFrame]:
    """
    Detailed weights per section: one row (name, CR, consistent, <item>...).
    Sections without results are left out.
    """
    who = respondent_fields(meta)
    tables: Dict[str, pd.DataFrame] = {}

    for section in sections:
        res = results.get(section)
        if res is None or not res.weights:
            continue
        row: Dict[str, Any] = {"name": who["name"], "CR": res.cr, "consistent": res.consistent}
        for item in sorted(res.weights):
            row[item] = res.weights[item]
        df = pd.DataFrame([_stamp(row, timestamp)])
        df.columns.name = section
        tables[section] = df

    return tables


def format_results_for_print(
    results: Mapping[str, SectionResult],
    *,
    header: str = "AHP results (weights rounded; CR < threshold means consistent)",
) -> str:
    """Readable string representation for console output."""
    lines = [header]
    if not results:
        lines.append("(no sections with comparisons)")
    for section, res in results.items():
        lines.append("\n" + "-" * 72)
        lines.append(f"Section: {section}  (n={res.n})")
        weights = pd.Series(dict(res.weights), name="weight")
        weights.index.name = "item"
        lines.append(weights.to_string())
        lines.append(
            f"lambda_max={res.lambda_max:.4f}  CI={res.ci:.4f}  CR={res.cr:.4f}  "
            f"{'consistent' if res.consistent else 'NOT consistent'}"
        )
    return "\n".join(lines)

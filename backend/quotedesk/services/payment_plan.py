"""
Payment plan variants

Stored as text: a JSON list of milestones, or anything else as free text.
"""
import json
from dataclasses import dataclass
from typing import List, Optional, Union


@dataclass(frozen=True)
class Milestone:
    stage: str
    percent: object
    amount: object


@dataclass(frozen=True)
class StructuredPlan:
    milestones: List[Milestone]


@dataclass(frozen=True)
class FreeTextPlan:
    text: str


PaymentPlan = Union[StructuredPlan, FreeTextPlan]


def parse_payment_plan(raw: Optional[str]) -> Optional[PaymentPlan]:
    """Stored text -> plan variant; malformed JSON degrades to free text"""
    if not raw:
        return None
    try:
        data = json.loads(raw)
    except (TypeError, ValueError):
        return FreeTextPlan(raw)
    if not isinstance(data, list):
        return FreeTextPlan(raw)

    milestones = []
    for entry in data:
        if not isinstance(entry, dict):
            entry = {}
        milestones.append(Milestone(
            stage=str(entry.get("stage") or ""),
            percent=entry.get("percent") or 0,
            amount=entry.get("amount") or 0,
        ))
    return StructuredPlan(milestones)


def dump_payment_plan(value) -> Optional[str]:
    """Request value (list of milestones or text) -> stored text"""
    if value is None or value == "":
        return None
    if isinstance(value, str):
        return value
    entries = []
    for entry in value:
        if hasattr(entry, "model_dump"):
            entry = entry.model_dump()
        entries.append(entry)
    return json.dumps(entries, default=float)


def plan_for_response(raw: Optional[str]):
    """Stored text -> JSON friendly value for API responses"""
    plan = parse_payment_plan(raw)
    if plan is None:
        return None
    if isinstance(plan, FreeTextPlan):
        return plan.text
    return [
        {"stage": m.stage, "percent": m.percent, "amount": m.amount}
        for m in plan.milestones
    ]

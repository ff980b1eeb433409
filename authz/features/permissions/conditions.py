"""
Condition variants attached to a permission.

Permissions store their conditions as a JSON document:

    {
        "ownOnly": true,
        "status": ["pending", "processing"],
        "custom": {
            "department": "billing",
            "maxAmount": 500,
            "timeRestriction": {"startHour": 9, "endHour": 17}
        }
    }

The document is parsed into a ConditionSet of typed variants. Every field is
optional and contributes at most one variant; the variants of a set are ANDed.
Fields that are unknown or have the wrong type are skipped with a warning so a
bad admin-entered condition never locks everyone out.
"""
from typing import Annotated, Any, Callable, Dict, Literal, Optional, Union
from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from authz.utils import get_logger


log = get_logger(__name__)


# ============================================================================
# Variants
# ============================================================================

class _Condition(BaseModel):
    model_config = ConfigDict(frozen=True)


class OwnOnly(_Condition):
    """The acting principal must own the targeted resource."""
    kind: Literal["own_only"] = "own_only"


class StatusIn(_Condition):
    """The targeted resource's status must be one of ``allowed``."""
    kind: Literal["status_in"] = "status_in"
    allowed: frozenset[str] = Field(..., min_length=1)


class CustomDepartment(_Condition):
    kind: Literal["department"] = "department"
    department: str = Field(..., min_length=1)


class CustomMaxAmount(_Condition):
    kind: Literal["max_amount"] = "max_amount"
    max_amount: float


class CustomTimeWindow(_Condition):
    """Inclusive window of local hours, e.g. 9..17."""
    kind: Literal["time_window"] = "time_window"
    start_hour: int = Field(..., ge=0, le=23)
    end_hour: int = Field(..., ge=0, le=23)


Condition = Annotated[
    Union[OwnOnly, StatusIn, CustomDepartment, CustomMaxAmount, CustomTimeWindow],
    Field(discriminator="kind"),
]


class ConditionSet(BaseModel):
    """Conjunction of condition variants. Empty means unconditional."""
    model_config = ConfigDict(frozen=True)

    rules: tuple[Condition, ...] = ()

    @model_validator(mode="before")
    @classmethod
    def from_document(cls, data: Any) -> Any:
        # Accept the stored JSON document as well as {"rules": [...]}
        if data is None:
            return {"rules": ()}
        if isinstance(data, dict) and "rules" not in data:
            return {"rules": parse_rules(data)}
        return data

    def to_document(self) -> Dict[str, Any] | None:
        """Render back to the stored JSON document shape."""
        if not self.rules:
            return None
        document: Dict[str, Any] = {}
        custom: Dict[str, Any] = {}
        for rule in self.rules:
            if isinstance(rule, OwnOnly):
                document["ownOnly"] = True
            elif isinstance(rule, StatusIn):
                document["status"] = sorted(rule.allowed)
            elif isinstance(rule, CustomDepartment):
                custom["department"] = rule.department
            elif isinstance(rule, CustomMaxAmount):
                custom["maxAmount"] = rule.max_amount
            elif isinstance(rule, CustomTimeWindow):
                custom["timeRestriction"] = {"startHour": rule.start_hour, "endHour": rule.end_hour}
        if custom:
            document["custom"] = custom
        return document


# ============================================================================
# Parsing of stored documents
# ============================================================================

def _parse_department(value: Any) -> Optional[_Condition]:
    if not isinstance(value, str):
        raise ValueError("department must be a string")
    return CustomDepartment(department=value)


def _parse_max_amount(value: Any) -> Optional[_Condition]:
    # bool is an int subclass but never a meaningful ceiling
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError("maxAmount must be a number")
    return CustomMaxAmount(max_amount=value)


def _parse_time_restriction(value: Any) -> Optional[_Condition]:
    if not isinstance(value, dict):
        raise ValueError("timeRestriction must be an object")
    start, end = value.get("startHour"), value.get("endHour")
    for hour in (start, end):
        if isinstance(hour, bool) or not isinstance(hour, int):
            raise ValueError("startHour and endHour must be integers")
    return CustomTimeWindow(start_hour=start, end_hour=end)


# Custom rule keys understood by the evaluator. Register a parser here together
# with a new variant to extend the rule set.
CUSTOM_RULE_PARSERS: Dict[str, Callable[[Any], Optional[_Condition]]] = {
    "department": _parse_department,
    "maxAmount": _parse_max_amount,
    "timeRestriction": _parse_time_restriction,
}


def _parse_own_only(value: Any) -> Optional[_Condition]:
    if not isinstance(value, bool):
        raise ValueError("ownOnly must be a boolean")
    return OwnOnly() if value else None


def _parse_status(value: Any) -> Optional[_Condition]:
    if not isinstance(value, (list, tuple)) or not all(isinstance(s, str) for s in value):
        raise ValueError("status must be a list of strings")
    if not value:
        return None
    return StatusIn(allowed=frozenset(value))


def _parse_field(key: str, value: Any, parser) -> Optional[_Condition]:
    try:
        return parser(value)
    except (ValueError, ValidationError) as e:
        log.warning(f"Ignoring malformed condition {key}={value!r}: {e}")
        return None


def parse_rules(document: Dict[str, Any]) -> list[_Condition]:
    """
    Parse a stored condition document into a list of variants.

    Absent and null fields add nothing. Malformed fields and unknown keys are
    logged and skipped.
    """
    rules: list[_Condition] = []
    for key, value in document.items():
        if value is None:
            continue
        if key == "ownOnly":
            rule = _parse_field(key, value, _parse_own_only)
        elif key == "status":
            rule = _parse_field(key, value, _parse_status)
        elif key == "custom":
            rules.extend(_parse_custom(value))
            continue
        else:
            log.warning(f"Ignoring unknown condition field: {key}")
            continue
        if rule is not None:
            rules.append(rule)
    return rules


def _parse_custom(custom: Any) -> list[_Condition]:
    if not isinstance(custom, dict):
        log.warning(f"Ignoring malformed custom conditions: {custom!r}")
        return []
    rules: list[_Condition] = []
    for key, value in custom.items():
        if value is None:
            continue
        parser = CUSTOM_RULE_PARSERS.get(key)
        if parser is None:
            log.warning(f"Ignoring unknown custom condition: {key}")
            continue
        rule = _parse_field(f"custom.{key}", value, parser)
        if rule is not None:
            rules.append(rule)
    return rules


def parse_conditions(document: Optional[Dict[str, Any]]) -> ConditionSet:
    """Build a ConditionSet from a stored document (None means no conditions)."""
    if document is None:
        return ConditionSet()
    if not isinstance(document, dict):
        log.warning(f"Ignoring malformed conditions document: {document!r}")
        return ConditionSet()
    return ConditionSet(rules=tuple(parse_rules(document)))

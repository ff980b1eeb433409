"""
Runtime evaluation of permission conditions.

Absent request attributes are handled per rule:

    own_only     passes when owner_id or resource_id is the principal;
                 neither present -> fail (ownership is never assumed)
    status_in    status missing        -> pass
    department   department missing    -> pass
    max_amount   amount missing        -> pass
    time_window  always evaluated against context.timestamp

The ownership/status asymmetry matches the behaviour of the storefront this
engine was built for and is kept on purpose until product owners decide
otherwise.
"""
from authz.features.permissions.conditions import (
    ConditionSet,
    CustomDepartment,
    CustomMaxAmount,
    CustomTimeWindow,
    OwnOnly,
    StatusIn,
)
from authz.features.permissions.schemas import RequestContext
from authz.utils import get_logger


log = get_logger(__name__)


class ConditionEvaluator:
    """
    Evaluates a ConditionSet for one principal and request context.

    Stateless; a single instance may be shared between requests.
    """

    def evaluate(self, conditions: ConditionSet, context: RequestContext, principal_id: str) -> bool:
        """
        Return True if every rule of ``conditions`` holds.

        An empty set is satisfied. Evaluation stops at the first failing rule.
        """
        for rule in conditions.rules:
            if not self.check(rule, context, principal_id):
                log.debug(f"Condition {rule.kind} failed for principal {principal_id}: {rule!r}")
                return False
        return True

    def check(self, rule, context: RequestContext, principal_id: str) -> bool:
        if isinstance(rule, OwnOnly):
            return self.check_own_only(context, principal_id)
        elif isinstance(rule, StatusIn):
            return self.check_status(rule, context)
        elif isinstance(rule, CustomDepartment):
            return self.check_department(rule, context)
        elif isinstance(rule, CustomMaxAmount):
            return self.check_max_amount(rule, context)
        elif isinstance(rule, CustomTimeWindow):
            return self.check_time_window(rule, context)
        raise TypeError(f"Unsupported condition: {type(rule).__name__}")

    @staticmethod
    def check_own_only(context: RequestContext, principal_id: str) -> bool:
        # A principal owns itself, e.g. GET /users/{id} for its own id
        if context.owner_id is not None and context.owner_id == principal_id:
            return True
        return context.resource_id is not None and context.resource_id == principal_id

    @staticmethod
    def check_status(rule: StatusIn, context: RequestContext) -> bool:
        if context.status is None:
            return True
        return context.status in rule.allowed

    @staticmethod
    def check_department(rule: CustomDepartment, context: RequestContext) -> bool:
        if context.department is None:
            return True
        return context.department == rule.department

    @staticmethod
    def check_max_amount(rule: CustomMaxAmount, context: RequestContext) -> bool:
        if context.amount is None:
            return True
        return context.amount <= rule.max_amount

    @staticmethod
    def check_time_window(rule: CustomTimeWindow, context: RequestContext) -> bool:
        hour = context.timestamp.hour
        return rule.start_hour <= hour <= rule.end_hour


def evaluate_conditions(conditions: ConditionSet, context: RequestContext, principal_id: str) -> bool:
    """
    Evaluate conditions against context with the default evaluator.

    Example:
        evaluate_conditions(parse_conditions({"ownOnly": True}), RequestContext(owner_id="u1"), "u1")
    """
    return ConditionEvaluator().evaluate(conditions, context, principal_id)

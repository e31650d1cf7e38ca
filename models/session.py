"""Per-user conversational session.

A session holds exactly one active flow, named by ``state``. The optional
fields carry the pending values of that flow; every ``start_*`` method clears
them first so nothing from a previous flow leaks into the next one.
"""

from dataclasses import dataclass, fields
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Dict, Optional


class SessionState(str, Enum):
    IDLE = "idle"
    EDITING_AMOUNT = "editing_amount"
    EDITING_CATEGORY = "editing_category"
    RECURRING_WIZARD = "recurring_wizard"


class RecurringStep(str, Enum):
    AMOUNT = "amount"
    DESCRIPTION = "description"
    MANUAL_CATEGORY = "manual_category"
    FREQUENCY = "frequency"


_DECIMAL_FIELDS = ("original_amount", "recurring_amount")


@dataclass
class Session:
    """Conversational state for one user.

    Attributes:
        state: The active flow.
        editing_expense_id: Expense whose amount is being edited.
        edit_mode: What is being edited ("amount" or "category").
        original_amount: Amount of the expense whose category is being edited.
        original_category: Category path of the expense whose amount is being edited.
        editing_category_id: Expense whose category is being edited.
        adding_recurring: True while the recurring wizard runs.
        recurring_step: Current wizard step.
        recurring_amount: Amount collected by the wizard.
        recurring_description: Description collected by the wizard.
        recurring_category: Category path chosen so far.
        suggested_category: Classifier suggestion offered next to the user's
            own category when the two disagree.
    """

    state: SessionState = SessionState.IDLE
    editing_expense_id: Optional[int] = None
    edit_mode: Optional[str] = None
    original_amount: Optional[Decimal] = None
    original_category: Optional[str] = None
    editing_category_id: Optional[int] = None
    adding_recurring: bool = False
    recurring_step: Optional[RecurringStep] = None
    recurring_amount: Optional[Decimal] = None
    recurring_description: Optional[str] = None
    recurring_category: Optional[str] = None
    suggested_category: Optional[str] = None

    @property
    def is_idle(self) -> bool:
        return self.state == SessionState.IDLE

    def in_recurring_step(self, *steps: RecurringStep) -> bool:
        return (
            self.state == SessionState.RECURRING_WIZARD
            and self.recurring_step in steps
        )

    def clear(self) -> None:
        """Reset every optional field and return to idle."""
        for f in fields(self):
            setattr(self, f.name, f.default)

    def start_edit_amount(self, expense_id: int, category_path: str) -> None:
        self.clear()
        self.state = SessionState.EDITING_AMOUNT
        self.edit_mode = "amount"
        self.editing_expense_id = expense_id
        self.original_category = category_path

    def start_edit_category(self, expense_id: int, amount: Decimal) -> None:
        self.clear()
        self.state = SessionState.EDITING_CATEGORY
        self.edit_mode = "category"
        self.editing_category_id = expense_id
        self.original_amount = amount

    def start_recurring(self) -> None:
        self.clear()
        self.state = SessionState.RECURRING_WIZARD
        self.adding_recurring = True
        self.recurring_step = RecurringStep.AMOUNT

    def copy(self) -> "Session":
        return Session.from_dict(self.to_dict())

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a JSON-compatible dict, omitting absent fields."""
        data: Dict[str, Any] = {"state": self.state.value}
        for f in fields(self):
            if f.name == "state":
                continue
            value = getattr(self, f.name)
            if value is None or value is False:
                continue
            if isinstance(value, Enum):
                value = value.value
            elif isinstance(value, Decimal):
                value = str(value)
            data[f.name] = value
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Session":
        """Build a session from a dict produced by to_dict().

        Raises:
            ValueError: If the data is not a valid session.
        """
        if not isinstance(data, dict):
            raise ValueError(f"Session data must be an object, got {type(data).__name__}")

        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise ValueError(f"Unknown session fields: {sorted(unknown)}")

        values = dict(data)
        values["state"] = SessionState(values.get("state", SessionState.IDLE.value))
        if values.get("recurring_step") is not None:
            values["recurring_step"] = RecurringStep(values["recurring_step"])
        for name in _DECIMAL_FIELDS:
            if values.get(name) is not None:
                try:
                    values[name] = Decimal(str(values[name]))
                except InvalidOperation:
                    raise ValueError(f"Invalid decimal for {name}: {values[name]!r}")

        session = cls(**values)
        session._validate()
        return session

    def _validate(self) -> None:
        if self.state == SessionState.EDITING_AMOUNT and self.editing_expense_id is None:
            raise ValueError("editing_amount session without editing_expense_id")
        if self.state == SessionState.EDITING_CATEGORY and self.editing_category_id is None:
            raise ValueError("editing_category session without editing_category_id")
        if self.state == SessionState.RECURRING_WIZARD and self.recurring_step is None:
            raise ValueError("recurring_wizard session without recurring_step")

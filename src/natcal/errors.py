class NatcalError(Exception):
    """Base class for errors raised by natcal."""


class ParseError(NatcalError):
    """An entry could not be turned into a usable record."""


class MissingDate(ParseError):
    """A scheduled item type was entered without a recognisable date."""

    def __init__(self, summary: str, item_type=None):
        self.summary = summary
        self.item_type = item_type
        kind = item_type.value if item_type is not None else "item"
        super().__init__(f"no date found for {kind} {summary!r}")


class UnrenderableRecurrence(NatcalError):
    """A recurrence rule has no natural-language form."""

    def __init__(self, rule, reason: str):
        self.rule = rule
        self.reason = reason
        super().__init__(f"{reason}: {rule!r}")

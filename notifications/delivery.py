"""Outbound email message and delivery accounting models."""

from pydantic import BaseModel, Field


class EmailMessage(BaseModel):
    """A rendered email ready for the transport."""

    subject: str
    html: str
    text: str | None = None


class DeliveryReport(BaseModel):
    """Aggregate outcome of one or more notification attempts.

    Testing-mode skips are counted separately from deliberate skips and are
    never failures.
    """

    attempted: int = 0
    sent: int = 0
    failed: int = 0
    skipped: int = 0
    testing_mode: int = 0
    reasons: list[str] = Field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.failed == 0

    def merge(self, other: "DeliveryReport") -> "DeliveryReport":
        """Return a new report summing this one and ``other``."""
        return DeliveryReport(
            attempted=self.attempted + other.attempted,
            sent=self.sent + other.sent,
            failed=self.failed + other.failed,
            skipped=self.skipped + other.skipped,
            testing_mode=self.testing_mode + other.testing_mode,
            reasons=self.reasons + other.reasons,
        )

    @classmethod
    def combine(cls, reports: list["DeliveryReport"]) -> "DeliveryReport":
        total = cls()
        for report in reports:
            total = total.merge(report)
        return total

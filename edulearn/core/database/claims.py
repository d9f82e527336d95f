"""Age checks for lookup-table claims.

A claim row (``IF NOT EXISTS``) is written before the row it points at. A
claim whose target row is missing is either still being written or was
left behind by a writer that failed between the two statements. Only the
second kind may be cleared, and the two are told apart by age.
"""

from datetime import UTC, datetime, timedelta


# Well above the driver request timeout, so a writer still holding the claim
# has either written its row or given up.
CLAIM_GRACE = timedelta(seconds=60)


def claim_in_flight(
    claimed_at: datetime | None,
    now: datetime | None = None,
    grace: timedelta = CLAIM_GRACE,
) -> bool:
    """Whether a claim without a target row may still be completed.

    Args:
        claimed_at: The claim's ``created_at`` (naive values are UTC)
        now: Reference time, defaults to the current time
        grace: How long a writer may take between claim and row

    Returns:
        True while the claim is younger than ``grace``
    """
    if claimed_at is None:
        return False
    if claimed_at.tzinfo is None:
        claimed_at = claimed_at.replace(tzinfo=UTC)
    return (now or datetime.now(UTC)) - claimed_at < grace

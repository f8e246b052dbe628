from agentmeta.types import MetadataDescription, MetadataResult

__all__ = [
    "STALE_THRESHOLD_FLOOR",
    "StalenessPolicy",
    "default_policy",
]

STALE_THRESHOLD_FLOOR = 5.0


class StalenessPolicy:
    """
    Decides whether a reported metadata value can still be trusted.

    A value is stale once its age exceeds ``interval + 2 * timeout``, never
    less than ``floor`` seconds. The age is the one reported by the server;
    ``now_offset`` adds the local time elapsed since that report was received.
    All methods are pure.
    """

    def __init__(self, floor: float = STALE_THRESHOLD_FLOOR):
        if floor < 0:
            raise ValueError("floor must be non-negative")
        self.floor = floor

    def stale_threshold(self, description: MetadataDescription) -> float:
        return max(description.interval + description.timeout * 2, self.floor)

    def is_stale(
            self,
            description: MetadataDescription,
            result: MetadataResult,
            now_offset: float = 0
    ) -> bool:
        """
        Check a single item against its threshold.

        Args:
            description: Collection policy of the item
            result: Last reported result
            now_offset: Seconds elapsed locally since the result was received

        Returns:
            True when the effective age is strictly greater than the threshold
        """
        return result.age + now_offset > self.stale_threshold(description)

    def next_update_in(
            self,
            description: MetadataDescription,
            result: MetadataResult,
            now_offset: float = 0
    ) -> float:
        """
        Seconds until the next report is expected.

        Negative when the update is already overdue.
        """
        return -(description.interval - (result.age + now_offset))

    def updates_in(
            self,
            description: MetadataDescription,
            result: MetadataResult,
            now_offset: float = 0
    ) -> float:
        """``next_update_in`` clamped at zero, ready for duration formatting."""
        return max(self.next_update_in(description, result, now_offset), 0.0)


default_policy = StalenessPolicy()

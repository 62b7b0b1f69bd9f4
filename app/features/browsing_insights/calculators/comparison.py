"""
Period-over-period comparison of serial opener results.
"""

from typing import Any

SIGNIFICANT_CHANGE_THRESHOLD = 20.0

BEHAVIOR_SEVERITY = {
    "compulsive_checking": 4,
    "frequent_monitoring": 3,
    "regular_reference": 2,
    "periodic_revisit": 1,
}


def percent_change(current: float, previous: float) -> float:
    if current == 0 and previous == 0:
        return 0.0
    if previous == 0:
        return 100.0
    if current == 0:
        return -100.0
    return round((current - previous) / previous * 100.0, 1)


def trend(current: float, previous: float) -> str:
    change = percent_change(current, previous)
    if change > SIGNIFICANT_CHANGE_THRESHOLD:
        return "increasing"
    if change < -SIGNIFICANT_CHANGE_THRESHOLD:
        return "decreasing"
    return "stable"


def behavior_severity(behavior_type: str | None) -> int:
    return BEHAVIOR_SEVERITY.get(str(behavior_type), 0)


class ComparisonCalculator:
    """Compares serial opener lists keyed by ``normalized_url``."""

    def calculate(
        self, current_openers: list[dict[str, Any]], previous_openers: list[dict[str, Any]]
    ) -> dict[str, Any]:
        current_map = self._by_url(current_openers)
        previous_map = self._by_url(previous_openers)

        overall = {
            "total_serial_openers": self._metric(len(current_openers), len(previous_openers)),
            "total_visits": self._metric(
                self._total(current_openers, "visit_count"),
                self._total(previous_openers, "visit_count"),
            ),
            "total_engagement_seconds": self._metric(
                self._total(current_openers, "total_engagement_seconds"),
                self._total(previous_openers, "total_engagement_seconds"),
            ),
        }
        behavioral_changes = self._behavioral_changes(current_map, previous_map)

        return {
            "overall": overall,
            "by_resource": self._resource_comparisons(current_map, previous_map),
            "behavioral_changes": behavioral_changes,
            "summary": self._summary(overall, behavioral_changes),
        }

    @staticmethod
    def _by_url(openers: list[dict[str, Any]]) -> dict[str, dict[str, Any]]:
        return {opener.get("normalized_url") or opener["url"]: opener for opener in openers}

    @staticmethod
    def _total(openers: list[dict[str, Any]], key: str) -> int:
        return sum(opener.get(key) or 0 for opener in openers)

    @staticmethod
    def _metric(current: int, previous: int) -> dict[str, Any]:
        return {
            "current": current,
            "previous": previous,
            "change": current - previous,
            "percent_change": percent_change(current, previous),
            "trend": trend(current, previous),
        }

    def _resource_comparisons(self, current_map, previous_map) -> list[dict[str, Any]]:
        comparisons = []
        for url in dict.fromkeys([*current_map, *previous_map]):
            current = current_map.get(url)
            previous = previous_map.get(url)

            if current and previous:
                comparisons.append(
                    {
                        "url": url,
                        "title": current.get("title"),
                        "domain": current.get("domain"),
                        "status": "continued",
                        "visit_count_change": current["visit_count"] - previous["visit_count"],
                        "visit_count_percent_change": percent_change(
                            current["visit_count"], previous["visit_count"]
                        ),
                        "engagement_change": (current.get("total_engagement_seconds") or 0)
                        - (previous.get("total_engagement_seconds") or 0),
                        "behavior_type_current": current.get("behavior_type"),
                        "behavior_type_previous": previous.get("behavior_type"),
                        "behavior_changed": current.get("behavior_type") != previous.get("behavior_type"),
                    }
                )
            elif current:
                comparisons.append(
                    {
                        "url": url,
                        "title": current.get("title"),
                        "domain": current.get("domain"),
                        "status": "new",
                        "visit_count": current["visit_count"],
                        "visit_count_change": current["visit_count"],
                        "behavior_type": current.get("behavior_type"),
                        "insight": "New pattern emerged this period",
                    }
                )
            else:
                comparisons.append(
                    {
                        "url": url,
                        "title": previous.get("title"),
                        "domain": previous.get("domain"),
                        "status": "resolved",
                        "previous_visit_count": previous["visit_count"],
                        "visit_count_change": -previous["visit_count"],
                        "insight": "No longer a serial opener - pattern improved!",
                    }
                )

        return sorted(comparisons, key=lambda c: -abs(c["visit_count_change"]))

    @staticmethod
    def _behavioral_changes(current_map, previous_map) -> list[dict[str, Any]]:
        changes = []
        for url, current in current_map.items():
            previous = previous_map.get(url)
            if not previous:
                continue

            before = previous.get("behavior_type")
            after = current.get("behavior_type")
            if before == after:
                continue

            before_score, after_score = behavior_severity(before), behavior_severity(after)
            if after_score > before_score:
                direction = "worsened"
            elif after_score < before_score:
                direction = "improved"
            else:
                direction = "unchanged"

            changes.append(
                {
                    "url": url,
                    "title": current.get("title"),
                    "domain": current.get("domain"),
                    "from": before,
                    "to": after,
                    "direction": direction,
                    "visit_count_change": current["visit_count"] - previous["visit_count"],
                }
            )

        return sorted(changes, key=lambda c: behavior_severity(c["to"]), reverse=True)

    @staticmethod
    def _summary(overall: dict[str, Any], behavioral_changes: list[dict[str, Any]]) -> str:
        visits = overall["total_visits"]
        magnitude = round(abs(visits["percent_change"]))
        if visits["trend"] == "increasing":
            messages = [f"Serial opener activity increased by {magnitude}%"]
        elif visits["trend"] == "decreasing":
            messages = [f"Serial opener activity decreased by {magnitude}% - improvement!"]
        else:
            messages = ["Serial opener activity remained stable"]

        worsened = sum(1 for c in behavioral_changes if c["direction"] == "worsened")
        improved = sum(1 for c in behavioral_changes if c["direction"] == "improved")
        if worsened:
            messages.append(f"{worsened} resources worsened")
        if improved:
            messages.append(f"{improved} resources improved")
        return ". ".join(messages)


comparison_calculator = ComparisonCalculator()

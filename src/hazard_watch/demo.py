from __future__ import annotations

from hazard_watch.index import HazardIndex
from hazard_watch.service import HazardService


def main() -> None:
    service = HazardService(HazardIndex())
    service.report_hazard("walker-1", "AGGRESSIVE_DOG", 37.5000, 127.0000, description="Large dog off leash near the gate")
    service.report_hazard("walker-2", "LOW_LIGHT", 37.5003, 127.0021, description="Street lamps out along the path")
    service.report_hazard("walker-3", "HAZARDOUS_MATERIAL", 37.5300, 127.0500, description="Broken glass on the trail")

    response = service.handle_emergency(37.5005, 127.0000, "AGGRESSIVE_DOG")
    print("=== Emergency Response ===")
    print(f"Type: {response.emergency_type}")
    print(f"Nearby hazards: {response.nearby_hazard_count}")
    print(f"Recommendation: {response.recommendation}")
    print(response.guide_text)

    route = service.recommend_safe_route(37.4990, 126.9990, 37.5010, 127.0030)
    print("\n=== Route Check ===")
    print(f"Alternative route advised: {route.has_alternative_route}")
    if route.reason:
        print(f"Reason: {route.reason}")
    print(f"Recommendation: {route.recommendation}")


if __name__ == "__main__":
    main()

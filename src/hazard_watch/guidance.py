from __future__ import annotations

EMERGENCY_GUIDES = {
    "AGGRESSIVE_DOG": (
        "Aggressive dog response guide:\n"
        "1. Avoid sudden movements and back away slowly\n"
        "2. Do not make direct eye contact\n"
        "3. Stay calm and do not shout\n"
        "4. Shield yourself with an object and call emergency services"
    ),
    "TRAFFIC_ACCIDENT": (
        "Traffic accident response guide:\n"
        "1. Move to a safe place immediately\n"
        "2. Call emergency services and the police\n"
        "3. Give first aid to anyone injured\n"
        "4. Preserve the scene and take photos"
    ),
    "LOST_PET": (
        "Lost pet response guide:\n"
        "1. Search the area right away and call your pet's name\n"
        "2. Check places you visited recently\n"
        "3. Report to the local animal shelter and police station\n"
        "4. Post a missing notice on social media and community boards"
    ),
}

GENERIC_GUIDE = (
    "General emergency response:\n"
    "1. Stay calm and assess the situation\n"
    "2. Call emergency services if needed\n"
    "3. Move to a safe place\n"
    "4. Ask people nearby for help"
)

NEARBY_HAZARDS_RECOMMENDATION = "There are {count} hazards nearby. Move along a safe route."
RELATIVELY_SAFE_RECOMMENDATION = "Your current location is relatively safe. Move to the nearest safe area."

ROUTE_HAZARD_REASON = "Hazards were found on the direct route."
ROUTE_DETOUR_RECOMMENDATION = "Take a detour or travel at a different time."
ROUTE_SAFE_RECOMMENDATION = "The current route is safe."


def normalize_emergency_type(emergency_type: object) -> str:
    if emergency_type is None:
        return ""
    return str(emergency_type).strip().upper().replace("-", "_").replace(" ", "_")


def guide_for(emergency_type: object) -> str:
    return EMERGENCY_GUIDES.get(normalize_emergency_type(emergency_type), GENERIC_GUIDE)

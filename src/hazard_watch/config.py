import os

HAZARD_DB_PATH = os.getenv("HAZARD_DB_PATH", "")
DEFAULT_SEARCH_RADIUS_M = float(os.getenv("DEFAULT_SEARCH_RADIUS_M", "1000"))
EMERGENCY_RADIUS_M = float(os.getenv("EMERGENCY_RADIUS_M", "500"))
ROUTE_BUFFER_M = float(os.getenv("ROUTE_BUFFER_M", "100"))
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

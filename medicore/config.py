"""Configuration for the MediCore clinic client.

All tunables centralized here - override through environment variables or
a local .env file without touching code.
"""
import os

from dotenv import load_dotenv

load_dotenv()

# API Configuration
API_BASE_URL = os.getenv("MEDICORE_API_URL", "http://localhost:5000/api")
REQUEST_TIMEOUT = float(os.getenv("MEDICORE_TIMEOUT", "15"))
REQUEST_RETRIES = int(os.getenv("MEDICORE_RETRIES", "2"))

# Queue polling (counter workflow)
POLL_INTERVAL_SECONDS = float(os.getenv("MEDICORE_POLL_INTERVAL", "3.0"))
MIN_REFRESH_DISPLAY_SECONDS = float(os.getenv("MEDICORE_MIN_REFRESH_DISPLAY", "0.5"))

# Notifications
NOTIFICATION_TTL_SECONDS = 3.0

# Persistent client storage
STORAGE_URL = os.getenv("MEDICORE_STORAGE_URL", "sqlite:///medicore_client.db")
ACCESS_TOKEN_KEY = "accessToken"
REFRESH_TOKEN_KEY = "refreshToken"
THEME_KEY = "medicore-theme"

# Logging
LOG_LEVEL = os.getenv("MEDICORE_LOG_LEVEL", "INFO")

# Routes
LOGIN_ROUTE = "/login"
HOME_ROUTE = "/"
ROLE_HOME_ROUTES = {
    "doctor": "/doctor-dashboard",
    "counter": "/counter-dashboard",
}

import os

HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", 8000))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_FILE = os.getenv("LOG_FILE", None)

STATIC_DIR = os.getenv("STATIC_DIR", "public")
CORS_ORIGINS = [origin.strip() for origin in os.getenv("CORS_ORIGINS", "*").split(",") if origin.strip()]

ADMIN_NAME = os.getenv("ADMIN_NAME", "Admin")
WELCOME_TEXT = "Welcome!"
MAP_URL_TEMPLATE = os.getenv("MAP_URL_TEMPLATE", "https://google.com/maps?q={latitude},{longitude}")

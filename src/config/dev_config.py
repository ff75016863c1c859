import os
from .config import BaseConfig
from dotenv import load_dotenv

load_dotenv()

class DevConfig(BaseConfig):
    DEBUG = True
    # Local hub experiments usually run behind a tunnel; fall back to the dev server
    CALLBACK_URL = os.getenv("FUNCTION_URL", "http://localhost:5000/")
    HUB_TIMEOUT_SECONDS = 10.0

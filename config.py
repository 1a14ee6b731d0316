import os
import logging
from pathlib import Path
from dotenv import load_dotenv
load_dotenv()

# Logging
logging.basicConfig(
    level=os.environ.get("PLANNER_LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger("planner")

# Config
GEMINI_API_KEY = os.environ.get("GEMINI_API_KEY") or os.environ.get("API_KEY")
PLANNER_MODEL = os.environ.get("PLANNER_MODEL", "gemini-2.5-flash")
PLANNER_TEMPERATURE = float(os.environ.get("PLANNER_TEMPERATURE", 0.3))
PLANNER_DATA_DIR = Path(os.environ.get("PLANNER_DATA_DIR", "planner_data"))
PLANNER_HISTORY_LIMIT = int(os.environ.get("PLANNER_HISTORY_LIMIT", 20))
PORT = int(os.environ.get("PORT", 8022))

from pydantic_settings import BaseSettings
from pathlib import Path
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

class Settings(BaseSettings):
    # API Settings
    PROJECT_NAME: str = "Score Estimator API"
    VERSION: str = "1.0.0"

    # Data Paths
    BASE_DIR: Path = Path(__file__).resolve().parent.parent
    DATA_DIR: Path = BASE_DIR / "data"

    # CSV File Paths
    CONCORDANCE_DATA_PATH: str = str(DATA_DIR / "act_sat_concordance.csv")
    COLLEGE_RANGES_DATA_PATH: str = str(DATA_DIR / "college_sat_ranges.csv")
    NMSQT_CUTOFFS_DATA_PATH: str = str(DATA_DIR / "nmsqt_cutoffs.csv")
    GOAL_COLLEGES_DATA_PATH: str = str(DATA_DIR / "goal_colleges.csv")

    # History / goal persistence (JSON key-value file)
    SCORE_STORE_PATH: str = str(BASE_DIR / "score_store.json")

    CORS_ORIGINS: list = ["http://localhost:3000"]
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # Scoring curve heuristics
    EASY_PENALTY_THRESHOLD: float = 0.7
    EASY_PENALTY_MULTIPLIER: float = 0.85
    HARD_BONUS_MULTIPLIER: float = 1.05

    SHARE_SITE_NAME: str = "satcalculator.co"

    class Config:
        case_sensitive = True
        env_file = ".env"

settings = Settings()

import os
from typing import List

from dotenv import load_dotenv
from pydantic_settings import BaseSettings

BASE_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), '../../'))
load_dotenv(os.path.join(BASE_DIR, '.env'))


class Settings(BaseSettings):
    PROJECT_NAME: str = os.getenv('PROJECT_NAME', 'HANDROM')
    API_PREFIX: str = '/api'
    BACKEND_CORS_ORIGINS: List[str] = ['*']
    LOGGING_CONFIG_FILE: str = os.path.join(BASE_DIR, 'logging.ini')
    ROM_SESSION_LOG_DIR: str = os.getenv('ROM_SESSION_LOG_DIR', os.path.join(BASE_DIR, 'data', 'logs'))
    ROM_SAVE_SESSION_LOGS: bool = os.getenv('ROM_SAVE_SESSION_LOGS', 'false').lower() == 'true'

    # Confidence & occlusion filter
    ROM_LOW_MOVEMENT_THRESHOLD: float = float(os.getenv('ROM_LOW_MOVEMENT_THRESHOLD', '0.02'))
    ROM_HIGH_MOVEMENT_THRESHOLD: float = float(os.getenv('ROM_HIGH_MOVEMENT_THRESHOLD', '0.15'))
    ROM_DEPTH_THRESHOLD: float = float(os.getenv('ROM_DEPTH_THRESHOLD', '0.05'))
    ROM_FINGER_MIN_CONFIDENCE: float = float(os.getenv('ROM_FINGER_MIN_CONFIDENCE', '0.7'))
    ROM_WRIST_MIN_CONFIDENCE: float = float(os.getenv('ROM_WRIST_MIN_CONFIDENCE', '0.8'))

    # Temporal consistency
    ROM_MAX_DELTA_DEGREES: float = float(os.getenv('ROM_MAX_DELTA_DEGREES', '30'))
    ROM_PERSISTENCE_FRAMES: int = int(os.getenv('ROM_PERSISTENCE_FRAMES', '3'))
    ROM_HISTORY_SIZE: int = int(os.getenv('ROM_HISTORY_SIZE', '5'))

    # Angle calculator
    ROM_FINGER_DEADBAND: float = float(os.getenv('ROM_FINGER_DEADBAND', '5'))
    ROM_WRIST_DEADBAND: float = float(os.getenv('ROM_WRIST_DEADBAND', '3'))

    # Laterality resolver
    ROM_LATERALITY_MIN_VISIBILITY: float = float(os.getenv('ROM_LATERALITY_MIN_VISIBILITY', '0.5'))
    ROM_LATERALITY_MARGIN: float = float(os.getenv('ROM_LATERALITY_MARGIN', '1.2'))


settings = Settings()

# paniyal/config/settings.py
# Application settings read from the environment

import os
from typing import List
from urllib.parse import quote

from dotenv import load_dotenv

load_dotenv()


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() == 'true'


class Settings:
    """Runtime configuration for the API"""

    # Database
    DATABASE_URL = os.getenv('DATABASE_URL', 'sqlite:///./paniyal.db')
    DB_SSLMODE = os.getenv('DB_SSLMODE', 'require')

    # Tokens
    SECRET_KEY = os.getenv('SECRET_KEY', 'change-me-in-production')
    ALGORITHM = os.getenv('ALGORITHM', 'HS256')
    ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv('ACCESS_TOKEN_EXPIRE_MINUTES', 60 * 12))

    # Login and the decoy countdown
    LOGIN = {
        'max_attempts': int(os.getenv('MAX_LOGIN_ATTEMPTS', 3)),
        'attempt_window': int(os.getenv('LOGIN_ATTEMPT_WINDOW', 300)),  # seconds
        'decoy_username': os.getenv('DECOY_USERNAME', 'mona'),
        'min_password_length': int(os.getenv('MIN_PASSWORD_LENGTH', 6)),
    }

    DECOY = {
        'duration': int(os.getenv('DECOY_DURATION', 20)),  # seconds
        'deactivation_code': os.getenv('SELF_DESTRUCT_PASSWORD', 'harrypotter'),
        'redirect_after_destruct': os.getenv('DECOY_REDIRECT', '/admin'),
        'retention': int(os.getenv('DECOY_RETENTION', 300)),  # seconds a finished sequence stays readable
    }

    # Departments
    DEFAULT_DEPARTMENT_ADMIN_PASSWORD = os.getenv('DEFAULT_DEPARTMENT_ADMIN_PASSWORD', 'admin@123')

    # Document uploads
    STORAGE = {
        'upload_dir': os.getenv('UPLOAD_DIR', 'uploads'),
        'bucket': os.getenv('DOCUMENT_BUCKET', 'task_documents'),
        'max_document_size': int(os.getenv('MAX_DOCUMENT_SIZE', 20 * 1024 * 1024)),  # 20MB
        'allowed_extensions': {'.pdf', '.doc', '.docx'},
    }
    PUBLIC_BASE_URL = os.getenv('PUBLIC_BASE_URL', 'http://localhost:8000').rstrip('/')

    # Geocoding
    GEOCODING = {
        'search_url': os.getenv('NOMINATIM_URL', 'https://nominatim.openstreetmap.org/search'),
        'timeout': float(os.getenv('GEOCODING_TIMEOUT', 10)),
        'user_agent': os.getenv('GEOCODING_USER_AGENT', 'paniyal-task-api/1.0'),
    }

    # Background jobs
    SCHEDULER = {
        'enabled': _env_bool('SCHEDULER_ENABLED', 'true'),
        'keepalive_interval_minutes': int(os.getenv('KEEPALIVE_INTERVAL_MINUTES', 60 * 24)),
    }

    LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO').upper()

    @classmethod
    def cors_origins(cls) -> List[str]:
        """Origins allowed by the CORS middleware"""
        raw = os.getenv(
            'CORS_ORIGINS',
            'http://localhost:3000,http://localhost:3001,http://127.0.0.1:3000',
        )
        return [origin.strip() for origin in raw.split(',') if origin.strip()]

    @classmethod
    def document_url(cls, path: str) -> str:
        """Public URL for a stored document path"""
        return f"{cls.PUBLIC_BASE_URL}/storage/{cls.STORAGE['bucket']}/{quote(path)}"


settings = Settings()

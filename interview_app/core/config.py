from pydantic_settings import BaseSettings
from pydantic import Field

class Settings(BaseSettings):
    PROJECT_NAME: str = "Interview Session Backend"
    API_V1_PREFIX: str = "/api/v1"
    LOG_LEVEL: str = "INFO"

    DATABASE_URL: str = "sqlite:///./interview.db"
    CANDIDATES_KEY: str = "candidates"

    BACKEND_API_BASE: str = "http://localhost:5050"
    BACKEND_TIMEOUT_SECONDS: float = 30.0

    INTERVIEW_ROLE: str = "Full Stack Developer"
    INTERVIEW_STACK: list[str] = Field(default_factory=lambda: ["React", "Node.js"])

    TIMER_TICK_SECONDS: float = 1.0

    CORS_ORIGINS: list[str] = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]

    class Config:
        env_file = ".env"


settings = Settings()

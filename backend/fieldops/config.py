from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Database
    DATABASE_URL: str = "postgresql+asyncpg://fieldops:fieldops_secret@db:5432/fieldops"
    DATABASE_POOL_SIZE: int = 20
    DATABASE_POOL_TIMEOUT: float = 10.0

    # Bearer tokens
    JWT_SECRET: str = "fieldops-jwt-secret-change-in-production"
    JWT_ALGORITHM: str = "HS256"
    JWT_EXPIRY_MINUTES: int = 480

    # Landing page for roles without their own default route
    DEFAULT_LANDING_ROUTE: str = "/customer/dashboard"

    CORS_ORIGINS: list[str] = ["http://localhost:3000", "http://localhost:5173"]

    class Config:
        env_file = ".env"


settings = Settings()

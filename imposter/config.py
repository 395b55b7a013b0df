import os


class Config:
    # Token signing
    JWT_SECRET = os.environ.get("JWT_SECRET", "dev-secret-change-this-in-production-please")
    TOKEN_TTL_SEC = int(os.environ.get("TOKEN_TTL_SEC", str(7 * 24 * 3600)))

    # Storage (empty disables the database)
    DATABASE_URL = os.environ.get("DATABASE_URL", "sqlite://imposter.db")

    # CORS
    CORS_ORIGINS = os.environ.get("CORS_ORIGINS", "*")

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

    # Game
    RESET_DELAY_SEC = float(os.environ.get("RESET_DELAY_SEC", "10"))

    # Server
    HOST = os.environ.get("HOST", "0.0.0.0")
    PORT = int(os.environ.get("PORT", "3000"))

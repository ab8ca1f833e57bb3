from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    DATABASE_URL: str = "sqlite:///./quotes.db"
    COMPANY_NAME: str = "ARGO-72 Welding"
    CURRENCY: str = "RUB"

    # External estimator: empty key disables it, local tariff is used alone
    GEMINI_API_KEY: str = ""
    GEMINI_MODEL: str = "gemini-2.0-flash"
    AI_ESTIMATE_TIMEOUT: float = 60.0

    # Order notifications, optional: skipped when either value is empty
    TELEGRAM_TOKEN: str = ""
    TELEGRAM_CHAT_ID: str = ""

    # Pricing tariff: registered version, or a JSON file that overrides it
    TARIFF_VERSION: str = "2025.2"
    TARIFF_PATH: str = ""

    class Config:
        env_file = ".env"


settings = Settings()

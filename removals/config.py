from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    DATABASE_URL: str = "sqlite:///./quotes.db"
    COMPANY_NAME: str = "Sam Removals"
    COMPANY_EMAIL: str = "quotes@samremovals.com.au"
    COMPANY_PHONE: str = ""
    LOG_LEVEL: str = "INFO"

    # Routing provider (Google Distance Matrix). Empty key = always use fallback.
    GOOGLE_MAPS_API_KEY: str = ""
    ROUTING_TIMEOUT_SECONDS: float = 10.0

    # Outbound email relay — the core only builds the payload and POSTs it
    EMAIL_ENDPOINT: str = ""
    EMAIL_API_KEY: str = ""
    EMAIL_TIMEOUT_SECONDS: float = 15.0

    QUOTE_REFERENCE_PREFIX: str = "SRM"

    class Config:
        env_file = ".env"


settings = Settings()

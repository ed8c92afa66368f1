import os
from dotenv import load_dotenv
from pydantic_settings import BaseSettings

# Load environment variables from .env file
load_dotenv()


class Settings(BaseSettings):
    """Application configuration from environment variables"""

    # App
    app_name: str = "Groombook"
    debug: bool = os.getenv("DEBUG", "False").lower() == "true"
    log_level: str = os.getenv("LOG_LEVEL", "INFO")

    # Database
    database_url: str = os.getenv("DATABASE_URL", "sqlite:///./groombook.db")

    # Twilio (WhatsApp)
    twilio_account_sid: str = os.getenv("TWILIO_ACCOUNT_SID", "")
    twilio_auth_token: str = os.getenv("TWILIO_AUTH_TOKEN", "")
    twilio_phone_number: str = os.getenv("TWILIO_PHONE_NUMBER", "")
    twilio_content_sid: str = os.getenv("TWILIO_CONTENT_SID", "")
    default_country_code: str = os.getenv("DEFAULT_COUNTRY_CODE", "+91")

    # Booking policy
    allow_walk_in_completion: bool = os.getenv("ALLOW_WALK_IN_COMPLETION", "False").lower() == "true"

    # Background jobs
    scheduler_enabled: bool = os.getenv("SCHEDULER_ENABLED", "True").lower() == "true"
    reminder_interval_minutes: int = int(os.getenv("REMINDER_INTERVAL_MINUTES", "30"))
    feedback_request_interval_minutes: int = int(os.getenv("FEEDBACK_REQUEST_INTERVAL_MINUTES", "60"))

    class Config:
        env_file = ".env"
        case_sensitive = False
        extra = "ignore"


settings = Settings()

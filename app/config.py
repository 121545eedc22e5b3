from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

ENV_PATH = Path(__file__).resolve().parent.parent / ".env.local"


class Settings(BaseSettings):
    # Environment settings
    environment: str = "development"
    debug: bool = False
    LOG_LEVEL: str = "INFO"

    # Operations API key (Bearer token)
    BACKEND_API_KEY: str = "change-me"

    # =================================================================
    # DELIVERY QUEUE - random spacing between chat messages
    # =================================================================
    QUEUE_MIN_DELAY_MS: int = 2000
    QUEUE_MAX_DELAY_MS: int = 4000
    QUEUE_DELIVERY_TIMEOUT_SECONDS: float = 30.0

    # =================================================================
    # JOB SCHEDULER
    # =================================================================
    SCHEDULER_TICK_SECONDS: float = 60.0
    SCHEDULER_TIMEZONE: str = "Asia/Jakarta"

    # =================================================================
    # BOOKING REMINDERS
    # =================================================================
    REMINDER_H15_SCHEDULE: str = "0 9 * * *"  # daily at 09:00
    REMINDER_H1_SCHEDULE: str = "0 9 * * *"  # daily at 09:00
    REMINDER_RESET_SCHEDULE: str = "0 0 * * *"  # daily at midnight
    REMINDER_ACTIVE_STATUSES: list[str] = ["APPROVED"]
    REMINDER_MAX_DETAILS: int = 100

    # Bookings API (frontend)
    BOOKINGS_API_URL: str = "http://localhost:3000"
    BOOKINGS_FETCH_TIMEOUT_SECONDS: float = 15.0

    # Chat gateway (WhatsApp transport)
    CHAT_GATEWAY_URL: str = "http://localhost:8081"
    CHAT_GATEWAY_TOKEN: str | None = None
    CHAT_GATEWAY_TIMEOUT_SECONDS: float = 20.0

    # Message branding
    PROPERTY_NAME: str = "Suman Residence"
    ADMIN_WHATSAPP: str = "6281234567890"
    ADMIN_EMAIL: str = "admin@sumanresidence.com"

    model_config = SettingsConfigDict(
        env_file=str(ENV_PATH),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    def get_queue_config(self) -> dict:
        """Get delivery queue keyword arguments."""
        return {
            "min_delay_ms": self.QUEUE_MIN_DELAY_MS,
            "max_delay_ms": self.QUEUE_MAX_DELAY_MS,
            "delivery_timeout_seconds": self.QUEUE_DELIVERY_TIMEOUT_SECONDS,
        }

    def bookings_endpoint(self) -> str:
        return f"{self.BOOKINGS_API_URL.rstrip('/')}/api/bookings"

    def chat_send_endpoint(self) -> str:
        return f"{self.CHAT_GATEWAY_URL.rstrip('/')}/send-message"


settings = Settings()

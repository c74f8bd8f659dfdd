from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    ENV: str = "dev"
    LOG_LEVEL: str = "INFO"

    BUSINESS_NAME: str = "Your Business"
    BUSINESS_TIMEZONE: str = "Europe/Paris"

    # 0 = Monday ... 6 = Sunday
    WORKING_DAYS: list[int] = [0, 1, 2, 3, 4]
    WORKING_PERIODS: list[str] = ["morning=09:00-12:00", "afternoon=14:00-18:00"]
    CLOSED_DATES: list[str] = []
    SLOT_INCREMENT_MINUTES: int = 15
    BOOKING_BUFFER_MINUTES: int = 15
    SHARED_CALENDAR: bool = False
    AVAILABILITY_HORIZON_DAYS: int = 30

    RESERVATION_HOLD_MINUTES: int = 15
    CHECKOUT_TIMEOUT_MINUTES: int = 10
    SWEEP_INTERVAL_SECONDS: float = 60.0
    LEDGER_LOCK_TIMEOUT_SECONDS: float = 5.0
    LEDGER_PROVIDER: str = "memory"
    LEDGER_DATA_PATH: str = "./data/ledger.json"

    DEPOSIT_PERCENTAGE: float = 30.0
    CURRENCY: str = "EUR"
    PAYMENT_GATEWAY_URL: str | None = None
    PAYMENT_GATEWAY_API_KEY: str | None = None

    NOTIFIER_URL: str | None = None
    NOTIFIER_API_KEY: str | None = None
    NOTIFIER_FROM_EMAIL: str = "bookings@example.com"
    REMINDER_OFFSETS_MINUTES: list[int] = [2880, 120]

    PHONE_PATTERN: str = r"^(?:\+33|0)[1-9]\d{8}$"


settings = Settings()

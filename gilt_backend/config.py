import os


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _float_env(name: str, default: float) -> float:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


class Settings:
    """Configuración de la aplicación que lee variables de entorno dinámicamente."""

    @property
    def app_name(self) -> str:
        return "Gilt Counselling Backend"

    @property
    def environment(self) -> str:
        env = os.getenv("ENV", "").lower()
        if env in ("production", "test"):
            return env
        return "development"

    @property
    def database_url(self) -> str:
        # Sin DATABASE_URL usamos SQLite local
        return os.getenv("DATABASE_URL", "").strip() or "sqlite:///./gilt.db"

    @property
    def cors_origin(self) -> str:
        return os.getenv("CORS_ORIGIN", "http://localhost:3000")

    @property
    def app_url(self) -> str:
        return os.getenv("APP_URL", "https://giltcounselling.com").rstrip("/")

    # --- Autenticación ---

    @property
    def cron_secret(self) -> str:
        return os.getenv("CRON_SECRET", "")

    @property
    def session_secret(self) -> str:
        return os.getenv("SESSION_SECRET", "")

    @property
    def session_algorithm(self) -> str:
        return os.getenv("SESSION_ALGORITHM", "HS256")

    @property
    def unsubscribe_secret(self) -> str:
        return os.getenv("UNSUBSCRIBE_SECRET", "") or self.session_secret

    @property
    def trusted_proxies(self) -> list[str]:
        # Solo se confía en X-Forwarded-For si el request llega desde uno de estos hosts
        raw = os.getenv("TRUSTED_PROXIES", "")
        return [host.strip() for host in raw.split(",") if host.strip()]

    @property
    def auth_max_failed_attempts(self) -> int:
        return _int_env("AUTH_MAX_FAILED_ATTEMPTS", 5)

    @property
    def auth_failure_window_seconds(self) -> int:
        return _int_env("AUTH_FAILURE_WINDOW_SECONDS", 300)

    # --- Email (Resend) ---

    @property
    def resend_api_key(self) -> str:
        return os.getenv("RESEND_API_KEY", "")

    @property
    def resend_from_email(self) -> str:
        return os.getenv("RESEND_FROM_EMAIL", "Gilt Counselling <wecare@giltcounselling.com>")

    @property
    def resend_reply_to(self) -> str:
        return os.getenv("RESEND_REPLY_TO", "")

    @property
    def admin_emails(self) -> list[str]:
        # ADMIN_EMAIL admite varias direcciones separadas por coma
        raw = os.getenv("ADMIN_EMAIL", "")
        return [email.strip() for email in raw.split(",") if email.strip()]

    @property
    def email_max_attempts(self) -> int:
        return max(1, _int_env("EMAIL_MAX_ATTEMPTS", 3))

    @property
    def email_retry_base_seconds(self) -> float:
        return _float_env("EMAIL_RETRY_BASE_SECONDS", 1.0)

    # --- Recordatorios ---

    @property
    def reminder_batch_timeout_seconds(self) -> float:
        return _float_env("REMINDER_BATCH_TIMEOUT_SECONDS", 240.0)

    @property
    def admin_notification_lookback_hours(self) -> int:
        return _int_env("ADMIN_NOTIFICATION_LOOKBACK_HOURS", 2)


# Instancia singleton de Settings (sin cache, lee valores dinámicamente)
_settings_instance = None


def get_settings() -> Settings:
    """Retorna la instancia de Settings. Lee variables de entorno dinámicamente."""
    global _settings_instance
    if _settings_instance is None:
        _settings_instance = Settings()
    return _settings_instance


def clear_settings_cache():
    """Limpia la instancia de settings (aunque no es necesario con propiedades dinámicas)."""
    global _settings_instance
    _settings_instance = None

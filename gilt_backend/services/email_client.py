"""
Cliente de envío de emails usando Resend.
Documentación: https://resend.com/docs

Los errores temporales (rate limit, 5xx de Resend, fallos de red) se reintentan
con backoff exponencial; el resto falla en el primer intento.
"""
import logging
import re
from typing import Callable, Optional

import resend
from resend.exceptions import ResendError
from tenacity import (
    Retrying,
    before_sleep_log,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from ..config import get_settings
from ..exceptions import EmailDeliveryError, EmailNotConfiguredError

logger = logging.getLogger(__name__)

RETRYABLE_STATUS_CODES = frozenset({429, 500, 502, 503, 504})
MAX_RETRY_DELAY = 30.0

_TAG_RE = re.compile(r"<[^>]*>")
_BLANK_LINES_RE = re.compile(r"\n\s*\n+")


def html_to_text(html: str) -> str:
    """Versión plain text de un HTML (para mejor deliverability)."""
    text = _TAG_RE.sub("", html)
    return _BLANK_LINES_RE.sub("\n\n", text).strip()


def _is_transient(exc: BaseException) -> bool:
    return isinstance(exc, EmailDeliveryError) and exc.transient


def _status_code(exc: Exception) -> Optional[int]:
    code = getattr(exc, "code", None)
    try:
        return int(code) if code is not None else None
    except (TypeError, ValueError):
        return None


class EmailClient:
    """
    Wrapper delgado sobre la API transaccional de Resend.

    `sender` permite reemplazar la llamada a la API (por defecto resend.Emails.send).
    """

    def __init__(
        self,
        api_key: str,
        from_email: str,
        reply_to: Optional[str] = None,
        max_attempts: int = 3,
        retry_base_seconds: float = 1.0,
        sender: Optional[Callable[[dict], dict]] = None,
    ):
        self.api_key = api_key
        self.from_email = from_email
        self.reply_to = reply_to
        self.max_attempts = max(1, max_attempts)
        self.retry_base_seconds = retry_base_seconds
        self._sender = sender

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    def send(
        self,
        to: str | list[str],
        subject: str,
        html: str,
        text: Optional[str] = None,
        reply_to: Optional[str] = None,
    ) -> str:
        """
        Envía un email y devuelve el ID asignado por Resend.

        Raises:
            EmailNotConfiguredError: si falta RESEND_API_KEY
            EmailDeliveryError: si el envío falla (después de los reintentos si era temporal)
        """
        if not self.configured:
            raise EmailNotConfiguredError()

        recipients = [to] if isinstance(to, str) else list(to)
        params = {
            "from": self.from_email,
            "to": recipients,
            "subject": subject,
            "html": html,
            "text": text or html_to_text(html),
        }
        reply_to = reply_to or self.reply_to
        if reply_to:
            params["reply_to"] = [reply_to]

        retrying = Retrying(
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_exponential(multiplier=self.retry_base_seconds, max=MAX_RETRY_DELAY),
            retry=retry_if_exception(_is_transient),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )
        response = retrying(self._deliver, params)

        message_id = (response or {}).get("id", "N/A")
        logger.info(f"📧 Email enviado a {', '.join(recipients)}. ID: {message_id}")
        return message_id

    def _deliver(self, params: dict) -> dict:
        try:
            if self._sender is not None:
                return self._sender(params)
            resend.api_key = self.api_key
            return resend.Emails.send(params)
        except ResendError as e:
            status_code = _status_code(e)
            transient = status_code in RETRYABLE_STATUS_CODES
            raise EmailDeliveryError(str(e), transient=transient, status_code=status_code) from e
        except EmailDeliveryError:
            raise
        except Exception as e:
            # Errores de red / timeouts: se consideran temporales
            raise EmailDeliveryError(str(e), transient=True) from e


def build_email_client() -> EmailClient:
    settings = get_settings()
    return EmailClient(
        api_key=settings.resend_api_key,
        from_email=settings.resend_from_email,
        reply_to=settings.resend_reply_to or None,
        max_attempts=settings.email_max_attempts,
        retry_base_seconds=settings.email_retry_base_seconds,
    )


def get_email_client() -> EmailClient:
    """Dependencia de FastAPI (se sobreescribe en los tests)."""
    return build_email_client()

class MessagingError(Exception):
    """Base class for notification-layer failures."""


class TemplateLoadError(MessagingError):
    """Template definitions for the default language could not be read."""


class TemplateNotFoundError(MessagingError):
    def __init__(self, template_id: str, language: str):
        self.template_id = template_id
        self.language = language
        super().__init__(f"WhatsApp template not found: {template_id} for language: {language}")


class QueueUnavailableError(MessagingError):
    """The broker refused the job; the notification was NOT sent."""


class ProviderConfigurationError(MessagingError):
    """Missing credentials or an unknown provider name."""


class ProviderError(MessagingError):
    def __init__(self, message: str, code: str = "", title: str = "", retryable: bool = True):
        self.code = str(code or "")
        self.title = title or message
        self.retryable = retryable
        super().__init__(message)

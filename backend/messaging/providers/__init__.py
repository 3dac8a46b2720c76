from django.conf import settings

from ..exceptions import ProviderConfigurationError


# provider pickers; constructed per job so credential changes apply without a worker restart
def get_whatsapp_provider():
    prov = (getattr(settings, "WHATSAPP_PROVIDER", "") or "mock").lower()
    if prov == "meta":
        from .meta_cloud import MetaCloudProvider
        return MetaCloudProvider()
    if prov == "mock":
        from .mock import MockProvider
        return MockProvider()
    raise ProviderConfigurationError(f"Unknown WHATSAPP_PROVIDER: {prov}")


def get_email_provider():
    prov = (getattr(settings, "EMAIL_PROVIDER", "") or "mock").lower()
    if prov == "brevo":
        from .brevo import BrevoProvider
        return BrevoProvider()
    if prov == "mock":
        from .mock import MockEmailProvider
        return MockEmailProvider()
    raise ProviderConfigurationError(f"Unknown EMAIL_PROVIDER: {prov}")


def get_push_provider():
    # device transports (FCM/APNs) plug in here behind PushProvider
    prov = (getattr(settings, "PUSH_PROVIDER", "") or "mock").lower()
    if prov == "mock":
        from .mock import MockPushProvider
        return MockPushProvider()
    raise ProviderConfigurationError(f"Unknown PUSH_PROVIDER: {prov}")

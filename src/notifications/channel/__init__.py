"""Channel adapter registry: pluggable notification dispatch channels.

Builds one adapter per channel from settings. A channel whose provider
credentials are absent degrades to a LogOnlyChannel instead of failing.
Tests swap individual channels with set_channel().
"""

from notifications.channel.log_only import LogOnlyChannel
from notifications.channel.port import Channel, ChannelName
from shared.config import Settings, get_settings

_channel_instances: dict[str, Channel] = {}


def _build_channel(channel_name: str, settings: Settings) -> Channel:
    if channel_name == ChannelName.EMAIL.value:
        if not settings.email_configured:
            return LogOnlyChannel(channel_name)
        from notifications.channel.smtp import EmailChannel

        return EmailChannel(
            host=settings.smtp_host,
            port=settings.smtp_port,
            username=settings.smtp_username,
            password=settings.smtp_password,
            from_email=settings.from_email,
            from_name=settings.from_name,
            use_tls=settings.smtp_use_tls,
        )
    if channel_name == ChannelName.SMS.value:
        if not settings.sms_configured:
            return LogOnlyChannel(channel_name)
        from notifications.channel.twilio import SMSChannel

        return SMSChannel(
            account_sid=settings.sms_account_sid,
            auth_token=settings.sms_auth_token,
            from_number=settings.sms_from_number,
            api_url=settings.messaging_api_url,
        )
    if channel_name == ChannelName.MESSAGING_APP.value:
        if not settings.whatsapp_configured:
            return LogOnlyChannel(channel_name)
        from notifications.channel.twilio import MessagingAppChannel

        return MessagingAppChannel(
            account_sid=settings.whatsapp_account_sid,
            auth_token=settings.whatsapp_auth_token,
            from_number=settings.whatsapp_from_number,
            api_url=settings.messaging_api_url,
        )
    raise ValueError(f"Unknown channel type: {channel_name}")


def get_channel(channel_name: str) -> Channel:
    """Return the configured channel adapter (singleton per channel)."""
    if channel_name not in _channel_instances:
        _channel_instances[channel_name] = _build_channel(channel_name, get_settings())
    return _channel_instances[channel_name]


def get_channels() -> dict[str, Channel]:
    """Return every channel, in Email, SMS, messaging-app order."""
    return {channel.value: get_channel(channel.value) for channel in ChannelName}


def set_channel(channel: Channel) -> None:
    """Override one channel adapter (useful for tests)."""
    _channel_instances[channel.name] = channel


def reset_channels():
    """Reset all channel singletons (useful for testing)."""
    _channel_instances.clear()


__all__ = ["Channel", "ChannelName", "get_channel", "get_channels", "set_channel", "reset_channels"]

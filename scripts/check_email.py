"""Email configuration check: verify the relay and send a test message to yourself.

Usage:
  python scripts/check_email.py
"""
from __future__ import annotations

import asyncio
import sys
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from yatri.config import Settings, get_settings
from yatri.logging_config import configure_logging
from yatri.services.mail_transport import MailTransport
from yatri.services.notification_service import NotificationService


CONNECTION_TIPS = [
    "Make sure you're using a Gmail App Password, not your regular password",
    "Enable 2-Factor Authentication on your Gmail account",
    "Generate a new App Password from Google Account settings",
    "Check SMTP_HOST / SMTP_PORT if you are not using Gmail",
]

SEND_TIPS = [
    "Check your internet connection",
    "Verify the mail account is not locked or suspended",
    "Try generating a new App Password",
    "Check the provider's sending limits (Gmail allows about 100 emails/day on free accounts)",
]


def _print_tips(tips: list[str]) -> None:
    for index, tip in enumerate(tips, start=1):
        print(f"{index}. {tip}")


async def check_email_configuration(settings: Settings, transport: MailTransport | None = None) -> bool:
    """Run the checks and print a report. Returns True when the test email went out."""

    print("🧪 Testing YATRI Portal Email Configuration\n")
    print("📋 Environment Variables Check:")
    print(f"   EMAIL_USER: {'✅ Set' if settings.email_user else '❌ Not set'}")
    print(f"   EMAIL_PASS: {'✅ Set' if settings.email_pass else '❌ Not set'}")

    if not settings.email_configured:
        print("\n❌ Email credentials not configured!")
        print("Please set EMAIL_USER and EMAIL_PASS environment variables.")
        return False

    transport = transport or MailTransport(settings)
    print(f"\n🔍 Testing connection to {settings.smtp_host}:{settings.smtp_port}...")
    await transport.open()
    if not transport.available:
        print(f"❌ Email connection failed: {transport.error}")
        print("\n🔧 Troubleshooting tips:")
        _print_tips(CONNECTION_TIPS)
        return False
    if transport.verified:
        print("✅ Email connection successful!")
    else:
        print("⚠️  Connection check timed out; trying a real send anyway")

    notifier = NotificationService(transport)
    try:
        print(f"\n📧 Testing email sending to {settings.email_user}...")
        outcome = await notifier.send_self_test()
    finally:
        await transport.close()

    if not outcome.succeeded:
        print(f"❌ Failed to send test email: {outcome.error}")
        print("\n🔧 Additional troubleshooting:")
        _print_tips(SEND_TIPS)
        return False

    print("✅ Test email sent successfully!")
    print(f"   Message ID: {outcome.message_id}")
    print("\n🎉 Email configuration is working perfectly!")
    return True


def main() -> int:
    configure_logging()
    ok = asyncio.run(check_email_configuration(get_settings()))
    return 0 if ok else 1


if __name__ == "__main__":
    sys.exit(main())

"""HTML email bodies for portal notifications.

Templates are rendered with autoescaping off: interpolated names and
messages reach the HTML verbatim.
"""
import re

from jinja2 import Environment, StrictUndefined

from yatri.models.notifications import MessageContent

WELCOME_SUBJECT = "🎉 Welcome to YATRI Training Portal!"
BROADCAST_SUBJECT_PREFIX = "📢 "
TEST_SUBJECT = "🧪 YATRI Portal Email Test"

_LINE_BREAKS = re.compile(r"[\r\n]+")

_env = Environment(autoescape=False, undefined=StrictUndefined, keep_trailing_newline=True)

_LAYOUT_OPEN = (
    '<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto; '
    'background: #1a1a1a; color: #FFD700; padding: 20px; border-radius: 10px;">'
)
_FOOTER = '<p style="color: #888; text-align: center; margin-top: 30px;">© 2025 YATRI Indian Restaurant</p>'

_WELCOME = _env.from_string(
    _LAYOUT_OPEN
    + """
    <h1 style="color: #FFD700; text-align: center;">Welcome to YATRI, {{ staff_name }}!</h1>
    <p style="color: #E0E0E0;">Your account on the YATRI Training Portal has been created.
    Use the details below to log in and start your training modules.</p>
    <div style="background: #2a2a2a; padding: 15px; border-radius: 8px; margin: 20px 0;">
        <p style="color: #E0E0E0; margin: 5px 0;"><strong style="color: #FFD700;">Staff ID:</strong> {{ staff_id }}</p>
        <p style="color: #E0E0E0; margin: 5px 0;"><strong style="color: #FFD700;">Temporary Password:</strong> {{ temporary_password }}</p>
    </div>
    <p style="color: #E0E0E0;">Please keep these details safe and ask your manager to change the password after your first login.</p>
    """
    + _FOOTER
    + "\n</div>\n"
)

_BROADCAST = _env.from_string(
    _LAYOUT_OPEN
    + """
    <h1 style="color: #FFD700; text-align: center;">{{ subject }}</h1>
    <div style="background: #2a2a2a; padding: 15px; border-radius: 8px; margin: 20px 0;">
        <p style="color: #E0E0E0;">{{ message }}</p>
    </div>
    <p style="color: #AAAAAA;">Sent by {{ sender_name }} via the YATRI Training Portal.</p>
    """
    + _FOOTER
    + "\n</div>\n"
)

_TEST = _env.from_string(
    _LAYOUT_OPEN
    + """
    <h1 style="color: #FFD700; text-align: center;">YATRI Portal Email Test</h1>
    <p style="color: #E0E0E0;">This is a test email to verify your email configuration is working correctly.</p>
    <p style="color: #E0E0E0;">✅ If you received this email, your configuration is working!</p>
    """
    + _FOOTER
    + "\n</div>\n"
)


def welcome_email(staff_name: str, staff_id: str, temporary_password: str) -> MessageContent:
    """Onboarding message carrying the new staff member's login details."""
    html = _WELCOME.render(
        staff_name=staff_name,
        staff_id=staff_id,
        temporary_password=temporary_password,
    )
    return MessageContent(subject=WELCOME_SUBJECT, html_body=html)


def broadcast_email(subject: str, message: str, sender_name: str) -> MessageContent:
    """Admin announcement; line breaks in the message are kept as ``<br>``."""
    html = _BROADCAST.render(
        subject=subject,
        message=message.replace("\r\n", "\n").replace("\n", "<br>"),
        sender_name=sender_name,
    )
    # Header values cannot carry line breaks.
    header_subject = _LINE_BREAKS.sub(" ", subject).strip()
    return MessageContent(subject=f"{BROADCAST_SUBJECT_PREFIX}{header_subject}", html_body=html)


def self_test_email() -> MessageContent:
    """Configuration check message sent to the mail account itself."""
    return MessageContent(subject=TEST_SUBJECT, html_body=_TEST.render())

"""Email Templates — subject and HTML bodies for transactional mail.

Invariants:
    - Every template returns (subject, html, text)
    - User-supplied values are HTML-escaped before interpolation
"""

from html import escape

from awoof.core.otp import MAGIC_LINK_EXPIRY_MINUTES, OTP_EXPIRY_MINUTES

_BRAND_COLOR = "#1D4ED8"


def _layout(heading: str, body_html: str) -> str:
    return (
        '<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">'
        f'<div style="background-color: {_BRAND_COLOR}; padding: 20px; text-align: center;">'
        '<h1 style="color: #FFFFFF; margin: 0;">Awoof</h1></div>'
        '<div style="padding: 30px; background-color: #f9f9f9;">'
        f'<h2 style="color: {_BRAND_COLOR};">{heading}</h2>'
        f"{body_html}"
        "</div></div>"
    )


def _code_block(code: str) -> str:
    return (
        f'<div style="background-color: {_BRAND_COLOR}; color: #FFFFFF; padding: 20px; '
        'text-align: center; font-size: 24px; font-weight: bold; letter-spacing: 5px;">'
        f"{escape(code)}</div>"
    )


def magic_link_email(link: str, university_name: str | None = None) -> tuple[str, str, str]:
    welcome = f"<p>Welcome, {escape(university_name)} student!</p>" if university_name else ""
    safe_link = escape(link, quote=True)
    html = _layout(
        "Verify Your Student Email",
        f"{welcome}<p>Click the link below to verify your student email address:</p>"
        f'<p><a href="{safe_link}">Verify Email</a></p>'
        f"<p>This link will expire in {MAGIC_LINK_EXPIRY_MINUTES} minutes.</p>"
        "<p>If you didn't request this verification, please ignore this email.</p>",
    )
    text = (
        f"Verify your student email: {link}\n"
        f"This link expires in {MAGIC_LINK_EXPIRY_MINUTES} minutes."
    )
    return "Verify your student email - Awoof", html, text


def password_reset_email(otp: str) -> tuple[str, str, str]:
    html = _layout(
        "Reset Your Password",
        "<p>You requested to reset your password. Please use the code below:</p>"
        f"{_code_block(otp)}"
        f"<p>This code will expire in {OTP_EXPIRY_MINUTES} minutes.</p>"
        "<p>If you didn't request a password reset, please ignore this email.</p>",
    )
    text = f"Your Awoof password reset code is {otp}. It expires in {OTP_EXPIRY_MINUTES} minutes."
    return "Reset your Awoof password", html, text


def whatsapp_otp_message(otp: str, expiry_minutes: int) -> str:
    return (
        f"Your Awoof verification code is: {otp}\n\n"
        f"This code expires in {expiry_minutes} minutes."
    )

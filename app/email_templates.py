"""
MJML Email Templates
Transactional emails for clinic staff, compiled to HTML by email_service
"""

from html import escape
from typing import Optional

APP_NAME = "ZahiFlow"

# Sky/slate palette shared with the web app
THEME = {
    "accent": "#0ea5e9",
    "accent_strong": "#0284c7",
    "page": "#f1f5f9",
    "card": "#ffffff",
    "heading": "#0f172a",
    "body": "#334155",
    "muted": "#64748b",
    "rule": "#e2e8f0",
}

ROLE_LABELS = {
    "admin": "Administrator",
    "doctor": "Doctor",
    "nurse": "Nurse",
    "receptionist": "Receptionist",
    "member": "Team member",
}


def _button(url: str, label: str) -> str:
    return (
        f'<mj-button href="{url}" background-color="{THEME["accent"]}" color="#ffffff" '
        f'font-weight="600" border-radius="6px" inner-padding="14px 32px" padding="24px 0 8px 0">'
        f"{label}</mj-button>"
    )


def get_base_template(
    title: str,
    preview_text: str,
    content_sections: str,
    cta_url: Optional[str] = None,
    cta_label: Optional[str] = None,
) -> str:
    """Wrap content in the branded card layout"""
    button = _button(cta_url, cta_label) if cta_url and cta_label else ""

    return f"""
<mjml>
  <mj-head>
    <mj-title>{title}</mj-title>
    <mj-preview>{preview_text}</mj-preview>
    <mj-attributes>
      <mj-all font-family="Inter, 'Segoe UI', Roboto, Arial, sans-serif" />
      <mj-text font-size="15px" line-height="1.65" color="{THEME['body']}" padding="0 0 14px 0" />
    </mj-attributes>
  </mj-head>
  <mj-body background-color="{THEME['page']}" width="560px">
    <mj-section padding="28px 0 12px 0">
      <mj-column>
        <mj-text align="center" font-size="20px" font-weight="700" color="{THEME['accent_strong']}">{APP_NAME}</mj-text>
      </mj-column>
    </mj-section>
    <mj-section background-color="{THEME['card']}" border-radius="10px" padding="36px 32px">
      <mj-column>
        <mj-text font-size="22px" font-weight="600" color="{THEME['heading']}">{title}</mj-text>
        <mj-divider border-color="{THEME['rule']}" border-width="1px" padding="4px 0 22px 0" />
        {content_sections}
        {button}
      </mj-column>
    </mj-section>
    <mj-section padding="20px 0">
      <mj-column>
        <mj-text align="center" font-size="12px" color="{THEME['muted']}">{APP_NAME} · Clinic management made simple</mj-text>
      </mj-column>
    </mj-section>
  </mj-body>
</mjml>
"""


def invitation_email_template(
    clinic_name: str, role: str, invite_link: str, expiry_days: int = 7
) -> str:
    """Invitation to join a clinic's team"""
    clinic = escape(clinic_name)
    role_label = escape(ROLE_LABELS.get(role, role.title()))
    content = f"""
        <mj-text>You have been invited to join <strong>{clinic}</strong> on {APP_NAME} as <strong>{role_label}</strong>.</mj-text>
        <mj-text>Accept the invitation to get access to the clinic's patients, appointments and invoices.
          New to {APP_NAME}? You'll create an account first.</mj-text>
        <mj-text font-size="13px" color="{THEME['muted']}">The link expires in {expiry_days} days.
          If you weren't expecting this invitation, you can ignore this email.</mj-text>
        <mj-text font-size="13px" color="{THEME['muted']}">Button not working? Open
          <a href="{invite_link}" style="color: {THEME['accent_strong']};">{invite_link}</a></mj-text>
    """

    return get_base_template(
        title=f"Join {clinic} on {APP_NAME}",
        preview_text=f"{clinic} invited you to {APP_NAME}",
        content_sections=content,
        cta_url=invite_link,
        cta_label="Accept invitation",
    )

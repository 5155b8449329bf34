"""
MJML Email Templates
Client notification emails, compiled to responsive HTML before sending
"""

from html import escape
from typing import Optional

# Salon theme colors - Rose/Slate color scheme
THEME = {
    "primary": "#e11d74",
    "primary_light": "#fce7f3",
    "telegram": "#0088cc",
    "background": "#f8fafc",
    "card_bg": "#ffffff",
    "text_primary": "#0f172a",
    "text_secondary": "#334155",
    "text_muted": "#64748b",
    "border": "#e2e8f0",
}


def text_to_mjml(text: str) -> str:
    """Plain message text as an escaped MJML text block (newlines become line breaks)"""
    return f"""
    <mj-text>
      {escape(text).replace(chr(10), "<br/>")}
    </mj-text>
    """


def telegram_connect_section(telegram_link: str) -> str:
    """Invitation to receive messages in Telegram instead of email"""
    return f"""
    <mj-section background-color="{THEME['primary_light']}" border-radius="10px" padding="20px">
      <mj-column>
        <mj-text color="{THEME['text_muted']}" padding="0 0 10px 0">
          💡 Хочете отримувати миттєві повідомлення в Telegram?
        </mj-text>
        <mj-button
          href="{telegram_link}"
          background-color="{THEME['telegram']}"
          color="#ffffff"
          font-weight="600"
          border-radius="5px"
          align="left"
          padding="0">
          📱 Підключити Telegram
        </mj-button>
      </mj-column>
    </mj-section>
    """


def get_base_template(
    title: str,
    preview_text: str,
    content_sections: str,
    telegram_link: Optional[str] = None,
) -> str:
    """Base MJML template wrapper for all client emails"""

    telegram_section = telegram_connect_section(telegram_link) if telegram_link else ""

    return f"""
    <mjml>
      <mj-head>
        <mj-title>{escape(title)}</mj-title>
        <mj-preview>{escape(preview_text)}</mj-preview>
        <mj-attributes>
          <mj-all font-family="-apple-system, BlinkMacSystemFont, 'Segoe UI', 'Helvetica Neue', Arial, sans-serif" />
          <mj-text font-size="16px" line-height="1.6" color="{THEME['text_secondary']}" />
        </mj-attributes>
      </mj-head>
      <mj-body background-color="{THEME['background']}">
        <!-- Main Content -->
        <mj-section background-color="{THEME['card_bg']}" padding="40px 40px 32px 40px">
          <mj-column>
            <mj-text font-size="24px" font-weight="600" color="{THEME['text_primary']}" line-height="1.3" padding="0 0 16px 0">
              {escape(title)}
            </mj-text>

            {content_sections}
          </mj-column>
        </mj-section>

        {telegram_section}
      </mj-body>
    </mjml>
    """


def notification_email_template(
    subject: str,
    message_text: str,
    telegram_link: Optional[str] = None,
    content_sections: Optional[str] = None,
) -> str:
    """Email for a rendered template or a custom message (pre-built sections win over text)"""
    return get_base_template(
        title=subject,
        preview_text=message_text.split("\n", 1)[0][:100],
        content_sections=content_sections or text_to_mjml(message_text),
        telegram_link=telegram_link,
    )


def booking_confirmation_sections(
    employee: str, service: str, date: str, time: str, price: str
) -> str:
    """Details table of the built-in booking confirmation email"""
    rows = "".join(
        f"""
        <tr style="border-bottom: 1px solid {THEME['border']};">
          <td style="padding: 10px; font-weight: bold;">{label}</td>
          <td style="padding: 10px;">{escape(value)}</td>
        </tr>
        """
        for label, value in (
            ("Майстер:", employee),
            ("Послуга:", service),
            ("Дата:", date),
            ("Час:", time),
            ("Вартість:", price),
        )
    )

    return f"""
    <mj-text color="{THEME['text_muted']}" padding="0 0 16px 0">
      Дякуємо що обрали наш салон!
    </mj-text>

    <mj-table>
      {rows}
    </mj-table>

    <mj-text color="{THEME['text_muted']}">
      За день до візиту ми надішлемо вам нагадування. До зустрічі! 💖
    </mj-text>
    """
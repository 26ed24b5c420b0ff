# app/services/templates.py
from __future__ import annotations

from html import escape

from app.schemas import ContactSubmission

INTRO = "You have received a new message from your website contact form."


def build_subject(s: ContactSubmission, prefix: str) -> str:
    return f"{prefix}{s.subject}"


def render_text(s: ContactSubmission) -> str:
    lines = [
        INTRO,
        "",
        f"Name: {s.name}",
        f"Email: {s.email}",
        f"Subject: {s.subject}",
        "",
        "Message:",
        s.message,
        "",
    ]
    return "\n".join(lines)


def render_html(s: ContactSubmission) -> str:
    """
    HTML alternative of render_text. All submitted values are escaped; the
    message keeps its line breaks through white-space: pre-wrap.
    """
    name = escape(s.name)
    email = escape(s.email)
    subject = escape(s.subject)
    message = escape(s.message)
    return f"""
    <div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
      <div style="background-color: #106eea; color: white; padding: 20px; border-radius: 5px 5px 0 0;">
        <h2 style="margin: 0;">New Contact Form Submission</h2>
      </div>
      <div style="background-color: #f8f9fa; padding: 20px; border-radius: 0 0 5px 5px;">
        <div style="margin-bottom: 15px;">
          <strong style="color: #333;">Name:</strong>
          <span style="color: #555;">{name}</span>
        </div>
        <div style="margin-bottom: 15px;">
          <strong style="color: #333;">Email:</strong>
          <a href="mailto:{email}" style="color: #106eea;">{email}</a>
        </div>
        <div style="margin-bottom: 15px;">
          <strong style="color: #333;">Subject:</strong>
          <span style="color: #555;">{subject}</span>
        </div>
        <hr style="border: 1px solid #dee2e6; margin: 20px 0;">
        <div>
          <strong style="color: #333;">Message:</strong>
          <p style="white-space: pre-wrap; color: #555;">{message}</p>
        </div>
      </div>
    </div>
    """.strip()

"""
Notification collaborator and the transactional messages it delivers.
"""

import html
from abc import ABC, abstractmethod
from dataclasses import dataclass
from urllib.parse import urlencode
from uuid import UUID


class INotificationService(ABC):
    @abstractmethod
    async def send(self, to: str, subject: str, text: str, html: str) -> bool:
        """Deliver one message; False when delivery failed"""
        pass


@dataclass(frozen=True)
class Message:
    subject: str
    text: str
    html: str


def _link_message(subject: str, intro: str, link: str) -> Message:
    return Message(
        subject=subject,
        text=f"{intro}: {link}",
        html=f'<p>{intro}: <a href="{html.escape(link)}">{html.escape(link)}</a></p>',
    )


def account_activation_message(frontend_url: str, user_id: UUID, email: str) -> Message:
    query = urlencode({"userId": user_id, "email": email})
    link = f"{frontend_url}/active-account/?{query}"
    return _link_message(
        "Account Activation Request", "Please use the following link to activate your account", link
    )


def email_verification_message(frontend_url: str, user_id: UUID, email: str) -> Message:
    query = urlencode({"userId": user_id, "email": email})
    link = f"{frontend_url}/verify-email/?{query}"
    return _link_message(
        "Email Verification Request", "Please use the following link to verify your email", link
    )


def password_reset_message(frontend_url: str, token: str) -> Message:
    query = urlencode({"token": token})
    link = f"{frontend_url}/reset-password?{query}"
    return _link_message(
        "Password Reset Request", "Please use the following link to reset your password", link
    )

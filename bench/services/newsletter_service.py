"""Newsletter subscriptions and privileged broadcasts."""

from __future__ import annotations

import re
from typing import Any, Dict, List, Optional

from bench.stores import DataStore, eq
from bench.utils.best_effort import run_best_effort
from bench.utils.clock import Clock, to_iso, utc_now
from bench.utils.exceptions import StoreError, UpstreamFailure, ValidationError
from bench.utils.logger import get_logger

from .email_dispatcher import EmailDispatcher

logger = get_logger(__name__)

SUBSCRIPTIONS_TABLE = "subscriptions"
NEWSLETTERS_TABLE = "newsletters"

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


class NewsletterService:
    def __init__(self, store: DataStore, dispatcher: EmailDispatcher, clock: Clock = utc_now):
        self.store = store
        self.dispatcher = dispatcher
        self.clock = clock

    def subscribe(self, email: Optional[str]) -> Dict[str, Any]:
        """Upsert an active subscription for ``email`` and return the row.

        The welcome email is not sent here; see send_welcome().
        """
        if not email:
            raise ValidationError("Missing email", public_message="Email is required")
        if not EMAIL_RE.match(email):
            raise ValidationError("Bad email format", public_message="Invalid email format")
        try:
            row = self.store.upsert(
                SUBSCRIPTIONS_TABLE,
                {"email": email, "is_active": True, "subscribed_at": to_iso(self.clock())},
                on_conflict="email",
            )
        except StoreError as e:
            logger.error("Newsletter subscription error", error=str(e))
            raise UpstreamFailure(str(e), public_message="Failed to subscribe to newsletter")
        logger.info("Newsletter subscription stored", subscription_id=row.get("id"))
        return row

    def send_welcome(self, email: str) -> bool:
        """Best-effort welcome email; never raises."""
        return run_best_effort(
            "newsletter-welcome-email",
            self.dispatcher.send,
            to=email,
            template="newsletter-welcome",
            data={"email": email},
        )

    def unsubscribe(self, email: str) -> bool:
        try:
            rows = self.store.update(SUBSCRIPTIONS_TABLE, {"is_active": False}, [eq("email", email)])
        except StoreError as e:
            logger.error("Newsletter unsubscribe error", error=str(e))
            raise UpstreamFailure(str(e))
        return bool(rows)

    def active_subscribers(self) -> List[str]:
        rows = self.store.select(
            SUBSCRIPTIONS_TABLE, [eq("is_active", True)], order_by="subscribed_at"
        )
        return [r["email"] for r in rows if r.get("email")]

    def broadcast(
        self,
        subject: Optional[str],
        content: Optional[str],
        audience: str = "subscribers",
        recipients: Optional[List[str]] = None,
    ) -> Dict[str, Any]:
        """Record a newsletter and email it to each recipient.

        Recipients default to every active subscriber. Individual send
        failures are counted, not raised.
        """
        if not subject or not content:
            raise ValidationError("Missing subject or content", public_message="Subject and content are required")
        try:
            targets = list(recipients) if recipients is not None else self.active_subscribers()
            newsletter = self.store.insert(NEWSLETTERS_TABLE, {
                "subject": subject,
                "content": content,
                "audience": audience,
                "status": "sent",
                "sent_at": to_iso(self.clock()),
                "recipient_count": len(targets),
            })
        except StoreError as e:
            logger.error("Error recording newsletter", error=str(e))
            raise UpstreamFailure(str(e), public_message="Failed to send newsletter")

        delivered = 0
        for address in targets:
            if run_best_effort(
                "newsletter-email",
                self.dispatcher.send,
                to=address,
                subject=subject,
                template="newsletter",
                data={"subject": subject, "content": content},
            ):
                delivered += 1
        logger.info(
            "Newsletter sent",
            newsletter_id=newsletter.get("id"),
            recipients=len(targets),
            delivered=delivered,
        )
        return {"newsletter": newsletter, "recipients": len(targets), "delivered": delivered}

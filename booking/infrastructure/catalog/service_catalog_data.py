from __future__ import annotations

from booking.domain.entities.service import Service

SERVICE_CATALOG: tuple[Service, ...] = (
    Service(
        id="1",
        name="Free consultation",
        category="Consultation",
        description="Initial conversation to understand your needs and agree on a strategy",
        duration_minutes=30,
        price=0,
        color="#00F5FF",
    ),
    Service(
        id="2",
        name="Technical audit",
        category="Audit",
        description="Complete review of your existing technical infrastructure",
        duration_minutes=120,
        price=150,
        color="#9D4EDD",
        requirements=("System access", "Technical documentation"),
    ),
    Service(
        id="3",
        name="Development training",
        category="Training",
        description="Personalised training session on web technologies",
        duration_minutes=90,
        price=100,
        color="#40E0D0",
    ),
    Service(
        id="4",
        name="Technical support",
        category="Support",
        description="Hands-on help to resolve urgent technical problems",
        duration_minutes=60,
        price=80,
        color="#DA70D6",
    ),
)

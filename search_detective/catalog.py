"""Industry catalog and stored settings backed by the database."""

import logging
from typing import Any, Optional, Sequence

from sqlalchemy import func, select

from search_detective.database import get_session
from search_detective.models.industry import AppSettings, Industry

logger = logging.getLogger(__name__)

DEFAULT_INDUSTRIES: list[dict[str, Any]] = [
    {
        "name": "hvac",
        "label": "HVAC",
        "keywords": [
            "HVAC repair", "air conditioning repair", "heating repair",
            "HVAC installation", "air conditioning installation", "heating installation",
            "HVAC service", "air conditioning service", "heating service",
            "HVAC contractor", "AC repair", "furnace repair",
        ],
    },
    {
        "name": "plumbing",
        "label": "Plumbing",
        "keywords": [
            "plumber near me", "plumbing repair", "drain cleaning",
            "water heater repair", "plumbing service", "emergency plumber",
            "toilet repair", "pipe repair", "leak repair",
            "plumbing installation", "sewer cleaning", "faucet repair",
        ],
    },
    {
        "name": "electrical",
        "label": "Electrical",
        "keywords": [
            "electrician near me", "electrical repair", "electrical installation",
            "electrical service", "emergency electrician", "circuit breaker repair",
            "outlet installation", "electrical wiring", "panel upgrade",
            "lighting installation", "electrical inspection", "electrical contractor",
        ],
    },
    {
        "name": "digital-marketing",
        "label": "Digital Marketing",
        "keywords": [
            "digital marketing agency", "SEO services", "PPC management",
            "social media marketing", "web design", "online marketing",
            "search engine optimization", "digital advertising", "content marketing",
            "email marketing", "local SEO", "website development",
        ],
    },
]


def _clean_keywords(keywords: Sequence[str]) -> list[str]:
    cleaned = [str(kw).strip() for kw in keywords]
    return [kw for kw in cleaned if kw]


class IndustryCatalog:
    """CRUD access to industries and their base keyword lists.

    Usage::

        catalog = IndustryCatalog()
        catalog.seed_defaults()
        hvac = catalog.get_by_name("hvac")
    """

    def list_all(self) -> list[Industry]:
        with get_session() as session:
            return list(session.scalars(select(Industry).order_by(Industry.name)).all())

    def get(self, industry_id: int) -> Optional[Industry]:
        with get_session() as session:
            return session.get(Industry, industry_id)

    def get_by_name(self, name: str) -> Optional[Industry]:
        with get_session() as session:
            return session.scalars(select(Industry).where(Industry.name == name)).first()

    def create(self, name: str, label: str, keywords: Sequence[str]) -> Industry:
        name = name.strip()
        if not name or not label.strip():
            raise ValueError("Industry name and label are required")
        if self.get_by_name(name) is not None:
            raise ValueError(f"Industry already exists: {name!r}")
        industry = Industry(name=name, label=label.strip(), keywords=_clean_keywords(keywords))
        with get_session() as session:
            session.add(industry)
        logger.info("Created industry %r with %d keywords", name, len(industry.keywords))
        return industry

    def update(self, industry_id: int, **fields: Any) -> Optional[Industry]:
        """Update ``name``, ``label`` and/or ``keywords``; None if missing."""
        allowed = {"name", "label", "keywords"}
        unknown = set(fields) - allowed
        if unknown:
            raise ValueError(f"Unknown industry fields: {sorted(unknown)}")
        with get_session() as session:
            industry = session.get(Industry, industry_id)
            if industry is None:
                return None
            if "keywords" in fields:
                fields["keywords"] = _clean_keywords(fields["keywords"])
            for key, value in fields.items():
                setattr(industry, key, value)
            return industry

    def delete(self, industry_id: int) -> bool:
        with get_session() as session:
            industry = session.get(Industry, industry_id)
            if industry is None:
                return False
            session.delete(industry)
        logger.info("Deleted industry id=%d", industry_id)
        return True

    def seed_defaults(self) -> int:
        """Insert the default industries when the table is empty.

        Returns the number of industries inserted.
        """
        with get_session() as session:
            count = session.scalar(select(func.count()).select_from(Industry))
            if count:
                return 0
            for entry in DEFAULT_INDUSTRIES:
                session.add(Industry(
                    name=entry["name"], label=entry["label"], keywords=list(entry["keywords"]),
                ))
        logger.info("Seeded %d default industries", len(DEFAULT_INDUSTRIES))
        return len(DEFAULT_INDUSTRIES)


class SettingsStore:
    """Reads and writes the single settings row."""

    def get(self) -> Optional[AppSettings]:
        with get_session() as session:
            return session.scalars(select(AppSettings).order_by(AppSettings.id)).first()

    def get_api_key(self) -> Optional[str]:
        settings = self.get()
        if settings is None:
            return None
        return settings.keywords_everywhere_api_key or None

    def set_api_key(self, api_key: Optional[str]) -> AppSettings:
        value = api_key.strip() if api_key else None
        with get_session() as session:
            settings = session.scalars(select(AppSettings).order_by(AppSettings.id)).first()
            if settings is None:
                settings = AppSettings(keywords_everywhere_api_key=value)
                session.add(settings)
            else:
                settings.keywords_everywhere_api_key = value
        logger.info("Stored Keywords Everywhere API key updated (configured=%s)", bool(value))
        return settings

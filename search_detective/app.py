"""Main application object wiring config, storage, provider client and pipeline."""

import logging
import os
from pathlib import Path
from typing import Any, Optional

import httpx
import yaml
from dotenv import load_dotenv

from search_detective.exceptions import InvalidInputError, MissingCredentialError
from search_detective.integrations.keywords_everywhere import (
    DEFAULT_BATCH_DELAY,
    DEFAULT_BATCH_SIZE,
    DEFAULT_SUSPICIOUS_VOLUME,
    KWE_BASE_URL,
    KeywordsEverywhereClient,
    SleepFunc,
)
from search_detective.modules.keyword_research import (
    CredentialCheck,
    MarketAnalyzer,
    ResearchPipeline,
    ResearchRecord,
    TamAssumptions,
)
from search_detective.modules.keyword_research.pipeline import StateCallback
from search_detective.storage import ResearchStorage, SQLResearchStorage
from search_detective.utils.helpers import mask_secret

logger = logging.getLogger(__name__)

# Checked in order; the first non-empty one wins over the stored key.
API_KEY_ENV_VARS = ("KEYWORDS_EVERYWHERE_API_KEY", "KWE_API_KEY")


class SearchDetective:
    """Central application class used by the CLI and any outer surface.

    Usage::

        app = SearchDetective()
        app.initialize()
        record = asyncio.run(app.run_research("hvac", ["Boise", "Reno"]))
        summary = app.market_summary(record.id)
    """

    def __init__(
        self,
        config_path: str = "config/settings.yaml",
        env_path: str = ".env",
        storage: Optional[ResearchStorage] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        sleep: Optional[SleepFunc] = None,
    ):
        self._config_path = config_path
        self._env_path = env_path
        self._http_client = http_client
        self._sleep = sleep
        self.config: dict[str, Any] = {}
        self.storage: ResearchStorage = storage or SQLResearchStorage()
        self._catalog = None
        self._settings = None
        self._client: Optional[KeywordsEverywhereClient] = None
        self._pipeline: Optional[ResearchPipeline] = None
        self._analyzer: Optional[MarketAnalyzer] = None
        self._initialized = False

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def initialize(self) -> None:
        """Load .env and YAML config, initialise the DB and seed industries."""
        if self._initialized:
            return

        env_file = Path(self._env_path)
        if env_file.exists():
            load_dotenv(env_file)
            logger.info("Loaded environment from %s", self._env_path)

        self.config = self._load_config()

        from search_detective.catalog import IndustryCatalog, SettingsStore
        from search_detective.database import init_db

        db_cfg = self.config.get("database", {})
        db_url = os.getenv("DATABASE_URL") or db_cfg.get("url")
        init_db(database_url=db_url, echo=db_cfg.get("echo", False))

        self._catalog = IndustryCatalog()
        self._settings = SettingsStore()
        if self.config.get("app", {}).get("seed_default_industries", True):
            self._catalog.seed_defaults()

        self._initialized = True
        logger.info("SearchDetective initialised.")

    def _load_config(self) -> dict[str, Any]:
        """Load the YAML configuration file."""
        config_file = Path(self._config_path)
        if not config_file.exists():
            logger.warning("Config file not found: %s -- using defaults.", self._config_path)
            return {}
        with open(config_file, "r", encoding="utf-8") as fh:
            config = yaml.safe_load(fh) or {}
        logger.info("Configuration loaded from %s", self._config_path)
        return config

    def _ensure_initialized(self) -> None:
        if not self._initialized:
            raise RuntimeError("Call initialize() before using the application.")

    # ------------------------------------------------------------------
    # Lazy-built collaborators
    # ------------------------------------------------------------------

    @property
    def catalog(self):
        self._ensure_initialized()
        return self._catalog

    @property
    def settings(self):
        self._ensure_initialized()
        return self._settings

    def _get_client(self) -> KeywordsEverywhereClient:
        if self._client is None:
            kwe = self.config.get("keywords_everywhere", {})
            self._client = KeywordsEverywhereClient(
                base_url=kwe.get("base_url", KWE_BASE_URL),
                batch_size=int(kwe.get("batch_size", DEFAULT_BATCH_SIZE)),
                batch_delay=float(kwe.get("batch_delay_seconds", DEFAULT_BATCH_DELAY)),
                suspicious_volume=int(kwe.get("suspicious_volume_threshold", DEFAULT_SUSPICIOUS_VOLUME)),
                country=kwe.get("country", "US"),
                currency=kwe.get("currency", "USD"),
                data_source=kwe.get("data_source", "gkp"),
                timeout=float(kwe.get("timeout", 30.0)),
                http_client=self._http_client,
                sleep=self._sleep,
            )
            logger.debug("KeywordsEverywhereClient created.")
        return self._client

    def _get_pipeline(self) -> ResearchPipeline:
        if self._pipeline is None:
            source = self.config.get("keywords_everywhere", {}).get("source_label", "keywords_everywhere")
            self._pipeline = ResearchPipeline(
                fetcher=self._get_client(), storage=self.storage, source=source,
            )
            logger.debug("ResearchPipeline created.")
        return self._pipeline

    def _get_analyzer(self) -> MarketAnalyzer:
        if self._analyzer is None:
            tam_cfg = self.config.get("market", {}).get("tam", {})
            defaults = TamAssumptions()
            self._analyzer = MarketAnalyzer(TamAssumptions(
                lead_conversion_rate=float(tam_cfg.get("lead_conversion_rate", defaults.lead_conversion_rate)),
                average_job_value=float(tam_cfg.get("average_job_value", defaults.average_job_value)),
                capture_rate=float(tam_cfg.get("capture_rate", defaults.capture_rate)),
            ))
        return self._analyzer

    # ------------------------------------------------------------------
    # Credentials
    # ------------------------------------------------------------------

    def resolve_credential(self) -> str:
        """Environment keys take precedence over the key stored in settings."""
        self._ensure_initialized()
        for var in API_KEY_ENV_VARS:
            value = os.getenv(var, "").strip()
            if value:
                logger.debug("Using API key from %s (%s)", var, mask_secret(value))
                return value
        stored = self._settings.get_api_key()
        if stored:
            logger.debug("Using stored API key (%s)", mask_secret(stored))
            return stored
        return ""

    async def test_credential(self, api_key: Optional[str] = None) -> CredentialCheck:
        """Validate ``api_key`` (or the resolved key) against the provider."""
        key = api_key if api_key is not None else self.resolve_credential()
        return await self._get_client().test_credential(key)

    # ------------------------------------------------------------------
    # Research
    # ------------------------------------------------------------------

    async def run_research(
        self,
        industry_name: str,
        cities: list[str],
        title: Optional[str] = None,
        on_state: Optional[StateCallback] = None,
    ) -> ResearchRecord:
        """Look up the industry, resolve the API key and run the pipeline."""
        self._ensure_initialized()
        industry = self._catalog.get_by_name(industry_name)
        if industry is None:
            raise InvalidInputError(f"industry not found: {industry_name!r}")
        credential = self.resolve_credential()
        if not credential:
            raise MissingCredentialError("no Keywords Everywhere API key configured")
        return await self._get_pipeline().run(
            industry, cities, credential, title=title, on_state=on_state,
        )

    def list_research(self) -> list[ResearchRecord]:
        self._ensure_initialized()
        return self.storage.list_all()

    def get_research(self, research_id: int) -> Optional[ResearchRecord]:
        self._ensure_initialized()
        return self.storage.get(research_id)

    def rename_research(self, research_id: int, title: Optional[str]) -> Optional[ResearchRecord]:
        self._ensure_initialized()
        return self.storage.update_title(research_id, title.strip() if title else None)

    def delete_research(self, research_id: int) -> bool:
        self._ensure_initialized()
        return self.storage.delete(research_id)

    # ------------------------------------------------------------------
    # Reporting
    # ------------------------------------------------------------------

    def market_summary(self, research_id: int) -> Optional[dict[str, Any]]:
        record = self.get_research(research_id)
        if record is None:
            return None
        return self._get_analyzer().summarize_market(record)

    def estimate_tam(self, research_id: int) -> Optional[dict[str, Any]]:
        record = self.get_research(research_id)
        if record is None:
            return None
        return self._get_analyzer().estimate_tam(record)

    def export_csv(self, research_id: int, filepath: Optional[str] = None) -> Optional[Path]:
        """Write a research run's results to CSV and return the path."""
        from search_detective.modules.keyword_research.analyzer import export_filename

        record = self.get_research(research_id)
        if record is None:
            return None
        if filepath:
            path = Path(filepath)
        else:
            export_dir = Path(self.config.get("app", {}).get("export_dir", "data/exports"))
            path = export_dir / export_filename(record)
        self._get_analyzer().export_results_csv(record.results, path)
        return path

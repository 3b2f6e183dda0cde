"""Component construction from runtime configuration.

Responsibilities:
- Build the LLM client, detector, translator, source adapters, and pipeline.
- Keep the service and CLI independent from concrete class construction.
"""

from __future__ import annotations

from .config import LeveltextConfig
from .io.blob_store import BlobStore
from .io.extractor import ContentExtractor
from .io.fetcher import SourceFetcher
from .io.pdf_text_extractor import PdfTextExtractor
from .llm.detector import OpenAILanguageDetector
from .llm.openai_client import OpenAIChatClient
from .llm.rate_limiter import RateLimiter
from .llm.translator import OpenAIChunkTranslator
from .models.datatypes import SOURCE_PDF, SOURCE_TEXT, SOURCE_URL
from .pipeline.orchestrator import TranslationPipeline
from .pipeline.queue import JobQueue
from .pipeline.sources import PdfSource, SourceAdapter, TextSource, UrlSource
from .pipeline.waves import WaveScheduler
from .service import JobService
from .store.job_store import JobStore


class ComponentFactory:
    """Factory for pipeline collaborators configured by `LeveltextConfig`."""

    @staticmethod
    def create_chat_client(config: LeveltextConfig) -> OpenAIChatClient:
        """Create the shared chat client with per-model pacing."""

        return OpenAIChatClient(
            api_key=config.resolved_api_key(),
            base_url=config.api_base_url,
            timeout_seconds=config.translate_timeout_seconds,
            max_retries=config.provider_max_retries,
            rate_limiter=RateLimiter(min_interval_seconds=config.rate_limit_interval_seconds),
        )

    @staticmethod
    def create_sources(config: LeveltextConfig) -> dict[str, SourceAdapter]:
        """Create one source adapter per source kind."""

        fetcher = SourceFetcher(
            render_proxy_url=config.render_proxy_url,
            render_proxy_api_key=config.resolved_render_proxy_api_key(),
            direct_timeout_seconds=config.fetch_timeout_seconds,
            render_proxy_timeout_seconds=config.render_proxy_timeout_seconds,
            min_direct_body_chars=config.min_direct_body_chars,
        )
        extractor = ContentExtractor(
            policy=config.domain_policy(),
            min_content_chars=config.min_chars(SOURCE_URL),
        )
        return {
            SOURCE_URL: UrlSource(fetcher, extractor, config.chunk_band(SOURCE_URL)),
            SOURCE_TEXT: TextSource(
                config.chunk_band(SOURCE_TEXT),
                min_content_chars=config.min_chars(SOURCE_TEXT),
            ),
            SOURCE_PDF: PdfSource(
                BlobStore(config.data_dir / "blobs"),
                PdfTextExtractor(min_content_chars=config.min_chars(SOURCE_PDF)),
                config.chunk_band(SOURCE_PDF),
            ),
        }

    @staticmethod
    def create_pipeline(config: LeveltextConfig, store: JobStore) -> TranslationPipeline:
        """Create the job state machine with real providers."""

        client = ComponentFactory.create_chat_client(config)
        return TranslationPipeline(
            store=store,
            sources=ComponentFactory.create_sources(config),
            detector=OpenAILanguageDetector(
                client,
                model=config.model_detect,
                timeout_seconds=config.detect_timeout_seconds,
            ),
            translator=OpenAIChunkTranslator(
                client,
                model=config.model_translate,
                timeout_seconds=config.translate_timeout_seconds,
            ),
            scheduler=WaveScheduler(
                wave_size=config.wave_size,
                chunk_timeout_seconds=config.translate_timeout_seconds
                * (config.provider_max_retries + 1),
            ),
        )

    @staticmethod
    def create_service(
        config: LeveltextConfig,
        pipeline: TranslationPipeline | None = None,
    ) -> JobService:
        """Create the job service with its store, pipeline, and worker queue."""

        config.validate()
        store = pipeline.store if pipeline is not None else JobStore(config.data_dir)
        active_pipeline = (
            pipeline if pipeline is not None else ComponentFactory.create_pipeline(config, store)
        )
        queue = JobQueue(active_pipeline.run, max_workers=config.job_workers)
        return JobService(
            store=store, queue=queue, stale_after_seconds=config.stale_job_seconds
        )

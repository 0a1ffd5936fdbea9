from __future__ import annotations

from pathlib import Path

from dotenv import load_dotenv

from highlight_clip_factory.application.highlight_selection import ResilientHighlightSelector
from highlight_clip_factory.application.orchestrator import AppOrchestrator
from highlight_clip_factory.application.pipeline_executor import PipelineExecutor
from highlight_clip_factory.application.worker import ProcessingWorker
from highlight_clip_factory.domain.clip_rules import HighlightRuleConfig, HighlightRuleEngine
from highlight_clip_factory.domain.models import FrameGeometry
from highlight_clip_factory.domain.protocols import VideoRepository
from highlight_clip_factory.infrastructure.llm.fallback_client import HeuristicHighlightSelector
from highlight_clip_factory.infrastructure.llm.openai_client import TRANSIENT_ERRORS, OpenAIHighlightSelector
from highlight_clip_factory.infrastructure.render.ffmpeg_builder import FFmpegCommandBuilder
from highlight_clip_factory.infrastructure.render.local_renderer import LocalFFmpegRenderer
from highlight_clip_factory.infrastructure.render.subtitle_generator import SubtitleGenerator
from highlight_clip_factory.infrastructure.storage.artifact_store import ArtifactStore
from highlight_clip_factory.infrastructure.storage.memory_repo import InMemoryVideoRepository
from highlight_clip_factory.infrastructure.storage.sqlite_repo import SQLiteVideoRepository
from highlight_clip_factory.infrastructure.transcriber.openai_whisper import (
    OpenAIWhisperTranscriber,
    PlaceholderTranscriber,
)
from highlight_clip_factory.utils.config import Settings, load_settings
from highlight_clip_factory.utils.locks import KeyedLock
from highlight_clip_factory.utils.logger import configure_logger, get_logger


def build_orchestrator(root_dir: Path, settings: Settings | None = None) -> AppOrchestrator:
    load_dotenv(root_dir / ".env")
    configure_logger()
    logger = get_logger()
    settings = settings or load_settings(root_dir)

    repo = _build_repository(settings)
    locks = KeyedLock()
    store = ArtifactStore(
        upload_dir=settings.upload.upload_dir,
        clips_dir=settings.upload.clips_dir,
        max_upload_bytes=settings.upload.max_file_size,
    )

    if settings.openai.enabled:
        transcriber = OpenAIWhisperTranscriber(
            api_key=settings.openai.api_key,
            model=settings.openai.transcribe_model,
            timeout_sec=settings.openai.timeout_sec,
        )
        primary_selector = OpenAIHighlightSelector(
            api_key=settings.openai.api_key,
            model=settings.openai.highlight_model,
            max_sec=settings.video.clip_duration,
            timeout_sec=settings.openai.timeout_sec,
        )
    else:
        logger.warning("openai.not_configured", fallback="placeholder transcript and heuristic highlights")
        transcriber = PlaceholderTranscriber()
        primary_selector = None

    selector = ResilientHighlightSelector(
        primary=primary_selector,
        fallback=HeuristicHighlightSelector(max_sec=settings.video.clip_duration),
        rule_engine=HighlightRuleEngine(HighlightRuleConfig(max_sec=settings.video.clip_duration)),
        logger=logger,
        max_retries=settings.openai.max_retries,
        retry_on=TRANSIENT_ERRORS,
    )

    renderer = LocalFFmpegRenderer(FFmpegCommandBuilder(settings.video, settings.subtitle), logger=logger)

    executor = PipelineExecutor(
        repo=repo,
        locks=locks,
        store=store,
        transcriber=transcriber,
        selector=selector,
        subtitle_generator=SubtitleGenerator(),
        renderer=renderer,
        geometry=FrameGeometry(settings.video.target_width, settings.video.target_height),
        max_clip_sec=settings.video.clip_duration,
        logger=logger,
    )

    orchestrator = AppOrchestrator(
        executor=executor,
        worker=ProcessingWorker(settings.pipeline.worker_count, logger),
        repo=repo,
        locks=locks,
        store=store,
        logger=logger,
        default_clip_count=settings.pipeline.default_clip_count,
    )
    orchestrator.recover_interrupted()
    return orchestrator


def _build_repository(settings: Settings) -> VideoRepository:
    if settings.storage.backend == "sqlite" and settings.storage.db_path is not None:
        return SQLiteVideoRepository(settings.storage.db_path)
    return InMemoryVideoRepository()

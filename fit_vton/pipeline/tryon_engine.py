"""Virtual try-on engine: orchestrates analysis, fitting and compositing for one request."""

import asyncio
import logging
import time
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Mapping

import numpy as np

from ..config import EngineConfig
from ..errors import (
    EngineNotReady,
    NoBodyDetected,
    ProcessingFailure,
    ProcessingTimeout,
    TryOnError,
)
from ..inference import LandmarkEstimator, RegionSegmenter, build_backends
from ..models import (
    PerformanceSummary,
    ProcessingMetrics,
    SizeRecommendation,
    TryOnMetadata,
    TryOnRequest,
    TryOnResult,
    TryOnSessionRecord,
)
from ..services import (
    BodyAnalyzer,
    FittingEngine,
    GarmentProcessor,
    InMemorySessionStore,
    MeasurementCalculator,
    MetricsRecorder,
    ResultCache,
    SessionStore,
    SingleFlight,
    SizeRecommendationService,
    composite,
    fingerprint,
    image_codec,
    performance_score,
)

logger = logging.getLogger(__name__)


class EngineStage(str, Enum):
    IDLE = "idle"
    VALIDATING = "validating"
    CACHE_CHECK = "cache_check"
    CACHE_HIT = "cache_hit"
    CACHE_MISS = "cache_miss"
    BODY_ANALYSIS = "body_analysis"
    GARMENT_PROCESSING = "garment_processing"
    FITTING = "fitting"
    COMPOSITING = "compositing"
    RECORDING = "recording"
    DONE = "done"
    FAILED = "failed"


@dataclass
class RequestContext:
    """Per-request bookkeeping: id for log correlation and the current stage."""
    request_id: str = field(default_factory=lambda: uuid.uuid4().hex[:8])
    stage: EngineStage = EngineStage.IDLE

    def transition(self, stage: EngineStage) -> None:
        logger.debug("[%s] %s -> %s", self.request_id, self.stage.value, stage.value)
        self.stage = stage


class TryOnEngine:
    """Photo-based virtual try-on.

    Flow:
    1. Validate the request
    2. Return the cached result for an identical request, if any
    3. Detect landmarks and segment the body (concurrently), derive measurements
    4. Normalize the garment and extract texture/size features
    5. Compute placement, fit score, fabric physics and recommendations
    6. Composite the garment onto the photo
    7. Record the session, cache the result and record metrics

    Construct once at process start-up and share; cache, metrics, session
    store and inference backends are injectable.
    """

    def __init__(
        self,
        config: EngineConfig | None = None,
        *,
        estimator: LandmarkEstimator | None = None,
        segmenter: RegionSegmenter | None = None,
        cache: ResultCache | None = None,
        metrics: MetricsRecorder | None = None,
        session_store: SessionStore | None = None,
        clock: Callable[[], float] = time.time,
    ):
        self.config = config or EngineConfig()
        self._clock = clock

        if estimator is None or segmenter is None:
            default_estimator, default_segmenter = build_backends(self.config.inference)
            estimator = estimator or default_estimator
            segmenter = segmenter or default_segmenter
        self.estimator = estimator
        self.segmenter = segmenter

        self.cache = cache or ResultCache(
            max_entries=self.config.cache.max_entries,
            ttl_s=self.config.cache.ttl_s,
        )
        self.metrics = metrics or MetricsRecorder(
            capacity=self.config.metrics.capacity,
            summary_window=self.config.metrics.summary_window,
        )
        self.session_store = session_store or InMemorySessionStore()

        self.body_analyzer = BodyAnalyzer(
            estimator,
            segmenter,
            MeasurementCalculator(pixels_per_cm=self.config.pixels_per_cm),
        )
        self.garment_processor = GarmentProcessor(
            canvas_size=self.config.garment_canvas,
            feature_size=self.config.feature_size,
        )
        self.fitting = FittingEngine()
        self.size_service = SizeRecommendationService(self.session_store)

        self._inflight: SingleFlight[TryOnResult] = SingleFlight()
        self._ready = False

    @property
    def ready(self) -> bool:
        return self._ready

    async def initialize(self) -> None:
        """Warm up the inference backends. Requests fail with EngineNotReady until this completes."""
        logger.info("Initializing virtual try-on engine (%s backend)...", self.config.inference.backend)
        size = self.config.inference.input_size
        blank = np.zeros((size, size, 3), dtype=np.float32)
        try:
            await asyncio.gather(
                asyncio.to_thread(self.estimator.estimate, blank),
                asyncio.to_thread(self.segmenter.segment, blank),
            )
        except Exception as e:
            logger.error("Engine initialization failed: %s", e)
            raise EngineNotReady(f"Engine initialization failed: {e}") from e
        finally:
            del blank
        self._ready = True
        logger.info("Virtual try-on engine initialized")

    async def shutdown(self) -> None:
        self._ready = False
        for backend in (self.estimator, self.segmenter):
            close = getattr(backend, "close", None)
            if close is not None:
                await asyncio.to_thread(close)

    async def process(self, request: TryOnRequest | Mapping[str, Any]) -> TryOnResult:
        """Run one try-on request.

        Args:
            request: A TryOnRequest or its raw (camelCase or snake_case) payload

        Returns:
            The TryOnResult; identical requests return the same cached object

        Raises:
            TryOnError: every failure, after a failure metric has been recorded
        """
        start = self._clock()
        ctx = RequestContext()

        try:
            ctx.transition(EngineStage.VALIDATING)
            if not isinstance(request, TryOnRequest):
                request = TryOnRequest.build(request)
            if not self._ready:
                raise EngineNotReady()

            ctx.transition(EngineStage.CACHE_CHECK)
            key = fingerprint(request)
            cached = self.cache.get(key)
            if cached is not None:
                ctx.transition(EngineStage.CACHE_HIT)
                logger.info("[%s] Returning cached result", ctx.request_id)
                ctx.transition(EngineStage.DONE)
                return cached

            ctx.transition(EngineStage.CACHE_MISS)
            result, computed = await self._inflight.run(
                key,
                lambda: asyncio.wait_for(
                    self._compute(request, key, start, ctx),
                    timeout=self.config.request_timeout_s,
                ),
            )
            if computed:
                self.metrics.record(ProcessingMetrics(
                    start_time=start,
                    end_time=self._clock(),
                    success=True,
                    performance_score=performance_score(
                        result.processing_time,
                        result.confidence,
                        self.config.metrics.target_latency_ms,
                    ),
                ))
            ctx.transition(EngineStage.DONE)
            return result

        except TryOnError as e:
            self._fail(ctx, start, e)
            raise
        except asyncio.TimeoutError as e:
            error = ProcessingTimeout(
                f"Virtual try-on exceeded its {self.config.request_timeout_s:g}s budget",
                details={"stage": ctx.stage.value},
            )
            self._fail(ctx, start, error)
            raise error from e
        except Exception as e:
            error = ProcessingFailure(
                f"Virtual try-on failed: {e}",
                details={"stage": ctx.stage.value},
                code="UNKNOWN",
            )
            self._fail(ctx, start, error)
            raise error from e

    async def _compute(self, request: TryOnRequest, key: str, start: float, ctx: RequestContext) -> TryOnResult:
        user_bytes = garment_bytes = tensor = None
        try:
            user_bytes = await asyncio.to_thread(image_codec.decode, request.user_image)
            garment_bytes = await asyncio.to_thread(image_codec.decode, request.garment_image)

            ctx.transition(EngineStage.BODY_ANALYSIS)
            input_size = self.config.inference.input_size
            width, height = await asyncio.to_thread(image_codec.image_size, user_bytes)
            tensor = await asyncio.to_thread(image_codec.to_tensor, user_bytes, input_size)
            analysis = await self.body_analyzer.analyze(
                tensor, width, height, image_codec.letterbox_box(width, height, input_size)
            )
            tensor = None
            if not analysis.body_detected:
                raise NoBodyDetected()

            ctx.transition(EngineStage.GARMENT_PROCESSING)
            garment = await asyncio.to_thread(
                self.garment_processor.process, garment_bytes, request.garment_type
            )

            ctx.transition(EngineStage.FITTING)
            assessment = self.fitting.assess(analysis, garment, request.garment_type, width, height)

            ctx.transition(EngineStage.COMPOSITING)
            try:
                result_image = await asyncio.to_thread(
                    composite, user_bytes, garment.normalized_image, assessment.placement
                )
            except TryOnError:
                raise
            except (OSError, ValueError) as e:
                raise ProcessingFailure(f"Virtual fitting failed: {e}") from e

            ctx.transition(EngineStage.RECORDING)
            processing_time = (self._clock() - start) * 1000
            self.session_store.append(TryOnSessionRecord(
                user_id=request.user_id,
                garment_type=request.garment_type,
                size=garment.size.value,
                measurements=analysis.measurements,
                fit_score=assessment.fit_score,
                processing_time=processing_time,
            ))

            result = TryOnResult(
                result_image=result_image,
                confidence=assessment.confidence,
                processing_time=processing_time,
                metadata=TryOnMetadata(
                    body_detected=analysis.body_detected,
                    garment_fit_score=assessment.fit_score,
                    recommendations=assessment.recommendations,
                    fabric_physics=assessment.fabric_physics,
                    texture_quality=assessment.texture_quality,
                ),
            )
            self.cache.put(key, result)
            logger.info(
                "[%s] Try-on complete: %s, size %s, fit %.2f, %.0f ms",
                ctx.request_id, request.garment_type.value, garment.size.value,
                assessment.fit_score, processing_time,
            )
            return result
        finally:
            # uploads are never persisted; drop request-scoped buffers on every path
            del user_bytes, garment_bytes, tensor
            if request.auto_delete:
                logger.debug("[%s] User image released (auto-delete)", ctx.request_id)

    def _fail(self, ctx: RequestContext, start: float, error: TryOnError) -> None:
        self.metrics.record(ProcessingMetrics(
            start_time=start,
            end_time=self._clock(),
            success=False,
            error_type=error.code,
            performance_score=0.0,
        ))
        failed_at = ctx.stage
        ctx.transition(EngineStage.FAILED)
        if isinstance(error, (ProcessingFailure, EngineNotReady)):
            logger.error("[%s] Virtual try-on failed at %s: %s", ctx.request_id, failed_at.value, error.message)
        else:
            logger.warning("[%s] Virtual try-on rejected at %s: %s", ctx.request_id, failed_at.value, error.message)

    def get_performance_metrics(self) -> PerformanceSummary:
        return self.metrics.summary(cache_hits=self.cache.hits, cache_size=len(self.cache))

    def clear_cache(self) -> None:
        self.cache.clear()
        logger.info("Cache cleared")

    def get_size_recommendation(self, user_id: str, product_id: int | None = None) -> SizeRecommendation:
        return self.size_service.recommend(user_id, product_id)

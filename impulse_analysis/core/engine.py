"""
Analysis engine for the impulse response analyzer.

Orchestrates the stages over a decoded waveform:
mixdown -> normalization -> spectral + envelope features -> turbulence
-> classification -> result record.
"""

import logging
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Any, Dict, List, Optional, Sequence

import numpy as np

from impulse_analysis.analyzers.classifier import RuleClassifier, TraceHook
from impulse_analysis.analyzers.envelope import EnvelopeAnalyzer
from impulse_analysis.analyzers.spectral import SpectralAnalyzer
from impulse_analysis.analyzers.turbulence import TurbulenceEstimator
from impulse_analysis.core.analyzer_base import Analyzer
from impulse_analysis.core.features import FeatureExtractor
from impulse_analysis.core.models import (
    AnalysisResult,
    EnvelopeFeatures,
    FeatureSet,
    FileMeta,
    SpectralFeatures,
    Waveform,
)
from impulse_analysis.utils.config import (
    ClassifierThresholds,
    ConfigManager,
    EnvelopeSettings,
    SpectralSettings,
    TurbulenceSettings,
    get_default_config,
)
from impulse_analysis.utils.errors import EmptyInputError
from impulse_analysis.utils.logging import create_logger_with_context


class ImpulseResponseEngine:
    """
    Main analysis engine - orchestrates all stages.

    Design:
    - Dependency Injection: every stage is injected (testable)
    - Stateless: nothing is retained between analyses
    - Batch: independent buffers can be analyzed on a thread pool
    """

    def __init__(
        self,
        spectral_analyzer: Analyzer[SpectralFeatures],
        envelope_analyzer: Analyzer[EnvelopeFeatures],
        turbulence_estimator: Analyzer[float],
        classifier: RuleClassifier,
        max_workers: int = 4,
    ):
        """
        Initialize analysis engine.

        Args:
            spectral_analyzer: Centroid / flatness / band energy stage
            envelope_analyzer: RMS envelope, peaks and decay stage
            turbulence_estimator: Decay-linearity stage
            classifier: Rule-based classifier
            max_workers: Max parallel workers for analyze_batch()
        """
        self.spectral_analyzer = spectral_analyzer
        self.envelope_analyzer = envelope_analyzer
        self.turbulence_estimator = turbulence_estimator
        self.classifier = classifier
        self.executor = ThreadPoolExecutor(max_workers=max_workers)
        self.logger = logging.getLogger('engine')

    @property
    def analyzer_versions(self) -> Dict[str, str]:
        stages = (
            self.spectral_analyzer,
            self.envelope_analyzer,
            self.turbulence_estimator,
            self.classifier,
        )
        return {stage.name: stage.version for stage in stages}

    def analyze(self, waveform: Waveform, source: Optional[str] = None) -> AnalysisResult:
        """
        Analyze one decoded impulse response.

        Args:
            waveform: Mono or stereo waveform
            source: Optional descriptor (e.g. the original file path)

        Returns:
            AnalysisResult: Features and classification

        Raises:
            EmptyInputError: The waveform has no samples
        """
        logger = create_logger_with_context('engine', {'source': source or '<buffer>'})

        if waveform.is_empty:
            logger.error("Rejecting empty waveform")
            raise EmptyInputError(source=source)

        start_time = time.perf_counter()
        sample_rate = waveform.sample_rate
        logger.info(
            f"Analyzing {waveform.num_samples} samples, "
            f"{waveform.channels} ch at {sample_rate} Hz"
        )

        # Step 1: Mixdown and normalize
        normalized = FeatureExtractor.normalize(waveform.mono)
        rms_energy = FeatureExtractor.compute_rms(normalized)

        # Step 2: Spectral and envelope features
        spectral = self.spectral_analyzer.analyze(normalized, sample_rate)
        envelope = self.envelope_analyzer.analyze(normalized, sample_rate)

        # Step 3: Decay irregularity
        turbulence = self.turbulence_estimator.analyze(
            envelope.envelope, envelope.decay_end_frame
        )

        # Step 4: Classify
        classification = self.classifier.classify(
            peak_count=envelope.peak_count,
            decay_time=envelope.decay_time,
            centroid=spectral.centroid,
            turbulence=turbulence,
            band_energies=spectral.band_energies,
        )

        features = FeatureSet(
            rms_energy=rms_energy,
            spectral_centroid=float(spectral.centroid),
            spectral_flatness=float(spectral.flatness),
            peak_count=envelope.peak_count,
            decay_time=float(envelope.decay_time),
            turbulence=turbulence,
            band_energies=dict(spectral.band_energies),
            envelope_vector=tuple(float(v) for v in envelope.envelope_vector),
        )

        processing_time = time.perf_counter() - start_time
        result = AnalysisResult(
            classification=classification,
            features=features,
            file_meta=FileMeta(duration_seconds=waveform.duration, source=source),
            processing_time=processing_time,
            analyzer_versions=self.analyzer_versions,
        )

        logger.info(f"Analysis complete in {processing_time:.3f}s: {result.get_summary()}")
        return result

    def analyze_samples(
        self,
        samples: Any,
        sample_rate: int,
        source: Optional[str] = None,
    ) -> AnalysisResult:
        """Analyze a raw sample array ((n,) or (channels, n))."""
        return self.analyze(Waveform(np.asarray(samples), sample_rate), source=source)

    def analyze_batch(
        self,
        waveforms: Sequence[Waveform],
        sources: Optional[Sequence[Optional[str]]] = None,
    ) -> List[Optional[AnalysisResult]]:
        """
        Analyze multiple waveforms in parallel.

        Args:
            waveforms: Waveforms to analyze
            sources: Optional descriptors, one per waveform

        Returns:
            List[Optional[AnalysisResult]]: Results in input order; None
            where an analysis failed
        """
        if sources is None:
            sources = [None] * len(waveforms)
        if len(sources) != len(waveforms):
            raise ValueError("sources must match waveforms in length")

        self.logger.info(f"Analyzing batch of {len(waveforms)} waveforms")

        futures = {
            self.executor.submit(self.analyze, waveform, source): index
            for index, (waveform, source) in enumerate(zip(waveforms, sources))
        }

        results: List[Optional[AnalysisResult]] = [None] * len(waveforms)
        for future in as_completed(futures):
            index = futures[future]
            try:
                results[index] = future.result()
            except Exception as e:
                label = sources[index] or f"#{index}"
                self.logger.error(f"Failed to analyze {label}: {e}")

        return results

    def shutdown(self) -> None:
        """Shutdown thread pool gracefully."""
        self.logger.info("Shutting down analysis engine")
        self.executor.shutdown(wait=True)

    def __enter__(self) -> "ImpulseResponseEngine":
        """Context manager support."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """Cleanup on context exit."""
        self.shutdown()


def create_analysis_engine(
    config: Optional[Dict[str, Any]] = None,
    trace: Optional[TraceHook] = None,
) -> ImpulseResponseEngine:
    """
    Factory function to create a fully configured analysis engine.

    Args:
        config: Configuration dict (defaults if None)
        trace: Optional callable receiving the classifier's intermediate values

    Returns:
        ImpulseResponseEngine: Configured engine

    Raises:
        ConfigurationError: If an analysis section is invalid
    """
    manager = ConfigManager(config if config is not None else get_default_config())

    spectral = SpectralAnalyzer(
        SpectralSettings.from_config(manager.get_section('analysis.spectral'))
    )
    envelope = EnvelopeAnalyzer(
        EnvelopeSettings.from_config(manager.get_section('analysis.envelope'))
    )
    turbulence = TurbulenceEstimator(
        TurbulenceSettings.from_config(manager.get_section('analysis.turbulence'))
    )
    classifier = RuleClassifier(
        ClassifierThresholds.from_config(manager.get_section('classifier')),
        trace=trace,
    )

    return ImpulseResponseEngine(
        spectral_analyzer=spectral,
        envelope_analyzer=envelope,
        turbulence_estimator=turbulence,
        classifier=classifier,
        max_workers=manager.get('performance.max_workers', 4),
    )

"""
Analyzer base interface for the impulse response analyzer.

Defines the contract shared by the spectral, envelope and turbulence
stages using Protocol (structural subtyping).
"""

import logging
import time
from abc import abstractmethod
from typing import Any, Generic, Protocol, TypeVar

from impulse_analysis.utils.errors import AnalysisError, ImpulseAnalysisError

# Type variable for result types
T = TypeVar('T')


class Analyzer(Protocol[T]):
    """
    Base protocol for all analyzer stages.

    All analyzers must implement:
    - analyze(*inputs) -> T
    - name property
    - version property

    A class doesn't need to inherit from Analyzer to be compatible -
    it just needs the required methods.
    """

    @property
    def name(self) -> str:
        """Analyzer name (e.g. 'spectral', 'envelope')."""
        ...

    @property
    def version(self) -> str:
        """Analyzer version for result tracking."""
        ...

    def analyze(self, *args: Any, **kwargs: Any) -> T:
        """
        Run the stage and return its typed result.

        Raises:
            AnalysisError: If analysis fails unexpectedly
        """
        ...


class BaseAnalyzer(Generic[T]):
    """
    Base class providing logging, timing and error wrapping.

    Uses Template Method pattern - analyze() provides the template,
    subclasses implement _analyze_impl().
    """

    def __init__(self, name: str, version: str):
        """
        Initialize analyzer with name and version.

        Args:
            name: Unique analyzer name
            version: Version string for tracking
        """
        self._name = name
        self._version = version
        self.logger = logging.getLogger(f"analyzer.{name}")

    @property
    def name(self) -> str:
        """Return analyzer name."""
        return self._name

    @property
    def version(self) -> str:
        """Return analyzer version."""
        return self._version

    def analyze(self, *args: Any, **kwargs: Any) -> T:
        """
        Template method with timing and error handling.

        Errors from this package's hierarchy (precondition violations,
        empty input) propagate unchanged; anything else is wrapped in
        AnalysisError.

        Returns:
            T: Analysis result

        Raises:
            AnalysisError: If analysis fails
        """
        start_time = time.perf_counter()

        try:
            self.logger.debug("Starting %s analysis", self.name)

            result = self._analyze_impl(*args, **kwargs)

            elapsed = time.perf_counter() - start_time
            self.logger.debug("%s analysis complete in %.4fs", self.name, elapsed)

            return result

        except ImpulseAnalysisError:
            raise

        except Exception as e:
            self.logger.error(f"Analysis failed: {e}")
            raise AnalysisError(
                f"{self.name} analysis failed: {e}",
                analyzer_name=self.name,
                original_error=e
            ) from e

    @abstractmethod
    def _analyze_impl(self, *args: Any, **kwargs: Any) -> T:
        """Subclasses implement actual analysis logic."""
        raise NotImplementedError

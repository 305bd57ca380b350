"""Shared upload flow for every platform."""
from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Callable, Iterable, List, Optional, Tuple, TypeVar

import requests

from constants import Constants, PlatformType
from common.errors import ArgumentError, is_soft_error
from common.logging_utils import Timer
from common.retry import retry
from dependencies.models import Dependency, DependencyType
from dependencies.reconcile import simplify
from platforms.models import UploadReport, UploadRequest

K = TypeVar("K")


class GenericPlatformUploader(ABC):
    """Base class for platform uploaders.

    ``upload`` validates the request, then runs ``upload_core`` inside a
    retry loop that repeats the whole operation on soft errors (rate
    limiting, server faults). Subclasses implement ``upload_core``.
    """

    platform: PlatformType

    def __init__(self, *, session: Optional[requests.Session] = None,
                 logger: Optional[logging.Logger] = None):
        """Initialize the uploader.

        Args:
            session: HTTP session shared by the platform's API clients.
            logger: Destination of progress messages; defaults to the module logger.
        """
        self.session = session or requests.Session()
        self.logger = logger or logging.getLogger(type(self).__module__)

    @property
    def platform_name(self) -> str:
        return self.platform.friendly_name

    def upload(self, request: UploadRequest) -> UploadReport:
        """Publish ``request`` to the platform.

        Raises:
            ArgumentError: A required field is missing; raised before any network call.
            Exception: The last error once retries are exhausted or the error is not soft.
        """
        ArgumentError.throw_if_null_or_empty(
            request.token, "request.token",
            f"A token is required to upload files to {self.platform_name}.",
        )
        ArgumentError.throw_if_null_or_empty(
            request.files, "request.files",
            f"No upload files were specified for {self.platform_name}.",
        )

        max_attempts = (
            request.retry_attempts if request.retry_attempts is not None else Constants.DEFAULT_RETRY_ATTEMPTS
        )
        delay = request.retry_delay if request.retry_delay is not None else Constants.DEFAULT_RETRY_DELAY_SEC

        def _on_error(error: Exception) -> bool:
            if is_soft_error(error):
                self.logger.info("%s", error)
                self.logger.info(
                    "Facing difficulties, republishing assets to %s in %s seconds",
                    self.platform_name, delay,
                )
                return True
            return False

        self.logger.info("Publishing assets to %s", self.platform_name)
        with Timer() as t:
            report = retry(
                lambda: self.upload_core(request),
                max_attempts=max_attempts,
                delay=delay,
                on_error=_on_error,
                context=self.platform.value,
            )
        self.logger.info(
            "Successfully published assets to %s (%.1fs)",
            self.platform_name, t.duration_ms() / 1000,
        )
        return report

    @abstractmethod
    def upload_core(self, request: UploadRequest) -> UploadReport:
        """Perform one complete upload attempt."""

    def convert_to_simple_dependencies(
        self,
        dependencies: Iterable[Dependency],
        type_converter: Callable[[DependencyType], Optional[K]],
    ) -> List[Tuple[str, K]]:
        return simplify(dependencies, self.platform, type_converter)

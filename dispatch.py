"""
dispatch.py — ScanDispatcher: the method-call boundary the host app talks to.

Channel: com.mediamanager/scanner
Methods: scanVideos, scanAudio (no arguments)

Every call ends in exactly one of:
    success          payload = list of serialized records (possibly empty)
    error            code + message, e.g. PERMISSION_DENIED
    not_implemented  the method name is unknown
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable

from errors import ScanError, UnknownOperation
from scanner import ScanOrchestrator

logger = logging.getLogger(__name__)

CHANNEL = "com.mediamanager/scanner"


class ResultStatus(Enum):
    SUCCESS = "success"
    ERROR = "error"
    NOT_IMPLEMENTED = "not_implemented"


@dataclass(frozen=True)
class MethodResult:
    status: ResultStatus
    payload: Any = None
    code: str | None = None
    message: str | None = None
    details: Any = None

    @classmethod
    def success(cls, payload: Any) -> MethodResult:
        return cls(ResultStatus.SUCCESS, payload=payload)

    @classmethod
    def error(cls, code: str, message: str, details: Any = None) -> MethodResult:
        return cls(ResultStatus.ERROR, code=code, message=message, details=details)

    @classmethod
    def not_implemented(cls, method: str) -> MethodResult:
        exc = UnknownOperation(method)
        return cls(ResultStatus.NOT_IMPLEMENTED, code=exc.code, message=exc.message)

    @property
    def ok(self) -> bool:
        return self.status is ResultStatus.SUCCESS

    def to_dict(self) -> dict[str, Any]:
        if self.status is ResultStatus.SUCCESS:
            return {"status": self.status.value, "result": self.payload}
        return {
            "status": self.status.value,
            "code": self.code,
            "message": self.message,
            "details": self.details,
        }


class ScanDispatcher:
    def __init__(self, orchestrator: ScanOrchestrator) -> None:
        self._methods: dict[str, Callable[[], list]] = {
            "scanVideos": orchestrator.scan_videos,
            "scanAudio": orchestrator.scan_audio,
        }

    @property
    def methods(self) -> list[str]:
        return list(self._methods)

    def handle(self, method: str) -> MethodResult:
        handler = self._methods.get(method)
        if handler is None:
            logger.warning("Unknown method on %s: %r", CHANNEL, method)
            return MethodResult.not_implemented(method)

        try:
            records = handler()
        except ScanError as exc:
            logger.error("%s failed: %s (%s)", method, exc.message, exc.code)
            return MethodResult.error(exc.code, exc.message)

        return MethodResult.success([record.to_dict() for record in records])

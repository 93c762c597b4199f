from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Optional

from .assistant.service import AssistantService
from .attendance.capture import CaptureSource, OpenCVCaptureSource
from .attendance.scanner import AttendanceScanner
from .attendance.service import AttendanceService
from .classes.service import ClassService
from .core.constants import DEFAULT_FEE_DUE_DATE
from .database.connection import DBConfig, DatabaseConnection
from .enrollment.desk import EnrollmentDesk
from .fees.service import BillingLedger
from .matching.client import GeminiClient
from .matching.gateway import GenerativeBackend, MatcherConfig, MatcherGateway
from .reports.service import ReportService
from .storage.json_store import JsonFileStore
from .storage.mysql_store import MySQLDocumentStore
from .storage.record_store import RecordStore
from .storage.repository import DocumentStore
from .students.service import StudentService
from .tenants.service import TenantService


def is_remote_store_configured(settings: Any) -> bool:
    db_config = getattr(settings, "DB_CONFIG", None) or {}
    return bool(db_config.get("host") and db_config.get("user") and db_config.get("database"))


def db_config_from(settings: Any) -> DBConfig:
    return DBConfig.from_mapping(getattr(settings, "DB_CONFIG"))


@dataclass(frozen=True)
class Container:
    documents: DocumentStore
    store: RecordStore
    provider: GenerativeBackend
    matcher: MatcherGateway

    tenant_service: TenantService
    class_service: ClassService
    student_service: StudentService
    enrollment_desk: EnrollmentDesk
    attendance_service: AttendanceService
    scanner: AttendanceScanner
    billing: BillingLedger
    report_service: ReportService
    assistant_service: AssistantService

    remote_store: bool
    provider_configured: bool


def build_container(
    *,
    settings: Any,
    documents: Optional[DocumentStore] = None,
    backend: Optional[GenerativeBackend] = None,
    capture_factory: Optional[Callable[[], CaptureSource]] = None,
) -> Container:
    remote = getattr(settings, "STORE_BACKEND", "local") == "mysql" and is_remote_store_configured(settings)

    if documents is None:
        if remote:
            documents = MySQLDocumentStore(DatabaseConnection.get_instance(db_config_from(settings)))
        else:
            documents = JsonFileStore(getattr(settings, "LOCAL_STORE_DIR", "instance/data"))

    store = RecordStore(documents, default_due_date=getattr(settings, "DEFAULT_FEE_DUE_DATE", DEFAULT_FEE_DUE_DATE))

    matcher_config = MatcherConfig(
        model=getattr(settings, "GEMINI_MODEL", MatcherConfig.model),
        gallery_window=int(getattr(settings, "MATCHER_GALLERY_WINDOW", MatcherConfig.gallery_window)),
        most_recent_first=bool(getattr(settings, "MATCHER_MOST_RECENT_FIRST", False)),
        timeout=float(getattr(settings, "MATCHER_TIMEOUT", MatcherConfig.timeout)),
        min_confidence=float(getattr(settings, "MATCHER_MIN_CONFIDENCE", 0.0)),
    )
    provider = backend or GeminiClient(
        api_key=getattr(settings, "GEMINI_API_KEY", ""),
        model=matcher_config.model,
        timeout=matcher_config.timeout,
    )
    matcher = MatcherGateway(provider, matcher_config)

    attendance_service = AttendanceService(
        store,
        matcher,
        max_dim=int(getattr(settings, "SCANNER_MAX_DIM", 400)),
        jpeg_quality=int(getattr(settings, "SCANNER_JPEG_QUALITY", 40)),
    )
    if capture_factory is None:
        front = int(getattr(settings, "CAMERA_FRONT_INDEX", 0))
        rear = int(getattr(settings, "CAMERA_REAR_INDEX", 1))

        def capture_factory() -> CaptureSource:
            return OpenCVCaptureSource(front_index=front, rear_index=rear)

    scanner = AttendanceScanner(attendance_service, capture_factory)

    return Container(
        documents=documents,
        store=store,
        provider=provider,
        matcher=matcher,
        tenant_service=TenantService(store),
        class_service=ClassService(store),
        student_service=StudentService(store),
        enrollment_desk=EnrollmentDesk(store, matcher),
        attendance_service=attendance_service,
        scanner=scanner,
        billing=BillingLedger(store),
        report_service=ReportService(store),
        assistant_service=AssistantService(store, provider),
        remote_store=remote,
        provider_configured=matcher.is_configured,
    )

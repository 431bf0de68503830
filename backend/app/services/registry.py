"""
Application-scoped services.

main.py builds one ServiceRegistry and stores it on app.state.services;
endpoints receive the pieces they need through the dependencies below.
Tests can swap any of them by replacing attributes on the registry.
"""

from dataclasses import dataclass, field
from typing import Any, Dict

from fastapi import Request

from app.core.logging_config import logger
from app.services.announcement_hub import AnnouncementHub
from app.services.email_service import EmailService
from app.services.file_storage import UploadStore
from app.services.outbox import OutboundDispatcher
from app.services.payment_service import PaymentGateway
from app.services.report_service import ReportService


@dataclass
class ServiceRegistry:
    dispatcher: OutboundDispatcher = field(default_factory=OutboundDispatcher)
    hub: AnnouncementHub = field(default_factory=AnnouncementHub)
    email: EmailService = field(default_factory=EmailService)
    payments: PaymentGateway = field(default_factory=PaymentGateway)
    reports: ReportService = field(default_factory=ReportService)
    uploads: UploadStore = field(default_factory=UploadStore)

    async def startup(self) -> None:
        await self.dispatcher.start()

    async def shutdown(self) -> None:
        await self.dispatcher.stop()
        await self.hub.close_all()


class Outbound:
    """
    Side effects a handler queues after its commit.

    Nothing here runs inline; the dispatcher owns delivery and retries.
    """

    def __init__(self, services: ServiceRegistry):
        self.services = services

    def email(self, template: str, *args: Any, **kwargs: Any) -> bool:
        """Queue EmailService.<template>(*args); skipped when SMTP is not configured"""
        email_service = self.services.email
        if not email_service.is_configured:
            logger.debug(f"[Outbox] SMTP not configured, not queueing {template}")
            return False
        send = getattr(email_service, template)
        self.services.dispatcher.enqueue(f"email:{template}", send, *args, **kwargs)
        return True

    def broadcast(self, event: str, data: Dict[str, Any]) -> None:
        self.services.dispatcher.enqueue(f"hub:{event}", self.services.hub.broadcast, event, data)


def get_services(request: Request) -> ServiceRegistry:
    return request.app.state.services


def get_outbound(request: Request) -> Outbound:
    return Outbound(get_services(request))


def get_payment_gateway(request: Request) -> PaymentGateway:
    return get_services(request).payments


def get_report_service(request: Request) -> ReportService:
    return get_services(request).reports


def get_upload_store(request: Request) -> UploadStore:
    return get_services(request).uploads

from propdesk.services.base.base_service import BaseService
from propdesk.services.base.event_dispatcher import EventDispatcher, LoggingEventSink

__all__ = ["BaseService", "EventDispatcher", "LoggingEventSink"]

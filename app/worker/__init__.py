from app.worker.scheduled_publish import ScheduledPublishWorker

__all__ = ["ScheduledPublishWorker"]

from .scheduler import ClubScheduler, create_scheduler

__all__ = ["ClubScheduler", "create_scheduler"]

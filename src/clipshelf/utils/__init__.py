from clipshelf.utils.scheduler import Debouncer, Handle, Scheduler, ThreadingScheduler

__all__ = [
    'Debouncer',
    'Handle',
    'Scheduler',
    'ThreadingScheduler',
]

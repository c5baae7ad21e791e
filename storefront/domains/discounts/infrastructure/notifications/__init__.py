from .memory_notifier import InMemoryChangeNotifier, Subscription
from .redis_notifier import RedisChangeNotifier

__all__ = ["InMemoryChangeNotifier", "RedisChangeNotifier", "Subscription"]

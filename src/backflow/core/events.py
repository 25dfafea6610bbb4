"""Synchronous publish/subscribe used for stream notifications."""

from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional


@dataclass(eq=False)
class Subscription:
    """Handle returned by subscribe; pass it to unsubscribe."""
    event: str
    handler: Callable[..., Any]
    once: bool = False
    active: bool = True


class EventHub:
    """
    Observer registry keyed by event name.
    
    Publishing dispatches synchronously, in registration order, over a
    snapshot of the subscribers present when publish was called.
    """
    
    def __init__(self):
        self._subscribers: Dict[str, List[Subscription]] = {}
    
    def subscribe(self, event: str, handler: Callable[..., Any]) -> Subscription:
        """Register handler for every publication of event."""
        return self._add(Subscription(event, handler))
    
    def subscribe_once(self, event: str, handler: Callable[..., Any]) -> Subscription:
        """Register handler for the next publication of event only."""
        return self._add(Subscription(event, handler, once=True))
    
    def unsubscribe(self, subscription: Subscription) -> bool:
        """Remove a subscription. Returns False if it was not registered."""
        subscription.active = False
        subs = self._subscribers.get(subscription.event)
        if not subs or subscription not in subs:
            return False
        subs.remove(subscription)
        if not subs:
            del self._subscribers[subscription.event]
        return True
    
    def publish(self, event: str, *args: Any) -> int:
        """Dispatch event to its subscribers. Returns how many were called."""
        subs = self._subscribers.get(event)
        if not subs:
            return 0
        
        called = 0
        for sub in list(subs):
            if sub.once:
                # already consumed by a nested publish
                if not sub.active:
                    continue
                self.unsubscribe(sub)
            sub.handler(*args)
            called += 1
        return called
    
    def subscriber_count(self, event: Optional[str] = None) -> int:
        """Number of subscribers for event, or for all events."""
        if event is not None:
            return len(self._subscribers.get(event, ()))
        return sum(len(subs) for subs in self._subscribers.values())
    
    def clear(self, event: Optional[str] = None) -> None:
        """Drop subscribers for event, or every subscriber."""
        events = [event] if event is not None else list(self._subscribers)
        for name in events:
            for sub in self._subscribers.pop(name, []):
                sub.active = False
    
    def _add(self, subscription: Subscription) -> Subscription:
        self._subscribers.setdefault(subscription.event, []).append(subscription)
        return subscription

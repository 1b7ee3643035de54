"""This module contains the subscriber variants and the directory binding each identity to one variant"""

from abc import ABC, abstractmethod
from typing import ClassVar, Dict, Optional, Tuple

from market_data_publisher.entities import FREE_QUOTA, QUERY_REJECTED, QueryResult, SubscriberType
from market_data_publisher.registry import InstrumentRegistry


class Subscriber(ABC):
    """
    Base of the two subscriber variants. A subscriber only holds its identity (and quota, for free ones);
    subscriptions themselves live in the registries.
    """
    subscriber_type: ClassVar[SubscriberType]

    def __init__(self, subscriber_id: str):
        self.subscriber_id = subscriber_id

    @property
    def type_tag(self) -> str:
        return self.subscriber_type.value

    def subscribe_to(self, registry: InstrumentRegistry, instrument_id: int) -> bool:
        return registry.subscribe(self.subscriber_id, instrument_id)

    @abstractmethod
    def query(self, registry: InstrumentRegistry, instrument_id: int) -> QueryResult:
        """Query latest record of an instrument on behalf of this subscriber"""

    def __repr__(self):
        return f"{self.__class__.__name__}({self.subscriber_id!r})"


class PaidSubscriber(Subscriber):
    """Subscriber with unlimited queries"""
    subscriber_type = SubscriberType.PAID

    def query(self, registry: InstrumentRegistry, instrument_id: int) -> QueryResult:
        return registry.query(self.subscriber_id, instrument_id)


class FreeSubscriber(Subscriber):
    """
    Subscriber limited to a fixed number of successful queries over its lifetime.
    Failed queries do not consume quota, and an exhausted subscriber never reaches the registry.
    """
    subscriber_type = SubscriberType.FREE

    def __init__(self, subscriber_id: str, quota: int = FREE_QUOTA):
        super(FreeSubscriber, self).__init__(subscriber_id)
        self.remaining_quota = max(quota, 0)

    def query(self, registry: InstrumentRegistry, instrument_id: int) -> QueryResult:
        if self.remaining_quota <= 0:
            return QUERY_REJECTED
        result = registry.query(self.subscriber_id, instrument_id)
        if result.success:
            self.remaining_quota -= 1
        return result


class SubscriberDirectory:
    """
    Mapping from subscriber identity to Subscriber.
    Entries are created on first mention with a known type tag and are never removed;
    the variant chosen on creation is locked for the lifetime of the directory.
    """
    def __init__(self, free_quota: int = FREE_QUOTA):
        self.free_quota = free_quota
        self._subscribers: Dict[str, Subscriber] = {}

    def resolve(self, subscriber_id: str, type_tag: str) -> Tuple[Optional[Subscriber], bool]:
        """
        Find or create the subscriber for given identity, enforcing the type lock

        :param subscriber_id: str: subscriber identity
        :param type_tag: str: requested type tag, as given in the command
        :returns: (subscriber, True) if the identity resolves to a subscriber of requested type,
            (None, False) otherwise. Nothing is created or changed on a (None, False) outcome.

        """
        existing = self._subscribers.get(subscriber_id)
        if existing is not None:
            if existing.type_tag == type_tag:
                return existing, True
            return None, False
        try:
            subscriber_type = SubscriberType(type_tag)
        except ValueError:
            return None, False
        subscriber = self._create(subscriber_type, subscriber_id)
        self._subscribers[subscriber_id] = subscriber
        return subscriber, True

    def _create(self, subscriber_type: SubscriberType, subscriber_id: str) -> Subscriber:
        if subscriber_type is SubscriberType.FREE:
            return FreeSubscriber(subscriber_id, quota=self.free_quota)
        return PaidSubscriber(subscriber_id)

    def get(self, subscriber_id: str) -> Optional[Subscriber]:
        return self._subscribers.get(subscriber_id)

    def __contains__(self, subscriber_id: str) -> bool:
        return subscriber_id in self._subscribers

    def __len__(self) -> int:
        return len(self._subscribers)

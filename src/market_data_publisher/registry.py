"""This module contains the class InstrumentRegistry which publishes instrument records to its subscribers"""

from collections import defaultdict
from typing import DefaultDict, Dict, Optional, Set

from market_data_publisher.entities import QUERY_REJECTED, Domain, InstrumentRecord, QueryResult


class InstrumentRegistry:
    """
    A publisher for a single instrument domain. It owns:
        :domain: Domain: the domain whose records this registry holds
        :id_range: range: instrument ids this registry accepts; every operation rejects ids outside of it
        :_records: Dict[int, InstrumentRecord]: latest record per instrument id
        :_subscribers: Dict[int, Set[str]]: subscriber ids per instrument id
    """

    def __init__(self, domain: Domain, id_range: range):
        self.domain = domain
        self.id_range = id_range
        self._records: Dict[int, InstrumentRecord] = {}
        self._subscribers: DefaultDict[int, Set[str]] = defaultdict(set)

    def covers(self, instrument_id: int) -> bool:
        return instrument_id in self.id_range

    def update_price(self, instrument_id: int, price: float, metric: float) -> bool:
        """
        Replace the record of given instrument with a new one

        :param instrument_id: int: instrument to update
        :param price: float: last traded price
        :param metric: float: volume for equities (truncated to whole units), yield for bonds
        :returns: bool: False if instrument id is outside the range of this registry, else True

        """
        if not self.covers(instrument_id):
            return False
        if self.domain is Domain.EQUITY:
            metric = float(int(metric))
        self._records[instrument_id] = InstrumentRecord(
            last_traded_price=price, metric=metric, domain=self.domain)
        return True

    def subscribe(self, subscriber_id: str, instrument_id: int) -> bool:
        """
        Add subscriber to the subscribers of given instrument. Subscribing twice is a noop.

        :param subscriber_id: str: subscriber identity
        :param instrument_id: int: instrument to subscribe to
        :returns: bool: False if instrument id is outside the range of this registry, else True

        """
        if not self.covers(instrument_id):
            return False
        self._subscribers[instrument_id].add(subscriber_id)
        return True

    def query(self, subscriber_id: str, instrument_id: int) -> QueryResult:
        """
        Return latest record of given instrument if the subscriber is entitled to it.
        Rejected when the id is out of range, no price was ever published for it, or the subscriber
        is not subscribed to it.

        :param subscriber_id: str: querying subscriber identity
        :param instrument_id: int: instrument to read
        :returns: QueryResult

        """
        if not self.covers(instrument_id):
            return QUERY_REJECTED
        record = self._records.get(instrument_id)
        if record is None or not self.is_subscribed(subscriber_id, instrument_id):
            return QUERY_REJECTED
        return QueryResult(success=True, record=record)

    def is_subscribed(self, subscriber_id: str, instrument_id: int) -> bool:
        # plain lookup, must not create an empty entry in the defaultdict
        return subscriber_id in self._subscribers.get(instrument_id, ())

    def get_record(self, instrument_id: int) -> Optional[InstrumentRecord]:
        return self._records.get(instrument_id)

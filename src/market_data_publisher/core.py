"""This module contains the class CommandProcessor which implements core logic for the market data publisher"""

from typing import Callable, Dict, Optional, TextIO

from market_data_publisher.entities import QUERY_REJECTED, Config, Domain
from market_data_publisher.helpers import (format_query_result, get_configured_logger, parse_finite,
                                           parse_instrument_id)
from market_data_publisher.registry import InstrumentRegistry
from market_data_publisher.subscribers import Subscriber, SubscriberDirectory


class CommandProcessor:
    """
    A processor that:
        - Maintains the state of the market data publisher
        - Reads a declared number of commands from input stream and writes results of data queries to output stream

    CommandProcessor state consists of:
        :in_stream: TextIO: text stream to read input commands from
        :out_stream: TextIO: text stream to write query results to
        :_equities: InstrumentRegistry: registry of equity instruments
        :_bonds: InstrumentRegistry: registry of bond instruments
        :_directory: SubscriberDirectory: subscribers known so far, by identity
        :_processors: Dict[str, Callable[..., None]]: a mapping from command word to its respective processor method
        :_actions: Dict[str, Callable[..., None]]: a mapping from subscriber action to its respective handler
    """

    def __init__(self, config: Config, in_stream: TextIO, out_stream: TextIO):
        """
        Initializes CommandProcessor based on given configuration.

        :param config: Config: publisher configuration
        :param in_stream: TextIO: text input stream
        :param out_stream: TextIO: text output stream

        """
        self.logger = get_configured_logger(self.__class__.__name__)
        self.in_stream = in_stream
        self.out_stream = out_stream
        self._equities = InstrumentRegistry(Domain.EQUITY, config.equity_ids)
        self._bonds = InstrumentRegistry(Domain.BOND, config.bond_ids)
        self._directory = SubscriberDirectory(free_quota=config.free_quota)
        self._processors: Dict[str, Callable[..., None]] = {
            "P": self.on_price_update,
            "S": self.on_subscriber_action
        }
        self._actions: Dict[str, Callable[..., None]] = {
            "subscribe": self.on_subscribe,
            "get_data": self.on_get_data
        }

    def run(self) -> None:
        """
        Read the command count from the first line, then process that many commands in order.
        Processing stops early if the input stream ends first.
        For each command, bind its number into the log-context

        :raises: ValueError: if the first line is not an integer

        """
        header = self.in_stream.readline().strip()
        try:
            declared = int(header)
        except ValueError as e:
            self.logger.error("invalid command count", header=header)
            raise ValueError(f"Invalid command count: {header!r}") from e
        self.logger.info("CHECKPOINT: Start", declared=declared)
        processed = 0
        for command_no in range(1, declared + 1):
            self.logger.bind(command_no=command_no)
            line = self.in_stream.readline()
            if not line:
                self.logger.warning("input ended before declared count", declared=declared, processed=processed)
                break
            self.process_one(line.strip())
            processed += 1
        self.logger.bind()
        self.logger.info("CHECKPOINT: Exit", processed=processed, subscribers=len(self._directory))

    def process_one(self, command: str) -> None:
        """
        Process a single command with error handling. A malformed command is logged and skipped

        :param command: str: command to process

        """
        try:
            self.logger.debug("CHECKPOINT: start processing command", command=command)
            parts = command.split()
            cmd, args = parts[0], parts[1:]
            self._processors[cmd](*args)
        except IndexError:
            self.logger.warning("blank command", valid=list(self._processors.keys()), command=command)
        except KeyError:
            self.logger.error("unknown command", valid=list(self._processors.keys()), command=command)
        except TypeError:
            self.logger.error("invalid args", command=command)
        except ValueError:
            self.logger.error("command failed", command=command)
        finally:
            self.logger.debug("CHECKPOINT: end processing command", command=command)

    def select_registry(self, instrument_id: int) -> InstrumentRegistry:
        """
        Pick the registry a command is routed to: equity below the end of the equity range, bond otherwise.
        The chosen registry still rejects ids outside of its own range.

        :param instrument_id: int: instrument id from the command

        """
        if instrument_id < self._equities.id_range.stop:
            return self._equities
        return self._bonds

    def on_price_update(self, instrument_id: str, price: str, metric: str) -> None:
        """
        Process `P` command: replace the record of the instrument in the registry it is routed to.
        Nothing is published. Non-finite numbers and negative equity volumes make the command malformed.

        :param instrument_id: str: instrument id
        :param price: str: last traded price
        :param metric: str: last day volume for equities, yield for bonds

        """
        _id = parse_instrument_id(instrument_id)
        new_price, new_metric = parse_finite(price), parse_finite(metric)
        registry = self.select_registry(_id)
        if registry.domain is Domain.EQUITY and new_metric < 0:
            raise ValueError(f"Negative volume: {metric}")
        if registry.update_price(_id, new_price, new_metric):
            self.logger.info("updated price", domain=registry.domain.name, instrument=_id,
                             price=new_price, metric=new_metric)
        else:
            self.logger.info("price update rejected: instrument out of range",
                             domain=registry.domain.name, instrument=_id)

    def on_subscriber_action(self, type_tag: str, subscriber_id: str, action: str, instrument_id: str) -> None:
        """
        Process `S` command:
            - ignore the command if the action is not known
            - route to a registry by instrument id
            - resolve the subscriber, creating it on first mention
            - delegate to the action handler, with subscriber None if it could not be resolved

        :param type_tag: str: requested subscriber type tag
        :param subscriber_id: str: subscriber identity
        :param action: str: `subscribe` or `get_data`
        :param instrument_id: str: instrument id

        """
        _id = parse_instrument_id(instrument_id)
        handler = self._actions.get(action)
        if handler is None:
            self.logger.warning("unknown action ignored", valid=list(self._actions.keys()), action=action)
            return
        registry = self.select_registry(_id)
        subscriber, valid = self._directory.resolve(subscriber_id, type_tag)
        if not valid:
            existing = self._directory.get(subscriber_id)
            self.logger.info("subscriber not resolved", subscriber=subscriber_id, requested=type_tag,
                             existing=existing.type_tag if existing else None)
        handler(type_tag, subscriber_id, subscriber, registry, _id)

    def on_subscribe(self, type_tag: str, subscriber_id: str, subscriber: Optional[Subscriber],
                     registry: InstrumentRegistry, instrument_id: int) -> None:
        """
        Subscribe a resolved subscriber to an instrument. Nothing is published.

        :param type_tag: str: requested subscriber type tag
        :param subscriber_id: str: subscriber identity
        :param subscriber: Optional[Subscriber]: resolved subscriber, None if resolution failed
        :param registry: InstrumentRegistry: registry the command was routed to
        :param instrument_id: int: instrument to subscribe to

        """
        if subscriber is None:
            return
        if subscriber.subscribe_to(registry, instrument_id):
            self.logger.debug("subscribed", subscriber=subscriber_id, type=type_tag,
                              domain=registry.domain.name, instrument=instrument_id)
        else:
            self.logger.info("subscription rejected: instrument out of range", subscriber=subscriber_id,
                             domain=registry.domain.name, instrument=instrument_id)

    def on_get_data(self, type_tag: str, subscriber_id: str, subscriber: Optional[Subscriber],
                    registry: InstrumentRegistry, instrument_id: int) -> None:
        """
        Query the latest record of an instrument on behalf of a subscriber and publish the outcome.
        An unresolved subscriber gets an invalid request line echoing the requested type tag.

        :param type_tag: str: requested subscriber type tag
        :param subscriber_id: str: subscriber identity
        :param subscriber: Optional[Subscriber]: resolved subscriber, None if resolution failed
        :param registry: InstrumentRegistry: registry the command was routed to
        :param instrument_id: int: instrument to query

        """
        if subscriber is None:
            self.publish(format_query_result(type_tag, subscriber_id, instrument_id, QUERY_REJECTED))
            return
        result = subscriber.query(registry, instrument_id)
        if not result.success:
            self.logger.info("query rejected", subscriber=subscriber_id, type=subscriber.type_tag,
                             domain=registry.domain.name, instrument=instrument_id,
                             in_range=registry.covers(instrument_id),
                             has_record=registry.get_record(instrument_id) is not None,
                             subscribed=registry.is_subscribed(subscriber_id, instrument_id))
        self.publish(format_query_result(subscriber.type_tag, subscriber_id, instrument_id, result))

    def publish(self, message: str) -> None:
        """
        Write given message to the output stream of this processor instance

        :param message: str: text to publish

        """
        print(message, file=self.out_stream)

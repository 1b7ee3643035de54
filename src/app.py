#!/usr/bin/env python
"""This module is main entrypoint of the application"""
import sys

from market_data_publisher.core import CommandProcessor
from market_data_publisher.entities import Config
from market_data_publisher.helpers import load_publisher_config


def main():
    """
    Entrypoint to the application:
        - Load app config from the path given as first argument, or use defaults if none given
        - Initialize CommandProcessor on stdin/stdout and run it

    """
    config = load_publisher_config(sys.argv[1]) if len(sys.argv) > 1 else Config()
    processor = CommandProcessor(config=config, in_stream=sys.stdin, out_stream=sys.stdout)
    processor.run()


if __name__ == '__main__':
    main()

# src/rhosocial/sphinxql/__main__.py
import argparse
import decimal
import json
import logging
import os
import sys

from .config import DEFAULT_HOST, DEFAULT_PORT, SphinxQLConnectionConfig, parse_log_level
from .connection import Connection
from .errors import ConnectionError

logger = logging.getLogger(__name__)


def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        description="Execute SphinxQL against a MySQL-protocol server.",
        formatter_class=argparse.RawTextHelpFormatter
    )

    parser.add_argument(
        '--host',
        default=os.getenv('SPHINXQL_HOST', DEFAULT_HOST),
        help=f'Server host (default: SPHINXQL_HOST environment variable or {DEFAULT_HOST})'
    )
    parser.add_argument(
        '--port',
        type=int,
        default=int(os.getenv('SPHINXQL_PORT', DEFAULT_PORT)),
        help=f'Server port (default: SPHINXQL_PORT environment variable or {DEFAULT_PORT})'
    )
    parser.add_argument(
        'sql',
        help='SQL to run, one or more ;-separated statements. Must be enclosed in quotes.'
    )
    parser.add_argument('--execute', action='store_true',
                        help='Only report the affected-row count instead of printing result sets')
    parser.add_argument('--log-queries', action='store_true', help='Log the SQL before it is sent')
    parser.add_argument('--log-level', default='INFO', help='Set logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)')

    return parser.parse_args(argv)


def json_serializer(obj):
    """Handles serialization of types not supported by default JSON encoder."""
    if isinstance(obj, bytes):
        return obj.decode('utf-8', errors='replace')
    if isinstance(obj, decimal.Decimal):
        return str(obj)
    raise TypeError(f"Object of type {obj.__class__.__name__} is not JSON serializable")


def handle_result(results):
    if not results:
        logger.info("Query executed, no result sets returned.")
        return
    for number, table in enumerate(results):
        logger.info(f"Result set {number}: {len(table)} rows")
        for row in table:
            print(json.dumps(row, indent=2, ensure_ascii=False, default=json_serializer))


def main(argv=None) -> int:
    args = parse_args(argv)

    try:
        numeric_level = parse_log_level(args.log_level)
    except ValueError as e:
        print(e, file=sys.stderr)
        return 2
    logging.basicConfig(level=numeric_level, format='%(asctime)s - %(levelname)s - %(message)s')

    config = SphinxQLConnectionConfig(
        host=args.host,
        port=args.port,
        log_queries=args.log_queries,
        log_level=logging.INFO,
    )

    connection = None
    try:
        connection = Connection.from_config(config)
        if args.execute:
            affected_rows = connection.execute(args.sql)
            print(affected_rows)
            logger.info(f"Statement(s) executed successfully. Affected rows: {affected_rows}")
        else:
            handle_result(connection.query(args.sql))
    except ConnectionError as e:
        logger.error(f"Database connection error: {e}")
        return 1
    finally:
        if connection is not None and connection.close():
            logger.info("Disconnected from server.")

    return 0


if __name__ == "__main__":
    sys.exit(main())

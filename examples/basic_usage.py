#!/usr/bin/env python3
"""
Basic Usage Example - statemount

This script demonstrates the basic usage of the statemount lifecycle engine.
It shows how to:
- Declare states with start and stop functions
- Start and stop them in declaration order
- Substitute a state for a test double
- Run an isolated session in its own thread

Run: python examples/basic_usage.py
"""

from typing import Any, Dict

from statemount import api
from statemount.logging.config import configure_logging


@api.defstate(stop=lambda conn: conn.update(open=False))
def database() -> Dict[str, Any]:
    """Fake database connection."""
    print("   opening database")
    return {"dsn": "sqlite://", "open": True}


@api.defstate(stop=lambda cache: cache.clear())
def cache() -> Dict[str, Any]:
    """Cache that relies on the database being up."""
    print(f"   building cache on {database.value['dsn']}")
    return {"warm": True}


def print_status() -> None:
    """Print current status of every state."""
    for state, status in api.status().items():
        print(f"   {state.name:<10} {status.value}")


def main():
    """Main demonstration function."""
    configure_logging(level="WARNING")

    print("statemount - Basic Usage Demo")
    print("=" * 60)

    print("1. Starting all states...")
    started = api.start()
    print(f"   Started: {[s.name for s in started]}")
    print_status()
    print()

    print("2. Stopping all states...")
    stopped = api.stop()
    print(f"   Stopped: {[s.name for s in stopped]}")
    print_status()
    print()

    print("3. Starting with a substituted database...")
    with api.with_substitutes({database: api.state(lambda: {"dsn": "memory://", "open": True})}):
        api.start()
    print(f"   Database DSN: {database.value['dsn']}")
    api.stop()
    print()

    print("4. Running an isolated session...")

    def session_body() -> str:
        api.start()
        return database.value["dsn"]

    handle = api.with_session(session_body)
    print(f"   Session {handle.session_id[:8]} saw: {handle.wait()}")
    print("   Parent status after the session finished:")
    print_status()
    print()

    print("Demo completed successfully!")


if __name__ == "__main__":
    main()

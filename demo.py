#!/usr/bin/env python3
"""
Demo script for the log pattern mining system.
"""

import json

from logpatterns import PatternStore


def create_first_batch():
    """Messages of a first, small batch."""
    return [
        "User 123 logged in",
        "User 456 logged in",
        "Connection from 192.168.1.5 closed",
        "Connection from 10.0.0.17 closed",
        "Disk /dev/sda1 is 91% full",
        "User 789 logged in",
    ]


def create_second_batch():
    """Messages of a later batch, some of them seen before."""
    return [
        "User 1024 logged in",
        "Connection from 172.16.4.2 closed",
        "Disk /dev/sdb2 is 97% full",
        "Scheduler started with 4 workers",
    ]


def print_report(title, report):
    print(f"\n{title}")
    print("-" * len(title))
    for change in report.added:
        print(f"  + {change.pattern!r:45} messages {change.msg_indexes}")
    for change in report.updated:
        print(f"  ~ {change.pattern!r:45} messages {change.msg_indexes}")


def main():
    """Run the demo."""
    print("🚀 Log Pattern Mining Demo")
    print("=" * 50)

    store = PatternStore()

    report = store.put_messages(create_first_batch())
    print_report("Batch 1", report)

    report = store.put_messages(create_second_batch())
    print_report("Batch 2", report)

    print("\n📋 Current patterns:")
    for rec in store.records:
        stats = rec.stats
        print(f"  {rec.pattern!r:45} matched={stats.matched} "
              f"checked={stats.checked} rating={stats.rating:.3f}")

    data = store.dump()
    restored = PatternStore()
    restored.load(json.loads(json.dumps(data)))
    print(f"\n💾 Round trip: {len(restored)} patterns, "
          f"{restored.total_messages} messages")


if __name__ == '__main__':
    main()

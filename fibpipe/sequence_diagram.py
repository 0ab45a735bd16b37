"""
Sequence Diagrams: Submission Pipeline

ASCII sequence diagrams showing how the gateway, the stores and the workers
interact. Printed by ``python -m fibpipe diagram``.
"""

SUBMIT_FLOW = """
┌──────────┐     ┌──────────┐     ┌──────────────┐     ┌────────────┐     ┌──────────┐
│  Client  │     │ Gateway  │     │ Result Cache │     │ Durable Log│     │  Worker  │
│          │     │          │     │   (Redis)    │     │ (Postgres) │     │          │
└────┬─────┘     └────┬─────┘     └──────┬───────┘     └─────┬──────┘     └────┬─────┘
     │                │                  │                   │                 │
     │ POST /values   │                  │                   │                 │
     │ {index: 7}     │                  │                   │                 │
     │ ──────────────>│                  │                   │                 │
     │                │ 1. Validate      │                   │                 │
     │                │    0 <= 7 <= 40  │                   │                 │
     │                │                  │                   │                 │
     │                │ 2. HSETNX values │                   │                 │
     │                │    7 "Nothing    │                   │                 │
     │                │    yet!"         │                   │                 │
     │                │ ────────────────>│                   │                 │
     │                │                  │                   │                 │
     │                │ 3. INSERT number=7 (best effort)     │                 │
     │                │ ────────────────────────────────────>│                 │
     │                │                  │                   │                 │
     │                │ 4. PUBLISH insert "7"                │                 │
     │                │ ──────────────────────────────────────────────────────>│
     │                │                  │                   │                 │
     │ 200            │                  │                   │                 │
     │ {working:true} │                  │                   │                 │
     │ <──────────────│                  │                   │                 │
     │                │                  │                   │  5. Queue 7     │
     │                │                  │                   │  6. fib(7) = 21 │
     │                │                  │                   │     (executor)  │
     │                │                  │ 7. HSET values 7 "21"               │
     │                │                  │ <───────────────────────────────────│
     │                │                  │                   │                 │
"""

READ_FLOW = """
┌──────────┐     ┌──────────┐     ┌──────────────┐     ┌────────────┐
│  Client  │     │ Gateway  │     │ Result Cache │     │ Durable Log│
└────┬─────┘     └────┬─────┘     └──────┬───────┘     └─────┬──────┘
     │ GET            │                  │                   │
     │ /values/current│                  │                   │
     │ ──────────────>│ HGETALL values   │                   │
     │                │ ────────────────>│                   │
     │ {"7": "21",    │ <────────────────│                   │
     │  "9": "Nothing │                  │                   │
     │  yet!"}        │                  │                   │
     │ <──────────────│                  │                   │
     │                │                  │                   │
     │ GET /values/all│                  │                   │
     │ ──────────────>│ SELECT number ORDER BY id            │
     │                │ ────────────────────────────────────>│
     │ [{number: 7},  │ <────────────────────────────────────│
     │  {number: 9}]  │                  │                   │
     │ <──────────────│                  │                   │
"""

ENTRY_LIFECYCLE = """
┌─────────────────────────────────────────────────────────────────────────────┐
│                        CACHE ENTRY STATE MACHINE                            │
├─────────────────────────────────────────────────────────────────────────────┤
│                                                                             │
│     absent ──(gateway seed)──> pending ──(worker writes)──> final           │
│                                                                             │
│  - The seed is set-if-absent: a second submission of an index that is      │
│    already final leaves the final value in place.                          │
│  - The duplicate is still dispatched; the worker rewrites the same value.  │
│  - Nothing moves an entry back to absent or pending.                       │
│  - A worker crash or compute timeout leaves the entry pending. A           │
│    reconciliation pass re-queues pending entries.                          │
│                                                                             │
└─────────────────────────────────────────────────────────────────────────────┘
"""

FANOUT = """
┌─────────────────────────────────────────────────────────────────────────────┐
│                         DISPATCH CHANNEL (PUB/SUB)                          │
├─────────────────────────────────────────────────────────────────────────────┤
│                                                                             │
│  PUBLISH insert "7"                                                         │
│        │                                                                    │
│        ├──> Worker A  (subscribed)  computes 7                              │
│        ├──> Worker B  (subscribed)  computes 7 again, same value            │
│        └─ ─ Worker C  (not yet subscribed)  never sees it                   │
│                                                                             │
│  PUBLISH insert "9" with zero subscribers: dropped, no record kept.        │
│                                                                             │
│  Note: Pub/Sub is fire-and-forget. Used for notifications, not storage.    │
│        The durable log and cache are the only state.                       │
│                                                                             │
└─────────────────────────────────────────────────────────────────────────────┘
"""

DIAGRAMS = [
    ("SUBMIT FLOW", SUBMIT_FLOW),
    ("READ FLOW", READ_FLOW),
    ("CACHE ENTRY LIFECYCLE", ENTRY_LIFECYCLE),
    ("DISPATCH FAN-OUT", FANOUT),
]


def render() -> str:
    parts = []
    for title, diagram in DIAGRAMS:
        parts.append("=" * 80)
        parts.append(title)
        parts.append("=" * 80)
        parts.append(diagram)
    return "\n".join(parts)


if __name__ == "__main__":
    print(render())
